from flask_smorest import Blueprint

from app.schemas.admin import (
    OrphanReportRequestSchema, OrphanReportResponseSchema,
    SagaTransactionLogSchema
)
from app.services.reconciliation_service import ProvisioningReconciliationService

admin_blueprint = Blueprint(
    'admin',
    __name__,
    url_prefix='/api/v1/admin',
    description='Provisioning administration API'
)


@admin_blueprint.route('/provisioning/orphans', methods=['GET'])
@admin_blueprint.arguments(OrphanReportRequestSchema, location='query')
@admin_blueprint.response(200, OrphanReportResponseSchema)
def get_orphaned_provisioning(args):
    return ProvisioningReconciliationService.find_orphans(args.get('grace_minutes'))


@admin_blueprint.route('/sagas/<transaction_id>', methods=['GET'])
@admin_blueprint.response(200, SagaTransactionLogSchema)
def get_saga(transaction_id):
    return ProvisioningReconciliationService.get_saga(transaction_id)
