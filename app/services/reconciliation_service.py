from datetime import datetime, timedelta
from typing import Dict, Optional

from flask import current_app

from app.models.doctor import Doctor
from app.models.saga_transaction_log import SagaTransactionLogRepository
from app.models.user import User
from common.decorator.db_decorators import transactional_readonly
from common.enum.error_code import APIError
from common.enum.staff_role import StaffRole
from common.exception.exceptions import BusinessError
from common.extensions import db
from common.utils.logging_utils import get_logger

logger = get_logger('reconciliation_service')


class ProvisioningReconciliationService:
    """
    Report-only sweep for what a crashed onboarding run can leave behind.

    Lists doctor-role profiles with no doctor record and saga runs stuck in a
    non-terminal state. Nothing is deleted here.
    """

    @staticmethod
    @transactional_readonly
    def find_orphans(grace_minutes: Optional[int] = None) -> Dict:
        if grace_minutes is None:
            grace_minutes = current_app.config.get('ORPHAN_GRACE_MINUTES', 60)

        now = datetime.utcnow()
        cutoff = now - timedelta(minutes=grace_minutes)

        orphaned_profiles = db.session.query(User).outerjoin(
            Doctor, Doctor.user_id == User.user_id
        ).filter(
            User.role == StaffRole.DOCTOR.value,
            Doctor.doctor_id.is_(None),
            User.created_at < cutoff
        ).order_by(User.created_at).all()

        stale_sagas = SagaTransactionLogRepository().find_stale(cutoff)

        return {
            'checked_at': now.isoformat(),
            'grace_minutes': grace_minutes,
            'orphaned_profiles': [
                {
                    'user_id': user.user_id,
                    'auth_id': user.auth_id,
                    'email': user.email,
                    'name': user.name,
                    'created_at': user.created_at.isoformat()
                }
                for user in orphaned_profiles
            ],
            'stale_sagas': [saga_log.to_dict() for saga_log in stale_sagas]
        }

    @staticmethod
    def report_orphans() -> Dict:
        report = ProvisioningReconciliationService.find_orphans()

        for profile in report['orphaned_profiles']:
            logger.warning(
                f"Orphaned doctor profile: {profile['user_id']} ({profile['email']}), "
                f"identity {profile['auth_id']}, created {profile['created_at']}"
            )
        for saga_log in report['stale_sagas']:
            logger.warning(
                f"Stale saga {saga_log['transaction_id']} ({saga_log['saga_type']}) "
                f"stuck in {saga_log['status']} since {saga_log['created_at']}"
            )

        return report

    @staticmethod
    def purge_saga_logs(days: Optional[int] = None) -> int:
        if days is None:
            days = current_app.config.get('SAGA_LOG_RETENTION_DAYS', 30)

        deleted = SagaTransactionLogRepository().delete_old_logs(days)
        logger.info(f"Purged {deleted} saga logs older than {days} days")
        return deleted

    @staticmethod
    @transactional_readonly
    def get_saga(transaction_id: str) -> Dict:
        saga_log = SagaTransactionLogRepository().find_by_transaction_id(transaction_id)
        if not saga_log:
            raise BusinessError(APIError.SAGA_NOT_FOUND)
        return saga_log.to_dict()
