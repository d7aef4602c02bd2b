"""
Scheduled jobs
- hourly report of orphaned doctor profiles / stuck saga runs
- daily purge of finished saga logs
"""

from common.extensions import scheduler
from common.utils.logging_utils import get_logger

logger = get_logger('scheduler_tasks')


def register_scheduled_tasks():
    scheduler.add_job(
        id='report_orphaned_provisioning',
        func=execute_orphan_report_job,
        trigger='interval',
        hours=1,
        replace_existing=True
    )

    # every day at 04:00
    scheduler.add_job(
        id='purge_saga_logs',
        func=execute_saga_log_purge_job,
        trigger='cron',
        hour=4,
        minute=0,
        replace_existing=True
    )

    logger.info("Scheduled jobs registered: orphan report (hourly), saga log purge (daily 04:00)")


def execute_orphan_report_job():
    from app.services.reconciliation_service import ProvisioningReconciliationService

    with scheduler.app.app_context():
        try:
            report = ProvisioningReconciliationService.report_orphans()
            logger.info(
                f"Orphan report: {len(report['orphaned_profiles'])} profiles, "
                f"{len(report['stale_sagas'])} stale sagas"
            )
        except Exception as e:
            logger.error(f"Orphan report job failed: {str(e)}", exc_info=True)


def execute_saga_log_purge_job():
    from app.services.reconciliation_service import ProvisioningReconciliationService

    with scheduler.app.app_context():
        try:
            ProvisioningReconciliationService.purge_saga_logs()
        except Exception as e:
            logger.error(f"Saga log purge job failed: {str(e)}", exc_info=True)
