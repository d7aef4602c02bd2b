from datetime import datetime, timedelta
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field
from enum import Enum

from sqlalchemy import Column, String, JSON, TIMESTAMP

from common.extensions import db


class SagaStatus(str, Enum):
    PENDING = "pending"  # not started
    IN_PROGRESS = "in_progress"  # running
    COMPLETED = "completed"  # finished successfully
    COMPENSATING = "compensating"  # running compensations
    COMPENSATED = "compensated"  # rolled back
    FAILED = "failed"  # compensation failed, manual intervention


class StepStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    COMPENSATED = "compensated"


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class SagaStep:
    # step name (e.g. "resolving_identity", "inserting_domain_record")
    name: str

    status: StepStatus = StepStatus.PENDING

    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    compensated_at: Optional[str] = None

    error_message: Optional[str] = None

    # what the compensation needs (ids to delete, created_by_this_run flag ...)
    compensation_data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return {
            'name': self.name,
            'status': self.status.value,
            'started_at': self.started_at,
            'completed_at': self.completed_at,
            'compensated_at': self.compensated_at,
            'error_message': self.error_message,
            'compensation_data': self.compensation_data
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'SagaStep':
        return cls(
            name=data['name'],
            status=StepStatus(data.get('status', 'pending')),
            started_at=data.get('started_at'),
            completed_at=data.get('completed_at'),
            compensated_at=data.get('compensated_at'),
            error_message=data.get('error_message'),
            compensation_data=data.get('compensation_data', {})
        )


class SagaTransactionLog(db.Model):
    __tablename__ = 'saga_transaction_log'

    transaction_id = Column(String(36), primary_key=True, comment='saga run id (UUID)')
    saga_type = Column(String(50), nullable=False, default='generic', comment='saga kind (e.g. doctor_onboarding)')
    status = Column(String(20), nullable=False, default=SagaStatus.PENDING.value, comment='saga status')

    # ordered step list (SagaStep.to_dict())
    steps = Column(JSON, nullable=False, default=list, comment='step states')
    saga_metadata = Column('metadata', JSON, nullable=False, default=dict, comment='debug / tracing metadata')

    created_at = Column(TIMESTAMP, default=datetime.utcnow, nullable=False, index=True, comment='created at')
    completed_at = Column(TIMESTAMP, nullable=True, comment='completed at')
    compensation_started_at = Column(TIMESTAMP, nullable=True, comment='compensation started at')
    compensation_completed_at = Column(TIMESTAMP, nullable=True, comment='compensation completed at')

    def __repr__(self):
        return f'<SagaTransactionLog {self.transaction_id} {self.status}>'

    def get_steps(self) -> List[SagaStep]:
        return [SagaStep.from_dict(step) for step in (self.steps or [])]

    def add_step(self, step_name: str, compensation_data: Dict[str, Any] = None):
        step = SagaStep(
            name=step_name,
            compensation_data=compensation_data or {}
        )
        self.steps = list(self.steps or []) + [step.to_dict()]

    def get_completed_steps(self) -> List[SagaStep]:
        return [step for step in self.get_steps() if step.status == StepStatus.COMPLETED]

    def to_dict(self) -> Dict:
        return {
            'transaction_id': self.transaction_id,
            'saga_type': self.saga_type,
            'status': self.status,
            'steps': list(self.steps or []),
            'metadata': dict(self.saga_metadata or {}),
            'created_at': _isoformat(self.created_at),
            'completed_at': _isoformat(self.completed_at),
            'compensation_started_at': _isoformat(self.compensation_started_at),
            'compensation_completed_at': _isoformat(self.compensation_completed_at)
        }


class SagaTransactionLogRepository:
    """
    Saga log persistence.

    Every write commits immediately: the log has to survive even when the step
    it describes was rolled back.
    """

    def __init__(self, session=None):
        self.session = session or db.session

    def _get(self, transaction_id: str) -> SagaTransactionLog:
        return self.session.get(SagaTransactionLog, transaction_id)

    # NOTE : create
    def insert(self, saga_log: SagaTransactionLog):
        self.session.add(saga_log)
        self.session.commit()

    def rollback(self):
        self.session.rollback()

    # NOTE : lookup by transaction id
    def find_by_transaction_id(self, transaction_id: str) -> Optional[SagaTransactionLog]:
        return self._get(transaction_id)

    # NOTE : saga status
    def update_status(self, transaction_id: str, status: SagaStatus):
        saga_log = self._get(transaction_id)
        saga_log.status = status.value
        self.session.commit()

    # NOTE : single step
    def update_step(self, transaction_id: str, step_index: int, update_data: Dict):
        saga_log = self._get(transaction_id)
        steps = [dict(step) for step in (saga_log.steps or [])]
        steps[step_index].update(update_data)
        saga_log.steps = steps
        self.session.commit()

    def mark_step_started(self, transaction_id: str, step_index: int):
        self.update_step(transaction_id, step_index, {
            'status': StepStatus.PENDING.value,
            'started_at': datetime.utcnow().isoformat()
        })

    def mark_step_completed(self, transaction_id: str, step_index: int, compensation_data: Dict = None):
        self.update_step(transaction_id, step_index, {
            'status': StepStatus.COMPLETED.value,
            'completed_at': datetime.utcnow().isoformat(),
            'compensation_data': compensation_data or {}
        })

    def mark_step_failed(self, transaction_id: str, step_index: int, error_message: str):
        self.update_step(transaction_id, step_index, {
            'status': StepStatus.FAILED.value,
            'error_message': error_message,
            'completed_at': datetime.utcnow().isoformat()
        })

    def mark_step_compensated(self, transaction_id: str, step_index: int):
        self.update_step(transaction_id, step_index, {
            'status': StepStatus.COMPENSATED.value,
            'compensated_at': datetime.utcnow().isoformat()
        })

    # NOTE : compensation started
    def start_compensation(self, transaction_id: str):
        saga_log = self._get(transaction_id)
        saga_log.status = SagaStatus.COMPENSATING.value
        saga_log.compensation_started_at = datetime.utcnow()
        self.session.commit()

    # NOTE : compensation finished
    def complete_compensation(self, transaction_id: str):
        saga_log = self._get(transaction_id)
        saga_log.status = SagaStatus.COMPENSATED.value
        saga_log.compensation_completed_at = datetime.utcnow()
        self.session.commit()

    # NOTE : saga succeeded
    def complete_saga(self, transaction_id: str):
        saga_log = self._get(transaction_id)
        saga_log.status = SagaStatus.COMPLETED.value
        saga_log.completed_at = datetime.utcnow()
        self.session.commit()

    # NOTE : saga failed (compensation impossible)
    def mark_failed(self, transaction_id: str):
        saga_log = self._get(transaction_id)
        saga_log.status = SagaStatus.FAILED.value
        saga_log.completed_at = datetime.utcnow()
        self.session.commit()

    # NOTE : runs stuck in a non-terminal state (crash mid-saga)
    def find_stale(self, older_than: datetime) -> List[SagaTransactionLog]:
        return self.session.query(SagaTransactionLog).filter(
            SagaTransactionLog.status.in_([SagaStatus.IN_PROGRESS.value, SagaStatus.COMPENSATING.value]),
            SagaTransactionLog.created_at < older_than
        ).order_by(SagaTransactionLog.created_at).all()

    # NOTE : purge terminal logs (default: older than 30 days)
    def delete_old_logs(self, days: int = 30) -> int:
        cutoff_date = datetime.utcnow() - timedelta(days=days)

        deleted = self.session.query(SagaTransactionLog).filter(
            SagaTransactionLog.created_at < cutoff_date,
            SagaTransactionLog.status.in_([SagaStatus.COMPLETED.value, SagaStatus.COMPENSATED.value])
        ).delete(synchronize_session=False)
        self.session.commit()

        return deleted
