import uuid
from typing import Callable, List, Dict, Any, Optional, Tuple
from dataclasses import dataclass

from common.enum.error_code import APIError
from common.exception.exceptions import BusinessError
from common.utils.logging_utils import get_logger

from app.models.saga_transaction_log import (
    SagaTransactionLog,
    SagaTransactionLogRepository,
    SagaStatus
)

logger = get_logger('saga_orchestrator')

ROLLING_BACK = 'rolling_back'
DONE = 'done'


@dataclass
class SagaStepDefinition:
    name: str
    execute: Callable
    compensate: Optional[Callable] = None
    extract_compensation_data: Optional[Callable] = None


class SagaContext:

    def __init__(self, transaction_id: str, data: Optional[Dict[str, Any]] = None):
        self.transaction_id = transaction_id
        self.state: Optional[str] = None
        self.data: Dict[str, Any] = dict(data or {})  # saga input
        self.step_results: Dict[str, Any] = {}

    def save_result(self, step_name: str, result: Any):
        self.step_results[step_name] = result

    def get_result(self, step_name: str) -> Any:
        return self.step_results.get(step_name)


class SagaOrchestrator:
    """
    Runs steps in order; on failure, compensates the completed steps in reverse.

    Each step's ``execute`` receives the SagaContext. A step without
    ``compensate`` persisted nothing and is never compensated.
    ``extract_compensation_data`` turns the step result into the dict handed to
    ``compensate`` and stored in the saga log.
    """

    def __init__(
        self,
        saga_repo: Optional[SagaTransactionLogRepository] = None,
        transaction_id: Optional[str] = None,
        saga_type: str = 'generic',
        metadata: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None
    ):
        self.saga_repo = saga_repo or SagaTransactionLogRepository()
        self.transaction_id = transaction_id or str(uuid.uuid4())
        self.metadata = metadata or {}
        self.steps: List[SagaStepDefinition] = []
        self.context = SagaContext(self.transaction_id, data)

        self.saga_log = SagaTransactionLog(
            transaction_id=self.transaction_id,
            saga_type=saga_type,
            status=SagaStatus.PENDING.value,
            steps=[],
            saga_metadata=self.metadata
        )

    def add_step(
        self,
        name: str,
        execute: Callable,
        compensate: Optional[Callable] = None,
        extract_compensation_data: Optional[Callable] = None
    ):
        step_def = SagaStepDefinition(
            name=name,
            execute=execute,
            compensate=compensate,
            extract_compensation_data=extract_compensation_data
        )
        self.steps.append(step_def)
        self.saga_log.add_step(step_name=name)
        return self

    def execute(self) -> Tuple[bool, Any]:
        logger.info(f"Starting transaction: {self.transaction_id} ({self.saga_log.saga_type})")

        self.saga_log.status = SagaStatus.IN_PROGRESS.value
        self.saga_repo.insert(self.saga_log)

        executed_steps: List[Tuple[int, SagaStepDefinition, Any, Dict[str, Any]]] = []

        try:
            for i, step_def in enumerate(self.steps):
                logger.debug(f"Executing step {i + 1}/{len(self.steps)}: {step_def.name}")

                self.context.state = step_def.name
                self.saga_repo.mark_step_started(self.transaction_id, i)

                try:
                    result = step_def.execute(self.context)
                    self.context.save_result(step_def.name, result)

                    compensation_data = {}
                    if step_def.extract_compensation_data:
                        compensation_data = step_def.extract_compensation_data(result)

                    if step_def.compensate:
                        executed_steps.append((i, step_def, result, compensation_data))

                    self.saga_repo.mark_step_completed(self.transaction_id, i, compensation_data)

                    logger.debug(f"Step {i + 1} completed: {step_def.name}")

                except Exception as step_error:
                    logger.error(f"Step {i + 1} failed: {step_def.name} - {step_error}")

                    # discard whatever the failed step left in the session
                    self.saga_repo.rollback()

                    self.saga_repo.mark_step_failed(
                        self.transaction_id,
                        i,
                        str(step_error)
                    )

                    self._compensate(executed_steps)

                    raise step_error

            logger.info(f"Transaction completed successfully: {self.transaction_id}")
            self.context.state = DONE
            self.saga_repo.complete_saga(self.transaction_id)

            return True, self.context

        except Exception as e:
            logger.error(f"Transaction failed: {self.transaction_id} - {e}")
            return False, e

    def _compensate(self, executed_steps: List[Tuple[int, SagaStepDefinition, Any, Dict[str, Any]]]):
        self.context.state = ROLLING_BACK

        if not executed_steps:
            self.saga_repo.complete_compensation(self.transaction_id)
            return

        logger.warning(f"Starting compensation for {len(executed_steps)} steps")
        self.saga_repo.start_compensation(self.transaction_id)

        # last created, first removed
        for i, step_def, result, compensation_data in reversed(executed_steps):
            try:
                logger.debug(f"Compensating step: {step_def.name}")

                step_def.compensate(compensation_data)

                self.saga_repo.mark_step_compensated(self.transaction_id, i)

                logger.debug(f"Step compensated: {step_def.name}")

            except Exception as comp_error:
                logger.error(f"Compensation failed for {step_def.name}: {comp_error}")

                # NOTE: a failed compensation needs manual intervention
                self.saga_repo.rollback()
                self.saga_repo.mark_failed(self.transaction_id)
                raise BusinessError(
                    APIError.SAGA_COMPENSATION_FAILED,
                    f"Compensation failed for step '{step_def.name}'. "
                    f"Manual intervention required. Transaction ID: {self.transaction_id}"
                ) from comp_error

        self.saga_repo.complete_compensation(self.transaction_id)
        logger.warning(f"Compensation completed: {self.transaction_id}")
