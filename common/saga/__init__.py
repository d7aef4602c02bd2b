"""
Saga pattern

Multi-resource writes (login identity + profile + doctor) have no shared
transaction, so each step commits on its own and failures are undone by
compensating actions run in reverse order.
"""

from .saga_orchestrator import SagaOrchestrator, SagaContext, SagaStepDefinition, ROLLING_BACK, DONE

__all__ = [
    'SagaOrchestrator',
    'SagaContext',
    'SagaStepDefinition',
    'ROLLING_BACK',
    'DONE'
]
