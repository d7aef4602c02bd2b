"""
Services package
Business logic layer

- doctor_onboarding_saga: doctor provisioning saga
- doctor_service: doctor directory
- identity_service: login address allocation / identity resolution
- sequence_service: display position allocation
- reconciliation_service: orphan report / saga log purge
"""

__all__ = []
