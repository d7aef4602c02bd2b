"""
Models package
SQLAlchemy ORM models (one model per file)

- AuthIdentity: login identities (local identity provider)
- User: staff profile
- Doctor: doctor directory record
- SagaTransactionLog: saga run log
"""

from common.extensions import db

from app.models.identity import AuthIdentity
from app.models.user import User
from app.models.doctor import Doctor
from app.models.saga_transaction_log import SagaTransactionLog

__all__ = [
    'db',
    'AuthIdentity',
    'User',
    'Doctor',
    'SagaTransactionLog'
]
