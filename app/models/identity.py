import uuid
from datetime import datetime
from sqlalchemy import Column, String, JSON, TIMESTAMP
from common.extensions import db


def generate_uuid():
    return str(uuid.uuid4())


class AuthIdentity(db.Model):
    """Login account store backing LocalIdentityProvider."""
    __tablename__ = 'auth_identity'

    identity_id = Column(String(36), primary_key=True, default=generate_uuid, comment='identity handle (UUID)')
    email = Column(String(255), nullable=False, unique=True, comment='login address')
    password_hash = Column(String(255), nullable=False, comment='hashed password')
    email_confirmed_at = Column(TIMESTAMP, nullable=True, comment='confirmation time (NULL: unconfirmed)')
    user_metadata = Column(JSON, nullable=False, default=dict, comment='role tag, display name')

    created_at = Column(TIMESTAMP, default=datetime.utcnow, nullable=False, comment='created at')

    def __repr__(self):
        return f'<AuthIdentity {self.email}>'
