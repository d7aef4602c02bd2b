import uuid
from datetime import datetime
from sqlalchemy import Column, String, Text, JSON, TIMESTAMP
from sqlalchemy.orm import relationship
from common.extensions import db
from common.enum.staff_role import ProfileStatus


def generate_uuid():
    return str(uuid.uuid4())


class User(db.Model):
    __tablename__ = 'user'

    # Primary Key
    user_id = Column(String(36), primary_key=True, default=generate_uuid, comment='profile id (UUID)')

    # Identity handle (auth_identity.identity_id or the external provider's user id)
    auth_id = Column(String(36), nullable=False, unique=True, comment='login identity handle')
    employee_id = Column(String(32), nullable=True, comment='employee code (EMP...)')

    # Descriptive attributes
    name = Column(String(100), nullable=False, comment='display name')
    email = Column(String(255), nullable=False, unique=True, comment='login address')
    phone = Column(String(20), nullable=True, unique=True, comment='phone number')
    address = Column(Text, nullable=True, comment='postal address')

    # Role, status, permissions
    role = Column(String(20), nullable=False, comment='staff role (doctor, nurse, admin ...)')
    status = Column(String(20), nullable=False, default=ProfileStatus.ACTIVE.value, comment='active / inactive')
    permissions = Column(JSON, nullable=False, default=dict, comment='capability set')

    # Timestamps
    created_at = Column(TIMESTAMP, default=datetime.utcnow, nullable=False, comment='created at')
    updated_at = Column(
        TIMESTAMP,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
        comment='updated at'
    )

    # Relationships
    doctors = relationship(
        'Doctor',
        back_populates='user',
        lazy='dynamic'
    )

    def __repr__(self):
        return f'<User {self.email}>'

    def to_projection(self):
        return {
            'user_id': self.user_id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'address': self.address
        }
