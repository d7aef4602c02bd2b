import uuid
from datetime import datetime
from sqlalchemy import Column, Computed, String, Integer, Numeric, JSON, TIMESTAMP, ForeignKey
from sqlalchemy.orm import relationship
from common.extensions import db
from common.enum.staff_role import DoctorStatus


def generate_uuid():
    return str(uuid.uuid4())


# unique constraint that arbitrates display positions
POSITION_UNIQUE_COLUMN = 'live_sort_order'


class Doctor(db.Model):
    __tablename__ = 'doctor'

    doctor_id = Column(String(36), primary_key=True, default=generate_uuid, comment='doctor id (UUID)')
    doctor_code = Column(String(32), nullable=False, unique=True, comment='business identifier (DR...)')

    # references user.user_id (the profile), not the login identity
    user_id = Column(String(36), ForeignKey('user.user_id'), nullable=False, comment='profile id')

    license_number = Column(String(64), nullable=True, unique=True, comment='medical license number')
    specialization = Column(String(100), nullable=False, comment='specialization')
    department = Column(String(100), nullable=True, comment='department')
    qualification = Column(String(255), nullable=True, comment='qualification')
    years_of_experience = Column(Integer, default=0, comment='years of experience')
    consultation_fee = Column(Numeric(10, 2), nullable=False, default=0, comment='consultation fee')
    room_number = Column(String(20), nullable=True, comment='consultation room')

    # display order only, detachable from identity; soft-deleted rows keep theirs
    sort_order = Column(Integer, nullable=False, comment='display position')
    # NULL once soft-deleted, so only live doctors compete for a position
    live_sort_order = Column(
        Integer,
        Computed('CASE WHEN deleted_at IS NULL THEN sort_order END', persisted=True),
        unique=True,
        comment='display position of a live doctor'
    )

    availability_hours = Column(JSON, nullable=False, default=dict, comment='sessions, working days, hours')
    status = Column(String(20), nullable=False, default=DoctorStatus.ACTIVE.value, comment='active / inactive')
    deleted_at = Column(TIMESTAMP, nullable=True, comment='soft delete time (NULL: live)')

    created_at = Column(TIMESTAMP, default=datetime.utcnow, nullable=False, comment='created at')
    updated_at = Column(
        TIMESTAMP,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
        comment='updated at'
    )

    user = relationship('User', back_populates='doctors')

    def __repr__(self):
        return f'<Doctor {self.doctor_code}>'

    @property
    def is_deleted(self):
        return self.deleted_at is not None

    def soft_delete(self):
        if self.deleted_at is not None:
            return

        self.deleted_at = datetime.utcnow()
        self.status = DoctorStatus.INACTIVE.value

    def restore(self):
        self.deleted_at = None
        self.status = DoctorStatus.ACTIVE.value
