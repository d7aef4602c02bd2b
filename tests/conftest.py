"""
Shared fixtures

One application per test session (in-memory SQLite, foreign keys on); the
schema is created and dropped around every test that asks for ``db_session``.
"""

from typing import Any, Dict, List
import uuid

import pytest

from app import create_app
from app.dto.doctor import CreateDoctorInput
from app.models.doctor import Doctor
from app.models.user import User
from common.enum.staff_role import StaffRole, default_permissions_for
from common.exception.exceptions import IdentityProviderError
from common.extensions import db
from common.identity.base import IdentityHandle, IdentityProvider


@pytest.fixture(scope='session')
def app():
    return create_app('testing')


@pytest.fixture
def app_ctx(app):
    with app.app_context():
        yield app


@pytest.fixture
def db_session(app_ctx):
    db.create_all()
    yield db.session
    db.session.remove()
    db.drop_all()


@pytest.fixture
def client(app, db_session):
    return app.test_client()


class RecordingIdentityProvider(IdentityProvider):
    """In-memory identity store that remembers every call."""

    def __init__(self):
        self.identities: Dict[str, IdentityHandle] = {}
        self.created: List[str] = []
        self.deleted: List[str] = []
        self.fail_create_with = None
        self.fail_delete_with = None

    def create_identity(self, email: str, password: str, confirmed: bool = True,
                        metadata: Dict[str, Any] = None) -> IdentityHandle:
        if self.fail_create_with:
            raise IdentityProviderError(self.fail_create_with, 500)

        handle = IdentityHandle(identity_id=str(uuid.uuid4()), email=email, metadata=dict(metadata or {}))
        self.identities[handle.identity_id] = handle
        self.created.append(handle.identity_id)
        return handle

    def delete_identity(self, identity_id: str) -> None:
        if self.fail_delete_with:
            raise IdentityProviderError(self.fail_delete_with, 500)

        self.deleted.append(identity_id)
        self.identities.pop(identity_id, None)


@pytest.fixture
def identity_provider():
    return RecordingIdentityProvider()


@pytest.fixture
def make_profile(db_session):
    def _make_profile(email, name='Existing User', phone=None, role=StaffRole.DOCTOR, created_at=None):
        profile = User(
            auth_id=str(uuid.uuid4()),
            name=name,
            email=email,
            phone=phone,
            role=role.value,
            permissions=default_permissions_for(role)
        )
        if created_at is not None:
            profile.created_at = created_at
        db_session.add(profile)
        db_session.commit()
        return profile

    return _make_profile


@pytest.fixture
def make_doctor(db_session, make_profile):
    def _make_doctor(sort_order, email=None, deleted=False, specialization='Cardiology',
                     license_number=None, profile=None):
        profile = profile or make_profile(email or f'seed{sort_order}@x.test', name=f'Seed {sort_order}')
        doctor = Doctor(
            doctor_code=f'DRSEED{sort_order:04d}',
            user_id=profile.user_id,
            license_number=license_number,
            specialization=specialization,
            consultation_fee=500,
            sort_order=sort_order,
            availability_hours={}
        )
        if deleted:
            doctor.soft_delete()
        db_session.add(doctor)
        db_session.commit()
        return doctor

    return _make_doctor


@pytest.fixture
def doctor_input():
    def _doctor_input(**overrides):
        values = {
            'name': 'Priya Raman',
            'specialization': 'Cardiology',
            'consultation_fee': 800.0,
            'phone': '9000000001',
            'address': '12 MG Road, Chennai',
            'license_number': 'TNMC-1001',
            'department': 'Cardiology',
            'qualification': 'MBBS, MD',
            'years_of_experience': 8,
            'room_number': 'C-101',
            'working_days': [1, 2, 3, 4, 5],
            'sessions': {'morning': {'start_time': '09:00', 'end_time': '12:00', 'max_patients': 20}},
            'available_sessions': ['morning']
        }
        values.update(overrides)
        return CreateDoctorInput(**values)

    return _doctor_input

