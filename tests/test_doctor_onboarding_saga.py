import pytest

from app.models.doctor import Doctor
from app.models.saga_transaction_log import SagaStatus, SagaTransactionLogRepository
from app.models.user import User
from app.services.doctor_onboarding_saga import (
    ALLOCATING_SEQUENCE,
    DoctorOnboardingSaga,
    GENERATING_IDENTIFIERS,
    INSERTING_DOMAIN_RECORD,
    RESOLVING_IDENTITY
)
from app.services.doctor_service import DoctorService
from app.services.identity_service import IdentityResolver
from app.services.sequence_service import SequenceAllocator
from common.enum.error_code import APIError
from common.enum.staff_role import StaffRole
from common.exception.exceptions import BusinessError


@pytest.fixture
def run_saga(db_session, identity_provider):
    def _run_saga(data, resolver=None, allocator=None):
        saga = DoctorOnboardingSaga(data, resolver=resolver or IdentityResolver(identity_provider), allocator=allocator)
        return saga, saga.run()

    return _run_saga


def _saga_log(saga):
    return SagaTransactionLogRepository().find_by_transaction_id(saga.transaction_id)


class TestHappyPath:

    def test_new_doctor_with_generated_address(self, db_session, run_saga, doctor_input, identity_provider):
        saga, doctor = run_saga(doctor_input(email=None))

        assert doctor.user['email'] == 'priya0001@x.test'
        assert doctor.doctor_code.startswith('DR')
        assert doctor.sort_order == 1
        assert doctor.transaction_id == saga.transaction_id
        assert doctor.availability_hours['available_sessions'] == ['morning']
        assert identity_provider.created and not identity_provider.deleted

        profile = db_session.get(User, doctor.user_id)
        assert profile.employee_id.startswith('EMP')
        assert profile.phone == '9000000001'

        assert saga.orchestrator.context.state == 'done'
        saga_log = _saga_log(saga)
        assert saga_log.status == SagaStatus.COMPLETED.value
        assert [step['name'] for step in saga_log.steps] == [
            GENERATING_IDENTIFIERS, RESOLVING_IDENTITY, ALLOCATING_SEQUENCE, INSERTING_DOMAIN_RECORD
        ]
        assert saga_log.steps[1]['compensation_data']['created_by_this_run'] is True

    def test_supplied_address_is_trimmed(self, run_saga, doctor_input):
        _, doctor = run_saga(doctor_input(email='  priya.raman@annam.com '))

        assert doctor.user['email'] == 'priya.raman@annam.com'

    def test_generated_address_skips_taken_suffixes(self, run_saga, doctor_input, make_profile):
        make_profile('priya0001@x.test', role=StaffRole.NURSE)

        _, doctor = run_saga(doctor_input(email=None))

        assert doctor.user['email'] == 'priya0002@x.test'

    def test_reuses_existing_profile_without_new_identity(self, db_session, run_saga, doctor_input,
                                                           make_profile, identity_provider):
        existing = make_profile('priya@annam.com', name='Priya Raman')

        _, doctor = run_saga(doctor_input(email='priya@annam.com'))

        assert doctor.user_id == existing.user_id
        assert identity_provider.created == []
        assert db_session.query(User).count() == 1

    def test_sequence_continues_after_existing_doctors(self, run_saga, doctor_input, make_doctor):
        make_doctor(1)
        make_doctor(2)

        _, doctor = run_saga(doctor_input())

        assert doctor.sort_order == 3


class TestSequenceRetry:

    def test_soft_deleted_positions_are_reused(self, db_session, run_saga, doctor_input, make_doctor):
        make_doctor(1)
        make_doctor(2, deleted=True)
        make_doctor(3, deleted=True)
        make_doctor(4, deleted=True)

        saga, doctor = run_saga(doctor_input())

        assert doctor.sort_order == 2
        assert _saga_log(saga).status == SagaStatus.COMPLETED.value

    def test_onboarding_after_deleting_the_latest_doctors(self, db_session, identity_provider, doctor_input):
        onboarded = [
            DoctorService.onboard(
                doctor_input(name=f'Doctor {n}', phone=f'90000001{n:02d}', license_number=f'L-{n}'),
                identity_provider
            )
            for n in range(1, 5)
        ]
        for doctor in onboarded[1:]:
            DoctorService.soft_delete_doctor(doctor.doctor_id)

        fifth = DoctorService.onboard(doctor_input(name='Doctor 5', phone='9000000105', license_number='L-5'),
                                      identity_provider)

        assert fifth.sort_order == 2
        assert db_session.query(Doctor).count() == 5

    def test_retries_past_taken_positions(self, db_session, run_saga, doctor_input, make_doctor, monkeypatch):
        make_doctor(1)
        make_doctor(2)
        monkeypatch.setattr(SequenceAllocator, 'next_position', lambda self: 1)

        saga, doctor = run_saga(doctor_input())

        assert doctor.sort_order == 3
        assert _saga_log(saga).status == SagaStatus.COMPLETED.value

    def test_exhausted_retries_compensate(self, db_session, run_saga, doctor_input, make_doctor,
                                          identity_provider, monkeypatch):
        make_doctor(1)
        make_doctor(2)
        make_doctor(3)
        monkeypatch.setattr(SequenceAllocator, 'next_position', lambda self: 1)

        with pytest.raises(BusinessError) as exc_info:
            run_saga(doctor_input())

        assert exc_info.value.error_enum == APIError.SEQUENCE_POSITION_CONFLICT
        assert db_session.query(Doctor).count() == 3
        assert db_session.query(User).filter(User.email == 'priya0001@x.test').count() == 0
        assert identity_provider.deleted == identity_provider.created

    def test_two_runs_proposing_the_same_position(self, db_session, run_saga, doctor_input, monkeypatch):
        monkeypatch.setattr(SequenceAllocator, 'next_position', lambda self: 5)

        _, first = run_saga(doctor_input(email='a@annam.com', phone='9000000011', license_number='L-1'))
        _, second = run_saga(doctor_input(email='b@annam.com', phone='9000000012', license_number='L-2'))

        assert first.sort_order == 5
        assert second.sort_order == 6


class TestCompensation:

    def test_duplicate_license_removes_new_pair(self, db_session, run_saga, doctor_input,
                                                make_doctor, identity_provider):
        make_doctor(1, license_number='TNMC-1001')

        with pytest.raises(BusinessError) as exc_info:
            run_saga(doctor_input(email='new@annam.com'))

        assert exc_info.value.error_enum == APIError.DOCTOR_DUPLICATE_LICENSE
        assert 'TNMC-1001' in exc_info.value.message
        assert db_session.query(User).filter(User.email == 'new@annam.com').count() == 0
        assert len(identity_provider.created) == 1
        assert identity_provider.deleted == identity_provider.created

    def test_failure_keeps_preexisting_pair(self, db_session, run_saga, doctor_input,
                                            make_doctor, make_profile, identity_provider):
        make_doctor(1, license_number='TNMC-1001')
        existing = make_profile('priya@annam.com')

        with pytest.raises(BusinessError):
            run_saga(doctor_input(email='priya@annam.com'))

        assert db_session.get(User, existing.user_id) is not None
        assert identity_provider.deleted == []

    def test_missing_profile_reference(self, db_session, run_saga, doctor_input, identity_provider):
        class VanishingProfileResolver(IdentityResolver):
            def resolve(self, *args, **kwargs):
                resolved = super().resolve(*args, **kwargs)
                # profile removed behind our back before the doctor insert
                db_session.query(User).filter(User.user_id == resolved.profile_id).delete()
                db_session.commit()
                return resolved

        with pytest.raises(BusinessError) as exc_info:
            run_saga(doctor_input(), resolver=VanishingProfileResolver(identity_provider))

        assert exc_info.value.error_enum == APIError.DOCTOR_INVALID_REFERENCE
        assert identity_provider.deleted == identity_provider.created

    def test_other_insert_failure(self, db_session, run_saga, doctor_input, identity_provider):
        with pytest.raises(BusinessError) as exc_info:
            run_saga(doctor_input(specialization=None))

        assert exc_info.value.error_enum == APIError.DOCTOR_INSERT_FAILED
        assert db_session.query(User).count() == 0
        assert identity_provider.deleted == identity_provider.created

    def test_saga_log_records_compensation(self, db_session, doctor_input, make_doctor, identity_provider):
        make_doctor(1, license_number='TNMC-1001')
        saga = DoctorOnboardingSaga(doctor_input(), resolver=IdentityResolver(identity_provider))

        with pytest.raises(BusinessError):
            saga.run()

        saga_log = _saga_log(saga)
        assert saga_log.status == SagaStatus.COMPENSATED.value
        assert saga_log.steps[1]['status'] == 'compensated'
        assert saga_log.steps[3]['status'] == 'failed'
        assert saga.orchestrator.context.state == 'rolling_back'

    def test_compensation_failure_is_reported(self, db_session, run_saga, doctor_input,
                                              make_doctor, identity_provider):
        make_doctor(1, license_number='TNMC-1001')
        identity_provider.fail_delete_with = 'provider down'

        with pytest.raises(BusinessError) as exc_info:
            run_saga(doctor_input())

        assert exc_info.value.error_enum == APIError.SAGA_COMPENSATION_FAILED


class TestEarlyFailures:

    def test_duplicate_doctor_creates_nothing(self, db_session, run_saga, doctor_input,
                                              make_doctor, identity_provider):
        make_doctor(1, email='priya@annam.com')

        with pytest.raises(BusinessError) as exc_info:
            run_saga(doctor_input(email='priya@annam.com'))

        assert exc_info.value.error_enum == APIError.DOCTOR_DUPLICATE_ENTITY
        assert identity_provider.created == []
        assert db_session.query(Doctor).count() == 1

    def test_second_run_on_the_same_address_creates_nothing(self, db_session, run_saga, doctor_input,
                                                            identity_provider):
        run_saga(doctor_input(email='priya@annam.com'))
        counts = (db_session.query(User).count(), db_session.query(Doctor).count(), len(identity_provider.created))

        with pytest.raises(BusinessError) as exc_info:
            run_saga(doctor_input(email='priya@annam.com', phone='9000000002', license_number='TNMC-2002'))

        assert exc_info.value.error_enum == APIError.DOCTOR_DUPLICATE_ENTITY
        assert counts == (1, 1, 1)
        assert (db_session.query(User).count(), db_session.query(Doctor).count(),
                len(identity_provider.created)) == counts
        assert identity_provider.deleted == []

    def test_identity_failure_creates_nothing(self, db_session, run_saga, doctor_input, identity_provider):
        identity_provider.fail_create_with = 'email rate limit exceeded'

        with pytest.raises(BusinessError) as exc_info:
            run_saga(doctor_input())

        assert exc_info.value.error_enum == APIError.IDENTITY_CREATION_FAILED
        assert db_session.query(User).count() == 0
        assert db_session.query(Doctor).count() == 0
