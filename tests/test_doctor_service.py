import pytest

from app.models.doctor import Doctor
from app.services.doctor_service import DoctorService
from common.enum.error_code import APIError
from common.exception.exceptions import BusinessError


def _order(db_session):
    return [
        (doctor.doctor_code, doctor.sort_order)
        for doctor in db_session.query(Doctor).order_by(Doctor.sort_order)
    ]


class TestOnboard:

    def test_uses_given_identity_provider(self, db_session, doctor_input, identity_provider):
        doctor = DoctorService.onboard(doctor_input(), identity_provider=identity_provider)

        assert identity_provider.created
        assert doctor.user['name'] == 'Priya Raman'
        assert DoctorService.get_doctor(doctor.doctor_id).doctor_code == doctor.doctor_code


class TestListing:

    def test_list_filters_and_pagination(self, make_doctor):
        make_doctor(1, specialization='Cardiology')
        make_doctor(2, specialization='Neurology')
        make_doctor(3, specialization='Cardiology', deleted=True)
        make_doctor(4, specialization='Cardiology')

        result = DoctorService.list_doctors(page=1, size=1, specialization='Cardiology')
        assert result.total == 2
        assert result.has_next
        assert [d.sort_order for d in result.doctors] == [1]

        with_deleted = DoctorService.list_doctors(include_deleted=True)
        assert [d.sort_order for d in with_deleted.doctors] == [1, 2, 3, 4]

    def test_keyword_search(self, make_doctor):
        make_doctor(1, email='meera@x.test')
        make_doctor(2, email='rahul@x.test', license_number='KMC-77')

        assert [d.sort_order for d in DoctorService.list_doctors(keyword='MEERA').doctors] == [1]
        assert [d.sort_order for d in DoctorService.list_doctors(keyword='kmc-77').doctors] == [2]

    def test_get_missing_doctor(self, db_session):
        with pytest.raises(BusinessError) as exc_info:
            DoctorService.get_doctor('missing')

        assert exc_info.value.error_enum == APIError.DOCTOR_NOT_FOUND

    def test_specializations(self, make_doctor):
        make_doctor(1, specialization='Neurology')
        make_doctor(2, specialization='Cardiology')
        make_doctor(3, specialization='Cardiology')
        make_doctor(4, specialization='Oncology', deleted=True)

        assert DoctorService.get_specializations() == ['Cardiology', 'Neurology']


class TestUpdate:

    def test_updates_profile_doctor_and_availability(self, db_session, make_doctor):
        doctor = make_doctor(1)

        updated = DoctorService.update_doctor(doctor.doctor_id, {
            'name': 'Dr. Seed',
            'consultation_fee': 1200,
            'working_days': [1, 3, 5],
            'emergency_available': True
        })

        assert updated.user['name'] == 'Dr. Seed'
        assert updated.consultation_fee == 1200.0
        assert updated.availability_hours == {'working_days': [1, 3, 5], 'emergency_available': True}

    def test_duplicate_license(self, db_session, make_doctor):
        make_doctor(1, license_number='KMC-1')
        doctor = make_doctor(2, license_number='KMC-2')

        with pytest.raises(BusinessError) as exc_info:
            DoctorService.update_doctor(doctor.doctor_id, {'license_number': 'KMC-1'})

        assert exc_info.value.error_enum == APIError.DOCTOR_DUPLICATE_LICENSE
        assert db_session.get(Doctor, doctor.doctor_id).license_number == 'KMC-2'

    def test_duplicate_email(self, db_session, make_doctor):
        make_doctor(1, email='taken@x.test')
        doctor = make_doctor(2)

        with pytest.raises(BusinessError) as exc_info:
            DoctorService.update_doctor(doctor.doctor_id, {'email': 'taken@x.test'})

        assert exc_info.value.error_enum == APIError.PROFILE_DUPLICATE_EMAIL


class TestLifecycle:

    def test_status_change(self, make_doctor):
        doctor = make_doctor(1)

        assert DoctorService.set_doctor_status(doctor.doctor_id, 'inactive').status == 'inactive'

    def test_soft_delete_and_restore(self, db_session, make_doctor):
        doctor = make_doctor(1)

        assert DoctorService.soft_delete_doctor(doctor.doctor_id) == {'message': 'The doctor has been deleted.'}
        deleted = db_session.get(Doctor, doctor.doctor_id)
        assert deleted.is_deleted
        assert deleted.status == 'inactive'

        with pytest.raises(BusinessError):
            DoctorService.soft_delete_doctor(doctor.doctor_id)
        with pytest.raises(BusinessError):
            DoctorService.set_doctor_status(doctor.doctor_id, 'active')

        restored = DoctorService.restore_doctor(doctor.doctor_id)
        assert not restored.is_deleted
        assert restored.status == 'active'

        with pytest.raises(BusinessError) as exc_info:
            DoctorService.restore_doctor(doctor.doctor_id)
        assert exc_info.value.error_enum == APIError.INVALID_INPUT_VALUE

    def test_restore_keeps_a_free_position(self, make_doctor):
        make_doctor(1)
        second = make_doctor(2, deleted=True)

        assert DoctorService.restore_doctor(second.doctor_id).sort_order == 2

    def test_restore_moves_to_the_end_when_position_was_reused(self, db_session, make_doctor,
                                                              doctor_input, identity_provider):
        make_doctor(1)
        second = make_doctor(2)
        DoctorService.soft_delete_doctor(second.doctor_id)
        replacement = DoctorService.onboard(doctor_input(), identity_provider)
        assert replacement.sort_order == 2

        restored = DoctorService.restore_doctor(second.doctor_id)

        assert restored.sort_order == 3
        assert not restored.is_deleted
        assert _order(db_session) == [('DRSEED0001', 1), (replacement.doctor_code, 2), ('DRSEED0002', 3)]


class TestMove:

    def test_move_up_swaps_with_live_neighbour(self, db_session, make_doctor):
        make_doctor(1)
        make_doctor(2, deleted=True)
        third = make_doctor(3)

        moved = DoctorService.move_doctor(third.doctor_id, 'up')

        assert moved.sort_order == 1
        assert _order(db_session) == [('DRSEED0003', 1), ('DRSEED0002', 2), ('DRSEED0001', 3)]

    def test_move_down(self, db_session, make_doctor):
        first = make_doctor(1)
        make_doctor(2)

        assert DoctorService.move_doctor(first.doctor_id, 'down').sort_order == 2
        assert _order(db_session) == [('DRSEED0002', 1), ('DRSEED0001', 2)]

    def test_no_neighbour_is_a_no_op(self, db_session, make_doctor):
        first = make_doctor(1)

        assert DoctorService.move_doctor(first.doctor_id, 'up').sort_order == 1


class TestLoginAddressCheck:

    def test_taken_email(self, make_profile):
        make_profile('anil@x.test')

        result = DoctorService.check_login_address(email=' anil@x.test ')
        assert result.is_duplicate
        assert result.email == 'anil@x.test'

    def test_free_email(self, db_session):
        assert not DoctorService.check_login_address(email='free@x.test').is_duplicate

    def test_suggestion_from_name(self, make_profile):
        make_profile('anil0001@x.test')

        result = DoctorService.check_login_address(name='Anil Kumar')
        assert result.email == 'anil0002@x.test'
        assert not result.is_duplicate

    def test_requires_email_or_name(self, db_session):
        with pytest.raises(BusinessError):
            DoctorService.check_login_address()
