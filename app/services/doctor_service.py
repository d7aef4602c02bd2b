from typing import Any, Dict, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from app.dto.doctor import (
    CreateDoctorInput, DoctorDto, DoctorListDto,
    LoginAddressCheckDto, MessageResponseDto
)
from app.models.doctor import Doctor
from app.models.user import User
from app.services.doctor_onboarding_saga import DoctorOnboardingSaga
from app.services.identity_service import IdentityResolver, allocate_unique_login_address
from app.services.sequence_service import SequenceAllocator
from common.decorator.db_decorators import transactional, transactional_readonly
from common.enum.error_code import APIError
from common.enum.staff_role import DoctorStatus
from common.exception.exceptions import BusinessError
from common.extensions import db
from common.utils.db_error_utils import classify_integrity_error
from common.utils.logging_utils import get_logger

logger = get_logger('doctor_service')

PROFILE_FIELDS = ('name', 'email', 'phone', 'address')
DOCTOR_FIELDS = (
    'license_number', 'specialization', 'department', 'qualification',
    'years_of_experience', 'consultation_fee', 'room_number'
)
AVAILABILITY_FIELDS = (
    'sessions', 'available_sessions', 'working_days', 'emergency_available',
    'floor_number', 'working_hours_start', 'working_hours_end', 'department'
)


def _get_doctor_or_raise(doctor_id: str) -> Doctor:
    doctor = db.session.query(Doctor).filter_by(doctor_id=doctor_id).first()
    if not doctor:
        raise BusinessError(APIError.DOCTOR_NOT_FOUND)
    return doctor


class DoctorService:

    @staticmethod
    def onboard(data: CreateDoctorInput, identity_provider=None) -> DoctorDto:
        saga = DoctorOnboardingSaga(data, resolver=IdentityResolver(identity_provider))
        return saga.run()

    @staticmethod
    @transactional_readonly
    def list_doctors(page: int = 1, size: int = 20, specialization: Optional[str] = None,
                     keyword: Optional[str] = None, include_deleted: bool = False) -> DoctorListDto:
        query = db.session.query(Doctor, User).join(User, Doctor.user_id == User.user_id)

        if not include_deleted:
            query = query.filter(Doctor.deleted_at.is_(None))

        if specialization:
            query = query.filter(Doctor.specialization == specialization)

        if keyword:
            like = f'%{keyword}%'
            query = query.filter(
                or_(
                    User.name.ilike(like),
                    User.email.ilike(like),
                    Doctor.license_number.ilike(like),
                    Doctor.doctor_code.ilike(like),
                    Doctor.specialization.ilike(like)
                )
            )

        total = query.count()
        offset = (page - 1) * size
        results = query.order_by(Doctor.sort_order).offset(offset).limit(size).all()

        return DoctorListDto(
            doctors=[DoctorDto.from_model(doctor, user) for doctor, user in results],
            total=total,
            page=page,
            size=size,
            has_next=(offset + size < total)
        )

    @staticmethod
    @transactional_readonly
    def get_doctor(doctor_id: str) -> DoctorDto:
        return DoctorDto.from_model(_get_doctor_or_raise(doctor_id))

    @staticmethod
    @transactional
    def update_doctor(doctor_id: str, changes: Dict[str, Any]) -> DoctorDto:
        doctor = _get_doctor_or_raise(doctor_id)
        profile = doctor.user

        for key in PROFILE_FIELDS:
            if changes.get(key) is not None:
                setattr(profile, key, changes[key])

        for key in DOCTOR_FIELDS:
            if changes.get(key) is not None:
                setattr(doctor, key, changes[key])

        availability_changes = {key: changes[key] for key in AVAILABILITY_FIELDS if key in changes}
        if availability_changes:
            doctor.availability_hours = {**(doctor.availability_hours or {}), **availability_changes}

        try:
            db.session.flush()
        except IntegrityError as e:
            store_error = classify_integrity_error(e)
            if store_error.is_unique_violation_on('email'):
                raise BusinessError(APIError.PROFILE_DUPLICATE_EMAIL,
                                    f"A user with email {changes.get('email')} already exists in the system.") from e
            if store_error.is_unique_violation_on('phone'):
                raise BusinessError(APIError.PROFILE_DUPLICATE_PHONE,
                                    f"A user with phone number {changes.get('phone')} already exists in the system.") from e
            if store_error.is_unique_violation_on('license_number'):
                raise BusinessError(APIError.DOCTOR_DUPLICATE_LICENSE,
                                    f"A doctor with license number {changes.get('license_number')} already exists.") from e
            raise

        logger.info(f"Doctor updated: {doctor_id} ({', '.join(sorted(changes))})")
        return DoctorDto.from_model(doctor, profile)

    @staticmethod
    @transactional
    def set_doctor_status(doctor_id: str, status: str) -> DoctorDto:
        doctor = _get_doctor_or_raise(doctor_id)

        if doctor.is_deleted:
            raise BusinessError(APIError.INVALID_INPUT_VALUE, "A deleted doctor cannot change status. Restore it first.")

        doctor.status = DoctorStatus(status).value
        db.session.flush()

        return DoctorDto.from_model(doctor)

    @staticmethod
    @transactional
    def soft_delete_doctor(doctor_id: str) -> Dict:
        doctor = _get_doctor_or_raise(doctor_id)

        if doctor.is_deleted:
            raise BusinessError(APIError.INVALID_INPUT_VALUE, "The doctor is already deleted.")

        doctor.soft_delete()
        db.session.flush()
        logger.info(f"Doctor soft-deleted: {doctor_id}")

        return MessageResponseDto(message='The doctor has been deleted.').to_dict()

    @staticmethod
    @transactional
    def restore_doctor(doctor_id: str) -> DoctorDto:
        doctor = _get_doctor_or_raise(doctor_id)

        if not doctor.is_deleted:
            raise BusinessError(APIError.INVALID_INPUT_VALUE, "The doctor is not deleted.")

        position_taken = db.session.query(Doctor.doctor_id).filter(
            Doctor.deleted_at.is_(None),
            Doctor.sort_order == doctor.sort_order
        ).first() is not None

        if position_taken:
            previous = doctor.sort_order
            doctor.sort_order = SequenceAllocator().next_position()
            logger.info(f"Position {previous} taken, restoring {doctor_id} at {doctor.sort_order}")

        doctor.restore()

        try:
            db.session.flush()
        except IntegrityError as e:
            raise BusinessError(
                APIError.SEQUENCE_POSITION_CONFLICT,
                "The doctor order changed while restoring. Please try again."
            ) from e

        logger.info(f"Doctor restored: {doctor_id}")

        return DoctorDto.from_model(doctor)

    @staticmethod
    @transactional
    def move_doctor(doctor_id: str, direction: str) -> DoctorDto:
        doctor = _get_doctor_or_raise(doctor_id)

        if doctor.is_deleted:
            raise BusinessError(APIError.INVALID_INPUT_VALUE, "A deleted doctor cannot be reordered.")

        query = db.session.query(Doctor).filter(Doctor.deleted_at.is_(None))
        if direction == 'up':
            neighbour = query.filter(Doctor.sort_order < doctor.sort_order).order_by(Doctor.sort_order.desc()).first()
        elif direction == 'down':
            neighbour = query.filter(Doctor.sort_order > doctor.sort_order).order_by(Doctor.sort_order.asc()).first()
        else:
            raise BusinessError(APIError.INVALID_INPUT_VALUE, f"Unknown direction: {direction}")

        if neighbour is None:
            return DoctorDto.from_model(doctor)

        current, target = doctor.sort_order, neighbour.sort_order

        try:
            # park on a negative slot so the unique constraint never sees a duplicate
            doctor.sort_order = -current
            db.session.flush()
            neighbour.sort_order = current
            db.session.flush()
            doctor.sort_order = target
            db.session.flush()
        except IntegrityError as e:
            raise BusinessError(
                APIError.SEQUENCE_POSITION_CONFLICT,
                "The doctor order changed while moving. Please try again."
            ) from e

        logger.info(f"Doctor {doctor_id} moved {direction}: {current} -> {target}")
        return DoctorDto.from_model(doctor)

    @staticmethod
    @transactional_readonly
    def get_specializations() -> list:
        rows = db.session.query(Doctor.specialization).filter(
            Doctor.deleted_at.is_(None)
        ).distinct().all()
        return sorted(row.specialization for row in rows if row.specialization)

    @staticmethod
    @transactional_readonly
    def check_login_address(email: Optional[str] = None, name: Optional[str] = None) -> LoginAddressCheckDto:
        if email:
            email = email.strip()
            taken = db.session.query(User).filter(User.email == email).first() is not None
            return LoginAddressCheckDto(
                email=email,
                is_duplicate=taken,
                message="This email is already registered." if taken else "This email is available."
            )

        if not name:
            raise BusinessError(APIError.INVALID_INPUT_VALUE, "Either email or name is required.")

        suggested = allocate_unique_login_address(name)
        return LoginAddressCheckDto(
            email=suggested,
            is_duplicate=False,
            message="Suggested login email."
        )
