"""
Doctor onboarding saga

generating_identifiers -> resolving_identity -> allocating_sequence
-> inserting_domain_record -> done

Identity, profile and doctor live in stores with no shared transaction.
Each step commits on its own; a failure after resolving_identity removes
the profile and identity again, but only when this run created them.
"""

from typing import Any, Dict, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.dto.doctor import CreateDoctorInput, DoctorDto, ResolvedIdentity
from app.models.doctor import Doctor, POSITION_UNIQUE_COLUMN
from app.models.user import User
from app.services.identity_service import IdentityResolver, allocate_unique_login_address
from app.services.sequence_service import SequenceAllocator
from common.enum.error_code import APIError
from common.enum.staff_role import DoctorStatus
from common.exception.exceptions import BusinessError
from common.extensions import db
from common.saga import SagaOrchestrator
from common.utils.db_error_utils import StoreError, classify_integrity_error
from common.utils.identifier_utils import new_business_identifier
from common.utils.logging_utils import get_logger

logger = get_logger('doctor_onboarding_saga')

GENERATING_IDENTIFIERS = 'generating_identifiers'
RESOLVING_IDENTITY = 'resolving_identity'
ALLOCATING_SEQUENCE = 'allocating_sequence'
INSERTING_DOMAIN_RECORD = 'inserting_domain_record'

DOCTOR_CODE_PREFIX = 'DR'
EMPLOYEE_CODE_PREFIX = 'EMP'


class DoctorOnboardingSaga:

    def __init__(self, data: CreateDoctorInput,
                 resolver: Optional[IdentityResolver] = None,
                 allocator: Optional[SequenceAllocator] = None):
        self.data = data
        self.resolver = resolver or IdentityResolver()
        self.allocator = allocator or SequenceAllocator(Doctor, 'sort_order')
        self.retry_limit = current_app.config.get('SEQUENCE_RETRY_LIMIT', 3)
        self.initial_secret = current_app.config.get('DEFAULT_DOCTOR_PASSWORD', 'Doctor@123')

        self.orchestrator = SagaOrchestrator(
            saga_type='doctor_onboarding',
            metadata={'name': data.name, 'requested_email': data.email}
        )
        self.orchestrator.add_step(
            name=GENERATING_IDENTIFIERS,
            execute=self._generate_identifiers
        ).add_step(
            name=RESOLVING_IDENTITY,
            execute=self._resolve_identity,
            compensate=self._release_identity,
            extract_compensation_data=lambda resolved: resolved.to_compensation_data()
        ).add_step(
            name=ALLOCATING_SEQUENCE,
            execute=self._allocate_sequence
        ).add_step(
            name=INSERTING_DOMAIN_RECORD,
            execute=self._insert_doctor
        )

    @property
    def transaction_id(self) -> str:
        return self.orchestrator.transaction_id

    def run(self) -> DoctorDto:
        success, outcome = self.orchestrator.execute()

        if not success:
            raise outcome

        doctor = db.session.get(Doctor, outcome.get_result(INSERTING_DOMAIN_RECORD))
        profile = db.session.query(User).filter_by(user_id=doctor.user_id).first()

        return DoctorDto.from_model(doctor, profile, transaction_id=self.transaction_id)

    # ---- steps -------------------------------------------------------

    def _generate_identifiers(self, context) -> Dict[str, str]:
        supplied = (self.data.email or '').strip()
        login_address = supplied if supplied else allocate_unique_login_address(self.data.name)

        return {
            'doctor_code': new_business_identifier(DOCTOR_CODE_PREFIX),
            'employee_id': new_business_identifier(EMPLOYEE_CODE_PREFIX),
            'login_address': login_address
        }

    def _resolve_identity(self, context) -> ResolvedIdentity:
        identifiers = context.get_result(GENERATING_IDENTIFIERS)

        return self.resolver.resolve(
            identifiers['login_address'],
            {
                'name': self.data.name,
                'phone': self.data.phone,
                'address': self.data.address
            },
            initial_secret=self.initial_secret,
            employee_id=identifiers['employee_id']
        )

    def _release_identity(self, compensation_data: Dict[str, Any]):
        self.resolver.release(ResolvedIdentity(
            identity_id=compensation_data['identity_id'],
            profile_id=compensation_data['profile_id'],
            was_preexisting=not compensation_data['created_by_this_run']
        ))

    def _allocate_sequence(self, context) -> int:
        return self.allocator.next_position()

    def _build_doctor(self, profile_id: str, doctor_code: str, sort_order: int) -> Doctor:
        return Doctor(
            doctor_code=doctor_code,
            user_id=profile_id,
            license_number=self.data.license_number or None,
            specialization=self.data.specialization,
            department=self.data.department,
            qualification=self.data.qualification or None,
            years_of_experience=self.data.years_of_experience or 0,
            consultation_fee=self.data.consultation_fee,
            room_number=self.data.room_number or None,
            sort_order=sort_order,
            availability_hours=self.data.availability_hours(),
            status=DoctorStatus.ACTIVE.value
        )

    def _insert_doctor(self, context) -> str:
        identifiers = context.get_result(GENERATING_IDENTIFIERS)
        resolved: ResolvedIdentity = context.get_result(RESOLVING_IDENTITY)
        sort_order = context.get_result(ALLOCATING_SEQUENCE)

        for attempt in range(1, self.retry_limit + 1):
            doctor = self._build_doctor(resolved.profile_id, identifiers['doctor_code'], sort_order)

            try:
                db.session.add(doctor)
                db.session.commit()
            except IntegrityError as e:
                db.session.rollback()
                store_error = classify_integrity_error(e)

                if store_error.is_unique_violation_on(POSITION_UNIQUE_COLUMN):
                    logger.warning(
                        f"sort_order {sort_order} taken (attempt {attempt}/{self.retry_limit}), retrying with {sort_order + 1}"
                    )
                    sort_order += 1
                    continue

                raise self._classify_insert_error(store_error) from e
            except SQLAlchemyError as e:
                db.session.rollback()
                raise BusinessError(
                    APIError.DOCTOR_INSERT_FAILED,
                    f"Failed to create doctor record: {e}"
                ) from e

            logger.info(f"Doctor created: {doctor.doctor_id} ({doctor.doctor_code}) at sort_order {sort_order}")
            return doctor.doctor_id

        raise BusinessError(APIError.SEQUENCE_POSITION_CONFLICT)

    def _classify_insert_error(self, store_error: StoreError) -> BusinessError:
        if store_error.is_unique_violation_on('license_number'):
            return BusinessError(
                APIError.DOCTOR_DUPLICATE_LICENSE,
                f"A doctor with license number {self.data.license_number} already exists. "
                f"Please verify the license number."
            )

        if store_error.is_foreign_key_violation:
            return BusinessError(APIError.DOCTOR_INVALID_REFERENCE)

        return BusinessError(
            APIError.DOCTOR_INSERT_FAILED,
            f"Failed to create doctor record: {store_error.message}"
        )
