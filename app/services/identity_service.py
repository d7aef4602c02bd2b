from typing import Any, Dict, List, Optional

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

import common.extensions as extensions
from app.dto.doctor import ResolvedIdentity
from app.models.doctor import Doctor
from app.models.user import User
from common.enum.error_code import APIError
from common.enum.staff_role import StaffRole, ProfileStatus, default_permissions_for
from common.exception.exceptions import BusinessError, IdentityProviderError
from common.extensions import db
from common.identity.base import IdentityProvider
from common.utils.db_error_utils import classify_integrity_error
from common.utils.identifier_utils import LIKE_ESCAPE, derive_login_base, escape_like, next_login_address
from common.utils.logging_utils import get_logger

logger = get_logger('identity_service')


def find_addresses_like(base: str, domain: str, limit: int) -> List[str]:
    """
    Profile emails whose local part starts with ``base`` under ``domain`` (case-insensitive).

    Longest first, so the highest numeric suffixes survive the ``limit``.
    """
    pattern = f'{escape_like(base.lower())}%@{escape_like(domain.lower())}'

    try:
        rows = db.session.query(User.email).filter(
            func.lower(User.email).like(pattern, escape=LIKE_ESCAPE)
        ).order_by(
            func.length(User.email).desc(),
            func.lower(User.email).desc()
        ).limit(limit).all()
    except SQLAlchemyError as e:
        # NOTE: the profile unique constraint still rejects a colliding address
        db.session.rollback()
        logger.error(f"Error checking existing emails for {base}@{domain}: {e}")
        return []

    return [row.email for row in rows]


def allocate_unique_login_address(display_name: str, domain: Optional[str] = None) -> str:
    domain = domain or current_app.config['LOGIN_EMAIL_DOMAIN']
    limit = current_app.config.get('LOGIN_ADDRESS_SCAN_LIMIT', 200)

    base = derive_login_base(display_name)
    existing = find_addresses_like(base, domain, limit)

    return next_login_address(base, domain, existing)


class IdentityResolver:
    """
    Finds the login identity + profile pair for an address, or provisions a new one.

    A pre-existing pair is reused as-is (no writes); a new pair is created
    identity first, profile second, and the identity is removed again when the
    profile insert fails.
    """

    def __init__(self, identity_provider: Optional[IdentityProvider] = None,
                 role: StaffRole = StaffRole.DOCTOR, domain_model=Doctor):
        self.identity_provider = identity_provider or extensions.identity_provider
        self.role = role
        self.domain_model = domain_model

    def find_profile(self, login_address: str) -> Optional[User]:
        return db.session.query(User).filter(User.email == login_address).first()

    def _referencing_record(self, profile: User):
        return db.session.query(self.domain_model).filter(
            self.domain_model.user_id == profile.user_id
        ).first()

    def resolve(self, login_address: str, attributes: Dict[str, Any], initial_secret: str,
                employee_id: Optional[str] = None) -> ResolvedIdentity:
        profile = self.find_profile(login_address)

        if profile is not None:
            existing = self._referencing_record(profile)
            if existing is not None:
                hint = " (soft-deleted, restore it instead)" if getattr(existing, 'deleted_at', None) else ""
                raise BusinessError(
                    APIError.DOCTOR_DUPLICATE_ENTITY,
                    f"A {self.role.value} with email {login_address} already exists in the system{hint}. "
                    f"Please use a different email address."
                )

            logger.info(f"Profile already exists for {login_address}, reusing {profile.user_id}")
            return ResolvedIdentity(
                identity_id=profile.auth_id,
                profile_id=profile.user_id,
                was_preexisting=True
            )

        try:
            handle = self.identity_provider.create_identity(
                login_address,
                initial_secret,
                confirmed=True,
                metadata={'role': self.role.value, 'name': attributes.get('name')}
            )
        except IdentityProviderError as e:
            logger.error(f"Error creating {self.role.value} auth user: {e}")
            raise BusinessError(
                APIError.IDENTITY_CREATION_FAILED,
                f"Failed to create {self.role.value} authentication: {e.message}"
            ) from e

        new_profile = User(
            auth_id=handle.identity_id,
            employee_id=employee_id,
            name=attributes.get('name'),
            email=login_address,
            phone=attributes.get('phone') or None,
            address=attributes.get('address') or None,
            role=self.role.value,
            status=ProfileStatus.ACTIVE.value,
            permissions=default_permissions_for(self.role)
        )

        try:
            db.session.add(new_profile)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Error creating user record: {e}")
            profile_error = self._classify_profile_error(e, login_address, attributes)

            try:
                self.identity_provider.delete_identity(handle.identity_id)
            except IdentityProviderError as delete_error:
                logger.critical(
                    f"Failed to remove identity {handle.identity_id} after profile error "
                    f"({profile_error.error_enum.code}): {delete_error}"
                )
                raise BusinessError(
                    APIError.SAGA_COMPENSATION_FAILED,
                    f"{profile_error.message} The login identity {handle.identity_id} could not be removed "
                    f"and needs manual cleanup: {delete_error.message}"
                ) from delete_error

            raise profile_error from e

        logger.info(f"Profile created: {new_profile.user_id} ({login_address})")

        return ResolvedIdentity(
            identity_id=handle.identity_id,
            profile_id=new_profile.user_id,
            was_preexisting=False
        )

    @staticmethod
    def _classify_profile_error(error, login_address, attributes) -> BusinessError:
        if isinstance(error, IntegrityError):
            store_error = classify_integrity_error(error)

            if store_error.is_unique_violation_on('email'):
                return BusinessError(
                    APIError.PROFILE_DUPLICATE_EMAIL,
                    f"A user with email {login_address} already exists in the system. "
                    f"Please use a different email address."
                )

            if store_error.is_unique_violation_on('phone'):
                return BusinessError(
                    APIError.PROFILE_DUPLICATE_PHONE,
                    f"A user with phone number {attributes.get('phone')} already exists in the system. "
                    f"Please use a different phone number."
                )

            return BusinessError(
                APIError.PROFILE_CREATION_FAILED,
                f"Failed to create user record: {store_error.message}"
            )

        return BusinessError(APIError.PROFILE_CREATION_FAILED, f"Failed to create user record: {error}")

    def release(self, resolved: ResolvedIdentity) -> None:
        """Compensation: remove a pair this run created, profile first. Never touches a pre-existing pair."""
        if not resolved.created_by_this_run:
            logger.info(f"Skipping compensation for pre-existing profile {resolved.profile_id}")
            return

        db.session.query(User).filter(User.user_id == resolved.profile_id).delete()
        db.session.commit()
        logger.warning(f"Compensated profile {resolved.profile_id}")

        self.identity_provider.delete_identity(resolved.identity_id)
        logger.warning(f"Compensated identity {resolved.identity_id}")
