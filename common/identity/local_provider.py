from datetime import datetime
from typing import Any, Dict

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from werkzeug.security import generate_password_hash

from common.exception.exceptions import IdentityProviderError
from common.extensions import db
from common.identity.base import IdentityHandle, IdentityProvider
from common.utils.logging_utils import get_logger

logger = get_logger('local_identity_provider')


class LocalIdentityProvider(IdentityProvider):
    """Keeps login accounts in the auth_identity table. Each call commits on its own."""

    def __init__(self, session=None):
        self.session = session or db.session

    def create_identity(self, email: str, password: str, confirmed: bool = True,
                        metadata: Dict[str, Any] = None) -> IdentityHandle:
        from app.models.identity import AuthIdentity

        identity = AuthIdentity(
            email=email,
            password_hash=generate_password_hash(password),
            email_confirmed_at=datetime.utcnow() if confirmed else None,
            user_metadata=dict(metadata or {})
        )

        try:
            self.session.add(identity)
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            raise IdentityProviderError(f"A user with this email address has already been registered: {email}", 422) from e
        except SQLAlchemyError as e:
            self.session.rollback()
            raise IdentityProviderError(f"Identity store error: {e}") from e

        logger.info(f"Identity created: {identity.identity_id} ({email})")

        return IdentityHandle(
            identity_id=identity.identity_id,
            email=identity.email,
            metadata=dict(identity.user_metadata or {})
        )

    def delete_identity(self, identity_id: str) -> None:
        from app.models.identity import AuthIdentity

        try:
            deleted = self.session.query(AuthIdentity).filter_by(identity_id=identity_id).delete()
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise IdentityProviderError(f"Failed to delete identity {identity_id}: {e}") from e

        if not deleted:
            logger.warning(f"Identity already gone: {identity_id}")
        else:
            logger.info(f"Identity deleted: {identity_id}")
