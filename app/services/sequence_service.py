from sqlalchemy.exc import SQLAlchemyError

from app.models.doctor import Doctor
from common.enum.error_code import APIError
from common.exception.exceptions import BusinessError
from common.extensions import db
from common.utils.logging_utils import get_logger

logger = get_logger('sequence_service')


class SequenceAllocator:
    """
    Proposes the next display position (current max among live rows + 1).

    Only a proposal: the unique constraint over live positions decides, and the
    caller retries on a collision.
    """

    def __init__(self, model=Doctor, column: str = 'sort_order'):
        self.model = model
        self.column = getattr(model, column)

    def next_position(self) -> int:
        try:
            row = db.session.query(self.column).filter(
                self.model.deleted_at.is_(None)
            ).order_by(self.column.desc()).limit(1).first()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Failed to read max {self.column.key}: {e}")
            raise BusinessError(
                APIError.SEQUENCE_QUERY_FAILED,
                f"Failed to determine next {self.model.__tablename__} sort order: {e}"
            ) from e

        current_max = row[0] if row is not None and isinstance(row[0], int) else 0
        return current_max + 1
