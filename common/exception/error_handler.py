from flask import jsonify

from common.enum.error_code import APIError
from common.exception.exceptions import BusinessError
from common.utils.db_error_utils import classify_integrity_error
from common.utils.logging_utils import get_logger
from sqlalchemy.exc import IntegrityError, DataError, SQLAlchemyError

logger = get_logger('error_handler')


def _fail(message, code, status):
    return jsonify({
        "result": "fail",
        "message": message,
        "code": code,
        "data": None
    }), status


def register_error_handlers(app):
    @app.errorhandler(BusinessError)
    def handle_business_error(e):
        return _fail(e.message, e.error_enum.code, e.error_enum.status)

    # NOTE : services translate the constraints they know about; this catches the rest
    @app.errorhandler(IntegrityError)
    def handle_integrity_error(e):
        store_error = classify_integrity_error(e)
        logger.warning(f"Integrity error ({store_error.code.value}): {store_error.message}")

        if store_error.is_unique_violation:
            columns = ', '.join(store_error.columns) or 'a unique field'
            return _fail(f"Duplicate value for {columns}.", APIError.INVALID_INPUT_VALUE.code, 409)

        return _fail(
            "Invalid reference or missing required value.",
            APIError.INVALID_INPUT_VALUE.code,
            APIError.INVALID_INPUT_VALUE.status
        )

    @app.errorhandler(DataError)
    def handle_data_error(e):
        return _fail("The data format is invalid.", APIError.INVALID_INPUT_VALUE.code, 400)

    @app.errorhandler(SQLAlchemyError)
    def handle_db_error(e):
        logger.error(f"Database error: {e}")
        return _fail(APIError.DB_ERROR.message, APIError.DB_ERROR.code, APIError.DB_ERROR.status)

    @app.errorhandler(Exception)
    def handle_internal_error(e):
        logger.exception(f"Unhandled error: {e}")
        return _fail(
            APIError.INTERNAL_SERVER_ERROR.message,
            APIError.INTERNAL_SERVER_ERROR.code,
            APIError.INTERNAL_SERVER_ERROR.status
        )
