from enum import Enum

class APIError(Enum):
    # 1. Common
    INTERNAL_SERVER_ERROR = ("C001", "An internal server error occurred.", 500)
    INVALID_INPUT_VALUE  = ("C002", "The input value is invalid.", 400)
    DB_ERROR = ("C003", "A database operation failed.", 500)

    # 2. Identity / Profile
    IDENTITY_CREATION_FAILED = ("I001", "Failed to create the login identity.", 502)
    PROFILE_CREATION_FAILED  = ("I002", "Failed to create the user profile.", 500)
    PROFILE_DUPLICATE_EMAIL  = ("I003", "A user with this email already exists.", 409)
    PROFILE_DUPLICATE_PHONE  = ("I004", "A user with this phone number already exists.", 409)

    # 3. Doctor
    DOCTOR_NOT_FOUND          = ("D001", "Doctor not found.", 404)
    DOCTOR_DUPLICATE_ENTITY   = ("D002", "A doctor with this email already exists.", 409)
    DOCTOR_DUPLICATE_LICENSE  = ("D003", "A doctor with this license number already exists.", 409)
    DOCTOR_INVALID_REFERENCE  = ("D004", "Invalid user reference. Please try again or contact support.", 400)
    DOCTOR_INSERT_FAILED      = ("D005", "Failed to create the doctor record.", 500)

    # 4. Sequence (sort order)
    SEQUENCE_QUERY_FAILED      = ("S001", "Failed to determine the next doctor sort order.", 500)
    SEQUENCE_POSITION_CONFLICT = ("S002", "Doctor sort order conflict. Please try again.", 409)

    # 5. Saga
    SAGA_NOT_FOUND           = ("G001", "Saga transaction not found.", 404)
    SAGA_COMPENSATION_FAILED = ("G002", "Compensation failed. Manual intervention required.", 500)

    def __init__(self, code, message, status):
        self.code = code
        self.message = message
        self.status = status
