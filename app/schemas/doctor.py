from marshmallow import Schema, fields, validate, validates_schema, ValidationError

from common.enum.staff_role import DoctorStatus

SESSION_NAMES = ['morning', 'afternoon', 'evening']
TIME_PATTERN = r'^([01]\d|2[0-3]):[0-5]\d$'


class SessionTimingSchema(Schema):
    start_time = fields.String(
        required=True,
        validate=validate.Regexp(TIME_PATTERN, error="Use HH:MM."),
        metadata={'description': 'session start (HH:MM)'}
    )
    end_time = fields.String(
        required=True,
        validate=validate.Regexp(TIME_PATTERN, error="Use HH:MM."),
        metadata={'description': 'session end (HH:MM)'}
    )
    max_patients = fields.Integer(
        load_default=None,
        validate=validate.Range(min=0),
        metadata={'description': 'maximum patients for the session'}
    )


class SessionsSchema(Schema):
    morning = fields.Nested(SessionTimingSchema, load_default=None)
    afternoon = fields.Nested(SessionTimingSchema, load_default=None)
    evening = fields.Nested(SessionTimingSchema, load_default=None)


class DoctorAvailabilityFieldsMixin:
    department = fields.String(validate=validate.Length(max=100), metadata={'description': 'department'})
    room_number = fields.String(validate=validate.Length(max=20), metadata={'description': 'consultation room'})
    floor_number = fields.Integer(metadata={'description': 'floor'})
    working_hours_start = fields.String(
        validate=validate.Regexp(TIME_PATTERN, error="Use HH:MM."),
        metadata={'description': 'working hours start (HH:MM)'}
    )
    working_hours_end = fields.String(
        validate=validate.Regexp(TIME_PATTERN, error="Use HH:MM."),
        metadata={'description': 'working hours end (HH:MM)'}
    )
    working_days = fields.List(
        fields.Integer(validate=validate.Range(min=0, max=6)),
        metadata={'description': 'working days (0=Sunday ... 6=Saturday)'}
    )
    emergency_available = fields.Boolean(metadata={'description': 'available for emergencies'})
    sessions = fields.Nested(SessionsSchema, metadata={'description': 'session timings'})
    available_sessions = fields.List(
        fields.String(validate=validate.OneOf(SESSION_NAMES, error="Unknown session.")),
        metadata={'description': 'enabled sessions'}
    )


class DoctorOnboardRequestSchema(DoctorAvailabilityFieldsMixin, Schema):
    name = fields.String(
        required=True,
        validate=validate.Length(min=2, max=100),
        metadata={'description': 'doctor name'}
    )
    email = fields.Email(load_default=None, metadata={'description': 'login email (generated from the name when omitted)'})
    phone = fields.String(load_default=None, validate=validate.Length(max=20), metadata={'description': 'phone number'})
    address = fields.String(load_default=None, metadata={'description': 'address'})
    license_number = fields.String(load_default=None, validate=validate.Length(max=64), metadata={'description': 'license number'})
    specialization = fields.String(
        required=True,
        validate=validate.Length(min=1, max=100),
        metadata={'description': 'specialization'}
    )
    qualification = fields.String(load_default=None, metadata={'description': 'qualification'})
    years_of_experience = fields.Integer(load_default=0, validate=validate.Range(min=0), metadata={'description': 'years of experience'})
    consultation_fee = fields.Float(
        required=True,
        validate=validate.Range(min=0),
        metadata={'description': 'consultation fee'}
    )

    @validates_schema
    def validate_sessions(self, data, **kwargs):
        sessions = data.get('sessions') or {}
        for name in data.get('available_sessions') or []:
            if not sessions.get(name):
                raise ValidationError(f"Timing for the '{name}' session is missing.", 'sessions')


class DoctorUpdateRequestSchema(DoctorAvailabilityFieldsMixin, Schema):
    name = fields.String(validate=validate.Length(min=2, max=100), metadata={'description': 'doctor name'})
    email = fields.Email(metadata={'description': 'login email'})
    phone = fields.String(validate=validate.Length(max=20), metadata={'description': 'phone number'})
    address = fields.String(metadata={'description': 'address'})
    license_number = fields.String(validate=validate.Length(max=64), metadata={'description': 'license number'})
    specialization = fields.String(validate=validate.Length(min=1, max=100), metadata={'description': 'specialization'})
    qualification = fields.String(metadata={'description': 'qualification'})
    years_of_experience = fields.Integer(validate=validate.Range(min=0), metadata={'description': 'years of experience'})
    consultation_fee = fields.Float(validate=validate.Range(min=0), metadata={'description': 'consultation fee'})


class DoctorStatusRequestSchema(Schema):
    status = fields.String(
        required=True,
        validate=validate.OneOf([s.value for s in DoctorStatus]),
        metadata={'description': 'active / inactive'}
    )


class DoctorMoveRequestSchema(Schema):
    direction = fields.String(
        required=True,
        validate=validate.OneOf(['up', 'down']),
        metadata={'description': 'move one slot up or down'}
    )


class GetDoctorsRequestSchema(Schema):
    search = fields.String(load_default=None, metadata={'description': 'name / email / license / code / specialization'})
    specialization = fields.String(load_default=None, metadata={'description': 'exact specialization'})
    include_deleted = fields.Boolean(load_default=False, metadata={'description': 'include soft-deleted doctors'})
    page = fields.Integer(
        load_default=1,
        validate=validate.Range(min=1),
        metadata={'description': 'page (from 1)'}
    )
    size = fields.Integer(
        load_default=20,
        validate=validate.Range(min=1, max=100),
        metadata={'description': 'page size (1~100)'}
    )


class DoctorProfileSchema(Schema):
    user_id = fields.String(metadata={'description': 'profile id'})
    name = fields.String(metadata={'description': 'name'})
    email = fields.String(metadata={'description': 'login email'})
    phone = fields.String(allow_none=True, metadata={'description': 'phone number'})
    address = fields.String(allow_none=True, metadata={'description': 'address'})


class DoctorResponseSchema(Schema):
    doctor_id = fields.String(metadata={'description': 'doctor id'})
    doctor_code = fields.String(metadata={'description': 'doctor code (DR...)'})
    user_id = fields.String(metadata={'description': 'profile id'})
    license_number = fields.String(allow_none=True, metadata={'description': 'license number'})
    specialization = fields.String(metadata={'description': 'specialization'})
    department = fields.String(allow_none=True, metadata={'description': 'department'})
    qualification = fields.String(allow_none=True, metadata={'description': 'qualification'})
    years_of_experience = fields.Integer(metadata={'description': 'years of experience'})
    consultation_fee = fields.Float(metadata={'description': 'consultation fee'})
    room_number = fields.String(allow_none=True, metadata={'description': 'room'})
    sort_order = fields.Integer(metadata={'description': 'display position'})
    availability_hours = fields.Dict(metadata={'description': 'sessions, working days, hours'})
    status = fields.String(metadata={'description': 'active / inactive'})
    is_deleted = fields.Boolean(metadata={'description': 'soft-deleted'})
    created_at = fields.String(metadata={'description': 'created at (ISO 8601)'})
    updated_at = fields.String(metadata={'description': 'updated at (ISO 8601)'})
    user = fields.Nested(DoctorProfileSchema, allow_none=True, metadata={'description': 'profile'})
    transaction_id = fields.String(allow_none=True, metadata={'description': 'onboarding saga id'})


class GetDoctorsResponseSchema(Schema):
    doctors = fields.List(fields.Nested(DoctorResponseSchema), metadata={'description': 'doctors'})
    total = fields.Integer(metadata={'description': 'total count'})
    page = fields.Integer(metadata={'description': 'page'})
    size = fields.Integer(metadata={'description': 'page size'})
    has_next = fields.Boolean(metadata={'description': 'more pages'})


class SpecializationsResponseSchema(Schema):
    specializations = fields.List(fields.String(), metadata={'description': 'distinct specializations'})


class EmailCheckRequestSchema(Schema):
    email = fields.Email(load_default=None, metadata={'description': 'email to check'})
    name = fields.String(load_default=None, metadata={'description': 'name to derive a suggestion from'})

    @validates_schema
    def validate_one_of(self, data, **kwargs):
        if not data.get('email') and not data.get('name'):
            raise ValidationError("Either email or name is required.")


class EmailCheckResponseSchema(Schema):
    email = fields.String(required=True, metadata={'description': 'checked or suggested email'})
    is_duplicate = fields.Boolean(required=True, metadata={'description': 'True: already registered'})
    message = fields.String(required=True, metadata={'description': 'message'})
