from flask_smorest import Blueprint

from app.dto.doctor import CreateDoctorInput
from app.schemas.doctor import (
    DoctorOnboardRequestSchema, DoctorUpdateRequestSchema,
    DoctorStatusRequestSchema, DoctorMoveRequestSchema,
    GetDoctorsRequestSchema, GetDoctorsResponseSchema,
    DoctorResponseSchema, SpecializationsResponseSchema,
    EmailCheckRequestSchema, EmailCheckResponseSchema
)
from app.schemas.common_schema import SuccessResponseSchema, ErrorResponseSchema
from app.services.doctor_service import DoctorService

doctor_blueprint = Blueprint(
    'doctor',
    __name__,
    url_prefix='/api/v1/doctors',
    description='Doctor directory API'
)


@doctor_blueprint.route('', methods=['POST'])
@doctor_blueprint.arguments(DoctorOnboardRequestSchema)
@doctor_blueprint.response(201, DoctorResponseSchema)
@doctor_blueprint.alt_response(409, schema=ErrorResponseSchema, description="duplicate doctor / email / phone / license")
@doctor_blueprint.alt_response(502, schema=ErrorResponseSchema, description="login identity could not be created")
def onboard_doctor(data):
    doctor = DoctorService.onboard(CreateDoctorInput.from_dict(data))
    return doctor.to_dict()


@doctor_blueprint.route('', methods=['GET'])
@doctor_blueprint.arguments(GetDoctorsRequestSchema, location='query')
@doctor_blueprint.response(200, GetDoctorsResponseSchema)
def get_doctors(args):
    result = DoctorService.list_doctors(
        page=args.get('page', 1),
        size=args.get('size', 20),
        specialization=args.get('specialization'),
        keyword=args.get('search'),
        include_deleted=args.get('include_deleted', False)
    )
    return result.to_dict()


@doctor_blueprint.route('/specializations', methods=['GET'])
@doctor_blueprint.response(200, SpecializationsResponseSchema)
def get_specializations():
    return {'specializations': DoctorService.get_specializations()}


@doctor_blueprint.route('/check-email', methods=['POST'])
@doctor_blueprint.arguments(EmailCheckRequestSchema)
@doctor_blueprint.response(200, EmailCheckResponseSchema)
def check_email(data):
    result = DoctorService.check_login_address(email=data.get('email'), name=data.get('name'))
    return result.to_dict()


@doctor_blueprint.route('/<doctor_id>', methods=['GET'])
@doctor_blueprint.response(200, DoctorResponseSchema)
def get_doctor(doctor_id):
    return DoctorService.get_doctor(doctor_id).to_dict()


@doctor_blueprint.route('/<doctor_id>', methods=['PATCH'])
@doctor_blueprint.arguments(DoctorUpdateRequestSchema)
@doctor_blueprint.response(200, DoctorResponseSchema)
def update_doctor(data, doctor_id):
    return DoctorService.update_doctor(doctor_id, data).to_dict()


@doctor_blueprint.route('/<doctor_id>/status', methods=['PATCH'])
@doctor_blueprint.arguments(DoctorStatusRequestSchema)
@doctor_blueprint.response(200, DoctorResponseSchema)
def change_doctor_status(data, doctor_id):
    return DoctorService.set_doctor_status(doctor_id, data['status']).to_dict()


@doctor_blueprint.route('/<doctor_id>', methods=['DELETE'])
@doctor_blueprint.response(200, SuccessResponseSchema)
def delete_doctor(doctor_id):
    result = DoctorService.soft_delete_doctor(doctor_id)
    return {
        "result": "success",
        "message": result['message']
    }


@doctor_blueprint.route('/<doctor_id>/restore', methods=['POST'])
@doctor_blueprint.response(200, DoctorResponseSchema)
def restore_doctor(doctor_id):
    return DoctorService.restore_doctor(doctor_id).to_dict()


@doctor_blueprint.route('/<doctor_id>/position', methods=['PATCH'])
@doctor_blueprint.arguments(DoctorMoveRequestSchema)
@doctor_blueprint.response(200, DoctorResponseSchema)
def move_doctor(data, doctor_id):
    return DoctorService.move_doctor(doctor_id, data['direction']).to_dict()
