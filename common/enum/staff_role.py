from enum import Enum


class StaffRole(str, Enum):
    ADMIN = 'admin'
    DOCTOR = 'doctor'
    MD = 'md'
    NURSE = 'nurse'
    PHARMACIST = 'pharmacist'
    RECEPTIONIST = 'receptionist'
    TECHNICIAN = 'technician'


class ProfileStatus(str, Enum):
    ACTIVE = 'active'
    INACTIVE = 'inactive'


class DoctorStatus(str, Enum):
    ACTIVE = 'active'
    INACTIVE = 'inactive'


DEFAULT_PERMISSIONS = {
    StaffRole.DOCTOR: {
        'view_patients': True,
        'create_appointments': True,
        'update_medical_records': True,
        'prescribe_medications': True
    },
    StaffRole.NURSE: {
        'view_patients': True,
        'create_appointments': True,
        'update_medical_records': True,
        'prescribe_medications': False
    },
}


def default_permissions_for(role: StaffRole) -> dict:
    return dict(DEFAULT_PERMISSIONS.get(role, {'view_patients': True}))
