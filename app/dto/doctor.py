from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class CreateDoctorInput:
    # Subject (profile) attributes
    name: str
    specialization: str
    consultation_fee: float
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

    # Doctor attributes
    license_number: Optional[str] = None
    department: Optional[str] = None
    qualification: Optional[str] = None
    years_of_experience: int = 0
    room_number: Optional[str] = None
    floor_number: Optional[int] = None
    working_hours_start: Optional[str] = None
    working_hours_end: Optional[str] = None
    working_days: List[int] = field(default_factory=list)
    emergency_available: bool = False
    sessions: Dict[str, Any] = field(default_factory=dict)
    available_sessions: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CreateDoctorInput':
        known = cls.__dataclass_fields__.keys()
        return cls(**{key: value for key, value in data.items() if key in known})

    def availability_hours(self) -> Dict[str, Any]:
        return {
            'sessions': self.sessions,
            'available_sessions': self.available_sessions,
            'working_days': self.working_days,
            'emergency_available': self.emergency_available,
            'floor_number': self.floor_number,
            'working_hours_start': self.working_hours_start,
            'working_hours_end': self.working_hours_end,
            'department': self.department
        }


@dataclass
class ResolvedIdentity:
    identity_id: str
    profile_id: str
    was_preexisting: bool

    @property
    def created_by_this_run(self) -> bool:
        return not self.was_preexisting

    def to_compensation_data(self) -> Dict[str, Any]:
        return {
            'identity_id': self.identity_id,
            'profile_id': self.profile_id,
            'created_by_this_run': self.created_by_this_run
        }


@dataclass
class DoctorDto:
    doctor_id: str
    doctor_code: str
    user_id: str
    license_number: Optional[str]
    specialization: str
    department: Optional[str]
    qualification: Optional[str]
    years_of_experience: int
    consultation_fee: float
    room_number: Optional[str]
    sort_order: int
    availability_hours: Dict[str, Any]
    status: str
    is_deleted: bool
    created_at: str
    updated_at: str
    user: Optional[Dict[str, Any]] = None  # profile projection (user_id, name, email, phone, address)
    transaction_id: Optional[str] = None

    @classmethod
    def from_model(cls, doctor, user=None, transaction_id=None) -> 'DoctorDto':
        profile = user if user is not None else doctor.user
        return cls(
            doctor_id=doctor.doctor_id,
            doctor_code=doctor.doctor_code,
            user_id=doctor.user_id,
            license_number=doctor.license_number,
            specialization=doctor.specialization,
            department=doctor.department,
            qualification=doctor.qualification,
            years_of_experience=doctor.years_of_experience or 0,
            consultation_fee=float(doctor.consultation_fee or 0),
            room_number=doctor.room_number,
            sort_order=doctor.sort_order,
            availability_hours=dict(doctor.availability_hours or {}),
            status=doctor.status,
            is_deleted=doctor.is_deleted,
            created_at=doctor.created_at.isoformat() if doctor.created_at else None,
            updated_at=doctor.updated_at.isoformat() if doctor.updated_at else None,
            user=profile.to_projection() if profile is not None else None,
            transaction_id=transaction_id
        )

    def to_dict(self):
        return {
            'doctor_id': self.doctor_id,
            'doctor_code': self.doctor_code,
            'user_id': self.user_id,
            'license_number': self.license_number,
            'specialization': self.specialization,
            'department': self.department,
            'qualification': self.qualification,
            'years_of_experience': self.years_of_experience,
            'consultation_fee': self.consultation_fee,
            'room_number': self.room_number,
            'sort_order': self.sort_order,
            'availability_hours': self.availability_hours,
            'status': self.status,
            'is_deleted': self.is_deleted,
            'created_at': self.created_at,
            'updated_at': self.updated_at,
            'user': self.user,
            'transaction_id': self.transaction_id
        }


@dataclass
class DoctorListDto:
    doctors: List[DoctorDto]
    total: int
    page: int
    size: int
    has_next: bool

    def to_dict(self):
        return {
            'doctors': [doctor.to_dict() for doctor in self.doctors],
            'total': self.total,
            'page': self.page,
            'size': self.size,
            'has_next': self.has_next
        }


@dataclass
class LoginAddressCheckDto:
    email: str
    is_duplicate: bool
    message: str

    def to_dict(self):
        return {
            'email': self.email,
            'is_duplicate': self.is_duplicate,
            'message': self.message
        }


@dataclass
class MessageResponseDto:
    message: str

    def to_dict(self):
        return {'message': self.message}
