from .base import Base, CamelModel
from .blob import StoredBlob
from .patient import Gender, IdProofType, Patient, PatientCreate, PatientStatus, PatientUpdate
from .record import MedicalRecord, MedicalRecordCreate, RecordType
from .appointment import Appointment
from .user import User, UserRole

__all__ = [
    "Base",
    "CamelModel",
    "StoredBlob",
    "Gender",
    "IdProofType",
    "Patient",
    "PatientCreate",
    "PatientStatus",
    "PatientUpdate",
    "MedicalRecord",
    "MedicalRecordCreate",
    "RecordType",
    "Appointment",
    "User",
    "UserRole",
]
