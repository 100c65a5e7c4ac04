from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import field_validator

from .base import CamelModel, as_local, blank_to_none


class Gender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"


class PatientStatus(str, Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


class IdProofType(str, Enum):
    AADHAAR = "Aadhaar"
    PAN_CARD = "PAN Card"
    PASSPORT = "Passport"
    VOTER_ID = "Voter ID"
    DRIVING_LICENSE = "Driving License"


class PatientCreate(CamelModel):
    """Front-desk form fields. Missing fields are stored as missing."""

    name: Optional[str] = None
    dob: Optional[date] = None
    gender: Optional[Gender] = None
    contact: Optional[str] = None
    address: Optional[str] = None
    status: Optional[PatientStatus] = None

    # Identification and insurance
    id_proof_type: Optional[IdProofType] = None
    id_proof_number: Optional[str] = None
    insurance_provider: Optional[str] = None
    insurance_policy_number: Optional[str] = None

    clear_blank_fields = field_validator(
        "dob", "gender", "status", "id_proof_type", mode="before"
    )(blank_to_none)


class PatientUpdate(PatientCreate):
    """Partial update; only explicitly set fields are merged."""


class Patient(PatientCreate):
    id: str
    created_at: datetime
    updated_at: datetime
    # patient_id=<id>&name=<name without whitespace>, fixed at creation
    qr_code_data: str

    localize_timestamps = field_validator("created_at", "updated_at")(as_local)
