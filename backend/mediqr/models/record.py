from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import field_validator

from .base import CamelModel, as_local, blank_to_none


class RecordType(str, Enum):
    CONSULTATION = "Consultation"
    LAB_REPORT = "Lab Report"
    PRESCRIPTION = "Prescription"
    NOTE = "Note"


class MedicalRecordCreate(CamelModel):
    patient_id: Optional[str] = None
    type: Optional[RecordType] = None
    title: Optional[str] = None
    details: Optional[str] = None
    doctor_name: Optional[str] = None

    clear_blank_type = field_validator("type", mode="before")(blank_to_none)


class MedicalRecord(MedicalRecordCreate):
    id: str
    # Assigned by the database at insert time
    date: datetime

    localize_date = field_validator("date")(as_local)
