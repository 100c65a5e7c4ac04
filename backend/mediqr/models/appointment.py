from datetime import datetime
from typing import Optional

from pydantic import field_validator

from .base import CamelModel, as_local


class Appointment(CamelModel):
    id: str
    patient_id: Optional[str] = None
    date: datetime
    title: Optional[str] = None
    doctor_name: Optional[str] = None

    localize_date = field_validator("date")(as_local)
