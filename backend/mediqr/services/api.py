"""
Asynchronous facade over the clinic database.

Every call waits a fixed latency and then runs the underlying database
operation in one uninterrupted step, so callers are written against the same
awaitable contract a remote API would offer.
"""
import asyncio
import logging
from typing import Any, Callable, List, Optional, TypeVar

from ..core.config import settings
from ..models.appointment import Appointment
from ..models.patient import Patient
from ..models.record import MedicalRecord
from .database import ClinicDatabase, PatientFields, RecordFields

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ClinicAPI:
    """Awaitable wrappers for every ``ClinicDatabase`` operation.

    ``delay`` is in seconds; ``None`` means ``settings.SIMULATED_DELAY_MS``.
    Exceptions raised by the database propagate to the awaiting caller.
    """

    def __init__(self, database: ClinicDatabase, delay: Optional[float] = None):
        self.database = database
        self.delay = settings.SIMULATED_DELAY_MS / 1000 if delay is None else delay

    async def _call(self, operation: Callable[..., T], *args: Any) -> T:
        await asyncio.sleep(self.delay)
        logger.debug("Running %s%r", operation.__name__, args)
        return operation(*args)

    # Patients

    async def get_patients(self) -> List[Patient]:
        return await self._call(self.database.list_patients)

    async def get_patient(self, patient_id: str) -> Optional[Patient]:
        return await self._call(self.database.get_patient, patient_id)

    async def add_patient(self, fields: PatientFields) -> Patient:
        return await self._call(self.database.create_patient, fields)

    async def update_patient(self, patient_id: str, fields: PatientFields) -> Optional[Patient]:
        return await self._call(self.database.update_patient, patient_id, fields)

    async def delete_patient(self, patient_id: str) -> bool:
        return await self._call(self.database.delete_patient, patient_id)

    # Medical records

    async def get_all_records(self) -> List[MedicalRecord]:
        return await self._call(self.database.list_all_records)

    async def get_records_for_patient(self, patient_id: str) -> List[MedicalRecord]:
        return await self._call(self.database.list_records_for_patient, patient_id)

    async def add_medical_record(self, fields: RecordFields) -> MedicalRecord:
        return await self._call(self.database.create_medical_record, fields)

    async def delete_medical_record(self, record_id: str) -> bool:
        return await self._call(self.database.delete_medical_record, record_id)

    # Appointments

    async def get_appointments_for_today(self) -> List[Appointment]:
        return await self._call(self.database.list_appointments_for_today)
