"""
Clinic data access layer.

Owns the in-memory patients, medical records and appointments collections,
allocates ids, and mirrors every mutation into the blob store. It is the
only writer of those collections; callers always get deep copies back.
"""
import logging
import re
from datetime import datetime, time, timedelta
from typing import Any, Callable, Iterable, List, Mapping, Optional, Tuple, Type, TypeVar, Union

from pydantic import BaseModel, TypeAdapter, ValidationError

from ..core.config import settings
from ..core.exceptions import StorageError
from ..models.appointment import Appointment
from ..models.patient import Patient, PatientCreate, PatientUpdate
from ..models.record import MedicalRecord, MedicalRecordCreate
from ..seed_demo import seed_appointments, seed_patients, seed_records
from .storage import BlobStore

logger = logging.getLogger(__name__)

PatientFields = Union[PatientCreate, Mapping[str, Any]]
RecordFields = Union[MedicalRecordCreate, Mapping[str, Any]]
M = TypeVar("M", bound=BaseModel)

# Keys the database assigns itself; never taken from caller input
PATIENT_SYSTEM_KEYS = frozenset({
    "id", "createdAt", "created_at", "updatedAt", "updated_at", "qrCodeData", "qr_code_data",
})
RECORD_SYSTEM_KEYS = frozenset({"id", "date"})

_PATIENTS = TypeAdapter(List[Patient])
_RECORDS = TypeAdapter(List[MedicalRecord])
_APPOINTMENTS = TypeAdapter(List[Appointment])

_WHITESPACE = re.compile(r"\s")
_DIGITS = re.compile(r"[0-9]+")


def local_now() -> datetime:
    """Current time as an aware datetime in the process's local zone."""
    return datetime.now().astimezone()


def local_day_bounds(now: datetime) -> Tuple[datetime, datetime]:
    """Return ``[start of now's calendar day, start of the next day)``."""
    start = datetime.combine(now.date(), time.min, tzinfo=now.tzinfo)
    end = datetime.combine(now.date() + timedelta(days=1), time.min, tzinfo=now.tzinfo)
    return start, end


def build_qr_code_data(patient_id: str, name: Optional[str]) -> str:
    return f"patient_id={patient_id}&name={_WHITESPACE.sub('', name or '')}"


def _coerce(model: Type[M], fields: Union[M, Mapping[str, Any]]) -> M:
    if isinstance(fields, model):
        return fields
    if isinstance(fields, BaseModel):
        return model.model_validate(fields.model_dump(by_alias=True, exclude_unset=True))
    return model.model_validate(dict(fields))


def _copy(items: Iterable[M]) -> List[M]:
    return [item.model_copy(deep=True) for item in items]


class ClinicDatabase:
    """Synchronous CRUD over the three clinic collections.

    ``clock`` must return timezone-aware datetimes; it stamps ``createdAt``,
    ``updatedAt`` and record dates and defines "today" for appointments.
    """

    PATIENT_PREFIX = "p"
    RECORD_PREFIX = "rec"

    def __init__(
        self,
        store: BlobStore,
        clock: Optional[Callable[[], datetime]] = None,
        pad_width: Optional[int] = None,
        patients_key: Optional[str] = None,
        records_key: Optional[str] = None,
        appointments_key: Optional[str] = None,
    ):
        self.store = store
        self.clock = clock or local_now
        self.pad_width = settings.ID_PAD_WIDTH if pad_width is None else pad_width
        self.patients_key = patients_key or settings.PATIENTS_KEY
        self.records_key = records_key or settings.RECORDS_KEY
        self.appointments_key = appointments_key or settings.APPOINTMENTS_KEY

        self._patients: List[Patient] = []
        self._records: List[MedicalRecord] = []
        self._appointments: List[Appointment] = []
        self._load()

    # ------------------------------------------------------------------
    # Loading / persistence
    # ------------------------------------------------------------------

    def _load(self) -> None:
        try:
            self._patients = self._load_collection(self.patients_key, _PATIENTS, seed_patients)
            self._records = self._load_collection(self.records_key, _RECORDS, seed_records)
        except (StorageError, ValidationError) as exc:
            logger.error("Could not load collections from store: %s", exc)
            self._patients, self._records, self._appointments = [], [], []
            return

        try:
            self._appointments = self._load_collection(
                self.appointments_key,
                _APPOINTMENTS,
                lambda: seed_appointments(self.clock()),
            )
        except (StorageError, ValidationError) as exc:
            logger.error("Could not load appointments from store: %s", exc)
            self._appointments = []

    def _load_collection(self, key: str, adapter: TypeAdapter, seed: Callable[[], list]) -> list:
        raw = self.store.load(key)
        if raw is not None:
            return adapter.validate_json(raw)
        items = seed()
        logger.info("Seeded %s with %d entries", key, len(items))
        self._persist(key, adapter, items)
        return items

    def _persist(self, key: str, adapter: TypeAdapter, items: list) -> None:
        raw = adapter.dump_json(items, by_alias=True, exclude_none=True).decode()
        try:
            self.store.save(key, raw)
        except StorageError as exc:
            # In-memory collections stay authoritative for the session
            logger.warning("Could not save %s to store: %s", key, exc)

    def _save_patients(self) -> None:
        self._persist(self.patients_key, _PATIENTS, self._patients)

    def _save_records(self) -> None:
        self._persist(self.records_key, _RECORDS, self._records)

    def _save_appointments(self) -> None:
        self._persist(self.appointments_key, _APPOINTMENTS, self._appointments)

    # ------------------------------------------------------------------
    # Id allocation
    # ------------------------------------------------------------------

    def _next_id(self, prefix: str, ids: Iterable[str]) -> str:
        """``prefix`` + zero-padded (highest numeric suffix + 1).

        Deleting the highest-numbered entity frees its number for reuse.
        """
        last = 0
        for existing in ids:
            suffix = existing[len(prefix):] if existing.startswith(prefix) else existing
            if not _DIGITS.fullmatch(suffix):
                continue
            last = max(last, int(suffix))
        return f"{prefix}{last + 1:0{self.pad_width}d}"

    def generate_patient_id(self) -> str:
        return self._next_id(self.PATIENT_PREFIX, (p.id for p in self._patients))

    def generate_record_id(self) -> str:
        return self._next_id(self.RECORD_PREFIX, (r.id for r in self._records))

    # ------------------------------------------------------------------
    # Patients
    # ------------------------------------------------------------------

    def list_patients(self) -> List[Patient]:
        return _copy(self._patients)

    def get_patient(self, patient_id: str) -> Optional[Patient]:
        for patient in self._patients:
            if patient.id == patient_id:
                return patient.model_copy(deep=True)
        return None

    def create_patient(self, fields: PatientFields) -> Patient:
        data = _coerce(PatientCreate, fields)
        payload = {
            k: v for k, v in data.model_dump(by_alias=True, exclude_unset=True).items()
            if k not in PATIENT_SYSTEM_KEYS
        }
        now = self.clock()
        new_id = self.generate_patient_id()
        payload.update(
            id=new_id,
            createdAt=now,
            updatedAt=now,
            qrCodeData=build_qr_code_data(new_id, data.name),
        )
        patient = Patient.model_validate(payload)
        self._patients.append(patient)
        self._save_patients()
        logger.info("Registered patient %s", new_id)
        return patient.model_copy(deep=True)

    def update_patient(self, patient_id: str, fields: Union[PatientUpdate, Mapping[str, Any]]) -> Optional[Patient]:
        index = next((i for i, p in enumerate(self._patients) if p.id == patient_id), None)
        if index is None:
            return None
        changes = _coerce(PatientUpdate, fields).model_dump(by_alias=True, exclude_unset=True)
        merged = self._patients[index].model_dump(by_alias=True, exclude_unset=True)
        merged.update({k: v for k, v in changes.items() if k not in PATIENT_SYSTEM_KEYS})
        merged["updatedAt"] = self.clock()
        updated = Patient.model_validate(merged)
        self._patients[index] = updated
        self._save_patients()
        return updated.model_copy(deep=True)

    def delete_patient(self, patient_id: str) -> bool:
        """Remove a patient together with their records and appointments."""
        remaining = [p for p in self._patients if p.id != patient_id]
        if len(remaining) == len(self._patients):
            return False
        # No await points between these edits
        self._patients = remaining
        self._records = [r for r in self._records if r.patient_id != patient_id]
        self._appointments = [a for a in self._appointments if a.patient_id != patient_id]
        self._save_patients()
        self._save_records()
        self._save_appointments()
        logger.info("Deleted patient %s with dependent records and appointments", patient_id)
        return True

    # ------------------------------------------------------------------
    # Medical records
    # ------------------------------------------------------------------

    def list_all_records(self) -> List[MedicalRecord]:
        return _copy(self._records)

    def list_records_for_patient(self, patient_id: str) -> List[MedicalRecord]:
        """Records of one patient, newest first."""
        records = [r for r in self._records if r.patient_id == patient_id]
        return _copy(sorted(records, key=lambda r: r.date, reverse=True))

    def create_medical_record(self, fields: RecordFields) -> MedicalRecord:
        data = _coerce(MedicalRecordCreate, fields)
        payload = {
            k: v for k, v in data.model_dump(by_alias=True, exclude_unset=True).items()
            if k not in RECORD_SYSTEM_KEYS
        }
        if data.patient_id is not None and self.get_patient(data.patient_id) is None:
            logger.warning("Medical record for unknown patient %s accepted", data.patient_id)
        payload.update(id=self.generate_record_id(), date=self.clock())
        record = MedicalRecord.model_validate(payload)
        self._records.append(record)
        self._save_records()
        return record.model_copy(deep=True)

    def delete_medical_record(self, record_id: str) -> bool:
        remaining = [r for r in self._records if r.id != record_id]
        if len(remaining) == len(self._records):
            return False
        self._records = remaining
        self._save_records()
        return True

    # ------------------------------------------------------------------
    # Appointments
    # ------------------------------------------------------------------

    def list_appointments_for_today(self) -> List[Appointment]:
        start, end = local_day_bounds(self.clock())
        return _copy(a for a in self._appointments if start <= a.date < end)
