"""
Front-desk view helpers: headline stats, recent activity, patient search and
record ordering over session snapshots.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence

from ..core.config import settings
from ..models.appointment import Appointment
from ..models.patient import Patient, PatientStatus
from ..models.record import MedicalRecord

UNKNOWN_PATIENT_NAME = "Unknown Patient"


class RecordSort(str, Enum):
    DATE_DESC = "date-desc"
    DATE_ASC = "date-asc"
    TYPE_ASC = "type-asc"


@dataclass
class DashboardStats:
    total_patients: int
    active_patients: int
    total_records: int
    appointments_today: int


@dataclass
class ActivityItem:
    record: MedicalRecord
    patient_name: str


def dashboard_stats(
    patients: Sequence[Patient],
    records: Sequence[MedicalRecord],
    appointments: Sequence[Appointment],
) -> DashboardStats:
    return DashboardStats(
        total_patients=len(patients),
        active_patients=sum(1 for p in patients if p.status == PatientStatus.ACTIVE),
        total_records=len(records),
        appointments_today=len(appointments),
    )


def recent_activity(
    records: Iterable[MedicalRecord],
    patients: Iterable[Patient],
    limit: Optional[int] = None,
) -> List[ActivityItem]:
    """Newest records first, each labelled with its patient's name."""
    limit = settings.RECENT_ACTIVITY_LIMIT if limit is None else limit
    names = {p.id: p.name for p in patients}
    newest = sorted(records, key=lambda r: r.date, reverse=True)[:limit]
    return [
        ActivityItem(record=r, patient_name=names.get(r.patient_id) or UNKNOWN_PATIENT_NAME)
        for r in newest
    ]


def search_patients(patients: Iterable[Patient], term: str) -> List[Patient]:
    """Case-insensitive substring match on name or id; blank term matches all."""
    needle = (term or "").lower()
    if not needle:
        return list(patients)
    return [
        p for p in patients
        if needle in (p.name or "").lower() or needle in p.id.lower()
    ]


def _type_key(record: MedicalRecord) -> str:
    return record.type.value if record.type is not None else ""


def sort_records(records: Iterable[MedicalRecord], option=RecordSort.DATE_DESC) -> List[MedicalRecord]:
    """Order records for the patient detail view.

    ``type-asc`` groups by record type and keeps newest first inside a type.
    Unknown options fall back to newest first.
    """
    try:
        option = RecordSort(option)
    except ValueError:
        option = RecordSort.DATE_DESC

    if option == RecordSort.DATE_ASC:
        return sorted(records, key=lambda r: r.date)
    if option == RecordSort.TYPE_ASC:
        newest_first = sorted(records, key=lambda r: r.date, reverse=True)
        return sorted(newest_first, key=_type_key)
    return sorted(records, key=lambda r: r.date, reverse=True)
