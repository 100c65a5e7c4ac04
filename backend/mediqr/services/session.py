"""
Front-desk session state.

Holds the logged-in user and a snapshot of patients, records and today's
appointments fetched through the async API. Views read the snapshot; the
workflow methods mutate through the API and refresh it.
"""
import asyncio
import itertools
import logging
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Union

from pydantic import ValidationError

from ..core.config import settings
from ..core.exceptions import PermissionDeniedError, StorageError
from ..core.permissions import (
    PERM_ADD_RECORDS,
    PERM_DELETE_PATIENTS,
    PERM_DELETE_RECORDS,
    PERM_EDIT_PATIENTS,
    has_permission,
    is_read_only,
)
from ..models.appointment import Appointment
from ..models.patient import Patient, PatientCreate
from ..models.record import MedicalRecord, MedicalRecordCreate
from ..models.user import User, UserRole
from .api import ClinicAPI
from .storage import BlobStore

logger = logging.getLogger(__name__)

# Fixed identity per role
ROLE_USERS = {
    UserRole.DOCTOR: {"id": "doc01", "name": "Dr. Smith"},
    UserRole.RECEPTIONIST: {"id": "rec01", "name": "Receptionist"},
}

NOTICE_SUCCESS = "success"
NOTICE_ERROR = "error"

REFRESH_FAILED_MESSAGE = "Failed to load application data."
PERMISSION_DENIED_MESSAGE = "You don't have permission to perform this action."


@dataclass
class Notice:
    """A dismissible message for the user (toast)."""
    id: int
    message: str
    kind: str = NOTICE_SUCCESS


class AppSession:
    """Session state machine: logged out until ``login``/``bootstrap``."""

    def __init__(self, api: ClinicAPI, store: BlobStore, user_key: Optional[str] = None):
        self.api = api
        self.store = store
        self.user_key = user_key or settings.SESSION_USER_KEY

        self.user: Optional[User] = None
        self.patients: List[Patient] = []
        self.records: List[MedicalRecord] = []
        self.appointments: List[Appointment] = []
        self.loading = False
        self.notices: List[Notice] = []
        self._notice_ids = itertools.count(1)

    @property
    def is_logged_in(self) -> bool:
        return self.user is not None

    # ------------------------------------------------------------------
    # Notices
    # ------------------------------------------------------------------

    def notify(self, message: str, kind: str = NOTICE_SUCCESS) -> Notice:
        notice = Notice(id=next(self._notice_ids), message=message, kind=kind)
        self.notices.append(notice)
        return notice

    def dismiss(self, notice_id: int) -> None:
        self.notices = [n for n in self.notices if n.id != notice_id]

    # ------------------------------------------------------------------
    # Roles
    # ------------------------------------------------------------------

    @property
    def is_read_only(self) -> bool:
        return is_read_only(self.user.role if self.user else None)

    def can(self, permission: str) -> bool:
        return has_permission(self.user.role if self.user else None, permission)

    def require(self, permission: str) -> None:
        """Raise PermissionDeniedError (and tell the user) when not allowed."""
        if not self.can(permission):
            role = self.user.role.value if self.user else "anonymous"
            self.notify(PERMISSION_DENIED_MESSAGE, NOTICE_ERROR)
            raise PermissionDeniedError(role, permission)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def bootstrap(self) -> bool:
        """Resume a stored session, if there is a readable one."""
        try:
            raw = self.store.load(self.user_key)
        except StorageError as exc:
            logger.warning("Could not read stored session: %s", exc)
            return False
        if raw is None:
            return False
        try:
            user = User.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Ignoring unreadable stored session: %s", exc)
            return False

        self.user = user
        logger.info("Resumed session for %s (%s)", user.name, user.role.value)
        await self.refresh()
        return True

    async def login(self, role: Union[UserRole, str]) -> User:
        role = UserRole(role)
        user = User(role=role, **ROLE_USERS[role])
        self.user = user
        try:
            self.store.save(self.user_key, user.model_dump_json(by_alias=True))
        except StorageError as exc:
            logger.warning("Could not persist session: %s", exc)
        logger.info("Logged in as %s", user.name)
        self.notify(f"Welcome, {user.name}!")
        await self.refresh()
        return user

    def logout(self) -> None:
        self.user = None
        try:
            self.store.remove(self.user_key)
        except StorageError as exc:
            logger.warning("Could not clear stored session: %s", exc)
        self.patients, self.records, self.appointments = [], [], []
        logger.info("Logged out")
        self.notify("You have been logged out.")

    async def refresh(self) -> bool:
        """Reload all three collections; keep the old snapshot on any failure."""
        if self.user is None:
            return False
        user = self.user
        self.loading = True
        try:
            patients, records, appointments = await asyncio.gather(
                self.api.get_patients(),
                self.api.get_all_records(),
                self.api.get_appointments_for_today(),
            )
        except Exception as exc:
            logger.error("Failed to refresh data: %s", exc)
            self.notify(REFRESH_FAILED_MESSAGE, NOTICE_ERROR)
            return False
        finally:
            self.loading = False

        if self.user is not user:
            # Logged out (or switched user) while the calls were in flight
            return False
        self.patients, self.records, self.appointments = patients, records, appointments
        return True

    # ------------------------------------------------------------------
    # Workflows
    # ------------------------------------------------------------------

    async def save_patient(
        self,
        fields: Union[PatientCreate, Mapping[str, Any]],
        patient_id: Optional[str] = None,
    ) -> Optional[Patient]:
        """Register a new patient, or update ``patient_id`` when given."""
        self.require(PERM_EDIT_PATIENTS)
        try:
            if patient_id is None:
                patient = await self.api.add_patient(fields)
                message = "Patient added successfully!"
            else:
                patient = await self.api.update_patient(patient_id, fields)
                if patient is None:
                    self.notify("Patient not found.", NOTICE_ERROR)
                    return None
                message = "Patient details updated successfully!"
        except Exception as exc:
            logger.error("Failed to save patient: %s", exc)
            self.notify("Failed to save patient. Please try again.", NOTICE_ERROR)
            return None
        self.notify(message)
        await self.refresh()
        return patient

    async def remove_patient(self, patient_id: str) -> bool:
        self.require(PERM_DELETE_PATIENTS)
        patient = next((p for p in self.patients if p.id == patient_id), None)
        try:
            deleted = await self.api.delete_patient(patient_id)
        except Exception as exc:
            logger.error("Failed to delete patient: %s", exc)
            self.notify("Failed to delete patient.", NOTICE_ERROR)
            return False
        if not deleted:
            self.notify("Patient not found.", NOTICE_ERROR)
            return False
        await self.refresh()
        name = patient.name if patient else patient_id
        self.notify(f"Patient {name} deleted successfully.")
        return True

    async def add_record(
        self,
        patient_id: str,
        fields: Union[MedicalRecordCreate, Mapping[str, Any]],
    ) -> Optional[MedicalRecord]:
        """Attach a record to a patient, signed with the current user's name."""
        self.require(PERM_ADD_RECORDS)
        if isinstance(fields, MedicalRecordCreate):
            data = fields.model_dump(by_alias=True, exclude_unset=True)
        else:
            data = dict(fields)
        data.pop("patient_id", None)
        data.pop("doctor_name", None)
        data.update(patientId=patient_id, doctorName=self.user.name)
        try:
            record = await self.api.add_medical_record(data)
        except Exception as exc:
            logger.error("Failed to add record: %s", exc)
            self.notify("Failed to add record.", NOTICE_ERROR)
            return None
        await self.refresh()
        self.notify("Medical record added successfully.")
        return record

    async def remove_record(self, record_id: str) -> bool:
        self.require(PERM_DELETE_RECORDS)
        try:
            deleted = await self.api.delete_medical_record(record_id)
        except Exception as exc:
            logger.error("Failed to delete record: %s", exc)
            self.notify("Failed to delete record.", NOTICE_ERROR)
            return False
        if not deleted:
            self.notify("Failed to delete record.", NOTICE_ERROR)
            return False
        await self.refresh()
        self.notify("Medical record deleted successfully.")
        return True
