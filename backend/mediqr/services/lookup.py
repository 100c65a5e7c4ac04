"""
Patient lookup by typed id or scanned QR code.
"""
import asyncio
import logging
from typing import Iterable

from ..core.exceptions import PatientLookupError
from ..models.patient import Patient
from .api import ClinicAPI
from .qr_client import QrCodeClient, extract_patient_id

logger = logging.getLogger(__name__)


class PatientLookupService:
    """Resolve QR payloads, QR images and typed ids to patients.

    Every failure (undecodable image, payload without ``patient_id``,
    unknown id) is raised as a ``MediQRError`` subclass whose message is
    fit to show at the front desk.
    """

    def __init__(self, api: ClinicAPI, qr_client: QrCodeClient):
        self.api = api
        self.qr_client = qr_client

    async def by_id(self, patient_id: str, known_patients: Iterable[Patient] = ()) -> Patient:
        """Check the cached snapshot first, then ask the API."""
        patient_id = patient_id.strip()
        for patient in known_patients:
            if patient.id == patient_id:
                return patient
        patient = await self.api.get_patient(patient_id)
        if patient is None:
            raise PatientLookupError(patient_id)
        return patient

    async def from_payload(self, text: str) -> Patient:
        """Resolve decoded QR text such as ``patient_id=p001&name=JohnDoe``."""
        patient_id = extract_patient_id(text)
        return await self.by_id(patient_id)

    async def from_image(
        self,
        image_data: bytes,
        filename: str = "qr.png",
        content_type: str = "image/png",
    ) -> Patient:
        """Decode an uploaded QR image and resolve the patient it names."""
        text = await asyncio.to_thread(self.qr_client.decode, image_data, filename, content_type)
        logger.debug("Decoded QR payload %r", text)
        return await self.from_payload(text)
