"""
Error types shared across MediQR services.

"Not found" is never an exception: lookups return ``None`` and deletes return
``False``. These classes cover the failures that callers must surface.
"""


class MediQRError(Exception):
    """Base class for all MediQR errors."""


class StorageError(MediQRError):
    """The blob store could not read or write a key."""

    def __init__(self, key: str, message: str):
        super().__init__(f"{key}: {message}")
        self.key = key


class UpstreamError(MediQRError):
    """The QR code service was unreachable or answered with garbage."""


class QrPayloadError(MediQRError):
    """Decoded QR text does not identify a patient."""


class PatientLookupError(MediQRError):
    """A patient id does not resolve to a registered patient."""

    def __init__(self, patient_id: str):
        super().__init__(f'Patient with ID "{patient_id}" not found.')
        self.patient_id = patient_id


class PermissionDeniedError(MediQRError):
    """The logged-in role is not allowed to perform an action."""

    def __init__(self, role: str, permission: str):
        super().__init__(f"Role '{role}' lacks permission '{permission}'")
        self.role = role
        self.permission = permission
