"""
Role-based permission matrix for MediQR.
Doctors have full write access; every other role is read-only.
"""
from typing import Optional, Union

from ..models.user import UserRole

# Permission constants
PERM_VIEW_PATIENTS = "view_patients"
PERM_EDIT_PATIENTS = "edit_patients"
PERM_DELETE_PATIENTS = "delete_patients"
PERM_ADD_RECORDS = "add_records"
PERM_DELETE_RECORDS = "delete_records"
PERM_SCAN_QR = "scan_qr"

# Role permission matrix
ROLE_PERMISSIONS: dict = {
    UserRole.DOCTOR.value: {
        PERM_VIEW_PATIENTS,
        PERM_EDIT_PATIENTS,
        PERM_DELETE_PATIENTS,
        PERM_ADD_RECORDS,
        PERM_DELETE_RECORDS,
        PERM_SCAN_QR,
    },
    UserRole.RECEPTIONIST.value: {
        PERM_VIEW_PATIENTS,
        PERM_SCAN_QR,
    },
}

WRITE_PERMISSIONS = frozenset({
    PERM_EDIT_PATIENTS,
    PERM_DELETE_PATIENTS,
    PERM_ADD_RECORDS,
    PERM_DELETE_RECORDS,
})


def _permissions_for(role: Union[UserRole, str, None]) -> set:
    if isinstance(role, UserRole):
        role = role.value
    return ROLE_PERMISSIONS.get(role, set())


def has_permission(role: Union[UserRole, str, None], permission: str) -> bool:
    """Check if a role has a specific permission."""
    return permission in _permissions_for(role)


def is_read_only(role: Optional[Union[UserRole, str]]) -> bool:
    """A role is read-only when it holds none of the write permissions."""
    return not (_permissions_for(role) & WRITE_PERMISSIONS)
