from enum import Enum

from .base import CamelModel


class UserRole(str, Enum):
    DOCTOR = "doctor"
    RECEPTIONIST = "receptionist"


class User(CamelModel):
    id: str
    name: str
    role: UserRole
