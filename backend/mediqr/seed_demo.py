"""
Demo data seeder for MediQR.

Each collection is seeded the first time the store is opened (its key is
absent), so the front desk has something to click through immediately:

  Patients    : p001 John Doe, p002 Jane Smith, p003 Peter Jones (inactive)
  Records     : two for John Doe, one for Jane Smith
  Appointments: two today, one tomorrow, relative to the seeding moment
"""
from datetime import datetime, timedelta
from typing import List

from .models.appointment import Appointment
from .models.patient import Patient
from .models.record import MedicalRecord

SEED_DOCTOR_NAME = "Dr. Smith"


def seed_patients() -> List[Patient]:
    return [
        Patient(
            id="p001",
            name="John Doe",
            dob="1985-05-20",
            gender="Male",
            contact="123-456-7890",
            address="123 Main St, Anytown, USA",
            status="Active",
            created_at="2023-01-15T09:00:00Z",
            updated_at="2023-01-15T09:00:00Z",
            qr_code_data="patient_id=p001&name=JohnDoe",
            id_proof_type="Aadhaar",
            id_proof_number="1234 5678 9012",
            insurance_provider="MediCare Plus",
            insurance_policy_number="MCP987654321",
        ),
        Patient(
            id="p002",
            name="Jane Smith",
            dob="1992-08-12",
            gender="Female",
            contact="987-654-3210",
            address="456 Oak Ave, Anytown, USA",
            status="Active",
            created_at="2023-02-20T14:30:00Z",
            updated_at="2023-02-20T14:30:00Z",
            qr_code_data="patient_id=p002&name=JaneSmith",
            id_proof_type="Passport",
            id_proof_number="A1B23C45D",
            insurance_provider="Global Health",
            insurance_policy_number="GH123456789",
        ),
        Patient(
            id="p003",
            name="Peter Jones",
            dob="1978-11-03",
            gender="Male",
            contact="555-123-4567",
            address="789 Pine Ln, Anytown, USA",
            status="Inactive",
            created_at="2023-03-10T11:00:00Z",
            updated_at="2023-03-10T11:00:00Z",
            qr_code_data="patient_id=p003&name=PeterJones",
            id_proof_type="Driving License",
            id_proof_number="DL-XYZ-9876",
            insurance_provider="SafeGuard Insurance",
            insurance_policy_number="SGI-555-1234",
        ),
    ]


def seed_records() -> List[MedicalRecord]:
    return [
        MedicalRecord(
            id="rec001",
            patient_id="p001",
            date="2023-10-26T10:00:00Z",
            type="Consultation",
            title="Annual Check-up",
            details="Patient is in good health. Advised to continue regular exercise and balanced diet.",
            doctor_name=SEED_DOCTOR_NAME,
        ),
        MedicalRecord(
            id="rec002",
            patient_id="p001",
            date="2023-11-15T14:00:00Z",
            type="Lab Report",
            title="Blood Test Results",
            details="Cholesterol levels are slightly elevated. All other markers are within normal range.",
            doctor_name=SEED_DOCTOR_NAME,
        ),
        MedicalRecord(
            id="rec003",
            patient_id="p002",
            date="2023-12-01T09:30:00Z",
            type="Prescription",
            title="Allergy Medication",
            details="Prescribed Loratadine 10mg, once daily for seasonal allergies.",
            doctor_name=SEED_DOCTOR_NAME,
        ),
    ]


def seed_appointments(now: datetime) -> List[Appointment]:
    """Appointments for ``now``'s day and the day after."""
    tomorrow = now + timedelta(days=1)
    return [
        Appointment(id="app001", patient_id="p001", date=now,
                    title="Follow-up Consultation", doctor_name=SEED_DOCTOR_NAME),
        Appointment(id="app002", patient_id="p002", date=now,
                    title="Annual Physical Exam", doctor_name=SEED_DOCTOR_NAME),
        Appointment(id="app003", patient_id="p001", date=tomorrow,
                    title="Dental Check-up", doctor_name="Dr. Jones"),
    ]
