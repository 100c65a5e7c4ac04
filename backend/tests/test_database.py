import json
import re
from datetime import date, datetime, timedelta

import pytest
from pydantic import ValidationError

from conftest import IST, FixedClock, ann_fields
from mediqr.core.exceptions import StorageError
from mediqr.models.appointment import Appointment
from mediqr.models.patient import Gender, PatientStatus
from mediqr.services.database import ClinicDatabase, build_qr_code_data, local_day_bounds


class TestPatients:
    def test_first_patient_in_empty_store(self, empty_database):
        """The very first registration gets p001 and a derived QR payload."""
        patient = empty_database.create_patient(ann_fields())
        assert patient.id == "p001"
        assert patient.qr_code_data == "patient_id=p001&name=Ann"
        assert patient.gender == Gender.FEMALE
        assert patient.status == PatientStatus.ACTIVE
        assert patient.dob == date(1990, 1, 1)

    def test_new_id_is_fresh_and_well_formed(self, database):
        existing = {p.id for p in database.list_patients()}
        patient = database.create_patient(ann_fields())
        assert re.fullmatch(r"p\d{3,}", patient.id)
        assert patient.id not in existing
        assert patient.id == "p004"

    def test_timestamps_set_on_create(self, empty_database, clock):
        patient = empty_database.create_patient(ann_fields())
        assert patient.created_at == clock.now
        assert patient.updated_at == clock.now

    def test_qr_data_strips_all_whitespace(self, empty_database):
        patient = empty_database.create_patient(ann_fields(name=" Mary  Ann\tLee "))
        assert patient.qr_code_data == "patient_id=p001&name=MaryAnnLee"

    def test_create_then_get_round_trip(self, database):
        created = database.create_patient(ann_fields(insurance_provider="Global Health"))
        assert database.get_patient(created.id) == created

    def test_get_unknown_patient_is_none(self, database):
        assert database.get_patient("p999") is None

    def test_list_is_insertion_ordered_and_stable(self, database):
        first = database.list_patients()
        second = database.list_patients()
        assert [p.id for p in first] == ["p001", "p002", "p003"]
        assert first == second

    def test_returned_snapshot_is_a_copy(self, database):
        """Mutating what the database hands out must not touch the store."""
        snapshot = database.list_patients()
        snapshot[0].name = "Tampered"
        snapshot.pop()
        fetched = database.get_patient("p001")
        fetched.contact = "000"
        assert database.get_patient("p001").name == "John Doe"
        assert database.get_patient("p001").contact == "123-456-7890"
        assert len(database.list_patients()) == 3

    def test_update_preserves_identity(self, database, clock):
        before = database.get_patient("p001")
        clock.advance(hours=2)
        after = database.update_patient("p001", {"name": "X"})

        assert after.name == "X"
        assert after.updated_at == clock.now
        assert after.id == before.id
        assert after.created_at == before.created_at
        assert after.qr_code_data == before.qr_code_data == "patient_id=p001&name=JohnDoe"
        unchanged = before.model_dump(exclude={"name", "updated_at"})
        assert after.model_dump(exclude={"name", "updated_at"}) == unchanged

    def test_update_ignores_system_fields(self, database):
        before = database.get_patient("p002")
        after = database.update_patient(
            "p002",
            {"id": "p777", "createdAt": "2000-01-01T00:00:00Z", "qrCodeData": "forged"},
        )
        assert after.id == "p002"
        assert after.created_at == before.created_at
        assert after.qr_code_data == before.qr_code_data

    def test_update_unknown_patient_returns_none(self, database):
        assert database.update_patient("p404", {"name": "Nobody"}) is None

    def test_partial_input_is_stored_as_is(self, empty_database):
        """Missing form fields are not the database's problem."""
        patient = empty_database.create_patient({"name": "Only Name"})
        assert patient.id == "p001"
        assert patient.dob is None
        assert patient.gender is None

    def test_wrongly_typed_input_is_rejected(self, empty_database):
        with pytest.raises(ValidationError):
            empty_database.create_patient(ann_fields(gender="Robot"))
        assert empty_database.list_patients() == []


class TestIdAllocation:
    def test_deleting_highest_id_frees_it_for_reuse(self, database):
        created = database.create_patient(ann_fields())
        suffix = int(created.id[1:])
        assert database.delete_patient(created.id) is True
        again = database.create_patient(ann_fields(name="Bob"))
        assert int(again.id[1:]) == suffix

    def test_gap_below_max_is_not_filled(self, database):
        database.delete_patient("p002")
        assert database.create_patient(ann_fields()).id == "p004"

    def test_non_numeric_ids_are_ignored(self, store, clock):
        store.save("hospital_erp_patients", json.dumps([
            {"id": "legacy", "createdAt": "2023-01-01T00:00:00Z",
             "updatedAt": "2023-01-01T00:00:00Z", "qrCodeData": "patient_id=legacy&name="},
            {"id": "p041", "createdAt": "2023-01-01T00:00:00Z",
             "updatedAt": "2023-01-01T00:00:00Z", "qrCodeData": "patient_id=p041&name="},
        ]))
        db = ClinicDatabase(store, clock=clock)
        assert db.generate_patient_id() == "p042"

    def test_padding_grows_past_three_digits(self, empty_database):
        assert empty_database._next_id("p", ["p999"]) == "p1000"

    def test_record_ids(self, database):
        record = database.create_medical_record({"patientId": "p003", "title": "Note"})
        assert record.id == "rec004"


class TestCascadeDelete:
    def test_delete_removes_records_and_appointments(self, database):
        assert database.list_records_for_patient("p001")
        assert database.delete_patient("p001") is True

        assert database.get_patient("p001") is None
        assert database.list_records_for_patient("p001") == []
        assert all(r.patient_id != "p001" for r in database.list_all_records())
        assert all(a.patient_id != "p001" for a in database._appointments)
        # Other patients keep their data
        assert [r.id for r in database.list_all_records()] == ["rec003"]

    def test_delete_unknown_is_a_noop(self, database):
        before = database.list_all_records()
        assert database.delete_patient("p999") is False
        assert len(database.list_patients()) == 3
        assert database.list_all_records() == before

    def test_cascade_is_persisted(self, store, clock, database):
        database.delete_patient("p001")
        reopened = ClinicDatabase(store, clock=clock)
        assert [p.id for p in reopened.list_patients()] == ["p002", "p003"]
        assert [r.id for r in reopened.list_all_records()] == ["rec003"]
        assert [a.id for a in reopened._appointments] == ["app002"]


class TestMedicalRecords:
    def test_date_is_assigned_by_database(self, database, clock):
        record = database.create_medical_record({
            "patientId": "p001",
            "type": "Note",
            "title": "Backdated",
            "date": "1999-01-01T00:00:00Z",
        })
        assert record.date == clock.now

    def test_records_for_patient_newest_first(self, empty_database, clock):
        patient = empty_database.create_patient(ann_fields())
        older = empty_database.create_medical_record(
            {"patientId": patient.id, "type": "Consultation", "title": "First visit"}
        )
        clock.advance(days=3)
        newer = empty_database.create_medical_record(
            {"patientId": patient.id, "type": "Lab Report", "title": "Results"}
        )
        listed = empty_database.list_records_for_patient(patient.id)
        assert [r.id for r in listed] == [newer.id, older.id]

    def test_list_all_is_insertion_order(self, database):
        database.create_medical_record({"patientId": "p003", "title": "New"})
        assert [r.id for r in database.list_all_records()] == ["rec001", "rec002", "rec003", "rec004"]

    def test_unknown_patient_is_accepted(self, database):
        """Referential integrity is not enforced at write time."""
        record = database.create_medical_record({"patientId": "p999", "title": "Orphan"})
        assert record.patient_id == "p999"
        assert database.list_records_for_patient("p999")[0].id == record.id

    def test_delete_record(self, database):
        assert database.delete_medical_record("rec002") is True
        assert database.delete_medical_record("rec002") is False
        assert [r.id for r in database.list_records_for_patient("p001")] == ["rec001"]


class TestTodaysAppointments:
    def test_seeded_today_and_tomorrow(self, database):
        assert [a.id for a in database.list_appointments_for_today()] == ["app001", "app002"]

    def test_only_current_local_day(self, empty_database, clock):
        start, end = local_day_bounds(clock.now)
        empty_database._appointments = [
            Appointment(id="a1", patient_id="p001", date=start, title="Opening"),
            Appointment(id="a2", patient_id="p001", date=end - timedelta(microseconds=1), title="Late"),
            Appointment(id="a3", patient_id="p001", date=end, title="Tomorrow"),
            Appointment(id="a4", patient_id="p001", date=start - timedelta(seconds=1), title="Yesterday"),
        ]
        assert [a.id for a in empty_database.list_appointments_for_today()] == ["a1", "a2"]

    def test_day_follows_the_clock(self, database, clock):
        clock.advance(days=1)
        assert [a.id for a in database.list_appointments_for_today()] == ["app003"]

    def test_day_is_local_not_utc(self, empty_database, clock):
        """01:00 IST on the 16th is still the 15th in UTC."""
        clock.now = datetime(2024, 3, 16, 1, 0, tzinfo=IST)
        empty_database._appointments = [
            Appointment(id="utc-day", patient_id="p001", date="2024-03-15T20:00:00Z", title="x"),
            Appointment(id="prev", patient_id="p001", date="2024-03-15T18:00:00Z", title="y"),
        ]
        assert [a.id for a in empty_database.list_appointments_for_today()] == ["utc-day"]


class TestLoading:
    def test_first_run_seeds_and_persists(self, store, clock):
        ClinicDatabase(store, clock=clock)
        assert set(store.keys()) == {
            "hospital_erp_patients", "hospital_erp_records", "hospital_erp_appointments",
        }
        stored = json.loads(store.load("hospital_erp_patients"))
        assert stored[0]["id"] == "p001"
        assert stored[0]["qrCodeData"] == "patient_id=p001&name=JohnDoe"
        assert stored[0]["createdAt"].startswith("2023-01-15T09:00:00")
        assert "idProofType" in stored[0]

    def test_mutations_persist_across_restart(self, store, clock, database):
        created = database.create_patient(ann_fields())
        reopened = ClinicDatabase(store, clock=clock)
        assert reopened.get_patient(created.id) == created

    def test_corrupt_blob_starts_empty(self, store, clock):
        store.save("hospital_erp_patients", "{not json")
        db = ClinicDatabase(store, clock=clock)
        assert db.list_patients() == []
        assert db.list_all_records() == []
        assert db.list_appointments_for_today() == []

    def test_corrupt_appointments_only_drops_appointments(self, store, clock):
        store.save("hospital_erp_appointments", "nope")
        db = ClinicDatabase(store, clock=clock)
        assert len(db.list_patients()) == 3
        assert db.list_appointments_for_today() == []

    def test_failed_save_keeps_memory_authoritative(self, database, monkeypatch, caplog):
        def full_disk(key, raw):
            raise StorageError(key, "quota exceeded")

        monkeypatch.setattr(database.store, "save", full_disk)
        patient = database.create_patient(ann_fields())
        assert database.get_patient(patient.id) == patient
        assert database.delete_patient("p001") is True
        assert "Could not save" in caplog.text


def test_build_qr_code_data_without_name():
    assert build_qr_code_data("p010", None) == "patient_id=p010&name="


def test_local_day_bounds_span_one_day():
    start, end = local_day_bounds(datetime(2024, 3, 15, 23, 59, tzinfo=IST))
    assert start == datetime(2024, 3, 15, tzinfo=IST)
    assert end - start == timedelta(days=1)


def test_fixed_clock_is_aware():
    assert FixedClock(datetime(2024, 1, 1, tzinfo=IST))().tzinfo is not None


class TestStoredTimestampsWithoutOffset:
    """Hand-edited blobs may carry timestamps without a UTC offset."""

    def test_naive_record_dates_are_read_as_local(self, store, clock):
        store.save("hospital_erp_records", json.dumps([
            {"id": "rec001", "patientId": "p001", "date": "2023-05-01T11:00:00", "title": "Old"},
            {"id": "rec002", "patientId": "p001", "date": "2023-06-01T09:00:00", "title": "Older edit"},
        ]))
        db = ClinicDatabase(store, clock=clock)
        created = db.create_medical_record({"patientId": "p001", "title": "Today"})

        listed = db.list_records_for_patient("p001")
        assert [r.id for r in listed] == [created.id, "rec002", "rec001"]
        assert all(r.date.tzinfo is not None for r in listed)
        assert listed[-1].date == datetime(2023, 5, 1, 11, 0).astimezone()

    def test_naive_appointment_dates_are_read_as_local(self, store):
        clock = FixedClock(datetime(2024, 3, 15, 12, 0).astimezone())
        store.save("hospital_erp_appointments", json.dumps([
            {"id": "app001", "patientId": "p001", "date": "2024-03-15T11:00:00", "title": "Today"},
            {"id": "app002", "patientId": "p002", "date": "2024-03-16T11:00:00", "title": "Tomorrow"},
        ]))
        db = ClinicDatabase(store, clock=clock)
        assert [a.id for a in db.list_appointments_for_today()] == ["app001"]

    def test_naive_patient_timestamps_are_read_as_local(self, store, clock):
        store.save("hospital_erp_patients", json.dumps([
            {"id": "p001", "name": "Legacy", "createdAt": "2023-01-15T09:00:00",
             "updatedAt": "2023-01-15T09:00:00", "qrCodeData": "patient_id=p001&name=Legacy"},
        ]))
        patient = ClinicDatabase(store, clock=clock).get_patient("p001")
        assert patient.created_at.tzinfo is not None
        assert patient.updated_at == datetime(2023, 1, 15, 9, 0).astimezone()


class TestBlankFormFields:
    """Fields a form submits empty are stored as not given."""

    def test_create_with_blank_fields(self, empty_database):
        patient = empty_database.create_patient(
            ann_fields(dob="", gender="", status="", idProofType="")
        )
        assert patient.id == "p001"
        assert patient.name == "Ann"
        assert (patient.dob, patient.gender, patient.status, patient.id_proof_type) == (None, None, None, None)

    def test_update_with_blank_fields(self, database):
        updated = database.update_patient(
            "p001", {"dob": "", "gender": " ", "status": "", "idProofType": "", "contact": "555-0000"}
        )
        assert updated.contact == "555-0000"
        assert (updated.dob, updated.gender, updated.status, updated.id_proof_type) == (None, None, None, None)
        assert database.get_patient("p001") == updated

    def test_blank_record_type(self, database):
        record = database.create_medical_record({"patientId": "p001", "type": "", "title": "Untyped"})
        assert record.type is None


class TestIdSuffixParsing:
    def test_only_plain_digits_count(self, empty_database):
        ids = ["p1_0", "p 12", "p+7", "p005"]
        assert empty_database._next_id("p", ids) == "p006"

    def test_explicit_zero_padding_is_honoured(self, store, clock):
        db = ClinicDatabase(store, clock=clock, pad_width=0)
        assert db.pad_width == 0
        assert db.generate_patient_id() == "p4"

    def test_default_padding(self, database):
        assert database.pad_width == 3
