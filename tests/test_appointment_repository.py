import pytest

from clinicbook.core.database import Database
from clinicbook.core.exceptions import ConflictError, NotFoundError
from clinicbook.models.appointment import Appointment, PatientVisitCounter
from clinicbook.repositories.appointment_repository import AppointmentRepository
from clinicbook.schemas.appointment import BookingRequest, ClinicalUpdate
from clinicbook.services.appointment_service import AppointmentService


@pytest.fixture
def database():
    database = Database("sqlite://")
    database.init_db()
    yield database
    database.drop_all()
    database.dispose()


@pytest.fixture
def session(database):
    session = database.session()
    yield session
    session.close()


def add_legacy_appointment(session, patient_id, visit_number):
    """An appointment stored before the patient had a visit counter."""
    session.add(Appointment(
        patient_id=patient_id,
        practitioner_id="doctor-1",
        visit_number=visit_number,
        prescribed_medications=[],
    ))
    session.commit()


class TestVisitNumbers:

    def test_counter_starts_at_one(self, session):
        repository = AppointmentRepository(session)

        assert repository.create("patient-1", "doctor-1").visit_number == 1
        assert repository.create("patient-1", "doctor-1").visit_number == 2
        assert repository.create("patient-2", "doctor-1").visit_number == 1

    def test_counter_seeded_from_existing_appointments(self, session):
        add_legacy_appointment(session, "patient-1", 1)
        add_legacy_appointment(session, "patient-1", 2)
        repository = AppointmentRepository(session)

        appointment = repository.create("patient-1", "doctor-1")
        session.commit()

        assert appointment.visit_number == 3
        assert session.get(PatientVisitCounter, "patient-1").last_visit_number == 3
        assert repository.count_by_patient("patient-1") == 3

    def test_duplicate_visit_number_is_a_conflict(self, session):
        add_legacy_appointment(session, "patient-1", 1)
        session.add(PatientVisitCounter(patient_id="patient-1", last_visit_number=0))
        session.commit()

        service = AppointmentService(session)
        with pytest.raises(ConflictError):
            service.book("patient-1", BookingRequest(practitioner_id="doctor-1"))

        assert AppointmentRepository(session).count_by_patient("patient-1") == 1


class TestMergeClinical:

    def test_unknown_and_intake_fields_are_ignored(self, session):
        repository = AppointmentRepository(session)
        appointment = repository.create("patient-1", "doctor-1", symptoms="cough")

        repository.merge_clinical(appointment, {"symptoms": "none", "patient_id": "x", "diagnoses": "flu"})

        assert appointment.symptoms == "cough"
        assert appointment.patient_id == "patient-1"
        assert appointment.diagnoses == "flu"

    def test_update_unknown_appointment(self, session):
        with pytest.raises(NotFoundError):
            AppointmentService(session).update_clinical("missing", ClinicalUpdate(diagnoses="flu"))


class TestQueries:

    def test_history_sorted_by_visit_number(self, session):
        add_legacy_appointment(session, "patient-1", 2)
        add_legacy_appointment(session, "patient-1", 1)

        history = AppointmentRepository(session).find_history_by_patient("patient-1")

        assert [a.visit_number for a in history] == [1, 2]

    def test_field_lookups(self, session):
        repository = AppointmentRepository(session)
        appointment = repository.create("patient-1", "doctor-1")
        repository.merge_clinical(appointment, {"vitals": "stable"})
        session.commit()

        assert repository.get_vitals(appointment.id) == {"vitals": "stable"}
        assert repository.get_diagnoses(appointment.id) == {"diagnoses": None}
        assert repository.get_vitals("missing") is None

    def test_empty_results(self, session):
        repository = AppointmentRepository(session)

        assert repository.find_by_patient("nobody") == []
        assert repository.find_by_practitioner("nobody") == []
        assert repository.count_by_patient("nobody") == 0
        with pytest.raises(NotFoundError):
            AppointmentService(session).history("nobody")


def test_concurrent_clinical_updates_do_not_lose_writes(tmp_path):
    database = Database(f"sqlite:///{tmp_path / 'clinicbook.db'}")
    database.init_db()

    setup = database.session()
    appointment_id = AppointmentRepository(setup).create("patient-1", "doctor-1").id
    setup.commit()
    setup.close()

    first, second = database.session(), database.session()
    try:
        first_service, second_service = AppointmentService(first), AppointmentService(second)

        # Both writers read version 1 before either writes; the session
        # identity map only holds loaded instances weakly
        loaded = (
            first_service.repository.find_by_id(appointment_id),
            second_service.repository.find_by_id(appointment_id),
        )
        assert [a.version for a in loaded] == [1, 1]

        updated = first_service.update_clinical(appointment_id, ClinicalUpdate(diagnoses="flu"))
        assert updated.version == 2

        with pytest.raises(ConflictError):
            second_service.update_clinical(appointment_id, ClinicalUpdate(diagnoses="malaria"))
    finally:
        first.close()
        second.close()

    check = database.session()
    assert check.get(Appointment, appointment_id).diagnoses == "flu"
    check.close()
    database.dispose()
