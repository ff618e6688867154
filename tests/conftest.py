import os

# Set testing environment before the application is imported
os.environ["TESTING"] = "1"

import pytest
from fastapi.testclient import TestClient

from clinicbook.core.config import Settings
from clinicbook.core.database import get_redis
from clinicbook.main import create_app


class FakeRedis:
    """Dict-backed stand-in for the few Redis commands the app uses."""

    def __init__(self):
        self.data = {}

    def setex(self, key, time, value):
        self.data[key] = str(value)
        return True

    def get(self, key):
        return self.data.get(key)

    def incr(self, key):
        self.data[key] = str(int(self.data.get(key, 0)) + 1)
        return int(self.data[key])


PATIENT_DATA = {
    "name": "Ama Mensah",
    "dob": "1990-04-12",
    "gender": "female",
    "email": "ama@example.com",
    "phoneNumber": "0241234567",
    "address": "12 Ring Road",
    "town": "Accra",
    "country": "Ghana",
    "education": "Tertiary",
    "occupation": "Teacher",
    "religion": "Christian",
    "maritalStatus": "married",
    "preexistingConditions": "asthma",
    "currentMedications": "salbutamol",
    "password": "Secret123",
}

DOCTOR_DATA = {
    "name": "Dr. Kofi Owusu",
    "email": "kofi@clinic.example.com",
    "phoneNumber": "0209876543",
    "role": "doctor",
    "specializations": ["general practice", "cardiology"],
    "licenseCertificate": "MDC/12345",
    "password": "DoctorPass1",
}

NURSE_DATA = {
    "name": "Efua Asante",
    "email": "efua@clinic.example.com",
    "phoneNumber": "0201112223",
    "role": "nurse",
    "specializations": ["triage"],
    "licenseCertificate": "NMC/555",
    "password": "NursePass1",
}


@pytest.fixture
def make_app():
    """Build an app on a fresh in-memory database."""
    def factory(**overrides):
        values = {
            "TESTING": True,
            "TEST_DATABASE_URL": "sqlite://",
            "SECRET_KEY": "test-secret-key",
        }
        values.update(overrides)
        app = create_app(Settings(**values))
        fake_redis = FakeRedis()
        app.dependency_overrides[get_redis] = lambda: fake_redis
        return app

    return factory


@pytest.fixture
def app(make_app):
    return make_app()


@pytest.fixture
def client(app):
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client


@pytest.fixture
def db_session(app, client):
    session = app.state.db.session()
    yield session
    session.close()


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


def signup_patient(client, **overrides):
    data = {**PATIENT_DATA, **overrides}
    response = client.post("/api/v1/users/signup", json=data)
    assert response.status_code == 201, response.text
    return response.json()


def signup_practitioner(client, base=None, **overrides):
    data = {**(base or DOCTOR_DATA), **overrides}
    response = client.post("/api/v1/medical/signup", json=data)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def patient(client):
    return signup_patient(client)


@pytest.fixture
def doctor(client):
    return signup_practitioner(client, DOCTOR_DATA)


@pytest.fixture
def nurse(client):
    return signup_practitioner(client, NURSE_DATA)
