import pytest
from datetime import timedelta
from fastapi.testclient import TestClient

from clinicbook.core.security import (
    Capability, Principal, PrincipalKind, TokenManager,
    get_password_hash, has_capability, verify_password
)

from .conftest import auth_headers


class TestPasswords:

    def test_hash_is_salted(self):
        first = get_password_hash("Secret123")
        second = get_password_hash("Secret123")

        assert first != second
        assert verify_password("Secret123", first)
        assert verify_password("Secret123", second)
        assert not verify_password("secret123", first)


class TestTokenManager:

    def test_round_trip(self):
        tokens = TokenManager("secret")
        token = tokens.create_access_token("abc123", "Ama", PrincipalKind.PATIENT)

        payload = tokens.verify_token(token)

        assert payload.id == "abc123"
        assert payload.name == "Ama"
        assert payload.role == PrincipalKind.PATIENT
        assert payload.exp - payload.iat == 24 * 60 * 60

    def test_expired_token(self):
        tokens = TokenManager("secret")
        token = tokens.create_access_token(
            "abc123", "Ama", PrincipalKind.PATIENT, expires_delta=timedelta(seconds=-1)
        )
        assert tokens.verify_token(token) is None

    def test_wrong_secret(self):
        token = TokenManager("secret").create_access_token("abc123", "Ama", PrincipalKind.DOCTOR)
        assert TokenManager("other").verify_token(token) is None

    def test_unknown_role_claim(self):
        from jose import jwt

        token = jwt.encode({"id": "abc123", "role": "admin"}, "secret", algorithm="HS256")
        assert TokenManager("secret").verify_token(token) is None

    def test_garbage(self):
        assert TokenManager("secret").verify_token("not.a.token") is None


class TestCapabilities:

    @pytest.mark.parametrize("kind, capability, allowed", [
        (PrincipalKind.PATIENT, Capability.BOOK_APPOINTMENT, True),
        (PrincipalKind.PATIENT, Capability.WRITE_CLINICAL_FIELDS, False),
        (PrincipalKind.DOCTOR, Capability.WRITE_CLINICAL_FIELDS, True),
        (PrincipalKind.NURSE, Capability.WRITE_CLINICAL_FIELDS, False),
        (PrincipalKind.NURSE, Capability.VIEW_PRACTITIONER_APPOINTMENTS, True),
        (PrincipalKind.DOCTOR, Capability.BOOK_APPOINTMENT, False),
    ])
    def test_role_capabilities(self, kind, capability, allowed):
        assert has_capability(kind, capability) is allowed
        assert Principal(id="x", kind=kind).can(capability) is allowed

    def test_practitioner_kinds(self):
        assert Principal(id="x", kind=PrincipalKind.NURSE).is_practitioner
        assert not Principal(id="x", kind=PrincipalKind.PATIENT).is_practitioner


class TestPractitionerGate:

    def test_forged_doctor_claim_without_record(self, app, client):
        token = app.state.tokens.create_access_token("ghost", "Ghost", PrincipalKind.DOCTOR)

        response = client.get("/api/v1/medical/doctors", headers=auth_headers(token))
        assert response.status_code == 403

    def test_role_comes_from_stored_record(self, app, client, nurse, patient):
        booking = client.post(
            "/api/v1/appointments",
            json={"practitionerId": nurse["practitioner"]["id"]},
            headers=auth_headers(patient["token"])
        )
        # A nurse id presented with a doctor claim is still a nurse
        token = app.state.tokens.create_access_token(
            nurse["practitioner"]["id"], "Efua", PrincipalKind.DOCTOR
        )

        response = client.put(
            f"/api/v1/appointments/{booking.json()['appointmentId']}",
            json={"diagnoses": "flu"},
            headers=auth_headers(token)
        )
        assert response.status_code == 403


class TestApplication:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert "X-Process-Time" in response.headers

    def test_request_id_is_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-42"})
        assert response.headers["X-Request-ID"] == "req-42"

    def test_info(self, client):
        response = client.get("/api/v1/info")
        assert response.json()["endpoints"]["appointments"] == "/api/v1/appointments"

    def test_unknown_route(self, client):
        response = client.get("/api/v1/nothing-here")
        assert response.status_code == 404
        assert response.json() == {"error": "Not Found"}

    def test_unexpected_error_is_generic_500(self, app):
        from clinicbook.api.v1.appointments import get_appointment_service

        def broken_service():
            raise RuntimeError("database went away")

        app.dependency_overrides[get_appointment_service] = broken_service

        with TestClient(app, raise_server_exceptions=False) as client:
            response = client.get("/api/v1/appointments")

        assert response.status_code == 500
        assert response.json() == {
            "error": "Internal Server Error",
            "message": "An unexpected error occurred"
        }
