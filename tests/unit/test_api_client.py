"""
Unit tests for the API client and wire normalizers.

Tests validate:
- Envelope parsing ({state|success, message, data})
- HTTP status to error mapping
- Network failures and timeouts
- camelCase <-> snake_case translation and embedded references
"""

import asyncio
import logging
from unittest.mock import patch

import pytest
import requests

from podocare.core.exceptions import NotFoundError, TransportError, ValidationError
from podocare.domain.entities import Appointment, PageParams, Patient
from podocare.repositories.api.base import build_query_string
from podocare.repositories.api.client import parse_response
from podocare.repositories.api.normalizers import (
    camel_to_snake,
    normalize_record,
    snake_to_camel,
    split_references,
    to_wire,
    unwrap_page,
)
from tests.factories.http_factories import error, make_response, ok, patient_wire


@pytest.mark.unit
@pytest.mark.api
class TestParseResponse:
    """Envelope and status handling."""

    def test_success_envelope_returns_data(self):
        assert parse_response(ok({"id": "1"})) == {"id": "1"}

    def test_success_flag_envelope(self):
        response = make_response(200, {"success": True, "data": [1, 2]})
        assert parse_response(response) == [1, 2]

    def test_success_message_is_only_logged(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="podocare.repositories.api.client"):
            data = parse_response(ok({"id": "1"}, message="Paciente creado"))
        assert data == {"id": "1"}
        assert any(
            getattr(r, "context", {}).get("message") == "Paciente creado"
            for r in caplog.records
        )

    def test_bare_payload_is_returned_as_is(self):
        assert parse_response(make_response(200, [{"id": "1"}])) == [{"id": "1"}]

    def test_bare_payload_with_its_own_state_field(self):
        sale = {"id": "9", "state": "activa", "totalAmount": 40.0}
        assert parse_response(make_response(200, sale)) == sale

    @pytest.mark.parametrize("state", ["success", "SUCCESS", "ok"])
    def test_envelope_state_values(self, state):
        assert parse_response(make_response(200, {"state": state, "data": 1})) == 1
        with pytest.raises(TransportError, match="no data"):
            parse_response(make_response(200, {"state": state}))

    @pytest.mark.parametrize(
        "body",
        [
            {"state": "error", "message": "Fallo"},
            {"success": False, "message": "Fallo"},
            {"error": "Fallo"},
        ],
    )
    def test_error_envelope_with_2xx(self, body):
        with pytest.raises(TransportError, match="Fallo"):
            parse_response(make_response(200, body))

    def test_missing_data(self):
        with pytest.raises(TransportError, match="no data"):
            parse_response(make_response(200, {"state": "success"}))

    def test_empty_body(self):
        with pytest.raises(TransportError):
            parse_response(make_response(200))
        assert parse_response(make_response(204), allow_empty=True) is None

    def test_non_json_body(self):
        with pytest.raises(TransportError):
            parse_response(make_response(200, raw=b"<html>oops</html>"))

    @pytest.mark.parametrize(
        "status, error_class",
        [
            (404, NotFoundError),
            (400, ValidationError),
            (409, ValidationError),
            (422, ValidationError),
            (401, TransportError),
            (500, TransportError),
            (503, TransportError),
        ],
    )
    def test_status_mapping(self, status, error_class):
        with pytest.raises(error_class, match="Mensaje del servidor"):
            parse_response(error(status, "Mensaje del servidor"))

    def test_status_without_message(self):
        with pytest.raises(TransportError, match="status 502") as exc_info:
            parse_response(make_response(502, raw=b"Bad gateway"))
        assert exc_info.value.status_code == 502
        assert exc_info.value.is_unavailable

    def test_client_errors_are_not_unavailability(self):
        assert not TransportError("x", status_code=401).is_unavailable
        assert TransportError("x").is_unavailable


@pytest.mark.unit
@pytest.mark.api
class TestApiClientRequest:
    """ApiClient.request over a patched requests.Session."""

    def test_request_sends_json_with_auth_and_timeout(self, api_client):
        with patch("requests.Session.request", return_value=ok({"id": "1"})) as mock_request:
            data = asyncio.run(api_client.request("POST", "/patient", {"firstName": "Ana"}))

        assert data == {"id": "1"}
        args, kwargs = mock_request.call_args
        assert args == ("POST", "https://clinic.test/api/patient")
        assert kwargs["json"] == {"firstName": "Ana"}
        assert kwargs["timeout"] == 30.0
        assert api_client.session.headers["Authorization"] == "Bearer secret"

    def test_connection_error(self, api_client):
        with patch(
            "requests.Session.request", side_effect=requests.ConnectionError("refused")
        ):
            with pytest.raises(TransportError) as exc_info:
                asyncio.run(api_client.request("GET", "/patient"))
        assert exc_info.value.status_code is None
        assert exc_info.value.is_unavailable

    def test_timeout(self, api_client):
        with patch("requests.Session.request", side_effect=requests.Timeout()):
            with pytest.raises(TransportError, match="timed out"):
                asyncio.run(api_client.request("GET", "/patient"))

    def test_request_duration_is_logged(self, api_client, caplog):
        with caplog.at_level(logging.INFO, logger="podocare.performance"):
            with patch("requests.Session.request", return_value=ok([])):
                asyncio.run(api_client.request("GET", "/patient"))
        assert any("GET /patient completed" in r.getMessage() for r in caplog.records)


@pytest.mark.unit
@pytest.mark.api
class TestNormalizers:
    """Wire format translation."""

    def test_case_conversion(self):
        assert camel_to_snake("paternalSurname") == "paternal_surname"
        assert camel_to_snake("patientId") == "patient_id"
        assert snake_to_camel("remaining_amount") == "remainingAmount"
        assert to_wire({"patient_id": "1", "items": [{"product_id": "2"}]}) == {
            "patientId": "1",
            "items": [{"productId": "2"}],
        }

    def test_split_references(self):
        record = split_references(
            {"_id": 7, "patient_id": {"_id": "1", "first_name": "Ana"}, "worker_id": "2"}
        )
        assert record["id"] == "7"
        assert record["patient_id"] == "1"
        assert record["patient"] == {"id": "1", "first_name": "Ana"}
        assert record["worker_id"] == "2"

    def test_normalize_record_with_embedded_patient(self):
        appointment = normalize_record(
            Appointment,
            {
                "id": "9",
                "patientId": patient_wire("1"),
                "workerId": "2",
                "status": "scheduled",
                "date": "2024-02-02T10:00:00.000Z",
            },
        )
        assert appointment.patient_id == "1"
        assert isinstance(appointment.patient, Patient)
        assert appointment.patient.paternal_surname == "Quispe"

    def test_malformed_record(self):
        with pytest.raises(TransportError):
            normalize_record(Patient, ["not", "an", "object"])
        with pytest.raises(TransportError):
            normalize_record(Patient, {"id": "1", "firstName": ""})

    def test_build_query_string(self):
        assert (
            build_query_string({"page": 2, "patient_id": "7", "active": True, "search": None})
            == "?page=2&patientId=7&active=true"
        )
        assert build_query_string({"search": None}) == ""
        assert build_query_string({"search": "maría lópez"}) == "?search=mar%C3%ADa+l%C3%B3pez"

    @pytest.mark.parametrize(
        "payload",
        [
            {"data": [], "total": None, "page": 1, "limit": 15},
            {"data": [], "total": "many", "page": 1, "limit": 15},
            {"data": [], "total": 3, "page": "first", "limit": 15},
            {"data": [], "total": 3, "page": 1, "limit": "all"},
            {"data": [], "total": -1, "page": 1, "limit": 15},
        ],
    )
    def test_malformed_page_counts(self, payload):
        with pytest.raises(TransportError, match="Malformed page payload"):
            unwrap_page(Patient, payload, PageParams(limit=15))

    def test_page_without_total_counts_items(self):
        page = unwrap_page(Patient, {"data": [patient_wire("1")]}, PageParams(limit=15))
        assert page.total == 1
        assert page.limit == 15
