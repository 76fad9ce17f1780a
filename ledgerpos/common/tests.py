"""
Tests para errores estructurados, middleware de tenant y utilidades de fechas
"""

import json
from datetime import date, datetime
from uuid import uuid4

import pytest
from sqlalchemy.exc import DBAPIError, IntegrityError

from ledgerpos.common.dates import day_range, month_range
from ledgerpos.common.errors import (
    ErrorContext, ErrorType, classify_error, handle_server_error,
    not_found_error, to_http_response, validation_error
)


class DriverError(Exception):
    def __init__(self, message, pgcode=None):
        super().__init__(message)
        self.pgcode = pgcode


# ===== CLASIFICACIÓN =====

class TestClassifyError:
    """Tests para classify_error"""

    def test_rls_code(self):
        error = DBAPIError("INSERT ...", {}, DriverError("denied", pgcode="42501"))
        assert classify_error(error) == ErrorType.RLS_ERROR

    @pytest.mark.parametrize("code", ["23505", "23503", "23502"])
    def test_constraint_codes(self, code):
        error = IntegrityError("INSERT ...", {}, DriverError("duplicate", pgcode=code))
        assert classify_error(error) == ErrorType.CONSTRAINT_ERROR

    def test_integrity_error_without_code(self):
        error = IntegrityError("INSERT ...", {}, DriverError("UNIQUE constraint failed"))
        assert classify_error(error) == ErrorType.CONSTRAINT_ERROR

    @pytest.mark.parametrize("message,expected", [
        ("Plan limit reached", ErrorType.PLAN_LIMIT_ERROR),
        ("subscription expired", ErrorType.PLAN_LIMIT_ERROR),
        ("invalid input syntax", ErrorType.VALIDATION_ERROR),
        ("field is required", ErrorType.VALIDATION_ERROR),
        ("connection reset", ErrorType.UNKNOWN_ERROR),
    ])
    def test_message_keywords(self, message, expected):
        assert classify_error(Exception(message)) == expected


# ===== RESPUESTAS =====

class TestHandleServerError:
    """La respuesta nunca expone el mensaje crudo"""

    def test_unknown_error_uses_operation_message(self, caplog):
        error = RuntimeError("psycopg2 stack trace with secrets")

        response = handle_server_error(error, ErrorContext(operation="create_sale"), "Error al crear la venta")

        assert response.success is False
        assert response.error_type == ErrorType.UNKNOWN_ERROR
        assert response.error == "Error al crear la venta"
        assert "secrets" not in response.model_dump_json()
        assert "create_sale" in caplog.text

    def test_known_error_uses_type_message(self):
        error = IntegrityError("INSERT ...", {}, DriverError("duplicate key", pgcode="23505"))

        response = handle_server_error(error, ErrorContext(operation="create_sale"), "Error al crear la venta")

        assert response.error_type == ErrorType.CONSTRAINT_ERROR
        assert response.error_details.code == "23505"
        assert response.error_details.hint is not None
        assert "duplicate" not in response.error

    @pytest.mark.parametrize("response,status_code", [
        (validation_error("x"), 400),
        (not_found_error("x"), 404),
        (handle_server_error(Exception("plan limit"), ErrorContext(operation="op")), 402),
        (handle_server_error(DBAPIError("q", {}, DriverError("rls", "42501")), ErrorContext(operation="op")), 403),
        (handle_server_error(Exception("boom"), ErrorContext(operation="op")), 500),
    ])
    def test_http_status(self, response, status_code):
        http_response = to_http_response(response)

        assert http_response.status_code == status_code
        body = json.loads(http_response.body)
        assert body["success"] is False
        assert body["error_type"] == response.error_type.value


# ===== MIDDLEWARE =====

class TestTenantMiddleware:
    """Tests del header X-Company-ID"""

    def test_root_and_health_are_exempt(self, client):
        assert client.get("/").status_code == 200
        assert client.get("/health").status_code == 200

    def test_missing_header(self, client):
        response = client.get("/api/v1/financial-stats")
        assert response.status_code == 400
        assert response.json()["detail"] == "Falta el header X-Company-ID"

    def test_invalid_header(self, client):
        response = client.get("/api/v1/financial-stats", headers={"X-Company-ID": "no-es-uuid"})
        assert response.status_code == 400

    def test_tenant_mismatch_is_forbidden(self, client, auth_headers):
        headers = dict(auth_headers, **{"X-Company-ID": str(uuid4())})

        response = client.get("/api/v1/financial-stats", headers=headers)

        assert response.status_code == 403

    def test_uppercase_header_matches_token(self, client, auth_headers):
        headers = dict(auth_headers, **{"X-Company-ID": auth_headers["X-Company-ID"].upper()})

        response = client.get("/api/v1/financial-stats", headers=headers)

        assert response.status_code == 200


# ===== FECHAS =====

class TestDateRanges:

    def test_day_range(self):
        assert day_range(date(2024, 2, 29)) == (datetime(2024, 2, 29), datetime(2024, 3, 1))

    def test_month_range_december(self):
        assert month_range(date(2024, 12, 15)) == (datetime(2024, 12, 1), datetime(2025, 1, 1))
