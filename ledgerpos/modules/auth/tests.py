"""
Tests para la validación de tokens y resolución de empresa
"""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from uuid import uuid4

import jwt
import pytest
from fastapi import HTTPException

from ledgerpos.core.config import settings
from ledgerpos.modules.auth.dependencies import decode_token, resolve_tenant


def encode(claims):
    return jwt.encode(claims, settings.APP_SECRET_STRING, algorithm=settings.ALGORITHM)


def fake_request(headers=None):
    return SimpleNamespace(headers=headers or {}, state=SimpleNamespace())


class TestDecodeToken:

    def test_valid_token(self):
        user_id = uuid4()
        payload = decode_token(encode({"sub": str(user_id), "user_role": "owner"}))
        assert payload["sub"] == str(user_id)

    @pytest.mark.parametrize("claims", [
        {"user_role": "owner"},
        {"sub": "no-es-uuid"},
        {"sub": str(uuid4()), "exp": datetime.now(timezone.utc) - timedelta(minutes=1)},
    ])
    def test_invalid_tokens(self, claims):
        with pytest.raises(HTTPException) as exc:
            decode_token(encode(claims))
        assert exc.value.status_code == 401

    def test_wrong_signature(self):
        token = jwt.encode({"sub": str(uuid4())}, "otra-clave-de-firma-distinta-para-los-tests", algorithm=settings.ALGORITHM)
        with pytest.raises(HTTPException):
            decode_token(token)


class TestResolveTenant:

    def test_header_is_used_when_claim_is_missing(self):
        tenant_id = uuid4()
        assert resolve_tenant({}, fake_request({"X-Company-ID": str(tenant_id)})) == tenant_id

    def test_claim_and_header_must_match(self):
        with pytest.raises(HTTPException) as exc:
            resolve_tenant({"tenant_id": str(uuid4())}, fake_request({"X-Company-ID": str(uuid4())}))
        assert exc.value.status_code == 403

    def test_no_tenant(self):
        assert resolve_tenant({}, fake_request()) is None

    def test_header_case_does_not_matter(self):
        tenant_id = uuid4()
        request = fake_request({"X-Company-ID": str(tenant_id).upper()})

        assert resolve_tenant({"tenant_id": str(tenant_id)}, request) == tenant_id

    def test_invalid_header_with_claim(self):
        with pytest.raises(HTTPException) as exc:
            resolve_tenant({"tenant_id": str(uuid4())}, fake_request({"X-Company-ID": "no-es-uuid"}))
        assert exc.value.status_code == 400
