"""Tests for bearer-token authentication and role checks."""

from datetime import timedelta

import pytest
from httpx import AsyncClient
from jose import jwt

from app.auth.jwt import ALGORITHM, create_access_token, decode_token
from app.auth.principal import Role
from app.config import settings


@pytest.mark.auth
class TestTokens:

    def test_round_trip_claims(self):
        payload = decode_token(create_access_token("acct-1", "carrier"))

        assert payload["sub"] == "acct-1"
        assert payload["role"] == "carrier"
        assert payload["type"] == "access"

    def test_expired_token_decodes_empty(self):
        token = create_access_token("acct-1", "carrier", expires_delta=timedelta(seconds=-1))
        assert decode_token(token) == {}

    def test_wrong_secret_decodes_empty(self):
        token = jwt.encode({"sub": "acct-1", "role": "carrier", "type": "access"}, "not-the-secret", ALGORITHM)
        assert decode_token(token) == {}


@pytest.mark.auth
@pytest.mark.api
class TestAuthenticatedEndpoints:
    """The bearer token decides who the caller is and which routes they may use."""

    async def test_missing_token(self, client: AsyncClient):
        response = await client.get("/api/accounts/me")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"

    async def test_garbage_token(self, client: AsyncClient):
        response = await client.get("/api/accounts/me", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    async def test_refresh_token_type_rejected(self, client: AsyncClient, make_carrier):
        carrier = await make_carrier()
        token = jwt.encode(
            {"sub": carrier.id, "role": "carrier", "type": "refresh"},
            settings.secret_key,
            ALGORITHM,
        )
        response = await client.get("/api/accounts/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    async def test_unknown_role_rejected(self, client: AsyncClient, make_carrier):
        carrier = await make_carrier()
        token = create_access_token(carrier.id, "admin")
        response = await client.get("/api/accounts/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    async def test_me_returns_own_profile(self, client: AsyncClient, make_carrier, auth_headers):
        carrier = await make_carrier()

        response = await client.get("/api/accounts/me", headers=auth_headers(carrier.id, Role.CARRIER))

        assert response.status_code == 200
        assert response.json()["id"] == carrier.id
        assert response.json()["fleet_size"] == 0

    async def test_token_for_deleted_account(self, client: AsyncClient, auth_headers):
        response = await client.get("/api/accounts/me", headers=auth_headers("gone", Role.SHIPPER))
        assert response.status_code == 401

    async def test_shipper_cannot_use_carrier_routes(self, client: AsyncClient, make_shipper, auth_headers):
        shipper = await make_shipper()

        response = await client.get("/api/carrier/loads", headers=auth_headers(shipper.id, Role.SHIPPER))

        assert response.status_code == 403
        assert response.json()["error"]["message"] == "Carrier access required"

    async def test_carrier_cannot_use_shipper_routes(self, client: AsyncClient, make_carrier, auth_headers):
        carrier = await make_carrier()

        response = await client.get("/api/shipper/loads", headers=auth_headers(carrier.id, Role.CARRIER))

        assert response.status_code == 403
        assert response.json()["error"]["message"] == "Shipper access required"
