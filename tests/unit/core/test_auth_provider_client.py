"""Unit tests for the auth provider REST client."""

import json
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from src.dailymenu.core.exceptions import AuthProviderError, InvalidCredentialsError
from src.dailymenu.core.services import AuthProviderClient

USER_PAYLOAD = {
    "id": "auth-42",
    "email": "Ana@Example.com",
    "phone": "",
    "user_metadata": {"full_name": "Ana López", "phone": "+34 600"},
}


def token_payload(**overrides):
    payload = {
        "access_token": "new-access",
        "token_type": "bearer",
        "expires_in": 3600,
        "refresh_token": "new-refresh",
        "user": USER_PAYLOAD,
    }
    payload.update(overrides)
    return payload


def make_client(auth_config, handler) -> AuthProviderClient:
    return AuthProviderClient(auth_config, transport=httpx.MockTransport(handler))


class TestGetUser:
    @pytest.mark.asyncio
    async def test_valid_token_returns_identity(self, auth_config):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["authorization"] = request.headers["Authorization"]
            seen["apikey"] = request.headers["apikey"]
            return httpx.Response(200, json=USER_PAYLOAD)

        identity = await make_client(auth_config, handler).get_user("token-1")

        assert seen == {
            "path": "/auth/v1/user",
            "authorization": "Bearer token-1",
            "apikey": "anon-key",
        }
        assert identity.external_id == "auth-42"
        assert identity.email == "ana@example.com"
        assert identity.display_name == "Ana López"
        assert identity.phone == "+34 600"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [400, 401, 403, 422])
    async def test_rejected_token_returns_none(self, auth_config, status_code):
        client = make_client(
            auth_config, lambda request: httpx.Response(status_code, json={"msg": "bad jwt"})
        )

        assert await client.get_user("expired") is None

    @pytest.mark.asyncio
    async def test_server_error_raises(self, auth_config):
        client = make_client(auth_config, lambda request: httpx.Response(500))

        with pytest.raises(AuthProviderError) as exc_info:
            await client.get_user("token")

        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_network_error_raises(self, auth_config):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(AuthProviderError):
            await make_client(auth_config, handler).get_user("token")


class TestTokenGrants:
    @pytest.mark.asyncio
    async def test_password_grant(self, auth_config):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["grant_type"] = request.url.params["grant_type"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=token_payload())

        session = await make_client(auth_config, handler).sign_in_with_password(
            "ana@example.com", "s3cret"
        )

        assert seen == {
            "grant_type": "password",
            "body": {"email": "ana@example.com", "password": "s3cret"},
        }
        assert session.access_token == "new-access"
        assert session.refresh_token == "new-refresh"
        assert session.identity.external_id == "auth-42"
        assert session.expires_at == session.issued_at + 3600

    @pytest.mark.asyncio
    async def test_wrong_password_raises_invalid_credentials(self, auth_config):
        client = make_client(
            auth_config,
            lambda request: httpx.Response(
                400,
                json={"error": "invalid_grant", "error_description": "Invalid login credentials"},
            ),
        )

        with pytest.raises(InvalidCredentialsError, match="Invalid login credentials"):
            await client.sign_in_with_password("ana@example.com", "nope")

    @pytest.mark.asyncio
    async def test_pkce_exchange_sends_code_and_verifier(self, auth_config):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["grant_type"] = request.url.params["grant_type"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=token_payload())

        await make_client(auth_config, handler).exchange_code("code-1", "verifier-1")

        assert seen == {
            "grant_type": "pkce",
            "body": {"auth_code": "code-1", "code_verifier": "verifier-1"},
        }

    @pytest.mark.asyncio
    async def test_refresh_grant(self, auth_config):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["grant_type"] == "refresh_token"
            assert json.loads(request.content) == {"refresh_token": "old-refresh"}
            return httpx.Response(200, json=token_payload(refresh_token="rotated"))

        session = await make_client(auth_config, handler).refresh_session("old-refresh")

        assert session.refresh_token == "rotated"

    @pytest.mark.asyncio
    async def test_provider_outage_is_not_invalid_credentials(self, auth_config):
        client = make_client(auth_config, lambda request: httpx.Response(503, text="down"))

        with pytest.raises(AuthProviderError) as exc_info:
            await client.refresh_session("refresh")

        assert not isinstance(exc_info.value, InvalidCredentialsError)
        assert exc_info.value.status_code == 503


class TestSignOut:
    @pytest.mark.asyncio
    async def test_sign_out(self, auth_config):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.method, request.url.path, request.headers["Authorization"]))
            return httpx.Response(204)

        await make_client(auth_config, handler).sign_out("token-1")

        assert seen == [("POST", "/auth/v1/logout", "Bearer token-1")]

    @pytest.mark.asyncio
    async def test_already_invalid_token_counts_as_signed_out(self, auth_config):
        client = make_client(auth_config, lambda request: httpx.Response(401))

        await client.sign_out("stale")

    @pytest.mark.asyncio
    async def test_server_error_raises(self, auth_config):
        client = make_client(auth_config, lambda request: httpx.Response(502))

        with pytest.raises(AuthProviderError):
            await client.sign_out("token")


class TestAuthorizeUrl:
    def test_authorize_url(self, auth_config):
        url = AuthProviderClient(auth_config).authorize_url("google", "challenge-1")

        parsed = urlparse(url)
        params = parse_qs(parsed.query)
        assert f"{parsed.scheme}://{parsed.netloc}" == "http://provider.test"
        assert parsed.path == "/auth/v1/authorize"
        assert params["provider"] == ["google"]
        assert params["redirect_to"] == ["http://testserver/auth/callback"]
        assert params["code_challenge"] == ["challenge-1"]
        assert params["code_challenge_method"] == ["s256"]
