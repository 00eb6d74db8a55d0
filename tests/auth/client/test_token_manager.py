"""Tests for token exchange and refresh.

High-impact tests covering the token endpoint protocol:
- Successful authorization code to token exchange
- Callback validation before any request is sent
- Empty and malformed response bodies
- Token refresh with Basic auth and query parameters
- Transport errors passing through unchanged
"""

import time
from unittest.mock import AsyncMock

import httpx
import pytest

from bluebutton.auth.client.models.errors import (
    AuthTokenResponseDataMissingError,
    AuthTokenResponseInvalidError,
    CallbackAccessDeniedError,
    CallbackStateMismatchError,
    TokenError,
)
from bluebutton.auth.client.models.security import AuthData
from bluebutton.auth.client.models.tokens import AuthorizationToken
from bluebutton.auth.client.services.tokens import (
    OAuth2TokenManager,
    build_token_post_data,
)
from bluebutton.config import BlueButtonConfig
from bluebutton.constants import SDK_HEADERS

TOKEN_URL = "https://sandbox.example.gov/v2/o/token/"

TOKEN_BODY = {
    "access_token": "a",
    "expires_in": 60,
    "token_type": "Bearer",
    "scope": ["profile"],
    "refresh_token": "r",
    "patient": "p1",
}


def make_response(status_code: int = 200, **kwargs) -> httpx.Response:
    return httpx.Response(
        status_code, request=httpx.Request("POST", TOKEN_URL), **kwargs
    )


@pytest.fixture
def config() -> BlueButtonConfig:
    return BlueButtonConfig(
        base_url="https://sandbox.example.gov",
        version="2",
        client_id="foo",
        client_secret="bar",
        callback_url="https://cb.example/",
    )


@pytest.fixture
def auth_data() -> AuthData:
    return AuthData(code_challenge="C1", verifier="V1", state="S1")


class TestBuildTokenPostData:
    def test_contains_pkce_and_client_fields(self, config, auth_data):
        # Act
        post_data = build_token_post_data(config, auth_data, "abc")

        # Assert
        assert post_data.to_form_data() == {
            "client_id": "foo",
            "client_secret": "bar",
            "code": "abc",
            "grant_type": "authorization_code",
            "redirect_uri": "https://cb.example/",
            "code_verifier": "V1",
            "code_challenge": "C1",
        }

    def test_code_omitted_when_absent(self, config, auth_data):
        # Act
        form_data = build_token_post_data(config, auth_data).to_form_data()

        # Assert
        assert "code" not in form_data
        assert form_data["grant_type"] == "authorization_code"


class TestTokenExchange:
    """Test authorization code to access token exchange."""

    def setup_method(self):
        # Arrange
        self.http_client = AsyncMock()
        self.token_manager = OAuth2TokenManager(http_client=self.http_client)

    async def test_successful_token_exchange(self, config, auth_data):
        # Arrange
        self.http_client.post.return_value = make_response(json=TOKEN_BODY)

        # Act
        token = await self.token_manager.exchange_code(config, auth_data, "abc", "S1")

        # Assert
        assert isinstance(token, AuthorizationToken)
        assert token.access_token == "a"
        assert token.expires_in == 60
        assert token.token_type == "Bearer"
        assert token.scope == ["profile"]
        assert token.refresh_token == "r"
        assert token.patient == "p1"

        # Verify HTTP request was made correctly
        self.http_client.post.assert_awaited_once()
        call_args = self.http_client.post.call_args
        assert call_args[0][0] == TOKEN_URL
        assert call_args[1]["headers"] == SDK_HEADERS

        form_data = call_args[1]["data"]
        assert form_data["grant_type"] == "authorization_code"
        assert form_data["code"] == "abc"
        assert form_data["code_verifier"] == "V1"
        assert form_data["code_challenge"] == "C1"
        assert form_data["client_secret"] == "bar"

    async def test_invalid_callback_sends_no_request(self, config, auth_data):
        # Act & Assert
        with pytest.raises(CallbackAccessDeniedError):
            await self.token_manager.exchange_code(
                config, auth_data, None, None, "access_denied"
            )
        with pytest.raises(CallbackStateMismatchError):
            await self.token_manager.exchange_code(config, auth_data, "abc", "WRONG")

        self.http_client.post.assert_not_awaited()

    async def test_empty_body_raises_data_missing(self, config, auth_data):
        # Arrange
        self.http_client.post.return_value = make_response(content=b"")

        # Act & Assert
        with pytest.raises(AuthTokenResponseDataMissingError):
            await self.token_manager.exchange_code(config, auth_data, "abc", "S1")

    async def test_empty_json_object_raises_data_missing(self, config, auth_data):
        # Arrange
        self.http_client.post.return_value = make_response(json={})

        # Act & Assert
        with pytest.raises(AuthTokenResponseDataMissingError):
            await self.token_manager.exchange_code(config, auth_data, "abc", "S1")

    async def test_non_json_body_raises_invalid(self, config, auth_data):
        # Arrange
        self.http_client.post.return_value = make_response(content=b"<html></html>")

        # Act & Assert
        with pytest.raises(AuthTokenResponseInvalidError):
            await self.token_manager.exchange_code(config, auth_data, "abc", "S1")

    async def test_body_missing_required_fields_raises_invalid(self, config, auth_data):
        # Arrange
        self.http_client.post.return_value = make_response(
            json={"token_type": "Bearer"}
        )

        # Act & Assert
        with pytest.raises(AuthTokenResponseInvalidError):
            await self.token_manager.exchange_code(config, auth_data, "abc", "S1")

    async def test_error_status_propagates_transport_error(self, config, auth_data):
        # Arrange
        self.http_client.post.return_value = make_response(
            400, json={"error": "invalid_grant"}
        )

        # Act & Assert
        with pytest.raises(httpx.HTTPStatusError) as exc_info:
            await self.token_manager.exchange_code(config, auth_data, "abc", "S1")
        assert exc_info.value.response.status_code == 400

    async def test_network_error_propagates_unchanged(self, config, auth_data):
        # Arrange
        network_error = httpx.ConnectError("connection refused")
        self.http_client.post.side_effect = network_error

        # Act & Assert
        with pytest.raises(httpx.ConnectError) as exc_info:
            await self.token_manager.exchange_code(config, auth_data, "abc", "S1")
        assert exc_info.value is network_error


class TestTokenRefresh:
    """Test access token refresh."""

    def setup_method(self):
        # Arrange
        self.http_client = AsyncMock()
        self.token_manager = OAuth2TokenManager(http_client=self.http_client)
        self.existing_token = AuthorizationToken.from_response(
            {**TOKEN_BODY, "access_token": "old", "refresh_token": "old-refresh"}
        )

    async def test_successful_refresh_returns_new_token(self, config):
        # Arrange
        self.http_client.post.return_value = make_response(
            json={**TOKEN_BODY, "access_token": "new", "refresh_token": "new-refresh"}
        )

        # Act
        new_token = await self.token_manager.refresh_token(self.existing_token, config)

        # Assert
        assert new_token is not self.existing_token
        assert new_token.access_token == "new"
        assert new_token.refresh_token == "new-refresh"
        assert self.existing_token.access_token == "old"
        assert self.existing_token.refresh_token == "old-refresh"

        # Verify request shape: empty body, Basic auth, query params
        call_args = self.http_client.post.call_args
        assert call_args[0][0] == TOKEN_URL
        assert call_args[1]["auth"] == ("foo", "bar")
        assert call_args[1]["params"] == {
            "grant_type": "refresh_token",
            "client_id": "foo",
            "refresh_token": "old-refresh",
        }
        assert call_args[1]["headers"] == SDK_HEADERS
        assert "data" not in call_args[1]
        assert "json" not in call_args[1]

    async def test_refresh_empty_body_raises_data_missing(self, config):
        # Arrange
        self.http_client.post.return_value = make_response(content=b"")

        # Act & Assert
        with pytest.raises(AuthTokenResponseDataMissingError):
            await self.token_manager.refresh_token(self.existing_token, config)

    async def test_refresh_without_refresh_token_sends_no_request(self, config):
        # Arrange
        token = self.existing_token.model_copy(update={"refresh_token": None})

        # Act & Assert
        with pytest.raises(TokenError):
            await self.token_manager.refresh_token(token, config)
        self.http_client.post.assert_not_awaited()

    async def test_refresh_error_status_propagates(self, config):
        # Arrange
        self.http_client.post.return_value = make_response(503)

        # Act & Assert
        with pytest.raises(httpx.HTTPStatusError):
            await self.token_manager.refresh_token(self.existing_token, config)


class TestWireFormat:
    """Exercise the real httpx request encoding through a mock transport."""

    async def test_exchange_and_refresh_requests_on_the_wire(self, config, auth_data):
        # Arrange
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json=TOKEN_BODY)

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        token_manager = OAuth2TokenManager(http_client=http_client)

        # Act
        token = await token_manager.exchange_code(config, auth_data, "abc", "S1")
        await token_manager.refresh_token(token, config)
        await http_client.aclose()

        # Assert - exchange is a form-encoded POST
        exchange, refresh = requests
        assert exchange.method == "POST"
        assert exchange.url == TOKEN_URL
        assert exchange.headers["content-type"] == "application/x-www-form-urlencoded"
        assert exchange.headers["x-bluebutton-sdk"] == "python"
        assert b"code_verifier=V1" in exchange.content
        assert b"grant_type=authorization_code" in exchange.content

        # Assert - refresh carries Basic auth and query params with no body
        assert refresh.method == "POST"
        assert refresh.url.params["grant_type"] == "refresh_token"
        assert refresh.url.params["client_id"] == "foo"
        assert refresh.url.params["refresh_token"] == "r"
        assert refresh.headers["authorization"] == "Basic Zm9vOmJhcg=="
        assert refresh.content == b""

    async def test_owned_client_is_closed(self):
        # Arrange
        token_manager = OAuth2TokenManager(timeout=5.0)

        # Act
        async with token_manager:
            pass

        # Assert
        assert token_manager._http_client.is_closed


class TestTokenExpiry:
    async def test_expires_at_computed_from_exchange_time(self, config, auth_data):
        # Arrange
        http_client = AsyncMock()
        http_client.post.return_value = make_response(
            json={**TOKEN_BODY, "expires_in": 3600}
        )
        token_manager = OAuth2TokenManager(http_client=http_client)

        # Act
        before = int(time.time() * 1000)
        token = await token_manager.exchange_code(config, auth_data, "abc", "S1")
        after = int(time.time() * 1000)

        # Assert
        assert before + 3_600_000 <= token.expires_at <= after + 3_600_000
