"""Token exchange and refresh against the Blue Button token endpoint.

Implements the RFC 6749 authorization code exchange with the PKCE
``code_verifier`` (RFC 7636) and the refresh token grant. Each operation
issues exactly one request and does not retry.
"""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Any

import httpx
from pydantic import ValidationError

from bluebutton.auth.client.models.errors import (
    AuthTokenResponseDataMissingError,
    AuthTokenResponseInvalidError,
    TokenError,
)
from bluebutton.auth.client.models.security import AuthData
from bluebutton.auth.client.models.tokens import (
    AuthorizationToken,
    RefreshTokenRequest,
    TokenPostData,
)
from bluebutton.auth.client.services.flow import validate_callback
from bluebutton.config import BlueButtonConfig
from bluebutton.constants import SDK_HEADERS

logger = logging.getLogger(__name__)


def build_token_post_data(
    config: BlueButtonConfig,
    auth_data: AuthData,
    code: str | None = None,
) -> TokenPostData:
    """Build the authorization code exchange body for one attempt."""
    return TokenPostData(
        client_id=config.client_id,
        client_secret=config.client_secret,
        code=code,
        grant_type="authorization_code",
        redirect_uri=config.callback_url,
        code_verifier=auth_data.verifier,
        code_challenge=auth_data.code_challenge,
    )


class OAuth2TokenManager:
    """Exchanges authorization codes and refreshes access tokens.

    Handles the token endpoint interactions including:
    - Authorization code to access token exchange (RFC 6749 Section 4.1.3)
    - Access token refresh (RFC 6749 Section 6)
    - PKCE code verification (RFC 7636)

    Transport failures, including non-2xx responses, surface as the
    ``httpx.HTTPError`` raised by the client. Status codes are not
    classified further; that policy belongs to the caller.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ):
        """Initialize the token manager.

        Args:
            http_client: Client to send requests with. One is created (and
                owned) when not given.
            timeout: HTTP request timeout in seconds for an owned client
        """
        self.timeout = timeout
        self._owns_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout)

    async def exchange_code(
        self,
        config: BlueButtonConfig,
        auth_data: AuthData,
        code: str | None = None,
        state: str | None = None,
        error: str | None = None,
    ) -> AuthorizationToken:
        """Exchange the callback's authorization code for an access token.

        Args:
            config: SDK configuration
            auth_data: Auth data generated for this attempt
            code: Authorization code from the callback
            state: State value from the callback
            error: Error code from the callback

        Returns:
            AuthorizationToken: Newly issued token

        Raises:
            AuthorizationCallbackError: If the callback parameters are rejected
            AuthTokenResponseDataMissingError: If the response has no body
            AuthTokenResponseInvalidError: If the body is not a token response
            httpx.HTTPError: On network failure or a non-2xx status
        """
        validate_callback(auth_data, code, state, error)

        post_data = build_token_post_data(config, auth_data, code)

        logger.debug(
            f"Exchanging authorization code at {config.token_url} "
            f"for client {post_data.client_id}"
        )

        response = await self._http_client.post(
            config.token_url,
            data=post_data.to_form_data(),
            headers=SDK_HEADERS,
        )

        token = self._parse_token_response(response)
        logger.info("Token exchange successful")
        return token

    async def refresh_token(
        self,
        existing_token: AuthorizationToken,
        config: BlueButtonConfig,
    ) -> AuthorizationToken:
        """Obtain a new access token using the refresh token of ``existing_token``.

        The existing token is left untouched; a new instance is returned.

        Raises:
            TokenError: If the existing token carries no refresh token
            AuthTokenResponseDataMissingError: If the response has no body
            AuthTokenResponseInvalidError: If the body is not a token response
            httpx.HTTPError: On network failure or a non-2xx status
        """
        if not existing_token.refresh_token:
            raise TokenError("Token has no refresh token to refresh with")

        refresh_request = RefreshTokenRequest(
            client_id=config.client_id,
            client_secret=config.client_secret,
            refresh_token=existing_token.refresh_token,
        )

        logger.debug(
            f"Refreshing access token at {config.token_url} "
            f"for client {refresh_request.client_id}"
        )

        response = await self._http_client.post(
            config.token_url,
            headers=SDK_HEADERS,
            auth=refresh_request.basic_auth(),
            params=refresh_request.to_query_params(),
        )

        token = self._parse_token_response(response)
        logger.info("Token refresh successful")
        return token

    def _parse_token_response(self, response: httpx.Response) -> AuthorizationToken:
        """Turn a token endpoint response into an AuthorizationToken.

        Raises:
            httpx.HTTPStatusError: If the response status is not 2xx
            AuthTokenResponseDataMissingError: If the body is empty
            AuthTokenResponseInvalidError: If the body cannot be decoded
        """
        response.raise_for_status()

        if not response.content:
            raise AuthTokenResponseDataMissingError()

        try:
            response_data: Any = response.json()
        except ValueError as e:
            raise AuthTokenResponseInvalidError(
                f"Token response is not valid JSON: {e}"
            ) from e

        if not response_data:
            raise AuthTokenResponseDataMissingError()
        if not isinstance(response_data, dict):
            raise AuthTokenResponseInvalidError("Token response is not a JSON object")

        try:
            return AuthorizationToken.from_response(response_data)
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            raise AuthTokenResponseInvalidError(
                f"Invalid token response format: {e}"
            ) from e

    async def close(self) -> None:
        """Close the HTTP client if this manager created it."""
        if self._owns_client:
            await self._http_client.aclose()

    async def __aenter__(self) -> OAuth2TokenManager:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()
