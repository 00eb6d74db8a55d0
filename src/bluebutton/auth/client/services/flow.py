"""Authorization redirect and callback handling.

Builds the URL the end user's browser must visit and validates the
parameters the authorization server redirects back with. Nothing here
touches the network.
"""

from __future__ import annotations

import logging
import secrets
from urllib.parse import parse_qs, urlparse

from bluebutton.auth.client.models.errors import (
    AuthorizationCallbackError,
    CallbackAccessCodeMissingError,
    CallbackAccessDeniedError,
    CallbackStateMismatchError,
    CallbackStateMissingError,
)
from bluebutton.auth.client.models.flow import AuthorizationRequest, CallbackParams
from bluebutton.auth.client.models.security import AuthData
from bluebutton.config import BlueButtonConfig

logger = logging.getLogger(__name__)

ACCESS_DENIED = "access_denied"


def generate_authorize_url(config: BlueButtonConfig, auth_data: AuthData) -> str:
    """Build the authorization URL for one attempt.

    Args:
        config: SDK configuration supplying endpoint, client id and callback URL
        auth_data: PKCE and state values generated for this attempt

    Returns:
        URL for the user to visit to grant access
    """
    auth_request = AuthorizationRequest(
        authorization_endpoint=config.authorization_url,
        client_id=config.client_id,
        redirect_uri=config.callback_url,
        state=auth_data.state,
        code_challenge=auth_data.code_challenge,
    )

    logger.debug(f"Generated authorization URL for client {config.client_id}")

    return auth_request.build_authorization_url()


def validate_callback(
    auth_data: AuthData,
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
) -> None:
    """Validate the authorization server's callback parameters.

    Checks run in a fixed order and the first failure wins: access denied,
    missing code, missing state, state mismatch.

    Args:
        auth_data: Auth data generated for this attempt
        code: Authorization code from the callback
        state: State value from the callback
        error: Error code from the callback

    Raises:
        CallbackAccessDeniedError: If the server reported ``access_denied``
        CallbackAccessCodeMissingError: If no code was returned
        CallbackStateMissingError: If no state was returned
        CallbackStateMismatchError: If the state differs from ``auth_data.state``
    """
    if error == ACCESS_DENIED:
        raise CallbackAccessDeniedError()

    if not code:
        raise CallbackAccessCodeMissingError()

    if not state:
        raise CallbackStateMissingError()

    if not secrets.compare_digest(auth_data.state.encode(), state.encode()):
        raise CallbackStateMismatchError()


def parse_callback_url(callback_url: str) -> CallbackParams:
    """Extract the OAuth callback parameters from a redirect URL.

    Args:
        callback_url: Full callback URL received from the authorization server

    Returns:
        CallbackParams: Parsed callback parameters, missing ones as None

    Raises:
        AuthorizationCallbackError: If the URL cannot be parsed
    """
    try:
        query_params = parse_qs(urlparse(callback_url).query)
    except ValueError as e:
        raise AuthorizationCallbackError(f"Failed to parse callback URL: {e}") from e

    def get_single_param(key: str) -> str | None:
        values = query_params.get(key, [])
        return values[0] if values else None

    return CallbackParams(
        code=get_single_param("code"),
        state=get_single_param("state"),
        error=get_single_param("error"),
        error_description=get_single_param("error_description"),
    )
