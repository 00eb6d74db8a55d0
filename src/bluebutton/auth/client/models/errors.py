"""Exception hierarchy for Blue Button SDK errors.

Provides specific exception types for each failure mode of the
authorization flow so callers can react precisely. Transport failures
are not part of this hierarchy: ``httpx.HTTPError`` subclasses reach the
caller unchanged.
"""

from __future__ import annotations


class BlueButtonError(Exception):
    """Base exception for all Blue Button SDK errors."""

    pass


class ConfigError(BlueButtonError):
    """Raised when the SDK configuration cannot be built."""

    pass


class ConfigFileError(ConfigError):
    """Raised when a configuration file cannot be read or parsed."""

    def __init__(self, path: str):
        super().__init__(f"Failed to load config file at: {path}")
        self.path = path


class MissingConfigValueError(ConfigError):
    """Raised when a required configuration value is absent."""

    def __init__(self, key: str):
        super().__init__(f"{key} is required")
        self.key = key


class OAuth2Error(BlueButtonError):
    """Base exception for all OAuth2 related errors."""

    pass


class AuthorizationCallbackError(OAuth2Error):
    """Raised when the authorization server callback cannot be accepted.

    Raised before any network call is made, so a fresh attempt with new
    auth data is always possible.
    """

    pass


class CallbackAccessDeniedError(AuthorizationCallbackError):
    """Raised when the user or server denied access (``error=access_denied``)."""

    def __init__(self, message: str = "Callback request indicates access was denied"):
        super().__init__(message)


class CallbackAccessCodeMissingError(AuthorizationCallbackError):
    """Raised when the callback carries no authorization code."""

    def __init__(self, message: str = "Callback request is missing the access code"):
        super().__init__(message)


class StateValidationError(AuthorizationCallbackError):
    """Raised when OAuth state parameter validation fails.

    This indicates either a missing state parameter or a state mismatch,
    which could indicate a CSRF attack or authorization server issue.
    """

    pass


class CallbackStateMissingError(StateValidationError):
    """Raised when the callback carries no state parameter."""

    def __init__(self, message: str = "Callback request is missing the state parameter"):
        super().__init__(message)


class CallbackStateMismatchError(StateValidationError):
    """Raised when the callback state differs from the one sent."""

    def __init__(
        self,
        message: str = "Callback state does not match the state sent in the request",
    ):
        super().__init__(message)


class TokenError(OAuth2Error):
    """Raised when token operations fail."""

    pass


class AuthTokenResponseDataMissingError(TokenError):
    """Raised when the token endpoint answers without a body."""

    def __init__(self, message: str = "Token endpoint response has no data"):
        super().__init__(message)


class AuthTokenResponseInvalidError(TokenError):
    """Raised when the token endpoint body is not a valid token response."""

    pass
