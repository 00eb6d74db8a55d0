"""Token request and response models for the Blue Button token endpoint.

Contains the immutable access token issued by the server and the request
value objects built fresh for each exchange or refresh call.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


def _now_ms() -> int:
    return int(time.time() * 1000)


class AuthorizationToken(BaseModel):
    """An issued or refreshed access token.

    Immutable: refreshing produces a new instance. ``expires_at`` is an
    absolute instant in milliseconds since the epoch and is always set,
    whether or not the server returned it.
    """

    model_config = ConfigDict(frozen=True)

    access_token: str
    expires_in: int | None = None
    expires_at: int
    token_type: str
    scope: list[str] = []
    refresh_token: str | None = None
    patient: str | None = None

    @field_validator("scope", mode="before")
    @classmethod
    def split_scope_string(cls, v: Any) -> Any:
        # RFC 6749 sends scope as a space-delimited string
        if isinstance(v, str):
            return v.split()
        if v is None:
            return []
        return v

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> AuthorizationToken:
        """Build a token from a token endpoint JSON body.

        A server-supplied ``expires_at`` takes precedence; otherwise it is
        computed as now plus ``expires_in`` seconds.
        """
        expires_in = data.get("expires_in")
        if expires_in is not None:
            expires_in = int(expires_in)

        if data.get("expires_at"):
            expires_at = int(data["expires_at"])
        else:
            # Without a server instant, expires_in is required
            expires_at = _now_ms() + int(data["expires_in"]) * 1000

        return cls(
            access_token=data["access_token"],
            expires_in=expires_in,
            expires_at=expires_at,
            token_type=data["token_type"],
            scope=data.get("scope"),
            refresh_token=data.get("refresh_token"),
            patient=data.get("patient"),
        )

    def get_token_data(self) -> dict[str, Any]:
        """Project the token back into its wire format."""
        return {
            "access_token": self.access_token,
            "expires_in": self.expires_in,
            "expires_at": self.expires_at,
            "token_type": self.token_type,
            "scope": list(self.scope),
            "refresh_token": self.refresh_token,
            "patient": self.patient,
        }

    def is_expired(self, buffer_seconds: float = 0.0) -> bool:
        """Check whether the token has expired, optionally ahead of time.

        Args:
            buffer_seconds: Treat the token as expired this many seconds early
        """
        return _now_ms() >= self.expires_at - buffer_seconds * 1000

    def __repr__(self) -> str:
        return (
            f"AuthorizationToken(token_type={self.token_type!r}, "
            f"expires_at={self.expires_at}, scope={self.scope!r}, "
            f"patient={self.patient!r})"
        )


@dataclass(frozen=True)
class TokenPostData:
    """Body of an authorization code exchange request (RFC 6749 Section 4.1.3).

    Includes the PKCE verifier (RFC 7636) and, for this server, the
    client secret and code challenge as well.
    """

    client_id: str
    client_secret: str
    grant_type: str
    redirect_uri: str
    code_verifier: str
    code_challenge: str
    code: str | None = None

    def to_form_data(self) -> dict[str, str]:
        """Convert to form data for an application/x-www-form-urlencoded body.

        ``code`` is left out entirely when absent.
        """
        data = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "grant_type": self.grant_type,
            "redirect_uri": self.redirect_uri,
            "code_verifier": self.code_verifier,
            "code_challenge": self.code_challenge,
        }

        if self.code:
            data["code"] = self.code

        return data


@dataclass(frozen=True)
class RefreshTokenRequest:
    """Refresh token request parameters (RFC 6749 Section 6).

    Sent as query parameters with HTTP Basic client authentication and an
    empty body.
    """

    client_id: str
    client_secret: str
    refresh_token: str
    grant_type: str = "refresh_token"

    def to_query_params(self) -> dict[str, str]:
        return {
            "grant_type": self.grant_type,
            "client_id": self.client_id,
            "refresh_token": self.refresh_token,
        }

    def basic_auth(self) -> tuple[str, str]:
        return self.client_id, self.client_secret
