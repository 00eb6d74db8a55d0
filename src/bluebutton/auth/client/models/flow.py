"""Authorization flow models.

Contains models for the authorize redirect and the callback parameters
the authorization server sends back.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote, urlencode

# Characters left literal in query values; both are legal in a query component
_QUERY_SAFE_CHARS = ":/"


@dataclass(frozen=True)
class AuthorizationRequest:
    """Authorization request parameters for the PKCE authorization code flow."""

    authorization_endpoint: str
    client_id: str
    redirect_uri: str
    state: str
    code_challenge: str
    code_challenge_method: str = "S256"

    def build_authorization_url(self) -> str:
        """Build the complete authorization URL with every value percent-encoded."""
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "state": self.state,
            "response_type": "code",
            "code_challenge_method": self.code_challenge_method,
            "code_challenge": self.code_challenge,
        }

        query = urlencode(params, safe=_QUERY_SAFE_CHARS, quote_via=quote)
        return f"{self.authorization_endpoint}?{query}"


@dataclass(frozen=True)
class CallbackParams:
    code: str | None = None
    state: str | None = None
    error: str | None = None
    error_description: str | None = None

    def is_error(self) -> bool:
        return self.error is not None
