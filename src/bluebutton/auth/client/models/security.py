"""Security-related models for the Blue Button authorization flow.

Contains the PKCE verifier/challenge pair and the per-attempt auth data
that must be held between the authorize redirect and the token exchange.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PKCEData:
    """PKCE verifier and its S256 code challenge (RFC 7636)."""

    verifier: str
    code_challenge: str


@dataclass(frozen=True)
class AuthData:
    """Secrets for one authorization attempt.

    ``code_challenge`` goes out in the authorize URL, ``state`` is
    round-tripped through the authorization server, and ``verifier`` is
    only ever sent in the token exchange request body. Create a fresh
    instance for every attempt and discard it once the exchange finishes.
    """

    code_challenge: str
    verifier: str
    state: str

    def __repr__(self) -> str:
        # Keep the verifier out of logs and tracebacks
        return (
            f"AuthData(code_challenge={self.code_challenge!r}, "
            f"verifier='***', state={self.state!r})"
        )
