"""PKCE (Proof Key for Code Exchange) generation for the Blue Button flow.

Implements RFC 7636 S256 parameter generation plus an independent state
value for CSRF protection. The random source and hash function are
injectable so tests can run against deterministic fakes.
"""

from __future__ import annotations

from typing import Callable

from bluebutton.auth.client.models.security import AuthData, PKCEData
from bluebutton.auth.client.primitives.random import (
    base64url_encode,
    secure_random_bytes,
    sha256,
)

# Number of random bytes behind each verifier and state value
RANDOM_BYTES_LENGTH = 32


class PKCEManager:
    """Generates PKCE verifier/challenge pairs and state values.

    This implementation follows RFC 7636 requirements:
    - Uses S256 code challenge method (SHA256 + base64url)
    - Draws verifiers from a cryptographically secure source
    - Draws state from a separate call so it is never derivable from the verifier
    """

    def __init__(
        self,
        random_bytes: Callable[[int], bytes] = secure_random_bytes,
        hash_function: Callable[[str], bytes] = sha256,
    ):
        """Initialize the PKCE manager.

        Args:
            random_bytes: Returns the requested number of random bytes
            hash_function: Digest used to derive the code challenge
        """
        self._random_bytes = random_bytes
        self._hash_function = hash_function

    def generate_pkce_data(self) -> PKCEData:
        """Generate a verifier and its matching S256 code challenge.

        Returns:
            PKCEData: verifier plus base64url(sha256(verifier))
        """
        verifier = base64url_encode(self._random_bytes(RANDOM_BYTES_LENGTH))
        return PKCEData(
            verifier=verifier,
            code_challenge=self.generate_code_challenge(verifier),
        )

    def generate_code_challenge(self, verifier: str) -> str:
        """Derive the S256 code challenge for ``verifier``."""
        return base64url_encode(self._hash_function(verifier))

    def generate_random_state(self) -> str:
        """Generate an anti-CSRF state value from fresh random bytes."""
        return base64url_encode(self._random_bytes(RANDOM_BYTES_LENGTH))

    def generate_auth_data(self) -> AuthData:
        """Generate the verifier, challenge and state for one attempt."""
        pkce_data = self.generate_pkce_data()
        return AuthData(
            code_challenge=pkce_data.code_challenge,
            verifier=pkce_data.verifier,
            state=self.generate_random_state(),
        )


_default_manager = PKCEManager()


def generate_auth_data() -> AuthData:
    """Generate auth data using the operating system CSPRNG."""
    return _default_manager.generate_auth_data()
