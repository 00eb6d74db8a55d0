"""Cryptographic primitives for PKCE and state generation.

Thin wrappers over the standard library CSPRNG, base64 and SHA-256 so the
PKCE manager can take them as injectable capabilities.
"""

from __future__ import annotations

import base64
import hashlib
import secrets


def secure_random_bytes(length: int) -> bytes:
    """Return ``length`` bytes from the operating system CSPRNG.

    There is no fallback generator: if the OS cannot supply entropy the
    underlying error propagates to the caller.
    """
    return secrets.token_bytes(length)


def base64url_encode(data: bytes) -> str:
    """Base64url-encode ``data`` without ``=`` padding (RFC 7636 Appendix A)."""
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def sha256(value: str) -> bytes:
    """SHA-256 digest of the UTF-8 encoding of ``value``."""
    return hashlib.sha256(value.encode("utf-8")).digest()
