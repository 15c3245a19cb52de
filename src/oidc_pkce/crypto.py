"""Random and hashing primitives used by the PKCE generator and state codec.

:class:`CryptoProvider` is the seam between the flow logic and the
platform's cryptography. The default :class:`SystemCryptoProvider` draws
bytes from :mod:`secrets` (the OS CSPRNG) and hashes with :mod:`hashlib`.
Tests inject deterministic providers through the same interface.

This module performs **no logging**; random values are secrets.
"""

from __future__ import annotations

import base64
import hashlib
import secrets
from abc import ABC, abstractmethod

from oidc_pkce.exceptions import CryptoUnavailableError


def base64url_encode(data: bytes) -> str:
    """Base64url-encode *data* with all ``=`` padding stripped."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


class CryptoProvider(ABC):
    """Source of secure random bytes and SHA-256 digests."""

    @abstractmethod
    def random_bytes(self, length: int) -> bytes:
        """Return *length* cryptographically secure random bytes.

        Raises:
            CryptoUnavailableError: If no secure source is available.
        """
        ...

    @abstractmethod
    def sha256(self, data: bytes) -> bytes:
        """Return the SHA-256 digest of *data*."""
        ...


class SystemCryptoProvider(CryptoProvider):
    """Default provider backed by :func:`secrets.token_bytes` and :func:`hashlib.sha256`."""

    def random_bytes(self, length: int) -> bytes:
        try:
            return secrets.token_bytes(length)
        except (NotImplementedError, OSError) as exc:
            raise CryptoUnavailableError(
                f"Secure random source unavailable: {exc}"
            ) from exc

    def sha256(self, data: bytes) -> bytes:
        try:
            return hashlib.sha256(data).digest()
        except ValueError as exc:
            # Raised by FIPS-restricted builds that disable the algorithm.
            raise CryptoUnavailableError(f"SHA-256 unavailable: {exc}") from exc


_default_provider: SystemCryptoProvider | None = None


def default_crypto() -> SystemCryptoProvider:
    """Return the shared :class:`SystemCryptoProvider` instance (it holds no state)."""
    global _default_provider
    if _default_provider is None:
        _default_provider = SystemCryptoProvider()
    return _default_provider
