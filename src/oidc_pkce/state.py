"""Encoding of the OAuth ``state`` parameter.

The ``state`` value is the only thing the provider is guaranteed to echo
back unmodified, so it carries two things across the redirect:

1. ``nonce`` -- a random anti-CSRF value that must match the pending
   request held in the session store.
2. ``return_to`` -- where the application should resume after login.

Wire format: base64url (no padding) of a compact, versioned JSON record::

    {"v": 1, "n": "<nonce>", "r": "<return_to>"}

Unknown keys are ignored so that later versions can add fields without
breaking values already in flight. An unsupported version, or anything
that does not decode to exactly this shape, raises
:class:`~oidc_pkce.exceptions.InvalidStateFormatError`. Only a missing
``r`` is tolerated; it decodes to :data:`~oidc_pkce.models.DEFAULT_RETURN_TO`.

This is a serialisation, not a signature: integrity comes from comparing
the nonce with the session store, never from the encoding itself.
"""

from __future__ import annotations

import base64
import binascii
import json
import re
from typing import Any, Final, Optional

from oidc_pkce.crypto import CryptoProvider, default_crypto
from oidc_pkce.exceptions import InvalidStateFormatError
from oidc_pkce.models import DEFAULT_RETURN_TO, AuthState

STATE_VERSION: Final[int] = 1
NONCE_BYTES: Final[int] = 32

_B64URL_RE: Final = re.compile(r"^[A-Za-z0-9_-]+$")


def generate_nonce(crypto: Optional[CryptoProvider] = None) -> str:
    """Return 32 secure random bytes as 64 lowercase hex characters."""
    provider = crypto or default_crypto()
    return provider.random_bytes(NONCE_BYTES).hex()


def encode_state(nonce: str, return_to: str = DEFAULT_RETURN_TO) -> str:
    """Serialise *nonce* and *return_to* into an opaque, URL-safe string.

    Args:
        nonce: Anti-CSRF value to bind to the request.
        return_to: Destination to resume after the callback.

    Returns:
        The value to send as the ``state`` query parameter.
    """
    record = {"v": STATE_VERSION, "n": nonce, "r": return_to}
    raw = json.dumps(record, separators=(",", ":"), ensure_ascii=False)
    return base64.urlsafe_b64encode(raw.encode("utf-8")).rstrip(b"=").decode("ascii")


def decode_state(value: str) -> AuthState:
    """Recover the :class:`~oidc_pkce.models.AuthState` from a ``state`` value.

    Args:
        value: The ``state`` query parameter received on the callback.

    Returns:
        The decoded nonce and return destination.

    Raises:
        InvalidStateFormatError: If *value* is not a well-formed state record.
    """
    if not value or not _B64URL_RE.match(value):
        raise InvalidStateFormatError("state is not a base64url token")

    padded = value + "=" * (-len(value) % 4)
    try:
        record: Any = json.loads(base64.urlsafe_b64decode(padded).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError, RecursionError):
        raise InvalidStateFormatError("state cannot be decoded") from None

    if not isinstance(record, dict):
        raise InvalidStateFormatError("state has an unexpected format")

    version = record.get("v")
    if type(version) is not int:
        raise InvalidStateFormatError("state is missing its version tag")
    if version != STATE_VERSION:
        raise InvalidStateFormatError(f"unsupported state version {version}")

    nonce = record.get("n")
    if not isinstance(nonce, str) or not nonce:
        raise InvalidStateFormatError("state is missing its nonce")

    return_to = record.get("r", DEFAULT_RETURN_TO)
    if not isinstance(return_to, str):
        raise InvalidStateFormatError("state return_to must be a string")

    return AuthState(nonce=nonce, return_to=return_to)

