"""PKCE (Proof Key for Code Exchange) helpers.

:rfc:`7636` protects public clients: a random *code verifier* is kept by
the client and only its *code challenge* travels with the authorization
request. The token endpoint later checks that the verifier presented with
the code hashes to that challenge.

Only the ``S256`` method is implemented. The transform must be
bit-reproducible for the provider to accept it::

    challenge = base64url_nopad(SHA256(ascii(verifier)))
"""

from __future__ import annotations

from typing import Final, Optional

from oidc_pkce.crypto import CryptoProvider, base64url_encode, default_crypto
from oidc_pkce.models import PkceParameters

VERIFIER_BYTES: Final[int] = 32
"""Random bytes behind each verifier (43 characters once encoded)."""


def code_challenge_s256(
    verifier: str, crypto: Optional[CryptoProvider] = None
) -> str:
    """Compute the S256 code challenge for *verifier*.

    Args:
        verifier: The code verifier string (ASCII).
        crypto: Hash provider; defaults to the system provider.

    Returns:
        Base64url-encoded SHA-256 digest without padding.
    """
    provider = crypto or default_crypto()
    return base64url_encode(provider.sha256(verifier.encode("ascii")))


class PkceGenerator:
    """Produce fresh :class:`~oidc_pkce.models.PkceParameters` for each attempt.

    Args:
        crypto: Random and hash provider; defaults to the system provider.
    """

    def __init__(self, crypto: Optional[CryptoProvider] = None) -> None:
        self._crypto = crypto or default_crypto()

    def generate(self) -> PkceParameters:
        """Generate a new verifier/challenge pair.

        Raises:
            CryptoUnavailableError: If no secure random source is available.
        """
        verifier = base64url_encode(self._crypto.random_bytes(VERIFIER_BYTES))
        challenge = code_challenge_s256(verifier, self._crypto)
        return PkceParameters(verifier=verifier, challenge=challenge)
