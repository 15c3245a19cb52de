"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a failure category and is referenced by the
corresponding :class:`~oidc_pkce.exceptions.OIDCError` subclass.
Shell wrappers can inspect the exit code to tell a rejected login apart
from a misconfiguration without parsing stderr.

Example::

    $ oidc-pkce login
    $ echo $?
    4   # EXIT_STATE_REJECTED -- the callback state did not match
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""Invalid arguments or an incomplete/invalid client configuration."""

EXIT_AUTH_FAILURE = 3
"""Token exchange or user-info retrieval failed, or no session exists."""

EXIT_STATE_REJECTED = 4
"""The callback ``state`` was malformed, unexpected, or did not match."""

EXIT_AUTHORIZATION_DENIED = 5
"""The provider redirected back with an error, or the callback was incomplete."""

EXIT_PROVIDER_ERROR = 6
"""The discovery document could not be fetched or decoded."""

EXIT_CRYPTO_UNAVAILABLE = 7
"""No cryptographically secure random source is available."""
