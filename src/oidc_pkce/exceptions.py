"""Exception hierarchy for oidc-pkce.

All exceptions inherit from :class:`OIDCError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`oidc_pkce.exit_codes`.
The core raises them straight to the caller of the failing operation; it
never logs-and-swallows or retries. The CLI entry point in
:func:`oidc_pkce.app.main` catches ``OIDCError`` and exits with the
matching code.

Subclass hierarchy::

    OIDCError (exit 1)
    +-- ConfigError                     (exit 2)
    +-- DiscoveryError                  (exit 6)
    +-- CryptoUnavailableError          (exit 7)
    +-- StateError                      (exit 4)
    |   +-- InvalidStateFormatError
    |   +-- NoPendingAuthorizationError
    |   +-- StateMismatchError
    +-- TokenExchangeError              (exit 3)
    +-- UserInfoError                   (exit 3)
    +-- NotAuthenticatedError           (exit 3)
    +-- CallbackError                   (exit 5)
        +-- AuthorizationDeniedError
        +-- MissingCallbackParameterError
"""

from __future__ import annotations

from typing import Optional

from oidc_pkce.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_AUTHORIZATION_DENIED,
    EXIT_CRYPTO_UNAVAILABLE,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_PROVIDER_ERROR,
    EXIT_STATE_REJECTED,
)


class OIDCError(Exception):
    """Base exception for all oidc-pkce errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(OIDCError):
    """Raised when the client configuration is missing, unreadable, or invalid."""

    exit_code = EXIT_INVALID_USAGE


class DiscoveryError(OIDCError):
    """Raised when the provider metadata cannot be fetched or decoded."""

    exit_code = EXIT_PROVIDER_ERROR


class CryptoUnavailableError(OIDCError):
    """Raised when no secure random source is available. The flow cannot continue."""

    exit_code = EXIT_CRYPTO_UNAVAILABLE


class StateError(OIDCError):
    """Base class for callback ``state`` rejections (CSRF and replay defence)."""

    exit_code = EXIT_STATE_REJECTED


class InvalidStateFormatError(StateError):
    """Raised when a ``state`` value is not a well-formed encoded state record."""


class NoPendingAuthorizationError(StateError):
    """Raised when a callback arrives with no authorization request in flight.

    Covers page reloads, replayed callbacks, and callbacks completed in a
    different session context than the one that issued the request.
    """


class StateMismatchError(StateError):
    """Raised when the callback nonce differs from the pending request's nonce."""


class _HTTPDiagnosticsError(OIDCError):
    """An error that carries the HTTP status and body returned by the provider.

    Args:
        message: Human-readable error description.
        status_code: HTTP status, or ``None`` for transport-level failures.
        body: Raw response body for diagnostics (may be empty).
    """

    exit_code = EXIT_AUTH_FAILURE

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: str = "",
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class TokenExchangeError(_HTTPDiagnosticsError):
    """Raised when the token endpoint rejects or fails the code exchange."""


class UserInfoError(_HTTPDiagnosticsError):
    """Raised when the userinfo endpoint does not return a usable profile."""


class NotAuthenticatedError(OIDCError):
    """Raised when an operation needs an access token and none is stored."""

    exit_code = EXIT_AUTH_FAILURE


class CallbackError(OIDCError):
    """Base class for problems with the redirect the provider sent back."""

    exit_code = EXIT_AUTHORIZATION_DENIED


class AuthorizationDeniedError(CallbackError):
    """Raised when the callback carries an ``error`` parameter.

    Args:
        error: The OAuth error code (e.g. ``access_denied``).
        error_description: Optional provider-supplied description.
    """

    def __init__(self, error: str, error_description: str = "") -> None:
        message = f"Authentication error: {error}"
        if error_description:
            message += f" - {error_description}"
        super().__init__(message)
        self.error = error
        self.error_description = error_description


class MissingCallbackParameterError(CallbackError):
    """Raised when the callback lacks ``code`` or ``state``."""
