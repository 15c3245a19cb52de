"""Interpretation of the redirect the provider sends back.

The orchestrator only consumes ``code`` and ``state``. Everything else a
callback page has to do before that (reading the query string, turning a
provider ``error`` into a message, noticing a truncated redirect) lives
here so that every front end handles it the same way.
"""

from __future__ import annotations

from urllib.parse import parse_qs, urlparse

from oidc_pkce.exceptions import AuthorizationDeniedError, MissingCallbackParameterError
from oidc_pkce.models import CallbackParams


def _query_of(callback: str) -> str:
    """Return the query component of a full URL, a path, or a bare query string."""
    if "?" in callback:
        return urlparse(callback).query
    if "=" in callback:
        return callback
    return ""


def parse_callback(callback: str) -> CallbackParams:
    """Extract ``code`` and ``state`` from a callback URL or query string.

    Args:
        callback: The full redirect URL (``https://app/callback?code=...``),
            a request path (``/callback?code=...``) or a bare query string.

    Returns:
        The :class:`~oidc_pkce.models.CallbackParams` to hand to
        :meth:`~oidc_pkce.client.OIDCClient.complete_authorization`.

    Raises:
        AuthorizationDeniedError: If the provider reported an ``error``.
        MissingCallbackParameterError: If ``code`` or ``state`` is absent.
    """
    params = parse_qs(_query_of(callback), keep_blank_values=True)

    error = params.get("error", [""])[0]
    if error:
        raise AuthorizationDeniedError(
            error, params.get("error_description", [""])[0]
        )

    code = params.get("code", [""])[0]
    state = params.get("state", [""])[0]
    if not code or not state:
        raise MissingCallbackParameterError("Missing code or state parameter")

    return CallbackParams(code=code, state=state)
