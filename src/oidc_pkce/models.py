"""Canonical Pydantic models shared across all oidc-pkce modules.

This is the single source of truth for data shapes in the project. The
models fall into three groups:

**Protocol records** -- decoded from or sent to the identity provider:
    :class:`ProviderMetadata`, :class:`SessionTokens`, :class:`UserInfo`,
    and :class:`CallbackParams`.

**Flow records** -- produced and consumed inside one authorization attempt:
    :class:`PkceParameters`, :class:`AuthState`, and
    :class:`PendingAuthorization`.

**Configuration** -- supplied by the embedding application:
    :class:`ClientConfig`.

All models use Pydantic v2. Records that must not change after creation are
declared ``frozen``; provider documents that may carry vendor extensions use
``extra="allow"`` so unknown keys survive in ``model_extra``.
"""

from __future__ import annotations

from typing import Any, Literal, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_SCOPE = "openid profile email"
"""Scope requested when the configuration does not name one."""

DEFAULT_RETURN_TO = "/"
"""Destination used when a decoded state carries no ``return_to``."""


def require_absolute_url(value: str, field_name: str) -> str:
    """Return *value* if it is an absolute ``http``/``https`` URL, else raise ``ValueError``."""
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"{field_name} must be an absolute http(s) URL, got {value!r}")
    return value


# --- Provider metadata ---


class ProviderMetadata(BaseModel):
    """The provider's discovery document (``/.well-known/openid-configuration``).

    Only structural decoding is performed: every field is optional and an
    absent field decodes as an empty string or empty list. Callers that need
    a particular endpoint check it at the point of use.

    Example::

        ProviderMetadata(
            issuer="https://idp.example.com",
            authorization_endpoint="https://idp.example.com/auth",
            token_endpoint="https://idp.example.com/token",
        )
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    issuer: str = ""
    authorization_endpoint: str = ""
    token_endpoint: str = ""
    userinfo_endpoint: str = ""
    jwks_uri: str = ""
    end_session_endpoint: Optional[str] = None
    response_types_supported: list[str] = Field(default_factory=list)
    subject_types_supported: list[str] = Field(default_factory=list)
    id_token_signing_alg_values_supported: list[str] = Field(default_factory=list)
    scopes_supported: list[str] = Field(default_factory=list)
    code_challenge_methods_supported: list[str] = Field(default_factory=list)


# --- Flow records ---


class PkceParameters(BaseModel):
    """A PKCE verifier and its S256 challenge for a single authorization attempt."""

    model_config = ConfigDict(frozen=True)

    verifier: str
    challenge: str
    method: Literal["S256"] = "S256"


class AuthState(BaseModel):
    """The decoded contents of the opaque ``state`` parameter.

    Attributes:
        nonce: Random anti-CSRF value (64 hex characters when generated here).
        return_to: Application-chosen destination to resume after login.
    """

    model_config = ConfigDict(frozen=True)

    nonce: str
    return_to: str = DEFAULT_RETURN_TO


class PendingAuthorization(BaseModel):
    """The transient record held between issuing a request and handling its callback."""

    model_config = ConfigDict(frozen=True)

    nonce: str
    verifier: str


class CallbackParams(BaseModel):
    """The ``code`` and ``state`` extracted from a successful redirect."""

    model_config = ConfigDict(frozen=True)

    code: str
    state: str


# --- Token and profile records ---


class SessionTokens(BaseModel):
    """Tokens returned by the token endpoint and kept for the session.

    ``expires_in`` is informational only: nothing in the core checks token
    freshness. The ID token is treated as an opaque string.
    """

    access_token: str = Field(min_length=1)
    token_type: str = "Bearer"
    expires_in: Optional[int] = None
    refresh_token: Optional[str] = None
    id_token: Optional[str] = None


class UserInfo(BaseModel):
    """Claims returned by the userinfo endpoint.

    ``sub`` is the only claim every provider must return; all other claims
    are preserved as extra fields.
    """

    model_config = ConfigDict(extra="allow")

    sub: str

    @property
    def claims(self) -> dict[str, Any]:
        """All claims, including ``sub`` and provider-defined extras."""
        return self.model_dump()


# --- Configuration ---


class ClientConfig(BaseModel):
    """Configuration consumed when constructing an :class:`~oidc_pkce.client.OIDCClient`.

    Validated at construction so misconfiguration surfaces at startup rather
    than halfway through a login.

    Attributes:
        discovery_url: URL of the provider's discovery document.
        client_id: Public client identifier registered with the provider.
        redirect_uri: Callback URL registered with the provider.
        scope: Space-separated scopes to request (may be empty).
    """

    discovery_url: str
    client_id: str = Field(min_length=1)
    redirect_uri: str
    scope: str = DEFAULT_SCOPE

    @field_validator("discovery_url")
    @classmethod
    def _check_discovery_url(cls, value: str) -> str:
        return require_absolute_url(value, "discovery_url")

    @field_validator("redirect_uri")
    @classmethod
    def _check_redirect_uri(cls, value: str) -> str:
        return require_absolute_url(value, "redirect_uri")

    @field_validator("client_id")
    @classmethod
    def _check_client_id(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("client_id must not be blank")
        return value
