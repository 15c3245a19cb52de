"""Session-scoped storage for the pending request and the issued tokens.

:class:`SessionStore` is the narrow persistence contract the orchestrator
depends on. It holds two kinds of record for one session context:

* the **pending authorization** (nonce + PKCE verifier), live only between
  issuing an authorization URL and handling its callback;
* the **session tokens**, live until logout or the end of the context.

All operations are synchronous and only touch the store; none perform
network or cryptographic work.

:class:`MappingSessionStore` adapts any mutable string mapping whose
lifetime is the session context, for example the per-user ``session``
dict a web framework exposes on each request. :class:`InMemorySessionStore`
is the same adapter over a private dict, scoped to the Python process.

Storage keys::

    oidc_state          pending nonce
    oidc_code_verifier  pending PKCE verifier
    access_token        access token
    id_token            ID token (opaque)
    token_type          token type
    expires_in          lifetime in seconds, as a decimal string
    refresh_token       refresh token
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import MutableMapping
from typing import Optional

from oidc_pkce.models import PendingAuthorization, SessionTokens

STATE_KEY = "oidc_state"
VERIFIER_KEY = "oidc_code_verifier"
ACCESS_TOKEN_KEY = "access_token"
ID_TOKEN_KEY = "id_token"
TOKEN_TYPE_KEY = "token_type"
EXPIRES_IN_KEY = "expires_in"
REFRESH_TOKEN_KEY = "refresh_token"

_TOKEN_KEYS = (
    ACCESS_TOKEN_KEY,
    ID_TOKEN_KEY,
    TOKEN_TYPE_KEY,
    EXPIRES_IN_KEY,
    REFRESH_TOKEN_KEY,
)


class SessionStore(ABC):
    """Abstract key/value store scoped to one session context.

    Subclass this to back the flow with a different substrate. Only the
    abstract methods need implementing; :meth:`get_access_token` and
    :meth:`get_id_token` read through :meth:`get_tokens` by default.
    """

    # ----- pending authorization ------------------------------------------ #

    @abstractmethod
    def set_pending(self, nonce: str, verifier: str) -> None:
        """Record the in-flight request, replacing any previous one."""
        ...

    @abstractmethod
    def take_pending(self) -> Optional[PendingAuthorization]:
        """Return the in-flight request without removing it, or ``None``.

        Callers clear the record with :meth:`clear_pending` once it has
        been used successfully.
        """
        ...

    @abstractmethod
    def clear_pending(self) -> None:
        """Forget the in-flight request. No-op when there is none."""
        ...

    # ----- tokens ---------------------------------------------------------- #

    @abstractmethod
    def set_tokens(self, tokens: SessionTokens) -> None:
        """Store *tokens*, replacing any previously stored tokens."""
        ...

    @abstractmethod
    def get_tokens(self) -> Optional[SessionTokens]:
        """Return the stored tokens, or ``None`` when logged out."""
        ...

    @abstractmethod
    def clear_tokens(self) -> None:
        """Forget all stored tokens. No-op when there are none."""
        ...

    def get_access_token(self) -> Optional[str]:
        """Return the stored access token, or ``None``."""
        tokens = self.get_tokens()
        return tokens.access_token if tokens else None

    def get_id_token(self) -> Optional[str]:
        """Return the stored ID token, or ``None``."""
        tokens = self.get_tokens()
        return tokens.id_token if tokens else None


class MappingSessionStore(SessionStore):
    """:class:`SessionStore` over a caller-supplied mutable string mapping.

    Args:
        mapping: Backing storage with session lifetime. Values written are
            always ``str``.

    Example::

        store = MappingSessionStore(request.session)
        store.set_pending(nonce, verifier)
    """

    def __init__(self, mapping: MutableMapping[str, str]) -> None:
        self._data = mapping

    def set_pending(self, nonce: str, verifier: str) -> None:
        self._data[STATE_KEY] = nonce
        self._data[VERIFIER_KEY] = verifier

    def take_pending(self) -> Optional[PendingAuthorization]:
        nonce = self._data.get(STATE_KEY)
        verifier = self._data.get(VERIFIER_KEY)
        if not nonce or not verifier:
            return None
        return PendingAuthorization(nonce=nonce, verifier=verifier)

    def clear_pending(self) -> None:
        self._data.pop(STATE_KEY, None)
        self._data.pop(VERIFIER_KEY, None)

    def set_tokens(self, tokens: SessionTokens) -> None:
        self.clear_tokens()
        self._data[ACCESS_TOKEN_KEY] = tokens.access_token
        self._data[TOKEN_TYPE_KEY] = tokens.token_type
        if tokens.expires_in is not None:
            self._data[EXPIRES_IN_KEY] = str(tokens.expires_in)
        if tokens.id_token:
            self._data[ID_TOKEN_KEY] = tokens.id_token
        if tokens.refresh_token:
            self._data[REFRESH_TOKEN_KEY] = tokens.refresh_token

    def get_tokens(self) -> Optional[SessionTokens]:
        access_token = self._data.get(ACCESS_TOKEN_KEY)
        if not access_token:
            return None
        expires_in = self._data.get(EXPIRES_IN_KEY)
        return SessionTokens(
            access_token=access_token,
            token_type=self._data.get(TOKEN_TYPE_KEY) or "Bearer",
            expires_in=int(expires_in) if expires_in else None,
            refresh_token=self._data.get(REFRESH_TOKEN_KEY),
            id_token=self._data.get(ID_TOKEN_KEY),
        )

    def get_access_token(self) -> Optional[str]:
        return self._data.get(ACCESS_TOKEN_KEY) or None

    def get_id_token(self) -> Optional[str]:
        return self._data.get(ID_TOKEN_KEY) or None

    def clear_tokens(self) -> None:
        for key in _TOKEN_KEYS:
            self._data.pop(key, None)


class InMemorySessionStore(MappingSessionStore):
    """Process-scoped store backed by a private dict."""

    def __init__(self) -> None:
        super().__init__({})
