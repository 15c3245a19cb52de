"""The OIDC Authorization Code + PKCE orchestrator.

:class:`OIDCClient` composes the discovery cache, PKCE generator, state
codec and session store into the operations an application needs:

1. :meth:`~OIDCClient.begin_authorization` builds the provider redirect and
   records the pending request.
2. :meth:`~OIDCClient.complete_authorization` validates the callback,
   exchanges the code and stores the tokens.
3. :meth:`~OIDCClient.fetch_user_info`, :meth:`~OIDCClient.logout` and
   :meth:`~OIDCClient.is_authenticated` manage the resulting session.

Each authorization attempt moves through::

    Idle -> AuthorizationIssued -> CallbackReceived -> {Authenticated | Failed}

``Failed`` is terminal for that attempt. Retrying means calling
:meth:`~OIDCClient.begin_authorization` again, which always starts over
with a fresh nonce and verifier.

Nothing here retries, times out, or swallows an error. Authorization codes
and verifiers are single-use, so every failure goes straight back to the
caller. Callers wanting bounded latency wrap the awaitables themselves.

See Also:
    :mod:`oidc_pkce.callback` for turning a redirect URL into ``code`` and
    ``state``.
"""

from __future__ import annotations

import hmac
import logging
from typing import Any, Optional
from urllib.parse import urlencode, urlparse

import httpx
from pydantic import ValidationError

from oidc_pkce.crypto import CryptoProvider, default_crypto
from oidc_pkce.discovery import DiscoveryCache
from oidc_pkce.exceptions import (
    DiscoveryError,
    NoPendingAuthorizationError,
    NotAuthenticatedError,
    StateMismatchError,
    TokenExchangeError,
    UserInfoError,
)
from oidc_pkce.models import (
    DEFAULT_RETURN_TO,
    ClientConfig,
    ProviderMetadata,
    SessionTokens,
    UserInfo,
)
from oidc_pkce.pkce import PkceGenerator
from oidc_pkce.session import InMemorySessionStore, SessionStore
from oidc_pkce.state import decode_state, encode_state, generate_nonce

logger = logging.getLogger(__name__)


def _require_endpoint(metadata: ProviderMetadata, name: str) -> str:
    """Return the named endpoint from *metadata*, raising if the provider omitted it."""
    endpoint: str = getattr(metadata, name)
    if not endpoint:
        raise DiscoveryError(f"OpenID discovery document missing '{name}'")
    return endpoint


def _decode_json_object(response: httpx.Response) -> Optional[dict[str, Any]]:
    """Return the response body as a dict, or ``None`` if it is not a JSON object."""
    try:
        data = response.json()
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


class OIDCClient:
    """Public-client OIDC flow bound to one provider and one session store.

    Construct one instance at application start-up and hand it to whatever
    needs it. The instance memoises provider metadata for its lifetime but
    never caches tokens: every read goes through the store, so a logout is
    seen by all consumers at once.

    Args:
        config: Validated client configuration.
        store: Session storage; defaults to a new
            :class:`~oidc_pkce.session.InMemorySessionStore`.
        http_client: Optional :class:`httpx.AsyncClient`. When omitted the
            orchestrator creates one without a timeout and closes it in
            :meth:`aclose`. An injected client is left open.
        crypto: Random and hash provider; defaults to the system provider.

    Example::

        async with OIDCClient(config, store) as client:
            url = await client.begin_authorization("/dashboard")
    """

    def __init__(
        self,
        config: ClientConfig,
        store: Optional[SessionStore] = None,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        crypto: Optional[CryptoProvider] = None,
    ) -> None:
        self._config = config
        self._store = store if store is not None else InMemorySessionStore()
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=None)
        self._crypto = crypto or default_crypto()
        self._pkce = PkceGenerator(self._crypto)
        self._discovery = DiscoveryCache(config.discovery_url, self._http)

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> OIDCClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_http:
            await self._http.aclose()

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def store(self) -> SessionStore:
        return self._store

    # ------------------------------------------------------------------ #
    # Authorization flow
    # ------------------------------------------------------------------ #

    async def load_metadata(self) -> ProviderMetadata:
        """Return the provider metadata (fetched once, then cached).

        Raises:
            DiscoveryError: If the discovery document cannot be loaded.
        """
        return await self._discovery.load()

    async def begin_authorization(self, return_to: str = DEFAULT_RETURN_TO) -> str:
        """Start a new attempt and return the provider authorization URL.

        Generates a fresh PKCE pair and nonce, encodes *return_to* into the
        ``state`` parameter, and records the pending request. Any request
        still pending from an earlier call is overwritten and can no longer
        be completed. The caller is responsible for navigating to the URL.

        Args:
            return_to: Application destination to resume after login.

        Returns:
            The fully formed authorization URL.

        Raises:
            DiscoveryError: If the metadata cannot be loaded or lacks an
                ``authorization_endpoint``.
            CryptoUnavailableError: If no secure random source is available.
        """
        metadata = await self._discovery.load()
        endpoint = _require_endpoint(metadata, "authorization_endpoint")

        pkce = self._pkce.generate()
        nonce = generate_nonce(self._crypto)
        state = encode_state(nonce, return_to)
        self._store.set_pending(nonce, pkce.verifier)

        params = {
            "client_id": self._config.client_id,
            "redirect_uri": self._config.redirect_uri,
            "response_type": "code",
            "scope": self._config.scope,
            "state": state,
            "code_challenge": pkce.challenge,
            "code_challenge_method": pkce.method,
        }
        separator = "&" if urlparse(endpoint).query else "?"

        logger.debug("Issued authorization request nonce=%s****", nonce[:6])
        return f"{endpoint}{separator}{urlencode(params)}"

    async def complete_authorization(
        self, code: str, state: str
    ) -> tuple[SessionTokens, str]:
        """Validate a callback and exchange its code for tokens.

        Args:
            code: The ``code`` query parameter from the callback.
            state: The ``state`` query parameter from the callback.

        Returns:
            A ``(tokens, return_to)`` tuple. The tokens are already stored.

        Raises:
            InvalidStateFormatError: If *state* cannot be decoded.
            NoPendingAuthorizationError: If no request is pending (reload,
                replay, or a different session context).
            StateMismatchError: If the decoded nonce is not the pending one.
            DiscoveryError: If the metadata cannot be loaded or lacks a
                ``token_endpoint``.
            TokenExchangeError: If the token endpoint fails or returns an
                unusable response. The pending request is left in place.
        """
        auth_state = decode_state(state)

        pending = self._store.take_pending()
        if pending is None:
            raise NoPendingAuthorizationError(
                "No authorization request is pending for this session"
            )

        if not hmac.compare_digest(
            auth_state.nonce.encode("utf-8"), pending.nonce.encode("utf-8")
        ):
            logger.warning("Rejected callback: state nonce does not match pending request")
            raise StateMismatchError("Invalid state parameter")

        metadata = await self._discovery.load()
        token_endpoint = _require_endpoint(metadata, "token_endpoint")

        data = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self._config.redirect_uri,
            "client_id": self._config.client_id,
            "code_verifier": pending.verifier,
        }
        try:
            response = await self._http.post(
                token_endpoint,
                data=data,
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as exc:
            raise TokenExchangeError(f"Token exchange failed: {exc}") from exc

        if not response.is_success:
            raise TokenExchangeError(
                f"Token exchange failed with status {response.status_code}: "
                f"{response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        tokens = self._parse_tokens(response)
        self._store.set_tokens(tokens)
        self._store.clear_pending()

        logger.info(
            "Exchanged authorization code at %s (expires in %ss)",
            token_endpoint,
            tokens.expires_in if tokens.expires_in is not None else "?",
        )
        return tokens, auth_state.return_to

    # ------------------------------------------------------------------ #
    # Session
    # ------------------------------------------------------------------ #

    async def fetch_user_info(self) -> UserInfo:
        """Fetch the signed-in user's claims from the userinfo endpoint.

        Returns:
            The decoded :class:`~oidc_pkce.models.UserInfo`.

        Raises:
            NotAuthenticatedError: If no access token is stored. No request
                is made in that case.
            DiscoveryError: If the metadata cannot be loaded or lacks a
                ``userinfo_endpoint``.
            UserInfoError: On transport failure, a non-2xx status, or a body
                that is not a JSON object with ``sub``.
        """
        access_token = self._store.get_access_token()
        if not access_token:
            raise NotAuthenticatedError("No access token available")

        metadata = await self._discovery.load()
        endpoint = _require_endpoint(metadata, "userinfo_endpoint")

        try:
            response = await self._http.get(
                endpoint,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Accept": "application/json",
                },
            )
        except httpx.HTTPError as exc:
            raise UserInfoError(f"Failed to fetch user info: {exc}") from exc

        if not response.is_success:
            raise UserInfoError(
                f"Failed to fetch user info: status {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )

        payload = _decode_json_object(response)
        if payload is None:
            raise UserInfoError(
                "User info response is not a JSON object",
                status_code=response.status_code,
                body=response.text,
            )
        try:
            return UserInfo.model_validate(payload)
        except ValidationError:
            raise UserInfoError(
                "User info response missing 'sub' claim",
                status_code=response.status_code,
                body=response.text,
            ) from None

    def logout(self) -> None:
        """Forget the stored tokens. Safe to call when already logged out."""
        self._store.clear_tokens()
        logger.debug("Cleared session tokens")

    def is_authenticated(self) -> bool:
        """Return ``True`` if an access token is stored.

        This is a presence check only: no request is made and expiry is not
        considered.
        """
        return bool(self._store.get_access_token())

    def get_tokens(self) -> Optional[SessionTokens]:
        """Return the stored tokens, or ``None``."""
        return self._store.get_tokens()

    def get_id_token(self) -> Optional[str]:
        """Return the stored ID token (opaque, unverified), or ``None``."""
        return self._store.get_id_token()

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _parse_tokens(response: httpx.Response) -> SessionTokens:
        """Decode a successful token response into :class:`SessionTokens`."""
        payload = _decode_json_object(response)
        if payload is None:
            raise TokenExchangeError(
                "Token response is not a JSON object",
                status_code=response.status_code,
                body=response.text,
            )
        if not payload.get("access_token"):
            raise TokenExchangeError(
                "Token response missing 'access_token' field",
                status_code=response.status_code,
                body=response.text,
            )
        try:
            return SessionTokens.model_validate(payload)
        except ValidationError as exc:
            raise TokenExchangeError(
                f"Token response has an unexpected shape: {exc}",
                status_code=response.status_code,
                body=response.text,
            ) from exc
