"""OIDC client module for oidc-pkce.

Provides :class:`OIDCClient`, the orchestrator that drives the
Authorization Code + PKCE flow over :class:`httpx.AsyncClient` and keeps
its state in an injected :class:`~oidc_pkce.session.SessionStore`.

Example::

    from oidc_pkce.client import OIDCClient

    async with OIDCClient(config) as client:
        url = await client.begin_authorization("/")
"""

from oidc_pkce.client.oidc_client import OIDCClient

__all__ = ["OIDCClient"]
