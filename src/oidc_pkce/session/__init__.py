"""Session storage for the authorization flow.

- :class:`SessionStore` -- abstract contract the orchestrator depends on.
- :class:`MappingSessionStore` -- adapter over any session-lifetime mapping.
- :class:`InMemorySessionStore` -- process-scoped store, also the test double.

Typical usage::

    from oidc_pkce.session import InMemorySessionStore

    store = InMemorySessionStore()
    client = OIDCClient(config, store)
"""

from oidc_pkce.session.store import (
    InMemorySessionStore,
    MappingSessionStore,
    SessionStore,
)

__all__ = [
    "SessionStore",
    "MappingSessionStore",
    "InMemorySessionStore",
]
