"""oidc-pkce -- OpenID Connect Authorization Code + PKCE for public clients.

This package implements the client side of the OIDC Authorization Code flow
with Proof Key for Code Exchange (:rfc:`7636`) for applications that cannot
keep a client secret. The core discovers provider endpoints, builds the
authorization redirect, validates the callback, exchanges the code for
tokens, and keeps them in an injected session store.

Typical usage::

    from oidc_pkce.client import OIDCClient
    from oidc_pkce.models import ClientConfig

    config = ClientConfig(
        discovery_url="https://idp.example.com/.well-known/openid-configuration",
        client_id="my-spa",
        redirect_uri="http://127.0.0.1:8765/callback",
    )
    async with OIDCClient(config) as client:
        url = await client.begin_authorization("/dashboard")
        # ... send the user to ``url`` and receive the callback ...
        tokens, return_to = await client.complete_authorization(code, state)

Modules:
    app: Typer application and CLI entry point.
    client: The :class:`~oidc_pkce.client.OIDCClient` orchestrator.
    models: Pydantic models shared across the package.
    config: XDG-aware configuration loading and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
