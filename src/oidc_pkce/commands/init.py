"""Init command -- write a starter client configuration.

Implements ``oidc-pkce init``, the usual first step. It validates the
given values as a :class:`~oidc_pkce.models.ClientConfig`, optionally
checks that the provider's discovery document loads, and writes either
the user config or a project-local ``oidc-pkce.json``.
"""

from __future__ import annotations

import asyncio

import typer
from pydantic import ValidationError

from oidc_pkce.client import OIDCClient
from oidc_pkce.commands import exit_on_error
from oidc_pkce.config import save_project_config, save_user_config
from oidc_pkce.exit_codes import EXIT_INVALID_USAGE
from oidc_pkce.models import DEFAULT_SCOPE, ClientConfig
from oidc_pkce.output import error, info, success, suggest

DEFAULT_REDIRECT_URI = "http://127.0.0.1:8765/callback"


async def _verify(config: ClientConfig) -> str:
    async with OIDCClient(config) as client:
        metadata = await client.load_metadata()
    return metadata.issuer


def init_command(
    discovery_url: str = typer.Option(
        ..., "--discovery-url", help="Provider discovery document URL."
    ),
    client_id: str = typer.Option(..., "--client-id", help="Public client identifier."),
    redirect_uri: str = typer.Option(
        DEFAULT_REDIRECT_URI, "--redirect-uri", help="Loopback redirect URI."
    ),
    scope: str = typer.Option(DEFAULT_SCOPE, "--scope", help="Scopes to request."),
    project: bool = typer.Option(
        False, "--project", help="Write ./oidc-pkce.json instead of the user config."
    ),
    verify: bool = typer.Option(
        False, "--verify", help="Fetch the discovery document before saving."
    ),
) -> None:
    """Create a client configuration.

    Example::

        oidc-pkce init --discovery-url https://id.example.com/.well-known/openid-configuration \\
            --client-id my-cli --verify
    """
    try:
        config = ClientConfig(
            discovery_url=discovery_url,
            client_id=client_id,
            redirect_uri=redirect_uri,
            scope=scope,
        )
    except ValidationError as exc:
        for err in exc.errors():
            error(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    with exit_on_error():
        if verify:
            info(f"Checking {config.discovery_url}")
            issuer = asyncio.run(_verify(config))
            info(f"Provider issuer: {issuer or '<not advertised>'}")

        data = config.model_dump()
        path = save_project_config(data) if project else save_user_config(data)

    success(f"Wrote configuration to {path}")
    suggest("Run 'oidc-pkce login' to sign in.")
