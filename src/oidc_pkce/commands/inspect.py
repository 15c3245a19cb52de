"""Inspect commands -- look at what the provider publishes."""

from __future__ import annotations

import asyncio

import typer

from oidc_pkce.client import OIDCClient
from oidc_pkce.commands import client_config_from, exit_on_error
from oidc_pkce.models import ClientConfig, ProviderMetadata
from oidc_pkce.output import format_response, info, warning


async def _fetch_metadata(config: ClientConfig) -> ProviderMetadata:
    async with OIDCClient(config) as client:
        return await client.load_metadata()


def discover_command(ctx: typer.Context) -> None:
    """Fetch and print the provider's discovery document.

    Warns when the provider does not advertise ``S256`` PKCE support, since
    that is the only challenge method this client sends.

    Example::

        oidc-pkce discover --json
    """
    with exit_on_error():
        config = client_config_from(ctx)
        info(f"Fetching {config.discovery_url}")
        metadata = asyncio.run(_fetch_metadata(config))

    methods = metadata.code_challenge_methods_supported
    if methods and "S256" not in methods:
        warning(
            f"Provider advertises code_challenge_methods_supported={methods}; "
            "S256 is required"
        )
    format_response(metadata.model_dump(mode="json"))
