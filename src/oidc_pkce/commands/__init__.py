"""Built-in CLI commands for oidc-pkce.

* :mod:`~oidc_pkce.commands.auth` -- ``login`` and ``authorize-url``.
* :mod:`~oidc_pkce.commands.inspect` -- ``discover``.
* :mod:`~oidc_pkce.commands.init` -- write a starter configuration.
* :mod:`~oidc_pkce.commands.config` -- view and modify configuration.

Single commands are plain callbacks registered on the root app; the
``config`` group is its own :class:`typer.Typer` sub-application.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

import typer

from oidc_pkce.config import resolve_client_config
from oidc_pkce.exceptions import OIDCError
from oidc_pkce.models import ClientConfig
from oidc_pkce.output import error


@contextmanager
def exit_on_error() -> Iterator[None]:
    """Print an :class:`~oidc_pkce.exceptions.OIDCError` and exit with its code."""
    try:
        yield
    except OIDCError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def client_config_from(ctx: typer.Context) -> ClientConfig:
    """Resolve the client configuration using the root callback's flags.

    Raises:
        ConfigError: If the configuration is incomplete or invalid.
    """
    overrides = (ctx.obj or {}).get("overrides", {})
    return resolve_client_config(**overrides)
