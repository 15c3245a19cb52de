"""Config commands -- view and modify the client configuration.

Provides the ``oidc-pkce config`` group. ``show`` reports the effective
value of every key together with the layer it came from; ``set`` and
``unset`` edit the user config file; ``path`` prints where the files live.
"""

from __future__ import annotations

import typer

from oidc_pkce.commands import exit_on_error
from oidc_pkce.config import (
    CONFIG_KEYS,
    load_user_config,
    project_config_path,
    resolve_settings,
    save_user_config,
    user_config_path,
)
from oidc_pkce.exit_codes import EXIT_INVALID_USAGE
from oidc_pkce.models import require_absolute_url
from oidc_pkce.output import error, info, print_table, success

config_app = typer.Typer(no_args_is_help=True)

_URL_KEYS = ("discovery_url", "redirect_uri")


def _check_key(key: str) -> None:
    if key not in CONFIG_KEYS:
        error(f"Unknown config key: {key} (expected one of {', '.join(CONFIG_KEYS)})")
        raise typer.Exit(code=EXIT_INVALID_USAGE)


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show the effective configuration and where each value comes from.

    Example::

        oidc-pkce config show
        oidc-pkce --json config show
    """
    overrides = (ctx.obj or {}).get("overrides", {})
    with exit_on_error():
        settings = resolve_settings(**overrides)

    rows = []
    for key in CONFIG_KEYS:
        value, source = settings.get(key, ("", "unset"))
        rows.append([key, value, source])
    print_table(["key", "value", "source"], rows, title="Client configuration")


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Config key, e.g. 'client_id'."),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a value in the user config file.

    URL keys must be absolute ``http``/``https`` URLs; ``client_id`` must
    not be blank.

    Example::

        oidc-pkce config set client_id my-cli
        oidc-pkce config set redirect_uri http://127.0.0.1:8765/callback
    """
    _check_key(key)
    try:
        if key in _URL_KEYS:
            require_absolute_url(value, key)
        elif key == "client_id" and not value.strip():
            raise ValueError("client_id must not be blank")
    except ValueError as exc:
        error(str(exc))
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    with exit_on_error():
        data = load_user_config()
        data[key] = value
        save_user_config(data)
    success(f"Set {key} = {value}")


@config_app.command("unset")
def config_unset(
    key: str = typer.Argument(help="Config key to remove."),
) -> None:
    """Remove a value from the user config file."""
    _check_key(key)
    with exit_on_error():
        data = load_user_config()
        if key not in data:
            info(f"{key} is not set in {user_config_path()}")
            return
        del data[key]
        save_user_config(data)
    success(f"Unset {key}")


@config_app.command("path")
def config_path() -> None:
    """Print the user and project config file locations."""
    print_table(
        ["layer", "path"],
        [
            ["user", str(user_config_path())],
            ["project", str(project_config_path())],
        ],
    )
