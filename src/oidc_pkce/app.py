"""Typer application and CLI entry point for oidc-pkce.

Wires the root Typer app, its global options, and the built-in commands
(``login``, ``authorize-url``, ``discover``, ``init``, ``config``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. Unhandled exceptions are written to a crash log under
the data directory.

See Also:
    :mod:`oidc_pkce.config`: Client configuration resolution.
    :mod:`oidc_pkce.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer
from rich.logging import RichHandler

from oidc_pkce import __version__
from oidc_pkce.exit_codes import EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="oidc-pkce",
    help="Sign in to an OpenID Connect provider with Authorization Code + PKCE.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"oidc-pkce {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool, console: Any) -> None:
    """Route the library's loggers to stderr when ``--verbose`` is active.

    Handlers from a previous invocation in the same process are replaced.
    Without ``--verbose`` records are discarded; the CLI reports failures
    through the output manager instead.
    """
    logger = logging.getLogger("oidc_pkce")
    for existing in list(logger.handlers):
        if isinstance(existing, (RichHandler, logging.NullHandler)):
            logger.removeHandler(existing)

    if not verbose:
        logger.addHandler(logging.NullHandler())
        logger.setLevel(logging.WARNING)
        return

    handler: logging.Handler = RichHandler(console=console, show_path=False, show_time=False)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    logging.getLogger("httpx").setLevel(logging.WARNING)


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    discovery_url: Optional[str] = typer.Option(
        None, "--discovery-url", help="Provider discovery document URL."
    ),
    client_id: Optional[str] = typer.Option(
        None, "--client-id", help="Public client identifier."
    ),
    redirect_uri: Optional[str] = typer.Option(
        None, "--redirect-uri", help="Registered redirect URI."
    ),
    scope: Optional[str] = typer.Option(
        None, "--scope", help="Space-separated scopes to request."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~oidc_pkce.output.OutputManager`, configures
    logging, and stores the client configuration flags in ``ctx.obj`` so
    that commands can resolve them against env and config files.
    """
    from oidc_pkce.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    set_output(output)
    _configure_logging(verbose, output.stderr_console)

    ctx.ensure_object(dict)
    ctx.obj["overrides"] = {
        "discovery_url": discovery_url,
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "scope": scope,
    }
    ctx.obj["verbose"] = verbose


# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #

from oidc_pkce.commands.auth import authorize_url_command, login_command  # noqa: E402
from oidc_pkce.commands.config import config_app  # noqa: E402
from oidc_pkce.commands.init import init_command  # noqa: E402
from oidc_pkce.commands.inspect import discover_command  # noqa: E402

app.command("login")(login_command)
app.command("authorize-url")(authorize_url_command)
app.command("discover")(discover_command)
app.command("init")(init_command)
app.add_typer(config_app, name="config", help="Configuration management.")


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from oidc_pkce.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``oidc-pkce`` console script.

    Unhandled :class:`~oidc_pkce.exceptions.OIDCError` instances cause a
    clean exit with the error's ``exit_code``. All other exceptions produce
    a crash log and a generic failure exit.
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from oidc_pkce.exceptions import OIDCError
        from oidc_pkce.output import error

        if isinstance(exc, OIDCError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
