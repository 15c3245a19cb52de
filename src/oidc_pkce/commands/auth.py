"""Auth commands -- run the Authorization Code + PKCE flow.

``login`` drives the whole flow through a loopback redirect::

    oidc-pkce login                      # opens the browser
    oidc-pkce login --no-browser         # prints the URL instead
    oidc-pkce login --return-to /reports --show-tokens

``authorize-url`` only builds the provider URL, which is handy when
checking a client registration.
"""

from __future__ import annotations

import asyncio
import webbrowser
from typing import Any

import typer

from oidc_pkce.callback import parse_callback
from oidc_pkce.client import OIDCClient
from oidc_pkce.commands import client_config_from, exit_on_error
from oidc_pkce.exit_codes import EXIT_GENERIC_FAILURE
from oidc_pkce.loopback import DEFAULT_TIMEOUT, LoopbackReceiver
from oidc_pkce.models import DEFAULT_RETURN_TO, ClientConfig, SessionTokens, UserInfo
from oidc_pkce.output import error, format_response, info, print_data, success


async def run_login(
    config: ClientConfig,
    return_to: str,
    *,
    open_browser: bool,
    timeout: float,
) -> tuple[SessionTokens, str, UserInfo]:
    """Run one login attempt end to end.

    The loopback port is bound before the provider URL is issued so the
    redirect cannot arrive before anything is listening.

    Returns:
        The stored tokens, the decoded return destination and the user's
        claims.
    """
    with LoopbackReceiver(config.redirect_uri) as receiver:
        async with OIDCClient(config) as client:
            auth_url = await client.begin_authorization(return_to)

            if open_browser:
                info("Opening browser for authorization...")
                webbrowser.open(auth_url)
            info(f"If the browser does not open, visit:\n  {auth_url}")
            info("Waiting for the provider to redirect back...")

            callback = await asyncio.to_thread(receiver.wait, timeout)
            params = parse_callback(callback)
            tokens, destination = await client.complete_authorization(
                params.code, params.state
            )
            user = await client.fetch_user_info()

    return tokens, destination, user


def login_command(
    ctx: typer.Context,
    return_to: str = typer.Option(
        DEFAULT_RETURN_TO, "--return-to", help="Destination recorded in the state parameter."
    ),
    timeout: float = typer.Option(
        DEFAULT_TIMEOUT, "--timeout", help="Seconds to wait for the whole flow."
    ),
    no_browser: bool = typer.Option(
        False, "--no-browser", help="Do not open a browser; only print the authorization URL."
    ),
    show_tokens: bool = typer.Option(
        False, "--show-tokens", help="Include the raw access and ID tokens in the output."
    ),
) -> None:
    """Sign in through the browser and print the user's claims.

    Starts a one-shot server on the configured loopback ``redirect_uri``,
    sends the browser to the provider, validates the callback, exchanges
    the code and fetches the userinfo endpoint. Tokens live only for the
    duration of this process.
    """
    with exit_on_error():
        config = client_config_from(ctx)
        try:
            result = asyncio.run(
                asyncio.wait_for(
                    run_login(
                        config,
                        return_to,
                        open_browser=not no_browser,
                        timeout=timeout,
                    ),
                    timeout,
                )
            )
        except asyncio.TimeoutError:
            error(f"Login did not complete within {timeout:g} seconds")
            raise typer.Exit(code=EXIT_GENERIC_FAILURE) from None

    tokens, destination, user = result
    summary: dict[str, Any] = {
        "return_to": destination,
        "token_type": tokens.token_type,
        "expires_in": tokens.expires_in,
        "has_refresh_token": tokens.refresh_token is not None,
        "has_id_token": tokens.id_token is not None,
        "userinfo": user.claims,
    }
    if show_tokens:
        summary["access_token"] = tokens.access_token
        summary["id_token"] = tokens.id_token
        summary["refresh_token"] = tokens.refresh_token

    success(f"Signed in as {user.sub}")
    format_response(summary)


async def _build_authorization_url(config: ClientConfig, return_to: str) -> str:
    async with OIDCClient(config) as client:
        return await client.begin_authorization(return_to)


def authorize_url_command(
    ctx: typer.Context,
    return_to: str = typer.Option(
        DEFAULT_RETURN_TO, "--return-to", help="Destination recorded in the state parameter."
    ),
) -> None:
    """Print a freshly built authorization URL.

    The verifier behind the URL is discarded when the command exits, so
    the URL is for inspection only. Use ``login`` to complete a flow.
    """
    with exit_on_error():
        config = client_config_from(ctx)
        url = asyncio.run(_build_authorization_url(config, return_to))
    print_data(url)
