"""One-shot local HTTP server that receives the authorization redirect.

Native and command-line applications register a loopback ``redirect_uri``
such as ``http://127.0.0.1:8765/callback``. :class:`LoopbackReceiver` binds
that address *before* the browser is sent to the provider, then blocks
until the provider redirects back to the registered path (or the timeout
expires) and returns the full callback path including its query string.

Requests to other paths (``/favicon.ico`` and the like) are answered with
``404`` and do not end the wait. Interpreting the callback is left to
:func:`oidc_pkce.callback.parse_callback`.
"""

from __future__ import annotations

import html
import logging
import socket
import time
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any, Optional
from urllib.parse import parse_qs, urlparse

from oidc_pkce.exceptions import CallbackError, ConfigError

logger = logging.getLogger(__name__)

LOOPBACK_HOSTS = frozenset({"127.0.0.1", "localhost", "::1"})
DEFAULT_TIMEOUT = 120.0


def parse_loopback_uri(redirect_uri: str) -> tuple[str, int, str]:
    """Split a loopback redirect URI into ``(host, port, path)``.

    Raises:
        ConfigError: If *redirect_uri* is not a plain-HTTP loopback URL.
    """
    parsed = urlparse(redirect_uri)
    host = parsed.hostname or ""
    if parsed.scheme != "http" or host not in LOOPBACK_HOSTS:
        raise ConfigError(
            f"redirect_uri must be an http://127.0.0.1, localhost or [::1] URL "
            f"to receive the callback locally, got {redirect_uri!r}"
        )
    port = parsed.port if parsed.port is not None else 80
    return host, port, parsed.path or "/"


class _IPv6HTTPServer(HTTPServer):
    address_family = socket.AF_INET6


def _page(title: str, body: str) -> bytes:
    return (
        f"<html><head><title>{html.escape(title)}</title></head>"
        f"<body><h2>{html.escape(title)}</h2><p>{html.escape(body)}</p></body></html>"
    ).encode("utf-8")


class LoopbackReceiver:
    """Bind the redirect address and wait for the provider's callback.

    Use as a context manager so the socket is always released::

        with LoopbackReceiver(config.redirect_uri) as receiver:
            webbrowser.open(auth_url)
            callback_path = receiver.wait()

    Args:
        redirect_uri: The registered loopback redirect URI.

    Raises:
        ConfigError: If *redirect_uri* is not a loopback URL or its port
            cannot be bound.
    """

    def __init__(self, redirect_uri: str) -> None:
        host, port, path = parse_loopback_uri(redirect_uri)
        self._path = path
        self._result: Optional[str] = None
        receiver = self

        class CallbackHandler(BaseHTTPRequestHandler):
            def do_GET(self) -> None:
                parsed = urlparse(self.path)
                if parsed.path != receiver._path:
                    self.send_error(404)
                    return

                receiver._result = self.path
                params = parse_qs(parsed.query)
                if "error" in params:
                    title = "Authentication Error"
                    body = params["error"][0]
                    description = params.get("error_description", [""])[0]
                    if description:
                        body += f" - {description}"
                else:
                    title = "Authorization response received"
                    body = "You can close this window and return to the terminal."

                self.send_response(200)
                self.send_header("Content-Type", "text/html; charset=utf-8")
                self.end_headers()
                self.wfile.write(_page(title, body))

            def log_message(self, format: str, *args: Any) -> None:
                # Keep the callback query (it carries the code) out of stderr.
                pass

        server_cls = _IPv6HTTPServer if host == "::1" else HTTPServer

        try:
            self._server = server_cls((host, port), CallbackHandler)
        except OSError as exc:
            raise ConfigError(
                f"Cannot listen on {host}:{port} for the callback: {exc}"
            ) from exc
        logger.debug("Listening for callback on %s:%s%s", host, port, path)

    @property
    def port(self) -> int:
        return self._server.server_address[1]

    def wait(self, timeout: float = DEFAULT_TIMEOUT) -> str:
        """Block until the callback path is requested and return it.

        Args:
            timeout: Seconds to wait in total.

        Returns:
            The request path with its query string, e.g.
            ``/callback?code=...&state=...``.

        Raises:
            CallbackError: If no callback arrives before *timeout*.
        """
        deadline = time.monotonic() + timeout
        while self._result is None:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise CallbackError(
                    f"No authorization callback received within {timeout:g} seconds"
                )
            self._server.timeout = remaining
            self._server.handle_request()
        return self._result

    def close(self) -> None:
        self._server.server_close()

    def __enter__(self) -> LoopbackReceiver:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
