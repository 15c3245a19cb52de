"""Shared test fixtures for oidc-pkce.

Provides a discovery document, mock-transport HTTP clients, isolated
config environments, and output/CLI helpers. These fixtures are
discovered by pytest and available to all test modules.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from oidc_pkce.models import ClientConfig, ProviderMetadata
from oidc_pkce.output import OutputFormat, OutputManager, reset_output, set_output

ISSUER = "https://id.example.com"
DISCOVERY_URL = f"{ISSUER}/.well-known/openid-configuration"
REDIRECT_URI = "https://app.example.com/callback"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The manager holds references to sys.stdout/sys.stderr taken at creation
    time, which go stale once CliRunner restores the real streams.
    """
    yield
    reset_output()


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


# ---------------------------------------------------------------------------
# Provider fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def discovery_doc() -> dict[str, Any]:
    """A minimal but complete discovery document."""
    return {
        "issuer": ISSUER,
        "authorization_endpoint": f"{ISSUER}/authorize",
        "token_endpoint": f"{ISSUER}/oauth/token",
        "userinfo_endpoint": f"{ISSUER}/userinfo",
        "jwks_uri": f"{ISSUER}/.well-known/jwks.json",
        "response_types_supported": ["code"],
        "subject_types_supported": ["public"],
        "id_token_signing_alg_values_supported": ["RS256"],
        "scopes_supported": ["openid", "profile", "email"],
        "code_challenge_methods_supported": ["S256"],
    }


@pytest.fixture
def metadata(discovery_doc: dict[str, Any]) -> ProviderMetadata:
    return ProviderMetadata.model_validate(discovery_doc)


@pytest.fixture
def client_config() -> ClientConfig:
    return ClientConfig(
        discovery_url=DISCOVERY_URL,
        client_id="test-client",
        redirect_uri=REDIRECT_URI,
    )


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it handled."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]


@pytest.fixture
def make_transport() -> Callable[..., RecordingTransport]:
    """Factory for a provider mock keyed by request path.

    ``routes`` maps a URL path to either an :class:`httpx.Response` or a
    callable taking the request. Unknown paths answer 404.
    """

    def _factory(routes: dict[str, Any]) -> RecordingTransport:
        def handler(request: httpx.Request) -> httpx.Response:
            route = routes.get(request.url.path)
            if route is None:
                return httpx.Response(404, json={"error": "not_found"})
            if callable(route):
                return route(request)
            # Fresh copy so one route can answer several requests.
            return httpx.Response(route.status_code, headers=route.headers, content=route.content)

        return RecordingTransport(handler)

    return _factory


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points XDG_CONFIG_HOME and XDG_DATA_HOME at subdirectories of
    tmp_path, forces the XDG layout, clears every OIDC_* override, and
    changes the working directory to tmp_path.
    """
    monkeypatch.setattr("oidc_pkce.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in [
        "OIDC_DISCOVERY_URL",
        "OIDC_CLIENT_ID",
        "OIDC_REDIRECT_URI",
        "OIDC_SCOPE",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN, quiet OutputManager for tests that ignore output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
