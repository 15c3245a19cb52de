"""Tests for callback URL parsing."""

from __future__ import annotations

import pytest

from oidc_pkce.callback import parse_callback
from oidc_pkce.exceptions import (
    AuthorizationDeniedError,
    CallbackError,
    MissingCallbackParameterError,
)


class TestParseCallback:
    @pytest.mark.parametrize(
        "callback",
        [
            "https://app.example.com/callback?code=abc&state=xyz",
            "/callback?code=abc&state=xyz",
            "?code=abc&state=xyz",
            "code=abc&state=xyz",
        ],
    )
    def test_accepts_url_path_or_query(self, callback: str) -> None:
        params = parse_callback(callback)
        assert params.code == "abc"
        assert params.state == "xyz"

    def test_decodes_percent_escapes(self) -> None:
        params = parse_callback("/cb?code=a%2Fb&state=eyJ2Ijox")
        assert params.code == "a/b"

    def test_ignores_extra_parameters(self) -> None:
        params = parse_callback("/cb?code=c&state=s&session_state=x&iss=https%3A%2F%2Fid")
        assert (params.code, params.state) == ("c", "s")


class TestParseCallbackErrors:
    def test_provider_error(self) -> None:
        with pytest.raises(AuthorizationDeniedError) as exc_info:
            parse_callback("/cb?error=access_denied&error_description=User+cancelled&state=s")
        exc = exc_info.value
        assert exc.error == "access_denied"
        assert exc.error_description == "User cancelled"
        assert str(exc) == "Authentication error: access_denied - User cancelled"
        assert exc.exit_code == 5

    def test_provider_error_wins_over_code(self) -> None:
        with pytest.raises(AuthorizationDeniedError):
            parse_callback("/cb?code=c&state=s&error=server_error")

    @pytest.mark.parametrize(
        "callback",
        [
            "/cb?state=s",
            "/cb?code=c",
            "/cb?code=&state=s",
            "/cb",
            "",
        ],
    )
    def test_missing_code_or_state(self, callback: str) -> None:
        with pytest.raises(MissingCallbackParameterError, match="Missing code or state"):
            parse_callback(callback)

    def test_errors_share_base_class(self) -> None:
        assert issubclass(AuthorizationDeniedError, CallbackError)
        assert issubclass(MissingCallbackParameterError, CallbackError)
