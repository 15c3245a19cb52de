"""Tests for the versioned state codec."""

from __future__ import annotations

import base64
import json
import re
from typing import Any

import pytest

from oidc_pkce.exceptions import InvalidStateFormatError, StateError
from oidc_pkce.state import decode_state, encode_state, generate_nonce


def _raw_state(payload: Any) -> str:
    """Encode an arbitrary JSON payload the way the codec does."""
    raw = json.dumps(payload, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


class TestGenerateNonce:
    def test_is_64_lowercase_hex(self) -> None:
        assert re.fullmatch(r"[0-9a-f]{64}", generate_nonce())

    def test_distinct_values(self) -> None:
        assert generate_nonce() != generate_nonce()


class TestRoundTrip:
    @pytest.mark.parametrize(
        "return_to",
        ["/", "/dashboard", "/search?q=a b&page=2#top", "/café/日本", ""],
    )
    def test_recovers_pair(self, return_to: str) -> None:
        nonce = generate_nonce()
        state = decode_state(encode_state(nonce, return_to))
        assert state.nonce == nonce
        assert state.return_to == return_to

    def test_encoded_value_is_url_safe(self) -> None:
        value = encode_state("n" * 64, "/a/b?c=d&e=f")
        assert re.fullmatch(r"[A-Za-z0-9_-]+", value)

    def test_default_return_to(self) -> None:
        assert decode_state(encode_state("abc")).return_to == "/"

    def test_wire_format_is_versioned_json(self) -> None:
        value = encode_state("abc", "/x")
        decoded = json.loads(base64.urlsafe_b64decode(value + "=" * (-len(value) % 4)))
        assert decoded == {"v": 1, "n": "abc", "r": "/x"}


class TestDecodeLeniency:
    def test_missing_return_to_defaults_to_root(self) -> None:
        assert decode_state(_raw_state({"v": 1, "n": "abc"})).return_to == "/"

    def test_unknown_keys_ignored(self) -> None:
        state = decode_state(_raw_state({"v": 1, "n": "abc", "r": "/p", "x": [1, 2]}))
        assert (state.nonce, state.return_to) == ("abc", "/p")


class TestDecodeRejects:
    @pytest.mark.parametrize(
        "value",
        [
            "",
            "not base64!",
            "abc+def/",
            "abc=",
            _b64(b"\xff\xfe\xfd"),
            _b64(b"not json"),
            _raw_state([1, 2, 3]),
            _raw_state("string"),
            _raw_state({"n": "abc", "r": "/"}),
            _raw_state({"v": "1", "n": "abc"}),
            _raw_state({"v": True, "n": "abc"}),
            _raw_state({"v": 2, "n": "abc"}),
            _raw_state({"v": 1, "r": "/"}),
            _raw_state({"v": 1, "n": ""}),
            _raw_state({"v": 1, "n": 42}),
            _raw_state({"v": 1, "n": "abc", "r": None}),
            _raw_state({"v": 1, "n": "abc", "r": ["/"]}),
            "A",
            _b64(b'{"v":1,"n":"abc","x":' + b"[" * 5000 + b"]" * 5000 + b"}"),
        ],
    )
    def test_malformed_state(self, value: str) -> None:
        with pytest.raises(InvalidStateFormatError):
            decode_state(value)

    def test_error_is_a_state_error(self) -> None:
        with pytest.raises(StateError) as exc_info:
            decode_state("%%%")
        assert exc_info.value.exit_code == 4

    def test_legacy_pipe_format_rejected(self) -> None:
        legacy = _b64(b"abc|/dashboard")
        with pytest.raises(InvalidStateFormatError):
            decode_state(legacy)
