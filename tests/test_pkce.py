"""Tests for oidc_pkce.crypto and oidc_pkce.pkce."""

from __future__ import annotations

import base64
import hashlib
import re

import pytest

from oidc_pkce.crypto import (
    CryptoProvider,
    SystemCryptoProvider,
    base64url_encode,
    default_crypto,
)
from oidc_pkce.exceptions import CryptoUnavailableError
from oidc_pkce.pkce import VERIFIER_BYTES, PkceGenerator, code_challenge_s256


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class _FixedCrypto(SystemCryptoProvider):
    """Returns a repeating byte instead of random data."""

    def __init__(self, byte: int = 0x41) -> None:
        self.byte = byte
        self.calls: list[int] = []

    def random_bytes(self, length: int) -> bytes:
        self.calls.append(length)
        return bytes([self.byte]) * length


class _BrokenCrypto(CryptoProvider):
    def random_bytes(self, length: int) -> bytes:
        raise CryptoUnavailableError("no entropy")

    def sha256(self, data: bytes) -> bytes:
        return hashlib.sha256(data).digest()


_B64URL = re.compile(r"^[A-Za-z0-9_-]+$")


# ---------------------------------------------------------------------------
# Crypto provider
# ---------------------------------------------------------------------------


class TestBase64UrlEncode:
    def test_strips_padding(self) -> None:
        assert base64url_encode(b"a") == "YQ"
        assert base64url_encode(b"ab") == "YWI"

    def test_uses_url_safe_alphabet(self) -> None:
        # 0xfb 0xff encodes to "+/8=" in the standard alphabet.
        assert base64url_encode(b"\xfb\xff") == "-_8"


class TestSystemCryptoProvider:
    def test_random_bytes_length(self) -> None:
        assert len(SystemCryptoProvider().random_bytes(32)) == 32

    def test_random_bytes_differ(self) -> None:
        provider = SystemCryptoProvider()
        assert provider.random_bytes(32) != provider.random_bytes(32)

    def test_sha256_matches_hashlib(self) -> None:
        assert SystemCryptoProvider().sha256(b"abc") == hashlib.sha256(b"abc").digest()

    def test_unavailable_source_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def _fail(length: int) -> bytes:
            raise NotImplementedError("no urandom")

        monkeypatch.setattr("oidc_pkce.crypto.secrets.token_bytes", _fail)
        with pytest.raises(CryptoUnavailableError, match="unavailable"):
            SystemCryptoProvider().random_bytes(32)

    def test_default_crypto_is_shared(self) -> None:
        assert default_crypto() is default_crypto()


# ---------------------------------------------------------------------------
# PKCE
# ---------------------------------------------------------------------------


class TestCodeChallenge:
    def test_rfc7636_appendix_b_vector(self) -> None:
        verifier = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"
        assert code_challenge_s256(verifier) == "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"

    def test_matches_manual_transform(self) -> None:
        verifier = "x" * 43
        digest = hashlib.sha256(verifier.encode("ascii")).digest()
        expected = base64.b64encode(digest).decode().replace("+", "-").replace("/", "_").rstrip("=")
        assert code_challenge_s256(verifier) == expected


class TestPkceGenerator:
    def test_verifier_shape(self) -> None:
        params = PkceGenerator().generate()
        assert len(params.verifier) == 43
        assert _B64URL.match(params.verifier)
        assert "=" not in params.challenge

    def test_challenge_recomputes_from_verifier(self) -> None:
        params = PkceGenerator().generate()
        assert code_challenge_s256(params.verifier) == params.challenge
        assert params.method == "S256"

    def test_fresh_pair_each_call(self) -> None:
        generator = PkceGenerator()
        first, second = generator.generate(), generator.generate()
        assert first.verifier != second.verifier
        assert first.challenge != second.challenge

    def test_uses_injected_provider(self) -> None:
        crypto = _FixedCrypto(0x00)
        params = PkceGenerator(crypto).generate()
        assert crypto.calls == [VERIFIER_BYTES]
        assert params.verifier == "A" * 43

    def test_unavailable_crypto_propagates(self) -> None:
        with pytest.raises(CryptoUnavailableError):
            PkceGenerator(_BrokenCrypto()).generate()
