"""Unit tests for opaque_session.encryption.

Covers:
- TokenEncryptor construction: missing, non-hex, short keys, unknown algorithm
- encrypt/decrypt round-trips for every supported algorithm
- Fresh nonce per call
- Tamper detection and length validation
- Wrong-key failure
- TokenParts byte layout
"""
from __future__ import annotations

from typing import Callable

import pytest

from opaque_session.encryption import (
    MIN_TOKEN_LENGTH,
    NONCE_LENGTH,
    SUPPORTED_ALGORITHMS,
    TAG_LENGTH,
    TokenCipher,
    TokenEncryptor,
    TokenParts,
)
from opaque_session.errors import (
    AuthenticationFailedError,
    ConfigurationError,
    DecryptionError,
    InvalidFormatError,
)

ZERO_KEY = "00" * 32
SAMPLE_ID = "11111111-1111-1111-1111-111111111111"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def encryptor() -> TokenEncryptor:
    return TokenEncryptor(ZERO_KEY)


def _flip_hex_char(token: str, index: int) -> str:
    original = token[index]
    replacement = "0" if original != "0" else "1"
    return token[:index] + replacement + token[index + 1 :]


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestConstruction:
    @pytest.mark.parametrize("key", [None, "", b""])
    def test_missing_key_raises(self, key: object) -> None:
        with pytest.raises(ConfigurationError, match="not set"):
            TokenEncryptor(key)  # type: ignore[arg-type]

    def test_non_hex_key_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="hex"):
            TokenEncryptor("zz" * 32)

    def test_short_key_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="32 bytes"):
            TokenEncryptor("00" * 16)

    def test_raw_bytes_key_accepted(self) -> None:
        encryptor = TokenEncryptor(b"\x01" * 32)
        assert encryptor.decrypt(encryptor.encrypt("x")) == "x"

    def test_unknown_algorithm_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="Unsupported algorithm"):
            TokenEncryptor(ZERO_KEY, "aes-128-cbc")

    def test_configuration_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            TokenEncryptor("")

    def test_default_algorithm(self, encryptor: TokenEncryptor) -> None:
        assert encryptor.algorithm == "aes-256-gcm"

    def test_generate_key_is_64_hex_chars(self) -> None:
        key = TokenEncryptor.generate_key()
        assert len(key) == 64
        assert bytes.fromhex(key)
        assert key != TokenEncryptor.generate_key()

    def test_satisfies_token_cipher_protocol(self, encryptor: TokenEncryptor) -> None:
        assert isinstance(encryptor, TokenCipher)


# ---------------------------------------------------------------------------
# Round-trips
# ---------------------------------------------------------------------------


class TestRoundTrip:
    def test_uuid_round_trip(self, encryptor: TokenEncryptor) -> None:
        token = encryptor.encrypt(SAMPLE_ID)
        assert encryptor.decrypt(token) == SAMPLE_ID

    def test_token_length_matches_layout(self, encryptor: TokenEncryptor) -> None:
        token = encryptor.encrypt(SAMPLE_ID)
        assert len(token) == (MIN_TOKEN_LENGTH + len(SAMPLE_ID)) * 2

    def test_empty_string_round_trip(self, encryptor: TokenEncryptor) -> None:
        token = encryptor.encrypt("")
        assert len(token) == MIN_TOKEN_LENGTH * 2
        assert encryptor.decrypt(token) == ""

    def test_unicode_round_trip(self, encryptor: TokenEncryptor) -> None:
        assert encryptor.decrypt(encryptor.encrypt("sessão-✓")) == "sessão-✓"

    @pytest.mark.parametrize("algorithm", sorted(SUPPORTED_ALGORITHMS))
    def test_every_algorithm_round_trips(self, algorithm: str) -> None:
        encryptor = TokenEncryptor(ZERO_KEY, algorithm)
        assert encryptor.decrypt(encryptor.encrypt(SAMPLE_ID)) == SAMPLE_ID

    def test_algorithms_are_not_interchangeable(self) -> None:
        token = TokenEncryptor(ZERO_KEY, "aes-256-gcm").encrypt(SAMPLE_ID)
        with pytest.raises(AuthenticationFailedError):
            TokenEncryptor(ZERO_KEY, "chacha20-poly1305").decrypt(token)


# ---------------------------------------------------------------------------
# Nonces
# ---------------------------------------------------------------------------


def test_encrypting_twice_gives_different_tokens(encryptor: TokenEncryptor) -> None:
    first = encryptor.encrypt(SAMPLE_ID)
    second = encryptor.encrypt(SAMPLE_ID)
    assert first != second
    assert encryptor.decrypt(first) == encryptor.decrypt(second) == SAMPLE_ID


def test_no_nonce_collisions_over_many_calls(encryptor: TokenEncryptor) -> None:
    nonces = {encryptor.encrypt(SAMPLE_ID)[: NONCE_LENGTH * 2] for _ in range(2000)}
    assert len(nonces) == 2000


# ---------------------------------------------------------------------------
# Tampering and malformed input
# ---------------------------------------------------------------------------


class TestTampering:
    def test_every_single_byte_flip_is_detected(self, encryptor: TokenEncryptor) -> None:
        token = encryptor.encrypt(SAMPLE_ID)
        for index in range(0, len(token), 2):
            tampered = _flip_hex_char(token, index)
            with pytest.raises(DecryptionError):
                encryptor.decrypt(tampered)

    def test_tampered_tag_raises_authentication_failed(self, encryptor: TokenEncryptor) -> None:
        token = encryptor.encrypt(SAMPLE_ID)
        with pytest.raises(AuthenticationFailedError):
            encryptor.decrypt(_flip_hex_char(token, len(token) - 1))

    def test_wrong_key_fails(self, encryptor: TokenEncryptor) -> None:
        token = encryptor.encrypt(SAMPLE_ID)
        other = TokenEncryptor("ff" * 32)
        with pytest.raises(AuthenticationFailedError):
            other.decrypt(token)

    def test_non_hex_raises_invalid_format(self, encryptor: TokenEncryptor) -> None:
        with pytest.raises(InvalidFormatError, match="hex"):
            encryptor.decrypt("not-a-token")

    def test_odd_length_hex_raises_invalid_format(self, encryptor: TokenEncryptor) -> None:
        token = encryptor.encrypt(SAMPLE_ID)
        with pytest.raises(InvalidFormatError):
            encryptor.decrypt(token[:-1])

    @pytest.mark.parametrize(
        "pad",
        [
            lambda t: " " + t[:2] + " " + t[2:] + "\n",
            lambda t: t + "\n",
            lambda t: "\t" + t,
        ],
    )
    def test_whitespace_padded_token_raises_invalid_format(
        self, encryptor: TokenEncryptor, pad: Callable[[str], str]
    ) -> None:
        token = encryptor.encrypt(SAMPLE_ID)
        with pytest.raises(InvalidFormatError, match="hex"):
            encryptor.decrypt(pad(token))

    def test_non_ascii_token_raises_invalid_format(self, encryptor: TokenEncryptor) -> None:
        token = encryptor.encrypt(SAMPLE_ID)
        with pytest.raises(InvalidFormatError):
            encryptor.decrypt("é" + token[1:])

    @pytest.mark.parametrize("length", [0, 1, 12, 27])
    def test_short_tokens_raise_invalid_format(
        self, encryptor: TokenEncryptor, length: int
    ) -> None:
        with pytest.raises(InvalidFormatError, match="at least 28 bytes"):
            encryptor.decrypt("ab" * length)

    def test_minimum_length_forged_token_fails_authentication(
        self, encryptor: TokenEncryptor
    ) -> None:
        with pytest.raises(AuthenticationFailedError):
            encryptor.decrypt("00" * MIN_TOKEN_LENGTH)


# ---------------------------------------------------------------------------
# TokenParts
# ---------------------------------------------------------------------------


class TestTokenParts:
    def test_split_layout(self, encryptor: TokenEncryptor) -> None:
        token = encryptor.encrypt(SAMPLE_ID)
        parts = TokenParts.from_hex(token)
        assert len(parts.nonce) == NONCE_LENGTH
        assert len(parts.tag) == TAG_LENGTH
        assert len(parts.ciphertext) == len(SAMPLE_ID)
        assert parts.to_hex() == token

    def test_empty_ciphertext_is_allowed(self) -> None:
        parts = TokenParts.from_hex("00" * MIN_TOKEN_LENGTH)
        assert parts.ciphertext == b""
