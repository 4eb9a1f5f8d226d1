"""Authenticated encryption of session identifiers into opaque hex tokens.

A token is the hex encoding of ``nonce || ciphertext || tag`` where the
nonce is 12 random bytes drawn fresh for every call and the tag is the
16-byte AEAD authentication tag.  Nothing else is stored alongside it.

Classes
-------
TokenParts
    Immutable view over the three byte ranges of a decoded token.
TokenCipher
    Structural protocol accepted by ``SessionHandler`` in place of the
    bundled encryptor.
TokenEncryptor
    AEAD envelope keyed with a 256-bit secret.

Constants
---------
DEFAULT_ALGORITHM
    ``"aes-256-gcm"``.
SUPPORTED_ALGORITHMS
    Identifiers accepted by ``TokenEncryptor``.
"""
from __future__ import annotations

import binascii
import os
from dataclasses import dataclass
from typing import Callable, Protocol, runtime_checkable

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM, ChaCha20Poly1305

from opaque_session.errors import (
    AuthenticationFailedError,
    ConfigurationError,
    InvalidFormatError,
)

# ---------------------------------------------------------------------------
# Wire-format constants
# ---------------------------------------------------------------------------

NONCE_LENGTH: int = 12  # 96-bit nonce per NIST SP 800-38D
TAG_LENGTH: int = 16
KEY_LENGTH: int = 32
MIN_TOKEN_LENGTH: int = NONCE_LENGTH + TAG_LENGTH

DEFAULT_ALGORITHM: str = "aes-256-gcm"

_ALGORITHMS: dict[str, Callable[[bytes], AESGCM | ChaCha20Poly1305]] = {
    "aes-256-gcm": AESGCM,
    "chacha20-poly1305": ChaCha20Poly1305,
}

SUPPORTED_ALGORITHMS: frozenset[str] = frozenset(_ALGORITHMS)


# ---------------------------------------------------------------------------
# TokenParts
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TokenParts:
    """The nonce, ciphertext and tag sections of a decoded token."""

    nonce: bytes
    ciphertext: bytes
    tag: bytes

    @classmethod
    def from_hex(cls, token: str) -> TokenParts:
        """Split a hex token into its byte ranges.

        Raises
        ------
        InvalidFormatError
            If *token* contains anything but hex digits or decodes to fewer
            than 28 bytes.
        """
        try:
            data = binascii.unhexlify(token)
        except (ValueError, TypeError) as exc:
            raise InvalidFormatError("Token is not valid hex") from exc
        if len(data) < MIN_TOKEN_LENGTH:
            raise InvalidFormatError(
                f"Token must be at least {MIN_TOKEN_LENGTH} bytes, got {len(data)}"
            )
        return cls(
            nonce=data[:NONCE_LENGTH],
            ciphertext=data[NONCE_LENGTH:-TAG_LENGTH],
            tag=data[-TAG_LENGTH:],
        )

    def to_hex(self) -> str:
        return (self.nonce + self.ciphertext + self.tag).hex()


# ---------------------------------------------------------------------------
# TokenCipher protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class TokenCipher(Protocol):
    """Anything that can seal and open session identifiers.

    ``decrypt`` must signal a bad token by raising ``DecryptionError`` or
    returning ``None``.
    """

    def encrypt(self, plaintext: str) -> str: ...

    def decrypt(self, token: str) -> str | None: ...


# ---------------------------------------------------------------------------
# TokenEncryptor
# ---------------------------------------------------------------------------


def _decode_key(key: str | bytes | None) -> bytes:
    if key is None or len(key) == 0:
        raise ConfigurationError("Encryption key is not set")
    if isinstance(key, bytes):
        raw = key
    else:
        try:
            raw = binascii.unhexlify(key.strip())
        except (binascii.Error, ValueError) as exc:
            raise ConfigurationError("Encryption key must be hex encoded") from exc
    if len(raw) != KEY_LENGTH:
        raise ConfigurationError(
            f"Encryption key must be {KEY_LENGTH} bytes (256-bit), got {len(raw)}"
        )
    return raw


class TokenEncryptor:
    """Seal short strings into hex tokens with a 256-bit AEAD cipher.

    Parameters
    ----------
    key:
        The 256-bit secret, hex encoded (64 characters) or as 32 raw bytes.
        Use :meth:`generate_key` to create one.
    algorithm:
        AEAD identifier, one of :data:`SUPPORTED_ALGORITHMS`.

    Raises
    ------
    ConfigurationError
        If the key is absent, not hex, or not 32 bytes long, or if the
        algorithm is unknown.
    """

    def __init__(
        self,
        key: str | bytes | None,
        algorithm: str = DEFAULT_ALGORITHM,
    ) -> None:
        raw_key = _decode_key(key)
        factory = _ALGORITHMS.get((algorithm or "").lower())
        if factory is None:
            supported = ", ".join(sorted(SUPPORTED_ALGORITHMS))
            raise ConfigurationError(
                f"Unsupported algorithm {algorithm!r}. Supported algorithms: {supported}"
            )
        self._algorithm = algorithm.lower()
        self._aead = factory(raw_key)

    @property
    def algorithm(self) -> str:
        return self._algorithm

    @staticmethod
    def generate_key() -> str:
        """Return 32 bytes from ``os.urandom`` as a 64-character hex string."""
        return os.urandom(KEY_LENGTH).hex()

    # ------------------------------------------------------------------
    # Encrypt / decrypt
    # ------------------------------------------------------------------

    def encrypt(self, plaintext: str) -> str:
        """Encrypt *plaintext* and return ``hex(nonce || ciphertext || tag)``.

        A fresh 12-byte nonce is drawn for every call, so encrypting the
        same value twice yields two different tokens.
        """
        nonce = os.urandom(NONCE_LENGTH)
        # The AEAD primitive appends the tag to the ciphertext.
        sealed = self._aead.encrypt(nonce, plaintext.encode("utf-8"), None)
        return (nonce + sealed).hex()

    def decrypt(self, token: str) -> str:
        """Return the plaintext sealed inside *token*.

        Raises
        ------
        InvalidFormatError
            If *token* is not hex, is shorter than 28 bytes, or the
            plaintext is not valid UTF-8.
        AuthenticationFailedError
            If the tag does not verify under this key.
        """
        parts = TokenParts.from_hex(token)
        try:
            plaintext = self._aead.decrypt(parts.nonce, parts.ciphertext + parts.tag, None)
        except InvalidTag as exc:
            raise AuthenticationFailedError("Token failed authentication") from exc
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise InvalidFormatError("Token plaintext is not valid UTF-8") from exc

    def __repr__(self) -> str:
        return f"TokenEncryptor(algorithm={self._algorithm!r})"


__all__ = [
    "DEFAULT_ALGORITHM",
    "MIN_TOKEN_LENGTH",
    "NONCE_LENGTH",
    "SUPPORTED_ALGORITHMS",
    "TAG_LENGTH",
    "TokenCipher",
    "TokenEncryptor",
    "TokenParts",
]
