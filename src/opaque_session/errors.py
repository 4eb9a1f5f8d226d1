"""Exception hierarchy for opaque-session.

Classes
-------
- SessionError               - root of every error raised by this package
- ConfigurationError         - fatal misconfiguration detected at startup
- DecryptionError            - a token could not be turned back into an identifier
- InvalidFormatError         - token is not hex or too short to hold nonce + tag
- AuthenticationFailedError  - token was tampered with or sealed under another key
- StoreUnavailableError      - the backing store could not be reached
"""
from __future__ import annotations


class SessionError(Exception):
    """Base class for all opaque-session errors."""


class ConfigurationError(SessionError, ValueError):
    """Raised at construction time when keys, algorithms or TTLs are invalid."""


class DecryptionError(SessionError):
    """Raised when a token cannot be decrypted.

    ``SessionHandler.resolve`` absorbs every subclass of this error and
    reports an anonymous session instead.
    """


class InvalidFormatError(DecryptionError):
    """Raised when a token is not valid hex or shorter than nonce + tag."""


class AuthenticationFailedError(DecryptionError):
    """Raised when the AEAD tag does not verify."""


class StoreUnavailableError(SessionError):
    """Raised by store backends when the underlying service fails.

    Parameters
    ----------
    operation:
        Name of the store operation that failed (``"get"``, ``"set"``, ...).
    message:
        Human readable description.
    """

    def __init__(self, operation: str, message: str) -> None:
        self.operation = operation
        super().__init__(f"Session store {operation} failed: {message}")


__all__ = [
    "AuthenticationFailedError",
    "ConfigurationError",
    "DecryptionError",
    "InvalidFormatError",
    "SessionError",
    "StoreUnavailableError",
]
