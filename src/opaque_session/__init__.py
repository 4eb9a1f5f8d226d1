"""opaque-session - encrypted, opaque session cookies over pluggable stores.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import opaque_session
>>> opaque_session.__version__
'0.1.0'
"""
from __future__ import annotations

# Errors
from opaque_session.errors import (
    AuthenticationFailedError,
    ConfigurationError,
    DecryptionError,
    InvalidFormatError,
    SessionError,
    StoreUnavailableError,
)

# Envelope
from opaque_session.encryption import (
    DEFAULT_ALGORITHM,
    SUPPORTED_ALGORITHMS,
    TokenCipher,
    TokenEncryptor,
    TokenParts,
)

# Configuration
from opaque_session.config import SessionConfig
from opaque_session.cookies import CookieSettings
from opaque_session.duration import to_seconds

# Stores
from opaque_session.storage.base import SessionStore
from opaque_session.storage.memory import InMemorySessionStore
from opaque_session.storage.redis import RedisSessionStore
from opaque_session.storage.sqlite import SQLiteSessionStore

# Orchestration
from opaque_session.handler import ResolvedSession, SessionHandler

__version__: str = "0.1.0"

__all__ = [
    "__version__",
    # Errors
    "AuthenticationFailedError",
    "ConfigurationError",
    "DecryptionError",
    "InvalidFormatError",
    "SessionError",
    "StoreUnavailableError",
    # Envelope
    "DEFAULT_ALGORITHM",
    "SUPPORTED_ALGORITHMS",
    "TokenCipher",
    "TokenEncryptor",
    "TokenParts",
    # Configuration
    "CookieSettings",
    "SessionConfig",
    "to_seconds",
    # Stores
    "InMemorySessionStore",
    "RedisSessionStore",
    "SQLiteSessionStore",
    "SessionStore",
    # Orchestration
    "ResolvedSession",
    "SessionHandler",
]
