"""Validated configuration for the session layer.

``SessionConfig`` bundles the encryption key, the AEAD algorithm, cookie
attributes and the session TTL.  The core never reads the environment on
its own; call :meth:`SessionConfig.from_env` or
:meth:`SessionConfig.from_yaml` explicitly at startup.

Classes
-------
- SessionConfig  - pydantic model with env/YAML loaders
"""
from __future__ import annotations

import os
from datetime import timedelta
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml
from pydantic import BaseModel, Field, SecretStr, ValidationError, field_validator

from opaque_session.cookies import CookieSettings
from opaque_session.duration import to_seconds
from opaque_session.encryption import DEFAULT_ALGORITHM, SUPPORTED_ALGORITHMS, TokenEncryptor
from opaque_session.errors import ConfigurationError

_TRUTHY: frozenset[str] = frozenset({"1", "true", "yes", "on"})


class SessionConfig(BaseModel):
    """Everything needed to build an encryptor and a store.

    Parameters
    ----------
    key:
        Hex-encoded 256-bit secret.  Required.
    algorithm:
        AEAD identifier.  Defaults to ``"aes-256-gcm"``.
    cookie:
        Session cookie attributes.
    ttl:
        Session lifetime in any form accepted by
        :func:`opaque_session.duration.to_seconds`.
    """

    key: SecretStr
    algorithm: str = DEFAULT_ALGORITHM
    cookie: CookieSettings = Field(default_factory=CookieSettings)
    ttl: Optional[Union[int, float, timedelta, dict[str, float]]] = None

    @field_validator("key")
    @classmethod
    def _key_present(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value().strip():
            raise ValueError("encryption key is not set")
        return value

    @field_validator("algorithm")
    @classmethod
    def _algorithm_supported(cls, value: str) -> str:
        value = value.lower()
        if value not in SUPPORTED_ALGORITHMS:
            raise ValueError(f"unsupported algorithm {value!r}")
        return value

    # ------------------------------------------------------------------
    # Loaders
    # ------------------------------------------------------------------

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> SessionConfig:
        """Validate *data*, converting pydantic errors to ``ConfigurationError``."""
        try:
            return cls.model_validate(dict(data))
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid session configuration: {exc}") from exc

    @classmethod
    def from_env(
        cls,
        prefix: str = "SESSION_",
        environ: Mapping[str, str] | None = None,
    ) -> SessionConfig:
        """Build a config from ``<prefix>*`` environment variables.

        Recognised variables: ``ENCRYPTION_KEY`` (required), ``ALGORITHM``,
        ``TTL_SECONDS``, ``COOKIE_NAME``, ``COOKIE_PATH``, ``COOKIE_DOMAIN``,
        ``COOKIE_SECURE`` and ``COOKIE_SAME_SITE``.
        """
        env = os.environ if environ is None else environ

        def read(name: str) -> str | None:
            return env.get(f"{prefix}{name}")

        data: dict[str, Any] = {"key": read("ENCRYPTION_KEY") or ""}
        if algorithm := read("ALGORITHM"):
            data["algorithm"] = algorithm
        if ttl := read("TTL_SECONDS"):
            try:
                data["ttl"] = int(ttl)
            except ValueError as exc:
                raise ConfigurationError(f"{prefix}TTL_SECONDS must be an integer") from exc

        cookie: dict[str, Any] = {}
        for field, var in (
            ("name", "COOKIE_NAME"),
            ("path", "COOKIE_PATH"),
            ("domain", "COOKIE_DOMAIN"),
            ("same_site", "COOKIE_SAME_SITE"),
        ):
            if value := read(var):
                cookie[field] = value.lower() if field == "same_site" else value
        if (secure := read("COOKIE_SECURE")) is not None:
            cookie["secure"] = secure.strip().lower() in _TRUTHY
        if cookie:
            data["cookie"] = cookie
        return cls.from_mapping(data)

    @classmethod
    def from_yaml(cls, path: str | Path) -> SessionConfig:
        """Load a config from a YAML document with the model's field names."""
        try:
            document = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Could not parse {path}: {exc}") from exc
        if not isinstance(document, dict):
            raise ConfigurationError(f"{path} must contain a mapping at the top level")
        return cls.from_mapping(document)

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------

    def ttl_seconds(self) -> int:
        return to_seconds(self.ttl)

    def build_encryptor(self) -> TokenEncryptor:
        return TokenEncryptor(self.key.get_secret_value(), self.algorithm)

    def store_kwargs(self) -> dict[str, Any]:
        """Keyword arguments that give any store this config's cookie and TTL.

        Example::

            store = RedisSessionStore(url=..., **config.store_kwargs())
            handler = SessionHandler(store, config=config)
        """
        return {"ttl": self.ttl, "cookie": self.cookie}


__all__ = ["SessionConfig"]
