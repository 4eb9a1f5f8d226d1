"""Set-Cookie string construction for session tokens.

Cookie attributes are fixed when the store is configured and never vary
per session; only the token value and ``Max-Age`` come from the caller.

Classes
-------
- CookieSettings  - validated cookie attributes with ``build``/``expire``
"""
from __future__ import annotations

from http.cookies import SimpleCookie
from typing import Literal, Optional

from pydantic import BaseModel, field_validator, model_validator

DEFAULT_COOKIE_NAME: str = "session"

_EPOCH_EXPIRES = "Thu, 01 Jan 1970 00:00:00 GMT"


class CookieSettings(BaseModel):
    """Attributes of the session cookie.

    Parameters
    ----------
    name:
        Cookie name.  Defaults to ``"session"``.
    path:
        ``Path`` attribute.  Defaults to ``"/"``.
    domain:
        Optional ``Domain`` attribute; omitted when ``None``.
    secure:
        Emit the ``Secure`` flag.  Defaults to ``True``.
    http_only:
        Emit the ``HttpOnly`` flag.  Defaults to ``True``.
    same_site:
        ``SameSite`` policy: ``"lax"``, ``"strict"`` or ``"none"``.
    """

    name: str = DEFAULT_COOKIE_NAME
    path: str = "/"
    domain: Optional[str] = None
    secure: bool = True
    http_only: bool = True
    same_site: Literal["lax", "strict", "none"] = "lax"

    model_config = {"frozen": True}

    @field_validator("name")
    @classmethod
    def _name_is_token(cls, value: str) -> str:
        if not value or any(c in value for c in ' \t;,="()<>@:\\/[]?{}'):
            raise ValueError(f"Invalid cookie name {value!r}")
        return value

    @model_validator(mode="after")
    def _same_site_none_requires_secure(self) -> CookieSettings:
        if self.same_site == "none" and not self.secure:
            raise ValueError("SameSite=None cookies must also be Secure")
        return self

    def _morsel_string(self, value: str, max_age: int, expires: str | None = None) -> str:
        jar: SimpleCookie = SimpleCookie()
        jar[self.name] = value
        morsel = jar[self.name]
        morsel["path"] = self.path
        morsel["max-age"] = max_age
        if expires is not None:
            morsel["expires"] = expires
        if self.domain:
            morsel["domain"] = self.domain
        morsel["secure"] = self.secure
        morsel["httponly"] = self.http_only
        morsel["samesite"] = self.same_site.capitalize()
        return morsel.OutputString()

    def build(self, token: str, max_age: int) -> str:
        """Return a Set-Cookie value carrying *token* for *max_age* seconds."""
        return self._morsel_string(token, max_age)

    def expire(self) -> str:
        """Return a Set-Cookie value that makes the browser drop the cookie."""
        return self._morsel_string("", 0, expires=_EPOCH_EXPIRES)


__all__ = ["DEFAULT_COOKIE_NAME", "CookieSettings"]
