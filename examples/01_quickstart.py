#!/usr/bin/env python3
"""Example: Quickstart - opaque-session

Issue an opaque session cookie, resolve it back to the session, update
the payload and finally log the user out.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install opaque-session
"""
from __future__ import annotations

import asyncio

import opaque_session
from opaque_session import (
    CookieSettings,
    InMemorySessionStore,
    SessionHandler,
    TokenEncryptor,
)


async def main() -> None:
    print(f"opaque-session version: {opaque_session.__version__}")

    # Step 1: Wire a store and an encryptor together
    store = InMemorySessionStore(ttl={"hours": 12}, cookie=CookieSettings(name="sid"))
    handler = SessionHandler(store, TokenEncryptor(TokenEncryptor.generate_key()))

    # Step 2: Log in - store the payload and send the cookie
    token = await handler.create({"user_id": "u-42", "cart": []})
    print(f"Set-Cookie: {handler.create_cookie_string(token)}")

    # Step 3: Next request - resolve the cookie the client sent back
    resolved = await handler.resolve_cookies({"sid": token})
    print(f"Resolved session {resolved.session_id}: {resolved.payload}")

    # Step 4: Mutate the payload in place
    assert resolved.session_id is not None
    await handler.update(resolved.session_id, {"user_id": "u-42", "cart": ["book"]})
    print(f"After update: {await handler.read(resolved.session_id)}")

    # Step 5: A forged cookie degrades to an anonymous session
    print(f"Forged cookie resolves to session? {bool(await handler.resolve('00' * 40))}")

    # Step 6: Log out
    print(f"Set-Cookie: {await handler.delete_and_clear(resolved.session_id)}")


if __name__ == "__main__":
    asyncio.run(main())
