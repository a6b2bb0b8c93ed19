"""Resource-owner authentication for the login step.

The consent flow only needs a yes/no answer plus a stable user id to pass to
Kong as authenticated_userid. Supabase is used when configured; otherwise the
demo authenticator accepts any non-empty credentials.
"""

import logging
from typing import Protocol

from starlette.concurrency import run_in_threadpool

from consent.errors import AuthenticationError

logger = logging.getLogger(__name__)


class Authenticator(Protocol):
    async def authenticate(self, username: str, password: str) -> str:
        """Return the authenticated user id or raise AuthenticationError."""
        ...


class DemoAuthenticator:
    """Accepts any non-empty username/password. The username is the user id."""

    async def authenticate(self, username: str, password: str) -> str:
        if not username or not password:
            raise AuthenticationError("Username and password are required")
        return username


class SupabaseAuthenticator:
    """Checks email/password against Supabase Auth."""

    def __init__(self, supabase_client):
        self.supabase = supabase_client

    async def authenticate(self, username: str, password: str) -> str:
        if not username or not password:
            raise AuthenticationError("Username and password are required")

        try:
            response = await run_in_threadpool(
                self.supabase.auth.sign_in_with_password,
                {"email": username, "password": password},
            )
        except Exception as e:
            logger.info(f"[LOGIN] Supabase rejected sign-in: {e}")
            raise AuthenticationError("Invalid username or password") from e

        if not response or not response.user:
            raise AuthenticationError("Invalid username or password")

        logger.info(f"[LOGIN] User authenticated: {response.user.email}")
        return response.user.id


def create_authenticator(supabase_url: str = "", supabase_anon_key: str = "") -> Authenticator:
    """Pick the Supabase authenticator when configured, the demo one otherwise."""
    if supabase_url and supabase_anon_key:
        from supabase import create_client

        logger.info("[STARTUP] Using Supabase authenticator")
        return SupabaseAuthenticator(create_client(supabase_url, supabase_anon_key))

    logger.warning("[STARTUP] Supabase not configured, any non-empty login is accepted")
    return DemoAuthenticator()
