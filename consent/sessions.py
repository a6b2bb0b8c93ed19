"""Server-side session store for the consent flow.

Sessions are keyed by an opaque token delivered in a cookie. Each session
holds a small attribute dict and its own asyncio.Lock so that concurrent
requests carrying the same token are handled one at a time.
Expired sessions are evicted lazily; an expired session is indistinguishable
from an absent one.
"""

import asyncio
import logging
import secrets
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Callable, Optional

logger = logging.getLogger(__name__)

# Session attribute keys
AUTHENTICATED = "authenticated"
USER_ID = "userID"
CLIENT_ID = "clientID"
RESPONSE_TYPE = "responseType"
SCOPES = "scopes"

PENDING_CONSENT_KEYS = (CLIENT_ID, RESPONSE_TYPE, SCOPES)

DEFAULT_TTL_SECONDS = 30 * 60  # 30 minutes

# Full sweeps run at most this many times per TTL
PURGES_PER_TTL = 10


@dataclass
class Session:
    token: str
    created_at: float
    last_used_at: float
    data: dict[str, Any] = field(default_factory=dict)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    @property
    def authenticated(self) -> bool:
        return bool(self.data.get(AUTHENTICATED, False))


class SessionStore:
    """In-memory session store with TTL eviction.

    Args:
        ttl_seconds: Lifetime of a session.
        sliding: If True the TTL counts from the last request, otherwise
            from session creation.
        clock: Time source, overridable in tests.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        sliding: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.sliding = sliding
        self._clock = clock
        self._sessions: dict[str, Session] = {}
        self.purge_interval = ttl_seconds / PURGES_PER_TTL
        self._last_purge_at = clock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, token: str) -> bool:
        session = self._sessions.get(token)
        return session is not None and not self._is_expired(session, self._clock())

    def _is_expired(self, session: Session, now: float) -> bool:
        started = session.last_used_at if self.sliding else session.created_at
        return now - started > self.ttl_seconds

    def start(self, token: Optional[str]) -> Session:
        """Return the session bound to token, or a fresh empty one.

        Never raises: a missing, unknown or expired token simply yields a new
        anonymous session with a new token.
        """
        now = self._clock()
        session = self._sessions.get(token) if token else None

        if session is not None and self._is_expired(session, now):
            logger.info("[SESSION] Session expired, starting a new one")
            self._sessions.pop(session.token, None)
            session = None

        if session is None:
            session = Session(token=secrets.token_urlsafe(32), created_at=now, last_used_at=now)
            self._sessions[session.token] = session
            if now - self._last_purge_at >= self.purge_interval:
                self.purge_expired()
            return session

        session.last_used_at = now
        return session

    def rotate(self, session: Session) -> Session:
        """Move the attributes of session under a new token.

        The old token is retired and behaves like an unknown one from now on.
        Called with session.lock held; nobody else knows the new token yet.
        """
        now = self._clock()
        rotated = Session(
            token=secrets.token_urlsafe(32),
            created_at=now,
            last_used_at=now,
            data=session.data,
        )
        session.data = {}
        self._sessions.pop(session.token, None)
        self._sessions[rotated.token] = rotated
        logger.info("[SESSION] Session token rotated")
        return rotated

    @asynccontextmanager
    async def open(self, token: Optional[str]) -> AsyncIterator[Session]:
        """Start the session for token and hold its lock for the block.

        Used around a whole request transition so reads and writes of one
        session never interleave.
        """
        session = self.start(token)
        async with session.lock:
            # The token may have been retired while waiting
            if session.token not in self:
                self._sessions.pop(session.token, None)
                session = self.start(None)
                async with session.lock:
                    yield session
                return
            yield session

    def get(self, session: Session, key: str, default: Any = None) -> Any:
        return session.data.get(key, default)

    def set(self, session: Session, key: str, value: Any) -> None:
        session.data[key] = value

    def pop(self, session: Session, key: str, default: Any = None) -> Any:
        return session.data.pop(key, default)

    def clear(self, session: Session) -> None:
        """Reset all attributes of a session (logout)."""
        session.data.clear()

    def discard(self, token: str) -> None:
        self._sessions.pop(token, None)

    def purge_expired(self) -> int:
        """Evict every expired session. Returns the number evicted."""
        now = self._clock()
        self._last_purge_at = now
        expired = [t for t, s in self._sessions.items() if self._is_expired(s, now)]
        for token in expired:
            del self._sessions[token]
        if expired:
            logger.info(f"[SESSION] Evicted {len(expired)} expired session(s)")
        return len(expired)
