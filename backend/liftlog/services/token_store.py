"""Cached OAuth bearer token (result of Google sign-in) with its expiry, kept in the local store."""

import logging
import time
from typing import Callable

from liftlog.services.local_store import ACCESS_TOKEN_KEY, TOKEN_EXPIRES_KEY, LocalStore

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class TokenStore:
    def __init__(self, store: LocalStore, clock: Callable[[], int] = _now_ms):
        self._store = store
        self._clock = clock

    def save(self, access_token: str, expires_in: int) -> bool:
        """Cache token valid for expires_in seconds from now. False if the store write failed."""
        expires_at = self._clock() + int(expires_in) * 1000
        ok = self._store.set(ACCESS_TOKEN_KEY, access_token)
        ok = self._store.set(TOKEN_EXPIRES_KEY, str(expires_at)) and ok
        if not ok:
            logger.warning("Token store: failed to persist access token")
        return ok

    def clear(self) -> None:
        """Sign out: forget the token (the store has no delete, so blank both keys)."""
        self._store.set(ACCESS_TOKEN_KEY, "")
        self._store.set(TOKEN_EXPIRES_KEY, "")

    def expires_at(self) -> int | None:
        try:
            raw = self._store.get(TOKEN_EXPIRES_KEY)
        except (OSError, ValueError):
            return None
        if not raw:
            return None
        try:
            return int(raw)
        except ValueError:
            return None

    def current(self) -> str | None:
        """Return the token only while it has not expired."""
        try:
            token = self._store.get(ACCESS_TOKEN_KEY)
        except (OSError, ValueError) as e:
            logger.warning("Token store: read failed: %s", e)
            return None
        expires = self.expires_at()
        if not token or expires is None or self._clock() >= expires:
            return None
        return token

    def is_signed_in(self) -> bool:
        return self.current() is not None
