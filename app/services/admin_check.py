import threading
import time
from typing import Dict, Tuple

from sqlmodel import Session

from app.models.profile import Profile


class AdminStatusCache:
    """
    Short-lived cache of "is this user an admin" answers.

    One instance lives on the application state and is handed to whoever
    needs it; nothing is cached at module level. Entries expire after
    ``ttl_seconds`` and are dropped explicitly when admin status changes.
    """

    def __init__(self, ttl_seconds: float = 60, clock=time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, Tuple[bool, float]] = {}

    def is_admin(self, session: Session, user_id: str) -> bool:
        now = self._clock()

        with self._lock:
            cached = self._entries.get(user_id)
        if cached and now - cached[1] < self.ttl_seconds:
            return cached[0]

        profile = session.get(Profile, user_id)
        is_admin = bool(profile and profile.is_admin)

        with self._lock:
            self._entries[user_id] = (is_admin, now)

        return is_admin

    def invalidate(self, user_id: str) -> None:
        with self._lock:
            self._entries.pop(user_id, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
