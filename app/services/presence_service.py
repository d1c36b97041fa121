"""In-process registry of users who currently hold a live push channel.

One instance lives on ``app.state.presence`` for the lifetime of the process.
Entries are not persisted. A connection belongs to one user and a user has at
most one connection: a new registration replaces the previous handle without
closing it.
"""
import logging
import threading
from typing import Any

logger = logging.getLogger(__name__)


class PresenceRegistry:
    """Thread-safe map of user id -> connection handle."""

    def __init__(self) -> None:
        self._connections: dict[int, Any] = {}
        self._lock = threading.Lock()

    def register(self, user_id: int | None, connection: Any) -> None:
        """Bind ``connection`` to ``user_id``, overwriting any previous binding."""
        if user_id is None:
            logger.warning("Ignoring presence registration without a user id")
            return

        with self._lock:
            # A connection speaks for one user; drop bindings it held for others
            stale = [
                uid for uid, current in self._connections.items()
                if current is connection and uid != user_id
            ]
            for uid in stale:
                del self._connections[uid]
            previous = self._connections.get(user_id)
            self._connections[user_id] = connection

        if stale:
            logger.info("Connection moved from user(s) %s to user %s", stale, user_id)
        if previous is not None and previous is not connection:
            logger.info("Replaced live connection for user %s", user_id)
        else:
            logger.debug("Registered live connection for user %s", user_id)

    def lookup(self, user_id: int) -> Any | None:
        with self._lock:
            return self._connections.get(user_id)

    def unregister(self, connection: Any) -> int | None:
        """Drop every entry holding ``connection``. Returns the user id it belonged to."""
        with self._lock:
            owners = [
                uid for uid, current in self._connections.items() if current is connection
            ]
            for uid in owners:
                del self._connections[uid]

        if not owners:
            return None
        logger.debug("Unregistered live connection for user %s", owners[0])
        return owners[0]

    def online_user_ids(self) -> list[int]:
        with self._lock:
            return list(self._connections)

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)

    def __contains__(self, user_id: object) -> bool:
        with self._lock:
            return user_id in self._connections
