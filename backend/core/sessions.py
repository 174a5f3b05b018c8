"""
Server-side registry of browser sessions.

Each browser tab gets its own StudioController, which owns that tab's UI
state. Sessions live in memory only and expire after SESSION_TTL_SECONDS
without being looked up.
"""

from cachetools import TTLCache
from threading import Lock
from typing import Callable, Optional
import uuid

from config.settings import settings
from services.studio_controller import StudioController

ControllerFactory = Callable[[str], StudioController]


class SessionStore:
    """Thread-safe TTL map of session id -> StudioController."""

    def __init__(
        self,
        ttl_seconds: int = settings.SESSION_TTL_SECONDS,
        max_size: int = settings.SESSION_MAX_COUNT,
        controller_factory: Optional[ControllerFactory] = None
    ):
        self._sessions: TTLCache = TTLCache(maxsize=max_size, ttl=ttl_seconds)
        self._lock = Lock()
        self._controller_factory = controller_factory or StudioController

    def create_session(self) -> StudioController:
        """
        Create and register a controller for a new session.

        Returns:
            The new session's controller
        """
        session_id = uuid.uuid4().hex
        controller = self._controller_factory(session_id)
        with self._lock:
            self._sessions[session_id] = controller
        return controller

    def get_session(self, session_id: str) -> Optional[StudioController]:
        """
        Retrieve a session's controller and refresh its expiry.

        Args:
            session_id: The session key

        Returns:
            The controller if present and not expired, None otherwise
        """
        with self._lock:
            controller = self._sessions.get(session_id)
            if controller is not None:
                # Re-insert so the TTL counts from the latest activity
                self._sessions[session_id] = controller
            return controller

    def drop_session(self, session_id: str) -> bool:
        """
        Remove a session.

        Returns:
            True if the session was found and removed, False otherwise
        """
        with self._lock:
            if session_id in self._sessions:
                del self._sessions[session_id]
                return True
            return False

    def session_count(self) -> int:
        with self._lock:
            self._sessions.expire()
            return len(self._sessions)


# Process-wide store used by the API
_session_store = SessionStore()


def get_session_store() -> SessionStore:
    return _session_store
