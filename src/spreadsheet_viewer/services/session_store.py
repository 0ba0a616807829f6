"""In-memory ownership of viewer sessions.

Each browser session owns one ViewState. The store applies events through
the reducer and swaps the whole state under a lock, so concurrent requests of
the same session never see a partial update.

Key features:
- Thread-safe state replacement
- Sequence numbers that let a finished parse detect it has been superseded
- TTL-based eviction of idle sessions
"""

import threading
import time
import uuid
from dataclasses import dataclass, field

from spreadsheet_viewer.config import settings
from spreadsheet_viewer.services.view_state import ViewEvent, ViewState, reduce
from spreadsheet_viewer.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class SessionEntry:
    """Internal record of a viewer session."""

    session_id: str
    state: ViewState
    last_seen: float = field(default_factory=time.monotonic)


@dataclass
class SessionStoreConfig:
    """Configuration for the session store."""

    ttl_seconds: int = field(default_factory=lambda: settings.session_ttl_seconds)
    language: str = field(default_factory=lambda: settings.language)


class SessionStore:
    """Thread-safe in-memory map of session ID to view state."""

    def __init__(self, config: SessionStoreConfig | None = None) -> None:
        """Initialize the session store.

        Args:
            config: Optional configuration. Uses settings if not provided.
        """
        self.config = config or SessionStoreConfig()
        self._sessions: dict[str, SessionEntry] = {}
        self._lock = threading.RLock()

    @staticmethod
    def new_session_id() -> str:
        return uuid.uuid4().hex

    def get(self, session_id: str) -> ViewState:
        """Get a session's state, starting a fresh one if unknown or expired."""
        with self._lock:
            entry = self._live_entry(session_id)
            if entry is None:
                entry = SessionEntry(session_id=session_id, state=ViewState())
                self._sessions[session_id] = entry
                logger.debug("Session started", session_id=session_id)
            entry.last_seen = time.monotonic()
            return entry.state

    def apply(self, session_id: str, event: ViewEvent) -> ViewState:
        """Reduce an event into a session's state and store the result.

        Args:
            session_id: Session to update.
            event: Event to apply.

        Returns:
            The new state.

        Raises:
            ViewStateError: Propagated from the reducer; the stored state is
                left untouched.
        """
        with self._lock:
            current = self.get(session_id)
            new_state = reduce(current, event, self.config.language)
            self._sessions[session_id].state = new_state
            return new_state

    def cleanup_expired(self) -> int:
        """Remove idle sessions.

        Returns:
            Number of sessions removed.
        """
        now = time.monotonic()
        with self._lock:
            expired_ids = [
                session_id
                for session_id, entry in self._sessions.items()
                if now - entry.last_seen > self.config.ttl_seconds
            ]
            for session_id in expired_ids:
                del self._sessions[session_id]

        if expired_ids:
            logger.info(f"Cleaned up {len(expired_ids)} idle sessions")
        return len(expired_ids)

    def count(self) -> int:
        with self._lock:
            return len(self._sessions)

    def clear_all(self) -> None:
        """Drop every session. Used primarily for testing."""
        with self._lock:
            self._sessions.clear()

    def _live_entry(self, session_id: str) -> SessionEntry | None:
        entry = self._sessions.get(session_id)
        if entry is None:
            return None
        if time.monotonic() - entry.last_seen > self.config.ttl_seconds:
            del self._sessions[session_id]
            logger.info("Session expired", session_id=session_id)
            return None
        return entry
