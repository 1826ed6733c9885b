import threading
import time
import uuid
from typing import Callable, Dict, List, Optional, Tuple

from gifleague.models import Session


class SessionRegistry:
    """Durable session ids mapped to the player's last known connection.

    All reads and writes go through one lock, so an expiry pass and a
    reconnect lookup for the same session id can never interleave. The
    registry never reaches into the room store.
    """

    def __init__(self, ttl_sec: int = 300, clock: Callable[[], float] = time.time):
        self.ttl_sec = ttl_sec
        self.clock = clock
        self._sessions: Dict[str, Session] = {}
        self._handles: Dict[str, str] = {}  # connection handle -> session id
        self._lock = threading.Lock()

    def _is_live(self, session: Session, now: float) -> bool:
        # The idle clock only runs once the socket has gone away
        return session.connected or now - session.last_seen_at <= self.ttl_sec

    def _bind_handle(self, session: Session, handle: str) -> None:
        if session.connection_handle and self._handles.get(session.connection_handle) == session.session_id:
            del self._handles[session.connection_handle]
        session.connection_handle = handle
        session.connected = True
        self._handles[handle] = session.session_id

    def _drop(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        if session and self._handles.get(session.connection_handle) == session_id:
            del self._handles[session.connection_handle]

    def resolve(self, presented_id: Optional[str], handle: str) -> Tuple[Session, bool]:
        """Return ``(session, is_new)`` for a freshly connected handle.

        A known, unexpired id is rebound to ``handle``. Anything else gets a
        brand new id; a stale id presented by a client is never adopted.
        """
        now = self.clock()
        with self._lock:
            session = self._sessions.get(presented_id) if presented_id else None
            if session is not None and self._is_live(session, now):
                self._bind_handle(session, handle)
                session.last_seen_at = now
                return session, False
            if session is not None:
                self._drop(session.session_id)
            session = Session(session_id=uuid.uuid4().hex, connection_handle=None, last_seen_at=now)
            self._sessions[session.session_id] = session
            self._bind_handle(session, handle)
            return session, True

    def get(self, session_id: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.get(session_id)

    def by_handle(self, handle: str) -> Optional[Session]:
        with self._lock:
            session_id = self._handles.get(handle)
            return self._sessions.get(session_id) if session_id else None

    def mark_disconnected(self, handle: str) -> Optional[Session]:
        """Start the expiry clock for the session currently bound to ``handle``."""
        with self._lock:
            session_id = self._handles.get(handle)
            session = self._sessions.get(session_id) if session_id else None
            if session is not None and session.connection_handle == handle:
                session.connected = False
                session.last_seen_at = self.clock()
            return session

    def touch(self, session_id: str) -> None:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                session.last_seen_at = self.clock()

    def bind_room(self, session_id: str, room_id: str, player_name: str) -> None:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                session.room_id = room_id
                session.player_name = player_name
                session.last_seen_at = self.clock()

    def evict_expired(self, now: Optional[float] = None) -> List[str]:
        """Drop disconnected sessions idle for longer than the ttl.

        Room state is untouched; the evicted player keeps their seat.
        """
        now = self.clock() if now is None else now
        with self._lock:
            stale = [sid for sid, s in self._sessions.items() if not self._is_live(s, now)]
            for sid in stale:
                self._drop(sid)
            return stale

    def __contains__(self, session_id) -> bool:
        with self._lock:
            return session_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
