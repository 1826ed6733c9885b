import random
import threading
import time
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List, Optional

from gifleague.errors import RoomIdExhausted, RoomNotFound
from gifleague.models import Player, Room


def generate_room_id(rng: random.Random) -> str:
    """Draw a 6 digit numeric room id."""
    return str(rng.randint(100000, 999999))


class RoomStore:
    """In-memory rooms keyed by id.

    The id map is guarded by one lock; each room gets its own re-entrant
    lock so actions on different rooms never wait on each other.
    """

    def __init__(self, max_attempts: int = 50, clock: Callable[[], float] = time.time,
                 rng: Optional[random.Random] = None):
        self.max_attempts = max_attempts
        self.clock = clock
        self._rng = rng or random.Random()
        self._rooms: Dict[str, Room] = {}
        self._locks: Dict[str, threading.RLock] = {}
        self._lock = threading.Lock()

    def create(self, host_handle: str, host_session_id: str, host_name: str,
               max_rounds: int = 10) -> Room:
        with self._lock:
            for _ in range(self.max_attempts):
                room_id = generate_room_id(self._rng)
                if room_id not in self._rooms:
                    break
            else:
                raise RoomIdExhausted()
            now = self.clock()
            room = Room(
                id=room_id,
                host_id=host_handle,
                players=[Player(id=host_handle, session_id=host_session_id, name=host_name)],
                max_rounds=max_rounds,
                winner_of_last_round=host_handle,
                last_activity_at=now,
            )
            self._rooms[room_id] = room
            self._locks[room_id] = threading.RLock()
            return room

    def get(self, room_id: str) -> Optional[Room]:
        with self._lock:
            return self._rooms.get(room_id)

    @contextmanager
    def locked(self, room_id: str) -> Iterator[Room]:
        with self._lock:
            room_lock = self._locks.get(room_id)
        if room_lock is None:
            raise RoomNotFound()
        with room_lock:
            # The room may have been reaped while we waited
            room = self.get(room_id)
            if room is None:
                raise RoomNotFound()
            yield room

    def remove(self, room_id: str) -> bool:
        with self._lock:
            self._locks.pop(room_id, None)
            return self._rooms.pop(room_id, None) is not None

    def idle_rooms(self, cutoff: float) -> List[str]:
        with self._lock:
            return [rid for rid, room in self._rooms.items() if room.last_activity_at < cutoff]

    def __contains__(self, room_id) -> bool:
        with self._lock:
            return room_id in self._rooms

    def __len__(self) -> int:
        with self._lock:
            return len(self._rooms)
