import logging
import time
from typing import Any, Callable, Dict, Optional

from gifleague.errors import InvalidPayload, RoomNotFound
from gifleague.models import Session
from gifleague.services.games.state_machine import CALLER, Delivery, RoomStateMachine
from gifleague.services.room_store import RoomStore
from gifleague.services.session_registry import SessionRegistry


class Transport:
    """What the hub needs from the socket layer."""

    def enter(self, handle: str, room_id: str) -> None:
        raise NotImplementedError

    def send(self, delivery: Delivery, handle: str, room_id: Optional[str]) -> None:
        raise NotImplementedError


def _room_id(data: Optional[Dict[str, Any]]) -> str:
    room_id = (data or {}).get('roomId')
    if room_id is None or str(room_id).strip() == '':
        raise InvalidPayload('roomId is required')
    return str(room_id).strip()


class GameHub:
    """Process-lifetime owner of the room store and the session registry.

    Every inbound action comes through here: the caller's handle is resolved
    to a session, the room is locked, the state machine runs and the
    resulting deliveries are handed to the transport before the lock is
    released.
    """

    def __init__(self, config: Dict[str, Any], clock: Callable[[], float] = time.time,
                 logger: Optional[logging.Logger] = None):
        self.clock = clock
        self.logger = logger or logging.getLogger(__name__)
        self.max_rounds = int(config.get('MAX_ROUNDS', 10))
        self.session_ttl_sec = int(config.get('SESSION_TTL_SEC', 300))
        self.room_idle_ttl_sec = int(config.get('ROOM_IDLE_TTL_SEC', 3600))
        self.store = RoomStore(max_attempts=int(config.get('ROOM_ID_MAX_ATTEMPTS', 50)), clock=clock)
        self.registry = SessionRegistry(ttl_sec=self.session_ttl_sec, clock=clock)
        self.machine = RoomStateMachine(min_players=int(config.get('MIN_PLAYERS', 2)), clock=clock)

    # ---- connection lifecycle ----

    def connect(self, handle: str, presented_id: Optional[str], transport: Transport) -> Session:
        session, is_new = self.registry.resolve(presented_id, handle)
        self.logger.info(f"[connect] sid={handle} session={session.session_id} new={is_new}")
        transport.send(Delivery('session', {'sessionId': session.session_id}, CALLER), handle, None)
        if not is_new and session.room_id:
            self._reconnect(session, handle, transport)
        return session

    def _reconnect(self, session: Session, handle: str, transport: Transport) -> None:
        try:
            with self.store.locked(session.room_id) as room:
                if room.find_by_session(session.session_id) is None:
                    return
                outcome = self.machine.reconnect(room, session.session_id, handle)
                transport.enter(handle, room.id)
                self._deliver(outcome, handle, room.id, transport)
                self.logger.info(f"[reconnect] room={room.id} session={session.session_id} sid={handle} phase={room.status.value}")
        except RoomNotFound:
            self.logger.info(f"[reconnect-skip] session={session.session_id} room={session.room_id} no longer exists")

    def disconnect(self, handle: str) -> None:
        # Advisory only: the seat and score stay put, the session starts ageing
        session = self.registry.mark_disconnected(handle)
        self.logger.info(f"[disconnect] sid={handle} session={session.session_id if session else None}")

    def heartbeat(self, handle: str) -> None:
        session = self.registry.by_handle(handle)
        if session:
            self.registry.touch(session.session_id)

    def _session_for(self, handle: str, transport: Transport) -> Session:
        session = self.registry.by_handle(handle)
        if session is None:
            # Evicted while still connected; hand out a fresh identity
            session, _ = self.registry.resolve(None, handle)
            transport.send(Delivery('session', {'sessionId': session.session_id}, CALLER), handle, None)
        return session

    def _deliver(self, outcome, handle: str, room_id: Optional[str], transport: Transport) -> None:
        for delivery in outcome.deliveries:
            transport.send(delivery, handle, room_id)

    # ---- seating ----

    def create_room(self, handle: str, data: Optional[Dict[str, Any]], transport: Transport):
        name = str((data or {}).get('playerName') or '').strip()
        if not name:
            raise InvalidPayload('playerName is required')
        session = self._session_for(handle, transport)
        room, outcome = self.machine.create_room(
            self.store, handle, session.session_id, name, max_rounds=self.max_rounds,
        )
        with self.store.locked(room.id):
            transport.enter(handle, room.id)
            self.registry.bind_room(session.session_id, room.id, name)
            self._deliver(outcome, handle, room.id, transport)
        self.logger.info(f"[room-created] room={room.id} host={handle} name={name!r}")
        return room

    def join_room(self, handle: str, data: Optional[Dict[str, Any]], transport: Transport):
        room_id = _room_id(data)
        name = str((data or {}).get('playerName') or '').strip()
        session = self._session_for(handle, transport)
        with self.store.locked(room_id) as room:
            outcome = self.machine.join_room(room, session.session_id, handle, name)
            seat = room.find_by_session(session.session_id)
            transport.enter(handle, room.id)
            self.registry.bind_room(session.session_id, room.id, seat.name)
            self._deliver(outcome, handle, room.id, transport)
            self.logger.info(f"[player-joined] room={room.id} sid={handle} name={seat.name!r} players={len(room.players)}")
            return room

    # ---- in-game actions ----

    def _act(self, handle: str, data, transport: Transport, op, *args):
        room_id = _room_id(data)
        with self.store.locked(room_id) as room:
            actor = room.find_player(handle)
            before = room.status
            outcome = op(room, actor, *args)
            self._deliver(outcome, handle, room.id, transport)
            if room.status != before:
                self.logger.info(f"[phase] room={room.id} {before.value} -> {room.status.value} round={room.current_round}")
        session = self.registry.by_handle(handle)
        if session:
            self.registry.touch(session.session_id)
        return room

    def start_game(self, handle, data, transport):
        return self._act(handle, data, transport, self.machine.start_game)

    def submit_topic(self, handle, data, transport):
        return self._act(handle, data, transport, self.machine.submit_topic, str((data or {}).get('topic') or ''))

    def submit_gif(self, handle, data, transport):
        return self._act(handle, data, transport, self.machine.submit_gif, str((data or {}).get('gifUrl') or ''))

    def submit_vote(self, handle, data, transport):
        return self._act(handle, data, transport, self.machine.submit_vote, str((data or {}).get('votedPlayerId') or ''))

    def next_round(self, handle, data, transport):
        return self._act(handle, data, transport, self.machine.next_round)
