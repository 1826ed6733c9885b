import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from gifleague.errors import (
    GameAlreadyStarted,
    InsufficientPlayers,
    InvalidPayload,
    InvalidPhase,
    NotAuthorized,
)
from gifleague.models import Phase, Player, Room, Submission, Vote
from .scoring import apply_tally, tally_votes


# Delivery audiences
ROOM = 'room'
CALLER = 'caller'
OTHERS = 'others'


@dataclass
class Delivery:
    event: str
    payload: Any
    audience: str = ROOM


@dataclass
class Outcome:
    deliveries: List[Delivery] = field(default_factory=list)


@dataclass(frozen=True)
class Rule:
    phase: Phase
    actor: str  # host | judge | member


# action -> (phase the room must be in, who may perform it)
TRANSITIONS: Dict[str, Rule] = {
    'start-game': Rule(Phase.LOBBY, 'host'),
    'submit-topic': Rule(Phase.TOPIC_SELECTION, 'judge'),
    'submit-gif': Rule(Phase.GIF_SELECTION, 'member'),
    'submit-vote': Rule(Phase.VOTING, 'member'),
    'next-round': Rule(Phase.REVEAL, 'host'),
}


class RoomStateMachine:
    """Phase transitions for a single room.

    Callers hold the room's lock for the duration of every call here. Each
    operation validates, mutates the room and returns the deliveries to
    emit; nothing in this class touches the network.
    """

    def __init__(self, min_players: int = 2, clock: Callable[[], float] = time.time):
        self.min_players = min_players
        self.clock = clock

    def authorize(self, action: str, room: Room, actor: Optional[Player]) -> Player:
        rule = TRANSITIONS[action]
        if room.status != rule.phase:
            raise InvalidPhase(f'{action} requires {rule.phase.value}, room is {room.status.value}')
        if actor is None or room.find_player(actor.id) is None:
            raise NotAuthorized(f'{action}: caller is not seated in room {room.id}')
        if rule.actor == 'host' and actor.id != room.host_id:
            raise NotAuthorized(f'{action}: only the host may do this')
        if rule.actor == 'judge' and actor.id != room.judge_id:
            raise NotAuthorized(f'{action}: only the judge may do this')
        return actor

    def _touch(self, room: Room) -> None:
        room.last_activity_at = self.clock()

    # ---- seating ----

    def create_room(self, store, handle: str, session_id: str, player_name: str,
                    max_rounds: int = 10) -> Tuple[Room, Outcome]:
        room = store.create(handle, session_id, player_name, max_rounds=max_rounds)
        return room, Outcome([Delivery('room-created', room.to_dict(), CALLER)])

    def join_room(self, room: Room, session_id: str, handle: str, player_name: str) -> Outcome:
        existing = room.find_by_session(session_id)
        if existing is not None:
            self.rebind(room, existing, handle)
            self._touch(room)
            return Outcome([Delivery('player-joined', room.to_dict(), ROOM)])
        if room.status != Phase.LOBBY:
            raise GameAlreadyStarted()
        name = (player_name or '').strip()
        if not name:
            raise InvalidPayload('playerName is required')
        room.players.append(Player(id=handle, session_id=session_id, name=name))
        self._touch(room)
        return Outcome([Delivery('player-joined', room.to_dict(), ROOM)])

    def reconnect(self, room: Room, session_id: str, handle: str) -> Outcome:
        """Rebind a returning session's seat, whatever phase the room is in."""
        player = room.find_by_session(session_id)
        if player is None:
            raise NotAuthorized(f'session has no seat in room {room.id}')
        self.rebind(room, player, handle)
        self._touch(room)
        snapshot = room.to_dict()
        return Outcome([
            Delivery('room-state', snapshot, CALLER),
            Delivery('player-joined', snapshot, OTHERS),
        ])

    def rebind(self, room: Room, player: Player, handle: str) -> None:
        """Point every reference to the player's old handle at ``handle``."""
        old = player.id
        if old == handle:
            return
        player.id = handle
        if room.host_id == old:
            room.host_id = handle
        if room.winner_of_last_round == old:
            room.winner_of_last_round = handle
        for sub in room.submissions:
            if sub.player_id == old:
                sub.player_id = handle
        for vote in room.votes:
            if vote.voter_id == old:
                vote.voter_id = handle
            if vote.voted_player_id == old:
                vote.voted_player_id = handle

    # ---- phase transitions ----

    def start_game(self, room: Room, actor: Optional[Player]) -> Outcome:
        self.authorize('start-game', room, actor)
        if len(room.players) < self.min_players:
            raise InsufficientPlayers(f'At least {self.min_players} players are required to start')
        room.status = Phase.TOPIC_SELECTION
        room.current_round = 1
        self._touch(room)
        return Outcome([Delivery('game-started', room.to_dict())])

    def submit_topic(self, room: Room, actor: Optional[Player], topic: str) -> Outcome:
        self.authorize('submit-topic', room, actor)
        topic = (topic or '').strip()
        if not topic:
            raise InvalidPayload('topic is required')
        room.topic = topic
        room.submissions = []
        room.status = Phase.GIF_SELECTION
        self._touch(room)
        return Outcome([Delivery('topic-submitted', room.to_dict())])

    def submit_gif(self, room: Room, actor: Optional[Player], gif_url: str) -> Outcome:
        actor = self.authorize('submit-gif', room, actor)
        gif_url = (gif_url or '').strip()
        if not gif_url:
            raise InvalidPayload('gifUrl is required')
        existing = next((s for s in room.submissions if s.player_id == actor.id), None)
        if existing:
            existing.gif_url = gif_url
        else:
            room.submissions.append(Submission(player_id=actor.id, gif_url=gif_url))
        self._touch(room)
        if len(room.submissions) == len(room.players):
            room.status = Phase.VOTING
            room.votes = []
            return Outcome([Delivery('all-gifs-submitted', room.to_dict())])
        return Outcome([Delivery('gif-submitted', {
            'playerCount': len(room.players),
            'submissionCount': len(room.submissions),
        })])

    def submit_vote(self, room: Room, actor: Optional[Player], voted_player_id: str) -> Outcome:
        actor = self.authorize('submit-vote', room, actor)
        if voted_player_id == actor.id:
            raise InvalidPayload('self votes are not counted')
        if room.find_player(voted_player_id) is None:
            raise InvalidPayload(f'unknown candidate {voted_player_id!r}')
        existing = next((v for v in room.votes if v.voter_id == actor.id), None)
        if existing:
            existing.voted_player_id = voted_player_id
        else:
            room.votes.append(Vote(voter_id=actor.id, voted_player_id=voted_player_id))
        self._touch(room)
        if len(room.votes) < len(room.players):
            return Outcome([Delivery('vote-submitted', {
                'playerCount': len(room.players),
                'voteCount': len(room.votes),
            })])
        result = tally_votes(room.votes, room.players)
        apply_tally(room, result)
        return Outcome([Delivery('round-ended', {
            'room': room.to_dict(),
            'winners': result.winners,
            'voteCounts': result.vote_counts,
        })])

    def next_round(self, room: Room, actor: Optional[Player]) -> Outcome:
        self.authorize('next-round', room, actor)
        room.current_round += 1
        room.submissions = []
        room.votes = []
        room.status = Phase.TOPIC_SELECTION
        self._touch(room)
        return Outcome([Delivery('new-round', room.to_dict())])
