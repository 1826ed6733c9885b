import enum
import time
from dataclasses import dataclass, field
from typing import List, Optional


class Phase(str, enum.Enum):
    LOBBY = 'lobby'
    TOPIC_SELECTION = 'topic-selection'
    GIF_SELECTION = 'gif-selection'
    VOTING = 'voting'
    REVEAL = 'reveal'
    GAME_OVER = 'game-over'


@dataclass
class Player:
    id: str  # current connection handle, rebound on reconnect
    session_id: str
    name: str
    points: int = 0

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'points': self.points,
        }


@dataclass
class Submission:
    player_id: str
    gif_url: str

    def to_dict(self):
        return {'playerId': self.player_id, 'gifUrl': self.gif_url}


@dataclass
class Vote:
    voter_id: str
    voted_player_id: str

    def to_dict(self):
        return {'voterId': self.voter_id, 'votedPlayerId': self.voted_player_id}


@dataclass
class Room:
    id: str
    host_id: str
    players: List[Player] = field(default_factory=list)
    status: Phase = Phase.LOBBY
    current_round: int = 0
    max_rounds: int = 10
    topic: str = ''
    submissions: List[Submission] = field(default_factory=list)
    votes: List[Vote] = field(default_factory=list)
    winner_of_last_round: Optional[str] = None
    last_activity_at: float = field(default_factory=time.time)

    def find_player(self, handle: str) -> Optional[Player]:
        return next((p for p in self.players if p.id == handle), None)

    def find_by_session(self, session_id: str) -> Optional[Player]:
        return next((p for p in self.players if p.session_id == session_id), None)

    @property
    def judge_id(self) -> Optional[str]:
        # Before anyone has won a round the host judges
        return self.winner_of_last_round or self.host_id

    def to_dict(self):
        return {
            'id': self.id,
            'hostId': self.host_id,
            'players': [p.to_dict() for p in self.players],
            'status': self.status.value,
            'currentRound': self.current_round,
            'maxRounds': self.max_rounds,
            'topic': self.topic,
            'submissions': [s.to_dict() for s in self.submissions],
            'votes': [v.to_dict() for v in self.votes],
            'winnerOfLastRound': self.winner_of_last_round,
        }


@dataclass
class Session:
    session_id: str
    connection_handle: Optional[str]
    room_id: Optional[str] = None
    player_name: Optional[str] = None
    last_seen_at: float = field(default_factory=time.time)
    connected: bool = True
