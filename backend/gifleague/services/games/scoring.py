from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from gifleague.models import Phase, Player, Room, Vote


@dataclass
class TallyResult:
    winners: List[str] = field(default_factory=list)
    vote_counts: Dict[str, int] = field(default_factory=dict)


def tally_votes(votes: Sequence[Vote], players: Sequence[Player]) -> TallyResult:
    """Count votes per candidate and pick every candidate with the top count.

    Both ``vote_counts`` and ``winners`` follow player join order, so the
    first winner (the next judge) is the earliest joiner among a tie.
    """
    counts = Counter(v.voted_player_id for v in votes)
    ordered = {p.id: counts[p.id] for p in players if counts[p.id]}
    if not ordered:
        return TallyResult()
    top = max(ordered.values())
    winners = [pid for pid, n in ordered.items() if n == top]
    return TallyResult(winners=winners, vote_counts=ordered)


def apply_tally(room: Room, result: TallyResult) -> None:
    """Award one point per winner and close the round.

    The room ends the game instead of revealing when the round that just
    closed was the last one allowed.
    """
    for winner_id in result.winners:
        player = room.find_player(winner_id)
        if player:
            player.points += 1
    if result.winners:
        room.winner_of_last_round = result.winners[0]
    if room.current_round >= room.max_rounds:
        room.status = Phase.GAME_OVER
    else:
        room.status = Phase.REVEAL
