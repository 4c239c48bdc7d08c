import math

from beauty_contest.models import PLAYING, Room

MIN_CHOICE = 0
MAX_CHOICE = 100


class Abstention:
    """Marker for an active player with no submission this round.

    It weighs ``value`` in the target average but never wins and never
    takes part in tie invalidation.
    """

    value = -1

    def __repr__(self):
        return 'ABSTAINED'


ABSTAINED = Abstention()


def parse_submission(raw):
    """Coerce a client-supplied number, or return None to reject it."""
    if isinstance(raw, bool):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    if value < MIN_CHOICE or value > MAX_CHOICE:
        return None
    if value.is_integer():
        return int(value)
    return value


def record_choice(room: Room, player_id: str, value) -> bool:
    """Store a player's number for the open round.

    Returns False without touching the room when voting is closed, the
    player is not a member, or the player has been eliminated. A second
    submission before resolution replaces the first.
    """
    if room is None or room.status != PLAYING or not room.voting_open:
        return False
    player = room.players.get(player_id)
    if player is None or player.is_eliminated:
        return False
    room.current_choices[player_id] = value
    return True


def round_complete(room: Room) -> bool:
    return all(p.id in room.current_choices for p in room.active_players())
