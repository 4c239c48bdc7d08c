import threading
from typing import Dict, List, Optional

LOBBY = 'LOBBY'
PLAYING = 'PLAYING'
RESULTS = 'RESULTS'
SCOREBOARD = 'SCOREBOARD'
GAME_OVER = 'GAME_OVER'

STATUSES = (LOBBY, PLAYING, RESULTS, SCOREBOARD, GAME_OVER)


class Player:
    def __init__(self, id: str, name: str):
        self.id = id
        self.name = name
        self.score = 0
        self.is_eliminated = False

    @property
    def is_active(self) -> bool:
        return not self.is_eliminated

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'score': self.score,
            'is_eliminated': self.is_eliminated,
        }


class Room:
    """Runtime state of one game room.

    Everything lives in process memory; a room exists from the first join for
    its code until its last member disconnects.
    """

    def __init__(self, code: str, host_id: str):
        self.code = code
        self.status = LOBBY
        self.host_id = host_id
        self.round = 0
        # sid -> Player, in join order
        self.players: Dict[str, Player] = {}
        self.current_choices: Dict[str, float] = {}
        self.voting_open = False
        self.round_deadline: Optional[float] = None
        # kind -> TimerHandle ('round', 'announce', 'results', 'scoreboard')
        self.timers: Dict[str, object] = {}
        self.last_round_result: Optional[dict] = None
        self.active_rules = frozenset()
        self.last_round_rules = frozenset()
        # rules announced for a round that has not started yet
        self.pending_rules = frozenset()
        self.lock = threading.RLock()

    def active_players(self) -> List[Player]:
        return [p for p in self.players.values() if p.is_active]

    def cancel_timer(self, kind: str) -> None:
        handle = self.timers.pop(kind, None)
        if handle is not None:
            handle.cancel()

    def cancel_timers(self) -> None:
        for kind in list(self.timers):
            self.cancel_timer(kind)

    def to_dict(self):
        return {
            'code': self.code,
            'status': self.status,
            'host_id': self.host_id,
            'round': self.round,
            'players': [p.to_dict() for p in self.players.values()],
            'last_round_result': self.last_round_result,
            'round_deadline': self.round_deadline,
        }

    def summary(self):
        host = self.players.get(self.host_id)
        return {
            'code': self.code,
            'status': self.status,
            'round': self.round,
            'host_name': host.name if host else None,
            'player_count': len(self.players),
            'active_count': len(self.active_players()),
        }
