import threading
from typing import Dict, List, Optional, Tuple

from beauty_contest.models import Player, Room


class RoomRegistry:
    """In-memory table of live rooms, owned by the application.

    Rooms are created on the first join for an unseen code and dropped when
    their last member leaves.
    """

    def __init__(self):
        self._rooms: Dict[str, Room] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._rooms)

    def __contains__(self, code: str) -> bool:
        return code in self._rooms

    def get(self, code: str) -> Optional[Room]:
        return self._rooms.get(code)

    def ensure_room(self, code: str, creator_id: str) -> Room:
        with self._lock:
            room = self._rooms.get(code)
            if room is None:
                room = Room(code, host_id=creator_id)
                self._rooms[code] = room
            return room

    def add_player(self, code: str, player_id: str, name: Optional[str] = None) -> Optional[Player]:
        room = self._rooms.get(code)
        if room is None:
            return None
        existing = room.players.get(player_id)
        if existing is not None:
            return existing
        name = (name or '').strip()
        if not name:
            name = f"P{len(room.players) + 1}"
        player = Player(player_id, name)
        room.players[player_id] = player
        return player

    def remove_player(self, code: str, player_id: str) -> Tuple[Optional[Player], bool]:
        """Remove a member; returns (removed player, room deleted).

        A departing host hands over to the earliest-joined remaining member.
        """
        with self._lock:
            room = self._rooms.get(code)
            if room is None:
                return None, False
            player = room.players.pop(player_id, None)
            if player is None:
                return None, False
            room.current_choices.pop(player_id, None)
            if not room.players:
                room.cancel_timers()
                del self._rooms[code]
                return player, True
            if room.host_id == player_id:
                room.host_id = next(iter(room.players))
            return player, False

    def rooms_with_member(self, player_id: str) -> List[Room]:
        with self._lock:
            return [room for room in self._rooms.values() if player_id in room.players]

    def summaries(self) -> List[dict]:
        with self._lock:
            return [room.summary() for room in self._rooms.values()]
