"""Room lifecycle: LOBBY -> PLAYING -> RESULTS -> SCOREBOARD -> PLAYING | GAME_OVER.

Every public method is one indivisible reaction to an inbound event, run under
the room's lock. Timer continuations only carry the room code (and the round
they were armed for) and re-fetch the room when they fire, so a room that was
deleted or has moved on is left alone.
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Optional

from beauty_contest.models import GAME_OVER, LOBBY, PLAYING, RESULTS, SCOREBOARD, Player
from .rules import ordered_rules, rule_delta, select_rules
from .scoring import RoundOutcome, resolve_round
from .voting import record_choice, round_complete

MIN_PLAYERS_TO_START = 2


@dataclass(frozen=True)
class Timings:
    round_duration: float = 180
    announce_delay: float = 5
    results_delay: float = 5
    scoreboard_duration: float = 10


class RoomStateMachine:
    def __init__(self, registry, emit, scheduler, timings: Optional[Timings] = None, logger=None):
        self.registry = registry
        self.emit = emit
        self.scheduler = scheduler
        self.timings = timings or Timings()
        self.logger = logger or logging.getLogger(__name__)

    # ---- inbound events ----

    def join(self, code: str, sid: str, name: Optional[str] = None) -> Player:
        while True:
            room = self.registry.ensure_room(code, sid)
            with room.lock:
                # The room may have emptied out between lookup and lock
                if self.registry.get(code) is not room:
                    continue
                player = self.registry.add_player(code, sid, name)
                self.logger.info(f"[join] room={code} sid={sid} name={player.name}")
                self._broadcast_state(room)
                return player

    def start(self, code: str, sid: str) -> bool:
        with self._locked(code) as room:
            if room is None or room.host_id != sid or room.status != LOBBY:
                return self._ignored('start', code, sid)
            if 'announce' in room.timers:
                return self._ignored('start', code, sid)
            if len(room.active_players()) < MIN_PLAYERS_TO_START:
                return self._ignored('start', code, sid)
            self.logger.info(f"[start] room={code} host={sid}")
            self._begin_round(room)
            return True

    def submit(self, code: str, sid: str, value) -> bool:
        with self._locked(code) as room:
            if not record_choice(room, sid, value):
                return self._ignored('submit', code, sid)
            self.emit(code, 'player_voted', {'player_id': sid})
            if round_complete(room):
                room.cancel_timer('round')
                self._close_round(room)
            return True

    def advance(self, code: str, sid: str) -> bool:
        with self._locked(code) as room:
            if room is None or room.host_id != sid or room.status != RESULTS:
                return self._ignored('advance', code, sid)
            room.status = SCOREBOARD
            self._broadcast_state(room)
            self._schedule(room, 'scoreboard', self.timings.scoreboard_duration,
                           self._on_scoreboard_elapsed, code, room.round)
            return True

    def disconnect(self, sid: str) -> None:
        for room in self.registry.rooms_with_member(sid):
            with room.lock:
                player, deleted = self.registry.remove_player(room.code, sid)
                if player is None:
                    continue
                if deleted:
                    self.logger.info(f"[room-closed] room={room.code} last member {player.name} left")
                    continue
                self.logger.info(f"[leave] room={room.code} sid={sid} host={room.host_id}")
                reverted = False
                if room.status == PLAYING and room.voting_open and round_complete(room):
                    room.cancel_timer('round')
                    # a round with nobody left reverts to LOBBY and broadcasts itself
                    reverted = self._close_round(room) is None
                if not reverted:
                    self._broadcast_state(room)
                self.emit(room.code, 'system_message', {'message': f"{player.name} left the game."})

    def state(self, code: str) -> Optional[dict]:
        with self._locked(code) as room:
            return room.to_dict() if room is not None else None

    # ---- transitions ----

    def _begin_round(self, room) -> None:
        rules = select_rules(len(room.active_players()))
        added = rule_delta(rules, room.active_rules)
        if added:
            self._announce(room, rules, added)
        else:
            self._enter_playing(room, rules)

    def _announce(self, room, rules: frozenset, added) -> None:
        room.pending_rules = rules
        self.logger.info(f"[rules-changed] room={room.code} added={added}")
        self.emit(room.code, 'rules_changed', {'rules': added})
        self._schedule(room, 'announce', self.timings.announce_delay,
                       self._on_announce_elapsed, room.code)

    def _enter_playing(self, room, rules: frozenset) -> None:
        duration = self.timings.round_duration
        room.last_round_rules = room.active_rules
        room.active_rules = rules
        room.pending_rules = frozenset()
        room.status = PLAYING
        room.round += 1
        room.current_choices = {}
        room.last_round_result = None
        room.voting_open = True
        room.round_deadline = time.time() + duration
        self.logger.info(
            f"[round-start] room={room.code} round={room.round} players={len(room.active_players())} "
            f"rules={ordered_rules(room.active_rules)}"
        )
        self._broadcast_state(room)
        self.emit(room.code, 'round_started', {
            'round': room.round,
            'duration': duration,
            'deadline': room.round_deadline,
            'rules': ordered_rules(room.active_rules),
        })
        self._schedule(room, 'round', duration, self._on_round_timeout, room.code, room.round)

    def _close_round(self, room) -> Optional[RoundOutcome]:
        room.voting_open = False
        room.round_deadline = None
        self.emit(room.code, 'votes_closed', {'round': room.round})
        outcome = resolve_round(room.active_players(), room.current_choices)
        if outcome is None:
            self.logger.info(f"[round-abort] room={room.code} round={room.round} no active players")
            room.status = LOBBY
            self._broadcast_state(room)
            return None
        room.last_round_result = outcome.record
        self.logger.info(
            f"[round-end] room={room.code} round={room.round} target={outcome.record['target']} "
            f"winner={outcome.record['winner_name']} eliminated={outcome.eliminated}"
        )
        self._schedule(room, 'results', self.timings.results_delay,
                       self._on_results_reveal, room.code, room.round)
        return outcome

    # ---- timer continuations ----

    def _on_announce_elapsed(self, code: str) -> None:
        with self._locked(code) as room:
            if room is None:
                return
            room.timers.pop('announce', None)
            if room.status not in (LOBBY, SCOREBOARD):
                self.logger.info(f"[timer-abort] room={code} kind=announce status={room.status}")
                return
            active_count = len(room.active_players())
            if active_count < MIN_PLAYERS_TO_START:
                room.pending_rules = frozenset()
                if room.status == SCOREBOARD:
                    self._finish(room)
                return
            # Membership may have changed during the announcement
            rules = select_rules(active_count)
            late = rule_delta(rules, room.pending_rules | room.active_rules)
            if late:
                self._announce(room, rules, late)
                return
            self._enter_playing(room, rules)

    def _on_round_timeout(self, code: str, expected_round: int) -> None:
        with self._locked(code) as room:
            if room is None:
                return
            if room.status != PLAYING or not room.voting_open or room.round != expected_round:
                self.logger.info(f"[timer-abort] room={code} kind=round expected_round={expected_round}")
                return
            room.timers.pop('round', None)
            self.logger.info(f"[timer-fire] room={code} kind=round round={expected_round}")
            self._close_round(room)

    def _on_results_reveal(self, code: str, expected_round: int) -> None:
        with self._locked(code) as room:
            if room is None:
                return
            room.timers.pop('results', None)
            if room.status != PLAYING or room.voting_open or room.round != expected_round:
                self.logger.info(f"[timer-abort] room={code} kind=results expected_round={expected_round}")
                return
            room.status = RESULTS
            self._broadcast_state(room)

    def _on_scoreboard_elapsed(self, code: str, expected_round: int) -> None:
        with self._locked(code) as room:
            if room is None:
                return
            room.timers.pop('scoreboard', None)
            if room.status != SCOREBOARD or room.round != expected_round:
                self.logger.info(f"[timer-abort] room={code} kind=scoreboard expected_round={expected_round}")
                return
            if len(room.active_players()) <= 1:
                self._finish(room)
            else:
                self._begin_round(room)

    # ---- helpers ----

    def _finish(self, room) -> None:
        room.status = GAME_OVER
        survivors = [p.name for p in room.active_players()]
        self.logger.info(f"[game-over] room={room.code} round={room.round} survivors={survivors}")
        self._broadcast_state(room)

    def _schedule(self, room, kind: str, delay: float, callback, *args) -> None:
        room.cancel_timer(kind)
        room.timers[kind] = self.scheduler.call_later(delay, callback, *args)
        self.logger.info(f"[timer-set] room={room.code} kind={kind} round={room.round} duration={delay}s")

    def _broadcast_state(self, room) -> None:
        self.emit(room.code, 'state_update', room.to_dict())

    def _ignored(self, event: str, code: str, sid: str) -> bool:
        self.logger.debug(f"[ignored] event={event} room={code} sid={sid}")
        return False

    @contextmanager
    def _locked(self, code: str):
        room = self.registry.get(code)
        if room is None:
            yield None
            return
        with room.lock:
            yield room if self.registry.get(code) is room else None
