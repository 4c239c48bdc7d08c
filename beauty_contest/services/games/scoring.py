import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from beauty_contest.models import Player
from .rules import (
    BASE_PENALTY,
    DOUBLE_PENALTY,
    DOUBLE_PENALTY_AMOUNT,
    ELIMINATION_SCORE,
    GAMBIT_THRESHOLD,
    HIGH_NUMBER_GAMBIT,
    IMMUNITY_BONUS,
    NO_WINNER,
    TARGET_RATIO,
    TIE_INVALID,
    ZERO_VS_HUNDRED,
    ordered_rules,
    select_rules,
)
from .voting import ABSTAINED


@dataclass
class RoundOutcome:
    rules: frozenset
    target: Optional[float] = None
    winner_id: Optional[str] = None
    immune_id: Optional[str] = None
    disqualified: Set[str] = field(default_factory=set)
    penalty: int = BASE_PENALTY
    decided_by_duel: bool = False
    eliminated: List[str] = field(default_factory=list)
    record: dict = field(default_factory=dict)


def _weight(choice) -> float:
    return ABSTAINED.value if choice is ABSTAINED else choice


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _duel_winner(entries) -> Optional[str]:
    """Sid of whoever played 100 against a 0, if that is what happened."""
    (first, a), (second, b) = entries
    if a is ABSTAINED or b is ABSTAINED:
        return None
    if a == 0 and b == 100:
        return second.id
    if a == 100 and b == 0:
        return first.id
    return None


def _closest(entries, excluded: Set[str], target: float) -> Optional[str]:
    best_id = None
    best_diff = None
    tied = False
    for player, choice in entries:
        if choice is ABSTAINED or player.id in excluded:
            continue
        diff = abs(choice - target)
        if best_diff is None or diff < best_diff:
            best_id, best_diff, tied = player.id, diff, False
        elif diff == best_diff:
            tied = True
    return None if tied else best_id


def resolve_round(active_players: List[Player], choices: Dict[str, float]) -> Optional[RoundOutcome]:
    """Decide the round for the active players and apply the score changes.

    Rules are layered in a fixed order: 0-vs-100 duel, high-number gambit,
    tie invalidation, target, closest candidate, double penalty, settlement.
    The target is always 0.8 x the mean over every active player, with
    abstentions weighing -1, whatever was disqualified along the way.

    Returns None when nobody is active.
    """
    n = len(active_players)
    if n == 0:
        return None
    rules = select_rules(n)
    entries = [(p, choices.get(p.id, ABSTAINED)) for p in active_players]
    outcome = RoundOutcome(rules=rules)

    if ZERO_VS_HUNDRED in rules:
        duel_winner = _duel_winner(entries)
        if duel_winner is not None:
            outcome.winner_id = duel_winner
            outcome.decided_by_duel = True

    if not outcome.decided_by_duel:
        if HIGH_NUMBER_GAMBIT in rules:
            gamblers = [p.id for p, c in entries if c is not ABSTAINED and c >= GAMBIT_THRESHOLD]
            if len(gamblers) == 1:
                outcome.immune_id = gamblers[0]
            elif len(gamblers) > 1:
                outcome.disqualified.update(gamblers)

        if TIE_INVALID in rules:
            counts: Dict[float, int] = {}
            for _, c in entries:
                if c is not ABSTAINED:
                    counts[c] = counts.get(c, 0) + 1
            outcome.disqualified.update(
                p.id for p, c in entries if c is not ABSTAINED and counts[c] > 1
            )

        outcome.target = sum(_weight(c) for _, c in entries) / n * TARGET_RATIO

        excluded = set(outcome.disqualified)
        if outcome.immune_id is not None:
            excluded.add(outcome.immune_id)
        outcome.winner_id = _closest(entries, excluded, outcome.target)

        if DOUBLE_PENALTY in rules and outcome.winner_id is not None:
            winning_choice = choices[outcome.winner_id]
            if _round_half_up(winning_choice) == _round_half_up(outcome.target):
                outcome.penalty = DOUBLE_PENALTY_AMOUNT

    for player in active_players:
        if player.id == outcome.immune_id:
            player.score += IMMUNITY_BONUS
        elif player.id == outcome.winner_id:
            continue
        else:
            player.score -= outcome.penalty
        if player.score <= ELIMINATION_SCORE and not player.is_eliminated:
            player.is_eliminated = True
            outcome.eliminated.append(player.name)

    by_id = {p.id: p for p in active_players}
    outcome.record = {
        'choices': [
            {
                'player_id': p.id,
                'player_name': p.name,
                'choice': None if c is ABSTAINED else c,
            }
            for p, c in entries
        ],
        'target': None if outcome.target is None else f"{outcome.target:.2f}",
        'winner_name': by_id[outcome.winner_id].name if outcome.winner_id else NO_WINNER,
        'eliminated_players': list(outcome.eliminated),
        'immune_player': by_id[outcome.immune_id].name if outcome.immune_id else None,
        'penalty': outcome.penalty,
        'rules': ordered_rules(rules),
    }
    return outcome
