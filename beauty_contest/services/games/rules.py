"""Special rules in force for a round, chosen by how many players are left."""

from typing import Iterable, List

ZERO_VS_HUNDRED = 'ZERO_VS_HUNDRED'
HIGH_NUMBER_GAMBIT = 'HIGH_NUMBER_GAMBIT'
TIE_INVALID = 'TIE_INVALID'
DOUBLE_PENALTY = 'DOUBLE_PENALTY'

RULE_ORDER = (ZERO_VS_HUNDRED, HIGH_NUMBER_GAMBIT, TIE_INVALID, DOUBLE_PENALTY)

TARGET_RATIO = 0.8
GAMBIT_THRESHOLD = 75
IMMUNITY_BONUS = 0.5
BASE_PENALTY = 1
DOUBLE_PENALTY_AMOUNT = 2
ELIMINATION_SCORE = -10
NO_WINNER = 'none'


def select_rules(active_count: int) -> frozenset:
    """Return the rule set for a round played by ``active_count`` players.

    Two players only ever duel; from three upwards the gambit is always on,
    with tie invalidation up to four players and double penalty up to three.
    """
    if active_count <= 1:
        return frozenset()
    if active_count == 2:
        return frozenset({ZERO_VS_HUNDRED})
    rules = {HIGH_NUMBER_GAMBIT}
    if active_count <= 4:
        rules.add(TIE_INVALID)
    if active_count <= 3:
        rules.add(DOUBLE_PENALTY)
    return frozenset(rules)


def ordered_rules(rules: Iterable[str]) -> List[str]:
    rules = set(rules)
    return [name for name in RULE_ORDER if name in rules]


def rule_delta(current: Iterable[str], previous: Iterable[str]) -> List[str]:
    """Rules in ``current`` that were not in force in ``previous``."""
    return ordered_rules(set(current) - set(previous))
