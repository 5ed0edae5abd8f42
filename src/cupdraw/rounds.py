"""
Round taxonomy for knockout cups.

ROUND_ORDER is shared with every bracket view and report; previous/next
round lookups are pure index arithmetic over it, so it must not be
reordered or duplicated elsewhere.
"""
from typing import Optional

from .errors import UnknownRoundError


ROUND_ORDER = (
    'Preliminary Round',
    'First Round Qualifying',
    'Second Round Qualifying',
    'Third Round Qualifying',
    'Fourth Round Qualifying',
    'First Round',
    'Second Round',
    'Third Round',
    'Fourth Round',
    'Fifth Round',
    'Round of 128',
    'Round of 64',
    'Round of 32',
    'Round of 16',
    'Quarter-final',
    'Semi-final',
    'Final',
)

# (max entrants, round): smallest bracket round that can hold the field
_STARTING_ROUND_THRESHOLDS = (
    (2, 'Final'),
    (4, 'Semi-final'),
    (8, 'Quarter-final'),
    (16, 'Fifth Round'),
    (32, 'Fourth Round'),
    (64, 'Third Round'),
    (128, 'Second Round'),
)


def round_index(round_name: str) -> int:
    """Position of a round in ROUND_ORDER."""
    try:
        return ROUND_ORDER.index(round_name)
    except ValueError:
        raise UnknownRoundError(round_name) from None


def first_round() -> str:
    return ROUND_ORDER[0]


def final_round() -> str:
    return ROUND_ORDER[-1]


def previous_round(round_name: str) -> Optional[str]:
    """Round played immediately before `round_name`, or None for the first round."""
    idx = round_index(round_name)
    if idx == 0:
        return None
    return ROUND_ORDER[idx - 1]


def next_round(round_name: str) -> Optional[str]:
    """Round played immediately after `round_name`, or None for the Final."""
    idx = round_index(round_name)
    if idx == len(ROUND_ORDER) - 1:
        return None
    return ROUND_ORDER[idx + 1]


def is_terminal_round(round_name: str) -> bool:
    return next_round(round_name) is None


def recommended_starting_round(total_entrants: int) -> str:
    """
    Suggest where a new competition should start for a given field size.

    This is guidance for the operator only; draws can be started at any
    round regardless of what is recommended here.
    """
    if total_entrants < 0:
        raise ValueError(f"Entrant count cannot be negative: {total_entrants}")
    for capacity, round_name in _STARTING_ROUND_THRESHOLDS:
        if total_entrants <= capacity:
            return round_name
    return 'First Round'
