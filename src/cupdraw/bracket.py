"""
Bracket arithmetic for reducing a field towards a power-of-two bracket.
"""
import logging
from typing import Optional

from .errors import InputError
from .models import BracketResult

logger = logging.getLogger(__name__)


def compute_bracket(total_entrants: int) -> Optional[BracketResult]:
    """
    Work out how many matches and byes a round needs.

    base is the largest power of two strictly below the field (1 for a
    field of one or two). total - base matches are played; everybody else
    gets a bye, so exactly `base` entrants reach the next round.

    Returns None for an empty field.
    """
    if isinstance(total_entrants, bool) or not isinstance(total_entrants, int):
        raise InputError(f"Entrant count must be an integer, got {total_entrants!r}")
    if total_entrants < 0:
        raise InputError(f"Entrant count cannot be negative: {total_entrants}")
    if total_entrants == 0:
        return None

    n = 0
    while 2 ** (n + 1) < total_entrants:
        n += 1
    base = 2 ** n

    result = BracketResult(
        total_entrants=total_entrants,
        matches_needed=total_entrants - base,
        byes=base * 2 - total_entrants,
        next_round_size=base,
        power_of_two_base=base,
        is_already_power_of_two=total_entrants == base,
    )
    logger.debug(f'Bracket for {total_entrants} entrants: {result}')
    return result
