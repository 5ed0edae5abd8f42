"""
Random and seeded draws for a single knockout round.
"""
import logging
import random
from typing import List, Optional

from .bracket import compute_bracket
from .errors import InputError
from .models import BracketResult, DrawStyle, Entrant, MatchPairing

logger = logging.getLogger(__name__)

# Unknown league positions rank below every known one inside a tier
_UNKNOWN_POSITION = 10 ** 6


def seeding_key(entrant: Entrant):
    """
    Sort key putting the weakest entrant first.

    Tier descending (bigger number = lower division), then league position
    descending within the tier, then id ascending so ties are deterministic.
    Ids of different types are grouped by type name so they never compare
    directly.
    """
    position = entrant.position if entrant.position is not None else _UNKNOWN_POSITION
    return (-entrant.tier, -position, type(entrant.id).__name__, entrant.id)


class DrawEngine:
    """
    Turns a list of entrants into pairings and byes for one round.

    The engine keeps no state besides its random source; pass a seeded
    random.Random (or an int seed) for reproducible draws.
    """

    def __init__(self, rng=None):
        if rng is None or isinstance(rng, int):
            rng = random.Random(rng)
        elif not isinstance(rng, random.Random):
            raise InputError(f"Random source must be an int seed or random.Random, got {rng!r}")
        self.rng = rng

    def draw(self, entrants: List[Entrant], style: str = DrawStyle.RANDOM,
             bracket: Optional[BracketResult] = None) -> List[MatchPairing]:
        if not entrants:
            raise InputError("No teams available for draw")
        if style not in DrawStyle.ALL:
            raise InputError(f"Unknown draw style: {style!r}")

        ids = [e.id for e in entrants]
        if len(set(ids)) != len(ids):
            raise InputError("An entrant appears more than once in the draw")

        if bracket is None:
            bracket = compute_bracket(len(entrants))
        elif bracket.total_entrants != len(entrants):
            raise InputError(
                f"Bracket was computed for {bracket.total_entrants} entrants "
                f"but {len(entrants)} were given"
            )

        playing_count = bracket.matches_needed * 2
        if style == DrawStyle.SEEDED:
            ordered = sorted(entrants, key=seeding_key)
            playing = ordered[:playing_count]
            bye_entrants = ordered[playing_count:]
            self.rng.shuffle(playing)
        else:
            ordered = list(entrants)
            self.rng.shuffle(ordered)
            playing = ordered[:playing_count]
            bye_entrants = ordered[playing_count:]

        pairings = [MatchPairing(playing[i], playing[i + 1]) for i in range(0, len(playing), 2)]
        pairings.extend(MatchPairing(entrant) for entrant in bye_entrants)

        logger.debug(f'{style} draw of {len(entrants)} entrants: '
                     f'{bracket.matches_needed} matches, {bracket.byes} byes')
        return pairings
