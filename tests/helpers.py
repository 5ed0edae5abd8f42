"""
Test helpers shared across the cup draw test modules.
"""
from cupdraw.models import Entrant

SEASON = '2024'


def make_entrants(count, tier=None):
    """Entrants E01..Enn, tiers cycling 1-4 unless a fixed tier is given."""
    return [
        Entrant(id=f"E{i:02d}", name=f"Club {i}", tier=tier if tier else (i % 4) + 1)
        for i in range(1, count + 1)
    ]


def decide(store, season_id, round_name, match_number, winner='home'):
    """Stand-in for result entry: mark one stored match as won."""
    for match in store.list_matches(season_id, round_name):
        if match.match_number == match_number:
            if winner == 'home':
                match.winner_id, match.winner_name = match.home_id, match.home_name
            else:
                match.winner_id, match.winner_name = match.away_id, match.away_name
            return match
    raise AssertionError(f"No match {match_number} in {round_name}")


def decide_round(store, season_id, round_name):
    for match in store.list_matches(season_id, round_name):
        if not match.is_placeholder:
            decide(store, season_id, round_name, match.match_number)
