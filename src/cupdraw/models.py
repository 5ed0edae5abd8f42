UNRANKED_TIER = 999
TBD = 'TBD'


class DrawStyle:
    RANDOM = 'random'
    SEEDED = 'seeded'

    ALL = (RANDOM, SEEDED)


class Entrant:
    def __init__(self, id, name, tier=None, logo_url=None, position=None):
        self.id = id
        self.name = name
        self.tier = tier if tier is not None else UNRANKED_TIER
        self.logo_url = logo_url
        self.position = position  # league position within the tier, 1 = top

    def __eq__(self, other):
        return isinstance(other, Entrant) and self.id == other.id

    def __hash__(self):
        return hash(self.id)

    def __repr__(self):
        return f"Entrant(id={self.id}, name={self.name}, tier={self.tier})"


class BracketResult:
    def __init__(self, total_entrants, matches_needed, byes, next_round_size, power_of_two_base,
                 is_already_power_of_two):
        self.total_entrants = total_entrants
        self.matches_needed = matches_needed
        self.byes = byes
        self.next_round_size = next_round_size
        self.power_of_two_base = power_of_two_base
        # True only when total_entrants == power_of_two_base, which only happens at 1.
        self.is_already_power_of_two = is_already_power_of_two

    def to_dict(self):
        return {
            'total_entrants': self.total_entrants,
            'matches_needed': self.matches_needed,
            'byes': self.byes,
            'next_round_size': self.next_round_size,
            'power_of_two_base': self.power_of_two_base,
            'is_already_power_of_two': self.is_already_power_of_two,
        }

    def __repr__(self):
        return (f"BracketResult(total={self.total_entrants}, matches={self.matches_needed}, "
                f"byes={self.byes}, next={self.next_round_size})")


class MatchPairing:
    def __init__(self, home, away=None):
        self.home = home
        self.away = away

    @property
    def is_bye(self):
        return self.away is None

    def entrants(self):
        return [self.home] if self.away is None else [self.home, self.away]

    def to_dict(self):
        return {
            'home': _entrant_dict(self.home),
            'away': _entrant_dict(self.away) if self.away is not None else None,
            'is_bye': self.is_bye,
        }

    def __repr__(self):
        away = self.away.name if self.away is not None else 'BYE'
        return f"MatchPairing(home={self.home.name}, away={away})"


class ProposedDraw:
    """Draft result of a draw, kept in memory until confirmed or redrawn."""

    def __init__(self, season_id, round_name, style, bracket, pairings):
        self.season_id = season_id
        self.round_name = round_name
        self.style = style
        self.bracket = bracket
        self.pairings = list(pairings)

    @property
    def matches(self):
        return [p for p in self.pairings if not p.is_bye]

    @property
    def byes(self):
        return [p for p in self.pairings if p.is_bye]

    def entrants(self):
        result = []
        for pairing in self.pairings:
            result.extend(pairing.entrants())
        return result

    def to_dict(self):
        return {
            'season_id': self.season_id,
            'round': self.round_name,
            'style': self.style,
            'bracket': self.bracket.to_dict(),
            'pairings': [p.to_dict() for p in self.pairings],
        }

    def __repr__(self):
        return (f"ProposedDraw(season={self.season_id}, round={self.round_name}, "
                f"matches={len(self.matches)}, byes={len(self.byes)})")


class PersistedMatch:
    FIELDS = (
        'season_id', 'round', 'match_number',
        'home_id', 'home_name', 'away_id', 'away_name',
        'home_score', 'away_score', 'winner_id', 'winner_name', 'notes',
    )

    def __init__(self, season_id, round, match_number, home_id, home_name,
                 away_id=None, away_name=TBD, home_score=None, away_score=None,
                 winner_id=None, winner_name=None, notes=None):
        self.season_id = season_id
        self.round = round
        self.match_number = match_number
        self.home_id = home_id
        self.home_name = home_name
        self.away_id = away_id
        self.away_name = away_name
        self.home_score = home_score
        self.away_score = away_score
        self.winner_id = winner_id
        self.winner_name = winner_name
        self.notes = notes

    @property
    def key(self):
        return (self.season_id, self.round, self.match_number)

    @property
    def is_placeholder(self):
        """Row for a club carried in by a bye; it has no opponent."""
        return self.away_id is None and self.away_name == TBD

    @property
    def awaiting_draw(self):
        """Placeholder still waiting to be drawn against an opponent."""
        return self.is_placeholder and self.winner_id is None

    @property
    def is_decided(self):
        return self.winner_id is not None

    def participant_ids(self):
        if self.away_id is None:
            return [self.home_id]
        return [self.home_id, self.away_id]

    def to_dict(self):
        return {field: getattr(self, field) for field in self.FIELDS}

    @classmethod
    def from_dict(cls, data):
        return cls(**{field: data.get(field) for field in cls.FIELDS if field in data})

    def __repr__(self):
        return (f"PersistedMatch(round={self.round}, match_number={self.match_number}, "
                f"home={self.home_name}, away={self.away_name}, winner={self.winner_name})")


def _entrant_dict(entrant):
    return {
        'id': entrant.id,
        'name': entrant.name,
        'tier': entrant.tier,
        'logo_url': entrant.logo_url,
    }
