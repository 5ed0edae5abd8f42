"""
Exception hierarchy for the cup draw engine.
"""


class CupDrawError(Exception):
    """Base class for every error raised by the draw engine."""


class InputError(CupDrawError, ValueError):
    """Bad input handed to the engine (no entrants, unknown style, ...)."""


class UnknownRoundError(InputError):
    """Round name is not part of the round taxonomy."""

    def __init__(self, round_name):
        super().__init__(f"Unknown round: {round_name!r}")
        self.round_name = round_name


class StateError(CupDrawError):
    """The competition is not in a state that allows the requested draw."""

    def __init__(self, message, season_id=None, round_name=None):
        super().__init__(message)
        self.season_id = season_id
        self.round_name = round_name


class RoundNotReadyError(StateError):
    """The previous round has not been drawn or is not fully decided yet."""


class NoEligibleEntrantsError(StateError):
    """The previous round is decided but nobody is left to draw."""


class StaleDrawError(StateError):
    """A proposed draw no longer matches what has been persisted."""


class PersistenceError(CupDrawError):
    """The match store could not complete a write or read."""


class ConfigError(CupDrawError, ValueError):
    """Invalid value in the cup settings."""
