"""
Round-to-round progression for a knockout cup.

The manager decides who may enter a round, runs the draw through a
DrawEngine and persists confirmed draws, carrying bye recipients into the
next round as placeholder matches.

Callers must serialise draws for the same season themselves; the manager
holds no locks across propose/confirm.
"""
import logging
from typing import Dict, List, Optional

from .bracket import compute_bracket
from .config import get_default_settings, parse_tier_range
from .draw import DrawEngine
from .errors import (
    InputError,
    NoEligibleEntrantsError,
    RoundNotReadyError,
    StaleDrawError,
)
from .models import TBD, DrawStyle, Entrant, PersistedMatch, ProposedDraw
from .rounds import (
    ROUND_ORDER,
    first_round,
    next_round,
    previous_round,
    recommended_starting_round,
    round_index,
)

logger = logging.getLogger(__name__)


def bye_note(round_name: str) -> str:
    return f'Advanced via bye from {round_name}'


class RoundStatus:
    READY = 'ready'
    WAITING = 'waiting'
    IN_PROGRESS = 'in_progress'
    COMPLETE = 'complete'

    def __init__(self, round_name, status, count, reason):
        self.round_name = round_name
        self.status = status
        self.count = count
        self.reason = reason

    def to_dict(self):
        return {
            'round': self.round_name,
            'status': self.status,
            'count': self.count,
            'reason': self.reason,
        }

    def __repr__(self):
        return f"RoundStatus(round={self.round_name}, status={self.status}, count={self.count})"


class RoundProgressionManager:
    def __init__(self, store, standings, engine=None, settings=None):
        self.store = store
        self.standings = standings
        self.settings = {**get_default_settings(), **(settings or {})}
        self.engine = engine or DrawEngine(self.settings.get('random_seed'))
        self.tier_range = parse_tier_range(self.settings.get('eligible_tiers'))

    def matches_by_round(self, season_id) -> Dict[str, List[PersistedMatch]]:
        """Persisted matches grouped by round, in taxonomy order."""
        return self._group(self.store.list_matches(season_id))

    @staticmethod
    def _group(matches: List[PersistedMatch]) -> Dict[str, List[PersistedMatch]]:
        grouped = {}
        for match in matches:
            if match.round not in ROUND_ORDER:
                logger.warning(f'Ignoring match in unknown round {match.round!r}')
                continue
            grouped.setdefault(match.round, []).append(match)
        ordered = {}
        for round_name in ROUND_ORDER:
            if round_name in grouped:
                ordered[round_name] = sorted(grouped[round_name], key=lambda m: m.match_number)
        return ordered

    def _is_entry_round(self, round_name: str, by_round: Dict[str, List[PersistedMatch]]) -> bool:
        """
        Clubs enter from the standings at the first round of the taxonomy,
        or at whichever round the competition was started from.
        """
        if not by_round or round_name == first_round():
            return True
        earliest = next(iter(by_round))
        return round_name == earliest

    def _season_entrants(self, season_id) -> List[Entrant]:
        return self.standings.entrants_for_season(season_id, self.tier_range)

    def _qualified_entrants(self, season_id, round_name, by_round) -> List[Entrant]:
        """Winners of the previous round plus clubs carried here by a bye."""
        known = {e.id: e for e in self.standings.entrants_for_season(season_id)}
        prev = previous_round(round_name)

        entrants = []
        seen = set()

        def add(entrant_id, name):
            if entrant_id is None or entrant_id in seen:
                return
            seen.add(entrant_id)
            entrants.append(known.get(entrant_id) or Entrant(entrant_id, name))

        for match in by_round.get(prev, []):
            if match.winner_id is not None:
                add(match.winner_id, match.winner_name)
        for match in by_round.get(round_name, []):
            if match.is_placeholder:
                add(match.home_id, match.home_name)
        return entrants

    @staticmethod
    def _drawn_ids(round_name, by_round) -> set:
        """
        Clubs already drawn into `round_name`: anyone in a played pairing of
        the round, plus anyone already in a later round (bye recipients only
        show up in the round after the one they were drawn in).
        """
        idx = round_index(round_name)
        drawn = set()
        for name, rows in by_round.items():
            for match in rows:
                if name == round_name and match.awaiting_draw:
                    continue
                if name == round_name or round_index(name) > idx:
                    drawn.update(match.participant_ids())
        return drawn

    def _eligible(self, season_id, round_name, by_round) -> List[Entrant]:
        drawn = self._drawn_ids(round_name, by_round)
        if self._is_entry_round(round_name, by_round):
            pool = self._season_entrants(season_id)
        else:
            pool = self._qualified_entrants(season_id, round_name, by_round)
        return [e for e in pool if e.id not in drawn]

    def eligible_entrants(self, season_id, round_name: str) -> List[Entrant]:
        """
        Clubs that may still be drawn into `round_name`.

        An empty list does not say why; propose_draw raises either
        RoundNotReadyError or NoEligibleEntrantsError to tell the two apart.
        """
        round_index(round_name)
        return self._eligible(season_id, round_name, self.matches_by_round(season_id))

    def recommended_starting_round(self, season_id) -> str:
        total = self.settings.get('total_entrants')
        if total is None:
            total = len(self._season_entrants(season_id))
        return recommended_starting_round(total)

    def _empty_round_error(self, season_id, round_name, by_round):
        awarded = [m for m in by_round.get(round_name, []) if m.is_placeholder and m.is_decided]
        if awarded:
            return NoEligibleEntrantsError(
                f'{awarded[0].winner_name} has already won {round_name} via bye', season_id, round_name)

        if self._is_entry_round(round_name, by_round):
            return NoEligibleEntrantsError(
                f'No clubs with a tier entry are left to draw into {round_name}',
                season_id, round_name)

        prev = previous_round(round_name)
        prev_rows = by_round.get(prev, [])
        if not prev_rows:
            return RoundNotReadyError(
                f'{prev} has not been drawn yet', season_id, round_name)
        undecided = [m for m in prev_rows if m.is_placeholder or not m.is_decided]
        if undecided:
            return RoundNotReadyError(
                f'Waiting for {len(undecided)} of {len(prev_rows)} matches in {prev} to be decided',
                season_id, round_name)
        return NoEligibleEntrantsError(
            f'Every club qualified from {prev} has already been drawn into {round_name}',
            season_id, round_name)

    def propose_draw(self, season_id, round_name: str, style: Optional[str] = None) -> ProposedDraw:
        """Draw the round in memory; nothing is stored until confirm_draw."""
        round_index(round_name)
        style = style or self.settings['draw_style']
        if style not in DrawStyle.ALL:
            raise InputError(f'Unknown draw style: {style!r}')

        by_round = self.matches_by_round(season_id)
        entrants = self._eligible(season_id, round_name, by_round)
        if not entrants:
            raise self._empty_round_error(season_id, round_name, by_round)

        bracket = compute_bracket(len(entrants))
        pairings = self.engine.draw(entrants, style, bracket)
        return ProposedDraw(season_id, round_name, style, bracket, pairings)

    def confirm_draw(self, proposed: ProposedDraw) -> List[PersistedMatch]:
        """
        Persist a proposed draw in a single bulk write.

        Played pairings become matches in the drawn round, numbered after
        whatever the round already holds. Each bye becomes a placeholder in
        the next round (none after the Final). Placeholders that carried
        drawn clubs into this round are replaced by the new rows.

        Raises StaleDrawError if any drawn club has stopped being eligible
        since the proposal was made.
        """
        season_id = proposed.season_id
        round_name = proposed.round_name
        following = next_round(round_name)

        by_round = self.matches_by_round(season_id)
        round_rows = by_round.get(round_name, [])

        eligible = {e.id for e in self._eligible(season_id, round_name, by_round)}
        stale = [e.name for e in proposed.entrants() if e.id not in eligible]
        if stale:
            raise StaleDrawError(
                f"No longer eligible for {round_name}: {', '.join(stale)}; redraw required",
                season_id, round_name)

        # A bye in the Final has nowhere to move to, so its placeholder stays
        moving = [e for p in proposed.pairings if not p.is_bye or following is not None
                  for e in p.entrants()]
        placeholders = {m.home_id: m for m in round_rows if m.awaiting_draw}
        removals = [placeholders[e.id].key for e in moving if e.id in placeholders]
        inserts = []

        if following is None and not proposed.matches:
            # The last club standing takes the final round without playing
            [pairing] = proposed.byes
            held = placeholders.get(pairing.home.id)
            if held is not None:
                removals.append(held.key)
                inserts.append(PersistedMatch(
                    season_id=season_id,
                    round=round_name,
                    match_number=held.match_number,
                    home_id=held.home_id,
                    home_name=held.home_name,
                    away_id=None,
                    away_name=TBD,
                    winner_id=held.home_id,
                    winner_name=held.home_name,
                    notes=held.notes,
                ))

        removed = set(removals)
        number = max((m.match_number for m in round_rows if m.key not in removed), default=0) + 1
        for pairing in proposed.matches:
            inserts.append(PersistedMatch(
                season_id=season_id,
                round=round_name,
                match_number=number,
                home_id=pairing.home.id,
                home_name=pairing.home.name,
                away_id=pairing.away.id,
                away_name=pairing.away.name,
            ))
            number += 1

        if following is not None:
            next_number = max((m.match_number for m in by_round.get(following, [])), default=0) + 1
            for pairing in proposed.byes:
                inserts.append(PersistedMatch(
                    season_id=season_id,
                    round=following,
                    match_number=next_number,
                    home_id=pairing.home.id,
                    home_name=pairing.home.name,
                    away_id=None,
                    away_name=TBD,
                    notes=bye_note(round_name),
                ))
                next_number += 1

        self.store.bulk_write(season_id, inserts, removals)
        logger.info(f'Confirmed {round_name} draw for season {season_id}: '
                    f'{len(proposed.matches)} matches, {len(proposed.byes)} byes')
        return inserts

    def round_statuses(self, season_id) -> List[RoundStatus]:
        """Progress overview: which rounds are drawn, decided or ready to draw."""
        by_round = self.matches_by_round(season_id)

        if not by_round:
            start = self.recommended_starting_round(season_id)
            count = len(self._season_entrants(season_id))
            if count >= 2:
                return [RoundStatus(start, RoundStatus.READY, count,
                                    f'{count} clubs eligible - start tournament')]
            if count == 1:
                return [RoundStatus(start, RoundStatus.WAITING, 1,
                                    'Only 1 club eligible - at least 2 needed to start')]
            return [RoundStatus(start, RoundStatus.WAITING, 0,
                                'No clubs with a tier entry for this season')]

        statuses = []
        by_name = {}
        for round_name in ROUND_ORDER:
            rows = by_round.get(round_name, [])
            real = [m for m in rows if not m.is_placeholder]
            pending = [m for m in rows if m.awaiting_draw]
            awarded = [m for m in rows if m.is_placeholder and m.is_decided]

            if real:
                decided = len([m for m in real if m.is_decided])
                undrawn = len(self._eligible(season_id, round_name, by_round))
                if decided == len(real) and not pending and not undrawn:
                    status = RoundStatus(round_name, RoundStatus.COMPLETE, len(real),
                                         f'{len(real)} matches complete')
                else:
                    reason = f'{decided}/{len(real)} matches complete'
                    if undrawn:
                        reason += f', {undrawn} clubs still to draw'
                    status = RoundStatus(round_name, RoundStatus.IN_PROGRESS, len(real), reason)
            elif awarded and not pending:
                winners = ', '.join(m.winner_name for m in awarded)
                status = RoundStatus(round_name, RoundStatus.COMPLETE, len(awarded),
                                     f'{winners} won via bye')
            else:
                prev = previous_round(round_name)
                prev_status = by_name.get(prev)
                if prev_status is None and not pending:
                    continue
                # Clubs carried past an empty round are waiting only on the draw
                if prev_status is None or prev_status.status == RoundStatus.COMPLETE:
                    count = len(self._eligible(season_id, round_name, by_round))
                    if count >= 2:
                        status = RoundStatus(round_name, RoundStatus.READY, count,
                                             f'{count} clubs qualified for {round_name}')
                    elif count == 1:
                        status = RoundStatus(round_name, RoundStatus.WAITING, 1,
                                             'Only 1 club left - tournament complete?')
                    else:
                        continue
                elif not any(not m.is_placeholder for m in by_round.get(prev, [])) and not pending:
                    continue
                else:
                    status = RoundStatus(round_name, RoundStatus.WAITING, len(pending),
                                         f'Waiting for {prev} to complete')
            by_name[round_name] = status
            statuses.append(status)
        return statuses
