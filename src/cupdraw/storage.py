"""
Match store and standings provider backends.

Both file-backed classes keep one YAML document per cup, keyed by season.
"""
import logging
import os
import tempfile
from typing import Dict, Iterable, List, Optional, Tuple

import yaml
from filelock import FileLock, Timeout

from .errors import PersistenceError
from .models import Entrant, PersistedMatch

logger = logging.getLogger(__name__)

MatchKey = Tuple[object, str, int]


def _season_key(season_id) -> str:
    return str(season_id)


def _apply_write(existing: List[PersistedMatch], season_id, inserts: List[PersistedMatch],
                 removals: Iterable[MatchKey]) -> List[PersistedMatch]:
    """
    Validate a bulk write against the current rows of one season.

    Returns the season's new row list; raises PersistenceError and changes
    nothing when any insert or removal is invalid.
    """
    removal_keys = {(r, n) for _, r, n in removals}
    current_keys = {(m.round, m.match_number) for m in existing}
    missing = removal_keys - current_keys
    if missing:
        raise PersistenceError(f'Cannot remove unknown matches: {sorted(missing)}')

    kept = [m for m in existing if (m.round, m.match_number) not in removal_keys]
    taken = {(m.round, m.match_number) for m in kept}
    for match in inserts:
        if _season_key(match.season_id) != _season_key(season_id):
            raise PersistenceError(
                f'Match for season {match.season_id} written to season {season_id}'
            )
        key = (match.round, match.match_number)
        if key in taken:
            raise PersistenceError(
                f'Match number {match.match_number} already exists in {match.round}'
            )
        taken.add(key)
    return kept + list(inserts)


def _filter_round(matches: List[PersistedMatch], round_name: Optional[str]) -> List[PersistedMatch]:
    if round_name is None:
        return list(matches)
    return [m for m in matches if m.round == round_name]


class InMemoryMatchStore:
    def __init__(self, matches=None):
        self._seasons: Dict[str, List[PersistedMatch]] = {}
        for match in matches or []:
            self._seasons.setdefault(_season_key(match.season_id), []).append(match)

    def list_matches(self, season_id, round_name: Optional[str] = None) -> List[PersistedMatch]:
        return _filter_round(self._seasons.get(_season_key(season_id), []), round_name)

    def bulk_write(self, season_id, inserts: List[PersistedMatch], removals: Iterable[MatchKey] = ()):
        key = _season_key(season_id)
        self._seasons[key] = _apply_write(self._seasons.get(key, []), season_id, inserts, removals)


class YamlMatchStore:
    """
    matches.yaml backed store.

    Every write happens under a file lock and replaces the file in one
    os.replace call, so a failed write leaves the previous content intact.
    """

    def __init__(self, path: str, lock_timeout: float = 10):
        self.path = path
        self._lock = FileLock(path + '.lock', timeout=lock_timeout)

    def _load(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
        if not data:
            return {}
        seasons = data.get('seasons') or {}
        return {
            _season_key(season): [PersistedMatch.from_dict(row) for row in rows or []]
            for season, rows in seasons.items()
        }

    def _save(self, seasons: dict):
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        payload = {'seasons': {season: [m.to_dict() for m in rows] for season, rows in seasons.items()}}
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix='.matches-', suffix='.yaml')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                yaml.safe_dump(payload, f, default_flow_style=False, sort_keys=False)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def list_matches(self, season_id, round_name: Optional[str] = None) -> List[PersistedMatch]:
        try:
            with self._lock:
                seasons = self._load()
        except Timeout as e:
            raise PersistenceError(f'Timed out waiting for lock on {self.path}') from e
        except (OSError, yaml.YAMLError, TypeError) as e:
            raise PersistenceError(f'Failed to read {self.path}: {e}') from e
        return _filter_round(seasons.get(_season_key(season_id), []), round_name)

    def bulk_write(self, season_id, inserts: List[PersistedMatch], removals: Iterable[MatchKey] = ()):
        key = _season_key(season_id)
        try:
            with self._lock:
                seasons = self._load()
                seasons[key] = _apply_write(seasons.get(key, []), season_id, inserts, list(removals))
                self._save(seasons)
        except Timeout as e:
            raise PersistenceError(f'Timed out waiting for lock on {self.path}') from e
        except (OSError, yaml.YAMLError, TypeError) as e:
            raise PersistenceError(f'Failed to write {self.path}: {e}') from e
        logger.debug(f'Wrote {len(inserts)} matches to {self.path} for season {season_id}')


def _in_tier_range(tier, tier_range) -> bool:
    if tier_range is None:
        return True
    low, high = tier_range
    return low <= tier <= high


class InMemoryStandingsProvider:
    def __init__(self, seasons=None):
        self._seasons = {_season_key(k): list(v) for k, v in (seasons or {}).items()}

    def entrants_for_season(self, season_id, tier_range=None) -> List[Entrant]:
        return [e for e in self._seasons.get(_season_key(season_id), [])
                if _in_tier_range(e.tier, tier_range)]


class YamlStandingsProvider:
    """
    standings.yaml backed tier lookup.

    Expected layout:

        seasons:
          2024:
            - {id: c1, name: Rovers, tier: 1, position: 3, logo_url: ...}
    """

    def __init__(self, path: str):
        self.path = path

    def _load(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise PersistenceError(f'Failed to read {self.path}: {e}') from e
        if not data:
            return {}
        return {_season_key(k): v or [] for k, v in (data.get('seasons') or {}).items()}

    def entrants_for_season(self, season_id, tier_range=None) -> List[Entrant]:
        entrants = []
        for row in self._load().get(_season_key(season_id), []):
            if row.get('tier') is None or row.get('id') is None:
                logger.warning(f"Skipping standings row without id or tier in {self.path}: {row}")
                continue
            try:
                tier = int(row['tier'])
                position = int(row['position']) if row.get('position') is not None else None
            except (TypeError, ValueError):
                logger.warning(f"Skipping standings row with non-numeric tier or position in {self.path}: {row}")
                continue
            entrant = Entrant(
                id=row['id'],
                name=row.get('name', str(row['id'])),
                tier=tier,
                logo_url=row.get('logo_url'),
                position=position,
            )
            if _in_tier_range(entrant.tier, tier_range):
                entrants.append(entrant)
        return entrants
