"""
Cup settings: a cup.yaml file merged over defaults.
"""
import os
import re
from typing import Optional, Tuple

import yaml

from .errors import ConfigError
from .models import DrawStyle

BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
DEFAULT_DATA_DIR = os.path.join(BASE_DIR, 'data')

SETTINGS_FILENAME = 'cup.yaml'
MATCHES_FILENAME = 'matches.yaml'
STANDINGS_FILENAME = 'standings.yaml'


def get_data_dir() -> str:
    """Data directory, overridable with CUP_DATA_DIR."""
    return os.environ.get('CUP_DATA_DIR', DEFAULT_DATA_DIR)


def get_default_settings() -> dict:
    return {
        'cup_name': 'Domestic Cup',
        'draw_style': DrawStyle.RANDOM,
        'eligible_tiers': '1-8',
        'total_entrants': None,
        'random_seed': None,
        'lock_timeout_seconds': 10,
    }


def load_settings(path: Optional[str] = None) -> dict:
    """Load cup settings from YAML, merging with defaults."""
    defaults = get_default_settings()
    if path is None:
        path = os.path.join(get_data_dir(), SETTINGS_FILENAME)
    if not os.path.exists(path):
        return defaults
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f'Failed to parse {path}: {e}') from e
    if not data:
        return defaults
    if not isinstance(data, dict):
        raise ConfigError(f'{path} must contain a mapping of settings')
    for key, value in defaults.items():
        if key not in data:
            data[key] = value
    validate_settings(data)
    return data


def validate_settings(settings: dict):
    if settings.get('draw_style') not in DrawStyle.ALL:
        raise ConfigError(f"draw_style must be one of {', '.join(DrawStyle.ALL)}")
    total = settings.get('total_entrants')
    if total is not None and (not isinstance(total, int) or total < 0):
        raise ConfigError('total_entrants must be a non-negative integer')
    seed = settings.get('random_seed')
    if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int)):
        raise ConfigError('random_seed must be an integer')
    timeout = settings.get('lock_timeout_seconds')
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout < 0:
        raise ConfigError('lock_timeout_seconds must be a non-negative number')
    parse_tier_range(settings.get('eligible_tiers'))


def parse_tier_range(value) -> Optional[Tuple[int, int]]:
    """
    Parse an eligible tier range such as "1-8" or "3".

    Returns (min_tier, max_tier), or None when every tier is eligible.
    """
    if value is None or value == '':
        return None
    if isinstance(value, int) and not isinstance(value, bool):
        return (value, value)
    match = re.fullmatch(r'\s*(\d+)\s*(?:-\s*(\d+)\s*)?', str(value))
    if not match:
        raise ConfigError(f'Invalid eligible_tiers value: {value!r}')
    low = int(match.group(1))
    high = int(match.group(2)) if match.group(2) else low
    return (min(low, high), max(low, high))
