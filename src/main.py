#!/usr/bin/env python3
"""
Command-line cup draw.

Usage:
    python src/main.py --season 2024 --status
    python src/main.py --season 2024 --round "First Round" --style seeded
    python src/main.py --season 2024 --round "First Round" --seed 7 --confirm

Exit codes:
    0: Success
    1: Invalid input or settings
    2: Round cannot be drawn yet / nothing to draw
    3: Match store failure
"""
import argparse
import logging
import os
import sys

from cupdraw.config import MATCHES_FILENAME, SETTINGS_FILENAME, STANDINGS_FILENAME, get_data_dir, load_settings
from cupdraw.errors import ConfigError, InputError, PersistenceError, StateError
from cupdraw.models import DrawStyle
from cupdraw.progression import RoundProgressionManager
from cupdraw.storage import YamlMatchStore, YamlStandingsProvider


def build_manager(data_dir, seed=None):
    settings = load_settings(os.path.join(data_dir, SETTINGS_FILENAME))
    if seed is not None:
        settings['random_seed'] = seed
    store = YamlMatchStore(os.path.join(data_dir, MATCHES_FILENAME),
                           lock_timeout=settings['lock_timeout_seconds'])
    standings = YamlStandingsProvider(os.path.join(data_dir, STANDINGS_FILENAME))
    return RoundProgressionManager(store, standings, settings=settings)


def print_status(manager, season):
    for status in manager.round_statuses(season):
        print(f"{status.round_name:<26} {status.status:<12} {status.reason}")


def print_draw(proposed):
    bracket = proposed.bracket
    print(f"# {proposed.round_name} draw ({proposed.style})")
    print(f"{bracket.total_entrants} teams -> {bracket.matches_needed} matches + "
          f"{bracket.byes} byes = {bracket.next_round_size} advance")
    for i, pairing in enumerate(proposed.pairings, start=1):
        if pairing.is_bye:
            print(f"{i:>3}. {pairing.home.name} (T{pairing.home.tier}) - BYE")
        else:
            print(f"{i:>3}. {pairing.home.name} (T{pairing.home.tier}) vs "
                  f"{pairing.away.name} (T{pairing.away.tier})")


def main(argv=None):
    parser = argparse.ArgumentParser(description='Conduct a knockout cup draw.')
    parser.add_argument('--season', required=True, help='Season identifier')
    parser.add_argument('--round', dest='round_name', help='Round to draw')
    parser.add_argument('--style', choices=DrawStyle.ALL, help='Draw style (default from cup.yaml)')
    parser.add_argument('--seed', type=int, help='Random seed for a reproducible draw')
    parser.add_argument('--confirm', action='store_true', help='Save the draw to matches.yaml')
    parser.add_argument('--status', action='store_true', help='Show round progress and exit')
    parser.add_argument('--data-dir', default=get_data_dir(), help='Directory holding the cup YAML files')
    parser.add_argument('--verbose', '-v', action='store_true')
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(levelname)s %(name)s: %(message)s')

    try:
        manager = build_manager(args.data_dir, args.seed)
        if args.status:
            print_status(manager, args.season)
            return 0

        round_name = args.round_name or manager.recommended_starting_round(args.season)
        proposed = manager.propose_draw(args.season, round_name, args.style)
        print_draw(proposed)
        if args.confirm:
            created = manager.confirm_draw(proposed)
            print(f"\nSaved {len(created)} matches.")
    except (InputError, ConfigError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except StateError as e:
        print(f"Cannot draw: {e}", file=sys.stderr)
        return 2
    except PersistenceError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 3
    return 0


if __name__ == '__main__':
    sys.exit(main())
