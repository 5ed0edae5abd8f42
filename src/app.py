"""
Flask web application for the cup draw engine.
"""
import os
from flask import Flask, jsonify, request
from cupdraw.config import MATCHES_FILENAME, SETTINGS_FILENAME, STANDINGS_FILENAME, get_data_dir, load_settings
from cupdraw.errors import ConfigError, InputError, PersistenceError, StateError
from cupdraw.progression import RoundProgressionManager
from cupdraw.storage import YamlMatchStore, YamlStandingsProvider

app = Flask(__name__)

DATA_DIR = get_data_dir()

# Draws waiting for confirmation, keyed by (season_id, round_name)
_proposed_draws = {}


def _file_path(filename: str) -> str:
    return os.path.join(DATA_DIR, filename)


def get_manager() -> RoundProgressionManager:
    """Build a manager over the YAML files in DATA_DIR."""
    settings = load_settings(_file_path(SETTINGS_FILENAME))
    store = YamlMatchStore(_file_path(MATCHES_FILENAME), lock_timeout=settings['lock_timeout_seconds'])
    standings = YamlStandingsProvider(_file_path(STANDINGS_FILENAME))
    return RoundProgressionManager(store, standings, settings=settings)


def _error(message: str, status: int):
    return jsonify({'success': False, 'error': message}), status


@app.errorhandler(InputError)
@app.errorhandler(ConfigError)
def handle_input_error(e):
    return _error(str(e), 400)


@app.errorhandler(StateError)
def handle_state_error(e):
    app.logger.info(f'Draw refused for season {e.season_id}, {e.round_name}: {e}')
    return _error(str(e), 409)


@app.errorhandler(PersistenceError)
def handle_persistence_error(e):
    app.logger.error(f'Match store failure: {e}')
    return _error(str(e), 500)


@app.route('/api/seasons/<season_id>/rounds', methods=['GET'])
def api_round_statuses(season_id):
    statuses = get_manager().round_statuses(season_id)
    return jsonify({'success': True, 'rounds': [s.to_dict() for s in statuses]})


@app.route('/api/seasons/<season_id>/recommended-round', methods=['GET'])
def api_recommended_round(season_id):
    return jsonify({'success': True, 'round': get_manager().recommended_starting_round(season_id)})


@app.route('/api/seasons/<season_id>/matches', methods=['GET'])
def api_matches(season_id):
    round_name = request.args.get('round')
    matches = get_manager().store.list_matches(season_id, round_name)
    return jsonify({'success': True, 'matches': [m.to_dict() for m in matches]})


@app.route('/api/seasons/<season_id>/draw', methods=['POST'])
def api_propose_draw(season_id):
    """Conduct a draw; calling again for the same round is a redraw."""
    data = request.get_json(silent=True) or {}
    round_name = data.get('round')
    if not round_name:
        return _error('Round is required.', 400)
    proposed = get_manager().propose_draw(season_id, round_name, data.get('style'))
    _proposed_draws[(season_id, round_name)] = proposed
    return jsonify({'success': True, 'draw': proposed.to_dict()})


@app.route('/api/seasons/<season_id>/draw', methods=['DELETE'])
def api_discard_draw(season_id):
    round_name = request.args.get('round')
    discarded = _proposed_draws.pop((season_id, round_name), None) is not None
    return jsonify({'success': True, 'discarded': discarded})


@app.route('/api/seasons/<season_id>/draw/confirm', methods=['POST'])
def api_confirm_draw(season_id):
    data = request.get_json(silent=True) or {}
    round_name = data.get('round')
    proposed = _proposed_draws.get((season_id, round_name))
    if proposed is None:
        return _error(f'No pending draw for {round_name}.', 404)
    try:
        created = get_manager().confirm_draw(proposed)
    except StateError:
        # Stale proposals cannot be confirmed later either
        _proposed_draws.pop((season_id, round_name), None)
        raise
    _proposed_draws.pop((season_id, round_name), None)
    app.logger.info(f'Season {season_id}: {round_name} draw saved ({len(created)} rows)')
    return jsonify({'success': True, 'matches': [m.to_dict() for m in created]})


if __name__ == '__main__':
    app.run(debug=os.environ.get('FLASK_DEBUG') == '1')
