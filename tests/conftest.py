"""
Shared pytest fixtures for cup draw tests.

Running tests:
    pytest tests/
"""
import random
import pytest
import sys
import os
import yaml

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from cupdraw.draw import DrawEngine
from cupdraw.models import Entrant
from cupdraw.progression import RoundProgressionManager
from cupdraw.storage import InMemoryMatchStore, InMemoryStandingsProvider
from helpers import SEASON


@pytest.fixture
def five_clubs():
    """Two tier-1, two tier-2 and one tier-3 club."""
    return [
        Entrant(id='A', name='Athletic', tier=1),
        Entrant(id='B', name='Borough', tier=1),
        Entrant(id='C', name='City', tier=2),
        Entrant(id='D', name='Dynamo', tier=2),
        Entrant(id='E', name='Eagles', tier=3),
    ]

@pytest.fixture
def store():
    return InMemoryMatchStore()

@pytest.fixture
def standings(five_clubs):
    return InMemoryStandingsProvider({SEASON: five_clubs})

@pytest.fixture
def manager(store, standings):
    return RoundProgressionManager(store, standings, engine=DrawEngine(random.Random(1)))

@pytest.fixture
def temp_data_dir(tmp_path, monkeypatch):
    """Cup data directory with standings for five clubs and no matches yet."""
    import app as app_module

    standings_file = tmp_path / "standings.yaml"
    standings_file.write_text(yaml.dump({'seasons': {SEASON: [
        {'id': 'A', 'name': 'Athletic', 'tier': 1, 'position': 1},
        {'id': 'B', 'name': 'Borough', 'tier': 1, 'position': 2},
        {'id': 'C', 'name': 'City', 'tier': 2, 'position': 1},
        {'id': 'D', 'name': 'Dynamo', 'tier': 2, 'position': 2},
        {'id': 'E', 'name': 'Eagles', 'tier': 3, 'position': 1},
    ]}}, default_flow_style=False))
    (tmp_path / "cup.yaml").write_text(yaml.dump({
        'cup_name': 'Test Cup',
        'draw_style': 'seeded',
        'random_seed': 3,
    }, default_flow_style=False))

    monkeypatch.setattr(app_module, 'DATA_DIR', str(tmp_path))
    monkeypatch.setattr(app_module, '_proposed_draws', {})
    return str(tmp_path)

@pytest.fixture
def client(temp_data_dir):
    from app import app
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client
