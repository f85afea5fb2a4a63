"""
Shared pytest fixtures for football tournament tests.

Running tests:
    pytest tests/                  - full suite
    pytest tests/ -m "not slow"   - skip the concurrent-writer tests
"""
import pytest
import sys
import os

# Keep the app from persisting a generated key inside the repository
os.environ.setdefault('SECRET_KEY', 'test-secret-key')

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from werkzeug.security import generate_password_hash
from core.models import User, Team, Player, Match
from core.store import DocumentStore

TEST_PASSWORD = 'secret123'


@pytest.fixture
def store(tmp_path):
    """An empty document store in a temporary directory."""
    return DocumentStore(str(tmp_path / 'data'))


@pytest.fixture
def data_dir(store, monkeypatch):
    """Point the Flask app at the temporary store."""
    import app as app_module
    monkeypatch.setattr(app_module, 'DATA_DIR', store.data_dir)
    return store.data_dir


@pytest.fixture
def client(data_dir):
    """Create a test client bound to the temporary data directory."""
    from app import app
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client


@pytest.fixture
def make_user(store):
    """Factory inserting a user with TEST_PASSWORD."""
    def _make_user(email, role='spectator', team_id=None, name=None):
        user = User(name or email.split('@')[0], email, generate_password_hash(TEST_PASSWORD), role, team_id)
        return store.insert('users', user.to_dict())
    return _make_user


@pytest.fixture
def headers_for():
    """Factory returning bearer-token headers for a stored user."""
    from app import issue_token

    def _headers_for(user):
        return {'Authorization': f'Bearer {issue_token(user)}'}
    return _headers_for


@pytest.fixture
def manager_headers(make_user, headers_for):
    return headers_for(make_user('manager@football.com', 'management'))


@pytest.fixture
def spectator_headers(make_user, headers_for):
    return headers_for(make_user('fan@football.com', 'spectator'))


@pytest.fixture
def make_team(store):
    """Factory inserting a team."""
    def _make_team(name, captain_id=None):
        return store.insert('teams', Team(name, captain_id=captain_id).to_dict())
    return _make_team


@pytest.fixture
def fill_team(store):
    """Factory adding starters and substitutes directly, jerseys numbered from 1."""
    def _fill_team(team_id, starters, substitutes=0):
        players = []
        for i in range(starters + substitutes):
            player = Player(f'Player {i + 1}', 'Midfielder', i + 1, team_id, is_substitute=i >= starters)
            players.append(store.insert('players', player.to_dict()))
        return players
    return _fill_team


@pytest.fixture
def two_teams(make_team):
    return make_team('Alpha FC'), make_team('Beta United')


@pytest.fixture
def match(store, two_teams):
    """An upcoming match between Alpha FC (home) and Beta United (away)."""
    home, away = two_teams
    doc = Match(home['_id'], away['_id'], '2024-01-06', '15:00', 'Central Park', 1).to_dict()
    return store.insert('matches', doc)
