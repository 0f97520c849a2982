"""
Shared pytest fixtures for scoring tests.

Running tests:
    pytest tests/                  - full suite
    pytest tests/ -m "not slow"   - fast subset (skips exhaustive bracket checks)
"""
import pytest
import sys
import os

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from scoring.models import Team, Match, STATUS_COMPLETED


def make_teams(count):
    """Teams t1..tN named Team 1..Team N."""
    return [Team(id=f"t{i}", name=f"Team {i}") for i in range(1, count + 1)]


def completed(match_id, team1_id, team2_id, team1_score, team2_score, **kwargs):
    """A completed match with the given score."""
    return Match(
        id=match_id,
        team1_id=team1_id,
        team2_id=team2_id,
        team1_score=team1_score,
        team2_score=team2_score,
        status=STATUS_COMPLETED,
        **kwargs,
    )


@pytest.fixture
def sample_teams():
    """Four teams for bracket and standings tests."""
    return make_teams(4)


@pytest.fixture
def eight_teams():
    return make_teams(8)


@pytest.fixture
def temp_data_dir(tmp_path, monkeypatch):
    """Point the Flask app at an empty temporary data directory."""
    import app as app_module

    data_dir = tmp_path / "data"
    data_dir.mkdir()
    monkeypatch.setattr(app_module, 'DATA_DIR', str(data_dir))
    return data_dir


@pytest.fixture
def client(temp_data_dir):
    """Flask test client backed by the temporary data directory."""
    from app import app
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client
