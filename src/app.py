"""
Flask web application exposing the scoring core as a JSON API.
"""
import os
import random
import logging
from functools import wraps
from filelock import FileLock
from flask import Flask, request, jsonify
from scoring.elimination import generate_bracket_matches
from scoring.errors import InvalidInputError
from scoring.formats import Sport, TournamentSport, RoundRobinSport, LeagueSport
from scoring.league import (
    block_standings,
    distribute_into_blocks,
    flatten_blocks,
    generate_playoff_matches,
    has_recorded_scores,
    reconstruct_blocks,
)
from scoring.models import MATCH_STATUSES, teams_from_roster
from scoring.overall import PointSettings, compute_overall_scores
from scoring.progression import apply_match_result
from scoring.standings import standings_for_settings
from scoring.storage import SportStore
from scoring.view import project_for_display

app = Flask(__name__)
app.logger.setLevel(logging.INFO)

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('SCORING_DATA_DIR', os.path.join(BASE_DIR, 'data'))


_data_locks = {}


def get_data_lock() -> FileLock:
    """Process-wide lock for the current DATA_DIR."""
    os.makedirs(DATA_DIR, exist_ok=True)
    return _data_locks.setdefault(DATA_DIR, FileLock(os.path.join(DATA_DIR, '.lock'), timeout=10))


def with_data_lock(f):
    """Hold the data lock for the whole load -> apply -> save of a request."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        with get_data_lock():
            return f(*args, **kwargs)
    return decorated_function


def get_store() -> SportStore:
    """Store rooted at the current DATA_DIR, sharing the request lock."""
    return SportStore(DATA_DIR, lock=get_data_lock())


def int_param(data, key, default):
    """Integer field from a JSON body."""
    try:
        return int(data.get(key, default))
    except (TypeError, ValueError):
        raise InvalidInputError(f"{key} must be an integer")


def load_sport_or_404(sport_id):
    """Return (sport, None) or (None, error response)."""
    sport = get_store().load(sport_id)
    if sport is None:
        return None, (jsonify({'error': f'Sport not found: {sport_id}'}), 404)
    return sport, None


def save_sport(sport):
    get_store().save(sport)


@app.errorhandler(InvalidInputError)
def handle_invalid_input(error):
    app.logger.warning(f'Rejected request: {error}')
    return jsonify({'error': str(error)}), 400


@app.route('/api/sports/<sport_id>', methods=['GET'])
def api_get_sport(sport_id):
    """Return the stored sport snapshot."""
    sport, error = load_sport_or_404(sport_id)
    if error:
        return error
    return jsonify(sport.to_dict())


@app.route('/api/sports/<sport_id>', methods=['PUT'])
@with_data_lock
def api_put_sport(sport_id):
    """Replace the whole sport snapshot."""
    data = request.get_json()
    if not data:
        return jsonify({'error': 'Missing sport data'}), 400
    data = {**data, 'id': sport_id}
    sport = Sport.from_dict(data)
    save_sport(sport)
    return jsonify(sport.to_dict())


@app.route('/api/sports/<sport_id>/teams/from-roster', methods=['POST'])
@with_data_lock
def api_teams_from_roster(sport_id):
    """Replace the team list with one team per roster class."""
    sport, error = load_sport_or_404(sport_id)
    if error:
        return error
    teams = teams_from_roster(sport.roster)
    if not teams:
        return jsonify({'error': 'Roster has no classes with members'}), 400
    sport = sport.replace(teams=teams)
    save_sport(sport)
    return jsonify({'success': True, 'teams': [t.to_dict() for t in teams]})


@app.route('/api/sports/<sport_id>/standings', methods=['GET'])
def api_standings(sport_id):
    """Standings for a round-robin sport, or per block for a league."""
    sport, error = load_sport_or_404(sport_id)
    if error:
        return error
    if isinstance(sport, RoundRobinSport):
        standings = standings_for_settings(sport.teams, sport.matches, sport.settings)
        return jsonify({'standings': standings, 'display_rank_count': sport.settings.display_rank_count})
    if isinstance(sport, LeagueSport):
        blocks = reconstruct_blocks(sport.matches)
        return jsonify({'blocks': {block.id: block_standings(block, sport.teams) for block in blocks}})
    return jsonify({'error': f'Standings are not available for {sport.type} sports'}), 400


@app.route('/api/sports/<sport_id>/bracket', methods=['POST'])
@with_data_lock
def api_generate_bracket(sport_id):
    """Generate a tournament bracket from a seeding order."""
    sport, error = load_sport_or_404(sport_id)
    if error:
        return error
    if not isinstance(sport, TournamentSport):
        return jsonify({'error': 'Brackets can only be generated for tournament sports'}), 400

    data = request.get_json(silent=True) or {}
    seed_order = data.get('seed_order') or [team.id for team in sport.teams]
    known = {team.id for team in sport.teams}
    unknown = [team_id for team_id in seed_order if team_id and team_id not in known]
    if unknown:
        return jsonify({'error': f'Unknown teams in seed order: {", ".join(unknown)}'}), 400
    if data.get('shuffle'):
        seed_order = list(seed_order)
        random.Random(data.get('seed')).shuffle(seed_order)

    has_third_place = data.get('has_third_place', sport.settings.has_third_place_match)
    matches = generate_bracket_matches(seed_order, has_third_place)
    sport.settings.has_third_place_match = bool(has_third_place)
    sport = sport.replace(matches=matches)
    save_sport(sport)
    app.logger.info(f'Generated bracket for {sport_id}: {len(matches)} matches')
    return jsonify({'success': True, 'matches': [m.to_dict() for m in matches]})


@app.route('/api/sports/<sport_id>/matches/<match_id>', methods=['POST'])
@with_data_lock
def api_record_result(sport_id, match_id):
    """Record a match result and propagate it."""
    sport, error = load_sport_or_404(sport_id)
    if error:
        return error
    data = request.get_json(silent=True) or {}

    current = next((m for m in sport.matches if m.id == match_id), None)
    if current is None:
        return jsonify({'error': f'Match not found: {match_id}'}), 404

    updated = current.copy()
    try:
        for field in ('team1_score', 'team2_score'):
            if field in data:
                value = int(data[field] or 0)
                if value < 0:
                    return jsonify({'error': 'Scores must not be negative'}), 400
                setattr(updated, field, value)
    except (TypeError, ValueError):
        return jsonify({'error': 'Scores must be integers'}), 400
    for field in ('team1_id', 'team2_id', 'date', 'location', 'notes'):
        if field in data:
            setattr(updated, field, data[field] or None)
    if data.get('status'):
        if data['status'] not in MATCH_STATUSES:
            return jsonify({'error': f"Unknown status: {data['status']}"}), 400
        updated.status = data['status']

    matches = apply_match_result(updated, sport.matches)
    sport = sport.replace(matches=matches)
    save_sport(sport)
    saved = next(m for m in matches if m.id == match_id)
    return jsonify({'success': True, 'match': saved.to_dict(), 'matches': [m.to_dict() for m in matches]})


@app.route('/api/sports/<sport_id>/blocks/distribute', methods=['POST'])
@with_data_lock
def api_distribute_blocks(sport_id):
    """Shuffle teams into blocks; requires confirm when scores would be lost."""
    sport, error = load_sport_or_404(sport_id)
    if error:
        return error
    if not isinstance(sport, LeagueSport):
        return jsonify({'error': 'Blocks exist only for league sports'}), 400

    data = request.get_json(silent=True) or {}
    block_count = int_param(data, 'block_count', sport.settings.block_count)
    existing = reconstruct_blocks(sport.matches)
    if has_recorded_scores(existing) and not data.get('confirm'):
        return jsonify({'error': 'Existing block scores would be discarded', 'requires_confirmation': True}), 409

    rng = random.Random(data['seed']) if 'seed' in data else None
    blocks = distribute_into_blocks(sport.teams, block_count, rng)
    sport.settings.block_count = block_count
    sport = sport.replace(matches=flatten_blocks(blocks))
    save_sport(sport)
    app.logger.info(f'Distributed {len(sport.teams)} teams into {block_count} blocks for {sport_id}')
    return jsonify({'success': True, 'blocks': [b.to_dict() for b in blocks]})


@app.route('/api/sports/<sport_id>/playoff', methods=['POST'])
@with_data_lock
def api_generate_playoff(sport_id):
    """Build the league playoff from block standings."""
    sport, error = load_sport_or_404(sport_id)
    if error:
        return error
    if not isinstance(sport, LeagueSport):
        return jsonify({'error': 'Playoffs exist only for league sports'}), 400

    data = request.get_json(silent=True) or {}
    advancing = int_param(data, 'advancing_teams', sport.settings.advancing_teams)
    has_third_place = data.get('has_third_place', sport.settings.has_third_place_match)

    blocks = reconstruct_blocks(sport.matches)
    playoff = generate_playoff_matches(blocks, sport.teams, advancing, has_third_place)
    sport.settings.advancing_teams = advancing
    sport.settings.has_third_place_match = bool(has_third_place)
    sport = sport.replace(matches=sport.block_matches() + playoff)
    save_sport(sport)
    return jsonify({'success': True, 'matches': [m.to_dict() for m in playoff]})


@app.route('/api/sports/<sport_id>/bracket-view', methods=['GET'])
def api_bracket_view(sport_id):
    """Render-ready bracket for the display layer."""
    sport, error = load_sport_or_404(sport_id)
    if error:
        return error
    return jsonify({'matches': project_for_display(sport)})


@app.route('/api/overall', methods=['POST'])
def api_overall():
    """Overall scoreboard across the listed sports."""
    data = request.get_json(silent=True) or {}
    sport_ids = data.get('sport_ids') or get_store().list_ids()
    sports = []
    for sport_id in sport_ids:
        sport = get_store().load(sport_id)
        if sport is None:
            return jsonify({'error': f'Sport not found: {sport_id}'}), 404
        sports.append(sport)
    point_settings = {
        sport_id: PointSettings.from_dict(settings)
        for sport_id, settings in (data.get('point_settings') or {}).items()
    }
    return jsonify({'scores': compute_overall_scores(sports, point_settings)})


if __name__ == '__main__':
    app.run(debug=True, port=5000)
