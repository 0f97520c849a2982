"""
Round-robin standings: per-team statistics folded from completed matches.
"""
import logging
from itertools import combinations
from typing import Dict, Iterable, List, Optional

from .errors import InvalidInputError
from .models import Match, Team, STATUS_COMPLETED, STATUS_SCHEDULED

logger = logging.getLogger(__name__)

RANKING_POINTS = 'points'
RANKING_GOAL_DIFFERENCE = 'goalDifference'
RANKING_GOALS = 'goals'
RANKING_METHODS = (RANKING_POINTS, RANKING_GOAL_DIFFERENCE, RANKING_GOALS)

DEFAULT_POINTS = {'win': 3, 'draw': 1, 'loss': 0}

# Sort keys per ranking method; residual ties keep team list order (stable sort).
_SORT_KEYS = {
    RANKING_POINTS: lambda s: (-s['points'], -s['goal_difference'], -s['goals_for']),
    RANKING_GOAL_DIFFERENCE: lambda s: (-s['goal_difference'], -s['goals_for']),
    RANKING_GOALS: lambda s: (-s['goals_for'], -s['goal_difference']),
}


def _empty_stats(team: Team) -> Dict:
    return {
        'team_id': team.id,
        'team_name': team.name,
        'played': 0,
        'won': 0,
        'drawn': 0,
        'lost': 0,
        'goals_for': 0,
        'goals_against': 0,
        'goal_difference': 0,
        'points': 0,
    }


def compute_standings(teams: List[Team], matches: Iterable[Match],
                      ranking_method: str = RANKING_POINTS,
                      points: Optional[Dict[str, int]] = None) -> List[Dict]:
    """
    Calculate ordered standings for the given teams.

    Only completed matches count. Every team gets a row, even without
    matches played.

    Ranking:
    - points: points -> goal difference -> goals for
    - goalDifference: goal difference -> goals for
    - goals: goals for -> goal difference
    """
    if ranking_method not in _SORT_KEYS:
        raise InvalidInputError(f"Unknown ranking method: {ranking_method}")
    scheme = {**DEFAULT_POINTS, **(points or {})}

    team_stats = {team.id: _empty_stats(team) for team in teams}

    for match in matches:
        if match.status != STATUS_COMPLETED:
            continue
        sides = (
            (match.team1_id, match.team1_score, match.team2_score),
            (match.team2_id, match.team2_score, match.team1_score),
        )
        for team_id, scored, conceded in sides:
            stats = team_stats.get(team_id)
            if stats is None:
                continue
            stats['played'] += 1
            stats['goals_for'] += scored
            stats['goals_against'] += conceded
            if scored > conceded:
                stats['won'] += 1
                stats['points'] += scheme['win']
            elif scored == conceded:
                stats['drawn'] += 1
                stats['points'] += scheme['draw']
            else:
                stats['lost'] += 1
                stats['points'] += scheme['loss']

    for stats in team_stats.values():
        stats['goal_difference'] = stats['goals_for'] - stats['goals_against']

    return sorted(team_stats.values(), key=_SORT_KEYS[ranking_method])


def standings_for_settings(teams: List[Team], matches: Iterable[Match], settings) -> List[Dict]:
    """Compute standings using a RoundRobinSettings object."""
    return compute_standings(
        teams,
        matches,
        ranking_method=settings.ranking_method,
        points={'win': settings.win_points, 'draw': settings.draw_points, 'loss': settings.lose_points},
    )


def top_teams(standings: List[Dict], count: int) -> List[Dict]:
    return standings[:max(count, 0)]


def generate_all_matches(teams: List[Team], existing: Optional[List[Match]] = None) -> List[Match]:
    """
    Generate round-robin matches for every pair not already scheduled.

    Match numbers continue after the existing matches.
    """
    existing = existing or []
    existing_pairs = set()
    for match in existing:
        existing_pairs.add((match.team1_id, match.team2_id))
        existing_pairs.add((match.team2_id, match.team1_id))

    new_matches = []
    next_number = len(existing) + 1
    for team1, team2 in combinations(teams, 2):
        if (team1.id, team2.id) in existing_pairs:
            continue
        new_matches.append(Match(
            id=f"match_{team1.id}_{team2.id}",
            team1_id=team1.id,
            team2_id=team2.id,
            round=1,
            match_number=next_number,
            status=STATUS_SCHEDULED,
        ))
        next_number += 1

    logger.debug("Generated %d round-robin matches for %d teams", len(new_matches), len(teams))
    return new_matches
