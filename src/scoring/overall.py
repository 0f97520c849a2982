"""
Overall event scoreboard: placement points collected across sports.
"""
import logging
from typing import Dict, List, Optional

from .formats import LeagueSport, RankingSport, RoundRobinSport, Sport
from .models import MatchIndex, STATUS_COMPLETED
from .progression import loser_of
from .ranking import sort_rankings
from .standings import standings_for_settings

logger = logging.getLogger(__name__)


class PointSettings:
    def __init__(self, enabled=True, points=None, weight=1.0):
        self.enabled = bool(enabled)
        self.points = list(points) if points else [5, 3, 1]
        self.weight = weight if weight else 1.0

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> 'PointSettings':
        return cls(**(data or {}))

    def to_dict(self) -> Dict:
        return {'enabled': self.enabled, 'points': list(self.points), 'weight': self.weight}


def _bracket_placements(matches) -> List[str]:
    index = MatchIndex([m for m in matches if not m.block_id])
    final = index.at(index.max_round, 1)
    placements = []
    if final is None or final.status != STATUS_COMPLETED or not final.winner_id:
        return placements
    placements.append(final.winner_id)
    runner_up = loser_of(final)
    if runner_up:
        placements.append(runner_up)
    third = index.third_place
    if third is not None and third.status == STATUS_COMPLETED and third.winner_id:
        placements.append(third.winner_id)
    return placements


def final_placements(sport: Sport) -> List[str]:
    """
    Team ids in final placement order, as far as results allow.

    Brackets (tournament, league playoff): champion, runner-up, then the
    third-place winner. Round robin: standings order once every match is
    completed. Ranking: entry order.
    """
    if isinstance(sport, RoundRobinSport):
        if not sport.matches or any(m.status != STATUS_COMPLETED for m in sport.matches):
            return []
        return [row['team_id'] for row in standings_for_settings(sport.teams, sport.matches, sport.settings)]
    if isinstance(sport, RankingSport):
        return [e.team_id for e in sort_rankings(sport.rankings, sport.settings.is_ascending)]
    if isinstance(sport, LeagueSport):
        return _bracket_placements(sport.playoff_matches())
    return _bracket_placements(sport.matches)


def compute_overall_scores(sports: List[Sport], point_settings: Optional[Dict[str, PointSettings]] = None) -> List[Dict]:
    """
    Sum weighted placement points per team across sports.

    Returns entries {'team_id', 'total_points', 'sport_points', 'rank'}
    sorted by total points, highest first.
    """
    point_settings = point_settings or {}
    totals: Dict[str, Dict] = {}

    for sport in sports:
        settings = point_settings.get(sport.id) or PointSettings()
        if not settings.enabled:
            continue
        placements = final_placements(sport)
        if not placements:
            logger.debug("Sport %s has no final placements yet", sport.id)
        for position, team_id in enumerate(placements[:len(settings.points)]):
            earned = settings.points[position] * settings.weight
            entry = totals.setdefault(team_id, {'team_id': team_id, 'total_points': 0, 'sport_points': {}})
            entry['sport_points'][sport.id] = earned
            entry['total_points'] += earned

    entries = sorted(totals.values(), key=lambda e: -e['total_points'])
    for rank, entry in enumerate(entries, start=1):
        entry['rank'] = rank
    return entries
