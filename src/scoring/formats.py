"""
Sport aggregates, one class per competition format.

Each format carries only the settings it uses. `Sport.from_dict`
dispatches on the 'type' key.
"""
from typing import Dict, List, Optional

from .errors import InvalidInputError
from .models import Match, RankingEntry, Team

TOURNAMENT = 'tournament'
ROUND_ROBIN = 'roundRobin'
LEAGUE = 'league'
RANKING = 'ranking'


class TournamentSettings:
    def __init__(self, has_third_place_match=False):
        self.has_third_place_match = bool(has_third_place_match)

    def to_dict(self) -> Dict:
        return {'has_third_place_match': self.has_third_place_match}


class RoundRobinSettings:
    def __init__(self, win_points=3, draw_points=1, lose_points=0, ranking_method='points',
                 display_rank_count=3):
        self.win_points = win_points
        self.draw_points = draw_points
        self.lose_points = lose_points
        self.ranking_method = ranking_method
        self.display_rank_count = display_rank_count

    def to_dict(self) -> Dict:
        return {
            'win_points': self.win_points,
            'draw_points': self.draw_points,
            'lose_points': self.lose_points,
            'ranking_method': self.ranking_method,
            'display_rank_count': self.display_rank_count,
        }


class LeagueSettings:
    def __init__(self, block_count=2, advancing_teams=1, has_playoff=True, has_third_place_match=True):
        self.block_count = block_count
        self.advancing_teams = advancing_teams
        self.has_playoff = bool(has_playoff)
        self.has_third_place_match = bool(has_third_place_match)

    def to_dict(self) -> Dict:
        return {
            'block_count': self.block_count,
            'advancing_teams': self.advancing_teams,
            'has_playoff': self.has_playoff,
            'has_third_place_match': self.has_third_place_match,
        }


class RankingSettings:
    def __init__(self, criteria_name='Score', is_ascending=False):
        self.criteria_name = criteria_name
        self.is_ascending = bool(is_ascending)

    def to_dict(self) -> Dict:
        return {'criteria_name': self.criteria_name, 'is_ascending': self.is_ascending}


def _known_settings(sport_class, settings: Optional[Dict]) -> Dict:
    known = sport_class.settings_class().to_dict()
    return {key: value for key, value in (settings or {}).items() if key in known}


class Sport:
    type = None
    settings_class = None

    def __init__(self, id, name, teams=None, matches=None, settings=None, roster=None):
        self.id = id
        self.name = name
        self.teams = list(teams) if teams else []
        self.matches = list(matches) if matches else []
        self.settings = settings if settings is not None else self.settings_class()
        self.roster = roster or {}

    def team_by_id(self, team_id: str) -> Optional[Team]:
        for team in self.teams:
            if team.id == team_id:
                return team
        return None

    def _extra_fields(self) -> Dict:
        return {}

    def replace(self, **changes) -> 'Sport':
        """Return a new aggregate with whole fields replaced."""
        fields = {
            'id': self.id,
            'name': self.name,
            'teams': self.teams,
            'matches': self.matches,
            'settings': self.settings,
            'roster': self.roster,
        }
        fields.update(self._extra_fields())
        fields.update(changes)
        return type(self)(**fields)

    def to_dict(self) -> Dict:
        data = {
            'id': self.id,
            'name': self.name,
            'type': self.type,
            'teams': [t.to_dict() for t in self.teams],
            'matches': [m.to_dict() for m in self.matches],
            'settings': self.settings.to_dict(),
        }
        if self.roster:
            data['roster'] = self.roster
        return data

    @staticmethod
    def from_dict(data: Dict) -> 'Sport':
        sport_type = data.get('type')
        sport_class = SPORT_TYPES.get(sport_type)
        if sport_class is None:
            raise InvalidInputError(f"Unknown sport type: {sport_type}")
        kwargs = {
            'id': data['id'],
            'name': data.get('name', data['id']),
            'teams': [Team.from_dict(t) for t in data.get('teams') or []],
            'matches': [Match.from_dict(m) for m in data.get('matches') or []],
            'settings': sport_class.settings_class(**_known_settings(sport_class, data.get('settings'))),
            'roster': data.get('roster'),
        }
        if sport_class is RankingSport:
            kwargs['rankings'] = [RankingEntry.from_dict(r) for r in data.get('rankings') or []]
        return sport_class(**kwargs)

    def __repr__(self):
        return f"{type(self).__name__}(id={self.id}, teams={len(self.teams)}, matches={len(self.matches)})"


class TournamentSport(Sport):
    type = TOURNAMENT
    settings_class = TournamentSettings


class RoundRobinSport(Sport):
    type = ROUND_ROBIN
    settings_class = RoundRobinSettings


class LeagueSport(Sport):
    type = LEAGUE
    settings_class = LeagueSettings

    def block_matches(self) -> List[Match]:
        return [m for m in self.matches if m.block_id]

    def playoff_matches(self) -> List[Match]:
        return [m for m in self.matches if not m.block_id]


class RankingSport(Sport):
    type = RANKING
    settings_class = RankingSettings

    def __init__(self, id, name, teams=None, matches=None, settings=None, roster=None, rankings=None):
        super().__init__(id, name, teams=teams, matches=matches, settings=settings, roster=roster)
        self.rankings = list(rankings) if rankings else []

    def _extra_fields(self) -> Dict:
        return {'rankings': self.rankings}

    def to_dict(self) -> Dict:
        data = super().to_dict()
        data['rankings'] = [r.to_dict() for r in self.rankings]
        return data


SPORT_TYPES = {
    TOURNAMENT: TournamentSport,
    ROUND_ROBIN: RoundRobinSport,
    LEAGUE: LeagueSport,
    RANKING: RankingSport,
}
