"""
Core data models: teams, matches, league blocks and ranking entries.
"""
from typing import Dict, List, Optional

STATUS_SCHEDULED = 'scheduled'
STATUS_IN_PROGRESS = 'inProgress'
STATUS_COMPLETED = 'completed'
MATCH_STATUSES = (STATUS_SCHEDULED, STATUS_IN_PROGRESS, STATUS_COMPLETED)

THIRD_PLACE_MATCH_NUMBER = 0
PLACEHOLDER_PREFIX = 'tbd_'


def is_placeholder_team(team_id: Optional[str]) -> bool:
    """True for the TBD teams standing in for unfinished league blocks."""
    return bool(team_id) and team_id.startswith(PLACEHOLDER_PREFIX)


class Team:
    def __init__(self, id, name, members=None, color=None, logo=None):
        self.id = id
        self.name = name
        self.members = list(members) if members else []
        self.color = color
        self.logo = logo

    def to_dict(self) -> Dict:
        data = {'id': self.id, 'name': self.name, 'members': list(self.members)}
        if self.color:
            data['color'] = self.color
        if self.logo:
            data['logo'] = self.logo
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> 'Team':
        return cls(
            id=data['id'],
            name=data.get('name', data['id']),
            members=data.get('members'),
            color=data.get('color'),
            logo=data.get('logo'),
        )

    def __eq__(self, other):
        if not isinstance(other, Team):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"Team(id={self.id}, name={self.name}, members={len(self.members)})"


class Match:
    """A single fixture.

    Team slots are ``None`` while a bracket slot is unresolved. The
    third-place match carries both ``is_third_place`` and the legacy
    ``match_number == 0`` marker.
    """

    def __init__(self, id, team1_id=None, team2_id=None, team1_score=0, team2_score=0,
                 round=1, match_number=1, status=STATUS_SCHEDULED, winner_id=None,
                 block_id=None, is_third_place=False, date=None, location=None, notes=None):
        self.id = id
        self.team1_id = team1_id or None
        self.team2_id = team2_id or None
        self.team1_score = int(team1_score or 0)
        self.team2_score = int(team2_score or 0)
        self.round = round
        self.match_number = match_number
        self.status = status
        self.winner_id = winner_id or None
        self.block_id = block_id or None
        self.is_third_place = bool(is_third_place)
        self.date = date
        self.location = location
        self.notes = notes

    def is_third_place_match(self) -> bool:
        return (self.is_third_place
                or self.match_number == THIRD_PLACE_MATCH_NUMBER
                or 'third_place' in self.id)

    def has_team(self, team_id: str) -> bool:
        return team_id is not None and team_id in (self.team1_id, self.team2_id)

    def has_score(self) -> bool:
        return self.team1_score > 0 or self.team2_score > 0

    def copy(self) -> 'Match':
        return Match.from_dict(self.to_dict())

    def to_dict(self) -> Dict:
        data = {
            'id': self.id,
            'team1_id': self.team1_id,
            'team2_id': self.team2_id,
            'team1_score': self.team1_score,
            'team2_score': self.team2_score,
            'round': self.round,
            'match_number': self.match_number,
            'status': self.status,
            'winner_id': self.winner_id,
        }
        if self.block_id:
            data['block_id'] = self.block_id
        if self.is_third_place:
            data['is_third_place'] = True
        for key in ('date', 'location', 'notes'):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> 'Match':
        return cls(
            id=data['id'],
            team1_id=data.get('team1_id'),
            team2_id=data.get('team2_id'),
            team1_score=data.get('team1_score', 0),
            team2_score=data.get('team2_score', 0),
            round=data.get('round', 1),
            match_number=data.get('match_number', 1),
            status=data.get('status', STATUS_SCHEDULED),
            winner_id=data.get('winner_id'),
            block_id=data.get('block_id'),
            is_third_place=data.get('is_third_place', False),
            date=data.get('date'),
            location=data.get('location'),
            notes=data.get('notes'),
        )

    def __eq__(self, other):
        if not isinstance(other, Match):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return (f"Match(id={self.id}, round={self.round}, match_number={self.match_number}, "
                f"teams=({self.team1_id}, {self.team2_id}), "
                f"score={self.team1_score}-{self.team2_score}, status={self.status})")


class LeagueBlock:
    def __init__(self, id, name, team_ids=None, matches=None):
        self.id = id
        self.name = name
        self.team_ids = list(team_ids) if team_ids else []
        self.matches = list(matches) if matches else []

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'name': self.name,
            'team_ids': list(self.team_ids),
            'matches': [m.to_dict() for m in self.matches],
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'LeagueBlock':
        return cls(
            id=data['id'],
            name=data.get('name', data['id']),
            team_ids=data.get('team_ids'),
            matches=[Match.from_dict(m) for m in data.get('matches', [])],
        )

    def __repr__(self):
        return f"LeagueBlock(id={self.id}, teams={self.team_ids}, matches={len(self.matches)})"


class RankingEntry:
    def __init__(self, id, team_id, rank, score=None, notes=None, participant_name=None):
        self.id = id
        self.team_id = team_id
        self.rank = rank
        self.score = score
        self.notes = notes
        self.participant_name = participant_name

    def to_dict(self) -> Dict:
        data = {'id': self.id, 'team_id': self.team_id, 'rank': self.rank, 'score': self.score}
        if self.notes:
            data['notes'] = self.notes
        if self.participant_name:
            data['participant_name'] = self.participant_name
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> 'RankingEntry':
        return cls(
            id=data['id'],
            team_id=data.get('team_id'),
            rank=data.get('rank', 0),
            score=data.get('score'),
            notes=data.get('notes'),
            participant_name=data.get('participant_name'),
        )

    def __eq__(self, other):
        if not isinstance(other, RankingEntry):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"RankingEntry(team_id={self.team_id}, rank={self.rank}, score={self.score})"


def teams_from_roster(roster: Optional[Dict[str, Dict[str, List[str]]]]) -> List[Team]:
    """Build one team per class from a {grade: {class_name: [members]}} roster."""
    teams = []
    if not roster:
        return teams
    for grade_key, classes in roster.items():
        for class_name, members in (classes or {}).items():
            if not members:
                continue
            teams.append(Team(
                id=f"team_{grade_key}_{class_name}",
                name=f"{grade_key}-{class_name}",
                members=members,
            ))
    return teams


class MatchIndex:
    """
    Ordered container of match copies keyed by id.

    Bracket matches are also addressable by (round, match_number). League
    block matches and the third-place match are kept out of that map.
    """

    def __init__(self, matches: List[Match]):
        self._matches = [m.copy() for m in matches]
        self._by_id = {}
        self._offsets = {}
        self._by_position = {}
        self.third_place = None
        for offset, match in enumerate(self._matches):
            self._by_id[match.id] = match
            self._offsets[match.id] = offset
            if match.block_id:
                continue
            if match.is_third_place_match():
                if self.third_place is None:
                    self.third_place = match
                continue
            self._by_position.setdefault((match.round, match.match_number), match)

    def __contains__(self, match_id):
        return match_id in self._by_id

    def __len__(self):
        return len(self._matches)

    def get(self, match_id: str) -> Optional[Match]:
        return self._by_id.get(match_id)

    def at(self, round: int, match_number: int) -> Optional[Match]:
        return self._by_position.get((round, match_number))

    def bracket_matches(self) -> List[Match]:
        """Bracket matches ordered by round, then match number."""
        return [self._by_position[key] for key in sorted(self._by_position)]

    @property
    def max_round(self) -> int:
        return max((r for r, _ in self._by_position), default=0)

    def replace(self, match: Match):
        """Swap in a new version of an indexed match, keeping its position in the list."""
        current = self._by_id[match.id]
        self._matches[self._offsets[match.id]] = match
        self._by_id[match.id] = match
        if self.third_place is current:
            self.third_place = match
        elif not match.block_id:
            key = (current.round, current.match_number)
            if self._by_position.get(key) is current:
                del self._by_position[key]
            self._by_position.setdefault((match.round, match.match_number), match)

    def to_list(self) -> List[Match]:
        return list(self._matches)
