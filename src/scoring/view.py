"""
Render-ready bracket description for the external bracket renderer.
"""
from typing import Callable, Dict, List, Optional

from .elimination import feeder_position, next_match_position, round_name_for
from .formats import Sport
from .models import Match, MatchIndex, STATUS_COMPLETED, STATUS_IN_PROGRESS

STATE_DONE = 'DONE'
STATE_PLAYING = 'PLAYING'
STATE_SCHEDULED = 'SCHEDULED'

PARTICIPANT_NO_TEAM = 'no-team'
PARTICIPANT_WAITING = 'waiting'

DEFAULT_LABELS = {
    'final': 'Final',
    'thirdPlace': 'Third Place',
    'round': 'Round {round} - Match {number}',
    'seed': 'Seed',
    'tbd': 'TBD',
}

LabelFunction = Callable[..., str]


def default_label(key: str, **kwargs) -> str:
    return DEFAULT_LABELS[key].format(**kwargs)


def match_state(status: str) -> str:
    if status == STATUS_COMPLETED:
        return STATE_DONE
    if status == STATUS_IN_PROGRESS:
        return STATE_PLAYING
    return STATE_SCHEDULED


def _is_decided(match: Optional[Match]) -> bool:
    return match is not None and bool(match.winner_id)


def _slot_status(match: Match, side: str, index: MatchIndex) -> Optional[str]:
    """
    'no-team' for a slot that is a permanent bye: either side of a round-1
    bye, or a slot entered directly with no feeding match. 'waiting' for an
    empty slot whose feeding match is still undecided.
    """
    team_id = getattr(match, f'{side}_id')
    other_id = getattr(match, f"{'team2' if side == 'team1' else 'team1'}_id")

    if match.is_third_place_match():
        semifinals = [m for m in index.bracket_matches() if m.round == index.max_round - 1]
        if team_id is None and not all(_is_decided(m) for m in semifinals):
            return PARTICIPANT_WAITING
        return None

    if match.round == 1:
        if bool(team_id) != bool(other_id):
            return PARTICIPANT_NO_TEAM
        return None

    feeder = index.at(*feeder_position(match.round, match.match_number, side))
    if feeder is None:
        return PARTICIPANT_NO_TEAM
    if team_id is None and not _is_decided(feeder):
        return PARTICIPANT_WAITING
    return None


def _participant(match: Match, side: str, index: MatchIndex, teams: Dict, statuses: Dict,
                 label: LabelFunction) -> Dict:
    team_id = getattr(match, f'{side}_id')
    other_side = 'team2' if side == 'team1' else 'team1'
    if team_id:
        team = teams.get(team_id)
        name = team.name if team else label('tbd')
    elif getattr(match, f'{other_side}_id') and statuses[other_side] == PARTICIPANT_NO_TEAM:
        name = label('seed')
    else:
        name = label('tbd')
    number = 1 if side == 'team1' else 2
    return {
        'id': team_id or f"seed-{match.round}-{match.match_number}-{number}",
        'name': name,
        'score': getattr(match, f'{side}_score'),
        'is_winner': bool(team_id) and match.winner_id == team_id,
        'status': statuses[side],
    }


def project_for_display(sport: Sport, label: Optional[LabelFunction] = None) -> List[Dict]:
    """
    Convert a sport's bracket matches into render-ready descriptors.

    League block-stage matches are left out; only the playoff is drawn.
    The third-place match always comes last. Nothing is mutated.
    """
    label = label or default_label
    bracket = [m for m in sport.matches if not m.block_id]
    if not bracket:
        return []

    index = MatchIndex(bracket)
    teams = {team.id: team for team in sport.teams}
    max_round = index.max_round
    final_round_size = sum(1 for m in index.bracket_matches() if m.round == max_round)

    ordered = sorted(index.to_list(),
                     key=lambda m: (m.is_third_place_match(), m.round, m.match_number))

    descriptors = []
    for match in ordered:
        if match.is_third_place_match():
            name = label('thirdPlace')
            next_match = None
        else:
            if match.round == max_round and final_round_size == 1:
                name = label('final')
            else:
                name = label('round', round=match.round, number=match.match_number)
            next_match = index.at(*next_match_position(match.round, match.match_number))

        statuses = {side: _slot_status(match, side, index) for side in ('team1', 'team2')}
        descriptors.append({
            'id': match.id,
            'name': name,
            'next_match_id': next_match.id if next_match else None,
            'tournament_round_text': str(match.round),
            'round_name': round_name_for(match.round, max_round) if max_round else '',
            'start_time': match.date,
            'state': match_state(match.status),
            'participants': [
                _participant(match, 'team1', index, teams, statuses, label),
                _participant(match, 'team2', index, teams, statuses, label),
            ],
        })
    return descriptors
