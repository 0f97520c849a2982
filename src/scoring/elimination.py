"""
Single elimination bracket structure and match generation.

The skeleton is a pure function of the team count:
- rounds = ceil(log2(n)), bracket size = 2 ** rounds, byes = size - n
- round 1 holds the n - size/2 fully paired matches
- the top `byes` seeding positions enter round 2 directly
- every match feeds round + 1 at match number ceil(match_number / 2);
  odd match numbers fill team1, even ones team2
"""
import logging
import math
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .errors import InvalidInputError
from .models import (
    Match,
    MatchIndex,
    Team,
    STATUS_SCHEDULED,
    THIRD_PLACE_MATCH_NUMBER,
    is_placeholder_team,
)

logger = logging.getLogger(__name__)

SeedEntry = Union[Team, str, None]


def get_round_name(teams_in_round: int) -> str:
    """Get the name of a round based on number of teams."""
    if teams_in_round == 2:
        return "Final"
    elif teams_in_round == 4:
        return "Semifinal"
    elif teams_in_round == 8:
        return "Quarterfinal"
    else:
        return f"Round of {teams_in_round}"


def round_name_for(round: int, total_rounds: int) -> str:
    """Name of a 1-based round in a bracket with `total_rounds` rounds."""
    return get_round_name(2 ** (total_rounds - round + 1))


def calculate_total_rounds(num_teams: int) -> int:
    if num_teams < 2:
        return 0
    return math.ceil(math.log2(num_teams))


def calculate_bracket_size(num_teams: int) -> int:
    """Calculate the bracket size (next power of 2)."""
    if num_teams <= 0:
        return 0
    return 2 ** math.ceil(math.log2(num_teams))


def calculate_byes(num_teams: int) -> int:
    """Calculate number of byes needed."""
    return calculate_bracket_size(num_teams) - num_teams


def calculate_first_round_matches(num_teams: int) -> int:
    """Number of contested round-1 matches."""
    if num_teams < 2:
        return 0
    return num_teams - calculate_bracket_size(num_teams) // 2


def next_match_position(round: int, match_number: int) -> Tuple[int, int]:
    return round + 1, math.ceil(match_number / 2)


def next_match_slot(match_number: int) -> str:
    """Slot ('team1' or 'team2') a winner takes in the next round."""
    return 'team1' if match_number % 2 != 0 else 'team2'


def feeder_position(round: int, match_number: int, slot: str) -> Tuple[int, int]:
    """(round, match_number) of the match whose winner feeds `slot`."""
    offset = 1 if slot == 'team1' else 0
    return round - 1, match_number * 2 - offset


def build_bracket_skeleton(team_count: int) -> Dict:
    """
    Build the canonical match skeleton for `team_count` teams.

    Returns dict with:
    - 'team_count', 'total_rounds', 'bracket_size', 'byes'
    - 'matches': list of match dicts with
        round, match_number,
        team1_seed / team2_seed: index into the seeding order, or None,
        team1_is_seed / team2_is_seed: True when the slot is a direct round-2 entry,
        next_round / next_match_number / next_slot: linkage, None for the final
    """
    if team_count < 2:
        return {
            'team_count': team_count,
            'total_rounds': 0,
            'bracket_size': 0,
            'byes': 0,
            'matches': [],
        }

    total_rounds = calculate_total_rounds(team_count)
    bracket_size = 2 ** total_rounds
    byes = bracket_size - team_count
    first_round = calculate_first_round_matches(team_count)

    slots: Dict[Tuple[int, int], Dict] = {}

    def new_match(round, match_number):
        entry = {
            'round': round,
            'match_number': match_number,
            'team1_seed': None,
            'team2_seed': None,
            'team1_is_seed': False,
            'team2_is_seed': False,
            'next_round': None,
            'next_match_number': None,
            'next_slot': None,
        }
        if round < total_rounds:
            entry['next_round'], entry['next_match_number'] = next_match_position(round, match_number)
            entry['next_slot'] = next_match_slot(match_number)
        slots[(round, match_number)] = entry
        return entry

    # Round 1: positions after the top seeds, paired in order
    for i in range(first_round):
        entry = new_match(1, i + 1)
        entry['team1_seed'] = byes + 2 * i
        entry['team2_seed'] = byes + 2 * i + 1

    for round in range(2, total_rounds + 1):
        for match_number in range(1, 2 ** (total_rounds - round) + 1):
            new_match(round, match_number)

    # Round 2 slots not fed by a round-1 match go to the top seeds in order
    if total_rounds >= 2:
        for slot_index in range(first_round, bracket_size // 2):
            entry = slots[(2, slot_index // 2 + 1)]
            side = 'team1' if slot_index % 2 == 0 else 'team2'
            entry[f'{side}_seed'] = slot_index - first_round
            entry[f'{side}_is_seed'] = True

    matches = [slots[key] for key in sorted(slots)]
    return {
        'team_count': team_count,
        'total_rounds': total_rounds,
        'bracket_size': bracket_size,
        'byes': byes,
        'matches': matches,
    }


def _seed_id(entry: SeedEntry) -> Optional[str]:
    if entry is None:
        return None
    if isinstance(entry, Team):
        return entry.id
    return entry or None


def _check_empty_positions(skeleton: Dict, ids: List[Optional[str]]):
    """
    Empty seeding positions are only allowed where they become a round-1 bye.

    A direct round-2 entry or a round-1 match with both sides empty would
    leave a slot that nothing can ever fill.
    """
    for entry in skeleton['matches']:
        for side in ('team1', 'team2'):
            seed = entry[f'{side}_seed']
            if entry[f'{side}_is_seed'] and ids[seed] is None:
                raise InvalidInputError(
                    f"Seeding position {seed + 1} enters round 2 directly and cannot be empty")
        if entry['round'] == 1 and ids[entry['team1_seed']] is None and ids[entry['team2_seed']] is None:
            raise InvalidInputError(
                f"Seeding positions {entry['team1_seed'] + 1} and {entry['team2_seed'] + 1} "
                f"are both empty")


def generate_bracket_matches(seed_order: Sequence[SeedEntry], has_third_place: bool = False,
                             id_prefix: str = '') -> List[Match]:
    """
    Instantiate bracket matches from a seeding order.

    `seed_order` holds teams (or team ids); None marks an empty seeding
    position, allowed only opposite a real team in round 1. Round-1
    matches left with a single team are byes and are advanced
    immediately. A third-place match is appended when requested and at
    least four teams are seeded.
    """
    real_count = sum(1 for entry in seed_order if _seed_id(entry))
    if real_count < 2:
        raise InvalidInputError(f"Insufficient teams: need at least 2, got {real_count}")

    skeleton = build_bracket_skeleton(len(seed_order))
    ids = [_seed_id(entry) for entry in seed_order]
    _check_empty_positions(skeleton, ids)

    matches = []
    for entry in skeleton['matches']:
        team1 = ids[entry['team1_seed']] if entry['team1_seed'] is not None else None
        team2 = ids[entry['team2_seed']] if entry['team2_seed'] is not None else None
        matches.append(Match(
            id=f"{id_prefix}match_{entry['round']}_{entry['match_number']}",
            team1_id=team1,
            team2_id=team2,
            round=entry['round'],
            match_number=entry['match_number'],
            status=STATUS_SCHEDULED,
        ))

    matches = apply_bye_advances(matches)

    if has_third_place and real_count >= 4:
        matches.append(Match(
            id=f"{id_prefix}third_place_match",
            round=skeleton['total_rounds'],
            match_number=THIRD_PLACE_MATCH_NUMBER,
            status=STATUS_SCHEDULED,
            is_third_place=True,
        ))

    logger.info("Generated bracket: %d teams, %d rounds, %d matches",
                real_count, skeleton['total_rounds'], len(matches))
    return matches


def is_bye_match(match: Match) -> bool:
    """A round-1 match with exactly one team."""
    if match.round != 1 or match.block_id or match.is_third_place_match():
        return False
    return bool(match.team1_id) != bool(match.team2_id)


def apply_bye_advances(matches: List[Match]) -> List[Match]:
    """
    Resolve round-1 byes and move their team into round 2.

    Byes keep status 'scheduled' with the winner preset. Matches holding a
    placeholder team are left alone, and filled slots are never overwritten.
    """
    index = MatchIndex(matches)
    for match in index.bracket_matches():
        if not is_bye_match(match):
            continue
        team_id = match.team1_id or match.team2_id
        if is_placeholder_team(team_id):
            continue
        match.winner_id = team_id
        next_match = index.at(*next_match_position(match.round, match.match_number))
        if next_match is None:
            continue
        slot = next_match_slot(match.match_number) + '_id'
        if getattr(next_match, slot) is None:
            setattr(next_match, slot, team_id)
            logger.debug("Bye: %s advances from %s to %s", team_id, match.id, next_match.id)
    return index.to_list()
