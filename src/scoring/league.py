"""
League format: round-robin blocks followed by a playoff bracket.

Teams are shuffled into blocks, every pair inside a block meets once,
and the top teams of each block seed the playoff block by block.
"""
import logging
import random
from itertools import combinations
from typing import Dict, List, Optional, Tuple

from .elimination import generate_bracket_matches
from .errors import InvalidInputError
from .models import LeagueBlock, Match, Team, STATUS_COMPLETED, STATUS_SCHEDULED, PLACEHOLDER_PREFIX
from .progression import resolve_status, resolve_winner
from .standings import compute_standings, RANKING_POINTS

logger = logging.getLogger(__name__)

PLAYOFF_PREFIX = 'playoff_'

# Qualification always uses 3/1/0 regardless of how a block is displayed
QUALIFICATION_POINTS = {'win': 3, 'draw': 1, 'loss': 0}


def _block(index: int) -> LeagueBlock:
    return LeagueBlock(id=f"block_{index}", name=f"Block {index}")


def generate_round_robin_matches(teams: List[Team], block_id: str) -> List[Match]:
    """Every pair of teams meets once; all matches are round 1."""
    matches = []
    for number, (team1, team2) in enumerate(combinations(teams, 2), start=1):
        matches.append(Match(
            id=f"match_{block_id}_{number}",
            team1_id=team1.id,
            team2_id=team2.id,
            round=1,
            match_number=number,
            status=STATUS_SCHEDULED,
            block_id=block_id,
        ))
    return matches


def distribute_into_blocks(teams: List[Team], block_count: int,
                           random_source: Optional[random.Random] = None) -> List[LeagueBlock]:
    """
    Shuffle teams into `block_count` blocks and generate each block's matches.

    Team i of the shuffled order goes to block i % block_count. Pass a
    seeded random.Random as `random_source` for a reproducible draw.
    Redistributing discards existing block results; check
    has_recorded_scores() first.
    """
    if block_count < 1:
        raise InvalidInputError(f"Block count must be at least 1, got {block_count}")
    if not teams:
        return []

    rng = random_source if random_source is not None else random.Random()
    shuffled = list(teams)
    rng.shuffle(shuffled)

    blocks = [_block(i + 1) for i in range(block_count)]
    members: Dict[str, List[Team]] = {block.id: [] for block in blocks}
    for i, team in enumerate(shuffled):
        block = blocks[i % block_count]
        block.team_ids.append(team.id)
        members[block.id].append(team)

    for block in blocks:
        block.matches = generate_round_robin_matches(members[block.id], block.id)

    logger.info("Distributed %d teams into %d blocks", len(teams), block_count)
    return blocks


def flatten_blocks(blocks: List[LeagueBlock]) -> List[Match]:
    return [match for block in blocks for match in block.matches]


def has_recorded_scores(blocks: List[LeagueBlock]) -> bool:
    """Whether any block match already has a non-zero score."""
    return any(match.has_score() for match in flatten_blocks(blocks))


def is_block_completed(block: LeagueBlock) -> bool:
    return all(match.status == STATUS_COMPLETED for match in block.matches)


def _lookup_teams(team_ids: List[str], teams: Optional[List[Team]]) -> List[Team]:
    by_id = {team.id: team for team in teams or []}
    return [by_id.get(team_id) or Team(id=team_id, name=team_id) for team_id in team_ids]


def block_standings(block: LeagueBlock, teams: Optional[List[Team]] = None) -> List[Dict]:
    """Qualification standings for one block (3/1/0, then goal difference, then goals)."""
    return compute_standings(
        _lookup_teams(block.team_ids, teams),
        block.matches,
        ranking_method=RANKING_POINTS,
        points=QUALIFICATION_POINTS,
    )


def compute_advancing_teams(blocks: List[LeagueBlock], advancing_per_block: int,
                            teams: Optional[List[Team]] = None,
                            require_complete: bool = False) -> List[Team]:
    """
    Playoff seed order: block 1's top teams, then block 2's, and so on.

    With `require_complete`, a block that still has unfinished matches
    contributes TBD placeholder teams instead of its current leaders.
    """
    if advancing_per_block < 1:
        raise InvalidInputError(f"Advancing teams must be at least 1, got {advancing_per_block}")

    seed_order = []
    placeholders = 0
    for block in blocks:
        count = min(advancing_per_block, len(block.team_ids))
        if require_complete and not is_block_completed(block):
            for _ in range(count):
                seed_order.append(Team(id=f"{PLACEHOLDER_PREFIX}{placeholders}", name="TBD", color='#CCCCCC'))
                placeholders += 1
            continue
        ranking = block_standings(block, teams)
        seed_order.extend(_lookup_teams([row['team_id'] for row in ranking[:count]], teams))
    return seed_order


def generate_playoff_matches(blocks: List[LeagueBlock], teams: List[Team], advancing_teams: int,
                             has_third_place: bool) -> List[Match]:
    """
    Build the playoff bracket from block standings.

    At least one block must be complete; unfinished blocks are
    represented by TBD placeholders.
    """
    if not any(block.team_ids and is_block_completed(block) for block in blocks):
        raise InvalidInputError("At least one block must be completed before the playoff")
    seed_order = compute_advancing_teams(blocks, advancing_teams, teams, require_complete=True)
    return generate_bracket_matches(seed_order, has_third_place, id_prefix=PLAYOFF_PREFIX)


def reconstruct_blocks(matches: List[Match]) -> List[LeagueBlock]:
    """
    Regroup a flat match list into blocks by block_id.

    Blocks keep the order in which their first match appears; team ids
    are the union of both sides of the block's matches.
    """
    blocks: Dict[str, LeagueBlock] = {}
    for match in matches:
        if not match.block_id:
            continue
        block = blocks.get(match.block_id)
        if block is None:
            block = LeagueBlock(id=match.block_id, name=f"Block {len(blocks) + 1}")
            blocks[match.block_id] = block
        block.matches.append(match.copy())
        for team_id in (match.team1_id, match.team2_id):
            if team_id and team_id not in block.team_ids:
                block.team_ids.append(team_id)
    return list(blocks.values())


def record_block_result(blocks: List[LeagueBlock], updated: Match) -> List[LeagueBlock]:
    """Store a block match result; draws are allowed and leave no winner."""
    match = updated.copy()
    match.status = resolve_status(match)
    match.winner_id = resolve_winner(match)

    new_blocks = []
    found = False
    for block in blocks:
        if block.id == match.block_id:
            new_matches = []
            for m in block.matches:
                if m.id == match.id:
                    new_matches.append(match)
                    found = True
                else:
                    new_matches.append(m.copy())
            new_blocks.append(LeagueBlock(block.id, block.name, block.team_ids, new_matches))
        else:
            new_blocks.append(LeagueBlock(block.id, block.name, block.team_ids,
                                          [m.copy() for m in block.matches]))
    if not found:
        raise InvalidInputError(f"Match {updated.id} not found in block {updated.block_id}")
    return new_blocks


def resize_blocks(blocks: List[LeagueBlock], block_count: int) -> Tuple[List[LeagueBlock], bool]:
    """
    Pad with empty blocks or drop trailing ones to reach `block_count`.

    Returns (blocks, discards_scores) so the caller can ask before
    dropping recorded results.
    """
    if block_count < 1:
        raise InvalidInputError(f"Block count must be at least 1, got {block_count}")
    kept = list(blocks[:block_count])
    dropped = blocks[block_count:]
    for i in range(len(kept), block_count):
        kept.append(_block(i + 1))
    return kept, has_recorded_scores(dropped)
