"""
Winner progression for single elimination brackets.

Every operation takes a snapshot of the full match list and returns a
new one; the input list and its matches are never mutated. Callers must
re-read the latest snapshot before applying a result, since the result
replaces the whole list (last write wins).
"""
import logging
from typing import List, Optional

from .elimination import next_match_position, next_match_slot, apply_bye_advances
from .errors import InvalidInputError
from .models import (
    Match,
    MatchIndex,
    STATUS_COMPLETED,
    STATUS_SCHEDULED,
    is_placeholder_team,
)

logger = logging.getLogger(__name__)


def resolve_status(match: Match) -> str:
    """Completed once any score is recorded or the caller marked it completed."""
    if match.status == STATUS_COMPLETED or match.has_score():
        return STATUS_COMPLETED
    return STATUS_SCHEDULED


def resolve_winner(match: Match) -> Optional[str]:
    """Higher score wins; ties have no winner."""
    if match.team1_score > match.team2_score:
        return match.team1_id
    if match.team2_score > match.team1_score:
        return match.team2_id
    return None


def loser_of(match: Match) -> Optional[str]:
    if not match.winner_id:
        return None
    return match.team2_id if match.winner_id == match.team1_id else match.team1_id


def _advance_winner(index: MatchIndex, match: Match):
    """Put the winner into its next-round slot if that slot is still empty."""
    if is_placeholder_team(match.winner_id):
        return
    next_match = index.at(*next_match_position(match.round, match.match_number))
    if next_match is None:
        if match.round < index.max_round:
            logger.warning("No next match for %s (round %d, match %d); skipping advance",
                           match.id, match.round, match.match_number)
        return
    slot = next_match_slot(match.match_number) + '_id'
    current = getattr(next_match, slot)
    if current is None:
        setattr(next_match, slot, match.winner_id)
        logger.debug("%s advances from %s to %s.%s", match.winner_id, match.id, next_match.id, slot)
    elif current != match.winner_id:
        logger.debug("Slot %s.%s already holds %s; leaving it", next_match.id, slot, current)


def _route_semifinal_loser(index: MatchIndex, match: Match):
    """Send a semifinal loser to the first empty third-place slot."""
    third_place = index.third_place
    if third_place is None or match.round != index.max_round - 1:
        return
    loser = loser_of(match)
    if not loser or is_placeholder_team(loser) or third_place.has_team(loser):
        return
    if third_place.team1_id is None:
        third_place.team1_id = loser
    elif third_place.team2_id is None:
        third_place.team2_id = loser
    else:
        return
    logger.debug("Semifinal loser %s routed to %s", loser, third_place.id)


def apply_match_result(updated: Match, matches: List[Match]) -> List[Match]:
    """
    Record a result and propagate it through the bracket.

    1. derive status and winner from the scores
    2. replace the match (by id)
    3. move the winner into the linked next-round slot when that slot is empty
    4. route a semifinal loser into the third-place match when one exists

    Returns the complete new match list.
    """
    index = MatchIndex(matches)
    if updated.id not in index:
        raise InvalidInputError(f"Unknown match: {updated.id}")

    match = updated.copy()
    match.status = resolve_status(match)
    match.winner_id = resolve_winner(match)
    index.replace(match)

    if match.block_id or not match.winner_id or match.is_third_place_match():
        return index.to_list()

    _advance_winner(index, match)
    _route_semifinal_loser(index, match)
    return index.to_list()


def refresh_bracket(matches: List[Match]) -> List[Match]:
    """
    Re-run byes and winner propagation for every decided match.

    Used after a bracket is regenerated or placeholders are replaced.
    Semifinal losers are routed in match-number order. Filled slots are
    never overwritten.
    """
    index = MatchIndex(apply_bye_advances(matches))
    for match in index.bracket_matches():
        if match.status != STATUS_COMPLETED or not match.winner_id:
            continue
        if not match.team1_id or not match.team2_id:
            continue
        _advance_winner(index, match)
        _route_semifinal_loser(index, match)
    return index.to_list()


def find_champion(matches: List[Match]) -> Optional[str]:
    """Winner of the final, once it is completed."""
    index = MatchIndex(matches)
    final = index.at(index.max_round, 1)
    if final is None or final.status != STATUS_COMPLETED:
        return None
    return final.winner_id
