"""
Free-form ranking format: manually ordered entries with an optional score.
"""
from functools import cmp_to_key
from typing import List

from .errors import InvalidInputError
from .models import RankingEntry, Team


def sort_rankings(entries: List[RankingEntry], is_ascending: bool = False) -> List[RankingEntry]:
    """
    Order entries by rank, then by score.

    Scores only break ties when both entries have one; ascending suits
    times, descending suits points.
    """
    def compare(a, b):
        if a.rank != b.rank:
            return a.rank - b.rank
        if a.score is not None and b.score is not None:
            diff = a.score - b.score if is_ascending else b.score - a.score
            return (diff > 0) - (diff < 0)
        return 0

    return sorted(entries, key=cmp_to_key(compare))


def reorder_rankings(entries: List[RankingEntry], ordered_ids: List[str]) -> List[RankingEntry]:
    """Apply a manual order; ranks become 1..n in that order."""
    by_id = {entry.id: entry for entry in entries}
    if sorted(ordered_ids) != sorted(by_id):
        raise InvalidInputError("Reorder must list every ranking entry exactly once")
    reordered = []
    for rank, entry_id in enumerate(ordered_ids, start=1):
        entry = RankingEntry.from_dict(by_id[entry_id].to_dict())
        entry.rank = rank
        reordered.append(entry)
    return reordered


def add_all_teams(entries: List[RankingEntry], teams: List[Team]) -> List[RankingEntry]:
    """Append an unscored entry for every team not ranked yet."""
    ranked = {entry.team_id for entry in entries}
    result = list(entries)
    for team in teams:
        if team.id in ranked:
            continue
        result.append(RankingEntry(
            id=f"ranking_{team.id}",
            team_id=team.id,
            rank=len(result) + 1,
            score=None,
        ))
    return result


def upsert_entry(entries: List[RankingEntry], entry: RankingEntry, is_ascending: bool = False) -> List[RankingEntry]:
    result = [e for e in entries if e.id != entry.id]
    result.append(entry)
    return sort_rankings(result, is_ascending)


def remove_entry(entries: List[RankingEntry], entry_id: str) -> List[RankingEntry]:
    return [e for e in entries if e.id != entry_id]
