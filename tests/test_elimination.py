"""
Unit tests for single elimination bracket structure and generation.
"""
import math
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from conftest import make_teams
from scoring.elimination import (
    get_round_name,
    round_name_for,
    calculate_total_rounds,
    calculate_bracket_size,
    calculate_byes,
    calculate_first_round_matches,
    next_match_position,
    next_match_slot,
    feeder_position,
    build_bracket_skeleton,
    generate_bracket_matches,
    is_bye_match,
    apply_bye_advances,
)
from scoring.errors import InvalidInputError
from scoring.models import Match, STATUS_SCHEDULED


class TestHelperFunctions:
    """Tests for bracket helper functions."""

    def test_round_names(self):
        assert get_round_name(2) == "Final"
        assert get_round_name(4) == "Semifinal"
        assert get_round_name(8) == "Quarterfinal"
        assert get_round_name(16) == "Round of 16"

    def test_round_name_for(self):
        assert round_name_for(3, 3) == "Final"
        assert round_name_for(2, 3) == "Semifinal"
        assert round_name_for(1, 3) == "Quarterfinal"
        assert round_name_for(1, 5) == "Round of 32"

    def test_calculate_bracket_size(self):
        """Test bracket size calculation (next power of 2)."""
        assert calculate_bracket_size(2) == 2
        assert calculate_bracket_size(3) == 4
        assert calculate_bracket_size(5) == 8
        assert calculate_bracket_size(8) == 8
        assert calculate_bracket_size(9) == 16
        assert calculate_bracket_size(0) == 0

    def test_calculate_byes(self):
        assert calculate_byes(4) == 0
        assert calculate_byes(5) == 3
        assert calculate_byes(7) == 1
        assert calculate_byes(12) == 4

    def test_calculate_total_rounds(self):
        assert calculate_total_rounds(1) == 0
        assert calculate_total_rounds(2) == 1
        assert calculate_total_rounds(3) == 2
        assert calculate_total_rounds(8) == 3
        assert calculate_total_rounds(9) == 4

    def test_calculate_first_round_matches(self):
        assert calculate_first_round_matches(4) == 2
        assert calculate_first_round_matches(5) == 1
        assert calculate_first_round_matches(7) == 3
        assert calculate_first_round_matches(1) == 0

    def test_next_match_linkage(self):
        """Test ceil(n/2) linkage and odd/even slot rule."""
        assert next_match_position(1, 1) == (2, 1)
        assert next_match_position(1, 2) == (2, 1)
        assert next_match_position(1, 3) == (2, 2)
        assert next_match_position(2, 4) == (3, 2)
        assert next_match_slot(1) == 'team1'
        assert next_match_slot(2) == 'team2'
        assert next_match_slot(7) == 'team1'

    def test_feeder_position_inverts_linkage(self):
        for match_number in range(1, 9):
            round, number = next_match_position(1, match_number)
            slot = next_match_slot(match_number)
            assert feeder_position(round, number, slot) == (1, match_number)


class TestBracketSkeleton:
    """Tests for the canonical bracket skeleton."""

    def test_fewer_than_two_teams_is_empty(self):
        for n in (0, 1):
            skeleton = build_bracket_skeleton(n)
            assert skeleton['matches'] == []
            assert skeleton['total_rounds'] == 0

    def test_two_teams(self):
        skeleton = build_bracket_skeleton(2)
        assert len(skeleton['matches']) == 1
        final = skeleton['matches'][0]
        assert (final['team1_seed'], final['team2_seed']) == (0, 1)
        assert final['next_round'] is None

    def test_seven_teams_has_one_top_seed(self):
        """Test that 2^k - 1 teams give exactly one direct round-2 entry."""
        skeleton = build_bracket_skeleton(7)
        assert skeleton['byes'] == 1
        round1 = [m for m in skeleton['matches'] if m['round'] == 1]
        assert [(m['team1_seed'], m['team2_seed']) for m in round1] == [(1, 2), (3, 4), (5, 6)]

        seeded_slots = [
            (m['round'], m['match_number'], side)
            for m in skeleton['matches']
            for side in ('team1', 'team2') if m[f'{side}_is_seed']
        ]
        assert seeded_slots == [(2, 2, 'team2')]
        assert skeleton['matches'][4]['team2_seed'] == 0

    def test_five_teams_layout(self):
        skeleton = build_bracket_skeleton(5)
        matches = {(m['round'], m['match_number']): m for m in skeleton['matches']}
        assert (matches[(1, 1)]['team1_seed'], matches[(1, 1)]['team2_seed']) == (3, 4)
        assert matches[(2, 1)]['team1_seed'] is None
        assert matches[(2, 1)]['team2_seed'] == 0
        assert (matches[(2, 2)]['team1_seed'], matches[(2, 2)]['team2_seed']) == (1, 2)
        assert matches[(3, 1)]['team1_seed'] is None

    def test_linkage_fields(self):
        skeleton = build_bracket_skeleton(8)
        for match in skeleton['matches']:
            if match['round'] == skeleton['total_rounds']:
                assert match['next_round'] is None
                continue
            assert match['next_round'] == match['round'] + 1
            assert match['next_match_number'] == math.ceil(match['match_number'] / 2)
            assert match['next_slot'] == ('team1' if match['match_number'] % 2 else 'team2')

    @pytest.mark.slow
    @pytest.mark.parametrize("n", range(2, 65))
    def test_rounds_and_match_count(self, n):
        """Test ceil(log2 n) rounds and n - 1 matches for every team count."""
        skeleton = build_bracket_skeleton(n)
        rounds = {m['round'] for m in skeleton['matches']}
        assert max(rounds) == math.ceil(math.log2(n))
        assert len(skeleton['matches']) == n - 1

    @pytest.mark.slow
    @pytest.mark.parametrize("n", range(2, 65))
    def test_every_seed_placed_once(self, n):
        skeleton = build_bracket_skeleton(n)
        seeds = [
            m[f'{side}_seed']
            for m in skeleton['matches']
            for side in ('team1', 'team2') if m[f'{side}_seed'] is not None
        ]
        assert sorted(seeds) == list(range(n))

    @pytest.mark.parametrize("n", [2, 3, 6, 11, 16, 33])
    def test_deterministic(self, n):
        assert build_bracket_skeleton(n) == build_bracket_skeleton(n)


class TestGenerateBracketMatches:
    """Tests for bracket match instantiation."""

    def test_four_teams(self, sample_teams):
        matches = generate_bracket_matches(sample_teams)
        assert [m.id for m in matches] == ["match_1_1", "match_1_2", "match_2_1"]
        assert (matches[0].team1_id, matches[0].team2_id) == ("t1", "t2")
        assert (matches[1].team1_id, matches[1].team2_id) == ("t3", "t4")
        assert matches[2].team1_id is None
        for match in matches:
            assert match.status == STATUS_SCHEDULED
            assert match.team1_score == 0
            assert match.team2_score == 0
            assert match.winner_id is None

    def test_accepts_team_ids(self):
        matches = generate_bracket_matches(["a", "b", "c"])
        assert matches[0].team1_id == "b"
        assert matches[0].team2_id == "c"
        assert matches[1].team2_id == "a"

    def test_seeded_team_placed_in_round_two(self):
        matches = generate_bracket_matches(make_teams(3))
        final = next(m for m in matches if m.round == 2)
        assert final.team1_id is None
        assert final.team2_id == "t1"

    def test_match_count(self):
        for n in (2, 3, 5, 9, 12):
            matches = generate_bracket_matches(make_teams(n))
            assert len(matches) == n - 1

    def test_id_prefix(self, sample_teams):
        matches = generate_bracket_matches(sample_teams, has_third_place=True, id_prefix="playoff_")
        assert matches[0].id == "playoff_match_1_1"
        assert matches[-1].id == "playoff_third_place_match"

    def test_third_place_match_appended(self, sample_teams):
        matches = generate_bracket_matches(sample_teams, has_third_place=True)
        third = matches[-1]
        assert third.is_third_place
        assert third.match_number == 0
        assert third.round == 2
        assert third.team1_id is None
        assert third.team2_id is None

    def test_no_third_place_with_three_teams(self):
        matches = generate_bracket_matches(make_teams(3), has_third_place=True)
        assert not any(m.is_third_place_match() for m in matches)

    def test_insufficient_teams(self):
        with pytest.raises(InvalidInputError, match="Insufficient teams"):
            generate_bracket_matches(make_teams(1))
        with pytest.raises(InvalidInputError):
            generate_bracket_matches([])
        with pytest.raises(InvalidInputError):
            generate_bracket_matches(["a", None])


class TestByes:
    """Tests for automatic bye advancement."""

    def test_bye_winner_preset_and_advanced(self):
        """An empty seeding slot turns the round-1 match into a bye."""
        matches = generate_bracket_matches(["a", "b", "c", None])
        bye = next(m for m in matches if m.id == "match_1_2")
        assert is_bye_match(bye)
        assert bye.winner_id == "c"
        assert bye.status == STATUS_SCHEDULED

        final = next(m for m in matches if m.id == "match_2_1")
        assert final.team1_id is None
        assert final.team2_id == "c"

    def test_odd_bye_fills_team1(self):
        matches = generate_bracket_matches([None, "b", "c", "d"])
        final = next(m for m in matches if m.id == "match_2_1")
        assert final.team1_id == "b"
        assert final.team2_id is None

    def test_bye_into_bracket_with_top_seeds(self):
        matches = generate_bracket_matches(["t1", "t2", "t3", "t4", None])
        by_id = {m.id: m for m in matches}
        assert by_id["match_1_1"].winner_id == "t4"
        assert by_id["match_2_1"].team1_id == "t4"
        assert by_id["match_2_1"].team2_id == "t1"

    def test_empty_direct_round_two_position_rejected(self):
        """Position 2 of five enters round 2 directly, so it cannot be empty."""
        with pytest.raises(InvalidInputError, match="enters round 2 directly"):
            generate_bracket_matches(["t1", None, "t2", "t3", "t4"])

    def test_round_one_match_with_both_sides_empty_rejected(self):
        with pytest.raises(InvalidInputError, match="both empty"):
            generate_bracket_matches(["a", "b", "c", "d", None, None])

    def test_full_match_is_not_a_bye(self):
        assert not is_bye_match(Match(id="m", team1_id="a", team2_id="b", round=1))
        assert not is_bye_match(Match(id="m", team1_id="a", round=2))

    def test_placeholder_bye_not_advanced(self):
        matches = [
            Match(id="match_1_1", team1_id="tbd_0", round=1, match_number=1),
            Match(id="match_1_2", team1_id="a", team2_id="b", round=1, match_number=2),
            Match(id="match_2_1", round=2, match_number=1),
        ]
        result = apply_bye_advances(matches)
        assert result[0].winner_id is None
        assert result[2].team1_id is None

    def test_bye_never_overwrites_filled_slot(self):
        matches = [
            Match(id="match_1_1", team1_id="a", round=1, match_number=1),
            Match(id="match_1_2", team1_id="b", team2_id="c", round=1, match_number=2),
            Match(id="match_2_1", team1_id="manual", round=2, match_number=1),
        ]
        result = apply_bye_advances(matches)
        assert result[2].team1_id == "manual"

    def test_apply_bye_advances_does_not_mutate_input(self):
        matches = [
            Match(id="match_1_1", team1_id="a", round=1, match_number=1),
            Match(id="match_1_2", team1_id="b", team2_id="c", round=1, match_number=2),
            Match(id="match_2_1", round=2, match_number=1),
        ]
        apply_bye_advances(matches)
        assert matches[0].winner_id is None
        assert matches[2].team1_id is None
