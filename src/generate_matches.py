import argparse
import logging
import os
import random
import sys

import yaml

from scoring.elimination import generate_bracket_matches, round_name_for
from scoring.errors import ScoringError
from scoring.formats import Sport, LeagueSport, TournamentSport, RoundRobinSport
from scoring.league import distribute_into_blocks
from scoring.models import teams_from_roster
from scoring.standings import generate_all_matches


def load_sport(file_path):
    with open(file_path, mode='r', encoding='utf-8') as file:
        data = yaml.safe_load(file) or {}
    sport = Sport.from_dict(data)
    if not sport.teams and sport.roster:
        sport = sport.replace(teams=teams_from_roster(sport.roster))
    return sport


def print_blocks(sport, rng):
    team_names = {team.id: team.name for team in sport.teams}
    blocks = distribute_into_blocks(sport.teams, sport.settings.block_count, rng)
    first_block = True
    for block in blocks:
        if not first_block:
            print()
        print(f"# {block.name}")
        for match in block.matches:
            print(f"{team_names[match.team1_id]} vs {team_names[match.team2_id]}")
        first_block = False


def print_bracket(sport, rng, shuffle):
    team_names = {team.id: team.name for team in sport.teams}
    seed_order = list(sport.teams)
    if shuffle:
        rng.shuffle(seed_order)
    matches = generate_bracket_matches(seed_order, sport.settings.has_third_place_match)
    total_rounds = max(m.round for m in matches)
    current_round = None
    for match in matches:
        if match.is_third_place_match():
            print("\n# Third Place")
        elif match.round != current_round:
            if current_round is not None:
                print()
            print(f"# {round_name_for(match.round, total_rounds)}")
            current_round = match.round
        team1 = team_names.get(match.team1_id, 'TBD')
        team2 = team_names.get(match.team2_id, 'TBD')
        suffix = " (bye)" if match.winner_id and match.status == 'scheduled' else ""
        print(f"{team1} vs {team2}{suffix}")


def print_round_robin(sport):
    team_names = {team.id: team.name for team in sport.teams}
    for match in generate_all_matches(sport.teams, sport.matches):
        print(f"{team_names[match.team1_id]} vs {team_names[match.team2_id]}")


def main(argv=None):
    parser = argparse.ArgumentParser(description='Print generated matches for a sport YAML file.')
    parser.add_argument('sport_file', nargs='?', help='Sport YAML file (default: data/sport.yaml)')
    parser.add_argument('--seed', type=int, default=None, help='Random seed for shuffling')
    parser.add_argument('--shuffle', action='store_true', help='Shuffle the bracket seeding order')
    parser.add_argument('-v', '--verbose', action='store_true')
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')

    script_dir = os.path.dirname(__file__)
    base_dir = os.path.dirname(script_dir)
    sport_file = args.sport_file or os.path.join(base_dir, 'data', 'sport.yaml')

    try:
        sport = load_sport(sport_file)
        rng = random.Random(args.seed)
        if isinstance(sport, LeagueSport):
            print_blocks(sport, rng)
        elif isinstance(sport, TournamentSport):
            print_bracket(sport, rng, args.shuffle)
        elif isinstance(sport, RoundRobinSport):
            print_round_robin(sport)
        else:
            print(f"Nothing to generate for {sport.type} sports", file=sys.stderr)
            return 1
    except ScoringError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
