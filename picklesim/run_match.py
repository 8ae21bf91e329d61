"""
Play a pickleball match in the terminal. Each event is narrated as it is
emitted; --batch runs many seeded matches silently and prints win rate and
average point margin instead.

Usage: python -m picklesim.run_match --seed 7 --fast
"""
from __future__ import annotations

import argparse
import logging
import os

from picklesim.rating import dupr
from picklesim.simulation.emitter import EmitterConfig, SyncEmitter
from picklesim.simulation.events import MatchEndEvent, MatchEvent
from picklesim.simulation.match_engine import build_engine
from picklesim.simulation.params import (
    PARAMS_ENV_VAR,
    SimulationParameters,
    load_parameters,
    load_starter_stats,
)
from picklesim.simulation.participants import (
    DoublesParticipants,
    Participant,
    Personality,
    SinglesParticipants,
    TeamSynergy,
)
from picklesim.simulation.schemas import MatchConfig, PlayerStats

PERSONALITIES = [p.value for p in Personality]
DEFAULT_STAT = 50


def player_stats(args: argparse.Namespace) -> PlayerStats:
    """--player-stat wins; otherwise the starter stats of a --params profile."""
    if args.player_stat is not None:
        return PlayerStats.flat(args.player_stat)
    if args.params:
        return load_starter_stats(args.params)
    return PlayerStats.flat(DEFAULT_STAT)


def parameters(args: argparse.Namespace) -> SimulationParameters:
    if args.params:
        return load_parameters(args.params)
    return SimulationParameters()


def _participants(args: argparse.Namespace):
    stats = player_stats(args)
    player = Participant("You", stats)
    opponent = Participant("Rival", PlayerStats.flat(args.opponent_stat))
    if not args.doubles:
        return SinglesParticipants(player, opponent)
    return DoublesParticipants(
        player=player,
        partner=Participant("Partner", stats),
        opponent=opponent,
        opponent_partner=Participant("Rival Partner", PlayerStats.flat(args.opponent_stat)),
        player_synergy=TeamSynergy.calculate(args.personality, args.partner_personality),
        opponent_synergy=TeamSynergy.neutral(),
    )


def _config(args: argparse.Namespace) -> MatchConfig:
    if args.doubles:
        return MatchConfig.default_doubles()
    if args.quick:
        return MatchConfig.quick_match()
    return MatchConfig.default_singles()


def _print_event(event: MatchEvent) -> None:
    if event.narration:
        print(f"  {event.narration}")


def _print_final(event: MatchEndEvent) -> None:
    r = event.result
    print()
    print("=" * 60)
    print(f"  {'WIN' if r.did_player_win else 'LOSS'}  {r.formatted_score}")
    print("=" * 60)
    ps, os_ = r.player_stats, r.opponent_stats
    print(f"  Aces {ps.aces}-{os_.aces}  Winners {ps.winners}-{os_.winners}  "
          f"Errors {ps.unforced_errors}-{os_.unforced_errors}")
    print(f"  Longest rally {max(ps.longest_rally, os_.longest_rally)}  "
          f"Longest streak {ps.longest_streak}-{os_.longest_streak}")
    print(f"  XP +{r.xp_earned}  Coins +{r.coins_earned}  Duration {r.duration_seconds:.0f}s")
    if r.dupr_change is not None:
        print(f"  DUPR {r.dupr_change:+.3f}")


def _run_batch(args: argparse.Namespace) -> None:
    params = parameters(args)
    wins = 0
    margin = 0
    for i in range(args.batch):
        engine = build_engine(_participants(args), _config(args), seed=args.seed + i, params=params)
        engine.request_skip()
        result = engine.run_to_completion()
        wins += result.did_player_win
        margin += sum(g.player_points - g.opponent_points for g in result.game_scores)
    print(f"Matches: {args.batch}")
    print(f"Win rate: {wins / args.batch:.1%}")
    print(f"Average point margin per match: {margin / args.batch:+.2f}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Simulate a pickleball match with live narration.")
    parser.add_argument("--seed", type=int, default=42, help="RNG seed (batch runs use seed..seed+N-1)")
    parser.add_argument("--player-stat", type=int, default=None, help="Flat value for every player stat (default: --params starter stats, else 50)")
    parser.add_argument("--opponent-stat", type=int, default=50, help="Flat value for every opponent stat")
    parser.add_argument(
        "--params", default=os.environ.get(PARAMS_ENV_VAR), metavar="PATH",
        help="Trained parameter profile JSON (default: $" + PARAMS_ENV_VAR + ")",
    )
    parser.add_argument("--quick", action="store_true", help="Single game to 11")
    parser.add_argument("--doubles", action="store_true", help="Doubles with side-out scoring")
    parser.add_argument("--personality", default="all_rounder", choices=PERSONALITIES, help="Player personality (doubles)")
    parser.add_argument("--partner-personality", default="all_rounder", choices=PERSONALITIES, help="Partner personality (doubles)")
    parser.add_argument("--rating", type=float, default=None, help="Player DUPR rating; enables a rated match")
    parser.add_argument("--opponent-rating", type=float, default=None, help="Opponent DUPR rating")
    parser.add_argument("--fast", action="store_true", help="No delay between points")
    parser.add_argument("--batch", type=int, default=0, metavar="N", help="Run N silent matches and print summary")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG shows game ends)")
    return parser


def main() -> None:
    args = build_parser().parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    if args.batch > 0:
        _run_batch(args)
        return

    profile = dupr.DUPRProfile(rating=args.rating) if args.rating is not None else None
    engine = build_engine(
        _participants(args),
        _config(args),
        seed=args.seed,
        params=parameters(args),
        player_profile=profile,
        opponent_rating=args.opponent_rating,
    )
    emitter = SyncEmitter(EmitterConfig(
        min_seconds_per_point=0.3,
        max_seconds_per_point=0.8,
        pause_between_games_seconds=2.0,
        fast_forward=args.fast,
    ))

    def on_event(event: MatchEvent) -> None:
        if isinstance(event, MatchEndEvent):
            _print_final(event)
        else:
            _print_event(event)

    emitter.emit_stream(engine.simulate(), on_event, on_game_break=lambda: print("  --- change ends ---"))


if __name__ == "__main__":
    main()
