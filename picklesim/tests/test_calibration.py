"""
Calibration checks for the game balance: run many seeded single-game matches
and assert on win rate and average point margin.

Number of matches per scenario can be overridden with SIM_CALIBRATION_MATCHES;
use 2000+ for tighter confidence: SIM_CALIBRATION_MATCHES=2000 pytest ...
"""
from __future__ import annotations

import os
from dataclasses import dataclass

import pytest

from picklesim.simulation.match_engine import build_engine
from picklesim.simulation.participants import Participant, SinglesParticipants
from picklesim.simulation.schemas import MatchConfig, PlayerStats

DEFAULT_CALIBRATION_MATCHES = int(os.environ.get("SIM_CALIBRATION_MATCHES", "500"))


@dataclass
class Summary:
    matches: int = 0
    wins: int = 0
    margin: int = 0

    @property
    def win_rate(self) -> float:
        return self.wins / self.matches if self.matches else 0.0

    @property
    def average_margin(self) -> float:
        return self.margin / self.matches if self.matches else 0.0


def run_games(player_stat: int, opponent_stat: int, n: int, seed_offset: int = 0) -> Summary:
    participants = SinglesParticipants(
        Participant("Player", PlayerStats.flat(player_stat)),
        Participant("Opponent", PlayerStats.flat(opponent_stat)),
    )
    summary = Summary()
    for i in range(n):
        engine = build_engine(participants, MatchConfig.quick_match(), seed=seed_offset + i)
        engine.request_skip()
        result = engine.run_to_completion()
        game = result.game_scores[0]
        summary.matches += 1
        summary.wins += result.did_player_win
        summary.margin += game.player_points - game.opponent_points
    return summary


@pytest.mark.slow
class TestCalibration:
    def test_even_sides_are_balanced(self):
        s = run_games(50, 50, DEFAULT_CALIBRATION_MATCHES)
        print(f"\n50 vs 50: win rate {s.win_rate:.1%}, margin {s.average_margin:+.2f}")
        assert abs(s.average_margin) < 1.5
        assert 0.35 <= s.win_rate <= 0.65

    def test_small_edge_gives_positive_margin(self):
        s = run_games(51, 49, 2 * DEFAULT_CALIBRATION_MATCHES, seed_offset=10_000)
        print(f"\n51 vs 49: win rate {s.win_rate:.1%}, margin {s.average_margin:+.2f}")
        assert s.average_margin > 0

    def test_large_edge_dominates(self):
        s = run_games(58, 42, DEFAULT_CALIBRATION_MATCHES, seed_offset=20_000)
        print(f"\n58 vs 42: win rate {s.win_rate:.1%}, margin {s.average_margin:+.2f}")
        assert s.average_margin > 4.0
        assert s.win_rate > 0.85
