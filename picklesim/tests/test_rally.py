"""
Rally simulator and point resolver. Scripted random sources pin the
outcome of each Bernoulli check so phase order can be asserted exactly.
"""
from __future__ import annotations

import pytest

from picklesim.simulation.participants import Participant, TeamSynergy
from picklesim.simulation.point_resolver import CourtPlayer, PointResolver
from picklesim.simulation.rally_simulator import RallySimulator
from picklesim.simulation.rng import SeededRandomSource
from picklesim.simulation.schemas import MatchSide, PlayerStats, PointType, StatType
from picklesim.simulation.state_tracker import MomentumTracker


class ScriptedRandom:
    """Returns the scripted doubles in order, then `rest` forever."""

    def __init__(self, values=(), rest=0.99):
        self._values = list(values)
        self._rest = rest

    def next_double(self) -> float:
        return self._values.pop(0) if self._values else self._rest

    def next_int(self, low: int, high: int) -> int:
        return low


FLAT_50 = PlayerStats.flat(50)


class TestRallySimulator:
    def test_ace_on_first_check(self):
        sim = RallySimulator(ScriptedRandom(rest=0.0))
        r = sim.simulate_point(MatchSide.OPPONENT, FLAT_50, FLAT_50)
        assert r.winner_side is MatchSide.OPPONENT
        assert r.point_type is PointType.ACE
        assert r.rally_length == 1

    def test_unforced_error_goes_to_other_side(self):
        # no ace, no winner on shot 1, then the server errs
        sim = RallySimulator(ScriptedRandom([0.99, 0.99, 0.0]))
        r = sim.simulate_point(MatchSide.PLAYER, FLAT_50, FLAT_50)
        assert r.winner_side is MatchSide.OPPONENT
        assert r.point_type is PointType.UNFORCED_ERROR
        assert r.rally_length == 1

    def test_second_shot_belongs_to_receiver(self):
        sim = RallySimulator(ScriptedRandom([0.99, 0.99, 0.99, 0.99, 0.0]))
        r = sim.simulate_point(MatchSide.PLAYER, FLAT_50, FLAT_50)
        assert r.winner_side is MatchSide.OPPONENT
        assert r.point_type is PointType.WINNER
        assert r.rally_length == 2

    def test_capped_rally_decided_on_overall_stats(self):
        sim = RallySimulator(ScriptedRandom(rest=0.99))
        r = sim.simulate_point(MatchSide.PLAYER, FLAT_50, FLAT_50)
        assert r.point_type is PointType.RALLY
        assert r.rally_length == sim.max_rally_length(FLAT_50, FLAT_50) == 10
        assert r.winner_side is MatchSide.OPPONENT

    def test_doubles_adds_dink_exchanges_to_length(self):
        sim = RallySimulator(ScriptedRandom(rest=0.99))
        r = sim.simulate_point(MatchSide.PLAYER, FLAT_50, FLAT_50, is_doubles=True)
        assert sim.dink_exchanges(FLAT_50, FLAT_50) == 5
        assert r.rally_length == 15

    def test_dink_winner_by_receiver(self):
        # no ace, then the receiver wins the first dink
        sim = RallySimulator(ScriptedRandom([0.99, 0.0]))
        r = sim.simulate_point(MatchSide.PLAYER, FLAT_50, FLAT_50, is_doubles=True)
        assert r.winner_side is MatchSide.OPPONENT
        assert r.point_type is PointType.WINNER
        assert r.rally_length == 1

    def test_probabilities_clamped_at_extremes(self):
        sim = RallySimulator()
        strong, weak = PlayerStats.flat(99), PlayerStats.flat(1)
        for a, b in ((strong, weak), (weak, strong)):
            assert 0.01 <= sim.ace_chance(a, b) <= 0.25
            assert 0.02 <= sim.winner_chance(a, b, 30) <= 0.35
            assert 0.02 <= sim.error_chance(a, 30) <= 0.30
            assert 0.01 <= sim.forced_error_chance(a, b) <= 0.20
            assert 0.05 <= sim.overall_advantage(a, b) <= 0.95
            assert 0.01 <= sim.dink_winner_chance(a, b) <= 0.20
            assert 0.01 <= sim.dink_error_chance(a) <= 0.20

    def test_stronger_attack_wins_more_often(self):
        sim = RallySimulator()
        base = FLAT_50
        better = base.with_stats({StatType.POWER: 70, StatType.ACCURACY: 70})
        assert sim.winner_chance(better, base, 1) > sim.winner_chance(base, base, 1)
        assert sim.ace_chance(better, base) > sim.ace_chance(base, base)

    def test_seeded_points_replay(self):
        a = RallySimulator(SeededRandomSource(7))
        b = RallySimulator(SeededRandomSource(7))
        strong = PlayerStats.flat(60)
        ra = [a.simulate_point(MatchSide.PLAYER, strong, FLAT_50) for _ in range(200)]
        rb = [b.simulate_point(MatchSide.PLAYER, strong, FLAT_50) for _ in range(200)]
        assert ra == rb


def _court(value=50, energy=100.0):
    return CourtPlayer.fresh(Participant(f"P{value}", PlayerStats.flat(value)), energy)


class TestPointResolver:
    def test_resolve_point_drains_both_sides(self):
        resolver = PointResolver(RallySimulator(ScriptedRandom(rest=0.0)))
        player, opponent = _court(), _court()
        resolved = resolver.resolve_point(player, opponent, MomentumTracker(), MatchSide.PLAYER, False)
        assert resolved.result.point_type is PointType.ACE
        assert resolved.player_energy_after < 100.0
        assert player.fatigue.energy == resolved.player_energy_after
        assert opponent.fatigue.energy == resolved.opponent_energy_after

    def test_team_point_reports_average_energy(self):
        resolver = PointResolver(RallySimulator(ScriptedRandom(rest=0.0)))
        team = [_court(50, 80.0), _court(50, 60.0)]
        other = [_court(), _court()]
        resolved = resolver.resolve_team_point(
            team, TeamSynergy.neutral(), other, TeamSynergy.neutral(),
            MomentumTracker(), MatchSide.OPPONENT, False,
        )
        assert resolved.player_energy_after == pytest.approx(
            (team[0].fatigue.energy + team[1].fatigue.energy) / 2
        )
        assert resolved.player_energy_after < 70.0

    def test_boosts_change_outcomes_only_for_player(self):
        resolver = PointResolver(RallySimulator(SeededRandomSource(3)))
        stats = resolver._individual_stats(_court(), {StatType.POWER: 10})
        assert stats.power == 60
        assert resolver._individual_stats(_court(), None).power == 50

    def test_fatigue_applied_before_rally(self):
        resolver = PointResolver()
        fresh = resolver._individual_stats(_court(50, 100.0), None)
        tired = resolver._individual_stats(_court(50, 25.0), None)
        assert tired.power < fresh.power
