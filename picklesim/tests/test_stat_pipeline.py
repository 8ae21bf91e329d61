"""
Stat calculator, fatigue, momentum, doubles scoring and team compositing.
"""
from __future__ import annotations

import pytest

from picklesim.simulation.equipment import Equipment, EquipmentSlot, StatBonus, TraitType
from picklesim.simulation.fatigue_model import FatigueModel, rally_drain
from picklesim.simulation.participants import Personality, TeamSynergy
from picklesim.simulation.schemas import FatigueLevel, MatchSide, PlayerStats, StatType
from picklesim.simulation.stat_calculator import (
    StatCalculator,
    aggregate_bonuses,
    apply_diminishing_returns,
)
from picklesim.simulation.state_tracker import (
    DoublesScoreTracker,
    MomentumTracker,
    Scored,
    ServerRotation,
    SideOut,
    is_clutch,
    is_game_over,
)
from picklesim.simulation.team_compositor import composite_effective_stats, composite_stats


@pytest.fixture
def calc():
    return StatCalculator()


def _item(slot, **kwargs):
    return Equipment(name=f"Test {slot.value}", slot=slot, **kwargs)


class TestStatCalculator:
    def test_no_equipment_returns_base(self, calc):
        base = PlayerStats.flat(40)
        assert calc.effective_stats(base, []) is base

    def test_set_bonus_stacks_with_item_bonus(self, calc):
        base = PlayerStats(power=30)
        gear = [
            _item(EquipmentSlot.PADDLE, base_stat=StatBonus(StatType.POWER, 5), set_id="court_king"),
            _item(EquipmentSlot.SHIRT, set_id="court_king"),
        ]
        # 30 + 5 (paddle) + 3 (Royal Strike, 2 pieces)
        assert calc.effective_stats(base, gear).power == 38

    def test_single_set_piece_gives_no_tier(self):
        gear = [_item(EquipmentSlot.PADDLE, set_id="court_king")]
        assert aggregate_bonuses(gear) == {}

    def test_items_above_player_level_ignored(self, calc):
        base = PlayerStats.flat(30)
        gear = [_item(EquipmentSlot.PADDLE, base_stat=StatBonus(StatType.POWER, 10), level=60)]
        assert calc.effective_stats(base, gear, player_level=50).power == 30
        assert calc.effective_stats(base, gear, player_level=60).power > 30

    def test_trait_modifiers_apply(self, calc):
        base = PlayerStats.flat(15)
        gear = [_item(EquipmentSlot.WRISTBAND, traits=(TraitType.ALL_ROUNDER,))]
        assert calc.effective_stats(base, gear) == PlayerStats.flat(17)

    def test_negative_bonus_never_lowers_stat(self, calc):
        base = PlayerStats.flat(15)
        gear = [_item(EquipmentSlot.SHOES, traits=(TraitType.LIGHTFOOT,))]
        eff = calc.effective_stats(base, gear)
        assert eff.speed == 17
        assert eff.power == 15

    def test_diminishing_returns_bands(self):
        assert apply_diminishing_returns(50, 10) == 60
        high = apply_diminishing_returns(85, 10)
        assert 85 < high < 95
        assert apply_diminishing_returns(40, 0) == 40

    def test_cap_at_99(self, calc):
        base = PlayerStats.flat(90)
        gear = [
            _item(EquipmentSlot.PADDLE, stat_bonuses=tuple(StatBonus(t, 500) for t in StatType)),
        ]
        eff = calc.effective_stats(base, gear)
        assert all(eff.stat(t) == 99 for t in StatType)

    def test_fatigue_noop_when_fresh(self, calc):
        stats = PlayerStats.flat(50)
        assert calc.apply_fatigue(stats, 100.0) == stats

    def test_fatigue_penalty_spares_stamina(self, calc):
        stats = PlayerStats.flat(50)
        tired = calc.apply_fatigue(stats, 60.0)
        assert tired.power == 48
        assert tired.stamina == 50
        assert calc.apply_fatigue(stats, 20.0).power < tired.power

    def test_momentum_touches_only_momentum_stats(self, calc):
        stats = PlayerStats.flat(50)
        hot = calc.apply_momentum(stats, 0.05)
        assert hot.power == 52
        assert hot.defense == 50
        assert calc.apply_momentum(stats, -0.05).clutch == 47

    def test_boosts_added_flat(self, calc):
        stats = PlayerStats.flat(50)
        boosted = calc.apply_boosts(stats, {StatType.POWER: 5, StatType.SPIN: 0})
        assert boosted.power == 55
        assert boosted.spin == 50


class TestFatigueModel:
    def test_energy_never_negative(self):
        model = FatigueModel(stamina=1)
        for _ in range(500):
            model.drain_energy(30)
        assert model.energy == 0.0

    def test_stamina_slows_drain(self):
        assert rally_drain(10, 90) < rally_drain(10, 10)

    def test_minimum_drain(self):
        assert rally_drain(1, 99) == pytest.approx(0.1)

    def test_long_rally_costs_extra_per_shot(self):
        assert rally_drain(10, 0) - rally_drain(9, 0) > rally_drain(5, 0) - rally_drain(4, 0)

    def test_restore_capped_and_ignores_negative(self):
        model = FatigueModel(stamina=50, energy=95)
        assert model.restore(20) == 100.0
        assert model.restore(-30) == 100.0

    def test_rest_between_games(self):
        model = FatigueModel(stamina=50, energy=40)
        assert model.rest_between_games() == 50.0

    def test_construction_clamps(self):
        assert FatigueModel(stamina=50, energy=140).energy == 100.0

    @pytest.mark.parametrize("energy,level", [
        (100, FatigueLevel.FRESH),
        (70, FatigueLevel.MILD),
        (50, FatigueLevel.MODERATE),
        (30, FatigueLevel.SEVERE),
    ])
    def test_fatigue_levels(self, energy, level):
        assert FatigueModel(stamina=50, energy=energy).fatigue_level is level


class TestMomentumTracker:
    def test_streak_symmetry(self):
        m = MomentumTracker()
        for _ in range(4):
            m.record_point(MatchSide.PLAYER)
        assert m.streak(MatchSide.PLAYER) == 4
        assert m.streak(MatchSide.OPPONENT) == 0
        assert m.modifier(MatchSide.PLAYER) > 0
        assert m.modifier(MatchSide.OPPONENT) < 0

    def test_record_point_reports_from_two(self):
        m = MomentumTracker()
        assert m.record_point(MatchSide.OPPONENT) is None
        assert m.record_point(MatchSide.OPPONENT) == 2

    def test_streak_broken_by_other_side(self):
        m = MomentumTracker()
        for _ in range(3):
            m.record_point(MatchSide.PLAYER)
        m.record_point(MatchSide.OPPONENT)
        assert m.streak(MatchSide.PLAYER) == 0
        assert m.longest_streak(MatchSide.PLAYER) == 3

    def test_modifier_capped(self):
        m = MomentumTracker()
        for _ in range(20):
            m.record_point(MatchSide.PLAYER)
        assert m.modifier(MatchSide.PLAYER) == pytest.approx(0.07)
        assert m.modifier(MatchSide.OPPONENT) == pytest.approx(-0.05)

    def test_new_game_keeps_longest(self):
        m = MomentumTracker()
        for _ in range(5):
            m.record_point(MatchSide.PLAYER)
        m.reset_for_new_game()
        assert m.streak(MatchSide.PLAYER) == 0
        assert m.longest_streak(MatchSide.PLAYER) == 5
        assert m.modifier(MatchSide.PLAYER) == 0.0


class TestGameRules:
    def test_win_by_two(self):
        assert not is_game_over(11, 10)
        assert is_game_over(12, 10)
        assert is_game_over(11, 9)

    def test_sudden_death_cap(self):
        assert is_game_over(21, 20)

    def test_without_win_by_two(self):
        assert is_game_over(11, 10, win_by_two=False)

    def test_clutch(self):
        assert is_clutch(9, 9)
        assert not is_clutch(9, 8)


class TestDoublesScoreTracker:
    def test_game_opens_on_second_server(self):
        t = DoublesScoreTracker()
        assert t.serving_team is MatchSide.PLAYER
        assert t.server_number == 2
        assert t.score_display == "0-0-2"

    def test_only_serving_team_scores(self):
        t = DoublesScoreTracker()
        assert t.record_point(True) == Scored(MatchSide.PLAYER, 2)
        assert t.player_score == 1
        out = t.record_point(False)
        assert out == SideOut(MatchSide.OPPONENT, MatchSide.PLAYER)
        assert (t.player_score, t.opponent_score) == (1, 0)
        assert t.score_display == "0-1-1"

    def test_both_partners_serve_before_side_out(self):
        t = DoublesScoreTracker()
        t.record_point(False)
        assert t.record_point(False) == ServerRotation(MatchSide.OPPONENT, 2)
        assert t.record_point(False) == SideOut(MatchSide.PLAYER, MatchSide.OPPONENT)

    def test_winner_side(self):
        t = DoublesScoreTracker(points_to_win=3)
        assert t.winner_side is None
        for _ in range(3):
            t.record_point(True)
        assert t.is_game_over
        assert t.winner_side is MatchSide.PLAYER

    def test_reset_for_new_game(self):
        t = DoublesScoreTracker()
        t.record_point(True)
        t.record_point(False)
        t.reset_for_new_game()
        assert t.score_display == "0-0-2"
        assert t.serving_team is MatchSide.PLAYER


class TestTeamComposition:
    def test_floor_average_neutral_synergy(self):
        team = composite_effective_stats(PlayerStats.flat(50), PlayerStats.flat(61), TeamSynergy.neutral())
        assert team == PlayerStats.flat(55)

    def test_synergy_rounds_half_up(self):
        great = TeamSynergy.calculate(Personality.AGGRESSIVE, Personality.DEFENSIVE)
        clash = TeamSynergy.calculate("aggressive", "aggressive")
        assert composite_effective_stats(PlayerStats.flat(50), PlayerStats.flat(61), great).power == 59
        assert composite_effective_stats(PlayerStats.flat(50), PlayerStats.flat(61), clash).power == 51

    def test_composite_stats_runs_equipment_first(self):
        gear = [_item(EquipmentSlot.PADDLE, base_stat=StatBonus(StatType.POWER, 10))]
        team = composite_stats(PlayerStats.flat(40), gear, PlayerStats.flat(40), [], TeamSynergy.neutral())
        assert team.power == 45
        assert team.speed == 40

    def test_synergy_symmetric(self):
        a = TeamSynergy.calculate("speedster", "strategist")
        b = TeamSynergy.calculate("strategist", "speedster")
        assert a == b
        assert a.multiplier == 1.07
        assert a.description == "Great Chemistry!"

    def test_unknown_personality_raises(self):
        with pytest.raises(ValueError):
            TeamSynergy.calculate("chaotic", "defensive")
