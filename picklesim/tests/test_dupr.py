"""
DUPR rating engine: expected vs actual score, K-factor dampers,
reliability tiers, the auto-unrate rule and match reputation.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from picklesim.rating import dupr
from picklesim.rating.dupr import DUPRProfile
from picklesim.rating.reputation import calculate_rep_change
from picklesim.simulation.schemas import MatchScore

NOW = datetime(2026, 6, 1, tzinfo=timezone.utc)


class TestScores:
    def test_expected_even(self):
        assert dupr.expected_score(4.0, 4.0) == pytest.approx(0.5)

    def test_expected_favors_higher_rating(self):
        assert dupr.expected_score(4.5, 4.0) > 0.5
        assert dupr.expected_score(4.0, 4.5) < 0.5
        assert dupr.expected_score(4.5, 4.0) + dupr.expected_score(4.0, 4.5) == pytest.approx(1.0)

    def test_actual_score_bounds(self):
        assert dupr.actual_score(11, 0, 11) == 1.0
        assert dupr.actual_score(0, 11, 11) == 0.0
        assert dupr.actual_score(10, 10, 11) == 0.5
        assert 0.5 < dupr.actual_score(11, 9, 11) < dupr.actual_score(11, 3, 11)


class TestRatingChange:
    def test_win_positive_loss_negative(self):
        assert dupr.calculate_rating_change(4.0, 4.0, 11, 5, 11, 32.0) > 0
        assert dupr.calculate_rating_change(4.0, 4.0, 5, 11, 11, 32.0) < 0

    def test_bigger_margin_bigger_gain(self):
        narrow = dupr.calculate_rating_change(4.0, 4.0, 11, 9, 11, 32.0)
        blowout = dupr.calculate_rating_change(4.0, 4.0, 11, 2, 11, 32.0)
        assert blowout > narrow > 0

    def test_k_factor_scales_delta(self):
        k32 = dupr.calculate_rating_change(4.0, 4.0, 11, 5, 11, 32.0)
        k64 = dupr.calculate_rating_change(4.0, 4.0, 11, 5, 11, 64.0)
        assert 0 < k32 < k64

    def test_match_change_is_mean_of_games(self):
        games = [MatchScore(11, 5), MatchScore(8, 11)]
        expected = sum(
            dupr.calculate_rating_change(4.0, 3.8, g.player_points, g.opponent_points, 11, 32.0)
            for g in games
        ) / 2
        assert dupr.calculate_match_rating_change(4.0, 3.8, games, 11, 32.0) == pytest.approx(expected)

    def test_empty_game_list_is_zero(self):
        assert dupr.calculate_match_rating_change(4.0, 4.0, [], 11, 64.0) == 0.0

    def test_upset_win_earns_more_than_expected_win(self):
        upset = dupr.calculate_rating_change(3.5, 4.0, 11, 7, 11, 32.0)
        expected_win = dupr.calculate_rating_change(4.0, 3.5, 11, 7, 11, 32.0)
        assert upset > expected_win


class TestKFactorDampers:
    def test_no_damping_for_close_low_level(self):
        assert dupr.effective_k_factor(32.0, 3.5, 3.5) == 32.0

    def test_lopsided_gap_halves_at_max(self):
        assert dupr.effective_k_factor(32.0, 3.0, 4.0) == pytest.approx(16.0)
        assert 16.0 < dupr.effective_k_factor(32.0, 3.0, 3.8) < 32.0

    def test_high_level_damping(self):
        assert dupr.effective_k_factor(32.0, 5.0, 5.0) == pytest.approx(28.8)
        assert dupr.effective_k_factor(32.0, 8.0, 8.0) == pytest.approx(32.0 * 0.6)


class TestReliability:
    def test_new_profile(self):
        profile = DUPRProfile()
        assert profile.reliability(NOW) == 0.0
        assert profile.k_factor(NOW) == 64.0
        assert not profile.has_rating

    def test_established_profile(self):
        profile = DUPRProfile(
            rating=5.0,
            rated_match_count=30,
            unique_opponent_ids={f"opp{i}" for i in range(15)},
            last_rated_match_date=NOW - timedelta(days=2),
        )
        assert profile.reliability(NOW) == pytest.approx(1.0)
        assert profile.k_factor(NOW) == 16.0

    def test_developing_tier(self):
        profile = DUPRProfile(
            rated_match_count=15,
            unique_opponent_ids={f"opp{i}" for i in range(8)},
            last_rated_match_date=NOW - timedelta(days=40),
        )
        assert 0.3 <= profile.reliability(NOW) < 0.7
        assert profile.k_factor(NOW) == 32.0

    def test_recency_decay(self):
        assert dupr.recency_reliability(None, NOW) == 0.0
        assert dupr.recency_reliability(NOW - timedelta(days=7), NOW) == 1.0
        assert dupr.recency_reliability(NOW - timedelta(days=200), NOW) == pytest.approx(0.3)
        mid = dupr.recency_reliability(NOW - timedelta(days=45), NOW)
        assert 0.3 < mid < 1.0

    def test_depth_and_breadth_saturate(self):
        assert dupr.depth_reliability(100) == 1.0
        assert dupr.breadth_reliability(7) == pytest.approx(7 / 15)


class TestAutoUnrate:
    def test_boundary(self):
        assert not dupr.should_auto_unrate(4.0, 5.0)
        assert dupr.should_auto_unrate(4.0, 5.01)
        assert dupr.should_auto_unrate(6.2, 4.0)


class TestProfile:
    def test_rating_clamped(self):
        assert DUPRProfile(rating=9.5).rating == 8.0
        profile = DUPRProfile(rating=7.95)
        assert profile.record_rated_match("opp", 0.5, NOW) == 8.0
        low = DUPRProfile(rating=2.05)
        assert low.record_rated_match("opp", -0.5, NOW) == 2.0

    def test_record_rated_match_updates_history(self):
        profile = DUPRProfile(rating=3.0)
        profile.record_rated_match("a", 0.1, NOW)
        profile.record_rated_match("a", 0.1, NOW)
        assert profile.rated_match_count == 2
        assert profile.unique_opponent_ids == {"a"}
        assert profile.last_rated_match_date == NOW
        assert profile.rating == pytest.approx(3.2)
        assert profile.has_rating

    def test_dict_round_trip(self):
        profile = DUPRProfile(3.7, 4, {"x", "y"}, NOW)
        assert DUPRProfile.from_dict(profile.to_dict()) == profile


class TestReputation:
    @pytest.mark.parametrize("player,opponent,expected", [
        (4.0, 4.5, 17),
        (3.0, 5.0, 40),
    ])
    def test_upset_win_pays_bonus(self, player, opponent, expected):
        assert calculate_rep_change(True, player, opponent) == expected

    @pytest.mark.parametrize("player,opponent,expected", [
        (4.0, 4.0, 10),
        (4.5, 4.0, 8),
        (5.0, 3.0, 3),
    ])
    def test_expected_win_shrinks_to_floor(self, player, opponent, expected):
        assert calculate_rep_change(True, player, opponent) == expected

    @pytest.mark.parametrize("player,opponent,expected", [
        (3.0, 4.0, 2),
        (4.0, 4.5, 1),
        (2.0, 6.0, 3),
    ])
    def test_loss_to_much_stronger_earns_respect(self, player, opponent, expected):
        assert calculate_rep_change(False, player, opponent) == expected

    @pytest.mark.parametrize("player,opponent", [(4.0, 4.2), (4.0, 4.0)])
    def test_loss_to_slightly_stronger_is_neutral(self, player, opponent):
        assert calculate_rep_change(False, player, opponent) == 0

    @pytest.mark.parametrize("player,opponent,expected", [
        (4.0, 3.5, -10),
        (6.0, 2.0, -30),
    ])
    def test_upset_loss_costs_capped(self, player, opponent, expected):
        assert calculate_rep_change(False, player, opponent) == expected
