"""
Fixed game constants shared by the match simulation and rating engine.
Tunable rally curves live in params.SimulationParameters instead.
"""
from __future__ import annotations


class Stats:
    MIN_VALUE = 1
    MAX_VALUE = 99
    HARD_CAP = 99
    # Diminishing returns bands
    LINEAR_CAP = 60
    MID_CAP = 80
    LINEAR_SCALE = 1.0
    MID_SCALE = 0.7
    HIGH_SCALE = 0.4


class Fatigue:
    MAX_ENERGY = 100.0
    BASE_DRAIN_PER_SHOT = 0.3
    RALLY_LENGTH_DRAIN = 0.05  # extra per shot beyond 5
    LONG_RALLY_START = 5
    MIN_DRAIN = 0.1
    STAMINA_REDUCTION = 0.01  # per stamina point
    REST_BETWEEN_GAMES = 10.0
    THRESHOLD_1 = 70.0  # mild
    THRESHOLD_2 = 50.0  # moderate
    THRESHOLD_3 = 30.0  # severe
    PENALTY_1 = 0.03
    PENALTY_2 = 0.08
    PENALTY_3 = 0.15


class Momentum:
    STREAK_BONUS = {2: 0.02, 3: 0.04, 4: 0.05, 5: 0.06, 6: 0.07}
    STREAK_PENALTY = {2: -0.01, 3: -0.02, 4: -0.03, 5: -0.05}
    BONUS_CAP = 6
    PENALTY_CAP = 5
    REPORT_MIN_STREAK = 2
    ALERT_MIN_STREAK = 3
    CLUTCH_SCALE = 0.05  # clutch/100 * scale on clutch points


class Match:
    POINTS_TO_WIN = 11
    GAMES_TO_WIN = 2
    WIN_BY_TWO = True
    MAX_POINTS = 21  # sudden death cap per game
    SERVE_SWITCH_INTERVAL = 2
    CLUTCH_MARGIN = 2
    SECONDS_PER_POINT = 1.5


class MatchActions:
    TIMEOUT_ENERGY_RESTORE = 15.0
    TIMEOUT_MIN_OPPONENT_STREAK = 2
    HOOK_CALL_BASE_CHANCE = 0.3
    HOOK_CALL_REP_BONUS_PER_POINT = 0.001
    HOOK_CALL_MAX_CHANCE = 0.8
    HOOK_CALL_SUCCESS_REP_PENALTY = 5
    HOOK_CALL_CAUGHT_REP_PENALTY = 20
    MAX_CONSUMABLES_PER_MATCH = 3


class XP:
    BASE_PER_MATCH = 50
    WIN_BONUS = 30


class Doubles:
    START_SERVER_NUMBER = 2  # games open "0-0-2"


class DUPRRating:
    MIN_RATING = 2.0
    MAX_RATING = 8.0
    STARTING_RATING = 2.0

    K_FACTOR_NEW = 64.0
    K_FACTOR_DEVELOPING = 32.0
    K_FACTOR_ESTABLISHED = 16.0
    NEW_RELIABILITY = 0.3
    DEVELOPING_RELIABILITY = 0.7

    DEPTH_WEIGHT = 0.4
    BREADTH_WEIGHT = 0.3
    RECENCY_WEIGHT = 0.3
    DEPTH_MAX = 30
    BREADTH_MAX = 15
    RECENCY_FULL_DAYS = 7
    RECENCY_DECAY_DAYS = 90
    RECENCY_MINIMUM = 0.3

    MARGIN_EXPONENT = 1.5
    ELO_SCALE_FACTOR = 400.0
    DUPR_TO_ELO_SCALE = 100.0  # 1.0 DUPR gap = 100 Elo
    RATING_CHANGE_DIVISOR = 200.0

    LOPSIDED_GAP_THRESHOLD = 0.625
    LOPSIDED_DISCOUNT_FLOOR = 0.5
    HIGH_LEVEL_THRESHOLD = 4.0
    HIGH_LEVEL_DAMPING_PER_POINT = 0.1
    HIGH_LEVEL_DAMPING_FLOOR = 0.6

    MAX_RATED_GAP = 1.0


class Reputation:
    """Reputation swing from a rated result, scaled by the rating gap."""
    BASE_WIN_REP = 10
    UPSET_WIN_BONUS = 15.0  # per 1.0 of rating the opponent was above
    EXPECTED_WIN_REDUCTION = 5.0
    MIN_WIN_REP = 3

    RESPECT_THRESHOLD = 0.5  # losing to someone this much higher still earns a little
    RESPECT_GAIN_RATE = 2.0
    MAX_RESPECT_GAIN = 3

    BASE_LOSS_REP = 5
    UPSET_LOSS_MULTIPLIER = 10.0
    MAX_LOSS_REP = 30
