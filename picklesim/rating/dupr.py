"""
DUPR rating engine: Elo-style rating updates driven by point margin, with
reliability-tiered K-factors and dampers for lopsided or high-level matches.
Pure functions; the only state is the caller-owned DUPRProfile.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Sequence

from ..simulation.constants import DUPRRating as C
from ..simulation.schemas import MatchScore


def _now() -> datetime:
    return datetime.now(timezone.utc)


def clamp_rating(rating: float) -> float:
    return max(C.MIN_RATING, min(C.MAX_RATING, rating))


# ---- Expected vs actual performance ----

def expected_score(player_rating: float, opponent_rating: float) -> float:
    """Elo expectation; 1.0 DUPR of gap counts as 100 Elo points."""
    gap_elo = (player_rating - opponent_rating) * C.DUPR_TO_ELO_SCALE
    return 1.0 / (1.0 + 10 ** (-gap_elo / C.ELO_SCALE_FACTOR))


def actual_score(player_points: int, opponent_points: int, points_to_win: int) -> float:
    """
    0.5 for an even game, moving toward 1.0 (or 0.0) with the normalized
    point margin. The 1/1.5 exponent rewards the first few points of
    margin more than the last.
    """
    if points_to_win <= 0:
        return 0.5
    margin = (player_points - opponent_points) / points_to_win
    if margin == 0:
        return 0.5
    shaped = abs(margin) ** (1.0 / C.MARGIN_EXPONENT)
    return max(0.0, min(1.0, 0.5 + 0.5 * math.copysign(shaped, margin)))


def effective_k_factor(k_factor: float, player_rating: float, opponent_rating: float) -> float:
    k = k_factor

    gap = abs(player_rating - opponent_rating)
    if gap > C.LOPSIDED_GAP_THRESHOLD:
        span = C.MAX_RATED_GAP - C.LOPSIDED_GAP_THRESHOLD
        progress = min(1.0, (gap - C.LOPSIDED_GAP_THRESHOLD) / span)
        k *= 1.0 - progress * (1.0 - C.LOPSIDED_DISCOUNT_FLOOR)

    level = (player_rating + opponent_rating) / 2.0
    if level > C.HIGH_LEVEL_THRESHOLD:
        damping = 1.0 - (level - C.HIGH_LEVEL_THRESHOLD) * C.HIGH_LEVEL_DAMPING_PER_POINT
        k *= max(C.HIGH_LEVEL_DAMPING_FLOOR, damping)

    return k


def _game_performance(player_rating, opponent_rating, player_points, opponent_points, points_to_win) -> float:
    return actual_score(player_points, opponent_points, points_to_win) - expected_score(
        player_rating, opponent_rating
    )


def calculate_rating_change(
    player_rating: float,
    opponent_rating: float,
    player_points: int,
    opponent_points: int,
    points_to_win: int,
    k_factor: float,
) -> float:
    """Rating delta for one game, from the player's point of view."""
    k = effective_k_factor(k_factor, player_rating, opponent_rating)
    perf = _game_performance(player_rating, opponent_rating, player_points, opponent_points, points_to_win)
    return k * perf / C.RATING_CHANGE_DIVISOR


def calculate_match_rating_change(
    player_rating: float,
    opponent_rating: float,
    game_scores: Sequence[MatchScore],
    points_to_win: int,
    k_factor: float,
) -> float:
    """Mean of the per-game deltas; every game counts, not only the last."""
    if not game_scores:
        return 0.0
    deltas = [
        calculate_rating_change(
            player_rating, opponent_rating,
            g.player_points, g.opponent_points,
            points_to_win, k_factor,
        )
        for g in game_scores
    ]
    return sum(deltas) / len(deltas)


# ---- K-factor & reliability ----

def k_factor_for(reliability: float) -> float:
    if reliability < C.NEW_RELIABILITY:
        return C.K_FACTOR_NEW
    if reliability < C.DEVELOPING_RELIABILITY:
        return C.K_FACTOR_DEVELOPING
    return C.K_FACTOR_ESTABLISHED


def depth_reliability(match_count: int) -> float:
    return min(1.0, match_count / C.DEPTH_MAX)


def breadth_reliability(unique_opponents: int) -> float:
    return min(1.0, unique_opponents / C.BREADTH_MAX)


def recency_reliability(last_match: datetime | None, now: datetime | None = None) -> float:
    """1.0 inside a week, linear decay to 0.3 at 90 days, 0.0 if never rated."""
    if last_match is None:
        return 0.0
    days = max(0, ((now or _now()) - last_match).days)
    if days <= C.RECENCY_FULL_DAYS:
        return 1.0
    if days >= C.RECENCY_DECAY_DAYS:
        return C.RECENCY_MINIMUM
    elapsed = (days - C.RECENCY_FULL_DAYS) / (C.RECENCY_DECAY_DAYS - C.RECENCY_FULL_DAYS)
    return 1.0 - (1.0 - C.RECENCY_MINIMUM) * elapsed


def compute_reliability(profile: DUPRProfile, now: datetime | None = None) -> float:
    return (
        depth_reliability(profile.rated_match_count) * C.DEPTH_WEIGHT
        + breadth_reliability(len(profile.unique_opponent_ids)) * C.BREADTH_WEIGHT
        + recency_reliability(profile.last_rated_match_date, now) * C.RECENCY_WEIGHT
    )


def should_auto_unrate(player_rating: float, opponent_rating: float) -> bool:
    """Gap strictly above 1.0 is unrated; exactly 1.0 still counts."""
    return abs(player_rating - opponent_rating) > C.MAX_RATED_GAP


@dataclass
class DUPRProfile:
    rating: float = C.STARTING_RATING
    rated_match_count: int = 0
    unique_opponent_ids: set[str] = field(default_factory=set)
    last_rated_match_date: datetime | None = None

    def __post_init__(self) -> None:
        self.rating = clamp_rating(self.rating)

    @property
    def has_rating(self) -> bool:
        return self.rated_match_count > 0

    def reliability(self, now: datetime | None = None) -> float:
        return compute_reliability(self, now)

    def k_factor(self, now: datetime | None = None) -> float:
        return k_factor_for(self.reliability(now))

    def record_rated_match(
        self,
        opponent_id: str,
        rating_change: float,
        date: datetime | None = None,
    ) -> float:
        self.rating = clamp_rating(self.rating + rating_change)
        self.rated_match_count += 1
        self.unique_opponent_ids.add(opponent_id)
        self.last_rated_match_date = date or _now()
        return self.rating

    def to_dict(self) -> dict[str, Any]:
        last = self.last_rated_match_date
        return {
            "rating": self.rating,
            "rated_match_count": self.rated_match_count,
            "unique_opponent_ids": sorted(self.unique_opponent_ids),
            "last_rated_match_date": last.isoformat() if last else None,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> DUPRProfile:
        last = d.get("last_rated_match_date")
        return cls(
            rating=float(d.get("rating", C.STARTING_RATING)),
            rated_match_count=int(d.get("rated_match_count", 0)),
            unique_opponent_ids=set(d.get("unique_opponent_ids", [])),
            last_rated_match_date=datetime.fromisoformat(last) if last else None,
        )
