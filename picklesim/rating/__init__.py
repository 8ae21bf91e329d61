"""
Post-match skill rating (DUPR): rating deltas, reliability and K-factors.
Also the reputation swing from a rated result.
"""
from .dupr import (
    DUPRProfile,
    actual_score,
    calculate_match_rating_change,
    calculate_rating_change,
    compute_reliability,
    effective_k_factor,
    expected_score,
    k_factor_for,
    recency_reliability,
    should_auto_unrate,
)
from .reputation import calculate_rep_change

__all__ = [
    "DUPRProfile",
    "actual_score",
    "calculate_match_rating_change",
    "calculate_rep_change",
    "calculate_rating_change",
    "compute_reliability",
    "effective_k_factor",
    "expected_score",
    "k_factor_for",
    "recency_reliability",
    "should_auto_unrate",
]
