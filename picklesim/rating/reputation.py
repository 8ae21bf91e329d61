"""
Reputation earned or lost from a rated result. Upsets pay more than expected
wins; a close loss to a stronger opponent can still earn a little.
"""
from __future__ import annotations

from ..simulation.constants import Reputation as C


def calculate_rep_change(did_win: bool, player_rating: float, opponent_rating: float) -> int:
    gap = opponent_rating - player_rating
    if did_win:
        if gap > 0:
            return C.BASE_WIN_REP + int(gap * C.UPSET_WIN_BONUS)
        return max(C.MIN_WIN_REP, C.BASE_WIN_REP - int(abs(gap) * C.EXPECTED_WIN_REDUCTION))
    if gap >= C.RESPECT_THRESHOLD:
        return min(C.MAX_RESPECT_GAIN, max(1, int(gap * C.RESPECT_GAIN_RATE)))
    if gap >= 0:
        return 0
    # lost to a lower-rated opponent
    return -min(C.MAX_LOSS_REP, C.BASE_LOSS_REP + int(abs(gap) * C.UPSET_LOSS_MULTIPLIER))
