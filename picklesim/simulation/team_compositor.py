"""
Team Stat Compositor: folds two doubles partners into one team stat line
so the singles rally pipeline can resolve doubles points.
"""
from __future__ import annotations

import math
from typing import Iterable

from .equipment import Equipment
from .participants import TeamSynergy
from .schemas import PlayerStats, StatType
from .stat_calculator import DEFAULT_PLAYER_LEVEL, StatCalculator

_calculator = StatCalculator()


def composite_effective_stats(
    p1_effective: PlayerStats,
    p2_effective: PlayerStats,
    synergy: TeamSynergy,
) -> PlayerStats:
    """Per-stat floor average, then synergy multiplier rounded half-up."""
    values = {}
    for t in StatType:
        avg = (p1_effective.stat(t) + p2_effective.stat(t)) // 2
        values[t.value] = math.floor(avg * synergy.multiplier + 0.5)
    return PlayerStats(**values)


def composite_stats(
    p1_stats: PlayerStats,
    p1_equipment: Iterable[Equipment],
    p2_stats: PlayerStats,
    p2_equipment: Iterable[Equipment],
    synergy: TeamSynergy,
    p1_level: int = DEFAULT_PLAYER_LEVEL,
    p2_level: int = DEFAULT_PLAYER_LEVEL,
) -> PlayerStats:
    """Raw base stats + equipment; runs the stat calculator for each partner first."""
    return composite_effective_stats(
        _calculator.effective_stats(p1_stats, p1_equipment, p1_level),
        _calculator.effective_stats(p2_stats, p2_equipment, p2_level),
        synergy,
    )
