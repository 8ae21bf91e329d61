"""
Stat Calculator: base stats + equipment with diminishing returns, then the
per-point fatigue, momentum and consumable-boost adjustments.
"""
from __future__ import annotations

from collections import Counter
from typing import Iterable, Mapping

from .constants import Fatigue, Stats
from .equipment import Equipment, equipment_set
from .schemas import PlayerStats, StatType

DEFAULT_PLAYER_LEVEL = 50

MOMENTUM_STATS = (
    StatType.POWER,
    StatType.ACCURACY,
    StatType.SPIN,
    StatType.SPEED,
    StatType.CLUTCH,
    StatType.CONSISTENCY,
)


def aggregate_bonuses(
    equipment: Iterable[Equipment],
    player_level: int = DEFAULT_PLAYER_LEVEL,
) -> dict[StatType, int]:
    """
    Sum every usable item's bonuses per stat. Items above the player's level
    contribute nothing (not even toward set piece counts).
    """
    bonuses: Counter[StatType] = Counter()
    set_pieces: Counter[str] = Counter()
    for item in equipment:
        if item.level > player_level:
            continue
        if item.base_stat is not None:
            bonuses[item.base_stat.stat] += item.scaled(item.base_stat.value)
        for bonus in item.stat_bonuses:
            bonuses[bonus.stat] += item.scaled(bonus.value)
        for trait in item.traits:
            for stat, delta in trait.stat_modifiers.items():
                bonuses[stat] += delta
        if item.set_id:
            set_pieces[item.set_id] += 1

    for set_id, owned in set_pieces.items():
        eq_set = equipment_set(set_id)
        if eq_set is None:
            continue
        for tier in eq_set.active_tiers(owned):
            for bonus in tier.bonuses:
                bonuses[bonus.stat] += bonus.value
    return dict(bonuses)


def apply_diminishing_returns(base: int, bonus: int) -> int:
    """Linear below 60, x0.7 from 60-80, x0.4 above 80, hard cap 99."""
    if bonus <= 0:
        return base

    remaining = bonus
    current = base

    if current < Stats.LINEAR_CAP:
        applied = min(remaining, Stats.LINEAR_CAP - current)
        current += int(applied * Stats.LINEAR_SCALE)
        remaining -= applied

    if remaining > 0 and current < Stats.MID_CAP:
        applied = min(remaining, Stats.MID_CAP - current)
        current += int(applied * Stats.MID_SCALE)
        remaining -= applied

    if remaining > 0:
        current += int(remaining * Stats.HIGH_SCALE)

    return min(current, Stats.HARD_CAP)


def fatigue_penalty(energy: float) -> float:
    if energy <= Fatigue.THRESHOLD_3:
        return Fatigue.PENALTY_3
    if energy <= Fatigue.THRESHOLD_2:
        return Fatigue.PENALTY_2
    if energy <= Fatigue.THRESHOLD_1:
        return Fatigue.PENALTY_1
    return 0.0


class StatCalculator:
    """Pure transformations over PlayerStats; safe to share between matches."""

    def effective_stats(
        self,
        base: PlayerStats,
        equipment: Iterable[Equipment],
        player_level: int = DEFAULT_PLAYER_LEVEL,
    ) -> PlayerStats:
        bonuses = aggregate_bonuses(equipment, player_level)
        if not bonuses:
            return base
        return base.with_stats(
            {t: apply_diminishing_returns(base.stat(t), bonuses.get(t, 0)) for t in StatType}
        )

    def apply_fatigue(self, stats: PlayerStats, energy: float) -> PlayerStats:
        penalty = fatigue_penalty(energy)
        if penalty <= 0:
            return stats
        reduced = {
            t: max(int(stats.stat(t) * (1.0 - penalty)), Stats.MIN_VALUE)
            for t in StatType
            if t is not StatType.STAMINA
        }
        return stats.with_stats(reduced)

    def apply_momentum(self, stats: PlayerStats, modifier: float) -> PlayerStats:
        if modifier == 0:
            return stats
        adjusted = {
            t: min(max(int(stats.stat(t) * (1.0 + modifier)), Stats.MIN_VALUE), Stats.MAX_VALUE)
            for t in MOMENTUM_STATS
        }
        return stats.with_stats(adjusted)

    def apply_boosts(self, stats: PlayerStats, boosts: Mapping[StatType, int]) -> PlayerStats:
        """Match-scoped consumable boosts, added flat and clamped."""
        active = {t: stats.stat(t) + v for t, v in boosts.items() if v}
        if not active:
            return stats
        return stats.with_stats(active)
