"""
Fatigue Model: per-participant energy drained by rallies, partly restored
between games and by timeouts or consumables. Stamina slows the drain.
"""
from __future__ import annotations

from dataclasses import dataclass

from .constants import Fatigue
from .schemas import FatigueLevel


def rally_drain(rally_length: int, stamina: int) -> float:
    """Energy lost for one rally; longer rallies cost extra per shot past 5."""
    base = Fatigue.BASE_DRAIN_PER_SHOT * rally_length
    long_rally = Fatigue.RALLY_LENGTH_DRAIN * max(0, rally_length - Fatigue.LONG_RALLY_START)
    reduction = 1.0 - stamina * Fatigue.STAMINA_REDUCTION
    return max(Fatigue.MIN_DRAIN, (base + long_rally) * reduction)


@dataclass
class FatigueModel:
    """Energy in [0, 100]. stamina is fixed for the life of the match."""
    stamina: int
    energy: float = Fatigue.MAX_ENERGY

    def __post_init__(self) -> None:
        self.clamp()

    def clamp(self) -> None:
        self.energy = max(0.0, min(Fatigue.MAX_ENERGY, float(self.energy)))

    def drain_energy(self, rally_length: int) -> float:
        self.energy = max(0.0, self.energy - rally_drain(rally_length, self.stamina))
        return self.energy

    def rest_between_games(self) -> float:
        return self.restore(Fatigue.REST_BETWEEN_GAMES)

    def restore(self, amount: float) -> float:
        self.energy = min(Fatigue.MAX_ENERGY, self.energy + max(0.0, amount))
        return self.energy

    @property
    def fatigue_level(self) -> FatigueLevel:
        if self.energy > Fatigue.THRESHOLD_1:
            return FatigueLevel.FRESH
        if self.energy > Fatigue.THRESHOLD_2:
            return FatigueLevel.MILD
        if self.energy > Fatigue.THRESHOLD_3:
            return FatigueLevel.MODERATE
        return FatigueLevel.SEVERE
