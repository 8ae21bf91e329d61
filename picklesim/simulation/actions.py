"""
In-match player actions: consumable items and the bounded result types the
engine returns for every action request. Rejections carry a reason string;
no action request raises.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any

from .schemas import StatType


# ---- Consumables ----

@dataclass(frozen=True)
class EnergyRestore:
    amount: float

    def describe(self) -> str:
        return f"+{self.amount:g} energy"


@dataclass(frozen=True)
class StatBoost:
    """Flat boost to one stat for the rest of this match."""
    stat: StatType
    amount: int

    def describe(self) -> str:
        return f"+{self.amount} {self.stat.value} this match"


@dataclass(frozen=True)
class XPMultiplier:
    """Multiplies this match's XP award."""
    multiplier: float

    def describe(self) -> str:
        return f"x{self.multiplier:g} XP this match"


ConsumableEffect = EnergyRestore | StatBoost | XPMultiplier


@dataclass(frozen=True)
class Consumable:
    name: str
    effect: ConsumableEffect
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Consumable:
        kind = d["effect"]
        if kind == "energy_restore":
            effect: ConsumableEffect = EnergyRestore(float(d["amount"]))
        elif kind == "stat_boost":
            effect = StatBoost(StatType(d["stat"]), int(d["amount"]))
        elif kind == "xp_multiplier":
            effect = XPMultiplier(float(d["multiplier"]))
        else:
            raise ValueError(f"Unknown consumable effect: {kind}")
        kwargs = {"id": d["id"]} if "id" in d else {}
        return cls(name=d["name"], effect=effect, **kwargs)


# ---- Action results ----

@dataclass(frozen=True)
class SkipStarted:
    pass


@dataclass(frozen=True)
class Resigned:
    pass


@dataclass(frozen=True)
class TimeoutUsed:
    energy_restored: float
    streak_broken: int  # opponent streak that was reset


@dataclass(frozen=True)
class TimeoutUnavailable:
    reason: str


@dataclass(frozen=True)
class ConsumableUsed:
    name: str
    effect: ConsumableEffect


@dataclass(frozen=True)
class ConsumableUnavailable:
    reason: str


@dataclass(frozen=True)
class HookCallResult:
    success: bool
    rep_change: int


@dataclass(frozen=True)
class HookCallUnavailable:
    reason: str


TimeoutOutcome = TimeoutUsed | TimeoutUnavailable
ConsumableOutcome = ConsumableUsed | ConsumableUnavailable
HookCallOutcome = HookCallResult | HookCallUnavailable
