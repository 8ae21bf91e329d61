"""
Equipment data consumed read-only by the stat pipeline: items, traits and
the set catalog whose bonus tiers stack by owned-piece count.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .schemas import StatType


class EquipmentSlot(str, Enum):
    PADDLE = "paddle"
    SHIRT = "shirt"
    SHOES = "shoes"
    BOTTOMS = "bottoms"
    HEADWEAR = "headwear"
    WRISTBAND = "wristband"


class EquipmentRarity(str, Enum):
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"

    @property
    def max_level(self) -> int:
        return _MAX_LEVEL[self]


_MAX_LEVEL = {
    EquipmentRarity.COMMON: 5,
    EquipmentRarity.UNCOMMON: 10,
    EquipmentRarity.RARE: 15,
    EquipmentRarity.EPIC: 20,
    EquipmentRarity.LEGENDARY: 25,
}


class TraitType(str, Enum):
    # Minor: small trade-offs
    LIGHTFOOT = "lightfoot"
    HEAVY_HITTER = "heavy_hitter"
    SPIN_ARTIST = "spin_artist"
    WALL_BUILDER = "wall_builder"
    QUICK_HANDS = "quick_hands"
    # Major: multi-stat
    RALLY_GRINDER = "rally_grinder"
    COURT_COVERAGE = "court_coverage"
    PRESSURE_PLAYER = "pressure_player"
    STEADY_EDDIE = "steady_eddie"
    SERVE_SPECIALIST = "serve_specialist"
    # Unique
    CLUTCH_GENE = "clutch_gene"
    IRON_CONSTITUTION = "iron_constitution"
    ALL_ROUNDER = "all_rounder"

    @property
    def stat_modifiers(self) -> dict[StatType, int]:
        if self is TraitType.ALL_ROUNDER:
            return {t: 2 for t in StatType}
        return dict(_TRAIT_MODIFIERS[self])


_TRAIT_MODIFIERS: dict[TraitType, dict[StatType, int]] = {
    TraitType.LIGHTFOOT: {StatType.SPEED: 2, StatType.POWER: -1},
    TraitType.HEAVY_HITTER: {StatType.POWER: 2, StatType.SPEED: -1},
    TraitType.SPIN_ARTIST: {StatType.SPIN: 2, StatType.ACCURACY: -1},
    TraitType.WALL_BUILDER: {StatType.DEFENSE: 2, StatType.SPEED: -1},
    TraitType.QUICK_HANDS: {StatType.REFLEXES: 2, StatType.CONSISTENCY: -1},
    TraitType.RALLY_GRINDER: {StatType.CONSISTENCY: 3, StatType.STAMINA: 2},
    TraitType.COURT_COVERAGE: {StatType.POSITIONING: 3, StatType.SPEED: 2},
    TraitType.PRESSURE_PLAYER: {StatType.SPIN: 3, StatType.POWER: 2},
    TraitType.STEADY_EDDIE: {StatType.CONSISTENCY: 3, StatType.FOCUS: 2},
    TraitType.SERVE_SPECIALIST: {StatType.POWER: 3, StatType.ACCURACY: 2},
    TraitType.CLUTCH_GENE: {StatType.CLUTCH: 5},
    TraitType.IRON_CONSTITUTION: {StatType.STAMINA: 5},
}


@dataclass(frozen=True)
class StatBonus:
    stat: StatType
    value: int

    def to_dict(self) -> dict[str, Any]:
        return {"stat": self.stat.value, "value": self.value}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> StatBonus:
        return cls(stat=StatType(d["stat"]), value=int(d["value"]))


@dataclass(frozen=True)
class SetBonusTier:
    pieces_required: int
    bonuses: tuple[StatBonus, ...]
    label: str


@dataclass(frozen=True)
class EquipmentSet:
    id: str
    name: str
    pieces: frozenset[EquipmentSlot]
    bonus_tiers: tuple[SetBonusTier, ...]

    def active_tiers(self, owned_pieces: int) -> list[SetBonusTier]:
        """Tiers stack: every tier whose requirement is met applies."""
        return [t for t in self.bonus_tiers if owned_pieces >= t.pieces_required]


@dataclass(frozen=True)
class Equipment:
    """One equipped item. level scales its own bonuses by 1% per level above 1."""
    name: str
    slot: EquipmentSlot
    rarity: EquipmentRarity = EquipmentRarity.COMMON
    stat_bonuses: tuple[StatBonus, ...] = ()
    base_stat: StatBonus | None = None
    set_id: str | None = None
    traits: tuple[TraitType, ...] = ()
    level: int = 1
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self) -> None:
        if self.level < 1:
            raise ValueError("Equipment level must be at least 1")
        object.__setattr__(self, "stat_bonuses", tuple(self.stat_bonuses))
        object.__setattr__(self, "traits", tuple(self.traits))

    @property
    def level_multiplier(self) -> float:
        return 1.0 + 0.01 * (self.level - 1)

    def scaled(self, value: int) -> int:
        return int(value * self.level_multiplier)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "slot": self.slot.value,
            "rarity": self.rarity.value,
            "stat_bonuses": [b.to_dict() for b in self.stat_bonuses],
            "base_stat": self.base_stat.to_dict() if self.base_stat else None,
            "set_id": self.set_id,
            "traits": [t.value for t in self.traits],
            "level": self.level,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Equipment:
        kwargs: dict[str, Any] = {}
        if "id" in d:
            kwargs["id"] = d["id"]
        base = d.get("base_stat")
        return cls(
            name=d["name"],
            slot=EquipmentSlot(d["slot"]),
            rarity=EquipmentRarity(d.get("rarity", "common")),
            stat_bonuses=tuple(StatBonus.from_dict(b) for b in d.get("stat_bonuses", [])),
            base_stat=StatBonus.from_dict(base) if base else None,
            set_id=d.get("set_id"),
            traits=tuple(TraitType(t) for t in d.get("traits", [])),
            level=int(d.get("level", 1)),
            **kwargs,
        )


def _tier(pieces: int, label: str, **bonuses: int) -> SetBonusTier:
    return SetBonusTier(
        pieces_required=pieces,
        bonuses=tuple(StatBonus(StatType(k), v) for k, v in bonuses.items()),
        label=label,
    )


ALL_SETS: tuple[EquipmentSet, ...] = (
    EquipmentSet(
        id="court_king",
        name="Court King",
        pieces=frozenset(EquipmentSlot),
        bonus_tiers=(
            _tier(2, "Royal Strike", power=3),
            _tier(4, "King's Authority", power=5, accuracy=3),
            _tier(6, "Court Coronation", power=8, accuracy=5, speed=3),
        ),
    ),
    EquipmentSet(
        id="speed_demon",
        name="Speed Demon",
        pieces=frozenset({EquipmentSlot.SHOES, EquipmentSlot.BOTTOMS, EquipmentSlot.WRISTBAND, EquipmentSlot.HEADWEAR}),
        bonus_tiers=(
            _tier(2, "Quick Feet", speed=3),
            _tier(3, "Demon Rush", speed=5, reflexes=3),
            _tier(4, "Terminal Velocity", speed=8, reflexes=5, positioning=3),
        ),
    ),
    EquipmentSet(
        id="iron_wall",
        name="Iron Wall",
        pieces=frozenset({EquipmentSlot.PADDLE, EquipmentSlot.SHIRT, EquipmentSlot.SHOES, EquipmentSlot.BOTTOMS}),
        bonus_tiers=(
            _tier(2, "Stone Guard", defense=3),
            _tier(3, "Fortress", defense=5, positioning=3),
            _tier(4, "Iron Curtain", defense=8, positioning=5, reflexes=3),
        ),
    ),
    EquipmentSet(
        id="mind_games",
        name="Mind Games",
        pieces=frozenset({EquipmentSlot.PADDLE, EquipmentSlot.HEADWEAR, EquipmentSlot.WRISTBAND, EquipmentSlot.SHIRT}),
        bonus_tiers=(
            _tier(2, "Mind Reader", clutch=3),
            _tier(3, "Psych Out", clutch=5, consistency=3),
            _tier(4, "Checkmate", clutch=8, consistency=5, spin=3),
        ),
    ),
    EquipmentSet(
        id="endurance_pro",
        name="Endurance Pro",
        pieces=frozenset({EquipmentSlot.SHOES, EquipmentSlot.SHIRT, EquipmentSlot.BOTTOMS, EquipmentSlot.WRISTBAND}),
        bonus_tiers=(
            _tier(2, "Second Wind", stamina=3),
            _tier(3, "Marathon Mode", stamina=5, consistency=3),
            _tier(4, "Ironman", stamina=8, consistency=5, defense=3),
        ),
    ),
)

_SETS_BY_ID = {s.id: s for s in ALL_SETS}


def equipment_set(set_id: str) -> EquipmentSet | None:
    return _SETS_BY_ID.get(set_id)
