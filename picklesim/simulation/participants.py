"""
Who is on court: a Participant per player, and the tagged singles/doubles
line-up handed to the match engine. Doubles teams carry a TeamSynergy.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .equipment import Equipment
from .schemas import MatchType, PlayerStats
from .stat_calculator import DEFAULT_PLAYER_LEVEL


class Personality(str, Enum):
    AGGRESSIVE = "aggressive"
    DEFENSIVE = "defensive"
    ALL_ROUNDER = "all_rounder"
    SPEEDSTER = "speedster"
    STRATEGIST = "strategist"


# Symmetric chemistry matrix, keyed by the sorted personality pair
_SYNERGY: dict[tuple[str, str], float] = {}


def _set(a: str, b: str, value: float) -> None:
    _SYNERGY[tuple(sorted((a, b)))] = value


_set("aggressive", "aggressive", 0.92)
_set("defensive", "defensive", 0.93)
_set("all_rounder", "all_rounder", 1.00)
_set("speedster", "speedster", 0.95)
_set("strategist", "strategist", 0.94)
_set("aggressive", "defensive", 1.08)
_set("aggressive", "all_rounder", 1.02)
_set("aggressive", "speedster", 1.00)
_set("aggressive", "strategist", 1.05)
_set("defensive", "all_rounder", 1.03)
_set("defensive", "speedster", 1.06)
_set("defensive", "strategist", 1.05)
_set("all_rounder", "speedster", 1.02)
_set("all_rounder", "strategist", 1.02)
_set("speedster", "strategist", 1.07)


def synergy_description(multiplier: float) -> str:
    if multiplier < 0.94:
        return "Clashing Styles"
    if multiplier < 0.97:
        return "Awkward Fit"
    if multiplier < 1.03:
        return "Solid Teamwork"
    if multiplier < 1.06:
        return "Good Chemistry"
    return "Great Chemistry!"


@dataclass(frozen=True)
class TeamSynergy:
    multiplier: float = 1.0
    description: str = "Solid Teamwork"

    def __post_init__(self) -> None:
        if self.multiplier <= 0:
            raise ValueError("Synergy multiplier must be positive")

    @classmethod
    def calculate(cls, p1: Personality | str, p2: Personality | str) -> TeamSynergy:
        """Chemistry between two personalities (order does not matter)."""
        key = tuple(sorted((Personality(p1).value, Personality(p2).value)))
        mult = _SYNERGY.get(key, 1.0)
        return cls(multiplier=mult, description=synergy_description(mult))

    @classmethod
    def neutral(cls) -> TeamSynergy:
        return cls()


@dataclass(frozen=True)
class Participant:
    name: str
    stats: PlayerStats
    equipment: tuple[Equipment, ...] = ()
    level: int = DEFAULT_PLAYER_LEVEL

    def __post_init__(self) -> None:
        object.__setattr__(self, "equipment", tuple(self.equipment))


@dataclass(frozen=True)
class SinglesParticipants:
    player: Participant
    opponent: Participant

    match_type = MatchType.SINGLES

    @property
    def player_name(self) -> str:
        return self.player.name

    @property
    def opponent_name(self) -> str:
        return self.opponent.name


@dataclass(frozen=True)
class DoublesParticipants:
    player: Participant
    partner: Participant
    opponent: Participant
    opponent_partner: Participant
    player_synergy: TeamSynergy = field(default_factory=TeamSynergy.neutral)
    opponent_synergy: TeamSynergy = field(default_factory=TeamSynergy.neutral)

    match_type = MatchType.DOUBLES

    @property
    def player_name(self) -> str:
        return f"{self.player.name} & {self.partner.name}"

    @property
    def opponent_name(self) -> str:
        return f"{self.opponent.name} & {self.opponent_partner.name}"


MatchParticipants = SinglesParticipants | DoublesParticipants
