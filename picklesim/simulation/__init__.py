"""
Pickleball Match Simulation Engine: stat-driven, replayable point-by-point
singles and doubles matches with fatigue, momentum and in-match actions.
"""
from .schemas import (
    PlayerStats,
    StatType,
    MatchSide,
    PointType,
    FatigueLevel,
    MatchType,
    MatchConfig,
    MatchScore,
    MatchPoint,
    MatchPlayerStats,
    MatchResult,
    MatchSnapshot,
)
from .params import SimulationParameters, load_parameters, default_parameters
from .rng import RandomSource, SystemRandomSource, SeededRandomSource
from .equipment import (
    Equipment,
    EquipmentSlot,
    EquipmentRarity,
    EquipmentSet,
    StatBonus,
    TraitType,
    equipment_set,
)
from .participants import (
    Participant,
    Personality,
    TeamSynergy,
    SinglesParticipants,
    DoublesParticipants,
)
from .stat_calculator import StatCalculator
from .fatigue_model import FatigueModel
from .state_tracker import (
    MomentumTracker,
    DoublesScoreTracker,
    Scored,
    ServerRotation,
    SideOut,
    is_game_over,
    is_clutch,
)
from .team_compositor import composite_stats, composite_effective_stats
from .rally_simulator import RallySimulator, RallyResult
from .point_resolver import PointResolver, ResolvedPoint, CourtPlayer
from .actions import Consumable, EnergyRestore, StatBoost, XPMultiplier
from .events import MatchEvent
from .match_engine import MatchEngine, EngineState, build_engine
from .emitter import EmitterConfig, SyncEmitter, async_emit_stream, snapshot_from_events

__all__ = [
    "PlayerStats",
    "StatType",
    "MatchSide",
    "PointType",
    "FatigueLevel",
    "MatchType",
    "MatchConfig",
    "MatchScore",
    "MatchPoint",
    "MatchPlayerStats",
    "MatchResult",
    "MatchSnapshot",
    "SimulationParameters",
    "load_parameters",
    "default_parameters",
    "RandomSource",
    "SystemRandomSource",
    "SeededRandomSource",
    "Equipment",
    "EquipmentSlot",
    "EquipmentRarity",
    "EquipmentSet",
    "StatBonus",
    "TraitType",
    "equipment_set",
    "Participant",
    "Personality",
    "TeamSynergy",
    "SinglesParticipants",
    "DoublesParticipants",
    "StatCalculator",
    "FatigueModel",
    "MomentumTracker",
    "DoublesScoreTracker",
    "Scored",
    "ServerRotation",
    "SideOut",
    "is_game_over",
    "is_clutch",
    "composite_stats",
    "composite_effective_stats",
    "RallySimulator",
    "RallyResult",
    "PointResolver",
    "ResolvedPoint",
    "CourtPlayer",
    "Consumable",
    "EnergyRestore",
    "StatBoost",
    "XPMultiplier",
    "MatchEvent",
    "MatchEngine",
    "EngineState",
    "build_engine",
    "EmitterConfig",
    "SyncEmitter",
    "async_emit_stream",
    "snapshot_from_events",
]
