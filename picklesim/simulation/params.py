"""
Tunable rally constants. Defaults match the shipped game balance; an offline
training run may write a JSON profile that overrides them at startup.
"""
from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any

from .schemas import PlayerStats

logger = logging.getLogger(__name__)

PARAMS_ENV_VAR = "PICKLESIM_PARAMS"

# (low, high) per field; anything outside is pulled back in by clamped()
_BOUNDS: dict[str, tuple[float, float]] = {
    "sensitivity": (0.1, 3.0),
    "base_ace_chance": (0.001, 0.25),
    "power_ace_scaling": (0.0001, 0.01),
    "reflex_defense_scale": (0.0001, 0.01),
    "base_winner_chance": (0.02, 0.40),
    "base_error_chance": (0.02, 0.40),
    "winner_stat_scale": (0.001, 0.02),
    "forced_error_base": (0.01, 0.25),
    "attack_pressure_scale": (0.001, 0.02),
    "defense_resist_scale": (0.001, 0.02),
    "winner_shot_bonus": (0.0, 0.02),
    "error_consistency_scale": (0.001, 0.02),
    "error_accuracy_scale": (0.001, 0.02),
    "error_fatigue_scale": (0.0, 0.01),
    "overall_advantage_scale": (0.001, 0.02),
    "dink_winner_base": (0.0, 0.2),
    "dink_error_base": (0.0, 0.3),
    "dink_forced_error_chance": (0.0, 0.1),
}


def _snake(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


@dataclass(frozen=True)
class SimulationParameters:
    """Rally probability curves consumed by RallySimulator."""
    # Global stat-differential sensitivity (S)
    sensitivity: float = 1.0
    # Serve phase
    base_ace_chance: float = 0.05
    power_ace_scaling: float = 0.002
    reflex_defense_scale: float = 0.0015
    # Rally phase
    min_rally_shots: int = 1
    max_rally_shots: int = 30
    base_winner_chance: float = 0.15
    base_error_chance: float = 0.12
    winner_stat_scale: float = 1.0 / 300.0
    forced_error_base: float = 0.08
    attack_pressure_scale: float = 1.0 / 200.0
    defense_resist_scale: float = 1.0 / 200.0
    winner_shot_bonus: float = 0.005
    error_consistency_scale: float = 1.0 / 200.0
    error_accuracy_scale: float = 1.0 / 200.0
    error_fatigue_scale: float = 0.003
    overall_advantage_scale: float = 1.0 / 200.0
    # Dink phase (doubles)
    dink_min_shots: int = 2
    dink_max_shots: int = 8
    dink_winner_base: float = 0.04
    dink_error_base: float = 0.06
    dink_forced_error_chance: float = 0.02

    def clamped(self) -> SimulationParameters:
        changes: dict[str, Any] = {}
        for name, (low, high) in _BOUNDS.items():
            changes[name] = max(low, min(high, getattr(self, name)))
        min_shots = max(1, self.min_rally_shots)
        changes["min_rally_shots"] = min_shots
        changes["max_rally_shots"] = max(min_shots, self.max_rally_shots)
        dink_min = max(0, self.dink_min_shots)
        changes["dink_min_shots"] = dink_min
        changes["dink_max_shots"] = max(dink_min, self.dink_max_shots)
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> SimulationParameters:
        """Accepts snake_case or camelCase keys, flat or nested under "rally"."""
        source = d.get("rally", d)
        known = {f.name: f for f in fields(cls)}
        values: dict[str, Any] = {}
        for key, raw in source.items():
            name = _snake(key)
            if name not in known:
                continue
            values[name] = int(raw) if name.endswith("_shots") else float(raw)
        return cls(**values)


def starter_stats_from_dict(d: dict[str, Any]) -> PlayerStats | None:
    block = d.get("starter_stats") or d.get("starterStats")
    if not block:
        return None
    return PlayerStats.from_dict(block)


def load_parameters(path: str | Path) -> SimulationParameters:
    """
    Read a trained parameter profile. Falls back to defaults (with a warning)
    when the file is missing or unreadable; never raises.
    """
    p = Path(path)
    try:
        data = json.loads(p.read_text())
        return SimulationParameters.from_dict(data).clamped()
    except FileNotFoundError:
        logger.warning("Parameter file %s not found; using defaults", p)
    except (json.JSONDecodeError, TypeError, ValueError, AttributeError) as exc:
        logger.warning("Parameter file %s is invalid (%s); using defaults", p, exc)
    return SimulationParameters()


def load_starter_stats(path: str | Path) -> PlayerStats:
    p = Path(path)
    try:
        stats = starter_stats_from_dict(json.loads(p.read_text()))
    except FileNotFoundError:
        logger.warning("Parameter file %s not found; using starter defaults", p)
        stats = None
    except (json.JSONDecodeError, TypeError, ValueError, AttributeError) as exc:
        logger.warning("Starter stats in %s are invalid (%s); using defaults", p, exc)
        stats = None
    return stats or PlayerStats.starter()


def default_parameters() -> SimulationParameters:
    """Parameters from $PICKLESIM_PARAMS when set, else built-in defaults."""
    path = os.environ.get(PARAMS_ENV_VAR)
    if not path:
        return SimulationParameters()
    return load_parameters(path)
