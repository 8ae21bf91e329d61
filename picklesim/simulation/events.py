"""
Match event stream: ordered, append-only records emitted by the engine.
Each event carries enough data for a narration line without re-deriving state.
"""
from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, ClassVar

from .schemas import MatchPoint, MatchResult, MatchScore, MatchSide, PointType

_POINT_PHRASES = {
    PointType.ACE: "serves an ace",
    PointType.WINNER: "hits a winner",
    PointType.UNFORCED_ERROR: "takes it on an unforced error",
    PointType.FORCED_ERROR: "forces the error",
    PointType.RALLY: "outlasts a marathon rally",
    PointType.LINE_CALL: "is awarded the point on a line call",
}


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


@dataclass(frozen=True)
class MatchEvent:
    kind: ClassVar[str] = "event"
    # Suppressed while the player is skipping ahead
    point_level: ClassVar[bool] = False

    @property
    def narration(self) -> str:
        return ""

    def to_dict(self) -> dict[str, Any]:
        d = {"kind": self.kind}
        for f in fields(self):
            d[f.name] = _plain(getattr(self, f.name))
        d["narration"] = self.narration
        return d


@dataclass(frozen=True)
class MatchStartEvent(MatchEvent):
    kind: ClassVar[str] = "match_start"
    player_name: str
    opponent_name: str
    match_type: str

    @property
    def narration(self) -> str:
        return f"{self.player_name} vs {self.opponent_name} ({self.match_type}). Play ball!"


@dataclass(frozen=True)
class GameStartEvent(MatchEvent):
    kind: ClassVar[str] = "game_start"
    game_number: int

    @property
    def narration(self) -> str:
        return f"Game {self.game_number} begins."


@dataclass(frozen=True)
class PointPlayedEvent(MatchEvent):
    kind: ClassVar[str] = "point_played"
    point_level: ClassVar[bool] = True
    point: MatchPoint
    winner_name: str

    @property
    def narration(self) -> str:
        p = self.point
        phrase = _POINT_PHRASES[p.point_type]
        rally = f" after {p.rally_length} shots" if p.rally_length > 1 else ""
        return f"{self.winner_name} {phrase}{rally}. {p.score_after.display}"


@dataclass(frozen=True)
class StreakAlertEvent(MatchEvent):
    kind: ClassVar[str] = "streak_alert"
    point_level: ClassVar[bool] = True
    side: MatchSide
    name: str
    count: int

    @property
    def narration(self) -> str:
        return f"{self.name} is on fire: {self.count} points in a row!"


@dataclass(frozen=True)
class FatigueWarningEvent(MatchEvent):
    kind: ClassVar[str] = "fatigue_warning"
    point_level: ClassVar[bool] = True
    side: MatchSide
    name: str
    energy: float

    @property
    def narration(self) -> str:
        return f"{self.name} is tiring ({self.energy:.0f}% energy)."


@dataclass(frozen=True)
class TimeoutCalledEvent(MatchEvent):
    kind: ClassVar[str] = "timeout_called"
    side: MatchSide
    energy_restored: float
    streak_broken: int

    @property
    def narration(self) -> str:
        text = f"Timeout called, {self.energy_restored:g} energy restored"
        if self.streak_broken:
            text += f" and a {self.streak_broken}-point run interrupted"
        return text + "."


@dataclass(frozen=True)
class ConsumableUsedEvent(MatchEvent):
    kind: ClassVar[str] = "consumable_used"
    name: str
    effect: str

    @property
    def narration(self) -> str:
        return f"Used {self.name}: {self.effect}."


@dataclass(frozen=True)
class HookCallAttemptEvent(MatchEvent):
    kind: ClassVar[str] = "hook_call_attempt"
    success: bool
    rep_change: int
    score: MatchScore

    @property
    def narration(self) -> str:
        if self.success:
            return f"Questionable call stands! Point awarded. {self.score.display}"
        return f"Caught hooking the call! Point to the opponent. {self.score.display}"


@dataclass(frozen=True)
class SideOutEvent(MatchEvent):
    kind: ClassVar[str] = "side_out"
    point_level: ClassVar[bool] = True
    new_serving_team: MatchSide
    previous_serving_team: MatchSide
    score_display: str

    @property
    def narration(self) -> str:
        return f"Side out. {self.score_display}"


@dataclass(frozen=True)
class GameEndEvent(MatchEvent):
    kind: ClassVar[str] = "game_end"
    game_number: int
    winner_side: MatchSide
    winner_name: str
    score: MatchScore

    @property
    def narration(self) -> str:
        return f"{self.winner_name} takes game {self.game_number}, {self.score.display}."


@dataclass(frozen=True)
class ResignedEvent(MatchEvent):
    kind: ClassVar[str] = "resigned"
    game_number: int
    score: MatchScore

    @property
    def narration(self) -> str:
        return f"Resigned during game {self.game_number} at {self.score.display}."


@dataclass(frozen=True)
class MatchEndEvent(MatchEvent):
    kind: ClassVar[str] = "match_end"
    result: MatchResult

    @property
    def narration(self) -> str:
        outcome = "Victory" if self.result.did_player_win else "Defeat"
        if self.result.was_resigned:
            outcome = "Resigned"
        return f"{outcome}! {self.result.formatted_score}"
