"""
Shared value types for the pickleball match simulation: player stats,
match configuration, the point log and the terminal match result.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields, replace
from enum import Enum
from typing import TYPE_CHECKING, Any

from .constants import DUPRRating, Match, Stats

if TYPE_CHECKING:
    from .equipment import Equipment


class StatType(str, Enum):
    POWER = "power"
    ACCURACY = "accuracy"
    SPIN = "spin"
    SPEED = "speed"
    DEFENSE = "defense"
    REFLEXES = "reflexes"
    POSITIONING = "positioning"
    CLUTCH = "clutch"
    FOCUS = "focus"
    STAMINA = "stamina"
    CONSISTENCY = "consistency"


def clamp_stat(value: int) -> int:
    return max(Stats.MIN_VALUE, min(Stats.MAX_VALUE, int(value)))


@dataclass(frozen=True)
class PlayerStats:
    """
    Eleven integer attributes, each clamped to [1, 99] on construction.
    Never mutated; use with_stat / with_stats to derive a new line.
    """
    power: int = 15
    accuracy: int = 15
    spin: int = 15
    speed: int = 15
    defense: int = 15
    reflexes: int = 15
    positioning: int = 15
    clutch: int = 15
    focus: int = 15
    stamina: int = 15
    consistency: int = 15

    def __post_init__(self) -> None:
        for f in fields(self):
            object.__setattr__(self, f.name, clamp_stat(getattr(self, f.name)))

    @classmethod
    def flat(cls, value: int) -> PlayerStats:
        """Every stat set to the same value."""
        return cls(**{t.value: value for t in StatType})

    @classmethod
    def starter(cls) -> PlayerStats:
        return cls()

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> PlayerStats:
        known = {t.value for t in StatType}
        unknown = set(d) - known
        if unknown:
            raise ValueError(f"Unknown stats: {sorted(unknown)}")
        return cls(**{k: int(v) for k, v in d.items()})

    def stat(self, stat_type: StatType) -> int:
        return getattr(self, StatType(stat_type).value)

    def with_stat(self, stat_type: StatType, value: int) -> PlayerStats:
        return replace(self, **{StatType(stat_type).value: value})

    def with_stats(self, values: dict[StatType, int]) -> PlayerStats:
        return replace(self, **{StatType(k).value: v for k, v in values.items()})

    def as_dict(self) -> dict[str, int]:
        return {t.value: self.stat(t) for t in StatType}

    @property
    def total(self) -> int:
        return sum(self.stat(t) for t in StatType)

    @property
    def average(self) -> float:
        return self.total / len(StatType)

    @property
    def dupr_rating(self) -> float:
        """Map the stat average (1-99) linearly onto the DUPR range (2.0-8.0)."""
        span = DUPRRating.MAX_RATING - DUPRRating.MIN_RATING
        frac = (self.average - Stats.MIN_VALUE) / (Stats.MAX_VALUE - Stats.MIN_VALUE)
        return round(DUPRRating.MIN_RATING + frac * span, 2)


class MatchSide(str, Enum):
    PLAYER = "player"
    OPPONENT = "opponent"

    @property
    def opposite(self) -> MatchSide:
        return MatchSide.OPPONENT if self is MatchSide.PLAYER else MatchSide.PLAYER


class PointType(str, Enum):
    """How the point ended."""
    ACE = "ace"
    WINNER = "winner"
    UNFORCED_ERROR = "unforced_error"
    FORCED_ERROR = "forced_error"
    RALLY = "rally"        # rally hit the shot cap and was decided on overall stats
    LINE_CALL = "line_call"  # awarded by a hook call, no rally played


class FatigueLevel(str, Enum):
    FRESH = "fresh"
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"


class MatchType(str, Enum):
    SINGLES = "singles"
    DOUBLES = "doubles"


@dataclass(frozen=True)
class MatchConfig:
    """Configuration for a single match simulation."""
    points_to_win: int = Match.POINTS_TO_WIN
    games_to_win: int = Match.GAMES_TO_WIN
    win_by_two: bool = Match.WIN_BY_TWO
    match_type: MatchType = MatchType.SINGLES
    wager_amount: int = 0
    max_points: int = Match.MAX_POINTS

    def __post_init__(self) -> None:
        if self.points_to_win < 1:
            raise ValueError("points_to_win must be at least 1")
        if self.games_to_win < 1:
            raise ValueError("games_to_win must be at least 1")
        if self.max_points < self.points_to_win:
            raise ValueError("max_points cannot be below points_to_win")
        if self.wager_amount < 0:
            raise ValueError("wager_amount cannot be negative")
        object.__setattr__(self, "match_type", MatchType(self.match_type))

    @property
    def is_doubles(self) -> bool:
        return self.match_type is MatchType.DOUBLES

    @classmethod
    def default_singles(cls) -> MatchConfig:
        return cls()

    @classmethod
    def quick_match(cls) -> MatchConfig:
        """Single game to 11."""
        return cls(games_to_win=1)

    @classmethod
    def default_doubles(cls) -> MatchConfig:
        return cls(match_type=MatchType.DOUBLES)


@dataclass(frozen=True)
class MatchScore:
    player_points: int = 0
    opponent_points: int = 0
    player_games: int = 0
    opponent_games: int = 0

    @property
    def display(self) -> str:
        return f"{self.player_points}-{self.opponent_points}"

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class MatchPoint:
    """One resolved point, appended to the match log and never changed."""
    game_number: int
    point_number: int
    winner_side: MatchSide
    point_type: PointType
    rally_length: int
    serving_side: MatchSide
    score_after: MatchScore
    server_number: int | None = None  # doubles only
    is_side_out: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "game_number": self.game_number,
            "point_number": self.point_number,
            "winner_side": self.winner_side.value,
            "point_type": self.point_type.value,
            "rally_length": self.rally_length,
            "serving_side": self.serving_side.value,
            "score_after": self.score_after.to_dict(),
            "server_number": self.server_number,
            "is_side_out": self.is_side_out,
        }


@dataclass
class MatchPlayerStats:
    """Per-side aggregates folded from the point log."""
    aces: int = 0
    winners: int = 0
    unforced_errors: int = 0
    forced_errors: int = 0
    points_won: int = 0
    longest_rally: int = 0
    average_rally_length: float = 0.0
    longest_streak: int = 0
    final_energy: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class MatchResult:
    """Terminal aggregate of a match; built exactly once at match end."""
    did_player_win: bool
    final_score: MatchScore
    game_scores: list[MatchScore]
    player_stats: MatchPlayerStats
    opponent_stats: MatchPlayerStats
    xp_earned: int
    coins_earned: int
    duration_seconds: float
    total_points: int
    loot: list[Equipment] = field(default_factory=list)
    was_resigned: bool = False
    dupr_change: float | None = None
    reputation_change: int = 0

    @property
    def formatted_score(self) -> str:
        return ", ".join(g.display for g in self.game_scores)

    def to_dict(self) -> dict[str, Any]:
        return {
            "did_player_win": self.did_player_win,
            "final_score": self.final_score.to_dict(),
            "game_scores": [g.to_dict() for g in self.game_scores],
            "formatted_score": self.formatted_score,
            "player_stats": self.player_stats.to_dict(),
            "opponent_stats": self.opponent_stats.to_dict(),
            "xp_earned": self.xp_earned,
            "coins_earned": self.coins_earned,
            "duration_seconds": self.duration_seconds,
            "total_points": self.total_points,
            "loot": [item.to_dict() for item in self.loot],
            "was_resigned": self.was_resigned,
            "dupr_change": self.dupr_change,
            "reputation_change": self.reputation_change,
        }


@dataclass
class MatchSnapshot:
    """
    Partial-match snapshot at a point in time.
    For UI and realtime feeds.
    """
    game_number: int
    current_score: MatchScore
    serving_side: MatchSide | None
    points_played: int
    completed: bool
    did_player_win: bool | None = None
    events_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "game_number": self.game_number,
            "current_score": self.current_score.to_dict(),
            "serving_side": self.serving_side.value if self.serving_side else None,
            "points_played": self.points_played,
            "completed": self.completed,
            "did_player_win": self.did_player_win,
            "events_count": self.events_count,
        }
