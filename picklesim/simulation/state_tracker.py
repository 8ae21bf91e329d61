"""
Momentum & Score State: per-side streaks feeding the momentum modifier,
game-over / clutch rules, and doubles side-out scoring.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from .constants import Doubles, Match, Momentum
from .schemas import MatchSide


def is_game_over(
    player_points: int,
    opponent_points: int,
    points_to_win: int = Match.POINTS_TO_WIN,
    win_by_two: bool = Match.WIN_BY_TWO,
    max_points: int = Match.MAX_POINTS,
) -> bool:
    """Target reached (by two when required), or sudden death at max_points."""
    high = max(player_points, opponent_points)
    if not win_by_two:
        return high >= points_to_win
    margin = abs(player_points - opponent_points)
    return (high >= points_to_win and margin >= 2) or high >= max_points


def is_clutch(player_points: int, opponent_points: int, points_to_win: int = Match.POINTS_TO_WIN) -> bool:
    """Both sides within two points of the target (e.g. 9-9 in a game to 11)."""
    threshold = points_to_win - Match.CLUTCH_MARGIN
    return player_points >= threshold and opponent_points >= threshold


@dataclass
class MomentumTracker:
    """Current and longest streak per side. Reset (not rebuilt) each game."""
    streaks: dict[MatchSide, int] = field(
        default_factory=lambda: {MatchSide.PLAYER: 0, MatchSide.OPPONENT: 0}
    )
    longest: dict[MatchSide, int] = field(
        default_factory=lambda: {MatchSide.PLAYER: 0, MatchSide.OPPONENT: 0}
    )

    def record_point(self, winner: MatchSide) -> int | None:
        """Returns the winner's streak once it reaches 2, else None."""
        self.streaks[winner] += 1
        self.streaks[winner.opposite] = 0
        streak = self.streaks[winner]
        if streak > self.longest[winner]:
            self.longest[winner] = streak
        return streak if streak >= Momentum.REPORT_MIN_STREAK else None

    def streak(self, side: MatchSide) -> int:
        return self.streaks[side]

    def longest_streak(self, side: MatchSide) -> int:
        return self.longest[side]

    def modifier(self, side: MatchSide) -> float:
        own = min(self.streaks[side], Momentum.BONUS_CAP)
        other = min(self.streaks[side.opposite], Momentum.PENALTY_CAP)
        return Momentum.STREAK_BONUS.get(own, 0.0) + Momentum.STREAK_PENALTY.get(other, 0.0)

    def reset_streak(self, side: MatchSide) -> None:
        self.streaks[side] = 0

    def reset_for_new_game(self) -> None:
        for side in MatchSide:
            self.streaks[side] = 0


# ---- Doubles side-out scoring ----

@dataclass(frozen=True)
class Scored:
    serving_team: MatchSide
    server_number: int


@dataclass(frozen=True)
class ServerRotation:
    serving_team: MatchSide
    new_server_number: int


@dataclass(frozen=True)
class SideOut:
    new_serving_team: MatchSide
    previous_serving_team: MatchSide


DoublesPointOutcome = Scored | ServerRotation | SideOut


class DoublesScoreTracker:
    """
    Traditional doubles scoring: only the serving team scores, both partners
    serve before a side-out, and each game opens at "0-0-2".
    """

    def __init__(
        self,
        points_to_win: int = Match.POINTS_TO_WIN,
        win_by_two: bool = Match.WIN_BY_TWO,
        max_points: int = Match.MAX_POINTS,
    ) -> None:
        self.points_to_win = points_to_win
        self.win_by_two = win_by_two
        self.max_points = max_points
        self.reset_for_new_game()

    def reset_for_new_game(self) -> None:
        self._scores = {MatchSide.PLAYER: 0, MatchSide.OPPONENT: 0}
        self._serving_team = MatchSide.PLAYER
        self._server_number = Doubles.START_SERVER_NUMBER

    @property
    def player_score(self) -> int:
        return self._scores[MatchSide.PLAYER]

    @property
    def opponent_score(self) -> int:
        return self._scores[MatchSide.OPPONENT]

    @property
    def serving_team(self) -> MatchSide:
        return self._serving_team

    @property
    def server_number(self) -> int:
        return self._server_number

    @property
    def score_display(self) -> str:
        """serving score - receiving score - server number"""
        serving = self._scores[self._serving_team]
        receiving = self._scores[self._serving_team.opposite]
        return f"{serving}-{receiving}-{self._server_number}"

    @property
    def is_game_over(self) -> bool:
        return is_game_over(
            self.player_score, self.opponent_score,
            self.points_to_win, self.win_by_two, self.max_points,
        )

    @property
    def winner_side(self) -> MatchSide | None:
        if not self.is_game_over:
            return None
        return MatchSide.PLAYER if self.player_score > self.opponent_score else MatchSide.OPPONENT

    def award_point(self, side: MatchSide) -> Scored:
        """Point given outright (line call); serve and server number stay put."""
        self._scores[side] += 1
        return Scored(self._serving_team, self._server_number)

    def record_point(self, winner_is_serving_team: bool) -> DoublesPointOutcome:
        if winner_is_serving_team:
            self._scores[self._serving_team] += 1
            return Scored(self._serving_team, self._server_number)
        if self._server_number == 1:
            self._server_number = 2
            return ServerRotation(self._serving_team, 2)
        previous = self._serving_team
        self._serving_team = previous.opposite
        self._server_number = 1
        return SideOut(self._serving_team, previous)
