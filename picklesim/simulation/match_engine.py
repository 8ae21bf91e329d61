"""
Match Engine: game/match progression, in-match actions, event emission and
result assembly. One engine owns all mutable state for one match; drive it
with step(), simulate() or run_to_completion().
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable, Iterator, Protocol

from ..rating import dupr, reputation
from .actions import (
    Consumable,
    ConsumableOutcome,
    ConsumableUnavailable,
    ConsumableUsed,
    EnergyRestore,
    HookCallOutcome,
    HookCallResult,
    HookCallUnavailable,
    Resigned,
    SkipStarted,
    StatBoost,
    TimeoutOutcome,
    TimeoutUnavailable,
    TimeoutUsed,
    XPMultiplier,
)
from .constants import Fatigue, Match, MatchActions, Momentum, XP
from .equipment import Equipment
from .events import (
    ConsumableUsedEvent,
    FatigueWarningEvent,
    GameEndEvent,
    GameStartEvent,
    HookCallAttemptEvent,
    MatchEndEvent,
    MatchEvent,
    MatchStartEvent,
    PointPlayedEvent,
    ResignedEvent,
    SideOutEvent,
    StreakAlertEvent,
    TimeoutCalledEvent,
)
from .params import SimulationParameters
from .participants import DoublesParticipants, MatchParticipants
from .point_resolver import CourtPlayer, PointResolver, ResolvedPoint, team_energy
from .rally_simulator import RallySimulator
from .rng import RandomSource, SeededRandomSource
from .schemas import (
    MatchConfig,
    MatchPlayerStats,
    MatchPoint,
    MatchResult,
    MatchScore,
    MatchSide,
    PointType,
    StatType,
)
from .state_tracker import (
    DoublesPointOutcome,
    DoublesScoreTracker,
    MomentumTracker,
    SideOut,
    is_clutch,
    is_game_over,
)

logger = logging.getLogger(__name__)


class EngineState(str, Enum):
    IDLE = "idle"
    GAME_BOUNDARY = "game_boundary"
    PLAYING = "playing"
    FINISHED = "finished"


class SideOutScoreTracker(Protocol):
    """Doubles scoring collaborator (see DoublesScoreTracker)."""

    @property
    def player_score(self) -> int: ...
    @property
    def opponent_score(self) -> int: ...
    @property
    def serving_team(self) -> MatchSide: ...
    @property
    def server_number(self) -> int: ...
    @property
    def score_display(self) -> str: ...
    @property
    def is_game_over(self) -> bool: ...

    def record_point(self, winner_is_serving_team: bool) -> DoublesPointOutcome: ...

    def award_point(self, side: MatchSide) -> DoublesPointOutcome: ...

    def reset_for_new_game(self) -> None: ...


class LootGenerator(Protocol):
    def generate_match_loot(self, did_win: bool, player_level: int) -> list[Equipment]: ...


def fold_side_stats(points: Iterable[MatchPoint], side: MatchSide) -> MatchPlayerStats:
    """Aggregate one side's box score from the point log."""
    stats = MatchPlayerStats()
    rally_total = 0
    rallies = 0
    for p in points:
        won = p.winner_side is side
        if won:
            stats.points_won += 1
            if p.point_type is PointType.ACE:
                stats.aces += 1
            elif p.point_type is PointType.WINNER:
                stats.winners += 1
            elif p.point_type is PointType.FORCED_ERROR:
                stats.forced_errors += 1
        elif p.point_type is PointType.UNFORCED_ERROR:
            stats.unforced_errors += 1
        # Line calls have no rally
        if won and p.point_type is not PointType.LINE_CALL:
            stats.longest_rally = max(stats.longest_rally, p.rally_length)
            rally_total += p.rally_length
            rallies += 1
    stats.average_rally_length = rally_total / rallies if rallies else 0.0
    return stats


class MatchEngine:
    """
    State machine: idle -> (game boundary -> playing per point)* -> finished.
    Actions are synchronous transitions between points; resign and skip are
    flags consulted at the top of each iteration.
    """

    def __init__(
        self,
        participants: MatchParticipants,
        config: MatchConfig | None = None,
        *,
        rng: RandomSource | None = None,
        params: SimulationParameters | None = None,
        point_resolver: PointResolver | None = None,
        starting_energy: float = Fatigue.MAX_ENERGY,
        consumables: Iterable[Consumable] = (),
        reputation: int = 0,
        loot_generator: LootGenerator | None = None,
        score_tracker: SideOutScoreTracker | None = None,
        player_profile: dupr.DUPRProfile | None = None,
        opponent_rating: float | None = None,
    ) -> None:
        self.config = config or MatchConfig.default_singles()
        if participants.match_type is not self.config.match_type:
            raise ValueError(
                f"{type(participants).__name__} given for a {self.config.match_type.value} match"
            )
        self.participants = participants
        self.resolver = point_resolver or PointResolver(RallySimulator(rng, params))
        self.loot_generator = loot_generator
        self.player_profile = player_profile
        self.opponent_rating = opponent_rating

        p = participants
        if isinstance(p, DoublesParticipants):
            self._player_team = [CourtPlayer.fresh(p.player, starting_energy), CourtPlayer.fresh(p.partner)]
            self._opponent_team = [CourtPlayer.fresh(p.opponent), CourtPlayer.fresh(p.opponent_partner)]
            if score_tracker is None:
                score_tracker = DoublesScoreTracker(
                    self.config.points_to_win, self.config.win_by_two, self.config.max_points
                )
            self._tracker: SideOutScoreTracker | None = score_tracker
        else:
            self._player_team = [CourtPlayer.fresh(p.player, starting_energy)]
            self._opponent_team = [CourtPlayer.fresh(p.opponent)]
            self._tracker = None

        self._state = EngineState.IDLE
        self._events: list[MatchEvent] = []
        self._points: list[MatchPoint] = []
        self._game_scores: list[MatchScore] = []
        self._completed_games: list[MatchScore] = []
        self._momentum = MomentumTracker()
        self._result: MatchResult | None = None

        self._player_points = 0
        self._opponent_points = 0
        self._player_games = 0
        self._opponent_games = 0
        self._current_game = 1
        self._points_this_game = 0
        self._serving = MatchSide.PLAYER
        self._serve_count = 0

        self._inventory: list[Consumable] = list(consumables)
        self._consumables_used = 0
        self._boosts: dict[StatType, int] = {t: 0 for t in StatType}
        self._xp_multiplier = 1.0
        self._reputation = reputation
        self._reputation_change = 0
        self._timeout_used = False
        self._hook_used = False
        self._skip_requested = False
        self._resign_requested = False
        self._was_resigned = False

    # ---- Read-only state ----

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def is_finished(self) -> bool:
        return self._state is EngineState.FINISHED

    @property
    def is_doubles(self) -> bool:
        return self._tracker is not None

    @property
    def events(self) -> list[MatchEvent]:
        return list(self._events)

    @property
    def points(self) -> list[MatchPoint]:
        return list(self._points)

    @property
    def result(self) -> MatchResult | None:
        return self._result

    @property
    def player_points(self) -> int:
        return self._tracker.player_score if self._tracker is not None else self._player_points

    @property
    def opponent_points(self) -> int:
        return self._tracker.opponent_score if self._tracker is not None else self._opponent_points

    @property
    def serving_side(self) -> MatchSide:
        return self._tracker.serving_team if self._tracker is not None else self._serving

    @property
    def player_energy(self) -> float:
        return team_energy(self._player_team)

    @property
    def opponent_energy(self) -> float:
        return team_energy(self._opponent_team)

    @property
    def reputation(self) -> int:
        return self._reputation

    @property
    def opponent_current_streak(self) -> int:
        return self._momentum.streak(MatchSide.OPPONENT)

    @property
    def remaining_consumables(self) -> int:
        return max(0, MatchActions.MAX_CONSUMABLES_PER_MATCH - self._consumables_used)

    @property
    def can_use_consumable(self) -> bool:
        return not self.is_finished and self.remaining_consumables > 0 and bool(self._inventory)

    @property
    def can_timeout(self) -> bool:
        return self._timeout_rejection() is None

    @property
    def can_hook_call(self) -> bool:
        return self._hook_rejection() is None

    def side_name(self, side: MatchSide) -> str:
        if side is MatchSide.PLAYER:
            return self.participants.player_name
        return self.participants.opponent_name

    def current_score(self) -> MatchScore:
        return MatchScore(
            self.player_points, self.opponent_points,
            self._player_games, self._opponent_games,
        )

    # ---- Driving the match ----

    def step(self) -> list[MatchEvent]:
        """Advance one unit (start, game boundary or point); returns the new events."""
        before = len(self._events)
        if self._state is EngineState.IDLE:
            self._emit(MatchStartEvent(
                self.participants.player_name,
                self.participants.opponent_name,
                self.config.match_type.value,
            ))
            self._state = EngineState.GAME_BOUNDARY
        elif self._state is not EngineState.FINISHED:
            if self._resign_requested:
                self._resign()
            elif self._state is EngineState.GAME_BOUNDARY:
                self._start_game()
            else:
                self._play_point()
        return self._events[before:]

    def simulate(self) -> Iterator[MatchEvent]:
        """Lazily yield events as the engine produces them, until match end."""
        emitted = 0
        while True:
            while emitted < len(self._events):
                yield self._events[emitted]
                emitted += 1
            if self._state is EngineState.FINISHED:
                return
            self.step()

    def run_to_completion(self) -> MatchResult:
        while self._state is not EngineState.FINISHED:
            self.step()
        if self._result is None:
            raise RuntimeError("match finished without a result")
        return self._result

    # ---- Actions ----

    def request_skip(self) -> SkipStarted:
        self._skip_requested = True
        return SkipStarted()

    def request_resign(self) -> Resigned:
        if not self.is_finished:
            self._resign_requested = True
        return Resigned()

    def _timeout_rejection(self) -> str | None:
        if self._state is not EngineState.PLAYING:
            return "no game in progress"
        if self._timeout_used:
            return "already used timeout this game"
        if self.opponent_current_streak < MatchActions.TIMEOUT_MIN_OPPONENT_STREAK:
            return "opponent is not on a streak"
        return None

    def request_timeout(self) -> TimeoutOutcome:
        reason = self._timeout_rejection()
        if reason is not None:
            return TimeoutUnavailable(reason)
        self._timeout_used = True
        broken = self.opponent_current_streak
        self._momentum.reset_streak(MatchSide.OPPONENT)
        for member in self._player_team:
            member.fatigue.restore(MatchActions.TIMEOUT_ENERGY_RESTORE)
        self._emit(TimeoutCalledEvent(MatchSide.PLAYER, MatchActions.TIMEOUT_ENERGY_RESTORE, broken))
        return TimeoutUsed(MatchActions.TIMEOUT_ENERGY_RESTORE, broken)

    def use_consumable(self, item: Consumable) -> ConsumableOutcome:
        if self.is_finished:
            return ConsumableUnavailable("match is over")
        if self._consumables_used >= MatchActions.MAX_CONSUMABLES_PER_MATCH:
            return ConsumableUnavailable("max consumables reached")
        held = next((c for c in self._inventory if c.id == item.id), None)
        if held is None:
            return ConsumableUnavailable("consumable not in inventory")

        self._inventory.remove(held)
        self._consumables_used += 1
        effect = held.effect
        if isinstance(effect, EnergyRestore):
            self._player_team[0].fatigue.restore(effect.amount)
        elif isinstance(effect, StatBoost):
            self._boosts[effect.stat] += effect.amount
        elif isinstance(effect, XPMultiplier):
            self._xp_multiplier *= effect.multiplier
        self._emit(ConsumableUsedEvent(held.name, effect.describe()))
        return ConsumableUsed(held.name, effect)

    def hook_call_chance(self) -> float:
        chance = MatchActions.HOOK_CALL_BASE_CHANCE + self._reputation * MatchActions.HOOK_CALL_REP_BONUS_PER_POINT
        return max(0.0, min(MatchActions.HOOK_CALL_MAX_CHANCE, chance))

    def _hook_rejection(self) -> str | None:
        if self._state is not EngineState.PLAYING:
            return "no game in progress"
        if self._hook_used:
            return "already made a hook call this game"
        if self._points_this_game < 1:
            return "can only hook after a point is played"
        return None

    def request_hook_call(self) -> HookCallOutcome:
        reason = self._hook_rejection()
        if reason is not None:
            return HookCallUnavailable(reason)
        self._hook_used = True
        success = self.resolver.rally_simulator.rng.next_double() < self.hook_call_chance()
        if success:
            winner, rep_change = MatchSide.PLAYER, -MatchActions.HOOK_CALL_SUCCESS_REP_PENALTY
        else:
            winner, rep_change = MatchSide.OPPONENT, -MatchActions.HOOK_CALL_CAUGHT_REP_PENALTY
        self._reputation += rep_change
        self._reputation_change += rep_change

        self._record_point(winner, PointType.LINE_CALL, 0, awarded=True)
        self._emit(HookCallAttemptEvent(success, rep_change, self.current_score()))
        self._after_point()
        return HookCallResult(success, rep_change)

    # ---- Internals ----

    def _emit(self, event: MatchEvent) -> None:
        if self._skip_requested and event.point_level:
            return
        self._events.append(event)

    def _start_game(self) -> None:
        self._player_points = 0
        self._opponent_points = 0
        self._points_this_game = 0
        self._serve_count = 0
        self._timeout_used = False
        self._hook_used = False
        self._momentum.reset_for_new_game()
        if self._tracker is not None:
            self._tracker.reset_for_new_game()
        self._emit(GameStartEvent(self._current_game))
        self._state = EngineState.PLAYING

    def _resolve(self) -> ResolvedPoint:
        clutch = is_clutch(self.player_points, self.opponent_points, self.config.points_to_win)
        boosts = {t: v for t, v in self._boosts.items() if v}
        if isinstance(self.participants, DoublesParticipants):
            return self.resolver.resolve_team_point(
                self._player_team, self.participants.player_synergy,
                self._opponent_team, self.participants.opponent_synergy,
                self._momentum, self.serving_side, clutch, boosts,
            )
        return self.resolver.resolve_point(
            self._player_team[0], self._opponent_team[0],
            self._momentum, self.serving_side, clutch, boosts,
        )

    def _play_point(self) -> None:
        energy_before = {MatchSide.PLAYER: self.player_energy, MatchSide.OPPONENT: self.opponent_energy}
        resolved = self._resolve()
        result = resolved.result
        self._record_point(result.winner_side, result.point_type, result.rally_length)

        energy_after = {
            MatchSide.PLAYER: resolved.player_energy_after,
            MatchSide.OPPONENT: resolved.opponent_energy_after,
        }
        for side in MatchSide:
            if energy_before[side] > Fatigue.THRESHOLD_1 >= energy_after[side]:
                self._emit(FatigueWarningEvent(side, self.side_name(side), energy_after[side]))
        self._after_point()

    def _record_point(
        self,
        winner: MatchSide,
        point_type: PointType,
        rally_length: int,
        awarded: bool = False,
    ) -> MatchPoint:
        serving = self.serving_side
        server_number: int | None = None
        outcome: DoublesPointOutcome | None = None
        if self._tracker is not None:
            server_number = self._tracker.server_number
            if awarded:
                outcome = self._tracker.award_point(winner)
            else:
                outcome = self._tracker.record_point(winner is self._tracker.serving_team)
        else:
            if winner is MatchSide.PLAYER:
                self._player_points += 1
            else:
                self._opponent_points += 1
            self._serve_count += 1
            if self._serve_count % Match.SERVE_SWITCH_INTERVAL == 0:
                self._serving = self._serving.opposite

        self._points_this_game += 1
        point = MatchPoint(
            game_number=self._current_game,
            point_number=len(self._points) + 1,
            winner_side=winner,
            point_type=point_type,
            rally_length=rally_length,
            serving_side=serving,
            score_after=self.current_score(),
            server_number=server_number,
            is_side_out=isinstance(outcome, SideOut),
        )
        self._points.append(point)
        self._emit(PointPlayedEvent(point, self.side_name(winner)))

        streak = self._momentum.record_point(winner)
        if streak is not None and streak >= Momentum.ALERT_MIN_STREAK:
            self._emit(StreakAlertEvent(winner, self.side_name(winner), streak))
        if isinstance(outcome, SideOut) and self._tracker is not None:
            self._emit(SideOutEvent(
                outcome.new_serving_team, outcome.previous_serving_team, self._tracker.score_display
            ))
        return point

    def _game_over(self) -> bool:
        if self._tracker is not None:
            return self._tracker.is_game_over
        return is_game_over(
            self._player_points, self._opponent_points,
            self.config.points_to_win, self.config.win_by_two, self.config.max_points,
        )

    def _after_point(self) -> None:
        if self._game_over():
            self._end_game()

    def _end_game(self) -> None:
        pp, op = self.player_points, self.opponent_points
        winner = MatchSide.PLAYER if pp > op else MatchSide.OPPONENT
        if winner is MatchSide.PLAYER:
            self._player_games += 1
        else:
            self._opponent_games += 1
        score = self.current_score()
        self._game_scores.append(score)
        self._completed_games.append(score)
        self._emit(GameEndEvent(self._current_game, winner, self.side_name(winner), score))
        logger.debug("Game %d to %s (%s)", self._current_game, winner.value, score.display)

        if max(self._player_games, self._opponent_games) >= self.config.games_to_win:
            self._finish()
            return
        for member in self._player_team + self._opponent_team:
            member.fatigue.rest_between_games()
        self._current_game += 1
        self._state = EngineState.GAME_BOUNDARY

    def _resign(self) -> None:
        self._was_resigned = True
        score = self.current_score()
        if self._state is EngineState.PLAYING and self._points_this_game > 0:
            self._game_scores.append(score)
        self._emit(ResignedEvent(self._current_game, score))
        self._finish()

    def _finish(self) -> None:
        self._result = self._build_result()
        self._state = EngineState.FINISHED
        self._boosts = {t: 0 for t in StatType}
        self._emit(MatchEndEvent(self._result))
        logger.info(
            "Match finished: %s %s%s",
            "win" if self._result.did_player_win else "loss",
            self._result.formatted_score,
            " (resigned)" if self._was_resigned else "",
        )

    def _rating_change(self) -> float | None:
        profile, opponent = self.player_profile, self.opponent_rating
        if profile is None or opponent is None:
            return None
        if dupr.should_auto_unrate(profile.rating, opponent):
            return None
        games = list(self._completed_games)
        if self._was_resigned:
            games.append(MatchScore(0, self.config.points_to_win))
        return dupr.calculate_match_rating_change(
            profile.rating, opponent, games, self.config.points_to_win, profile.k_factor()
        )

    def _build_result(self) -> MatchResult:
        did_win = not self._was_resigned and self._player_games >= self.config.games_to_win
        player_stats = fold_side_stats(self._points, MatchSide.PLAYER)
        opponent_stats = fold_side_stats(self._points, MatchSide.OPPONENT)
        player_stats.longest_streak = self._momentum.longest_streak(MatchSide.PLAYER)
        opponent_stats.longest_streak = self._momentum.longest_streak(MatchSide.OPPONENT)
        player_stats.final_energy = self.player_energy
        opponent_stats.final_energy = self.opponent_energy

        if self.player_profile is not None and self.opponent_rating is not None:
            match_rep = reputation.calculate_rep_change(
                did_win, self.player_profile.rating, self.opponent_rating
            )
            self._reputation += match_rep
            self._reputation_change += match_rep

        xp = XP.BASE_PER_MATCH + (XP.WIN_BONUS if did_win else 0)
        wager = self.config.wager_amount
        loot: list[Equipment] = []
        if did_win and self.loot_generator is not None:
            level = self.participants.player.level
            loot = list(self.loot_generator.generate_match_loot(did_win, level))

        return MatchResult(
            did_player_win=did_win,
            final_score=self.current_score(),
            game_scores=list(self._game_scores),
            player_stats=player_stats,
            opponent_stats=opponent_stats,
            xp_earned=int(round(xp * self._xp_multiplier)),
            coins_earned=wager if did_win and wager > 0 else 0,
            duration_seconds=len(self._points) * Match.SECONDS_PER_POINT,
            total_points=len(self._points),
            loot=loot,
            was_resigned=self._was_resigned,
            dupr_change=self._rating_change(),
            reputation_change=self._reputation_change,
        )


def build_engine(
    participants: MatchParticipants,
    config: MatchConfig | None = None,
    seed: int | None = None,
    **kwargs,
) -> MatchEngine:
    """Convenience: a seeded engine when seed is given, entropy-backed otherwise."""
    rng = SeededRandomSource(seed) if seed is not None else None
    return MatchEngine(participants, config, rng=rng, **kwargs)
