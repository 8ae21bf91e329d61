"""
Event pacing for live feeds. The engine resolves points instantly; this module
spaces a finished or in-progress event stream out for a UI or WebSocket client,
with a longer pause between games; fast_forward re-emits immediately.
"""
from __future__ import annotations

import asyncio
import random
import time
from dataclasses import dataclass
from typing import AsyncIterator, Callable, Iterable, Sequence

from .events import GameStartEvent, MatchEndEvent, MatchEvent, PointPlayedEvent
from .schemas import MatchScore, MatchSnapshot


@dataclass
class EmitterConfig:
    """Emission timing."""
    min_seconds_per_point: float = 1.0
    max_seconds_per_point: float = 3.0
    pause_between_games_seconds: float = 10.0
    fast_forward: bool = False  # if True, emit immediately (batch)


def _event_delay(config: EmitterConfig, event: MatchEvent, rng: random.Random) -> float:
    if config.fast_forward or not isinstance(event, PointPlayedEvent):
        return 0.0
    return rng.uniform(config.min_seconds_per_point, config.max_seconds_per_point)


def _game_pause(config: EmitterConfig, event: MatchEvent, seen_game: bool) -> float:
    if config.fast_forward or not seen_game or not isinstance(event, GameStartEvent):
        return 0.0
    return max(0.0, config.pause_between_games_seconds)


class SyncEmitter:
    """
    Consumes a stream of MatchEvents and re-emits them with optional delays.
    Blocking (sync); for async use async_emit_stream.
    """

    def __init__(self, config: EmitterConfig | None = None, sleep: Callable[[float], None] = time.sleep) -> None:
        self.config = config or EmitterConfig()
        self._rng = random.Random()
        self._sleep = sleep

    def emit_stream(
        self,
        events: Iterable[MatchEvent],
        on_event: Callable[[MatchEvent], None],
        on_game_break: Callable[[], None] | None = None,
    ) -> None:
        """Call on_event for each event (and on_game_break before each later game)."""
        seen_game = False
        for event in events:
            if isinstance(event, GameStartEvent) and seen_game and on_game_break:
                on_game_break()
            pause = _game_pause(self.config, event, seen_game) + _event_delay(self.config, event, self._rng)
            if pause > 0:
                self._sleep(pause)
            on_event(event)
            if isinstance(event, GameStartEvent):
                seen_game = True


async def async_emit_stream(
    events: Iterable[MatchEvent],
    config: EmitterConfig | None = None,
    on_event: Callable[[MatchEvent], None] | None = None,
) -> AsyncIterator[MatchEvent]:
    """
    Async generator: yields MatchEvents with delays between them.
    Suitable for WebSocket or async consumers.
    """
    cfg = config or EmitterConfig()
    rng = random.Random()
    seen_game = False
    for event in events:
        pause = _game_pause(cfg, event, seen_game) + _event_delay(cfg, event, rng)
        if pause > 0:
            await asyncio.sleep(pause)
        if on_event:
            on_event(event)
        yield event
        if isinstance(event, GameStartEvent):
            seen_game = True


def snapshot_from_events(events: Sequence[MatchEvent]) -> MatchSnapshot | None:
    """Build a MatchSnapshot from the events seen so far."""
    if not events:
        return None
    game_number = 0
    points = 0
    score = MatchScore()
    serving = None
    did_win = None
    for e in events:
        if isinstance(e, GameStartEvent):
            game_number = e.game_number
        elif isinstance(e, PointPlayedEvent):
            points += 1
            score = e.point.score_after
            serving = e.point.serving_side
        elif isinstance(e, MatchEndEvent):
            did_win = e.result.did_player_win
            score = e.result.final_score
    return MatchSnapshot(
        game_number=game_number,
        current_score=score,
        serving_side=serving,
        points_played=points,
        completed=did_win is not None,
        did_player_win=did_win,
        events_count=len(events),
    )
