"""
Emitter pacing and snapshots. Sleeping is injected so nothing actually waits.
"""
from __future__ import annotations

import asyncio

import pytest

from picklesim.simulation.emitter import (
    EmitterConfig,
    SyncEmitter,
    async_emit_stream,
    snapshot_from_events,
)
from picklesim.simulation.events import GameEndEvent, MatchEndEvent, PointPlayedEvent
from picklesim.simulation.match_engine import build_engine
from picklesim.simulation.participants import Participant, SinglesParticipants
from picklesim.simulation.schemas import PlayerStats


@pytest.fixture
def finished_engine():
    engine = build_engine(
        SinglesParticipants(Participant("A", PlayerStats.flat(50)), Participant("B", PlayerStats.flat(50))),
        seed=77,
    )
    engine.run_to_completion()
    return engine


class TestSyncEmitter:
    def test_fast_forward_never_sleeps(self, finished_engine):
        sleeps, seen = [], []
        emitter = SyncEmitter(EmitterConfig(fast_forward=True), sleep=sleeps.append)
        emitter.emit_stream(finished_engine.events, seen.append)
        assert sleeps == []
        assert seen == finished_engine.events

    def test_paced_stream(self, finished_engine):
        sleeps, breaks = [], []
        config = EmitterConfig(min_seconds_per_point=1.0, max_seconds_per_point=1.0, pause_between_games_seconds=10.0)
        emitter = SyncEmitter(config, sleep=sleeps.append)
        emitter.emit_stream(finished_engine.events, lambda e: None, on_game_break=lambda: breaks.append(1))
        points = len([e for e in finished_engine.events if isinstance(e, PointPlayedEvent)])
        games = len([e for e in finished_engine.events if isinstance(e, GameEndEvent)])
        assert len(breaks) == games - 1
        assert sum(sleeps) == pytest.approx(points * 1.0 + (games - 1) * 10.0)

    def test_live_engine_stream(self):
        engine = build_engine(
            SinglesParticipants(Participant("A", PlayerStats.flat(50)), Participant("B", PlayerStats.flat(50))),
            seed=5,
        )
        seen = []
        SyncEmitter(EmitterConfig(fast_forward=True)).emit_stream(engine.simulate(), seen.append)
        assert isinstance(seen[-1], MatchEndEvent)
        assert engine.is_finished


def test_async_stream_yields_all_events(finished_engine):
    async def collect():
        return [e async for e in async_emit_stream(finished_engine.events, EmitterConfig(fast_forward=True))]

    assert asyncio.run(collect()) == finished_engine.events


class TestSnapshot:
    def test_empty(self):
        assert snapshot_from_events([]) is None

    def test_partial_match(self, finished_engine):
        events = finished_engine.events
        first_point = next(i for i, e in enumerate(events) if isinstance(e, PointPlayedEvent))
        snap = snapshot_from_events(events[: first_point + 1])
        assert snap.game_number == 1
        assert snap.points_played == 1
        assert not snap.completed
        assert snap.did_player_win is None

    def test_finished_match(self, finished_engine):
        snap = snapshot_from_events(finished_engine.events)
        result = finished_engine.result
        assert snap.completed
        assert snap.did_player_win == result.did_player_win
        assert snap.points_played == result.total_points
        assert snap.current_score == result.final_score
        assert snap.to_dict()["events_count"] == len(finished_engine.events)
