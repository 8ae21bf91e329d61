"""
REST API for the pickleball simulator.
Thin wrappers around the match engine and the DUPR rating functions.
"""
from __future__ import annotations

import logging
import random
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, HTTPException, Query, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, ValidationError

from picklesim import __version__
from picklesim.rating import dupr
from picklesim.simulation.actions import Consumable, ConsumableUsed
from picklesim.simulation.emitter import EmitterConfig, async_emit_stream
from picklesim.simulation.equipment import Equipment
from picklesim.simulation.match_engine import MatchEngine
from picklesim.simulation.params import default_parameters
from picklesim.simulation.participants import (
    DoublesParticipants,
    Participant,
    SinglesParticipants,
    TeamSynergy,
)
from picklesim.simulation.rng import SeededRandomSource
from picklesim.simulation.schemas import MatchConfig, MatchScore, MatchType, PlayerStats

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Pickleball Simulator API",
    description="Match simulation and DUPR rating updates",
    version=__version__,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------- Request/Response models ----------

def _stat():
    return Field(default=15, ge=1, le=99)


class StatsModel(BaseModel):
    power: int = _stat()
    accuracy: int = _stat()
    spin: int = _stat()
    speed: int = _stat()
    defense: int = _stat()
    reflexes: int = _stat()
    positioning: int = _stat()
    clutch: int = _stat()
    focus: int = _stat()
    stamina: int = _stat()
    consistency: int = _stat()


class StatBonusModel(BaseModel):
    stat: str
    value: int


class EquipmentModel(BaseModel):
    name: str = Field(..., min_length=1)
    slot: str = Field(..., description="paddle, shirt, shoes, bottoms, headwear or wristband")
    rarity: str = "common"
    stat_bonuses: list[StatBonusModel] = Field(default_factory=list)
    base_stat: StatBonusModel | None = None
    set_id: str | None = None
    traits: list[str] = Field(default_factory=list)
    level: int = Field(default=1, ge=1)


class ParticipantModel(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    stats: StatsModel = Field(default_factory=StatsModel)
    equipment: list[EquipmentModel] = Field(default_factory=list)
    level: int = Field(default=50, ge=1)
    personality: str | None = Field(None, description="Doubles chemistry: aggressive, defensive, all_rounder, speedster, strategist")


class ConsumableModel(BaseModel):
    name: str
    effect: str = Field(..., description="energy_restore, stat_boost or xp_multiplier")
    amount: float | None = None
    stat: str | None = None
    multiplier: float | None = None


class SimulateMatchRequest(BaseModel):
    player: ParticipantModel
    opponent: ParticipantModel
    partner: ParticipantModel | None = None
    opponent_partner: ParticipantModel | None = None
    match_type: str = Field(default="singles", description="singles or doubles")
    points_to_win: int = Field(default=11, ge=1, le=21)
    games_to_win: int = Field(default=2, ge=1, le=3)
    win_by_two: bool = True
    wager_amount: int = Field(default=0, ge=0)
    seed: int | None = Field(default=None, description="RNG seed for reproducibility")
    starting_energy: float = Field(default=100.0, ge=0, le=100)
    reputation: int = 0
    consumables: list[ConsumableModel] = Field(default_factory=list, description="Used before the first point")
    player_rating: float | None = Field(None, ge=2.0, le=8.0)
    opponent_rating: float | None = Field(None, ge=2.0, le=8.0)
    skip: bool = Field(default=False, description="Suppress point-level events")
    fast_forward: bool = Field(default=True, description="WebSocket only: emit without pacing")


class GameScoreModel(BaseModel):
    player_points: int = Field(..., ge=0)
    opponent_points: int = Field(..., ge=0)


class RatingChangeRequest(BaseModel):
    player_rating: float = Field(..., ge=2.0, le=8.0)
    opponent_rating: float = Field(..., ge=2.0, le=8.0)
    game_scores: list[GameScoreModel] = Field(default_factory=list)
    points_to_win: int = Field(default=11, ge=1)
    k_factor: float | None = Field(None, gt=0)
    reliability: float | None = Field(None, ge=0, le=1, description="Used to pick k_factor when not given")


class ReliabilityRequest(BaseModel):
    rated_match_count: int = Field(default=0, ge=0)
    unique_opponent_ids: list[str] = Field(default_factory=list)
    last_rated_match_date: datetime | None = None
    now: datetime | None = None


# ---------- Builders ----------

def _aware(dt: datetime | None) -> datetime | None:
    if dt is not None and dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def _participant(m: ParticipantModel) -> Participant:
    return Participant(
        name=m.name,
        stats=PlayerStats(**m.stats.model_dump()),
        equipment=tuple(Equipment.from_dict(e.model_dump()) for e in m.equipment),
        level=m.level,
    )


def _synergy(a: ParticipantModel, b: ParticipantModel) -> TeamSynergy:
    if a.personality and b.personality:
        return TeamSynergy.calculate(a.personality, b.personality)
    return TeamSynergy.neutral()


def build_match(req: SimulateMatchRequest) -> tuple[MatchEngine, int, list[Any]]:
    """Engine for a request, its seed, and the outcomes of the pre-match consumables."""
    seed = req.seed if req.seed is not None else random.randint(1, 2**31 - 1)
    config = MatchConfig(
        points_to_win=req.points_to_win,
        games_to_win=req.games_to_win,
        win_by_two=req.win_by_two,
        match_type=MatchType(req.match_type),
        wager_amount=req.wager_amount,
        max_points=max(21, req.points_to_win),
    )
    if config.is_doubles:
        if req.partner is None or req.opponent_partner is None:
            raise ValueError("doubles needs partner and opponent_partner")
        participants: Any = DoublesParticipants(
            player=_participant(req.player),
            partner=_participant(req.partner),
            opponent=_participant(req.opponent),
            opponent_partner=_participant(req.opponent_partner),
            player_synergy=_synergy(req.player, req.partner),
            opponent_synergy=_synergy(req.opponent, req.opponent_partner),
        )
    else:
        if req.partner is not None or req.opponent_partner is not None:
            raise ValueError("partners are only allowed in doubles")
        participants = SinglesParticipants(_participant(req.player), _participant(req.opponent))

    consumables = [Consumable.from_dict(c.model_dump(exclude_none=True)) for c in req.consumables]
    profile = dupr.DUPRProfile(rating=req.player_rating) if req.player_rating is not None else None
    engine = MatchEngine(
        participants,
        config,
        rng=SeededRandomSource(seed),
        params=default_parameters(),
        starting_energy=req.starting_energy,
        consumables=consumables,
        reputation=req.reputation,
        player_profile=profile,
        opponent_rating=req.opponent_rating,
    )
    if req.skip:
        engine.request_skip()
    outcomes = [engine.use_consumable(c) for c in consumables]
    return engine, seed, outcomes


def _outcome_dict(outcome: Any) -> dict[str, Any]:
    if isinstance(outcome, ConsumableUsed):
        return {"used": True, "name": outcome.name}
    return {"used": False, "reason": outcome.reason}


# ---------- Endpoints ----------

@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "version": __version__}


@app.post("/simulate/match")
def simulate_match(req: SimulateMatchRequest) -> dict[str, Any]:
    """Simulate a full match; returns every event (with narration) and the result."""
    try:
        engine, seed, outcomes = build_match(req)
    except (ValueError, KeyError) as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    result = engine.run_to_completion()
    return {
        "seed": seed,
        "consumables": [_outcome_dict(o) for o in outcomes],
        "events": [e.to_dict() for e in engine.events],
        "result": result.to_dict(),
    }


@app.post("/rating/change")
def rating_change(req: RatingChangeRequest) -> dict[str, Any]:
    """Multi-game DUPR delta for the player; gaps over 1.0 are not rated."""
    if dupr.should_auto_unrate(req.player_rating, req.opponent_rating):
        return {"auto_unrated": True, "delta": 0.0, "k_factor": None, "new_rating": req.player_rating}
    if req.k_factor is not None:
        k = req.k_factor
    else:
        k = dupr.k_factor_for(req.reliability if req.reliability is not None else 0.0)
    scores = [MatchScore(g.player_points, g.opponent_points) for g in req.game_scores]
    delta = dupr.calculate_match_rating_change(
        req.player_rating, req.opponent_rating, scores, req.points_to_win, k
    )
    return {
        "auto_unrated": False,
        "delta": delta,
        "k_factor": k,
        "new_rating": dupr.clamp_rating(req.player_rating + delta),
    }


@app.post("/rating/reliability")
def rating_reliability(req: ReliabilityRequest) -> dict[str, Any]:
    profile = dupr.DUPRProfile(
        rated_match_count=req.rated_match_count,
        unique_opponent_ids=set(req.unique_opponent_ids),
        last_rated_match_date=_aware(req.last_rated_match_date),
    )
    now = _aware(req.now)
    reliability = profile.reliability(now)
    return {"reliability": reliability, "k_factor": dupr.k_factor_for(reliability)}


@app.get("/rating/auto-unrate")
def rating_auto_unrate(
    player_rating: float = Query(..., ge=2.0, le=8.0),
    opponent_rating: float = Query(..., ge=2.0, le=8.0),
) -> dict[str, bool]:
    return {"auto_unrate": dupr.should_auto_unrate(player_rating, opponent_rating)}


@app.websocket("/ws/match")
async def websocket_match(websocket: WebSocket):
    """
    Send one SimulateMatchRequest as JSON; the server streams { type: "event", ... }
    messages (paced unless fast_forward) and closes after match_end.
    """
    await websocket.accept()
    try:
        payload = await websocket.receive_json()
        try:
            req = SimulateMatchRequest.model_validate(payload)
            engine, seed, _ = build_match(req)
        except (ValidationError, ValueError, KeyError) as e:
            await websocket.send_json({"type": "error", "detail": str(e)})
            await websocket.close(code=1003)
            return
        await websocket.send_json({"type": "seed", "seed": seed})
        config = EmitterConfig(fast_forward=req.fast_forward)
        async for event in async_emit_stream(engine.simulate(), config):
            await websocket.send_json({"type": "event", **event.to_dict()})
        await websocket.close()
    except WebSocketDisconnect:
        logger.info("Match stream client disconnected")
