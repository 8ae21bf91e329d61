"""
Point Resolver: the single seam where stats, fatigue and momentum meet the
rally simulator. Order per point: equipment -> boosts -> fatigue ->
momentum -> clutch -> rally -> drain energy.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence

from .constants import Momentum
from .fatigue_model import FatigueModel
from .participants import Participant, TeamSynergy
from .rally_simulator import RallyResult, RallySimulator
from .schemas import MatchSide, PlayerStats, StatType
from .stat_calculator import StatCalculator
from .state_tracker import MomentumTracker
from .team_compositor import composite_effective_stats


@dataclass(frozen=True)
class ResolvedPoint:
    result: RallyResult
    player_energy_after: float
    opponent_energy_after: float


@dataclass
class CourtPlayer:
    """A participant plus the fatigue model that lives for one match."""
    participant: Participant
    fatigue: FatigueModel

    @classmethod
    def fresh(cls, participant: Participant, energy: float = 100.0) -> CourtPlayer:
        return cls(participant, FatigueModel(stamina=participant.stats.stamina, energy=energy))


class PointResolver:
    def __init__(
        self,
        rally_simulator: RallySimulator | None = None,
        calculator: StatCalculator | None = None,
    ) -> None:
        self.rally_simulator = rally_simulator or RallySimulator()
        self.calculator = calculator or StatCalculator()

    def _individual_stats(
        self,
        player: CourtPlayer,
        boosts: Mapping[StatType, int] | None,
    ) -> PlayerStats:
        p = player.participant
        stats = self.calculator.effective_stats(p.stats, p.equipment, p.level)
        if boosts:
            stats = self.calculator.apply_boosts(stats, boosts)
        return self.calculator.apply_fatigue(stats, player.fatigue.energy)

    def _situational(
        self,
        stats: PlayerStats,
        side: MatchSide,
        momentum: MomentumTracker,
        is_clutch: bool,
    ) -> PlayerStats:
        stats = self.calculator.apply_momentum(stats, momentum.modifier(side))
        if is_clutch:
            stats = self.calculator.apply_momentum(stats, stats.clutch / 100.0 * Momentum.CLUTCH_SCALE)
        return stats

    def resolve_point(
        self,
        player: CourtPlayer,
        opponent: CourtPlayer,
        momentum: MomentumTracker,
        serving_side: MatchSide,
        is_clutch: bool,
        player_boosts: Mapping[StatType, int] | None = None,
    ) -> ResolvedPoint:
        """Singles point. Drains both fatigue models in place."""
        p_stats = self._situational(
            self._individual_stats(player, player_boosts), MatchSide.PLAYER, momentum, is_clutch
        )
        o_stats = self._situational(
            self._individual_stats(opponent, None), MatchSide.OPPONENT, momentum, is_clutch
        )
        result = self.rally_simulator.simulate_point(serving_side, p_stats, o_stats)
        return ResolvedPoint(
            result=result,
            player_energy_after=player.fatigue.drain_energy(result.rally_length),
            opponent_energy_after=opponent.fatigue.drain_energy(result.rally_length),
        )

    def resolve_team_point(
        self,
        player_team: Sequence[CourtPlayer],
        player_synergy: TeamSynergy,
        opponent_team: Sequence[CourtPlayer],
        opponent_synergy: TeamSynergy,
        momentum: MomentumTracker,
        serving_side: MatchSide,
        is_clutch: bool,
        player_boosts: Mapping[StatType, int] | None = None,
    ) -> ResolvedPoint:
        """
        Doubles point. Fatigue is applied per individual before compositing;
        momentum and clutch apply to the team line. Boosts belong to the
        first member of the player team. Reported energy is the team average.
        """
        p1, p2 = player_team
        o1, o2 = opponent_team
        p_team = composite_effective_stats(
            self._individual_stats(p1, player_boosts),
            self._individual_stats(p2, None),
            player_synergy,
        )
        o_team = composite_effective_stats(
            self._individual_stats(o1, None),
            self._individual_stats(o2, None),
            opponent_synergy,
        )
        p_team = self._situational(p_team, MatchSide.PLAYER, momentum, is_clutch)
        o_team = self._situational(o_team, MatchSide.OPPONENT, momentum, is_clutch)

        result = self.rally_simulator.simulate_point(serving_side, p_team, o_team, is_doubles=True)
        for member in (p1, p2, o1, o2):
            member.fatigue.drain_energy(result.rally_length)
        return ResolvedPoint(
            result=result,
            player_energy_after=team_energy(player_team),
            opponent_energy_after=team_energy(opponent_team),
        )


def team_energy(team: Sequence[CourtPlayer]) -> float:
    return sum(m.fatigue.energy for m in team) / len(team)
