"""
Rally Simulator: samples one point as a sequence of Bernoulli checks.
Serve (ace) -> dink exchanges (doubles only) -> shot-by-shot rally, with a
weighted coin flip if the rally reaches its shot cap unresolved.
"""
from __future__ import annotations

from dataclasses import dataclass

from .params import SimulationParameters
from .rng import RandomSource, SystemRandomSource
from .schemas import MatchSide, PlayerStats, PointType


def clamp(low: float, high: float, value: float) -> float:
    return max(low, min(high, value))


@dataclass(frozen=True)
class RallyResult:
    winner_side: MatchSide
    point_type: PointType
    rally_length: int


class RallySimulator:
    """
    Stateless apart from its random source. Every probability is clamped into
    a band away from 0 and 1, and both phases have a hard shot ceiling.
    """

    def __init__(
        self,
        rng: RandomSource | None = None,
        params: SimulationParameters | None = None,
    ) -> None:
        self.rng = rng or SystemRandomSource()
        self.params = params or SimulationParameters()

    def simulate_point(
        self,
        server_side: MatchSide,
        player_stats: PlayerStats,
        opponent_stats: PlayerStats,
        is_doubles: bool = False,
    ) -> RallyResult:
        stats = {MatchSide.PLAYER: player_stats, MatchSide.OPPONENT: opponent_stats}
        receiver_side = server_side.opposite

        # Phase 1: serve
        if self.rng.next_double() < self.ace_chance(stats[server_side], stats[receiver_side]):
            return RallyResult(server_side, PointType.ACE, 1)

        # Phase 2: dinks at the kitchen line
        shots_played = 0
        if is_doubles:
            exchanges = self.dink_exchanges(player_stats, opponent_stats)
            for exchange in range(1, exchanges + 1):
                attacking = receiver_side if exchange % 2 == 1 else server_side
                result = self._dink_shot(attacking, stats[attacking], stats[attacking.opposite], exchange)
                if result is not None:
                    return result
            shots_played = exchanges

        # Phase 3: rally
        max_shots = self.max_rally_length(player_stats, opponent_stats)
        for shot in range(1, max_shots + 1):
            attacking = server_side if shot % 2 == 1 else receiver_side
            attacker = stats[attacking]
            defender = stats[attacking.opposite]
            length = shots_played + shot

            if self.rng.next_double() < self.winner_chance(attacker, defender, shot):
                return RallyResult(attacking, PointType.WINNER, length)
            if self.rng.next_double() < self.error_chance(attacker, shot):
                return RallyResult(attacking.opposite, PointType.UNFORCED_ERROR, length)
            if self.rng.next_double() < self.forced_error_chance(attacker, defender):
                return RallyResult(attacking, PointType.FORCED_ERROR, length)

        p_player = self.overall_advantage(player_stats, opponent_stats)
        winner = MatchSide.PLAYER if self.rng.next_double() < p_player else MatchSide.OPPONENT
        return RallyResult(winner, PointType.RALLY, shots_played + max_shots)

    def _dink_shot(
        self,
        attacking: MatchSide,
        attacker: PlayerStats,
        defender: PlayerStats,
        length: int,
    ) -> RallyResult | None:
        if self.rng.next_double() < self.dink_winner_chance(attacker, defender):
            return RallyResult(attacking, PointType.WINNER, length)
        if self.rng.next_double() < self.dink_error_chance(attacker):
            return RallyResult(attacking.opposite, PointType.UNFORCED_ERROR, length)
        if self.rng.next_double() < self.params.dink_forced_error_chance:
            return RallyResult(attacking, PointType.FORCED_ERROR, length)
        return None

    # ---- Probabilities ----

    def ace_chance(self, server: PlayerStats, receiver: PlayerStats) -> float:
        p = self.params
        edge = server.power * p.power_ace_scaling - receiver.reflexes * p.reflex_defense_scale
        return clamp(0.01, 0.25, p.base_ace_chance + p.sensitivity * edge)

    def max_rally_length(self, player: PlayerStats, opponent: PlayerStats) -> int:
        avg = (player.defense + opponent.defense + player.consistency + opponent.consistency) / 4.0
        return int(clamp(self.params.min_rally_shots, self.params.max_rally_shots, 5 + int(avg / 10.0)))

    def winner_chance(self, attacker: PlayerStats, defender: PlayerStats, shot_number: int) -> float:
        p = self.params
        attack = (attacker.power + attacker.accuracy + attacker.spin) * p.winner_stat_scale
        defense = (defender.defense + defender.positioning + defender.reflexes) * p.winner_stat_scale
        value = p.base_winner_chance + p.sensitivity * (attack - defense) + shot_number * p.winner_shot_bonus
        return clamp(0.02, 0.35, value)

    def error_chance(self, attacker: PlayerStats, shot_number: int) -> float:
        p = self.params
        control = attacker.consistency * p.error_consistency_scale + attacker.accuracy * p.error_accuracy_scale
        value = p.base_error_chance - p.sensitivity * control + shot_number * p.error_fatigue_scale
        return clamp(0.02, 0.30, value)

    def forced_error_chance(self, attacker: PlayerStats, defender: PlayerStats) -> float:
        p = self.params
        pressure = (attacker.power + attacker.spin) * p.attack_pressure_scale
        resist = (defender.defense + defender.reflexes) * p.defense_resist_scale
        return clamp(0.01, 0.20, p.forced_error_base + p.sensitivity * (pressure - resist))

    def overall_advantage(self, player: PlayerStats, opponent: PlayerStats) -> float:
        """Player's chance on the capped-rally coin flip."""
        diff = player.average - opponent.average
        return clamp(0.05, 0.95, 0.5 + diff * self.params.overall_advantage_scale * self.params.sensitivity)

    def dink_exchanges(self, player: PlayerStats, opponent: PlayerStats) -> int:
        p = self.params
        soft = [
            s.accuracy + s.spin + s.focus + s.consistency
            for s in (player, opponent)
        ]
        avg = sum(soft) / 8.0
        span = p.dink_max_shots - p.dink_min_shots
        return int(clamp(p.dink_min_shots, p.dink_max_shots, p.dink_min_shots + int(avg / 100.0 * span)))

    def dink_winner_chance(self, attacker: PlayerStats, defender: PlayerStats) -> float:
        touch = (attacker.accuracy + attacker.spin + attacker.focus) / 300.0
        patience = (defender.consistency + defender.focus + defender.positioning) / 300.0
        return clamp(0.01, 0.20, self.params.dink_winner_base + self.params.sensitivity * (touch - patience))

    def dink_error_chance(self, attacker: PlayerStats) -> float:
        # Neutral at consistency + focus = 100
        control = (attacker.consistency + attacker.focus - 100) / 1000.0
        return clamp(0.01, 0.20, self.params.dink_error_base - self.params.sensitivity * control)
