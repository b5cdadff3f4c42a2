"""
Movement Engine

Two decisions per call:
1. WHICH unit moves next - a role-based priority heuristic
2. WHERE it goes - every reachable destination, facing and movement type is
   scored by the tactical evaluator (offensive minus defensive index)

Priority:
- LRM boats move first (they want to settle into firing lanes early)
- Troopers next, brawlers and jumpers after, scouts last
- Moving last (no enemy left to move) is a bonus for everyone
- Brawlers are held back while enemies are still to move
- Prone units always go last

A unit that cannot or should not move still answers, with an explicit
standing-still command.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from ..commands import MoveUnitCommand, TryStandupCommand
from ..evaluators.base import PositionScore
from ..evaluators.tactical_evaluator import TacticalEvaluator
from ..exceptions import BotDecisionException
from ..models import (
    HexDirection,
    HexPosition,
    MovementPath,
    MovementPhase,
    MovementPhaseState,
    MovementType,
    UnitTacticalRole,
)
from ..strategy_config import get_config
from ..turn_state import TurnState
from ..unit_roles import get_tactical_role
from .base import DecisionEngine

logger = logging.getLogger(__name__)

DEFAULT_ROLE_PRIORITIES = {
    UnitTacticalRole.LRM_BOAT: 90,
    UnitTacticalRole.TROOPER: 50,
    UnitTacticalRole.BRAWLER: 30,
    UnitTacticalRole.JUMPER: 25,
    UnitTacticalRole.SCOUT: 20,
}
DEFAULT_MOVEMENT_TYPES = ("Walk", "Run", "Jump")


class MovementEngine(DecisionEngine):
    """Decision engine for the movement phase"""

    def __init__(self, game, tactical_evaluator: Optional[TacticalEvaluator] = None):
        super().__init__(game, "MovementEngine")
        self.tactical_evaluator = tactical_evaluator or TacticalEvaluator(game)

    async def make_decision(self, player, turn_state: Optional[TurnState] = None):
        units_to_move = [u for u in player.alive_units if not u.has_moved]
        if not units_to_move:
            raise BotDecisionException("No units left to move", self.name, player.id)

        try:
            state = self.analyze_phase(player, units_to_move)
            unit = self.select_unit(units_to_move, state)

            if unit.is_prone and unit.can_stand_up():
                await self._attempt_standup(player, unit)
                return

            await self._execute_move(player, unit, turn_state)

        except BotDecisionException:
            raise
        except Exception as e:
            logger.error(f"❌ MovementEngine error for player {player.name}: {e}, standing still", exc_info=True)
            await self._stand_still(player, units_to_move[0], "evaluation failed")

    # =========================================================================
    # UNIT SELECTION
    # =========================================================================

    def analyze_phase(self, player, units_to_move: Sequence) -> MovementPhaseState:
        """Who is still to move, and how far into the phase we are"""
        enemy_units_remaining = sum(
            1
            for other in self.game.players
            if other.id != player.id
            for unit in other.alive_units
            if not unit.has_moved and not unit.is_destroyed
        )

        cfg = get_config()
        total = len(player.alive_units)
        ratio = len(units_to_move) / total if total else 0.0
        if ratio > cfg.get('movement_priority', 'early_phase_ratio', 0.7):
            phase = MovementPhase.EARLY
        elif ratio < cfg.get('movement_priority', 'late_phase_ratio', 0.3):
            phase = MovementPhase.LATE
        else:
            phase = MovementPhase.MID

        return MovementPhaseState(enemy_units_remaining, len(units_to_move), phase)

    def calculate_unit_priority(self, unit, state: MovementPhaseState) -> float:
        """Higher moves first"""
        cfg = get_config()
        if unit.is_prone:
            return cfg.get('movement_priority', 'prone', 0)

        role = get_tactical_role(unit)
        priority = cfg.get('movement_priority', role.name.lower(), DEFAULT_ROLE_PRIORITIES[role])

        if state.enemy_units_remaining == 0:
            # We move last, nothing left to react to
            priority += cfg.get('movement_priority', 'moving_last_bonus', 30)
        elif role == UnitTacticalRole.BRAWLER:
            priority -= cfg.get('movement_priority', 'brawler_initiative_penalty', 30)

        return priority

    def select_unit(self, units_to_move: Sequence, state: MovementPhaseState):
        """Highest priority unit; ties keep list order"""
        best_unit = None
        best_priority = None
        for unit in units_to_move:
            priority = self.calculate_unit_priority(unit, state)
            if best_priority is None or priority > best_priority:
                best_unit, best_priority = unit, priority

        logger.info(f"🎯 Selected {best_unit.name} (priority {best_priority}, "
                    f"{state.phase.value} phase, {state.enemy_units_remaining} enemies to move)")
        return best_unit

    # =========================================================================
    # DESTINATION SELECTION
    # =========================================================================

    async def _execute_move(self, player, unit, turn_state: Optional[TurnState]):
        battle_map = self.game.battle_map
        if unit.is_immobile or unit.is_prone or battle_map is None or unit.position is None:
            await self._stand_still(player, unit, "cannot move")
            return

        if unit.get_movement_points(MovementType.WALK) <= 0 and unit.get_movement_points(MovementType.JUMP) <= 0:
            await self._stand_still(player, unit, "no movement points")
            return

        best = self.find_best_path(player, unit, turn_state)
        if best is None:
            await self._stand_still(player, unit, "no reachable destination")
            return

        command = MoveUnitCommand(
            game_origin_id=self.game.id,
            player_id=player.id,
            unit_id=unit.id,
            movement_type=best.movement_type,
            movement_path=list(best.path.segments),
        )
        logger.info(f"🚶 {unit.name} -> {best.position} by {best.movement_type.value} "
                    f"(score {best.combined_score:.2f}, cost {best.movement_cost})")
        self.log_decision(player, command, unit.id, reasoning=repr(best), score=best.combined_score)
        await self.game.move_unit(command)

    def candidate_movement_types(self, unit) -> List[MovementType]:
        names = get_config().get('movement', 'movement_types', list(DEFAULT_MOVEMENT_TYPES))
        return [MovementType(name) for name in names
                if MovementType(name) != MovementType.STANDING_STILL
                and unit.get_movement_points(MovementType(name)) > 0]

    def find_best_path(self, player, unit, turn_state: Optional[TurnState] = None) -> Optional[PositionScore]:
        """
        Evaluate every reachable destination, in every facing, for every movement type.

        Returns:
            The best PositionScore, or None when nothing is reachable
        """
        battle_map = self.game.battle_map
        blocked = self.occupied_hexes(exclude_unit_id=unit.id)
        enemies = self.enemy_units(player)

        best: Optional[PositionScore] = None
        candidates = 0
        for movement_type in self.candidate_movement_types(unit):
            movement_points = unit.get_movement_points(movement_type)
            reachable = battle_map.get_reachable_hexes(unit.position, movement_points, blocked)

            for coordinates, _cost in reachable:
                for facing in HexDirection:
                    destination = HexPosition(coordinates, facing)
                    if destination == unit.position:
                        continue
                    path = battle_map.find_path(unit.position, destination, movement_type,
                                                movement_points, blocked)
                    if path is None or not path.segments:
                        continue
                    path.movement_type = movement_type

                    score = self.tactical_evaluator.evaluate_path(unit, path, enemies, turn_state)
                    candidates += 1
                    if best is None or self._sort_key(score) < self._sort_key(best):
                        best = score

        logger.debug(f"  {unit.name}: {candidates} candidate paths evaluated")
        return best

    @staticmethod
    def _sort_key(score: PositionScore) -> Tuple[float, int]:
        # Best combined score, then cheapest
        return -score.combined_score, score.movement_cost

    # =========================================================================
    # EXPLICIT NON-MOVES
    # =========================================================================

    async def _stand_still(self, player, unit, reason: str):
        command = MoveUnitCommand(
            game_origin_id=self.game.id,
            player_id=player.id,
            unit_id=unit.id,
            movement_type=MovementType.STANDING_STILL,
            movement_path=[],
        )
        logger.info(f"🧍 {unit.name} stands still ({reason})")
        self.log_decision(player, command, unit.id, reasoning=reason)
        await self.game.move_unit(command)

    async def _attempt_standup(self, player, unit):
        command = TryStandupCommand(
            game_origin_id=self.game.id,
            player_id=player.id,
            unit_id=unit.id,
            new_facing=unit.position.facing if unit.position else HexDirection.TOP,
            movement_type_after_standup=MovementType.WALK,
        )
        logger.info(f"🆙 {unit.name} tries to stand up")
        self.log_decision(player, command, unit.id, reasoning="prone")
        await self.game.try_standup_unit(command)
