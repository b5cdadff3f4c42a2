"""
Tactical Evaluator

Scores candidate positions and targets for the movement and weapons engines.

For a movement path the evaluator looks at the destination and asks:
- How much damage can visible enemies expect to deal to us there? (defensive index)
- How much damage can we expect to deal from there? (offensive index)
- How many enemies would be sitting in our rear arc? (caution signal, ignores LOS)

For targeting it enumerates every weapon under every stance the unit can
adopt (default facing, torso twists) and keeps the best stance per target.

Hit probabilities come from the external to-hit calculator, converted with
the 2d6 table.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from ..dice import calculate_2d6_probability
from ..hexgrid import get_arc, is_in_weapon_arc
from ..models import (
    AttackScenario,
    FiringArc,
    HexDirection,
    HexPosition,
    MovementPath,
    WeaponConfiguration,
    WeaponConfigurationType,
)
from ..strategy_config import get_config
from ..turn_state import TargetEvaluationKey, TurnState
from .base import ConfigurationScore, PositionScore, TargetScore, WeaponEvaluationData

logger = logging.getLogger(__name__)

# Multipliers applied to expected damage by the arc that takes the hit
DEFAULT_ARC_MULTIPLIERS = {
    FiringArc.FRONT: 1.0,
    FiringArc.LEFT: 0.75,
    FiringArc.RIGHT: 0.75,
    FiringArc.REAR: 0.5,
}


def get_arc_multiplier(arc: FiringArc) -> float:
    configured = get_config().get_section('arc_multipliers')
    return float(configured.get(arc.value, DEFAULT_ARC_MULTIPLIERS[arc]))


class TacticalEvaluator:
    """
    Evaluates tactical situations for movement and weapon decisions.

    Bound to one game session; reads the map and to-hit calculator from it
    on every call, so a map that appears later is picked up.
    """

    def __init__(self, game):
        self.game = game
        self.logger = logging.getLogger(f"{__name__}.{type(self).__name__}")

    # =========================================================================
    # PATH EVALUATION
    # =========================================================================

    def evaluate_path(self, unit, path: MovementPath, enemy_units: Sequence,
                      turn_state: Optional[TurnState] = None) -> PositionScore:
        """
        Score a candidate movement path by its destination.

        Args:
            unit: The unit that would move
            path: Candidate path (its destination is what gets scored)
            enemy_units: Every enemy unit to consider
            turn_state: Optional cache shared with the weapons phase

        Returns:
            PositionScore for the destination
        """
        score = PositionScore(position=path.destination, movement_type=path.movement_type, path=path)
        if self.game.battle_map is None or path.destination is None:
            return score

        defensive_index, enemies_in_rear = self._calculate_defensive_index(path, enemy_units)
        score.defensive_index = defensive_index
        score.enemies_in_rear_arc = enemies_in_rear
        score.offensive_index = self._calculate_offensive_index(unit, path, enemy_units, turn_state)

        self.logger.debug(f"  {getattr(unit, 'name', unit)} -> {score}")
        return score

    def _calculate_defensive_index(self, defender_path: MovementPath, enemy_units: Sequence) -> Tuple[float, int]:
        """
        Expected damage visible enemies can deal at the path's destination.

        Every enemy contributes its single most dangerous weapon (in range
        and in arc), scaled by which of our arcs it would hit. The rear-arc
        count is taken before the line-of-sight check.

        Returns:
            (defensive index, enemies in rear arc)
        """
        battle_map = self.game.battle_map
        position = defender_path.destination
        defensive_index = 0.0
        enemies_in_rear = 0

        for enemy in enemy_units:
            if enemy.position is None:
                continue

            exposed_arc = get_arc(position.coordinates, position.facing, enemy.position.coordinates)
            if exposed_arc == FiringArc.REAR:
                enemies_in_rear += 1

            if not battle_map.has_line_of_sight(enemy.position.coordinates, position.coordinates):
                continue

            enemy_path = enemy.movement_taken or MovementPath.standing_still(enemy.position)
            distance = enemy.position.coordinates.distance_to(position.coordinates)

            best_threat = 0.0
            for weapon in enemy.weapons:
                if not weapon.is_available or weapon.mount_location is None:
                    continue
                if distance < weapon.minimum_range or distance > weapon.long_range:
                    continue
                if not is_in_weapon_arc(enemy.position.coordinates, enemy.position.facing,
                                        position.coordinates, weapon):
                    continue

                hit_probability = self._calculate_hit_probability(enemy, enemy_path, defender_path, weapon)
                best_threat = max(best_threat, hit_probability * weapon.damage)

            defensive_index += best_threat * get_arc_multiplier(exposed_arc)

        return defensive_index, enemies_in_rear

    def _calculate_offensive_index(self, unit, path: MovementPath, enemy_units: Sequence,
                                   turn_state: Optional[TurnState]) -> float:
        """Sum of best expected damage per target, scaled by the target arc we would hit"""
        destination = path.destination
        enemies_by_id = {enemy.id: enemy for enemy in enemy_units}

        offensive_index = 0.0
        for target_score in self.evaluate_targets(unit, path, enemy_units, turn_state):
            enemy = enemies_by_id.get(target_score.target_id)
            if enemy is None or enemy.position is None:
                continue
            hit_arc = get_arc(enemy.position.coordinates, enemy.position.facing, destination.coordinates)
            offensive_index += target_score.score * get_arc_multiplier(hit_arc)
        return offensive_index

    # =========================================================================
    # TARGET EVALUATION
    # =========================================================================

    def evaluate_targets(self, attacker, attacker_path: MovementPath, potential_targets: Sequence,
                         turn_state: Optional[TurnState] = None) -> List[TargetScore]:
        """
        Rank the targets `attacker` could shoot at from the end of `attacker_path`.

        Args:
            attacker: The unit that would fire
            attacker_path: Path the attacker took (or would take)
            potential_targets: Candidate target units
            turn_state: Optional cache; hits are returned as-is, misses are stored

        Returns:
            TargetScores with a positive score, best first
        """
        battle_map = self.game.battle_map
        if battle_map is None or attacker.position is None:
            return []

        destination = attacker_path.destination or attacker.position
        weapons = [w for w in attacker.weapons if w.is_available]
        results: List[TargetScore] = []

        for target in potential_targets:
            if target.position is None:
                continue

            key = TargetEvaluationKey(
                attacker.id, destination.coordinates, destination.facing, attacker_path.movement_type,
                target.id, target.position.coordinates, target.position.facing,
            )
            if turn_state is not None:
                cached = turn_state.try_get_target_evaluation(key)
                if cached is not None:
                    results.append(cached)
                    continue

            target_path = target.movement_taken or MovementPath.standing_still(target.position)
            configuration_scores = self._evaluate_configurations(
                attacker, attacker_path, destination, target_path, weapons)

            target_score = TargetScore.from_configurations(target.id, configuration_scores)
            if target_score.score <= 0:
                continue

            results.append(target_score)
            if turn_state is not None:
                turn_state.add_target_evaluation(key, target_score)

        results.sort(key=lambda t: t.score, reverse=True)
        return results

    def _weapon_configurations(self, attacker, destination: HexPosition) -> List[WeaponConfiguration]:
        """Default stance first, then every torso twist the unit can make"""
        configurations = [WeaponConfiguration(WeaponConfigurationType.NONE, destination.facing.value)]
        for direction in attacker.torso_rotation_directions(destination):
            if direction == destination.facing:
                continue
            configurations.append(WeaponConfiguration(WeaponConfigurationType.TORSO_ROTATION, direction.value))
        return configurations

    @staticmethod
    def _is_configuration_applicable(configuration: WeaponConfiguration, weapon) -> bool:
        if configuration.type == WeaponConfigurationType.TORSO_ROTATION:
            return weapon.mount_location.rotates_with_torso
        return True

    def _evaluate_configurations(self, attacker, attacker_path: MovementPath, destination: HexPosition,
                                 target_path: MovementPath, weapons: Sequence) -> List[ConfigurationScore]:
        """Viable weapons and their summed expected damage, per stance"""
        target_position = target_path.destination
        if not self.game.battle_map.has_line_of_sight(destination.coordinates, target_position.coordinates):
            return []

        distance = destination.coordinates.distance_to(target_position.coordinates)
        scores: List[ConfigurationScore] = []

        for configuration in self._weapon_configurations(attacker, destination):
            viable: List[WeaponEvaluationData] = []
            for weapon in weapons:
                if weapon.mount_location is None or distance > weapon.long_range:
                    continue
                if not self._is_configuration_applicable(configuration, weapon):
                    continue

                # Legs keep pointing where the unit stands, whatever the torso does
                facing = destination.facing if weapon.mount_location.is_leg else configuration.facing
                if not is_in_weapon_arc(destination.coordinates, facing, target_position.coordinates, weapon):
                    continue

                hit_probability = self._calculate_hit_probability(
                    attacker, attacker_path, target_path, weapon, facing)
                if hit_probability <= 0:
                    continue
                viable.append(WeaponEvaluationData(weapon, hit_probability, configuration))

            if viable:
                total = sum(w.expected_damage for w in viable)
                scores.append(ConfigurationScore(configuration, total, viable))

        return scores

    # =========================================================================
    # HIT PROBABILITY
    # =========================================================================

    def _calculate_hit_probability(self, attacker, attacker_path: MovementPath, target_path: MovementPath,
                                   weapon, attacker_facing: Optional[HexDirection] = None) -> float:
        """
        Chance that `weapon` hits, for a hypothetical attack between two path ends.

        Goes through the external to-hit calculator so terrain, heat and
        damage modifiers are all accounted for.
        """
        battle_map = self.game.battle_map
        pilot = getattr(attacker, 'pilot', None)
        if battle_map is None or pilot is None or weapon.mount_location is None:
            return 0.0

        attacker_position = attacker_path.destination
        scenario = AttackScenario(
            attacker_gunnery=pilot.gunnery,
            attacker_position=attacker_position,
            attacker_movement_type=attacker_path.movement_type,
            attacker_facing=attacker_facing or attacker_position.facing,
            target_position=target_path.destination,
            target_hexes_moved=target_path.hexes_traveled,
            attacker_modifiers=tuple(attacker.get_attack_modifiers(weapon.mount_location)),
        )

        to_hit_number = self.game.to_hit_calculator.get_to_hit_number(scenario, weapon, battle_map)
        return calculate_2d6_probability(to_hit_number)
