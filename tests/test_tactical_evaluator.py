"""
Tests for tactical_evaluator.py

Defensive/offensive indices, rear-arc counting, weapon filtering, torso
twist configurations and the turn cache.
"""

from unittest.mock import MagicMock

import pytest

from mechbot.evaluators.base import TargetScore
from mechbot.evaluators.tactical_evaluator import TacticalEvaluator
from mechbot.models import (
    HexCoordinates,
    HexDirection,
    HexPosition,
    MovementPath,
    MovementType,
    PartLocation,
    PathSegment,
    WeaponConfigurationType,
)
from mechbot.sandbox import SandboxMap, SandboxUnit, SandboxWeapon
from mechbot.turn_state import TurnState

P7 = 21 / 36  # chance to roll 7+ on 2d6


def make_game(battle_map=None, to_hit=7):
    game = MagicMock()
    game.battle_map = battle_map if battle_map is not None else SandboxMap(12, 12)
    game.to_hit_calculator.get_to_hit_number.return_value = to_hit
    return game


def laser(name="Medium Laser", damage=5, long_range=9, mount=PartLocation.CENTER_TORSO, minimum_range=0):
    return SandboxWeapon(name, damage=damage, heat=3, long_range=long_range, minimum_range=minimum_range,
                         mount_location=mount)


def unit_at(unit_id, q, r, facing=HexDirection.TOP, weapons=None, can_twist=False):
    return SandboxUnit(
        unit_id, unit_id, walk_mp=4, weapons=weapons or [],
        position=HexPosition(HexCoordinates(q, r), facing),
        is_deployed=True, can_twist_torso=can_twist,
    )


def still(unit):
    return MovementPath.standing_still(unit.position)


class TestEvaluatePath:
    """Defensive and offensive indices of a destination"""

    def test_no_map_scores_zero(self):
        game = make_game()
        game.battle_map = None
        evaluator = TacticalEvaluator(game)
        unit = unit_at("me", 5, 5, weapons=[laser()])
        enemy = unit_at("enemy", 5, 2, HexDirection.BOTTOM, weapons=[laser()])

        score = evaluator.evaluate_path(unit, still(unit), [enemy])

        assert score.defensive_index == 0
        assert score.offensive_index == 0
        assert score.enemies_in_rear_arc == 0

    def test_rear_arc_counted_without_line_of_sight(self):
        battle_map = MagicMock()
        battle_map.has_line_of_sight.return_value = False
        evaluator = TacticalEvaluator(make_game(battle_map))
        unit = unit_at("me", 6, 16, HexDirection.BOTTOM_RIGHT, weapons=[laser()])
        enemy = unit_at("enemy", 1, 12, HexDirection.BOTTOM_RIGHT, weapons=[laser(long_range=20)])

        score = evaluator.evaluate_path(unit, still(unit), [enemy])

        assert score.enemies_in_rear_arc == 1
        assert score.defensive_index == 0
        assert score.offensive_index == 0

    def test_visible_enemy_in_front(self):
        evaluator = TacticalEvaluator(make_game())
        unit = unit_at("me", 5, 5)
        enemy = unit_at("enemy", 5, 2, HexDirection.BOTTOM, weapons=[laser()])

        score = evaluator.evaluate_path(unit, still(unit), [enemy])

        assert score.defensive_index == pytest.approx(5 * P7)
        assert score.enemies_in_rear_arc == 0

    def test_only_the_best_enemy_weapon_counts(self):
        evaluator = TacticalEvaluator(make_game())
        unit = unit_at("me", 5, 5)
        enemy = unit_at("enemy", 5, 2, HexDirection.BOTTOM,
                        weapons=[laser(), laser("Large Laser", damage=8, long_range=15)])

        score = evaluator.evaluate_path(unit, still(unit), [enemy])

        assert score.defensive_index == pytest.approx(8 * P7)

    def test_enemy_out_of_range_is_harmless(self):
        evaluator = TacticalEvaluator(make_game())
        unit = unit_at("me", 5, 5)
        enemy = unit_at("enemy", 5, 2, HexDirection.BOTTOM, weapons=[laser(long_range=2)])

        score = evaluator.evaluate_path(unit, still(unit), [enemy])

        assert score.defensive_index == 0

    def test_rear_exposure_uses_rear_multiplier(self):
        evaluator = TacticalEvaluator(make_game())
        unit = unit_at("me", 5, 5, HexDirection.TOP)
        enemy = unit_at("enemy", 5, 8, HexDirection.TOP, weapons=[laser()])

        score = evaluator.evaluate_path(unit, still(unit), [enemy])

        assert score.enemies_in_rear_arc == 1
        assert score.defensive_index == pytest.approx(5 * P7 * 0.5)

    def test_offensive_index_from_own_weapons(self):
        evaluator = TacticalEvaluator(make_game())
        unit = unit_at("me", 5, 5, weapons=[laser()])
        enemy = unit_at("enemy", 5, 2, HexDirection.BOTTOM)

        score = evaluator.evaluate_path(unit, still(unit), [enemy])

        assert score.offensive_index == pytest.approx(5 * P7)
        assert score.combined_score == pytest.approx(5 * P7)

    def test_shooting_into_enemy_rear_is_scaled(self):
        evaluator = TacticalEvaluator(make_game())
        unit = unit_at("me", 5, 5, weapons=[laser()])
        # Enemy ahead of us, facing away
        enemy = unit_at("enemy", 5, 2, HexDirection.TOP)

        score = evaluator.evaluate_path(unit, still(unit), [enemy])

        assert score.offensive_index == pytest.approx(5 * P7 * 0.5)


class TestEvaluateTargets:
    """Target ranking and weapon filtering"""

    def test_weapon_beyond_long_range_is_excluded(self):
        evaluator = TacticalEvaluator(make_game())
        target = unit_at("enemy", 5, 1, HexDirection.BOTTOM)

        short = unit_at("me", 5, 5, weapons=[laser(long_range=3)])
        assert evaluator.evaluate_targets(short, still(short), [target]) == []

        exact = unit_at("me", 5, 5, weapons=[laser(long_range=4)])
        results = evaluator.evaluate_targets(exact, still(exact), [target])
        assert len(results) == 1
        assert results[0].target_id == "enemy"

    def test_leg_weapon_gets_no_torso_rotation(self):
        evaluator = TacticalEvaluator(make_game())
        # Target sits in the right arc, only a twist to TOP_RIGHT brings it in front
        target = unit_at("enemy", 8, 5, HexDirection.TOP_LEFT)

        legs = unit_at("me", 5, 5, weapons=[laser(mount=PartLocation.LEFT_LEG)], can_twist=True)
        assert evaluator.evaluate_targets(legs, still(legs), [target]) == []

        torso = unit_at("me", 5, 5, weapons=[laser(mount=PartLocation.RIGHT_TORSO)], can_twist=True)
        results = evaluator.evaluate_targets(torso, still(torso), [target])
        assert len(results) == 1
        best = results[0].best_configuration
        assert best.type == WeaponConfigurationType.TORSO_ROTATION
        assert best.facing == HexDirection.TOP_RIGHT

    def test_default_configuration_keeps_destination_facing(self):
        evaluator = TacticalEvaluator(make_game())
        unit = unit_at("me", 5, 5, HexDirection.BOTTOM, weapons=[laser()])
        target = unit_at("enemy", 5, 8, HexDirection.TOP)

        results = evaluator.evaluate_targets(unit, still(unit), [target])

        best = results[0].best_configuration
        assert best.type == WeaponConfigurationType.NONE
        assert best.facing == HexDirection.BOTTOM

    def test_targets_sorted_by_score(self):
        evaluator = TacticalEvaluator(make_game())
        unit = unit_at("me", 5, 5, weapons=[laser(damage=5, long_range=9), laser("AC/10", damage=10, long_range=3)])
        far = unit_at("far", 5, 1, HexDirection.BOTTOM)
        near = unit_at("near", 5, 3, HexDirection.BOTTOM)

        results = evaluator.evaluate_targets(unit, still(unit), [far, near])

        assert [t.target_id for t in results] == ["near", "far"]
        assert results[0].score == pytest.approx(15 * P7)
        assert results[1].score == pytest.approx(5 * P7)
        assert len(results[0].viable_weapons) == 2

    def test_impossible_shots_are_dropped(self):
        evaluator = TacticalEvaluator(make_game(to_hit=13))
        unit = unit_at("me", 5, 5, weapons=[laser()])
        target = unit_at("enemy", 5, 2, HexDirection.BOTTOM)

        assert evaluator.evaluate_targets(unit, still(unit), [target]) == []

    def test_blocked_line_of_sight_skips_target(self):
        battle_map = SandboxMap(12, 12, blocking_hexes=[HexCoordinates(5, 3)])
        evaluator = TacticalEvaluator(make_game(battle_map))
        unit = unit_at("me", 5, 5, weapons=[laser()])
        target = unit_at("enemy", 5, 1, HexDirection.BOTTOM)

        assert evaluator.evaluate_targets(unit, still(unit), [target]) == []

    def test_unit_without_pilot_cannot_hit(self):
        evaluator = TacticalEvaluator(make_game())
        unit = unit_at("me", 5, 5, weapons=[laser()])
        unit.pilot = None
        target = unit_at("enemy", 5, 2, HexDirection.BOTTOM)

        assert evaluator.evaluate_targets(unit, still(unit), [target]) == []

    def test_scenario_reflects_target_movement(self):
        game = make_game()
        evaluator = TacticalEvaluator(game)
        unit = unit_at("me", 5, 5, weapons=[laser()])
        target = unit_at("enemy", 5, 2, HexDirection.BOTTOM)
        hexes = [HexPosition(HexCoordinates(5, r), HexDirection.BOTTOM) for r in (4, 3, 2)]
        target.movement_taken = MovementPath(
            [PathSegment(hexes[0], hexes[1], 1), PathSegment(hexes[1], hexes[2], 1)], MovementType.WALK)

        evaluator.evaluate_targets(unit, still(unit), [target])

        scenario = game.to_hit_calculator.get_to_hit_number.call_args[0][0]
        assert scenario.attacker_gunnery == 4
        assert scenario.attacker_movement_type == MovementType.STANDING_STILL
        assert scenario.target_position == target.position
        assert scenario.target_hexes_moved == 2


class TestTargetCache:
    """Reuse of evaluations through the turn state"""

    def test_second_call_is_served_from_cache(self):
        game = make_game()
        evaluator = TacticalEvaluator(game)
        unit = unit_at("me", 5, 5, weapons=[laser()])
        target = unit_at("enemy", 5, 2, HexDirection.BOTTOM)
        turn_state = TurnState("game", 1)

        first = evaluator.evaluate_targets(unit, still(unit), [target], turn_state)
        calls = game.to_hit_calculator.get_to_hit_number.call_count
        second = evaluator.evaluate_targets(unit, still(unit), [target], turn_state)

        assert game.to_hit_calculator.get_to_hit_number.call_count == calls
        assert second[0] is first[0]
        assert turn_state.hits == 1

    def test_same_destination_different_movement_type_misses(self):
        game = make_game()
        game.to_hit_calculator.get_to_hit_number.side_effect = (
            lambda scenario, weapon, battle_map: 7 if scenario.attacker_movement_type == MovementType.WALK else 10)
        evaluator = TacticalEvaluator(game)
        unit = unit_at("me", 5, 5, weapons=[laser()])
        target = unit_at("enemy", 5, 2, HexDirection.BOTTOM)
        destination = HexPosition(HexCoordinates(5, 4), HexDirection.TOP)
        walked = MovementPath([PathSegment(unit.position, destination, 1)], MovementType.WALK)
        jumped = MovementPath([PathSegment(unit.position, destination, 1)], MovementType.JUMP)
        turn_state = TurnState("game", 1)

        walk_scores = evaluator.evaluate_targets(unit, walked, [target], turn_state)
        jump_scores = evaluator.evaluate_targets(unit, jumped, [target], turn_state)

        assert turn_state.hits == 0
        assert len(turn_state) == 2
        assert walk_scores[0].score == pytest.approx(5 * P7)
        assert jump_scores[0].score == pytest.approx(5 * 6 / 36)

    def test_cache_miss_stores_result(self):
        evaluator = TacticalEvaluator(make_game())
        unit = unit_at("me", 5, 5, weapons=[laser()])
        target = unit_at("enemy", 5, 2, HexDirection.BOTTOM)
        turn_state = MagicMock()
        turn_state.try_get_target_evaluation.return_value = None

        results = evaluator.evaluate_targets(unit, still(unit), [target], turn_state)

        turn_state.add_target_evaluation.assert_called_once()
        key, stored = turn_state.add_target_evaluation.call_args[0]
        assert stored is results[0]
        assert key.attacker_id == "me" and key.target_id == "enemy"

    def test_cache_hit_is_returned_verbatim(self):
        game = make_game()
        evaluator = TacticalEvaluator(game)
        unit = unit_at("me", 5, 5, weapons=[laser()])
        target = unit_at("enemy", 5, 2, HexDirection.BOTTOM)
        cached = TargetScore("enemy", 42.0)
        turn_state = MagicMock()
        turn_state.try_get_target_evaluation.return_value = cached

        results = evaluator.evaluate_targets(unit, still(unit), [target], turn_state)

        assert results == [cached]
        turn_state.add_target_evaluation.assert_not_called()
        game.to_hit_calculator.get_to_hit_number.assert_not_called()
