"""
Tests for movement_engine.py

Unit priority, explicit standing still, path selection and tie-breaks.
"""

import asyncio
from unittest.mock import MagicMock

import pytest

from mechbot.commands import MoveUnitCommand, TryStandupCommand
from mechbot.decision_engines.movement_engine import MovementEngine
from mechbot.evaluators.base import PositionScore
from mechbot.exceptions import BotDecisionException
from mechbot.models import (
    HexCoordinates,
    HexDirection,
    HexPosition,
    MovementPhase,
    MovementPhaseState,
    MovementType,
    PartLocation,
)
from mechbot.sandbox import SandboxGame, SandboxMap, SandboxPlayer, SandboxUnit, SandboxWeapon


def lrm20():
    return SandboxWeapon("LRM-20", damage=12, heat=6, long_range=21, minimum_range=6, weapon_type="Missile",
                         clusters=4, cluster_size=5, mount_location=PartLocation.LEFT_TORSO, requires_ammo=True)


def deployed(unit_id, q, r, facing=HexDirection.TOP, walk_mp=4, **kwargs):
    return SandboxUnit(unit_id, unit_id, walk_mp=walk_mp, position=HexPosition(HexCoordinates(q, r), facing),
                       is_deployed=True, **kwargs)


def scored_by(func):
    """Evaluator stub whose evaluate_path builds a PositionScore from func(path)"""
    evaluator = MagicMock()

    def evaluate_path(unit, path, enemies, turn_state=None):
        offensive, rear = func(path)
        return PositionScore(path.destination, path.movement_type, path,
                             offensive_index=offensive, enemies_in_rear_arc=rear)

    evaluator.evaluate_path.side_effect = evaluate_path
    return evaluator


def single_player_game(*units, width=10, height=10):
    player = SandboxPlayer("p1", "Bot", list(units))
    return player, SandboxGame("game", [player], SandboxMap(width, height))


class TestUnitPriority:
    """Which unit moves next"""

    def state(self, enemies_remaining):
        return MovementPhaseState(enemies_remaining, 2, MovementPhase.MID)

    def test_role_base_priorities(self):
        engine = MovementEngine(MagicMock())
        state = self.state(enemies_remaining=1)
        assert engine.calculate_unit_priority(deployed("boat", 1, 1, weapons=[lrm20()]), state) == 90
        assert engine.calculate_unit_priority(deployed("trooper", 1, 1, walk_mp=4), state) == 50
        assert engine.calculate_unit_priority(deployed("jumper", 1, 1, walk_mp=5, jump_mp=5), state) == 25
        assert engine.calculate_unit_priority(deployed("scout", 1, 1, walk_mp=7), state) == 20

    def test_brawler_held_back_while_enemies_still_to_move(self):
        engine = MovementEngine(MagicMock())
        brawler = deployed("brawler", 1, 1, walk_mp=3)
        assert engine.calculate_unit_priority(brawler, self.state(enemies_remaining=2)) == 0
        assert engine.calculate_unit_priority(brawler, self.state(enemies_remaining=0)) == 60

    def test_moving_last_bonus(self):
        engine = MovementEngine(MagicMock())
        scout = deployed("scout", 1, 1, walk_mp=7)
        assert engine.calculate_unit_priority(scout, self.state(enemies_remaining=0)) == 50

    def test_prone_units_go_last(self):
        engine = MovementEngine(MagicMock())
        boat = deployed("boat", 1, 1, weapons=[lrm20()], is_prone=True)
        assert engine.calculate_unit_priority(boat, self.state(enemies_remaining=0)) == 0

    def test_boat_selected_first(self):
        trooper = deployed("trooper", 2, 2)
        boat = deployed("boat", 4, 4, weapons=[lrm20()])
        player, game = single_player_game(trooper, boat)
        engine = MovementEngine(game)

        state = engine.analyze_phase(player, [trooper, boat])
        assert engine.select_unit([trooper, boat], state) is boat

    def test_ties_keep_list_order(self):
        first = deployed("first", 2, 2)
        second = deployed("second", 4, 4)
        player, game = single_player_game(first, second)
        engine = MovementEngine(game)

        state = engine.analyze_phase(player, [first, second])
        assert engine.select_unit([first, second], state) is first

    def test_phase_analysis(self):
        units = [deployed(f"u{i}", i, 1) for i in range(1, 5)]
        enemy = SandboxPlayer("p2", "Enemy", [deployed("e1", 8, 8), deployed("e2", 9, 9, has_moved=True)])
        player = SandboxPlayer("p1", "Bot", units)
        game = SandboxGame("game", [player, enemy], SandboxMap(10, 10))
        engine = MovementEngine(game)

        early = engine.analyze_phase(player, units)
        assert early.phase == MovementPhase.EARLY
        assert early.enemy_units_remaining == 1
        assert engine.analyze_phase(player, units[:2]).phase == MovementPhase.MID
        assert engine.analyze_phase(player, units[:1]).phase == MovementPhase.LATE


class TestStandingStill:
    """Explicit 'chose not to move' commands"""

    def assert_single_standing_still(self, game, unit_id):
        commands = game.commands_of_type(MoveUnitCommand)
        assert len(commands) == 1
        assert commands[0].unit_id == unit_id
        assert commands[0].movement_type == MovementType.STANDING_STILL
        assert commands[0].movement_path == []

    def test_immobile_unit(self):
        unit = deployed("u1", 5, 5, is_immobile=True)
        player, game = single_player_game(unit)

        asyncio.run(MovementEngine(game).make_decision(player))

        self.assert_single_standing_still(game, "u1")

    def test_zero_movement_points(self):
        unit = deployed("u1", 5, 5, walk_mp=0)
        player, game = single_player_game(unit)

        asyncio.run(MovementEngine(game).make_decision(player))

        self.assert_single_standing_still(game, "u1")

    def test_no_map(self):
        unit = deployed("u1", 5, 5)
        player = SandboxPlayer("p1", "Bot", [unit])
        game = SandboxGame("game", [player], None)

        asyncio.run(MovementEngine(game).make_decision(player))

        self.assert_single_standing_still(game, "u1")

    def test_no_reachable_hexes(self):
        unit = deployed("u1", 5, 5)
        player, game = single_player_game(unit)
        game.battle_map = MagicMock()
        game.battle_map.get_reachable_hexes.return_value = []

        asyncio.run(MovementEngine(game).make_decision(player))

        self.assert_single_standing_still(game, "u1")

    def test_evaluation_failure_stands_still(self):
        unit = deployed("u1", 5, 5)
        player, game = single_player_game(unit)
        evaluator = MagicMock()
        evaluator.evaluate_path.side_effect = RuntimeError("boom")

        asyncio.run(MovementEngine(game, evaluator).make_decision(player))

        self.assert_single_standing_still(game, "u1")


class TestMovementContract:
    def test_all_units_moved_raises(self):
        unit = deployed("u1", 5, 5, has_moved=True)
        player, game = single_player_game(unit)

        with pytest.raises(BotDecisionException) as exc_info:
            asyncio.run(MovementEngine(game).make_decision(player))

        assert exc_info.value.engine_name == "MovementEngine"
        assert exc_info.value.player_id == "p1"
        assert game.issued_commands == []

    def test_prone_unit_tries_to_stand_up(self):
        unit = deployed("u1", 5, 5, facing=HexDirection.BOTTOM_LEFT, is_prone=True)
        player, game = single_player_game(unit)

        asyncio.run(MovementEngine(game).make_decision(player))

        commands = game.commands_of_type(TryStandupCommand)
        assert len(commands) == 1
        assert commands[0].new_facing == HexDirection.BOTTOM_LEFT
        assert commands[0].movement_type_after_standup == MovementType.WALK
        assert game.commands_of_type(MoveUnitCommand) == []


class TestPathSelection:
    """Best destination by combined score, then cost"""

    def test_highest_combined_score_wins(self):
        unit = deployed("u1", 3, 3, facing=HexDirection.TOP_RIGHT, walk_mp=1)
        player, game = single_player_game(unit)
        evaluator = scored_by(lambda path: (path.destination.coordinates.q, 0))

        asyncio.run(MovementEngine(game, evaluator).make_decision(player))

        command = game.commands_of_type(MoveUnitCommand)[0]
        assert command.movement_type == MovementType.RUN
        assert command.movement_path[-1].to_position.coordinates.q == 5

    def test_equal_scores_prefer_cheapest_path(self):
        unit = deployed("u1", 5, 5)
        player, game = single_player_game(unit)
        evaluator = scored_by(lambda path: (0, 0))

        asyncio.run(MovementEngine(game, evaluator).make_decision(player))

        command = game.commands_of_type(MoveUnitCommand)[0]
        assert sum(s.cost for s in command.movement_path) == 1

    def test_rear_exposure_does_not_outrank_cost(self):
        unit = deployed("u1", 5, 5)
        player, game = single_player_game(unit)
        # Only an about-face (3+ MP) clears the rear arc; scores are equal
        evaluator = scored_by(lambda path: (0, 0 if path.destination.facing == HexDirection.BOTTOM else 1))

        asyncio.run(MovementEngine(game, evaluator).make_decision(player))

        command = game.commands_of_type(MoveUnitCommand)[0]
        assert sum(s.cost for s in command.movement_path) == 1
        assert command.movement_path[-1].to_position.facing != HexDirection.BOTTOM

    def test_other_units_block_movement(self):
        mover = deployed("u1", 5, 5)
        friend = deployed("u2", 5, 4, has_moved=True)
        player, game = single_player_game(mover, friend)
        engine = MovementEngine(game)

        assert engine.occupied_hexes(exclude_unit_id="u1") == {HexCoordinates(5, 4)}

    def test_move_against_real_evaluator(self):
        unit = deployed("u1", 2, 2, weapons=[SandboxWeapon("Medium Laser", damage=5, heat=3, long_range=9)])
        enemy_unit = deployed("e1", 2, 8, facing=HexDirection.TOP)
        player = SandboxPlayer("p1", "Bot", [unit])
        enemy = SandboxPlayer("p2", "Enemy", [enemy_unit])
        game = SandboxGame("game", [player, enemy], SandboxMap(6, 10))

        asyncio.run(MovementEngine(game).make_decision(player))

        commands = game.commands_of_type(MoveUnitCommand)
        assert len(commands) == 1
        assert commands[0].movement_type in (MovementType.WALK, MovementType.RUN)
        assert commands[0].movement_path
        assert unit.has_moved
        assert unit.position.coordinates != HexCoordinates(2, 8)
