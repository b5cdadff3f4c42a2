"""
Tests for turn_state.py
"""

from mechbot.evaluators.base import TargetScore
from mechbot.models import HexCoordinates, HexDirection, MovementType
from mechbot.turn_state import TargetEvaluationKey, TurnState


def make_key(target_id="enemy-1", attacker_q=3, movement_type=MovementType.WALK):
    return TargetEvaluationKey(
        attacker_id="unit-1",
        attacker_coordinates=HexCoordinates(attacker_q, 4),
        attacker_facing=HexDirection.TOP,
        attacker_movement_type=movement_type,
        target_id=target_id,
        target_coordinates=HexCoordinates(6, 2),
        target_facing=HexDirection.BOTTOM,
    )


class TestTurnStateCache:
    """Turn-scoped target evaluation cache"""

    def test_miss_returns_none(self):
        state = TurnState("game", 1)
        assert state.try_get_target_evaluation(make_key()) is None
        assert state.misses == 1

    def test_hit_returns_stored_object(self):
        state = TurnState("game", 1)
        score = TargetScore("enemy-1", 4.2)
        state.add_target_evaluation(make_key(), score)
        assert state.try_get_target_evaluation(make_key()) is score
        assert state.hits == 1
        assert make_key() in state
        assert len(state) == 1

    def test_keys_differ_by_placement(self):
        state = TurnState()
        state.add_target_evaluation(make_key(attacker_q=3), TargetScore("enemy-1", 1.0))
        assert state.try_get_target_evaluation(make_key(attacker_q=4)) is None
        assert state.try_get_target_evaluation(make_key(target_id="enemy-2", attacker_q=3)) is None

    def test_keys_differ_by_movement_type(self):
        state = TurnState()
        state.add_target_evaluation(make_key(movement_type=MovementType.WALK), TargetScore("enemy-1", 1.0))
        assert state.try_get_target_evaluation(make_key(movement_type=MovementType.JUMP)) is None
        assert state.try_get_target_evaluation(make_key(movement_type=MovementType.WALK)) is not None

    def test_first_stored_value_wins(self):
        state = TurnState()
        first = TargetScore("enemy-1", 1.0)
        state.add_target_evaluation(make_key(), first)
        state.add_target_evaluation(make_key(), TargetScore("enemy-1", 9.0))
        assert state.try_get_target_evaluation(make_key()) is first

    def test_clear_empties_cache_and_counters(self):
        state = TurnState()
        state.add_target_evaluation(make_key(), TargetScore("enemy-1", 1.0))
        state.try_get_target_evaluation(make_key())
        state.clear()
        assert len(state) == 0
        assert state.hits == 0 and state.misses == 0
        assert state.try_get_target_evaluation(make_key()) is None
