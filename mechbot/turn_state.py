"""
Turn-scoped cache of target evaluations.

The movement phase evaluates every candidate destination against every
enemy; the weapons phase later asks the same question for the destination
that was actually chosen. Keeping the answers for the rest of the turn
saves the second round of to-hit calculations.

Owned by the bot, replaced at every turn boundary, written and read by one
caller at a time.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .models import HexCoordinates, HexDirection, MovementType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TargetEvaluationKey:
    """Placements and attacker movement mode a cached evaluation was computed for"""
    attacker_id: Any
    attacker_coordinates: HexCoordinates
    attacker_facing: HexDirection
    attacker_movement_type: MovementType
    target_id: Any
    target_coordinates: HexCoordinates
    target_facing: HexDirection


class TurnState:
    """Target evaluations cached for one bot turn"""

    def __init__(self, game_id: Any = None, turn_number: int = 0):
        self.game_id = game_id
        self.turn_number = turn_number
        self._target_evaluations: Dict[TargetEvaluationKey, Any] = {}
        self.hits = 0
        self.misses = 0

    def try_get_target_evaluation(self, key: TargetEvaluationKey) -> Optional[Any]:
        """Cached TargetScore for `key`, or None"""
        data = self._target_evaluations.get(key)
        if data is None:
            self.misses += 1
        else:
            self.hits += 1
        return data

    def add_target_evaluation(self, key: TargetEvaluationKey, data: Any):
        """Store an evaluation; the first value stored for a key wins"""
        self._target_evaluations.setdefault(key, data)

    def clear(self):
        if self._target_evaluations:
            logger.debug(f"🧹 Clearing {len(self._target_evaluations)} cached target evaluations "
                         f"(turn {self.turn_number}, hits={self.hits}, misses={self.misses})")
        self._target_evaluations.clear()
        self.hits = 0
        self.misses = 0

    def __len__(self):
        return len(self._target_evaluations)

    def __contains__(self, key: TargetEvaluationKey) -> bool:
        return key in self._target_evaluations
