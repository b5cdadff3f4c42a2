"""
Base Class for Decision Engines

One engine per game phase. The orchestrator (Bot) calls make_decision() on
the engine for the current phase; the engine reads game state through the
views in interfaces.py and answers by awaiting a command method on the game
session.

The one rule every engine follows: "nothing to do" is still an explicit
command (stand still, empty attack declaration, end turn), so the turn
machinery can always make progress.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, List, Optional, Set

from .. import decision_logger
from ..models import HexCoordinates
from ..turn_state import TurnState

logger = logging.getLogger(__name__)


class DecisionEngine(ABC):
    """
    Base class for phase decision engines.

    Each engine is bound to exactly one game session at construction.
    """

    def __init__(self, game, name: Optional[str] = None):
        self.game = game
        self.name = name or type(self).__name__
        self.logger = logging.getLogger(f"{__name__}.{self.name}")

    @abstractmethod
    async def make_decision(self, player, turn_state: Optional[TurnState] = None):
        """
        Issue the next command for `player`.

        Args:
            player: The bot-controlled player
            turn_state: Turn-scoped evaluation cache, if the caller keeps one
        """
        pass

    # =========================================================================
    # SHARED HELPERS
    # =========================================================================

    def enemy_units(self, player) -> List[Any]:
        """Deployed, alive units of every other player"""
        return [
            unit
            for other in self.game.players
            if other.id != player.id
            for unit in other.alive_units
            if unit.is_deployed and unit.position is not None
        ]

    def occupied_hexes(self, exclude_unit_id: Any = None) -> Set[HexCoordinates]:
        """Hexes holding a deployed unit of any player (undeployed units occupy nothing)"""
        return {
            unit.position.coordinates
            for other in self.game.players
            for unit in other.units
            if unit.is_deployed and unit.position is not None and unit.id != exclude_unit_id
        }

    def log_decision(self, player, command, unit_id: Any = None, reasoning: str = "",
                     score: Optional[float] = None):
        """Record an issued command in the decision log"""
        decision_logger.log_decision(
            engine_name=self.name,
            player_id=player.id,
            command=command,
            unit_id=unit_id,
            reasoning=reasoning,
            score=score,
            turn=getattr(self.game, 'turn', 0),
        )

    def __repr__(self):
        return f"{self.name}(game={getattr(self.game, 'id', None)})"
