"""
End Phase Engine

Heat housekeeping, then always end the turn:
- Shutdown unit with a conscious pilot: try to start it up again
- Running unit above the overheat threshold: shut it down before the heat
  phase cooks it

Each unit is handled on its own; one failure never stops the others, and
never stops the turn from ending.
"""

import logging
from typing import Optional

from ..commands import ShutdownUnitCommand, StartupUnitCommand, TurnEndedCommand
from ..strategy_config import get_config
from ..turn_state import TurnState
from .base import DecisionEngine

logger = logging.getLogger(__name__)

DEFAULT_OVERHEAT_THRESHOLD = 25


class EndPhaseEngine(DecisionEngine):
    """Decision engine for the end phase"""

    def __init__(self, game):
        super().__init__(game, "EndPhaseEngine")

    async def make_decision(self, player, turn_state: Optional[TurnState] = None):
        try:
            units = list(player.alive_units)
        except Exception as e:
            logger.error(f"❌ EndPhaseEngine could not read units of {player.name}: {e}")
            units = []

        threshold = get_config().get('end_phase', 'overheat_threshold', DEFAULT_OVERHEAT_THRESHOLD)
        for unit in units:
            try:
                await self._manage_heat(player, unit, threshold)
            except Exception as e:
                logger.warning(f"⚠️  Heat management failed for {getattr(unit, 'name', unit)}: {e}")

        command = TurnEndedCommand(game_origin_id=self.game.id, player_id=player.id)
        self.log_decision(player, command, reasoning="end of turn")
        await self.game.end_turn(command)

    async def _manage_heat(self, player, unit, threshold: int):
        """At most one startup or shutdown attempt per unit"""
        if unit.is_shutdown:
            pilot = unit.pilot
            if pilot is not None and pilot.is_conscious:
                command = StartupUnitCommand(game_origin_id=self.game.id, player_id=player.id, unit_id=unit.id)
                logger.info(f"🔌 Restarting {unit.name}")
                self.log_decision(player, command, unit.id, reasoning="shutdown with conscious pilot")
                await self.game.startup_unit(command)
            return

        if unit.current_heat > threshold:
            command = ShutdownUnitCommand(game_origin_id=self.game.id, player_id=player.id, unit_id=unit.id)
            logger.info(f"🔥 Shutting down {unit.name} (heat {unit.current_heat} > {threshold})")
            self.log_decision(player, command, unit.id, reasoning=f"heat {unit.current_heat}",
                              score=unit.current_heat)
            await self.game.shutdown_unit(command)
