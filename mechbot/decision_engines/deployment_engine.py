"""
Deployment Engine

Places one undeployed unit per call on the map border.

Strategy:
- The first undeployed unit in the player's list goes first
- It takes the first free border hex in map-scan order
- It faces the nearest deployed enemy, or the map centre if none is down yet

Deployment is best-effort: if anything goes wrong the call is a no-op and
the orchestrator simply asks again.
"""

import logging
from typing import Optional

from ..commands import DeployUnitCommand
from ..hexgrid import border_hexes, center_hex, direction_towards
from ..models import HexCoordinates, HexDirection
from ..turn_state import TurnState
from .base import DecisionEngine

logger = logging.getLogger(__name__)


class DeploymentEngine(DecisionEngine):
    """Decision engine for the deployment phase"""

    def __init__(self, game):
        super().__init__(game, "DeploymentEngine")

    async def make_decision(self, player, turn_state: Optional[TurnState] = None):
        try:
            unit = next((u for u in player.units if not u.is_deployed), None)
            if unit is None:
                logger.debug(f"🚩 {player.name}: no units left to deploy")
                return

            battle_map = self.game.battle_map
            if battle_map is None:
                logger.warning(f"🚩 {player.name}: no battle map, cannot deploy {unit.name}")
                return

            occupied = self.occupied_hexes()
            free_hexes = [h for h in border_hexes(battle_map.width, battle_map.height) if h not in occupied]
            if not free_hexes:
                logger.warning(f"🚩 {player.name}: no free border hex for {unit.name}")
                return

            coordinates = free_hexes[0]
            direction = self._deployment_facing(player, coordinates)

            command = DeployUnitCommand(
                game_origin_id=self.game.id,
                player_id=player.id,
                unit_id=unit.id,
                position=coordinates,
                direction=direction,
            )
            logger.info(f"🚩 Deploying {unit.name} at {coordinates} facing {direction.name}")
            self.log_decision(player, command, unit.id,
                              reasoning=f"first free border hex of {len(free_hexes)}")
            await self.game.deploy_unit(command)

        except Exception as e:
            logger.error(f"❌ DeploymentEngine error for player {player.name}: {e}", exc_info=True)

    def _deployment_facing(self, player, coordinates: HexCoordinates) -> HexDirection:
        """Face the closest deployed enemy, else the centre of the map"""
        enemies = self.enemy_units(player)
        if enemies:
            nearest = min(enemies, key=lambda u: coordinates.distance_to(u.position.coordinates))
            target = nearest.position.coordinates
        else:
            target = center_hex(self.game.battle_map.width, self.game.battle_map.height)

        if target == coordinates:
            return HexDirection.TOP
        return direction_towards(coordinates, target)
