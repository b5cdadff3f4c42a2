"""
Weapons Engine

Declares one unit's weapon attack per call.

Flow:
1. Pick the first unit that can still fire and has a position
2. Rank targets with the tactical evaluator (reusing movement-phase results
   through the turn cache when available)
3. If the best stance is a torso twist not applied yet, apply it and stop;
   the attack is declared on the next call
4. Fire the best weapons at the best target within the heat budget, holding
   back low-ammo weapons unless the shot is likely to land

Every failure path ends in an empty declaration rather than an error, so one
bad evaluation never stalls the attack phase.
"""

import logging
from typing import List, Optional

from ..commands import WeaponAttackDeclarationCommand, WeaponConfigurationCommand, WeaponTargetData
from ..evaluators.base import ConfigurationScore, WeaponEvaluationData
from ..evaluators.tactical_evaluator import TacticalEvaluator
from ..exceptions import BotDecisionException
from ..models import MovementPath, WeaponConfiguration, WeaponConfigurationType
from ..strategy_config import get_config
from ..turn_state import TurnState
from .base import DecisionEngine

logger = logging.getLogger(__name__)

DEFAULT_HEAT_MARGIN = 5
DEFAULT_AMMO_CONSERVATION_FACTOR = 3.0


class WeaponsEngine(DecisionEngine):
    """Decision engine for the weapons attack phase"""

    def __init__(self, game, tactical_evaluator: Optional[TacticalEvaluator] = None):
        super().__init__(game, "WeaponsEngine")
        self.tactical_evaluator = tactical_evaluator or TacticalEvaluator(game)

    async def make_decision(self, player, turn_state: Optional[TurnState] = None):
        try:
            attacker = next((u for u in player.alive_units
                             if u.can_fire_weapons and not u.has_declared_weapon_attack
                             and u.position is not None), None)
            if attacker is None:
                await self._skip_turn(player)
                return

            enemies = self.enemy_units(player)
            attacker_path = attacker.movement_taken or MovementPath.standing_still(attacker.position)
            target_scores = self.tactical_evaluator.evaluate_targets(attacker, attacker_path, enemies, turn_state)

            if not target_scores:
                await self._declare(player, attacker, [], "no target in range and sight")
                return

            # Best stance across every target
            best_target, best_configuration = None, None
            for target_score in target_scores:
                for configuration_score in target_score.configuration_scores:
                    if best_configuration is None or configuration_score.score > best_configuration.score:
                        best_target, best_configuration = target_score, configuration_score

            if best_configuration is None or best_configuration.score <= 0:
                await self._declare(player, attacker, [], "no viable attack")
                return

            target = next((e for e in enemies if e.id == best_target.target_id), None)
            if target is None:
                await self._declare(player, attacker, [], f"target {best_target.target_id} no longer available")
                return

            configuration = best_configuration.configuration
            if (configuration.type != WeaponConfigurationType.NONE
                    and not attacker.is_weapon_configuration_applied(configuration)):
                logger.info(f"🔄 {attacker.name}: applying {configuration.type.value} to "
                            f"{configuration.facing.name} to engage {target.name}")
                await self._configure_weapons(player, attacker, configuration)
                return

            logger.info(f"🎯 {attacker.name} targets {target.name} (score {best_configuration.score:.2f})")

            selected = self.select_weapons(attacker, best_configuration)
            weapon_targets = [
                WeaponTargetData(
                    weapon_name=evaluation.weapon.name,
                    weapon_location=evaluation.weapon.mount_location,
                    target_id=target.id,
                    is_primary_target=True,
                )
                for evaluation in selected
            ]
            await self._declare(player, attacker, weapon_targets,
                                f"{len(weapon_targets)}/{len(best_configuration.viable_weapons)} weapons "
                                f"at {target.name}", best_configuration.score)

        except BotDecisionException:
            raise
        except Exception as e:
            logger.error(f"❌ WeaponsEngine error for player {player.name}: {e}", exc_info=True)
            await self._skip_turn(player)

    # =========================================================================
    # WEAPON SELECTION
    # =========================================================================

    def _remaining_shots_key(self, attacker, evaluation: WeaponEvaluationData) -> float:
        if not evaluation.weapon.requires_ammo:
            return float('inf')
        return attacker.get_remaining_ammo_shots(evaluation.weapon)

    def select_weapons(self, attacker, configuration_score: ConfigurationScore) -> List[WeaponEvaluationData]:
        """
        Greedy heat-bounded selection.

        Weapons are tried by hit probability, then damage, then remaining
        ammo (weapons without ammo first). A weapon that would push the heat
        over the margin is skipped, cheaper ones after it may still fit.
        """
        heat_margin = get_config().get('weapons', 'heat_margin', DEFAULT_HEAT_MARGIN)
        projected_heat = attacker.get_projected_heat_value(self.game.rules_provider)
        heat_dissipation = attacker.heat_dissipation

        candidates = sorted(
            (w for w in configuration_score.viable_weapons if w.hit_probability > 0),
            key=lambda w: (-w.hit_probability, -w.weapon.damage, -self._remaining_shots_key(attacker, w)),
        )

        selected: List[WeaponEvaluationData] = []
        selected_heat = 0
        for evaluation in candidates:
            next_heat = selected_heat + evaluation.weapon.heat
            if projected_heat + next_heat - heat_dissipation > heat_margin:
                logger.debug(f"  skip {evaluation.weapon.name}: heat {projected_heat + next_heat} "
                             f"over dissipation {heat_dissipation} + margin {heat_margin}")
                continue
            if not self.is_firing_justified(attacker, evaluation):
                logger.debug(f"  hold {evaluation.weapon.name}: p={evaluation.hit_probability:.2f} too low for ammo left")
                continue
            selected.append(evaluation)
            selected_heat = next_heat

        return selected

    def is_firing_justified(self, attacker, evaluation: WeaponEvaluationData) -> bool:
        """Ammo conservation: the fewer shots left, the surer the hit must be"""
        if not evaluation.weapon.requires_ammo:
            return True

        remaining_shots = attacker.get_remaining_ammo_shots(evaluation.weapon)
        if remaining_shots <= 0:
            return False

        factor = get_config().get('weapons', 'ammo_conservation_factor', DEFAULT_AMMO_CONSERVATION_FACTOR)
        required = min(1.0, max(0.0, factor / (remaining_shots + factor)))
        return evaluation.hit_probability >= required

    # =========================================================================
    # COMMANDS
    # =========================================================================

    async def _declare(self, player, unit, weapon_targets: List[WeaponTargetData], reasoning: str,
                       score: Optional[float] = None):
        command = WeaponAttackDeclarationCommand(
            game_origin_id=self.game.id,
            player_id=player.id,
            unit_id=unit.id,
            weapon_targets=weapon_targets,
        )
        if not weapon_targets:
            logger.info(f"🚫 {unit.name} holds fire ({reasoning})")
        self.log_decision(player, command, unit.id, reasoning=reasoning, score=score)
        await self.game.declare_weapon_attack(command)

    async def _skip_turn(self, player):
        """Empty declaration for any unit still to declare"""
        unit = next((u for u in player.alive_units if not u.has_declared_weapon_attack), None)
        if unit is None:
            raise BotDecisionException(f"No units available for player {player.name}", self.name, player.id)
        await self._declare(player, unit, [], "skipping")

    async def _configure_weapons(self, player, unit, configuration: WeaponConfiguration):
        command = WeaponConfigurationCommand(
            game_origin_id=self.game.id,
            player_id=player.id,
            unit_id=unit.id,
            configuration=configuration,
        )
        self.log_decision(player, command, unit.id, reasoning="torso twist before firing")
        await self.game.configure_unit_weapons(command)
