"""
Sandbox - a small in-memory game for driving the bots.

Implements the external interfaces just well enough to play the bot's
phases end to end:
- SandboxMap: open rectangular map, uniform movement cost, blocking hexes
  for line of sight
- SandboxToHitCalculator: gunnery + range band + movement modifiers
- SandboxGame: records every command it receives and applies the obvious
  state change (deployed, moved, declared, shut down...)

It is a reference collaborator for tests and tools/run_sandbox_game.py, not
a rules engine: no damage, no piloting rolls, no terrain.
"""

import logging
import math
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Tuple

from .commands import (
    ChangeActivePlayerCommand,
    ChangePhaseCommand,
    DeployUnitCommand,
    GameCommand,
    MoveUnitCommand,
    ShutdownUnitCommand,
    StartupUnitCommand,
    TryStandupCommand,
    TurnEndedCommand,
    TurnIncrementedCommand,
    WeaponAttackDeclarationCommand,
    WeaponConfigurationCommand,
)
from .hexgrid import line_to
from .interfaces import (
    BattleMap,
    ClientGame,
    PilotView,
    PlayerControlType,
    PlayerView,
    ToHitCalculator,
    UnitView,
    WeaponView,
)
from .models import (
    AttackScenario,
    HexCoordinates,
    HexDirection,
    HexPosition,
    MovementPath,
    MovementType,
    PartLocation,
    PathSegment,
    PhaseNames,
    WeaponConfiguration,
    WeaponConfigurationType,
)

logger = logging.getLogger(__name__)

IMPOSSIBLE_TO_HIT = 13
MAX_ACTIVATIONS_PER_PLAYER = 20


# =============================================================================
# UNITS
# =============================================================================

@dataclass
class SandboxWeapon(WeaponView):
    name: str
    damage: int
    heat: int
    long_range: int
    minimum_range: int = 0
    weapon_type: str = "Energy"
    clusters: int = 1
    cluster_size: int = 1
    mount_location: Optional[PartLocation] = PartLocation.CENTER_TORSO
    is_rear_mounted: bool = False
    requires_ammo: bool = False
    is_available: bool = True


@dataclass
class SandboxPilot(PilotView):
    gunnery: int = 4
    piloting: int = 5
    is_conscious: bool = True


@dataclass
class SandboxUnit(UnitView):
    id: Any
    name: str
    walk_mp: int
    weapons: List[SandboxWeapon] = field(default_factory=list)
    jump_mp: int = 0
    pilot: Optional[SandboxPilot] = field(default_factory=SandboxPilot)
    position: Optional[HexPosition] = None
    movement_taken: Optional[MovementPath] = None
    ammo: Dict[str, int] = field(default_factory=dict)  # weapon name -> shots
    heat_dissipation: int = 10
    current_heat: int = 0
    can_twist_torso: bool = True
    torso_facing: Optional[HexDirection] = None
    is_deployed: bool = False
    is_destroyed: bool = False
    has_moved: bool = False
    is_immobile: bool = False
    is_prone: bool = False
    is_shutdown: bool = False
    has_declared_weapon_attack: bool = False

    @property
    def run_mp(self) -> int:
        return math.ceil(self.walk_mp * 1.5)

    @property
    def can_fire_weapons(self) -> bool:
        return (self.is_deployed and not self.is_destroyed and not self.is_shutdown
                and self.pilot is not None and self.pilot.is_conscious)

    def get_movement_points(self, movement_type: MovementType) -> int:
        if self.is_immobile or self.is_shutdown:
            return 0
        if movement_type == MovementType.WALK:
            return self.walk_mp
        if movement_type == MovementType.RUN:
            return self.run_mp
        if movement_type == MovementType.JUMP:
            return self.jump_mp
        return 0

    def can_stand_up(self) -> bool:
        return (self.is_prone and not self.is_shutdown and self.walk_mp > 0
                and self.pilot is not None and self.pilot.is_conscious)

    def get_projected_heat_value(self, rules_provider: Any) -> int:
        """Current heat plus what this turn's movement adds"""
        movement_heat = 0
        if self.movement_taken is not None:
            if self.movement_taken.movement_type == MovementType.WALK:
                movement_heat = 1
            elif self.movement_taken.movement_type == MovementType.RUN:
                movement_heat = 2
            elif self.movement_taken.movement_type == MovementType.JUMP:
                movement_heat = max(3, self.movement_taken.hexes_traveled)
        return self.current_heat + movement_heat

    def get_remaining_ammo_shots(self, weapon: WeaponView) -> int:
        return self.ammo.get(weapon.name, 0)

    def get_attack_modifiers(self, location: PartLocation) -> Tuple[Any, ...]:
        return ()

    def torso_rotation_directions(self, position: HexPosition) -> List[HexDirection]:
        if not self.can_twist_torso:
            return []
        return [position.facing.rotate(-1), position.facing.rotate(1)]

    def is_weapon_configuration_applied(self, configuration: WeaponConfiguration) -> bool:
        if configuration.type == WeaponConfigurationType.NONE:
            return True
        return self.torso_facing == configuration.facing

    def reset_turn(self):
        self.has_moved = False
        self.has_declared_weapon_attack = False
        self.movement_taken = None
        self.torso_facing = None
        self.current_heat = max(0, self.current_heat - self.heat_dissipation)


@dataclass
class SandboxPlayer(PlayerView):
    id: Any
    name: str
    units: List[SandboxUnit] = field(default_factory=list)
    control_type: PlayerControlType = PlayerControlType.BOT

    @property
    def alive_units(self) -> List[SandboxUnit]:
        return [u for u in self.units if not u.is_destroyed]


# =============================================================================
# MAP AND TO-HIT
# =============================================================================

class SandboxMap(BattleMap):
    """
    Open rectangular map.

    Entering a hex or turning one hexside costs 1 MP. Jumps cost the hex
    distance and may land in any facing. Hexes in `blocking_hexes` block
    line of sight through them (not into them).
    """

    def __init__(self, width: int, height: int, blocking_hexes: Sequence[HexCoordinates] = ()):
        self.width = width
        self.height = height
        self.blocking_hexes: Set[HexCoordinates] = set(blocking_hexes)
        self._last_search: Optional[Tuple[Any, Dict[HexPosition, Optional[HexPosition]]]] = None

    def contains(self, coordinates: HexCoordinates) -> bool:
        return 1 <= coordinates.q <= self.width and 1 <= coordinates.r <= self.height

    def get_reachable_hexes(self, start: HexPosition, movement_points: int,
                            blocked_hexes: Set[HexCoordinates]) -> List[Tuple[HexCoordinates, int]]:
        costs = {start.coordinates: 0}
        queue = deque([start.coordinates])
        while queue:
            current = queue.popleft()
            if costs[current] >= movement_points:
                continue
            for neighbour in current.neighbours():
                if neighbour in costs or not self.contains(neighbour) or neighbour in blocked_hexes:
                    continue
                costs[neighbour] = costs[current] + 1
                queue.append(neighbour)
        return list(costs.items())

    def find_path(self, start: HexPosition, destination: HexPosition, movement_type: MovementType,
                  movement_points: int, blocked_hexes: Set[HexCoordinates]) -> Optional[MovementPath]:
        if not self.contains(destination.coordinates) or destination.coordinates in blocked_hexes:
            return None

        if movement_type == MovementType.JUMP:
            distance = start.coordinates.distance_to(destination.coordinates)
            if distance == 0 or distance > movement_points:
                return None
            return MovementPath([PathSegment(start, destination, distance)], movement_type)

        previous = self._search(start, movement_points, blocked_hexes)
        if destination not in previous:
            return None

        segments = []
        current = destination
        while previous[current] is not None:
            segments.append(PathSegment(previous[current], current, 1))
            current = previous[current]
        segments.reverse()
        return MovementPath(segments, movement_type)

    def _search(self, start: HexPosition, movement_points: int,
                blocked_hexes: Set[HexCoordinates]) -> Dict[HexPosition, Optional[HexPosition]]:
        """Breadth-first tree over (hex, facing); every step costs 1. The last tree is reused."""
        key = (start, movement_points, frozenset(blocked_hexes))
        if self._last_search is not None and self._last_search[0] == key:
            return self._last_search[1]

        previous: Dict[HexPosition, Optional[HexPosition]] = {start: None}
        depth = {start: 0}
        queue = deque([start])
        while queue:
            current = queue.popleft()
            if depth[current] >= movement_points:
                continue
            forward = current.coordinates.neighbour(current.facing)
            steps = [current.with_facing(current.facing.rotate(-1)),
                     current.with_facing(current.facing.rotate(1))]
            if self.contains(forward) and forward not in blocked_hexes:
                steps.append(HexPosition(forward, current.facing))
            for step in steps:
                if step not in previous:
                    previous[step] = current
                    depth[step] = depth[current] + 1
                    queue.append(step)

        self._last_search = (key, previous)
        return previous

    def has_line_of_sight(self, origin: HexCoordinates, target: HexCoordinates) -> bool:
        return not any(h in self.blocking_hexes for h in line_to(origin, target)[1:-1])


class SandboxToHitCalculator(ToHitCalculator):
    """Gunnery + range band + attacker movement + target movement"""

    ATTACKER_MOVEMENT = {
        MovementType.STANDING_STILL: 0,
        MovementType.WALK: 1,
        MovementType.RUN: 2,
        MovementType.JUMP: 3,
    }

    @staticmethod
    def target_movement_modifier(hexes_moved: int) -> int:
        if hexes_moved <= 2:
            return 0
        if hexes_moved <= 4:
            return 1
        if hexes_moved <= 6:
            return 2
        if hexes_moved <= 9:
            return 3
        return 4

    @staticmethod
    def range_modifier(weapon: WeaponView, distance: int) -> Optional[int]:
        if distance > weapon.long_range:
            return None
        band = max(weapon.long_range / 3.0, 1.0)
        if distance <= band:
            modifier = 0
        elif distance <= 2 * band:
            modifier = 2
        else:
            modifier = 4
        if distance <= weapon.minimum_range:
            modifier += weapon.minimum_range - distance + 1
        return modifier

    def get_to_hit_number(self, scenario: AttackScenario, weapon: WeaponView, battle_map: BattleMap) -> int:
        distance = scenario.attacker_position.coordinates.distance_to(scenario.target_position.coordinates)
        range_modifier = self.range_modifier(weapon, distance)
        if range_modifier is None:
            return IMPOSSIBLE_TO_HIT
        if not battle_map.has_line_of_sight(scenario.attacker_position.coordinates,
                                            scenario.target_position.coordinates):
            return IMPOSSIBLE_TO_HIT

        return (scenario.attacker_gunnery
                + range_modifier
                + self.ATTACKER_MOVEMENT[scenario.attacker_movement_type]
                + self.target_movement_modifier(scenario.target_hexes_moved)
                + sum(m for m in scenario.attacker_modifiers if isinstance(m, int)))


# =============================================================================
# GAME
# =============================================================================

class SandboxGame(ClientGame):
    """In-memory game session that applies the commands it receives"""

    def __init__(self, game_id: Any, players: List[SandboxPlayer], battle_map: Optional[SandboxMap],
                 to_hit_calculator: Optional[ToHitCalculator] = None):
        self.id = game_id
        self.turn = 1
        self.players = players
        self.battle_map = battle_map
        self.to_hit_calculator = to_hit_calculator or SandboxToHitCalculator()
        self.rules_provider = None
        self.issued_commands: List[GameCommand] = []
        self._subscribers: List[Callable[[GameCommand], None]] = []
        self._turn_ended: Set[Any] = set()

    # Server side

    def subscribe(self, callback: Callable[[GameCommand], None]) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, command: GameCommand):
        for callback in list(self._subscribers):
            callback(command)

    def find_unit(self, unit_id: Any) -> SandboxUnit:
        for player in self.players:
            for unit in player.units:
                if unit.id == unit_id:
                    return unit
        raise KeyError(f"Unknown unit {unit_id}")

    def commands_of_type(self, command_type: type) -> List[GameCommand]:
        return [c for c in self.issued_commands if isinstance(c, command_type)]

    # Client commands

    async def deploy_unit(self, command: DeployUnitCommand) -> None:
        self.issued_commands.append(command)
        unit = self.find_unit(command.unit_id)
        unit.position = HexPosition(command.position, command.direction)
        unit.is_deployed = True

    async def move_unit(self, command: MoveUnitCommand) -> None:
        self.issued_commands.append(command)
        unit = self.find_unit(command.unit_id)
        if command.movement_path:
            unit.movement_taken = MovementPath(list(command.movement_path), command.movement_type)
            unit.position = command.movement_path[-1].to_position
        else:
            unit.movement_taken = MovementPath.standing_still(unit.position)
        unit.has_moved = True

    async def try_standup_unit(self, command: TryStandupCommand) -> None:
        self.issued_commands.append(command)
        unit = self.find_unit(command.unit_id)
        unit.is_prone = False
        unit.position = unit.position.with_facing(command.new_facing)

    async def configure_unit_weapons(self, command: WeaponConfigurationCommand) -> None:
        self.issued_commands.append(command)
        unit = self.find_unit(command.unit_id)
        unit.torso_facing = command.configuration.facing

    async def declare_weapon_attack(self, command: WeaponAttackDeclarationCommand) -> None:
        self.issued_commands.append(command)
        unit = self.find_unit(command.unit_id)
        fired = {wt.weapon_name for wt in command.weapon_targets}
        for weapon in unit.weapons:
            if weapon.name in fired:
                unit.current_heat += weapon.heat
                if weapon.requires_ammo:
                    unit.ammo[weapon.name] = max(0, unit.ammo.get(weapon.name, 0) - 1)
        unit.has_declared_weapon_attack = True

    async def shutdown_unit(self, command: ShutdownUnitCommand) -> None:
        self.issued_commands.append(command)
        self.find_unit(command.unit_id).is_shutdown = True

    async def startup_unit(self, command: StartupUnitCommand) -> None:
        self.issued_commands.append(command)
        self.find_unit(command.unit_id).is_shutdown = False

    async def end_turn(self, command: TurnEndedCommand) -> None:
        self.issued_commands.append(command)
        self._turn_ended.add(command.player_id)

    # Turn loop

    def _decisions_needed(self, phase: PhaseNames, player: SandboxPlayer) -> int:
        if phase == PhaseNames.DEPLOYMENT:
            return sum(1 for u in player.units if not u.is_deployed)
        if phase == PhaseNames.MOVEMENT:
            return sum(1 for u in player.alive_units if u.is_deployed and not u.has_moved)
        if phase == PhaseNames.WEAPONS_ATTACK:
            return sum(1 for u in player.alive_units if u.is_deployed and not u.has_declared_weapon_attack)
        if phase == PhaseNames.END:
            return 0 if player.id in self._turn_ended else 1
        return 0

    async def play_phase(self, phase: PhaseNames, bots: Sequence):
        """
        Announce `phase`, then activate each player until they have nothing
        left to do. A torso twist or a stand-up attempt uses an activation
        without finishing the unit, so the player is simply activated again.
        """
        self.publish(ChangePhaseCommand(game_origin_id=self.id, phase=phase))
        for player in self.players:
            activations = 0
            while self._decisions_needed(phase, player) > 0:
                if activations >= MAX_ACTIVATIONS_PER_PLAYER:
                    logger.warning(f"⚠️  {player.name} still has work in {phase.value} "
                                   f"after {activations} activations")
                    break
                activations += 1
                self.publish(ChangeActivePlayerCommand(game_origin_id=self.id, player_id=player.id,
                                                       units_to_play=1))
                for bot in bots:
                    await bot.wait_idle()

    def next_turn(self):
        self.turn += 1
        self._turn_ended.clear()
        for player in self.players:
            for unit in player.units:
                unit.reset_turn()
        self.publish(TurnIncrementedCommand(game_origin_id=self.id, turn_number=self.turn))


def create_demo_game(width: int = 15, height: int = 17, game_id: Any = "sandbox") -> SandboxGame:
    """Two bot players, an LRM boat and a brawler each"""

    def lance(prefix: str) -> List[SandboxUnit]:
        return [
            SandboxUnit(
                id=f"{prefix}-lrm", name=f"{prefix} Archer", walk_mp=4,
                weapons=[
                    SandboxWeapon("LRM-20", damage=12, heat=6, long_range=21, minimum_range=6,
                                  weapon_type="Missile", clusters=4, cluster_size=5,
                                  mount_location=PartLocation.LEFT_TORSO, requires_ammo=True),
                    SandboxWeapon("LRM-10", damage=6, heat=4, long_range=21, minimum_range=6,
                                  weapon_type="Missile", clusters=2, cluster_size=5,
                                  mount_location=PartLocation.RIGHT_TORSO, requires_ammo=True),
                    SandboxWeapon("Medium Laser", damage=5, heat=3, long_range=9,
                                  mount_location=PartLocation.LEFT_ARM),
                ],
                ammo={"LRM-20": 6, "LRM-10": 12},
            ),
            SandboxUnit(
                id=f"{prefix}-brawler", name=f"{prefix} Atlas", walk_mp=3,
                weapons=[
                    SandboxWeapon("AC/20", damage=20, heat=7, long_range=9, weapon_type="Ballistic",
                                  mount_location=PartLocation.RIGHT_TORSO, requires_ammo=True),
                    SandboxWeapon("Medium Laser", damage=5, heat=3, long_range=9,
                                  mount_location=PartLocation.LEFT_ARM),
                    SandboxWeapon("Rear Laser", damage=5, heat=3, long_range=9,
                                  mount_location=PartLocation.CENTER_TORSO, is_rear_mounted=True),
                ],
                ammo={"AC/20": 5},
            ),
        ]

    players = [
        SandboxPlayer(id="blue", name="Blue", units=lance("Blue")),
        SandboxPlayer(id="red", name="Red", units=lance("Red")),
    ]
    return SandboxGame(game_id, players, SandboxMap(width, height))
