"""
External Interfaces - what the bot reads from and writes to.

The rules engine, the hex map, the to-hit calculator and the command
transport all live outside this package. The decision engines only see the
narrow surfaces below: read-only views of players, units and weapons, a map
that answers reachability/path/line-of-sight questions, and a game session
whose async command methods publish the bot's decisions.

Key principle: engines never mutate these objects. The only write path is
awaiting one of the ClientGame command methods.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence, Set, Tuple

from .commands import (
    DeployUnitCommand,
    GameCommand,
    MoveUnitCommand,
    ShutdownUnitCommand,
    StartupUnitCommand,
    TryStandupCommand,
    TurnEndedCommand,
    WeaponAttackDeclarationCommand,
    WeaponConfigurationCommand,
)
from .models import (
    AttackScenario,
    HexCoordinates,
    HexDirection,
    HexPosition,
    MovementPath,
    MovementType,
    PartLocation,
    WeaponConfiguration,
)


class PlayerControlType(Enum):
    HUMAN = "Human"
    BOT = "Bot"


class WeaponView(ABC):
    """A mounted weapon as the bot sees it"""

    name: str
    damage: int
    heat: int
    minimum_range: int
    long_range: int
    weapon_type: str  # "Energy", "Ballistic", "Missile"
    clusters: int
    cluster_size: int
    mount_location: Optional[PartLocation]
    is_rear_mounted: bool
    requires_ammo: bool
    is_available: bool


class PilotView(ABC):
    gunnery: int
    piloting: int
    is_conscious: bool


class UnitView(ABC):
    """Read-only surface of a unit"""

    id: Any
    name: str
    position: Optional[HexPosition]
    pilot: Optional[PilotView]
    weapons: Sequence[WeaponView]
    movement_taken: Optional[MovementPath]
    is_deployed: bool
    is_destroyed: bool
    has_moved: bool
    is_immobile: bool
    is_prone: bool
    is_shutdown: bool
    can_fire_weapons: bool
    has_declared_weapon_attack: bool
    current_heat: int
    heat_dissipation: int

    @abstractmethod
    def get_movement_points(self, movement_type: MovementType) -> int:
        pass

    @abstractmethod
    def can_stand_up(self) -> bool:
        pass

    @abstractmethod
    def get_projected_heat_value(self, rules_provider: Any) -> int:
        """Heat the unit will carry into the heat phase before firing anything"""
        pass

    @abstractmethod
    def get_remaining_ammo_shots(self, weapon: WeaponView) -> int:
        pass

    @abstractmethod
    def get_attack_modifiers(self, location: PartLocation) -> Tuple[Any, ...]:
        pass

    @abstractmethod
    def torso_rotation_directions(self, position: HexPosition) -> List[HexDirection]:
        """Torso facings reachable from `position` (empty if the unit cannot twist)"""
        pass

    @abstractmethod
    def is_weapon_configuration_applied(self, configuration: WeaponConfiguration) -> bool:
        pass


class PlayerView(ABC):
    id: Any
    name: str
    control_type: PlayerControlType
    units: Sequence[UnitView]
    alive_units: Sequence[UnitView]


class BattleMap(ABC):
    width: int
    height: int

    @abstractmethod
    def get_reachable_hexes(self, start: HexPosition, movement_points: int,
                            blocked_hexes: Set[HexCoordinates]) -> List[Tuple[HexCoordinates, int]]:
        """Hexes reachable within `movement_points`, with their cheapest cost"""
        pass

    @abstractmethod
    def find_path(self, start: HexPosition, destination: HexPosition, movement_type: MovementType,
                  movement_points: int, blocked_hexes: Set[HexCoordinates]) -> Optional[MovementPath]:
        pass

    @abstractmethod
    def has_line_of_sight(self, origin: HexCoordinates, target: HexCoordinates) -> bool:
        pass


class ToHitCalculator(ABC):
    @abstractmethod
    def get_to_hit_number(self, scenario: AttackScenario, weapon: WeaponView, battle_map: BattleMap) -> int:
        """2d6 target number for the attack; values above 12 mean impossible"""
        pass


class ClientGame(ABC):
    """The game session a bot is bound to"""

    id: Any
    turn: int
    players: Sequence[PlayerView]
    battle_map: Optional[BattleMap]
    to_hit_calculator: ToHitCalculator
    rules_provider: Any

    @abstractmethod
    def subscribe(self, callback: Callable[[GameCommand], None]) -> Callable[[], None]:
        """Register for server commands; returns the unsubscribe function"""
        pass

    @abstractmethod
    async def deploy_unit(self, command: DeployUnitCommand) -> None:
        pass

    @abstractmethod
    async def move_unit(self, command: MoveUnitCommand) -> None:
        pass

    @abstractmethod
    async def try_standup_unit(self, command: TryStandupCommand) -> None:
        pass

    @abstractmethod
    async def configure_unit_weapons(self, command: WeaponConfigurationCommand) -> None:
        pass

    @abstractmethod
    async def declare_weapon_attack(self, command: WeaponAttackDeclarationCommand) -> None:
        pass

    @abstractmethod
    async def shutdown_unit(self, command: ShutdownUnitCommand) -> None:
        pass

    @abstractmethod
    async def startup_unit(self, command: StartupUnitCommand) -> None:
        pass

    @abstractmethod
    async def end_turn(self, command: TurnEndedCommand) -> None:
        pass
