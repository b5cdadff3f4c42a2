"""
Game commands.

Client commands are what the bot sends to the game session; server commands
are what the bot listens for. All of them are plain records, the transport
that serialises them lives outside this package.
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, List, Optional

from .models import (
    HexCoordinates,
    HexDirection,
    MovementType,
    PartLocation,
    PathSegment,
    PhaseNames,
    WeaponConfiguration,
)


def _to_data(value: Any) -> Any:
    if hasattr(value, 'to_data'):
        return value.to_data()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple)):
        return [_to_data(v) for v in value]
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


@dataclass
class GameCommand:
    """Common header of every command"""
    game_origin_id: Any = None

    @property
    def command_type(self) -> str:
        return type(self).__name__

    def to_data(self) -> Dict[str, Any]:
        data = {"type": self.command_type}
        for f in fields(self):
            data[f.name] = _to_data(getattr(self, f.name))
        return data


# =============================================================================
# CLIENT COMMANDS (bot -> game)
# =============================================================================

@dataclass
class DeployUnitCommand(GameCommand):
    player_id: Any = None
    unit_id: Any = None
    position: Optional[HexCoordinates] = None
    direction: HexDirection = HexDirection.TOP


@dataclass
class MoveUnitCommand(GameCommand):
    player_id: Any = None
    unit_id: Any = None
    movement_type: MovementType = MovementType.STANDING_STILL
    movement_path: List[PathSegment] = field(default_factory=list)


@dataclass
class TryStandupCommand(GameCommand):
    player_id: Any = None
    unit_id: Any = None
    new_facing: HexDirection = HexDirection.TOP
    movement_type_after_standup: MovementType = MovementType.WALK


@dataclass
class WeaponConfigurationCommand(GameCommand):
    player_id: Any = None
    unit_id: Any = None
    configuration: WeaponConfiguration = field(default_factory=WeaponConfiguration)


@dataclass
class WeaponTargetData:
    """One weapon assigned to one target"""
    weapon_name: str
    weapon_location: Optional[PartLocation]
    target_id: Any
    is_primary_target: bool = True

    def to_data(self) -> Dict[str, Any]:
        return {
            "weapon_name": self.weapon_name,
            "weapon_location": _to_data(self.weapon_location),
            "target_id": _to_data(self.target_id),
            "is_primary_target": self.is_primary_target,
        }


@dataclass
class WeaponAttackDeclarationCommand(GameCommand):
    player_id: Any = None
    unit_id: Any = None
    weapon_targets: List[WeaponTargetData] = field(default_factory=list)


@dataclass
class ShutdownUnitCommand(GameCommand):
    player_id: Any = None
    unit_id: Any = None


@dataclass
class StartupUnitCommand(GameCommand):
    player_id: Any = None
    unit_id: Any = None


@dataclass
class TurnEndedCommand(GameCommand):
    player_id: Any = None


# =============================================================================
# SERVER COMMANDS (game -> bot)
# =============================================================================

@dataclass
class ChangePhaseCommand(GameCommand):
    phase: PhaseNames = PhaseNames.START


@dataclass
class ChangeActivePlayerCommand(GameCommand):
    player_id: Any = None
    units_to_play: int = 0


@dataclass
class TurnIncrementedCommand(GameCommand):
    turn_number: int = 1


@dataclass
class GameEndedCommand(GameCommand):
    reason: str = ""
