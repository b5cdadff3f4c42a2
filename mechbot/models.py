"""
Data models for the mech bot.

Value types shared by the evaluators and decision engines: hex positions,
movement paths, weapon configurations and the enums the game talks in.
Everything here is created per decision call and thrown away afterwards.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class HexDirection(Enum):
    """Hexside a unit can face, clockwise from the top of a flat-topped hex"""
    TOP = 0
    TOP_RIGHT = 1
    BOTTOM_RIGHT = 2
    BOTTOM = 3
    BOTTOM_LEFT = 4
    TOP_LEFT = 5

    def rotate(self, steps: int) -> 'HexDirection':
        """Direction after turning `steps` hexsides clockwise (negative = counter-clockwise)"""
        return HexDirection((self.value + steps) % 6)

    @property
    def opposite(self) -> 'HexDirection':
        return self.rotate(3)


class MovementType(Enum):
    """How a unit moved (or will move) this turn"""
    STANDING_STILL = "StandingStill"
    WALK = "Walk"
    RUN = "Run"
    JUMP = "Jump"


class FiringArc(Enum):
    """Facing-relative zone around a hex"""
    FRONT = "Front"
    LEFT = "Left"
    RIGHT = "Right"
    REAR = "Rear"


class PartLocation(Enum):
    """Where on a mech a component is mounted"""
    HEAD = "Head"
    CENTER_TORSO = "CenterTorso"
    LEFT_TORSO = "LeftTorso"
    RIGHT_TORSO = "RightTorso"
    LEFT_ARM = "LeftArm"
    RIGHT_ARM = "RightArm"
    LEFT_LEG = "LeftLeg"
    RIGHT_LEG = "RightLeg"

    @property
    def is_leg(self) -> bool:
        return self in (PartLocation.LEFT_LEG, PartLocation.RIGHT_LEG)

    @property
    def rotates_with_torso(self) -> bool:
        """Torso twist turns everything above the hips; legs keep the leg facing"""
        return not self.is_leg


class WeaponConfigurationType(Enum):
    NONE = "None"
    TORSO_ROTATION = "TorsoRotation"


@dataclass(frozen=True)
class WeaponConfiguration:
    """
    A stance a unit adopts before firing.

    `value` is a HexDirection value: the leg facing for NONE, the torso
    facing for TORSO_ROTATION.
    """
    type: WeaponConfigurationType = WeaponConfigurationType.NONE
    value: int = 0

    @property
    def facing(self) -> HexDirection:
        return HexDirection(self.value)

    def to_data(self) -> Dict[str, Any]:
        return {"type": self.type.value, "value": self.value}


class UnitTacticalRole(Enum):
    """Heuristic role labels used to order movement"""
    LRM_BOAT = "LrmBoat"
    SCOUT = "Scout"
    JUMPER = "Jumper"
    BRAWLER = "Brawler"
    TROOPER = "Trooper"


class PhaseNames(Enum):
    START = "Start"
    DEPLOYMENT = "Deployment"
    INITIATIVE = "Initiative"
    MOVEMENT = "Movement"
    WEAPONS_ATTACK = "WeaponsAttack"
    WEAPONS_ATTACK_RESOLUTION = "WeaponsAttackResolution"
    PHYSICAL_ATTACK = "PhysicalAttack"
    HEAT = "Heat"
    END = "End"


class MovementPhase(Enum):
    """How far into the movement phase the bot's side is"""
    EARLY = "early"
    MID = "mid"
    LATE = "late"


@dataclass(frozen=True)
class MovementPhaseState:
    enemy_units_remaining: int
    friendly_units_remaining: int
    phase: MovementPhase


@dataclass(frozen=True)
class HexCoordinates:
    """
    1-based offset coordinates of a flat-topped hex.

    `q` is the column, `r` the row. Odd columns sit half a hex lower than
    even ones.
    """
    q: int
    r: int

    # Cube deltas per HexDirection value
    _CUBE_DIRECTIONS = (
        (0, 1, -1),   # TOP
        (1, 0, -1),   # TOP_RIGHT
        (1, -1, 0),   # BOTTOM_RIGHT
        (0, -1, 1),   # BOTTOM
        (-1, 0, 1),   # BOTTOM_LEFT
        (-1, 1, 0),   # TOP_LEFT
    )

    def to_cube(self) -> Tuple[int, int, int]:
        x = self.q
        z = self.r - (self.q - (self.q & 1)) // 2
        return x, -x - z, z

    @classmethod
    def from_cube(cls, x: int, y: int, z: int) -> 'HexCoordinates':
        return cls(x, z + (x - (x & 1)) // 2)

    def distance_to(self, other: 'HexCoordinates') -> int:
        ax, ay, az = self.to_cube()
        bx, by, bz = other.to_cube()
        return max(abs(ax - bx), abs(ay - by), abs(az - bz))

    def neighbour(self, direction: HexDirection) -> 'HexCoordinates':
        x, y, z = self.to_cube()
        dx, dy, dz = self._CUBE_DIRECTIONS[direction.value]
        return HexCoordinates.from_cube(x + dx, y + dy, z + dz)

    def neighbours(self) -> List['HexCoordinates']:
        return [self.neighbour(d) for d in HexDirection]

    def direction_to_neighbour(self, other: 'HexCoordinates') -> HexDirection:
        for direction in HexDirection:
            if self.neighbour(direction) == other:
                return direction
        raise ValueError(f"{other} is not adjacent to {self}")

    def to_data(self) -> Dict[str, int]:
        return {"q": self.q, "r": self.r}

    def __str__(self):
        return f"({self.q:02d},{self.r:02d})"


@dataclass(frozen=True)
class HexPosition:
    coordinates: HexCoordinates
    facing: HexDirection = HexDirection.TOP

    def with_facing(self, facing: HexDirection) -> 'HexPosition':
        return HexPosition(self.coordinates, facing)

    def to_data(self) -> Dict[str, Any]:
        return {"coordinates": self.coordinates.to_data(), "facing": self.facing.value}

    def __str__(self):
        return f"{self.coordinates} facing {self.facing.name}"


@dataclass(frozen=True)
class PathSegment:
    from_position: HexPosition
    to_position: HexPosition
    cost: int

    def to_data(self) -> Dict[str, Any]:
        return {
            "from": self.from_position.to_data(),
            "to": self.to_position.to_data(),
            "cost": self.cost,
        }


@dataclass
class MovementPath:
    """Ordered segments plus the movement mode used to walk them"""
    segments: List[PathSegment] = field(default_factory=list)
    movement_type: MovementType = MovementType.WALK

    @classmethod
    def standing_still(cls, position: HexPosition) -> 'MovementPath':
        """Zero-cost path that starts and ends at `position`"""
        return cls([PathSegment(position, position, 0)], MovementType.STANDING_STILL)

    @property
    def start(self) -> Optional[HexPosition]:
        return self.segments[0].from_position if self.segments else None

    @property
    def destination(self) -> Optional[HexPosition]:
        return self.segments[-1].to_position if self.segments else None

    @property
    def total_cost(self) -> int:
        return sum(s.cost for s in self.segments)

    @property
    def hexes(self) -> List[HexCoordinates]:
        """Distinct hexes visited, start included"""
        if not self.segments:
            return []
        visited = [self.segments[0].from_position.coordinates]
        for segment in self.segments:
            if segment.to_position.coordinates not in visited:
                visited.append(segment.to_position.coordinates)
        return visited

    @property
    def hexes_traveled(self) -> int:
        """Hexes entered after leaving the start hex"""
        return max(len(self.hexes) - 1, 0)

    def to_data(self) -> List[Dict[str, Any]]:
        return [s.to_data() for s in self.segments]


@dataclass(frozen=True)
class AttackScenario:
    """A hypothetical attack handed to the to-hit calculator"""
    attacker_gunnery: int
    attacker_position: HexPosition
    attacker_movement_type: MovementType
    attacker_facing: HexDirection
    target_position: HexPosition
    target_hexes_moved: int
    attacker_modifiers: Tuple[Any, ...] = ()
