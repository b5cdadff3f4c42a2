"""
Hex Grid Geometry

Arcs, lines and map-border helpers on top of the HexCoordinates model.

Arcs are measured on hex centres: the bearing from a unit to another hex is
compared with the unit's facing. FRONT covers bearings up to 60 degrees off
the facing, REAR from 120 degrees, LEFT/RIGHT what is in between. Hexes on a
boundary line belong to FRONT or REAR.
"""

import math
from typing import List, Tuple

from .models import FiringArc, HexCoordinates, HexDirection, PartLocation

_EPSILON = 1e-6
_SQRT3 = math.sqrt(3)


def hex_center(coordinates: HexCoordinates) -> Tuple[float, float]:
    """Pixel centre of a hex (unit size, y pointing down)"""
    x = 1.5 * coordinates.q
    y = _SQRT3 * (coordinates.r + 0.5 * (coordinates.q & 1))
    return x, y


def bearing(origin: HexCoordinates, target: HexCoordinates) -> float:
    """Clockwise angle in degrees from straight up to the target's centre"""
    ox, oy = hex_center(origin)
    tx, ty = hex_center(target)
    return math.degrees(math.atan2(tx - ox, -(ty - oy))) % 360.0


def relative_bearing(origin: HexCoordinates, facing: HexDirection, target: HexCoordinates) -> float:
    """Bearing relative to `facing`, in (-180, 180]; negative is to the left"""
    rel = (bearing(origin, target) - facing.value * 60.0) % 360.0
    if rel > 180.0:
        rel -= 360.0
    return rel


def get_arc(origin: HexCoordinates, facing: HexDirection, target: HexCoordinates) -> FiringArc:
    """Which arc of a unit at `origin` facing `facing` the `target` hex lies in"""
    if origin == target:
        return FiringArc.FRONT

    rel = relative_bearing(origin, facing, target)
    if abs(rel) <= 60.0 + _EPSILON:
        return FiringArc.FRONT
    if abs(rel) >= 120.0 - _EPSILON:
        return FiringArc.REAR
    return FiringArc.LEFT if rel < 0 else FiringArc.RIGHT


def weapon_arcs(mount_location: PartLocation, rear_mounted: bool = False) -> Tuple[FiringArc, ...]:
    """
    Arcs a weapon mounted at `mount_location` can fire into.

    Arms swing out to their own side; everything else fires forward, or
    backward when rear-mounted.
    """
    if rear_mounted:
        return (FiringArc.REAR,)
    if mount_location == PartLocation.LEFT_ARM:
        return (FiringArc.FRONT, FiringArc.LEFT)
    if mount_location == PartLocation.RIGHT_ARM:
        return (FiringArc.FRONT, FiringArc.RIGHT)
    return (FiringArc.FRONT,)


def is_in_weapon_arc(origin: HexCoordinates, facing: HexDirection, target: HexCoordinates, weapon) -> bool:
    """Can `weapon`, fired from `origin` with the given facing, reach `target`'s bearing"""
    arcs = weapon_arcs(weapon.mount_location, getattr(weapon, 'is_rear_mounted', False))
    return get_arc(origin, facing, target) in arcs


def line_to(origin: HexCoordinates, target: HexCoordinates) -> List[HexCoordinates]:
    """
    Hexes crossed by the straight line between two hex centres, both ends included.

    Cube interpolation with a small nudge, so lines running exactly along a
    hexside always resolve to the same side.
    """
    distance = origin.distance_to(target)
    if distance == 0:
        return [origin]

    ax, ay, az = origin.to_cube()
    bx, by, bz = target.to_cube()
    ax, ay, az = ax + 1e-6, ay + 2e-6, az - 3e-6

    hexes = []
    for i in range(distance + 1):
        t = i / distance
        hexes.append(_cube_round(ax + (bx - ax) * t, ay + (by - ay) * t, az + (bz - az) * t))
    return hexes


def _cube_round(x: float, y: float, z: float) -> HexCoordinates:
    rx, ry, rz = round(x), round(y), round(z)
    dx, dy, dz = abs(rx - x), abs(ry - y), abs(rz - z)
    if dx > dy and dx > dz:
        rx = -ry - rz
    elif dy > dz:
        ry = -rx - rz
    else:
        rz = -rx - ry
    return HexCoordinates.from_cube(int(rx), int(ry), int(rz))


def direction_towards(origin: HexCoordinates, target: HexCoordinates) -> HexDirection:
    """Facing that points along the first step of the line to `target`"""
    line = line_to(origin, target)
    if len(line) < 2:
        raise ValueError(f"Cannot face {target} from the same hex")
    return origin.direction_to_neighbour(line[1])


def border_hexes(width: int, height: int) -> List[HexCoordinates]:
    """Every hex on the edge of a width x height map, in row-by-row scan order"""
    return [
        HexCoordinates(q, r)
        for r in range(1, height + 1)
        for q in range(1, width + 1)
        if q == 1 or q == width or r == 1 or r == height
    ]


def center_hex(width: int, height: int) -> HexCoordinates:
    return HexCoordinates((width + 1) // 2, (height + 1) // 2)
