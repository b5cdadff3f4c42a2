"""
Tactical role classification.

Decides what kind of unit the movement engine is dealing with, from its
loadout and movement profile:
- LRM boats: enough long-range missile tubes to fight from afar
- Scouts: fast movers
- Brawlers: slow units that need to close in
- Jumpers: mid-speed units with jump jets
- Troopers: everything else
"""

from .models import MovementType, UnitTacticalRole
from .strategy_config import get_config

LRM_BOAT_MIN_TUBES = 20
SCOUT_MIN_WALK = 6
BRAWLER_MAX_WALK = 3


def count_lrm_tubes(unit) -> int:
    """Missile tubes across the unit's available LRM launchers"""
    return sum(
        w.clusters * w.cluster_size
        for w in unit.weapons
        if w.is_available and w.weapon_type == "Missile" and "LRM" in w.name
    )


def get_tactical_role(unit) -> UnitTacticalRole:
    cfg = get_config()
    if count_lrm_tubes(unit) >= cfg.get('unit_roles', 'lrm_boat_min_tubes', LRM_BOAT_MIN_TUBES):
        return UnitTacticalRole.LRM_BOAT

    walk_mp = unit.get_movement_points(MovementType.WALK)
    if walk_mp >= cfg.get('unit_roles', 'scout_min_walk', SCOUT_MIN_WALK):
        return UnitTacticalRole.SCOUT
    if walk_mp <= cfg.get('unit_roles', 'brawler_max_walk', BRAWLER_MAX_WALK):
        return UnitTacticalRole.BRAWLER

    if unit.get_movement_points(MovementType.JUMP) > 0:
        return UnitTacticalRole.JUMPER

    return UnitTacticalRole.TROOPER
