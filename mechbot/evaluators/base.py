"""
Score types produced by the evaluators.

- WeaponEvaluationData: one weapon, its hit chance, the stance it fires from
- ConfigurationScore: every weapon that can fire at a target from one stance
- TargetScore: the best stance against one target
- PositionScore: how good a movement destination is
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional

from ..models import HexPosition, MovementPath, MovementType, WeaponConfiguration


@dataclass
class WeaponEvaluationData:
    weapon: Any
    hit_probability: float
    configuration: WeaponConfiguration = field(default_factory=WeaponConfiguration)

    def __post_init__(self):
        self.hit_probability = max(0.0, min(1.0, self.hit_probability))

    @property
    def expected_damage(self) -> float:
        return self.hit_probability * self.weapon.damage


@dataclass
class ConfigurationScore:
    configuration: WeaponConfiguration
    score: float
    viable_weapons: List[WeaponEvaluationData] = field(default_factory=list)


@dataclass
class TargetScore:
    """
    How much damage the attacker can expect to put on one target.

    `score` and `viable_weapons` describe the best configuration;
    `configuration_scores` keeps every configuration that scored above zero.
    """
    target_id: Any
    score: float
    viable_weapons: List[WeaponEvaluationData] = field(default_factory=list)
    configuration_scores: List[ConfigurationScore] = field(default_factory=list)

    @classmethod
    def from_configurations(cls, target_id: Any, configuration_scores: List[ConfigurationScore]) -> 'TargetScore':
        scoring = [cs for cs in configuration_scores if cs.score > 0]
        if not scoring:
            return cls(target_id=target_id, score=0.0)
        best = max(scoring, key=lambda cs: cs.score)
        return cls(
            target_id=target_id,
            score=best.score,
            viable_weapons=list(best.viable_weapons),
            configuration_scores=scoring,
        )

    @property
    def best_configuration(self) -> Optional[WeaponConfiguration]:
        if not self.configuration_scores:
            return None
        return max(self.configuration_scores, key=lambda cs: cs.score).configuration

    def __repr__(self):
        return f"TargetScore(target={self.target_id}, score={self.score:.2f}, weapons={len(self.viable_weapons)})"


@dataclass
class PositionScore:
    """
    Tactical value of ending movement at `position`.

    Defensive index: expected damage enemies can put on us there (lower is better).
    Offensive index: expected damage we can put on enemies from there (higher is better).
    """
    position: Optional[HexPosition]
    movement_type: MovementType
    path: MovementPath
    defensive_index: float = 0.0
    offensive_index: float = 0.0
    enemies_in_rear_arc: int = 0

    @property
    def combined_score(self) -> float:
        return self.offensive_index - self.defensive_index

    @property
    def movement_cost(self) -> int:
        return self.path.total_cost

    def __repr__(self):
        return (f"PositionScore({self.position}, {self.movement_type.value}, "
                f"off={self.offensive_index:.2f}, def={self.defensive_index:.2f}, rear={self.enemies_in_rear_arc})")
