"""Scoring of positions and targets"""

from .base import ConfigurationScore, PositionScore, TargetScore, WeaponEvaluationData
from .tactical_evaluator import TacticalEvaluator

__all__ = [
    'WeaponEvaluationData',
    'ConfigurationScore',
    'TargetScore',
    'PositionScore',
    'TacticalEvaluator',
]
