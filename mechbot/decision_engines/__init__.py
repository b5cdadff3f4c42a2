"""Per-phase decision engines"""

from .base import DecisionEngine
from .deployment_engine import DeploymentEngine
from .end_phase_engine import EndPhaseEngine
from .movement_engine import MovementEngine
from .provider import DecisionEngineProvider
from .weapons_engine import WeaponsEngine

__all__ = [
    'DecisionEngine',
    'DeploymentEngine',
    'MovementEngine',
    'WeaponsEngine',
    'EndPhaseEngine',
    'DecisionEngineProvider',
]
