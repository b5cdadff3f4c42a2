"""
mechbot - computer players for a turn-based hex-grid mech combat game.

One decision engine per phase (deployment, movement, weapons attack, end)
decides the next command for a bot-controlled player; Bot and BotManager
wire the engines to a game session.
"""

from .bot import Bot
from .bot_manager import BotManager
from .decision_engines import (
    DecisionEngineProvider,
    DeploymentEngine,
    EndPhaseEngine,
    MovementEngine,
    WeaponsEngine,
)
from .evaluators import TacticalEvaluator
from .exceptions import BotDecisionException
from .turn_state import TargetEvaluationKey, TurnState

__version__ = "0.1.0"

__all__ = [
    'Bot',
    'BotManager',
    'BotDecisionException',
    'DecisionEngineProvider',
    'DeploymentEngine',
    'MovementEngine',
    'WeaponsEngine',
    'EndPhaseEngine',
    'TacticalEvaluator',
    'TargetEvaluationKey',
    'TurnState',
]
