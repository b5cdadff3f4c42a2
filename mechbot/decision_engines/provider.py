"""
Decision Engine Provider

Dispatch table from game phase to the engine that plays it. Phases the bot
never acts in (start, initiative, attack resolution, ...) have no engine.
"""

import logging
from typing import Dict, Optional

from ..evaluators.tactical_evaluator import TacticalEvaluator
from ..models import PhaseNames
from .base import DecisionEngine
from .deployment_engine import DeploymentEngine
from .end_phase_engine import EndPhaseEngine
from .movement_engine import MovementEngine
from .weapons_engine import WeaponsEngine

logger = logging.getLogger(__name__)


class DecisionEngineProvider:
    """Maps PhaseNames to decision engines"""

    def __init__(self, engines: Dict[PhaseNames, DecisionEngine]):
        self._engines = dict(engines)

    @classmethod
    def create(cls, game) -> 'DecisionEngineProvider':
        """Standard engine set for one game, sharing a single tactical evaluator"""
        evaluator = TacticalEvaluator(game)
        return cls({
            PhaseNames.DEPLOYMENT: DeploymentEngine(game),
            PhaseNames.MOVEMENT: MovementEngine(game, evaluator),
            PhaseNames.WEAPONS_ATTACK: WeaponsEngine(game, evaluator),
            PhaseNames.END: EndPhaseEngine(game),
        })

    def get_engine_for_phase(self, phase: PhaseNames) -> Optional[DecisionEngine]:
        engine = self._engines.get(phase)
        if engine is None:
            logger.debug(f"No decision engine for phase {phase}")
        return engine

    @property
    def phases(self):
        return list(self._engines)
