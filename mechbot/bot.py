"""
Bot - a computer-controlled player.

Listens to the game's server commands and plays its player's turns:
- ChangePhaseCommand: switch to the engine for the new phase
- TurnIncrementedCommand: start a fresh turn cache
- ChangeActivePlayerCommand for our player: make a decision
- GameEndedCommand: stop listening

A failing engine is logged and never breaks the subscription.
"""

import asyncio
import logging
from typing import Optional, Set

from . import decision_logger
from .commands import (
    ChangeActivePlayerCommand,
    ChangePhaseCommand,
    GameCommand,
    GameEndedCommand,
    TurnIncrementedCommand,
)
from .decision_engines.base import DecisionEngine
from .decision_engines.provider import DecisionEngineProvider
from .models import PhaseNames
from .turn_state import TurnState

logger = logging.getLogger(__name__)


class Bot:
    """Observes one game for one player and answers when it is that player's turn"""

    def __init__(self, player, game, provider: Optional[DecisionEngineProvider] = None):
        self.player = player
        self.game = game
        self.provider = provider or DecisionEngineProvider.create(game)
        self.decision_engine: Optional[DecisionEngine] = None
        self.phase: Optional[PhaseNames] = None
        self.turn_state = TurnState(getattr(game, 'id', None), getattr(game, 'turn', 0))
        self._pending: Set[asyncio.Task] = set()
        self._is_disposed = False
        self._unsubscribe = game.subscribe(self.on_command_received)
        logger.info(f"🤖 Bot attached to {player.name}")

    @property
    def is_disposed(self) -> bool:
        return self._is_disposed

    def on_command_received(self, command: GameCommand):
        if self._is_disposed:
            return

        if isinstance(command, ChangePhaseCommand):
            self.update_decision_engine(command.phase)
        elif isinstance(command, TurnIncrementedCommand):
            self.start_turn(command.turn_number)
        elif isinstance(command, ChangeActivePlayerCommand):
            if command.player_id == self.player.id:
                self._schedule_decision()
        elif isinstance(command, GameEndedCommand):
            logger.info(f"🏁 Game ended for {self.player.name}: {command.reason}")
            decision_logger.rotate_decision_log(getattr(self.game, 'id', None))
            self.dispose()

    def update_decision_engine(self, phase: PhaseNames):
        self.phase = phase
        self.decision_engine = self.provider.get_engine_for_phase(phase)
        logger.debug(f"{self.player.name}: phase {phase.value} -> {self.decision_engine}")

    def start_turn(self, turn_number: int):
        """Drop last turn's cache and start a new one"""
        self.turn_state.clear()
        self.turn_state = TurnState(getattr(self.game, 'id', None), turn_number)

    def _schedule_decision(self):
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Called from synchronous code, no loop to hand the work to
            asyncio.run(self.make_decision())
            return

        task = loop.create_task(self.make_decision())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def make_decision(self):
        """Run the current engine once; errors are logged, never raised"""
        engine = self.decision_engine
        if engine is None:
            logger.debug(f"{self.player.name}: nothing to do in phase {self.phase}")
            return

        try:
            await engine.make_decision(self.player, self.turn_state)
        except Exception as e:
            logger.error(f"❌ Bot {self.player.name} decision error in {engine.name}: {e}", exc_info=True)

    async def wait_idle(self):
        """Wait for every scheduled decision to finish"""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def dispose(self):
        if self._is_disposed:
            return
        self._is_disposed = True
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.turn_state.clear()
