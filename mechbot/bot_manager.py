"""
Bot Manager - owns the bots playing in one game.
"""

import logging
from typing import Any, Dict, List, Optional

from .bot import Bot
from .decision_engines.provider import DecisionEngineProvider
from .interfaces import PlayerControlType

logger = logging.getLogger(__name__)


class BotManager:
    """Creates, tracks and disposes the bots of a game session"""

    def __init__(self):
        self._bots: Dict[Any, Bot] = {}  # Key: player id
        self.game = None

    @property
    def bots(self) -> List[Bot]:
        return list(self._bots.values())

    def initialize(self, game):
        """Bind to a game; bots from a previous game are disposed"""
        self.clear()
        self.game = game

    def add_bot(self, player, provider: Optional[DecisionEngineProvider] = None) -> Bot:
        if self.game is None:
            raise RuntimeError("BotManager must be initialized with a game before adding bots")
        if player.control_type != PlayerControlType.BOT:
            raise ValueError(f"Player {player.name} must have control type {PlayerControlType.BOT.value}")

        if player.id in self._bots:
            self._bots[player.id].dispose()

        bot = Bot(player, self.game, provider or DecisionEngineProvider.create(self.game))
        self._bots[player.id] = bot
        logger.info(f"➕ Added bot for {player.name}")
        return bot

    def remove_bot(self, player_id: Any):
        bot = self._bots.pop(player_id, None)
        if bot is not None:
            bot.dispose()
            logger.info(f"➖ Removed bot for {bot.player.name}")

    def is_bot(self, player_id: Any) -> bool:
        return player_id in self._bots

    def clear(self):
        for bot in self._bots.values():
            bot.dispose()
        self._bots.clear()
