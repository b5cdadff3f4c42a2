#!/usr/bin/env python3
"""
Run a bot-vs-bot game in the in-memory sandbox.

Usage:
    # Three turns on the default 15x17 map
    python tools/run_sandbox_game.py

    # Longer game on a smaller map, with a different strategy config
    python tools/run_sandbox_game.py --turns 5 --width 10 --height 10 --config mechbot/configs/baseline.json

    # Keep a per-command decision log under logs/
    MECHBOT_DECISION_LOG=true python tools/run_sandbox_game.py

This script:
1. Builds the demo game (two players, an LRM boat and a brawler each)
2. Attaches a bot to every player
3. Plays deployment once, then movement / weapons / end for each turn
4. Prints a summary of the commands each side issued
"""

import argparse
import asyncio
import logging
import sys
from collections import Counter
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from mechbot.bot_manager import BotManager
from mechbot.commands import GameEndedCommand
from mechbot.config import setup_logging
from mechbot.models import PhaseNames
from mechbot.sandbox import create_demo_game
from mechbot.strategy_config import set_config_path

logger = logging.getLogger("run_sandbox_game")

TURN_PHASES = (PhaseNames.MOVEMENT, PhaseNames.WEAPONS_ATTACK, PhaseNames.END)


async def run_game(turns: int, width: int, height: int):
    game = create_demo_game(width, height)

    manager = BotManager()
    manager.initialize(game)
    for player in game.players:
        manager.add_bot(player)

    await game.play_phase(PhaseNames.DEPLOYMENT, manager.bots)
    for turn in range(turns):
        logger.info(f"===== Turn {game.turn} =====")
        for phase in TURN_PHASES:
            await game.play_phase(phase, manager.bots)
        if turn < turns - 1:
            game.next_turn()

    game.publish(GameEndedCommand(game_origin_id=game.id, reason="turn limit"))
    manager.clear()
    return game


def print_summary(game):
    print(f"\n=== Sandbox game '{game.id}' after {game.turn} turn(s) ===")
    for player in game.players:
        unit_ids = {u.id for u in player.units}
        counts = Counter(type(c).__name__ for c in game.issued_commands
                         if getattr(c, 'player_id', None) == player.id
                         and getattr(c, 'unit_id', None) in unit_ids | {None})
        print(f"\n{player.name}:")
        for name, count in sorted(counts.items()):
            print(f"  {name}: {count}")
        for unit in player.units:
            print(f"  {unit.name}: {unit.position}, heat {unit.current_heat}")


def main():
    parser = argparse.ArgumentParser(description='Run a bot-vs-bot game in the sandbox')
    parser.add_argument('--turns', type=int, default=3,
                        help='Number of turns to play (default: 3)')
    parser.add_argument('--width', type=int, default=15,
                        help='Map width in hexes (default: 15)')
    parser.add_argument('--height', type=int, default=17,
                        help='Map height in hexes (default: 17)')
    parser.add_argument('--config', default=None,
                        help='Strategy config JSON (default: MECHBOT_STRATEGY_CONFIG or baseline.json)')
    parser.add_argument('--log-level', default=None,
                        help='Log level (default: MECHBOT_LOG_LEVEL or INFO)')

    args = parser.parse_args()

    setup_logging(args.log_level, log_file='sandbox_game.log')
    if args.config:
        set_config_path(args.config)

    game = asyncio.run(run_game(args.turns, args.width, args.height))
    print_summary(game)


if __name__ == '__main__':
    main()
