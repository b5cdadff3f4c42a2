"""
Decision Logger

One block per command the bots issue: which engine, which unit, the
command payload and the reasoning/score behind it. Meant for reading a game
back afterwards.

Disabled unless Config.DECISION_LOG_ENABLED is set (env MECHBOT_DECISION_LOG).
The file is renamed per finished game by rotate_decision_log().
"""

import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from .config import config

# Separate from the module loggers so decision blocks never reach the console
_decisions = logging.getLogger("bot_decisions")
_decisions.setLevel(logging.INFO)
_decisions.propagate = False

_handler: Optional[logging.FileHandler] = None


def _decision_log_path() -> Path:
    return Path(config.LOG_DIR) / config.DECISION_LOG_NAME


def _attach_handler():
    global _handler
    if _handler is not None:
        return
    config.ensure_log_dir()
    _handler = logging.FileHandler(str(_decision_log_path()), encoding='utf-8')
    _handler.setFormatter(logging.Formatter('%(message)s'))
    _decisions.addHandler(_handler)


def _detach_handler():
    global _handler
    if _handler is None:
        return
    _handler.flush()
    _handler.close()
    _decisions.removeHandler(_handler)
    _handler = None


def is_enabled() -> bool:
    return config.DECISION_LOG_ENABLED


def log_decision(
    engine_name: str,
    player_id: Any,
    command: Any,
    unit_id: Any = None,
    reasoning: str = "",
    score: Optional[float] = None,
    turn: int = 0,
):
    """
    Append one issued command to the decision log.

    Args:
        engine_name: Engine that produced the command
        player_id: Player the bot acts for
        command: The command object (expanded through to_data() when it has one)
        unit_id: Unit the command concerns, if any
        reasoning: Short human-readable justification
        score: Score that led to this choice
        turn: Current turn number
    """
    if not is_enabled():
        return

    _attach_handler()

    payload = command.to_data() if hasattr(command, 'to_data') else command
    block = [
        f"--- {type(command).__name__} | turn {turn} | {datetime.now().isoformat()} ---",
        f"engine={engine_name} player={player_id} unit={unit_id}",
        f"payload={payload}",
    ]
    if reasoning:
        block.append(f"why={reasoning}")
    if score is not None:
        block.append(f"score={score:.2f}")
    block.append("")

    _decisions.info('\n'.join(block))


def rotate_decision_log(game_id: Any = None) -> Optional[Path]:
    """
    Close the current decision log and move it aside for the finished game.

    Args:
        game_id: Identifier of the finished game, used in the file name

    Returns:
        Path of the archived file, or None when there was nothing to archive
    """
    if _handler is None:
        return None

    current_path = _decision_log_path()
    game_tag = str(game_id).replace(' ', '_') if game_id is not None else "unknown"
    archived = current_path.with_name(
        f"{current_path.stem}_{datetime.now().strftime('%Y%m%d_%H%M%S')}_{game_tag}{current_path.suffix}")

    try:
        _detach_handler()
        if current_path.exists() and current_path.stat().st_size > 0:
            shutil.move(str(current_path), str(archived))
            return archived
    except OSError as e:
        logging.getLogger(__name__).error(f"Error rotating decision log {current_path}: {e}")
    return None


def flush():
    if _handler is not None:
        _handler.flush()
