import logging
import os
from dataclasses import dataclass, field


@dataclass
class Config:
    """Process-level configuration for the mech bot"""

    # Logging
    LOG_LEVEL: str = os.environ.get('MECHBOT_LOG_LEVEL', 'INFO')
    LOG_FORMAT: str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    # Per-command decision log (see decision_logger.py). Off by default so
    # library use never writes files unless asked to.
    DECISION_LOG_ENABLED: bool = os.environ.get('MECHBOT_DECISION_LOG', 'False').lower() == 'true'
    DECISION_LOG_NAME: str = os.environ.get('MECHBOT_DECISION_LOG_NAME', 'mechbot_decisions.log')

    # Strategy weights (see strategy_config.py)
    STRATEGY_CONFIG_PATH: str = os.environ.get('MECHBOT_STRATEGY_CONFIG', '')

    # Paths
    BASE_DIR: str = os.path.dirname(os.path.abspath(__file__))
    LOG_DIR: str = field(default_factory=lambda: os.environ.get(
        'MECHBOT_LOG_DIR', os.path.join(os.getcwd(), 'logs')))

    @property
    def DEFAULT_STRATEGY_CONFIG(self) -> str:
        return os.path.join(self.BASE_DIR, 'configs', 'baseline.json')

    def ensure_log_dir(self) -> str:
        """Create the log directory on demand and return it"""
        os.makedirs(self.LOG_DIR, exist_ok=True)
        return self.LOG_DIR


# Create global config instance
config = Config()


def setup_logging(level: str = None, log_file: str = 'mechbot.log'):
    """
    Configure root logging the way the entry points expect it.

    Library modules only ever call logging.getLogger(__name__); this is for
    scripts (tools/) that own the process.

    Args:
        level: Log level name, defaults to Config.LOG_LEVEL
        log_file: File name under Config.LOG_DIR, or None for console only
    """
    handlers = [logging.StreamHandler()]
    if log_file:
        log_path = os.path.join(config.ensure_log_dir(), log_file)
        handlers.append(logging.FileHandler(log_path))

    logging.basicConfig(
        level=getattr(logging, (level or config.LOG_LEVEL).upper(), logging.INFO),
        format=config.LOG_FORMAT,
        handlers=handlers,
    )
