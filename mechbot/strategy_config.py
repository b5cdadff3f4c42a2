"""
Strategy Configuration

Tuning weights for the decision engines, read from a JSON file so a bot
can be re-tuned without touching code. Sections map to engines:

    movement_priority  - unit ordering in the movement phase
    unit_roles         - role classification thresholds
    movement           - movement types to consider
    arc_multipliers    - defensive/offensive arc weights
    weapons            - heat margin, ammo conservation
    end_phase          - overheat shutdown threshold

Every caller passes its own default to get(), so an empty or unreadable
file still yields a playable bot.

Environment:
    MECHBOT_STRATEGY_CONFIG - JSON file to load instead of configs/baseline.json
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from .config import config as process_config

logger = logging.getLogger(__name__)


def _read_json(path: Path) -> Optional[Dict[str, Any]]:
    """Parsed file content, or None when the file is missing or unusable"""
    if not path.exists():
        logger.warning(f"Strategy config {path} does not exist, engines use their defaults")
        return None
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"Strategy config {path} is not valid JSON: {e}")
        return None
    except OSError as e:
        logger.error(f"Could not read strategy config {path}: {e}")
        return None

    if not isinstance(data, dict):
        logger.error(f"Strategy config {path} must hold a JSON object, got {type(data).__name__}")
        return None
    return data


class StrategyConfig:
    """Section/key lookup over one strategy JSON file"""

    def __init__(self, config_path: Optional[str] = None):
        self.path = Path(config_path or process_config.STRATEGY_CONFIG_PATH
                         or process_config.DEFAULT_STRATEGY_CONFIG)
        self._values: Dict[str, Any] = {}
        self._loaded = False
        self.reload()

    def reload(self):
        data = _read_json(self.path)
        self._loaded = data is not None
        self._values = data or {}
        if self._loaded:
            logger.info(f"📋 Strategy config '{self.name}' v{self.version} from {self.path}")
            for section in ('weapons', 'end_phase', 'arc_multipliers'):
                logger.debug(f"   [{section}] {self.get_section(section)}")

    @property
    def name(self) -> str:
        return self._values.get('name', 'default')

    @property
    def version(self) -> str:
        return self._values.get('version', '0.0.0')

    @property
    def is_loaded(self) -> bool:
        """False when the engines are running on their built-in defaults"""
        return self._loaded

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """
        Look up `key` in `section`.

        Args:
            section: Engine section, e.g. 'weapons'
            key: Setting inside the section, e.g. 'heat_margin'
            default: Returned when the section or key is absent

        Returns:
            The configured value or `default`
        """
        return self.get_section(section).get(key, default)

    def get_section(self, section: str) -> Dict[str, Any]:
        value = self._values.get(section)
        return value if isinstance(value, dict) else {}

    def as_dict(self) -> Dict[str, Any]:
        """Deep copy of the loaded values"""
        return json.loads(json.dumps(self._values))


_active: Optional[StrategyConfig] = None


def get_config() -> StrategyConfig:
    """Process-wide strategy config, loaded on first use"""
    global _active
    if _active is None:
        _active = StrategyConfig()
    return _active


def set_config_path(path: str):
    """Switch every engine to the config at `path` (tools and tests)"""
    global _active
    _active = StrategyConfig(path)


def reset_config():
    """Forget the loaded config; the next get_config() loads the default again"""
    global _active
    _active = None
