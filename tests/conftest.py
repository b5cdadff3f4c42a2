import pytest

from mechbot.strategy_config import reset_config


@pytest.fixture(autouse=True)
def fresh_strategy_config():
    """Every test starts from the baseline strategy config"""
    reset_config()
    yield
    reset_config()
