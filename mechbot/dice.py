"""
2d6 probabilities.

Everything the bot knows about rolls goes through the target number: the
chance that two six-sided dice meet or exceed it.
"""

import numpy as np

# P(sum of 2d6 == n) for n in 0..12
_D6 = np.full(6, 1.0 / 6.0)
_SUM_DISTRIBUTION = np.concatenate(([0.0, 0.0], np.convolve(_D6, _D6)))

# P(sum of 2d6 >= n) for n in 0..12
_AT_LEAST = np.cumsum(_SUM_DISTRIBUTION[::-1])[::-1]


def calculate_2d6_probability(target_number: int) -> float:
    """
    Probability that 2d6 rolls `target_number` or higher.

    Anything at or below 2 always succeeds, anything above 12 never does.
    """
    if target_number <= 2:
        return 1.0
    if target_number > 12:
        return 0.0
    return float(min(1.0, max(0.0, _AT_LEAST[target_number])))


def distribution_2d6() -> np.ndarray:
    """Copy of P(sum == n) for n in 0..12"""
    return _SUM_DISTRIBUTION.copy()
