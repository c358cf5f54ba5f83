"""
Random noise source used by the component models.

Every stochastic term in the models is drawn through ``uniform(low, high)``,
so any object with that method can stand in for the default generator.
``numpy.random.Generator`` satisfies the protocol directly.
"""

from typing import Optional, Protocol

import numpy as np


class NoiseSource(Protocol):
    def uniform(self, low: float = 0.0, high: float = 1.0) -> float:
        ...


def default_noise(seed: Optional[int] = None) -> np.random.Generator:
    """Create a noise generator, seeded for reproducible runs when seed is given."""
    return np.random.default_rng(seed)
