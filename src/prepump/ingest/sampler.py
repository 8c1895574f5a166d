from __future__ import annotations
from typing import Optional, Protocol

import numpy as np

from prepump.utils.types import RawSample

class MetricSampler(Protocol):
    def sample(self) -> RawSample:
        """
        Return the current raw metrics. The decision engine does not care
        whether these come from a simulation or a live feed.
        """
        ...

class SimulatedSampler:
    """
    Stand-in for live market data.

      - each move: 70% chance of a quiet ±2% move, otherwise ±6%
      - activity count:      uniform in [60, 110)
      - participation count: uniform in [40, 60)

    Moves are rounded to 2 decimals, as stored.
    """
    def __init__(self, seed: Optional[int] = None, quiet_prob: float = 0.7):
        self._rng = np.random.default_rng(seed)
        self.quiet_prob = quiet_prob

    def _move(self) -> float:
        span = 4.0 if self._rng.random() < self.quiet_prob else 12.0
        return round(float((self._rng.random() - 0.5) * span), 2)

    def sample(self) -> RawSample:
        return RawSample(
            primary_move=self._move(),
            secondary_move=self._move(),
            activity_count=int(self._rng.integers(60, 110)),
            participation_count=int(self._rng.integers(40, 60)),
        )
