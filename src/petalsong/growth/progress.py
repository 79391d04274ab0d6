"""
Stem growth accumulation.

The stem length is the growth progress the state machine thresholds on.
Growth is fast while the sprout emerges and slows once the stem proper
starts; silence means almost no growth.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class StemGrowthConfig:
    sprout_length: float = 100.0   # px, switch from sprout to stem rate
    max_length: float = 320.0      # px, stem stops here
    sprout_rate: float = 0.25      # px per reference frame at full drive
    stem_rate: float = 0.15
    reference_fps: float = 60.0


class StemGrowth:
    """Advances a stem height; holds no state of its own."""

    def __init__(self, config: Optional[StemGrowthConfig] = None):
        self.cfg = config or StemGrowthConfig()

    def rate(self, height: float, volume: float) -> float:
        """Growth per reference frame at this height and volume."""
        base = self.cfg.sprout_rate if height < self.cfg.sprout_length else self.cfg.stem_rate
        volume_factor = min(1.0, max(0.0, volume / 100.0))
        return base * volume_factor * 2.0

    def advance(self, height: float, volume: float, dt: float) -> float:
        """
        Return the stem height after dt seconds at the given volume.

        Never shrinks and never exceeds max_length.
        """
        height = max(0.0, height)
        if height >= self.cfg.max_length or dt <= 0:
            return min(height, self.cfg.max_length)
        step = self.rate(height, volume) * dt * self.cfg.reference_fps
        return min(height + step, self.cfg.max_length)
