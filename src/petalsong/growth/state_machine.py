"""
Five-stage growth state machine.

Seed -> Sprout -> Stem -> Bloom -> Scatter, one direction only. Each
update() checks the transition out of the current state and nothing
else, so a single loud tick can never skip a stage.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


class GrowthState(str, enum.Enum):
    SEED = "SEED"
    SPROUT = "SPROUT"
    STEM = "STEM"
    BLOOM = "BLOOM"
    SCATTER = "SCATTER"


@dataclass
class GrowthThresholds:
    """Transition thresholds (all inclusive)."""

    sprout_volume: float = 30.0     # Seed -> Sprout, volume 0-100
    stem_progress: float = 100.0    # Sprout -> Stem, stem length in px
    bloom_progress: float = 300.0   # Stem -> Bloom, stem length in px
    scatter_volume: float = 70.0    # Bloom -> Scatter, volume 0-100


class GrowthStateMachine:
    """Owns the current GrowthState."""

    def __init__(self, thresholds: Optional[GrowthThresholds] = None):
        self.thresholds = thresholds or GrowthThresholds()
        self._state = GrowthState.SEED

    @property
    def state(self) -> GrowthState:
        return self._state

    def get_current_state(self) -> GrowthState:
        return self._state

    def update(self, volume: float, growth_progress: float) -> GrowthState:
        """
        Check the transition out of the current state.

        Args:
            volume: Volume (0-100).
            growth_progress: Stem length in pixels.

        Returns:
            The state after the check.
        """
        t = self.thresholds
        previous = self._state

        if previous is GrowthState.SEED:
            if volume >= t.sprout_volume:
                self._state = GrowthState.SPROUT
        elif previous is GrowthState.SPROUT:
            if growth_progress >= t.stem_progress:
                self._state = GrowthState.STEM
        elif previous is GrowthState.STEM:
            if growth_progress >= t.bloom_progress:
                self._state = GrowthState.BLOOM
        elif previous is GrowthState.BLOOM:
            if volume >= t.scatter_volume:
                self._state = GrowthState.SCATTER
        # SCATTER only leaves through reset()

        if self._state is not previous:
            logger.debug(
                "Growth %s -> %s (volume=%.1f, progress=%.1f)",
                previous.value, self._state.value, volume, growth_progress,
            )
        return self._state

    def reset(self) -> None:
        """Return to SEED from any state."""
        if self._state is not GrowthState.SEED:
            logger.debug("Growth %s -> SEED (reset)", self._state.value)
        self._state = GrowthState.SEED
