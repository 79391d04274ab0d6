"""
Synthetic input for running the simulation without a microphone.

The automatic mode layers slow sine waves so growth, sway and colour all
move; the manual mode holds fixed slider-style values.
"""

import math
from dataclasses import dataclass

from petalsong.core.analyzer import AudioFrame


@dataclass
class DemoSignal:
    """Deterministic volume/pitch generator driven by a millisecond clock."""

    base_volume: float = 25.0
    base_pitch: float = 400.0
    manual_volume: float = 50.0
    manual_pitch: float = 400.0
    auto: bool = True

    def frame(self, now_ms: float) -> AudioFrame:
        if not self.auto:
            return self.manual()

        volume = (
            self.base_volume
            + math.sin(now_ms / 1000.0) * 5.0
            + math.sin(now_ms / 1700.0) * 3.0
        )
        pitch = (
            self.base_pitch
            + math.sin(now_ms / 800.0) * 50.0
            + math.sin(now_ms / 1300.0) * 35.0
        )
        return AudioFrame(
            volume=min(100.0, max(0.0, volume)),
            pitch=max(0.0, pitch),
        )

    def pitch_change(self, now_ms: float) -> float:
        """Sway driver; manual mode holds still."""
        if not self.auto:
            return 0.0
        return math.sin(now_ms / 500.0) * 12.0

    def manual(self) -> AudioFrame:
        return AudioFrame(
            volume=min(100.0, max(0.0, self.manual_volume)),
            pitch=max(0.0, self.manual_pitch),
        )
