"""
Frame-to-frame signal smoothing.

Raw per-tick volume/pitch jitter too much to drive growth directly, so
each tick eases the previous value a small step towards the new reading.
The previous value is an explicit SignalState passed in and returned,
never held globally.
"""

from dataclasses import dataclass

from petalsong.core.analyzer import AudioFrame


@dataclass(frozen=True)
class SignalState:
    """Smoothed drivers carried from one tick to the next."""

    volume: float
    pitch: float
    pitch_change: float = 0.0

    @classmethod
    def initial(cls) -> "SignalState":
        """Silence at the resting pitch: the seed waits for a voice."""
        return cls(volume=0.0, pitch=400.0, pitch_change=0.0)


class SignalPolisher:
    """
    Exponential smoothing of volume, pitch and pitch change.

    Produces an inertia-like feel: when the voice stops, the plant keeps
    swaying for a while instead of freezing.
    """

    def __init__(self, smoothing: float = 0.05, fallback_pitch: float = 440.0):
        """
        Initialize the polisher.

        Args:
            smoothing: Fraction of the distance to the new reading covered per tick.
            fallback_pitch: Pitch assumed when detection returns 0 (silence).
        """
        self.smoothing = smoothing
        self.fallback_pitch = fallback_pitch

    def _lerp(self, current: float, target: float) -> float:
        return current + (target - current) * self.smoothing

    def smooth(
        self,
        previous: SignalState,
        frame: AudioFrame,
        pitch_change: float = 0.0,
    ) -> SignalState:
        """
        Advance the smoothed state by one tick.

        Args:
            previous: State returned by the previous tick.
            frame: Raw reading for this tick.
            pitch_change: Raw sway driver for this tick.

        Returns:
            New SignalState.
        """
        raw_pitch = frame.pitch or self.fallback_pitch
        return SignalState(
            volume=self._lerp(previous.volume, frame.volume),
            pitch=self._lerp(previous.pitch, raw_pitch),
            pitch_change=self._lerp(previous.pitch_change, pitch_change),
        )

    def as_frame(self, state: SignalState) -> AudioFrame:
        """Clamp a smoothed state back into an AudioFrame."""
        return AudioFrame(
            volume=min(100.0, max(0.0, state.volume)),
            pitch=max(0.0, state.pitch),
        )
