"""
Signal-to-animation parameter mapping.

Volume drives growth speed; pitch drives sway and the green-to-cyan
colour of the plant. Every call recomputes from scratch.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class GrowthParameters:
    growth_speed: float      # [1, 3]
    sway_amount: float
    color_hue: float         # [120, 180] degrees
    color_saturation: float  # [50, 80] percent
    color_lightness: float   # [30, 70] percent


def smoothstep(x: float) -> float:
    """Cubic ease x^2 (3 - 2x) on [0, 1]."""
    return x * x * (3.0 - 2.0 * x)


def _pitch_ramp(pitch: float, low: float, high: float) -> float:
    """Piecewise linear map: <=200 Hz -> low, >=400 Hz -> high."""
    if pitch <= 200.0:
        return low
    if pitch >= 400.0:
        return high
    return low + ((pitch - 200.0) / 200.0) * (high - low)


class GrowthParameterController:
    """
    Pure mapping from (volume, pitch) to GrowthParameters.

    The only retained value is base_pitch, the pitch at which the plant
    stands still.
    """

    def __init__(self, base_pitch: float = 300.0):
        self._base_pitch = base_pitch

    @property
    def base_pitch(self) -> float:
        return self._base_pitch

    @base_pitch.setter
    def base_pitch(self, value: float):
        self._base_pitch = value

    def set_base_pitch(self, pitch: float) -> None:
        self._base_pitch = pitch

    def get_base_pitch(self) -> float:
        return self._base_pitch

    def update(self, volume: float, pitch: float, delta_time: float) -> GrowthParameters:
        """
        Compute parameters for this tick.

        Args:
            volume: Volume (0-100), clamped.
            pitch: Pitch in Hz.
            delta_time: Seconds since the last tick (accepted for API symmetry;
                the mapping does not integrate over time).

        Returns:
            GrowthParameters.
        """
        return GrowthParameters(
            growth_speed=self.growth_speed(volume),
            sway_amount=self.sway_amount(pitch),
            color_hue=self.color_hue(pitch),
            color_saturation=self.color_saturation(pitch),
            color_lightness=self.color_lightness(pitch),
        )

    def growth_speed(self, volume: float) -> float:
        v = min(1.0, max(0.0, volume / 100.0))
        return 1.0 + smoothstep(v) * 2.0

    def sway_amount(self, pitch: float) -> float:
        return (pitch - self._base_pitch) / 100.0

    def color_hue(self, pitch: float) -> float:
        return _pitch_ramp(pitch, 120.0, 180.0)

    def color_saturation(self, pitch: float) -> float:
        return _pitch_ramp(pitch, 50.0, 80.0)

    def color_lightness(self, pitch: float) -> float:
        return min(70.0, max(30.0, 30.0 + pitch / 10.0))
