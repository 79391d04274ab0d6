"""
Rose curve geometry, r = a * cos(k * theta).

Vectorized with numpy; all methods are stateless.
"""

import math
from typing import List, NamedTuple

import numpy as np

TWO_PI = 2.0 * math.pi


class RoseCurvePoint(NamedTuple):
    r: float
    theta: float


class RoseCurve:
    """Polar petal geometry and pitch-to-petal mapping."""

    @staticmethod
    def max_theta(k: float) -> float:
        """
        Angular range that closes the curve.

        Integer k closes after 2pi; any other k needs 4pi because
        cos(k*theta) is not 2pi-periodic.
        """
        if abs(k - round(k)) < 0.01:
            return TWO_PI
        return 2.0 * TWO_PI

    def calculate_curve(self, a: float, k: float, segments: int = 360) -> List[RoseCurvePoint]:
        """
        Sample the curve into segments + 1 points.

        Negative radii are folded onto the opposite direction
        (|r|, theta + pi) so every point has r >= 0 and theta >= 0.

        Args:
            a: Amplitude (flower radius).
            k: Petal coefficient.
            segments: Number of steps; negative counts are treated as 0.

        Returns:
            List of RoseCurvePoint.
        """
        segments = max(0, int(segments))
        max_theta = self.max_theta(k)
        step = max_theta / segments if segments > 0 else 0.0

        theta = np.arange(segments + 1, dtype=np.float64) * step
        r = a * np.cos(k * theta)

        negative = r < 0
        theta = np.where(negative, theta + math.pi, theta)
        r = np.abs(r)

        return [RoseCurvePoint(float(ri), float(ti)) for ri, ti in zip(r, theta)]

    def calculate_radius(self, theta: float, a: float, k: float) -> float:
        return abs(a * math.cos(k * theta))

    def polar_to_cartesian(
        self, r: float, theta: float, center_x: float = 0.0, center_y: float = 0.0
    ) -> tuple[float, float]:
        return (center_x + r * math.cos(theta), center_y + r * math.sin(theta))

    def cartesian_to_polar(
        self, x: float, y: float, center_x: float = 0.0, center_y: float = 0.0
    ) -> RoseCurvePoint:
        """Inverse of polar_to_cartesian; theta normalised into [0, 2pi)."""
        dx = x - center_x
        dy = y - center_y
        theta = math.atan2(dy, dx) % TWO_PI
        # atan2 of a tiny negative dy can round up to exactly 2pi
        if theta >= TWO_PI:
            theta = 0.0
        return RoseCurvePoint(math.hypot(dx, dy), theta)

    def calculate_k_from_pitch(
        self,
        pitch: float,
        min_k: float = 3.0,
        max_k: float = 7.0,
        min_pitch: float = 200.0,
        max_pitch: float = 800.0,
    ) -> float:
        """
        Higher voice, more and finer petals.

        Pitch is clamp-normalised over [min_pitch, max_pitch] and
        interpolated into [min_k, max_k].
        """
        span = max_pitch - min_pitch
        if span <= 0:
            normalized = 1.0 if pitch >= max_pitch else 0.0
        else:
            normalized = min(1.0, max(0.0, (pitch - min_pitch) / span))
        return min_k + normalized * (max_k - min_k)
