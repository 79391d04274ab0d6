"""
Shape points that seed the scatter particles.

The renderer normally owns the plant's geometry and hands its
points to ParticleSimulation.generate(). These helpers build the same
points headlessly: the flower outline from the rose curve, a column of
points along the stem, and a few points along each leaf's midrib.
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

from petalsong.geometry.rose import RoseCurve

FLOWER_COLOR = "rgb(255, 200, 220)"
STEM_COLOR = "rgb(70, 200, 160)"


@dataclass(frozen=True)
class ShapePoint:
    x: float
    y: float
    color: str = FLOWER_COLOR
    part_type: str = "flower"  # "flower", "stem", "leaf"
    part_index: Optional[int] = None


@dataclass(frozen=True)
class LeafShape:
    """Attachment point, direction and length of a leaf."""
    x: float
    y: float
    angle: float
    size: float
    color: str = STEM_COLOR


def flower_points(
    center: Tuple[float, float],
    radius: float,
    k: float,
    segments: int = 72,
    color: str = FLOWER_COLOR,
    rose: Optional[RoseCurve] = None,
) -> List[ShapePoint]:
    """Rose curve outline around the flower head."""
    rose = rose or RoseCurve()
    cx, cy = center
    points = []
    for p in rose.calculate_curve(radius, k, segments):
        x, y = rose.polar_to_cartesian(p.r, p.theta, cx, cy)
        points.append(ShapePoint(x, y, color, "flower"))
    return points


def stem_points(
    seed_position: Tuple[float, float],
    stem_height: float,
    segments: int = 10,
    color: str = STEM_COLOR,
) -> List[ShapePoint]:
    """segments + 1 points from the seed straight up to the stem tip."""
    sx, sy = seed_position
    segments = max(1, segments)
    return [
        ShapePoint(sx, sy - stem_height * (i / segments), color, "stem")
        for i in range(segments + 1)
    ]


def leaf_points(leaves: List[LeafShape], points_per_leaf: int = 5) -> List[ShapePoint]:
    """Evenly spaced points from each leaf's base to its tip."""
    out = []
    n = max(2, points_per_leaf)
    for index, leaf in enumerate(leaves):
        for i in range(n):
            t = i / (n - 1)
            out.append(ShapePoint(
                leaf.x + math.cos(leaf.angle) * leaf.size * t,
                leaf.y + math.sin(leaf.angle) * leaf.size * t,
                leaf.color,
                "leaf",
                index,
            ))
    return out


def stem_leaves(
    seed_position: Tuple[float, float],
    stem_height: float,
    max_length: float,
    start_height: float = 48.0,
    size: float = 60.0,
    min_leaves: int = 4,
    max_leaves: int = 8,
) -> List[LeafShape]:
    """
    Leaves along a grown stem, alternating left and right.

    No leaves until the stem passes start_height; after that the count
    rises from min_leaves to max_leaves as the stem approaches max_length.
    Leaves are spaced evenly between start_height and the stem tip.
    """
    if stem_height <= start_height:
        return []

    ratio = min(1.0, stem_height / max_length) if max_length > 0 else 1.0
    count = int(min_leaves + ratio * (max_leaves - min_leaves))
    sx, sy = seed_position
    span = stem_height - start_height

    leaves = []
    for i in range(count):
        height = start_height + span * (i + 1) / (count + 1)
        # Screen y grows downwards: both leaves point up and outwards
        angle = -math.pi + 0.6 if i % 2 == 0 else -0.6
        leaves.append(LeafShape(sx, sy - height, angle, size))
    return leaves
