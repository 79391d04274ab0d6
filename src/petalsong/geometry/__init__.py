"""Bloom geometry."""

from petalsong.geometry.rose import RoseCurve, RoseCurvePoint
from petalsong.geometry.shapes import (
    LeafShape,
    ShapePoint,
    flower_points,
    leaf_points,
    stem_leaves,
    stem_points,
)

__all__ = [
    "RoseCurve",
    "RoseCurvePoint",
    "LeafShape",
    "ShapePoint",
    "flower_points",
    "leaf_points",
    "stem_leaves",
    "stem_points",
]
