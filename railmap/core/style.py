# railmap/core/style.py
"""
Canvas transforms and styles.

A Transform maps storage coordinates onto a canvas (uniform scale plus
translation). A Style turns theme map distances into bp for a detail level.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from railmap.core.config import EQUATOR_BP, MAP_DISTANCES
from railmap.core.types import MapDistance, Point


@dataclass(frozen=True)
class Transform:
    """
    Storage -> canvas mapping.

    scale: canvas units per storage unit.
    translate: added after scaling.
    canvas_bp: canvas units per bp.
    """
    scale: float
    translate: Point = (0.0, 0.0)
    canvas_bp: float = 1.0

    @classmethod
    def identity(cls, canvas_bp: float = 1.0) -> Transform:
        return cls(1.0, (0.0, 0.0), canvas_bp)

    @classmethod
    def for_tile(cls, nw: Point, scale: float, canvas_bp: float) -> Transform:
        """Transform that puts storage point nw at the canvas origin."""
        return cls(scale, (-nw[0] * scale, -nw[1] * scale), canvas_bp)

    @property
    def equator_scale(self) -> float:
        """Canvas units per storage unit, i.e. the equator's length on the canvas."""
        return self.scale

    @property
    def map_scale(self) -> float:
        """Map scale denominator on the equator (storage unit in bp / canvas length)."""
        return EQUATOR_BP * self.canvas_bp / self.scale

    def apply(self, p: Point) -> Point:
        return (p[0] * self.scale + self.translate[0], p[1] * self.scale + self.translate[1])

    def inverse(self, p: Point) -> Point:
        return ((p[0] - self.translate[0]) / self.scale, (p[1] - self.translate[1]) / self.scale)


class Style(Protocol):
    """What the path engine needs from a rendering style."""

    def resolve_distance(self, distance: MapDistance) -> float: ...

    def transform(self) -> Transform: ...


@dataclass(frozen=True)
class DetailStyle:
    """Style for one detail level using the theme's map unit table."""
    detail: float
    canvas: Transform
    mag: float = 1.0

    def detail_index(self) -> int:
        return min(int(self.detail), len(MAP_DISTANCES[0]) - 1)

    def resolve_distance(self, distance: MapDistance) -> float:
        """Map distance in bp at this detail level."""
        if distance.unit < 0 or distance.unit >= len(MAP_DISTANCES):
            raise IndexError(f"unknown map unit {distance.unit}")
        return distance.value * MAP_DISTANCES[distance.unit][self.detail_index()]

    def transform(self) -> Transform:
        return self.canvas
