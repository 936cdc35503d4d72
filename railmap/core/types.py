# railmap/core/types.py
"""
Value types shared by the spline fitter, paths and styles:
knots, symbolic distances, segment times and locations.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from railmap.core.geometry import to_storage_distance

Point = tuple[float, float]
"""A point or vector: (x, y). Storage frame unless stated otherwise."""


@dataclass(frozen=True)
class Knot:
    """A point the fitted curve passes through, with tensions on either side."""
    point: Point
    left_tension: float = 1.0
    right_tension: float = 1.0

    @classmethod
    def straight(cls, point: Point) -> Knot:
        return cls(point, math.inf, math.inf)


@dataclass(frozen=True)
class MapDistance:
    """A distance in a theme-defined map unit; resolved by a Style."""
    value: float
    unit: int = 0

    def __neg__(self) -> MapDistance:
        return MapDistance(-self.value, self.unit)


@dataclass(frozen=True)
class Distance:
    """
    A symbolic distance along or across a path.

    world: distance along the Earth's surface in bp, or None for no world part.
    map: map distances that are only resolved once a style is known.
    """
    world: float | None = None
    map: tuple[MapDistance, ...] = field(default_factory=tuple)

    @classmethod
    def from_world(cls, world: float) -> Distance:
        return cls(world=world)

    @classmethod
    def from_map(cls, value: float, unit: int = 0) -> Distance:
        return cls(map=(MapDistance(value, unit),))

    def is_none(self) -> bool:
        return self.world is None and not self.map

    def __add__(self, other: Distance) -> Distance:
        if not isinstance(other, Distance):
            return NotImplemented
        if self.world is None:
            world = other.world
        elif other.world is None:
            world = self.world
        else:
            world = self.world + other.world
        return Distance(world, self.map + other.map)

    def __neg__(self) -> Distance:
        world = None if self.world is None else -self.world
        return Distance(world, tuple(-md for md in self.map))

    def __sub__(self, other: Distance) -> Distance:
        if not isinstance(other, Distance):
            return NotImplemented
        return self + (-other)

    def map_bp(self, style) -> float:
        """Sum of the map component in bp (before the canvas_bp factor)."""
        return sum(style.resolve_distance(md) for md in self.map)

    def resolve(self, at: Point, canvas, style) -> float:
        """Resolve to canvas units at storage point `at`."""
        res = 0.0
        if self.world is not None:
            res += to_storage_distance(self.world, at) * canvas.equator_scale
        res += self.map_bp(style) * canvas.canvas_bp
        return res


@dataclass(frozen=True, order=True)
class SegTime:
    """A position on a path: segment index and time within that segment."""
    seg: int
    time: float

    def end(self) -> SegTime:
        """Express a segment start as the end of the previous segment."""
        if self.time == 0.0:
            return SegTime(self.seg - 1, 1.0)
        return self


@dataclass(frozen=True)
class Location:
    """A resolved world location with a still symbolic map offset."""
    world: SegTime
    map: tuple[MapDistance, ...] = field(default_factory=tuple)

    def with_map(self, extra: tuple[MapDistance, ...]) -> Location:
        return Location(self.world, self.map + tuple(extra))
