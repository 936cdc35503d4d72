# railmap/core/geometry.py
"""
Geometry helpers: plain tuple vector maths, the Mercator scale correction
for world distances, and shapely conversions for bounds and flattened curves.
"""

from __future__ import annotations

import math
from typing import Iterable

from shapely.geometry import LineString

from railmap.core.config import EQUATOR_BP


def vec_add(a: tuple[float, float], b: tuple[float, float]) -> tuple[float, float]:
    return (a[0] + b[0], a[1] + b[1])


def vec_sub(a: tuple[float, float], b: tuple[float, float]) -> tuple[float, float]:
    return (a[0] - b[0], a[1] - b[1])


def vec_scale(a: tuple[float, float], k: float) -> tuple[float, float]:
    return (a[0] * k, a[1] * k)


def vec_len(a: tuple[float, float]) -> float:
    return math.hypot(a[0], a[1])


def vec_angle(a: tuple[float, float]) -> float:
    return math.atan2(a[1], a[0])


def lerp(a: tuple[float, float], b: tuple[float, float], t: float) -> tuple[float, float]:
    return (a[0] + (b[0] - a[0]) * t, a[1] + (b[1] - a[1]) * t)


def normalize(a: tuple[float, float]) -> tuple[float, float]:
    """Unit vector in the direction of a; the zero vector stays zero."""
    n = vec_len(a)
    if n == 0.0:
        return (0.0, 0.0)
    return (a[0] / n, a[1] / n)


def rot90(a: tuple[float, float]) -> tuple[float, float]:
    """Rotate by 90 degrees so that the result points left of a in y-down coordinates."""
    return (a[1], -a[0])


def rotate(a: tuple[float, float], angle: float) -> tuple[float, float]:
    c, s = math.cos(angle), math.sin(angle)
    return (a[0] * c - a[1] * s, a[0] * s + a[1] * c)


def line_intersect(
    p1: tuple[float, float],
    d1: tuple[float, float],
    p2: tuple[float, float],
    d2: tuple[float, float],
) -> tuple[float, float] | None:
    """
    Intersection of the lines p1 + t*d1 and p2 + s*d2.
    Returns None for parallel lines.
    """
    denom = d1[0] * d2[1] - d1[1] * d2[0]
    if denom == 0.0:
        return None
    t = (-(p1[0] - p2[0]) * d2[1] + (p1[1] - p2[1]) * d2[0]) / denom
    return (p1[0] + t * d1[0], p1[1] + t * d1[1])


# ----- World distances -----

def scale_correction(at: tuple[float, float]) -> float:
    """Mercator scale factor at storage point `at` (1 on the equator)."""
    return math.sqrt(1.0 + math.sinh(math.pi - 2.0 * math.pi * at[1]) ** 2)


def to_storage_distance(world: float, at: tuple[float, float]) -> float:
    """Convert a world distance in bp into storage units at storage point `at`."""
    return world / EQUATOR_BP * scale_correction(at)


def lonlat_to_storage(lon: float, lat: float) -> tuple[float, float]:
    """Normalize longitude/latitude (degrees) to Web Mercator storage coordinates in [0, 1]."""
    x = (lon + 180.0) / 360.0
    y = (1.0 - math.asinh(math.tan(math.radians(lat))) / math.pi) / 2.0
    return (x, y)


# ----- Shapely -----

def bounds_union(
    bounds: Iterable[tuple[float, float, float, float]],
) -> tuple[float, float, float, float] | None:
    """Union of (minx, miny, maxx, maxy) tuples; None if there are none."""
    out: tuple[float, float, float, float] | None = None
    for b in bounds:
        if out is None:
            out = b
        else:
            out = (min(out[0], b[0]), min(out[1], b[1]), max(out[2], b[2]), max(out[3], b[3]))
    return out


def coords_to_linestring(coords: list[tuple[float, float]]) -> LineString:
    """LineString from coordinates, dropping consecutive duplicates."""
    out: list[tuple[float, float]] = []
    for c in coords:
        if not out or out[-1] != c:
            out.append(c)
    if len(out) < 2:
        return LineString()
    return LineString(out)
