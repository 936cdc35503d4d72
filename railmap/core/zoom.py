# railmap/core/zoom.py
"""
Zoom level parsing and per-zoom detail, magnification and tile transforms.
"""

from __future__ import annotations

from railmap.core.config import (
    DETAIL_DETAILS,
    DETAIL_MAG,
    MAX_ZOOM,
    OVERVIEW_DETAILS,
    OVERVIEW_MAG,
    TILE_FORMATS,
    ZOOM_LEVELS_DEFAULT,
)
from railmap.core.style import DetailStyle, Transform
from railmap.core.types import Point


def parse_zoom_levels(s: str) -> list[int]:
    """Parse comma-separated zoom levels, e.g. '10,12,14'. Out of range values are skipped."""
    if not (s or "").strip():
        return list(ZOOM_LEVELS_DEFAULT)
    out: list[int] = []
    for part in s.strip().split(","):
        part = part.strip()
        if part:
            try:
                zoom = int(part)
            except ValueError:
                continue
            if 0 <= zoom < MAX_ZOOM:
                out.append(zoom)
    return out if out else list(ZOOM_LEVELS_DEFAULT)


def _check_zoom(zoom: int) -> None:
    if zoom < 0 or zoom >= MAX_ZOOM:
        raise ValueError(f"zoom {zoom} outside 0..{MAX_ZOOM - 1}")


def detail_for_zoom(zoom: int, overview: bool = False) -> float:
    _check_zoom(zoom)
    return OVERVIEW_DETAILS[zoom] if overview else DETAIL_DETAILS[zoom]


def mag_for_zoom(zoom: int, overview: bool = False) -> float:
    _check_zoom(zoom)
    return OVERVIEW_MAG[zoom] if overview else DETAIL_MAG[zoom]


def tile_nw(zoom: int, x: int, y: int) -> Point:
    """Storage coordinates of the north-west corner of tile (zoom, x, y)."""
    n = float(2 ** zoom)
    return (x / n, y / n)


def tile_for_point(zoom: int, p: Point) -> tuple[int, int]:
    """Tile (x, y) containing storage point p at zoom."""
    n = 2 ** zoom
    x = min(max(int(p[0] * n), 0), n - 1)
    y = min(max(int(p[1] * n), 0), n - 1)
    return (x, y)


def tile_transform(zoom: int, x: int, y: int, fmt: str = "png", mag: float = 1.0) -> Transform:
    """Storage -> canvas transform for a tile; one tile spans the format's size."""
    _check_zoom(zoom)
    if fmt not in TILE_FORMATS:
        raise ValueError(f"unknown tile format {fmt!r}")
    size, canvas_bp = TILE_FORMATS[fmt]
    return Transform.for_tile(tile_nw(zoom, x, y), size * 2 ** zoom, canvas_bp * mag)


def style_for_tile(
    zoom: int, x: int, y: int, fmt: str = "png", overview: bool = False
) -> DetailStyle:
    """Detail style and canvas for rendering tile (zoom, x, y)."""
    mag = mag_for_zoom(zoom, overview)
    return DetailStyle(
        detail=detail_for_zoom(zoom, overview),
        canvas=tile_transform(zoom, x, y, fmt, mag),
        mag=mag,
    )
