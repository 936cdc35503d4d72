# railmap/core/config.py
"""
Central configuration for the path-geometry engine.
All tunable values and unit tables live here; no magic numbers in other modules.
"""

from __future__ import annotations

import math
import os

# ----- Paths (repo-relative) -----
DEFAULT_ALIGNMENTS_DIR: str = "alignments"
REPORTS_DIR: str = "reports"

# ----- Accuracy -----
STORAGE_ACCURACY: float = 1e-11
"""Arc length accuracy for storage coordinates (Web Mercator in [0, 1])."""

CANVAS_ACCURACY: float = 0.025
"""Arc length accuracy for canvas coordinates (bp)."""

# ----- Spline fitting -----
VELOCITY_LIMIT: float = 4.0
"""Upper bound for the Hobby velocity and curl ratio."""

SQRT5: float = math.sqrt(5.0)
"""Square root of 5, used by the velocity function."""

DEFAULT_TENSION: float = 1.0
"""Tension used for curved ways and for nodes without explicit pre/post."""

# ----- Base units (bp) -----
MM: float = 72.0 / 25.4
"""One millimetre in bp."""

M: float = 1000.0 * MM
"""One metre (on the map, at scale 1:1000) in bp."""

KM: float = 1000.0 * M
"""One kilometre in bp."""

EQUATOR_BP: float = 40075.016686 * KM
"""Length of the equator in bp; one unit of storage coordinates."""

# ----- Unit tables -----
WORLD_DISTANCES: dict[str, float] = {
    "m": M,
    "km": KM,
    "wl": 30.0 * M,
}
"""World units and their length in bp. 'wl' is the nominal width of a line bundle."""

ABSOLUTE_MAP_DISTANCES: dict[str, float] = {
    "bp": 1.0,
    "pt": 1.0,
    "in": 72.0,
    "mm": MM,
    "cm": 72.0 / 2.54,
}
"""Fixed map units. They all resolve to multiples of map unit 0 (bp)."""

DT: float = 0.75 * MM
"""Distance between parallel tracks."""

DL: float = 0.66 * DT
"""Distance between lines sharing a track."""

SW: float = 3.2 * DT
"""Station width."""

SH: float = 3.0 * DT
"""Station height."""

S3W: float = 0.5 * SW
S3H: float = 0.6 * SH
SSW: float = 0.5 * SW
SSH: float = 0.5 * SH

MAP_UNIT_NAMES: tuple[str, ...] = ("bp", "dt", "dl", "sw", "sh", "ssw")
"""Theme map units; the position is the unit index used by MapDistance."""

MAP_DISTANCES: tuple[tuple[float, ...], ...] = (
    (1.0, 1.0, 1.0, 1.0, 1.0, 1.0),
    (DT, DT, DT, 0.8 * DT, DT, DT),
    (DL, DL, DL, 0.8 * DL, DL, DL),
    (SSW, SSW, SSW, S3W, SW, SW),
    (SSH, SSH, SSH, S3H, SH, SH),
    (SSW, SSW, SSW, S3W, SW, SW),
)
"""Length in bp of each theme map unit at detail levels 0 to 5."""

# ----- Zoom and detail -----
MAX_ZOOM: int = 20
"""Number of supported zoom levels (0 .. MAX_ZOOM - 1)."""

DETAIL_DETAILS: tuple[float, ...] = (
    0.0, 0.0, 0.0, 0.0, 0.0,
    0.0, 0.5, 1.0, 1.5, 2.0,
    3.0, 3.5, 4.0, 4.5, 5.0,
    5.5, 5.5, 5.5, 5.5, 5.5,
)
"""Detail level per zoom for the detailed map."""

DETAIL_MAG: tuple[float, ...] = (
    1.0, 1.0, 1.0, 1.0, 1.0,
    1.0, 1.0, 1.0, 1.3, 1.0,
    1.0, 1.3, 1.0, 1.5, 1.2,
    1.7, 2.0, 3.0, 1.0, 1.0,
)
"""Magnification of map units per zoom for the detailed map."""

OVERVIEW_DETAILS: tuple[float, ...] = (
    0.0, 0.0, 0.0, 0.0, 0.0,
    0.0, 0.5, 1.0, 1.5, 2.0,
) + (2.5,) * 10
"""Detail level per zoom for the overview map."""

OVERVIEW_MAG: tuple[float, ...] = (
    1.0, 1.0, 1.0, 1.0, 1.0,
    1.0, 1.0, 1.0, 1.3, 1.0,
) + (1.3,) * 10
"""Magnification of map units per zoom for the overview map."""

ZOOM_LEVELS_DEFAULT: tuple[int, ...] = (10, 12, 14)
"""Zoom levels rendered by the runner when none are given."""

TILE_FORMATS: dict[str, tuple[float, float]] = {
    "png": (512.0, 192.0 / 72.0),
    "svg": (192.0, 1.0),
}
"""Tile format -> (size in canvas units per tile, canvas units per bp)."""

# ----- Rendering -----
RENDER_WIDTH_PX: int = 800
RENDER_HEIGHT_PX: int = 600
SVG_STROKE_WIDTH: float = 1.5
SVG_FLATTEN_STEPS: int = 16
"""Number of points per segment when flattening for shapely and matplotlib."""

# ----- Logging and debug -----
LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO").upper()
"""Log level used by the CLI."""

RAILMAP_DEBUG: bool = os.environ.get("RAILMAP_DEBUG", "").lower() in ("1", "true", "yes")
"""When set, the solver logs every clamp it applies."""
