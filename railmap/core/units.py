# railmap/core/units.py
"""
Unit names to Distance values: world units (m, km, wl), absolute map units
(bp, pt, in, mm, cm) and the theme's map units (dt, dl, sw, ...).
"""

from __future__ import annotations

import re

from railmap.core.config import ABSOLUTE_MAP_DISTANCES, MAP_UNIT_NAMES, WORLD_DISTANCES
from railmap.core.types import Distance, MapDistance

_TERM_RE = re.compile(r"\s*([+-]?\s*(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)\s*([a-z]+)\s*")


def resolve_unit(number: float, unit_name: str) -> Distance | None:
    """Distance for number in unit_name, or None if the unit is unknown."""
    factor = WORLD_DISTANCES.get(unit_name)
    if factor is not None:
        return Distance(world=number * factor)
    factor = ABSOLUTE_MAP_DISTANCES.get(unit_name)
    if factor is not None:
        return Distance(map=(MapDistance(number * factor, 0),))
    if unit_name in MAP_UNIT_NAMES:
        return Distance(map=(MapDistance(number, MAP_UNIT_NAMES.index(unit_name)),))
    return None


def parse_distance(s: str) -> Distance:
    """
    Parse a sum of unit terms, e.g. '1.5dt', '200m', '1km + 0.5dt' or '-2 sw'.
    Raises ValueError on anything else.
    """
    text = (s or "").strip()
    if not text:
        raise ValueError("empty distance")
    total = Distance()
    pos = 0
    while pos < len(text):
        m = _TERM_RE.match(text, pos)
        if m is None:
            raise ValueError(f"invalid distance {s!r} at position {pos}")
        number = float(m.group(1).replace(" ", ""))
        unit = resolve_unit(number, m.group(2))
        if unit is None:
            raise ValueError(f"unknown unit {m.group(2)!r} in {s!r}")
        total = total + unit
        pos = m.end()
        if pos < len(text) and text[pos] == "+":
            pos += 1
    return total
