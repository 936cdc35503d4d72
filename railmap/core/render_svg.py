# railmap/core/render_svg.py
"""
Export canvas segments as SVG: path data from segments and a self-contained
file with one stroked path per track.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Sequence

from railmap.core.config import SVG_STROKE_WIDTH
from railmap.core.geometry import bounds_union
from railmap.core.segment import Segment
from railmap.core.types import Point

SVG_NS = "http://www.w3.org/2000/svg"

TRACK_COLORS: tuple[str, ...] = ("#1f4e9c", "#c0392b", "#27ae60", "#8e44ad", "#d35400")


class SvgPathSink:
    """Collects drawing commands as SVG path data."""

    def __init__(self, precision: int = 4) -> None:
        self._parts: list[str] = []
        self._fmt = f"{{:.{precision}f}}"

    def _pt(self, p: Point) -> str:
        return f"{self._fmt.format(p[0])} {self._fmt.format(p[1])}"

    def move_to(self, p: Point) -> None:
        self._parts.append(f"M {self._pt(p)}")

    def line_to(self, p: Point) -> None:
        self._parts.append(f"L {self._pt(p)}")

    def curve_to(self, c0: Point, c1: Point, p: Point) -> None:
        self._parts.append(f"C {self._pt(c0)} {self._pt(c1)} {self._pt(p)}")

    def d(self) -> str:
        return " ".join(self._parts)


def segments_to_svg_d(segments: Sequence[Segment], precision: int = 4) -> str:
    """SVG path d (M, L, C) for a continuous run of segments."""
    if not segments:
        return ""
    sink = SvgPathSink(precision)
    segments[0].apply_start(sink)
    for seg in segments:
        seg.apply_tail(sink)
    return sink.d()


def _tracks_bounds(tracks: Sequence[Sequence[Segment]]) -> tuple[float, float, float, float]:
    b = bounds_union(seg.bounds() for track in tracks for seg in track)
    return b if b is not None else (0.0, 0.0, 1.0, 1.0)


def export_tracks_svg(
    tracks: Sequence[Sequence[Segment]],
    out_path: str | Path,
    width: float | None = None,
    height: float | None = None,
    stroke_width: float = SVG_STROKE_WIDTH,
    margin: float = 10.0,
) -> Path:
    """
    Write an SVG with one stroked path per track. Coordinates are canvas
    units; the viewBox covers all tracks plus margin. Returns the file path.
    """
    min_x, min_y, max_x, max_y = _tracks_bounds(tracks)
    min_x -= margin
    min_y -= margin
    vw = max(1.0, max_x + margin - min_x)
    vh = max(1.0, max_y + margin - min_y)

    # Plain tag names with the xmlns attribute set once
    root = ET.Element(
        "svg",
        {
            "xmlns": SVG_NS,
            "width": f"{width if width is not None else vw:.2f}",
            "height": f"{height if height is not None else vh:.2f}",
            "viewBox": f"{min_x:.2f} {min_y:.2f} {vw:.2f} {vh:.2f}",
            "preserveAspectRatio": "xMidYMid meet",
        },
    )
    group = ET.SubElement(root, "g", {"id": "tracks", "fill": "none", "stroke-linecap": "round"})
    for i, track in enumerate(tracks):
        d = segments_to_svg_d(track)
        if not d:
            continue
        ET.SubElement(
            group,
            "path",
            {
                "id": f"track-{i}",
                "d": d,
                "stroke": TRACK_COLORS[i % len(TRACK_COLORS)],
                "stroke-width": f"{stroke_width:.2f}",
            },
        )

    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    tree = ET.ElementTree(root)
    ET.indent(tree, space="  ")
    tree.write(out, encoding="utf-8", xml_declaration=True)
    return out
