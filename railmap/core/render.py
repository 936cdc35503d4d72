# railmap/core/render.py
"""
Matplotlib PNG rendering of fitted tracks for visual debugging: the curve,
its control polygons, the knots and any offset tracks.
"""

from __future__ import annotations

import warnings
from pathlib import Path
from typing import Sequence

import matplotlib.pyplot as plt
import numpy as np

from railmap.core.config import RENDER_HEIGHT_PX, RENDER_WIDTH_PX, SVG_FLATTEN_STEPS
from railmap.core.geometry import bounds_union
from railmap.core.segment import Segment


def set_axes_to_bounds(
    ax: plt.Axes, bounds: tuple[float, float, float, float], pad_frac: float = 0.05
) -> None:
    """Set xlim/ylim from bounds with margin; equal aspect; y grows downwards; hide axes."""
    minx, miny, maxx, maxy = bounds
    dx = max(1.0, (maxx - minx) * pad_frac)
    dy = max(1.0, (maxy - miny) * pad_frac)
    ax.set_xlim(minx - dx, maxx + dx)
    # Canvas coordinates grow downwards
    ax.set_ylim(maxy + dy, miny - dy)
    ax.set_aspect("equal", adjustable="box")
    ax.axis("off")


def _segments_xy(segments: Sequence[Segment], steps: int = SVG_FLATTEN_STEPS) -> np.ndarray:
    coords: list[tuple[float, float]] = []
    for seg in segments:
        pts = seg.flatten(steps)
        coords.extend(pts if not coords else pts[1:])
    return np.array(coords) if coords else np.zeros((0, 2))


def _control_xy(seg: Segment) -> np.ndarray:
    return np.array([seg.p0, seg.p1, seg.p2, seg.p3])


def render_track_debug(
    segments: Sequence[Segment],
    output_path: str | Path,
    offset_tracks: Sequence[Sequence[Segment]] = (),
    width_px: int = RENDER_WIDTH_PX,
    height_px: int = RENDER_HEIGHT_PX,
    show_controls: bool = True,
) -> None:
    """Render canvas segments plus offsets to a PNG with a legend below the image."""
    fig = plt.figure(figsize=(width_px / 100.0, height_px / 100.0), dpi=100, constrained_layout=False)
    # Leave bottom margin so legend does not overlap the image
    ax = fig.add_axes([0.05, 0.08, 0.9, 0.88])
    ax.axis("off")

    xy = _segments_xy(segments)
    if len(xy):
        ax.plot(xy[:, 0], xy[:, 1], linewidth=2, color="navy", label="path")

    for i, track in enumerate(offset_tracks):
        oxy = _segments_xy(track)
        if len(oxy):
            ax.plot(oxy[:, 0], oxy[:, 1], linewidth=1, linestyle="--", label="offset" if i == 0 else None)

    if show_controls:
        labelled = False
        for seg in segments:
            if seg.is_straight():
                continue
            cxy = _control_xy(seg)
            ax.plot(cxy[:, 0], cxy[:, 1], linewidth=0.5, color="grey", alpha=0.7,
                    label=None if labelled else "controls")
            labelled = True

    if segments:
        knots = np.array([segments[0].p0] + [seg.p3 for seg in segments])
        ax.scatter(knots[:, 0], knots[:, 1], s=10, color="crimson", zorder=3, label="nodes")

    bounds = bounds_union(
        seg.bounds() for track in [list(segments), *offset_tracks] for seg in track
    )
    if bounds is not None:
        set_axes_to_bounds(ax, bounds)
    leg = ax.legend(loc="upper center", bbox_to_anchor=(0.5, -0.02), ncol=4, fontsize=8)
    with warnings.catch_warnings():
        warnings.filterwarnings("ignore", message=".*constrained_layout.*", category=UserWarning)
        fig.savefig(output_path, dpi=100, facecolor="white", bbox_inches="tight", bbox_extra_artists=[leg])
    plt.close(fig)
