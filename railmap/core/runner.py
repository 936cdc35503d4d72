# railmap/core/runner.py
"""
CLI entrypoint: load alignments, render each at the requested zoom levels
with offset tracks, write SVG/PNG output and summary.json.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from railmap.core.config import DEFAULT_ALIGNMENTS_DIR, LOG_LEVEL, REPORTS_DIR
from railmap.core.io import ImportPath, load_alignment_file, load_alignments
from railmap.core.render import render_track_debug
from railmap.core.render_svg import export_tracks_svg
from railmap.core.reporting import (
    ensure_report_dir,
    path_summary,
    run_metadata_dict,
    write_summary_json,
    zoom_summary,
)
from railmap.core.trace import Subpath, Trace
from railmap.core.types import Distance
from railmap.core.units import parse_distance
from railmap.core.zoom import parse_zoom_levels, style_for_tile, tile_for_point

logger = logging.getLogger(__name__)


def _parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Fit and render railway alignments.")
    p.add_argument("--alignments", type=str, default=DEFAULT_ALIGNMENTS_DIR, help="Alignment JSON file or directory")
    p.add_argument("--key", type=str, default=None, help="Only render the path with this key")
    p.add_argument("--zoom-levels", type=str, default="", dest="zoom_levels", help="Zoom levels e.g. '10,12,14'")
    p.add_argument("--offset", type=str, default="1dt", help="Offset of the parallel tracks, e.g. '1dt' or '5m'")
    p.add_argument("--format", type=str, default="svg", choices=("svg", "png"), dest="fmt", help="Tile format for canvas scale")
    p.add_argument("--run-name", type=str, default="run", dest="run_name", help="Reports subdir name")
    p.add_argument("--output-dir", type=str, default=REPORTS_DIR, dest="output_dir", help="Output directory (repo-relative)")
    p.add_argument("--repo-root", type=str, default=None, dest="repo_root", help="Repo root (default: cwd)")
    return p.parse_args()


def _load(path: Path) -> dict[str, ImportPath]:
    if path.is_dir():
        paths = load_alignments(path)
        return {k: paths.paths[k] for k in paths.keys()}
    return {p.key: p for p in load_alignment_file(path)}


def render_alignment(
    import_path: ImportPath,
    zoom_levels: list[int],
    offset: Distance,
    report_dir: Path,
    fmt: str = "svg",
) -> dict:
    """
    Render one alignment at every zoom level: the centre line plus tracks
    offset to either side. Writes <key>_z<zoom>.svg and <key>_debug.png;
    returns the summary for summary.json.
    """
    path = import_path.path
    minx, miny, maxx, maxy = path.storage_bounds()
    centre = ((minx + maxx) / 2.0, (miny + maxy) / 2.0)
    safe_key = import_path.key.replace("/", "_")
    zooms: list[dict] = []
    last = None
    for zoom in zoom_levels:
        x, y = tile_for_point(zoom, centre)
        style = style_for_tile(zoom, x, y, fmt)
        tracks = []
        for off in (None, offset, -offset):
            trace = Trace()
            subpath = Subpath.eval_full(path)
            if off is not None:
                subpath = Subpath(path, subpath.start, subpath.end, off)
            trace.push_subpath(1.0, 1.0, subpath)
            tracks.append(trace.segments(style))
        svg_path = export_tracks_svg(tracks, report_dir / f"{safe_key}_z{zoom}.svg")
        logger.info("wrote %s", svg_path)
        zooms.append(zoom_summary(zoom, style, tracks[0]))
        last = tracks
    if last is not None:
        render_track_debug(last[0], report_dir / f"{safe_key}_debug.png", offset_tracks=last[1:])
    summary = path_summary(import_path)
    summary["zooms"] = zooms
    return summary


def main() -> None:
    logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.INFO))
    args = _parse_args()
    repo_root = Path(args.repo_root).resolve() if args.repo_root else Path.cwd().resolve()

    source = Path(args.alignments)
    if not source.is_absolute():
        source = repo_root / source
    if not source.exists():
        raise FileNotFoundError(f"Alignments not found: {source}")

    zoom_levels = parse_zoom_levels(args.zoom_levels)
    offset = parse_distance(args.offset)
    paths = _load(source)
    if args.key is not None:
        if args.key not in paths:
            raise ValueError(f"No alignment with key {args.key!r} in {source}")
        paths = {args.key: paths[args.key]}

    report_dir = ensure_report_dir(repo_root, args.run_name, output_dir=args.output_dir)
    data = run_metadata_dict(args.run_name, str(source), zoom_levels, args.offset)
    data["paths"] = [
        render_alignment(p, zoom_levels, offset, report_dir, args.fmt) for p in paths.values()
    ]
    summary_path = write_summary_json(report_dir, data)
    print(summary_path)


if __name__ == "__main__":
    main()
