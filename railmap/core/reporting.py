# railmap/core/reporting.py
"""
Create reports/<run_name>/ and write summary.json for rendered alignments.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

from railmap.core.config import (
    CANVAS_ACCURACY,
    EQUATOR_BP,
    KM,
    REPORTS_DIR,
    STORAGE_ACCURACY,
    VELOCITY_LIMIT,
)
from railmap.core.io import ImportPath
from railmap.core.segment import Segment
from railmap.core.style import DetailStyle


def path_summary(import_path: ImportPath) -> dict:
    """Key, size and extent of an imported alignment."""
    path = import_path.path
    minx, miny, maxx, maxy = path.storage_bounds()
    return {
        "key": import_path.key,
        "node_len": path.node_len(),
        "storage_arclen": path.arclen(),
        "flattened_arclen": path.to_linestring().length,
        "equator_km": path.arclen() * EQUATOR_BP / KM,
        "storage_bounds": {"minx": minx, "miny": miny, "maxx": maxx, "maxy": maxy},
        "node_names": dict(sorted(import_path.node_names.items(), key=lambda kv: kv[1])),
    }


def zoom_summary(zoom: int, style: DetailStyle, segments: Sequence[Segment]) -> dict:
    """Per-zoom figures: detail level, canvas scale and the rendered length."""
    canvas = style.transform()
    return {
        "zoom": zoom,
        "detail": style.detail,
        "mag": style.mag,
        "canvas_bp": canvas.canvas_bp,
        "scale": canvas.scale,
        "segments": len(segments),
        "straight_segments": sum(1 for s in segments if s.is_straight()),
        "canvas_arclen": sum(s.arclen() for s in segments),
    }


def run_metadata_dict(run_name: str, alignments: str, zoom_levels: list[int], offset: str) -> dict:
    """Timestamp and config snapshot."""
    return {
        "run_name": run_name,
        "timestamp_utc": datetime.now(timezone.utc).isoformat(),
        "alignments": alignments,
        "zoom_levels": list(zoom_levels),
        "offset": offset,
        "config": {
            "STORAGE_ACCURACY": STORAGE_ACCURACY,
            "CANVAS_ACCURACY": CANVAS_ACCURACY,
            "VELOCITY_LIMIT": VELOCITY_LIMIT,
        },
    }


def ensure_report_dir(
    repo_root: Path,
    run_name: str,
    output_dir: str | None = None,
) -> Path:
    """Create output_dir/<run_name>/ under repo_root; return path. Default output_dir from config."""
    base = output_dir if output_dir is not None else REPORTS_DIR
    out = (repo_root / base).resolve() / run_name
    out.mkdir(parents=True, exist_ok=True)
    return out


def write_summary_json(report_dir: Path, data: dict) -> Path:
    """Write summary.json to report_dir. Returns path to file."""
    path = report_dir / "summary.json"
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path
