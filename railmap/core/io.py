# railmap/core/io.py
"""
Load line alignments from JSON files and fit them into paths.

A file holds nodes (lon/lat plus optional name and pre/post tensions), ways
(ordered node lists with a type) and paths (ordered way members with an
optional 'reverse' role). Errors are collected per file so that one broken
alignment does not hide problems in the others.
"""

from __future__ import annotations

import json
import logging
import math
import sys
from dataclasses import dataclass, field
from pathlib import Path as FsPath
from typing import Any

from railmap.core import error_codes
from railmap.core.config import DEFAULT_TENSION
from railmap.core.geometry import lonlat_to_storage
from railmap.core.path import Path
from railmap.core.spline import fit_path
from railmap.core.types import Knot

logger = logging.getLogger(__name__)

# Configure logger to output to stderr if not already configured
if not logger.handlers and not logging.root.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.WARNING)
    formatter = logging.Formatter("[railmap import] %(levelname)s: %(message)s")
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(logging.WARNING)


WAY_TENSIONS: dict[str, float] = {
    "curved": DEFAULT_TENSION,
    "arc": DEFAULT_TENSION,
    "straight": math.inf,
}


@dataclass(frozen=True)
class AlignmentError:
    """One problem found while importing an alignment."""
    code: str
    key: str | None
    detail: str
    file: str | None = None

    def __str__(self) -> str:
        where = f"{self.file}: " if self.file else ""
        what = f"path {self.key!r}: " if self.key else ""
        return f"{where}{what}{self.detail} ({error_codes.user_message(self.code)})"


class AlignmentSetError(Exception):
    """Raised when any alignment in a file or directory failed to import."""

    def __init__(self, errors: list[AlignmentError]) -> None:
        self.errors = list(errors)
        lines = "\n".join(str(e) for e in self.errors)
        super().__init__(f"{len(self.errors)} alignment error(s):\n{lines}")


@dataclass
class ImportPath:
    """A fitted alignment with its named nodes."""
    key: str
    path: Path
    node_names: dict[str, int] = field(default_factory=dict)

    @property
    def len(self) -> int:
        return self.path.node_len()

    def get_named(self, name: str) -> int | None:
        """Node index for a node name, or None."""
        return self.node_names.get(name)


@dataclass
class PathSet:
    """All imported alignments, by key."""
    paths: dict[str, ImportPath] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.paths)

    def __contains__(self, key: str) -> bool:
        return key in self.paths

    def get(self, key: str) -> ImportPath | None:
        return self.paths.get(key)

    def keys(self) -> list[str]:
        return sorted(self.paths)


def _parse_tension(value: Any) -> float | None:
    try:
        tension = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(tension) or tension <= 0.0:
        return None
    return tension


def _load_knot(
    node_id: str,
    nodes: dict[str, Any],
    key: str,
    tension: float,
    errors: list[AlignmentError],
) -> tuple[Knot, str | None, bool] | None:
    """Knot for node_id with way tension as default; also its name and whether post was explicit."""
    node = nodes.get(node_id)
    if not isinstance(node, dict):
        errors.append(AlignmentError(error_codes.MISSING_NODE, key, f"node {node_id} not found"))
        return None
    try:
        lon = float(node["lon"])
        lat = float(node["lat"])
    except (KeyError, TypeError, ValueError):
        errors.append(
            AlignmentError(error_codes.INVALID_COORDINATES, key, f"node {node_id} has no valid lon/lat")
        )
        return None

    pre = tension
    if "pre" in node:
        parsed = _parse_tension(node["pre"])
        if parsed is None:
            errors.append(
                AlignmentError(error_codes.INVALID_PRE, key, f"node {node_id}: pre={node['pre']!r}")
            )
        else:
            pre = parsed
    post, have_post = tension, False
    if "post" in node:
        parsed = _parse_tension(node["post"])
        if parsed is None:
            errors.append(
                AlignmentError(error_codes.INVALID_POST, key, f"node {node_id}: post={node['post']!r}")
            )
        else:
            post, have_post = parsed, True
    name = node.get("name")
    return Knot(lonlat_to_storage(lon, lat), pre, post), (str(name) if name else None), have_post


def load_knots(
    spec: dict[str, Any],
    nodes: dict[str, Any],
    ways: dict[str, Any],
    key: str,
    errors: list[AlignmentError],
) -> tuple[list[Knot], dict[str, int]]:
    """
    Walk the way members of one path and collect its knots and node names.
    Stops at the first non-contiguous way.
    """
    knots: list[Knot] = []
    names: dict[str, int] = {}
    last_id: str | None = None
    last_explicit_post = False

    for member in spec.get("members", []):
        way_id = str(member.get("way"))
        role = member.get("role", "") or ""
        if role not in ("", "reverse"):
            errors.append(
                AlignmentError(error_codes.UNKNOWN_ROLE, key, f"way {way_id}: role {role!r}")
            )
            continue
        way = ways.get(way_id)
        if not isinstance(way, dict):
            errors.append(AlignmentError(error_codes.MISSING_WAY, key, f"way {way_id} not found"))
            continue
        way_type = way.get("type")
        if way_type is None:
            tension = DEFAULT_TENSION
        elif way_type in WAY_TENSIONS:
            tension = WAY_TENSIONS[way_type]
        else:
            errors.append(
                AlignmentError(error_codes.ILLEGAL_WAY_TYPE, key, f"way {way_id}: type {way_type!r}")
            )
            tension = DEFAULT_TENSION

        way_nodes = [str(n) for n in way.get("nodes", [])]
        if not way_nodes:
            errors.append(AlignmentError(error_codes.EMPTY_WAY, key, f"way {way_id} has no nodes"))
            continue
        if role == "reverse":
            way_nodes.reverse()

        if last_id is not None:
            if way_nodes[0] != last_id:
                errors.append(
                    AlignmentError(
                        error_codes.NON_CONTIGUOUS, key,
                        f"way {way_id} starts at node {way_nodes[0]}, expected {last_id}",
                    )
                )
                return knots, names
            if not last_explicit_post and knots:
                last = knots[-1]
                knots[-1] = Knot(last.point, last.left_tension, tension)
            way_nodes = way_nodes[1:]

        for node_id in way_nodes:
            loaded = _load_knot(node_id, nodes, key, tension, errors)
            last_id = node_id
            if loaded is None:
                continue
            knot, name, have_post = loaded
            if name is not None:
                if name in names:
                    errors.append(
                        AlignmentError(error_codes.DUPLICATE_NAME, key, f"node name {name!r} used twice")
                    )
                names[name] = len(knots)
            knots.append(knot)
            last_explicit_post = have_post
    return knots, names


def load_alignment_doc(doc: dict[str, Any], source: str | None = None) -> tuple[list[ImportPath], list[AlignmentError]]:
    """Import all paths of one parsed document. Returns (paths, errors)."""
    nodes = {str(k): v for k, v in (doc.get("nodes") or {}).items()}
    ways = {str(k): v for k, v in (doc.get("ways") or {}).items()}
    out: list[ImportPath] = []
    errors: list[AlignmentError] = []
    for spec in doc.get("paths") or []:
        key = spec.get("key")
        if not key:
            errors.append(AlignmentError(error_codes.MISSING_KEY, None, "path without key", source))
            continue
        path_errors: list[AlignmentError] = []
        knots, names = load_knots(spec, nodes, ways, key, path_errors)
        if not knots and not path_errors:
            path_errors.append(AlignmentError(error_codes.EMPTY_PATH, key, "no nodes"))
        if path_errors:
            errors.extend(AlignmentError(e.code, e.key, e.detail, source) for e in path_errors)
            continue
        out.append(ImportPath(key, fit_path(knots), names))
        logger.debug("loaded path %s with %d nodes", key, len(knots))
    return out, errors


def load_alignment_file(path: str | FsPath) -> list[ImportPath]:
    """Import one file; raises AlignmentSetError if anything in it failed."""
    paths, errors = _load_file(FsPath(path))
    if errors:
        raise AlignmentSetError(errors)
    return paths


def _load_file(path: FsPath) -> tuple[list[ImportPath], list[AlignmentError]]:
    if not path.exists():
        raise FileNotFoundError(f"Alignment file not found: {path}")
    try:
        doc = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        return [], [AlignmentError(error_codes.READ_FAILED, None, str(e), str(path))]
    if not isinstance(doc, dict):
        return [], [AlignmentError(error_codes.READ_FAILED, None, "top level is not an object", str(path))]
    return load_alignment_doc(doc, str(path))


def load_alignments(directory: str | FsPath) -> PathSet:
    """
    Import every *.json file below directory into one PathSet.
    All errors of all files are collected; AlignmentSetError is raised at
    the end if there were any.
    """
    root = FsPath(directory)
    if not root.is_dir():
        raise FileNotFoundError(f"Alignment directory not found: {root}")
    res = PathSet()
    errors: list[AlignmentError] = []
    for file in sorted(root.rglob("*.json")):
        paths, file_errors = _load_file(file)
        for e in file_errors:
            logger.warning("%s", e)
        errors.extend(file_errors)
        for p in paths:
            if p.key in res.paths:
                err = AlignmentError(error_codes.DUPLICATE_KEY, p.key, "key defined twice", str(file))
                logger.warning("%s", err)
                errors.append(err)
                continue
            res.paths[p.key] = p
    if errors:
        raise AlignmentSetError(errors)
    logger.info("loaded %d alignments from %s", len(res), root)
    return res
