#!/usr/bin/env python3
"""
Generate sample alignment JSON files for trying out the railmap runner.

Categories:
1-5:   Straight lines (single straight way)
6-10:  Gentle curves (one curved way through a sine wave of nodes)
11-15: Mixed alignments (straight approach, curved middle, straight exit)
16-20: Reversed members (middle way stored backwards, role 'reverse')
"""

from __future__ import annotations

import json
import math
import random
from pathlib import Path

import numpy as np

# Output directory
OUTPUT_DIR = Path(__file__).parent.parent / "alignments"

# Base coordinates (central Berlin)
BASE_LON = 13.40
BASE_LAT = 52.52
STEP_DEG = 0.005


def save_alignment(filename: str, doc: dict) -> None:
    """Save an alignment document as JSON."""
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    path = OUTPUT_DIR / filename
    path.write_text(json.dumps(doc, indent=2), encoding="utf-8")
    print(f"Created: {path.name}")


def sine_nodes(n: int, amplitude: float, phase: float, rng: random.Random) -> list[tuple[float, float]]:
    """n lon/lat pairs along a sine wave heading east, with a little jitter."""
    xs = np.arange(n) * STEP_DEG
    ys = amplitude * np.sin(xs / (STEP_DEG * 3.0) + phase)
    return [
        (BASE_LON + float(x), BASE_LAT + float(y) + rng.uniform(-1e-4, 1e-4))
        for x, y in zip(xs, ys)
    ]


def build_doc(key: str, coords: list[tuple[float, float]], ways: list[tuple[str, int, int, bool]]) -> dict:
    """
    Document with nodes 1..n and the given ways. Each way is
    (type, first index, last index, reversed).
    """
    nodes = {
        str(i + 1): {"lon": lon, "lat": lat, "name": f"n{i + 1}"}
        for i, (lon, lat) in enumerate(coords)
    }
    way_docs = {}
    members = []
    for w, (way_type, first, last, reverse) in enumerate(ways):
        ids = [i + 1 for i in range(first, last + 1)]
        if reverse:
            ids.reverse()
        way_id = str(100 + w)
        way_docs[way_id] = {"type": way_type, "nodes": ids}
        members.append({"way": way_id, "role": "reverse" if reverse else ""})
    return {"nodes": nodes, "ways": way_docs, "paths": [{"key": key, "members": members}]}


def main() -> None:
    rng = random.Random(42)
    for i in range(1, 21):
        n = rng.randint(5, 12)
        if i <= 5:
            coords = sine_nodes(n, 0.0, 0.0, rng)
            ways = [("straight", 0, n - 1, False)]
        elif i <= 10:
            coords = sine_nodes(n, 0.004, rng.uniform(0, math.pi), rng)
            ways = [("curved", 0, n - 1, False)]
        elif i <= 15:
            coords = sine_nodes(n, 0.003, 0.0, rng)
            ways = [("straight", 0, 1, False), ("curved", 1, n - 2, False), ("straight", n - 2, n - 1, False)]
        else:
            coords = sine_nodes(n, 0.003, 1.0, rng)
            mid = n // 2
            ways = [("curved", 0, mid, False), ("curved", mid, n - 1, True)]
        save_alignment(f"line_{i:02d}.json", build_doc(f"line.{i:02d}", coords, ways))


if __name__ == "__main__":
    main()
