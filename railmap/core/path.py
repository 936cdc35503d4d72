# railmap/core/path.py
"""
Immutable fitted paths and location resolution along them.

A Path is a sequence of elements. Element 0 is the start point; element i
(i >= 1) is the end point of segment i, with optional control points and the
segment's arc length in storage coordinates. So segment i runs from node
i - 1 to node i and valid segment indices are 1 .. node_len() - 1.

Locations are resolved in two steps. Path.location() handles the world part
of a Distance, which needs no style. Path.location_time() handles the map
part once a canvas transform and style are known.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator

from shapely.geometry import LineString

from railmap.core.config import SVG_FLATTEN_STEPS
from railmap.core.geometry import bounds_union, coords_to_linestring, to_storage_distance
from railmap.core.segment import PathSink, Segment
from railmap.core.types import Distance, Location, Point, SegTime


@dataclass(frozen=True)
class Element:
    """One node of a path plus the segment arriving at it."""
    point: Point
    controls: tuple[Point, Point] | None = None
    arclen: float = 0.0


class Path:
    """
    An immutable, shareable fitted path.

    Copies return the same object; nothing can change a Path after it is built.
    """

    __slots__ = ("_elements",)

    def __init__(self, elements: tuple[Element, ...] | list[Element]) -> None:
        elements = tuple(elements)
        if len(elements) < 2:
            raise ValueError(f"a path needs at least two nodes, got {len(elements)}")
        self._elements = elements

    def __copy__(self) -> Path:
        return self

    def __deepcopy__(self, memo: dict) -> Path:
        return self

    def __repr__(self) -> str:
        return f"Path(node_len={self.node_len()})"

    @staticmethod
    def builder(move_to: Point) -> PathBuilder:
        return PathBuilder(move_to)

    # ----- Nodes and segments -----

    def node_len(self) -> int:
        return len(self._elements)

    def node(self, idx: int) -> Point:
        """Storage point of node idx."""
        if idx < 0 or idx >= len(self._elements):
            raise IndexError(f"node {idx} outside path with {len(self._elements)} nodes")
        return self._elements[idx].point

    def segment(self, idx: int) -> Segment | None:
        """Segment idx (from node idx - 1 to node idx) or None if there is none."""
        if idx < 1 or idx >= len(self._elements):
            return None
        el = self._elements[idx]
        return Segment(self._elements[idx - 1].point, el.controls, el.point, el.arclen)

    def segments(self) -> Iterator[Segment]:
        for idx in range(1, len(self._elements)):
            yield self.segment(idx)  # type: ignore[misc]

    def _checked_segment(self, loc: SegTime) -> Segment:
        seg = self.segment(loc.seg)
        if seg is None or not 0.0 <= loc.time <= 1.0:
            raise IndexError(f"{loc} is not a location on a path with {self.node_len()} nodes")
        return seg

    def segment_before(self, loc: SegTime) -> Segment:
        """The part of loc's segment before loc."""
        return self._checked_segment(loc).sub(0.0, loc.time)

    def segment_after(self, loc: SegTime) -> Segment:
        """The part of loc's segment after loc."""
        return self._checked_segment(loc).sub(loc.time, 1.0)

    def min_location(self) -> SegTime:
        return SegTime(1, 0.0)

    def max_location(self) -> SegTime:
        return SegTime(self.node_len() - 1, 1.0)

    # ----- Measuring -----

    def arclen(self) -> float:
        """Total arc length in storage coordinates."""
        return math.fsum(el.arclen for el in self._elements[1:])

    def storage_bounds(self) -> tuple[float, float, float, float]:
        b = bounds_union(seg.bounds() for seg in self.segments())
        assert b is not None
        return b

    def resolve_time(self, time: float) -> SegTime:
        """
        Path time to SegTime. The integer part plus one is the segment, the
        fractional part the time on it. Clamped to the ends of the path; NaN
        and infinite times past the end give the end.
        """
        if time < 0.0:
            return self.min_location()
        if not math.isfinite(time) or time >= self.node_len() - 1:
            return self.max_location()
        seg = int(time) + 1
        return SegTime(seg, time - int(time))

    def point(self, time: float) -> Point:
        """Storage point at path time."""
        loc = self.resolve_time(time)
        return self._checked_segment(loc).point(loc.time)

    def to_linestring(self, steps: int = SVG_FLATTEN_STEPS) -> LineString:
        """Flattened shapely LineString of the path in storage coordinates."""
        coords: list[Point] = []
        for seg in self.segments():
            coords.extend(seg.flatten(steps))
        return coords_to_linestring(coords)

    def apply(self, sink: PathSink, canvas=None) -> None:
        """Draw the whole path, optionally transformed onto a canvas."""
        for i, seg in enumerate(self.segments()):
            if canvas is not None:
                seg = seg.transform(canvas)
            if i == 0:
                seg.apply_start(sink)
            seg.apply_tail(sink)

    # ----- Locations -----

    def location(self, node: int, distance: Distance) -> Location:
        """
        Resolve the world part of distance, starting at node.

        Walks storage arc length forward (positive) or backward (negative),
        clamping at the path ends. The map part is carried along unresolved.
        """
        if node < 0 or node >= self.node_len():
            raise IndexError(f"node {node} outside path with {self.node_len()} nodes")
        world = distance.world
        if world is None:
            if node < self.node_len() - 1:
                return Location(SegTime(node + 1, 0.0), distance.map)
            return Location(SegTime(node, 1.0), distance.map)
        if world < 0.0:
            return Location(self._walk_back(node, -world), distance.map)
        return Location(self._walk_forward(node, world), distance.map)

    def _walk_back(self, node: int, world: float) -> SegTime:
        if node == 0:
            return self.min_location()
        seg = self._elements_segment(node)
        storage = to_storage_distance(world, seg.p3)
        while True:
            arclen = seg.arclen_storage()
            if storage >= arclen:
                if node == 1:
                    return self.min_location()
                node -= 1
                seg = self._elements_segment(node)
                storage -= arclen
            else:
                return SegTime(node, 1.0 - seg.rev().arctime_storage(storage))

    def _walk_forward(self, node: int, world: float) -> SegTime:
        if node == self.node_len() - 1:
            return self.max_location()
        node += 1
        seg = self._elements_segment(node)
        storage = to_storage_distance(world, seg.p0)
        while True:
            arclen = seg.arclen_storage()
            if storage >= arclen:
                if node == self.node_len() - 1:
                    return self.max_location()
                node += 1
                seg = self._elements_segment(node)
                storage -= arclen
            else:
                return SegTime(node, seg.arctime_storage(storage))

    def _elements_segment(self, idx: int) -> Segment:
        seg = self.segment(idx)
        assert seg is not None
        return seg

    def location_time(self, location: Location, canvas, style) -> SegTime:
        """
        Resolve the map part of location on the given canvas transform.

        Map distances are converted to canvas units via the style and
        canvas.canvas_bp, then walked along canvas arc length.
        """
        world = location.world
        offset = sum(style.resolve_distance(md) for md in location.map) * canvas.canvas_bp
        while offset != 0.0:
            seg = self._checked_segment(world).transform(canvas)
            if offset < 0.0:
                back = -offset
                before = seg.sub(0.0, world.time).arclen()
                if before >= back:
                    length = seg.sub(world.time, 1.0).arclen() + back
                    return SegTime(world.seg, 1.0 - seg.rev().arctime(length))
                if world.seg > 1:
                    world = SegTime(world.seg - 1, 1.0)
                    offset = -(back - before)
                else:
                    return self.min_location()
            else:
                after = seg.sub(world.time, 1.0).arclen()
                if after > offset:
                    length = seg.sub(0.0, world.time).arclen() + offset
                    return SegTime(world.seg, seg.arctime(length))
                if world.seg == self.node_len() - 1:
                    return self.max_location()
                world = SegTime(world.seg + 1, 0.0)
                offset -= after
        return world

    # ----- Subpaths -----

    def subpath(self, start_time: float, end_time: float) -> Path:
        """
        The part of the path between two path times. If start_time is after
        end_time the result runs backwards.
        """
        start = self.resolve_time(start_time)
        end = self.resolve_time(end_time)
        if start < end and end.seg > start.seg:
            end = end.end()
        elif start > end and start.seg > end.seg:
            start = start.end()

        if start.seg == end.seg:
            seg = self._elements_segment(start.seg).sub(start.time, end.time)
            return PathBuilder(seg.p0).push_segment(seg).finish()

        if start < end:
            first = self._elements_segment(start.seg).sub(start.time, 1.0)
            builder = PathBuilder(first.p0).push_segment(first)
            for idx in range(start.seg + 1, end.seg):
                builder.push_segment(self._elements_segment(idx))
            builder.push_segment(self._elements_segment(end.seg).sub(0.0, end.time))
            return builder.finish()

        first = self._elements_segment(start.seg).sub(0.0, start.time).rev()
        builder = PathBuilder(first.p0).push_segment(first)
        for idx in range(start.seg - 1, end.seg, -1):
            builder.push_segment(self._elements_segment(idx).rev())
        builder.push_segment(self._elements_segment(end.seg).sub(end.time, 1.0).rev())
        return builder.finish()


class PathBuilder:
    """Collects segments into a Path, computing storage arc lengths as it goes."""

    def __init__(self, move_to: Point) -> None:
        self._elements: list[Element] = [Element(move_to)]

    def _last(self) -> Point:
        return self._elements[-1].point

    def line_to(self, p: Point) -> PathBuilder:
        arclen = Segment.line(self._last(), p).arclen_storage()
        self._elements.append(Element(p, None, arclen))
        return self

    def curve_to(self, c0: Point, c1: Point, p: Point) -> PathBuilder:
        """Cubic segment to p; degenerates to a line if both controls sit on the endpoints."""
        p0 = self._last()
        if p0 == c0 and c1 == p:
            return self.line_to(p)
        arclen = Segment.curve(p0, c0, c1, p).arclen_storage()
        self._elements.append(Element(p, (c0, c1), arclen))
        return self

    def push_segment(self, seg: Segment) -> PathBuilder:
        """Append seg, which must start where the builder currently is."""
        if seg.control is None:
            arclen = seg.arclen_storage()
            self._elements.append(Element(seg.p3, None, arclen))
            return self
        if seg.p0 == seg.control[0] and seg.control[1] == seg.p3:
            return self.push_segment(Segment.line(seg.p0, seg.p3, seg.cached_arclen))
        self._elements.append(Element(seg.p3, seg.control, seg.arclen_storage()))
        return self

    def finish(self) -> Path:
        return Path(tuple(self._elements))
