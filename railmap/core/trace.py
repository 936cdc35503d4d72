# railmap/core/trace.py
"""
Composition of path pieces into drawable traces.

A Trace is a sequence of sections (subpaths of fitted paths or straight
edges between positions). Consecutive sections are joined by a connecting
segment fitted with explicit tensions. All output segments are in canvas
coordinates for a given style.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Iterator, Union

from railmap.core.geometry import bounds_union, normalize, rot90, vec_add, vec_angle, vec_scale
from railmap.core.path import Path
from railmap.core.segment import PathSink, Segment
from railmap.core.spline import connect
from railmap.core.types import Distance, Location, Point, SegTime


def transf_off(seg: Segment, style, offset: Distance | None) -> Segment:
    """Transform a storage segment onto the style's canvas and offset it."""
    canvas = style.transform()
    res = seg.transform(canvas)
    if offset is None:
        return res
    return res.offset(offset.resolve(seg.p0, canvas, style))


@dataclass(frozen=True)
class Subpath:
    """
    The part of a path between two locations, optionally offset sideways.
    Positive offsets are to the left of the direction of travel.
    """
    path: Path
    start: Location
    end: Location
    offset: Distance | None = None

    @classmethod
    def eval_full(cls, path: Path) -> Subpath:
        return cls(path, Location(path.min_location()), Location(path.max_location()))

    @classmethod
    def eval(
        cls,
        path: Path,
        start_node: int,
        start_distance: Distance,
        end_node: int,
        end_distance: Distance,
        offset: Distance | None = None,
    ) -> Subpath:
        start = path.location(start_node, start_distance)
        end = path.location(end_node, end_distance)
        if offset is not None and offset.is_none():
            offset = None
        return cls(path, start, end, offset)

    def storage_bounds(self) -> tuple[float, float, float, float]:
        start, end = self.start.world, self.end.world
        path = self.path
        if start.seg == end.seg:
            pieces = [path.segment_after(start)]
        elif start.seg < end.seg:
            pieces = [path.segment_after(start)]
            pieces += [path.segment(i) for i in range(start.seg + 1, end.seg)]
            pieces.append(path.segment_before(end))
        else:
            pieces = [path.segment_before(start)]
            pieces += [path.segment(i) for i in range(end.seg + 1, start.seg)]
            pieces.append(path.segment_after(end))
        b = bounds_union(seg.bounds() for seg in pieces if seg is not None)
        assert b is not None
        return b

    def segments(self, style) -> list[Segment]:
        """Canvas segments from start to end, in reverse if end lies before start."""
        canvas = style.transform()
        start = self.path.location_time(self.start, canvas, style)
        end = self.path.location_time(self.end, canvas, style)
        if start < end:
            return self._forward(style, start, end)
        return self._reverse(style, start, end)

    def _forward(self, style, start: SegTime, end: SegTime) -> list[Segment]:
        path, offset = self.path, self.offset
        if end.time == 0.0:
            end = end.end()
        if start.seg == end.seg:
            seg = path.segment(start.seg)
            return [transf_off(seg.sub(start.time, end.time), style, offset)]
        out = [transf_off(path.segment_after(start), style, offset)]
        for idx in range(start.seg + 1, end.seg):
            out.append(transf_off(path.segment(idx), style, offset))
        out.append(transf_off(path.segment_before(end), style, offset))
        return out

    def _reverse(self, style, start: SegTime, end: SegTime) -> list[Segment]:
        path, offset = self.path, self.offset
        if start.time == 0.0 and start.seg > 1:
            start = start.end()
        if start.seg == end.seg:
            seg = path.segment(start.seg)
            return [transf_off(seg.sub(end.time, start.time).rev(), style, offset)]
        out = [transf_off(path.segment_before(start).rev(), style, offset)]
        for idx in range(start.seg - 1, end.seg, -1):
            out.append(transf_off(path.segment(idx).rev(), style, offset))
        out.append(transf_off(path.segment_after(end).rev(), style, offset))
        return out


@dataclass(frozen=True)
class Position:
    """A point on a path plus the direction of the path there."""
    path: Path
    location: Location
    sideways: Distance | None = None
    shift: tuple[Distance, Distance] | None = None
    rotation: float | None = None
    """Extra rotation in radians."""

    @classmethod
    def eval(
        cls,
        path: Path,
        node: int,
        distance: Distance,
        sideways: Distance | None = None,
        shift: tuple[Distance, Distance] | None = None,
        rotation_deg: float | None = None,
    ) -> Position:
        location = path.location(node, distance)
        if sideways is not None and sideways.is_none():
            sideways = None
        if shift is not None and shift[0].is_none() and shift[1].is_none():
            shift = None
        rotation = None if rotation_deg is None else math.radians(rotation_deg)
        return cls(path, location, sideways, shift, rotation)

    def with_sideways(self, sideways: Distance) -> Position:
        """Copy with sideways added to the current sideways offset."""
        curr = self.sideways
        return replace(self, sideways=sideways if curr is None else curr + sideways)

    def with_shift(self, shift: tuple[Distance, Distance]) -> Position:
        """Copy with shift added to the current shift."""
        if self.shift is None:
            return replace(self, shift=shift)
        return replace(self, shift=(self.shift[0] + shift[0], self.shift[1] + shift[1]))

    def storage_bounds(self) -> tuple[float, float, float, float]:
        p = self.path.segment_after(self.location.world).p0
        return (p[0], p[1], p[0], p[1])

    def resolve(self, style) -> tuple[Point, float]:
        """Canvas point and direction angle (radians) of the position."""
        canvas = style.transform()
        loc = self.path.location_time(self.location, canvas, style)
        seg = self.path.segment(loc.seg)
        storage_point = seg.point(loc.time)
        direction = seg.dir(loc.time)
        point = canvas.apply(storage_point)
        angle = vec_angle(direction) + (self.rotation or 0.0)
        if self.sideways is not None:
            d = self.sideways.resolve(storage_point, canvas, style)
            point = vec_add(point, vec_scale(normalize(rot90(direction)), d))
        if self.shift is not None:
            point = vec_add(
                point,
                (
                    self.shift[0].resolve(storage_point, canvas, style),
                    self.shift[1].resolve(storage_point, canvas, style),
                ),
            )
        return point, angle

    def resolve_label(self, style, on_path: bool) -> tuple[Point, float]:
        """
        Like resolve() but for labels. On a path the angle is flipped by pi
        if the text would otherwise be upside down; off the path only the
        explicit rotation counts.
        """
        if not on_path:
            return self.resolve(style)[0], self.rotation or 0.0
        point, angle = self.resolve(style)
        if abs(angle) > 0.5 * math.pi:
            angle = angle + math.pi if angle < 0.0 else angle - math.pi
        return point, angle


@dataclass(frozen=True)
class Edge:
    """A straight line between two positions."""
    start: Position
    end: Position

    def storage_bounds(self) -> tuple[float, float, float, float]:
        b = bounds_union([self.start.storage_bounds(), self.end.storage_bounds()])
        assert b is not None
        return b

    def segments(self, style) -> list[Segment]:
        start = self.start.resolve(style)[0]
        end = self.end.resolve(style)[0]
        return [Segment(start, None, end, None, "canvas")]


Section = Union[Subpath, Edge]


class Trace:
    """
    A sequence of sections. Each entry holds the tensions used to leave the
    previous section (post) and enter this one (pre).
    """

    def __init__(self) -> None:
        self._parts: list[tuple[float, float, Section]] = []

    def __len__(self) -> int:
        return len(self._parts)

    def push_subpath(self, post: float, pre: float, section: Subpath) -> None:
        self._parts.append((post, pre, section))

    def push_edge(self, post: float, pre: float, section: Edge) -> None:
        self._parts.append((post, pre, section))

    def push_trace(self, post: float, pre: float, trace: Trace) -> None:
        """Append all sections of trace, joining its first one with post/pre."""
        if not trace._parts:
            return
        self._parts.append((post, pre, trace._parts[0][2]))
        self._parts.extend(trace._parts[1:])

    def _check_not_empty(self) -> None:
        if not self._parts:
            raise ValueError("empty trace")

    def storage_bounds(self) -> tuple[float, float, float, float]:
        self._check_not_empty()
        b = bounds_union(part.storage_bounds() for _, _, part in self._parts)
        assert b is not None
        return b

    def segments(self, style) -> list[Segment]:
        """Canvas segments of all sections with connecting segments in between."""
        self._check_not_empty()
        out: list[Segment] = []
        for post, pre, part in self._parts:
            segs = part.segments(style)
            if out and segs:
                out.append(connect(out[-1], post, pre, segs[0]))
            out.extend(segs)
        return out

    def offset_segments(self, offset: float, style) -> list[Segment]:
        """Segments offset by a canvas distance, for parallel strokes."""
        return [seg.offset(offset) for seg in self.segments(style)]

    def apply(self, sink: PathSink, style) -> None:
        _apply_segments(self.segments(style), sink)

    def apply_offset(self, offset: float, sink: PathSink, style) -> None:
        _apply_segments(self.offset_segments(offset, style), sink)

    def partitions(self, part_len: float, style) -> Iterator[list[Segment]]:
        """
        Split the trace into pieces of part_len bp (on the canvas) each.
        The last piece may be shorter.
        """
        length = part_len * style.transform().canvas_bp
        if length <= 0.0:
            raise ValueError(f"partition length must be positive, got {part_len}")
        segments = iter(self.segments(style))
        cur: Segment | None = None
        while True:
            if cur is None:
                cur = next(segments, None)
                if cur is None:
                    return
            piece: list[Segment] = []
            remaining = length
            while cur is not None:
                seg_len = cur.arclen()
                if remaining < seg_len:
                    t = cur.arctime(remaining)
                    piece.append(cur.sub(0.0, t))
                    cur = cur.sub(t, 1.0)
                    break
                piece.append(cur)
                remaining -= seg_len
                cur = next(segments, None)
                if remaining == 0.0:
                    break
            yield piece


def _apply_segments(segments: list[Segment], sink: PathSink) -> None:
    for i, seg in enumerate(segments):
        if i == 0:
            seg.apply_start(sink)
        seg.apply_tail(sink)
