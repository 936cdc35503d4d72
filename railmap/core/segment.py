# railmap/core/segment.py
"""
Path segments: a straight line or a cubic Bezier between two points.

Segments carry an optional cached arc length. The cached value is always
measured in the segment's own frame: storage coordinates for segments taken
from a Path, canvas coordinates after transform().
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Literal, Protocol

from scipy.integrate import quad
from scipy.optimize import brentq

from railmap.core.config import CANVAS_ACCURACY, STORAGE_ACCURACY
from railmap.core.geometry import (
    lerp,
    line_intersect,
    normalize,
    rot90,
    vec_add,
    vec_len,
    vec_scale,
    vec_sub,
)
from railmap.core.types import Point

Frame = Literal["storage", "canvas"]


class PathSink(Protocol):
    """Anything that accepts path drawing commands (SVG writer, matplotlib collector)."""

    def move_to(self, p: Point) -> None: ...

    def line_to(self, p: Point) -> None: ...

    def curve_to(self, c0: Point, c1: Point, p: Point) -> None: ...


@dataclass(frozen=True)
class Segment:
    """A straight line (control is None) or cubic Bezier from p0 to p3."""
    p0: Point
    control: tuple[Point, Point] | None
    p3: Point
    cached_arclen: float | None = None
    frame: Frame = "storage"

    @classmethod
    def line(cls, p0: Point, p3: Point, arclen: float | None = None) -> Segment:
        return cls(p0, None, p3, arclen)

    @classmethod
    def curve(
        cls, p0: Point, p1: Point, p2: Point, p3: Point, arclen: float | None = None
    ) -> Segment:
        return cls(p0, (p1, p2), p3, arclen)

    # ----- Points and directions -----

    @property
    def p1(self) -> Point:
        """First control point; the start point for straight segments."""
        return self.p0 if self.control is None else self.control[0]

    @property
    def p2(self) -> Point:
        """Second control point; the end point for straight segments."""
        return self.p3 if self.control is None else self.control[1]

    def is_straight(self) -> bool:
        return self.control is None

    def point(self, t: float) -> Point:
        """Point at curve time t in [0, 1]."""
        if self.control is None:
            return lerp(self.p0, self.p3, t)
        mt = 1.0 - t
        a, b, c, d = mt * mt * mt, 3.0 * mt * mt * t, 3.0 * mt * t * t, t * t * t
        p0, p1, p2, p3 = self.p0, self.p1, self.p2, self.p3
        return (
            a * p0[0] + b * p1[0] + c * p2[0] + d * p3[0],
            a * p0[1] + b * p1[1] + c * p2[1] + d * p3[1],
        )

    def dir(self, t: float) -> Point:
        """Tangent (derivative) at curve time t. Not normalized."""
        if self.control is None:
            return vec_sub(self.p3, self.p0)
        mt = 1.0 - t
        d0 = vec_sub(self.p1, self.p0)
        d1 = vec_sub(self.p2, self.p1)
        d2 = vec_sub(self.p3, self.p2)
        a, b, c = 3.0 * mt * mt, 6.0 * mt * t, 3.0 * t * t
        return (
            a * d0[0] + b * d1[0] + c * d2[0],
            a * d0[1] + b * d1[1] + c * d2[1],
        )

    def entry_dir(self) -> Point:
        """Direction the segment leaves p0 in, ignoring coincident control points."""
        if self.p1 != self.p0:
            return vec_sub(self.p1, self.p0)
        if self.p2 != self.p0:
            return vec_sub(self.p2, self.p0)
        return vec_sub(self.p3, self.p0)

    def exit_dir(self) -> Point:
        """Direction the segment arrives at p3 in, ignoring coincident control points."""
        if self.p2 != self.p3:
            return vec_sub(self.p3, self.p2)
        if self.p1 != self.p3:
            return vec_sub(self.p3, self.p1)
        return vec_sub(self.p3, self.p0)

    def bounds(self) -> tuple[float, float, float, float]:
        """Tight (minx, miny, maxx, maxy) from endpoints and curve extrema."""
        ts = [0.0, 1.0]
        if self.control is not None:
            for axis in (0, 1):
                ts.extend(_extrema(self.p0[axis], self.p1[axis], self.p2[axis], self.p3[axis]))
        pts = [self.point(t) for t in ts]
        xs = [p[0] for p in pts]
        ys = [p[1] for p in pts]
        return (min(xs), min(ys), max(xs), max(ys))

    # ----- Arc length -----

    def _speed(self, t: float) -> float:
        return vec_len(self.dir(t))

    def _length_to(self, t: float, accuracy: float) -> float:
        if self.control is None:
            return vec_len(vec_sub(self.p3, self.p0)) * t
        if t <= 0.0:
            return 0.0
        res, _err = quad(self._speed, 0.0, t, epsabs=accuracy, limit=100)
        return float(res)

    def _arclen(self, accuracy: float) -> float:
        if self.cached_arclen is not None:
            return self.cached_arclen
        return self._length_to(1.0, accuracy)

    def _arctime(self, length: float, accuracy: float) -> float:
        total = self._arclen(accuracy)
        if length <= 0.0 or total <= 0.0:
            return 0.0
        if length >= total:
            return 1.0
        if self.control is None:
            return length / total
        if self._length_to(1.0, accuracy) - length <= 0.0:
            return 1.0
        return float(
            brentq(lambda t: self._length_to(t, accuracy) - length, 0.0, 1.0, xtol=1e-12)
        )

    def arclen(self) -> float:
        """Arc length at canvas accuracy."""
        return self._arclen(CANVAS_ACCURACY)

    def arclen_storage(self) -> float:
        """Arc length at storage accuracy."""
        return self._arclen(STORAGE_ACCURACY)

    def arctime(self, length: float) -> float:
        """Curve time at which the arc length from the start equals length (canvas accuracy)."""
        return self._arctime(length, CANVAS_ACCURACY)

    def arctime_storage(self, length: float) -> float:
        """Curve time at which the arc length from the start equals length (storage accuracy)."""
        return self._arctime(length, STORAGE_ACCURACY)

    # ----- Derived segments -----

    def _blossom(self, u: float, v: float, w: float) -> Point:
        a = lerp(self.p0, self.p1, u)
        b = lerp(self.p1, self.p2, u)
        c = lerp(self.p2, self.p3, u)
        return lerp(lerp(a, b, v), lerp(b, c, v), w)

    def sub(self, start: float, end: float) -> Segment:
        """
        The part between curve times start and end, re-parameterized to [0, 1].
        start > end gives the reversed piece. The cached arc length is dropped.
        """
        if self.control is None:
            return Segment(self.point(start), None, self.point(end), None, self.frame)
        return Segment(
            self._blossom(start, start, start),
            (self._blossom(start, start, end), self._blossom(start, end, end)),
            self._blossom(end, end, end),
            None,
            self.frame,
        )

    def rev(self) -> Segment:
        """Same geometry traversed from p3 to p0. Keeps the cached arc length."""
        control = None if self.control is None else (self.control[1], self.control[0])
        return Segment(self.p3, control, self.p0, self.cached_arclen, self.frame)

    def transform(self, canvas) -> Segment:
        """Map into canvas coordinates. The cached arc length is scaled along."""
        control = None
        if self.control is not None:
            control = (canvas.apply(self.control[0]), canvas.apply(self.control[1]))
        arclen = None if self.cached_arclen is None else self.cached_arclen * canvas.scale
        return Segment(canvas.apply(self.p0), control, canvas.apply(self.p3), arclen, "canvas")

    def with_arclen(self, arclen: float | None) -> Segment:
        return replace(self, cached_arclen=arclen)

    def offset(self, d: float) -> Segment:
        """
        Approximate offset curve at distance d to the left (rot90) side.
        Uses the Tiller-Hanson construction on the control polygon. Control
        points that coincide with their endpoint are treated as absent.
        """
        r, s = self.p0, self.p3
        u = None if self.control is None or self.control[0] == r else self.control[0]
        v = None if self.control is None or self.control[1] == s else self.control[1]

        def shift(w: Point) -> Point:
            return vec_scale(normalize(rot90(w)), d)

        if u is not None and v is not None:
            wru, wuv, wvs = vec_sub(u, r), vec_sub(v, u), vec_sub(s, v)
            rr = vec_add(r, shift(wru))
            ss = vec_add(s, shift(wvs))
            uv = vec_add(u, shift(wuv))
            uu = line_intersect(rr, wru, uv, wuv) or vec_add(u, shift(wru))
            vv = line_intersect(uv, wuv, ss, wvs) or vec_add(v, shift(wvs))
            return Segment(rr, (uu, vv), ss, None, self.frame)
        if v is not None:
            wrv, wvs = vec_sub(v, r), vec_sub(s, v)
            rr = vec_add(r, shift(wrv))
            ss = vec_add(s, shift(wvs))
            vs = vec_add(v, shift(wvs))
            vv = line_intersect(rr, wrv, vs, wvs) or vs
            return Segment(rr, (rr, vv), ss, None, self.frame)
        if u is not None:
            wru, wus = vec_sub(u, r), vec_sub(s, u)
            rr = vec_add(r, shift(wru))
            ss = vec_add(s, shift(wus))
            us = vec_add(u, shift(wus))
            uu = line_intersect(rr, wru, us, wus) or us
            return Segment(rr, (uu, ss), ss, None, self.frame)
        off = shift(vec_sub(s, r))
        return Segment(vec_add(r, off), None, vec_add(s, off), None, self.frame)

    # ----- Drawing -----

    def apply_start(self, sink: PathSink) -> None:
        sink.move_to(self.p0)

    def apply_tail(self, sink: PathSink) -> None:
        if self.control is None:
            sink.line_to(self.p3)
        else:
            sink.curve_to(self.control[0], self.control[1], self.p3)

    def flatten(self, steps: int) -> list[Point]:
        """Points along the segment at evenly spaced curve times, both ends included."""
        if self.control is None:
            return [self.p0, self.p3]
        return [self.point(i / steps) for i in range(steps + 1)]


def _extrema(a: float, b: float, c: float, d: float) -> list[float]:
    """Curve times in (0, 1) where the 1-D cubic Bezier a, b, c, d has zero derivative."""
    # derivative / 3 = qa t^2 + qb t + qc
    qa = -a + 3.0 * b - 3.0 * c + d
    qb = 2.0 * (a - 2.0 * b + c)
    qc = b - a
    roots: list[float] = []
    if abs(qa) < 1e-15:
        if abs(qb) > 1e-15:
            roots.append(-qc / qb)
    else:
        disc = qb * qb - 4.0 * qa * qc
        if disc >= 0.0:
            sq = math.sqrt(disc)
            roots.append((-qb + sq) / (2.0 * qa))
            roots.append((-qb - sq) / (2.0 * qa))
    return [t for t in roots if 0.0 < t < 1.0]
