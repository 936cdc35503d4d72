# railmap/core/spline.py
"""
Hobby spline fitting for open curves.

Fits cubic Bezier segments through an ordered list of knots so that the
curve is smooth (G1) at every interior knot. Both ends use a curl of 1.
Tensions are per side of each knot; math.inf makes that side straight.
"""

from __future__ import annotations

import logging
import math

import numpy as np

from railmap.core.config import RAILMAP_DEBUG, SQRT5, VELOCITY_LIMIT
from railmap.core.geometry import vec_angle, vec_len, vec_sub
from railmap.core.path import Path, PathBuilder
from railmap.core.segment import Segment
from railmap.core.types import Knot, Point

logger = logging.getLogger(__name__)


def velocity(st: float, ct: float, sf: float, cf: float, t: float) -> float:
    """
    Hobby's velocity function: relative distance of a control point from its
    knot, given sine/cosine of the start and end angles and the tension.
    """
    num = 2.0 + math.sqrt(2.0) * (st - sf / 16.0) * (sf - st / 16.0) * (ct - cf)
    denom = 1.5 * t * (2.0 + (SQRT5 - 1.0) * ct + (3.0 - SQRT5) * cf)
    if denom == 0.0:
        return VELOCITY_LIMIT
    res = num / denom
    if math.isnan(res) or res > VELOCITY_LIMIT:
        if RAILMAP_DEBUG:
            logger.debug("velocity clamped (raw=%s, tension=%s)", res, t)
        return VELOCITY_LIMIT
    return res


def curl_ratio(gamma: float, a_tension: float, b_tension: float) -> float:
    """Ratio used to close the system at a curl end."""
    alpha = 1.0 / a_tension
    beta = 1.0 / b_tension
    num = (3.0 - alpha) * alpha * alpha * gamma + beta * beta * beta
    denom = alpha * alpha * alpha * gamma + (3.0 - beta) * beta * beta
    if denom == 0.0:
        return VELOCITY_LIMIT
    res = num / denom
    if math.isnan(res) or res > VELOCITY_LIMIT:
        if RAILMAP_DEBUG:
            logger.debug("curl ratio clamped (raw=%s)", res)
        return VELOCITY_LIMIT
    return res


def cos_sin(theta: float) -> tuple[float, float]:
    return (math.cos(theta), math.sin(theta))


def _check_tensions(knots: list[Knot]) -> None:
    for i, knot in enumerate(knots):
        for side, tension in (("left", knot.left_tension), ("right", knot.right_tension)):
            if math.isnan(tension) or tension <= 0.0:
                raise ValueError(f"knot {i}: {side} tension {tension!r} must be positive")


def _reciprocal(x: float) -> float:
    """1/x, with 0 for a zero x so that a singular row drops its coupling term."""
    return 0.0 if x == 0.0 else 1.0 / x


def _controls(
    p: Point, q: Point, delta: Point,
    st: float, ct: float, sf: float, cf: float,
    post: float, pre: float,
) -> tuple[Point, Point]:
    rr = velocity(st, ct, sf, cf, post)
    ss = velocity(sf, cf, st, ct, pre)
    dx, dy = delta
    return (
        (p[0] + (dx * ct - dy * st) * rr, p[1] + (dy * ct + dx * st) * rr),
        (q[0] - (dx * cf + dy * sf) * ss, q[1] - (dy * cf - dx * sf) * ss),
    )


def _make_segment(p: Point, c0: Point, c1: Point, q: Point) -> Segment:
    if c0 == p and c1 == q:
        return Segment.line(p, q)
    return Segment.curve(p, c0, c1, q)


def _solve_thetas(knots: list[Knot], delta: list[Point], psi: np.ndarray) -> np.ndarray:
    """Solve the tridiagonal system for the outgoing angles theta."""
    n = len(knots) - 1
    dlen = [vec_len(d) for d in delta]
    theta = np.zeros(n + 1)
    uu = np.zeros(n + 1)
    vv = np.zeros(n + 1)
    ww = np.zeros(n + 1)

    # First knot: curl 1 on its right, second knot open on its left.
    uu[0] = curl_ratio(1.0, knots[0].right_tension, knots[1].left_tension)
    vv[0] = -psi[1] * uu[0]
    ww[0] = 0.0

    for k in range(1, n):
        r, s, t = knots[k - 1], knots[k], knots[k + 1]
        aa = _reciprocal(3.0 * r.right_tension - 1.0)
        bb = _reciprocal(3.0 * t.left_tension - 1.0)
        cc = 1.0 - uu[k - 1] * aa
        dd = dlen[k] * (3.0 - 1.0 / r.right_tension) * cc
        ee = dlen[k - 1] * (3.0 - 1.0 / t.left_tension)
        lt, rt = s.left_tension, s.right_tension
        if lt < rt:
            dd *= (lt / rt) ** 2
        elif lt > rt:
            ee *= (rt / lt) ** 2
        ff = ee / (ee + dd) if ee + dd != 0.0 else 0.5
        uu[k] = ff * bb

        acc = -psi[k + 1] * uu[k]
        if k == 1:
            ww[k] = 0.0
            vv[k] = acc - psi[1] * (1.0 - ff)
        else:
            ff = (1.0 - ff) / cc
            acc -= psi[k] * ff
            ff *= aa
            vv[k] = acc - vv[k - 1] * ff
            ww[k] = -ww[k - 1] * ff

    # Last knot: curl 1 on its left. The ratio takes the tensions of the
    # second-to-last knot pair.
    ff = curl_ratio(1.0, knots[n - 1].left_tension, knots[n - 2].right_tension)
    denom = 1.0 - ff * uu[n - 1]
    theta[n] = -(vv[n - 1] * ff) / denom if denom != 0.0 else 0.0
    for k in range(n - 1, -1, -1):
        theta[k] = vv[k] - theta[k + 1] * uu[k]
    return theta


def fit_segments(knots: list[Knot]) -> list[Segment]:
    """
    Fit a smooth open curve through knots. Returns len(knots) - 1 segments,
    or one zero-length segment for a single knot.
    """
    if not knots:
        raise ValueError("cannot fit a curve through zero knots")
    _check_tensions(knots)
    if len(knots) == 1:
        return [Segment.line(knots[0].point, knots[0].point)]
    if len(knots) == 2:
        return [Segment.line(knots[0].point, knots[1].point)]

    delta = [vec_sub(b.point, a.point) for a, b in zip(knots, knots[1:])]
    # Turning angle at each interior knot; dummies at both ends.
    psi = np.zeros(len(knots))
    for k in range(1, len(knots) - 1):
        (x0, y0), (x1, y1) = delta[k - 1], delta[k]
        psi[k] = math.atan2(x0 * y1 - y0 * x1, x0 * x1 + y0 * y1)

    theta = _solve_thetas(knots, delta, psi)

    out: list[Segment] = []
    for k in range(len(knots) - 1):
        s, t = knots[k], knots[k + 1]
        if math.isinf(s.right_tension) and math.isinf(t.left_tension):
            out.append(Segment.line(s.point, t.point))
            continue
        ct, st = cos_sin(float(theta[k]))
        cf, sf = cos_sin(float(-psi[k + 1] - theta[k + 1]))
        c0, c1 = _controls(
            s.point, t.point, delta[k], st, ct, sf, cf, s.right_tension, t.left_tension
        )
        out.append(_make_segment(s.point, c0, c1, t.point))
    return out


def fit_path(knots: list[Knot]) -> Path:
    """Fit knots and wrap the segments into a Path with storage arc lengths."""
    segments = fit_segments(knots)
    builder = PathBuilder(segments[0].p0)
    for seg in segments:
        builder.push_segment(seg)
    return builder.finish()


def connect(before: Segment, post: float, pre: float, after: Segment) -> Segment:
    """
    Segment joining the end of `before` to the start of `after`, leaving and
    arriving in their directions, with tensions post (start) and pre (end).
    """
    r, s = before.p3, after.p0
    if math.isinf(post) and math.isinf(pre):
        return Segment.line(r, s)
    d = vec_sub(s, r)
    aa = vec_angle(d)
    theta = vec_angle(before.exit_dir()) - aa
    phi = vec_angle(after.entry_dir()) - aa
    st, ct = math.sin(theta), math.cos(theta)
    sf, cf = -math.sin(phi), math.cos(phi)
    c0, c1 = _controls(r, s, d, st, ct, sf, cf, post, pre)
    return _make_segment(r, c0, c1, s)
