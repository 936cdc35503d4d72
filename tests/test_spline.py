"""
Spline fitting: degenerate inputs, collinear knots, tangent continuity,
straight tensions and connecting segments.
"""

from __future__ import annotations

import math

import pytest

from railmap.core.segment import Segment
from railmap.core.spline import connect, curl_ratio, fit_path, fit_segments, velocity
from railmap.core.types import Knot


def test_velocity_for_straight_angles() -> None:
    assert velocity(0.0, 1.0, 0.0, 1.0, 1.0) == pytest.approx(1.0 / 3.0)


def test_velocity_with_infinite_tension_is_zero() -> None:
    assert velocity(0.0, 1.0, 0.0, 1.0, math.inf) == 0.0


def test_curl_ratio_unit_and_degenerate() -> None:
    assert curl_ratio(1.0, 1.0, 1.0) == pytest.approx(1.0)
    # 0/0 clamps to the limit
    assert curl_ratio(0.0, math.inf, math.inf) == 4.0


def test_single_knot_is_a_point() -> None:
    path = fit_path([Knot((3.0, 4.0))])
    assert path.node_len() == 2
    assert path.arclen() == 0.0
    assert path.point(0.5) == (3.0, 4.0)


def test_two_knots_make_a_straight_line() -> None:
    path = fit_path([Knot((0.0, 0.0)), Knot((10.0, 0.0))])
    assert path.node_len() == 2
    assert path.segment(1).is_straight()
    assert path.point(0.5) == pytest.approx((5.0, 0.0))
    assert path.arclen() == pytest.approx(10.0)


def test_collinear_knots_stay_on_the_line() -> None:
    path = fit_path([Knot((0.0, 0.0)), Knot((10.0, 0.0)), Knot((20.0, 0.0))])
    assert path.node_len() == 3
    for i in range(21):
        x, y = path.point(i / 10.0)
        assert y == pytest.approx(0.0, abs=1e-12)
    assert path.point(1.5) == pytest.approx((15.0, 0.0))
    assert path.arclen() == pytest.approx(20.0)


def test_fit_passes_through_knots() -> None:
    pts = [(0.0, 0.0), (10.0, 5.0), (20.0, 0.0), (30.0, 5.0), (35.0, 15.0)]
    segs = fit_segments([Knot(p) for p in pts])
    assert len(segs) == 4
    for seg, (a, b) in zip(segs, zip(pts, pts[1:])):
        assert seg.p0 == a
        assert seg.p3 == b


def test_fit_is_tangent_continuous() -> None:
    pts = [(0.0, 0.0), (10.0, 5.0), (20.0, 0.0), (30.0, 5.0)]
    segs = fit_segments([Knot(p) for p in pts])
    for before, after in zip(segs, segs[1:]):
        a = before.exit_dir()
        b = after.entry_dir()
        cross = a[0] * b[1] - a[1] * b[0]
        dot = a[0] * b[0] + a[1] * b[1]
        assert abs(cross) <= 1e-9 * math.hypot(*a) * math.hypot(*b)
        assert dot > 0.0


def test_straight_tensions_give_lines() -> None:
    knots = [
        Knot((0.0, 0.0), 1.0, math.inf),
        Knot((10.0, 0.0), math.inf, 1.0),
        Knot((20.0, 10.0)),
    ]
    segs = fit_segments(knots)
    assert segs[0].is_straight()
    assert not segs[1].is_straight()


@pytest.mark.parametrize("tension", [-1.0, 0.0, math.nan])
def test_non_positive_tension_rejected(tension: float) -> None:
    with pytest.raises(ValueError):
        fit_segments([Knot((0.0, 0.0)), Knot((1.0, 1.0), tension, 1.0), Knot((2.0, 0.0))])


def _middle_control_distance(tension: float) -> float:
    segs = fit_segments([Knot((0.0, 0.0)), Knot((10.0, 5.0), tension, tension), Knot((20.0, 0.0))])
    assert segs[0].p3 == (10.0, 5.0)
    return math.dist(segs[0].p2, (10.0, 5.0))


def test_low_tension_fits_wider_curve() -> None:
    loose = _middle_control_distance(0.5)
    assert math.isfinite(loose)
    assert loose > _middle_control_distance(1.0)


def test_tension_of_one_third_stays_finite() -> None:
    knots = [Knot((0.0, 0.0), 1.0, 1.0 / 3.0), Knot((10.0, 5.0)), Knot((20.0, 0.0)), Knot((30.0, 5.0))]
    for seg in fit_segments(knots):
        for p in (seg.p1, seg.p2):
            assert math.isfinite(p[0]) and math.isfinite(p[1])


def test_closing_equation_with_asymmetric_end_tension() -> None:
    # theta = (0.618197, 0.309098, -0.309098); last segment velocities 2/(3t(1 + cos 0.309098))
    segs = fit_segments([Knot((0.0, 0.0)), Knot((10.0, 5.0)), Knot((20.0, 0.0), 2.0, 1.0)])
    last = segs[1]
    assert last.p1 == pytest.approx((13.77173, 4.41240), abs=1e-3)
    assert last.p2 == pytest.approx((18.63344, 1.33241), abs=1e-3)


def test_no_knots_rejected() -> None:
    with pytest.raises(ValueError):
        fit_segments([])


def test_connect_aligned_segments() -> None:
    before = Segment.line((0.0, 0.0), (10.0, 0.0))
    after = Segment.line((20.0, 0.0), (30.0, 0.0))
    seg = connect(before, 1.0, 1.0, after)
    assert seg.p0 == (10.0, 0.0)
    assert seg.p3 == (20.0, 0.0)
    assert seg.p1 == pytest.approx((10.0 + 10.0 / 3.0, 0.0))
    assert seg.p2 == pytest.approx((20.0 - 10.0 / 3.0, 0.0))


def test_connect_with_infinite_tensions_is_straight() -> None:
    before = Segment.line((0.0, 0.0), (10.0, 0.0))
    after = Segment.line((20.0, 5.0), (30.0, 5.0))
    seg = connect(before, math.inf, math.inf, after)
    assert seg.is_straight()
    assert (seg.p0, seg.p3) == ((10.0, 0.0), (20.0, 5.0))
