"""
Location resolution: world distances along the path and map distances on
a canvas, including clamping at both ends.
"""

from __future__ import annotations

import pytest

from railmap.core.config import EQUATOR_BP
from railmap.core.geometry import scale_correction, to_storage_distance
from railmap.core.path import Path
from railmap.core.spline import fit_path
from railmap.core.style import DetailStyle, Transform
from railmap.core.types import Distance, Knot, Location, MapDistance, SegTime

# Segments of 1e-4 storage units along the equator, where the Mercator
# scale correction is exactly 1.
SEG = 1e-4
SEG_WORLD = SEG * EQUATOR_BP


def _equator_path() -> Path:
    return fit_path([Knot((0.5, 0.5)), Knot((0.5 + SEG, 0.5)), Knot((0.5 + 2 * SEG, 0.5))])


def _style() -> DetailStyle:
    # One segment is 10 canvas units long
    return DetailStyle(detail=0.0, canvas=Transform(scale=10.0 / SEG))


def test_scale_correction_on_equator_and_north() -> None:
    assert scale_correction((0.5, 0.5)) == 1.0
    assert scale_correction((0.5, 0.3)) > 1.0
    assert to_storage_distance(EQUATOR_BP, (0.0, 0.5)) == pytest.approx(1.0)


def test_location_without_world_is_node_boundary() -> None:
    path = _equator_path()
    assert path.location(0, Distance()).world == SegTime(1, 0.0)
    assert path.location(1, Distance()).world == SegTime(2, 0.0)
    assert path.location(2, Distance()).world == SegTime(2, 1.0)


def test_location_forward_within_and_across_segments() -> None:
    path = _equator_path()
    loc = path.location(0, Distance(0.5 * SEG_WORLD))
    assert loc.world.seg == 1
    assert loc.world.time == pytest.approx(0.5, rel=1e-6)
    loc = path.location(0, Distance(1.5 * SEG_WORLD))
    assert loc.world.seg == 2
    assert loc.world.time == pytest.approx(0.5, rel=1e-6)


def test_location_backward() -> None:
    path = _equator_path()
    loc = path.location(2, Distance(-0.25 * SEG_WORLD))
    assert loc.world.seg == 2
    assert loc.world.time == pytest.approx(0.75, rel=1e-6)
    loc = path.location(2, Distance(-1.5 * SEG_WORLD))
    assert loc.world.seg == 1
    assert loc.world.time == pytest.approx(0.5, rel=1e-6)


def test_location_clamps_at_ends() -> None:
    path = _equator_path()
    assert path.location(0, Distance(10 * SEG_WORLD)).world == path.max_location()
    assert path.location(2, Distance(1.0)).world == path.max_location()
    assert path.location(1, Distance(-10 * SEG_WORLD)).world == path.min_location()
    assert path.location(0, Distance(-1.0)).world == path.min_location()


def test_location_is_monotone() -> None:
    path = _equator_path()
    distances = [-3.0, -0.2, 0.0, 0.1, 0.7, 1.2, 1.9, 5.0]
    locs = [path.location(1, Distance(d * SEG_WORLD)).world for d in distances]
    assert locs == sorted(locs)


def test_location_carries_map_component() -> None:
    path = _equator_path()
    md = (MapDistance(1.5, 1),)
    assert path.location(0, Distance(0.5 * SEG_WORLD, md)).map == md
    assert path.location(0, Distance(50 * SEG_WORLD, md)).map == md


def test_location_invalid_node() -> None:
    path = _equator_path()
    with pytest.raises(IndexError):
        path.location(3, Distance())
    with pytest.raises(IndexError):
        path.location(-1, Distance())


def test_location_time_without_map_is_world() -> None:
    path = _equator_path()
    style = _style()
    loc = Location(SegTime(1, 0.3))
    assert path.location_time(loc, style.transform(), style) == SegTime(1, 0.3)


def test_location_time_forward() -> None:
    path = _equator_path()
    style = _style()
    canvas = style.transform()
    res = path.location_time(Location(SegTime(1, 0.0), (MapDistance(5.0),)), canvas, style)
    assert res.seg == 1
    assert res.time == pytest.approx(0.5, abs=1e-6)
    res = path.location_time(Location(SegTime(1, 0.0), (MapDistance(15.0),)), canvas, style)
    assert res.seg == 2
    assert res.time == pytest.approx(0.5, abs=1e-6)


def test_location_time_backward() -> None:
    path = _equator_path()
    style = _style()
    canvas = style.transform()
    res = path.location_time(Location(SegTime(2, 0.5), (MapDistance(-10.0),)), canvas, style)
    assert res.seg == 1
    assert res.time == pytest.approx(0.5, abs=1e-6)


def test_location_time_clamps() -> None:
    path = _equator_path()
    style = _style()
    canvas = style.transform()
    fwd = path.location_time(Location(SegTime(1, 0.5), (MapDistance(100.0),)), canvas, style)
    assert fwd == path.max_location()
    back = path.location_time(Location(SegTime(2, 0.5), (MapDistance(-100.0),)), canvas, style)
    assert back == path.min_location()


def test_location_time_uses_canvas_bp() -> None:
    path = _equator_path()
    style = DetailStyle(detail=0.0, canvas=Transform(scale=10.0 / SEG, canvas_bp=2.0))
    res = path.location_time(
        Location(SegTime(1, 0.0), (MapDistance(2.5),)), style.transform(), style
    )
    assert res.time == pytest.approx(0.5, abs=1e-6)


def _northern_curve() -> Path:
    # Wavy path at y = 0.3, where the scale correction is about 1.9
    y = 0.3
    return fit_path([
        Knot((0.5, y)),
        Knot((0.5 + SEG, y + 0.5 * SEG)),
        Knot((0.5 + 2 * SEG, y)),
        Knot((0.5 + 3 * SEG, y + 0.5 * SEG)),
    ])


def _world_for(storage: float, path: Path, node: int) -> float:
    return storage * EQUATOR_BP / scale_correction(path.node(node))


def test_forward_walk_on_curve_off_equator() -> None:
    path = _northern_curve()
    assert not path.segment(2).is_straight()
    assert scale_correction(path.node(1)) > 1.8
    first = path.segment(1).arclen_storage()
    second = path.segment(2).arclen_storage()

    world = _world_for(0.5 * second, path, 1)
    loc = path.location(1, Distance(world))
    assert loc.world.seg == 2
    walked = path.segment_before(loc.world).arclen_storage()
    assert walked == pytest.approx(to_storage_distance(world, path.node(1)), rel=1e-5)
    assert walked == pytest.approx(0.5 * second, rel=1e-5)

    world = _world_for(first + 0.5 * second, path, 0)
    loc = path.location(0, Distance(world))
    assert loc.world.seg == 2
    walked = first + path.segment_before(loc.world).arclen_storage()
    assert walked == pytest.approx(to_storage_distance(world, path.node(0)), rel=1e-5)


def test_backward_walk_on_curve_off_equator() -> None:
    path = _northern_curve()
    second = path.segment(2).arclen_storage()
    third = path.segment(3).arclen_storage()

    world = _world_for(0.25 * second, path, 2)
    loc = path.location(2, Distance(-world))
    assert loc.world.seg == 2
    walked = path.segment_after(loc.world).arclen_storage()
    assert walked == pytest.approx(to_storage_distance(world, path.node(2)), rel=1e-5)

    world = _world_for(third + 0.25 * second, path, 3)
    loc = path.location(3, Distance(-world))
    assert loc.world.seg == 2
    walked = third + path.segment_after(loc.world).arclen_storage()
    assert walked == pytest.approx(to_storage_distance(world, path.node(3)), rel=1e-5)
