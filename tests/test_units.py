"""
Distances and units: arithmetic on Distance, SegTime ordering and unit
name resolution.
"""

from __future__ import annotations

import pytest

from railmap.core.config import KM, M, MM
from railmap.core.types import Distance, Location, MapDistance, SegTime
from railmap.core.units import parse_distance, resolve_unit


def test_distance_addition_and_negation() -> None:
    a = Distance(100.0, (MapDistance(1.0, 1),))
    b = Distance(None, (MapDistance(2.0, 0),))
    total = a + b
    assert total.world == 100.0
    assert total.map == (MapDistance(1.0, 1), MapDistance(2.0, 0))
    neg = -a
    assert neg.world == -100.0
    assert neg.map == (MapDistance(-1.0, 1),)
    acc = Distance()
    acc += a
    acc += a
    assert acc.world == 200.0
    assert len(acc.map) == 2


def test_distance_is_none() -> None:
    assert Distance().is_none()
    assert not Distance(0.0).is_none()
    assert not Distance.from_map(1.0).is_none()
    assert (Distance() - Distance()).is_none()


def test_segtime_ordering_and_end() -> None:
    assert SegTime(1, 0.9) < SegTime(2, 0.0)
    assert SegTime(2, 0.1) < SegTime(2, 0.2)
    assert SegTime(3, 0.0).end() == SegTime(2, 1.0)
    assert SegTime(3, 0.5).end() == SegTime(3, 0.5)


def test_resolve_world_units() -> None:
    assert resolve_unit(2.0, "km") == Distance(world=2.0 * KM)
    assert resolve_unit(3.0, "m") == Distance(world=3.0 * M)
    assert resolve_unit(1.0, "wl").world == pytest.approx(30.0 * M)


def test_resolve_absolute_map_units() -> None:
    d = resolve_unit(2.0, "mm")
    assert d.world is None
    assert d.map == (MapDistance(2.0 * MM, 0),)
    assert resolve_unit(1.0, "in").map == (MapDistance(72.0, 0),)


def test_resolve_theme_units() -> None:
    assert resolve_unit(1.5, "dt").map == (MapDistance(1.5, 1),)
    assert resolve_unit(1.0, "sw").map == (MapDistance(1.0, 3),)


def test_resolve_unknown_unit() -> None:
    assert resolve_unit(1.0, "furlong") is None


def test_parse_distance_sums_terms() -> None:
    d = parse_distance("1km + 0.5dt")
    assert d.world == KM
    assert d.map == (MapDistance(0.5, 1),)
    d = parse_distance("-2 sw")
    assert d.map == (MapDistance(-2.0, 3),)
    d = parse_distance("200m - 1dt")
    assert d.world == pytest.approx(200.0 * M)
    assert d.map == (MapDistance(-1.0, 1),)


@pytest.mark.parametrize("text", ["", "1.5", "dt", "2 parsecs", "1dt 2"])
def test_parse_distance_rejects_garbage(text: str) -> None:
    with pytest.raises(ValueError):
        parse_distance(text)


def test_location_with_map_appends() -> None:
    loc = Location(SegTime(2, 0.25), (MapDistance(1.0, 1),))
    extended = loc.with_map((MapDistance(-0.5, 2),))
    assert extended.world == SegTime(2, 0.25)
    assert extended.map == (MapDistance(1.0, 1), MapDistance(-0.5, 2))
    assert loc.map == (MapDistance(1.0, 1),)
