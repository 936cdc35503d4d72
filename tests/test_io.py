"""
Alignment import: JSON documents to fitted paths, tension rules, node names
and per-file error collection.
"""

from __future__ import annotations

import json
import math
from pathlib import Path

import pytest

from railmap.core import error_codes
from railmap.core.geometry import lonlat_to_storage
from railmap.core.io import (
    AlignmentSetError,
    load_alignment_doc,
    load_alignment_file,
    load_alignments,
    load_knots,
)


def _nodes(n: int) -> dict:
    return {
        str(i): {"lon": 13.0 + 0.01 * i, "lat": 52.0 + 0.002 * (i % 2), "name": f"s{i}"}
        for i in range(1, n + 1)
    }


def _doc(ways: dict, members: list, nodes: dict | None = None, key: str = "line.1") -> dict:
    return {
        "nodes": nodes if nodes is not None else _nodes(6),
        "ways": ways,
        "paths": [{"key": key, "members": members}],
    }


def _write(path: Path, doc: dict) -> Path:
    path.write_text(json.dumps(doc), encoding="utf-8")
    return path


def _codes(exc: AlignmentSetError) -> list[str]:
    return [e.code for e in exc.errors]


def test_lonlat_to_storage() -> None:
    assert lonlat_to_storage(0.0, 0.0) == pytest.approx((0.5, 0.5))
    assert lonlat_to_storage(-180.0, 0.0) == pytest.approx((0.0, 0.5))
    x, y = lonlat_to_storage(13.4, 52.5)
    assert 0.5 < x < 0.6
    assert y < 0.5


def test_load_single_path(tmp_path: Path) -> None:
    doc = _doc({"10": {"type": "curved", "nodes": [1, 2, 3]}, "11": {"nodes": [3, 4, 5]}},
               [{"way": 10}, {"way": 11, "role": ""}])
    (imported,) = load_alignment_file(_write(tmp_path / "a.json", doc))
    assert imported.key == "line.1"
    assert imported.len == 5
    assert imported.get_named("s1") == 0
    assert imported.get_named("s5") == 4
    assert imported.get_named("nope") is None
    assert imported.path.node(0) == pytest.approx(lonlat_to_storage(13.01, 52.002))


def test_reverse_role_flips_way() -> None:
    doc = _doc({"10": {"nodes": [1, 2, 3]}, "11": {"nodes": [5, 4, 3]}},
               [{"way": 10}, {"way": 11, "role": "reverse"}])
    paths, errors = load_alignment_doc(doc)
    assert errors == []
    assert paths[0].get_named("s5") == 4


def test_way_type_sets_joint_tension() -> None:
    errors: list = []
    knots, names = load_knots(
        {"members": [{"way": 10}, {"way": 11}]},
        _nodes(4),
        {"10": {"type": "curved", "nodes": [1, 2]}, "11": {"type": "straight", "nodes": [2, 3, 4]}},
        "line.1",
        errors,
    )
    assert errors == []
    assert len(knots) == 4
    assert knots[1].left_tension == 1.0
    assert math.isinf(knots[1].right_tension)
    assert math.isinf(knots[2].left_tension)
    assert names == {"s1": 0, "s2": 1, "s3": 2, "s4": 3}


def test_explicit_tensions_win() -> None:
    nodes = _nodes(3)
    nodes["2"]["post"] = 2.0
    nodes["2"]["pre"] = "1.5"
    errors: list = []
    knots, _ = load_knots(
        {"members": [{"way": 10}, {"way": 11}]},
        nodes,
        {"10": {"nodes": [1, 2]}, "11": {"type": "straight", "nodes": [2, 3]}},
        "line.1",
        errors,
    )
    assert errors == []
    assert knots[1].left_tension == 1.5
    assert knots[1].right_tension == 2.0


def test_straight_way_gives_straight_segments() -> None:
    doc = _doc({"10": {"type": "straight", "nodes": [1, 2, 3]}}, [{"way": 10}])
    paths, errors = load_alignment_doc(doc)
    assert errors == []
    assert all(seg.is_straight() for seg in paths[0].path.segments())


@pytest.mark.parametrize(
    ("ways", "members", "code"),
    [
        ({"10": {"nodes": [1, 2]}}, [{"way": 10, "role": "sideways"}], error_codes.UNKNOWN_ROLE),
        ({"10": {"nodes": [1, 2]}}, [{"way": 99}], error_codes.MISSING_WAY),
        ({"10": {"type": "wobbly", "nodes": [1, 2]}}, [{"way": 10}], error_codes.ILLEGAL_WAY_TYPE),
        ({"10": {"nodes": []}}, [{"way": 10}], error_codes.EMPTY_WAY),
        ({"10": {"nodes": [1, 2]}, "11": {"nodes": [4, 5]}}, [{"way": 10}, {"way": 11}], error_codes.NON_CONTIGUOUS),
        ({"10": {"nodes": [1, 77]}}, [{"way": 10}], error_codes.MISSING_NODE),
        ({}, [], error_codes.EMPTY_PATH),
    ],
)
def test_path_errors_are_reported(tmp_path: Path, ways: dict, members: list, code: str) -> None:
    with pytest.raises(AlignmentSetError) as info:
        load_alignment_file(_write(tmp_path / "bad.json", _doc(ways, members)))
    assert code in _codes(info.value)


def test_invalid_tension_and_duplicate_name() -> None:
    nodes = _nodes(3)
    nodes["2"]["pre"] = "steep"
    nodes["2"]["post"] = -0.5
    nodes["3"]["name"] = "s1"
    _, errors = load_alignment_doc(_doc({"10": {"nodes": [1, 2, 3]}}, [{"way": 10}], nodes))
    codes = [e.code for e in errors]
    assert error_codes.INVALID_PRE in codes
    assert error_codes.INVALID_POST in codes
    assert error_codes.DUPLICATE_NAME in codes


def test_low_positive_tensions_are_accepted() -> None:
    nodes = _nodes(3)
    nodes["2"]["pre"] = 0.5
    nodes["2"]["post"] = "0.4"
    paths, errors = load_alignment_doc(_doc({"10": {"nodes": [1, 2, 3]}}, [{"way": 10}], nodes))
    assert errors == []
    assert paths[0].len == 3

    errors = []
    knots, _ = load_knots({"members": [{"way": 10}]}, nodes, {"10": {"nodes": [1, 2, 3]}}, "line.1", errors)
    assert (knots[1].left_tension, knots[1].right_tension) == (0.5, 0.4)
    assert errors == []


def test_missing_key() -> None:
    doc = {"nodes": _nodes(2), "ways": {"10": {"nodes": [1, 2]}}, "paths": [{"members": [{"way": 10}]}]}
    paths, errors = load_alignment_doc(doc, "x.json")
    assert paths == []
    assert errors[0].code == error_codes.MISSING_KEY
    assert "x.json" in str(errors[0])


def test_directory_collects_errors_from_all_files(tmp_path: Path) -> None:
    good = _doc({"10": {"nodes": [1, 2, 3]}}, [{"way": 10}], key="good")
    bad = _doc({"10": {"nodes": [1, 2]}}, [{"way": 10, "role": "up"}], key="bad")
    _write(tmp_path / "good.json", good)
    _write(tmp_path / "bad.json", bad)
    (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(AlignmentSetError) as info:
        load_alignments(tmp_path)
    codes = _codes(info.value)
    assert error_codes.UNKNOWN_ROLE in codes
    assert error_codes.READ_FAILED in codes
    assert len(codes) == 2


def test_directory_loads_all_paths(tmp_path: Path) -> None:
    _write(tmp_path / "a.json", _doc({"10": {"nodes": [1, 2, 3]}}, [{"way": 10}], key="a"))
    sub = tmp_path / "more"
    sub.mkdir()
    _write(sub / "b.json", _doc({"10": {"nodes": [4, 5, 6]}}, [{"way": 10}], key="b"))
    paths = load_alignments(tmp_path)
    assert paths.keys() == ["a", "b"]
    assert "a" in paths
    assert paths.get("b").len == 3


def test_duplicate_keys_across_files(tmp_path: Path) -> None:
    _write(tmp_path / "a.json", _doc({"10": {"nodes": [1, 2]}}, [{"way": 10}], key="same"))
    _write(tmp_path / "b.json", _doc({"10": {"nodes": [2, 3]}}, [{"way": 10}], key="same"))
    with pytest.raises(AlignmentSetError) as info:
        load_alignments(tmp_path)
    assert _codes(info.value) == [error_codes.DUPLICATE_KEY]


def test_missing_directory(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_alignments(tmp_path / "nope")


def test_user_messages_cover_all_codes() -> None:
    for code in (error_codes.NON_CONTIGUOUS, error_codes.EMPTY_PATH, error_codes.READ_FAILED):
        assert error_codes.user_message(code) != "Something went wrong."
    assert error_codes.user_message(None, "fallback") == "fallback"
