"""Coordinate parsing and validation on the 10x10 grid."""

import pytest

from battleship.engine.coordinates import (
    all_coordinates,
    format_coordinate,
    is_valid_coordinate,
    normalize_coordinate,
    parse_coordinate,
)
from battleship.engine.errors import InvalidCoordinate


@pytest.mark.parametrize("raw, expected", [
    ("A1", "A1"),
    ("j10", "J10"),
    ("  c7 ", "C7"),
    ("E5", "E5"),
])
def test_normalize_accepts_grid_cells(raw, expected):
    assert normalize_coordinate(raw) == expected


@pytest.mark.parametrize("raw", ["Z99", "K1", "A0", "A11", "A01", "A", "10", "", "AA1", "A-1", None, 5])
def test_normalize_rejects_everything_else(raw):
    with pytest.raises(InvalidCoordinate) as exc_info:
        normalize_coordinate(raw)
    assert exc_info.value.code == "INVALID_COORDINATE"
    assert exc_info.value.details == {"coordinate": raw}


def test_parse_and_format_are_inverse():
    assert parse_coordinate("A1") == (0, 0)
    assert parse_coordinate("J10") == (9, 9)
    assert parse_coordinate("c10") == (2, 9)
    assert format_coordinate(2, 9) == "C10"


def test_format_rejects_out_of_bounds():
    with pytest.raises(InvalidCoordinate):
        format_coordinate(10, 0)
    with pytest.raises(InvalidCoordinate):
        format_coordinate(0, -1)


def test_all_coordinates_covers_grid_once():
    cells = list(all_coordinates())
    assert len(cells) == 100
    assert len(set(cells)) == 100
    assert cells[0] == "A1"
    assert cells[-1] == "J10"
    assert all(is_valid_coordinate(c) for c in cells)
