"""
Grid coordinates.
Cells are addressed as a row letter A-J followed by a column 1-10 ("A1".."J10").
Internally rows and columns are zero-based indices.
"""

import re
from typing import Any, Iterator

from battleship.engine import GRID_SIZE, ROW_LABELS
from battleship.engine.errors import InvalidCoordinate

# One row letter, then 1-10 with no leading zero
COORDINATE_PATTERN = re.compile(r"^[A-J](10|[1-9])$")


def normalize_coordinate(value: Any) -> str:
    """
    Trim and upper-case a coordinate, then validate it against the grid.
    Raises InvalidCoordinate for anything that is not "A1".."J10".
    """
    if not isinstance(value, str):
        raise InvalidCoordinate(
            "Coordinate must be between A1 and J10",
            {"coordinate": value},
        )
    text = value.strip().upper()
    if not COORDINATE_PATTERN.match(text):
        raise InvalidCoordinate(
            "Coordinate must be between A1 and J10",
            {"coordinate": value},
        )
    return text


def is_valid_coordinate(value: Any) -> bool:
    try:
        normalize_coordinate(value)
    except InvalidCoordinate:
        return False
    return True


def format_coordinate(row: int, col: int) -> str:
    """Zero-based (row, col) to the canonical string."""
    if not (0 <= row < GRID_SIZE and 0 <= col < GRID_SIZE):
        raise InvalidCoordinate(
            f"Cell ({row}, {col}) is outside the {GRID_SIZE}x{GRID_SIZE} grid",
            {"row": row, "col": col},
        )
    return f"{ROW_LABELS[row]}{col + 1}"


def parse_coordinate(value: Any) -> tuple[int, int]:
    """Canonical (or lowercase/padded) string to zero-based (row, col)."""
    text = normalize_coordinate(value)
    return ROW_LABELS.index(text[0]), int(text[1:]) - 1


def all_coordinates() -> Iterator[str]:
    """Every cell of the grid in row-major order."""
    for row in range(GRID_SIZE):
        for col in range(GRID_SIZE):
            yield format_coordinate(row, col)
