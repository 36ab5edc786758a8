"""
Random fleet placement.
Each ship is placed by rejection sampling: pick an orientation and an anchor cell,
derive the straight run of cells, and retry if the run leaves the grid or touches
an occupied cell. The fleet is data (ShipTemplate list), not part of the algorithm.
"""

import random
import uuid
from dataclasses import dataclass

from battleship.engine import GRID_SIZE
from battleship.engine.coordinates import format_coordinate
from battleship.engine.errors import PlacementExhausted
from battleship.engine.state import Ship

HORIZONTAL = "H"
VERTICAL = "V"

DEFAULT_MAX_ATTEMPTS = 10_000


@dataclass(frozen=True)
class ShipTemplate:
    """A fleet entry: ship category name and length in cells."""
    name: str
    size: int


DEFAULT_FLEET: tuple[ShipTemplate, ...] = (
    ShipTemplate("Battleship", 5),
    ShipTemplate("Destroyer", 4),
    ShipTemplate("Destroyer", 4),
)


def parse_fleet(spec: str) -> tuple[ShipTemplate, ...]:
    """
    Parse a fleet declaration such as "Battleship:5,Destroyer:4,Destroyer:4".
    Raises ValueError on malformed entries.
    """
    fleet = []
    for entry in spec.split(","):
        entry = entry.strip()
        if not entry:
            continue
        name, sep, size = entry.partition(":")
        if not sep or not name.strip():
            raise ValueError(f"Fleet entry must look like 'Name:size', got {entry!r}")
        try:
            fleet.append(ShipTemplate(name.strip(), int(size)))
        except ValueError:
            raise ValueError(f"Ship size must be an integer, got {size!r}") from None
    if not fleet:
        raise ValueError("Fleet declaration is empty")
    return tuple(fleet)


def load_fleet() -> tuple[ShipTemplate, ...]:
    """Fleet from battleship.config.FLEET_SPEC."""
    from battleship.config import FLEET_SPEC
    return parse_fleet(FLEET_SPEC)


def ship_cells(row: int, col: int, size: int, orientation: str) -> list[str] | None:
    """Cells covered by a ship anchored at (row, col), or None if any falls off the grid."""
    cells = []
    for i in range(size):
        r = row if orientation == HORIZONTAL else row + i
        c = col + i if orientation == HORIZONTAL else col
        if r >= GRID_SIZE or c >= GRID_SIZE:
            return None
        cells.append(format_coordinate(r, c))
    return cells


def _check_fleet_fits(fleet: tuple[ShipTemplate, ...] | list[ShipTemplate]) -> None:
    """Reject fleets that can never be placed instead of sampling forever."""
    for template in fleet:
        if template.size < 1 or template.size > GRID_SIZE:
            raise PlacementExhausted(
                f"Ship {template.name!r} of size {template.size} cannot fit a "
                f"{GRID_SIZE}x{GRID_SIZE} grid",
                {"ship": template.name, "size": template.size},
            )
    total = sum(t.size for t in fleet)
    if total > GRID_SIZE * GRID_SIZE:
        raise PlacementExhausted(
            f"Fleet needs {total} cells but the grid only has {GRID_SIZE * GRID_SIZE}",
            {"fleet_cells": total},
        )


def place_ships(
    fleet: tuple[ShipTemplate, ...] | list[ShipTemplate] = DEFAULT_FLEET,
    rng: random.Random | None = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> list[Ship]:
    """
    Place every ship of the fleet, in fleet order, with no shared cell.
    Returns fresh ships (new ids, no hits, not sunk).
    Raises PlacementExhausted if a ship cannot be placed within max_attempts samples.
    """
    _check_fleet_fits(fleet)
    rng = rng or random.Random()
    occupied: set[str] = set()
    ships: list[Ship] = []

    for template in fleet:
        for _ in range(max_attempts):
            orientation = HORIZONTAL if rng.random() < 0.5 else VERTICAL
            row = rng.randrange(GRID_SIZE)
            col = rng.randrange(GRID_SIZE)
            cells = ship_cells(row, col, template.size, orientation)
            if cells is None or any(c in occupied for c in cells):
                continue
            occupied.update(cells)
            ships.append(Ship(
                id=str(uuid.uuid4()),
                name=template.name,
                size=template.size,
                positions=cells,
            ))
            break
        else:
            raise PlacementExhausted(
                f"Could not place {template.name!r} after {max_attempts} attempts",
                {"ship": template.name, "size": template.size, "placed": len(ships)},
            )
    return ships
