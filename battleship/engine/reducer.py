"""
Shot resolution.
Applies a shot to a game, enforcing the rules and producing a new game.
Returns (new_game, result, events); the input game is never mutated, so a caller
that fails before persisting the new game leaves the stored state untouched.
"""

import uuid
from datetime import datetime

from battleship.engine import RESULT_HIT, RESULT_MISS, STATUS_IN_PROGRESS, STATUS_WON
from battleship.engine.coordinates import normalize_coordinate
from battleship.engine.errors import CoordinateAlreadyFired, GameAlreadyWon
from battleship.engine.events import (
    GameEvent,
    game_won,
    ship_hit,
    ship_sunk,
    shot_fired,
    shot_missed,
)
from battleship.engine.state import Game, Ship, ShotResult, utcnow


def new_game(ships: list[Ship], game_id: str | None = None, now: datetime | None = None) -> Game:
    """A fresh IN_PROGRESS game owning the given (already placed) ships."""
    return Game(
        id=game_id or str(uuid.uuid4()),
        status=STATUS_IN_PROGRESS,
        ships=ships,
        shots=[],
        created_at=now or utcnow(),
    )


def is_fleet_sunk(ships: list[Ship]) -> bool:
    return all(s.is_sunk for s in ships)


def _find_ship_at(game: Game, coordinate: str) -> Ship | None:
    """
    First ship occupying the coordinate.
    Stopping at the first match is only correct because placement never lets two
    ships share a cell; a placement strategy that allows overlap must resolve
    every matching ship here instead.
    """
    for ship in game.ships:
        if ship.occupies(coordinate):
            return ship
    return None


def apply_shot(game: Game, coordinate: str) -> tuple[Game, ShotResult, list[GameEvent]]:
    """
    Fire at one coordinate.

    Raises:
        InvalidCoordinate: coordinate is not A1..J10
        GameAlreadyWon: the game is in its terminal state
        CoordinateAlreadyFired: the coordinate was already resolved in this game
    """
    coordinate = normalize_coordinate(coordinate)
    if game.status == STATUS_WON:
        raise GameAlreadyWon(
            "Game is already won; no more shots are accepted",
            {"gameId": game.id},
        )
    if coordinate in game.shots:
        raise CoordinateAlreadyFired(
            f"Coordinate {coordinate} has already been fired at",
            {"gameId": game.id, "coordinate": coordinate},
        )

    new_state = game.copy()
    events: list[GameEvent] = []
    new_state.shots.append(coordinate)
    events.append(shot_fired(new_state.id, coordinate, len(new_state.shots)))

    sunk_name = None
    ship = _find_ship_at(new_state, coordinate)
    if ship is None:
        outcome = RESULT_MISS
        events.append(shot_missed(new_state.id, coordinate))
    else:
        outcome = RESULT_HIT
        if coordinate not in ship.hits:
            ship.hits.append(coordinate)
        events.append(ship_hit(new_state.id, coordinate, ship.id, ship.name, len(ship.hits), ship.size))
        if not ship.is_sunk and len(ship.hits) == ship.size:
            ship.is_sunk = True
            sunk_name = ship.name
            events.append(ship_sunk(new_state.id, ship.id, ship.name))

    if is_fleet_sunk(new_state.ships):
        new_state.status = STATUS_WON
        events.append(game_won(new_state.id, len(new_state.shots)))

    result = ShotResult(
        coordinate=coordinate,
        result=outcome,
        sunk=sunk_name,
        game_status=new_state.status,
    )
    return new_state, result, events
