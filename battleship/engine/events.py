"""
Game events for logging and API consumers.
Events describe what happened while a shot was resolved.
"""

from dataclasses import dataclass
from typing import Any


@dataclass
class GameEvent:
    """Base event class. All events have a type and payload."""
    type: str
    payload: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "payload": self.payload}


# ===== Event Type Constants =====

SHOT_FIRED = "shot_fired"
SHOT_MISSED = "shot_missed"
SHIP_HIT = "ship_hit"
SHIP_SUNK = "ship_sunk"
GAME_WON = "game_won"


# ===== Event Factory Functions =====

def shot_fired(game_id: str, coordinate: str, shot_number: int) -> GameEvent:
    return GameEvent(SHOT_FIRED, {
        "game_id": game_id,
        "coordinate": coordinate,
        "shot_number": shot_number,
    })


def shot_missed(game_id: str, coordinate: str) -> GameEvent:
    return GameEvent(SHOT_MISSED, {
        "game_id": game_id,
        "coordinate": coordinate,
    })


def ship_hit(game_id: str, coordinate: str, ship_id: str, ship_name: str, hits: int, size: int) -> GameEvent:
    return GameEvent(SHIP_HIT, {
        "game_id": game_id,
        "coordinate": coordinate,
        "ship_id": ship_id,
        "ship_name": ship_name,
        "hits": hits,
        "size": size,
    })


def ship_sunk(game_id: str, ship_id: str, ship_name: str) -> GameEvent:
    return GameEvent(SHIP_SUNK, {
        "game_id": game_id,
        "ship_id": ship_id,
        "ship_name": ship_name,
    })


def game_won(game_id: str, total_shots: int) -> GameEvent:
    return GameEvent(GAME_WON, {
        "game_id": game_id,
        "total_shots": total_shots,
    })
