"""
Game state representation.
Reducers never mutate a stored Game; they copy, change the copy and return it.
Includes JSON serialization used by the cache and the HTTP layer.
"""

import json
from copy import deepcopy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from battleship.engine import STATUS_IN_PROGRESS, STATUS_WON


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _ensure_str_list(value: Any) -> list[str]:
    """Ensure value is a list of strings (positions/hits/shots read back from a cache or DB)."""
    if not isinstance(value, list):
        return []
    return [str(x) for x in value]


def _parse_datetime(value: Any) -> datetime:
    """ISO string or datetime to an aware UTC datetime; naive values are assumed UTC."""
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value:
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return utcnow()
    else:
        return utcnow()
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


@dataclass
class Ship:
    """A placed ship. is_sunk is kept equal to (len(hits) == size) by the reducer."""
    id: str
    name: str  # category, e.g. "Battleship"
    size: int
    positions: list[str]  # occupied coordinates, len == size
    hits: list[str] = field(default_factory=list)  # unique subset of positions, in hit order
    is_sunk: bool = False

    def occupies(self, coordinate: str) -> bool:
        return coordinate in self.positions

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "size": self.size,
            "positions": list(self.positions),
            "hits": list(self.hits),
            "isSunk": self.is_sunk,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Ship":
        if not isinstance(data, dict):
            data = {}
        positions = _ensure_str_list(data.get("positions"))
        try:
            size = int(data.get("size", len(positions)))
        except (TypeError, ValueError):
            size = len(positions)
        return cls(
            id=str(data.get("id") or ""),
            name=str(data.get("name") or ""),
            size=size,
            positions=positions,
            hits=_ensure_str_list(data.get("hits")),
            is_sunk=bool(data.get("isSunk", False)),
        )


@dataclass
class Game:
    """A single-player game: the hidden fleet plus every shot fired at it."""
    id: str
    status: str = STATUS_IN_PROGRESS
    ships: list[Ship] = field(default_factory=list)
    shots: list[str] = field(default_factory=list)  # fired coordinates, in order, no duplicates
    created_at: datetime = field(default_factory=utcnow)

    @property
    def is_won(self) -> bool:
        return self.status == STATUS_WON

    def remaining_ships(self) -> int:
        """Number of ships not yet sunk."""
        return sum(1 for s in self.ships if not s.is_sunk)

    def copy(self) -> "Game":
        """Return a deep copy of this game."""
        return deepcopy(self)

    # ===== Serialization Methods =====

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "status": self.status,
            "shots": list(self.shots),
            "createdAt": self.created_at.isoformat(),
            "ships": [s.to_dict() for s in self.ships],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Game":
        """Create a Game from a dictionary (tolerates missing keys)."""
        if not isinstance(data, dict):
            data = {}
        ships_raw = data.get("ships") or []
        if not isinstance(ships_raw, list):
            ships_raw = []
        return cls(
            id=str(data.get("id") or ""),
            status=str(data.get("status") or STATUS_IN_PROGRESS),
            ships=[Ship.from_dict(s) for s in ships_raw if isinstance(s, dict)],
            shots=_ensure_str_list(data.get("shots")),
            created_at=_parse_datetime(data.get("createdAt")),
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, json_str: str) -> "Game":
        return cls.from_dict(json.loads(json_str))


@dataclass(frozen=True)
class ShotResult:
    """Outcome of one accepted shot."""
    coordinate: str
    result: str  # "hit" | "miss"
    sunk: str | None  # name of the ship sunk by this shot, if any
    game_status: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "coordinate": self.coordinate,
            "result": self.result,
            "sunk": self.sunk,
            "gameStatus": self.game_status,
        }


@dataclass
class Page:
    """One page of games plus its pagination metadata."""
    data: list[Game]
    pagination: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": [g.to_dict() for g in self.data],
            "pagination": dict(self.pagination),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Page":
        if not isinstance(data, dict):
            data = {}
        games = data.get("data") or []
        if not isinstance(games, list):
            games = []
        pagination = data.get("pagination")
        return cls(
            data=[Game.from_dict(g) for g in games if isinstance(g, dict)],
            pagination=dict(pagination) if isinstance(pagination, dict) else {},
        )
