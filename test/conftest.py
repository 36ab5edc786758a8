"""
Shared fixtures: a deterministic fleet, in-memory service wiring and an HTTP client.
"""

import uuid

import pytest
from fastapi.testclient import TestClient

from battleship.api.cache import MemoryCache
from battleship.api.main import create_app
from battleship.api.service import GameService
from battleship.api.store import MemoryGameStore
from battleship.engine.state import Ship


def make_ship(name: str, positions: list[str]) -> Ship:
    return Ship(id=str(uuid.uuid4()), name=name, size=len(positions), positions=list(positions))


def small_fleet() -> list[Ship]:
    """Battleship on A1-A2, one-cell Destroyers on B1 and C1."""
    return [
        make_ship("Battleship", ["A1", "A2"]),
        make_ship("Destroyer", ["B1"]),
        make_ship("Destroyer", ["C1"]),
    ]


class FakeClock:
    """Monotonic-style clock the tests can move forward."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class BrokenCache:
    """A cache backend whose every operation fails."""

    def __getattr__(self, name):
        def fail(*args, **kwargs):
            raise ConnectionError(f"cache unavailable ({name})")
        return fail


@pytest.fixture
def store():
    return MemoryGameStore()


@pytest.fixture
def cache():
    return MemoryCache()


@pytest.fixture
def service(store, cache):
    return GameService(store, cache=cache, placer=small_fleet)


@pytest.fixture
def client(service):
    app = create_app(service=service, reveal_ships=False)
    with TestClient(app) as c:
        yield c
