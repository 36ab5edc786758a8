"""SqlGameStore against an in-memory SQLite database."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from battleship.api.cache import MemoryCache
from battleship.api.database import init_db, make_session_factory
from battleship.api.models import GameRow, ShipRow
from battleship.api.service import GameService
from battleship.api.store import SqlGameStore
from battleship.engine import STATUS_WON
from battleship.engine.reducer import apply_shot, new_game

from conftest import small_fleet

BASE_TIME = datetime(2026, 5, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def session_factory():
    factory = make_session_factory("sqlite://")
    init_db(factory.kw["bind"])
    return factory


@pytest.fixture
def sql_store(session_factory):
    return SqlGameStore(session_factory)


def _count(session_factory, model) -> int:
    with session_factory() as db:
        return db.execute(select(func.count()).select_from(model)).scalar_one()


def test_create_and_get_round_trip(sql_store):
    game = new_game(small_fleet(), now=BASE_TIME)
    sql_store.create_game(game)
    loaded = sql_store.get_game(game.id)
    assert loaded == game
    assert [s.name for s in loaded.ships] == ["Battleship", "Destroyer", "Destroyer"]
    assert loaded.created_at.tzinfo is not None
    assert sql_store.get_game("missing") is None


def test_save_persists_shots_hits_and_status(sql_store):
    game = new_game(small_fleet(), now=BASE_TIME)
    sql_store.create_game(game)
    for coordinate in ("A1", "J10", "A2", "B1", "C1"):
        game, _, _ = apply_shot(game, coordinate)
        sql_store.save_game(game)
    loaded = sql_store.get_game(game.id)
    assert loaded.status == STATUS_WON
    assert loaded.shots == ["A1", "J10", "A2", "B1", "C1"]
    assert loaded.ships[0].hits == ["A1", "A2"]
    assert all(s.is_sunk for s in loaded.ships)


def test_save_unknown_game_raises(sql_store):
    with pytest.raises(KeyError):
        sql_store.save_game(new_game(small_fleet()))


def test_delete_cascades_to_ships(sql_store, session_factory):
    keep = new_game(small_fleet(), now=BASE_TIME)
    drop = new_game(small_fleet(), now=BASE_TIME + timedelta(seconds=1))
    sql_store.create_game(keep)
    sql_store.create_game(drop)
    assert _count(session_factory, ShipRow) == 6

    assert sql_store.delete_game(drop.id) is True
    assert sql_store.delete_game(drop.id) is False
    assert _count(session_factory, ShipRow) == 3
    assert sql_store.get_game(keep.id) is not None


def test_list_games_paginates_newest_first(sql_store):
    ids = []
    for i in range(25):
        game = new_game(small_fleet(), now=BASE_TIME + timedelta(minutes=i))
        sql_store.create_game(game)
        ids.append(game.id)
    newest_first = list(reversed(ids))

    page1, total = sql_store.list_games(None, 1, 10)
    assert total == 25
    assert [g.id for g in page1] == newest_first[:10]

    page3, _ = sql_store.list_games(None, 3, 10)
    assert [g.id for g in page3] == newest_first[20:]

    beyond, total = sql_store.list_games(None, 4, 10)
    assert beyond == []
    assert total == 25


def test_list_games_filters_by_status(sql_store):
    active = new_game(small_fleet(), now=BASE_TIME)
    done = new_game(small_fleet(), now=BASE_TIME + timedelta(minutes=1))
    sql_store.create_game(active)
    sql_store.create_game(done)
    done.status = STATUS_WON
    sql_store.save_game(done)

    won, total = sql_store.list_games(STATUS_WON, 1, 10)
    assert total == 1
    assert [g.id for g in won] == [done.id]
    assert sql_store.list_games("LOST", 1, 10) == ([], 0)


def test_list_recent_games(sql_store):
    old = new_game(small_fleet(), now=BASE_TIME - timedelta(hours=30))
    fresh = new_game(small_fleet(), now=BASE_TIME - timedelta(hours=1))
    finished = new_game(small_fleet(), now=BASE_TIME - timedelta(minutes=5))
    for game in (old, fresh, finished):
        sql_store.create_game(game)
    finished.status = STATUS_WON
    sql_store.save_game(finished)

    recent = sql_store.list_recent_games(BASE_TIME - timedelta(hours=24))
    assert [g.id for g in recent] == [fresh.id]


def test_delete_all_games(sql_store, session_factory):
    for i in range(4):
        sql_store.create_game(new_game(small_fleet(), now=BASE_TIME + timedelta(minutes=i)))
    assert len(sql_store.list_game_ids()) == 4
    assert sql_store.delete_all_games() == 4
    assert _count(session_factory, GameRow) == 0
    assert _count(session_factory, ShipRow) == 0
    assert sql_store.delete_all_games() == 0


def test_service_plays_a_full_game_on_sql(sql_store):
    service = GameService(sql_store, cache=MemoryCache(), placer=small_fleet)
    game = service.start_game()
    assert service.fire(game.id, "J10").result == "miss"
    for coordinate in ("A1", "A2", "B1"):
        service.fire(game.id, coordinate)
    final = service.fire(game.id, "C1")
    assert final.game_status == STATUS_WON

    # Read straight from the store, past the cache
    stored = sql_store.get_game(game.id)
    assert stored.status == STATUS_WON
    assert stored.remaining_ships() == 0
    assert service.list_games(status=STATUS_WON).pagination["total"] == 1
