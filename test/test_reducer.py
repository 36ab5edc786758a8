"""Shot resolution: hits, misses, sinking, winning and the rejection rules."""

import pytest

from battleship.engine import RESULT_HIT, RESULT_MISS, STATUS_IN_PROGRESS, STATUS_WON
from battleship.engine.errors import CoordinateAlreadyFired, GameAlreadyWon, InvalidCoordinate
from battleship.engine.events import GAME_WON, SHIP_HIT, SHIP_SUNK, SHOT_FIRED, SHOT_MISSED
from battleship.engine.reducer import apply_shot, is_fleet_sunk, new_game
from battleship.engine.state import Game

from conftest import small_fleet


@pytest.fixture
def game() -> Game:
    return new_game(small_fleet(), game_id="g-1")


def test_new_game_starts_clean(game):
    assert game.id == "g-1"
    assert game.status == STATUS_IN_PROGRESS
    assert game.shots == []
    assert game.remaining_ships() == 3
    assert game.created_at.tzinfo is not None


def test_miss_records_shot_and_keeps_fleet(game):
    after, result, events = apply_shot(game, "J10")
    assert result.result == RESULT_MISS
    assert result.sunk is None
    assert result.game_status == STATUS_IN_PROGRESS
    assert after.shots == ["J10"]
    assert all(s.hits == [] for s in after.ships)
    assert [e.type for e in events] == [SHOT_FIRED, SHOT_MISSED]


def test_hit_marks_ship_without_sinking(game):
    after, result, events = apply_shot(game, "a1")
    assert result.coordinate == "A1"
    assert result.result == RESULT_HIT
    assert result.sunk is None
    battleship = after.ships[0]
    assert battleship.hits == ["A1"]
    assert battleship.is_sunk is False
    assert [e.type for e in events] == [SHOT_FIRED, SHIP_HIT]
    assert events[1].payload["hits"] == 1
    assert events[1].payload["size"] == 2


def test_input_game_is_never_mutated(game):
    snapshot = game.to_dict()
    apply_shot(game, "A1")
    apply_shot(game, "J10")
    assert game.to_dict() == snapshot


def test_full_game_sinks_every_ship_and_wins(game):
    game, r1, _ = apply_shot(game, "A1")
    assert (r1.result, r1.sunk, r1.game_status) == (RESULT_HIT, None, STATUS_IN_PROGRESS)

    game, r2, events = apply_shot(game, "A2")
    assert (r2.result, r2.sunk, r2.game_status) == (RESULT_HIT, "Battleship", STATUS_IN_PROGRESS)
    assert SHIP_SUNK in [e.type for e in events]
    assert game.remaining_ships() == 2

    game, r3, _ = apply_shot(game, "B1")
    assert (r3.result, r3.sunk, r3.game_status) == (RESULT_HIT, "Destroyer", STATUS_IN_PROGRESS)

    game, r4, events = apply_shot(game, "C1")
    assert (r4.result, r4.sunk, r4.game_status) == (RESULT_HIT, "Destroyer", STATUS_WON)
    assert events[-1].type == GAME_WON
    assert events[-1].payload["total_shots"] == 4
    assert game.status == STATUS_WON
    assert game.remaining_ships() == 0
    assert is_fleet_sunk(game.ships)

    with pytest.raises(GameAlreadyWon):
        apply_shot(game, "D1")


def test_repeat_coordinate_is_rejected(game):
    game, _, _ = apply_shot(game, "A1")
    with pytest.raises(CoordinateAlreadyFired) as exc_info:
        apply_shot(game, " a1 ")
    assert exc_info.value.details["coordinate"] == "A1"


def test_repeat_miss_is_rejected(game):
    game, _, _ = apply_shot(game, "E5")
    with pytest.raises(CoordinateAlreadyFired):
        apply_shot(game, "E5")


def test_won_game_rejects_even_repeats(game):
    for coordinate in ("A1", "A2", "B1", "C1"):
        game, _, _ = apply_shot(game, coordinate)
    with pytest.raises(GameAlreadyWon):
        apply_shot(game, "A1")


def test_invalid_coordinate_is_rejected_before_anything_else(game):
    with pytest.raises(InvalidCoordinate):
        apply_shot(game, "Z99")


def test_hits_stay_a_unique_subset_of_positions(game):
    for coordinate in ("A1", "J1", "A2", "D4"):
        game, _, _ = apply_shot(game, coordinate)
    for ship in game.ships:
        assert set(ship.hits) <= set(ship.positions)
        assert len(ship.hits) == len(set(ship.hits))
        assert ship.is_sunk == (len(ship.hits) == ship.size)
    assert len(game.shots) == len(set(game.shots)) == 4


def test_game_survives_dict_round_trip(game):
    game, _, _ = apply_shot(game, "A1")
    restored = Game.from_dict(game.to_dict())
    assert restored == game
    assert Game.from_json(game.to_json()) == game


def test_events_serialize_for_logging(game):
    _, _, events = apply_shot(game, "J10")
    assert [e.to_dict() for e in events] == [
        {"type": SHOT_FIRED, "payload": {"game_id": "g-1", "coordinate": "J10", "shot_number": 1}},
        {"type": SHOT_MISSED, "payload": {"game_id": "g-1", "coordinate": "J10"}},
    ]
