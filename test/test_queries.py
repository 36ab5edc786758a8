"""Pagination arithmetic, list-parameter validation and player-facing views."""

import pytest

from battleship.engine.errors import ValidationError
from battleship.engine.queries import (
    build_pagination,
    game_state_view,
    game_summary_view,
    page_offset,
    validate_list_params,
)
from battleship.engine.reducer import apply_shot, new_game

from conftest import small_fleet


@pytest.mark.parametrize("total, limit", [(0, 10), (1, 10), (10, 10), (11, 10), (25, 10), (99, 7), (100, 100)])
def test_pagination_invariants(total, limit):
    first = build_pagination(1, limit, total)
    expected_pages = -(-total // limit)
    assert first["totalPages"] == expected_pages
    assert first["hasPrev"] is False
    assert first["hasNext"] == (expected_pages > 1)
    last = build_pagination(max(expected_pages, 1), limit, total)
    assert last["hasNext"] is False


def test_twenty_five_games_in_pages_of_ten():
    assert build_pagination(1, 10, 25) == {
        "page": 1, "limit": 10, "total": 25, "totalPages": 3, "hasNext": True, "hasPrev": False,
    }
    assert build_pagination(3, 10, 25) == {
        "page": 3, "limit": 10, "total": 25, "totalPages": 3, "hasNext": False, "hasPrev": True,
    }
    assert page_offset(3, 10) == 20


def test_empty_result_has_no_pages():
    meta = build_pagination(1, 10, 0)
    assert meta["totalPages"] == 0
    assert meta["hasNext"] is False
    assert meta["hasPrev"] is False


def test_page_beyond_end_has_no_next():
    meta = build_pagination(7, 10, 25)
    assert meta["hasNext"] is False
    assert meta["hasPrev"] is True


def test_validate_list_params_coerces_ints():
    assert validate_list_params(None, "2", "5") == (None, 2, 5)
    assert validate_list_params("WON", 1, 100) == ("WON", 1, 100)
    assert validate_list_params("LOST", 1, 1) == ("LOST", 1, 1)


def test_validate_list_params_reports_every_bad_field():
    with pytest.raises(ValidationError) as exc_info:
        validate_list_params("FINISHED", 0, 101)
    fields = [e["field"] for e in exc_info.value.details["errors"]]
    assert fields == ["status", "page", "limit"]


@pytest.mark.parametrize("page, limit", [("x", 10), (1, "ten"), (-1, 10), (1, 0), (None, 10)])
def test_validate_list_params_rejects_bad_numbers(page, limit):
    with pytest.raises(ValidationError):
        validate_list_params(None, page, limit)


def test_views_hide_the_fleet():
    game = new_game(small_fleet(), game_id="g-2")
    game, _, _ = apply_shot(game, "B1")
    state = game_state_view(game)
    assert state == {"gameId": "g-2", "status": "IN_PROGRESS", "shots": ["B1"], "remainingShips": 2}
    summary = game_summary_view(game)
    assert summary["createdAt"] == game.created_at.isoformat()
    assert "ships" not in summary
