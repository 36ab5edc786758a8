"""
Read-side helpers: pagination arithmetic, list-parameter validation and the
public views of a game (what a player may see without the hidden fleet).
"""

import math
from typing import Any

from battleship.engine import GAME_STATUSES
from battleship.engine.errors import ValidationError
from battleship.engine.state import Game


def page_offset(page: int, limit: int) -> int:
    """Rows to skip before the given 1-based page."""
    return (page - 1) * limit


def build_pagination(page: int, limit: int, total: int) -> dict[str, Any]:
    """
    Pagination metadata for one page of a query.
    total=0 gives totalPages=0 and no next/prev; a page past the end has hasNext=False.
    """
    total_pages = math.ceil(total / limit) if total > 0 else 0
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": total_pages,
        "hasNext": page < total_pages,
        "hasPrev": page > 1,
    }


def validate_list_params(
    status: str | None,
    page: Any,
    limit: Any,
    max_limit: int = 100,
) -> tuple[str | None, int, int]:
    """
    Check list-games parameters. Returns (status, page, limit) with ints coerced.
    Raises ValidationError with one entry per bad field.
    """
    errors = []
    if status is not None and status not in GAME_STATUSES:
        errors.append({"field": "status", "message": f"Status must be one of: {', '.join(GAME_STATUSES)}"})
    try:
        page = int(page)
        if page < 1:
            raise ValueError
    except (TypeError, ValueError):
        errors.append({"field": "page", "message": "Page must be a positive integer"})
    try:
        limit = int(limit)
        if not 1 <= limit <= max_limit:
            raise ValueError
    except (TypeError, ValueError):
        errors.append({"field": "limit", "message": f"Limit must be between 1 and {max_limit}"})
    if errors:
        raise ValidationError("Validation failed", {"errors": errors})
    return status, page, limit


def game_state_view(game: Game) -> dict[str, Any]:
    """Player-facing state: no ship positions."""
    return {
        "gameId": game.id,
        "status": game.status,
        "shots": list(game.shots),
        "remainingShips": game.remaining_ships(),
    }


def game_summary_view(game: Game) -> dict[str, Any]:
    out = game_state_view(game)
    out["createdAt"] = game.created_at.isoformat()
    return out
