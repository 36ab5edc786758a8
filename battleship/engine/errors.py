"""
Operational errors raised by the engine and the service layer.
Each kind carries a stable code and HTTP status so the API can map it deterministically.
"""

from typing import Any


class GameError(Exception):
    """Base class for expected, non-fatal failures."""
    code = "GAME_ERROR"
    status_code = 400

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"message": self.message, "code": self.code}
        if self.details:
            out["details"] = self.details
        return out


class InvalidCoordinate(GameError):
    code = "INVALID_COORDINATE"
    status_code = 400


class ValidationError(GameError):
    """Malformed pagination/filter parameters."""
    code = "VALIDATION_ERROR"
    status_code = 400


class MissingIdempotencyKey(GameError):
    code = "MISSING_IDEMPOTENCY_KEY"
    status_code = 400


class GameNotFound(GameError):
    code = "NOT_FOUND"
    status_code = 404


class GameAlreadyWon(GameError):
    code = "GAME_ALREADY_WON"
    status_code = 409


class CoordinateAlreadyFired(GameError):
    code = "COORDINATE_ALREADY_FIRED"
    status_code = 409


class PlacementExhausted(GameError):
    """The fleet could not be placed on the grid."""
    code = "PLACEMENT_EXHAUSTED"
    status_code = 500
