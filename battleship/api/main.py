"""
FastAPI backend for the Battleship service.
Thin HTTP shell over GameService: request validation, error mapping, logging.
"""

import logging
import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from battleship import config
from battleship.engine import GRID_DESCRIPTION
from battleship.engine.coordinates import normalize_coordinate
from battleship.engine.errors import GameError
from battleship.engine.queries import game_state_view, game_summary_view

from .cache import MemoryCache
from .database import SessionLocal, init_db
from .idempotency import IdempotencyRecords, IdempotentFire
from .service import GameService
from .store import MemoryGameStore, SqlGameStore

logger = logging.getLogger(__name__)

STARTED_AT = time.monotonic()

REQUEST_ID_HEADER = "X-Request-ID"


# ===== Pydantic Models =====

class FireRequest(BaseModel):
    coordinate: str


# ===== Wiring =====

def build_default_service() -> GameService:
    """Service wired from config: SQL or in-memory store, in-memory cache."""
    if config.STORE_BACKEND == "memory":
        store = MemoryGameStore()
    else:
        store = SqlGameStore(SessionLocal)
    return GameService(store, cache=MemoryCache())


def get_service(request: Request) -> GameService:
    return request.app.state.service


def get_idempotent_fire(request: Request) -> IdempotentFire:
    return request.app.state.idempotent_fire


def _game_id(game_id: uuid.UUID) -> str:
    return str(game_id)


# ===== Routes =====

router = APIRouter(prefix="/api/v1/game", tags=["game"])


@router.post("/start", status_code=201)
def start_game(request: Request, service: GameService = Depends(get_service)):
    """Start a new game. The ship layout is only included when reveal_ships is enabled."""
    game = service.start_game()
    out: dict[str, Any] = {
        "message": "New game started.",
        "gameId": game.id,
        "gridSize": GRID_DESCRIPTION,
        "shipsCount": len(game.ships),
    }
    if request.app.state.reveal_ships:
        out["ships"] = [s.to_dict() for s in game.ships]
    return out


@router.post("/{game_id}/fire")
def fire(
    game_id: uuid.UUID,
    body: FireRequest,
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key"),
    idempotent_fire: IdempotentFire = Depends(get_idempotent_fire),
):
    """Fire at a coordinate. Requires an Idempotency-Key header; replays return the first response."""
    coordinate = normalize_coordinate(body.coordinate)
    return idempotent_fire(_game_id(game_id), coordinate, idempotency_key)


@router.get("/{game_id}/state")
def get_game_state(game_id: uuid.UUID, service: GameService = Depends(get_service)):
    """Current status, shots and number of ships still afloat."""
    return game_state_view(service.get_game(_game_id(game_id)))


@router.get("/status")
def list_games(
    status: str | None = None,
    page: int = config.DEFAULT_PAGE,
    limit: int = config.DEFAULT_PAGE_SIZE,
    service: GameService = Depends(get_service),
):
    """Paginated games, optionally filtered by status (IN_PROGRESS | WON | LOST)."""
    result = service.list_games(status, page, limit)
    return {
        "message": f"Games with status {status}" if status else "All games",
        "data": [game_summary_view(g) for g in result.data],
        "pagination": result.pagination,
    }


@router.get("/recent")
def list_recent_games(service: GameService = Depends(get_service)):
    """IN_PROGRESS games started in the last 24 hours, newest first."""
    games = service.list_recent_games()
    return {"games": [game_summary_view(g) for g in games], "count": len(games)}


@router.delete("/{game_id}")
def delete_game(game_id: uuid.UUID, service: GameService = Depends(get_service)):
    """Delete a game and its ships."""
    deleted = service.delete_game(_game_id(game_id))
    return {"message": "Game deleted successfully", "gameId": deleted}


@router.delete("")
def delete_all_games(service: GameService = Depends(get_service)):
    """Delete every game."""
    count = service.delete_all_games()
    return {"message": "All games deleted successfully", "deletedCount": count}


health_router = APIRouter(tags=["health"])


@health_router.get("/health")
def health():
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - STARTED_AT, 3),
        "environment": config.ENVIRONMENT,
    }


# ===== Error handlers =====

def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "-")


async def game_error_handler(request: Request, exc: GameError):
    level = logging.ERROR if exc.status_code >= 500 else logging.INFO
    logger.log(
        level, "[%s] %s %s -> %s %s: %s",
        _request_id(request), request.method, request.url.path, exc.status_code, exc.code, exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.to_dict()})


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Request-shape errors share the VALIDATION_ERROR envelope with service-level ones."""
    errors = [
        {"field": ".".join(str(p) for p in e.get("loc", ()) if p != "body"), "message": e.get("msg", "")}
        for e in exc.errors()
    ]
    logger.info("[%s] %s %s -> 400 VALIDATION_ERROR: %s", _request_id(request), request.method, request.url.path, errors)
    return JSONResponse(
        status_code=400,
        content={"error": {"message": "Validation failed", "code": "VALIDATION_ERROR", "details": {"errors": errors}}},
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("[%s] Unexpected error on %s %s", _request_id(request), request.method, request.url.path)
    message = str(exc) if config.ENVIRONMENT == "development" else "An unexpected error occurred. Please try again later."
    return JSONResponse(
        status_code=500,
        content={"error": {"message": message, "code": "INTERNAL_ERROR"}},
    )


# ===== App factory =====

def create_app(
    service: GameService | None = None,
    reveal_ships: bool | None = None,
    records: IdempotencyRecords | None = None,
) -> FastAPI:
    """
    Build the application. Tests pass their own service (in-memory store, fixed fleet).
    Idempotency records get their own store (default MemoryCache), independent of the
    service's optional read cache, so replays work with no cache configured.
    """
    service = service or build_default_service()
    records = records if records is not None else MemoryCache()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        config.setup_logging()
        if isinstance(service.store, SqlGameStore):
            init_db(service.store.engine)
        logger.info("Battleship API ready (store=%s)", type(service.store).__name__)
        yield

    app = FastAPI(
        title="Battleship API",
        description="Single-player Battleship: start games, fire shots, list and delete games",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.service = service
    app.state.idempotent_fire = IdempotentFire(service.fire, records, ttl=config.IDEMPOTENCY_TTL)
    app.state.reveal_ships = config.REVEAL_SHIPS if reveal_ships is None else reveal_ships

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """
        Tag the request with an id (the client's X-Request-ID or a new UUID), echo it
        back, and log method, path, status and duration under it. 5xx logs at ERROR.
        """
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.error("[%s] %s %s -> 500 (exception)", request_id, request.method, request.url.path)
            raise
        response.headers[REQUEST_ID_HEADER] = request_id
        elapsed_ms = (time.perf_counter() - started) * 1000
        level = logging.ERROR if response.status_code >= 500 else logging.INFO
        logger.log(
            level, "[%s] %s %s %s %.1fms",
            request_id, request.method, request.url.path, response.status_code, elapsed_ms,
        )
        return response

    app.add_exception_handler(GameError, game_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
    app.include_router(health_router)
    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    config.setup_logging()
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
