"""
Single place for service configuration.
Every value has a default; environment variables override them at import time.
"""

import logging
import os

# Fleet declaration: "Name:size" pairs, comma separated. Parsed by engine.placement.
FLEET_SPEC = os.environ.get("BATTLESHIP_FLEET", "Battleship:5,Destroyer:4,Destroyer:4")

# Per-ship cap on rejection-sampling attempts before PlacementExhausted is raised
MAX_PLACEMENT_ATTEMPTS = int(os.environ.get("BATTLESHIP_MAX_PLACEMENT_ATTEMPTS", "10000"))

# "sql" (SQLAlchemy, DATABASE_URL) or "memory" (process-local, lost on restart)
STORE_BACKEND = os.environ.get("BATTLESHIP_STORE", "sql").strip().lower()

# Include the full ship layout in the start-game response. Debug/test only: it gives the board away.
REVEAL_SHIPS = os.environ.get("BATTLESHIP_REVEAL_SHIPS", "0").strip().lower() in ("1", "true", "yes")

ENVIRONMENT = os.environ.get("APP_ENV", "development")
PORT = int(os.environ.get("PORT", "8000"))
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

CORS_ORIGINS = [
    o.strip()
    for o in os.environ.get("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000").split(",")
    if o.strip()
]

# Cache TTLs in seconds
ACTIVE_GAME_TTL = 3600
COMPLETED_GAME_TTL = 86400
GAME_LIST_TTL = 300
RECENT_GAMES_TTL = 60
IDEMPOTENCY_TTL = 86400

# ListRecent trailing window
RECENT_WINDOW_HOURS = 24

# Pagination
DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def setup_logging(level: str | None = None) -> None:
    """Configure root logging once for the process (no-op if handlers already exist)."""
    logging.basicConfig(
        level=getattr(logging, (level or LOG_LEVEL), logging.INFO),
        format=LOG_FORMAT,
    )
