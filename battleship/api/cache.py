"""
Read cache for games, list pages and idempotency records.

The store is the authority; the cache only accelerates reads. Every cache call
made by the service goes through SafeCache, which logs and swallows backend
failures so an unavailable cache degrades to "always miss" instead of failing
the request.
"""

import json
import logging
import threading
import time
from typing import Any, Callable, Protocol

from battleship import config
from battleship.engine import STATUS_IN_PROGRESS
from battleship.engine.state import Game, Page

logger = logging.getLogger(__name__)

# Key layout (mirrors a Redis deployment: one flat namespace with prefixes)
GAME_KEY = "game:{}"
LIST_KEY_PREFIX = "games:"
IDEMPOTENCY_KEY = "idempotency:{}"


def game_ttl(status: str) -> int:
    """Active games churn; finished games are effectively read-only."""
    return config.ACTIVE_GAME_TTL if status == STATUS_IN_PROGRESS else config.COMPLETED_GAME_TTL


def list_page_key(status: str | None, page: int, limit: int) -> str:
    return f"status:{status or 'all'}:page:{page}:limit:{limit}"


RECENT_GAMES_KEY = "recent"


class GameCache(Protocol):
    def get_game(self, game_id: str) -> Game | None: ...

    def put_game(self, game: Game, ttl: int) -> None: ...

    def invalidate_game(self, game_id: str) -> None: ...

    def get_game_list_page(self, key: str) -> Any | None: ...

    def put_game_list_page(self, key: str, page: Any, ttl: int) -> None: ...

    def invalidate_all_list_pages(self) -> None: ...

    def get_idempotent(self, token: str) -> dict[str, Any] | None: ...

    def put_idempotent(self, token: str, payload: dict[str, Any], ttl: int) -> None: ...

    def delete_idempotent(self, token: str) -> None: ...


class MemoryCache:
    """
    Thread-safe in-process TTL cache.
    Values are stored as JSON text, so every read returns a fresh object and
    nothing a caller mutates can leak back into the cache.
    List pages are JSON-compatible structures (Page.to_dict() or a list of game dicts).
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[str, tuple[float, str]] = {}
        self._lock = threading.Lock()

    # ----- raw key/value -----

    def _get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, raw = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return None
        return json.loads(raw)

    def _set(self, key: str, value: Any, ttl: int) -> None:
        raw = json.dumps(value)
        with self._lock:
            self._entries[key] = (self._clock() + ttl, raw)

    def _delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def ttl(self, key: str) -> float:
        """Seconds until key expires, or -1 if it does not exist."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return -1
            remaining = entry[0] - self._clock()
        return remaining if remaining > 0 else -1

    def __len__(self) -> int:
        with self._lock:
            now = self._clock()
            return sum(1 for expires_at, _ in self._entries.values() if expires_at > now)

    # ----- games -----

    def get_game(self, game_id: str) -> Game | None:
        data = self._get(GAME_KEY.format(game_id))
        return Game.from_dict(data) if data is not None else None

    def put_game(self, game: Game, ttl: int) -> None:
        self._set(GAME_KEY.format(game.id), game.to_dict(), ttl)

    def invalidate_game(self, game_id: str) -> None:
        self._delete(GAME_KEY.format(game_id))

    # ----- list pages -----

    def get_game_list_page(self, key: str) -> Any | None:
        return self._get(LIST_KEY_PREFIX + key)

    def put_game_list_page(self, key: str, page: Any, ttl: int) -> None:
        self._set(LIST_KEY_PREFIX + key, page, ttl)

    def invalidate_all_list_pages(self) -> None:
        with self._lock:
            stale = [k for k in self._entries if k.startswith(LIST_KEY_PREFIX)]
            for k in stale:
                del self._entries[k]
        logger.debug("Invalidated %d game list cache(s)", len(stale))

    # ----- idempotency records -----

    def get_idempotent(self, token: str) -> dict[str, Any] | None:
        return self._get(IDEMPOTENCY_KEY.format(token))

    def put_idempotent(self, token: str, payload: dict[str, Any], ttl: int) -> None:
        self._set(IDEMPOTENCY_KEY.format(token), payload, ttl)

    def delete_idempotent(self, token: str) -> None:
        self._delete(IDEMPOTENCY_KEY.format(token))


class SafeCache:
    """
    Best-effort wrapper around an optional cache backend.
    Reads that fail return None (a miss); writes and invalidations that fail are
    logged at WARNING and dropped. A None backend behaves as an always-empty cache.
    """

    def __init__(self, backend: GameCache | None):
        self.backend = backend

    def _call(self, op: str, default: Any, *args: Any) -> Any:
        if self.backend is None:
            return default
        try:
            return getattr(self.backend, op)(*args)
        except Exception as exc:
            logger.warning("Cache %s failed: %s", op, exc)
            return default

    def get_game(self, game_id: str) -> Game | None:
        game = self._call("get_game", None, game_id)
        if game is not None:
            logger.debug("Cache hit for game: %s", game_id)
        return game

    def put_game(self, game: Game, ttl: int | None = None) -> None:
        self._call("put_game", None, game, ttl if ttl is not None else game_ttl(game.status))

    def invalidate_game(self, game_id: str) -> None:
        self._call("invalidate_game", None, game_id)

    def get_game_list_page(self, key: str) -> Any | None:
        return self._call("get_game_list_page", None, key)

    def put_game_list_page(self, key: str, page: Any, ttl: int) -> None:
        self._call("put_game_list_page", None, key, page, ttl)

    def invalidate_all_list_pages(self) -> None:
        self._call("invalidate_all_list_pages", None)

    def get_idempotent(self, token: str) -> dict[str, Any] | None:
        return self._call("get_idempotent", None, token)

    def put_idempotent(self, token: str, payload: dict[str, Any], ttl: int) -> None:
        self._call("put_idempotent", None, token, payload, ttl)

    def delete_idempotent(self, token: str) -> None:
        self._call("delete_idempotent", None, token)
