"""
Idempotent shot submission.

IdempotentFire wraps a fire(game_id, coordinate) callable. The first request
carrying a token runs the shot and records its payload under the token; later
requests with the same token get the recorded payload back, marked
idempotent=True, without firing again. Records live in any key-value store with
TTL support (get_idempotent / put_idempotent), e.g. MemoryCache.
"""

import logging
import threading
from typing import Any, Callable, Protocol

from battleship import config
from battleship.engine.errors import MissingIdempotencyKey
from battleship.engine.state import ShotResult

logger = logging.getLogger(__name__)


class IdempotencyRecords(Protocol):
    def get_idempotent(self, token: str) -> dict[str, Any] | None: ...

    def put_idempotent(self, token: str, payload: dict[str, Any], ttl: int) -> None: ...


class IdempotentFire:
    """Decorator object around a fire operation, keyed by a client-supplied token."""

    def __init__(
        self,
        fire: Callable[[str, str], ShotResult],
        records: IdempotencyRecords,
        ttl: int = config.IDEMPOTENCY_TTL,
    ):
        self._fire = fire
        self._records = records
        self._ttl = ttl
        # token -> [lock, number of requests currently holding or waiting on it]
        self._token_locks: dict[str, list] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, token: str) -> threading.Lock:
        with self._registry_lock:
            entry = self._token_locks.get(token)
            if entry is None:
                entry = self._token_locks[token] = [threading.Lock(), 0]
            entry[1] += 1
            return entry[0]

    def _release(self, token: str) -> None:
        with self._registry_lock:
            entry = self._token_locks.get(token)
            if entry is None:
                return
            entry[1] -= 1
            if entry[1] <= 0:
                del self._token_locks[token]

    def __call__(self, game_id: str, coordinate: str, token: str | None) -> dict[str, Any]:
        if token is None or not str(token).strip():
            raise MissingIdempotencyKey("Missing Idempotency-Key header")
        token = str(token).strip()

        # Concurrent requests with one token must observe a single execution
        lock = self._lock_for(token)
        try:
            with lock:
                stored = self._records.get_idempotent(token)
                if stored is not None:
                    logger.info("Replaying idempotent response for key %s", token)
                    return {**stored, "idempotent": True}

                # Failures propagate and are not recorded, so the client may retry with the same token
                result = self._fire(game_id, coordinate)
                payload = result.to_dict()
                self._records.put_idempotent(token, payload, self._ttl)
        finally:
            self._release(token)
        return {**payload, "idempotent": False}

    def clear(self, token: str) -> None:
        """Forget a recorded token (maintenance)."""
        delete = getattr(self._records, "delete_idempotent", None)
        if delete is not None:
            delete(token)
