"""
Game service: the lifecycle of games on top of a store and an optional cache.

Rules live in battleship.engine; this module owns ordering and side effects:
per-game locking around read-check-mutate-write, persisting through the store,
keeping the cache coherent (write-through for games, invalidation for lists).
"""

import logging
import random
import threading
from contextlib import ExitStack, contextmanager
from datetime import datetime, timedelta
from typing import Callable, Iterator

from battleship import config
from battleship.engine.coordinates import normalize_coordinate
from battleship.engine.errors import GameNotFound
from battleship.engine.placement import ShipTemplate, load_fleet, place_ships
from battleship.engine.queries import build_pagination, validate_list_params
from battleship.engine.reducer import apply_shot, new_game
from battleship.engine.state import Game, Page, Ship, ShotResult, utcnow

from .cache import RECENT_GAMES_KEY, GameCache, SafeCache, list_page_key
from .store import GameStore

logger = logging.getLogger(__name__)

ShipPlacer = Callable[[], list[Ship]]


class GameService:
    """
    Create, fire, read, list and delete games.

    The store is the authority: fire/delete always read from it inside the game's
    lock. The cache is optional (None is fine) and only consulted on plain reads.
    """

    def __init__(
        self,
        store: GameStore,
        cache: GameCache | SafeCache | None = None,
        fleet: tuple[ShipTemplate, ...] | None = None,
        placer: ShipPlacer | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.cache = cache if isinstance(cache, SafeCache) else SafeCache(cache)
        self.fleet = fleet if fleet is not None else load_fleet()
        self._rng = rng
        self._placer = placer or self._place_fleet
        self._clock = clock
        # game id -> [lock, number of callers holding or waiting on it]
        self._game_locks: dict[str, list] = {}
        # Held briefly to hand out game locks; held throughout delete_all to freeze mutation
        self._registry_lock = threading.Lock()

    def _place_fleet(self) -> list[Ship]:
        return place_ships(self.fleet, rng=self._rng, max_attempts=config.MAX_PLACEMENT_ATTEMPTS)

    # ===== Locking =====

    @contextmanager
    def _game_lock(self, game_id: str) -> Iterator[None]:
        """
        Exclusive access to one game. Entries are dropped once nobody holds or
        waits on them, so unknown ids do not accumulate.
        """
        with self._registry_lock:
            entry = self._game_locks.get(game_id)
            if entry is None:
                entry = self._game_locks[game_id] = [threading.Lock(), 0]
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            # The game lock is released before the registry is taken again, so delete_all can proceed
            with self._registry_lock:
                entry[1] -= 1
                if entry[1] <= 0 and self._game_locks.get(game_id) is entry:
                    del self._game_locks[game_id]

    # ===== Cache coherence =====

    def _after_write(self, game: Game) -> None:
        self.cache.put_game(game)
        self.cache.invalidate_all_list_pages()

    def _after_delete(self, game_ids: list[str]) -> None:
        for game_id in game_ids:
            self.cache.invalidate_game(game_id)
        self.cache.invalidate_all_list_pages()

    # ===== Operations =====

    def start_game(self) -> Game:
        """Place the fleet, persist a fresh IN_PROGRESS game and return it (ships included)."""
        ships = self._placer()
        game = new_game(ships, now=self._clock())
        # A game lock (not the registry lock) so the create I/O only blocks delete_all,
        # which cannot start while any game lock is held
        with self._game_lock(game.id):
            self.store.create_game(game)
            self._after_write(game)
        logger.info("Started game %s with %d ships", game.id, len(game.ships))
        return game

    def fire(self, game_id: str, coordinate: str) -> ShotResult:
        """
        Resolve one shot. The coordinate is validated before any I/O.

        Raises InvalidCoordinate, GameNotFound, GameAlreadyWon, CoordinateAlreadyFired.
        """
        coordinate = normalize_coordinate(coordinate)
        with self._game_lock(game_id):
            game = self.store.get_game(game_id)
            if game is None:
                raise GameNotFound("Game not found", {"id": game_id})
            updated, result, events = apply_shot(game, coordinate)
            self.store.save_game(updated)
            # Inside the lock so a slower concurrent shot cannot overwrite a newer cached copy
            self._after_write(updated)
        for event in events:
            logger.debug("Game event: %s", event.to_dict())
        logger.info(
            "Game %s: %s at %s%s (status %s)",
            game_id, result.result, coordinate,
            f", sunk {result.sunk}" if result.sunk else "",
            result.game_status,
        )
        return result

    def get_game(self, game_id: str) -> Game:
        """Cache-aside read of one game."""
        game = self.cache.get_game(game_id)
        if game is not None:
            return game
        # Fill under the game lock so a concurrent shot or delete cannot be overwritten by this older read
        with self._game_lock(game_id):
            game = self.store.get_game(game_id)
            if game is None:
                raise GameNotFound("Game not found", {"id": game_id})
            self.cache.put_game(game)
        return game

    def list_games(
        self,
        status: str | None = None,
        page: int = config.DEFAULT_PAGE,
        limit: int = config.DEFAULT_PAGE_SIZE,
    ) -> Page:
        """One page of games, newest first, optionally filtered by status (LOST always yields nothing)."""
        status, page, limit = validate_list_params(status, page, limit, config.MAX_PAGE_SIZE)
        key = list_page_key(status, page, limit)
        cached = self.cache.get_game_list_page(key)
        if cached is not None:
            logger.debug("Cache hit for game list %s", key)
            return Page.from_dict(cached)
        games, total = self.store.list_games(status, page, limit)
        result = Page(data=games, pagination=build_pagination(page, limit, total))
        self.cache.put_game_list_page(key, result.to_dict(), config.GAME_LIST_TTL)
        return result

    def list_recent_games(self, window: timedelta | None = None) -> list[Game]:
        """IN_PROGRESS games created within the trailing window (default 24h), newest first."""
        # Only the default window is cached
        use_cache = window is None
        if use_cache:
            cached = self.cache.get_game_list_page(RECENT_GAMES_KEY)
            if cached is not None:
                return [Game.from_dict(g) for g in cached]
        window = window or timedelta(hours=config.RECENT_WINDOW_HOURS)
        games = self.store.list_recent_games(self._clock() - window)
        if use_cache:
            self.cache.put_game_list_page(
                RECENT_GAMES_KEY, [g.to_dict() for g in games], config.RECENT_GAMES_TTL
            )
        return games

    def delete_game(self, game_id: str) -> str:
        """Delete one game and its ships. Raises GameNotFound."""
        with self._game_lock(game_id):
            if not self.store.delete_game(game_id):
                raise GameNotFound("Game not found", {"id": game_id})
            self._after_delete([game_id])
        logger.info("Deleted game %s", game_id)
        return game_id

    def delete_all_games(self) -> int:
        """
        Delete every game. Waits for in-flight shots/deletes to finish and blocks
        new ones (they queue on the lock registry) until the store is empty.
        """
        with self._registry_lock:
            with ExitStack() as stack:
                for game_id in sorted(self._game_locks):
                    stack.enter_context(self._game_locks[game_id][0])
                game_ids = self.store.list_game_ids()
                count = self.store.delete_all_games()
                self._after_delete(game_ids)
        logger.info("Deleted all games (%d)", count)
        return count
