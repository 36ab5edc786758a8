"""
Game persistence.
GameStore is the narrow interface the service consumes; the store is the
authority for game state. Two implementations: SQLAlchemy rows and a
process-local dictionary (tests, demos, BATTLESHIP_STORE=memory).
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Protocol

from sqlalchemy import func, select
from sqlalchemy.orm import Session, sessionmaker

from battleship.engine import STATUS_IN_PROGRESS
from battleship.engine.queries import page_offset
from battleship.engine.state import Game, Ship

from .models import GameRow, ShipRow

logger = logging.getLogger(__name__)


class GameStore(Protocol):
    def create_game(self, game: Game) -> None: ...

    def get_game(self, game_id: str) -> Game | None: ...

    def save_game(self, game: Game) -> None: ...

    def delete_game(self, game_id: str) -> bool: ...

    def list_games(self, status: str | None, page: int, limit: int) -> tuple[list[Game], int]: ...

    def list_recent_games(self, since: datetime) -> list[Game]: ...

    def list_game_ids(self) -> list[str]: ...

    def delete_all_games(self) -> int: ...


def _as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back; every stored timestamp is UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# ===== In-memory store =====

class MemoryGameStore:
    """Dictionary-backed store. Games are copied in and out so callers never share state with it."""

    def __init__(self):
        self._games: dict[str, Game] = {}
        self._lock = threading.Lock()

    def create_game(self, game: Game) -> None:
        with self._lock:
            if game.id in self._games:
                raise ValueError(f"Game {game.id} already exists")
            self._games[game.id] = game.copy()

    def get_game(self, game_id: str) -> Game | None:
        with self._lock:
            game = self._games.get(game_id)
            return game.copy() if game else None

    def save_game(self, game: Game) -> None:
        with self._lock:
            if game.id not in self._games:
                raise KeyError(game.id)
            self._games[game.id] = game.copy()

    def delete_game(self, game_id: str) -> bool:
        with self._lock:
            return self._games.pop(game_id, None) is not None

    def _newest_first(self, games) -> list[Game]:
        return sorted(games, key=lambda g: (g.created_at, g.id), reverse=True)

    def list_games(self, status: str | None, page: int, limit: int) -> tuple[list[Game], int]:
        with self._lock:
            matching = [g for g in self._games.values() if status is None or g.status == status]
            ordered = self._newest_first(matching)
            start = page_offset(page, limit)
            return [g.copy() for g in ordered[start:start + limit]], len(matching)

    def list_recent_games(self, since: datetime) -> list[Game]:
        with self._lock:
            recent = [
                g for g in self._games.values()
                if g.status == STATUS_IN_PROGRESS and g.created_at > since
            ]
            return [g.copy() for g in self._newest_first(recent)]

    def list_game_ids(self) -> list[str]:
        with self._lock:
            return list(self._games)

    def delete_all_games(self) -> int:
        with self._lock:
            count = len(self._games)
            self._games.clear()
            return count


# ===== SQL store =====

def row_to_game(row: GameRow) -> Game:
    return Game(
        id=row.id,
        status=row.status,
        shots=list(row.shots or []),
        created_at=_as_utc(row.created_at),
        ships=[
            Ship(
                id=s.id,
                name=s.name,
                size=s.size,
                positions=list(s.positions or []),
                hits=list(s.hits or []),
                is_sunk=bool(s.is_sunk),
            )
            for s in row.ships
        ],
    )


def _ship_row(ship: Ship, index: int) -> ShipRow:
    return ShipRow(
        id=ship.id,
        position_index=index,
        name=ship.name,
        size=ship.size,
        positions=list(ship.positions),
        hits=list(ship.hits),
        is_sunk=ship.is_sunk,
    )


class SqlGameStore:
    """SQLAlchemy-backed store. One short-lived session per call; writes commit or roll back as a unit."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @property
    def engine(self):
        return self._session_factory.kw.get("bind")

    def _session(self) -> Session:
        return self._session_factory()

    def create_game(self, game: Game) -> None:
        db = self._session()
        try:
            row = GameRow(
                id=game.id,
                status=game.status,
                shots=list(game.shots),
                created_at=game.created_at,
                ships=[_ship_row(s, i) for i, s in enumerate(game.ships)],
            )
            db.add(row)
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def get_game(self, game_id: str) -> Game | None:
        db = self._session()
        try:
            row = db.get(GameRow, game_id)
            return row_to_game(row) if row else None
        finally:
            db.close()

    def save_game(self, game: Game) -> None:
        """Persist status, shots and every ship's hits/sunk flag in one transaction."""
        db = self._session()
        try:
            row = db.get(GameRow, game.id)
            if row is None:
                raise KeyError(game.id)
            row.status = game.status
            row.shots = list(game.shots)
            ships_by_id = {s.id: s for s in game.ships}
            for ship_row in row.ships:
                ship = ships_by_id.get(ship_row.id)
                if ship is None:
                    continue
                ship_row.hits = list(ship.hits)
                ship_row.is_sunk = ship.is_sunk
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def delete_game(self, game_id: str) -> bool:
        db = self._session()
        try:
            row = db.get(GameRow, game_id)
            if row is None:
                return False
            db.delete(row)
            db.commit()
            return True
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def list_games(self, status: str | None, page: int, limit: int) -> tuple[list[Game], int]:
        db = self._session()
        try:
            count_stmt = select(func.count()).select_from(GameRow)
            stmt = select(GameRow)
            if status is not None:
                count_stmt = count_stmt.where(GameRow.status == status)
                stmt = stmt.where(GameRow.status == status)
            total = db.execute(count_stmt).scalar_one()
            stmt = (
                stmt.order_by(GameRow.created_at.desc(), GameRow.id.desc())
                .offset(page_offset(page, limit))
                .limit(limit)
            )
            rows = db.execute(stmt).scalars().all()
            return [row_to_game(r) for r in rows], total
        finally:
            db.close()

    def list_recent_games(self, since: datetime) -> list[Game]:
        db = self._session()
        try:
            stmt = (
                select(GameRow)
                .where(GameRow.status == STATUS_IN_PROGRESS)
                .where(GameRow.created_at > since)
                .order_by(GameRow.created_at.desc(), GameRow.id.desc())
            )
            return [row_to_game(r) for r in db.execute(stmt).scalars().all()]
        finally:
            db.close()

    def list_game_ids(self) -> list[str]:
        db = self._session()
        try:
            return list(db.execute(select(GameRow.id)).scalars().all())
        finally:
            db.close()

    def delete_all_games(self) -> int:
        db = self._session()
        try:
            # ORM delete so the ships cascade on backends without ON DELETE CASCADE (SQLite)
            rows = db.execute(select(GameRow)).scalars().all()
            for row in rows:
                db.delete(row)
            db.commit()
            logger.info("Deleted %d game(s)", len(rows))
            return len(rows)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
