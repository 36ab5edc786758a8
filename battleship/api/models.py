"""
SQLAlchemy models for games and their ships.
Ships belong to exactly one game and are deleted with it.
"""

from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from .database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GameRow(Base):
    __tablename__ = "games"

    id = Column(String(36), primary_key=True)  # uuid
    status = Column(String(32), nullable=False, default="IN_PROGRESS", index=True)  # IN_PROGRESS | WON
    shots = Column(JSON, nullable=False, default=list)  # ["A1", "B7", ...] in firing order
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)

    ships = relationship(
        "ShipRow",
        back_populates="game",
        cascade="all, delete-orphan",
        order_by="ShipRow.position_index",
        lazy="selectin",
    )


class ShipRow(Base):
    __tablename__ = "ships"

    id = Column(String(36), primary_key=True)  # uuid
    game_id = Column(String(36), ForeignKey("games.id", ondelete="CASCADE"), nullable=False, index=True)
    position_index = Column(Integer, nullable=False, default=0)  # fleet order within the game
    name = Column(String(64), nullable=False)
    size = Column(Integer, nullable=False)
    positions = Column(JSON, nullable=False)
    hits = Column(JSON, nullable=False, default=list)
    is_sunk = Column(Boolean, nullable=False, default=False)

    game = relationship("GameRow", back_populates="ships")
