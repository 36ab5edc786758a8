"""
Database setup for the Battleship service.
Uses SQLite locally; set DATABASE_URL (e.g. Postgres) for production.
"""

import os

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

# Some hosts set DATABASE_URL to postgres://; SQLAlchemy 2.x expects postgresql://
_raw_url = os.environ.get("DATABASE_URL")
if _raw_url and _raw_url.startswith("postgres://"):
    DATABASE_URL = _raw_url.replace("postgres://", "postgresql://", 1)
elif _raw_url:
    DATABASE_URL = _raw_url
else:
    DB_DIR = os.path.dirname(os.path.abspath(__file__))
    DATABASE_URL = f"sqlite:///{os.path.join(DB_DIR, 'battleship.db')}"

Base = declarative_base()


def make_engine(url: str) -> Engine:
    """Engine for url. In-memory SQLite shares one connection so every session sees the same tables."""
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url, pool_pre_ping=True)


def make_session_factory(url: str) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=make_engine(url))


engine = make_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db_file_path() -> str | None:
    """Path of the SQLite file in use, or None for other databases."""
    if DATABASE_URL.startswith("sqlite:///") and DATABASE_URL != "sqlite:///:memory:":
        return DATABASE_URL[len("sqlite:///"):]
    return None


def init_db(bind: Engine | None = None) -> None:
    """Create all tables."""
    # Models must be imported so their tables are registered on Base.metadata
    from battleship.api import models  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)
