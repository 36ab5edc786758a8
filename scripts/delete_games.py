#!/usr/bin/env python3
"""
Delete one game (by id) or every game from the database.
Usage: python scripts/delete_games.py <game_id>
       python scripts/delete_games.py --all
From repo root with PYTHONPATH=. or after `pip install -e .`.
"""
import sys
import os

# Allow running from repo root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from battleship.api.database import SessionLocal, get_db_file_path, init_db
from battleship.api.service import GameService
from battleship.api.store import SqlGameStore
from battleship.engine.errors import GameNotFound


def main() -> None:
    if len(sys.argv) < 2:
        print("Usage: python scripts/delete_games.py <game_id> | --all", file=sys.stderr)
        sys.exit(1)
    target = sys.argv[1].strip()
    if not target:
        print("Error: provide a game id or --all.", file=sys.stderr)
        sys.exit(1)

    init_db()
    service = GameService(SqlGameStore(SessionLocal))
    try:
        if target == "--all":
            count = service.delete_all_games()
            print(f"Deleted {count} game(s).")
        else:
            service.delete_game(target)
            print(f"Deleted game {target}.")
    except GameNotFound:
        print(f"No game found with id: {target!r}")
        sys.exit(2)
    db_path = get_db_file_path()
    if db_path:
        print(f"DB file: {db_path}")


if __name__ == "__main__":
    main()
