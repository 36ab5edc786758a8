"""
Main entry point for the Battleship game engine demo.
Plays scripted games against the in-memory stack (no database, no HTTP).
"""

import random

from battleship.api.cache import MemoryCache
from battleship.api.idempotency import IdempotentFire
from battleship.api.service import GameService
from battleship.api.store import MemoryGameStore
from battleship.engine.coordinates import all_coordinates
from battleship.engine.errors import GameError
from battleship.engine.placement import DEFAULT_FLEET


def print_board(game) -> None:
    """Print the fleet layout with hits (X) and misses (o)."""
    occupied = {pos for ship in game.ships for pos in ship.positions}
    hits = {h for ship in game.ships for h in ship.hits}
    cells = list(all_coordinates())
    for row_start in range(0, len(cells), 10):
        row = cells[row_start:row_start + 10]
        line = []
        for cell in row:
            if cell in hits:
                line.append("X")
            elif cell in game.shots:
                line.append("o")
            elif cell in occupied:
                line.append("#")
            else:
                line.append(".")
        print(f"  {row[0][0]} " + " ".join(line))


def main():
    print("Battleship Game Engine")
    print("=" * 60)

    cache = MemoryCache()
    service = GameService(MemoryGameStore(), cache=cache, fleet=DEFAULT_FLEET, rng=random.Random(7))
    fire = IdempotentFire(service.fire, MemoryCache())

    # ===== SCENARIO 1: Start a game =====
    print("\n[SCENARIO 1: Start Game]")
    game = service.start_game()
    print(f"Game {game.id} started with {len(game.ships)} ships")
    for ship in game.ships:
        print(f"  - {ship.name} (size {ship.size}): {', '.join(ship.positions)}")
    print_board(game)

    # ===== SCENARIO 2: Hit, miss, duplicate =====
    print("\n[SCENARIO 2: Hit / Miss / Duplicate]")
    target = game.ships[0].positions[0]
    occupied = {p for s in game.ships for p in s.positions}
    empty = next(c for c in all_coordinates() if c not in occupied)

    print(f"Firing at {target} (occupied) with key shot-1...")
    print(f"  {fire(game.id, target, 'shot-1')}")
    print("Replaying key shot-1...")
    print(f"  {fire(game.id, target, 'shot-1')}")
    print(f"Firing at {empty} (empty) with key shot-2...")
    print(f"  {fire(game.id, empty, 'shot-2')}")
    try:
        fire(game.id, target, "shot-3")
    except GameError as e:
        print(f"✓ Duplicate shot rejected: {e.code} - {e.message}")

    # ===== SCENARIO 3: Sink everything =====
    print("\n[SCENARIO 3: Sink the Fleet]")
    n = 3
    for ship in service.get_game(game.id).ships:
        for pos in ship.positions:
            if pos == target:
                continue
            n += 1
            result = fire(game.id, pos, f"shot-{n}")
            if result["sunk"]:
                print(f"  {pos}: sunk {result['sunk']} (status {result['gameStatus']})")

    final = service.get_game(game.id)
    print(f"Final status: {final.status} after {len(final.shots)} shots")
    print_board(final)

    # ===== SCENARIO 4: Listing =====
    print("\n[SCENARIO 4: Listing]")
    service.start_game()
    page = service.list_games(status="IN_PROGRESS", page=1, limit=10)
    print(f"IN_PROGRESS games: {page.pagination}")
    page = service.list_games(status="WON", page=1, limit=10)
    print(f"WON games: {page.pagination}")
    print(f"Recent games: {len(service.list_recent_games())}")
    print(f"Deleted all games: {service.delete_all_games()}")

    print("\n" + "=" * 60)
    print("✓ Demo complete")
    print("=" * 60)


if __name__ == "__main__":
    main()
