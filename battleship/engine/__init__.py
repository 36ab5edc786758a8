"""
Battleship game engine.
Pure game rules: no web framework, database or cache.
"""

GRID_SIZE = 10
ROW_LABELS = "ABCDEFGHIJ"
GRID_DESCRIPTION = f"{GRID_SIZE}x{GRID_SIZE}"

# Game statuses. LOST is accepted as a list filter but no transition produces it.
STATUS_IN_PROGRESS = "IN_PROGRESS"
STATUS_WON = "WON"
STATUS_LOST = "LOST"
GAME_STATUSES = (STATUS_IN_PROGRESS, STATUS_WON, STATUS_LOST)

RESULT_HIT = "hit"
RESULT_MISS = "miss"
