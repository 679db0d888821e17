"""
Engine Core - Board state and win detection.

Everything here is synchronous and side-effect free:
1. Board, marks and tasks (state)
2. Win/draw evaluation (win_detector)
"""

from .state import (
    BOARD_SIZE,
    DEFAULT_DIFFICULTY,
    DEFAULT_THEME,
    HUMAN_MARK,
    OPPONENT_MARK,
    THEMES,
    Board,
    Difficulty,
    Mark,
    Outcome,
    Task,
    empty_board,
    empty_cells,
    first_empty_cell,
    render_board,
)
from .win_detector import WIN_LINES, evaluate, winning_line

__all__ = [
    "BOARD_SIZE",
    "DEFAULT_DIFFICULTY",
    "DEFAULT_THEME",
    "HUMAN_MARK",
    "OPPONENT_MARK",
    "THEMES",
    "Board",
    "Difficulty",
    "Mark",
    "Outcome",
    "Task",
    "empty_board",
    "empty_cells",
    "first_empty_cell",
    "render_board",
    "WIN_LINES",
    "evaluate",
    "winning_line",
]
