"""
Game State - Board, marks, tasks and the fixed menus.

Design principles:
- The board is a plain list of 9 cells, row-major over a 3x3 grid
- A cell is a Mark or None (empty)
- Tasks are keyed by board index; at most one live task per cell
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from enum import Enum
import itertools
import time


BOARD_SIZE = 9


class Mark(str, Enum):
    """Player marks. X is always the human, O the opponent."""
    X = "X"
    O = "O"

    def opposite(self) -> Mark:
        return Mark.O if self is Mark.X else Mark.X


HUMAN_MARK = Mark.X
OPPONENT_MARK = Mark.O

Cell = Mark | None
Board = list[Cell]


class Outcome(str, Enum):
    """Final result of a game. An in-progress game has no outcome (None)."""
    X = "X"
    O = "O"
    DRAW = "Draw"

    @classmethod
    def for_mark(cls, mark: Mark) -> Outcome:
        return cls(mark.value)


class Difficulty(str, Enum):
    """Task difficulty chosen before the game starts."""
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"

    @property
    def effort(self) -> str:
        """Qualitative effort descriptor passed to the task oracle."""
        return DIFFICULTY_EFFORT[self]

    @property
    def example(self) -> str:
        return DIFFICULTY_EXAMPLES[self]


DIFFICULTY_EFFORT = {
    Difficulty.EASY: "very simple, quick, and almost effortless (takes < 30 seconds).",
    Difficulty.MEDIUM: "standard complexity, requiring moderate effort (takes 1-2 minutes).",
    Difficulty.HARD: "challenging, creative, or physically demanding (takes 3-5 minutes).",
}

DIFFICULTY_EXAMPLES = {
    Difficulty.EASY: "Type 'Victory' in a notepad 3 times.",
    Difficulty.MEDIUM: "Name 5 countries starting with the letter 'A'.",
    Difficulty.HARD: "Write a 4-line rhyming poem about the current board state.",
}

DEFAULT_DIFFICULTY = Difficulty.MEDIUM

THEMES: tuple[str, ...] = (
    "General Fun",
    "Software Engineering",
    "Fitness & Health",
    "Space & Science",
    "Pop Culture",
    "Hard Mode",
    "Zen Master",
    "Master Chef",
    "History Buff",
    "Nature Explorer",
    "80s Nostalgia",
    "Mystery & Noir",
    "Travel Guru",
    "Literary Legend",
)

DEFAULT_THEME = THEMES[0]


def validate_theme(theme: str) -> str:
    """Return the theme if it belongs to the fixed set, else raise ValueError."""
    if theme not in THEMES:
        raise ValueError(f"Unknown theme: {theme!r}")
    return theme


def parse_difficulty(value: Difficulty | str) -> Difficulty:
    """Accept a Difficulty or its name ("Easy", "medium", ...)."""
    if isinstance(value, Difficulty):
        return value
    for difficulty in Difficulty:
        if difficulty.value.lower() == str(value).strip().lower():
            return difficulty
    raise ValueError(f"Unknown difficulty: {value!r}")


# =============================================================================
# Board helpers
# =============================================================================

def empty_board() -> Board:
    return [None] * BOARD_SIZE


def is_valid_index(index: int) -> bool:
    return isinstance(index, int) and not isinstance(index, bool) and 0 <= index < BOARD_SIZE


def empty_cells(board: Board) -> list[int]:
    """Indices of empty cells, in row-major order."""
    return [i for i, cell in enumerate(board) if cell is None]


def first_empty_cell(board: Board) -> int | None:
    """Lowest empty index, or None when the board is full."""
    for i, cell in enumerate(board):
        if cell is None:
            return i
    return None


def render_board(board: Board) -> str:
    """Describe the board as "0: X, 1: empty, ..." for prompts and logs."""
    return ", ".join(
        f"{i}: {cell.value if cell else 'empty'}" for i, cell in enumerate(board)
    )


def board_to_strings(board: Board) -> list[str | None]:
    return [cell.value if cell else None for cell in board]


def board_from_strings(values: list[str | None]) -> Board:
    """Build a board from "X"/"O"/None values (None, "" and "_" are empty)."""
    if len(values) != BOARD_SIZE:
        raise ValueError(f"Board must have {BOARD_SIZE} cells, got {len(values)}")
    return [Mark(v) if v not in (None, "", "_") else None for v in values]


# =============================================================================
# Tasks
# =============================================================================

_last_task_id = 0


def next_task_id() -> int:
    """
    Millisecond creation timestamp, bumped when two tasks land in
    the same millisecond so ids never repeat.
    """
    global _last_task_id
    now = time.time_ns() // 1_000_000
    _last_task_id = max(now, _last_task_id + 1)
    return _last_task_id


@dataclass(frozen=True)
class Task:
    """
    A todo task that must be completed to claim a square.
    """
    id: int
    description: str
    completed: bool = False
    owner: Mark = HUMAN_MARK

    @classmethod
    def create(cls, description: str, owner: Mark = HUMAN_MARK) -> Task:
        return cls(id=next_task_id(), description=description, owner=owner)

    def mark_completed(self) -> Task:
        return replace(self, completed=True)


_counter = itertools.count(1)


def next_session_token() -> int:
    """Process-wide monotonic counter used for session epochs."""
    return next(_counter)
