"""
Offline Oracles - Local stand-ins for the generation service.

Used for:
- Playing without an API key
- Deterministic testing

CannedTaskOracle picks from fixed task lists per difficulty.
RuleBasedMoveOracle answers in the same JSON shape as the real service
and follows the same strategy request: win, else block, else a sensible
square.
"""

from __future__ import annotations
import random

from ..engine_core.state import (
    HUMAN_MARK,
    OPPONENT_MARK,
    Board,
    Difficulty,
    Mark,
    empty_cells,
)
from ..engine_core.win_detector import WIN_LINES
from .base import MoveOracle, TaskOracle
from .decoding import encode_move


CANNED_TASKS: dict[Difficulty, list[str]] = {
    Difficulty.EASY: [
        "Type 'Victory' in a notepad 3 times.",
        "Take three deep breaths.",
        "Clap your hands five times.",
        "Say the name of your favourite food out loud.",
        "Drink a sip of water.",
        "Stand up and sit back down.",
    ],
    Difficulty.MEDIUM: [
        "Name 5 countries starting with the letter 'A'.",
        "Do 10 squats.",
        "Write down three things you are grateful for.",
        "Tidy one corner of your desk.",
        "List four planets in order from the Sun.",
        "Spell your full name backwards.",
    ],
    Difficulty.HARD: [
        "Write a 4-line rhyming poem about the current board state.",
        "Hold a plank for 60 seconds.",
        "Sketch the board from memory, marks included.",
        "Explain how a rainbow forms in three sentences.",
        "Do 20 jumping jacks, then 10 push-ups.",
        "Name 10 animals in alphabetical order.",
    ],
}

_CORNERS = (0, 2, 6, 8)
_CENTER = 4


class CannedTaskOracle(TaskOracle):
    """
    Canned task oracle - no network.

    The same (theme, cell, difficulty) always gives the same task
    for a given seed.
    """

    name = "canned"

    def __init__(self, seed: int = 0):
        self.seed = seed

    async def generate_task(self, theme: str, cell_index: int, difficulty: Difficulty) -> str:
        rng = random.Random(f"{self.seed}:{theme}:{cell_index}:{difficulty.value}")
        task = rng.choice(CANNED_TASKS[difficulty])
        return f"{task} ({theme})"


def _completing_cell(board: Board, mark: Mark) -> int | None:
    """Cell that would give `mark` three in a row, if any."""
    for line in WIN_LINES:
        cells = [board[i] for i in line]
        if cells.count(mark) == 2 and cells.count(None) == 1:
            return line[cells.index(None)]
    return None


class RuleBasedMoveOracle(MoveOracle):
    """
    Rule-based opponent.

    Preference order: winning cell, blocking cell, centre, corner,
    first empty cell.
    """

    name = "rule_based"

    def __init__(self, mark: Mark = OPPONENT_MARK):
        self.mark = mark

    def choose(self, board: Board) -> tuple[int, str]:
        free = empty_cells(board)
        if not free:
            raise ValueError("No empty cells available")

        win = _completing_cell(board, self.mark)
        if win is not None:
            return win, f"Square {win} completes three in a row."

        block = _completing_cell(board, self.mark.opposite())
        if block is not None:
            return block, f"Square {block} blocks {HUMAN_MARK.value}'s line."

        if _CENTER in free:
            return _CENTER, "The centre square sits on four lines."

        for corner in _CORNERS:
            if corner in free:
                return corner, f"Corner {corner} keeps two lines open."

        return free[0], f"Square {free[0]} is the only sensible option left."

    async def select_move(self, board: Board, theme: str) -> str:
        index, reasoning = self.choose(board)
        return encode_move(index, reasoning)
