"""
Win Detector - Pure evaluation of a 3x3 board.

Checks the 8 fixed lines. A line wins when its three cells hold the
same non-empty mark. A full board without a winning line is a draw.
Anything else is still in progress (None).
"""

from __future__ import annotations

from .state import BOARD_SIZE, Board, Mark, Outcome


WIN_LINES: tuple[tuple[int, int, int], ...] = (
    (0, 1, 2), (3, 4, 5), (6, 7, 8),  # rows
    (0, 3, 6), (1, 4, 7), (2, 5, 8),  # columns
    (0, 4, 8), (2, 4, 6),             # diagonals
)


def _check_size(board: Board):
    if len(board) != BOARD_SIZE:
        raise ValueError(f"Board must have {BOARD_SIZE} cells, got {len(board)}")


def winning_line(board: Board) -> tuple[int, int, int] | None:
    """Return the first uniform, non-empty line, if any."""
    _check_size(board)
    for a, b, c in WIN_LINES:
        if board[a] is not None and board[a] == board[b] == board[c]:
            return (a, b, c)
    return None


def evaluate(board: Board) -> Outcome | None:
    """
    Evaluate a board.

    Returns:
        Outcome.X / Outcome.O for a win, Outcome.DRAW for a full board
        with no win, None while the game is in progress.
    """
    line = winning_line(board)
    if line is not None:
        return Outcome.for_mark(Mark(board[line[0]]))
    if all(cell is not None for cell in board):
        return Outcome.DRAW
    return None
