"""
Tests for the win detector.

Tests:
- Every line wins for both marks
- Draw only on a full board without a line
- In-progress boards have no outcome
"""

import itertools

import pytest

from ..engine_core.state import Mark, Outcome, empty_board
from ..engine_core.win_detector import WIN_LINES, evaluate, winning_line
from .helpers import make_board


class TestEvaluate:
    """Tests for evaluate()."""

    def test_empty_board_in_progress(self):
        """An empty board has no outcome."""
        assert evaluate(empty_board()) is None

    @pytest.mark.parametrize("line", WIN_LINES)
    @pytest.mark.parametrize("mark", [Mark.X, Mark.O])
    def test_every_line_wins(self, line, mark):
        """Three equal marks on any of the 8 lines win."""
        board = empty_board()
        for i in line:
            board[i] = mark

        assert evaluate(board) == Outcome(mark.value)
        assert winning_line(board) == line

    def test_draw_full_board(self):
        """A full board with no line is a draw."""
        board = make_board("XOXXOOOXX")
        assert evaluate(board) == Outcome.DRAW
        assert winning_line(board) is None

    def test_win_on_full_board_beats_draw(self):
        """A line on the last move is a win, not a draw."""
        board = make_board("XOXOXOOXX")
        assert evaluate(board) == Outcome.X

    def test_two_in_a_row_in_progress(self):
        """Two in a row is not a win."""
        assert evaluate(make_board("XX_OO____")) is None

    def test_mixed_line_not_a_win(self):
        """A full line with mixed marks does not win."""
        assert evaluate(make_board("XOX______")) is None

    def test_wrong_size_rejected(self):
        """Boards must have 9 cells."""
        with pytest.raises(ValueError):
            evaluate([None] * 8)

    def test_pure(self):
        """Evaluation does not modify the board."""
        board = make_board("XX_OO____")
        before = list(board)
        evaluate(board)
        assert board == before


class TestExhaustive:
    """Checks the definition against every reachable-looking board."""

    def test_matches_definition_for_all_boards(self):
        """Winner iff a uniform line; draw iff full with no line."""
        for cells in itertools.product([None, Mark.X, Mark.O], repeat=9):
            board = list(cells)
            uniform = [
                board[a] for a, b, c in WIN_LINES
                if board[a] is not None and board[a] == board[b] == board[c]
            ]
            result = evaluate(board)

            if uniform:
                assert result == Outcome(uniform[0].value)
            elif all(cell is not None for cell in board):
                assert result == Outcome.DRAW
            else:
                assert result is None
