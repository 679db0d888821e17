"""
Test doubles and helpers shared by the TodoTac tests.
"""

from __future__ import annotations
import asyncio

from ..engine_core.state import Board, Difficulty, board_from_strings
from ..oracles.base import MoveOracle, TaskOracle
from ..oracles.decoding import encode_move
from ..session import GameSession


class FakeTaskOracle(TaskOracle):
    """Task oracle that records calls and can be held open or made to fail."""

    name = "fake_task"

    def __init__(self, text: str = "Do 10 squats."):
        self.text = text
        self.error: Exception | None = None
        self.gate: asyncio.Event | None = None
        self.calls: list[tuple[str, int, Difficulty]] = []

    async def generate_task(self, theme: str, cell_index: int, difficulty: Difficulty) -> str:
        self.calls.append((theme, cell_index, difficulty))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.text


class FakeMoveOracle(MoveOracle):
    """
    Move oracle that replays scripted answers.

    Integers become well-formed JSON answers; anything else is returned
    as-is (useful for malformed payloads).
    """

    name = "fake_move"

    def __init__(self, answers: list | None = None):
        self.answers = list(answers or [])
        self.error: Exception | None = None
        self.gate: asyncio.Event | None = None
        self.calls: list[tuple[list, str]] = []

    async def select_move(self, board: Board, theme: str):
        self.calls.append((list(board), theme))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        answer = self.answers.pop(0)
        if isinstance(answer, int):
            return encode_move(answer, f"Taking square {answer}.")
        return answer


def make_board(layout: str) -> Board:
    """Board from a 9-character layout like "XX_OO____"."""
    return board_from_strings([None if c == "_" else c for c in layout])


async def claim(session: GameSession, index: int):
    """Request and complete the task for `index`."""
    assert await session.request_task(index)
    assert session.complete_task(index)


async def play(session: GameSession, human_moves: list[int]):
    """
    Alternate human claims and opponent turns.

    The move oracle must already hold the opponent's answers.
    """
    for index in human_moves:
        await claim(session, index)
        if session.outcome is None:
            assert await session.run_opponent_turn()


