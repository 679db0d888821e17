"""
Oracle Contracts - Interfaces for the two external collaborators.

An oracle is an external text-generation service. The session only ever
talks to it through these two interfaces:
- TaskOracle: produces the todo task for a square
- MoveOracle: picks the opponent's square

Both calls are async and may fail with OracleError.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any

from ..engine_core.state import Board, Difficulty
from ..errors import OracleError

FALLBACK_TASK = "Complete a quick stretch."


class TaskOracle(ABC):
    """Generates a short, human-readable challenge for a cell."""

    name = "task"

    @abstractmethod
    async def generate_task(
        self,
        theme: str,
        cell_index: int,
        difficulty: Difficulty,
    ) -> str:
        """
        Generate a task.

        Args:
            theme: One of the fixed themes
            cell_index: Target cell, 0-8
            difficulty: Guidance for how much effort the task should take

        Returns:
            Task text

        Raises:
            OracleError: the service could not be reached or failed
        """
        ...


class MoveOracle(ABC):
    """
    Chooses the opponent's move.

    Returns the service's raw, undecoded answer (JSON text or a mapping
    with "index" and "reasoning"). Decoding, and the fallback for a
    malformed answer, belong to the session.
    """

    name = "move"

    @abstractmethod
    async def select_move(self, board: Board, theme: str) -> str | dict[str, Any]:
        ...


__all__ = ["TaskOracle", "MoveOracle", "OracleError", "FALLBACK_TASK"]
