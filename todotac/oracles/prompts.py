"""
Oracle Prompts - Text sent to the generation service.

The task prompt asks for a single short todo item scaled by difficulty.
The move prompt asks the service to play O: win if possible, otherwise
block X, otherwise pick a sensible square, and explain briefly.
"""

from dataclasses import dataclass

from ..engine_core.state import Board, Difficulty, render_board


# JSON schema for the move answer. Field names are the wire contract.
MOVE_RESPONSE_SCHEMA = {
    "type": "object",
    "properties": {
        "index": {
            "type": "number",
            "description": "The index of the square to claim (0-8).",
        },
        "reasoning": {
            "type": "string",
            "description": "Brief explanation of the strategic move.",
        },
    },
    "required": ["index", "reasoning"],
}


@dataclass
class OraclePrompts:
    """Collection of prompt builders for both oracles."""

    @staticmethod
    def task(theme: str, cell_index: int, difficulty: Difficulty) -> str:
        """Prompt for a single todo task."""
        examples = "\n".join(
            f"    - {level.value}: \"{level.example}\"" for level in Difficulty
        )
        return f"""Generate a single, short, and engaging "todo" task for a player to complete to claim a square in a Tic-Tac-Toe game.
    Theme: {theme}.
    Cell index: {cell_index} (0-8).
    Difficulty level: {difficulty.value}. This means the task should be {difficulty.effort}

    Example for {difficulty.value}:
{examples}

    Return ONLY the task text. No extra formatting."""

    @staticmethod
    def move(board: Board, theme: str) -> str:
        """Prompt for the opponent's move."""
        return f"""You are a strategic Tic-Tac-Toe player playing as 'O'.
    Current board state (index: value): {render_board(board)}.
    Theme: {theme}.
    Analyze the board and choose the best index (0-8) to play next.
    You must win if possible, or block the opponent 'X'.
    Otherwise pick any reasonable empty square.
    Provide your choice and a brief reasoning."""


def task_prompt(theme: str, cell_index: int, difficulty: Difficulty) -> str:
    return OraclePrompts.task(theme, cell_index, difficulty)


def move_prompt(board: Board, theme: str) -> str:
    return OraclePrompts.move(board, theme)
