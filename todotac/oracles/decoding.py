"""
Move Decoding - Turns the move oracle's raw answer into a usable move.

Decoding never raises. Anything that is not a well-formed answer naming
an empty cell becomes the deterministic fallback: the first empty cell
(row-major) with a generic reasoning string.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any
import json
import logging

from pydantic import BaseModel, ValidationError

from ..engine_core.state import Board, first_empty_cell, is_valid_index

logger = logging.getLogger(__name__)

FALLBACK_REASONING = "Error in logic, picking first available."


class MoveResponse(BaseModel):
    """Wire shape of a move answer."""
    index: int
    reasoning: str


@dataclass(frozen=True)
class MoveDecision:
    """A decoded opponent move."""
    index: int
    reasoning: str
    fallback: bool = False


def fallback_move(board: Board) -> MoveDecision:
    """First empty cell, or 0 for a full board."""
    index = first_empty_cell(board)
    return MoveDecision(
        index=index if index is not None else 0,
        reasoning=FALLBACK_REASONING,
        fallback=True,
    )


def decode_move(raw: str | bytes | dict[str, Any] | None, board: Board) -> MoveDecision:
    """
    Decode a raw move answer against the current board.

    Args:
        raw: JSON text or an already-parsed mapping
        board: Board the move applies to

    Returns:
        MoveDecision; fallback=True when the answer was unusable
    """
    try:
        if isinstance(raw, (str, bytes)):
            response = MoveResponse.model_validate_json(raw)
        else:
            response = MoveResponse.model_validate(raw)
    except (ValidationError, ValueError, TypeError) as e:
        logger.info(f"Malformed move answer, using fallback: {e}")
        return fallback_move(board)

    if not is_valid_index(response.index) or board[response.index] is not None:
        logger.info(f"Move answer names unusable cell {response.index}, using fallback")
        return fallback_move(board)

    return MoveDecision(index=response.index, reasoning=response.reasoning.strip())


def encode_move(index: int, reasoning: str) -> str:
    """JSON text for a move answer (used by local oracles)."""
    return json.dumps({"index": index, "reasoning": reasoning})
