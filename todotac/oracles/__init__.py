"""
Oracles - External text-generation collaborators.

The session depends only on the TaskOracle / MoveOracle interfaces:
1. TaskOracle returns a todo task for a square
2. MoveOracle returns the opponent's raw move answer
3. decode_move turns that answer into a move, with a deterministic fallback

Gemini-backed implementations live in `gemini` (imported on demand);
offline ones in `offline`.
"""

from .base import FALLBACK_TASK, MoveOracle, OracleError, TaskOracle
from .decoding import FALLBACK_REASONING, MoveDecision, decode_move, fallback_move
from .offline import CannedTaskOracle, RuleBasedMoveOracle
from .prompts import OraclePrompts

__all__ = [
    "FALLBACK_TASK",
    "FALLBACK_REASONING",
    "MoveOracle",
    "OracleError",
    "TaskOracle",
    "MoveDecision",
    "decode_move",
    "fallback_move",
    "CannedTaskOracle",
    "RuleBasedMoveOracle",
    "OraclePrompts",
    "create_oracles",
]


def create_oracles(kind: str | None = None) -> tuple[TaskOracle, MoveOracle]:
    """
    Build the oracle pair named by `kind` (or TODOTAC_ORACLE).

    Args:
        kind: "gemini" or "offline"
    """
    from .. import config

    kind = (kind or config.TODOTAC_ORACLE).lower()
    if kind == "offline":
        return CannedTaskOracle(), RuleBasedMoveOracle()
    if kind == "gemini":
        from .gemini import create_gemini_oracles
        return create_gemini_oracles()
    raise ValueError(f"Unknown oracle kind: {kind}")
