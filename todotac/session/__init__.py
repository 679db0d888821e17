"""
Session Module - One game per session.

A session:
- Owns the board, turn, tasks and busy flag
- Sequences human and opponent turns
- Calls the task and move oracles and applies their answers
- Drops answers that arrive after a reset (epoch check)
"""

from .machine import GameSession, SessionPhase, SessionSnapshot
from .manager import SessionManager

__all__ = [
    "GameSession",
    "SessionPhase",
    "SessionSnapshot",
    "SessionManager",
]
