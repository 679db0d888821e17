"""
Session Manager - Creates and tracks game sessions.

Sessions are EPHEMERAL:
- In-memory only, no database
- A session survives restarts of its own game (start/reset)
- Ending a session resets it and forgets it
"""

from __future__ import annotations
from typing import Callable
import logging
import time

from ..oracles import create_oracles
from ..oracles.base import MoveOracle, TaskOracle
from .machine import GameSession

logger = logging.getLogger(__name__)

OracleFactory = Callable[[], tuple[TaskOracle, MoveOracle]]


class SessionManager:
    """
    Manages game sessions.

    Responsibilities:
    - Create sessions wired to the configured oracles
    - Track active sessions
    - Clean up idle sessions
    """

    def __init__(
        self,
        oracle_factory: OracleFactory | None = None,
        move_delay: float | None = None,
        auto_opponent: bool = True,
    ):
        self._sessions: dict[str, GameSession] = {}
        self._oracle_factory = oracle_factory or create_oracles
        self._oracles: tuple[TaskOracle, MoveOracle] | None = None
        self.move_delay = move_delay
        self.auto_opponent = auto_opponent

    def _get_oracles(self) -> tuple[TaskOracle, MoveOracle]:
        # Oracles are stateless; one pair serves every session.
        if self._oracles is None:
            self._oracles = self._oracle_factory()
        return self._oracles

    def create_session(
        self,
        theme: str | None = None,
        difficulty: str | None = None,
    ) -> GameSession:
        """
        Create a new session in NOT_STARTED.

        Raises:
            ValueError: unknown theme or difficulty
        """
        task_oracle, move_oracle = self._get_oracles()
        session = GameSession(
            task_oracle=task_oracle,
            move_oracle=move_oracle,
            move_delay=self.move_delay,
            auto_opponent=self.auto_opponent,
        )
        session.configure(theme=theme, difficulty=difficulty)
        self._sessions[session.session_id] = session
        logger.info(f"Session created: {session.session_id}")
        return session

    def get_session(self, session_id: str) -> GameSession | None:
        return self._sessions.get(session_id)

    def end_session(self, session_id: str) -> bool:
        """Reset and drop a session. In-flight oracle answers are discarded."""
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.reset()
        logger.info(f"Session ended: {session_id}")
        return True

    def list_sessions(self) -> list[str]:
        return list(self._sessions)

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> list[str]:
        """
        End sessions idle for longer than max_age_seconds.

        Sessions with an oracle call in flight are kept.
        """
        now = time.time()
        stale = [
            sid for sid, session in self._sessions.items()
            if now - session.updated_at > max_age_seconds and not session.busy
        ]
        for session_id in stale:
            self.end_session(session_id)
        return stale
