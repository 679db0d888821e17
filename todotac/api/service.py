"""
API Service - Business logic layer between the HTTP app and sessions.

The service:
1. Looks up sessions
2. Calls session transitions
3. Formats snapshots for clients

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from ..engine_core.state import (
    DEFAULT_DIFFICULTY,
    DEFAULT_THEME,
    THEMES,
    Difficulty,
    board_to_strings,
)
from ..session import GameSession, SessionManager, SessionPhase, SessionSnapshot
from .schemas import (
    ConfigureRequest,
    CreateSessionRequest,
    ErrorCode,
    ErrorResponse,
    SessionStateResponse,
    SessionStatus,
    TaskInfo,
    ThemesResponse,
    TransitionResponse,
)

logger = logging.getLogger(__name__)

_PHASE_STATUS = {
    SessionPhase.NOT_STARTED: SessionStatus.NOT_STARTED,
    SessionPhase.HUMAN_TURN: SessionStatus.YOUR_TURN,
    SessionPhase.HUMAN_TASK_PENDING: SessionStatus.TASK_PENDING,
    SessionPhase.OPPONENT_TURN: SessionStatus.OPPONENT_THINKING,
    SessionPhase.FINISHED: SessionStatus.GAME_OVER,
}


def snapshot_to_response(snapshot: SessionSnapshot) -> SessionStateResponse:
    """Convert a session snapshot to its API model."""
    tasks = [
        TaskInfo(
            index=index,
            id=task.id,
            description=task.description,
            completed=task.completed,
            owner=task.owner.value,
        )
        for index, task in sorted(snapshot.tasks.items())
    ]
    pending = next((t for t in tasks if t.index == snapshot.pending_index), None)

    return SessionStateResponse(
        session_id=snapshot.session_id,
        status=_PHASE_STATUS[snapshot.phase],
        board=board_to_strings(list(snapshot.board)),
        active_player=snapshot.active_player.value if snapshot.active_player else None,
        winner=snapshot.outcome.value if snapshot.outcome else None,
        winning_line=list(snapshot.winning_line) if snapshot.winning_line else None,
        tasks=tasks,
        pending_task=pending,
        is_processing=snapshot.busy,
        game_started=snapshot.started,
        theme=snapshot.theme,
        difficulty=snapshot.difficulty.value,
        opponent_reasoning=snapshot.opponent_reasoning,
        last_opponent_move=snapshot.last_opponent_move,
        last_error=snapshot.last_error,
        epoch=snapshot.epoch,
    )


def _not_found(session_id: str) -> ErrorResponse:
    return ErrorResponse(
        error="Session not found",
        error_code=ErrorCode.SESSION_NOT_FOUND,
        details={"session_id": session_id},
    )


def _invalid(message: str) -> ErrorResponse:
    return ErrorResponse(error=message, error_code=ErrorCode.VALIDATION_ERROR)


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()
        state = service.create_session(CreateSessionRequest(start=True))
        result = await service.request_task(state.session_id, 4)
        result = service.complete_task(state.session_id, 4)
    """
    session_manager: SessionManager = field(default_factory=SessionManager)

    def _transition(self, session: GameSession, accepted: bool) -> TransitionResponse:
        return TransitionResponse(
            accepted=accepted,
            state=snapshot_to_response(session.snapshot()),
        )

    # =========================================================================
    # Sessions
    # =========================================================================

    def create_session(self, request: CreateSessionRequest) -> SessionStateResponse | ErrorResponse:
        try:
            session = self.session_manager.create_session(
                theme=request.theme,
                difficulty=request.difficulty,
            )
        except ValueError as e:
            return _invalid(str(e))

        if request.start:
            session.start()
        return snapshot_to_response(session.snapshot())

    def get_session(self, session_id: str) -> SessionStateResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _not_found(session_id)
        return snapshot_to_response(session.snapshot())

    def end_session(self, session_id: str) -> bool:
        return self.session_manager.end_session(session_id)

    def list_sessions(self) -> list[str]:
        return self.session_manager.list_sessions()

    def themes(self) -> ThemesResponse:
        return ThemesResponse(
            themes=list(THEMES),
            difficulties=[d.value for d in Difficulty],
            default_theme=DEFAULT_THEME,
            default_difficulty=DEFAULT_DIFFICULTY.value,
        )

    # =========================================================================
    # Transitions
    # =========================================================================

    def configure(
        self,
        session_id: str,
        request: ConfigureRequest,
    ) -> TransitionResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _not_found(session_id)
        try:
            accepted = session.configure(theme=request.theme, difficulty=request.difficulty)
        except ValueError as e:
            return _invalid(str(e))
        return self._transition(session, accepted)

    def start(self, session_id: str) -> TransitionResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _not_found(session_id)
        return self._transition(session, session.start())

    async def request_task(
        self,
        session_id: str,
        index: int,
        regenerate: bool = False,
    ) -> TransitionResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _not_found(session_id)
        accepted = await session.request_task(index, regenerate=regenerate)
        return self._transition(session, accepted)

    def complete_task(self, session_id: str, index: int) -> TransitionResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _not_found(session_id)
        return self._transition(session, session.complete_task(index))

    def cancel_task(self, session_id: str, index: int) -> TransitionResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _not_found(session_id)
        return self._transition(session, session.cancel_task(index))

    async def run_opponent_turn(self, session_id: str) -> TransitionResponse | ErrorResponse:
        """Run (or retry after a failure) the opponent's turn."""
        session = self.session_manager.get_session(session_id)
        if not session:
            return _not_found(session_id)
        accepted = await session.run_opponent_turn()
        return self._transition(session, accepted)

    def reset(self, session_id: str) -> TransitionResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _not_found(session_id)
        return self._transition(session, session.reset())
