"""
Tests for API layer.

Tests:
- API service methods
- Snapshot serialization
- Session lifecycle via API
- Error handling
"""

import pytest

from ..api.schemas import (
    ConfigureRequest,
    CreateSessionRequest,
    ErrorCode,
    ErrorResponse,
    SessionStatus,
)
from ..api.service import APIService, snapshot_to_response
from ..engine_core.state import THEMES
from ..session import SessionManager
from .helpers import FakeTaskOracle


@pytest.fixture
def service(move_oracle) -> APIService:
    """A service whose sessions use fake oracles and explicit opponent turns."""
    oracles = (FakeTaskOracle(), move_oracle)
    manager = SessionManager(oracle_factory=lambda: oracles, move_delay=0, auto_opponent=False)
    return APIService(session_manager=manager)


class TestAPIService:
    """Tests for APIService."""

    def test_create_session(self, service):
        """Can create a session via API."""
        response = service.create_session(CreateSessionRequest(theme="Zen Master"))

        assert response.session_id is not None
        assert response.status == SessionStatus.NOT_STARTED
        assert response.theme == "Zen Master"
        assert response.difficulty == "Medium"
        assert response.board == [None] * 9
        assert not response.game_started

    def test_create_and_start(self, service):
        response = service.create_session(CreateSessionRequest(start=True))
        assert response.status == SessionStatus.YOUR_TURN
        assert response.active_player == "X"

    def test_create_with_unknown_difficulty(self, service):
        response = service.create_session(CreateSessionRequest(difficulty="Impossible"))

        assert isinstance(response, ErrorResponse)
        assert response.error_code == ErrorCode.VALIDATION_ERROR

    def test_get_session(self, service):
        created = service.create_session(CreateSessionRequest())
        response = service.get_session(created.session_id)
        assert response.session_id == created.session_id

    def test_get_nonexistent_session(self, service):
        """Getting nonexistent session returns error."""
        response = service.get_session("nonexistent-id")

        assert hasattr(response, "error")
        assert response.error_code == ErrorCode.SESSION_NOT_FOUND

    def test_end_session(self, service):
        session_id = service.create_session(CreateSessionRequest()).session_id

        assert service.end_session(session_id)
        assert session_id not in service.list_sessions()
        assert not service.end_session(session_id)

    def test_themes(self, service):
        response = service.themes()
        assert response.themes == list(THEMES)
        assert response.difficulties == ["Easy", "Medium", "Hard"]
        assert response.default_theme == "General Fun"

    def test_configure(self, service):
        session_id = service.create_session(CreateSessionRequest()).session_id

        result = service.configure(session_id, ConfigureRequest(difficulty="hard"))
        assert result.accepted
        assert result.state.difficulty == "Hard"

        bad = service.configure(session_id, ConfigureRequest(theme="Nope"))
        assert bad.error_code == ErrorCode.VALIDATION_ERROR

    @pytest.mark.asyncio
    async def test_turn_flow(self, service, move_oracle):
        """Request, complete, then the opponent answers."""
        session_id = service.create_session(CreateSessionRequest(start=True)).session_id
        move_oracle.answers = [0]

        result = await service.request_task(session_id, 4)
        assert result.accepted
        assert result.state.status == SessionStatus.TASK_PENDING
        assert result.state.pending_task.description == "Do 10 squats."
        assert result.state.board[4] is None

        result = service.complete_task(session_id, 4)
        assert result.accepted
        assert result.state.board[4] == "X"
        assert result.state.status == SessionStatus.OPPONENT_THINKING
        assert result.state.tasks[0].completed

        result = await service.run_opponent_turn(session_id)
        assert result.accepted
        assert result.state.board[0] == "O"
        assert result.state.last_opponent_move == 0
        assert result.state.status == SessionStatus.YOUR_TURN

    @pytest.mark.asyncio
    async def test_rejected_click_is_not_an_error(self, service):
        session_id = service.create_session(CreateSessionRequest()).session_id

        result = await service.request_task(session_id, 4)

        assert not result.accepted
        assert result.state.status == SessionStatus.NOT_STARTED

    @pytest.mark.asyncio
    async def test_cancel_and_reset(self, service):
        session_id = service.create_session(CreateSessionRequest(start=True)).session_id
        await service.request_task(session_id, 2)

        result = service.cancel_task(session_id, 2)
        assert result.accepted
        assert result.state.status == SessionStatus.YOUR_TURN
        assert result.state.pending_task is None

        result = service.reset(session_id)
        assert result.accepted
        assert result.state.status == SessionStatus.NOT_STARTED
        assert result.state.tasks == []

    @pytest.mark.asyncio
    async def test_transitions_on_missing_session(self, service):
        assert service.start("nope").error_code == ErrorCode.SESSION_NOT_FOUND
        assert (await service.request_task("nope", 0)).error_code == ErrorCode.SESSION_NOT_FOUND
        assert service.complete_task("nope", 0).error_code == ErrorCode.SESSION_NOT_FOUND
        assert service.cancel_task("nope", 0).error_code == ErrorCode.SESSION_NOT_FOUND
        assert (await service.run_opponent_turn("nope")).error_code == ErrorCode.SESSION_NOT_FOUND
        assert service.reset("nope").error_code == ErrorCode.SESSION_NOT_FOUND


class TestSnapshotSerialization:
    """Tests for snapshot_to_response()."""

    @pytest.mark.asyncio
    async def test_finished_game(self, service, move_oracle):
        """Winner and winning line are reported once the game is over."""
        session_id = service.create_session(CreateSessionRequest(start=True)).session_id
        move_oracle.answers = [3, 4]
        for index in (0, 1, 2):
            await service.request_task(session_id, index)
            service.complete_task(session_id, index)
            await service.run_opponent_turn(session_id)

        session = service.session_manager.get_session(session_id)
        response = snapshot_to_response(session.snapshot())

        assert response.status == SessionStatus.GAME_OVER
        assert response.winner == "X"
        assert response.winning_line == [0, 1, 2]
        assert response.active_player is None
        assert response.board == ["X", "X", "X", "O", "O", None, None, None, None]

    def test_json_round_trip_is_plain(self, service):
        session_id = service.create_session(CreateSessionRequest()).session_id
        session = service.session_manager.get_session(session_id)

        payload = snapshot_to_response(session.snapshot()).model_dump(mode="json")

        assert payload["status"] == "not_started"
        assert payload["board"] == [None] * 9
        assert payload["api_version"] == "v1"


class TestMultipleSessions:
    """Tests for multiple concurrent sessions."""

    @pytest.mark.asyncio
    async def test_sessions_are_independent(self, service):
        first = service.create_session(CreateSessionRequest(start=True)).session_id
        second = service.create_session(CreateSessionRequest(start=True)).session_id

        await service.request_task(first, 4)

        assert service.get_session(first).status == SessionStatus.TASK_PENDING
        assert service.get_session(second).status == SessionStatus.YOUR_TURN
