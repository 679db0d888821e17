"""
FastAPI Application - REST API for a Todo Tic-Tac-Toe client.

Endpoints:
    GET    /api/v1/themes                               Themes and difficulties
    POST   /api/v1/sessions                             Create session
    GET    /api/v1/sessions                             List sessions
    GET    /api/v1/sessions/{id}                        Get session state
    DELETE /api/v1/sessions/{id}                        End session
    POST   /api/v1/sessions/{id}/configure              Pick theme/difficulty
    POST   /api/v1/sessions/{id}/start                  Start a game
    POST   /api/v1/sessions/{id}/tasks/{index}          Request the task for a cell
    POST   /api/v1/sessions/{id}/tasks/{index}/complete Claim the cell
    POST   /api/v1/sessions/{id}/tasks/{index}/cancel   Close the task
    POST   /api/v1/sessions/{id}/opponent               Run / retry the opponent turn
    POST   /api/v1/sessions/{id}/reset                  Forfeit and restart
    WS     /api/v1/sessions/{id}/ws                     Live state updates

Transition endpoints always answer 200 with `accepted`; a click that the
game ignores (occupied cell, busy, wrong phase) is `accepted=false`.
The opponent moves on its own after a completed task; its progress is
pushed over the WebSocket or visible by polling the session.
"""

from typing import Optional, Union
import asyncio
import json
import logging

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__, config
from ..session import SessionManager, SessionSnapshot
from .schemas import (
    ConfigureRequest,
    CreateSessionRequest,
    EndSessionResponse,
    ErrorCode,
    ErrorResponse,
    HealthResponse,
    SessionListResponse,
    SessionStateResponse,
    TaskRequest,
    ThemesResponse,
    TransitionResponse,
)
from .service import APIService, snapshot_to_response

logger = logging.getLogger(__name__)


def create_app(service: Optional[APIService] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    app = FastAPI(
        title="TodoTac API",
        description="""
Todo Tic-Tac-Toe: claim a square by completing a generated task,
then watch the opponent answer.

## Turn Flow

1. `POST /tasks/{index}` fetches a task for an empty cell (`task_pending`)
2. `POST /tasks/{index}/complete` claims it; the opponent starts thinking
3. The opponent's reasoning and move arrive via the WebSocket (or polling)

## Error Codes

| Code | Description |
|------|-------------|
| `SESSION_NOT_FOUND` | Session does not exist |
| `VALIDATION_ERROR` | Unknown theme or difficulty |
| `INTERNAL_ERROR` | Unexpected server failure (500) |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_service = service or APIService(session_manager=SessionManager())

    # WebSocket connections and the session listener feeding them
    ws_connections: dict[str, list[WebSocket]] = {}
    ws_listeners: dict[str, object] = {}
    broadcast_tasks: set[asyncio.Task] = set()
    app.state.broadcast_tasks = broadcast_tasks

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(error: ErrorResponse) -> JSONResponse:
        """Create a standardized error response."""
        status_code = {
            ErrorCode.SESSION_NOT_FOUND: 404,
            ErrorCode.INTERNAL_ERROR: 500,
        }.get(error.error_code, 400)
        return JSONResponse(status_code=status_code, content=error.model_dump(mode="json"))

    def respond(response):
        if isinstance(response, ErrorResponse):
            return make_error_response(response)
        return response

    @app.exception_handler(500)
    async def internal_exception_handler(request, exc):
        logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=exc)
        return make_error_response(ErrorResponse(
            error="Internal server error",
            error_code=ErrorCode.INTERNAL_ERROR,
        ))

    async def broadcast_to_session(session_id: str, message: dict):
        """Broadcast a message to all WebSocket connections for a session."""
        dead_connections = []
        for ws in list(ws_connections.get(session_id, [])):
            try:
                await ws.send_json(message)
            except (WebSocketDisconnect, RuntimeError) as e:
                logger.debug(f"Dropping WebSocket for session {session_id}: {e}")
                dead_connections.append(ws)
        for ws in dead_connections:
            if ws in ws_connections.get(session_id, []):
                ws_connections[session_id].remove(ws)

    def broadcast_done(task: asyncio.Task):
        broadcast_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(
                "WebSocket broadcast failed",
                exc_info=(type(error), error, error.__traceback__),
            )

    def make_listener(session_id: str):
        def push(snapshot: SessionSnapshot):
            message = {
                "type": "state_update",
                "payload": snapshot_to_response(snapshot).model_dump(mode="json"),
            }
            task = asyncio.get_running_loop().create_task(
                broadcast_to_session(session_id, message)
            )
            broadcast_tasks.add(task)
            task.add_done_callback(broadcast_done)
        return push

    # =========================================================================
    # Catalogue
    # =========================================================================

    @app.get(
        "/api/v1/themes",
        response_model=ThemesResponse,
        tags=["Catalogue"],
        summary="List themes and difficulties",
    )
    async def list_themes() -> ThemesResponse:
        return api_service.themes()

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=SessionStateResponse,
        responses={400: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Create a new game session",
    )
    async def create_session(
        request: Optional[CreateSessionRequest] = None,
    ) -> Union[SessionStateResponse, JSONResponse]:
        """Create a session; pass `start=true` to begin right away."""
        return respond(api_service.create_session(request or CreateSessionRequest()))

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List active sessions",
    )
    async def list_sessions() -> SessionListResponse:
        sessions = api_service.list_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get session state",
    )
    async def get_session(session_id: str) -> Union[SessionStateResponse, JSONResponse]:
        return respond(api_service.get_session(session_id))

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        tags=["Sessions"],
        summary="End a game session",
    )
    async def end_session(session_id: str) -> EndSessionResponse:
        """End a session. Answers still in flight are discarded."""
        success = api_service.end_session(session_id)
        return EndSessionResponse(success=success, session_id=session_id)

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions/{session_id}/configure",
        response_model=TransitionResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Pick theme and difficulty",
    )
    async def configure(
        session_id: str,
        request: ConfigureRequest,
    ) -> Union[TransitionResponse, JSONResponse]:
        return respond(api_service.configure(session_id, request))

    @app.post(
        "/api/v1/sessions/{session_id}/start",
        response_model=TransitionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Start a game",
    )
    async def start(session_id: str) -> Union[TransitionResponse, JSONResponse]:
        return respond(api_service.start(session_id))

    @app.post(
        "/api/v1/sessions/{session_id}/tasks/{index}",
        response_model=TransitionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Request the task for a cell",
    )
    async def request_task(
        session_id: str,
        index: int,
        request: Optional[TaskRequest] = None,
    ) -> Union[TransitionResponse, JSONResponse]:
        """
        Generate (or re-show) the task that claims `index`.

        Blocks until the task oracle answers.
        """
        return respond(
            await api_service.request_task(
                session_id, index, regenerate=request.regenerate if request else False
            )
        )

    @app.post(
        "/api/v1/sessions/{session_id}/tasks/{index}/complete",
        response_model=TransitionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Mark the pending task as done",
    )
    async def complete_task(session_id: str, index: int) -> Union[TransitionResponse, JSONResponse]:
        return respond(api_service.complete_task(session_id, index))

    @app.post(
        "/api/v1/sessions/{session_id}/tasks/{index}/cancel",
        response_model=TransitionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Close the pending task without claiming",
    )
    async def cancel_task(session_id: str, index: int) -> Union[TransitionResponse, JSONResponse]:
        return respond(api_service.cancel_task(session_id, index))

    @app.post(
        "/api/v1/sessions/{session_id}/opponent",
        response_model=TransitionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Run or retry the opponent turn",
    )
    async def run_opponent(session_id: str) -> Union[TransitionResponse, JSONResponse]:
        return respond(await api_service.run_opponent_turn(session_id))

    @app.post(
        "/api/v1/sessions/{session_id}/reset",
        response_model=TransitionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Forfeit and restart",
    )
    async def reset(session_id: str) -> Union[TransitionResponse, JSONResponse]:
        return respond(api_service.reset(session_id))

    # =========================================================================
    # WebSocket Endpoint
    # =========================================================================

    @app.websocket("/api/v1/sessions/{session_id}/ws")
    async def websocket_endpoint(websocket: WebSocket, session_id: str):
        """
        WebSocket for real-time updates.

        Messages from server:
        - state_update: session changed (payload is the session state)
        - pong: reply to ping
        - error: bad message or unknown session

        Messages from client:
        - ping: Keep-alive
        """
        await websocket.accept()

        session = api_service.session_manager.get_session(session_id)
        if session is None:
            await websocket.send_json({
                "type": "error",
                "payload": {"message": "Session not found"},
            })
            await websocket.close()
            return

        ws_connections.setdefault(session_id, []).append(websocket)
        if session_id not in ws_listeners:
            listener = make_listener(session_id)
            ws_listeners[session_id] = listener
            session.add_listener(listener)

        try:
            await websocket.send_json({
                "type": "state_update",
                "payload": snapshot_to_response(session.snapshot()).model_dump(mode="json"),
            })

            while True:
                data = await websocket.receive_text()
                try:
                    message = json.loads(data)
                except json.JSONDecodeError:
                    await websocket.send_json({
                        "type": "error",
                        "payload": {"message": "Invalid JSON"},
                    })
                    continue
                if isinstance(message, dict) and message.get("type") == "ping":
                    await websocket.send_json({"type": "pong"})

        except WebSocketDisconnect:
            logger.debug(f"WebSocket closed for session {session_id}")
        finally:
            connections = ws_connections.get(session_id, [])
            if websocket in connections:
                connections.remove(websocket)
            if not connections:
                ws_connections.pop(session_id, None)
                listener = ws_listeners.pop(session_id, None)
                if listener is not None:
                    session.remove_listener(listener)

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="todotac",
            version=__version__,
            oracle=config.TODOTAC_ORACLE,
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "TodoTac API",
            "version": __version__,
            "docs": "/api/docs",
            "health": "/health",
        }

    return app
