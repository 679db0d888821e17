"""
API Module - Client interface.

Exposes game sessions over REST and WebSocket. A client:
1. Creates a session and picks theme/difficulty
2. Starts the game
3. Requests, completes or cancels tasks for cells
4. Receives state updates while the opponent thinks
5. Resets to play again

All state is session-scoped and in memory.
"""

from .schemas import (
    # Requests
    CreateSessionRequest,
    ConfigureRequest,
    TaskRequest,
    # Responses
    SessionStateResponse,
    TransitionResponse,
    ThemesResponse,
    SessionListResponse,
    EndSessionResponse,
    HealthResponse,
    ErrorResponse,
    # Shared
    TaskInfo,
    SessionStatus,
    ErrorCode,
)
from .service import APIService, snapshot_to_response
from .app import create_app

__all__ = [
    # Requests
    "CreateSessionRequest",
    "ConfigureRequest",
    "TaskRequest",
    # Responses
    "SessionStateResponse",
    "TransitionResponse",
    "ThemesResponse",
    "SessionListResponse",
    "EndSessionResponse",
    "HealthResponse",
    "ErrorResponse",
    # Shared
    "TaskInfo",
    "SessionStatus",
    "ErrorCode",
    # Service
    "APIService",
    "snapshot_to_response",
    "create_app",
]
