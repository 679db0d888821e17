"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between a client UI and the engine.

Error Codes:
- SESSION_NOT_FOUND: Session does not exist or has ended
- VALIDATION_ERROR: Unknown theme, difficulty or malformed request
- INTERNAL_ERROR: Unexpected server failure
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class SessionStatus(str, Enum):
    """Session phase as seen by clients."""
    NOT_STARTED = "not_started"
    YOUR_TURN = "your_turn"
    TASK_PENDING = "task_pending"
    OPPONENT_THINKING = "opponent_thinking"
    GAME_OVER = "game_over"


class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Requests
# =============================================================================

class CreateSessionRequest(BaseModel):
    """Create a session, optionally preselecting theme and difficulty."""
    theme: Optional[str] = Field(None, description="One of GET /api/v1/themes")
    difficulty: Optional[str] = Field(None, description="Easy, Medium or Hard")
    start: bool = Field(False, description="Start the game immediately")


class ConfigureRequest(BaseModel):
    """Change theme and/or difficulty between games."""
    theme: Optional[str] = None
    difficulty: Optional[str] = None


class TaskRequest(BaseModel):
    """Options for requesting a task."""
    regenerate: bool = Field(False, description="Ask for a new task even if one is recorded")


# =============================================================================
# Shared Models
# =============================================================================

class TaskInfo(BaseModel):
    """A todo task attached to a board cell."""
    index: int = Field(..., ge=0, le=8)
    id: int
    description: str
    completed: bool
    owner: str

    model_config = {"from_attributes": True}


# =============================================================================
# Responses
# =============================================================================

class SessionStateResponse(BaseModel):
    """Full view of a game session."""
    session_id: str
    status: SessionStatus
    board: list[Optional[str]] = Field(..., min_length=9, max_length=9)
    active_player: Optional[str] = None
    winner: Optional[str] = Field(None, description="X, O or Draw once the game is over")
    winning_line: Optional[list[int]] = None
    tasks: list[TaskInfo] = Field(default_factory=list)
    pending_task: Optional[TaskInfo] = None
    is_processing: bool = False
    game_started: bool = False
    theme: str
    difficulty: str
    opponent_reasoning: str = ""
    last_opponent_move: Optional[int] = None
    last_error: Optional[str] = None
    epoch: int
    api_version: str = "v1"


class TransitionResponse(BaseModel):
    """Result of a transition. Rejected transitions are not errors."""
    accepted: bool
    state: SessionStateResponse


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class ThemesResponse(BaseModel):
    """Available themes and difficulties."""
    themes: list[str]
    difficulties: list[str]
    default_theme: str
    default_difficulty: str


class SessionListResponse(BaseModel):
    """Response listing active sessions."""
    sessions: list[str]
    count: int


class EndSessionResponse(BaseModel):
    """Response after ending a session."""
    success: bool
    session_id: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
    oracle: str
