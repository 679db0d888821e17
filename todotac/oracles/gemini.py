"""
Gemini Oracles - Task and move oracles backed by Google Gemini.

Both oracles share one google-genai client and use its async surface.
Any client failure (network, auth, quota, timeout) is re-raised as
OracleError so the session can abort the request cleanly.
"""

from __future__ import annotations
from typing import Any
import asyncio
import logging

from google import genai
from google.genai import types as genai_types

from .. import config
from ..engine_core.state import Board, Difficulty
from ..errors import OracleError
from .base import FALLBACK_TASK, MoveOracle, TaskOracle
from .prompts import OraclePrompts

logger = logging.getLogger(__name__)


def make_client(api_key: str | None = None) -> genai.Client:
    """Create a Gemini client from an explicit key or the environment."""
    api_key = api_key or config.GEMINI_API_KEY
    if not api_key:
        raise OracleError("No Gemini API key configured (set GEMINI_API_KEY)", oracle="gemini")
    return genai.Client(api_key=api_key)


MOVE_SCHEMA = genai_types.Schema(
    type=genai_types.Type.OBJECT,
    properties={
        "index": genai_types.Schema(
            type=genai_types.Type.NUMBER,
            description="The index of the square to claim (0-8).",
        ),
        "reasoning": genai_types.Schema(
            type=genai_types.Type.STRING,
            description="Brief explanation of the strategic move.",
        ),
    },
    required=["index", "reasoning"],
)


class _GeminiOracle:
    """Shared client handling for both oracles."""

    name = "gemini"

    def __init__(
        self,
        client: Any = None,
        model: str | None = None,
        timeout: float | None = None,
    ):
        self.client = client if client is not None else make_client()
        self.model = model or config.TODOTAC_MODEL
        self.timeout = timeout if timeout is not None else config.TODOTAC_ORACLE_TIMEOUT

    async def _generate(self, prompt: str, generation_config: Any = None) -> str:
        try:
            response = await asyncio.wait_for(
                self.client.aio.models.generate_content(
                    model=self.model,
                    contents=prompt,
                    config=generation_config,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise OracleError(
                f"Gemini call timed out after {self.timeout}s", oracle=self.name, cause=e
            ) from e
        except Exception as e:
            raise OracleError(f"Gemini call failed: {e}", oracle=self.name, cause=e) from e
        return (response.text or "").strip()


class GeminiTaskOracle(_GeminiOracle, TaskOracle):
    """Generates todo tasks with Gemini."""

    async def generate_task(self, theme: str, cell_index: int, difficulty: Difficulty) -> str:
        prompt = OraclePrompts.task(theme, cell_index, difficulty)
        logger.debug(f"Requesting task for cell {cell_index} ({theme}, {difficulty.value})")
        text = await self._generate(prompt)
        return text or FALLBACK_TASK


class GeminiMoveOracle(_GeminiOracle, MoveOracle):
    """Chooses the opponent's move with Gemini structured output."""

    async def select_move(self, board: Board, theme: str) -> str:
        prompt = OraclePrompts.move(board, theme)
        generation_config = genai_types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=MOVE_SCHEMA,
        )
        return await self._generate(prompt, generation_config)


def create_gemini_oracles(
    api_key: str | None = None,
    model: str | None = None,
) -> tuple[GeminiTaskOracle, GeminiMoveOracle]:
    """Both Gemini oracles sharing a single client."""
    client = make_client(api_key)
    return (
        GeminiTaskOracle(client=client, model=model),
        GeminiMoveOracle(client=client, model=model),
    )
