"""
Tests for the oracle layer.

Tests:
- Move decoding and its deterministic fallback
- Prompt contents
- Offline oracles
- Gemini adapters against a stubbed client
"""

import asyncio
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import pytest

from ..engine_core.state import Difficulty, empty_board
from ..errors import OracleError
from ..oracles import create_oracles
from ..oracles.base import FALLBACK_TASK
from ..oracles.decoding import FALLBACK_REASONING, decode_move
from ..oracles.gemini import GeminiMoveOracle, GeminiTaskOracle, MOVE_SCHEMA
from ..oracles.offline import CANNED_TASKS, CannedTaskOracle, RuleBasedMoveOracle
from ..oracles.prompts import OraclePrompts
from .helpers import make_board


class TestDecodeMove:
    """Tests for decode_move()."""

    def test_well_formed_json(self):
        """A valid answer is used as-is."""
        decision = decode_move('{"index": 4, "reasoning": "Centre."}', empty_board())

        assert decision.index == 4
        assert decision.reasoning == "Centre."
        assert not decision.fallback

    def test_mapping_answer(self):
        """Already-parsed mappings are accepted."""
        decision = decode_move({"index": 2, "reasoning": "Block."}, make_board("XX_OO____"))
        assert decision.index == 2
        assert not decision.fallback

    def test_float_index_accepted(self):
        """JSON numbers like 5.0 are integral indices."""
        decision = decode_move('{"index": 5.0, "reasoning": "Win."}', make_board("XX_OO____"))
        assert decision.index == 5
        assert not decision.fallback

    @pytest.mark.parametrize("raw", [
        "not json at all",
        "",
        None,
        '{"index": 4}',
        '{"reasoning": "no index"}',
        '{"index": "centre", "reasoning": "x"}',
        '{"index": 4.5, "reasoning": "x"}',
        "[4, \"reasoning\"]",
    ])
    def test_malformed_uses_first_empty_cell(self, raw):
        """Unusable answers fall back to the lowest empty index."""
        decision = decode_move(raw, make_board("XO_______"))

        assert decision.fallback
        assert decision.index == 2
        assert decision.reasoning == FALLBACK_REASONING

    @pytest.mark.parametrize("index", [-1, 9, 42])
    def test_out_of_range_uses_fallback(self, index):
        """Indices outside 0-8 fall back."""
        raw = json.dumps({"index": index, "reasoning": "x"})
        decision = decode_move(raw, empty_board())
        assert decision.fallback
        assert decision.index == 0

    def test_occupied_cell_uses_fallback(self):
        """An answer naming an occupied cell falls back."""
        decision = decode_move('{"index": 0, "reasoning": "x"}', make_board("X________"))
        assert decision.fallback
        assert decision.index == 1

    @pytest.mark.parametrize("k", range(9))
    def test_single_empty_cell(self, k):
        """With one empty cell k, a malformed answer lands on k."""
        layout = ["X" if i % 2 else "O" for i in range(9)]
        layout[k] = "_"
        decision = decode_move("garbage", make_board("".join(layout)))
        assert decision.index == k


class TestPrompts:
    """Tests for prompt builders."""

    def test_task_prompt(self):
        """Task prompt carries theme, cell and effort guidance."""
        prompt = OraclePrompts.task("Zen Master", 7, Difficulty.HARD)

        assert "Theme: Zen Master." in prompt
        assert "Cell index: 7 (0-8)." in prompt
        assert "Difficulty level: Hard" in prompt
        assert "3-5 minutes" in prompt
        assert "Return ONLY the task text" in prompt

    def test_move_prompt(self):
        """Move prompt lists the board and asks to win or block."""
        prompt = OraclePrompts.move(make_board("XX_OO____"), "Pop Culture")

        assert "playing as 'O'" in prompt
        assert "0: X, 1: X, 2: empty, 3: O, 4: O" in prompt
        assert "Theme: Pop Culture." in prompt
        assert "block the opponent 'X'" in prompt


class TestOfflineOracles:
    """Tests for the offline oracles."""

    @pytest.mark.asyncio
    async def test_canned_task_is_deterministic(self):
        """Same inputs give the same canned task."""
        oracle = CannedTaskOracle(seed=3)
        first = await oracle.generate_task("General Fun", 4, Difficulty.EASY)
        second = await oracle.generate_task("General Fun", 4, Difficulty.EASY)

        assert first == second
        assert any(first.startswith(task) for task in CANNED_TASKS[Difficulty.EASY])

    @pytest.mark.asyncio
    async def test_rule_based_wins(self):
        """Takes the winning square first."""
        oracle = RuleBasedMoveOracle()
        raw = await oracle.select_move(make_board("XX_OO___X"), "General Fun")
        assert json.loads(raw)["index"] == 5

    @pytest.mark.asyncio
    async def test_rule_based_blocks(self):
        """Blocks X when it cannot win."""
        oracle = RuleBasedMoveOracle()
        raw = await oracle.select_move(make_board("XX__O____"), "General Fun")
        assert json.loads(raw)["index"] == 2

    def test_rule_based_prefers_centre_then_corner(self):
        oracle = RuleBasedMoveOracle()
        assert oracle.choose(make_board("X________"))[0] == 4
        assert oracle.choose(make_board("____X____"))[0] == 0

    def test_rule_based_full_board(self):
        with pytest.raises(ValueError):
            RuleBasedMoveOracle().choose(make_board("XOXXOOOXX"))

    def test_create_offline_pair(self):
        task_oracle, move_oracle = create_oracles("offline")
        assert isinstance(task_oracle, CannedTaskOracle)
        assert isinstance(move_oracle, RuleBasedMoveOracle)

    def test_create_unknown_kind(self):
        with pytest.raises(ValueError):
            create_oracles("psychic")


def _stub_client(text=None, error=None):
    client = Mock()
    client.aio.models.generate_content = AsyncMock(
        return_value=SimpleNamespace(text=text),
        side_effect=error,
    )
    return client


class TestGeminiOracles:
    """Tests for the Gemini adapters with a stubbed client."""

    @pytest.mark.asyncio
    async def test_task_text_is_trimmed(self):
        client = _stub_client(text="  Do a 30 second plank.\n")
        oracle = GeminiTaskOracle(client=client, model="test-model", timeout=1)

        task = await oracle.generate_task("Fitness & Health", 0, Difficulty.MEDIUM)

        assert task == "Do a 30 second plank."
        kwargs = client.aio.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert "Fitness & Health" in kwargs["contents"]

    @pytest.mark.asyncio
    async def test_empty_task_uses_fallback(self):
        oracle = GeminiTaskOracle(client=_stub_client(text=None), model="m", timeout=1)
        assert await oracle.generate_task("General Fun", 0, Difficulty.EASY) == FALLBACK_TASK

    @pytest.mark.asyncio
    async def test_client_error_becomes_oracle_error(self):
        client = _stub_client(error=RuntimeError("quota exceeded"))
        oracle = GeminiTaskOracle(client=client, model="m", timeout=1)

        with pytest.raises(OracleError) as exc_info:
            await oracle.generate_task("General Fun", 0, Difficulty.EASY)
        assert "quota exceeded" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_timeout_becomes_oracle_error(self):
        async def slow(**kwargs):
            await asyncio.sleep(1)

        client = Mock()
        client.aio.models.generate_content = slow
        oracle = GeminiTaskOracle(client=client, model="m", timeout=0.01)

        with pytest.raises(OracleError):
            await oracle.generate_task("General Fun", 0, Difficulty.EASY)

    @pytest.mark.asyncio
    async def test_move_requests_json_schema(self):
        client = _stub_client(text='{"index": 2, "reasoning": "Block."}')
        oracle = GeminiMoveOracle(client=client, model="m", timeout=1)

        raw = await oracle.select_move(make_board("XX_OO____"), "General Fun")

        assert decode_move(raw, make_board("XX_OO____")).index == 2
        generation_config = client.aio.models.generate_content.call_args.kwargs["config"]
        assert generation_config.response_mime_type == "application/json"
        assert generation_config.response_schema == MOVE_SCHEMA

    def test_move_schema_requires_both_fields(self):
        assert set(MOVE_SCHEMA.required) == {"index", "reasoning"}
