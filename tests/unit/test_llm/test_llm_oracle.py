"""Unit tests for the LLM tile oracle.

Tests cover:
- parse_tile_matrix accepted formats, clamping and coercion
- Parse failures and dimension mismatches
- LLMTileOracle prompt building and completion handling
"""

import json

import pytest
from unittest.mock import AsyncMock, patch

from tile_regen.config import RegenSettings
from tile_regen.llm.oracle import LLMTileOracle, parse_tile_matrix
from tile_regen.models.chunk import Rect
from tile_regen.models.oracle import (
    DimensionMismatchResult,
    OracleErrorResult,
    ParseErrorResult,
    RegionDescription,
    TileMatrixResult,
)
from tests.mocks.oracle import matrix_json


class TestParseTileMatrix:
    """Tests for parse_tile_matrix."""

    def test_object_format(self) -> None:
        result = parse_tile_matrix(matrix_json(3, 2, 5), width=3, height=2)
        assert isinstance(result, TileMatrixResult)
        assert result.tiles == [[5, 5, 5], [5, 5, 5]]

    def test_bare_matrix(self) -> None:
        result = parse_tile_matrix("[[1, 2], [3, 4]]", width=2, height=2)
        assert result.tiles == [[1, 2], [3, 4]]

    def test_markdown_fenced_reply(self) -> None:
        raw = '```json\n{"tiles": [[1, 1]]}\n```'
        assert parse_tile_matrix(raw, width=2, height=1).ok

    def test_chatter_around_json(self) -> None:
        raw = 'Here you go: {"width": 1, "height": 1, "tiles": [[7]]} Enjoy!'
        assert parse_tile_matrix(raw, width=1, height=1).tiles == [[7]]

    def test_values_clamped_and_coerced(self) -> None:
        raw = json.dumps({"tiles": [[999, -7, "3", 2.9, "grass", None]]})

        result = parse_tile_matrix(raw, width=6, height=1, max_tile=255)

        assert result.tiles == [[255, -1, 3, 2, -1, -1]]

    def test_declared_size_is_informational(self) -> None:
        raw = json.dumps({"width": 9, "height": 9, "tiles": [[1, 1]]})
        assert parse_tile_matrix(raw, width=2, height=1).ok

    @pytest.mark.parametrize(
        "raw",
        [
            "",
            None,
            "no json here",
            '{"tiles": "grass"}',
            '{"tiles": []}',
            '{"tiles": [1, 2, 3]}',
            '{"tiles": [[1, 2], [3]]}',
            '{"tiles": [[], []]}',
        ],
    )
    def test_parse_errors(self, raw) -> None:
        result = parse_tile_matrix(raw, width=2, height=2)
        assert isinstance(result, ParseErrorResult)
        assert not result.ok

    def test_dimension_mismatch(self) -> None:
        result = parse_tile_matrix(matrix_json(3, 2, 1), width=2, height=2)

        assert isinstance(result, DimensionMismatchResult)
        assert result.expected == (2, 2)
        assert result.actual == (3, 2)


class TestLLMTileOracle:
    """Tests for LLMTileOracle."""

    @pytest.fixture
    def description(self) -> RegionDescription:
        return RegionDescription(
            region_id="forest",
            bounds=Rect(x=4, y=2, width=2, height=2),
            z_level=2,
            prompt="Dense forest with a clearing",
            current_tiles=[[1, -1], [6, 6]],
            higher_bounds=[Rect(x=5, y=2)],
        )

    def test_messages_carry_region_context(self, description) -> None:
        oracle = LLMTileOracle(RegenSettings(max_tile_index=99))

        system, user = oracle.build_messages(description)

        assert system["role"] == "system"
        assert "0..99" in system["content"]
        assert "exactly 2x2" in system["content"]
        assert user["role"] == "user"
        assert "Dense forest with a clearing" in user["content"]
        assert "starting at (4, 2)" in user["content"]
        assert "[[1, -1], [6, 6]]" in user["content"]
        assert '"x": 5' in user["content"]

    def test_missing_prompt_uses_default(self, description) -> None:
        oracle = LLMTileOracle()
        _, user = oracle.build_messages(description.model_copy(update={"prompt": ""}))
        assert "flow better" in user["content"]

    @pytest.mark.asyncio
    async def test_generate_success(self, description, mock_llm_client) -> None:
        oracle = LLMTileOracle(RegenSettings(), completion=mock_llm_client.complete)

        result = await oracle.generate(description)

        assert result.ok
        assert result.tiles == [[1, 1], [1, 1]]
        mock_llm_client.assert_called(times=1)
        call = mock_llm_client.get_last_call()
        assert call.kwargs["response_format"] == {"type": "json_object"}
        assert call.kwargs["temperature"] == 0.3

    @pytest.mark.asyncio
    async def test_generate_picks_reply_by_prompt(
        self, description, mock_llm_with_responses
    ) -> None:
        llm = mock_llm_with_responses(
            {"forest": matrix_json(2, 2, 4), "default": matrix_json(2, 2, 1)}
        )
        oracle = LLMTileOracle(completion=llm.complete)

        result = await oracle.generate(description)

        assert result.tiles == [[4, 4], [4, 4]]

    @pytest.mark.asyncio
    async def test_completion_error_becomes_result(self, description) -> None:
        with patch(
            "tile_regen.llm.oracle.get_completion", new_callable=AsyncMock
        ) as mock_completion:
            mock_completion.side_effect = TimeoutError("provider timed out")
            oracle = LLMTileOracle()

            result = await oracle.generate(description)

        assert isinstance(result, OracleErrorResult)
        assert "provider timed out" in result.detail

    @pytest.mark.asyncio
    async def test_wrong_size_reply(self, description, mock_llm_with_responses) -> None:
        llm = mock_llm_with_responses({"default": matrix_json(3, 3, 1)})
        oracle = LLMTileOracle(completion=llm.complete)

        result = await oracle.generate(description)

        assert isinstance(result, DimensionMismatchResult)
