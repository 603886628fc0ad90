"""
LLM tile oracle.

Turns a RegionDescription into a chat completion request and the reply
into an OracleResult. The oracle never raises for oracle-side failures:
a failed call, an unreadable reply and a wrongly sized matrix each map to
their own result variant, and callers write nothing for any of them.

Output decision tree:
    - Completion call raised -> OracleErrorResult
    - No JSON / not a rectangular matrix -> ParseErrorResult
    - Matrix size != region size -> DimensionMismatchResult
    - Otherwise -> TileMatrixResult (values clamped to [-1, max_tile_index])
"""

from __future__ import annotations

import json
import logging
import math
from typing import Any, Awaitable, Callable

from tile_regen.config import RegenSettings
from tile_regen.llm.client import get_completion, parse_json_response
from tile_regen.llm.prompt_loader import get_loader
from tile_regen.models.oracle import (
    EMPTY_TILE,
    DimensionMismatchResult,
    OracleErrorResult,
    OracleResult,
    ParseErrorResult,
    RegionDescription,
    TileMatrixResult,
)

logger = logging.getLogger(__name__)

Completion = Callable[..., Awaitable[str]]

DEFAULT_PROMPT = "Regenerate this region to flow better with the surrounding map."


def _coerce_tile(value: Any, max_tile: int) -> int:
    """Read one matrix entry as a tile index; garbage becomes empty."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return EMPTY_TILE
    if not math.isfinite(number):
        return EMPTY_TILE
    return int(min(max_tile, max(EMPTY_TILE, math.floor(number))))


def _preview(raw: str | None) -> str:
    text = raw or ""
    return text[:200] + "..." if len(text) > 200 else text


def parse_tile_matrix(
    raw: str | None,
    width: int,
    height: int,
    max_tile: int = 255,
) -> OracleResult:
    """
    Read an oracle reply as a tile matrix of the expected size.

    Accepts ``{"width": w, "height": h, "tiles": [[...]]}`` or a bare
    ``[[...]]`` matrix, optionally wrapped in a markdown code block. The
    declared width/height are informational; the rows themselves decide.

    Args:
        raw: Raw reply text
        width: Expected number of columns
        height: Expected number of rows
        max_tile: Largest tile index kept, larger values are clamped

    Returns:
        TileMatrixResult, ParseErrorResult or DimensionMismatchResult
    """
    try:
        data = parse_json_response(raw)
    except ValueError as e:
        return ParseErrorResult(detail=str(e), raw=_preview(raw))

    tiles = data.get("tiles") if isinstance(data, dict) else data

    if not isinstance(tiles, list) or not tiles:
        return ParseErrorResult(detail="Invalid matrix schema", raw=_preview(raw))
    if not all(isinstance(row, list) for row in tiles):
        return ParseErrorResult(detail="Matrix rows must be arrays", raw=_preview(raw))

    row_width = len(tiles[0])
    if row_width == 0 or any(len(row) != row_width for row in tiles):
        return ParseErrorResult(detail="Matrix is not rectangular", raw=_preview(raw))

    if (row_width, len(tiles)) != (width, height):
        return DimensionMismatchResult(
            expected=(width, height), actual=(row_width, len(tiles))
        )

    return TileMatrixResult(
        tiles=[[_coerce_tile(v, max_tile) for v in row] for row in tiles]
    )


class LLMTileOracle:
    """Content oracle backed by a chat completion model.

    Example:
        >>> oracle = LLMTileOracle(RegenSettings())
        >>> result = await oracle.generate(description)
        >>> if result.ok:
        ...     apply(result.tiles)
    """

    def __init__(
        self,
        settings: RegenSettings | None = None,
        completion: Completion | None = None,
    ):
        """Initialize the oracle.

        Args:
            settings: Temperature, token limit and tile range
            completion: Async completion function, defaults to get_completion
        """
        self.settings = settings or RegenSettings()
        self.completion = completion or get_completion
        self.call_count = 0

    def build_messages(self, description: RegionDescription) -> list[dict[str, str]]:
        """Build the system and user messages for one region."""
        bounds = description.bounds
        loader = get_loader()

        system_prompt = loader.get_prompt("oracle", "system_prompt.txt").format(
            max_tile_index=self.settings.max_tile_index,
            width=bounds.width,
            height=bounds.height,
        )

        higher = [
            {"x": r.x, "y": r.y, "width": r.width, "height": r.height}
            for r in description.higher_bounds
        ]
        user_prompt = loader.get_prompt("oracle", "user_prompt.txt").format(
            prompt=description.prompt or DEFAULT_PROMPT,
            width=bounds.width,
            height=bounds.height,
            x=bounds.x,
            y=bounds.y,
            layer_name=description.layer_name,
            z_level=description.z_level,
            current_tiles=json.dumps(description.current_tiles),
            higher_bounds=json.dumps(higher) if higher else "none",
        )

        return [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]

    async def generate(self, description: RegionDescription) -> OracleResult:
        """Ask the model for a tile matrix covering the region."""
        messages = self.build_messages(description)
        self.call_count += 1

        try:
            raw = await self.completion(
                messages,
                temperature=self.settings.temperature,
                max_tokens=self.settings.max_tokens,
                response_format={"type": "json_object"},
            )
        except Exception as e:
            logger.error(
                f"Oracle call failed for {description.region_id}: {type(e).__name__}: {e}"
            )
            return OracleErrorResult(detail=f"{type(e).__name__}: {e}")

        result = parse_tile_matrix(
            raw,
            description.bounds.width,
            description.bounds.height,
            max_tile=self.settings.max_tile_index,
        )
        if not result.ok:
            logger.warning(
                f"Oracle reply rejected for {description.region_id}: {result.kind}: {result.detail}"
            )
        return result
