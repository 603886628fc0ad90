"""
Oracle models for tile regeneration.

The content oracle turns a RegionDescription into a tile matrix. Every
call produces exactly one OracleResult, a tagged union that callers
handle exhaustively instead of catching exceptions.

Key concepts:
    - RegionDescription: What the oracle is asked to fill
    - TileMatrixResult: Success, carries a rectangular tile matrix
    - ParseErrorResult: The reply was not a usable JSON tile matrix
    - DimensionMismatchResult: The matrix did not match the region size
    - OracleErrorResult: The call itself failed

Example:
    >>> result = TileMatrixResult(tiles=[[1, 1], [6, 6]])
    >>> result.ok
    True
    >>> result.width, result.height
    (2, 2)
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from tile_regen.models.chunk import Rect

TileMatrix = list[list[int]]

EMPTY_TILE = -1


class RegionDescription(BaseModel):
    """Everything the oracle gets to know about one region.

    Attributes:
        region_id: Identifier of the region or chunk being regenerated
        bounds: Tile rectangle to fill
        z_level: Priority level of the region
        layer_name: Target tile layer
        prompt: Design intent for the region (user request or default)
        current_tiles: Tiles currently inside bounds, row-major, -1 = empty
        higher_bounds: Bounds of higher-priority regions that will be kept
    """

    region_id: str
    bounds: Rect
    z_level: int = 1
    layer_name: str = "Ground_Layer"
    prompt: str = ""
    current_tiles: TileMatrix = Field(default_factory=list)
    higher_bounds: list[Rect] = Field(default_factory=list)


class TileMatrixResult(BaseModel):
    """Successful oracle reply."""

    kind: Literal["ok"] = "ok"
    tiles: TileMatrix

    @property
    def ok(self) -> bool:
        return True

    @property
    def height(self) -> int:
        return len(self.tiles)

    @property
    def width(self) -> int:
        return len(self.tiles[0]) if self.tiles else 0


class ParseErrorResult(BaseModel):
    """The reply could not be read as a rectangular tile matrix.

    Attributes:
        detail: What went wrong
        raw: Preview of the raw reply for debugging
    """

    kind: Literal["parse_error"] = "parse_error"
    detail: str
    raw: str = ""

    @property
    def ok(self) -> bool:
        return False


class DimensionMismatchResult(BaseModel):
    """The matrix was well-formed but sized for a different region.

    Attributes:
        expected: (width, height) of the requested region
        actual: (width, height) of the returned matrix
    """

    kind: Literal["dimension_mismatch"] = "dimension_mismatch"
    expected: tuple[int, int]
    actual: tuple[int, int]

    @property
    def ok(self) -> bool:
        return False

    @property
    def detail(self) -> str:
        return (
            f"Matrix dimensions ({self.actual[0]}x{self.actual[1]}) do not match "
            f"region ({self.expected[0]}x{self.expected[1]})"
        )


class OracleErrorResult(BaseModel):
    """The oracle call failed before producing a reply."""

    kind: Literal["oracle_error"] = "oracle_error"
    detail: str

    @property
    def ok(self) -> bool:
        return False


# Type alias for any oracle outcome
OracleResult = (
    TileMatrixResult | ParseErrorResult | DimensionMismatchResult | OracleErrorResult
)
