"""Pydantic models for tile-regen"""

from tile_regen.models.chunk import ChunkKey, Rect
from tile_regen.models.oracle import (
    EMPTY_TILE,
    DimensionMismatchResult,
    OracleErrorResult,
    OracleResult,
    ParseErrorResult,
    RegionDescription,
    TileMatrix,
    TileMatrixResult,
)
from tile_regen.models.report import (
    ChunkFailure,
    CycleReport,
    OutcomeStatus,
    PassName,
    PassReport,
    PassStats,
    RegionOutcome,
)
from tile_regen.models.request import RegenerationRequest, SnapshotInfo

__all__ = [
    # Geometry
    "ChunkKey",
    "Rect",
    # Oracle
    "EMPTY_TILE",
    "TileMatrix",
    "RegionDescription",
    "OracleResult",
    "TileMatrixResult",
    "ParseErrorResult",
    "DimensionMismatchResult",
    "OracleErrorResult",
    # Queue
    "RegenerationRequest",
    "SnapshotInfo",
    # Reports
    "ChunkFailure",
    "CycleReport",
    "OutcomeStatus",
    "PassName",
    "PassReport",
    "PassStats",
    "RegionOutcome",
]
