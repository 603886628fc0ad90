"""
Selection regenerator - the discrete, user-driven scheduler.

Each finalized or edited selection becomes a RegenerationRequest scored by
compute_priority. process_queue() services the queue lowest score first:

    pop request -> describe region -> oracle.generate
        ok      -> masked write -> record region in batch mask
        failure -> nothing written, outcome carries the reason

The isolation mask lives for one process_queue() batch. Within a batch a
region with a greater Z-level that was already regenerated keeps its
cells, wherever a later lower-level region overlaps it.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Sequence

from tile_regen.config import RegenSettings
from tile_regen.engine.isolation import IsolationMask, MaskedTileWriter
from tile_regen.engine.priority import compute_priority, level_range
from tile_regen.engine.protocols import Region, TileOracle, TileStorage
from tile_regen.engine.queue import RegenerationQueue
from tile_regen.models.chunk import Rect
from tile_regen.models.oracle import (
    EMPTY_TILE,
    OracleErrorResult,
    OracleResult,
    RegionDescription,
    TileMatrix,
)
from tile_regen.models.report import OutcomeStatus, RegionOutcome
from tile_regen.models.request import RegenerationRequest, SnapshotInfo

logger = logging.getLogger(__name__)

_FAILURE_STATUS = {
    "parse_error": OutcomeStatus.PARSE_ERROR,
    "dimension_mismatch": OutcomeStatus.DIMENSION_MISMATCH,
    "oracle_error": OutcomeStatus.ORACLE_ERROR,
}


def read_tiles(storage: TileStorage, bounds: Rect) -> TileMatrix:
    """Read the tiles inside bounds through get_tile_at, -1 for empty."""
    rows: TileMatrix = []
    for y in range(bounds.y, bounds.bottom):
        row = []
        for x in range(bounds.x, bounds.right):
            tile = storage.get_tile_at(x, y)
            row.append(EMPTY_TILE if tile is None else tile)
        rows.append(row)
    return rows


def _region_prompt(region: Any) -> str:
    intent = getattr(region, "design_intent", None)
    if callable(intent):
        return intent()
    return getattr(region, "prompt", "") or ""


class SelectionRegenerator:
    """Services regeneration requests for user selections.

    Attributes:
        oracle: Content oracle producing tile matrices
        storage: Tile storage read for context and written with results
        settings: Priority weights and default layer name
        world_size: Optional (width, height); writes outside are skipped
        queue: Pending requests, lowest score first

    Example:
        >>> regenerator = SelectionRegenerator(oracle, layer, RegenSettings())
        >>> regenerator.enqueue([forest, river])
        >>> outcomes = await regenerator.process_queue()
    """

    def __init__(
        self,
        oracle: TileOracle,
        storage: TileStorage,
        settings: RegenSettings | None = None,
        world_size: tuple[int, int] | None = None,
    ):
        self.oracle = oracle
        self.storage = storage
        self.settings = settings or RegenSettings()
        self.world_size = world_size or getattr(storage, "size", None)
        self.queue = RegenerationQueue()
        self._mask: IsolationMask | None = None

    def enqueue(
        self,
        regions: Sequence[Region],
        dependency_pressure: Mapping[str, float] | None = None,
        dependency_counts: Mapping[str, int] | None = None,
    ) -> list[RegenerationRequest]:
        """
        Score regions and add them to the queue.

        Regions already queued are re-scored in place rather than
        duplicated. The Z range used for normalization spans the new
        batch and every request still waiting in the queue; waiting
        requests are re-scored against that range so the whole queue
        shares one scale.

        Args:
            regions: Regions to regenerate
            dependency_pressure: Region id -> satisfied dependency fraction
            dependency_counts: Region id -> number of dependencies

        Returns:
            The queued requests for the given regions, in input order
        """
        waiting = [r for r in self.queue if not any(r.region is g for g in regions)]
        level_min, level_max = level_range([*(r.region for r in waiting), *regions])
        pressure = dependency_pressure or {}
        counts = dependency_counts or {}

        for request in waiting:
            self.queue.override(
                request.region,
                self._score(
                    request.region,
                    level_min,
                    level_max,
                    {request.region.id: request.info.dependency_pressure},
                ),
            )

        queued: list[RegenerationRequest] = []
        for region in regions:
            priority = self._score(region, level_min, level_max, pressure)

            info = SnapshotInfo(
                z_level=region.get_z_level(),
                dependency_count=counts.get(region.id, 0),
                dependency_pressure=pressure.get(region.id, 0.0),
                prior_tiles=read_tiles(self.storage, region.get_bounds()),
                prompt=_region_prompt(region),
            )
            self.queue.push(
                RegenerationRequest(region=region, priority=priority, info=info)
            )
            queued.extend(r for r in self.queue if r.region is region)
            logger.debug(
                f"Queued region {region.id} (z={info.z_level}) with priority {priority:.3f}"
            )

        return queued

    def _score(
        self,
        region: Region,
        level_min: int,
        level_max: int,
        pressure: Mapping[str, float],
    ) -> float:
        return compute_priority(
            region,
            level_min,
            level_max,
            pressure,
            level_weight=self.settings.level_weight,
            dep_weight=self.settings.dep_weight,
        )

    async def process_queue(self) -> list[RegionOutcome]:
        """
        Regenerate every queued region, lowest score first.

        Returns:
            One RegionOutcome per serviced request, in service order
        """
        outcomes: list[RegionOutcome] = []
        if self.queue.is_empty():
            return outcomes

        logger.info(f"Processing {len(self.queue)} regeneration request(s)")
        self._mask = IsolationMask()
        try:
            while (request := self.queue.pop()) is not None:
                outcomes.append(await self._service(request))
        finally:
            self._mask = None

        failed = sum(1 for o in outcomes if o.status != OutcomeStatus.REGENERATED)
        logger.info(
            f"Regeneration batch done: {len(outcomes) - failed} regenerated, {failed} failed"
        )
        return outcomes

    async def regenerate_selection(
        self,
        target: Region,
        regions: Iterable[Region] = (),
        propagate: bool = True,
    ) -> list[RegionOutcome]:
        """
        Regenerate a selection, optionally with the regions it overlaps.

        Args:
            target: The selection the user asked to regenerate
            regions: Every other known region
            propagate: Also regenerate regions whose bounds intersect target

        Returns:
            Outcomes of the batch, in service order
        """
        batch: list[Region] = [target]
        if propagate:
            bounds = target.get_bounds()
            batch.extend(
                r
                for r in regions
                if r is not target and r.get_bounds().intersects(bounds)
            )
            if len(batch) > 1:
                logger.info(
                    f"Region {target.id} overlaps {len(batch) - 1} other region(s), "
                    f"regenerating together"
                )

        self.enqueue(batch)
        return await self.process_queue()

    def describe(self, request: RegenerationRequest) -> RegionDescription:
        """Build the oracle input for a request."""
        region = request.region
        bounds = region.get_bounds()
        level = region.get_z_level()
        mask = self._mask or IsolationMask()
        return RegionDescription(
            region_id=region.id,
            bounds=bounds,
            z_level=level,
            layer_name=getattr(region, "layer_name", None) or self.settings.layer_name,
            prompt=request.info.prompt,
            current_tiles=read_tiles(self.storage, bounds),
            higher_bounds=mask.higher_than(level),
        )

    async def _service(self, request: RegenerationRequest) -> RegionOutcome:
        region = request.region
        description = self.describe(request)

        try:
            result: OracleResult = await self.oracle.generate(description)
        except Exception as e:
            logger.error(f"Oracle raised for region {region.id}: {type(e).__name__}: {e}")
            result = OracleErrorResult(detail=f"{type(e).__name__}: {e}")

        if not result.ok:
            logger.warning(
                f"Region {region.id} left unchanged: {result.kind}: {result.detail}"
            )
            return RegionOutcome(
                region_id=region.id,
                status=_FAILURE_STATUS[result.kind],
                priority=request.priority,
                detail=result.detail,
            )

        writer = MaskedTileWriter(
            self.storage, self._mask, description.z_level, self.world_size
        )
        bounds = description.bounds
        stats = writer.write((bounds.x, bounds.y), result.tiles)
        self._mask.record(bounds, description.z_level)

        logger.debug(
            f"Region {region.id} regenerated: {stats.written} written, {stats.skipped} skipped"
        )
        return RegionOutcome(
            region_id=region.id,
            status=OutcomeStatus.REGENERATED,
            priority=request.priority,
            written=stats.written,
            skipped=stats.skipped,
        )
