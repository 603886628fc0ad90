"""Regeneration scheduling components.

Two schedulers share the isolation policy:

- Chunk scheduler: dirty chunks, debounced ticks, dependency ordering and
  the multi-pass executor. Located in `engine/scheduler.py`.

- Selection regenerator: priority queue of user selections serviced one
  region at a time through the content oracle. Located in
  `engine/selection.py`.

Import directly from submodules:
    from tile_regen.engine.scheduler import ChunkScheduler
    from tile_regen.engine.selection import SelectionRegenerator
    from tile_regen.engine.graph import topological_order
"""
