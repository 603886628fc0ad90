"""World-side collaborators: tile storage and selection regions."""

from tile_regen.world.tilemap import SelectionRegion, TileLayer

__all__ = ["SelectionRegion", "TileLayer"]
