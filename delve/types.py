from __future__ import annotations

from typing import Literal

# =============================================================================
# SPATIAL TYPES
# =============================================================================

type TileCoord = int  # Always integer tile position

# Fine grid coordinates - absolute tile positions inside a generated area
type AreaTileCoord = TileCoord  # Example: x=5, y=3
type Point = tuple[AreaTileCoord, AreaTileCoord]  # Example: (5, 3) = tile 5,3

# Coarse grid coordinates - maze cells, each covering a block of fine tiles
type RegionCoord = int  # Example: rx=2, ry=1
type RegionPos = tuple[RegionCoord, RegionCoord]  # Example: (2, 1) = maze cell 2,1

# Wall grid coordinates - cells of the wall/terrain grids in a TilesModel
type WallCellPos = tuple[int, int]

# Dimensions
type Size = tuple[int, int]  # Example: (2, 3) = 2 tiles wide, 3 tiles tall

# =============================================================================
# GENERATION-RELATED TYPES
# =============================================================================

# Identifier of a module entity (tile, wall kind, prop, encounter, ...)
type EntityId = str

# Region id assigned by the maze to a room or corridor
type RegionId = int

# Random seed for deterministic generation.
# Can be an int for numeric seeds or a descriptive string like "burrito1".
type RandomSeed = int | str | None

# Probability expressed as an integer percentage in [0, 100]
type Chance = int

# Region kinds a placement pass may be restricted to
type RegionLabel = Literal["wall", "corridor", "room"]
