"""Mutable state threaded through one generate() call.

GenModel couples the fine tile grid (a TilesModel) with the coarse maze grid
and owns everything a single generation mutates: the random source, the
per-region memo tables, transition reservations and the occupancy grid.
Nothing here outlives the call, so no state leaks between generations.

Three grids are involved:
    - Fine grid: area tiles, (width, height)
    - Wall grid: cells of model.grid_width x model.grid_height fine tiles,
      holding wall and terrain state
    - Maze grid: cells of total_grid_size fine tiles, one per maze cell
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Sequence
from typing import TYPE_CHECKING

import numpy as np

from delve.module import Edge, Module, TerrainKind, Tile, WallKind
from delve.types import EntityId, Point, RegionId, RegionPos, Size, WallCellPos
from delve.util.coordinates import Rect, iter_points

if TYPE_CHECKING:
    from delve.util.rng import ReproducibleRandom

logger = logging.getLogger(__name__)


class TilesModel:
    """Named tile layers plus the wall and terrain grids they are derived from.

    Layers keep insertion order, seeded from the module's layer order, so the
    output layer sequence is stable. Tiles are recorded as (point, tile)
    placements and only clipped to the area when layers are built.

    Attributes:
        width: Area width in fine tiles.
        height: Area height in fine tiles.
        grid_width: Fine tiles per wall grid cell, horizontally.
        grid_height: Fine tiles per wall grid cell, vertically.
        elevation: Wall grid; nonzero cells are walls. Shape (cells_x, cells_y).
        wall_index: Wall grid of wall kind indices, -1 for none.
        terrain_index: Wall grid of terrain kind indices, -1 for none.
    """

    def __init__(self, width: int, height: int, module: Module) -> None:
        self.width = width
        self.height = height
        self.grid_width, self.grid_height = module.wall_grid_size

        self.wall_kinds: list[WallKind] = list(module.wall_kinds.values())
        self.terrain_kinds: list[TerrainKind] = list(module.terrain_kinds.values())
        self._wall_lookup = {kind.id: i for i, kind in enumerate(self.wall_kinds)}
        self._terrain_lookup = {
            kind.id: i for i, kind in enumerate(self.terrain_kinds)
        }

        self.cells_x = -(-width // self.grid_width)
        self.cells_y = -(-height // self.grid_height)
        shape = (self.cells_x, self.cells_y)
        self.elevation = np.zeros(shape, dtype=np.uint8, order="F")
        self.wall_index = np.full(shape, -1, dtype=np.int16, order="F")
        self.terrain_index = np.full(shape, -1, dtype=np.int16, order="F")

        self._layers: dict[str, list[tuple[Point, Tile]]] = {
            layer: [] for layer in module.layers
        }

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def wall_kind_index(self, kind_id: EntityId) -> int | None:
        return self._wall_lookup.get(kind_id)

    def terrain_kind_index(self, kind_id: EntityId) -> int | None:
        return self._terrain_lookup.get(kind_id)

    def cell(self, x: int, y: int) -> WallCellPos | None:
        """Wall grid cell containing fine point (x, y), or None if outside."""
        if x < 0 or y < 0:
            return None
        cx, cy = x // self.grid_width, y // self.grid_height
        if cx >= self.cells_x or cy >= self.cells_y:
            return None
        return (cx, cy)

    def is_wall(self, x: int, y: int) -> bool:
        cell = self.cell(x, y)
        return cell is not None and self.elevation[cell] > 0

    def wall_kind_at(self, x: int, y: int) -> WallKind | None:
        cell = self.cell(x, y)
        if cell is None or self.elevation[cell] == 0:
            return None
        index = int(self.wall_index[cell])
        return self.wall_kinds[index] if index >= 0 else None

    def terrain_at(self, x: int, y: int) -> TerrainKind | None:
        cell = self.cell(x, y)
        if cell is None:
            return None
        index = int(self.terrain_index[cell])
        return self.terrain_kinds[index] if index >= 0 else None

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def add(self, tile: Tile, x: int, y: int) -> None:
        """Record a tile placement on the tile's layer."""
        self._layers.setdefault(tile.layer, []).append(((x, y), tile))

    def set_wall(self, x: int, y: int, elevation: int, wall_index: int | None) -> None:
        """Set the wall state of the wall grid cell containing (x, y).

        Points outside the area are ignored.
        """
        cell = self.cell(x, y)
        if cell is None:
            return
        self.elevation[cell] = elevation
        self.wall_index[cell] = -1 if wall_index is None else wall_index

    def set_terrain(self, x: int, y: int, terrain_index: int | None) -> None:
        cell = self.cell(x, y)
        if cell is None:
            return
        self.terrain_index[cell] = -1 if terrain_index is None else terrain_index

    def fill_terrain(self, terrain_index: int | None) -> None:
        self.terrain_index[:, :] = -1 if terrain_index is None else terrain_index

    def _neighbor_cell(self, cell: WallCellPos, edge: Edge) -> WallCellPos | None:
        dx, dy = edge.offset
        nx, ny = cell[0] + dx, cell[1] + dy
        if 0 <= nx < self.cells_x and 0 <= ny < self.cells_y:
            return (nx, ny)
        return None

    def check_add_wall_border(self, x: int, y: int) -> None:
        """Add the wall tiles for the wall grid cell at (x, y).

        Wall cells get their kind's interior tile. Open cells get an edge
        tile for every neighboring wall whose kind defines one.
        """
        cell = self.cell(x, y)
        if cell is None:
            return

        if self.elevation[cell] > 0:
            index = int(self.wall_index[cell])
            if index >= 0:
                self.add(self.wall_kinds[index].interior, x, y)
            return

        for edge in Edge:
            neighbor = self._neighbor_cell(cell, edge)
            if neighbor is None or self.elevation[neighbor] == 0:
                continue
            index = int(self.wall_index[neighbor])
            if index < 0:
                continue
            tile = self.wall_kinds[index].edges.get(edge)
            if tile is not None:
                self.add(tile, x, y)

    def check_add_terrain(self, x: int, y: int) -> None:
        """Add the base terrain tile for an open wall grid cell."""
        cell = self.cell(x, y)
        if cell is None or self.elevation[cell] > 0:
            return
        index = int(self.terrain_index[cell])
        if index >= 0:
            self.add(self.terrain_kinds[index].base, x, y)

    def check_add_terrain_border(self, x: int, y: int) -> None:
        """Add border tiles where a different terrain touches this open cell."""
        cell = self.cell(x, y)
        if cell is None or self.elevation[cell] > 0:
            return
        own = int(self.terrain_index[cell])

        for edge in Edge:
            neighbor = self._neighbor_cell(cell, edge)
            if neighbor is None or self.elevation[neighbor] > 0:
                continue
            index = int(self.terrain_index[neighbor])
            if index < 0 or index == own:
                continue
            tile = self.terrain_kinds[index].borders.get(edge)
            if tile is not None:
                self.add(tile, x, y)

    # -------------------------------------------------------------------------
    # Iteration
    # -------------------------------------------------------------------------

    def layer_ids(self) -> list[str]:
        return list(self._layers)

    def placements(self, layer: str) -> Sequence[tuple[Point, Tile]]:
        return self._layers.get(layer, [])

    def iter(self) -> Iterator[tuple[str, Sequence[tuple[Point, Tile]]]]:
        """Iterate (layer name, placements) in layer order."""
        return iter(self._layers.items())

    def tile_count(self) -> int:
        return sum(len(placements) for placements in self._layers.values())


class GenModel:
    """State owned by one generate() call.

    Attributes:
        model: The TilesModel being built.
        rand: Random source, consumed strictly in pipeline order.
        grid_width: Wall grid cells per maze cell, horizontally.
        grid_height: Wall grid cells per maze cell, vertically.
        total_grid_size: Fine tiles per maze cell, (x, y).
        region_overfill_edges: Corridor region -> memoized rough edge (or
            None when the region rolled no overfill).
        region_wall_kinds: Region -> memoized wall kind index (invert mode).
        reserved: Fine grid of tiles reserved by transitions.
        occupied: Fine grid of tiles taken by features, props and encounters.
    """

    def __init__(
        self,
        width: int,
        height: int,
        rand: ReproducibleRandom,
        grid_width: int,
        grid_height: int,
        module: Module,
    ) -> None:
        self.width = width
        self.height = height
        self.rand = rand
        self.model = TilesModel(width, height, module)
        self.grid_width = grid_width
        self.grid_height = grid_height
        self.total_grid_size: Size = (
            grid_width * self.model.grid_width,
            grid_height * self.model.grid_height,
        )

        self.region_overfill_edges: dict[RegionId, Edge | None] = {}
        self.region_wall_kinds: dict[RegionId, int | None] = {}

        self.reserved = np.zeros((width, height), dtype=np.bool_, order="F")
        self.occupied = np.zeros((width, height), dtype=np.bool_, order="F")

    def region_size(self) -> Size:
        """Maze grid dimensions that fit inside the area."""
        total_x, total_y = self.total_grid_size
        return (self.width // total_x, self.height // total_y)

    def to_region_coords(self, x: int, y: int) -> RegionPos:
        """Maze cell containing fine point (x, y)."""
        total_x, total_y = self.total_grid_size
        return (x // total_x, y // total_y)

    def from_region_coords(self, x: int, y: int) -> Point:
        """Top-left fine point of maze cell (x, y)."""
        total_x, total_y = self.total_grid_size
        return (x * total_x, y * total_y)

    def region_rect(self, x: int, y: int) -> Rect:
        """Fine-tile bounds of maze cell (x, y)."""
        return Rect.at(self.from_region_coords(x, y), self.total_grid_size)

    def tiles(self) -> Iterator[Point]:
        """Iterate the top-left fine point of every wall grid cell."""
        return iter_points(
            self.width, self.height, self.model.grid_width, self.model.grid_height
        )

    # -------------------------------------------------------------------------
    # Reservations & occupancy
    # -------------------------------------------------------------------------

    def _clip(self, rect: Rect) -> tuple[slice, slice] | None:
        x1, y1 = max(0, rect.x1), max(0, rect.y1)
        x2, y2 = min(self.width, rect.x2), min(self.height, rect.y2)
        if x1 >= x2 or y1 >= y2:
            return None
        return (slice(x1, x2), slice(y1, y2))

    def reserve(self, rect: Rect) -> None:
        """Reserve an area so no later pass builds walls or places over it."""
        area = self._clip(rect)
        if area is not None:
            self.reserved[area] = True

    def occupy(self, rect: Rect) -> None:
        area = self._clip(rect)
        if area is not None:
            self.occupied[area] = True

    def is_reserved(self, rect: Rect) -> bool:
        area = self._clip(rect)
        return area is not None and bool(self.reserved[area].any())

    def is_occupied(self, rect: Rect) -> bool:
        area = self._clip(rect)
        return area is not None and bool(self.occupied[area].any())

    def in_bounds(self, rect: Rect) -> bool:
        return (
            rect.x1 >= 0
            and rect.y1 >= 0
            and rect.x2 <= self.width
            and rect.y2 <= self.height
        )

    def clear_reserved_walls(self) -> int:
        """Open every wall grid cell that overlaps a reserved tile.

        Returns:
            Number of wall grid cells cleared.
        """
        return self._clear_walls_where(self.is_reserved)

    def clear_walls(self, rect: Rect) -> int:
        """Open every wall grid cell that overlaps rect."""
        return self._clear_walls_where(rect.intersects)

    def _clear_walls_where(self, overlaps: Callable[[Rect], bool]) -> int:
        cleared = 0
        for x, y in self.tiles():
            if not self.model.is_wall(x, y):
                continue
            cell = Rect(x, y, self.model.grid_width, self.model.grid_height)
            if overlaps(cell):
                self.model.set_wall(x, y, 0, None)
                cleared += 1
        return cleared
