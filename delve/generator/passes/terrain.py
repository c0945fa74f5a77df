"""Terrain pass: base ground cover plus randomly placed terrain patches."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from delve.util.coordinates import Rect, iter_points

from .base import GenerationPass

if TYPE_CHECKING:
    from delve.generator.maze import Maze
    from delve.generator.model import GenModel
    from delve.generator.params import TerrainParams, TerrainPatch

logger = logging.getLogger(__name__)


class TerrainGen(GenerationPass):
    """Fills the terrain grid, then paints patches over allowed maze cells.

    Patches are rectangles of wall grid cells started at a random offset
    inside a maze cell. They may spill into neighboring cells, and each of
    their border cells is skipped with edge_underfill_chance so patches do not
    read as hard rectangles.
    """

    def __init__(self, model: GenModel, params: TerrainParams, maze: Maze) -> None:
        super().__init__(model, maze)
        self.params = params

    def generate(self) -> None:
        tiles = self.model.model

        base = self.params.base_kinds.pick(self.model.rand)
        if base is not None:
            tiles.fill_terrain(tiles.terrain_kind_index(base.id))

        for patch in self.params.patches:
            self._paint_patches(patch)

    def _paint_patches(self, patch: TerrainPatch) -> None:
        rand = self.model.rand
        tiles = self.model.model
        painted = 0

        for rx, ry in iter_points(self.maze.width, self.maze.height):
            if self.maze.tile_kind(rx, ry).label not in patch.allowed_regions:
                continue
            if not rand.chance(patch.placement_chance):
                continue
            kind = patch.kinds.pick(rand)
            if kind is None:
                continue

            w = rand.gen(patch.min_size[0], patch.max_size[0] + 1)
            h = rand.gen(patch.min_size[1], patch.max_size[1] + 1)
            ox, oy = self.model.from_region_coords(rx, ry)
            slack_x = max(1, self.model.grid_width - w + 1)
            slack_y = max(1, self.model.grid_height - h + 1)
            x = ox // tiles.grid_width + rand.gen(0, slack_x)
            y = oy // tiles.grid_height + rand.gen(0, slack_y)

            self._paint(
                Rect(x, y, w, h),
                tiles.terrain_kind_index(kind.id),
                patch.edge_underfill_chance,
            )
            painted += 1

        logger.debug(f"Painted {painted} terrain patches")

    def _paint(self, cells: Rect, terrain_index: int | None, underfill: int) -> None:
        """Paint a rect of wall grid cells, roughening its border."""
        rand = self.model.rand
        tiles = self.model.model

        for cx, cy in cells.points():
            on_edge = cx in (cells.x1, cells.x2 - 1) or cy in (cells.y1, cells.y2 - 1)
            if on_edge and underfill > 0 and rand.chance(underfill):
                continue
            tiles.set_terrain(
                cx * tiles.grid_width, cy * tiles.grid_height, terrain_index
            )
