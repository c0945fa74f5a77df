"""Shared placement checks for the content generation passes.

Every pass works on the GenModel and Maze left behind by the passes before
it. Placement passes additionally receive a snapshot of the tile layers and
use it to decide which fine tiles are walkable.
"""

from __future__ import annotations

from collections.abc import Collection, Sequence
from typing import TYPE_CHECKING

from delve.area.layer import Layer, passable_grid
from delve.types import RegionLabel
from delve.util.coordinates import Rect

if TYPE_CHECKING:
    from delve.generator.maze import Maze
    from delve.generator.model import GenModel


class GenerationPass:
    """Base for passes that read the maze and write into a GenModel.

    Attributes:
        model: The generation state to modify.
        maze: The carved maze, read-only.
        passable: Fine grid of walkable tiles from the layer snapshot, or None
            for passes that run before the snapshot exists.
    """

    def __init__(
        self, model: GenModel, maze: Maze, layers: Sequence[Layer] | None = None
    ) -> None:
        self.model = model
        self.maze = maze
        self.passable = (
            None if layers is None else passable_grid(layers, model.width, model.height)
        )

    def region_label_at(self, x: int, y: int) -> RegionLabel:
        """Kind of maze cell containing fine point (x, y)."""
        rx, ry = self.model.to_region_coords(x, y)
        return self.maze.tile_kind(rx, ry).label

    def can_place(
        self, rect: Rect, allowed_regions: Collection[RegionLabel], spacing: int
    ) -> bool:
        """Check whether rect is free for a new placement.

        The rect must lie inside the area, avoid reserved transition tiles,
        keep spacing tiles away from earlier placements, be fully passable in
        the layer snapshot, and be centered on an allowed kind of maze cell.
        """
        if not self.model.in_bounds(rect):
            return False
        if self.model.is_reserved(rect):
            return False
        if self.model.is_occupied(rect.expanded(spacing)):
            return False
        if self.passable is not None and not self.passable[
            rect.x1 : rect.x2, rect.y1 : rect.y2
        ].all():
            return False
        return self.region_label_at(*rect.center()) in allowed_regions
