"""Prop pass: single objects scattered over allowed maze cells."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from delve.area.layer import PropData
from delve.errors import UnresolvedReference
from delve.util.coordinates import Rect, iter_points

from .base import GenerationPass

if TYPE_CHECKING:
    from delve.area.layer import Layer
    from delve.generator.maze import Maze
    from delve.generator.model import GenModel
    from delve.generator.params import PassParams, PropKind, PropParams

logger = logging.getLogger(__name__)


class PropGen(GenerationPass):
    """Runs prop passes: each pass visits every allowed maze cell once.

    A visited cell rolls the kind's placement_chance; on success one prop is
    picked and tried at a single random point inside the cell.
    """

    def __init__(
        self,
        model: GenModel,
        layers: Sequence[Layer],
        params: PropParams,
        maze: Maze,
    ) -> None:
        super().__init__(model, maze, layers)
        self.params = params

    def generate(self, passes: Sequence[PassParams]) -> list[PropData]:
        """Run each pass count times, in order.

        Raises:
            UnresolvedReference: If a pass names a prop kind the template
                does not define.
        """
        props: list[PropData] = []
        for pass_params in passes:
            kind = self.params.kinds.get(pass_params.kind)
            if kind is None:
                raise UnresolvedReference("prop kind", pass_params.kind)
            if kind.props.total_weight <= 0:
                logger.warning(f"Prop kind '{pass_params.kind}' has nothing to place")
                continue

            before = len(props)
            for _ in range(pass_params.count):
                self._run_pass(kind, props)
            logger.debug(
                f"Prop pass '{pass_params.kind}' placed {len(props) - before} props"
            )
        return props

    def _run_pass(self, kind: PropKind, props: list[PropData]) -> None:
        rand = self.model.rand
        total_x, total_y = self.model.total_grid_size

        for rx, ry in iter_points(self.maze.width, self.maze.height):
            if self.maze.tile_kind(rx, ry).label not in kind.allowed_regions:
                continue
            if not rand.chance(kind.placement_chance):
                continue
            prop = kind.props.pick(rand)
            # Kinds with an empty table are skipped in generate()
            assert prop is not None
            w, h = prop.size
            if w > total_x or h > total_y:
                continue

            ox, oy = self.model.from_region_coords(rx, ry)
            x = ox + rand.gen(0, total_x - w + 1)
            y = oy + rand.gen(0, total_y - h + 1)
            rect = Rect(x, y, w, h)
            if not self.can_place(rect, kind.allowed_regions, kind.spacing):
                continue

            self.model.occupy(rect)
            props.append(PropData(prop, (x, y)))
