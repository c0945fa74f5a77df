"""Encounter pass: at most one spawn area per maze region and pass."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from delve import config
from delve.area.layer import EncounterData
from delve.errors import UnresolvedReference
from delve.util.coordinates import Rect

from .base import GenerationPass

if TYPE_CHECKING:
    from delve.area.layer import Layer
    from delve.generator.maze import Maze
    from delve.generator.model import GenModel
    from delve.generator.params import EncounterKind, EncounterParams, PassParams

logger = logging.getLogger(__name__)


class EncounterGen(GenerationPass):
    """Places encounter areas region by region, in region id order."""

    def __init__(
        self,
        model: GenModel,
        layers: Sequence[Layer],
        params: EncounterParams,
        maze: Maze,
    ) -> None:
        super().__init__(model, maze, layers)
        self.params = params

    def generate(self, passes: Sequence[PassParams]) -> list[EncounterData]:
        """Run each pass count times, in order.

        Raises:
            UnresolvedReference: If a pass names an encounter kind the
                template does not define.
        """
        encounters: list[EncounterData] = []
        for pass_params in passes:
            kind = self.params.kinds.get(pass_params.kind)
            if kind is None:
                raise UnresolvedReference("encounter kind", pass_params.kind)
            if kind.encounters.total_weight <= 0:
                logger.warning(
                    f"Encounter kind '{pass_params.kind}' has nothing to place"
                )
                continue

            before = len(encounters)
            for _ in range(pass_params.count):
                self._run_pass(kind, encounters)
            logger.debug(
                f"Encounter pass '{pass_params.kind}' placed "
                f"{len(encounters) - before} encounters"
            )
        return encounters

    def _run_pass(self, kind: EncounterKind, encounters: list[EncounterData]) -> None:
        rand = self.model.rand
        w, h = kind.size

        for region in self.maze.regions():
            if self.maze.region_label(region) not in kind.allowed_regions:
                continue
            if not rand.chance(kind.placement_chance):
                continue
            encounter = kind.encounters.pick(rand)
            # Kinds with an empty table are skipped in generate()
            assert encounter is not None
            cells = self.maze.region_cells(region)

            for _ in range(config.ENCOUNTER_PLACEMENT_ATTEMPTS):
                rx, ry = cells[rand.gen(0, len(cells))]
                cell = self.model.region_rect(rx, ry)
                x = cell.x1 + rand.gen(0, max(1, cell.width - w + 1))
                y = cell.y1 + rand.gen(0, max(1, cell.height - h + 1))
                rect = Rect(x, y, w, h)
                if self.can_place(rect, kind.allowed_regions, kind.spacing):
                    self.model.occupy(rect)
                    encounters.append(EncounterData(encounter, (x, y), kind.size))
                    break
