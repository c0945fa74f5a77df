"""Feature pass: multi-tile decorations stamped onto the tile layers."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from delve.util.coordinates import Rect

from .base import GenerationPass

if TYPE_CHECKING:
    from delve.area.layer import Layer
    from delve.generator.maze import Maze
    from delve.generator.model import GenModel
    from delve.generator.params import FeatureParams, FeaturePass
    from delve.module import Feature
    from delve.types import Point

logger = logging.getLogger(__name__)


class FeatureGen(GenerationPass):
    """Places the template's fixed features, then its random feature passes.

    Fixed features are stamped at their configured location unless it
    overlaps a reserved transition footprint.

    Random passes make placement_attempts tries each, and every try that
    passes the placement checks stamps one feature.
    """

    def __init__(
        self,
        model: GenModel,
        layers: Sequence[Layer],
        params: FeatureParams,
        maze: Maze,
    ) -> None:
        super().__init__(model, maze, layers)
        self.params = params

    def generate(self) -> list[tuple[Feature, Point]]:
        """Place every feature.

        Returns:
            The (feature, top-left location) pairs placed, in placement order.
        """
        placed: list[tuple[Feature, Point]] = []

        for feature, location in self.params.fixed:
            if self.model.is_reserved(Rect.at(location, feature.size)):
                logger.warning(
                    f"Skipping fixed feature '{feature.id}' at {location}: "
                    "overlaps a transition"
                )
                continue
            self._place(feature, location)
            placed.append((feature, location))

        for feature_pass in self.params.passes:
            self._run_pass(feature_pass, placed)

        logger.debug(f"Placed {len(placed)} features")
        return placed

    def _run_pass(
        self, feature_pass: FeaturePass, placed: list[tuple[Feature, Point]]
    ) -> None:
        rand = self.model.rand
        if feature_pass.kinds.total_weight <= 0:
            logger.warning(
                f"Skipping feature pass with nothing to place: {feature_pass.kinds!r}"
            )
            return

        for _ in range(feature_pass.placement_attempts):
            feature = feature_pass.kinds.pick(rand)
            # Empty tables return early above
            assert feature is not None
            w, h = feature.size
            if w > self.model.width or h > self.model.height:
                continue

            x = rand.gen(0, self.model.width - w + 1)
            y = rand.gen(0, self.model.height - h + 1)
            rect = Rect(x, y, w, h)
            if not self.can_place(
                rect, feature_pass.allowed_regions, feature_pass.spacing
            ):
                continue

            self._place(feature, (x, y))
            placed.append((feature, (x, y)))

    def _place(self, feature: Feature, location: Point) -> None:
        x, y = location
        for tile, dx, dy in feature.tiles:
            self.model.model.add(tile, x + dx, y + dy)
        self.model.occupy(Rect.at(location, feature.size))
