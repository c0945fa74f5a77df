"""Transition placement: exits to other areas along the area border."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from delve import config
from delve.errors import GenerationFailed, UnresolvedReference
from delve.util.coordinates import Rect

if TYPE_CHECKING:
    from delve.generator.params import (
        Side,
        TransitionKind,
        TransitionParams,
        TransitionRequest,
    )
    from delve.module import Feature, Tile
    from delve.types import Point, Size
    from delve.util.rng import ReproducibleRandom

logger = logging.getLogger(__name__)

SIDES: tuple[Side, ...] = ("north", "east", "south", "west")


@dataclass(frozen=True)
class TransitionOutput:
    """A placed transition.

    Attributes:
        kind: Transition kind name from the template.
        to: Opaque destination passed through from the request.
        location: Top-left fine tile of the footprint.
        feature: Feature drawn over the footprint.
    """

    kind: str
    to: str
    location: Point
    feature: Feature

    @property
    def size(self) -> Size:
        return self.feature.size

    @property
    def rect(self) -> Rect:
        return Rect.at(self.location, self.feature.size)

    @property
    def center(self) -> Point:
        return self.rect.center()

    def feature_tiles(self) -> list[tuple[Tile, int, int]]:
        """The feature's tiles offset to this transition's location."""
        x, y = self.location
        return [(tile, x + dx, y + dy) for tile, dx, dy in self.feature.tiles]


class TransitionGen:
    """Places requested transitions on the area border, in request order."""

    def __init__(self, width: int, height: int, params: TransitionParams) -> None:
        self.width = width
        self.height = height
        self.params = params

    def generate(
        self, rand: ReproducibleRandom, requests: Sequence[TransitionRequest]
    ) -> list[TransitionOutput]:
        """Place every request.

        Raises:
            UnresolvedReference: If a request names an unknown transition kind.
            GenerationFailed: If a transition cannot be placed inside the area
                without crowding an earlier one.
        """
        placed: list[TransitionOutput] = []
        for request in requests:
            kind = self.params.kinds.get(request.kind)
            if kind is None:
                raise UnresolvedReference("transition kind", request.kind)
            location = self._place(kind, request, rand, placed)
            placed.append(
                TransitionOutput(request.kind, request.to, location, kind.feature)
            )
            logger.debug(f"Placed transition '{request.kind}' at {location}")
        return placed

    def _place(
        self,
        kind: TransitionKind,
        request: TransitionRequest,
        rand: ReproducibleRandom,
        placed: Sequence[TransitionOutput],
    ) -> Point:
        if request.location is not None:
            rect = Rect.at(request.location, kind.size)
            if (
                rect.x1 < 0
                or rect.y1 < 0
                or rect.x2 > self.width
                or rect.y2 > self.height
            ):
                raise GenerationFailed(
                    f"Transition '{request.kind}' at {request.location} "
                    f"does not fit in {self.width}x{self.height}"
                )
            return request.location

        for _ in range(config.TRANSITION_PLACEMENT_ATTEMPTS):
            side = request.side
            if side == "any":
                side = SIDES[rand.gen(0, len(SIDES))]
            location = self._location_on(side, kind, rand)
            if location is None:
                continue
            spaced = Rect.at(location, kind.size).expanded(kind.spacing)
            if any(spaced.intersects(other.rect) for other in placed):
                continue
            return location

        raise GenerationFailed(
            f"Unable to place transition '{request.kind}' on side '{request.side}' "
            f"after {config.TRANSITION_PLACEMENT_ATTEMPTS} attempts"
        )

    def _location_on(
        self, side: Side, kind: TransitionKind, rand: ReproducibleRandom
    ) -> Point | None:
        """Random top-left point flush with the given side, or None if none fits."""
        w, h = kind.size
        pad = kind.edge_padding

        match side:
            case "north" | "south":
                high = self.width - w - pad
                if high < pad or h > self.height:
                    return None
                x = rand.gen(pad, high + 1)
                y = 0 if side == "north" else self.height - h
            case _:
                high = self.height - h - pad
                if high < pad or w > self.width:
                    return None
                y = rand.gen(pad, high + 1)
                x = 0 if side == "west" else self.width - w
        return (x, y)
