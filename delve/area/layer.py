"""Finished tile layers and the generator's output container."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import numpy as np

from delve.errors import LayerError
from delve.module import Encounter, Prop, Tile
from delve.types import Point, Size
from delve.util.coordinates import is_valid_tile_pos


class Layer:
    """A width x height grid of tile stacks.

    Stacks are stored flat; the stack for (x, y) lives at x + y * width.
    """

    def __init__(
        self, width: int, height: int, id: str, tiles: Sequence[list[Tile]]
    ) -> None:
        if width <= 0 or height <= 0:
            raise LayerError(f"Layer '{id}' has invalid dimensions {width}x{height}")
        if len(tiles) != width * height:
            raise LayerError(
                f"Layer '{id}' expects {width * height} tile stacks, got {len(tiles)}"
            )
        self.width = width
        self.height = height
        self.id = id
        self._tiles: tuple[tuple[Tile, ...], ...] = tuple(
            tuple(stack) for stack in tiles
        )

    @classmethod
    def from_placements(
        cls,
        width: int,
        height: int,
        id: str,
        placements: Iterable[tuple[Point, Tile]],
    ) -> Layer:
        """Build a layer, dropping placements outside [0, width) x [0, height)."""
        if width <= 0 or height <= 0:
            raise LayerError(f"Layer '{id}' has invalid dimensions {width}x{height}")

        stacks: list[list[Tile]] = [[] for _ in range(width * height)]
        for (x, y), tile in placements:
            if not is_valid_tile_pos((x, y), width, height):
                continue
            stacks[x + y * width].append(tile)
        return cls(width, height, id, stacks)

    def tiles_at(self, x: int, y: int) -> tuple[Tile, ...]:
        """The tile stack whose placements start at (x, y)."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            return ()
        return self._tiles[x + y * self.width]

    def stacks(self) -> tuple[tuple[Tile, ...], ...]:
        return self._tiles

    def placements(self) -> list[tuple[Point, Tile]]:
        """Every (point, tile) placement in index order."""
        out = []
        for index, stack in enumerate(self._tiles):
            point = (index % self.width, index // self.width)
            out.extend((point, tile) for tile in stack)
        return out

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Layer):
            return NotImplemented
        return (
            self.id == other.id
            and self.width == other.width
            and self.height == other.height
            and self._tiles == other._tiles
        )

    def __hash__(self) -> int:
        return hash((self.id, self.width, self.height))

    def __repr__(self) -> str:
        count = sum(len(stack) for stack in self._tiles)
        return f"Layer(id={self.id!r}, {self.width}x{self.height}, tiles={count})"


def passable_grid(layers: Iterable[Layer], width: int, height: int) -> np.ndarray:
    """Compute which fine tiles can be walked on.

    A tile is blocked when any impassable tile's footprint covers it.
    Footprints running past the area edge are clipped.

    Returns:
        Boolean array of shape (width, height), True where passable.
    """
    passable = np.ones((width, height), dtype=np.bool_, order="F")
    for layer in layers:
        for (x, y), tile in layer.placements():
            if tile.impassable:
                passable[x : x + tile.width, y : y + tile.height] = False
    return passable


@dataclass(frozen=True)
class PropData:
    """A prop placed by generation, with its top-left location."""

    prop: Prop
    location: Point

    @property
    def size(self) -> Size:
        return self.prop.size


@dataclass(frozen=True)
class EncounterData:
    """An encounter spawn area placed by generation."""

    encounter: Encounter
    location: Point
    size: Size


@dataclass(frozen=True)
class GeneratorOutput:
    """Everything one generate() call produces. Immutable once returned."""

    layers: tuple[Layer, ...]
    props: tuple[PropData, ...]
    encounters: tuple[EncounterData, ...]

    def layer(self, layer_id: str) -> Layer | None:
        for layer in self.layers:
            if layer.id == layer_id:
                return layer
        return None
