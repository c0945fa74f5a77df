"""Tests for output layers and the passability grid."""

from __future__ import annotations

import numpy as np
import pytest

from delve.area.layer import (
    EncounterData,
    GeneratorOutput,
    Layer,
    PropData,
    passable_grid,
)
from delve.errors import LayerError
from delve.module import Encounter, Prop, Tile

WALL = Tile("wall", "walls", width=2, height=2, impassable=True)
RUG = Tile("rug", "decoration", width=3, height=1)


class TestLayer:
    """Tests for Layer construction and lookups."""

    def test_from_placements_indexes_row_major(self) -> None:
        layer = Layer.from_placements(3, 2, "walls", [((2, 1), WALL), ((0, 0), WALL)])
        stacks = layer.stacks()
        assert len(stacks) == 6
        assert stacks[2 + 1 * 3] == (WALL,)
        assert stacks[0] == (WALL,)
        assert layer.placements() == [((0, 0), WALL), ((2, 1), WALL)]

    def test_stacks_keep_insertion_order(self) -> None:
        layer = Layer.from_placements(2, 2, "mixed", [((1, 1), WALL), ((1, 1), RUG)])
        assert layer.tiles_at(1, 1) == (WALL, RUG)
        assert layer.tiles_at(5, 5) == ()

    def test_out_of_bounds_placements_dropped(self) -> None:
        layer = Layer.from_placements(
            2, 2, "walls", [((-1, 0), WALL), ((2, 0), WALL), ((0, 2), WALL)]
        )
        assert layer.placements() == []

    def test_wrong_stack_count_raises(self) -> None:
        with pytest.raises(LayerError, match="expects 4 tile stacks"):
            Layer(2, 2, "walls", [[], [], []])

    @pytest.mark.parametrize("size", [(0, 3), (3, 0), (-2, 2)])
    def test_non_positive_size_raises(self, size: tuple[int, int]) -> None:
        with pytest.raises(LayerError, match="invalid dimensions"):
            Layer.from_placements(size[0], size[1], "walls", [])

    def test_equality(self) -> None:
        a = Layer.from_placements(2, 2, "walls", [((0, 0), WALL)])
        b = Layer.from_placements(2, 2, "walls", [((0, 0), WALL)])
        c = Layer.from_placements(2, 2, "walls", [((1, 0), WALL)])
        assert a == b
        assert a != c
        assert len({a, b}) == 1


class TestPassableGrid:
    """Tests for passable_grid."""

    def test_impassable_footprint_blocks_tiles(self) -> None:
        walls = Layer.from_placements(4, 4, "walls", [((1, 1), WALL), ((3, 3), WALL)])
        decoration = Layer.from_placements(4, 4, "decoration", [((0, 0), RUG)])

        passable = passable_grid([walls, decoration], 4, 4)

        blocked = np.argwhere(~passable).tolist()
        assert blocked == [[1, 1], [1, 2], [2, 1], [2, 2], [3, 3]]


class TestGeneratorOutput:
    """Tests for the output container."""

    def test_layer_lookup_and_sizes(self) -> None:
        walls = Layer.from_placements(2, 2, "walls", [])
        output = GeneratorOutput(
            layers=(walls,),
            props=(PropData(Prop("table", size=(2, 1)), (0, 0)),),
            encounters=(EncounterData(Encounter("rats"), (1, 1), (2, 2)),),
        )
        assert output.layer("walls") is walls
        assert output.layer("missing") is None
        assert output.props[0].size == (2, 1)
