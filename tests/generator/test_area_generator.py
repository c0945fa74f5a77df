"""End-to-end tests for AreaGenerator and wall carving."""

from __future__ import annotations

import logging

import numpy as np
import pytest
import tcod.path

from delve.area.layer import GeneratorOutput, passable_grid
from delve.errors import GenerationFailed, LayerError, UnresolvedReference
from delve.generator import (
    AreaGenerator,
    Corridor,
    EncounterKindBuilder,
    EncounterParamsBuilder,
    FeatureParamsBuilder,
    FixedFeatureBuilder,
    GeneratorBuilder,
    GeneratorParams,
    Maze,
    PassParams,
    PropKindBuilder,
    PropParamsBuilder,
    Room,
    RoomParams,
    TerrainParamsBuilder,
    TransitionKindBuilder,
    TransitionParamsBuilder,
    TransitionRequest,
    Wall,
    create_layers,
    is_rough_edge,
)
from delve.generator.model import GenModel, TilesModel
from delve.module import Edge, Module
from delve.util.coordinates import Rect
from delve.util.rng import ReproducibleRandom
from tests.helpers import (
    ALTAR,
    MAZE_CELL_TILES,
    STAIRS,
    STONE,
    carved_model,
    make_builder,
    open_cells,
)

PARAMS = GeneratorParams(
    props=(PassParams("clutter", count=2),),
    encounters=(PassParams("vermin"),),
)


def _full_builder(**overrides: object) -> GeneratorBuilder:
    kwargs: dict[str, object] = {
        "rooms": RoomParams(
            min_rooms=1,
            room_edge_overfill_chance=30,
            corridor_edge_overfill_chance=30,
        ),
        "terrain": TerrainParamsBuilder(base_kinds={"floor": 1}),
        "props": PropParamsBuilder(
            kinds={
                "clutter": PropKindBuilder(
                    props={"barrel": 2, "crate": 1}, placement_chance=60
                )
            }
        ),
        "encounters": EncounterParamsBuilder(
            kinds={
                "vermin": EncounterKindBuilder(
                    encounters={"rats": 1}, placement_chance=100
                )
            }
        ),
        "transitions": TransitionParamsBuilder(
            kinds={"exit": TransitionKindBuilder(feature="stairs")}
        ),
    }
    kwargs.update(overrides)
    return make_builder(**kwargs)


def _generate(
    module: Module, seed: str = "area", width: int = 64, height: int = 48
) -> GeneratorOutput:
    generator = AreaGenerator(_full_builder(), module)
    return generator.generate(width, height, ReproducibleRandom(seed), PARAMS)


# =============================================================================
# Pipeline
# =============================================================================


class TestGenerate:
    """Tests for the full generation pipeline."""

    def test_same_seed_same_output(self, module: Module) -> None:
        assert _generate(module, "repeat") == _generate(module, "repeat")

    def test_different_seeds_differ(self, module: Module) -> None:
        walls = {_generate(module, seed).layer("walls") for seed in ("a", "b", "c")}
        assert len(walls) > 1

    def test_layers_cover_area(self, module: Module) -> None:
        output = _generate(module, width=64, height=40)

        assert [layer.id for layer in output.layers][:5] == [
            "terrain",
            "terrain_border",
            "walls",
            "wall_border",
            "decoration",
        ]
        for layer in output.layers:
            assert (layer.width, layer.height) == (64, 40)
            assert len(layer.stacks()) == 64 * 40

    def test_placements_inside_area_and_walkable(self, module: Module) -> None:
        output = _generate(module, seed="placements")
        passable = passable_grid(output.layers, 64, 48)
        area = Rect(0, 0, 64, 48)

        assert output.encounters
        for item in [*output.props, *output.encounters]:
            rect = Rect.at(item.location, item.size)
            assert area.x1 <= rect.x1 and rect.x2 <= area.x2
            assert area.y1 <= rect.y1 and rect.y2 <= area.y2
            assert passable[rect.x1 : rect.x2, rect.y1 : rect.y2].all()

    def test_transitions_kept_open(self, module: Module) -> None:
        """Transition footprints are drawn and never walled over."""
        generator = AreaGenerator(_full_builder(), module)
        rand = ReproducibleRandom("transitions")
        params = GeneratorParams(
            props=PARAMS.props,
            transitions=(
                TransitionRequest("exit", "town", side="west"),
                TransitionRequest("exit", "crypt", side="north"),
            ),
        )

        transitions = generator.generate_transitions(64, 48, rand, params)
        output = generator.generate(64, 48, rand, params, transitions)

        walls = output.layer("walls")
        decoration = output.layer("decoration")
        assert walls is not None and decoration is not None
        for transition in transitions:
            for (x, y), _tile in walls.placements():
                assert not Rect(x, y, 2, 2).intersects(transition.rect)
            assert STAIRS in decoration.tiles_at(*transition.location)
            for prop in output.props:
                assert not Rect.at(prop.location, prop.size).intersects(
                    transition.rect
                )

    def test_border_transitions_reach_maze_in_uneven_area(
        self, module: Module
    ) -> None:
        """Footprints in the strip past the last maze cell are not sealed off."""
        generator = AreaGenerator(_full_builder(), module)
        rand = ReproducibleRandom("uneven")
        params = GeneratorParams(
            transitions=(
                TransitionRequest("exit", "river", side="south"),
                TransitionRequest("exit", "road", side="east"),
            ),
        )

        # 7x5 maze cells cover 56x40 of the 60x44 area
        transitions = generator.generate_transitions(60, 44, rand, params)
        output = generator.generate(60, 44, rand, params, transitions)

        cost = passable_grid(output.layers, 60, 44).astype(np.int8)
        astar = tcod.path.AStar(cost=cost, diagonal=0)
        assert transitions[0].location[1] == 42
        assert transitions[1].location[0] == 58
        for transition in transitions:
            cx, cy = transition.center
            ax, ay = min(cx // MAZE_CELL_TILES, 6), min(cy // MAZE_CELL_TILES, 4)
            goal = (ax * MAZE_CELL_TILES + 3, ay * MAZE_CELL_TILES + 3)
            x, y = transition.location
            assert astar.get_path(x, y, *goal), transition

    def test_two_by_two_all_wall(self, module: Module) -> None:
        """A 2x2 maze grid with no anchors is solid wall of kind 0."""
        generator = AreaGenerator(make_builder(), module)

        output = generator.generate(
            16, 16, ReproducibleRandom("solid"), GeneratorParams()
        )

        walls = output.layer("walls")
        assert walls is not None
        assert len(walls.stacks()) == 16 * 16
        for y in range(16):
            for x in range(16):
                expected = (STONE,) if x % 2 == 0 and y % 2 == 0 else ()
                assert walls.tiles_at(x, y) == expected
        for layer in output.layers:
            if layer.id != "walls":
                assert layer.placements() == []
        assert output.props == ()
        assert output.encounters == ()

    def test_fixed_features_and_extra_tiles(self, module: Module) -> None:
        builder = _full_builder(
            features=FeatureParamsBuilder(fixed=[FixedFeatureBuilder("altar", (4, 6))])
        )
        generator = AreaGenerator(builder, module)

        output = generator.generate(
            64,
            48,
            ReproducibleRandom("extras"),
            GeneratorParams(),
            tiles_to_add=[(STAIRS, 20, 22), (STAIRS, 500, 500)],
        )

        decoration = output.layer("decoration")
        assert decoration is not None
        assert decoration.tiles_at(4, 6) == (ALTAR,)
        assert decoration.tiles_at(20, 22) == (STAIRS,)
        assert len(decoration.placements()) == 2

    def test_unknown_prop_kind_raises(self, module: Module) -> None:
        generator = AreaGenerator(_full_builder(), module)
        params = GeneratorParams(props=(PassParams("treasure"),))

        with pytest.raises(UnresolvedReference) as excinfo:
            generator.generate(64, 48, ReproducibleRandom("missing"), params)

        assert excinfo.value.kind == "prop kind"
        assert excinfo.value.id == "treasure"

    def test_area_smaller_than_maze_cell_raises(self, module: Module) -> None:
        generator = AreaGenerator(make_builder(), module)
        with pytest.raises(GenerationFailed, match="smaller than one"):
            generator.generate(7, 30, ReproducibleRandom("tiny"), GeneratorParams())

    def test_logs_stage_boundaries(
        self, module: Module, caplog: pytest.LogCaptureFixture
    ) -> None:
        generator = AreaGenerator(make_builder(), module)
        with caplog.at_level(logging.INFO, logger="delve"):
            generator.generate(16, 16, ReproducibleRandom("logs"), GeneratorParams())
        assert "Generating 'test' area 16x16" in caplog.text
        assert "seed='logs'" in caplog.text
        assert "0 features, 0 props, 0 encounters" in caplog.text


# =============================================================================
# Wall carving
# =============================================================================


def _generated_maze(seed: str) -> Maze:
    maze = Maze(9, 7)
    maze.generate(RoomParams(min_rooms=1), ReproducibleRandom(seed), [])
    return maze


class TestAddWalls:
    """Tests for both wall modes."""

    @pytest.mark.parametrize("seed", ["walls-1", "walls-2", "walls-3"])
    def test_normal_mode_opens_regions(self, module: Module, seed: str) -> None:
        generator = AreaGenerator(make_builder(), module)
        maze = _generated_maze(seed)

        model = carved_model(generator, maze)

        for x in range(maze.width):
            for y in range(maze.height):
                ox, oy = model.from_region_coords(x, y)
                assert model.model.is_wall(ox + 2, oy + 2) != maze.is_open(x, y)
        assert set(np.unique(model.model.wall_index)) <= {-1, 0}

    @pytest.mark.parametrize("seed", ["invert-1", "invert-2", "invert-3"])
    def test_invert_mode_one_wall_kind_per_region(
        self, module: Module, seed: str
    ) -> None:
        generator = AreaGenerator(
            make_builder(
                wall_kinds={"stone": 1, "brick": 1}, rooms=RoomParams(invert=True)
            ),
            module,
        )
        maze = _generated_maze(seed)

        model = carved_model(generator, maze)

        for region in maze.regions():
            kinds: set[str] = set()
            for rx, ry in maze.region_cells(region):
                ox, oy = model.from_region_coords(rx, ry)
                assert model.model.is_wall(ox + 2, oy + 2)
                kind = model.model.wall_kind_at(ox + 2, oy + 2)
                assert kind is not None
                kinds.add(kind.id)
            assert len(kinds) == 1
        for rx, ry in ((x, y) for x in range(9) for y in range(7)):
            if not maze.is_open(rx, ry):
                ox, oy = model.from_region_coords(rx, ry)
                assert not model.model.is_wall(ox + 2, oy + 2)

    @pytest.mark.parametrize("seed", ["edges-1", "edges-2", "edges-3", "edges-4"])
    def test_shared_edges_never_roughened(self, module: Module, seed: str) -> None:
        """Two adjacent open maze cells are always joined by open wall cells."""
        generator = AreaGenerator(
            make_builder(
                rooms=RoomParams(
                    room_edge_overfill_chance=100, corridor_edge_overfill_chance=100
                )
            ),
            module,
        )
        maze = _generated_maze(seed)
        model = carved_model(generator, maze)
        cells = set(open_cells(maze))

        for x, y in cells:
            ox, oy = model.from_region_coords(x, y)
            if (x + 1, y) in cells:
                for j in (1, 2):
                    assert not model.model.is_wall(ox + 6, oy + j * 2)
                    assert not model.model.is_wall(ox + 8, oy + j * 2)
            if (x, y + 1) in cells:
                for i in (1, 2):
                    assert not model.model.is_wall(ox + i * 2, oy + 6)
                    assert not model.model.is_wall(ox + i * 2, oy + 8)


class TestCarveWall:
    """Tests for carving a single maze cell."""

    @pytest.fixture
    def generator(self, module: Module) -> AreaGenerator:
        return AreaGenerator(make_builder(), module)

    @pytest.fixture
    def model(self, generator: AreaGenerator, module: Module) -> GenModel:
        model = GenModel(24, 24, ReproducibleRandom("carve"), 4, 4, module)
        for x, y in model.tiles():
            model.model.set_wall(x, y, 1, 0)
        return model

    def test_smooth_cell_fully_carved(
        self, generator: AreaGenerator, model: GenModel
    ) -> None:
        neighbors = [Room(0), Wall(), Wall(), Wall(), Wall()]
        generator.carve_wall(model, 1, 1, neighbors, None, 0, None)

        cell = model.model.elevation[4:8, 4:8]
        assert not cell.any()
        assert int(model.model.elevation.sum()) == 12 * 12 - 16

    def test_rough_edge_and_its_corners_stay_wall(
        self, generator: AreaGenerator, model: GenModel
    ) -> None:
        neighbors = [Room(0), Wall(), Room(0), Room(0), Room(0)]
        generator.carve_wall(model, 1, 1, neighbors, Edge.NORTH, 0, None)

        ox, oy = MAZE_CELL_TILES, MAZE_CELL_TILES
        for i in range(4):
            assert model.model.is_wall(ox + i * 2, oy)
        for j in range(1, 4):
            for i in range(4):
                assert not model.model.is_wall(ox + i * 2, oy + j * 2)

    def test_chosen_edge_facing_open_cell_is_carved(
        self, generator: AreaGenerator, model: GenModel
    ) -> None:
        neighbors = [Corridor(2), Corridor(2), Wall(), Wall(), Wall()]
        generator.carve_wall(model, 1, 1, neighbors, Edge.NORTH, 0, None)

        assert not model.model.elevation[4:8, 4:8].any()


class TestRoughEdges:
    """Tests for the rough-edge decision and its memoization."""

    def test_is_rough_edge(self) -> None:
        neighbors = [Corridor(1), Wall(), Corridor(1), Wall(), Corridor(1)]
        assert is_rough_edge(neighbors, Edge.NORTH, Edge.NORTH)
        assert not is_rough_edge(neighbors, Edge.EAST, Edge.EAST)
        assert not is_rough_edge(neighbors, Edge.SOUTH, Edge.NORTH)
        assert not is_rough_edge(neighbors, Edge.NORTH, None)

    def _model(self, module: Module) -> GenModel:
        return GenModel(32, 32, ReproducibleRandom("rough"), 4, 4, module)

    def test_corridor_edge_memoized_per_region(self, module: Module) -> None:
        generator = AreaGenerator(
            make_builder(rooms=RoomParams(corridor_edge_overfill_chance=100)), module
        )
        model = self._model(module)

        edge = generator.pick_rough_edge(model, Corridor(3))
        draws = model.rand.draws

        assert isinstance(edge, Edge)
        for _ in range(5):
            assert generator.pick_rough_edge(model, Corridor(3)) == edge
        assert model.rand.draws == draws
        assert model.region_overfill_edges == {3: edge}

    def test_corridor_without_overfill_memoizes_none(self, module: Module) -> None:
        generator = AreaGenerator(make_builder(), module)
        model = self._model(module)

        assert generator.pick_rough_edge(model, Corridor(7)) is None
        assert model.region_overfill_edges == {7: None}

    def test_room_rolls_every_time(self, module: Module) -> None:
        generator = AreaGenerator(
            make_builder(rooms=RoomParams(room_edge_overfill_chance=100)), module
        )
        model = self._model(module)

        for _ in range(4):
            assert isinstance(generator.pick_rough_edge(model, Room(0)), Edge)
        assert model.rand.draws == 8
        assert model.region_overfill_edges == {}

    def test_wall_never_rough(self, module: Module) -> None:
        generator = AreaGenerator(make_builder(), module)
        model = self._model(module)
        assert generator.pick_rough_edge(model, Wall()) is None
        assert model.rand.draws == 0


# =============================================================================
# Layers
# =============================================================================


class TestCreateLayers:
    """Tests for turning a tiles model into output layers."""

    def test_clips_out_of_area_placements(self, module: Module) -> None:
        tiles = TilesModel(4, 4, module)
        tiles.add(STONE, 1, 2)
        tiles.add(STONE, -1, 0)
        tiles.add(STONE, 4, 0)

        layers = {layer.id: layer for layer in create_layers(4, 4, tiles)}

        walls = layers["walls"]
        assert walls.placements() == [((1, 2), STONE)]
        assert walls.stacks()[1 + 2 * 4] == (STONE,)

    @pytest.mark.parametrize("size", [(0, 4), (4, 0), (-1, -1)])
    def test_non_positive_size_raises(
        self, module: Module, size: tuple[int, int]
    ) -> None:
        tiles = TilesModel(4, 4, module)
        with pytest.raises(LayerError):
            create_layers(size[0], size[1], tiles)
