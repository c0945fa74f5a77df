"""Area generation pipeline.

An AreaGenerator is built once per template and reused for every area made
from it. Each generate() call creates a fresh GenModel and Maze and runs the
passes in a fixed order, drawing from one random source, so the same seed
and parameters always produce the same output:

    1. reserve transition footprints and anchor them in the maze
    2. carve the maze, then carve walls from it
    3. terrain, caller tiles, derived wall and terrain tiles
    4. features, props and encounters against a layer snapshot
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from delve import config
from delve.area.layer import GeneratorOutput, Layer
from delve.errors import GenerationFailed, InvalidParameter
from delve.module import Edge, Module, Tile
from delve.util.coordinates import clamp_pos, iter_points

from .maze import Corridor, Maze, Room, TileKind, Wall
from .model import GenModel, TilesModel
from .params import (
    EncounterParams,
    FeatureParams,
    GeneratorBuilder,
    GeneratorParams,
    PropParams,
    TerrainParams,
    TransitionParams,
    WallKinds,
)
from .passes import (
    EncounterGen,
    FeatureGen,
    PropGen,
    TerrainGen,
    TransitionGen,
    TransitionOutput,
)
from .weighted_list import WeightedList

if TYPE_CHECKING:
    from delve.types import Point, RegionId
    from delve.util.rng import ReproducibleRandom

logger = logging.getLogger(__name__)


class AreaGenerator:
    """Generates areas from one resolved template.

    Construction validates the builder and resolves every id it names, so a
    broken template fails here rather than halfway through a generation.

    Raises:
        InvalidParameter: If a builder value is out of range.
        UnresolvedReference: If the builder names an id the module lacks.
    """

    def __init__(self, builder: GeneratorBuilder, module: Module) -> None:
        if builder.grid_width < config.MIN_REGION_GRID_CELLS:
            raise InvalidParameter(
                f"grid_width must be at least {config.MIN_REGION_GRID_CELLS}, "
                f"got {builder.grid_width}"
            )
        if builder.grid_height < config.MIN_REGION_GRID_CELLS:
            raise InvalidParameter(
                f"grid_height must be at least {config.MIN_REGION_GRID_CELLS}, "
                f"got {builder.grid_height}"
            )
        builder.rooms.validate()

        self.id = builder.id
        self.module = module
        self.grid_width = builder.grid_width
        self.grid_height = builder.grid_height
        self.room_params = builder.rooms
        self.wall_kinds = WallKinds(
            WeightedList(builder.wall_kinds, "wall kind", module.wall_kind)
        )
        self.terrain = TerrainParams.from_builder(builder.terrain, module)
        self.features = FeatureParams.from_builder(builder.features, module)
        self.props = PropParams.from_builder(builder.props, module)
        self.encounters = EncounterParams.from_builder(builder.encounters, module)
        self.transitions = TransitionParams.from_builder(builder.transitions, module)

    def generate_transitions(
        self,
        width: int,
        height: int,
        rand: ReproducibleRandom,
        params: GeneratorParams,
    ) -> list[TransitionOutput]:
        """Place the transitions requested in params on the area border."""
        gen = TransitionGen(width, height, self.transitions)
        return gen.generate(rand, params.transitions)

    def generate(
        self,
        width: int,
        height: int,
        rand: ReproducibleRandom,
        params: GeneratorParams,
        transitions: Sequence[TransitionOutput] = (),
        tiles_to_add: Sequence[tuple[Tile, int, int]] = (),
    ) -> GeneratorOutput:
        """Generate one area.

        Args:
            width: Area width in fine tiles.
            height: Area height in fine tiles.
            rand: Random source; consumed in pipeline order.
            params: Per-area prop and encounter passes.
            transitions: Placed transitions, usually from generate_transitions.
                Their footprints are kept open and their feature tiles drawn.
            tiles_to_add: Extra (tile, x, y) placements added after terrain.

        Raises:
            GenerationFailed: If the area cannot hold a single maze cell, or
                the maze constraints cannot be met.
            UnresolvedReference: If params names an unknown prop or
                encounter kind.
        """
        logger.info(f"Generating '{self.id}' area {width}x{height} with {rand!r}")

        model = GenModel(
            width, height, rand, self.grid_width, self.grid_height, self.module
        )
        maze_width, maze_height = model.region_size()
        if maze_width <= 0 or maze_height <= 0:
            raise GenerationFailed(
                f"Area {width}x{height} is smaller than one "
                f"{model.total_grid_size[0]}x{model.total_grid_size[1]} maze cell"
            )
        maze = Maze(maze_width, maze_height)

        anchors: list[Point] = []
        for transition in transitions:
            model.reserve(transition.rect)
            anchor = model.to_region_coords(*transition.center)
            anchors.append(clamp_pos(anchor, maze_width, maze_height))

        maze.generate(self.room_params, rand, anchors)

        self.add_walls(model, maze)
        cleared = model.clear_reserved_walls()
        # Open the walls between each footprint and its anchor cell
        for transition, anchor in zip(transitions, anchors, strict=True):
            link = transition.rect.union(model.region_rect(*anchor))
            cleared += model.clear_walls(link)
        logger.debug(f"Cleared {cleared} wall cells over transitions")

        TerrainGen(model, self.terrain, maze).generate()

        for transition in transitions:
            for tile, x, y in transition.feature_tiles():
                model.model.add(tile, x, y)
        for tile, x, y in tiles_to_add:
            model.model.add(tile, x, y)

        for x, y in model.tiles():
            model.model.check_add_wall_border(x, y)
            model.model.check_add_terrain(x, y)
            model.model.check_add_terrain_border(x, y)

        layers = create_layers(width, height, model.model)
        features = FeatureGen(model, layers, self.features, maze).generate()
        props = PropGen(model, layers, self.props, maze).generate(params.props)
        encounters = EncounterGen(model, layers, self.encounters, maze).generate(
            params.encounters
        )

        layers = create_layers(width, height, model.model)
        logger.info(
            f"Generated '{self.id}': {model.model.tile_count()} tiles, "
            f"{len(features)} features, "
            f"{len(props)} props, {len(encounters)} encounters, {rand!r}"
        )
        return GeneratorOutput(tuple(layers), tuple(props), tuple(encounters))

    # -------------------------------------------------------------------------
    # Walls
    # -------------------------------------------------------------------------

    def add_walls(self, model: GenModel, maze: Maze) -> None:
        """Turn the maze into wall grid state.

        Normally the whole area becomes wall of one picked kind and every
        region cell is carved open. In invert mode the area starts open and
        region cells are filled with a wall kind chosen once per region.
        """
        invert = self.room_params.invert
        if not invert:
            wall_index = self.wall_kinds.pick_index(model.rand, model.model)
            for x, y in model.tiles():
                model.model.set_wall(x, y, 1, wall_index)

        for rx, ry in iter_points(maze.width, maze.height):
            kind = maze.tile_kind(rx, ry)
            if isinstance(kind, Wall):
                continue
            if invert:
                elevation, wall_index = 1, self.pick_wall_kind(model, kind.region)
            else:
                elevation, wall_index = 0, None
            edge_choice = self.pick_rough_edge(model, kind)
            neighbors = maze.neighbors(rx, ry)
            self.carve_wall(
                model, rx, ry, neighbors, edge_choice, elevation, wall_index
            )

    def pick_wall_kind(self, model: GenModel, region: RegionId) -> int | None:
        """Wall kind index for a region, picked on first use and memoized."""
        if region not in model.region_wall_kinds:
            model.region_wall_kinds[region] = self.wall_kinds.pick_index(
                model.rand, model.model
            )
        return model.region_wall_kinds[region]

    def pick_rough_edge(self, model: GenModel, kind: TileKind) -> Edge | None:
        """Choose the edge to roughen for one maze cell, if any.

        A corridor region decides once and every cell of it reuses that
        decision. A room cell rolls on its own every time.
        """
        rand = model.rand
        match kind:
            case Corridor(region=region):
                if region not in model.region_overfill_edges:
                    edge = None
                    if rand.chance(self.room_params.corridor_edge_overfill_chance):
                        edge = Edge(rand.gen(1, 5))
                    model.region_overfill_edges[region] = edge
                return model.region_overfill_edges[region]
            case Room():
                if rand.chance(self.room_params.room_edge_overfill_chance):
                    return Edge(rand.gen(1, 5))
                return None
            case _:
                return None

    def carve_wall(
        self,
        model: GenModel,
        rx: int,
        ry: int,
        neighbors: Sequence[TileKind],
        edge_choice: Edge | None,
        elevation: int,
        wall_index: int | None,
    ) -> None:
        """Carve one maze cell into the wall grid.

        The center is always carved. Each edge strip is carved unless it is
        rough, and each corner only when neither adjoining edge is rough.
        """
        tiles = model.model
        ox, oy = model.from_region_coords(rx, ry)
        last_x, last_y = self.grid_width - 1, self.grid_height - 1
        rough = {edge: is_rough_edge(neighbors, edge, edge_choice) for edge in Edge}

        for i, j in iter_points(self.grid_width, self.grid_height):
            edges = []
            if j == 0:
                edges.append(Edge.NORTH)
            if j == last_y:
                edges.append(Edge.SOUTH)
            if i == 0:
                edges.append(Edge.WEST)
            if i == last_x:
                edges.append(Edge.EAST)
            if any(rough[edge] for edge in edges):
                continue
            tiles.set_wall(
                ox + i * tiles.grid_width,
                oy + j * tiles.grid_height,
                elevation,
                wall_index,
            )


def is_rough_edge(
    neighbors: Sequence[TileKind], edge: Edge, edge_choice: Edge | None
) -> bool:
    """Whether edge of a cell stays uncarved.

    Only edges facing a Wall neighbor can be rough, and only the chosen one.
    """
    return edge_choice == edge and isinstance(neighbors[edge], Wall)


def create_layers(width: int, height: int, tiles_model: TilesModel) -> list[Layer]:
    """Build one Layer per tiles model layer, in layer order.

    Placements outside the area are dropped.

    Raises:
        LayerError: If width or height is not positive.
    """
    return [
        Layer.from_placements(width, height, layer_id, placements)
        for layer_id, placements in tiles_model.iter()
    ]
