from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import numpy as np
import tcod.path

from delve.generator import AreaGenerator, GeneratorBuilder, Maze, RoomParams
from delve.generator.model import GenModel
from delve.module import (
    Edge,
    Encounter,
    Feature,
    Module,
    Prop,
    TerrainKind,
    Tile,
    WallKind,
)
from delve.util.rng import ReproducibleRandom

# Wall grid of 2x2 fine tiles, 4x4 wall cells per maze cell
MAZE_CELL_TILES = 8

STONE = Tile("stone", "walls", width=2, height=2, impassable=True)
BRICK = Tile("brick", "walls", width=2, height=2, impassable=True)
STONE_EDGES = {
    edge: Tile(f"stone_{edge.name.lower()}", "wall_border") for edge in Edge
}
FLOOR = Tile("floor", "terrain", width=2, height=2)
MOSS = Tile("moss", "terrain", width=2, height=2)
MOSS_BORDERS = {
    edge: Tile(f"moss_{edge.name.lower()}", "terrain_border") for edge in Edge
}
ALTAR = Tile("altar", "decoration", width=2, height=2, impassable=True)
STAIRS = Tile("stairs", "decoration", width=2, height=2)


def make_module(**overrides: Any) -> Module:
    """Module with two wall kinds, two terrains and a few of everything else."""
    kwargs: dict[str, Any] = {
        "tiles": [STONE, BRICK, FLOOR, MOSS, ALTAR, STAIRS],
        "wall_kinds": [
            WallKind("stone", STONE, STONE_EDGES),
            WallKind("brick", BRICK),
        ],
        "terrain_kinds": [
            TerrainKind("floor", FLOOR),
            TerrainKind("moss", MOSS, MOSS_BORDERS),
        ],
        "features": [
            Feature("altar", (2, 2), ((ALTAR, 0, 0),)),
            Feature("stairs", (2, 2), ((STAIRS, 0, 0),)),
        ],
        "props": [Prop("barrel"), Prop("crate"), Prop("table", size=(2, 1))],
        "encounters": [Encounter("rats"), Encounter("goblins")],
    }
    kwargs.update(overrides)
    return Module(**kwargs)


def make_builder(**overrides: Any) -> GeneratorBuilder:
    """Builder with stone walls and the default 4x4 wall cell maze cells."""
    kwargs: dict[str, Any] = {"id": "test", "wall_kinds": {"stone": 1}}
    kwargs.update(overrides)
    return GeneratorBuilder(**kwargs)


def single_room_maze() -> Maze:
    """A 5x5 maze whose only open cells are one 3x3 room at (1, 1)."""
    maze = Maze(5, 5)
    params = RoomParams(
        min_size=(3, 3),
        max_size=(3, 3),
        min_rooms=1,
        max_rooms=1,
        gen_corridors=False,
    )
    maze.generate(params, ReproducibleRandom("single-room"), [])
    return maze


def carved_model(
    generator: AreaGenerator, maze: Maze, seed: str = "carved"
) -> GenModel:
    """GenModel sized to the maze, with walls carved and wall tiles derived."""
    model = GenModel(
        maze.width * MAZE_CELL_TILES,
        maze.height * MAZE_CELL_TILES,
        ReproducibleRandom(seed),
        generator.grid_width,
        generator.grid_height,
        generator.module,
    )
    generator.add_walls(model, maze)
    for x, y in model.tiles():
        model.model.check_add_wall_border(x, y)
    return model


def open_cells(maze: Maze) -> list[tuple[int, int]]:
    return [
        (x, y)
        for y in range(maze.height)
        for x in range(maze.width)
        if maze.is_open(x, y)
    ]


def assert_connected(maze: Maze, cells: Sequence[tuple[int, int]]) -> None:
    """Assert every cell can reach the first one through open maze cells."""
    cost = np.zeros((maze.width, maze.height), dtype=np.int8)
    for x, y in open_cells(maze):
        cost[x, y] = 1
    astar = tcod.path.AStar(cost=cost, diagonal=0)

    start = cells[0]
    for goal in cells[1:]:
        if goal == start:
            continue
        path = astar.get_path(start[0], start[1], goal[0], goal[1])
        assert path, f"No path from {start} to {goal}\n{maze.to_ascii()}"
