"""Coarse region grid of rooms and corridors.

The maze works on a coarse grid where every cell is either wall or belongs to
a region (a room or a corridor). Carving follows the rooms-and-mazes scheme:
rooms with odd sizes are dropped on odd offsets, winding corridors fill the
remaining odd lattice, regions are joined through connector cells, and dead
ends are trimmed. Open anchors (transition locations) are carved before the
corridors grow and are never trimmed, so a transition is never sealed off.

Grid cells:
    - Odd x and odd y: room or corridor cells
    - Cells between them: walls, corridor links, or connectors
    - The outer ring: walls, except for anchors placed on it
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

import numpy as np

from delve import config
from delve.errors import GenerationFailed
from delve.module import Edge
from delve.types import RegionId, RegionLabel, RegionPos
from delve.util.coordinates import Rect, iter_points

if TYPE_CHECKING:
    from collections.abc import Iterable

    from delve.util.rng import ReproducibleRandom

    from .params import RoomParams

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Wall:
    """A solid maze cell."""

    label: ClassVar[RegionLabel] = "wall"

    @property
    def region(self) -> None:
        return None


@dataclass(frozen=True)
class Corridor:
    """A maze cell belonging to a corridor region."""

    region: RegionId
    label: ClassVar[RegionLabel] = "corridor"


@dataclass(frozen=True)
class Room:
    """A maze cell belonging to a room region."""

    region: RegionId
    label: ClassVar[RegionLabel] = "room"


type TileKind = Wall | Corridor | Room

WALL = Wall()

_WALL_CELL = 0
_CORRIDOR_CELL = 1
_ROOM_CELL = 2


def _odd(value: int) -> int:
    return value if value % 2 == 1 else value - 1


def _nearest_odd(value: int, limit: int) -> int:
    """Nearest odd coordinate in [1, limit - 2], or value if there is none."""
    if limit < 3:
        return value
    clamped = max(1, min(value, limit - 2))
    if clamped % 2 == 1:
        return clamped
    return clamped - 1 if clamped - 1 >= 1 else clamped + 1


class Maze:
    """Region grid of rooms and corridors over a coarse cell grid.

    Attributes:
        width: Grid width in maze cells.
        height: Grid height in maze cells.
        rooms: Room region id -> bounds in maze cells.
        anchors: Cells that were required to stay open.
    """

    def __init__(self, width: int, height: int) -> None:
        self.width = max(0, width)
        self.height = max(0, height)
        self.rooms: dict[RegionId, Rect] = {}
        self.anchors: tuple[RegionPos, ...] = ()
        self._kinds = np.zeros((self.width, self.height), dtype=np.uint8, order="F")
        self._regions = np.full(
            (self.width, self.height), -1, dtype=np.int32, order="F"
        )
        self._region_labels: dict[RegionId, RegionLabel] = {}
        self._next_region = 0

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def region(self, x: int, y: int) -> RegionId | None:
        """Region id of a cell, or None for walls and out-of-range cells."""
        if not self.in_bounds(x, y):
            return None
        region = int(self._regions[x, y])
        return None if region < 0 else region

    def tile_kind(self, x: int, y: int) -> TileKind:
        """Classify a cell. Out-of-range cells read as Wall."""
        if not self.in_bounds(x, y):
            return WALL
        match int(self._kinds[x, y]):
            case 1:
                return Corridor(int(self._regions[x, y]))
            case 2:
                return Room(int(self._regions[x, y]))
            case _:
                return WALL

    def neighbors(self, x: int, y: int) -> list[TileKind]:
        """The cell itself followed by its N, E, S and W neighbors.

        Index 0 is the cell; indices 1-4 match the Edge values.
        """
        kinds = [self.tile_kind(x, y)]
        for edge in Edge:
            dx, dy = edge.offset
            kinds.append(self.tile_kind(x + dx, y + dy))
        return kinds

    def is_open(self, x: int, y: int) -> bool:
        return self.in_bounds(x, y) and self._kinds[x, y] != _WALL_CELL

    def regions(self) -> list[RegionId]:
        """Ids of all regions still present on the grid, ascending."""
        return [int(r) for r in np.unique(self._regions) if r >= 0]

    def region_label(self, region: RegionId) -> RegionLabel | None:
        return self._region_labels.get(region)

    def region_cells(self, region: RegionId) -> list[RegionPos]:
        """Cells of a region in row-major order."""
        xs, ys = np.nonzero(self._regions == region)
        cells = [(int(x), int(y)) for x, y in zip(xs, ys, strict=True)]
        return sorted(cells, key=lambda pos: (pos[1], pos[0]))

    def open_cell_count(self) -> int:
        return int(np.count_nonzero(self._kinds))

    def to_ascii(self) -> str:
        """Render the grid: "#" wall, "." corridor, "o" room."""
        glyphs = {_WALL_CELL: "#", _CORRIDOR_CELL: ".", _ROOM_CELL: "o"}
        rows = []
        for y in range(self.height):
            rows.append(
                "".join(glyphs[int(self._kinds[x, y])] for x in range(self.width))
            )
        return "\n".join(rows)

    # -------------------------------------------------------------------------
    # Generation
    # -------------------------------------------------------------------------

    def generate(
        self,
        params: RoomParams,
        rand: ReproducibleRandom,
        open_locs: Iterable[RegionPos],
    ) -> None:
        """Carve rooms and corridors, keeping every open_locs cell walkable.

        Args:
            params: Room and corridor configuration.
            rand: Random source shared with the rest of the pipeline.
            open_locs: Maze cells that must not end up as Wall.

        Raises:
            GenerationFailed: If an anchor lies outside the grid, or fewer than
                params.min_rooms rooms fit after all retries.
        """
        anchors = tuple(dict.fromkeys((int(x), int(y)) for x, y in open_locs))
        for x, y in anchors:
            if not self.in_bounds(x, y):
                raise GenerationFailed(
                    f"Open location ({x}, {y}) is outside the "
                    f"{self.width}x{self.height} maze"
                )
        self.anchors = anchors

        for attempt in range(1, config.MAZE_GENERATION_ATTEMPTS + 1):
            self._reset()
            self._place_rooms(params, rand)
            if len(self.rooms) >= params.min_rooms:
                break
            logger.debug(
                f"Maze attempt {attempt} placed {len(self.rooms)} of "
                f"{params.min_rooms} required rooms"
            )
        else:
            raise GenerationFailed(
                f"Unable to place {params.min_rooms} rooms in a "
                f"{self.width}x{self.height} maze after "
                f"{config.MAZE_GENERATION_ATTEMPTS} attempts"
            )

        self._carve_anchors()
        if params.gen_corridors:
            self._grow_corridors(params, rand)
        self._connect_regions(params, rand)
        self._remove_dead_ends(params, rand)

        logger.debug(
            f"Maze {self.width}x{self.height}: {len(self.rooms)} rooms, "
            f"{len(self.regions())} regions, {self.open_cell_count()} open cells"
        )

    def _reset(self) -> None:
        self._kinds[:, :] = _WALL_CELL
        self._regions[:, :] = -1
        self._region_labels.clear()
        self.rooms.clear()
        self._next_region = 0

    def _new_region(self, label: RegionLabel) -> RegionId:
        region = self._next_region
        self._next_region += 1
        self._region_labels[region] = label
        return region

    def _carve(self, x: int, y: int, cell: int, region: RegionId) -> None:
        self._kinds[x, y] = cell
        self._regions[x, y] = region

    def _place_rooms(self, params: RoomParams, rand: ReproducibleRandom) -> None:
        (min_w, min_h), (max_w, max_h) = params.min_size, params.max_size

        for _ in range(params.room_placement_attempts):
            if len(self.rooms) >= params.max_rooms:
                break

            w = _odd(rand.gen(min_w, max_w + 1))
            h = _odd(rand.gen(min_h, max_h + 1))

            # Rooms sit on odd offsets and leave the outer ring solid
            span_x = self.width - 1 - w
            span_y = self.height - 1 - h
            if span_x < 1 or span_y < 1:
                continue
            x = rand.gen(0, (span_x - 1) // 2 + 1) * 2 + 1
            y = rand.gen(0, (span_y - 1) // 2 + 1) * 2 + 1

            room = Rect(x, y, w, h)
            if any(room.intersects(other) for other in self.rooms.values()):
                continue

            region = self._new_region("room")
            self._kinds[room.x1 : room.x2, room.y1 : room.y2] = _ROOM_CELL
            self._regions[room.x1 : room.x2, room.y1 : room.y2] = region
            self.rooms[region] = room

    def _carve_anchors(self) -> None:
        """Carve a straight spur from each anchor to the nearest lattice cell."""
        for ax, ay in self.anchors:
            if self.is_open(ax, ay):
                continue

            region = self._new_region("corridor")
            tx = _nearest_odd(ax, self.width)
            ty = _nearest_odd(ay, self.height)

            path = [(x, ay) for x in _span(ax, tx)]
            path.extend((tx, y) for y in _span(ay, ty)[1:])
            for x, y in path:
                if self.is_open(x, y):
                    break
                self._carve(x, y, _CORRIDOR_CELL, region)

    def _can_grow(self, x: int, y: int, edge: Edge) -> bool:
        dx, dy = edge.offset
        nx, ny = x + dx * 2, y + dy * 2
        if not (1 <= nx <= self.width - 2 and 1 <= ny <= self.height - 2):
            return False
        return (
            self._kinds[x + dx, y + dy] == _WALL_CELL
            and self._kinds[nx, ny] == _WALL_CELL
        )

    def _grow_corridors(self, params: RoomParams, rand: ReproducibleRandom) -> None:
        for y in range(1, self.height - 1, 2):
            for x in range(1, self.width - 1, 2):
                if self._kinds[x, y] == _WALL_CELL:
                    self._grow_maze(x, y, params, rand)

    def _grow_maze(
        self, start_x: int, start_y: int, params: RoomParams, rand: ReproducibleRandom
    ) -> None:
        """Growing-tree corridor carve from one lattice cell."""
        region = self._new_region("corridor")
        self._carve(start_x, start_y, _CORRIDOR_CELL, region)

        cells = [(start_x, start_y)]
        last_edge: Edge | None = None
        while cells:
            x, y = cells[-1]
            candidates = [edge for edge in Edge if self._can_grow(x, y, edge)]
            if not candidates:
                cells.pop()
                last_edge = None
                continue

            if last_edge in candidates and not rand.chance(params.winding_chance):
                edge = last_edge
            else:
                edge = candidates[rand.gen(0, len(candidates))]

            dx, dy = edge.offset
            self._carve(x + dx, y + dy, _CORRIDOR_CELL, region)
            self._carve(x + dx * 2, y + dy * 2, _CORRIDOR_CELL, region)
            cells.append((x + dx * 2, y + dy * 2))
            last_edge = edge

    def _open_neighbor_regions(self, x: int, y: int) -> list[RegionId]:
        regions: list[RegionId] = []
        for edge in Edge:
            dx, dy = edge.offset
            region = self.region(x + dx, y + dy)
            if region is not None and region not in regions:
                regions.append(region)
        return regions

    def _connect_regions(self, params: RoomParams, rand: ReproducibleRandom) -> None:
        """Join all regions through connector cells.

        Regions that already touch are merged up front. Connectors are then
        opened at random until one region remains or no connector is left;
        each connector made redundant by a merge is opened anyway with
        extra_connection_chance, which adds loops.
        """
        parent = {region: region for region in self._region_labels}

        def find(region: RegionId) -> RegionId:
            while parent[region] != region:
                parent[region] = parent[parent[region]]
                region = parent[region]
            return region

        def union(a: RegionId, b: RegionId) -> bool:
            root_a, root_b = find(a), find(b)
            if root_a == root_b:
                return False
            parent[max(root_a, root_b)] = min(root_a, root_b)
            return True

        open_groups = len(self.regions())
        for x, y in iter_points(self.width, self.height):
            region = self.region(x, y)
            if region is None:
                continue
            for nx, ny in ((x + 1, y), (x, y + 1)):
                other = self.region(nx, ny)
                if other is not None and union(region, other):
                    open_groups -= 1

        connectors: list[tuple[RegionPos, list[RegionId]]] = []
        for x, y in iter_points(self.width, self.height):
            if self._kinds[x, y] != _WALL_CELL:
                continue
            regions = self._open_neighbor_regions(x, y)
            if len({find(r) for r in regions}) > 1:
                connectors.append(((x, y), regions))

        while open_groups > 1 and connectors:
            (cx, cy), regions = connectors.pop(rand.gen(0, len(connectors)))
            self._add_junction(cx, cy, regions)
            for other in regions[1:]:
                if union(regions[0], other):
                    open_groups -= 1

            remaining = []
            for (x, y), other_regions in connectors:
                if abs(x - cx) + abs(y - cy) < 2:
                    continue
                if len({find(r) for r in other_regions}) > 1:
                    remaining.append(((x, y), other_regions))
                elif params.extra_connection_chance > 0 and rand.chance(
                    params.extra_connection_chance
                ):
                    self._add_junction(x, y, other_regions)
            connectors = remaining

    def _add_junction(self, x: int, y: int, regions: list[RegionId]) -> None:
        corridors = [r for r in regions if self._region_labels.get(r) == "corridor"]
        region = min(corridors) if corridors else self._new_region("corridor")
        self._carve(x, y, _CORRIDOR_CELL, region)

    def _remove_dead_ends(self, params: RoomParams, rand: ReproducibleRandom) -> None:
        kept = set(self.anchors)
        done = False
        while not done:
            done = True
            for x, y in iter_points(self.width, self.height):
                if self._kinds[x, y] != _CORRIDOR_CELL or (x, y) in kept:
                    continue

                exits = sum(
                    1
                    for dx, dy in (edge.offset for edge in Edge)
                    if self.is_open(x + dx, y + dy)
                )
                if exits > 1:
                    continue

                if params.dead_end_keep_chance > 0 and rand.chance(
                    params.dead_end_keep_chance
                ):
                    kept.add((x, y))
                    continue

                self._carve(x, y, _WALL_CELL, -1)
                done = False


def _span(start: int, end: int) -> list[int]:
    """Inclusive integer walk from start to end."""
    step = 1 if end >= start else -1
    return list(range(start, end + step, step))
