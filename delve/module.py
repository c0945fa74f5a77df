"""Resolved module entities consumed by the generator.

The generator never loads resources itself. A resource layer builds these
entities (from files, a database, or test fixtures) and hands them over in a
Module, which the generator queries by id when an AreaGenerator is
constructed.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import IntEnum

from delve import config
from delve.types import EntityId, Size


class Edge(IntEnum):
    """The four sides of a grid cell.

    Values match the indices returned by Maze.neighbors (index 0 is the cell
    itself), so an Edge can index a neighbor list directly.
    """

    NORTH = 1
    EAST = 2
    SOUTH = 3
    WEST = 4

    @property
    def offset(self) -> tuple[int, int]:
        return _EDGE_OFFSETS[self]


_EDGE_OFFSETS: dict[Edge, tuple[int, int]] = {
    Edge.NORTH: (0, -1),
    Edge.EAST: (1, 0),
    Edge.SOUTH: (0, 1),
    Edge.WEST: (-1, 0),
}


@dataclass(frozen=True)
class Tile:
    """A single placeable tile image.

    Attributes:
        id: Unique tile id.
        layer: Name of the layer this tile is drawn on.
        width: Width in fine tiles.
        height: Height in fine tiles.
        impassable: Whether the tile blocks movement over its whole footprint.
    """

    id: EntityId
    layer: str
    width: int = 1
    height: int = 1
    impassable: bool = False


@dataclass(frozen=True)
class WallKind:
    """A family of wall tiles.

    Attributes:
        id: Unique wall kind id.
        interior: Tile drawn on every wall grid cell of this kind.
        edges: Tiles drawn on an open cell whose neighbor in the given
            direction is a wall of this kind.
    """

    id: EntityId
    interior: Tile
    edges: dict[Edge, Tile] = field(default_factory=dict)


@dataclass(frozen=True)
class TerrainKind:
    """A ground terrain type.

    Attributes:
        id: Unique terrain kind id.
        base: Tile drawn on every open cell of this terrain.
        borders: Tiles drawn on a neighboring cell of different terrain, keyed
            by the direction in which this terrain lies.
    """

    id: EntityId
    base: Tile
    borders: dict[Edge, Tile] = field(default_factory=dict)


@dataclass(frozen=True)
class Feature:
    """A pre-arranged group of tiles placed as a unit (altars, stairs, pools).

    Attributes:
        id: Unique feature id.
        size: Footprint in fine tiles.
        tiles: (tile, dx, dy) placements relative to the feature's origin.
    """

    id: EntityId
    size: Size
    tiles: tuple[tuple[Tile, int, int], ...] = ()


@dataclass(frozen=True)
class Prop:
    """A placeable object (barrels, crates, chests)."""

    id: EntityId
    size: Size = (1, 1)
    impassable: bool = True


@dataclass(frozen=True)
class Encounter:
    """A group of hostiles spawned by the runtime layer at a placed location."""

    id: EntityId


class Module:
    """Read-only registry of resolved entities, queried by id.

    Lookups return None for unknown ids; the generator turns that into an
    UnresolvedReference when it is constructed.
    """

    def __init__(
        self,
        *,
        tiles: Iterable[Tile] = (),
        wall_kinds: Iterable[WallKind] = (),
        terrain_kinds: Iterable[TerrainKind] = (),
        features: Iterable[Feature] = (),
        props: Iterable[Prop] = (),
        encounters: Iterable[Encounter] = (),
        layers: Iterable[str] = config.DEFAULT_LAYERS,
        wall_grid_size: Size = config.DEFAULT_WALL_GRID_SIZE,
    ) -> None:
        self.tiles: dict[EntityId, Tile] = {t.id: t for t in tiles}
        self.wall_kinds: dict[EntityId, WallKind] = {k.id: k for k in wall_kinds}
        self.terrain_kinds: dict[EntityId, TerrainKind] = {
            k.id: k for k in terrain_kinds
        }
        self.features: dict[EntityId, Feature] = {f.id: f for f in features}
        self.props: dict[EntityId, Prop] = {p.id: p for p in props}
        self.encounters: dict[EntityId, Encounter] = {e.id: e for e in encounters}
        self.layers: tuple[str, ...] = tuple(layers)
        self.wall_grid_size = wall_grid_size

    def tile(self, tile_id: EntityId) -> Tile | None:
        return self.tiles.get(tile_id)

    def wall_kind(self, kind_id: EntityId) -> WallKind | None:
        return self.wall_kinds.get(kind_id)

    def terrain_kind(self, kind_id: EntityId) -> TerrainKind | None:
        return self.terrain_kinds.get(kind_id)

    def feature(self, feature_id: EntityId) -> Feature | None:
        return self.features.get(feature_id)

    def prop(self, prop_id: EntityId) -> Prop | None:
        return self.props.get(prop_id)

    def encounter(self, encounter_id: EntityId) -> Encounter | None:
        return self.encounters.get(encounter_id)
