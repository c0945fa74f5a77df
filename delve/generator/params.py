"""Generator templates: raw builders and their resolved parameter objects.

Builders hold primitive values exactly as a resource layer deserializes them
(ids as strings, counts as ints, chances as ints in [0, 100]). Each params
class resolves its builder against a Module once, when the AreaGenerator is
constructed, and is immutable afterwards.

Sizes are in fine tiles unless noted otherwise. Room sizes are in maze cells
and terrain patch sizes are in wall grid cells.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from delve.errors import InvalidParameter, UnresolvedReference
from delve.module import Encounter, Feature, Module, Prop, TerrainKind, WallKind
from delve.types import Chance, EntityId, Point, RegionLabel, Size

from .weighted_list import WeightedList

if TYPE_CHECKING:
    from delve.util.rng import ReproducibleRandom

    from .model import TilesModel

type Side = Literal["north", "east", "south", "west", "any"]

REGION_LABELS: frozenset[RegionLabel] = frozenset(("wall", "corridor", "room"))


def _check_chance(name: str, value: Chance) -> None:
    if not 0 <= value <= 100:
        raise InvalidParameter(f"{name} must be in [0, 100], got {value}")


def _check_size_range(name: str, min_size: Size, max_size: Size) -> None:
    if min(min_size) < 1:
        raise InvalidParameter(f"{name} minimum size must be positive, got {min_size}")
    if min_size[0] > max_size[0] or min_size[1] > max_size[1]:
        raise InvalidParameter(
            f"{name} minimum size {min_size} exceeds maximum size {max_size}"
        )


def _check_non_negative(name: str, value: int) -> None:
    if value < 0:
        raise InvalidParameter(f"{name} must not be negative, got {value}")


def _region_set(name: str, labels: Iterable[str]) -> frozenset[RegionLabel]:
    result = frozenset(labels)
    unknown = result - REGION_LABELS
    if unknown:
        raise InvalidParameter(f"{name} has unknown region kinds {sorted(unknown)}")
    return result  # type: ignore[return-value]


# =============================================================================
# ROOMS & WALLS
# =============================================================================


@dataclass(frozen=True)
class RoomParams:
    """Maze carving configuration.

    Attributes:
        min_size: Smallest room in maze cells (rounded down to odd).
        max_size: Largest room in maze cells (rounded down to odd).
        min_rooms: Rooms that must fit, else the maze retries and fails.
        max_rooms: Stop placing rooms once this many fit.
        room_placement_attempts: Random placements tried per carve.
        winding_chance: Chance a corridor turns when it could go straight.
        extra_connection_chance: Chance a redundant connector is opened anyway.
        dead_end_keep_chance: Chance a dead-end corridor cell survives trimming.
        gen_corridors: Grow corridors between rooms.
        invert: Regions become walls on an open field instead of being carved
            out of solid rock.
        room_edge_overfill_chance: Per-cell chance a room cell leaves one wall
            facing edge uncarved.
        corridor_edge_overfill_chance: Per-region chance a corridor leaves one
            wall facing edge uncarved on all of its cells.
    """

    min_size: Size = (1, 1)
    max_size: Size = (3, 3)
    min_rooms: int = 0
    max_rooms: int = 8
    room_placement_attempts: int = 30
    winding_chance: Chance = 30
    extra_connection_chance: Chance = 10
    dead_end_keep_chance: Chance = 0
    gen_corridors: bool = True
    invert: bool = False
    room_edge_overfill_chance: Chance = 0
    corridor_edge_overfill_chance: Chance = 0

    def validate(self) -> None:
        _check_size_range("room", self.min_size, self.max_size)
        _check_non_negative("min_rooms", self.min_rooms)
        _check_non_negative("max_rooms", self.max_rooms)
        _check_non_negative("room_placement_attempts", self.room_placement_attempts)
        if self.min_rooms > self.max_rooms:
            raise InvalidParameter(
                f"min_rooms {self.min_rooms} exceeds max_rooms {self.max_rooms}"
            )
        _check_chance("winding_chance", self.winding_chance)
        _check_chance("extra_connection_chance", self.extra_connection_chance)
        _check_chance("dead_end_keep_chance", self.dead_end_keep_chance)
        _check_chance("room_edge_overfill_chance", self.room_edge_overfill_chance)
        _check_chance(
            "corridor_edge_overfill_chance", self.corridor_edge_overfill_chance
        )


@dataclass(frozen=True)
class WallKinds:
    """Weighted wall kinds a template may build its walls from."""

    kinds: WeightedList[WallKind]

    def pick_index(self, rand: ReproducibleRandom, model: TilesModel) -> int | None:
        """Pick a wall kind and return its index in the model's wall table."""
        kind = self.kinds.pick(rand)
        if kind is None:
            return None
        return model.wall_kind_index(kind.id)


# =============================================================================
# TERRAIN
# =============================================================================


@dataclass
class TerrainPatchBuilder:
    kinds: dict[EntityId, int]
    min_size: Size = (1, 1)
    max_size: Size = (2, 2)
    placement_chance: Chance = 50
    edge_underfill_chance: Chance = 0
    allowed_regions: tuple[str, ...] = ("room", "corridor")


@dataclass
class TerrainParamsBuilder:
    base_kinds: dict[EntityId, int] = field(default_factory=dict)
    patches: list[TerrainPatchBuilder] = field(default_factory=list)


@dataclass(frozen=True)
class TerrainPatch:
    """Patches of a secondary terrain painted over maze cells.

    Attributes:
        kinds: Terrain kinds a patch may use.
        min_size: Smallest patch in wall grid cells.
        max_size: Largest patch in wall grid cells.
        placement_chance: Chance per allowed maze cell to start a patch.
        edge_underfill_chance: Chance each patch border cell is skipped.
        allowed_regions: Maze cell kinds a patch may start on.
    """

    kinds: WeightedList[TerrainKind]
    min_size: Size
    max_size: Size
    placement_chance: Chance
    edge_underfill_chance: Chance
    allowed_regions: frozenset[RegionLabel]


@dataclass(frozen=True)
class TerrainParams:
    base_kinds: WeightedList[TerrainKind]
    patches: tuple[TerrainPatch, ...] = ()

    @classmethod
    def from_builder(
        cls, builder: TerrainParamsBuilder, module: Module
    ) -> TerrainParams:
        patches = []
        for patch in builder.patches:
            _check_size_range("terrain patch", patch.min_size, patch.max_size)
            _check_chance("terrain placement_chance", patch.placement_chance)
            _check_chance(
                "terrain edge_underfill_chance", patch.edge_underfill_chance
            )
            patches.append(
                TerrainPatch(
                    kinds=WeightedList(
                        patch.kinds, "terrain kind", module.terrain_kind
                    ),
                    min_size=patch.min_size,
                    max_size=patch.max_size,
                    placement_chance=patch.placement_chance,
                    edge_underfill_chance=patch.edge_underfill_chance,
                    allowed_regions=_region_set(
                        "terrain patch", patch.allowed_regions
                    ),
                )
            )

        return cls(
            base_kinds=WeightedList(
                builder.base_kinds, "terrain kind", module.terrain_kind
            ),
            patches=tuple(patches),
        )


# =============================================================================
# FEATURES
# =============================================================================


@dataclass
class FixedFeatureBuilder:
    id: EntityId
    location: Point


@dataclass
class FeaturePassBuilder:
    kinds: dict[EntityId, int]
    placement_attempts: int = 10
    spacing: int = 1
    allowed_regions: tuple[str, ...] = ("room",)


@dataclass
class FeatureParamsBuilder:
    fixed: list[FixedFeatureBuilder] = field(default_factory=list)
    passes: list[FeaturePassBuilder] = field(default_factory=list)


@dataclass(frozen=True)
class FeaturePass:
    kinds: WeightedList[Feature]
    placement_attempts: int
    spacing: int
    allowed_regions: frozenset[RegionLabel]


@dataclass(frozen=True)
class FeatureParams:
    """Features placed at fixed locations, then by random passes."""

    fixed: tuple[tuple[Feature, Point], ...] = ()
    passes: tuple[FeaturePass, ...] = ()

    @classmethod
    def from_builder(
        cls, builder: FeatureParamsBuilder, module: Module
    ) -> FeatureParams:
        fixed = []
        for entry in builder.fixed:
            feature = module.feature(entry.id)
            if feature is None:
                raise UnresolvedReference("feature", entry.id)
            fixed.append((feature, entry.location))

        passes = []
        for feature_pass in builder.passes:
            _check_non_negative(
                "feature placement_attempts", feature_pass.placement_attempts
            )
            _check_non_negative("feature spacing", feature_pass.spacing)
            passes.append(
                FeaturePass(
                    kinds=WeightedList(feature_pass.kinds, "feature", module.feature),
                    placement_attempts=feature_pass.placement_attempts,
                    spacing=feature_pass.spacing,
                    allowed_regions=_region_set(
                        "feature pass", feature_pass.allowed_regions
                    ),
                )
            )

        return cls(fixed=tuple(fixed), passes=tuple(passes))


# =============================================================================
# PROPS
# =============================================================================


@dataclass
class PropKindBuilder:
    props: dict[EntityId, int]
    placement_chance: Chance = 25
    spacing: int = 1
    allowed_regions: tuple[str, ...] = ("room",)


@dataclass
class PropParamsBuilder:
    kinds: dict[str, PropKindBuilder] = field(default_factory=dict)


@dataclass(frozen=True)
class PropKind:
    """A named group of props placed together in one pass.

    Attributes:
        props: Props the pass picks from.
        placement_chance: Chance per allowed maze cell to place a prop.
        spacing: Minimum free tiles between this prop and anything placed.
        allowed_regions: Maze cell kinds props may be placed in.
    """

    props: WeightedList[Prop]
    placement_chance: Chance
    spacing: int
    allowed_regions: frozenset[RegionLabel]


@dataclass(frozen=True)
class PropParams:
    kinds: dict[str, PropKind] = field(default_factory=dict)

    @classmethod
    def from_builder(cls, builder: PropParamsBuilder, module: Module) -> PropParams:
        kinds = {}
        for name, kind in builder.kinds.items():
            _check_chance(f"prop kind '{name}' placement_chance", kind.placement_chance)
            _check_non_negative(f"prop kind '{name}' spacing", kind.spacing)
            kinds[name] = PropKind(
                props=WeightedList(kind.props, "prop", module.prop),
                placement_chance=kind.placement_chance,
                spacing=kind.spacing,
                allowed_regions=_region_set(
                    f"prop kind '{name}'", kind.allowed_regions
                ),
            )
        return cls(kinds=kinds)


# =============================================================================
# ENCOUNTERS
# =============================================================================


@dataclass
class EncounterKindBuilder:
    encounters: dict[EntityId, int]
    placement_chance: Chance = 50
    size: Size = (2, 2)
    spacing: int = 2
    allowed_regions: tuple[str, ...] = ("room",)


@dataclass
class EncounterParamsBuilder:
    kinds: dict[str, EncounterKindBuilder] = field(default_factory=dict)


@dataclass(frozen=True)
class EncounterKind:
    """A named group of encounters placed together in one pass.

    Attributes:
        encounters: Encounters the pass picks from.
        placement_chance: Chance per allowed region to place an encounter.
        size: Spawn area of a placed encounter in fine tiles.
        spacing: Minimum free tiles between the spawn area and anything placed.
        allowed_regions: Region kinds encounters may be placed in.
    """

    encounters: WeightedList[Encounter]
    placement_chance: Chance
    size: Size
    spacing: int
    allowed_regions: frozenset[RegionLabel]


@dataclass(frozen=True)
class EncounterParams:
    kinds: dict[str, EncounterKind] = field(default_factory=dict)

    @classmethod
    def from_builder(
        cls, builder: EncounterParamsBuilder, module: Module
    ) -> EncounterParams:
        kinds = {}
        for name, kind in builder.kinds.items():
            label = f"encounter kind '{name}'"
            _check_chance(f"{label} placement_chance", kind.placement_chance)
            _check_size_range(label, kind.size, kind.size)
            _check_non_negative(f"{label} spacing", kind.spacing)
            kinds[name] = EncounterKind(
                encounters=WeightedList(kind.encounters, "encounter", module.encounter),
                placement_chance=kind.placement_chance,
                size=kind.size,
                spacing=kind.spacing,
                allowed_regions=_region_set(label, kind.allowed_regions),
            )
        return cls(kinds=kinds)


# =============================================================================
# TRANSITIONS
# =============================================================================


@dataclass
class TransitionKindBuilder:
    feature: EntityId
    edge_padding: int = 1
    spacing: int = 2


@dataclass
class TransitionParamsBuilder:
    kinds: dict[str, TransitionKindBuilder] = field(default_factory=dict)


@dataclass(frozen=True)
class TransitionKind:
    """How a transition of one kind looks and where it may sit.

    Attributes:
        feature: Feature drawn at the transition; its size is the footprint.
        edge_padding: Minimum distance from the area corners along an edge.
        spacing: Minimum free tiles between two transitions.
    """

    feature: Feature
    edge_padding: int
    spacing: int

    @property
    def size(self) -> Size:
        return self.feature.size


@dataclass(frozen=True)
class TransitionParams:
    kinds: dict[str, TransitionKind] = field(default_factory=dict)

    @classmethod
    def from_builder(
        cls, builder: TransitionParamsBuilder, module: Module
    ) -> TransitionParams:
        kinds = {}
        for name, kind in builder.kinds.items():
            feature = module.feature(kind.feature)
            if feature is None:
                raise UnresolvedReference("feature", kind.feature)
            label = f"transition kind '{name}'"
            _check_non_negative(f"{label} edge_padding", kind.edge_padding)
            _check_non_negative(f"{label} spacing", kind.spacing)
            kinds[name] = TransitionKind(
                feature=feature, edge_padding=kind.edge_padding, spacing=kind.spacing
            )
        return cls(kinds=kinds)


# =============================================================================
# GENERATOR
# =============================================================================


@dataclass
class GeneratorBuilder:
    """Raw generator template as read by the resource layer.

    Attributes:
        id: Template id.
        wall_kinds: Wall kind id -> weight.
        grid_width: Wall grid cells per maze cell, horizontally.
        grid_height: Wall grid cells per maze cell, vertically.
    """

    id: str
    wall_kinds: dict[EntityId, int] = field(default_factory=dict)
    grid_width: int = 4
    grid_height: int = 4
    rooms: RoomParams = field(default_factory=RoomParams)
    terrain: TerrainParamsBuilder = field(default_factory=TerrainParamsBuilder)
    features: FeatureParamsBuilder = field(default_factory=FeatureParamsBuilder)
    props: PropParamsBuilder = field(default_factory=PropParamsBuilder)
    encounters: EncounterParamsBuilder = field(default_factory=EncounterParamsBuilder)
    transitions: TransitionParamsBuilder = field(
        default_factory=TransitionParamsBuilder
    )


@dataclass(frozen=True)
class PassParams:
    """One requested prop or encounter pass: a template kind name and repeats."""

    kind: str
    count: int = 1


@dataclass(frozen=True)
class TransitionRequest:
    """A transition an area asks for.

    Attributes:
        kind: Transition kind name in the template.
        to: Destination the runtime layer links the transition to.
        side: Area edge to place it on, or "any".
        location: Explicit top-left location; overrides side.
    """

    kind: str
    to: str
    side: Side = "any"
    location: Point | None = None


@dataclass(frozen=True)
class GeneratorParams:
    """Per-area parameters supplied with each generate() call."""

    props: tuple[PassParams, ...] = ()
    encounters: tuple[PassParams, ...] = ()
    transitions: tuple[TransitionRequest, ...] = ()
