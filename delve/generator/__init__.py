"""Area generator: templates, the maze model and the generation pipeline.

Typical use:

    generator = AreaGenerator(builder, module)
    rand = ReproducibleRandom("dungeon-3")
    transitions = generator.generate_transitions(width, height, rand, params)
    output = generator.generate(width, height, rand, params, transitions)
"""

from .area_generator import AreaGenerator, create_layers, is_rough_edge
from .maze import Corridor, Maze, Room, TileKind, Wall
from .model import GenModel, TilesModel
from .params import (
    EncounterKindBuilder,
    EncounterParamsBuilder,
    FeatureParamsBuilder,
    FeaturePassBuilder,
    FixedFeatureBuilder,
    GeneratorBuilder,
    GeneratorParams,
    PassParams,
    PropKindBuilder,
    PropParamsBuilder,
    RoomParams,
    TerrainParamsBuilder,
    TerrainPatchBuilder,
    TransitionKindBuilder,
    TransitionParamsBuilder,
    TransitionRequest,
)
from .passes import TransitionOutput
from .weighted_list import WeightedList

__all__ = [
    "AreaGenerator",
    "Corridor",
    "EncounterKindBuilder",
    "EncounterParamsBuilder",
    "FeatureParamsBuilder",
    "FeaturePassBuilder",
    "FixedFeatureBuilder",
    "GenModel",
    "GeneratorBuilder",
    "GeneratorParams",
    "Maze",
    "PassParams",
    "PropKindBuilder",
    "PropParamsBuilder",
    "Room",
    "RoomParams",
    "TerrainParamsBuilder",
    "TerrainPatchBuilder",
    "TileKind",
    "TilesModel",
    "TransitionKindBuilder",
    "TransitionOutput",
    "TransitionParamsBuilder",
    "TransitionRequest",
    "Wall",
    "WeightedList",
    "create_layers",
    "is_rough_edge",
]
