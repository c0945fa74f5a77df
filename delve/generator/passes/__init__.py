"""Ordered content passes run by the AreaGenerator."""

from .encounters import EncounterGen
from .features import FeatureGen
from .props import PropGen
from .terrain import TerrainGen
from .transitions import TransitionGen, TransitionOutput

__all__ = [
    "EncounterGen",
    "FeatureGen",
    "PropGen",
    "TerrainGen",
    "TransitionGen",
    "TransitionOutput",
]
