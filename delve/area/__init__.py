"""Finished area data handed to the runtime layer."""

from .layer import EncounterData, GeneratorOutput, Layer, PropData, passable_grid

__all__ = ["EncounterData", "GeneratorOutput", "Layer", "PropData", "passable_grid"]
