"""Exceptions raised by area generation.

Construction-time problems (unknown ids, out-of-range builder values) and
unsatisfiable generation constraints are fatal and propagate to the caller.
Clipped tile placements and empty weighted picks are not errors and never
raise.
"""

from __future__ import annotations


class GenerationError(Exception):
    """Base class for all area generation failures."""


class UnresolvedReference(GenerationError):
    """Raised when a named reference cannot be resolved against the module.

    Attributes:
        kind: Human-readable label of what was being resolved ("wall kind").
        id: The id that could not be found.
    """

    def __init__(self, kind: str, id: str) -> None:
        super().__init__(f"Unable to resolve {kind} '{id}'")
        self.kind = kind
        self.id = id


class InvalidParameter(GenerationError):
    """Raised when a builder value is out of its allowed range."""


class GenerationFailed(GenerationError):
    """Raised when the configured constraints cannot be satisfied.

    This occurs when the maze cannot fit the required rooms within its retry
    limit, or a transition cannot be placed on the requested side.
    """


class LayerError(GenerationError):
    """Raised when a layer is built with inconsistent dimensions."""
