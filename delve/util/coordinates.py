"""Rectangles, grid iteration and bounds helpers shared by the generator."""

from __future__ import annotations

from collections.abc import Iterator

from delve.types import Point, Size, TileCoord


class Rect:
    """Rectangle/bounding box in tile coordinates (x2/y2 exclusive)."""

    def __init__(self, x: TileCoord, y: TileCoord, w: TileCoord, h: TileCoord) -> None:
        self.x1: TileCoord = x
        self.y1: TileCoord = y
        self.x2: TileCoord = x + w
        self.y2: TileCoord = y + h

    @classmethod
    def from_bounds(
        cls, x1: TileCoord, y1: TileCoord, x2: TileCoord, y2: TileCoord
    ) -> Rect:
        """Create a Rect from corner coordinates (x1, y1, x2, y2)."""
        width = x2 - x1
        height = y2 - y1
        return cls(x1, y1, width, height)

    @classmethod
    def at(cls, pos: Point, size: Size) -> Rect:
        """Create a Rect from a top-left position and a (width, height) size."""
        return cls(pos[0], pos[1], size[0], size[1])

    @property
    def width(self) -> TileCoord:
        return self.x2 - self.x1

    @property
    def height(self) -> TileCoord:
        return self.y2 - self.y1

    def center(self) -> tuple[int, int]:
        return ((self.x1 + self.x2 - 1) // 2, (self.y1 + self.y2 - 1) // 2)

    def intersects(self, other: Rect) -> bool:
        """True if the two rectangles share at least one tile."""
        return (
            self.x1 < other.x2
            and self.x2 > other.x1
            and self.y1 < other.y2
            and self.y2 > other.y1
        )

    def union(self, other: Rect) -> Rect:
        """Smallest rectangle covering both."""
        return Rect.from_bounds(
            min(self.x1, other.x1),
            min(self.y1, other.y1),
            max(self.x2, other.x2),
            max(self.y2, other.y2),
        )

    def expanded(self, amount: int) -> Rect:
        """Return a copy grown by amount tiles on every side."""
        return Rect.from_bounds(
            self.x1 - amount, self.y1 - amount, self.x2 + amount, self.y2 + amount
        )

    def contains(self, x: TileCoord, y: TileCoord) -> bool:
        return self.x1 <= x < self.x2 and self.y1 <= y < self.y2

    def points(self) -> Iterator[Point]:
        """Iterate every tile in the rectangle, row by row."""
        for y in range(self.y1, self.y2):
            for x in range(self.x1, self.x2):
                yield (x, y)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Rect):
            return NotImplemented
        return (self.x1, self.y1, self.x2, self.y2) == (
            other.x1,
            other.y1,
            other.x2,
            other.y2,
        )

    def __hash__(self) -> int:
        return hash((self.x1, self.y1, self.x2, self.y2))

    def __repr__(self) -> str:
        return f"Rect(x1={self.x1}, y1={self.y1}, x2={self.x2}, y2={self.y2})"


# =============================================================================
# GRID ITERATION
# =============================================================================


def iter_points(
    width: TileCoord, height: TileCoord, step_x: int = 1, step_y: int = 1
) -> Iterator[Point]:
    """Iterate grid points row by row, top-left first.

    Row-major order is part of the generation contract: every pass that walks
    a grid consumes randomness in this order.
    """
    for y in range(0, height, step_y):
        for x in range(0, width, step_x):
            yield (x, y)


# =============================================================================
# BOUNDS CHECKING HELPERS
# =============================================================================


def is_valid_tile_pos(pos: Point, width: TileCoord, height: TileCoord) -> bool:
    """Check if a tile position is within area bounds."""
    x, y = pos
    return 0 <= x < width and 0 <= y < height


def clamp_pos(pos: Point, width: TileCoord, height: TileCoord) -> Point:
    """Clamp a position into [0, width) x [0, height)."""
    x, y = pos
    return (max(0, min(x, width - 1)), max(0, min(y, height - 1)))
