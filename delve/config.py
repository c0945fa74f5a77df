"""
Configuration constants.

Centralizes the retry limits and defaults used throughout the generator.
Per-template values live on the builder dataclasses in
delve.generator.params; these are the internal policies behind them.
"""

from delve.types import Size

# =============================================================================
# GENERAL
# =============================================================================

# RANDOM_SEED = None
RANDOM_SEED = "burrito1"

# =============================================================================
# TILES
# =============================================================================

# Fine tiles covered by one cell of the wall/terrain grid
DEFAULT_WALL_GRID_SIZE: Size = (2, 2)

# Layer order used when a module does not declare one. Output layers keep
# this order; layers referenced only by tiles are appended after it.
DEFAULT_LAYERS: tuple[str, ...] = (
    "terrain",
    "terrain_border",
    "walls",
    "wall_border",
    "decoration",
)

# A maze cell needs an edge ring and a center, so it spans at least this many
# wall cells per side.
MIN_REGION_GRID_CELLS = 3

# =============================================================================
# MAZE
# =============================================================================

# Full carve retries before the maze gives up on min_rooms
MAZE_GENERATION_ATTEMPTS = 20

# =============================================================================
# PLACEMENT
# =============================================================================

# Attempts per requested transition before generation fails
TRANSITION_PLACEMENT_ATTEMPTS = 100

# Location tries per chosen encounter region
ENCOUNTER_PLACEMENT_ATTEMPTS = 10
