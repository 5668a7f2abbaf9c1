"""
Configuration constants.

Centralizes the default values used by the generators and the throttle.
Organized by functional area for easy maintenance.
"""

# =============================================================================
# GENERAL
# =============================================================================

# Master seed passed to rng.init() by the command-line entry point
# RANDOM_SEED = None
RANDOM_SEED = "carcassonne"

# =============================================================================
# GRID
# =============================================================================

DEFAULT_MAP_WIDTH = 20
DEFAULT_MAP_HEIGHT = 18

# =============================================================================
# ANIMATION & THROTTLING
# =============================================================================

# UI animation speed in [1, 1000]. Higher is faster.
DEFAULT_ANIMATION_SPEED = 800
ANIMATION_SPEED_RANGE = (1.0, 1000.0)

# Curve steepness used when converting animation speed to a per-step delay
ANIMATION_SPEED_STEEPNESS = 0.005

# A fresh throttle runs unpaced until a delay is set.
DEFAULT_DELAY_PER_STEP_MS = 0.0

# How often a pending cancel() checks whether the generation task stopped
CANCEL_POLL_INTERVAL_S = 0.01

# Steps between forced event-loop yields when no sleep is due
IDLE_YIELD_STEPS = 256

# =============================================================================
# MAZE GENERATION
# =============================================================================

# Fraction of the grid that must be carved before the walk phase stops
MAZE_PATH_PERCENTAGE = 0.5

# Chance that a closed wall between two carved cells is opened afterwards
RANDOM_WALL_REMOVAL_PERCENTAGE = 0.4
