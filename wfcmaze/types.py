from __future__ import annotations

from typing import NewType, TypeAlias

# =============================================================================
# SPATIAL TYPES
# =============================================================================

GridCoord: TypeAlias = int  # Always integer cell position

# Cell positions on a map or maze grid. Grids are indexed [y][x].
GridPos: TypeAlias = tuple[GridCoord, GridCoord]  # Example: (5, 3) = column 5, row 3

# =============================================================================
# TIME-RELATED TYPES
# =============================================================================

# Milliseconds of wall-clock time budgeted for a single throttled step.
StepDelayMs = NewType("StepDelayMs", float)

# =============================================================================
# RANDOMNESS
# =============================================================================

RandomSeed: TypeAlias = int | float | str | bytes | bytearray | None

# =============================================================================
# NUMERIC RANGES
# =============================================================================

FloatRange: TypeAlias = tuple[float, float]  # Inclusive (min, max)
