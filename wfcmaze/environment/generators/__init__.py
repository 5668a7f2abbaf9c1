"""Map generation algorithms.

- MazeGenerator: Random-walk maze carving with optional braiding
- WFCSolver: Wave Function Collapse over side-matched tiles with backtracking
- limit_map_to_maze: Pre-constrains a tile map so a side type follows a maze
"""

from .maze import Maze, MazeCell, MazeGenerator, Wall, create_maze, process_maze
from .maze_bridge import MazeLimitOptions, limit_map_to_maze
from .wfc_solver import (
    CellState,
    LimitResult,
    NoTilesLeftError,
    OldCellStates,
    WFCContradiction,
    WFCSolver,
    collapse,
    full_collapse,
    limit_tile_possibilities,
    reset_old_cell_states,
)

__all__ = [
    "CellState",
    "LimitResult",
    "Maze",
    "MazeCell",
    "MazeGenerator",
    "MazeLimitOptions",
    "NoTilesLeftError",
    "OldCellStates",
    "WFCContradiction",
    "WFCSolver",
    "Wall",
    "collapse",
    "create_maze",
    "full_collapse",
    "limit_map_to_maze",
    "limit_tile_possibilities",
    "process_maze",
    "reset_old_cell_states",
]
