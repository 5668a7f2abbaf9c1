"""Constrain a tile map so one side type traces the corridors of a maze.

For every carved maze cell, the matching map cell may only keep tiles that
expose ``side_type`` towards open walls and (unless side connections are
allowed) do not expose it towards closed walls. Cells outside the maze may be
barred from showing ``side_type`` at all. Each per-cell restriction is
propagated through the collapse engine, so the map is consistent when
``full_collapse`` runs afterwards.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Coroutine
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from wfcmaze.environment.tiles import DIRECTIONS, Side, Tile
from wfcmaze.util.throttle import GenerationCanceled

from .wfc_solver import NoTilesLeftError, WFCSolver

if TYPE_CHECKING:
    from wfcmaze.environment.map import CarcassonneMap
    from wfcmaze.events import GenerationCallback

    from .maze import Maze, MazeCell

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MazeLimitOptions:
    """How a maze restricts the map.

    Attributes:
        side_type: The side that marks a path (e.g. ``Side.ROAD``).
        allow_side_connections: Let maze cells show ``side_type`` towards
            closed walls too. Only honoured when tiles outside the maze may
            show it.
        allow_tiles_outside_with_side: Leave cells outside the maze
            unrestricted.
    """

    side_type: Side
    allow_side_connections: bool = False
    allow_tiles_outside_with_side: bool = False

    def normalized(self) -> MazeLimitOptions:
        """Options with contradictory combinations resolved."""
        if not self.allow_tiles_outside_with_side and self.allow_side_connections:
            return dataclasses.replace(self, allow_side_connections=False)
        return self


def _fits_maze_cell(
    tile: Tile, maze: Maze, maze_cell: MazeCell, options: MazeLimitOptions
) -> bool:
    for direction in DIRECTIONS:
        has_side = tile.side(direction) == options.side_type
        if maze.is_open(maze_cell.x, maze_cell.y, direction):
            if not has_side:
                return False
        elif has_side and not options.allow_side_connections:
            return False
    return True


def _avoids_side(tile: Tile, side_type: Side) -> bool:
    return side_type not in tile.sides


def limit_map_to_maze(
    carcassonne_map: CarcassonneMap,
    maze: Maze,
    options: MazeLimitOptions,
    *,
    solver: WFCSolver | None = None,
    callback: GenerationCallback | None = None,
) -> Coroutine[Any, Any, bool]:
    """Restrict ``carcassonne_map`` to the corridors of ``maze`` in place.

    Map cells without a maze counterpart (a smaller maze) are left alone. The
    solver's throttle is started before this returns, so a ``cancel()``
    issued right after scheduling the run is honoured at its first step.

    Returns:
        A coroutine resolving to ``True`` when done, ``False`` when canceled
        through the solver's throttle.

    Raises:
        NoTilesLeftError: If some cell has no tile satisfying the maze. The map
            is then partially restricted and should be recreated.
    """
    if solver is None:
        solver = WFCSolver(carcassonne_map)
    options = options.normalized()

    solver.throttle.start()
    logger.info(
        f"Limiting {carcassonne_map.width}x{carcassonne_map.height} map to maze "
        f"with side {options.side_type.name}"
    )
    return _run(carcassonne_map, maze, options, solver, callback)


async def _run(
    carcassonne_map: CarcassonneMap,
    maze: Maze,
    options: MazeLimitOptions,
    solver: WFCSolver,
    callback: GenerationCallback | None,
) -> bool:
    try:
        await _limit(carcassonne_map, maze, options, solver, callback)
    except GenerationCanceled:
        logger.info("Limiting map to maze canceled")
        return False
    finally:
        solver.throttle.finish()
    return True


async def _limit(
    carcassonne_map: CarcassonneMap,
    maze: Maze,
    options: MazeLimitOptions,
    solver: WFCSolver,
    callback: GenerationCallback | None,
) -> None:
    for y in range(carcassonne_map.height):
        for x in range(carcassonne_map.width):
            if not maze.in_bounds(x, y):
                continue
            map_cell = carcassonne_map.cells[y][x]
            maze_cell = maze.cells[y][x]

            if maze_cell.is_maze:
                candidates = [
                    tile
                    for tile in map_cell.possible_tiles
                    if _fits_maze_cell(tile, maze, maze_cell, options)
                ]
            elif options.allow_tiles_outside_with_side:
                continue
            else:
                candidates = [
                    tile
                    for tile in map_cell.possible_tiles
                    if _avoids_side(tile, options.side_type)
                ]

            result = await solver.limit_tile_possibilities(x, y, candidates, callback)
            if not result.success:
                raise NoTilesLeftError(x, y, "could not limit tilemap to maze")
