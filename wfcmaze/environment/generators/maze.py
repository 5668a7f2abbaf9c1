"""Random-walk maze carving over a rectangular grid.

Walls live in a single boolean arena (``Maze.wall_open``). Each cell stores the
arena indices of its four walls, and two adjacent cells store the *same* index
for the wall between them, so opening a wall from either side is visible from
the other.

Carving follows Wilson's algorithm in simplified form:

1. One random cell seeds the maze.
2. From a random unvisited cell, walk randomly until the walk hits the maze,
   remembering at each cell the direction last taken out of it.
3. Walk again from the same start following the remembered directions,
   adding each cell to the maze and opening the wall behind it. Revisited cells
   keep only their latest direction, which erases loops from the carved path.
4. Repeat until ``path_percentage`` of the grid belongs to the maze, then open
   each closed wall between two maze cells with probability
   ``wall_removal_percentage`` to add cycles.
"""

from __future__ import annotations

import logging
from collections.abc import Coroutine, Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np

from wfcmaze import config
from wfcmaze.environment.tiles import DIRECTIONS, Direction
from wfcmaze.events import CellHighlightEvent, MazePathEvent
from wfcmaze.util import rng
from wfcmaze.util.misc import require_fraction
from wfcmaze.util.throttle import GenerationCanceled, Throttle

if TYPE_CHECKING:
    from wfcmaze.events import GenerationCallback
    from wfcmaze.types import GridCoord, GridPos
    from wfcmaze.util.rng import RNG

logger = logging.getLogger(__name__)

_rng = rng.get("maze.carve")


@dataclass(frozen=True, slots=True)
class CellWalls:
    """Arena indices of the four walls around one cell."""

    top: int
    right: int
    bottom: int
    left: int

    def index(self, direction: Direction) -> int:
        return (self.top, self.right, self.bottom, self.left)[direction]


class Wall:
    """View of one wall in a maze's arena."""

    __slots__ = ("_arena", "index")

    def __init__(self, arena: np.ndarray, index: int) -> None:
        self._arena = arena
        self.index = index

    @property
    def open(self) -> bool:
        return bool(self._arena[self.index])

    @open.setter
    def open(self, value: bool) -> None:
        self._arena[self.index] = value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Wall):
            return NotImplemented
        return self._arena is other._arena and self.index == other.index

    def __hash__(self) -> int:
        return hash((id(self._arena), self.index))

    def __repr__(self) -> str:
        return f"Wall(index={self.index}, open={self.open})"


@dataclass
class MazeCell:
    """One maze cell.

    ``solver_direction`` is scratch state of the random walk: the direction last
    taken out of this cell. It is only meaningful while the cell is part of an
    unfinished walk.
    """

    x: GridCoord
    y: GridCoord
    walls: CellWalls
    is_maze: bool = False
    solver_direction: Direction = Direction.UP


class Maze:
    """A width x height grid of maze cells with shared walls."""

    def __init__(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"Maze size must be positive, got {width}x{height}")
        self.width = width
        self.height = height

        # Horizontal walls: (height + 1) rows of width walls, row y sits above
        # cell row y. Vertical walls follow: height rows of (width + 1).
        horizontal_count = (height + 1) * width
        vertical_count = height * (width + 1)
        self.wall_open = np.zeros(horizontal_count + vertical_count, dtype=bool)

        def h(x: int, y: int) -> int:
            return y * width + x

        def v(x: int, y: int) -> int:
            return horizontal_count + y * (width + 1) + x

        self.cells: list[list[MazeCell]] = [
            [
                MazeCell(
                    x=x,
                    y=y,
                    walls=CellWalls(
                        top=h(x, y), right=v(x + 1, y), bottom=h(x, y + 1), left=v(x, y)
                    ),
                )
                for x in range(width)
            ]
            for y in range(height)
        ]

    def in_bounds(self, x: GridCoord, y: GridCoord) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def cell(self, x: GridCoord, y: GridCoord) -> MazeCell:
        return self.cells[y][x]

    def neighbor(
        self, x: GridCoord, y: GridCoord, direction: Direction
    ) -> MazeCell | None:
        dx, dy = direction.offset
        nx, ny = x + dx, y + dy
        if not self.in_bounds(nx, ny):
            return None
        return self.cells[ny][nx]

    def in_bounds_directions(self, x: GridCoord, y: GridCoord) -> list[Direction]:
        """Directions from (x, y) that lead to another cell."""
        return [d for d in DIRECTIONS if self.neighbor(x, y, d) is not None]

    def wall(self, x: GridCoord, y: GridCoord, direction: Direction) -> Wall:
        return Wall(self.wall_open, self.cells[y][x].walls.index(direction))

    def is_open(self, x: GridCoord, y: GridCoord, direction: Direction) -> bool:
        return bool(self.wall_open[self.cells[y][x].walls.index(direction)])

    def set_open(
        self, x: GridCoord, y: GridCoord, direction: Direction, is_open: bool = True
    ) -> None:
        self.wall_open[self.cells[y][x].walls.index(direction)] = is_open

    def iter_cells(self) -> Iterator[MazeCell]:
        for row in self.cells:
            yield from row

    @property
    def maze_cell_count(self) -> int:
        return sum(cell.is_maze for cell in self.iter_cells())


def create_maze(width: int, height: int) -> Maze:
    """Create a maze with every wall closed and no cell carved."""
    return Maze(width, height)


class MazeGenerator:
    """Carves mazes; settings are read at the start of each run.

    Args:
        throttle: Pacing/cancellation state. A private, unpaced throttle is
            created when omitted.
        rng: Random source for seed, walk and braiding choices.
        path_percentage: Fraction of cells to carve before stopping.
        wall_removal_percentage: Chance to open each closed wall between two
            maze cells once carving is done.
    """

    def __init__(
        self,
        *,
        throttle: Throttle | None = None,
        rng: RNG | None = None,
        path_percentage: float = config.MAZE_PATH_PERCENTAGE,
        wall_removal_percentage: float = config.RANDOM_WALL_REMOVAL_PERCENTAGE,
    ) -> None:
        self.throttle = throttle if throttle is not None else Throttle(name="maze")
        self.rng = rng if rng is not None else _rng
        self.path_percentage = path_percentage
        self.wall_removal_percentage = wall_removal_percentage

    @property
    def path_percentage(self) -> float:
        return self._path_percentage

    @path_percentage.setter
    def path_percentage(self, value: float) -> None:
        self._path_percentage = require_fraction("path_percentage", value)

    @property
    def wall_removal_percentage(self) -> float:
        return self._wall_removal_percentage

    @wall_removal_percentage.setter
    def wall_removal_percentage(self, value: float) -> None:
        self._wall_removal_percentage = require_fraction(
            "wall_removal_percentage", value
        )

    def process_maze(
        self, maze: Maze, callback: GenerationCallback | None = None
    ) -> Coroutine[Any, Any, bool]:
        """Carve ``maze`` in place.

        The throttle is started before this returns, so a ``cancel()`` issued
        right after scheduling the run is honoured at its first step.

        Returns:
            A coroutine resolving to ``True`` when carving finished, ``False``
            when it was canceled.
        """
        self.throttle.start()
        logger.info(f"Carving {maze.width}x{maze.height} maze")
        return self._run(maze, callback)

    async def _run(self, maze: Maze, callback: GenerationCallback | None) -> bool:
        try:
            await self._carve(maze, callback)
        except GenerationCanceled:
            logger.info(f"Maze carving canceled after {self.throttle.steps_taken} steps")
            return False
        finally:
            self.throttle.finish()

        opened = self._braid(maze)
        logger.info(
            f"Maze carved: {maze.maze_cell_count} cells, {opened} extra walls opened"
        )
        return True

    async def _carve(self, maze: Maze, callback: GenerationCallback | None) -> None:
        cells = list(maze.iter_cells())
        total = len(cells)

        seed = self.rng.choice(cells)
        seed.is_maze = True
        if callback is not None:
            callback(CellHighlightEvent(seed.x, seed.y))

        while True:
            remaining = [cell for cell in cells if not cell.is_maze]
            if not remaining or (total - len(remaining)) / total >= self.path_percentage:
                return

            start = self.rng.choice(remaining)
            await self._walk(maze, start, callback)
            await self._carve_walk(maze, start, callback)

    async def _walk(
        self, maze: Maze, start: MazeCell, callback: GenerationCallback | None
    ) -> None:
        """Random walk from ``start`` until a maze cell is reached."""
        path: list[GridPos] = [(start.x, start.y)]
        current = start
        while not current.is_maze:
            direction = self.rng.choice(maze.in_bounds_directions(current.x, current.y))
            current.solver_direction = direction
            await self.throttle.step()

            nxt = maze.neighbor(current.x, current.y, direction)
            assert nxt is not None
            current = nxt
            if callback is not None:
                path.append((current.x, current.y))
                callback(CellHighlightEvent(current.x, current.y))
                callback(MazePathEvent(tuple(path)))

    async def _carve_walk(
        self, maze: Maze, start: MazeCell, callback: GenerationCallback | None
    ) -> None:
        """Follow the recorded directions from ``start``, carving as it goes."""
        carved = 0
        current = start
        while not current.is_maze:
            current.is_maze = True
            maze.set_open(current.x, current.y, current.solver_direction)
            carved += 1
            if callback is not None:
                callback(CellHighlightEvent(current.x, current.y))
            await self.throttle.step()

            nxt = maze.neighbor(current.x, current.y, current.solver_direction)
            assert nxt is not None
            current = nxt
        logger.debug(f"Carved {carved} cells from ({start.x}, {start.y})")

    def _braid(self, maze: Maze) -> int:
        """Open closed walls between maze cells at random. Returns the count."""
        opened = 0
        if self.wall_removal_percentage <= 0:
            return opened
        for cell in maze.iter_cells():
            if not cell.is_maze:
                continue
            for direction in (Direction.RIGHT, Direction.DOWN):
                neighbor = maze.neighbor(cell.x, cell.y, direction)
                if neighbor is None or not neighbor.is_maze:
                    continue
                if maze.is_open(cell.x, cell.y, direction):
                    continue
                if self.rng.random() < self.wall_removal_percentage:
                    maze.set_open(cell.x, cell.y, direction)
                    opened += 1
        return opened


def process_maze(
    maze: Maze,
    callback: GenerationCallback | None = None,
    *,
    throttle: Throttle | None = None,
    rng: RNG | None = None,
    path_percentage: float = config.MAZE_PATH_PERCENTAGE,
    wall_removal_percentage: float = config.RANDOM_WALL_REMOVAL_PERCENTAGE,
) -> Coroutine[Any, Any, bool]:
    """Carve ``maze`` with a one-off ``MazeGenerator``."""
    generator = MazeGenerator(
        throttle=throttle,
        rng=rng,
        path_percentage=path_percentage,
        wall_removal_percentage=wall_removal_percentage,
    )
    return generator.process_maze(maze, callback)


# =============================================================================
# Text rendering
# =============================================================================

_SEGMENT = "━" * 6
_BLANK = " " * 6

# Junction glyph keyed by which arms are walls: (left, top, right, bottom).
_JUNCTIONS: dict[tuple[bool, bool, bool, bool], str] = {
    (False, False, False, False): "▪",
    (False, False, False, True): "╻",
    (False, False, True, False): "╺",
    (False, False, True, True): "┏",
    (False, True, False, False): "╹",
    (False, True, False, True): "┃",
    (False, True, True, False): "┗",
    (False, True, True, True): "┣",
    (True, False, False, False): "╸",
    (True, False, False, True): "┓",
    (True, False, True, False): "━",
    (True, False, True, True): "┳",
    (True, True, False, False): "┛",
    (True, True, False, True): "┫",
    (True, True, True, False): "┻",
    (True, True, True, True): "╋",
}


def render_maze_text(maze: Maze) -> str:
    """Render the maze as box-drawing text. Uncarved cells are marked ``XX``."""
    w, h = maze.width, maze.height
    lines: list[str] = []

    top = "┏"
    for x in range(w - 1):
        top += _SEGMENT + ("━" if maze.is_open(x, 0, Direction.RIGHT) else "┳")
    lines.append(top + _SEGMENT + "┓")

    for y in range(h):
        for i in range(3):
            line = "┃"
            for x in range(w):
                cell = maze.cells[y][x]
                line += "  XX  " if i == 1 and not cell.is_maze else _BLANK
                if x < w - 1 and maze.is_open(x, y, Direction.RIGHT):
                    line += " "
                else:
                    line += "┃"
            lines.append(line)

        if y == h - 1:
            continue

        line = "┃" if maze.is_open(0, y, Direction.DOWN) else "┣"
        for x in range(w):
            bottom_open = maze.is_open(x, y, Direction.DOWN)
            line += _BLANK if bottom_open else _SEGMENT
            if x < w - 1:
                arms = (
                    not bottom_open,
                    not maze.is_open(x, y, Direction.RIGHT),
                    not maze.is_open(x + 1, y, Direction.DOWN),
                    not maze.is_open(x, y + 1, Direction.RIGHT),
                )
                line += _JUNCTIONS[arms]
            else:
                line += "┃" if bottom_open else "┫"
        lines.append(line)

    bottom = "┗"
    for x in range(w - 1):
        bottom += _SEGMENT + ("━" if maze.is_open(x, h - 1, Direction.RIGHT) else "┻")
    lines.append(bottom + _SEGMENT + "┛")
    return "\n".join(lines)
