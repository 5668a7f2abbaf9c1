"""Shared builders and assertions for generator tests."""

from __future__ import annotations

from collections import deque

from wfcmaze.environment.generators.maze import Maze
from wfcmaze.environment.map import CarcassonneMap, project_sides
from wfcmaze.environment.tiles import Direction, Side, Tile
from wfcmaze.types import GridPos


def road_and_field_tiles() -> list[Tile]:
    """Two tiles: an all-road tile and one that is road only at the bottom.

    The second tile can only appear in the top row, above a road tile.
    """
    all_road = Tile(Side.ROAD, Side.ROAD, Side.ROAD, Side.ROAD)
    field_top = Tile(Side.FIELD, Side.FIELD, Side.ROAD, Side.FIELD)
    return [all_road, field_top]


def assert_neighbors_match(carcassonne_map: CarcassonneMap) -> None:
    """Every pair of adjacent collapsed cells must share the touching side."""
    for cell in carcassonne_map.iter_cells():
        tile = cell.tile
        assert tile is not None, f"({cell.x}, {cell.y}) is not collapsed"
        for direction in (Direction.RIGHT, Direction.DOWN):
            neighbor = carcassonne_map.neighbor(cell.x, cell.y, direction)
            if neighbor is None:
                continue
            assert neighbor.tile is not None
            assert tile.side(direction) == neighbor.tile.side(direction.opposite), (
                f"({cell.x}, {cell.y}) does not match its {direction.name} neighbor"
            )


def assert_sides_consistent(carcassonne_map: CarcassonneMap) -> None:
    """Each cell's side sets equal the projection of its possible tiles."""
    for cell in carcassonne_map.iter_cells():
        expected = project_sides(cell.possible_tiles)
        for direction in Direction:
            assert set(cell.sides[direction]) == set(expected[direction])
        assert cell.collapsed == (len(cell.possible_tiles) == 1)


def snapshot_map(carcassonne_map: CarcassonneMap) -> list[tuple[bool, tuple[Tile, ...]]]:
    return [
        (cell.collapsed, tuple(cell.possible_tiles))
        for cell in carcassonne_map.iter_cells()
    ]


def reachable_cells(maze: Maze, start: GridPos) -> set[GridPos]:
    """Cells reachable from ``start`` through open walls."""
    seen = {start}
    queue = deque([start])
    while queue:
        x, y = queue.popleft()
        for direction in Direction:
            if not maze.is_open(x, y, direction):
                continue
            neighbor = maze.neighbor(x, y, direction)
            if neighbor is None:
                continue
            pos = (neighbor.x, neighbor.y)
            if pos not in seen:
                seen.add(pos)
                queue.append(pos)
    return seen


def open_interior_walls(maze: Maze) -> int:
    """Number of open walls that separate two cells of the grid."""
    count = 0
    for cell in maze.iter_cells():
        for direction in (Direction.RIGHT, Direction.DOWN):
            if maze.neighbor(cell.x, cell.y, direction) is None:
                continue
            if maze.is_open(cell.x, cell.y, direction):
                count += 1
    return count
