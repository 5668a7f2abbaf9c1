"""Grid cell model for tile maps.

A ``CarcassonneMap`` is a rectangular grid of ``MapCell`` objects indexed
``cells[y][x]``. Each cell holds the ordered list of tiles it may still become
and, per direction, the deduplicated sides those tiles expose. Neighbors are
found by indexing the grid; cells hold no links to each other.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field

from wfcmaze.types import GridCoord
from wfcmaze.util.misc import unique

from .tiles import DIRECTIONS, Direction, Side, Tile


def project_sides(tiles: Sequence[Tile]) -> dict[Direction, list[Side]]:
    """Deduplicated sides of ``tiles`` per direction, in first-seen order."""
    return {d: unique(tile.side(d) for tile in tiles) for d in DIRECTIONS}


@dataclass
class MapCell:
    """One grid position and the tiles it may still become.

    ``sides[d]`` always equals the deduplicated projection of
    ``possible_tiles`` onto direction ``d``. ``collapsed`` becomes true when a
    single tile remains.
    """

    x: GridCoord
    y: GridCoord
    possible_tiles: list[Tile]
    collapsed: bool = False
    sides: dict[Direction, list[Side]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.sides:
            self.refresh_sides()

    def refresh_sides(self) -> None:
        """Recompute ``sides`` from ``possible_tiles``."""
        self.sides = project_sides(self.possible_tiles)

    @property
    def tile(self) -> Tile | None:
        """The tile this cell collapsed to, or ``None``."""
        if self.collapsed and len(self.possible_tiles) == 1:
            return self.possible_tiles[0]
        return None


@dataclass
class CarcassonneMap:
    """A width x height grid of map cells, mutated in place by the generators."""

    width: int
    height: int
    cells: list[list[MapCell]]

    def in_bounds(self, x: GridCoord, y: GridCoord) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def cell(self, x: GridCoord, y: GridCoord) -> MapCell:
        return self.cells[y][x]

    def neighbor(
        self, x: GridCoord, y: GridCoord, direction: Direction
    ) -> MapCell | None:
        """Return the cell next to (x, y) in ``direction``, or ``None`` at the edge."""
        dx, dy = direction.offset
        nx, ny = x + dx, y + dy
        if not self.in_bounds(nx, ny):
            return None
        return self.cells[ny][nx]

    def iter_cells(self) -> Iterator[MapCell]:
        """Yield every cell row by row."""
        for row in self.cells:
            yield from row

    def uncollapsed_cells(self) -> list[MapCell]:
        return [cell for cell in self.iter_cells() if not cell.collapsed]

    @property
    def is_fully_collapsed(self) -> bool:
        return all(cell.collapsed for cell in self.iter_cells())


def create_map(width: int, height: int, tiles: Sequence[Tile]) -> CarcassonneMap:
    """Create an unconstrained map where every cell may become any of ``tiles``.

    Each cell receives its own copy of the list; the tiles themselves are
    shared.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Map size must be positive, got {width}x{height}")

    sides = project_sides(tiles)
    cells = [
        [
            MapCell(
                x=x,
                y=y,
                possible_tiles=list(tiles),
                sides={d: list(values) for d, values in sides.items()},
            )
            for x in range(width)
        ]
        for y in range(height)
    ]
    return CarcassonneMap(width=width, height=height, cells=cells)


# =============================================================================
# Text rendering
# =============================================================================

_CELL_WIDTH = 7


def _cell_lines(cell: MapCell) -> tuple[str, str, str]:
    if cell.collapsed:
        top, right, bottom, left = (
            int(cell.sides[d][0]) if cell.sides[d] else "-" for d in DIRECTIONS
        )
        return (
            f"  {top}    ",
            f"{left} #   {right}",
            f"  {bottom}    ",
        )
    count = str(len(cell.possible_tiles)).ljust(3)
    return ("  -    ", f"- {count} -", "  -    ")


def _border(width: int, left: str, middle: str, right: str) -> str:
    segment = "━" * _CELL_WIDTH
    return left + (segment + middle) * (width - 1) + segment + right


def render_map_text(carcassonne_map: CarcassonneMap) -> str:
    """Render the map as box-drawing text for logs and debugging.

    Collapsed cells show their four side values around a ``#``; uncollapsed
    cells show how many tiles they may still become.
    """
    lines = [_border(carcassonne_map.width, "┏", "┳", "┓")]
    for y, row in enumerate(carcassonne_map.cells):
        rendered = [_cell_lines(cell) for cell in row]
        for i in range(3):
            lines.append("┃" + "┃".join(cell[i] for cell in rendered) + "┃")
        if y < carcassonne_map.height - 1:
            lines.append(_border(carcassonne_map.width, "┣", "╋", "┫"))
    lines.append(_border(carcassonne_map.width, "┗", "┻", "┛"))
    return "\n".join(lines)
