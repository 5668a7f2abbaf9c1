"""Wave Function Collapse over a grid of side-matched tiles.

Every cell of a ``CarcassonneMap`` starts with the full tile palette. Narrowing
a cell filters its candidates against the side sets of its four neighbors and,
whenever the sides the cell exposes shrink, re-narrows the affected neighbors
in turn. ``full_collapse`` repeatedly picks the cell with the fewest remaining
tiles, collapses it to a random candidate and propagates, undoing the previous
decision when a cell runs out of candidates.

Usage:
    from wfcmaze.environment.generators.wfc_solver import WFCSolver

    solver = WFCSolver(carcassonne_map, throttle=Throttle(name="map"))
    completed = await solver.full_collapse(callback=bus.publish)

Propagation details:
    Each narrowing call snapshots every cell it touches (first write wins) in an
    ``OldCellStates`` mapping. A failed call leaves earlier mutations of the
    same chain in place and returns the snapshot so the caller can revert.

    Whether a neighbor needs re-narrowing is decided by comparing the *size* of
    the side sets that face each other. Since a narrowed cell's sides are always
    a subset of its neighbors' facing sides, equal sizes mean equal sets.

    Propagation is depth-first in Up, Right, Down, Left order. It runs on an
    explicit stack of frames rather than native recursion so large maps do not
    exhaust the interpreter's recursion limit; the order of visits is the same.
"""

from __future__ import annotations

import logging
from collections.abc import Coroutine, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, TypeAlias

from wfcmaze.environment.map import CarcassonneMap, MapCell
from wfcmaze.environment.tiles import DIRECTIONS, Direction, Side, Tile
from wfcmaze.events import (
    BacktrackEvent,
    CellCollapsedEvent,
    CellHighlightEvent,
    SideCheckEvent,
    TileCheckProgressEvent,
)
from wfcmaze.util import rng
from wfcmaze.util.throttle import GenerationCanceled, Throttle

if TYPE_CHECKING:
    from wfcmaze.events import GenerationCallback
    from wfcmaze.util.rng import RNG

logger = logging.getLogger(__name__)

_rng = rng.get("map.collapse")


class WFCContradiction(Exception):
    """Raised when the map reaches a state with no valid tiles."""


class NoTilesLeftError(WFCContradiction):
    """Raised when a cell has no viable tile and nothing is left to undo.

    The map is left partially mutated and should be recreated.
    """

    def __init__(self, x: int, y: int, reason: str) -> None:
        super().__init__(f"No possible tiles left at ({x}, {y}): {reason}")
        self.x = x
        self.y = y


@dataclass(frozen=True, slots=True)
class CellState:
    """Saved value of one cell, used to undo a failed or backtracked branch."""

    collapsed: bool
    possible_tiles: tuple[Tile, ...]


# y -> x -> state of every cell touched by one narrowing call.
OldCellStates: TypeAlias = dict[int, dict[int, CellState]]


@dataclass
class LimitResult:
    """Outcome of ``limit_tile_possibilities``.

    ``old_cell_states`` is returned on success and failure alike; on failure
    the caller must pass it to ``reset_old_cell_states``.
    """

    success: bool
    old_cell_states: OldCellStates = field(default_factory=dict)


@dataclass
class _Frame:
    """A cell whose neighbors are still being visited during propagation."""

    x: int
    y: int
    next_direction: int = 0


class WFCSolver:
    """Collapse engine bound to one map.

    Args:
        carcassonne_map: The map to narrow, mutated in place.
        throttle: Pacing/cancellation state for this task. A private, unpaced
            throttle is created when omitted.
        rng: Random source for candidate shuffling.
    """

    def __init__(
        self,
        carcassonne_map: CarcassonneMap,
        *,
        throttle: Throttle | None = None,
        rng: RNG | None = None,
    ) -> None:
        self.map = carcassonne_map
        self.throttle = throttle if throttle is not None else Throttle(name="map")
        self.rng = rng if rng is not None else _rng
        self.history: list[OldCellStates] = []
        self.priority_cell: MapCell | None = None

    # ------------------------------------------------------------------
    # Narrowing and propagation
    # ------------------------------------------------------------------

    async def limit_tile_possibilities(
        self,
        x: int,
        y: int,
        candidates: Sequence[Tile],
        callback: GenerationCallback | None = None,
    ) -> LimitResult:
        """Restrict cell (x, y) to ``candidates`` and propagate to its neighbors.

        Candidates the cell can no longer become are dropped, as are those whose
        sides do not fit the neighboring cells.
        """
        old_cell_states: OldCellStates = {}
        seed = self.map.cell(x, y)
        if not await self._narrow(seed, candidates, old_cell_states, callback):
            logger.debug(
                f"None of {len(candidates)} candidate(s) fit seed ({x}, {y})"
            )
            return LimitResult(False, old_cell_states)

        stack = [_Frame(x, y)]
        while stack:
            frame = stack[-1]
            if frame.next_direction == len(DIRECTIONS):
                stack.pop()
                continue

            direction = DIRECTIONS[frame.next_direction]
            frame.next_direction += 1

            neighbor = self.map.neighbor(frame.x, frame.y, direction)
            if neighbor is None or neighbor.collapsed:
                continue

            current = self.map.cells[frame.y][frame.x]
            if len(neighbor.sides[direction.opposite]) == len(current.sides[direction]):
                continue

            if not await self._narrow(
                neighbor, neighbor.possible_tiles, old_cell_states, callback
            ):
                return LimitResult(False, old_cell_states)
            stack.append(_Frame(neighbor.x, neighbor.y))

        return LimitResult(True, old_cell_states)

    async def collapse(
        self,
        x: int,
        y: int,
        tile: Tile,
        callback: GenerationCallback | None = None,
    ) -> LimitResult:
        """Collapse cell (x, y) to ``tile`` and propagate."""
        return await self.limit_tile_possibilities(x, y, [tile], callback)

    async def _narrow(
        self,
        cell: MapCell,
        candidates: Sequence[Tile],
        old_cell_states: OldCellStates,
        callback: GenerationCallback | None,
    ) -> bool:
        """Filter one cell's candidates. Returns ``False`` if none survive.

        The cell is left untouched on failure.
        """
        row = old_cell_states.setdefault(cell.y, {})
        if cell.x not in row:
            row[cell.x] = CellState(cell.collapsed, tuple(cell.possible_tiles))

        # Neighbor side sets do not change while this cell is being filtered.
        constraints: list[tuple[Direction, set[Side]]] = []
        for direction in DIRECTIONS:
            neighbor = self.map.neighbor(cell.x, cell.y, direction)
            if neighbor is not None:
                constraints.append((direction, set(neighbor.sides[direction.opposite])))

        allowed = set(cell.possible_tiles)
        total = len(candidates)
        survivors: list[Tile] = []
        for index, tile in enumerate(candidates):
            await self.throttle.step()
            if tile in allowed and self._fits(cell, tile, constraints, callback):
                survivors.append(tile)
            if callback is not None:
                callback(TileCheckProgressEvent(cell.x, cell.y, index + 1, total))

        if not survivors:
            return False

        cell.possible_tiles = survivors
        if len(survivors) == 1:
            cell.collapsed = True
            only = survivors[0]
            cell.sides = {d: [only.side(d)] for d in DIRECTIONS}
            if callback is not None:
                callback(CellCollapsedEvent(cell.x, cell.y, only))
        else:
            cell.refresh_sides()
        return True

    @staticmethod
    def _fits(
        cell: MapCell,
        tile: Tile,
        constraints: list[tuple[Direction, set[Side]]],
        callback: GenerationCallback | None,
    ) -> bool:
        for direction, neighbor_sides in constraints:
            ok = tile.side(direction) in neighbor_sides
            if callback is not None:
                callback(SideCheckEvent(cell.x, cell.y, direction, ok))
            if not ok:
                return False
        return True

    def reset_old_cell_states(self, old_cell_states: OldCellStates) -> None:
        """Restore every recorded cell and re-derive its sides."""
        for y, row in old_cell_states.items():
            for x, state in row.items():
                cell = self.map.cells[y][x]
                cell.possible_tiles = list(state.possible_tiles)
                cell.collapsed = state.collapsed
                cell.refresh_sides()

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def _pick_cell(self, uncollapsed: list[MapCell]) -> MapCell:
        """Most recently failed cell first, otherwise fewest remaining tiles."""
        if self.priority_cell is not None and not self.priority_cell.collapsed:
            return self.priority_cell
        return min(uncollapsed, key=lambda cell: len(cell.possible_tiles))

    def full_collapse(
        self, callback: GenerationCallback | None = None
    ) -> Coroutine[Any, Any, bool]:
        """Collapse every cell of the map.

        The throttle is started before this returns, so a ``cancel()`` issued
        right after scheduling the run is honoured at its first step. The
        returned coroutine must be awaited to release the throttle.

        Returns:
            A coroutine resolving to ``True`` when the map is fully collapsed,
            ``False`` when the run was canceled through the throttle.

        Raises:
            RuntimeError: If the throttle is already driving another run.
            NoTilesLeftError: (when awaited) If a dead end is reached with no
                decision left to undo. The map is then in an undefined state.
        """
        self.throttle.start()
        logger.info(f"Collapsing {self.map.width}x{self.map.height} map")
        return self._run_collapse(callback)

    async def _run_collapse(self, callback: GenerationCallback | None) -> bool:
        try:
            await self._search(callback)
        except GenerationCanceled:
            logger.info(f"Map collapse canceled after {self.throttle.steps_taken} steps")
            return False
        finally:
            self.throttle.finish()

        logger.info(
            f"Map collapsed in {self.throttle.steps_taken} steps "
            f"({self.throttle.elapsed:.2f}s)"
        )
        return True

    async def _search(self, callback: GenerationCallback | None) -> None:
        self.history = []
        self.priority_cell = None

        while uncollapsed := self.map.uncollapsed_cells():
            cell = self._pick_cell(uncollapsed)
            if callback is not None:
                callback(CellHighlightEvent(cell.x, cell.y))

            candidates = list(cell.possible_tiles)
            self.rng.shuffle(candidates)

            for candidate in candidates:
                result = await self.limit_tile_possibilities(
                    cell.x, cell.y, [candidate], callback
                )
                if result.success:
                    self.history.append(result.old_cell_states)
                    if cell is self.priority_cell:
                        self.priority_cell = None
                    break
                logger.debug(f"Candidate rejected at ({cell.x}, {cell.y}), reverting")
                self.reset_old_cell_states(result.old_cell_states)
            else:
                self.priority_cell = cell
                if not self.history:
                    raise NoTilesLeftError(cell.x, cell.y, "map is unsolvable")

                logger.debug(
                    f"Dead end at ({cell.x}, {cell.y}), undoing decision "
                    f"{len(self.history)}"
                )
                self.reset_old_cell_states(self.history.pop())
                if callback is not None:
                    callback(BacktrackEvent(cell.x, cell.y, len(self.history)))


# =============================================================================
# Module-level API
# =============================================================================


async def limit_tile_possibilities(
    carcassonne_map: CarcassonneMap,
    x: int,
    y: int,
    tiles: Sequence[Tile],
    callback: GenerationCallback | None = None,
) -> LimitResult:
    """Narrow one cell of ``carcassonne_map`` without pacing."""
    solver = WFCSolver(carcassonne_map)
    return await solver.limit_tile_possibilities(x, y, tiles, callback)


async def collapse(
    carcassonne_map: CarcassonneMap,
    x: int,
    y: int,
    tile: Tile,
    callback: GenerationCallback | None = None,
) -> LimitResult:
    """Collapse one cell of ``carcassonne_map`` to ``tile`` without pacing."""
    return await limit_tile_possibilities(carcassonne_map, x, y, [tile], callback)


def reset_old_cell_states(
    carcassonne_map: CarcassonneMap, old_cell_states: OldCellStates
) -> None:
    """Undo a narrowing call using the snapshot it returned."""
    WFCSolver(carcassonne_map).reset_old_cell_states(old_cell_states)


def full_collapse(
    carcassonne_map: CarcassonneMap,
    callback: GenerationCallback | None = None,
    *,
    throttle: Throttle | None = None,
    rng: RNG | None = None,
) -> Coroutine[Any, Any, bool]:
    """Fully collapse ``carcassonne_map``. See ``WFCSolver.full_collapse``."""
    solver = WFCSolver(carcassonne_map, throttle=throttle, rng=rng)
    return solver.full_collapse(callback)
