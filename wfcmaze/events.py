"""Visualization events emitted by the generators.

Every long-running operation accepts an optional ``callback`` that receives
these events synchronously at well-defined points (cell picked, walk extended,
side checked, tile checked, cell collapsed, backtrack). Generators never look
at the callback's return value and behave identically when it is omitted.

A host that wants to route events by type can pass ``EventBus.publish`` as the
callback.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import suppress
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeAlias

if TYPE_CHECKING:
    from wfcmaze.environment.tiles import Direction, Tile
    from wfcmaze.types import GridPos

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationEvent:
    """Base class for all generation events."""


@dataclass(frozen=True)
class CellHighlightEvent(GenerationEvent):
    """A cell became the focus of the generator (picked, walked onto, carved)."""

    x: int
    y: int


@dataclass(frozen=True)
class MazePathEvent(GenerationEvent):
    """The random walk so far, from its start cell to the current cell."""

    path: tuple[GridPos, ...]


@dataclass(frozen=True)
class SideCheckEvent(GenerationEvent):
    """One side of a candidate tile was checked against a neighbor."""

    x: int
    y: int
    direction: Direction
    success: bool


@dataclass(frozen=True)
class TileCheckProgressEvent(GenerationEvent):
    """Progress through the candidate list of the cell being narrowed."""

    x: int
    y: int
    checked: int
    total: int

    @property
    def fraction(self) -> float:
        if self.total == 0:
            return 1.0
        return self.checked / self.total


@dataclass(frozen=True)
class CellCollapsedEvent(GenerationEvent):
    """A cell was reduced to a single tile."""

    x: int
    y: int
    tile: Tile


@dataclass(frozen=True)
class BacktrackEvent(GenerationEvent):
    """A dead end at (x, y) forced the previous decision to be undone."""

    x: int
    y: int
    history_depth: int


GenerationCallback: TypeAlias = Callable[[GenerationEvent], None]


class EventBus:
    """Simple event bus for publish/subscribe by event type.

    Example:
        bus = EventBus()
        bus.subscribe(CellCollapsedEvent, canvas.draw_tile)
        bus.subscribe(MazePathEvent, canvas.draw_path)
        await generator.process_maze(maze, bus.publish)
    """

    def __init__(self) -> None:
        self._handlers: dict[type, list[Callable]] = {}

    def subscribe(self, event_type: type, handler: Callable) -> None:
        """Subscribe a handler to an event type."""
        if event_type not in self._handlers:
            self._handlers[event_type] = []
        self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: type, handler: Callable) -> None:
        """Unsubscribe a handler from an event type."""
        if event_type in self._handlers:
            with suppress(ValueError):
                self._handlers[event_type].remove(handler)

    def publish(self, event: GenerationEvent) -> None:
        """Publish an event to all subscribed handlers."""
        event_type = type(event)
        if event_type in self._handlers:
            # Copy the handler list to allow safe subscribe/unsubscribe during dispatch
            for handler in list(self._handlers[event_type]):
                try:
                    handler(event)
                except Exception:
                    logger.exception(f"Error handling event {event_type.__name__}")
