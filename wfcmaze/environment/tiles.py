"""Tile definitions and tile palette construction.

A ``Tile`` is an immutable record of the four edge categories (``Side``) of one
square tile, plus which source tile and rotation it came from. Two tiles may sit
next to each other only if the sides they touch are equal.

Palettes are built once per run, either exhaustively (every combination of
sides) or from a tilemap description expanded into four rotations per entry,
and then shared by every cell of a map. The collapse engine only ever filters
these lists; it never creates or modifies tiles.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import IntEnum
from itertools import product
from typing import Any


class Side(IntEnum):
    """Edge category of a tile. Adjacency compatibility is equality."""

    START_PIECE = 0
    WATER = 1
    FIELD = 2
    ROAD = 3
    CITY = 4

    @classmethod
    def from_name(cls, name: str) -> Side:
        """Look a side up by name, ignoring case and underscores.

        The misspelled ``"Startpeice"`` found in older tilemaps is accepted.

        Raises:
            ValueError: If no side has that name.
        """
        wanted = name.replace("_", "").upper()
        if wanted in _SIDE_ALIASES:
            return _SIDE_ALIASES[wanted]
        for side in cls:
            if side.name.replace("_", "") == wanted:
                return side
        raise ValueError(f"Unknown side name: {name!r}")


_SIDE_ALIASES: dict[str, Side] = {"STARTPEICE": Side.START_PIECE}


class Direction(IntEnum):
    """The four sides of a grid cell, clockwise from the top."""

    UP = 0
    RIGHT = 1
    DOWN = 2
    LEFT = 3

    @property
    def opposite(self) -> Direction:
        return Direction((self + 2) % 4)

    @property
    def offset(self) -> tuple[int, int]:
        """(dx, dy) of the neighbor in this direction. y grows downward."""
        return _OFFSETS[self]


_OFFSETS: dict[Direction, tuple[int, int]] = {
    Direction.UP: (0, -1),
    Direction.RIGHT: (1, 0),
    Direction.DOWN: (0, 1),
    Direction.LEFT: (-1, 0),
}

DIRECTIONS: tuple[Direction, ...] = tuple(Direction)


@dataclass(frozen=True, slots=True)
class Tile:
    """One placeable tile variant.

    Attributes:
        top, right, bottom, left: Side category of each edge.
        tilemap_index: Index of the source tile in its tilemap, or -1 for
            generated tiles. All rotations of one source share the index.
        direction: Which rotation of the source tile this variant is.
    """

    top: Side
    right: Side
    bottom: Side
    left: Side
    tilemap_index: int = -1
    direction: Direction = Direction.UP

    def side(self, direction: Direction) -> Side:
        """Return the side facing ``direction``."""
        if direction is Direction.UP:
            return self.top
        if direction is Direction.RIGHT:
            return self.right
        if direction is Direction.DOWN:
            return self.bottom
        return self.left

    @property
    def sides(self) -> tuple[Side, Side, Side, Side]:
        return (self.top, self.right, self.bottom, self.left)


@dataclass(frozen=True, slots=True)
class TilemapTile:
    """A tile definition as laid out in a tilemap image."""

    x: int
    y: int
    top: Side
    right: Side
    bottom: Side
    left: Side
    tilemap_index: int
    direction: Direction = Direction.UP


@dataclass(frozen=True)
class TilemapData:
    """A validated tilemap description."""

    width: int
    height: int
    tile_size: int
    tiles: tuple[TilemapTile, ...]


def create_all_possible_tiles() -> list[Tile]:
    """Return one tile for every combination of four sides (len(Side) ** 4)."""
    return [
        Tile(top, right, bottom, left)
        for top, right, bottom, left in product(Side, repeat=4)
    ]


def tilemap_from_dict(data: Mapping[str, Any]) -> TilemapData:
    """Convert an already-validated tilemap JSON object into ``TilemapData``.

    Expects ``{"width", "height", "tileSize", "tiles": [{top, right, bottom,
    left}]}`` with side names as strings. Tile positions are assigned
    row-major from each entry's index.
    """
    width = int(data["width"])
    tiles = tuple(
        TilemapTile(
            x=index % width,
            y=index // width,
            top=Side.from_name(entry["top"]),
            right=Side.from_name(entry["right"]),
            bottom=Side.from_name(entry["bottom"]),
            left=Side.from_name(entry["left"]),
            tilemap_index=index,
        )
        for index, entry in enumerate(data["tiles"])
    )
    return TilemapData(
        width=width,
        height=int(data["height"]),
        tile_size=int(data["tileSize"]),
        tiles=tiles,
    )


def create_tiles_from_tilemap(tilemap: TilemapData | Sequence[TilemapTile]) -> list[Tile]:
    """Expand every tilemap tile into its four rotations.

    Rotations are emitted in the order Up, Left, Down, Right, each keeping the
    source ``tilemap_index``. Identical rotations of symmetric tiles are kept.
    """
    source = tilemap.tiles if isinstance(tilemap, TilemapData) else tilemap
    tiles: list[Tile] = []
    for t in source:
        index = t.tilemap_index
        tiles.append(Tile(t.top, t.right, t.bottom, t.left, index, Direction.UP))
        tiles.append(Tile(t.right, t.bottom, t.left, t.top, index, Direction.LEFT))
        tiles.append(Tile(t.bottom, t.left, t.top, t.right, index, Direction.DOWN))
        tiles.append(Tile(t.left, t.top, t.right, t.bottom, index, Direction.RIGHT))
    return tiles
