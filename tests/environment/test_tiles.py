from __future__ import annotations

import pytest

from wfcmaze.environment.tiles import (
    DIRECTIONS,
    Direction,
    Side,
    Tile,
    TilemapData,
    TilemapTile,
    create_all_possible_tiles,
    create_tiles_from_tilemap,
    tilemap_from_dict,
)

# =============================================================================
# Sides and directions
# =============================================================================


class TestSide:
    def test_from_name_ignores_case_and_underscores(self) -> None:
        assert Side.from_name("road") is Side.ROAD
        assert Side.from_name("City") is Side.CITY
        assert Side.from_name("START_PIECE") is Side.START_PIECE
        assert Side.from_name("startPiece") is Side.START_PIECE

    def test_from_name_accepts_legacy_spelling(self) -> None:
        assert Side.from_name("Startpeice") is Side.START_PIECE
        assert Side.from_name("STARTPEICE") is Side.START_PIECE

    def test_from_name_rejects_unknown(self) -> None:
        with pytest.raises(ValueError, match="Unknown side name"):
            Side.from_name("lava")


class TestDirection:
    def test_clockwise_order(self) -> None:
        assert DIRECTIONS == (
            Direction.UP,
            Direction.RIGHT,
            Direction.DOWN,
            Direction.LEFT,
        )

    @pytest.mark.parametrize(
        ("direction", "opposite"),
        [
            (Direction.UP, Direction.DOWN),
            (Direction.RIGHT, Direction.LEFT),
            (Direction.DOWN, Direction.UP),
            (Direction.LEFT, Direction.RIGHT),
        ],
    )
    def test_opposite(self, direction: Direction, opposite: Direction) -> None:
        assert direction.opposite is opposite

    def test_offsets_grow_downward(self) -> None:
        assert Direction.UP.offset == (0, -1)
        assert Direction.DOWN.offset == (0, 1)
        assert Direction.LEFT.offset == (-1, 0)
        assert Direction.RIGHT.offset == (1, 0)


class TestTile:
    def test_side_lookup(self) -> None:
        tile = Tile(Side.WATER, Side.FIELD, Side.ROAD, Side.CITY)
        assert tile.side(Direction.UP) is Side.WATER
        assert tile.side(Direction.RIGHT) is Side.FIELD
        assert tile.side(Direction.DOWN) is Side.ROAD
        assert tile.side(Direction.LEFT) is Side.CITY
        assert tile.sides == (Side.WATER, Side.FIELD, Side.ROAD, Side.CITY)

    def test_tiles_are_immutable_values(self) -> None:
        a = Tile(Side.ROAD, Side.ROAD, Side.FIELD, Side.FIELD)
        b = Tile(Side.ROAD, Side.ROAD, Side.FIELD, Side.FIELD)
        assert a == b
        assert hash(a) == hash(b)
        with pytest.raises(AttributeError):
            a.top = Side.CITY  # type: ignore[misc]


# =============================================================================
# Palettes
# =============================================================================


class TestCreateAllPossibleTiles:
    def test_every_combination_once(self) -> None:
        tiles = create_all_possible_tiles()
        assert len(tiles) == len(Side) ** 4 == 625
        assert len(set(tiles)) == 625

    def test_generated_tiles_have_no_source(self) -> None:
        tiles = create_all_possible_tiles()
        assert all(tile.tilemap_index == -1 for tile in tiles)
        assert all(tile.direction is Direction.UP for tile in tiles)


class TestTilemap:
    def test_from_dict_assigns_positions_row_major(self) -> None:
        data = {
            "width": 2,
            "height": 2,
            "tileSize": 16,
            "tiles": [
                {"top": "road", "right": "field", "bottom": "road", "left": "field"},
                {"top": "city", "right": "city", "bottom": "field", "left": "city"},
                {"top": "water", "right": "water", "bottom": "water", "left": "water"},
            ],
        }

        tilemap = tilemap_from_dict(data)

        assert tilemap.width == 2
        assert tilemap.height == 2
        assert tilemap.tile_size == 16
        assert [(t.x, t.y) for t in tilemap.tiles] == [(0, 0), (1, 0), (0, 1)]
        assert [t.tilemap_index for t in tilemap.tiles] == [0, 1, 2]
        assert tilemap.tiles[1].bottom is Side.FIELD

    def test_from_dict_rejects_unknown_side(self) -> None:
        data = {
            "width": 1,
            "height": 1,
            "tileSize": 8,
            "tiles": [{"top": "road", "right": "x", "bottom": "road", "left": "road"}],
        }
        with pytest.raises(ValueError):
            tilemap_from_dict(data)

    def test_rotations_in_up_left_down_right_order(self) -> None:
        source = TilemapTile(
            x=0,
            y=0,
            top=Side.START_PIECE,
            right=Side.WATER,
            bottom=Side.FIELD,
            left=Side.ROAD,
            tilemap_index=7,
        )

        tiles = create_tiles_from_tilemap([source])

        assert [t.sides for t in tiles] == [
            (Side.START_PIECE, Side.WATER, Side.FIELD, Side.ROAD),
            (Side.WATER, Side.FIELD, Side.ROAD, Side.START_PIECE),
            (Side.FIELD, Side.ROAD, Side.START_PIECE, Side.WATER),
            (Side.ROAD, Side.START_PIECE, Side.WATER, Side.FIELD),
        ]
        assert [t.direction for t in tiles] == [
            Direction.UP,
            Direction.LEFT,
            Direction.DOWN,
            Direction.RIGHT,
        ]
        assert all(t.tilemap_index == 7 for t in tiles)

    def test_symmetric_rotations_are_kept(self) -> None:
        tilemap = TilemapData(
            width=1,
            height=1,
            tile_size=8,
            tiles=(TilemapTile(0, 0, Side.ROAD, Side.ROAD, Side.ROAD, Side.ROAD, 0),),
        )
        tiles = create_tiles_from_tilemap(tilemap)
        assert len(tiles) == 4
        assert len({t.sides for t in tiles}) == 1
