from __future__ import annotations

import pytest

from wfcmaze.environment.map import (
    MapCell,
    create_map,
    project_sides,
    render_map_text,
)
from wfcmaze.environment.tiles import (
    Direction,
    Side,
    Tile,
    create_all_possible_tiles,
)


class TestCreateMap:
    def test_dimensions_and_coordinates(self) -> None:
        tiles = create_all_possible_tiles()
        carcassonne_map = create_map(15, 17, tiles)

        assert carcassonne_map.width == 15
        assert carcassonne_map.height == 17
        assert len(carcassonne_map.cells) == 17
        assert all(len(row) == 15 for row in carcassonne_map.cells)
        for y, row in enumerate(carcassonne_map.cells):
            for x, cell in enumerate(row):
                assert (cell.x, cell.y) == (x, y)
                assert not cell.collapsed

    def test_cells_own_their_tile_lists(self) -> None:
        tiles = create_all_possible_tiles()
        carcassonne_map = create_map(3, 3, tiles)

        first = carcassonne_map.cell(0, 0)
        second = carcassonne_map.cell(1, 0)
        assert first.possible_tiles == tiles
        assert first.possible_tiles is not tiles
        assert first.possible_tiles is not second.possible_tiles
        assert first.sides[Direction.UP] is not second.sides[Direction.UP]

    def test_sides_cover_every_side_type(self) -> None:
        carcassonne_map = create_map(2, 2, create_all_possible_tiles())
        for cell in carcassonne_map.iter_cells():
            for direction in Direction:
                assert sorted(cell.sides[direction]) == list(Side)

    @pytest.mark.parametrize(("width", "height"), [(0, 5), (5, 0), (-1, 3)])
    def test_rejects_empty_sizes(self, width: int, height: int) -> None:
        with pytest.raises(ValueError):
            create_map(width, height, create_all_possible_tiles())

    def test_neighbor_at_edges(self) -> None:
        carcassonne_map = create_map(3, 2, create_all_possible_tiles())
        assert carcassonne_map.neighbor(0, 0, Direction.UP) is None
        assert carcassonne_map.neighbor(0, 0, Direction.LEFT) is None
        assert carcassonne_map.neighbor(2, 1, Direction.RIGHT) is None
        assert carcassonne_map.neighbor(2, 1, Direction.DOWN) is None
        assert carcassonne_map.neighbor(1, 0, Direction.DOWN) is carcassonne_map.cell(1, 1)


class TestMapCell:
    def test_sides_are_deduplicated_in_first_seen_order(self) -> None:
        tiles = [
            Tile(Side.ROAD, Side.CITY, Side.FIELD, Side.WATER),
            Tile(Side.ROAD, Side.FIELD, Side.FIELD, Side.WATER),
            Tile(Side.CITY, Side.CITY, Side.FIELD, Side.ROAD),
        ]
        cell = MapCell(x=0, y=0, possible_tiles=list(tiles))

        assert cell.sides[Direction.UP] == [Side.ROAD, Side.CITY]
        assert cell.sides[Direction.RIGHT] == [Side.CITY, Side.FIELD]
        assert cell.sides[Direction.DOWN] == [Side.FIELD]
        assert cell.sides[Direction.LEFT] == [Side.WATER, Side.ROAD]
        assert cell.sides == project_sides(tiles)

    def test_tile_only_when_collapsed(self) -> None:
        tile = Tile(Side.ROAD, Side.ROAD, Side.ROAD, Side.ROAD)
        cell = MapCell(x=0, y=0, possible_tiles=[tile])
        assert cell.tile is None
        cell.collapsed = True
        assert cell.tile is tile


class TestRenderMapText:
    def test_uncollapsed_cells_show_tile_count(self) -> None:
        carcassonne_map = create_map(6, 5, create_all_possible_tiles())

        rows = [
            "┃" + "  -    ┃" * 6,
            "┃" + "- 625 -┃" * 6,
            "┃" + "  -    ┃" * 6,
        ]
        expected = (
            ["┏" + "━━━━━━━┳" * 5 + "━━━━━━━┓"]
            + (rows + ["┣" + "━━━━━━━╋" * 5 + "━━━━━━━┫"]) * 4
            + rows
            + ["┗" + "━━━━━━━┻" * 5 + "━━━━━━━┛"]
        )
        assert render_map_text(carcassonne_map) == "\n".join(expected)

    def test_collapsed_cells_show_side_values(self) -> None:
        start = Tile(Side.START_PIECE, Side.START_PIECE, Side.START_PIECE, Side.START_PIECE)
        carcassonne_map = create_map(6, 5, [start])
        for cell in carcassonne_map.iter_cells():
            cell.collapsed = True

        rows = [
            "┃" + "  0    ┃" * 6,
            "┃" + "0 #   0┃" * 6,
            "┃" + "  0    ┃" * 6,
        ]
        expected = (
            ["┏" + "━━━━━━━┳" * 5 + "━━━━━━━┓"]
            + (rows + ["┣" + "━━━━━━━╋" * 5 + "━━━━━━━┫"]) * 4
            + rows
            + ["┗" + "━━━━━━━┻" * 5 + "━━━━━━━┛"]
        )
        assert render_map_text(carcassonne_map) == "\n".join(expected)

    def test_collapsed_cell_shows_each_side(self) -> None:
        tile = Tile(Side.WATER, Side.FIELD, Side.ROAD, Side.CITY)
        carcassonne_map = create_map(1, 1, [tile])
        carcassonne_map.cell(0, 0).collapsed = True

        lines = render_map_text(carcassonne_map).split("\n")

        assert lines[1] == "┃  1    ┃"
        assert lines[2] == "┃4 #   2┃"
        assert lines[3] == "┃  3    ┃"
