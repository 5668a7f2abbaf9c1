"""Command-line entry point: carve a maze, collapse a map along it, print both."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from . import config
from .environment.generators.maze import MazeGenerator, create_maze, render_maze_text
from .environment.generators.maze_bridge import MazeLimitOptions, limit_map_to_maze
from .environment.generators.wfc_solver import NoTilesLeftError, WFCSolver
from .environment.map import create_map, render_map_text
from .environment.tiles import Side, create_all_possible_tiles
from .util import rng

logger = logging.getLogger(__name__)


async def generate(
    width: int,
    height: int,
    path_percentage: float = config.MAZE_PATH_PERCENTAGE,
    wall_removal_percentage: float = config.RANDOM_WALL_REMOVAL_PERCENTAGE,
) -> tuple[str, str]:
    """Run the whole pipeline unpaced and return the maze and map renderings."""
    maze = create_maze(width, height)
    generator = MazeGenerator(
        path_percentage=path_percentage,
        wall_removal_percentage=wall_removal_percentage,
    )
    await generator.process_maze(maze)

    carcassonne_map = create_map(width, height, create_all_possible_tiles())
    solver = WFCSolver(carcassonne_map)
    await limit_map_to_maze(
        carcassonne_map, maze, MazeLimitOptions(Side.ROAD), solver=solver
    )
    await solver.full_collapse()
    return render_maze_text(maze), render_map_text(carcassonne_map)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Generate a road map that follows a random maze"
    )
    parser.add_argument(
        "--width",
        type=int,
        default=config.DEFAULT_MAP_WIDTH,
        help=f"Grid width in cells (default: {config.DEFAULT_MAP_WIDTH})",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=config.DEFAULT_MAP_HEIGHT,
        help=f"Grid height in cells (default: {config.DEFAULT_MAP_HEIGHT})",
    )
    parser.add_argument(
        "--seed",
        type=str,
        default=config.RANDOM_SEED,
        help=f"Master random seed (default: {config.RANDOM_SEED})",
    )
    parser.add_argument(
        "--path-percentage",
        type=float,
        default=config.MAZE_PATH_PERCENTAGE,
        help="Fraction of the grid carved into the maze",
    )
    parser.add_argument(
        "--wall-removal",
        type=float,
        default=config.RANDOM_WALL_REMOVAL_PERCENTAGE,
        help="Chance of opening each closed wall between maze cells",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)
    rng.init(args.seed)

    try:
        maze_text, map_text = asyncio.run(
            generate(args.width, args.height, args.path_percentage, args.wall_removal)
        )
    except (NoTilesLeftError, ValueError) as e:
        logger.error(f"Generation failed: {e}")
        return 1

    print(maze_text)
    print()
    print(map_text)
    return 0


if __name__ == "__main__":
    sys.exit(main())
