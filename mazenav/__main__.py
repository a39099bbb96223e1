"""
Command-line entry point for mazenav.

Usage:
    python -m mazenav --seed 12648430 --target-cell 4 4
    python -m mazenav --target-cell 6 2 --upper --ascii
    python -m mazenav --target 1.5 0.4 -1.0 --debug-navmesh
"""

import argparse
import logging
import sys

from mazenav import log


def _format_point(p) -> str:
    return f"({p[0]:.3f}, {p[1]:.3f}, {p[2]:.3f})"


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Generate a two-level maze, build its navmesh and walk an agent to a target"
    )
    parser.add_argument(
        "--width", "-W",
        type=int,
        default=9,
        help="Maze width in cells (default: 9)",
    )
    parser.add_argument(
        "--height", "-H",
        type=int,
        default=9,
        help="Maze height in cells (default: 9)",
    )
    parser.add_argument(
        "--seed", "-s",
        type=int,
        default=0xC0FFEE,
        help="Maze seed (default: 0xC0FFEE)",
    )
    target = parser.add_mutually_exclusive_group()
    target.add_argument(
        "--target-cell",
        type=int,
        nargs=2,
        metavar=("X", "Y"),
        default=None,
        help="Destination maze cell (default: the far corner)",
    )
    target.add_argument(
        "--target",
        type=float,
        nargs=3,
        metavar=("X", "Y", "Z"),
        default=None,
        help="Destination world point",
    )
    parser.add_argument(
        "--upper",
        action="store_true",
        help="Use the upper floor copy of --target-cell",
    )
    parser.add_argument(
        "--dt",
        type=float,
        default=1.0 / 60.0,
        help="Simulation tick in seconds (default: 1/60)",
    )
    parser.add_argument(
        "--max-steps",
        type=int,
        default=100_000,
        help="Tick limit (default: 100000)",
    )
    parser.add_argument(
        "--debug-navmesh",
        action="store_true",
        help="Disable agent radius erosion and region thresholds",
    )
    parser.add_argument(
        "--ascii",
        action="store_true",
        help="Print the maze as ASCII art",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="warn",
        choices=["debug", "info", "warn", "error"],
        help="Log level (default: warn)",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(format="%(levelname)s %(message)s")
    log.set_level(args.log_level)

    from mazenav.navmesh import NavMeshError
    from mazenav.scene import MazeScene, MazeSceneConfig

    config = MazeSceneConfig(
        maze_width=args.width,
        maze_height=args.height,
        seed=args.seed,
        debug_navmesh=args.debug_navmesh,
    )

    try:
        scene = MazeScene(config)
    except (NavMeshError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    if args.ascii:
        print(scene.maze.render_ascii())

    if args.target is not None:
        destination = tuple(args.target)
    else:
        cx, cy = args.target_cell if args.target_cell is not None else (args.width - 1, args.height - 1)
        if not scene.maze.in_bounds(cx, cy):
            print(f"Error: cell ({cx}, {cy}) is outside {args.width}x{args.height} maze")
            return 1
        destination = scene.layout.cell_target(cx, cy, upper=args.upper)

    print(f"Agent: {_format_point(scene.agent.position)}")
    print(f"Target: {_format_point(destination)}")

    if not scene.request_destination(destination):
        print("No path")
        return 2

    print(f"Path ({len(scene.last_path)} waypoints, length {scene.last_path.length():.3f}):")
    for p in scene.last_path:
        print(f"  {_format_point(p)}")

    steps = scene.run_until_idle(dt=args.dt, max_steps=args.max_steps)
    state = "arrived" if not scene.agent.is_moving else "still moving"
    print(f"Final position after {steps} ticks ({state}): {_format_point(scene.agent.position)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
