"""
Maze generation.

Seeded randomized depth-first search over a W x H grid; walls stored as
Direction flags per cell and exposed as axis-aligned wall boxes.
"""

from mazenav.maze.rng import SeededGenerator
from mazenav.maze.grid import Direction, CARDINALS, Cell, MazeGrid, WallBox
from mazenav.maze.generator import generate

__all__ = [
    "SeededGenerator",
    "Direction",
    "CARDINALS",
    "Cell",
    "MazeGrid",
    "WallBox",
    "generate",
]
