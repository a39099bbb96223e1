"""
Maze grid data: wall flags per cell and derived wall boxes.

Cells are addressed as (x, y) with x growing east and y growing south.
World space maps x to +X and y to +Z; cell (0, 0) corner sits at `origin`.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from enum import Flag
from typing import Iterator, Optional

Vec3 = tuple[float, float, float]


class Direction(Flag):
    """Wall flags of a cell. Declaration order is the neighbor scan order."""

    NONE = 0
    NORTH = 0b0001
    SOUTH = 0b0010
    EAST = 0b0100
    WEST = 0b1000
    ALL = NORTH | SOUTH | EAST | WEST

    @property
    def dx(self) -> int:
        return _DELTAS[self][0]

    @property
    def dy(self) -> int:
        return _DELTAS[self][1]

    @property
    def opposite(self) -> "Direction":
        return _OPPOSITES[self]

    @staticmethod
    def cardinals() -> tuple["Direction", ...]:
        """NORTH, SOUTH, EAST, WEST."""
        return CARDINALS


CARDINALS = (Direction.NORTH, Direction.SOUTH, Direction.EAST, Direction.WEST)

_DELTAS = {
    Direction.NORTH: (0, -1),
    Direction.SOUTH: (0, 1),
    Direction.EAST: (1, 0),
    Direction.WEST: (-1, 0),
}

_OPPOSITES = {
    Direction.NORTH: Direction.SOUTH,
    Direction.SOUTH: Direction.NORTH,
    Direction.EAST: Direction.WEST,
    Direction.WEST: Direction.EAST,
}


@dataclass(frozen=True)
class WallBox:
    """Axis-aligned box of one wall segment."""

    center: Vec3
    size: Vec3

    @property
    def min_corner(self) -> Vec3:
        return tuple(c - s * 0.5 for c, s in zip(self.center, self.size))

    @property
    def max_corner(self) -> Vec3:
        return tuple(c + s * 0.5 for c, s in zip(self.center, self.size))

    def translated(self, dx: float = 0.0, dy: float = 0.0, dz: float = 0.0) -> "WallBox":
        cx, cy, cz = self.center
        return WallBox(center=(cx + dx, cy + dy, cz + dz), size=self.size)

    def intersects_xz(self, min_x: float, max_x: float, min_z: float, max_z: float) -> bool:
        """Closed-interval overlap with an XZ rectangle (touching counts)."""
        wall_min_x, _, wall_min_z = self.min_corner
        wall_max_x, _, wall_max_z = self.max_corner
        return not (
            wall_max_x < min_x or wall_min_x > max_x
            or wall_max_z < min_z or wall_min_z > max_z
        )


@dataclass(frozen=True)
class Cell:
    x: int
    y: int
    walls: Direction


@dataclass(frozen=True)
class MazeGrid:
    """
    Generated maze. Immutable.

    Attributes:
        width, height: Grid size in cells.
        cell_size: Cell edge length in world units.
        wall_thickness, wall_height: Wall box dimensions.
        seed: Seed the maze was generated with.
        origin: World position of the (0, 0) cell corner.
        walls: Row-major wall flags, one entry per cell.
    """

    width: int
    height: int
    cell_size: float
    wall_thickness: float
    wall_height: float
    seed: int
    origin: Vec3
    walls: tuple[Direction, ...]

    def __post_init__(self) -> None:
        if len(self.walls) != self.width * self.height:
            raise ValueError(
                f"expected {self.width * self.height} wall entries, got {len(self.walls)}"
            )

    # --- addressing ---

    def index(self, x: int, y: int) -> int:
        return y * self.width + x

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def walls_at(self, x: int, y: int) -> Direction:
        if not self.in_bounds(x, y):
            raise IndexError(f"cell ({x}, {y}) is outside {self.width}x{self.height} maze")
        return self.walls[self.index(x, y)]

    def has_wall(self, x: int, y: int, direction: Direction) -> bool:
        return bool(self.walls_at(x, y) & direction)

    def cell(self, x: int, y: int) -> Cell:
        return Cell(x, y, self.walls_at(x, y))

    def cells(self) -> Iterator[Cell]:
        for y in range(self.height):
            for x in range(self.width):
                yield Cell(x, y, self.walls[self.index(x, y)])

    # --- connectivity ---

    def open_neighbors(self, x: int, y: int) -> list[tuple[int, int]]:
        """Neighbors reachable from (x, y) through a removed wall."""
        walls = self.walls_at(x, y)
        result = []
        for direction in CARDINALS:
            nx, ny = x + direction.dx, y + direction.dy
            if self.in_bounds(nx, ny) and not walls & direction:
                result.append((nx, ny))
        return result

    def corridor_edges(self) -> Iterator[tuple[tuple[int, int], tuple[int, int]]]:
        """Each open passage once, as a sorted pair of cells."""
        for y in range(self.height):
            for x in range(self.width):
                # East and south cover every interior edge exactly once
                if x + 1 < self.width and not self.walls_at(x, y) & Direction.EAST:
                    yield (x, y), (x + 1, y)
                if y + 1 < self.height and not self.walls_at(x, y) & Direction.SOUTH:
                    yield (x, y), (x, y + 1)

    def removed_wall_count(self) -> int:
        """Number of interior walls removed during generation."""
        return sum(1 for _ in self.corridor_edges())

    def is_consistent(self) -> bool:
        """Every interior wall is seen identically from both sides."""
        for y in range(self.height):
            for x in range(self.width):
                walls = self.walls_at(x, y)
                for direction in CARDINALS:
                    nx, ny = x + direction.dx, y + direction.dy
                    if not self.in_bounds(nx, ny):
                        continue
                    mine = bool(walls & direction)
                    theirs = bool(self.walls_at(nx, ny) & direction.opposite)
                    if mine != theirs:
                        return False
        return True

    def shortest_cell_path(
        self,
        start: tuple[int, int],
        goal: tuple[int, int],
    ) -> list[tuple[int, int]]:
        """BFS over open passages. Empty list if goal is unreachable."""
        for cx, cy in (start, goal):
            if not self.in_bounds(cx, cy):
                raise IndexError(f"cell ({cx}, {cy}) is outside {self.width}x{self.height} maze")

        parent: dict[tuple[int, int], tuple[int, int]] = {}
        visited = {start}
        queue = deque([start])
        while queue:
            current = queue.popleft()
            if current == goal:
                path = [current]
                while current != start:
                    current = parent[current]
                    path.append(current)
                return path[::-1]
            for neighbor in self.open_neighbors(*current):
                if neighbor in visited:
                    continue
                visited.add(neighbor)
                parent[neighbor] = current
                queue.append(neighbor)
        return []

    def to_grid(self) -> list[list[int]]:
        """
        Occupancy grid of size (2*height+1) x (2*width+1).

        1 marks a cell interior or an open passage, 0 marks wall or pillar.
        """
        grid_w = self.width * 2 + 1
        grid_h = self.height * 2 + 1
        grid = [[0] * grid_w for _ in range(grid_h)]
        for cell in self.cells():
            gx, gy = 2 * cell.x + 1, 2 * cell.y + 1
            grid[gy][gx] = 1
            for direction in CARDINALS:
                if not cell.walls & direction:
                    grid[gy + direction.dy][gx + direction.dx] = 1
        return grid

    def render_ascii(self) -> str:
        return "\n".join(
            "".join("  " if value else "##" for value in row)
            for row in self.to_grid()
        )

    # --- geometry ---

    def cell_center(self, x: int, y: int, origin: Optional[Vec3] = None) -> Vec3:
        ox, oy, oz = self.origin if origin is None else origin
        return (
            ox + (x + 0.5) * self.cell_size,
            oy,
            oz + (y + 0.5) * self.cell_size,
        )

    def wall_boxes(self, origin: Optional[Vec3] = None) -> list[WallBox]:
        """
        Boxes for every wall still standing.

        North and west walls are emitted by the owning cell; south and east
        walls only on the outer boundary, so shared walls appear once.
        """
        ox, oy, oz = self.origin if origin is None else origin
        cs = self.cell_size
        center_y = oy + self.wall_height * 0.5
        horizontal = (cs, self.wall_height, self.wall_thickness)
        vertical = (self.wall_thickness, self.wall_height, cs)

        boxes: list[WallBox] = []
        for y in range(self.height):
            for x in range(self.width):
                walls = self.walls[self.index(x, y)]
                cell_x = ox + x * cs
                cell_z = oz + y * cs

                if walls & Direction.NORTH:
                    boxes.append(WallBox((cell_x + cs * 0.5, center_y, cell_z), horizontal))

                if walls & Direction.WEST:
                    boxes.append(WallBox((cell_x, center_y, cell_z + cs * 0.5), vertical))

                if y == self.height - 1 and walls & Direction.SOUTH:
                    boxes.append(WallBox((cell_x + cs * 0.5, center_y, cell_z + cs), horizontal))

                if x == self.width - 1 and walls & Direction.EAST:
                    boxes.append(WallBox((cell_x + cs, center_y, cell_z + cs * 0.5), vertical))

        return boxes
