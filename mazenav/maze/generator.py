"""
Генерация лабиринта рандомизированным поиском в глубину.

Алгоритм:
1. Все клетки начинают со всеми четырьмя стенами
2. Старт в (0, 0): помечаем посещённой, кладём на стек
3. Берём вершину стека, собираем непосещённых соседей (N, S, E, W)
4. Нет соседей — снимаем со стека (backtrack)
5. Иначе выбираем соседа генератором, убираем стену в обеих клетках,
   помечаем соседа посещённым и кладём на стек

Результат — остовное дерево: ровно W*H - 1 убранных стен, все клетки достижимы.
"""

from __future__ import annotations

from typing import Optional

from mazenav import log
from mazenav.maze.grid import CARDINALS, Direction, MazeGrid, Vec3
from mazenav.maze.rng import SeededGenerator


def generate(
    width: int,
    height: int,
    seed: int,
    cell_size: float = 1.0,
    wall_thickness: float = 0.1,
    wall_height: float = 1.0,
    origin: Optional[Vec3] = None,
    rng: Optional[SeededGenerator] = None,
) -> MazeGrid:
    """
    Сгенерировать лабиринт.

    Args:
        width, height: Размер сетки в клетках (>= 1).
        seed: Seed генератора. Игнорируется, если передан rng.
        cell_size: Размер клетки в мировых единицах.
        wall_thickness: Толщина стены.
        wall_height: Высота стены.
        origin: Угол клетки (0, 0). По умолчанию лабиринт центрирован в (0, 0, 0).
        rng: Внешний генератор (для подмены в тестах).

    Returns:
        Неизменяемый MazeGrid.
    """
    if width < 1 or height < 1:
        raise ValueError(f"maze size must be at least 1x1, got {width}x{height}")
    if cell_size <= 0:
        raise ValueError(f"cell_size must be positive, got {cell_size}")

    if origin is None:
        origin = (-width * cell_size / 2, 0.0, -height * cell_size / 2)
    if rng is None:
        rng = SeededGenerator(seed)

    walls = [Direction.ALL] * (width * height)
    visited = [False] * (width * height)

    def index(x: int, y: int) -> int:
        return y * width + x

    stack: list[tuple[int, int]] = [(0, 0)]
    visited[index(0, 0)] = True

    while stack:
        x, y = stack[-1]

        neighbors: list[tuple[Direction, int, int]] = []
        for direction in CARDINALS:
            nx = x + direction.dx
            ny = y + direction.dy
            if nx < 0 or ny < 0 or nx >= width or ny >= height:
                continue
            if visited[index(nx, ny)]:
                continue
            neighbors.append((direction, nx, ny))

        if not neighbors:
            stack.pop()
            continue

        direction, nx, ny = rng.choice(neighbors)

        # Стена убирается в обеих клетках
        walls[index(x, y)] &= ~direction
        walls[index(nx, ny)] &= ~direction.opposite

        visited[index(nx, ny)] = True
        stack.append((nx, ny))

    log.debug(f"[MazeGenerator] generated {width}x{height} maze, seed=0x{seed:X}")

    return MazeGrid(
        width=width,
        height=height,
        cell_size=cell_size,
        wall_thickness=wall_thickness,
        wall_height=wall_height,
        seed=seed,
        origin=tuple(float(c) for c in origin),
        walls=tuple(walls),
    )
