"""
Pathfinding по графу колонок heightfield.

- astar_graph: A* по графу с фиксированным числом соседей
- cell_portals: общие рёбра соседних колонок вдоль найденного пути
- funnel_algorithm: натягивание пути через порталы
- drop_collinear: чистка точек, лежащих на прямой
"""

from __future__ import annotations

import heapq

import numpy as np


def astar_graph(
    start: int,
    goal: int,
    neighbors: np.ndarray,
    positions: np.ndarray,
    passable: np.ndarray | None = None,
) -> list[int] | None:
    """
    A* поиск пути по графу.

    Args:
        start: индекс стартового узла.
        goal: индекс целевого узла.
        neighbors: (N, K) — соседи узлов, -1 = нет соседа.
        positions: (N, 3) — координаты узлов (стоимость и эвристика).
        passable: (N,) bool — узлы, по которым разрешено идти. None = все.

    Returns:
        Список индексов узлов от старта до цели, или None.
    """
    target = positions[goal]

    def heuristic(node: int) -> float:
        return float(np.linalg.norm(positions[node] - target))

    # (f_score, counter, node)
    counter = 0
    open_set: list[tuple[float, int, int]] = [(heuristic(start), counter, start)]
    came_from: dict[int, int] = {}
    g_score: dict[int, float] = {start: 0.0}
    closed: set[int] = set()

    while open_set:
        _, _, current = heapq.heappop(open_set)

        if current == goal:
            path = [current]
            while current in came_from:
                current = came_from[current]
                path.append(current)
            return path[::-1]

        if current in closed:
            continue
        closed.add(current)

        for neighbor in neighbors[current]:
            neighbor = int(neighbor)
            if neighbor < 0 or neighbor in closed:
                continue
            if passable is not None and not passable[neighbor]:
                continue

            dist = float(np.linalg.norm(positions[current] - positions[neighbor]))
            tentative_g = g_score[current] + dist

            if neighbor not in g_score or tentative_g < g_score[neighbor]:
                came_from[neighbor] = current
                g_score[neighbor] = tentative_g
                counter += 1
                heapq.heappush(open_set, (tentative_g + heuristic(neighbor), counter, neighbor))

    return None


def cell_portals(
    path: list[int],
    positions: np.ndarray,
    cell_size: float,
) -> list[tuple[np.ndarray, np.ndarray]]:
    """
    Порталы между последовательными колонками пути.

    Портал — общее ребро двух соседних колонок. Высота концов — среднее
    высот двух колонок. Левый/правый конец определяется относительно
    направления движения (соглашение triarea2 из funnel_algorithm).

    Args:
        path: Индексы колонок, соседних по X или Z.
        positions: (N, 3) — центры колонок на уровне поверхности.
        cell_size: Сторона колонки.

    Returns:
        Список порталов (left, right).
    """
    half = cell_size * 0.5
    portals: list[tuple[np.ndarray, np.ndarray]] = []

    for a, b in zip(path[:-1], path[1:]):
        pa = positions[a]
        pb = positions[b]
        dx = float(np.sign(round((pb[0] - pa[0]) / cell_size)))
        dz = float(np.sign(round((pb[2] - pa[2]) / cell_size)))

        mid_x = pa[0] + dx * half
        mid_z = pa[2] + dz * half
        y = (pa[1] + pb[1]) * 0.5

        # Перпендикуляр (-dz, dx) указывает направо при движении вдоль (dx, dz)
        px = -dz * half
        pz = dx * half
        right = np.array([mid_x + px, y, mid_z + pz], dtype=np.float64)
        left = np.array([mid_x - px, y, mid_z - pz], dtype=np.float64)
        portals.append((left, right))

    return portals


def triarea2(a: np.ndarray, b: np.ndarray, c: np.ndarray) -> float:
    """Удвоенная знаковая площадь треугольника в плоскости XZ."""
    ax = b[0] - a[0]
    az = b[2] - a[2]
    bx = c[0] - a[0]
    bz = c[2] - a[2]
    return ax * bz - az * bx


_LEFT = 0
_RIGHT = 1

# Знак triarea2, при котором новый конец портала лежит снаружи стороны воронки
_OUTWARD = (-1.0, 1.0)


def funnel_algorithm(
    start: np.ndarray,
    end: np.ndarray,
    portals: list[tuple[np.ndarray, np.ndarray]],
) -> list[np.ndarray]:
    """
    Натягивание пути через порталы (simple stupid funnel).

    Воронка задаётся вершиной (apex) и двумя сторонами. Каждый следующий
    портал пытается сузить сначала правую, потом левую сторону. Если
    сторона перехлёстывает противоположную, конец противоположной стороны
    становится точкой пути и новой вершиной, и обход порталов продолжается
    с портала, на котором эта точка была получена.

    Args:
        start: Начальная точка.
        end: Конечная точка.
        portals: Список порталов (left, right).

    Returns:
        Точки пути от start до end.
    """
    if len(portals) == 0:
        return [start.copy(), end.copy()]

    # Цель замыкает список вырожденным порталом
    gates = list(portals) + [(end, end)]

    path: list[np.ndarray] = [start.copy()]
    apex = start.copy()
    bounds = [gates[0][_LEFT].copy(), gates[0][_RIGHT].copy()]
    owners = [0, 0]

    i = 1
    while i < len(gates):
        corner = -1
        for side in (_RIGHT, _LEFT):
            other = 1 - side
            outward = _OUTWARD[side]
            candidate = gates[i][side]

            if outward * triarea2(apex, bounds[side], candidate) > 0.0:
                continue
            if np.allclose(apex, bounds[side]) or outward * triarea2(apex, bounds[other], candidate) > 0.0:
                bounds[side] = candidate.copy()
                owners[side] = i
            else:
                corner = other
                break

        if corner < 0:
            i += 1
            continue

        apex = bounds[corner].copy()
        path.append(apex.copy())
        restart = owners[corner]
        bounds = [apex.copy(), apex.copy()]
        owners = [restart, restart]
        i = restart + 1

    if not np.allclose(path[-1], end):
        path.append(end.copy())

    return path


def drop_collinear(points: list[np.ndarray], tolerance: float = 1e-6) -> list[np.ndarray]:
    """Убрать промежуточные точки, лежащие на отрезке между соседними точками пути."""
    if len(points) < 3:
        return list(points)

    kept = [points[0]]
    for point, following in zip(points[1:-1], points[2:]):
        a = kept[-1]
        ab = following - a
        denom = float(np.dot(ab, ab))
        if denom > 0.0:
            t = float(np.dot(point - a, ab)) / denom
            if 0.0 <= t <= 1.0 and float(np.linalg.norm(a + t * ab - point)) <= tolerance:
                continue
        kept.append(point)
    kept.append(points[-1])
    return kept
