"""
Встроенный движок навигации на основе heightfield.

Сцена разбивается на колонки cell_size x cell_size. В каждой колонке
хранятся проходимые уровни (точки). Точки соседних колонок связаны, если
перепад высот не больше climb.

Запрос пути:
1. Если отрезок start-goal целиком проходит по связанным колонкам, путь прямой
2. A* по графу регионов задаёт коридор, A* по точкам ищется внутри него
3. Коридор спрямляется проверкой прямой видимости по сетке колонок
4. Funnel натягивает путь через общие рёбра колонок коридора
"""

from __future__ import annotations

from typing import Optional

import numpy as np
from scipy.spatial import cKDTree

from mazenav import log
from mazenav.navmesh.errors import NavMeshBuildError
from mazenav.navmesh.heightfield import (
    WalkableSamples,
    create_heightfield,
    filter_walkable,
    rasterize_triangles,
)
from mazenav.navmesh.pathfinding import astar_graph, cell_portals, drop_collinear, funnel_algorithm
from mazenav.navmesh.regions import (
    DIRECTIONS,
    build_links,
    compact,
    connected_components,
    erode,
    greedy_absorption,
    monotone_regions,
    region_graph,
    small_component_mask,
)
from mazenav.navmesh.types import BuildParams


DEFAULT_QUERY_EXTENTS = (0.5, 1.0, 0.5)

# Сколько ближайших точек проверяется при привязке запроса к поверхности
_LOCATE_CANDIDATES = 16

# Допуск по параметру отрезка: пересечение угла колонки и конец отрезка
_T_EPS = 1e-9


def _first_crossing(origin: float, delta: float, cell: int) -> tuple[int, float, float]:
    """(шаг по оси, t первой границы колонки, приращение t на колонку)."""
    if delta > 0:
        return 1, (cell + 1 - origin) / delta, 1.0 / delta
    if delta < 0:
        return -1, (cell - origin) / delta, -1.0 / delta
    return 0, np.inf, np.inf


class VoxelNavMesh:
    """
    Построенная навигационная поверхность.

    После создания не изменяется; find_path не пишет в общее состояние и
    может вызываться из нескольких потоков.
    """

    def __init__(
        self,
        bmin: np.ndarray,
        cell_size: float,
        samples: WalkableSamples,
        neighbors: np.ndarray,
        regions: np.ndarray,
        components: np.ndarray,
        query_extents=DEFAULT_QUERY_EXTENTS,
        climb: float = np.inf,
    ) -> None:
        self.bmin = np.asarray(bmin, dtype=np.float64)
        self.cell_size = float(cell_size)
        self.samples = samples
        self.neighbors = neighbors
        self.regions = regions
        self.components = components
        self.query_extents = np.asarray(query_extents, dtype=np.float64)
        self.climb = float(climb)

        half = self.cell_size * 0.5
        self.positions = np.stack(
            [
                self.bmin[0] + samples.ix * self.cell_size + half,
                samples.heights,
                self.bmin[2] + samples.iz * self.cell_size + half,
            ],
            axis=1,
        )

        self._columns: dict[tuple[int, int], list[int]] = {}
        for idx, key in enumerate(zip(samples.ix.tolist(), samples.iz.tolist())):
            self._columns.setdefault(key, []).append(idx)

        self._tree = cKDTree(self.positions)
        self.region_neighbors, self.region_centers = region_graph(regions, neighbors, self.positions)

    @property
    def sample_count(self) -> int:
        return len(self.samples)

    @property
    def region_count(self) -> int:
        if len(self.regions) == 0:
            return 0
        return int(self.regions.max()) + 1

    def _column_bounds(self, idx: int) -> tuple[float, float, float, float]:
        x0 = self.bmin[0] + self.samples.ix[idx] * self.cell_size
        z0 = self.bmin[2] + self.samples.iz[idx] * self.cell_size
        return x0, x0 + self.cell_size, z0, z0 + self.cell_size

    def locate(self, point) -> Optional[tuple[int, np.ndarray]]:
        """
        Привязать точку к поверхности.

        Сначала ищется уровень в колонке самой точки (в пределах extents по Y),
        затем ближайшая колонка в пределах query_extents.

        Returns:
            (индекс точки, точка на поверхности) или None.
        """
        p = np.asarray(point, dtype=np.float64).reshape(3)
        ext = self.query_extents

        ix = int(np.floor((p[0] - self.bmin[0]) / self.cell_size))
        iz = int(np.floor((p[2] - self.bmin[2]) / self.cell_size))
        own = self._columns.get((ix, iz))
        if own:
            best = min(own, key=lambda i: abs(self.positions[i, 1] - p[1]))
            if abs(self.positions[best, 1] - p[1]) <= ext[1]:
                return best, np.array([p[0], self.positions[best, 1], p[2]])

        k = min(_LOCATE_CANDIDATES, self.sample_count)
        dists, idxs = self._tree.query(p, k=k, distance_upper_bound=float(np.linalg.norm(ext)))
        dists = np.atleast_1d(dists)
        idxs = np.atleast_1d(idxs)

        best_idx = -1
        best_point = None
        best_dist = np.inf
        for dist, idx in zip(dists, idxs):
            if not np.isfinite(dist):
                continue
            idx = int(idx)
            x0, x1, z0, z1 = self._column_bounds(idx)
            h = self.positions[idx, 1]
            snapped = np.array([np.clip(p[0], x0, x1), h, np.clip(p[2], z0, z1)])
            delta = np.abs(snapped - p)
            if np.any(delta > ext):
                continue
            d = float(np.linalg.norm(snapped - p))
            if d < best_dist:
                best_dist = d
                best_idx = idx
                best_point = snapped

        if best_idx < 0:
            return None
        return best_idx, best_point

    def find_path(self, start, goal) -> Optional[list[np.ndarray]]:
        """Точки пути от start до goal на поверхности, или None."""
        located_start = self.locate(start)
        if located_start is None:
            return None
        located_goal = self.locate(goal)
        if located_goal is None:
            return None

        ia, pa = located_start
        ib, pb = located_goal
        if self.components[ia] != self.components[ib]:
            return None
        if ia == ib or self.walk_segment(ia, pa, pb, ib) is not None:
            return [pa, pb]

        path = self.find_corridor(ia, ib)
        if path is None:
            return None

        corridor = self.straighten_corridor(path, pa, pb)
        portals = cell_portals(corridor, self.positions, self.cell_size)
        return drop_collinear(funnel_algorithm(pa, pb, portals))

    def find_corridor(self, start: int, goal: int) -> Optional[list[int]]:
        """
        Цепочка точек от start до goal.

        Сначала ищется маршрут по графу регионов, затем A* по точкам только
        внутри регионов этого маршрута.
        """
        passable = None
        ra = int(self.regions[start])
        rb = int(self.regions[goal])
        if ra != rb:
            route = astar_graph(ra, rb, self.region_neighbors, self.region_centers)
            if route is not None:
                passable = np.isin(self.regions, route)

        path = astar_graph(start, goal, self.neighbors, self.positions, passable)
        if path is None and passable is not None:
            log.debug(f"[VoxelNavMesh] region route {ra}->{rb} has no cell path, searching whole graph")
            path = astar_graph(start, goal, self.neighbors, self.positions)
        return path

    def _step(self, idx: int, direction: int) -> int:
        if idx < 0 or direction < 0:
            return -1
        return int(self.neighbors[idx, direction])

    def _contains(self, idx: int, point: np.ndarray) -> bool:
        eps = self.cell_size * 1e-6
        x0, x1, z0, z1 = self._column_bounds(idx)
        return x0 - eps <= point[0] <= x1 + eps and z0 - eps <= point[2] <= z1 + eps

    def _near_height(self, idx: int, a: np.ndarray, b: np.ndarray, t: float) -> bool:
        """Высота колонки не дальше climb от высоты отрезка в точке t."""
        y = a[1] + min(max(t, 0.0), 1.0) * (b[1] - a[1])
        return abs(self.positions[idx, 1] - y) <= self.climb

    def walk_segment(self, start: int, a, b, goal: int) -> Optional[list[int]]:
        """
        Пройти отрезок a-b по колонкам, начиная с точки start.

        Переход в соседнюю колонку возможен только по связи графа, и высота
        колонки должна отличаться от высоты отрезка не больше чем на climb.
        Через угол колонки отрезок проходит, если открыты обе боковые
        колонки и обе ведут в одну и ту же диагональную.

        Returns:
            Индексы точек от start до goal, или None, если отрезок уходит
            за пределы связанной поверхности или заканчивается не в goal.
        """
        a = np.asarray(a, dtype=np.float64)
        b = np.asarray(b, dtype=np.float64)
        cs = self.cell_size
        u = (a[0] - self.bmin[0]) / cs
        v = (a[2] - self.bmin[2]) / cs
        du = (b[0] - a[0]) / cs
        dv = (b[2] - a[2]) / cs

        sx, tx, dtx = _first_crossing(u, du, int(self.samples.ix[start]))
        sz, tz, dtz = _first_crossing(v, dv, int(self.samples.iz[start]))
        dir_x = DIRECTIONS.index((sx, 0)) if sx else -1
        dir_z = DIRECTIONS.index((0, sz)) if sz else -1

        current = start
        cells = [current]
        while True:
            t = min(tx, tz)
            if t >= 1.0 - _T_EPS:
                break

            if abs(tx - tz) <= _T_EPS:
                via_x = self._step(current, dir_x)
                via_z = self._step(current, dir_z)
                corner = self._step(via_x, dir_z)
                if corner < 0 or via_z < 0 or corner != self._step(via_z, dir_x):
                    return None
                if not self._near_height(corner, a, b, t):
                    return None
                cells.extend([via_x, corner])
                current = corner
                tx += dtx
                tz += dtz
                continue

            if tx < tz:
                following = self._step(current, dir_x)
                tx += dtx
            else:
                following = self._step(current, dir_z)
                tz += dtz
            if following < 0 or not self._near_height(following, a, b, t):
                return None
            cells.append(following)
            current = following

        if current == goal:
            return cells
        # Конец отрезка на общей границе или в общем углу с целевой колонкой
        if (
            self._contains(current, b)
            and self._contains(goal, b)
            and abs(self.positions[current, 1] - b[1]) <= self.climb
        ):
            return cells
        return None

    def straighten_corridor(self, path: list[int], start, goal) -> list[int]:
        """
        Спрямить цепочку точек пути.

        От текущей опорной точки проверяется прямая видимость на центры
        всё более дальних колонок пути (на последнюю колонку - на goal).
        Колонки самого дальнего видимого отрезка заменяют участок пути.
        """
        last = len(path) - 1
        corridor = [path[0]]
        anchor = np.asarray(start, dtype=np.float64)
        i = 0
        while i < last:
            best = i + 1
            best_cells = [path[i], path[i + 1]]
            for j in range(i + 2, last + 1):
                target = goal if j == last else self.positions[path[j]]
                cells = self.walk_segment(path[i], anchor, target, path[j])
                if cells is None:
                    break
                best = j
                best_cells = cells
            corridor.extend(best_cells[1:])
            i = best
            anchor = self.positions[path[i]]
        return corridor

    def debug_triangle_vertices(self) -> tuple[np.ndarray, int]:
        """
        Два треугольника на каждую точку, нормаль вверх.

        Returns:
            (плоский float32 буфер xyz, число вершин).
        """
        n = self.sample_count
        if n == 0:
            return np.zeros(0, dtype=np.float32), 0

        x0 = self.positions[:, 0] - self.cell_size * 0.5
        x1 = x0 + self.cell_size
        z0 = self.positions[:, 2] - self.cell_size * 0.5
        z1 = z0 + self.cell_size
        h = self.positions[:, 1]

        c0 = np.stack([x0, h, z0], axis=1)
        c1 = np.stack([x1, h, z0], axis=1)
        c2 = np.stack([x1, h, z1], axis=1)
        c3 = np.stack([x0, h, z1], axis=1)

        # (c0, c2, c1), (c0, c3, c2) на каждую точку
        verts = np.stack([c0, c2, c1, c0, c3, c2], axis=1).reshape(-1, 3)
        return verts.astype(np.float32).reshape(-1), n * 6


class VoxelNavMeshEngine:
    """
    Движок построения VoxelNavMesh.

    Args:
        max_columns: Предел числа колонок heightfield.
        query_extents: Полуразмеры области привязки запросов пути (x, y, z).
    """

    def __init__(self, max_columns: int = 4_000_000, query_extents=DEFAULT_QUERY_EXTENTS) -> None:
        self.max_columns = max_columns
        self.query_extents = tuple(float(v) for v in query_extents)

    def _query_extents(self, params: BuildParams) -> tuple[float, float, float]:
        """
        Горизонтальные extents не меньше ширины эродированной кромки плюс
        колонка: точка на исходной поверхности всегда находит ближайшую точку.
        """
        edge = (params.walkable_radius + 1) * params.cell_size
        ex, ey, ez = self.query_extents
        return max(ex, edge), ey, max(ez, edge)

    def build(
        self,
        vertices: np.ndarray,
        vertex_count: int,
        indices: np.ndarray,
        index_count: int,
        params: BuildParams,
    ) -> Optional[VoxelNavMesh]:
        verts = np.asarray(vertices, dtype=np.float64).reshape(-1)[: vertex_count * 3].reshape(-1, 3)
        tris = np.asarray(indices, dtype=np.int64).reshape(-1)[:index_count]
        tris = tris[: len(tris) - len(tris) % 3].reshape(-1, 3)

        valid = np.all((tris >= 0) & (tris < len(verts)), axis=1)
        tris = tris[valid]
        if len(tris) == 0:
            raise NavMeshBuildError("no valid triangles in input")

        used = verts[np.unique(tris)]
        hf = create_heightfield(used, params.cell_size)
        if hf.column_count > self.max_columns:
            raise NavMeshBuildError(
                f"heightfield too large: {hf.width}x{hf.depth} columns (limit {self.max_columns})"
            )

        walkable_count, obstacle_count = rasterize_triangles(
            hf, verts, tris, params.walkable_slope_angle
        )
        log.debug(
            f"[VoxelNavMeshEngine] rasterized {walkable_count} walkable, "
            f"{obstacle_count} obstacle triangles into {hf.width}x{hf.depth} columns"
        )
        if walkable_count == 0:
            raise NavMeshBuildError("no walkable triangles in input")

        samples = filter_walkable(hf, params)
        if len(samples) == 0:
            raise NavMeshBuildError("no walkable spans survived voxelization")

        neighbors = build_links(samples, params.climb_world)

        if params.walkable_radius > 0:
            alive = erode(neighbors, params.walkable_radius)
            samples, neighbors = compact(samples, neighbors, alive)

        components = connected_components(neighbors)
        keep = small_component_mask(components, params.min_region_area)
        if not keep.all():
            samples, neighbors = compact(samples, neighbors, keep)
            components = connected_components(neighbors)

        if len(samples) == 0:
            raise NavMeshBuildError("all walkable areas filtered out")

        regions = monotone_regions(samples, neighbors)
        regions = greedy_absorption(regions, neighbors, params.merge_region_area)

        mesh = VoxelNavMesh(
            bmin=hf.bmin,
            cell_size=params.cell_size,
            samples=samples,
            neighbors=neighbors,
            regions=regions,
            components=components,
            query_extents=self._query_extents(params),
            climb=params.climb_world,
        )
        log.info(
            f"[VoxelNavMeshEngine] Built navmesh: {mesh.sample_count} samples, "
            f"{mesh.region_count} regions"
        )
        return mesh
