"""
Heightfield — колонки по XZ с проходимыми поверхностями и препятствиями.

Шаги:
1. Границы сцены по вершинам, сетка колонок размером cell_size
2. Растеризация: проходимые треугольники дают высоты в колонках,
   остальные — вертикальные спаны препятствий
3. Фильтрация: слияние близких по высоте поверхностей, отсечение
   поверхностей под препятствиями и низкими потолками
"""

from __future__ import annotations

from dataclasses import dataclass, field
import math

import numpy as np

from mazenav.navmesh.intersection import plane_height_at, triangle_columns_overlap_xz
from mazenav.navmesh.types import BuildParams

# Сдвиг граней препятствий против нормали, в долях cell_size
_OBSTACLE_NUDGE = 1e-3


@dataclass
class Heightfield:
    """
    Разреженный heightfield.

    surfaces: {(ix, iz): [высота, ...]} — проходимые поверхности.
    obstacles: {(ix, iz): [(y_min, y_max), ...]} — непроходимая геометрия.
    """

    bmin: np.ndarray
    bmax: np.ndarray
    cell_size: float
    width: int
    depth: int
    surfaces: dict[tuple[int, int], list[float]] = field(default_factory=dict)
    obstacles: dict[tuple[int, int], list[tuple[float, float]]] = field(default_factory=dict)

    @property
    def column_count(self) -> int:
        return self.width * self.depth

    def column_of(self, x: float, z: float) -> tuple[int, int]:
        ix = int(math.floor((x - self.bmin[0]) / self.cell_size))
        iz = int(math.floor((z - self.bmin[2]) / self.cell_size))
        return ix, iz

    def column_min(self, ix: np.ndarray, iz: np.ndarray) -> np.ndarray:
        """Минимальные углы колонок, shape (K, 2)."""
        return np.stack(
            [self.bmin[0] + ix * self.cell_size, self.bmin[2] + iz * self.cell_size],
            axis=1,
        )


def heightfield_dimensions(bmin: np.ndarray, bmax: np.ndarray, cell_size: float) -> tuple[int, int]:
    width = max(1, int(math.ceil((bmax[0] - bmin[0]) / cell_size)))
    depth = max(1, int(math.ceil((bmax[2] - bmin[2]) / cell_size)))
    return width, depth


def create_heightfield(vertices: np.ndarray, cell_size: float) -> Heightfield:
    """Пустой heightfield по границам вершин (N, 3)."""
    bmin = vertices.min(axis=0).astype(np.float64)
    bmax = vertices.max(axis=0).astype(np.float64)
    width, depth = heightfield_dimensions(bmin, bmax, cell_size)
    return Heightfield(bmin=bmin, bmax=bmax, cell_size=cell_size, width=width, depth=depth)


def _candidate_columns(
    hf: Heightfield,
    tri: np.ndarray,
) -> tuple[np.ndarray, np.ndarray] | None:
    """Колонки, попадающие в AABB треугольника по XZ."""
    cs = hf.cell_size
    ix0 = int(math.floor((tri[:, 0].min() - hf.bmin[0]) / cs))
    ix1 = int(math.floor((tri[:, 0].max() - hf.bmin[0]) / cs))
    iz0 = int(math.floor((tri[:, 2].min() - hf.bmin[2]) / cs))
    iz1 = int(math.floor((tri[:, 2].max() - hf.bmin[2]) / cs))

    # Запас в одну колонку: точный отбор делает SAT
    ix0 = max(ix0 - 1, 0)
    iz0 = max(iz0 - 1, 0)
    ix1 = min(ix1 + 1, hf.width - 1)
    iz1 = min(iz1 + 1, hf.depth - 1)
    if ix0 > ix1 or iz0 > iz1:
        return None

    gx, gz = np.meshgrid(
        np.arange(ix0, ix1 + 1),
        np.arange(iz0, iz1 + 1),
        indexing="ij",
    )
    return gx.reshape(-1), gz.reshape(-1)


def rasterize_triangles(
    hf: Heightfield,
    vertices: np.ndarray,
    triangles: np.ndarray,
    walkable_slope_angle: float,
) -> tuple[int, int]:
    """
    Растеризовать треугольники в heightfield.

    Проходимый треугольник (Y единичной нормали >= cos(угла)) пишет высоту
    своей плоскости в центре каждой задетой колонки, зажатую в Y-диапазон
    треугольника. Касание границы колонки считается — так закрываются щели
    шириной в одну колонку на стыках кусков пола.

    Остальные треугольники (стены, потолки, крутые склоны) пишут спан
    [y_min, y_max] во все колонки, которые перекрывают строго, после
    небольшого сдвига против нормали.

    Returns:
        (число проходимых треугольников, число треугольников-препятствий).
    """
    walkable_cos = math.cos(math.radians(walkable_slope_angle))
    walkable_count = 0
    obstacle_count = 0

    for t in triangles:
        tri = vertices[t]
        v0 = tri[0]
        normal = np.cross(tri[1] - v0, tri[2] - v0)
        length = float(np.linalg.norm(normal))
        if length < 1e-12:
            continue

        candidates = _candidate_columns(hf, tri)
        if candidates is None:
            continue
        ix, iz = candidates
        column_min = hf.column_min(ix, iz)
        tri_xz = tri[:, [0, 2]]
        y_min = float(tri[:, 1].min())
        y_max = float(tri[:, 1].max())

        if normal[1] / length >= walkable_cos:
            walkable_count += 1
            mask = triangle_columns_overlap_xz(tri_xz, column_min, hf.cell_size, inclusive=True)
            if not mask.any():
                continue
            centers = column_min[mask] + hf.cell_size * 0.5
            heights = plane_height_at(v0, normal, centers[:, 0], centers[:, 1])
            heights = np.clip(heights, y_min, y_max)
            for cx, cz, h in zip(ix[mask].tolist(), iz[mask].tolist(), heights.tolist()):
                hf.surfaces.setdefault((cx, cz), []).append(h)
        else:
            obstacle_count += 1
            # Грань сдвигается внутрь тела, чтобы стена, лежащая ровно на
            # границе колонок, попала в колонку со своей стороны
            n_xz = normal[[0, 2]] / length
            nudged = tri_xz - n_xz * (hf.cell_size * _OBSTACLE_NUDGE)
            mask = triangle_columns_overlap_xz(nudged, column_min, hf.cell_size, inclusive=False)
            for cx, cz in zip(ix[mask].tolist(), iz[mask].tolist()):
                hf.obstacles.setdefault((cx, cz), []).append((y_min, y_max))

    return walkable_count, obstacle_count


@dataclass
class WalkableSamples:
    """
    Проходимые точки после фильтрации, отсортированные по (iz, ix, h).

    Одна точка — одна колонка на одном уровне.
    """

    ix: np.ndarray
    iz: np.ndarray
    heights: np.ndarray

    def __len__(self) -> int:
        return len(self.heights)


def _merge_close_heights(heights: list[float], climb: float) -> list[float]:
    """Поверхности ближе climb по высоте сливаются, остаётся верхняя."""
    merged: list[float] = []
    for h in sorted(heights):
        if merged and h - merged[-1] <= climb:
            merged[-1] = h
        else:
            merged.append(h)
    return merged


def filter_walkable(hf: Heightfield, params: BuildParams) -> WalkableSamples:
    """
    Оставить поверхности, на которых агент помещается.

    Поверхность h отбрасывается, если:
    - над ней в пределах walkable_height есть другая поверхность (низкий потолок);
    - препятствие поднимается выше h + climb и начинается ниже h + walkable_height.
    """
    climb = params.climb_world
    clearance = params.height_world

    out_ix: list[int] = []
    out_iz: list[int] = []
    out_h: list[float] = []

    for (cx, cz), heights in hf.surfaces.items():
        if params.clip_min_y is not None:
            heights = [h for h in heights if h >= params.clip_min_y]
        if params.clip_max_y is not None:
            heights = [h for h in heights if h <= params.clip_max_y]
        if not heights:
            continue

        merged = _merge_close_heights(heights, climb)
        spans = hf.obstacles.get((cx, cz), ())

        for k, h in enumerate(merged):
            if k + 1 < len(merged) and merged[k + 1] - h < clearance:
                continue
            blocked = False
            for y0, y1 in spans:
                if y1 > h + climb and y0 < h + clearance:
                    blocked = True
                    break
            if blocked:
                continue
            out_ix.append(cx)
            out_iz.append(cz)
            out_h.append(h)

    ix = np.array(out_ix, dtype=np.int64)
    iz = np.array(out_iz, dtype=np.int64)
    heights = np.array(out_h, dtype=np.float64)

    order = np.lexsort((heights, ix, iz))
    return WalkableSamples(ix=ix[order], iz=iz[order], heights=heights[order])
