"""
NavMeshAdapter — построение NavMesh по треугольникам сцены и запросы пути.

Проверяет входные буферы, переводит NavMeshConfig в воксельные единицы
и передаёт всё движку одним вызовом. Ошибки движка пробрасываются с его
собственной причиной.
"""

from __future__ import annotations

import copy
from typing import Optional

import numpy as np

from mazenav import log
from mazenav.geometry.soup import TriangleSoup
from mazenav.navmesh.engine import NavMesh, NavMeshEngine
from mazenav.navmesh.errors import (
    InvalidInputError,
    NavMeshBuildError,
    NavMeshErrorCode,
    NavMeshNotBuiltError,
)
from mazenav.navmesh.types import NavMeshConfig, PathResult


GENERIC_BUILD_FAILURE = "NavMesh build failed."


def _default_engine() -> NavMeshEngine:
    from mazenav.navmesh.voxel_engine import VoxelNavMeshEngine

    return VoxelNavMeshEngine()


def validate_buffers(vertices, indices) -> tuple[np.ndarray, np.ndarray]:
    """
    Проверить и привести буферы к плоским массивам.

    Returns:
        (vertices float32 (3*V,), indices int32 (3*T,)).

    Raises:
        InvalidInputError: пустые буферы, длина не кратна 3, индекс вне
            диапазона, нечисловые координаты.
    """
    try:
        verts = np.asarray(vertices, dtype=np.float32).reshape(-1)
        idx = np.asarray(indices).reshape(-1)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"vertex or index buffer is not numeric: {e}") from e

    if verts.size == 0 or idx.size == 0:
        raise InvalidInputError("vertices or indices is empty.")
    if verts.size % 3 != 0:
        raise InvalidInputError(f"vertex buffer length {verts.size} is not a multiple of 3")
    if idx.size % 3 != 0:
        raise InvalidInputError(f"index buffer length {idx.size} is not a multiple of 3")
    if not np.issubdtype(idx.dtype, np.integer):
        raise InvalidInputError(f"indices must be integers, got {idx.dtype}")
    if not np.all(np.isfinite(verts)):
        raise InvalidInputError("vertex buffer contains non-finite values")

    vertex_count = verts.size // 3
    if idx.min() < 0 or idx.max() >= vertex_count:
        raise InvalidInputError(
            f"index out of range [0, {vertex_count}): min {int(idx.min())}, max {int(idx.max())}"
        )

    return verts, idx.astype(np.int32)


class NavMeshAdapter:
    """
    Держит построенный NavMesh и отвечает на запросы пути.

    Неудачное построение не трогает ранее построенный меш.
    """

    def __init__(self, engine: Optional[NavMeshEngine] = None) -> None:
        self.engine: NavMeshEngine = engine if engine is not None else _default_engine()
        self._navmesh: Optional[NavMesh] = None
        self._config: Optional[NavMeshConfig] = None

    @property
    def navmesh(self) -> Optional[NavMesh]:
        return self._navmesh

    @property
    def config(self) -> Optional[NavMeshConfig]:
        """Копия конфигурации последнего успешного построения."""
        return self._config

    @property
    def is_built(self) -> bool:
        return self._navmesh is not None

    def build(self, vertices, indices, config: Optional[NavMeshConfig] = None) -> NavMesh:
        """
        Построить NavMesh по всей сцене сразу.

        Raises:
            InvalidInputError: некорректные буферы или конфигурация.
            NavMeshBuildError: движок отверг геометрию.
        """
        verts, idx = validate_buffers(vertices, indices)

        config = copy.copy(config) if config is not None else NavMeshConfig()
        try:
            config.validate()
        except ValueError as e:
            raise InvalidInputError(str(e)) from e

        params = config.to_build_params()
        vertex_count = verts.size // 3
        index_count = idx.size

        log.info(
            f"[NavMeshAdapter] Building navmesh: {vertex_count} vertices, "
            f"{index_count // 3} triangles, cell {params.cell_size}/{params.cell_height}, "
            f"radius {params.walkable_radius}, climb {params.walkable_climb}, "
            f"height {params.walkable_height}"
        )
        if config.debug_unfiltered:
            log.warn("[NavMeshAdapter] debug_unfiltered: agent radius and region thresholds forced to 0")

        navmesh = self.engine.build(verts, vertex_count, idx, index_count, params)
        if navmesh is None:
            raise NavMeshBuildError(GENERIC_BUILD_FAILURE, NavMeshErrorCode.NAVMESH_DATA)

        self._navmesh = navmesh
        self._config = config
        return navmesh

    def build_soup(self, soup: TriangleSoup, config: Optional[NavMeshConfig] = None) -> NavMesh:
        return self.build(soup.flat_vertices(), soup.flat_indices(), config)

    def _require_navmesh(self) -> NavMesh:
        if self._navmesh is None:
            raise NavMeshNotBuiltError("navmesh is not built")
        return self._navmesh

    def query(self, start, goal) -> Optional[PathResult]:
        """
        Путь от start до goal.

        Returns:
            PathResult или None, если путь не существует (точка вне меша,
            несвязные области).
        """
        navmesh = self._require_navmesh()
        start = np.asarray(start, dtype=np.float32).reshape(3)
        goal = np.asarray(goal, dtype=np.float32).reshape(3)

        points = navmesh.find_path(start, goal)
        if points is None or len(points) == 0:
            log.debug(f"[NavMeshAdapter] No path from {start.tolist()} to {goal.tolist()}")
            return None
        return PathResult.from_points(points)

    def debug_triangles(self) -> TriangleSoup:
        """Треугольники построенной поверхности для визуализации."""
        navmesh = self._require_navmesh()
        buffer, count = navmesh.debug_triangle_vertices()
        buffer = np.asarray(buffer, dtype=np.float32).reshape(-1)

        count = max(0, min(int(count), buffer.size // 3))
        count -= count % 3
        vertices = buffer[: count * 3].reshape(-1, 3)
        triangles = np.arange(count, dtype=np.int32).reshape(-1, 3)
        return TriangleSoup(vertices=vertices, triangles=triangles)


def build_navmesh(
    vertices,
    indices,
    config: Optional[NavMeshConfig] = None,
    engine: Optional[NavMeshEngine] = None,
) -> NavMesh:
    """Построить NavMesh без сохранения состояния адаптера."""
    return NavMeshAdapter(engine).build(vertices, indices, config)
