"""
Navigation mesh: build adapter, engine protocol and the bundled heightfield engine.

Пайплайн встроенного движка:
1. Растеризация треугольников в колонки heightfield
2. Фильтрация по высоте агента, ступени и препятствиям
3. Эрозия, удаление островов, регионы
4. Запросы: A* по колонкам + funnel
"""

from mazenav.navmesh.errors import (
    NavMeshErrorCode,
    NavMeshError,
    InvalidInputError,
    NavMeshBuildError,
    NavMeshNotBuiltError,
)
from mazenav.navmesh.types import NavMeshConfig, BuildParams, PathResult
from mazenav.navmesh.engine import NavMesh, NavMeshEngine
from mazenav.navmesh.voxel_engine import VoxelNavMesh, VoxelNavMeshEngine
from mazenav.navmesh.adapter import NavMeshAdapter, build_navmesh

__all__ = [
    "NavMeshErrorCode",
    "NavMeshError",
    "InvalidInputError",
    "NavMeshBuildError",
    "NavMeshNotBuiltError",
    "NavMeshConfig",
    "BuildParams",
    "PathResult",
    "NavMesh",
    "NavMeshEngine",
    "VoxelNavMesh",
    "VoxelNavMeshEngine",
    "NavMeshAdapter",
    "build_navmesh",
]
