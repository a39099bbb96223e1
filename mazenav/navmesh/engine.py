"""
Interface of a navigation mesh engine.

The adapter only talks to these protocols, so any engine exposing
build / find_path / debug_triangle_vertices can replace the bundled
VoxelNavMeshEngine without touching maze, geometry or agent code.
"""

from __future__ import annotations

from typing import Optional, Protocol, Sequence, runtime_checkable

import numpy as np

from mazenav.navmesh.types import BuildParams


@runtime_checkable
class NavMesh(Protocol):
    """
    Built navigable surface. Read-only after construction.

    find_path must be reentrant: concurrent queries on one mesh are allowed
    without extra synchronization.
    """

    def find_path(self, start: np.ndarray, goal: np.ndarray) -> Optional[Sequence[np.ndarray]]:
        """Waypoints from start to goal snapped to the surface, or None if not connected."""
        ...

    def debug_triangle_vertices(self) -> tuple[np.ndarray, int]:
        """Flat float32 buffer of non-indexed triangle vertices and the vertex count."""
        ...


@runtime_checkable
class NavMeshEngine(Protocol):
    def build(
        self,
        vertices: np.ndarray,
        vertex_count: int,
        indices: np.ndarray,
        index_count: int,
        params: BuildParams,
    ) -> Optional[NavMesh]:
        """
        Build a navmesh from the whole scene at once.

        vertices is a flat float32 buffer of 3 * vertex_count coordinates,
        indices a flat int32 buffer of index_count entries (triples).

        Returns the mesh, raises NavMeshBuildError with a reason, or returns
        None when it has nothing more specific to say.
        """
        ...
