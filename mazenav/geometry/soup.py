"""
TriangleSoup — индексированный список треугольников.

Порядок обхода значим: нормаль (v1 - v0) x (v2 - v0) с положительной Y
(против часовой стрелки при взгляде сверху в правой системе Y-up) — это
поверхность, по которой можно ходить. Вертикальные грани стен несут
обход только для коллизий.
"""

from __future__ import annotations

from dataclasses import dataclass
import numpy as np


@dataclass(frozen=True)
class TriangleSoup:
    """Вершины (N, 3) float32 и треугольники (M, 3) int32."""

    vertices: np.ndarray
    triangles: np.ndarray

    @classmethod
    def empty(cls) -> TriangleSoup:
        return cls(
            vertices=np.zeros((0, 3), dtype=np.float32),
            triangles=np.zeros((0, 3), dtype=np.int32),
        )

    @classmethod
    def from_flat(cls, vertices, indices) -> TriangleSoup:
        """Собрать из плоских буферов [x, y, z, ...] и [i0, i1, i2, ...]."""
        v = np.asarray(vertices, dtype=np.float32)
        i = np.asarray(indices, dtype=np.int32)
        if v.size % 3 != 0:
            raise ValueError(f"vertex buffer length {v.size} is not a multiple of 3")
        if i.size % 3 != 0:
            raise ValueError(f"index buffer length {i.size} is not a multiple of 3")
        return cls(vertices=v.reshape(-1, 3), triangles=i.reshape(-1, 3))

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def triangle_count(self) -> int:
        return len(self.triangles)

    def flat_vertices(self) -> np.ndarray:
        return self.vertices.reshape(-1).copy()

    def flat_indices(self) -> np.ndarray:
        return self.triangles.reshape(-1).copy()

    def validate(self) -> None:
        """Проверить, что все индексы ссылаются на существующие вершины."""
        if self.triangles.size == 0:
            return
        lo = int(self.triangles.min())
        hi = int(self.triangles.max())
        if lo < 0 or hi >= self.vertex_count:
            raise ValueError(
                f"triangle indices span [{lo}, {hi}] but soup has {self.vertex_count} vertices"
            )

    def face_normals(self) -> np.ndarray:
        """Ненормированные нормали граней, shape (M, 3)."""
        if self.triangle_count == 0:
            return np.zeros((0, 3), dtype=np.float32)
        v0 = self.vertices[self.triangles[:, 0]]
        v1 = self.vertices[self.triangles[:, 1]]
        v2 = self.vertices[self.triangles[:, 2]]
        return np.cross(v1 - v0, v2 - v0)

    def upward_mask(self, min_normal_y: float = 1e-6) -> np.ndarray:
        """
        Маска граней, смотрящих вверх.

        Args:
            min_normal_y: Минимальная Y-компонента единичной нормали.
                          cos(45°) ≈ 0.707 отбрасывает крутые склоны.
        """
        normals = self.face_normals()
        if len(normals) == 0:
            return np.zeros(0, dtype=bool)
        lengths = np.linalg.norm(normals, axis=1)
        ok = lengths > 1e-12
        ny = np.zeros(len(normals), dtype=np.float64)
        ny[ok] = normals[ok, 1] / lengths[ok]
        return ok & (ny >= min_normal_y)

    def upward_area(self, min_normal_y: float = 1e-6) -> float:
        """Площадь граней, смотрящих вверх (стены не учитываются)."""
        normals = self.face_normals()
        mask = self.upward_mask(min_normal_y)
        if not mask.any():
            return 0.0
        return float(np.linalg.norm(normals[mask], axis=1).sum() * 0.5)

    def bounds(self) -> tuple[np.ndarray, np.ndarray]:
        if self.vertex_count == 0:
            raise ValueError("empty soup has no bounds")
        return self.vertices.min(axis=0), self.vertices.max(axis=0)
