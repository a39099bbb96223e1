"""
GeometryBuilder — накопление треугольной геометрии для сцены и NavMesh.

Каждый append* дописывает вершины в общий буфер и треугольники со
смещёнными индексами, поэтому несколько вызовов дают один TriangleSoup.
Вырожденные размеры (ноль или меньше) — не ошибка: ничего не добавляется.
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from mazenav.geometry.soup import TriangleSoup

Vec2 = Sequence[float]
Vec3 = Sequence[float]


class GeometryBuilder:
    """
    Владелец растущих буферов вершин и индексов.

    Методы append* возвращают индекс первой добавленной вершины
    или None, если вход вырожден и ничего не добавлено.
    """

    def __init__(self) -> None:
        self._vertices: list[float] = []
        self._indices: list[int] = []

    @property
    def vertex_count(self) -> int:
        return len(self._vertices) // 3

    @property
    def triangle_count(self) -> int:
        return len(self._indices) // 3

    def clear(self) -> None:
        self._vertices.clear()
        self._indices.clear()

    def _add_vertex(self, x: float, y: float, z: float) -> None:
        self._vertices.extend((float(x), float(y), float(z)))

    def append_plane(self, center: Vec3, size: Vec2) -> Optional[int]:
        """
        Горизонтальный квад (2 треугольника) с нормалью +Y.

        Args:
            center: Центр квада; все вершины получают Y = center.y.
            size: (протяжённость по X, протяжённость по Z).
        """
        sx, sz = float(size[0]), float(size[1])
        if sx <= 0 or sz <= 0:
            return None

        cx, cy, cz = (float(c) for c in center)
        hx = sx * 0.5
        hz = sz * 0.5

        base = self.vertex_count
        self._add_vertex(cx - hx, cy, cz - hz)
        self._add_vertex(cx + hx, cy, cz - hz)
        self._add_vertex(cx + hx, cy, cz + hz)
        self._add_vertex(cx - hx, cy, cz + hz)

        # Обход даёт нормаль +Y: пол проходим
        self._indices.extend((
            base, base + 2, base + 1,
            base, base + 3, base + 2,
        ))
        return base

    def append_box(self, center: Vec3, size: Vec3) -> Optional[int]:
        """
        Бокс без верхней и нижней граней: 8 вершин, 4 боковые грани, 8 треугольников.

        Горизонтальные грани стен не должны попадать в проходимую поверхность
        и не должны перекрываться с полом.
        """
        sx, sy, sz = (float(s) for s in size)
        if sx <= 0 or sy <= 0 or sz <= 0:
            return None

        cx, cy, cz = (float(c) for c in center)
        hx = sx * 0.5
        hy = sy * 0.5
        hz = sz * 0.5

        base = self.vertex_count
        # Низ: 0..3
        self._add_vertex(cx - hx, cy - hy, cz - hz)
        self._add_vertex(cx + hx, cy - hy, cz - hz)
        self._add_vertex(cx + hx, cy - hy, cz + hz)
        self._add_vertex(cx - hx, cy - hy, cz + hz)
        # Верх: 4..7
        self._add_vertex(cx - hx, cy + hy, cz - hz)
        self._add_vertex(cx + hx, cy + hy, cz - hz)
        self._add_vertex(cx + hx, cy + hy, cz + hz)
        self._add_vertex(cx - hx, cy + hy, cz + hz)

        b = base
        self._indices.extend((
            # Перед (Z+)
            b + 3, b + 2, b + 6,
            b + 3, b + 6, b + 7,
            # Зад (Z-)
            b + 0, b + 5, b + 1,
            b + 0, b + 4, b + 5,
            # Лево (X-)
            b + 0, b + 3, b + 7,
            b + 0, b + 7, b + 4,
            # Право (X+)
            b + 1, b + 6, b + 2,
            b + 1, b + 5, b + 6,
        ))
        return base

    def append_ramp_top(
        self,
        origin: Vec3,
        length: float,
        width: float,
        height: float,
    ) -> Optional[int]:
        """
        Наклонный квад пандуса.

        Поднимается вдоль X от (-length/2, 0) до (+length/2, height)
        относительно origin, ширина по Z. Нормаль смотрит вверх, так что
        склон сам по себе проходим и связывает этажи.
        """
        length = float(length)
        width = float(width)
        height = float(height)
        if length <= 0 or width <= 0 or height < 0:
            return None

        ox, oy, oz = (float(c) for c in origin)
        hx = length * 0.5
        hz = width * 0.5

        base = self.vertex_count
        self._add_vertex(ox - hx, oy, oz - hz)
        self._add_vertex(ox + hx, oy + height, oz - hz)
        self._add_vertex(ox + hx, oy + height, oz + hz)
        self._add_vertex(ox - hx, oy, oz + hz)

        self._indices.extend((
            base, base + 2, base + 1,
            base, base + 3, base + 2,
        ))
        return base

    def extend(self, soup: TriangleSoup) -> Optional[int]:
        """Дописать готовый TriangleSoup со сдвигом индексов."""
        if soup.vertex_count == 0:
            return None
        base = self.vertex_count
        self._vertices.extend(soup.vertices.reshape(-1).astype(float).tolist())
        self._indices.extend((soup.triangles.reshape(-1) + base).astype(int).tolist())
        return base

    def flat_vertices(self) -> np.ndarray:
        return np.array(self._vertices, dtype=np.float32)

    def flat_indices(self) -> np.ndarray:
        return np.array(self._indices, dtype=np.int32)

    def build(self) -> TriangleSoup:
        """Снимок текущего состояния буферов."""
        return TriangleSoup(
            vertices=self.flat_vertices().reshape(-1, 3),
            triangles=self.flat_indices().reshape(-1, 3),
        )
