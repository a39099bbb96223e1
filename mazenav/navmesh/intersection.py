"""
Тесты пересечения для растеризации heightfield.

Все тесты в плоскости XZ: треугольник против набора квадратных колонок.
"""

from __future__ import annotations

import numpy as np

# Epsilon для численной устойчивости при сравнении с границами
_EPSILON = 1e-6


def triangle_columns_overlap_xz(
    tri_xz: np.ndarray,
    column_min: np.ndarray,
    cell_size: float,
    inclusive: bool = True,
) -> np.ndarray:
    """
    Пересечение проекции треугольника с колонками (SAT в 2D).

    Оси разделения: X, Z и нормали трёх рёбер. Вырожденный треугольник
    (проекция вертикальной грани — отрезок) обрабатывается тем же тестом:
    у рёбер нулевой длины ось пропускается.

    Args:
        tri_xz: (3, 2) — вершины треугольника (x, z).
        column_min: (K, 2) — минимальные углы колонок.
        cell_size: Сторона колонки.
        inclusive: True — касание границы считается пересечением,
                   False — нужно перекрытие положительной площади/длины.

    Returns:
        (K,) bool маска.
    """
    margin = _EPSILON if inclusive else -_EPSILON
    half = cell_size * 0.5
    centers = column_min + half

    mask = np.ones(len(column_min), dtype=bool)

    # --- Оси X и Z ---
    for axis in range(2):
        t_min = float(tri_xz[:, axis].min())
        t_max = float(tri_xz[:, axis].max())
        c = centers[:, axis]
        mask &= ~((c - half > t_max + margin) | (c + half < t_min - margin))

    # --- Нормали рёбер ---
    for i in range(3):
        a = tri_xz[i]
        b = tri_xz[(i + 1) % 3]
        ex = float(b[0] - a[0])
        ez = float(b[1] - a[1])
        length = (ex * ex + ez * ez) ** 0.5
        if length < 1e-12:
            continue
        nx = -ez / length
        nz = ex / length

        proj = tri_xz[:, 0] * nx + tri_xz[:, 1] * nz
        t_min = float(proj.min())
        t_max = float(proj.max())

        c = centers[:, 0] * nx + centers[:, 1] * nz
        r = half * (abs(nx) + abs(nz))
        mask &= ~((c - r > t_max + margin) | (c + r < t_min - margin))

    return mask


def plane_height_at(
    v0: np.ndarray,
    normal: np.ndarray,
    x: np.ndarray,
    z: np.ndarray,
) -> np.ndarray:
    """Высота плоскости треугольника в точках (x, z). normal[1] != 0."""
    return v0[1] - (normal[0] * (x - v0[0]) + normal[2] * (z - v0[2])) / normal[1]
