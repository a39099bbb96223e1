"""
Базовые структуры данных для NavMesh.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
import math
from typing import Iterator, Optional

import numpy as np


@dataclass
class NavMeshConfig:
    """
    Конфигурация построения NavMesh в мировых единицах.

    Размеры агента переводятся адаптером в воксели (см. to_build_params).
    """

    cell_size: float = 0.3
    """Размер колонки heightfield по X/Z."""

    cell_height: float = 0.2
    """Шаг квантования по Y."""

    agent_height: float = 2.0
    """Минимальный зазор до потолка."""

    agent_radius: float = 0.6
    """Радиус агента — эрозия проходимой области от краёв."""

    agent_climb: float = 0.9
    """Максимальная высота ступени."""

    walkable_slope_angle: float = 45.0
    """Максимальный угол наклона проходимой поверхности, градусы."""

    min_region_area: int = 64
    """Изолированные острова меньше этой площади (в колонках) удаляются."""

    merge_region_area: int = 400
    """Регионы меньше этой площади (в колонках) поглощаются соседями."""

    clip_min_y: Optional[float] = None
    clip_max_y: Optional[float] = None

    debug_unfiltered: bool = False
    """Отладка: радиус агента и пороги регионов принудительно равны нулю."""

    @staticmethod
    def for_agent(
        agent_height: float,
        agent_radius: float,
        agent_climb: float,
        cell_size: float = 0.3,
        cell_height: float = 0.2,
        **kwargs,
    ) -> "NavMeshConfig":
        """Конфигурация по размерам агента, остальные поля — по умолчанию или из kwargs."""
        return NavMeshConfig(
            cell_size=cell_size,
            cell_height=cell_height,
            agent_height=agent_height,
            agent_radius=agent_radius,
            agent_climb=agent_climb,
            **kwargs,
        )

    def validate(self) -> None:
        """ValueError при некорректных значениях."""
        if not self.cell_size > 0:
            raise ValueError(f"cell_size must be positive, got {self.cell_size}")
        if not self.cell_height > 0:
            raise ValueError(f"cell_height must be positive, got {self.cell_height}")
        if self.agent_height < 0 or self.agent_radius < 0 or self.agent_climb < 0:
            raise ValueError("agent height, radius and climb must be non-negative")
        if not 0.0 <= self.walkable_slope_angle < 90.0:
            raise ValueError(
                f"walkable_slope_angle must be in [0, 90), got {self.walkable_slope_angle}"
            )
        if self.min_region_area < 0 or self.merge_region_area < 0:
            raise ValueError("region areas must be non-negative")
        if (
            self.clip_min_y is not None
            and self.clip_max_y is not None
            and self.clip_min_y > self.clip_max_y
        ):
            raise ValueError("clip_min_y is above clip_max_y")

    def to_build_params(self) -> "BuildParams":
        """Перевести мировые единицы в воксельные (ceil для высоты и радиуса, floor для ступени)."""
        walkable_radius = int(math.ceil(self.agent_radius / self.cell_size))
        min_region_area = int(self.min_region_area)
        merge_region_area = int(self.merge_region_area)
        if self.debug_unfiltered:
            walkable_radius = 0
            min_region_area = 0
            merge_region_area = 0

        return BuildParams(
            cell_size=float(self.cell_size),
            cell_height=float(self.cell_height),
            walkable_slope_angle=float(self.walkable_slope_angle),
            walkable_height=int(math.ceil(self.agent_height / self.cell_height)),
            walkable_climb=int(math.floor(self.agent_climb / self.cell_height)),
            walkable_radius=walkable_radius,
            min_region_area=min_region_area,
            merge_region_area=merge_region_area,
            clip_min_y=self.clip_min_y,
            clip_max_y=self.clip_max_y,
        )

    def to_dict(self) -> dict:
        return asdict(self)

    @staticmethod
    def from_dict(data: dict) -> "NavMeshConfig":
        """Неизвестные ключи игнорируются, отсутствующие берутся по умолчанию."""
        known = {f.name for f in fields(NavMeshConfig)}
        return NavMeshConfig(**{k: v for k, v in data.items() if k in known})


@dataclass(frozen=True)
class BuildParams:
    """Параметры движка в воксельных единицах. Создаётся адаптером."""

    cell_size: float
    cell_height: float
    walkable_slope_angle: float
    walkable_height: int
    walkable_climb: int
    walkable_radius: int
    min_region_area: int
    merge_region_area: int
    clip_min_y: Optional[float] = None
    clip_max_y: Optional[float] = None

    @property
    def climb_world(self) -> float:
        return self.walkable_climb * self.cell_height

    @property
    def height_world(self) -> float:
        return self.walkable_height * self.cell_height


@dataclass(frozen=True)
class PathResult:
    """Упорядоченные точки пути от старта к цели, shape (K, 3)."""

    points: np.ndarray = field(default_factory=lambda: np.zeros((0, 3), dtype=np.float32))

    @classmethod
    def from_points(cls, points) -> "PathResult":
        arr = np.asarray(points, dtype=np.float32).reshape(-1, 3)
        return cls(points=arr)

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[np.ndarray]:
        return iter(self.points)

    def __getitem__(self, index: int) -> np.ndarray:
        return self.points[index]

    def __bool__(self) -> bool:
        return len(self.points) > 0

    @property
    def first(self) -> np.ndarray:
        return self.points[0]

    @property
    def last(self) -> np.ndarray:
        return self.points[-1]

    def length(self) -> float:
        """Длина ломаной."""
        if len(self.points) < 2:
            return 0.0
        return float(np.linalg.norm(np.diff(self.points, axis=0), axis=1).sum())

    def lifted(self, dy: float) -> "PathResult":
        """Копия, поднятая по Y (например, на радиус агента)."""
        pts = self.points.copy()
        pts[:, 1] += dy
        return PathResult(points=pts)
