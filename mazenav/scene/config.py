"""
Настройки демонстрационной сцены: двухуровневый лабиринт с пандусом.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields

from mazenav.navmesh.types import NavMeshConfig


@dataclass
class MazeSceneConfig:
    """
    Параметры сцены в мировых единицах.

    Значения по умолчанию дают лабиринт 9x9 с клеткой 0.45, второй этаж
    на высоте 0.4, сдвинутый по X на 0.6 ширины пола, и пандус длиной
    в три клетки между этажами.
    """

    maze_width: int = 9
    maze_height: int = 9
    seed: int = 0xC0FFEE

    cell_size: float = 0.45
    wall_thickness: float = 0.05
    wall_height: float = 0.25

    upper_floor_y: float = 0.4
    """Высота второго этажа; она же высота пандуса."""

    upper_floor_offset: float = 0.6
    """Сдвиг второго этажа по X в долях ширины пола."""

    ramp_cell_x: int = 2
    ramp_cell_z: int = 2
    """Клетка лабиринта, над которой (со сдвигом этажа) стоит центр пандуса."""

    ramp_length_cells: float = 3.0
    ramp_width_cells: float = 0.8

    agent_radius: float = 0.06
    agent_height: float = 0.2
    agent_climb: float = 0.1
    agent_speed: float = 0.5
    arrive_tolerance: float = 0.02

    navmesh_cell_size: float = 0.05
    navmesh_cell_height: float = 0.05
    walkable_slope_angle: float = 45.0
    min_region_area: int = 8
    merge_region_area: int = 20

    debug_navmesh: bool = False
    """Отключить эрозию и пороги регионов (отладочная сборка)."""

    @property
    def floor_width(self) -> float:
        return self.maze_width * self.cell_size

    @property
    def floor_depth(self) -> float:
        return self.maze_height * self.cell_size

    @property
    def upper_floor_offset_x(self) -> float:
        return self.floor_width * self.upper_floor_offset

    def navmesh_config(self) -> NavMeshConfig:
        return NavMeshConfig.for_agent(
            agent_height=self.agent_height,
            agent_radius=self.agent_radius,
            agent_climb=self.agent_climb,
            cell_size=self.navmesh_cell_size,
            cell_height=self.navmesh_cell_height,
            walkable_slope_angle=self.walkable_slope_angle,
            min_region_area=self.min_region_area,
            merge_region_area=self.merge_region_area,
            debug_unfiltered=self.debug_navmesh,
        )

    def to_dict(self) -> dict:
        return asdict(self)

    @staticmethod
    def from_dict(data: dict) -> "MazeSceneConfig":
        """Неизвестные ключи игнорируются."""
        known = {f.name for f in fields(MazeSceneConfig)}
        return MazeSceneConfig(**{k: v for k, v in data.items() if k in known})
