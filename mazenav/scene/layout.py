"""
Раскладка сцены: пол, второй этаж с проёмом под пандус, стены обоих
этажей и сам пандус.

Одна и та же раскладка даёт и описание для рендера (render_pieces), и
треугольники для NavMesh (build_navmesh_geometry), так что навигация
всегда совпадает с тем, что видно.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from mazenav.geometry import GeometryBuilder, TriangleSoup
from mazenav.maze import MazeGrid, WallBox
from mazenav.maze.grid import Vec3
from mazenav.scene.config import MazeSceneConfig


@dataclass(frozen=True)
class FloorPiece:
    """Горизонтальный прямоугольник пола: центр и размер (x, z)."""

    center: Vec3
    size: tuple[float, float]


@dataclass(frozen=True)
class Footprint:
    """Прямоугольник на плоскости XZ (границы включительно)."""

    min_x: float
    max_x: float
    min_z: float
    max_z: float

    def intersects(self, wall: WallBox, x_offset: float = 0.0) -> bool:
        return wall.translated(dx=x_offset).intersects_xz(
            self.min_x, self.max_x, self.min_z, self.max_z
        )


@dataclass(frozen=True)
class RenderPiece:
    """
    Элемент сцены для внешнего рендера.

    kind: "floor", "upper_floor", "wall", "upper_wall", "ramp" или "agent".
    Для пандуса size = (length, height, width), для агента — (r, r, r).
    """

    kind: str
    center: Vec3
    size: tuple[float, ...]


@dataclass
class SceneLayout:
    maze: MazeGrid
    floor: FloorPiece
    upper_floor: list[FloorPiece] = field(default_factory=list)
    ground_walls: list[WallBox] = field(default_factory=list)
    upper_walls: list[WallBox] = field(default_factory=list)
    ramp_origin: Vec3 = (0.0, 0.0, 0.0)
    ramp_length: float = 0.0
    ramp_width: float = 0.0
    ramp_height: float = 0.0
    ramp_footprint: Optional[Footprint] = None
    upper_floor_y: float = 0.0
    upper_offset_x: float = 0.0
    agent_radius: float = 0.0
    agent_spawn: Vec3 = (0.0, 0.0, 0.0)

    def cell_target(self, x: int, y: int, upper: bool = False) -> Vec3:
        """Точка на полу в центре клетки (x, y) нижнего или верхнего этажа."""
        cx, cy, cz = self.maze.cell_center(x, y)
        if upper:
            return (cx + self.upper_offset_x, cy + self.upper_floor_y, cz)
        return (cx, cy, cz)


def build_layout(config: MazeSceneConfig, maze: MazeGrid) -> SceneLayout:
    """
    Рассчитать раскладку сцены для сгенерированного лабиринта.

    Второй этаж — копия лабиринта, поднятая на upper_floor_y и сдвинутая
    по X на upper_floor_offset_x. Пол второго этажа складывается из четырёх
    кусков вокруг проёма пандуса (проём расширен на толщину стены); куски
    нулевого размера пропускаются. Стены, задевающие проём, не ставятся
    ни на одном этаже.
    """
    cs = maze.cell_size
    ox, oy, oz = maze.origin
    floor_w = config.floor_width
    floor_d = config.floor_depth
    offset_x = config.upper_floor_offset_x
    upper_y = config.upper_floor_y
    thickness = maze.wall_thickness

    ramp_length = cs * config.ramp_length_cells
    ramp_width = cs * config.ramp_width_cells
    ramp_origin = (
        ox + cs * config.ramp_cell_x + offset_x,
        oy,
        oz + cs * config.ramp_cell_z,
    )
    footprint = Footprint(
        min_x=ramp_origin[0] - ramp_length * 0.5 - thickness,
        max_x=ramp_origin[0] + ramp_length * 0.5 + thickness,
        min_z=ramp_origin[2] - ramp_width * 0.5 - thickness,
        max_z=ramp_origin[2] + ramp_width * 0.5 + thickness,
    )

    floor_cx = ox + floor_w * 0.5
    floor_cz = oz + floor_d * 0.5
    upper_min_x = ox + offset_x
    upper_max_x = ox + floor_w + offset_x
    floor_min_z = oz
    floor_max_z = oz + floor_d

    upper_floor_y = oy + upper_y
    mid_x = (footprint.min_x + footprint.max_x) * 0.5
    candidates = [
        # Слева и справа от проёма, на всю глубину
        FloorPiece(
            ((footprint.min_x + upper_min_x) * 0.5, upper_floor_y, floor_cz),
            (footprint.min_x - upper_min_x, floor_d),
        ),
        FloorPiece(
            ((upper_max_x + footprint.max_x) * 0.5, upper_floor_y, floor_cz),
            (upper_max_x - footprint.max_x, floor_d),
        ),
        # Перед проёмом и за ним, по его ширине
        FloorPiece(
            (mid_x, upper_floor_y, (footprint.min_z + floor_min_z) * 0.5),
            (footprint.max_x - footprint.min_x, footprint.min_z - floor_min_z),
        ),
        FloorPiece(
            (mid_x, upper_floor_y, (floor_max_z + footprint.max_z) * 0.5),
            (footprint.max_x - footprint.min_x, floor_max_z - footprint.max_z),
        ),
    ]
    upper_floor = [p for p in candidates if p.size[0] > 0 and p.size[1] > 0]

    walls = maze.wall_boxes()
    ground_walls = [w for w in walls if not footprint.intersects(w)]
    upper_walls = [
        w.translated(dx=offset_x, dy=upper_y)
        for w in walls
        if not footprint.intersects(w, x_offset=offset_x)
    ]

    spawn_x, _, spawn_z = maze.cell_center(0, 0)

    return SceneLayout(
        maze=maze,
        floor=FloorPiece((floor_cx, oy, floor_cz), (floor_w, floor_d)),
        upper_floor=upper_floor,
        ground_walls=ground_walls,
        upper_walls=upper_walls,
        ramp_origin=ramp_origin,
        ramp_length=ramp_length,
        ramp_width=ramp_width,
        ramp_height=upper_y,
        ramp_footprint=footprint,
        upper_floor_y=upper_y,
        upper_offset_x=offset_x,
        agent_radius=config.agent_radius,
        agent_spawn=(spawn_x, oy + config.agent_radius, spawn_z),
    )


def build_navmesh_geometry(
    layout: SceneLayout,
    include_walls: bool = True,
) -> TriangleSoup:
    """
    Треугольники для построения NavMesh.

    Порядок: пол, куски второго этажа, стены первого этажа, стены второго
    этажа, пандус.
    """
    builder = GeometryBuilder()
    builder.append_plane(layout.floor.center, layout.floor.size)
    for piece in layout.upper_floor:
        builder.append_plane(piece.center, piece.size)
    if include_walls:
        for wall in layout.ground_walls:
            builder.append_box(wall.center, wall.size)
        for wall in layout.upper_walls:
            builder.append_box(wall.center, wall.size)
    builder.append_ramp_top(
        layout.ramp_origin,
        layout.ramp_length,
        layout.ramp_width,
        layout.ramp_height,
    )
    return builder.build()


def render_pieces(layout: SceneLayout) -> list[RenderPiece]:
    """Описание сцены для внешнего рендера."""
    pieces = [RenderPiece("floor", layout.floor.center, layout.floor.size)]
    pieces.extend(RenderPiece("upper_floor", p.center, p.size) for p in layout.upper_floor)
    pieces.extend(RenderPiece("wall", w.center, w.size) for w in layout.ground_walls)
    pieces.extend(RenderPiece("upper_wall", w.center, w.size) for w in layout.upper_walls)
    if layout.ramp_length > 0 and layout.ramp_width > 0 and layout.ramp_height >= 0:
        pieces.append(
            RenderPiece(
                "ramp",
                layout.ramp_origin,
                (layout.ramp_length, layout.ramp_height, layout.ramp_width),
            )
        )
    r = layout.agent_radius
    pieces.append(RenderPiece("agent", layout.agent_spawn, (r, r, r)))
    return pieces
