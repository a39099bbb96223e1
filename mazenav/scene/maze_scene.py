"""
MazeScene — сборка демонстрационной сцены и цикл управления агентом.

setup: лабиринт -> раскладка -> треугольники -> NavMesh -> агент и маркер.
Ошибки построения NavMesh прерывают сборку сцены.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from mazenav import log
from mazenav.agent import AgentController, DestinationMarker
from mazenav.geometry import TriangleSoup
from mazenav.maze import MazeGrid, generate
from mazenav.navmesh import NavMeshAdapter, NavMeshEngine, NavMeshError, PathResult
from mazenav.scene.config import MazeSceneConfig
from mazenav.scene.layout import (
    RenderPiece,
    SceneLayout,
    build_layout,
    build_navmesh_geometry,
    render_pieces,
)


class MazeScene:
    """
    Двухуровневый лабиринт с агентом.

    Использование:
        scene = MazeScene()
        if scene.request_destination(scene.layout.cell_target(4, 4)):
            scene.run_until_idle()
    """

    def __init__(
        self,
        config: Optional[MazeSceneConfig] = None,
        engine: Optional[NavMeshEngine] = None,
    ) -> None:
        self.config = config if config is not None else MazeSceneConfig()
        self.last_path: Optional[PathResult] = None

        try:
            self.maze: MazeGrid = generate(
                self.config.maze_width,
                self.config.maze_height,
                self.config.seed,
                cell_size=self.config.cell_size,
                wall_thickness=self.config.wall_thickness,
                wall_height=self.config.wall_height,
            )
            self.layout: SceneLayout = build_layout(self.config, self.maze)
            self.soup: TriangleSoup = build_navmesh_geometry(self.layout)

            self.navmesh = NavMeshAdapter(engine)
            self.navmesh.build_soup(self.soup, self.config.navmesh_config())
        except (NavMeshError, ValueError) as e:
            log.error(e, "[MazeScene] setup failed")
            raise

        self.agent = AgentController(
            self.layout.agent_spawn,
            speed=self.config.agent_speed,
            arrive_tolerance=self.config.arrive_tolerance,
        )
        self.marker = DestinationMarker()

        log.info(
            f"[MazeScene] ready: maze {self.maze.width}x{self.maze.height} seed {self.maze.seed}, "
            f"{self.soup.triangle_count} triangles"
        )

    def request_destination(self, target) -> bool:
        """
        Отправить агента к точке.

        Маркер ставится в любом случае. Если пути нет, агент останавливается.

        Returns:
            True если путь найден и назначен.
        """
        target = np.asarray(target, dtype=np.float32).reshape(3)
        self.marker.place(target)

        path = self.navmesh.query(self.agent.position, target)
        if path is None:
            log.info(
                f"[MazeScene] no path to ({target[0]:.2f}, {target[1]:.2f}, {target[2]:.2f})"
            )
            self.last_path = None
            self.agent.stop()
            return False

        self.last_path = path.lifted(self.config.agent_radius)
        log.info(
            f"[MazeScene] path found with {len(self.last_path)} waypoints, "
            f"length {self.last_path.length():.2f}"
        )
        return self.agent.assign_path(self.last_path.points)

    def request_cell(self, x: int, y: int, upper: bool = False) -> bool:
        """Отправить агента в центр клетки лабиринта."""
        return self.request_destination(self.layout.cell_target(x, y, upper=upper))

    def update(self, dt: float) -> None:
        self.agent.update(dt)
        self.marker.update(dt)

    def run_until_idle(self, dt: float = 1.0 / 60.0, max_steps: int = 100_000) -> int:
        """
        Крутить update, пока агент движется.

        Returns:
            Число выполненных тиков.
        """
        if not dt > 0:
            raise ValueError(f"dt must be positive, got {dt}")
        steps = 0
        while self.agent.is_moving and steps < max_steps:
            self.update(dt)
            steps += 1
        return steps

    def debug_triangles(self) -> TriangleSoup:
        return self.navmesh.debug_triangles()

    def render_pieces(self) -> list[RenderPiece]:
        return render_pieces(self.layout)
