"""
Тесты демонстрационной сцены: раскладка, NavMesh по лабиринту, движение агента.
"""

import numpy as np
import pytest

from mazenav.maze import generate
from mazenav.navmesh import NavMeshAdapter, NavMeshBuildError
from mazenav.scene import (
    MazeScene,
    MazeSceneConfig,
    build_layout,
    build_navmesh_geometry,
)


@pytest.fixture(scope="module")
def scene():
    return MazeScene()


class FailingEngine:
    def build(self, vertices, vertex_count, indices, index_count, params):
        return None


class TestConfig:

    def test_defaults(self):
        config = MazeSceneConfig()
        assert config.floor_width == pytest.approx(4.05)
        assert config.upper_floor_offset_x == pytest.approx(2.43)

    def test_navmesh_config(self):
        config = MazeSceneConfig(debug_navmesh=True)
        navmesh = config.navmesh_config()
        assert navmesh.cell_size == 0.05
        assert navmesh.agent_radius == 0.06
        assert navmesh.debug_unfiltered
        assert navmesh.to_build_params().walkable_radius == 0

    def test_round_trip(self):
        config = MazeSceneConfig(maze_width=5, seed=7, ramp_length_cells=2.0)
        data = config.to_dict()
        data["window_title"] = "ignored"
        assert MazeSceneConfig.from_dict(data) == config


class TestLayout:

    def test_ramp(self, scene):
        layout = scene.layout
        assert layout.ramp_length == pytest.approx(1.35)
        assert layout.ramp_width == pytest.approx(0.36)
        assert layout.ramp_height == pytest.approx(0.4)
        np.testing.assert_allclose(layout.ramp_origin, [1.305, 0.0, -1.125], atol=1e-9)

    def test_no_wall_over_ramp_opening(self, scene):
        layout = scene.layout
        footprint = layout.ramp_footprint
        for wall in layout.ground_walls:
            assert not footprint.intersects(wall)
        for wall in layout.upper_walls:
            assert not footprint.intersects(wall)
        total = len(scene.maze.wall_boxes())
        assert len(layout.ground_walls) <= total
        assert len(layout.upper_walls) <= total

    def test_upper_walls_are_raised_and_shifted(self, scene):
        layout = scene.layout
        for wall in layout.upper_walls:
            assert wall.center[1] == pytest.approx(0.4 + 0.125)

    def test_upper_floor_surrounds_opening(self, scene):
        layout = scene.layout
        assert len(layout.upper_floor) == 4
        for piece in layout.upper_floor:
            assert piece.center[1] == pytest.approx(0.4)
            assert piece.size[0] > 0 and piece.size[1] > 0

        area = sum(p.size[0] * p.size[1] for p in layout.upper_floor)
        opening = (1.35 + 0.1) * (0.36 + 0.1)
        assert area == pytest.approx(4.05 * 4.05 - opening)

    def test_spawn_and_targets(self, scene):
        layout = scene.layout
        np.testing.assert_allclose(layout.agent_spawn, [-1.8, 0.06, -1.8], atol=1e-9)
        np.testing.assert_allclose(layout.cell_target(0, 0), [-1.8, 0.0, -1.8], atol=1e-9)
        np.testing.assert_allclose(layout.cell_target(0, 0, upper=True), [0.63, 0.4, -1.8], atol=1e-9)

    def test_opening_past_floor_edge_drops_piece(self):
        # Пандус у правого края этажа: правый кусок нулевой ширины
        config = MazeSceneConfig(maze_width=3, maze_height=3, ramp_cell_x=2)
        layout = build_layout(config, generate(3, 3, config.seed, cell_size=config.cell_size))
        assert len(layout.upper_floor) == 3

    def test_render_pieces(self, scene):
        pieces = scene.render_pieces()
        kinds = [p.kind for p in pieces]
        assert kinds[0] == "floor"
        assert kinds.count("upper_floor") == 4
        assert kinds.count("ramp") == 1
        assert kinds[-1] == "agent"
        assert kinds.count("wall") == len(scene.layout.ground_walls)
        assert kinds.count("upper_wall") == len(scene.layout.upper_walls)

    def test_geometry_order(self, scene):
        soup = build_navmesh_geometry(scene.layout)
        walls = len(scene.layout.ground_walls) + len(scene.layout.upper_walls)
        assert soup.triangle_count == 2 + 2 * 4 + 8 * walls + 2
        # Пол первым
        np.testing.assert_allclose(soup.vertices[:4, 1], 0.0)

        bare = build_navmesh_geometry(scene.layout, include_walls=False)
        assert bare.triangle_count == 2 + 2 * 4 + 2


class TestNavigation:

    def test_navmesh_is_built(self, scene):
        assert scene.navmesh.is_built
        debug = scene.debug_triangles()
        assert debug.triangle_count > 0
        assert debug.upward_mask().all()

    def test_walk_to_open_neighbor(self, scene):
        neighbor = scene.maze.open_neighbors(0, 0)[0]
        scene.agent.stop()
        scene.agent.teleport(scene.layout.agent_spawn)

        target = scene.layout.cell_target(*neighbor)
        assert scene.request_destination(target)
        assert scene.agent.is_moving
        assert scene.marker.is_placed
        # Путь поднят на радиус агента
        assert scene.last_path.first[1] == pytest.approx(0.06, abs=1e-4)

        steps = scene.run_until_idle()
        assert 0 < steps < 100_000
        assert not scene.agent.is_moving
        final = scene.agent.position
        assert np.hypot(final[0] - target[0], final[2] - target[2]) < 0.03

    def test_unreachable_target_stops_agent(self, scene):
        scene.agent.teleport(scene.layout.agent_spawn)
        scene.request_destination(scene.layout.cell_target(1, 0))
        assert not scene.request_destination((40.0, 0.0, 40.0))
        assert not scene.agent.is_moving
        assert scene.last_path is None
        # Маркер всё равно переставлен
        np.testing.assert_allclose(scene.marker.base, [40.0, 0.0, 40.0])

    def test_run_until_idle_rejects_bad_dt(self, scene):
        with pytest.raises(ValueError):
            scene.run_until_idle(dt=0.0)

    def test_ramp_connects_floors(self, scene):
        """Без стен и эрозии путь с первого этажа на второй идёт по пандусу."""
        soup = build_navmesh_geometry(scene.layout, include_walls=False)
        adapter = NavMeshAdapter()
        adapter.build_soup(soup, MazeSceneConfig(debug_navmesh=True).navmesh_config())

        path = adapter.query((-1.0, 0.0, -1.125), (3.5, 0.4, -1.125))
        assert path is not None
        assert path.first[1] == pytest.approx(0.0, abs=1e-4)
        assert path.last[1] == pytest.approx(0.4, abs=1e-4)

    def test_no_ramp_no_path_upstairs(self):
        config = MazeSceneConfig(ramp_length_cells=0.0)
        scene = MazeScene(config)
        assert scene.layout.ramp_length == 0.0
        assert not any(p.kind == "ramp" for p in scene.render_pieces())
        assert not scene.request_cell(5, 5, upper=True)
        assert not scene.agent.is_moving


class TestSetupFailures:

    def test_engine_failure_aborts_setup(self):
        with pytest.raises(NavMeshBuildError):
            MazeScene(MazeSceneConfig(maze_width=3, maze_height=3), engine=FailingEngine())

    def test_invalid_maze_size(self):
        with pytest.raises(ValueError):
            MazeScene(MazeSceneConfig(maze_width=0))
