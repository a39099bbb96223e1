"""
Тесты встроенного heightfield-движка NavMesh.
"""

import numpy as np
import pytest

from mazenav.geometry import GeometryBuilder
from mazenav.navmesh import (
    NavMeshAdapter,
    NavMeshBuildError,
    NavMeshConfig,
    VoxelNavMesh,
    VoxelNavMeshEngine,
)
from mazenav.navmesh.pathfinding import astar_graph


def small_config(**overrides) -> NavMeshConfig:
    params = dict(
        cell_size=0.1,
        cell_height=0.1,
        agent_height=0.5,
        agent_radius=0.1,
        agent_climb=0.2,
        min_region_area=4,
        merge_region_area=10,
    )
    params.update(overrides)
    return NavMeshConfig(**params)


def build(builder: GeometryBuilder, config: NavMeshConfig, engine=None) -> NavMeshAdapter:
    adapter = NavMeshAdapter(engine or VoxelNavMeshEngine())
    adapter.build(builder.flat_vertices(), builder.flat_indices(), config)
    return adapter


def quad(size=2.0, center=(0.0, 0.0, 0.0)) -> GeometryBuilder:
    builder = GeometryBuilder()
    builder.append_plane(center, (size, size))
    return builder


class TestFlatQuad:

    def test_corner_to_corner(self):
        adapter = build(quad(), small_config())
        path = adapter.query((-0.8, 0.0, -0.8), (0.8, 0.0, 0.8))

        assert path is not None
        assert len(path) >= 2
        np.testing.assert_allclose(path.first, [-0.8, 0.0, -0.8], atol=1e-5)
        np.testing.assert_allclose(path.last, [0.8, 0.0, 0.8], atol=1e-5)
        assert np.all(np.abs(path.points[:, [0, 2]]) <= 1.0 + 1e-5)
        np.testing.assert_allclose(path.points[:, 1], 0.0, atol=1e-5)

    def test_path_is_pulled_taut(self):
        """Funnel даёт путь короче манхэттенского обхода колонок."""
        adapter = build(quad(), small_config())
        path = adapter.query((-0.7, 0.0, -0.3), (0.7, 0.0, 0.5))
        straight = np.hypot(1.4, 0.8)
        assert path.length() >= straight - 1e-4
        assert path.length() < 1.4 + 0.8

    def test_straight_corridor_has_no_corners(self):
        adapter = build(quad(), small_config())
        path = adapter.query((-0.75, 0.0, 0.05), (0.75, 0.0, 0.05))
        assert len(path) == 2
        assert path.length() == pytest.approx(1.5, abs=1e-5)

    def test_default_config_quad(self):
        """Квад 2x2 с cell_size=0.1 и настройками агента по умолчанию, из угла в угол."""
        config = NavMeshConfig(cell_size=0.1, cell_height=0.1)
        adapter = build(quad(), config)
        path = adapter.query((-1.0, 0.0, -1.0), (1.0, 0.0, 1.0))

        assert path is not None
        assert len(path) >= 2
        assert np.all(np.abs(path.points[:, [0, 2]]) <= 1.0 + 1e-5)
        # Углы притягиваются к кромке, оставшейся после эрозии на радиус 0.6
        np.testing.assert_allclose(path.first, [-0.4, 0.0, -0.4], atol=1e-5)
        np.testing.assert_allclose(path.last, [0.4, 0.0, 0.4], atol=1e-5)

    def test_diagonal_across_open_floor_is_straight(self):
        adapter = build(quad(), small_config())
        path = adapter.query((-0.8, 0.0, -0.8), (0.8, 0.0, 0.8))

        assert len(path) == 2
        assert path.length() == pytest.approx(np.hypot(1.6, 1.6), abs=1e-5)

    def test_off_axis_segment_is_straight(self):
        adapter = build(quad(), small_config())
        path = adapter.query((-0.73, 0.0, 0.61), (0.52, 0.0, -0.44))
        assert len(path) == 2

    def test_same_cell(self):
        adapter = build(quad(), small_config())
        path = adapter.query((0.01, 0.0, 0.01), (0.02, 0.0, 0.03))
        assert len(path) == 2

    def test_query_snaps_height(self):
        adapter = build(quad(), small_config())
        path = adapter.query((-0.5, 0.3, 0.0), (0.5, 0.3, 0.0))
        np.testing.assert_allclose(path.points[:, 1], 0.0, atol=1e-5)

    def test_off_mesh_is_none(self):
        adapter = build(quad(), small_config())
        assert adapter.query((0.0, 0.0, 0.0), (50.0, 0.0, 50.0)) is None
        assert adapter.query((0.0, 5.0, 0.0), (0.5, 0.0, 0.5)) is None

    def test_point_near_edge_is_snapped(self):
        """Точка в эродированной кромке притягивается к ближайшей колонке."""
        adapter = build(quad(), small_config(agent_radius=0.2))
        path = adapter.query((-0.95, 0.0, 0.0), (0.5, 0.0, 0.0))
        assert path is not None
        assert path.first[0] > -0.95

    def test_debug_triangles(self):
        adapter = build(quad(), small_config())
        soup = adapter.debug_triangles()
        mesh = adapter.navmesh

        assert isinstance(mesh, VoxelNavMesh)
        assert soup.triangle_count == mesh.sample_count * 2
        assert soup.upward_mask().all()
        # 18x18 колонок после эрозии на одну колонку
        assert soup.upward_area() == pytest.approx(1.8 * 1.8, rel=0.05)


class TestBuildFailures:

    def test_only_walls(self):
        builder = GeometryBuilder()
        builder.append_box((0, 0.5, 0), (1.0, 1.0, 1.0))
        with pytest.raises(NavMeshBuildError, match="no walkable triangles"):
            build(builder, small_config())

    def test_heightfield_too_large(self):
        with pytest.raises(NavMeshBuildError, match="heightfield too large"):
            build(quad(), small_config(), engine=VoxelNavMeshEngine(max_columns=10))

    def test_everything_clipped(self):
        with pytest.raises(NavMeshBuildError, match="no walkable spans"):
            build(quad(), small_config(clip_max_y=-1.0))

    def test_everything_eroded(self):
        with pytest.raises(NavMeshBuildError, match="filtered out"):
            build(quad(size=0.3), small_config(agent_radius=0.5))

    def test_downward_faces_are_not_walkable(self):
        """Перевёрнутый пол — препятствие, а не поверхность."""
        v = [-1, 0, -1, 1, 0, -1, 1, 0, 1, -1, 0, 1]
        adapter = NavMeshAdapter(VoxelNavMeshEngine())
        with pytest.raises(NavMeshBuildError):
            adapter.build(v, [0, 1, 2, 0, 2, 3], small_config())


class TestFiltering:

    def test_erosion_shrinks_area(self):
        wide = build(quad(), small_config(agent_radius=0.0)).navmesh
        narrow = build(quad(), small_config(agent_radius=0.2)).navmesh
        assert narrow.sample_count < wide.sample_count

    def test_min_region_area_removes_islands(self):
        builder = quad()
        builder.append_plane((3.0, 0.0, 0.0), (0.4, 0.4))

        kept = build(builder, small_config(agent_radius=0.0, min_region_area=0)).navmesh
        assert kept.locate((3.0, 0.0, 0.0)) is not None

        pruned = build(builder, small_config(agent_radius=0.0, min_region_area=50)).navmesh
        assert pruned.locate((3.0, 0.0, 0.0)) is None
        assert pruned.locate((0.0, 0.0, 0.0)) is not None

    def test_disconnected_floors(self):
        builder = quad(size=1.0, center=(-2.0, 0.0, 0.0))
        builder.append_plane((2.0, 0.0, 0.0), (1.0, 1.0))
        adapter = build(builder, small_config())
        assert adapter.query((-2.0, 0.0, 0.0), (2.0, 0.0, 0.0)) is None
        assert adapter.query((-2.0, 0.0, 0.0), (-1.8, 0.0, 0.2)) is not None

    def test_merge_region_area_reduces_regions(self):
        builder = quad()
        builder.append_box((0.0, 0.5, 0.0), (0.1, 1.0, 1.0))
        fragmented = build(builder, small_config(agent_radius=0.0, merge_region_area=0)).navmesh
        merged = build(builder, small_config(agent_radius=0.0, merge_region_area=1000)).navmesh
        assert merged.region_count < fragmented.region_count
        assert merged.region_count >= 1

    def test_low_ceiling_removes_floor(self):
        """Поверхность с потолком ниже роста агента отбрасывается."""
        builder = quad()
        # Плита над левой половиной: верх проходим, до пола 0.3 < 0.5
        builder.append_plane((-0.5, 0.3, 0.0), (1.0, 2.0))
        mesh = build(builder, small_config(agent_radius=0.0)).navmesh
        located = mesh.locate((-0.5, 0.0, 0.0))
        assert located is not None
        assert located[1][1] == pytest.approx(0.3)


class TestObstacles:

    def test_wall_splits_floor(self):
        builder = quad()
        builder.append_box((0.0, 0.5, 0.0), (0.1, 1.0, 2.2))
        adapter = build(builder, small_config())
        assert adapter.query((-0.5, 0.0, 0.0), (0.5, 0.0, 0.0)) is None

    def test_path_goes_around_wall(self):
        builder = quad()
        # Стена от z=-1.1 до z=0.25, проход остаётся при z > 0.25
        builder.append_box((0.0, 0.5, -0.425), (0.1, 1.0, 1.35))
        adapter = build(builder, small_config())
        path = adapter.query((-0.5, 0.0, -0.5), (0.5, 0.0, -0.5))

        assert path is not None
        assert len(path) >= 3
        assert path.points[:, 2].max() >= 0.25
        assert path.length() > 1.0

    def test_low_wall_is_stepped_over(self):
        """Препятствие ниже ступени не мешает."""
        builder = quad()
        builder.append_box((0.0, 0.05, 0.0), (0.1, 0.1, 2.2))
        adapter = build(builder, small_config())
        assert adapter.query((-0.5, 0.0, 0.0), (0.5, 0.0, 0.0)) is not None


class TestLevels:

    def _two_levels(self, with_ramp: bool) -> GeometryBuilder:
        builder = GeometryBuilder()
        builder.append_plane((0.0, 0.0, 0.0), (2.0, 2.0))
        builder.append_plane((2.5, 0.4, 0.0), (1.0, 2.0))
        if with_ramp:
            # Пандус от x=1.0 (y=0) до x=2.0 (y=0.4)
            builder.append_ramp_top((1.5, 0.0, 0.0), 1.0, 0.6, 0.4)
        return builder

    def test_ramp_connects_levels(self):
        adapter = build(self._two_levels(True), small_config(agent_radius=0.0))
        path = adapter.query((-0.5, 0.0, 0.0), (2.7, 0.4, 0.0))

        assert path is not None
        assert path.first[1] == pytest.approx(0.0, abs=1e-5)
        assert path.last[1] == pytest.approx(0.4, abs=1e-5)
        assert np.all(np.diff(path.points[:, 1]) >= -1e-5)

    def test_step_too_high_without_ramp(self):
        """Уступ 0.4 при climb 0.2 не соединяется."""
        builder = quad()
        builder.append_plane((1.5, 0.4, 0.0), (1.0, 2.0))
        adapter = build(builder, small_config(agent_radius=0.0))
        assert adapter.query((-0.5, 0.0, 0.0), (1.7, 0.4, 0.0)) is None
        assert adapter.query((1.3, 0.4, 0.0), (1.7, 0.4, 0.0)) is not None

    def test_locate_picks_nearest_level(self):
        builder = quad()
        builder.append_plane((0.0, 1.0, 0.0), (2.0, 2.0))
        mesh = build(builder, small_config(agent_radius=0.0)).navmesh
        assert mesh.locate((0.0, 0.1, 0.0))[1][1] == pytest.approx(0.0)
        assert mesh.locate((0.0, 0.9, 0.0))[1][1] == pytest.approx(1.0)


class TestCorridor:

    def _linked(self, mesh, cells):
        return all(b in mesh.neighbors[a] for a, b in zip(cells[:-1], cells[1:]))

    def test_walk_segment_on_open_floor(self):
        mesh = build(quad(), small_config()).navmesh
        ia, pa = mesh.locate((-0.55, 0.0, -0.55))
        ib, pb = mesh.locate((0.55, 0.0, 0.35))

        cells = mesh.walk_segment(ia, pa, pb, ib)
        assert cells[0] == ia
        assert cells[-1] == ib
        assert self._linked(mesh, cells)
        # Отрезок без углов пересекает |dx| + |dz| границ колонок
        assert len(cells) == 11 + 9 + 1

    def test_walk_segment_blocked_by_wall(self):
        builder = quad()
        builder.append_box((0.0, 0.5, -0.425), (0.1, 1.0, 1.35))
        mesh = build(builder, small_config()).navmesh
        ia, pa = mesh.locate((-0.5, 0.0, -0.5))
        ib, pb = mesh.locate((0.5, 0.0, -0.5))
        assert mesh.walk_segment(ia, pa, pb, ib) is None

    def test_straightened_corridor_follows_segment(self):
        mesh = build(quad(), small_config()).navmesh
        ia, pa = mesh.locate((-0.55, 0.0, -0.55))
        ib, pb = mesh.locate((0.55, 0.0, 0.35))

        path = mesh.find_corridor(ia, ib)
        corridor = mesh.straighten_corridor(path, pa, pb)
        assert corridor == mesh.walk_segment(ia, pa, pb, ib)
        assert len(corridor) == len(path)

    def test_corridor_stays_inside_region_route(self):
        builder = quad()
        builder.append_box((0.0, 0.5, -0.425), (0.1, 1.0, 1.35))
        mesh = build(builder, small_config(merge_region_area=0)).navmesh
        ia, _ = mesh.locate((-0.5, 0.0, -0.5))
        ib, _ = mesh.locate((0.5, 0.0, -0.5))
        ra, rb = int(mesh.regions[ia]), int(mesh.regions[ib])
        assert ra != rb

        route = astar_graph(ra, rb, mesh.region_neighbors, mesh.region_centers)
        corridor = mesh.find_corridor(ia, ib)
        assert corridor[0] == ia
        assert corridor[-1] == ib
        assert self._linked(mesh, corridor)
        assert set(mesh.regions[corridor].tolist()) <= set(route)
