"""Тесты AgentController и DestinationMarker."""

import math
import unittest

import numpy as np

from mazenav.agent import AgentController, DestinationMarker, MotionState


class Recorder:
    """Собирает вызовы событий агента."""

    def __init__(self, agent: AgentController):
        self.calls = []
        agent.on_path_assigned += lambda: self.calls.append("assigned")
        agent.on_waypoint_reached += lambda index: self.calls.append(("waypoint", index))
        agent.on_destination_reached += lambda: self.calls.append("arrived")
        agent.on_stopped += lambda: self.calls.append("stopped")


class AgentControllerTest(unittest.TestCase):

    def test_initial_state(self):
        agent = AgentController((1.0, 2.0, 3.0))
        self.assertEqual(agent.state, MotionState.IDLE)
        self.assertFalse(agent.is_moving)
        self.assertIsNone(agent.current_waypoint)
        self.assertIsNone(agent.destination)
        self.assertEqual(agent.remaining_path(), [])
        np.testing.assert_allclose(agent.position, [1.0, 2.0, 3.0])

    def test_invalid_parameters(self):
        with self.assertRaises(ValueError):
            AgentController(speed=0.0)
        with self.assertRaises(ValueError):
            AgentController(speed=-1.0)
        with self.assertRaises(ValueError):
            AgentController(arrive_tolerance=-0.1)

    def test_idle_update_is_noop(self):
        agent = AgentController((0.5, 0.0, 0.5))
        agent.update(1.0)
        np.testing.assert_allclose(agent.position, [0.5, 0.0, 0.5])

    def test_moves_at_constant_speed(self):
        agent = AgentController(speed=0.5)
        self.assertTrue(agent.assign_path([(1.0, 0.0, 0.0)]))

        agent.update(0.5)
        np.testing.assert_allclose(agent.position, [0.25, 0.0, 0.0], atol=1e-6)
        agent.update(1.0)
        np.testing.assert_allclose(agent.position, [0.75, 0.0, 0.0], atol=1e-6)

    def test_does_not_overshoot(self):
        agent = AgentController(speed=0.5)
        agent.assign_path([(1.0, 0.0, 0.0)])
        agent.update(0.5)
        agent.update(1.0)
        agent.update(1.0)
        np.testing.assert_allclose(agent.position, [1.0, 0.0, 0.0], atol=1e-6)
        self.assertTrue(agent.is_moving)

        agent.update(1.0)
        self.assertEqual(agent.state, MotionState.IDLE)
        np.testing.assert_allclose(agent.position, [1.0, 0.0, 0.0], atol=1e-6)

    def test_three_waypoints_index_advances_by_one(self):
        agent = AgentController(speed=1.0)
        waypoints = [(1.0, 0.0, 0.0), (1.0, 0.0, 1.0), (0.0, 0.0, 1.0)]
        reached = []
        agent.on_waypoint_reached += reached.append
        agent.assign_path(waypoints)

        previous = agent.waypoint_index
        for _ in range(1000):
            agent.update(1.0 / 60.0)
            current = agent.waypoint_index
            self.assertIn(current - previous, (0, 1))
            previous = current

        self.assertEqual(reached, [0, 1, 2])
        self.assertEqual(agent.state, MotionState.IDLE)
        np.testing.assert_allclose(agent.position, [0.0, 0.0, 1.0], atol=agent.arrive_tolerance)

    def test_event_order(self):
        agent = AgentController(speed=1.0)
        recorder = Recorder(agent)
        agent.assign_path([(0.5, 0.0, 0.0), (0.5, 0.0, 0.5)])
        for _ in range(10):
            agent.update(0.25)

        self.assertEqual(
            recorder.calls,
            ["assigned", ("waypoint", 0), ("waypoint", 1), "arrived"],
        )
        self.assertFalse(agent.is_moving)

    def test_tolerance_advances_without_moving(self):
        agent = AgentController((0.01, 0.0, 0.0), speed=1.0, arrive_tolerance=0.02)
        agent.assign_path([(0.0, 0.0, 0.0), (1.0, 0.0, 0.0)])

        agent.update(0.1)
        self.assertEqual(agent.waypoint_index, 1)
        np.testing.assert_allclose(agent.position, [0.01, 0.0, 0.0], atol=1e-7)

        agent.update(0.1)
        np.testing.assert_allclose(agent.position, [0.11, 0.0, 0.0], atol=1e-6)

    def test_non_positive_dt(self):
        agent = AgentController()
        agent.assign_path([(1.0, 0.0, 0.0)])
        agent.update(0.0)
        agent.update(-1.0)
        np.testing.assert_allclose(agent.position, [0.0, 0.0, 0.0])
        self.assertEqual(agent.waypoint_index, 0)

    def test_empty_path_stops(self):
        agent = AgentController()
        recorder = Recorder(agent)
        agent.assign_path([(1.0, 0.0, 0.0)])

        self.assertFalse(agent.assign_path([]))
        self.assertEqual(agent.state, MotionState.IDLE)
        self.assertFalse(agent.assign_path(None))
        self.assertEqual(recorder.calls, ["assigned", "stopped"])

    def test_stop_when_idle_is_silent(self):
        agent = AgentController()
        recorder = Recorder(agent)
        agent.stop()
        self.assertEqual(recorder.calls, [])

    def test_new_path_replaces_old(self):
        agent = AgentController(speed=1.0)
        agent.assign_path([(1.0, 0.0, 0.0), (2.0, 0.0, 0.0)])
        agent.update(0.5)

        agent.assign_path([(0.0, 0.0, 1.0)])
        self.assertEqual(agent.waypoint_index, 0)
        np.testing.assert_allclose(agent.destination, [0.0, 0.0, 1.0])
        self.assertEqual(len(agent.remaining_path()), 1)

    def test_path_is_copied(self):
        points = [np.array([1.0, 0.0, 0.0], dtype=np.float32)]
        agent = AgentController()
        agent.assign_path(points)
        points[0][0] = 5.0
        np.testing.assert_allclose(agent.current_waypoint, [1.0, 0.0, 0.0])

        exposed = agent.path
        exposed[0][0] = 7.0
        np.testing.assert_allclose(agent.path[0], [1.0, 0.0, 0.0])

    def test_teleport_keeps_path(self):
        agent = AgentController(speed=1.0)
        agent.assign_path([(1.0, 0.0, 0.0)])
        agent.teleport((0.0, 0.0, 1.0))
        self.assertTrue(agent.is_moving)
        agent.update(0.5)
        self.assertAlmostEqual(float(np.linalg.norm(agent.position - [0.0, 0.0, 1.0])), 0.5, places=5)


class DestinationMarkerTest(unittest.TestCase):

    def test_hidden_by_default(self):
        marker = DestinationMarker()
        self.assertFalse(marker.is_placed)
        self.assertIsNone(marker.position)
        marker.update(1.0)
        self.assertEqual(marker.elapsed, 0.0)

    def test_pose_at_placement(self):
        marker = DestinationMarker()
        marker.place((1.0, 0.0, 2.0))
        np.testing.assert_allclose(marker.position, [1.0, marker.hover, 2.0], atol=1e-6)
        self.assertEqual(marker.scale, 1.0)
        np.testing.assert_allclose(marker.rotation, [0.0, 0.0, 0.0, 1.0])

    def test_animation(self):
        marker = DestinationMarker(hover=0.2, bob_amplitude=0.02, bob_frequency=2.5,
                                   pulse_amplitude=0.15, pulse_frequency=3.5, spin_speed=1.6)
        marker.place((0.0, 0.4, 0.0))
        marker.update(0.3)

        t = 0.3
        self.assertAlmostEqual(float(marker.position[1]), 0.4 + 0.2 + math.sin(t * 2.5) * 0.02, places=6)
        self.assertAlmostEqual(marker.scale, 1.0 + 0.15 * math.sin(t * 3.5))
        self.assertAlmostEqual(marker.yaw, 1.6 * t)
        q = marker.rotation
        self.assertAlmostEqual(float(np.linalg.norm(q)), 1.0, places=6)
        self.assertAlmostEqual(float(q[1]), math.sin(0.8 * t), places=6)

    def test_place_resets_time(self):
        marker = DestinationMarker()
        marker.place((0.0, 0.0, 0.0))
        marker.update(1.0)
        marker.place((1.0, 0.0, 0.0))
        self.assertEqual(marker.elapsed, 0.0)

    def test_hide(self):
        marker = DestinationMarker()
        marker.place((0.0, 0.0, 0.0))
        marker.hide()
        self.assertFalse(marker.is_placed)
        self.assertIsNone(marker.base)


if __name__ == "__main__":
    unittest.main()
