"""Tests for the scene state, camera handling, comet tails and the render step."""
import unittest

import numpy as np
import pytest

from orrery import (
    AnimationConfig,
    CameraState,
    bodies_data,
    build_scene,
    clamp_camera_distance,
    comet_tail,
    follow_camera,
    render_step,
    zoom_camera,
)
from orrery.bodies import SUN_ID


class TestCamera(unittest.TestCase):

    def test_follow_camera(self):
        camera = follow_camera([1.0, 2.0, 3.0], (10.0, 0.0, -5.0))
        np.testing.assert_array_equal(camera.position, [11.0, 2.0, -2.0])
        np.testing.assert_array_equal(camera.target, [1.0, 2.0, 3.0])

    def test_clamp_inside_range_unchanged(self):
        pos = clamp_camera_distance([0.0, 300.0, 0.0], [0.0, 0.0, 0.0], 100.0, 500.0)
        np.testing.assert_array_equal(pos, [0.0, 300.0, 0.0])

    def test_clamp_too_close(self):
        target = np.array([5.0, 5.0, 5.0])
        pos = clamp_camera_distance(target + [3.0, 4.0, 0.0], target, 100.0, 500.0)
        self.assertAlmostEqual(np.linalg.norm(pos - target), 100.0)
        np.testing.assert_allclose((pos - target) / 100.0, [0.6, 0.8, 0.0])

    def test_clamp_too_far(self):
        pos = clamp_camera_distance([0.0, 0.0, -2000.0], [0.0, 0.0, 0.0], 100.0, 500.0)
        np.testing.assert_allclose(pos, [0.0, 0.0, -500.0])

    def test_clamp_on_target(self):
        pos = clamp_camera_distance([1.0, 1.0, 1.0], [1.0, 1.0, 1.0], 100.0, 500.0)
        np.testing.assert_allclose(pos, [1.0, 1.0, 101.0])


class TestCometTail(unittest.TestCase):

    def test_layout_without_jitter(self):
        tail = comet_tail([10.0, 0.0, 0.0], [2.0, 0.0, 0.0], length=5.0, count=10,
                          base_scale=100.0, max_opacity=0.3)
        self.assertEqual(tail.positions.shape, (10, 3))
        np.testing.assert_allclose(tail.positions[:, 0], 10.0 - 0.5 * np.arange(10))
        np.testing.assert_allclose(tail.positions[:, 1:], 0.0)
        np.testing.assert_allclose(tail.opacities, 0.3 * (1 - np.arange(10) / 10))
        np.testing.assert_allclose(tail.scales, 100.0 * (1 - np.arange(10) / 10))
        self.assertEqual(tail.opacities[0], 0.3)

    def test_jitter_bounded(self):
        rng = np.random.default_rng(42)
        head = np.array([0.0, 3.0, 0.0])
        tail = comet_tail(head, [0.0, 1.0, 0.0], length=2.0, count=50, jitter=0.1, rng=rng)
        nominal = head - np.outer(np.arange(50) / 50 * 2.0, [0.0, 1.0, 0.0])
        offsets = tail.positions - nominal
        self.assertTrue(np.all(np.abs(offsets) <= 0.1))
        self.assertGreater(np.abs(offsets).max(), 0.0)

    def test_jitter_requires_rng(self):
        with self.assertRaises(ValueError):
            comet_tail([0.0, 0.0, 0.0], [1.0, 0.0, 0.0], length=1.0, count=3, jitter=0.1)

    def test_empty_tail(self):
        tail = comet_tail([1.0, 2.0, 3.0], [1.0, 0.0, 0.0], length=1.0, count=0)
        self.assertEqual(tail.positions.shape, (0, 3))
        self.assertEqual(tail.opacities.shape, (0,))

    def test_zero_direction_collapses_onto_head(self):
        tail = comet_tail([1.0, 2.0, 3.0], [0.0, 0.0, 0.0], length=4.0, count=4)
        np.testing.assert_allclose(tail.positions, np.tile([1.0, 2.0, 3.0], (4, 1)))


class _BrokenBody:
    """Stands in for a body whose ephemeris fails after the first frame."""
    id = 77
    name = 'Broken'
    elements = None

    def __init__(self):
        self.calls = 0

    def get_position(self, epoch):
        self.calls += 1
        if self.calls > 1:
            raise FloatingPointError("ephemeris blew up")
        return np.array([1.0, 0.0, 0.0])

    def is_comet(self):
        return False


class TestRenderStep(unittest.TestCase):

    def setUp(self):
        self.config = AnimationConfig(seed=1)
        self.state = build_scene(self.config, bodies_data.values(), start_epoch=0.0)

    def test_initial_camera_follows_sun(self):
        self.assertEqual(self.state.follow, SUN_ID)
        np.testing.assert_allclose(self.state.camera.position, [300.0, 400.0, 500.0])
        np.testing.assert_allclose(self.state.camera.target, [0.0, 0.0, 0.0])

    def test_step_advances_epoch_and_positions(self):
        before = self.state.positions[3].copy()
        frame = render_step(self.state, 30.0)
        self.assertEqual(frame.epoch, 30.0)
        self.assertEqual(self.state.epoch, 30.0)
        self.assertEqual(set(frame.positions), set(bodies_data))
        # Earth moves about 30 degrees in 30 days and stays near 1 AU (scaled)
        after = frame.positions[3]
        self.assertAlmostEqual(np.linalg.norm(after) / self.config.scale, 0.984, delta=0.005)
        cos_angle = before @ after / (np.linalg.norm(before) * np.linalg.norm(after))
        self.assertAlmostEqual(np.degrees(np.arccos(cos_angle)), 30.0, delta=1.5)

    def test_positions_are_scaled(self):
        frame = render_step(self.state, 0.0)
        expected = np.asarray(bodies_data[5].get_position(0.0)) * self.config.scale
        np.testing.assert_allclose(frame.positions[5], expected, rtol=1e-12)

    def test_comet_tails_point_away_from_sun(self):
        frame = render_step(self.state, 1.0)
        self.assertEqual(set(frame.tails), {1001, 1002})
        for comet_id, tail in frame.tails.items():
            self.assertEqual(len(tail.positions), self.config.tail.particle_count)
            head = frame.positions[comet_id]
            last = tail.positions[-1]
            self.assertGreater(np.linalg.norm(last), np.linalg.norm(head))

    def test_camera_follows_target(self):
        self.state.follow = 3
        frame = render_step(self.state, 5.0)
        np.testing.assert_allclose(frame.camera.target, frame.positions[3])
        np.testing.assert_allclose(frame.camera.position - frame.camera.target, [300.0, 400.0, 500.0])

    def test_camera_left_alone_while_interacting(self):
        self.state.user_interacting = True
        self.state.camera = CameraState(position=np.array([0.0, -800.0, 0.0]), target=np.zeros(3))
        frame = render_step(self.state, 5.0)
        np.testing.assert_allclose(frame.camera.position, [0.0, -800.0, 0.0])

    def test_camera_distance_clamped(self):
        self.state.offset = np.array([0.0, 0.0, 10.0])
        frame = render_step(self.state, 1.0)
        self.assertAlmostEqual(np.linalg.norm(frame.camera.position - frame.camera.target),
                               self.config.camera.min_distance)

    def test_failed_body_keeps_last_position(self):
        broken = _BrokenBody()
        state = build_scene(self.config, [broken], start_epoch=0.0)
        with self.assertLogs('orrery.scene', level='WARNING'):
            frame = render_step(state, 1.0)
        np.testing.assert_allclose(frame.positions[77], [self.config.scale, 0.0, 0.0])

    def test_zoom_out_stops_at_max_distance(self):
        for _ in range(30):
            zoom_camera(self.state, 1.1)
        self.assertAlmostEqual(np.linalg.norm(self.state.offset), self.config.camera.max_distance)
        frame = render_step(self.state, 1.0)
        self.assertAlmostEqual(np.linalg.norm(frame.camera.position - frame.camera.target),
                               self.config.camera.max_distance)

    def test_zoom_in_after_clamp_takes_effect(self):
        """Zooming back in from the far limit changes the distance on every click."""
        for _ in range(30):
            zoom_camera(self.state, 1.1)
        distances = []
        for _ in range(5):
            zoom_camera(self.state, 0.9)
            frame = render_step(self.state, 1.0)
            distances.append(np.linalg.norm(frame.camera.position - frame.camera.target))
        expected = self.config.camera.max_distance * 0.9 ** np.arange(1, 6)
        np.testing.assert_allclose(distances, expected, rtol=1e-12)

    def test_zoom_in_stops_at_min_distance(self):
        for _ in range(40):
            zoom_camera(self.state, 0.9)
        self.assertAlmostEqual(np.linalg.norm(self.state.offset), self.config.camera.min_distance)

    def test_zoom_leaves_config_alone(self):
        zoom_camera(self.state, 0.5)
        self.assertEqual(self.config.camera.offset, (300.0, 400.0, 500.0))
        np.testing.assert_allclose(self.state.offset, [150.0, 200.0, 250.0])

    def test_zoom_moves_camera_without_follow_target(self):
        self.state.follow = None
        before = self.state.camera
        zoom_camera(self.state, 0.5)
        np.testing.assert_allclose(self.state.camera.position - before.target,
                                   0.5 * (before.position - before.target))
        frame = render_step(self.state, 1.0)
        np.testing.assert_allclose(frame.camera.position, self.state.camera.position)


def test_tail_jitter_reproducible_with_seed():
    config = AnimationConfig(seed=7)
    a = render_step(build_scene(config, bodies_data.values()), 1.0)
    b = render_step(build_scene(config, bodies_data.values()), 1.0)
    np.testing.assert_array_equal(a.tails[1001].positions, b.tails[1001].positions)


def test_render_step_without_follow_target():
    config = AnimationConfig(seed=0)
    config.camera.follow = None
    state = build_scene(config, bodies_data.values())
    camera_before = state.camera.position.copy()
    frame = render_step(state, 10.0)
    np.testing.assert_allclose(frame.camera.position, camera_before)
    assert frame.epoch == pytest.approx(10.0)


if __name__ == '__main__':
    unittest.main()
