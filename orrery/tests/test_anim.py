"""Tests for the matplotlib front end: animation setup, controls and the CLI."""
import unittest

import matplotlib
matplotlib.use('Agg')

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.backend_bases import KeyEvent, MouseEvent

from orrery import AnimationConfig
from orrery.anim import _view_angles, create_animation, main
from orrery.bodies import SUN_ID


def _press(fig, key):
    event = KeyEvent('key_press_event', fig.canvas, key)
    fig.canvas.callbacks.process(event.name, event)


def _scroll(fig, button):
    event = MouseEvent('scroll_event', fig.canvas, 10, 10, button=button,
                       step=1 if button == 'up' else -1)
    fig.canvas.callbacks.process(event.name, event)


class TestCreateAnimation(unittest.TestCase):

    def setUp(self):
        self.config = AnimationConfig(seed=0, frames=5, segment_count=32)
        self.config.tail.particle_count = 20
        self.fig, self.anim, self.state = create_animation(config=self.config, start_epoch=0.0)
        self.update = self.anim._func

    def tearDown(self):
        plt.close('all')

    def _distance(self):
        camera = self.state.camera
        return np.linalg.norm(camera.position - camera.target)

    def test_figure_contents(self):
        ax = self.fig.axes[0]
        # One closed orbit line per orbiting body
        self.assertEqual(len(ax.lines), 10)
        for line in ax.lines:
            x, y, z = line.get_data_3d()
            self.assertEqual(len(x), 33)
            self.assertAlmostEqual(x[0], x[-1])
            self.assertAlmostEqual(z[0], z[-1])
        self.assertEqual(len(self.state.bodies), 11)

    def test_update_advances_and_draws(self):
        artists = self.update(0)
        self.assertEqual(self.state.epoch, 1.0)
        self.assertIn('J2000 + 1.0 days', self.fig.texts[0].get_text())

        tail_scatter = artists[1]
        self.assertEqual(len(tail_scatter._offsets3d[0]), 2 * 20)

        # View is centred on the followed Sun with half-width set by the camera distance
        ax = self.fig.axes[0]
        half_width = self._distance()
        lo, hi = ax.get_xlim()
        self.assertAlmostEqual((lo + hi) / 2.0, 0.0, delta=1e-6 * half_width)
        self.assertGreaterEqual(hi - lo, 2.0 * half_width * (1 - 1e-9))
        self.assertLessEqual(hi - lo, 2.2 * half_width)

    def test_pause_and_time_rate_keys(self):
        _press(self.fig, ' ')
        self.update(0)
        self.assertEqual(self.state.epoch, 0.0)
        self.assertIn('[PAUSED]', self.fig.texts[0].get_text())

        _press(self.fig, ' ')
        _press(self.fig, '+')
        _press(self.fig, '=')
        self.update(1)
        self.assertEqual(self.state.epoch, 4.0)

        _press(self.fig, '-')
        self.update(2)
        self.assertEqual(self.state.epoch, 6.0)

        _press(self.fig, '0')
        self.update(3)
        self.assertEqual(self.state.epoch, 7.0)
        self.assertIn('Rate:  1.000x', self.fig.texts[0].get_text())

    def test_orbit_toggle(self):
        ax = self.fig.axes[0]
        _press(self.fig, 'o')
        self.assertFalse(any(line.get_visible() for line in ax.lines))
        _press(self.fig, 'o')
        self.assertTrue(all(line.get_visible() for line in ax.lines))

    def test_follow_cycle(self):
        self.assertEqual(self.state.follow, SUN_ID)
        _press(self.fig, 'f')
        self.assertEqual(self.state.follow, 1)
        self.update(0)
        np.testing.assert_allclose(self.state.camera.target, self.state.positions[1])

    def test_scroll_zoom_stays_responsive(self):
        for _ in range(30):
            _scroll(self.fig, 'down')
        self.update(0)
        self.assertAlmostEqual(self._distance(), self.config.camera.max_distance)

        for _ in range(5):
            _scroll(self.fig, 'up')
        self.update(1)
        self.assertAlmostEqual(self._distance(), self.config.camera.max_distance * 0.9**5)
        # Zoom is held by the scene, not written into the settings
        self.assertEqual(self.config.camera.offset, (300.0, 400.0, 500.0))


def test_view_angles():
    elev, azim = _view_angles((1.0, 1.0, np.sqrt(2.0)))
    assert np.isclose(elev, 45.0)
    assert np.isclose(azim, 45.0)


def test_main_saves_animation(tmp_path):
    out = tmp_path / 'orrery.gif'
    main(['--frames', '2', '--start', '2024-01-01', '--save', str(out)])
    plt.close('all')
    assert out.exists()
    assert out.stat().st_size > 0


def test_main_shows_controls(monkeypatch, capsys):
    shown = []
    monkeypatch.setattr(plt, 'show', lambda: shown.append(True))
    main(['--frames', '1', '--start', '2000-01-01T12:00:00'])
    plt.close('all')
    assert shown == [True]
    assert 'Controls:' in capsys.readouterr().out


if __name__ == '__main__':
    unittest.main()
