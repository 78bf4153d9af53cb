"""
Animated 3D visualization of the solar system (Sun, planets, comets with tails)
"""
import argparse
import logging
from datetime import datetime, timezone

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.animation import FuncAnimation
from matplotlib.colors import to_rgba

from orrery.bodies import load_bodies_data, SUN_ID
from orrery.config import AnimationConfig, load_config
from orrery.constants import YEAR
from orrery.scene import build_scene, render_step, zoom_camera
from orrery.time_utils import days_since_j2000, parse_start

logger = logging.getLogger(__name__)

TAIL_COLOR = '#ffcc00'


def _view_angles(offset):
    """Matplotlib (elev, azim) in degrees for a camera looking back along ``offset``."""
    dx, dy, dz = offset
    elev = np.degrees(np.arctan2(dz, np.hypot(dx, dy)))
    azim = np.degrees(np.arctan2(dy, dx))
    return elev, azim


def create_animation(config: AnimationConfig = None, bodies: dict = None, start_epoch: float = 0.0):
    """
    Create an animated 3D visualization of the solar system.

    Args:
        config: Animation settings (defaults when None)
        bodies: Bodies to draw, id -> Body (the bundled catalogue when None)
        start_epoch: First frame time, days past J2000

    Returns:
        (fig, anim, state)
    """
    if config is None:
        config = AnimationConfig()
    if bodies is None:
        logger.info("Loading orbital data...")
        bodies = load_bodies_data()

    state = build_scene(config, bodies.values(), start_epoch)
    orbiting = [b for b in state.bodies if b.elements is not None]
    planets = [b for b in state.bodies if b.is_planet()]
    logger.info("Loaded %d planets, %d comets",
                len(planets), sum(1 for b in state.bodies if b.is_comet()))

    # Compute orbit paths (static)
    logger.info("Computing orbit paths...")
    orbits = {}
    for body in orbiting:
        points = np.asarray(body.orbit_points(config.segment_count, config.orbit_sampling)) * config.scale
        # Close the loop for plotting
        orbits[body.id] = np.vstack([points, points[:1]])

    # Setup figure
    fig = plt.figure(figsize=(12, 10))
    ax = fig.add_subplot(111, projection='3d')
    fig.patch.set_facecolor('black')
    ax.set_facecolor('black')
    ax.set_axis_off()

    orbit_lines = []
    for body in orbiting:
        orbit = orbits[body.id]
        line, = ax.plot(orbit[:, 0], orbit[:, 1], orbit[:, 2], '-', color=body.color,
                        alpha=0.5, linewidth=0.8)
        orbit_lines.append(line)

    colors = [body.color for body in state.bodies]
    sizes = [body.display_size for body in state.bodies]
    start = np.array([state.positions.get(b.id, np.full(3, np.nan)) for b in state.bodies])
    body_scatter = ax.scatter(start[:, 0], start[:, 1], start[:, 2], c=colors, s=sizes, depthshade=False)
    tail_scatter = ax.scatter([], [], [], s=[], marker='o', edgecolors='none', depthshade=False)

    # Create text labels for planets and comets
    labels = {}
    for body in state.bodies:
        if body.id == SUN_ID:
            continue
        labels[body.id] = ax.text(0, 0, 0, body.name, fontsize=8, color=body.color,
                                  ha='left', va='bottom')

    time_text = fig.text(0.02, 0.95, '', fontsize=12, family='monospace', color='white',
                         verticalalignment='top')

    # Time rate control
    time_rate_state = {
        'rate': 1.0,
        'paused': False,
    }
    followable = [SUN_ID] + [b.id for b in orbiting]

    def on_scroll(event):
        """Mouse wheel zooms the scene camera within its distance limits"""
        zoom_camera(state, 0.9 if event.button == 'up' else 1.1)

    def on_press(event):
        if event.inaxes == ax:
            state.user_interacting = True

    def on_release(event):
        state.user_interacting = False

    def on_key_press(event):
        """Handle keyboard input for time rate control and visibility toggles"""
        if event.key == ' ':
            time_rate_state['paused'] = not time_rate_state['paused']
            logger.info("Animation %s", "PAUSED" if time_rate_state['paused'] else "RESUMED")
        elif event.key in ('+', '='):
            time_rate_state['rate'] = min(time_rate_state['rate'] * 2.0, 1024.0)
            logger.info("Time rate: %.3fx", time_rate_state['rate'])
        elif event.key in ('-', '_'):
            time_rate_state['rate'] = max(time_rate_state['rate'] / 2.0, 1.0 / 64.0)
            logger.info("Time rate: %.3fx", time_rate_state['rate'])
        elif event.key == '0':
            time_rate_state['rate'] = 1.0
            logger.info("Time rate: 1x (reset)")
        elif event.key == 'o':
            visible = not orbit_lines[0].get_visible() if orbit_lines else False
            for line in orbit_lines:
                line.set_visible(visible)
            logger.info("Orbit tracks: %s", 'ON' if visible else 'OFF')
        elif event.key == 'f':
            current = state.follow if state.follow in followable else followable[-1]
            state.follow = followable[(followable.index(current) + 1) % len(followable)]
            logger.info("Following %s", bodies[state.follow].name)

    fig.canvas.mpl_connect('scroll_event', on_scroll)
    fig.canvas.mpl_connect('button_press_event', on_press)
    fig.canvas.mpl_connect('button_release_event', on_release)
    fig.canvas.mpl_connect('key_press_event', on_key_press)

    def update(frame):
        """Update animation frame"""
        dt = 0.0 if time_rate_state['paused'] else config.days_per_frame * time_rate_state['rate']
        result = render_step(state, dt)

        pos = np.array([result.positions.get(b.id, np.full(3, np.nan)) for b in state.bodies])
        body_scatter._offsets3d = (pos[:, 0], pos[:, 1], pos[:, 2])

        for i, body in enumerate(state.bodies):
            if body.id in labels:
                x, y, z = pos[i]
                labels[body.id].set_position((x, y))
                labels[body.id].set_3d_properties(z, zdir='z')

        if result.tails:
            tail_pos = np.vstack([t.positions for t in result.tails.values()])
            tail_alpha = np.concatenate([t.opacities for t in result.tails.values()])
            tail_size = np.concatenate([t.scales for t in result.tails.values()])
            rgba = np.tile(to_rgba(TAIL_COLOR), (len(tail_alpha), 1))
            rgba[:, 3] = tail_alpha
            tail_scatter._offsets3d = (tail_pos[:, 0], tail_pos[:, 1], tail_pos[:, 2])
            tail_scatter.set_facecolors(rgba)
            tail_scatter.set_sizes(tail_size)

        # Camera: centre the view on the target, half-width from the camera distance
        camera = result.camera
        offset = camera.position - camera.target
        half_width = np.linalg.norm(offset)
        cx, cy, cz = camera.target
        ax.set_xlim([cx - half_width, cx + half_width])
        ax.set_ylim([cy - half_width, cy + half_width])
        ax.set_zlim([cz - half_width, cz + half_width])
        if not state.user_interacting:
            elev, azim = _view_angles(offset)
            ax.view_init(elev=elev, azim=azim)

        rate = time_rate_state['rate']
        pause_str = " [PAUSED]" if time_rate_state['paused'] else ""
        time_text.set_text(
            f'J2000 + {result.epoch:.1f} days\n'
            f'        {result.epoch / YEAR:.2f} years\n'
            f'Rate:  {rate:.3f}x{pause_str}'
        )
        return [body_scatter, tail_scatter, time_text] + list(labels.values())

    logger.info("Creating animation with %d frames...", config.frames)
    anim = FuncAnimation(
        fig,
        update,
        frames=config.frames,
        interval=1000 / config.fps,
        blit=False
    )

    return fig, anim, state


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Animated 3D orrery of the Sun, planets and comets.")
    parser.add_argument("--config", help="JSON file with animation settings.")
    parser.add_argument("--start", help="Start date/time (ISO 8601, UTC). Defaults to now.")
    parser.add_argument("--frames", type=int, help="Override the number of frames.")
    parser.add_argument("--save", help="Write the animation to this file instead of showing it.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser


def main(argv=None):
    """Main function to create and display animation"""
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config(args.config)
    if args.frames is not None:
        config.frames = args.frames

    if args.start:
        start_epoch = parse_start(args.start)
    else:
        start_epoch = days_since_j2000(datetime.now(timezone.utc))

    fig, anim, _ = create_animation(config=config, start_epoch=start_epoch)

    if args.save:
        logger.info("Saving animation to %s...", args.save)
        anim.save(args.save, fps=config.fps, dpi=100)
        plt.close(fig)
        logger.info("Animation saved!")
        return

    print("\nControls:")
    print("  Mouse wheel: Zoom in/out")
    print("  Mouse drag:  Rotate view (camera stops following while dragging)")
    print("  Spacebar:    Pause/Resume")
    print("  + or =:      Speed up time (2x)")
    print("  - or _:      Slow down time (0.5x)")
    print("  0:           Reset time rate to 1x")
    print("  o:           Toggle orbit tracks visibility")
    print("  f:           Cycle the body the camera follows")
    print("\nClose the window to exit.")
    plt.show()


if __name__ == '__main__':
    main()
