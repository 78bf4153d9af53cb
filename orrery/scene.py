"""
Scene state and the per-frame render step.

The renderer owns the drawing; everything it needs per frame (scaled body
positions, comet tail particles, camera placement) comes out of render_step,
which advances an explicit SceneState instead of touching module globals.
"""
import logging
from dataclasses import dataclass, field
from typing import NamedTuple, Optional

import numpy as np

from orrery.bodies import Body
from orrery.config import AnimationConfig

logger = logging.getLogger(__name__)


class CameraState(NamedTuple):
    """Camera position and the point it looks at, in visualization units."""
    position: np.ndarray
    target: np.ndarray


class TailParticles(NamedTuple):
    """
    Particle layout of one comet tail.

    Attributes:
        positions: Particle centres, shape (n, 3)
        opacities: Per-particle opacity, shape (n,)
        scales: Per-particle marker size, shape (n,)
    """
    positions: np.ndarray
    opacities: np.ndarray
    scales: np.ndarray


class Frame(NamedTuple):
    """Everything the renderer draws for one frame."""
    epoch: float  # days past J2000
    positions: dict  # body id -> position (visualization units)
    tails: dict  # comet id -> TailParticles
    camera: CameraState


@dataclass
class SceneState:
    """
    Mutable state carried from one render step to the next.

    Attributes:
        bodies: Bodies in the scene, all validated at load time
        config: Animation settings
        epoch: Current time, days past J2000
        camera: Current camera placement
        follow: ID of the body the camera follows, or None
        user_interacting: While True the camera is left where the user put it
        rng: Random generator for the tail jitter
        positions: Last good position of each body (visualization units)
        offset: Current camera offset from the follow target; starts at the
            configured offset and changes with zoom
    """
    bodies: list
    config: AnimationConfig
    epoch: float = 0.0
    camera: Optional[CameraState] = None
    follow: Optional[int] = None
    user_interacting: bool = False
    rng: np.random.Generator = field(default_factory=np.random.default_rng)
    positions: dict = field(default_factory=dict)
    offset: Optional[np.ndarray] = None


def follow_camera(target, offset) -> CameraState:
    """Place the camera at a fixed offset from its target, looking at the target."""
    target = np.asarray(target, dtype=float)
    return CameraState(position=target + np.asarray(offset, dtype=float), target=target)


def clamp_camera_distance(position, target, min_distance: float, max_distance: float) -> np.ndarray:
    """
    Pull or push the camera along its line of sight into [min_distance, max_distance].

    A camera sitting exactly on its target has no line of sight and is moved
    out along +z.
    """
    position = np.asarray(position, dtype=float)
    target = np.asarray(target, dtype=float)
    offset = position - target
    distance = np.linalg.norm(offset)

    if distance == 0.0:
        direction = np.array([0.0, 0.0, 1.0])
    else:
        direction = offset / distance

    if distance < min_distance:
        return target + direction * min_distance
    if distance > max_distance:
        return target + direction * max_distance
    return position


def comet_tail(head, direction, length: float, count: int, jitter: float = 0.0,
               rng: Optional[np.random.Generator] = None, base_scale: float = 1.0,
               max_opacity: float = 0.3) -> TailParticles:
    """
    Lay out tail particles streaming back from a comet head.

    Particle k of n sits k/n * length behind the head along -direction, with
    a uniform random offset of up to ``jitter`` on each axis. Opacity and
    size fall off linearly from the head: max_opacity*(1 - k/n) and
    base_scale*(1 - k/n).

    Args:
        head: Head position, shape (3,)
        direction: Direction the tail streams away from (need not be unit length);
            a zero vector collapses the tail onto the head
        length: Distance from the head to the last particle slot
        count: Number of particles
        jitter: Half-width of the random offset per axis
        rng: Random generator; required when jitter > 0
        base_scale: Marker size at the head
        max_opacity: Opacity at the head

    Returns:
        TailParticles
    """
    head = np.asarray(head, dtype=float)
    direction = np.asarray(direction, dtype=float)
    norm = np.linalg.norm(direction)
    unit = direction / norm if norm > 0.0 else np.zeros(3)

    frac = np.arange(count, dtype=float) / count if count > 0 else np.zeros(0)
    positions = head - np.outer(frac * length, unit)
    if jitter > 0.0 and count > 0:
        if rng is None:
            raise ValueError("A random generator is required when jitter > 0")
        positions = positions + rng.uniform(-jitter, jitter, size=(count, 3))

    return TailParticles(
        positions=positions.reshape(count, 3),
        opacities=max_opacity * (1.0 - frac),
        scales=base_scale * (1.0 - frac),
    )


def zoom_camera(state: SceneState, factor: float) -> np.ndarray:
    """
    Scale the camera distance by ``factor`` (< 1 zooms in).

    Both the follow offset and the current camera placement are scaled and
    clamped to [min_distance, max_distance] right away, so zooming back in
    from a clamped distance takes effect on the next click. The configured
    offset is left untouched.

    Returns:
        The new follow offset
    """
    camera_config = state.config.camera
    min_distance, max_distance = camera_config.min_distance, camera_config.max_distance

    offset = _camera_offset(state) * factor
    state.offset = clamp_camera_distance(offset, np.zeros(3), min_distance, max_distance)

    if state.camera is not None:
        target = state.camera.target
        position = target + (state.camera.position - target) * factor
        state.camera = CameraState(
            position=clamp_camera_distance(position, target, min_distance, max_distance),
            target=target,
        )
    logger.debug("Zoomed camera by %.2f, distance now %.1f", factor, np.linalg.norm(state.offset))
    return state.offset


def _camera_offset(state: SceneState) -> np.ndarray:
    if state.offset is None:
        return np.asarray(state.config.camera.offset, dtype=float)
    return np.asarray(state.offset, dtype=float)


def build_scene(config: AnimationConfig, bodies, start_epoch: float = 0.0) -> SceneState:
    """Create the scene at ``start_epoch`` days past J2000 with the camera on its follow target."""
    bodies = list(bodies)
    state = SceneState(
        bodies=bodies,
        config=config,
        epoch=float(start_epoch),
        follow=config.camera.follow,
        rng=np.random.default_rng(config.seed),
    )
    state.offset = clamp_camera_distance(config.camera.offset, np.zeros(3),
                                         config.camera.min_distance, config.camera.max_distance)
    _update_positions(state)

    target = state.positions.get(state.follow, np.zeros(3))
    camera = follow_camera(target, state.offset)
    position = clamp_camera_distance(camera.position, camera.target,
                                     config.camera.min_distance, config.camera.max_distance)
    state.camera = CameraState(position=position, target=camera.target)
    logger.debug("Built scene with %d bodies at epoch %.3f", len(bodies), state.epoch)
    return state


def _update_positions(state: SceneState) -> dict:
    scale = state.config.scale
    for body in state.bodies:
        try:
            pos = np.asarray(body.get_position(state.epoch), dtype=float) * scale
        except (ArithmeticError, ValueError) as exc:
            logger.warning("Position of %s unavailable at epoch %.3f: %s", body.name, state.epoch, exc)
            continue
        if not np.all(np.isfinite(pos)):
            logger.warning("Non-finite position for %s at epoch %.3f", body.name, state.epoch)
            continue
        state.positions[body.id] = pos
    return state.positions


def render_step(state: SceneState, dt_days: float) -> Frame:
    """
    Advance the scene by ``dt_days`` and compute what to draw.

    A body whose position cannot be evaluated keeps its last good position,
    so the render loop never stops on a bad frame.
    """
    config = state.config
    state.epoch += dt_days
    positions = _update_positions(state)

    tails = {}
    scale = config.scale
    for body in state.bodies:
        if not body.is_comet() or body.id not in positions:
            continue
        head = positions[body.id]
        # The Sun sits at the origin, so -head points sunward and the tail trails outward
        tails[body.id] = comet_tail(
            head,
            -head,
            length=config.tail.length * scale,
            count=config.tail.particle_count,
            jitter=config.tail.jitter * scale,
            rng=state.rng,
            base_scale=config.tail.base_scale,
            max_opacity=config.tail.max_opacity,
        )

    camera = state.camera
    if not state.user_interacting and state.follow is not None and state.follow in positions:
        camera = follow_camera(positions[state.follow], _camera_offset(state))

    position = clamp_camera_distance(camera.position, camera.target,
                                     config.camera.min_distance, config.camera.max_distance)
    state.camera = CameraState(position=position, target=camera.target)

    return Frame(
        epoch=state.epoch,
        positions=dict(positions),
        tails=tails,
        camera=state.camera,
    )
