# Configure JAX to use double precision (64-bit floats) throughout the package
import jax
jax.config.update("jax_enable_x64", True)

from .orbital_elements import OrbitalElements, validate_elements
from .cartesian_state import CartesianState
from .exceptions import InvalidOrbitalElements, NumericNonConvergence

from .constants import (
    # Constants
    KMPAU,
    YEAR,
    GAUSS_K,
    MU_SUN,
    J2000_JD,
)

from .kepler import (
    # Kepler's equation
    KeplerSolution,
    AnomalyState,
    kepler_solution,
    solve_kepler,
    solve_kepler_vec,
    solve_kepler_checked,
    eccentric_to_true,
    true_to_eccentric,
    eccentric_to_mean,
    mean_to_true,
    anomaly_state,
)

from .rotation import (
    # Frame rotations
    rotation_x,
    rotation_z,
    perifocal_to_ecliptic_matrix,
    ecliptic_to_perifocal_matrix,
    perifocal_to_ecliptic,
    ecliptic_to_perifocal,
    spherical_to_cartesian,
)

from .astrodynamics import (
    # Orbit geometry
    point_on_orbit,
    radius_at,
    orbit_polyline,
    mean_motion,
    orbital_period,
    mean_anomaly_at,
    position_at_time,
    elements_to_cartesian,
    elements_from_state,
)

from .bodies import (
    # Body class
    Body,
    load_bodies_data,
    bodies_data
)

from .config import AnimationConfig, CameraConfig, TailConfig, load_config

from .scene import (
    # Scene state and render step
    SceneState,
    CameraState,
    TailParticles,
    Frame,
    build_scene,
    render_step,
    follow_camera,
    clamp_camera_distance,
    comet_tail,
    zoom_camera,
)


__all__ = [
    # Constants
    "KMPAU",
    "YEAR",
    "GAUSS_K",
    "MU_SUN",
    "J2000_JD",

    # Named tuples
    "OrbitalElements",
    "CartesianState",
    "KeplerSolution",
    "AnomalyState",

    # Errors
    "InvalidOrbitalElements",
    "NumericNonConvergence",
    "validate_elements",

    # Kepler's equation
    "kepler_solution",
    "solve_kepler",
    "solve_kepler_vec",
    "solve_kepler_checked",
    "eccentric_to_true",
    "true_to_eccentric",
    "eccentric_to_mean",
    "mean_to_true",
    "anomaly_state",

    # Frame rotations
    "rotation_x",
    "rotation_z",
    "perifocal_to_ecliptic_matrix",
    "ecliptic_to_perifocal_matrix",
    "perifocal_to_ecliptic",
    "ecliptic_to_perifocal",
    "spherical_to_cartesian",

    # Orbit geometry
    "point_on_orbit",
    "radius_at",
    "orbit_polyline",
    "mean_motion",
    "orbital_period",
    "mean_anomaly_at",
    "position_at_time",
    "elements_to_cartesian",
    "elements_from_state",

    # Bodies
    "Body",
    "load_bodies_data",
    "bodies_data",

    # Configuration
    "AnimationConfig",
    "CameraConfig",
    "TailConfig",
    "load_config",

    # Scene
    "SceneState",
    "CameraState",
    "TailParticles",
    "Frame",
    "build_scene",
    "render_step",
    "follow_camera",
    "clamp_camera_distance",
    "comet_tail",
    "zoom_camera",
]
