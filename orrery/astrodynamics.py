import logging
from functools import partial

import jax
import jax.numpy as jnp
import numpy as np
from jax import jit

from .orbital_elements import OrbitalElements, validate_elements
from .cartesian_state import CartesianState
from .constants import MU_SUN, TWO_PI
from .exceptions import InvalidOrbitalElements
from .kepler import solve_kepler, eccentric_to_true, true_to_eccentric
from .rotation import perifocal_to_ecliptic

logger = logging.getLogger(__name__)

ANOMALY_TYPES = ('mean', 'eccentric', 'true')


@partial(jit, static_argnames=('anomaly_type',))
def point_on_orbit(elements: OrbitalElements, anomaly, anomaly_type: str = 'mean') -> jnp.ndarray:
    """
    Heliocentric ecliptic position of a body at a given anomaly.

    The elements are assumed to have passed validate_elements; nothing here
    raises for numeric reasons, so the call is safe inside a render loop.

    Args:
        elements: Orbital elements (a in AU, angles in radians)
        anomaly: Anomaly angle (radians)
        anomaly_type: 'mean' (resolved through Kepler's equation), 'eccentric' or 'true'

    Returns:
        Position [x, y, z] in AU, unscaled
    """
    a, e = elements.a, elements.e
    if anomaly_type == 'mean':
        E = solve_kepler(anomaly, e)
        nu = eccentric_to_true(E, e)
    elif anomaly_type == 'eccentric':
        E = jnp.asarray(anomaly, dtype=jnp.float64)
        nu = eccentric_to_true(E, e)
    elif anomaly_type == 'true':
        nu = jnp.asarray(anomaly, dtype=jnp.float64)
        E = true_to_eccentric(nu, e)
    else:
        raise ValueError(f"Invalid anomaly_type '{anomaly_type}'. Must be one of: {ANOMALY_TYPES}")

    r_mag = a * (1.0 - e * jnp.cos(E))

    # Position in orbital plane (perifocal frame)
    r_pqw = jnp.array([r_mag * jnp.cos(nu), r_mag * jnp.sin(nu), 0.0])

    return perifocal_to_ecliptic(r_pqw, elements)


@partial(jit, static_argnames=('anomaly_type',))
def radius_at(elements: OrbitalElements, anomaly, anomaly_type: str = 'mean'):
    """Heliocentric distance r = a*(1 - e*cos E) at the given anomaly (AU)."""
    if anomaly_type == 'mean':
        E = solve_kepler(anomaly, elements.e)
    elif anomaly_type == 'eccentric':
        E = anomaly
    elif anomaly_type == 'true':
        E = true_to_eccentric(anomaly, elements.e)
    else:
        raise ValueError(f"Invalid anomaly_type '{anomaly_type}'. Must be one of: {ANOMALY_TYPES}")
    return elements.a * (1.0 - elements.e * jnp.cos(E))


def orbit_polyline(elements: OrbitalElements, segment_count: int, sampling: str = 'true') -> jnp.ndarray:
    """
    Points along an orbit for line-loop rendering.

    Anomalies are spaced evenly over [0, 2π) with the endpoint excluded, so the
    first and last points are adjacent rather than duplicated. True-anomaly
    sampling spreads points evenly in angle around the Sun; mean-anomaly
    sampling spreads them evenly in time.

    Args:
        elements: Orbital elements
        segment_count: Number of points to return (>= 1)
        sampling: 'true' or 'mean'

    Returns:
        Array of shape (segment_count, 3) with [x, y, z] positions in AU
    """
    segment_count = int(segment_count)
    if segment_count < 1:
        raise ValueError(f"segment_count must be at least 1, got {segment_count}")
    if sampling not in ('true', 'mean'):
        raise ValueError(f"Invalid sampling '{sampling}'. Must be 'true' or 'mean'")

    anomalies = jnp.linspace(0.0, TWO_PI, segment_count, endpoint=False)
    points = jax.vmap(lambda x: point_on_orbit(elements, x, anomaly_type=sampling))(anomalies)
    return points


def mean_motion(a, mu: float = MU_SUN):
    """Mean motion n = sqrt(mu / a^3) (rad/day for a in AU and mu in AU^3/day^2)."""
    return jnp.sqrt(mu / a**3)


def orbital_period(a, mu: float = MU_SUN):
    """Period T = 2π*sqrt(a^3/mu) (days for a in AU and mu in AU^3/day^2)."""
    return TWO_PI / mean_motion(a, mu)


@jit
def mean_anomaly_at(elements: OrbitalElements, t, mu: float = MU_SUN):
    """Mean anomaly M = M0 + n*t, t in days past the epoch of the elements."""
    return elements.M0 + mean_motion(elements.a, mu) * t


@jit
def position_at_time(elements: OrbitalElements, t, mu: float = MU_SUN) -> jnp.ndarray:
    """Heliocentric ecliptic position (AU) at t days past the epoch of the elements."""
    return point_on_orbit(elements, mean_anomaly_at(elements, t, mu), anomaly_type='mean')


@jit
def elements_to_cartesian(elements: OrbitalElements, t, mu: float = MU_SUN) -> CartesianState:
    """
    Convert orbital elements to Cartesian state at time t.
    t is time since epoch in days.
    """
    a, e = elements.a, elements.e

    # Mean anomaly at time t
    M = mean_anomaly_at(elements, t, mu)

    # Solve for eccentric anomaly
    E = solve_kepler(M, e)
    nu = eccentric_to_true(E, e)

    # Distance
    r_mag = a * (1.0 - e * jnp.cos(E))

    # Perifocal position and velocity
    p = elements.semi_latus_rectum
    h_over_p = jnp.sqrt(mu / p)
    r_pqw = jnp.array([r_mag * jnp.cos(nu), r_mag * jnp.sin(nu), 0.0])
    v_pqw = jnp.array([-h_over_p * jnp.sin(nu), h_over_p * (e + jnp.cos(nu)), 0.0])

    return CartesianState(r=perifocal_to_ecliptic(r_pqw, elements),
                          v=perifocal_to_ecliptic(v_pqw, elements))


def elements_from_state(r, v, mu: float = MU_SUN) -> OrbitalElements:
    """
    Orbital elements of a bound heliocentric state.

    Used to turn a position/velocity sampled from an ephemeris at a reference
    epoch into elements; M0 is the mean anomaly of the state itself. The
    node and periapsis angles are built from atan2 projections onto the line
    of nodes so that circular and equatorial orbits stay well defined (Ω = 0
    for i = 0, ω = 0 for e = 0).

    Args:
        r: Position [x, y, z] (AU)
        v: Velocity [vx, vy, vz] (AU/day)
        mu: Gravitational parameter (AU^3/day^2)

    Raises:
        InvalidOrbitalElements: if the state is not on a closed orbit.
    """
    r = np.asarray(r, dtype=float)
    v = np.asarray(v, dtype=float)
    r_mag = np.linalg.norm(r)

    h = np.cross(r, v)
    h_mag = np.linalg.norm(h)
    if r_mag == 0.0 or h_mag == 0.0:
        raise InvalidOrbitalElements("State has no angular momentum; orbit is degenerate")

    energy = 0.5 * np.dot(v, v) - mu / r_mag
    if energy >= 0.0:
        raise InvalidOrbitalElements(f"State is unbound (specific energy {energy:.3e} >= 0)")
    a = -mu / (2.0 * energy)

    i = np.arctan2(np.hypot(h[0], h[1]), h[2])
    h_xy = np.hypot(h[0], h[1])
    Omega = np.arctan2(h[0], -h[1]) if h_xy > 1e-14 * h_mag else 0.0

    # In-plane basis: n_hat along the line of nodes, b_hat 90 degrees ahead of it
    n_hat = np.array([np.cos(Omega), np.sin(Omega), 0.0])
    b_hat = np.cross(h / h_mag, n_hat)

    e_vec = np.cross(v, h) / mu - r / r_mag
    e = np.linalg.norm(e_vec)
    omega = np.arctan2(np.dot(e_vec, b_hat), np.dot(e_vec, n_hat)) if e > 1e-14 else 0.0
    nu = np.arctan2(np.dot(r, b_hat), np.dot(r, n_hat)) - omega

    E = 2.0 * np.arctan2(np.sqrt(1.0 - e) * np.sin(nu / 2.0), np.sqrt(1.0 + e) * np.cos(nu / 2.0))
    M = E - e * np.sin(E)

    elements = OrbitalElements(
        a=float(a),
        e=float(e),
        i=float(i),
        Omega=float(np.mod(Omega, 2.0 * np.pi)),
        omega=float(np.mod(omega, 2.0 * np.pi)),
        M0=float(np.mod(M, 2.0 * np.pi)),
    )
    logger.debug("Derived elements from state: %s", elements)
    return validate_elements(elements)
