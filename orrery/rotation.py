"""
Frame rotations between the perifocal (orbital plane) frame and the ecliptic frame.

The perifocal frame has +x toward periapsis and +z along the orbit normal.
A perifocal vector p maps to the ecliptic frame as

    P = Rz(Omega) . Rx(i) . Rz(omega) . p

i.e. rotate by the argument of periapsis about the plane normal, tilt by the
inclination about the line of nodes, then turn by the longitude of the
ascending node about the ecliptic pole.
"""
import jax.numpy as jnp
from jax import jit

from .orbital_elements import OrbitalElements


@jit
def rotation_z(angle) -> jnp.ndarray:
    """Active rotation by ``angle`` about the z axis."""
    c = jnp.cos(angle)
    s = jnp.sin(angle)
    return jnp.array([
        [c, -s, 0.0],
        [s, c, 0.0],
        [0.0, 0.0, 1.0],
    ])


@jit
def rotation_x(angle) -> jnp.ndarray:
    """Active rotation by ``angle`` about the x axis."""
    c = jnp.cos(angle)
    s = jnp.sin(angle)
    return jnp.array([
        [1.0, 0.0, 0.0],
        [0.0, c, -s],
        [0.0, s, c],
    ])


@jit
def perifocal_to_ecliptic_matrix(i, Omega, omega) -> jnp.ndarray:
    """3x3 matrix Rz(Omega) . Rx(i) . Rz(omega)."""
    return rotation_z(Omega) @ rotation_x(i) @ rotation_z(omega)


@jit
def ecliptic_to_perifocal_matrix(i, Omega, omega) -> jnp.ndarray:
    """Inverse rotation: Rz(-omega) . Rx(-i) . Rz(-Omega)."""
    return rotation_z(-omega) @ rotation_x(-i) @ rotation_z(-Omega)


@jit
def perifocal_to_ecliptic(vec, elements: OrbitalElements) -> jnp.ndarray:
    """
    Rotate perifocal vector(s) into the ecliptic frame.

    Args:
        vec: Vector of shape (3,) or stack of vectors of shape (n, 3)
        elements: Orbital elements supplying i, Omega and omega

    Returns:
        Rotated vector(s), same shape as ``vec``
    """
    R = perifocal_to_ecliptic_matrix(elements.i, elements.Omega, elements.omega)
    return jnp.asarray(vec) @ R.T


@jit
def ecliptic_to_perifocal(vec, elements: OrbitalElements) -> jnp.ndarray:
    """Rotate ecliptic vector(s) back into the perifocal frame."""
    R = ecliptic_to_perifocal_matrix(elements.i, elements.Omega, elements.omega)
    return jnp.asarray(vec) @ R.T


@jit
def spherical_to_cartesian(longitude, latitude, radius) -> jnp.ndarray:
    """
    Convert heliocentric ecliptic longitude/latitude/range to rectangular x, y, z.

    This is the form in which planetary theories such as VSOP87 report
    positions; angles in radians, radius in AU.
    """
    cos_lat = jnp.cos(latitude)
    return jnp.stack([
        radius * cos_lat * jnp.cos(longitude),
        radius * cos_lat * jnp.sin(longitude),
        radius * jnp.sin(latitude),
    ], axis=-1)
