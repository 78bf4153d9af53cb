"""
Cartesian state representation for solar system bodies.
"""
from typing import NamedTuple
import jax.numpy as jnp


class CartesianState(NamedTuple):
    """
    Heliocentric ecliptic Cartesian state of a body.

    Attributes:
        r: Position vector [x, y, z] in AU
        v: Velocity vector [vx, vy, vz] in AU/day

    Note:
        - Both r and v are JAX arrays (jnp.ndarray)
        - This is JAX-compatible and can be used with jax.jit, jax.vmap, etc.

    Examples:
        >>> import jax.numpy as jnp
        >>> state = CartesianState(
        ...     r=jnp.array([1.0, 0.0, 0.0]),       # 1 AU from the Sun
        ...     v=jnp.array([0.0, 0.0172, 0.0])     # ~1 AU per 58 days
        ... )
    """
    r: jnp.ndarray  # position [x, y, z] (AU)
    v: jnp.ndarray  # velocity [vx, vy, vz] (AU/day)
