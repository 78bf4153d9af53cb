"""
Physical and time constants for the orrery.

Distances are in AU and times in days unless a name says otherwise.
"""

import jax.numpy as jnp

# Basic astronomical and time constants
KMPAU = 149597870.691  # km per AU
YEAR = 365.25  # days per Julian year

# Gaussian gravitational constant (rad/day) and the Sun's GM in AU^3/day^2
GAUSS_K = 0.01720209895
MU_SUN = GAUSS_K**2

# Reference epoch of the element tables (JD, TDB)
J2000_JD = 2451545.0

TWO_PI = 2.0 * jnp.pi

# Kepler solver defaults
KEPLER_TOL = 1.0e-12  # residual of M = E - e*sin(E), radians
KEPLER_MAX_ITER = 20  # Newton-Raphson
FIXED_POINT_MAX_ITER = 500  # E = M + e*sin(E) converges linearly in e
