"""
Orbital elements representation for solar system bodies.
"""
import math
from typing import NamedTuple

from .exceptions import InvalidOrbitalElements


class OrbitalElements(NamedTuple):
    """
    Keplerian orbital elements of a body around the Sun.

    All angular quantities are in radians. Being a NamedTuple, an instance
    is a JAX pytree and can be passed straight into jitted functions.

    Attributes:
        a: Semi-major axis (AU)
        e: Eccentricity (dimensionless, 0 ≤ e < 1)
        i: Inclination relative to the ecliptic (radians)
        Omega: Longitude of the ascending node (radians)
        omega: Argument of periapsis (radians)
        M0: Mean anomaly at the reference epoch (radians)
    """
    a: float  # semi-major axis (AU)
    e: float  # eccentricity
    i: float  # inclination (rad)
    Omega: float  # longitude of ascending node (rad)
    omega: float  # argument of periapsis (rad)
    M0: float = 0.0  # mean anomaly at epoch (rad)

    @property
    def b(self):
        """Semi-minor axis a*sqrt(1 - e^2)."""
        return self.a * (1.0 - self.e**2) ** 0.5

    @property
    def focus_offset(self):
        """Distance from the ellipse centre to the occupied focus."""
        return self.a * self.e

    @property
    def semi_latus_rectum(self):
        return self.a * (1.0 - self.e**2)

    @property
    def periapsis(self):
        return self.a * (1.0 - self.e)

    @property
    def apoapsis(self):
        return self.a * (1.0 + self.e)

    @classmethod
    def from_degrees(cls, a, e, i, Omega, omega, M0=0.0) -> 'OrbitalElements':
        """Build elements from angles given in degrees."""
        return cls(
            a=float(a),
            e=float(e),
            i=math.radians(i),
            Omega=math.radians(Omega),
            omega=math.radians(omega),
            M0=math.radians(M0),
        )


def validate_elements(elements: OrbitalElements) -> OrbitalElements:
    """
    Check that elements describe a closed orbit.

    Meant to run once, when elements are loaded or constructed. The per-frame
    geometry functions assume their input already passed this check.

    Returns:
        The same elements, for chaining.

    Raises:
        InvalidOrbitalElements: if any element is non-finite, a <= 0,
            or e is outside [0, 1).
    """
    for name, value in zip(elements._fields, elements):
        if not math.isfinite(float(value)):
            raise InvalidOrbitalElements(f"Element '{name}' must be finite, got {value}")

    if elements.a <= 0.0:
        raise InvalidOrbitalElements(
            f"Semi-major axis must be positive, got a={elements.a}"
        )
    if not 0.0 <= elements.e < 1.0:
        raise InvalidOrbitalElements(
            f"Eccentricity must be in [0, 1) for an elliptical orbit, got e={elements.e}"
        )
    return elements
