import csv
import logging
from pathlib import Path
from typing import Literal, Optional

import jax.numpy as jnp
import numpy as np
import pydantic
from pydantic import ConfigDict, field_validator

from orrery.orbital_elements import OrbitalElements, validate_elements

logger = logging.getLogger(__name__)

SUN_ID = 10


class Body(pydantic.BaseModel):
    """
    Represents a body drawn by the orrery.

    Attributes:
        name: Name of the body (e.g., "Earth", "1P/Halley")
        id: Unique identifier for the body
        kind: 'star', 'planet' or 'comet'
        elements: Heliocentric orbital elements at J2000 (None for the Sun)
        display_size: Marker size used by the renderer
        color: Matplotlib colour used by the renderer
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)  # Allow OrbitalElements (NamedTuple)

    name: str
    id: int
    kind: Literal['star', 'planet', 'comet']
    elements: Optional[OrbitalElements] = None
    display_size: float = 10.0
    color: str = 'white'

    @field_validator('elements')
    @classmethod
    def validate_orbit(cls, v):
        if v is not None:
            validate_elements(v)
        return v

    def get_state(self, epoch: float, time_units: str = 'day', distance_units: str = 'AU'):
        """
        Get the Cartesian state (position and velocity) of the body at a given epoch.

        This method is JAX-compatible and can be used with jax.jit, jax.vmap, etc.

        Args:
            epoch: Time past J2000 in the units specified by time_units (can be a JAX array)
            time_units: Units of the input epoch. Options:
                - 'day' or 'days': epoch in days (default)
                - 'year' or 'years': epoch in Julian years
            distance_units: Units for the output position and velocity. Options:
                - 'AU': position in AU, velocity in AU/time_units (default)
                - 'km': position in km, velocity in km/time_units

        Returns:
            CartesianState with position and velocity vectors in the specified units.
            The Sun sits at the origin with zero velocity.

        Examples:
            >>> state = bodies_data[3].get_state(0.0)  # Earth at J2000, velocity in AU/day
            >>> state = bodies_data[5].get_state(12.0, time_units='year', distance_units='km')
        """
        from orrery.astrodynamics import elements_to_cartesian
        from orrery.cartesian_state import CartesianState
        from orrery.constants import YEAR, KMPAU

        if time_units in ('day', 'days'):
            epoch_days = epoch
            time_factor = 1.0
        elif time_units in ('year', 'years'):
            epoch_days = epoch * YEAR
            time_factor = YEAR  # convert velocity from units/day to units/year
        else:
            raise ValueError(f"Invalid time_units '{time_units}'. Must be one of: 'day', 'year'")

        if distance_units == 'AU':
            distance_factor = 1.0
        elif distance_units == 'km':
            distance_factor = KMPAU
        else:
            raise ValueError(f"Invalid distance_units '{distance_units}'. Must be one of: 'AU', 'km'")

        if self.elements is None:
            zero = jnp.zeros(3)
            return CartesianState(r=zero, v=zero)

        state = elements_to_cartesian(self.elements, epoch_days)
        return CartesianState(r=state.r * distance_factor, v=state.v * distance_factor * time_factor)

    def get_position(self, epoch: float) -> jnp.ndarray:
        """Heliocentric ecliptic position in AU, epoch in days past J2000."""
        from orrery.astrodynamics import position_at_time

        if self.elements is None:
            return jnp.zeros(3)
        return position_at_time(self.elements, epoch)

    def get_period(self, units: str = 'year') -> float:
        """
        Compute the orbital period of the body.

        The period is calculated using Kepler's third law:
        T = 2π√(a³/μ)

        Args:
            units: Units for the returned period. Options:
                - 'day' or 'days': Period in days
                - 'year' or 'years': Period in Julian years (default)

        Returns:
            Orbital period in the specified units
        """
        from orrery.constants import MU_SUN, YEAR

        if self.elements is None:
            raise ValueError(f"{self.name} has no orbit")

        a = self.elements.a
        period_days = 2.0 * np.pi * np.sqrt(a**3 / MU_SUN)

        units_lower = units.lower()
        if units_lower in ('day', 'days'):
            return period_days
        elif units_lower in ('year', 'years'):
            return period_days / YEAR
        else:
            raise ValueError(f"Invalid units '{units}'. Must be one of: 'day', 'year'")

    def orbit_points(self, segment_count: int = 256, sampling: str = 'true') -> jnp.ndarray:
        """Closed orbit polyline in AU, shape (segment_count, 3)."""
        from orrery.astrodynamics import orbit_polyline

        if self.elements is None:
            raise ValueError(f"{self.name} has no orbit")
        return orbit_polyline(self.elements, segment_count, sampling)

    def is_planet(self) -> bool:
        return self.kind == 'planet'

    def is_comet(self) -> bool:
        return self.kind == 'comet'

    def __repr__(self) -> str:
        return f"Body(id={self.id}, name='{self.name}', kind='{self.kind}')"

    def __str__(self) -> str:
        return f"{self.name} (ID: {self.id})"


def _planet_elements(row: dict) -> OrbitalElements:
    # JPL approximate elements give mean longitude L and longitude of perihelion varpi
    Omega = float(row['Longitude of the Ascending Node (deg)'])
    varpi = float(row['Longitude of Perihelion (deg)'])
    L = float(row['Mean Longitude (deg)'])
    return OrbitalElements.from_degrees(
        a=float(row['Semi-Major Axis (AU)']),
        e=float(row['Eccentricity ()']),
        i=float(row['Inclination (deg)']),
        Omega=Omega,
        omega=np.mod(varpi - Omega, 360.0),
        M0=np.mod(L - varpi, 360.0),
    )


def _comet_elements(row: dict) -> OrbitalElements:
    return OrbitalElements.from_degrees(
        a=float(row['Semi-Major Axis (AU)']),
        e=float(row['Eccentricity ()']),
        i=float(row['Inclination (deg)']),
        Omega=float(row['Longitude of the Ascending Node (deg)']),
        omega=float(row['Argument of Periapsis (deg)']),
        M0=float(row['Mean Anomaly at Epoch (deg)']),
    )


def load_bodies_data(data_dir: Path = None) -> dict[int, Body]:
    """
    Load the Sun, planets and comets.

    Element rows are validated as they are loaded, so a bad table fails here
    rather than inside the render loop.

    Args:
        data_dir: Directory holding planets.csv and comets.csv; defaults to
            the data directory shipped with the package.

    Returns:
        Dictionary mapping body ID to Body object
    """
    if data_dir is None:
        data_dir = Path(__file__).parent / 'data'
    data_dir = Path(data_dir)

    bodies = {
        SUN_ID: Body(name='Sun', id=SUN_ID, kind='star', display_size=69.0, color='#ffdd44'),
    }

    # Configuration for each body type
    body_configs = [
        {
            'filename': 'planets.csv',
            'id_key_options': ['# Planet ID', '#Planet ID', 'Planet ID'],
            'kind': 'planet',
            'elements': _planet_elements,
        },
        {
            'filename': 'comets.csv',
            'id_key_options': ['# Comet ID', '#Comet ID', 'Comet ID'],
            'kind': 'comet',
            'elements': _comet_elements,
        },
    ]

    for config in body_configs:
        filepath = data_dir / config['filename']

        # Skip if file doesn't exist (only planets file is required)
        if not filepath.exists():
            if config['kind'] == 'planet':
                raise FileNotFoundError(f"Planet table not found: {filepath}")
            logger.debug("No %s table at %s", config['kind'], filepath)
            continue

        with open(filepath, 'r', encoding='utf-8') as f:
            reader = csv.DictReader(f)
            for row in reader:
                id_key = next((key for key in config['id_key_options'] if key in row), None)
                if id_key is None:
                    continue

                body_id = int(row[id_key])
                bodies[body_id] = Body(
                    name=row['Name'],
                    id=body_id,
                    kind=config['kind'],
                    elements=config['elements'](row),
                    display_size=float(row['Display Size ()']),
                    color=row['Color'],
                )

    logger.debug("Loaded %d bodies from %s", len(bodies), data_dir)
    return bodies


bodies_data = load_bodies_data()
