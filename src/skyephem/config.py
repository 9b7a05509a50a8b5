"""
skyephem.config — Numeric Defaults and Observer Configuration
==============================================================

Solver tolerances and iteration caps can be overridden through the
environment; they are read each time a solver starts so tests and
applications may change them without reloading the package.

    SKYEPHEM_KEPLER_TOLERANCE          default 1e-6 (degrees)
    SKYEPHEM_KEPLER_MAX_ITER           default 1000
    SKYEPHEM_NEAR_PARABOLIC_MAX_ITER   default 500
    SKYEPHEM_LIGHT_TIME_ITERATIONS     default 1
"""

import enum
import os
from dataclasses import dataclass
from typing import Callable, Optional

from .errors import InvalidInputError

DEFAULT_KEPLER_TOLERANCE = 1e-6
DEFAULT_KEPLER_MAX_ITER = 1000
DEFAULT_NEAR_PARABOLIC_MAX_ITER = 500
DEFAULT_LIGHT_TIME_ITERATIONS = 1


def _env_number(name, default, cast):
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise InvalidInputError(
            f"Environment variable {name}={raw!r} is not a valid {cast.__name__}"
        ) from None
    if value <= 0:
        raise InvalidInputError(f"Environment variable {name} must be positive, got {raw!r}")
    return value


def get_kepler_tolerance() -> float:
    return _env_number("SKYEPHEM_KEPLER_TOLERANCE", DEFAULT_KEPLER_TOLERANCE, float)


def get_kepler_max_iter() -> int:
    return _env_number("SKYEPHEM_KEPLER_MAX_ITER", DEFAULT_KEPLER_MAX_ITER, int)


def get_near_parabolic_max_iter() -> int:
    return _env_number("SKYEPHEM_NEAR_PARABOLIC_MAX_ITER",
                       DEFAULT_NEAR_PARABOLIC_MAX_ITER, int)


def get_light_time_iterations() -> int:
    """Number of light-time retraction passes (1 = single retraction)."""
    return _env_number("SKYEPHEM_LIGHT_TIME_ITERATIONS",
                       DEFAULT_LIGHT_TIME_ITERATIONS, int)


class EphemerisMode(enum.Enum):
    """How an orbital model turns a date into equatorial coordinates."""
    SERIES_MODEL = "series"
    EXTERNAL_EPHEMERIS_LOOKUP = "external"


@dataclass
class ObserverConfig:
    """
    Where the observer stands and how positions should be obtained.

    Attributes
    ----------
    geo_coords : GeographicalCoordinates — observer location
    height_m : float — height above sea level [m], used for parallax
    ephemeris_mode : EphemerisMode
    external_lookup : callable(model, jd) -> EquatorialCoordinates, required
        for ``EXTERNAL_EPHEMERIS_LOOKUP``
    """
    geo_coords: object
    height_m: float = 0.0
    ephemeris_mode: EphemerisMode = EphemerisMode.SERIES_MODEL
    external_lookup: Optional[Callable] = None

    def __post_init__(self):
        if (self.ephemeris_mode is EphemerisMode.EXTERNAL_EPHEMERIS_LOOKUP
                and self.external_lookup is None):
            raise InvalidInputError(
                "EXTERNAL_EPHEMERIS_LOOKUP mode requires an external_lookup callable"
            )
