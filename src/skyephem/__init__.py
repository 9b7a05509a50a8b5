"""
skyephem — Celestial Ephemeris Engine
======================================

A NumPy library for the positions of the Sun, the Moon, the planets,
comets and asteroids as seen from a place on Earth, and for their rising,
transit and setting.

Everything routes through the Julian (Ephemeris) Day and the apparent
equatorial place of date::

    date  →  JD / ΔT / nutation  →  series or orbit  →  (α, δ)
                                                      →  rise / transit / set
                                                      →  altitude, magnitude

Layers
------

**Time** (:mod:`skyephem.timesys`)
  Julian Day on the Julian/Gregorian calendar, ΔT with an injectable table
  provider, IAU 1980 nutation, sidereal time, equinoxes and solstices.

**Frames** (:mod:`skyephem.coordinates`)
  Equatorial, ecliptical, horizontal (azimuth from the south), galactic and
  geographical coordinates, precession, apparent place and parallax.

**Bodies** (:mod:`skyephem.sun`, :mod:`skyephem.moon`,
:mod:`skyephem.planets`, :mod:`skyephem.orbits`)
  VSOP87 Earth, ELP Moon, mean-element planets, and elliptical, parabolic
  and near-parabolic small-body orbits.

**Observing** (:mod:`skyephem.target`, :mod:`skyephem.night`,
:mod:`skyephem.photometry`)
  Rise/transit/set, best time to observe, twilight, sky brightness,
  surface brightness and contrast reserve.

Angles are in degrees except right ascension and sidereal time, which are
in hours.
"""

from .timesys import (
    # ── Calendar ──
    CalendarDate, julian_day, from_julian_day,
    julian_centuries, julian_millennia,
    # ── ΔT ──
    DeltaTProvider, TimeSystem, delta_t, dynamical_time,
    # ── Earth orientation ──
    NutationResult, nutation, mean_obliquity,
    mean_sidereal_time, apparent_sidereal_time, greenwich_apparent_sidereal_time,
    # ── Seasons ──
    season, spring, summer, autumn, winter,
)

from .coordinates import (
    Coordinate,
    GeographicalCoordinates,
    EquatorialCoordinates,
    EclipticalCoordinates,
    HorizontalCoordinates,
    GalacticCoordinates,
    RectangularCoordinates,
    precess_ecliptical,
)

from .orbits import (
    eccentric_anomaly,
    OrbitalElements,
    orbital_elements_from_record,
    OrbitalModel,
    EllipticalOrbit,
    ParabolicOrbit,
    NearParabolicOrbit,
    orbit_from_elements,
)

from .planets import Planet, Earth, PLANET_NAMES
from .moon import MoonPhase

from .night import (
    NightWindow, NightWindowProvider, SunNightWindowProvider,
    SunState, ALWAYS_UP, ALWAYS_DOWN,
)

from .target import (
    Target,
    Ephemerides,
    FixedSeriesBody,
    RiseTransitSetSolver,
    sun_model, moon_model, planet_model,
)

from .config import EphemerisMode, ObserverConfig

from .errors import (
    EphemerisError,
    InvalidInputError,
    InvalidDateError,
    InvalidOrbitError,
    MissingFieldError,
    ConvergenceError,
    EphemerisNotCalculatedError,
)

__version__ = "1.0.0"
__all__ = [
    # ── Time ──
    "CalendarDate", "julian_day", "from_julian_day",
    "julian_centuries", "julian_millennia",
    "DeltaTProvider", "TimeSystem", "delta_t", "dynamical_time",
    "NutationResult", "nutation", "mean_obliquity",
    "mean_sidereal_time", "apparent_sidereal_time", "greenwich_apparent_sidereal_time",
    "season", "spring", "summer", "autumn", "winter",
    # ── Coordinates ──
    "Coordinate", "GeographicalCoordinates", "EquatorialCoordinates",
    "EclipticalCoordinates", "HorizontalCoordinates", "GalacticCoordinates",
    "RectangularCoordinates", "precess_ecliptical",
    # ── Orbits ──
    "eccentric_anomaly", "OrbitalElements", "orbital_elements_from_record",
    "OrbitalModel", "EllipticalOrbit", "ParabolicOrbit", "NearParabolicOrbit",
    "orbit_from_elements",
    # ── Bodies ──
    "Planet", "Earth", "PLANET_NAMES", "MoonPhase",
    # ── Observing ──
    "NightWindow", "NightWindowProvider", "SunNightWindowProvider",
    "SunState", "ALWAYS_UP", "ALWAYS_DOWN",
    "Target", "Ephemerides", "FixedSeriesBody", "RiseTransitSetSolver",
    "sun_model", "moon_model", "planet_model",
    # ── Configuration ──
    "EphemerisMode", "ObserverConfig",
    # ── Errors ──
    "EphemerisError", "InvalidInputError", "InvalidDateError", "InvalidOrbitError",
    "MissingFieldError", "ConvergenceError", "EphemerisNotCalculatedError",
]
