"""
skyephem.utils — Foundational Utilities
========================================

Constants, angle wrapping and the small numeric helpers shared by every
layer.  Angles are carried in degrees throughout the engine and converted
to radians only at the point of evaluation.
"""

import numpy as np
from numpy.typing import NDArray

# ── Time Constants ──────────────────────────────────────────────────────────
J2000 = 2_451_545.0             # JD of J2000.0 (2000-01-01 12:00 TT)
DAYS_PER_CENTURY = 36_525.0     # Julian century [d]
DAYS_PER_MILLENNIUM = 365_250.0
DAILY_SECONDS = 86400.0
GREGORIAN_START_JD = 2_299_161  # first integer JD on the Gregorian calendar
SIDEREAL_RATE = 360.985647      # Earth rotation per solar day [deg]

# ── Astronomical Constants ──────────────────────────────────────────────────
LIGHT_TIME_PER_AU = 0.0057755183      # light travel time for 1 AU [d]
GAUSS_K = 0.01720209895               # Gaussian gravitational constant
OBLIQUITY_J2000 = 23.4392911          # mean obliquity at J2000.0 [deg]
OBLIQUITY_B1950 = 23.4457889          # mean obliquity at B1950.0 [deg]
# cos / sin of the J2000 obliquity (equatorial basis of the orbit planes)
COS_EPS_J2000 = 0.917482062
SIN_EPS_J2000 = 0.397777156
ABERRATION_CONSTANT = 20.49552        # κ [arcsec]
EARTH_AXIS_RATIO = 0.99664719         # b/a of the Earth ellipsoid
EARTH_RADIUS_M = 6_378_140.0          # equatorial radius used for parallax [m]
EARTH_EQUATORIAL_PARALLAX = 8.794     # solar parallax at 1 AU [arcsec]

# ── Standard altitudes for rising and setting [deg] ─────────────────────────
H0_STAR = -0.5667
H0_SUN = -0.8333
H0_CIVIL = -6.0
H0_NAUTICAL = -12.0
H0_ASTRONOMICAL = -18.0


# ── Angle Helpers ───────────────────────────────────────────────────────────

def wrap(value: float, minimum: float = 0.0, maximum: float = 360.0) -> float:
    """Reduce *value* into the half-open interval ``[minimum, maximum)``."""
    interval = maximum - minimum
    result = float(value - minimum
                   - np.floor((value - minimum) / interval) * interval
                   + minimum)
    # tiny negative inputs round up onto the open end
    if result >= maximum:
        return float(minimum)
    return result


def wrap_degrees(angle: float) -> float:
    """Reduce an angle into [0, 360)."""
    return wrap(angle, 0.0, 360.0)


def wrap_hours(hours: float) -> float:
    """Reduce a time-angle into [0, 24)."""
    return wrap(hours, 0.0, 24.0)


def sin_deg(angle):
    return np.sin(np.deg2rad(angle))


def cos_deg(angle):
    return np.cos(np.deg2rad(angle))


def tan_deg(angle):
    return np.tan(np.deg2rad(angle))


def atan2_deg(y, x) -> float:
    """Two-argument arctangent returning degrees in (-180, 180]."""
    return float(np.rad2deg(np.arctan2(y, x)))


def asin_deg(x) -> float:
    """Arcsine in degrees; the argument is clipped to [-1, 1]."""
    return float(np.rad2deg(np.arcsin(np.clip(x, -1.0, 1.0))))


def periodic_sum(terms: NDArray, tau: float) -> float:
    """Sum a VSOP-style series ``Σ A cos(B + C τ)``.

    Parameters
    ----------
    terms : (N, 3) array — rows of (A, B, C), B in radians, C in rad/millennium
    tau : float — Julian millennia from J2000.0
    """
    terms = np.asarray(terms, dtype=np.float64)
    return float(np.sum(terms[:, 0] * np.cos(terms[:, 1] + terms[:, 2] * tau)))


def spherical_to_rectangular(lon: float, lat: float, radius: float) -> NDArray:
    """(longitude, latitude) [deg] and radius → (x, y, z)."""
    cos_lat = cos_deg(lat)
    return np.array([
        radius * cos_lat * cos_deg(lon),
        radius * cos_lat * sin_deg(lon),
        radius * sin_deg(lat),
    ])


def rectangular_to_spherical(xyz: NDArray) -> tuple[float, float, float]:
    """(x, y, z) → (longitude [deg, 0..360), latitude [deg], radius)."""
    x, y, z = (float(c) for c in xyz)
    radius = float(np.sqrt(x * x + y * y + z * z))
    lon = wrap_degrees(atan2_deg(y, x))
    lat = atan2_deg(z, np.hypot(x, y))
    return lon, lat, radius


def decimal_to_sexagesimal(value: float) -> tuple[int, int, float]:
    """Split |value| into whole units, minutes and seconds."""
    value = abs(value)
    units = int(value)
    minutes = int((value - units) * 60.0)
    seconds = ((value - units) * 60.0 - minutes) * 60.0
    return units, minutes, seconds
