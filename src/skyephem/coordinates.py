"""
skyephem.coordinates — Angles and Reference Frames
===================================================

A wrapped scalar :class:`Coordinate` plus the frame value types the engine
passes between layers: equatorial, ecliptical, horizontal, galactic,
geographical and rectangular.  All frame objects are immutable; every
transform returns a new object.

Conventions
-----------
- Right ascension in hours [0, 24), every other angle in degrees.
- Azimuth is measured westward from the south.
- Geographical longitude is positive east of Greenwich.
- Sidereal-time arguments are *local* sidereal times in hours.

Reference
---------
Meeus, J. *Astronomical Algorithms*, 2nd ed., chapters 11, 13, 14, 16,
17, 19, 20, 21 and 23.
"""

from typing import Optional

import numpy as np
from numpy.typing import NDArray

from .errors import InvalidInputError
from .timesys import (
    CalendarDate, DateLike, NutationResult, calendar_parts, julian_centuries,
    julian_day,
    nutation as compute_nutation,
)
from .utils import (
    DAYS_PER_CENTURY, EARTH_AXIS_RATIO, EARTH_EQUATORIAL_PARALLAX,
    EARTH_RADIUS_M, J2000, OBLIQUITY_B1950, OBLIQUITY_J2000,
    asin_deg, atan2_deg, cos_deg, sin_deg, tan_deg, wrap, wrap_degrees,
)

# Galactic pole and node, J2000 equatorial frame
GALACTIC_NODE_LONGITUDE = 122.93192
GALACTIC_POLE_DECLINATION = 27.12825
GALACTIC_POLE_RA = 192.85948


class Coordinate(float):
    """
    A float kept inside ``[minimum, maximum)`` by modular wrapping.

    With ``closed=True`` the value ``maximum`` itself is kept, so +90° of
    latitude does not wrap to -90°.
    """

    def __new__(cls, value, minimum=0.0, maximum=360.0, closed=False):
        value = float(value)
        if not (closed and value == maximum):
            value = wrap(value, minimum, maximum)
        obj = super().__new__(cls, value)
        obj.minimum = minimum
        obj.maximum = maximum
        return obj

    def __repr__(self):
        return f"Coordinate({float(self)!r}, {self.minimum}, {self.maximum})"

    @staticmethod
    def _split(value, with_seconds=True):
        units = int(np.floor(value))
        sub_minutes = 60.0 * (value - units)
        minutes = int(np.floor(sub_minutes))
        seconds = int(round(60.0 * (sub_minutes - minutes))) if with_seconds else 0
        if seconds == 60:
            seconds = 0
            minutes += 1
        if minutes == 60:
            minutes = 0
            units += 1
        return units, minutes, seconds

    def to_degrees_string(self) -> str:
        """Render as ``±DD°MM'SS"`` (a space stands for the plus sign)."""
        sign = "-" if self < 0 else " "
        d, m, s = self._split(abs(float(self)))
        return f"{sign}{d:02d}°{m:02d}'{s:02d}\""

    def to_short_degrees_string(self) -> str:
        sign = "-" if self < 0 else " "
        d, m, _ = self._split(abs(float(self)), with_seconds=False)
        return f"{sign}{d:02d}°{m:02d}'"

    def to_hours_string(self) -> str:
        """Render as ``HHhMMmSSs``."""
        h, m, s = self._split(float(self))
        return f"{h:02d}h{m:02d}m{s:02d}s"

    def to_short_hours_string(self) -> str:
        h, m, _ = self._split(float(self), with_seconds=False)
        return f"{h:02d}h{m:02d}m"


def _latitude(value) -> Coordinate:
    return Coordinate(value, -90.0, 90.0, closed=True)


def _check_range(name, value, low, high):
    if not low <= value <= high:
        raise InvalidInputError(f"{name} must be in [{low}, {high}], got {value}")


def _epoch_jd(epoch: float) -> float:
    """JD of January 1, 12h of the epoch year."""
    return julian_day(CalendarDate(int(epoch), 1, 1, 12))


# ════════════════════════════════════════════════════════════════════════════
#  Geographical
# ════════════════════════════════════════════════════════════════════════════

class GeographicalCoordinates:
    """Observer location: longitude east-positive, latitude, both in degrees."""

    def __init__(self, longitude: float, latitude: float):
        _check_range("Longitude", longitude, -180.0, 180.0)
        _check_range("Latitude", latitude, -90.0, 90.0)
        self._longitude = Coordinate(longitude, -180.0, 180.0, closed=True)
        self._latitude = _latitude(latitude)

    @property
    def longitude(self) -> Coordinate:
        return self._longitude

    @property
    def latitude(self) -> Coordinate:
        return self._latitude

    def earths_globe(self, height_m: float = 0.0) -> tuple[float, float]:
        """
        Geocentric position factors of the observer (Meeus ch. 11).

        Returns
        -------
        (rho_sin_phi, rho_cos_phi) — in units of the Earth's equatorial radius
        """
        phi = float(self._latitude)
        u = np.rad2deg(np.arctan(EARTH_AXIS_RATIO * tan_deg(phi)))
        rho_sin_phi = (EARTH_AXIS_RATIO * sin_deg(u)
                       + height_m / EARTH_RADIUS_M * sin_deg(phi))
        rho_cos_phi = cos_deg(u) + height_m / EARTH_RADIUS_M * cos_deg(phi)
        return float(rho_sin_phi), float(rho_cos_phi)

    def __repr__(self):
        return (f"GeographicalCoordinates(longitude={float(self._longitude)}, "
                f"latitude={float(self._latitude)})")


# ════════════════════════════════════════════════════════════════════════════
#  Equatorial
# ════════════════════════════════════════════════════════════════════════════

# Ron–Vondrák annual aberration (Meeus Table 23.A).
# Argument multipliers of L2, L3, L4, L5, L6, L7, L8, L', D, M', F
_RV_ARGUMENTS = np.array([
    [0, 1, 0, 0, 0, 0, 0, 0, 0, 0, 0],
    [0, 2, 0, 0, 0, 0, 0, 0, 0, 0, 0],
    [0, 0, 0, 1, 0, 0, 0, 0, 0, 0, 0],
    [0, 0, 0, 0, 0, 0, 0, 1, 0, 0, 0],
    [0, 3, 0, 0, 0, 0, 0, 0, 0, 0, 0],
    [0, 0, 0, 0, 1, 0, 0, 0, 0, 0, 0],
    [0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 1],
    [0, 0, 0, 0, 0, 0, 0, 1, 0, 1, 0],
    [0, 0, 0, 2, 0, 0, 0, 0, 0, 0, 0],
    [0, 2, 0, -1, 0, 0, 0, 0, 0, 0, 0],
    [0, 3, -8, 3, 0, 0, 0, 0, 0, 0, 0],
    [0, 5, -8, 3, 0, 0, 0, 0, 0, 0, 0],
    [2, -1, 0, 0, 0, 0, 0, 0, 0, 0, 0],
    [1, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0],
    [0, 0, 0, 0, 0, 1, 0, 0, 0, 0, 0],
    [0, 1, 0, -2, 0, 0, 0, 0, 0, 0, 0],
    [0, 0, 0, 0, 0, 0, 1, 0, 0, 0, 0],
    [0, 1, 0, 1, 0, 0, 0, 0, 0, 0, 0],
    [2, -2, 0, 0, 0, 0, 0, 0, 0, 0, 0],
    [0, 1, 0, -1, 0, 0, 0, 0, 0, 0, 0],
    [0, 4, 0, 0, 0, 0, 0, 0, 0, 0, 0],
    [0, 3, 0, -2, 0, 0, 0, 0, 0, 0, 0],
    [1, -2, 0, 0, 0, 0, 0, 0, 0, 0, 0],
    [2, -3, 0, 0, 0, 0, 0, 0, 0, 0, 0],
    [0, 0, 0, 0, 2, 0, 0, 0, 0, 0, 0],
    [2, -4, 0, 0, 0, 0, 0, 0, 0, 0, 0],
    [0, 3, -2, 0, 0, 0, 0, 0, 0, 0, 0],
    [0, 0, 0, 0, 0, 0, 0, 1, 2, -1, 0],
    [8, -12, 0, 0, 0, 0, 0, 0, 0, 0, 0],
    [8, -14, 0, 0, 0, 0, 0, 0, 0, 0, 0],
    [0, 0, 2, 0, 0, 0, 0, 0, 0, 0, 0],
    [3, -4, 0, 0, 0, 0, 0, 0, 0, 0, 0],
    [0, 2, 0, -2, 0, 0, 0, 0, 0, 0, 0],
    [3, -3, 0, 0, 0, 0, 0, 0, 0, 0, 0],
    [0, 2, -2, 0, 0, 0, 0, 0, 0, 0, 0],
    [0, 0, 0, 0, 0, 0, 0, 1, -2, 0, 0],
], dtype=np.float64)

# X sin, X cos, Y sin, Y cos, Z sin, Z cos  [1e-8 AU/day]
_RV_COEFFS = np.array([
    [-1719914, -25, 25, 1578089, 10, 684185],
    [6434, 28007, 25697, -5904, 11141, -2559],
    [715, 0, 6, -657, -15, -282],
    [715, 0, 0, -656, 0, -285],
    [486, -236, -216, -446, -94, -193],
    [159, 0, 2, -147, -6, -61],
    [0, 0, 0, 26, 0, -59],
    [39, 0, 0, -36, 0, -16],
    [33, -10, -9, -30, -5, -13],
    [31, 1, 1, -28, 0, -12],
    [8, -28, 25, 8, 11, 3],
    [8, -28, -25, -8, -11, -3],
    [21, 0, 0, -19, 0, -8],
    [-19, 0, 0, 17, 0, 8],
    [17, 0, 0, -16, 0, -7],
    [16, 0, 0, 15, 1, 7],
    [16, 0, 1, -15, -3, -6],
    [11, -1, -1, -10, -1, -5],
    [0, -11, -10, 0, -4, 0],
    [-11, -2, -2, 9, -1, 4],
    [-7, -8, -8, 6, -3, 3],
    [-10, 0, 0, 9, 0, 4],
    [-9, 0, 0, -9, 0, -4],
    [-9, 0, 0, -8, 0, -4],
    [0, -9, -8, 0, -3, 0],
    [0, -9, 8, 0, 3, 0],
    [8, 0, 0, -8, 0, -3],
    [8, 0, 0, -7, 0, -3],
    [-4, -7, -6, 4, -3, 2],
    [-4, -7, 6, -4, 3, -2],
    [-6, -5, -4, 5, -2, -2],
    [-1, -1, -2, -7, 1, -4],
    [4, -6, -5, -4, -2, -2],
    [0, -7, -6, 0, -3, 0],
    [5, -5, -4, -5, -2, -2],
    [5, 0, 0, -5, 0, -2],
], dtype=np.float64)

# T-dependent parts of the same coefficients (only three arguments carry them)
_RV_RATES = np.zeros_like(_RV_COEFFS)
_RV_RATES[0] = [-2, 0, -13, 156, 32, -358]
_RV_RATES[1] = [141, -107, -95, -130, -48, -55]
_RV_RATES[4] = [-5, -4, -4, -5, 0, 0]

_RV_SPEED_OF_LIGHT = 17_314_463_350.0   # c in 1e-8 AU/day


def _ron_vondrak_velocity(T: float) -> NDArray:
    """Earth's velocity (X', Y', Z') in 1e-8 AU/day, equatorial J2000."""
    args = np.array([
        3.1761467 + 1021.3285546 * T,   # L2 Venus
        1.7534703 + 628.3075849 * T,    # L3 Earth
        6.2034809 + 334.0612431 * T,    # L4 Mars
        0.5995465 + 52.9690965 * T,     # L5 Jupiter
        0.8740168 + 21.3299095 * T,     # L6 Saturn
        5.4812939 + 7.4781599 * T,      # L7 Uranus
        5.3118863 + 3.8133036 * T,      # L8 Neptune
        3.8103444 + 8399.6847337 * T,   # L' Moon
        5.1984667 + 7771.3771486 * T,   # D
        2.3555559 + 8328.6914289 * T,   # M'
        1.6279052 + 8433.4661601 * T,   # F
    ])
    phase = _RV_ARGUMENTS @ args
    coeffs = _RV_COEFFS + _RV_RATES * T
    s, c = np.sin(phase), np.cos(phase)
    return np.array([
        np.sum(coeffs[:, 0] * s + coeffs[:, 1] * c),
        np.sum(coeffs[:, 2] * s + coeffs[:, 3] * c),
        np.sum(coeffs[:, 4] * s + coeffs[:, 5] * c),
    ])


class EquatorialCoordinates:
    """
    Right ascension [h] and declination [deg] referred to an epoch.

    Parameters
    ----------
    ra : float — right ascension, 0..24 h
    declination : float — -90..90 deg
    epoch : float — equinox of the coordinates (Julian year)
    delta_ra : float — annual proper motion in right ascension [s of time]
    delta_dec : float — annual proper motion in declination [arcsec]

    Raises
    ------
    InvalidInputError
        For a right ascension or declination outside its range.
    """

    def __init__(self, ra: float, declination: float, epoch: float = 2000.0,
                 delta_ra: float = 0.0, delta_dec: float = 0.0):
        _check_range("Right ascension", ra, 0.0, 24.0)
        _check_range("Declination", declination, -90.0, 90.0)
        self._ra = Coordinate(ra, 0.0, 24.0)
        self._declination = _latitude(declination)
        self.epoch = float(epoch)
        self.delta_ra = float(delta_ra)
        self.delta_dec = float(delta_dec)

    @classmethod
    def from_unwrapped(cls, ra: float, declination: float, epoch: float = 2000.0,
                       delta_ra: float = 0.0, delta_dec: float = 0.0):
        """Build from computed values, wrapping RA into [0, 24)."""
        dec = float(np.clip(declination, -90.0, 90.0))
        return cls(wrap(ra, 0.0, 24.0), dec, epoch, delta_ra, delta_dec)

    @property
    def ra(self) -> Coordinate:
        return self._ra

    @property
    def declination(self) -> Coordinate:
        return self._declination

    def __eq__(self, other):
        if not isinstance(other, EquatorialCoordinates):
            return NotImplemented
        return (float(self._ra) == float(other._ra)
                and float(self._declination) == float(other._declination)
                and self.epoch == other.epoch)

    def __hash__(self):
        return hash((float(self._ra), float(self._declination), self.epoch))

    def __repr__(self):
        return (f"EquatorialCoordinates(ra={float(self._ra)!r}, "
                f"declination={float(self._declination)!r}, epoch={self.epoch})")

    def _with(self, ra, declination, epoch=None):
        return EquatorialCoordinates.from_unwrapped(
            ra, declination, self.epoch if epoch is None else epoch,
            self.delta_ra, self.delta_dec)

    # ── Frame conversions ───────────────────────────────────────────────────

    def to_ecliptical(self, obliquity: float = OBLIQUITY_J2000) -> "EclipticalCoordinates":
        """Convert with the given obliquity of the ecliptic [deg]."""
        alpha = float(self._ra) * 15.0
        delta = float(self._declination)
        lon = atan2_deg(sin_deg(alpha) * cos_deg(obliquity)
                        + tan_deg(delta) * sin_deg(obliquity),
                        cos_deg(alpha))
        lat = asin_deg(sin_deg(delta) * cos_deg(obliquity)
                       - cos_deg(delta) * sin_deg(obliquity) * sin_deg(alpha))
        return EclipticalCoordinates(lon, lat, self.epoch)

    def to_ecliptical_b1950(self) -> "EclipticalCoordinates":
        return self.to_ecliptical(OBLIQUITY_B1950)

    def hour_angle(self, sidereal_time: float) -> float:
        """Local hour angle [deg], in [0, 360), for a local sidereal time [h]."""
        return wrap_degrees((sidereal_time - float(self._ra)) * 15.0)

    def to_horizontal(self, geo: GeographicalCoordinates,
                      sidereal_time: float) -> "HorizontalCoordinates":
        H = self.hour_angle(sidereal_time)
        phi = float(geo.latitude)
        delta = float(self._declination)
        azimuth = atan2_deg(sin_deg(H),
                            cos_deg(H) * sin_deg(phi) - tan_deg(delta) * cos_deg(phi))
        altitude = asin_deg(sin_deg(phi) * sin_deg(delta)
                            + cos_deg(phi) * cos_deg(delta) * cos_deg(H))
        return HorizontalCoordinates(azimuth, altitude)

    def to_galactic(self) -> "GalacticCoordinates":
        alpha = float(self._ra) * 15.0
        delta = float(self._declination)
        x = atan2_deg(
            cos_deg(delta) * sin_deg(alpha - GALACTIC_POLE_RA),
            sin_deg(delta) * cos_deg(GALACTIC_POLE_DECLINATION)
            - cos_deg(delta) * sin_deg(GALACTIC_POLE_DECLINATION)
            * cos_deg(alpha - GALACTIC_POLE_RA))
        b = asin_deg(sin_deg(delta) * sin_deg(GALACTIC_POLE_DECLINATION)
                     + cos_deg(delta) * cos_deg(GALACTIC_POLE_DECLINATION)
                     * cos_deg(alpha - GALACTIC_POLE_RA))
        return GalacticCoordinates(GALACTIC_NODE_LONGITUDE - x, b)

    def parallactic_angle(self, geo: GeographicalCoordinates,
                          sidereal_time: float) -> float:
        """Parallactic angle q [deg]; zero on the meridian."""
        H = self.hour_angle(sidereal_time)
        phi = float(geo.latitude)
        delta = float(self._declination)
        return atan2_deg(sin_deg(H),
                         tan_deg(phi) * cos_deg(delta) - sin_deg(delta) * cos_deg(H))

    # ── Angular relations ───────────────────────────────────────────────────

    def angular_separation(self, other: "EquatorialCoordinates") -> Coordinate:
        """Great-circle distance [deg] to another position."""
        a1, d1 = float(self._ra) * 15.0, float(self._declination)
        a2, d2 = float(other.ra) * 15.0, float(other.declination)
        cos_d = (sin_deg(d1) * sin_deg(d2)
                 + cos_deg(d1) * cos_deg(d2) * cos_deg(a1 - a2))
        d = float(np.rad2deg(np.arccos(np.clip(cos_d, -1.0, 1.0))))
        if d < 0.16:
            # acos loses precision for close pairs
            d_alpha = wrap(a1 - a2, -180.0, 180.0)
            d = float(np.hypot(d_alpha * cos_deg((d1 + d2) / 2.0), d1 - d2))
        return Coordinate(d, 0.0, 180.0, closed=True)

    def is_in_straight_line(self, coords2: "EquatorialCoordinates",
                            coords3: "EquatorialCoordinates",
                            threshold: float = 1e-6) -> bool:
        """True when the three positions lie on one great circle."""
        a1, d1 = float(self._ra) * 15.0, float(self._declination)
        a2, d2 = float(coords2.ra) * 15.0, float(coords2.declination)
        a3, d3 = float(coords3.ra) * 15.0, float(coords3.declination)
        result = (tan_deg(d1) * sin_deg(a2 - a3)
                  + tan_deg(d2) * sin_deg(a3 - a1)
                  + tan_deg(d3) * sin_deg(a1 - a2))
        return bool(abs(result) < threshold)

    def deviation_from_straight_line(self, coords2: "EquatorialCoordinates",
                                     coords3: "EquatorialCoordinates") -> Coordinate:
        """Angular distance [deg] of this position from the great circle
        through *coords2* and *coords3*."""
        def unit(c):
            alpha, delta = float(c.ra) * 15.0, float(c.declination)
            return np.array([cos_deg(delta) * cos_deg(alpha),
                             cos_deg(delta) * sin_deg(alpha),
                             sin_deg(delta)])

        A, B, C = np.cross(unit(coords2), unit(coords3))
        alpha0, delta0 = float(self._ra) * 15.0, float(self._declination)
        m = tan_deg(alpha0)
        n = tan_deg(delta0) / cos_deg(alpha0)
        omega = abs(asin_deg((A + B * m + C * n)
                             / (np.sqrt(A * A + B * B + C * C)
                                * np.sqrt(1 + m * m + n * n))))
        return Coordinate(omega, 0.0, 90.0, closed=True)

    def smallest_circle(self, coords2: "EquatorialCoordinates",
                        coords3: "EquatorialCoordinates") -> Coordinate:
        """Diameter [deg] of the smallest circle containing three positions."""
        a, b, c = sorted((float(self.angular_separation(coords2)),
                          float(self.angular_separation(coords3)),
                          float(coords2.angular_separation(coords3))),
                         reverse=True)
        if a > np.sqrt(b * b + c * c):
            return Coordinate(a)
        diameter = 2 * a * b * c / np.sqrt((a + b + c) * (a + b - c)
                                           * (b + c - a) * (a + c - b))
        return Coordinate(diameter)

    # ── Precession and apparent place ───────────────────────────────────────

    def with_proper_motion(self, date: DateLike) -> "EquatorialCoordinates":
        """Apply proper motion from the epoch to *date* (epoch tag unchanged)."""
        t = (julian_day(date) - _epoch_jd(self.epoch)) / DAYS_PER_CENTURY
        ra = float(self._ra) + self.delta_ra * t * 100.0 / 3600.0
        dec = float(self._declination) + self.delta_dec * t * 100.0 / 3600.0
        return self._with(ra, dec)

    def precession(self, date: DateLike) -> "EquatorialCoordinates":
        """Low-accuracy precession plus proper motion to *date*."""
        year, month, day = calendar_parts(date)[:3]
        leap = (year % 4 == 0 and year % 100 != 0) or year % 400 == 0
        day_of_year = int(julian_day(CalendarDate(year, month, day))
                          - julian_day(CalendarDate(year, 1, 1))) + 1
        year_fraction = year + (day_of_year - 1.0) / (366 if leap else 365)

        T = (self.epoch - year_fraction) / 100.0
        m = 3.07496 + 0.00186 * T
        n = 20.0431 - 0.0085 * T
        alpha = float(self._ra) * 15.0
        delta = float(self._declination)
        years = year_fraction - self.epoch

        delta_ra = (self.delta_ra
                    + (m + n * sin_deg(alpha) * tan_deg(delta) / 15.0)) * years
        delta_dec = (self.delta_dec + n * cos_deg(alpha)) * years
        return self._with(float(self._ra) + delta_ra / 3600.0,
                          delta + delta_dec / 3600.0, year_fraction)

    def precession_high_accuracy(self, date: DateLike,
                                 proper_motion: bool = True) -> "EquatorialCoordinates":
        """Rigorous precession (ζ, z, θ) from the epoch to *date*."""
        epoch_jd = _epoch_jd(self.epoch)
        jd = julian_day(date)
        T = julian_centuries(epoch_jd)
        t = (jd - epoch_jd) / DAYS_PER_CENTURY

        start = self.with_proper_motion(date) if proper_motion else self
        alpha = float(start.ra) * 15.0
        delta = float(start.declination)

        common = (2306.2181 + 1.39656 * T - 0.000139 * T**2) * t
        zeta = (common + (0.30188 - 0.000344 * T) * t**2 + 0.017998 * t**3) / 3600.0
        z = (common + (1.09468 + 0.000066 * T) * t**2 + 0.018203 * t**3) / 3600.0
        theta = ((2004.3109 - 0.85330 * T - 0.000217 * T**2) * t
                 - (0.42665 + 0.000217 * T) * t**2
                 - 0.041833 * t**3) / 3600.0

        A = cos_deg(delta) * sin_deg(alpha + zeta)
        B = (cos_deg(theta) * cos_deg(delta) * cos_deg(alpha + zeta)
             - sin_deg(theta) * sin_deg(delta))
        C = (sin_deg(theta) * cos_deg(delta) * cos_deg(alpha + zeta)
             + cos_deg(theta) * sin_deg(delta))

        new_epoch = 2000.0 + (jd - J2000) / 365.25
        return self._with((atan2_deg(A, B) + z) / 15.0, asin_deg(C), new_epoch)

    def apparent_place(self, date: DateLike,
                       nutation: Optional[NutationResult] = None) -> "EquatorialCoordinates":
        """
        Apparent place of a star for *date*: proper motion, annual
        aberration (Ron–Vondrák), precession and nutation.
        """
        jd = julian_day(date)
        if nutation is None:
            nutation = compute_nutation(jd)

        coords = self.with_proper_motion(date)
        alpha = float(coords.ra) * 15.0
        delta = float(coords.declination)

        X, Y, Z = _ron_vondrak_velocity(julian_centuries(jd))
        d_alpha = np.rad2deg((Y * cos_deg(alpha) - X * sin_deg(alpha))
                             / (_RV_SPEED_OF_LIGHT * cos_deg(delta)))
        d_delta = -np.rad2deg(((X * cos_deg(alpha) + Y * sin_deg(alpha)) * sin_deg(delta)
                               - Z * cos_deg(delta)) / _RV_SPEED_OF_LIGHT)

        aberrated = EquatorialCoordinates.from_unwrapped(
            (alpha + d_alpha) / 15.0, delta + d_delta, self.epoch)
        precessed = aberrated.precession_high_accuracy(date, proper_motion=False)

        alpha = float(precessed.ra) * 15.0
        delta = float(precessed.declination)
        eps = nutation.true_obliquity
        d_psi = nutation.delta_psi_arcsec
        d_eps = nutation.delta_epsilon_arcsec
        d_alpha = ((cos_deg(eps) + sin_deg(eps) * sin_deg(alpha) * tan_deg(delta)) * d_psi
                   - cos_deg(alpha) * tan_deg(delta) * d_eps)
        d_delta = sin_deg(eps) * cos_deg(alpha) * d_psi + sin_deg(alpha) * d_eps

        return EquatorialCoordinates.from_unwrapped(
            (alpha + d_alpha / 3600.0) / 15.0, delta + d_delta / 3600.0,
            precessed.epoch, self.delta_ra, self.delta_dec)

    def topocentric(self, distance_au: float, geo: GeographicalCoordinates,
                    height_m: float, sidereal_time: float) -> "EquatorialCoordinates":
        """
        Correct a geocentric position for the observer's parallax.

        Parameters
        ----------
        distance_au : float — geocentric distance of the body [AU]
        sidereal_time : float — local apparent sidereal time [h]
        """
        rho_sin_phi, rho_cos_phi = geo.earths_globe(height_m)
        sin_pi = sin_deg(EARTH_EQUATORIAL_PARALLAX / 3600.0) / distance_au
        H = self.hour_angle(sidereal_time)
        delta = float(self._declination)

        denominator = cos_deg(delta) - rho_cos_phi * sin_pi * cos_deg(H)
        d_alpha = atan2_deg(-rho_cos_phi * sin_pi * sin_deg(H), denominator)
        dec = atan2_deg((sin_deg(delta) - rho_sin_phi * sin_pi) * cos_deg(d_alpha),
                        denominator)
        return self._with(float(self._ra) + d_alpha / 15.0, dec)


# ════════════════════════════════════════════════════════════════════════════
#  Ecliptical
# ════════════════════════════════════════════════════════════════════════════

class EclipticalCoordinates:
    """Ecliptic longitude λ [0, 360) and latitude β [deg]."""

    def __init__(self, longitude: float, latitude: float, epoch: float = 2000.0):
        self._longitude = Coordinate(longitude)
        self._latitude = _latitude(latitude)
        self.epoch = float(epoch)

    @property
    def longitude(self) -> Coordinate:
        return self._longitude

    @property
    def latitude(self) -> Coordinate:
        return self._latitude

    def __repr__(self):
        return (f"EclipticalCoordinates(longitude={float(self._longitude)!r}, "
                f"latitude={float(self._latitude)!r}, epoch={self.epoch})")

    def to_equatorial(self, obliquity: float = OBLIQUITY_J2000) -> EquatorialCoordinates:
        lam = float(self._longitude)
        beta = float(self._latitude)
        ra = atan2_deg(sin_deg(lam) * cos_deg(obliquity)
                       - tan_deg(beta) * sin_deg(obliquity),
                       cos_deg(lam))
        dec = asin_deg(sin_deg(beta) * cos_deg(obliquity)
                       + cos_deg(beta) * sin_deg(obliquity) * sin_deg(lam))
        return EquatorialCoordinates.from_unwrapped(ra / 15.0, dec, self.epoch)

    def to_equatorial_b1950(self) -> EquatorialCoordinates:
        return self.to_equatorial(OBLIQUITY_B1950)

    def precession_high_accuracy(self, date: DateLike) -> "EclipticalCoordinates":
        """Rigorous ecliptical precession from the epoch to *date* (η, Π, p)."""
        jd = julian_day(date)
        lam, beta = precess_ecliptical(float(self._longitude), float(self._latitude),
                                       _epoch_jd(self.epoch), jd)
        return EclipticalCoordinates(lam, beta, 2000.0 + (jd - J2000) / 365.25)


def precess_ecliptical(longitude: float, latitude: float,
                       jd_from: float, jd_to: float) -> tuple[float, float]:
    """
    Move ecliptical coordinates [deg] between the equinoxes of two Julian
    Days (Meeus 21.5 and 21.6).
    """
    T = julian_centuries(jd_from)
    t = (jd_to - jd_from) / DAYS_PER_CENTURY

    eta = ((47.0029 - 0.06603 * T + 0.000598 * T**2) * t
           + (-0.03302 + 0.000598 * T) * t**2 + 0.000060 * t**3) / 3600.0
    pi = 174.876384 + (3289.4789 * T + 0.60622 * T**2
                       - (869.8089 + 0.50491 * T) * t
                       + 0.03536 * t**2) / 3600.0
    p = ((5029.0966 + 2.22226 * T - 0.000042 * T**2) * t
         + (1.11113 - 0.000042 * T) * t**2 - 0.000006 * t**3) / 3600.0

    A = (cos_deg(eta) * cos_deg(latitude) * sin_deg(pi - longitude)
         - sin_deg(eta) * sin_deg(latitude))
    B = cos_deg(latitude) * cos_deg(pi - longitude)
    C = (cos_deg(eta) * sin_deg(latitude)
         + sin_deg(eta) * cos_deg(latitude) * sin_deg(pi - longitude))
    return wrap(p + pi - atan2_deg(A, B)), asin_deg(C)


# ════════════════════════════════════════════════════════════════════════════
#  Horizontal
# ════════════════════════════════════════════════════════════════════════════

class HorizontalCoordinates:
    """Azimuth [0, 360) measured westward from the south, and altitude."""

    def __init__(self, azimuth: float, altitude: float):
        self._azimuth = Coordinate(azimuth)
        self._altitude = _latitude(altitude)

    @property
    def azimuth(self) -> Coordinate:
        return self._azimuth

    @property
    def altitude(self) -> Coordinate:
        return self._altitude

    def __repr__(self):
        return (f"HorizontalCoordinates(azimuth={float(self._azimuth)!r}, "
                f"altitude={float(self._altitude)!r})")

    def to_equatorial(self, geo: GeographicalCoordinates,
                      sidereal_time: float) -> EquatorialCoordinates:
        A = float(self._azimuth)
        h = float(self._altitude)
        phi = float(geo.latitude)
        H = atan2_deg(sin_deg(A),
                      cos_deg(A) * sin_deg(phi) + tan_deg(h) * cos_deg(phi))
        dec = asin_deg(sin_deg(phi) * sin_deg(h)
                       - cos_deg(phi) * cos_deg(h) * cos_deg(A))
        return EquatorialCoordinates.from_unwrapped(sidereal_time - H / 15.0, dec)

    def refraction_from_apparent_altitude(self) -> float:
        """Refraction [arcmin] for an observed altitude (Bennett)."""
        h = float(self._altitude)
        return float(1.0 / tan_deg(h + 7.31 / (h + 4.4)))

    def refraction_from_true_altitude(self) -> float:
        """Refraction [arcmin] for an airless altitude (Sæmundsson)."""
        h = float(self._altitude)
        return float(1.02 / tan_deg(h + 10.3 / (h + 5.11)))


# ════════════════════════════════════════════════════════════════════════════
#  Galactic and rectangular
# ════════════════════════════════════════════════════════════════════════════

class GalacticCoordinates:
    """Galactic longitude ℓ [0, 360) and latitude b [deg]."""

    def __init__(self, longitude: float, latitude: float):
        self._longitude = Coordinate(longitude)
        self._latitude = _latitude(latitude)

    @property
    def longitude(self) -> Coordinate:
        return self._longitude

    @property
    def latitude(self) -> Coordinate:
        return self._latitude

    def __repr__(self):
        return (f"GalacticCoordinates(longitude={float(self._longitude)!r}, "
                f"latitude={float(self._latitude)!r})")

    def to_equatorial(self) -> EquatorialCoordinates:
        l = float(self._longitude)
        b = float(self._latitude)
        ra = atan2_deg(
            cos_deg(b) * sin_deg(GALACTIC_NODE_LONGITUDE - l),
            sin_deg(b) * cos_deg(GALACTIC_POLE_DECLINATION)
            - cos_deg(b) * sin_deg(GALACTIC_POLE_DECLINATION)
            * cos_deg(GALACTIC_NODE_LONGITUDE - l))
        dec = asin_deg(sin_deg(b) * sin_deg(GALACTIC_POLE_DECLINATION)
                       + cos_deg(b) * cos_deg(GALACTIC_POLE_DECLINATION)
                       * cos_deg(GALACTIC_NODE_LONGITUDE - l))
        return EquatorialCoordinates.from_unwrapped(
            (ra + GALACTIC_POLE_RA) / 15.0, dec)


class RectangularCoordinates:
    """Cartesian x, y, z [AU]."""

    def __init__(self, x: float, y: float, z: float):
        self.x = float(x)
        self.y = float(y)
        self.z = float(z)

    def as_array(self) -> NDArray:
        return np.array([self.x, self.y, self.z])

    def norm(self) -> float:
        return float(np.linalg.norm(self.as_array()))

    def __add__(self, other):
        return RectangularCoordinates(*(self.as_array() + other.as_array()))

    def __repr__(self):
        return f"RectangularCoordinates(x={self.x!r}, y={self.y!r}, z={self.z!r})"
