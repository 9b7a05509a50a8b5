"""
skyephem.timesys — Time Scales
===============================

Julian Day conversion, ΔT (TT − UT), nutation, sidereal time and the
instants of the equinoxes and solstices.

Dates are accepted either as :class:`datetime.datetime` (naive values are
taken to be UTC) or as :class:`CalendarDate`, which also covers the years
before 1 CE that ``datetime`` cannot represent.  Dates before 1582-10-15
are on the Julian calendar.

Reference
---------
Meeus, J. *Astronomical Algorithms*, 2nd ed., chapters 7, 10, 12, 22 and 27.
Espenak, F. & Meeus, J. *Five Millennium Canon of Solar Eclipses*, 2006.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol, Union

import numpy as np

from .errors import InvalidDateError, InvalidInputError
from .utils import (
    DAYS_PER_CENTURY, DAYS_PER_MILLENNIUM, DAILY_SECONDS, GREGORIAN_START_JD,
    J2000, cos_deg, wrap_degrees, wrap_hours,
)

logger = logging.getLogger(__name__)


# ════════════════════════════════════════════════════════════════════════════
#  Calendar dates
# ════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, order=True)
class CalendarDate:
    """
    A UTC calendar instant on the proleptic Julian/Gregorian calendar.

    ``year`` uses astronomical numbering (1 BCE is year 0).
    """
    year: int
    month: int
    day: int
    hour: int = 0
    minute: int = 0
    second: float = 0.0

    @classmethod
    def from_datetime(cls, dt: datetime) -> "CalendarDate":
        if dt.tzinfo is not None:
            dt = dt.astimezone(timezone.utc)
        return cls(dt.year, dt.month, dt.day, dt.hour, dt.minute,
                   dt.second + dt.microsecond / 1e6)

    def to_datetime(self) -> datetime:
        """Aware UTC datetime; years outside 1..9999 raise InvalidDateError."""
        if not 1 <= self.year <= 9999:
            raise InvalidDateError(
                f"Year {self.year} cannot be represented as a datetime (1..9999)"
            )
        whole = int(self.second)
        micro = int(round((self.second - whole) * 1e6))
        base = datetime(self.year, self.month, self.day, self.hour, self.minute,
                        tzinfo=timezone.utc)
        return base + timedelta(seconds=whole, microseconds=micro)

    def __str__(self):
        return (f"{self.year:05d}-{self.month:02d}-{self.day:02d} "
                f"{self.hour:02d}:{self.minute:02d}:{self.second:06.3f}")


DateLike = Union[datetime, CalendarDate]


def calendar_parts(date: DateLike):
    if isinstance(date, CalendarDate):
        return (date.year, date.month, date.day,
                date.hour, date.minute, date.second)
    if isinstance(date, datetime):
        if date.tzinfo is not None:
            date = date.astimezone(timezone.utc)
        return (date.year, date.month, date.day, date.hour, date.minute,
                date.second + date.microsecond / 1e6)
    raise InvalidInputError(f"Expected datetime or CalendarDate, got {type(date).__name__}")


def add_seconds(date: DateLike, seconds: float) -> DateLike:
    """Shift a date by *seconds*, keeping its type."""
    if isinstance(date, datetime):
        return date + timedelta(seconds=seconds)
    return from_julian_day(julian_day(date) + seconds / DAILY_SECONDS)


def start_of_day(date: DateLike) -> DateLike:
    """The same date at 0h UTC, keeping its type."""
    if isinstance(date, datetime):
        if date.tzinfo is not None:
            date = date.astimezone(timezone.utc)
        return date.replace(hour=0, minute=0, second=0, microsecond=0)
    return CalendarDate(date.year, date.month, date.day)


# ════════════════════════════════════════════════════════════════════════════
#  Julian Day
# ════════════════════════════════════════════════════════════════════════════

def julian_day(date: DateLike) -> float:
    """
    Julian Day of a UTC instant.

    The Julian calendar is used before 1582-10-05 and the Gregorian one
    from 1582-10-15; the ten days in between do not exist.

    Raises
    ------
    InvalidDateError
        For a date inside the 1582 gap or before -4712-01-01 12:00.
    """
    year, month, day, hour, minute, second = calendar_parts(date)

    if (year, month) == (1582, 10) and 5 <= day <= 14:
        raise InvalidDateError(
            f"1582-10-{day:02d} does not exist (Julian to Gregorian switch)"
        )
    gregorian = (year, month, day) >= (1582, 10, 15)

    if month <= 2:
        year -= 1
        month += 12
    if gregorian:
        A = int(year / 100)
        B = 2 - A + int(A / 4)
    else:
        B = 0
    JD = (int(365.25 * (year + 4716))
          + int(30.6001 * (month + 1))
          + day + B - 1524.5)
    JD += (hour + minute / 60.0 + second / 3600.0) / 24.0

    if JD < 0:
        raise InvalidDateError(f"Date {date} lies before Julian Day 0")
    return JD


def from_julian_day(jd: float) -> CalendarDate:
    """Calendar date of a Julian Day (inverse of :func:`julian_day`)."""
    if jd < 0:
        raise InvalidDateError(f"Julian Day must be non-negative, got {jd}")

    jd = jd + 0.5
    Z = int(jd)
    F = jd - Z
    if Z < GREGORIAN_START_JD:
        A = Z
    else:
        alpha = int((Z - 1_867_216.25) / 36_524.25)
        A = Z + 1 + alpha - int(alpha / 4)
    B = A + 1524
    C = int((B - 122.1) / 365.25)
    D = int(365.25 * C)
    E = int((B - D) / 30.6001)

    day = B - D - int(30.6001 * E)
    month = E - 1 if E < 14 else E - 13
    year = C - 4716 if month > 2 else C - 4715

    # sub-millisecond noise from the float day fraction is dropped
    seconds = round(F * DAILY_SECONDS, 3)
    if seconds >= DAILY_SECONDS:
        seconds = DAILY_SECONDS - 0.001
    hour = int(seconds // 3600)
    minute = int((seconds - hour * 3600) // 60)
    second = seconds - hour * 3600 - minute * 60
    return CalendarDate(year, month, day, hour, minute, second)


def julian_centuries(jd: float) -> float:
    """Julian centuries from J2000.0."""
    return (jd - J2000) / DAYS_PER_CENTURY


def julian_millennia(jd: float) -> float:
    return (jd - J2000) / DAYS_PER_MILLENNIUM


# ════════════════════════════════════════════════════════════════════════════
#  ΔT
# ════════════════════════════════════════════════════════════════════════════

class DeltaTProvider(Protocol):
    """Read-only source of tabulated ΔT values (seconds) by year."""

    def lookup(self, year: int) -> Optional[float]:
        ...


def _espenak_meeus(y: float) -> float:
    """Espenak–Meeus polynomials for 1600..2050."""
    if y < 1700:
        t = y - 1600
        return 120 - 0.9808 * t - 0.01532 * t**2 + t**3 / 7129
    if y < 1800:
        t = y - 1700
        return (8.83 + 0.1603 * t - 0.0059285 * t**2 + 0.00013336 * t**3
                - t**4 / 1_174_000)
    if y < 1860:
        t = y - 1800
        return (13.72 - 0.332447 * t + 0.0068612 * t**2 + 0.0041116 * t**3
                - 0.00037436 * t**4 + 0.0000121272 * t**5
                - 0.0000001699 * t**6 + 0.000000000875 * t**7)
    if y < 1900:
        t = y - 1860
        return (7.62 + 0.5737 * t - 0.251754 * t**2 + 0.01680668 * t**3
                - 0.0004473624 * t**4 + t**5 / 233_174)
    if y < 1920:
        t = y - 1900
        return (-2.79 + 1.494119 * t - 0.0598939 * t**2 + 0.0061966 * t**3
                - 0.000197 * t**4)
    if y < 1941:
        t = y - 1920
        return 21.20 + 0.84493 * t - 0.076100 * t**2 + 0.0020936 * t**3
    if y < 1961:
        t = y - 1950
        return 29.07 + 0.407 * t - t**2 / 233 + t**3 / 2547
    if y < 1986:
        t = y - 1975
        return 45.45 + 1.067 * t - t**2 / 260 - t**3 / 718
    if y < 2005:
        t = y - 2000
        return (63.86 + 0.3345 * t - 0.060374 * t**2 + 0.0017275 * t**3
                + 0.000651814 * t**4 + 0.00002373599 * t**5)
    t = y - 2000
    return 62.92 + 0.32217 * t + 0.005589 * t**2


class TimeSystem:
    """
    Time-scale conversions bound to an optional ΔT table provider.

    Parameters
    ----------
    delta_t_provider : DeltaTProvider, optional
        Consulted for years 1620..2020.  When absent, or when it has no
        value for a year, the Espenak–Meeus polynomials are used instead.
    """

    def __init__(self, delta_t_provider: Optional[DeltaTProvider] = None):
        self.delta_t_provider = delta_t_provider

    # ── ΔT ──────────────────────────────────────────────────────────────────

    def delta_t(self, date: DateLike) -> float:
        """ΔT = TT − UT in seconds for a date."""
        year, month = calendar_parts(date)[:2]
        y = year + (month - 0.5) / 12.0

        if y < -500:
            u = (y - 1820) / 100
            return float(int(-20 + 32 * u**2))
        if y < 500:
            u = y / 100
            return float(int(np.polyval(
                [0.0090316521, 0.022174192, -0.1798452, -5.952053,
                 33.78311, -1014.41, 10583.6], u)))
        if y < 1600:
            u = (y - 1000) / 100
            return float(int(np.polyval(
                [0.0083572073, -0.005050998, -0.8503463, 0.319781,
                 71.23472, -556.01, 1574.2], u)))
        if y < 1620:
            t = y - 1600
            return float(int(120 - 0.9808 * t - 0.01532 * t**2 + t**3 / 7129))
        if y < 2021:
            tabulated = self._lookup(year)
            if tabulated is not None:
                return float(tabulated)
            logger.debug("No tabulated ΔT for %d, using polynomial", year)
            return float(_espenak_meeus(y))
        if y < 2050:
            t = y - 2000
            return 62.92 + 0.32217 * t + 0.005589 * t**2
        if y < 2150:
            return -20 + 32 * ((y - 1820) / 100)**2 - 0.5628 * (2150 - y)
        u = (y - 1820) / 100
        return -20 + 32 * u**2

    def _lookup(self, year):
        if self.delta_t_provider is None:
            return None
        try:
            return self.delta_t_provider.lookup(year)
        except Exception as exc:  # provider failures must not break ΔT
            logger.warning("ΔT provider failed for %d (%s), using polynomial",
                           year, exc)
            return None

    def dynamical_time(self, date: DateLike) -> DateLike:
        """Dynamical time (TT) for a UTC instant."""
        return add_seconds(date, self.delta_t(date))

    # ── Stateless operations, exposed for convenience ───────────────────────

    julian_day = staticmethod(julian_day)
    from_julian_day = staticmethod(from_julian_day)

    @staticmethod
    def nutation(jd: float) -> "NutationResult":
        return nutation(jd)

    @staticmethod
    def mean_sidereal_time(date, geo=None) -> float:
        return mean_sidereal_time(date, geo)

    @staticmethod
    def apparent_sidereal_time(date, geo=None, nutation_result=None) -> float:
        return apparent_sidereal_time(date, geo, nutation_result)

    @staticmethod
    def greenwich_apparent_sidereal_time(date) -> float:
        return greenwich_apparent_sidereal_time(date)

    @staticmethod
    def season(year: int, which) -> CalendarDate:
        return season(year, which)


_default_system = TimeSystem()


def delta_t(date: DateLike) -> float:
    """ΔT in seconds, without a tabulated provider."""
    return _default_system.delta_t(date)


def dynamical_time(date: DateLike) -> DateLike:
    return _default_system.dynamical_time(date)


# ════════════════════════════════════════════════════════════════════════════
#  Nutation and obliquity (Meeus ch. 22, IAU 1980 theory)
# ════════════════════════════════════════════════════════════════════════════

# Columns: D, M, M', F, Ω, ψ, ψ·T, ε, ε·T.  Coefficients in 0.0001".
_NUTATION_TERMS = np.array([
    [0, 0, 0, 0, 1, -171996, -174.2, 92025, 8.9],
    [-2, 0, 0, 2, 2, -13187, -1.6, 5736, -3.1],
    [0, 0, 0, 2, 2, -2274, -0.2, 977, -0.5],
    [0, 0, 0, 0, 2, 2062, 0.2, -895, 0.5],
    [0, 1, 0, 0, 0, 1426, -3.4, 54, -0.1],
    [0, 0, 1, 0, 0, 712, 0.1, -7, 0],
    [-2, 1, 0, 2, 2, -517, 1.2, 224, -0.6],
    [0, 0, 0, 2, 1, -386, -0.4, 200, 0],
    [0, 0, 1, 2, 2, -301, 0, 129, -0.1],
    [-2, -1, 0, 2, 2, 217, -0.5, -95, 0.3],
    [-2, 0, 1, 0, 0, -158, 0, 0, 0],
    [-2, 0, 0, 2, 1, 129, 0.1, -70, 0],
    [0, 0, -1, 2, 2, 123, 0, -53, 0],
    [2, 0, 0, 0, 0, 63, 0, 0, 0],
    [0, 0, 1, 0, 1, 63, 0.1, -33, 0],
    [2, 0, -1, 2, 2, -59, 0, 26, 0],
    [0, 0, -1, 0, 1, -58, -0.1, 32, 0],
    [0, 0, 1, 2, 1, -51, 0, 27, 0],
    [-2, 0, 2, 0, 0, 48, 0, 0, 0],
    [0, 0, -2, 2, 1, 46, 0, -24, 0],
    [2, 0, 0, 2, 2, -38, 0, 16, 0],
    [0, 0, 2, 2, 2, -31, 0, 13, 0],
    [0, 0, 2, 0, 0, 29, 0, 0, 0],
    [-2, 0, 1, 2, 2, 29, 0, -12, 0],
    [0, 0, 0, 2, 0, 26, 0, 0, 0],
    [-2, 0, 0, 2, 0, -22, 0, 0, 0],
    [0, 0, -1, 2, 1, 21, 0, -10, 0],
    [0, 2, 0, 0, 0, 17, -0.1, 0, 0],
    [2, 0, -1, 0, 1, 16, 0, -8, 0],
    [-2, 2, 0, 2, 2, -16, 0.1, 7, 0],
    [0, 1, 0, 0, 1, -15, 0, 9, 0],
    [-2, 0, 1, 0, 1, -13, 0, 7, 0],
    [0, -1, 0, 0, 1, -12, 0, 6, 0],
    [0, 0, 2, -2, 0, 11, 0, 0, 0],
    [2, 0, -1, 2, 1, -10, 0, 5, 0],
    [2, 0, 1, 2, 2, -8, 0, 3, 0],
    [0, 1, 0, 2, 2, 7, 0, -3, 0],
    [-2, 1, 1, 0, 0, -7, 0, 0, 0],
    [0, -1, 0, 2, 2, -7, 0, 3, 0],
    [2, 0, 0, 2, 1, -7, 0, 3, 0],
    [2, 0, 1, 0, 0, 6, 0, 0, 0],
    [-2, 0, 2, 2, 2, 6, 0, -3, 0],
    [-2, 0, 1, 2, 1, 6, 0, -3, 0],
    [2, 0, -2, 0, 1, -6, 0, 3, 0],
    [2, 0, 0, 0, 1, -6, 0, 3, 0],
    [0, -1, 1, 0, 0, 5, 0, 0, 0],
    [-2, -1, 0, 2, 1, -5, 0, 3, 0],
    [-2, 0, 0, 0, 1, -5, 0, 3, 0],
    [0, 0, 2, 2, 1, -5, 0, 3, 0],
    [-2, 0, 2, 0, 1, 4, 0, 0, 0],
    [-2, 1, 0, 2, 1, 4, 0, 0, 0],
    [0, 0, 1, -2, 0, 4, 0, 0, 0],
    [-1, 0, 1, 0, 0, -4, 0, 0, 0],
    [-2, 1, 0, 0, 0, -4, 0, 0, 0],
    [1, 0, 0, 0, 0, -4, 0, 0, 0],
    [0, 0, 1, 2, 0, 3, 0, 0, 0],
    [0, 0, -2, 2, 2, -3, 0, 0, 0],
    [-1, -1, 1, 0, 0, -3, 0, 0, 0],
    [0, 1, 1, 0, 0, -3, 0, 0, 0],
    [0, -1, 1, 2, 2, -3, 0, 0, 0],
    [2, -1, -1, 2, 2, -3, 0, 0, 0],
    [0, 0, 3, 2, 2, -3, 0, 0, 0],
    [2, -1, 0, 2, 2, -3, 0, 0, 0],
], dtype=np.float64)

# Laskar's mean obliquity, arcseconds per power of U = T/100
_OBLIQUITY_POLY = np.array([
    -4680.93, -1.55, 1999.25, -51.38, -249.67, -39.05, 7.12, 27.87, 5.79, 2.45,
])


@dataclass(frozen=True)
class NutationResult:
    """Nutation in longitude and obliquity plus both obliquities [deg]."""
    delta_psi: float
    delta_epsilon: float
    mean_obliquity: float
    true_obliquity: float

    @property
    def delta_psi_arcsec(self) -> float:
        return self.delta_psi * 3600.0

    @property
    def delta_epsilon_arcsec(self) -> float:
        return self.delta_epsilon * 3600.0


def fundamental_arguments(T: float) -> np.ndarray:
    """D, M, M', F, Ω [deg] for Julian centuries T from J2000."""
    D = 297.85036 + 445267.111480 * T - 0.0019142 * T**2 + T**3 / 189474
    M = 357.52772 + 35999.050340 * T - 0.0001603 * T**2 - T**3 / 300000
    Mp = 134.96298 + 477198.867398 * T + 0.0086972 * T**2 + T**3 / 56250
    F = 93.27191 + 483202.017538 * T - 0.0036825 * T**2 + T**3 / 327270
    omega = 125.04452 - 1934.136261 * T + 0.0020708 * T**2 + T**3 / 450000
    return np.array([D, M, Mp, F, omega])


def mean_obliquity(jd: float) -> float:
    """Mean obliquity of the ecliptic [deg] (Laskar, valid ±10 000 yr)."""
    U = julian_centuries(jd) / 100.0
    powers = U ** np.arange(1, 11)
    arcsec = 21.448 + float(np.dot(_OBLIQUITY_POLY, powers))
    return 23.0 + 26.0 / 60.0 + arcsec / 3600.0


def nutation(jd: float) -> NutationResult:
    """Nutation and obliquity for a Julian (Ephemeris) Day."""
    T = julian_centuries(jd)
    args = np.deg2rad(_NUTATION_TERMS[:, :5] @ fundamental_arguments(T))

    psi = (_NUTATION_TERMS[:, 5] + _NUTATION_TERMS[:, 6] * T) * np.sin(args)
    eps = (_NUTATION_TERMS[:, 7] + _NUTATION_TERMS[:, 8] * T) * np.cos(args)

    delta_psi = float(np.sum(psi)) / 10000.0 / 3600.0
    delta_eps = float(np.sum(eps)) / 10000.0 / 3600.0
    eps0 = mean_obliquity(jd)
    return NutationResult(delta_psi, delta_eps, eps0, eps0 + delta_eps)


# ════════════════════════════════════════════════════════════════════════════
#  Sidereal time (Meeus ch. 12)
# ════════════════════════════════════════════════════════════════════════════

def _greenwich_mean_degrees(jd: float) -> float:
    T = julian_centuries(jd)
    theta = (280.46061837 + 360.98564736629 * (jd - J2000)
             + 0.000387933 * T**2 - T**3 / 38_710_000.0)
    return wrap_degrees(theta)


def mean_sidereal_time(date: DateLike, geo=None) -> float:
    """
    Local mean sidereal time [h].

    Parameters
    ----------
    date : datetime or CalendarDate — UTC instant
    geo : GeographicalCoordinates, optional — Greenwich when omitted
    """
    longitude = 0.0 if geo is None else geo.longitude
    theta = _greenwich_mean_degrees(julian_day(date)) + longitude
    return wrap_hours(theta / 15.0)


def apparent_sidereal_time(date: DateLike, geo=None,
                           nutation_result: Optional[NutationResult] = None) -> float:
    """Local apparent sidereal time [h]; nutation is computed when omitted."""
    if nutation_result is None:
        nutation_result = nutation(julian_day(date))
    correction = (nutation_result.delta_psi
                  * cos_deg(nutation_result.true_obliquity) / 15.0)
    return wrap_hours(mean_sidereal_time(date, geo) + correction)


def greenwich_apparent_sidereal_time(date: DateLike) -> float:
    """Apparent sidereal time at Greenwich at 0h UT of the date [h]."""
    return apparent_sidereal_time(start_of_day(date))


# ════════════════════════════════════════════════════════════════════════════
#  Equinoxes and solstices (Meeus ch. 27)
# ════════════════════════════════════════════════════════════════════════════

SEASONS = ("spring", "summer", "autumn", "winter")

# polynomial coefficients in Y, lowest power first
_SEASONS_BEFORE_1000 = np.array([
    [1721139.29189, 365242.13740, 0.06134, 0.00111, -0.00071],
    [1721233.25401, 365241.72562, -0.05323, 0.00907, 0.00025],
    [1721325.70455, 365242.49558, -0.11677, -0.00297, 0.00074],
    [1721414.39987, 365242.88257, -0.00769, -0.00933, -0.00006],
])
_SEASONS_AFTER_1000 = np.array([
    [2451623.80984, 365242.37404, 0.05169, -0.00411, -0.00057],
    [2451716.56767, 365241.62603, 0.00325, 0.00888, -0.00030],
    [2451810.21715, 365242.01767, -0.11575, 0.00337, 0.00078],
    [2451900.05952, 365242.74049, -0.06223, -0.00823, 0.00032],
])

# A, B [deg], C [deg/century]
_SEASON_PERIODIC = np.array([
    [485, 324.96, 1934.136], [203, 337.23, 32964.467],
    [199, 342.08, 20.186], [182, 27.85, 445267.112],
    [156, 73.14, 45036.886], [136, 171.52, 22518.443],
    [77, 222.54, 65928.934], [74, 296.72, 3034.906],
    [70, 243.58, 9037.513], [58, 119.81, 33718.147],
    [52, 297.17, 150.678], [50, 21.02, 2281.226],
    [45, 247.54, 29929.562], [44, 325.15, 31555.956],
    [29, 60.93, 4443.417], [18, 155.12, 67555.328],
    [17, 288.79, 4562.452], [16, 198.04, 62894.029],
    [14, 199.76, 31436.921], [12, 95.39, 14577.848],
    [12, 287.11, 31931.756], [12, 320.81, 34777.259],
    [9, 227.73, 1222.114], [8, 15.45, 16859.074],
])


def season_jde(year: int, which) -> float:
    """Julian Ephemeris Day of an equinox or solstice."""
    index = SEASONS.index(which) if isinstance(which, str) else int(which)
    if not 0 <= index <= 3:
        raise InvalidInputError(f"Season index must be 0..3, got {which}")
    if not -1000 <= year <= 3000:
        raise InvalidInputError(f"Season year must be in [-1000, 3000], got {year}")

    if year < 1000:
        coeffs, Y = _SEASONS_BEFORE_1000[index], year / 1000.0
    else:
        coeffs, Y = _SEASONS_AFTER_1000[index], (year - 2000) / 1000.0
    jde0 = float(np.dot(coeffs, Y ** np.arange(5)))

    T = julian_centuries(jde0)
    W = 35999.373 * T - 2.47
    dlambda = 1 + 0.0334 * cos_deg(W) + 0.0007 * cos_deg(2 * W)
    S = float(np.sum(_SEASON_PERIODIC[:, 0]
                     * cos_deg(_SEASON_PERIODIC[:, 1] + _SEASON_PERIODIC[:, 2] * T)))
    return jde0 + 0.00001 * S / dlambda


def season(year: int, which) -> CalendarDate:
    """
    Instant of an equinox or solstice, in dynamical time.

    Parameters
    ----------
    year : int — -1000..3000
    which : str or int — 'spring', 'summer', 'autumn', 'winter' (or 0..3),
        named for the northern hemisphere
    """
    return from_julian_day(season_jde(year, which))


def spring(year: int) -> CalendarDate:
    return season(year, "spring")


def summer(year: int) -> CalendarDate:
    return season(year, "summer")


def autumn(year: int) -> CalendarDate:
    return season(year, "autumn")


def winter(year: int) -> CalendarDate:
    return season(year, "winter")
