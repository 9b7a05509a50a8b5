"""
skyephem.target — Observable Targets & Rise/Transit/Set
=========================================================

A :class:`Target` gathers what is known about one body for one day: three
daily apparent places, the altitude h0 that counts as rising and setting,
optional size and brightness, and the ephemerides derived from them.

Capabilities
------------
- Orbital models for the Sun, the Moon and the planets, next to the
  small-body orbits of :mod:`skyephem.orbits`
- Rise, transit and set times interpolated between three daily places
- Maximum altitude, maximum altitude during the night and the best time
  to observe
- Altitude samples from noon to noon for charting
- Surface brightness and contrast reserve of extended targets

Algorithm
---------
With three places at 0h TD of yesterday, today and tomorrow::

    cos H0 = (sin h0 − sin φ sin δ) / (cos φ cos δ)
    m0 = (α − L − θ0) / 360,   m1 = m0 − H0/360,   m2 = m0 + H0/360

where L is the east-positive longitude and θ0 the apparent sidereal time
at Greenwich at 0h UT.  Each fraction of the day is corrected once with
the interpolated place::

    θ = θ0 + 360.985647 m,   n = m + ΔT/86400,   H = θ + L − α
    transit         Δm = −H / 360
    rising/setting  Δm = (h − h0) / (360 cos δ cos φ sin H)

Reference
---------
Meeus, J. *Astronomical Algorithms*, 2nd ed., chapters 3 and 15.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Optional, Union

import numpy as np

from . import moon, sun
from .config import ObserverConfig
from .coordinates import EquatorialCoordinates, GeographicalCoordinates
from .errors import EphemerisNotCalculatedError, InvalidInputError
from .night import ALWAYS_DOWN, NightWindow, NightWindowProvider, SunNightWindowProvider
from .orbits import OrbitalElements, OrbitalModel, orbit_from_elements
from .photometry import best_magnification, contrast_reserve, surface_brightness
from .planets import Planet
from .timesys import (
    CalendarDate, DateLike, TimeSystem, greenwich_apparent_sidereal_time,
    julian_day, start_of_day,
)
from .utils import (
    DAILY_SECONDS, H0_STAR, H0_SUN, SIDEREAL_RATE,
    asin_deg, cos_deg, sin_deg, wrap, wrap_degrees,
)

logger = logging.getLogger(__name__)


# ════════════════════════════════════════════════════════════════════════════
#  Series bodies
# ════════════════════════════════════════════════════════════════════════════

class FixedSeriesBody(OrbitalModel):
    """
    A body placed by a fixed analytical series (Sun, Moon, planets).

    Parameters
    ----------
    name : str
    position_fn : callable(jd) → EquatorialCoordinates
        Apparent geocentric place for a Julian Ephemeris Day.
    h0 : float or callable(jd) → float
        Standard altitude [deg].
    diameter_fn, magnitude_fn : callable(jd) → float, optional
        Apparent diameter [arcsec] and magnitude.
    """

    def __init__(self, name: str, position_fn: Callable[[float], EquatorialCoordinates],
                 h0: Union[float, Callable[[float], float]] = H0_STAR,
                 diameter_fn: Optional[Callable[[float], float]] = None,
                 magnitude_fn: Optional[Callable[[float], float]] = None):
        self.name = name
        self._position_fn = position_fn
        self._h0_fn = h0 if callable(h0) else None
        if self._h0_fn is None:
            self.h0 = float(h0)
        self._diameter_fn = diameter_fn
        self._magnitude_fn = magnitude_fn

    def __repr__(self):
        return f"FixedSeriesBody({self.name!r})"

    def _series_position(self, jd: float, config) -> EquatorialCoordinates:
        # geocentric; the Moon's parallax is carried by its h0
        return self._position_fn(jd)

    def standard_altitude(self, jd: float) -> float:
        if self._h0_fn is not None:
            return float(self._h0_fn(jd))
        return self.h0

    def apparent_diameter(self, jd: float) -> Optional[float]:
        return None if self._diameter_fn is None else float(self._diameter_fn(jd))

    def magnitude(self, jd: float) -> Optional[float]:
        return None if self._magnitude_fn is None else float(self._magnitude_fn(jd))


def sun_model(high_accuracy: bool = False) -> FixedSeriesBody:
    """The Sun, from the low-accuracy theory unless *high_accuracy*."""
    position = sun.apparent_position if high_accuracy else sun.low_accuracy_position
    return FixedSeriesBody("Sun", position, H0_SUN, diameter_fn=sun.apparent_diameter)


def moon_model() -> FixedSeriesBody:
    """The Moon, with h0 following its horizontal parallax."""
    return FixedSeriesBody("Moon", moon.apparent_position, moon.standard_altitude,
                           diameter_fn=moon.apparent_diameter)


def planet_model(name: str) -> FixedSeriesBody:
    """One of Mercury … Neptune."""
    planet = Planet(name)
    return FixedSeriesBody(planet.name.capitalize(), planet.apparent_position, H0_STAR,
                           diameter_fn=planet.apparent_diameter)


# ════════════════════════════════════════════════════════════════════════════
#  Rise, transit and set
# ════════════════════════════════════════════════════════════════════════════

def _fraction(m: float) -> float:
    return m - np.floor(m)


def _interpolate(y2: float, n: float, a: float, b: float) -> float:
    """Three-point interpolation around the middle value (Meeus 3.3)."""
    return y2 + n / 2.0 * (a + b + n * (b - a))


def _ra_step(first: EquatorialCoordinates, second: EquatorialCoordinates) -> float:
    """Daily change of right ascension [deg], unwrapped across 0h."""
    step = (float(second.ra) - float(first.ra)) * 15.0
    if step > 180.0:
        step -= 360.0
    elif step < -180.0:
        step += 360.0
    else:
        return step
    logger.debug("Right ascension crosses 0h between %s and %s", first, second)
    return step


@dataclass(frozen=True)
class DayFractions:
    """Transit, rising and setting as fractions of the UT day."""
    transit: float
    rising: Optional[float]
    setting: Optional[float]
    transit_height: float   # altitude at the uncorrected transit [deg]


class RiseTransitSetSolver:
    """
    Rise, transit and set of a body from three daily places.

    Parameters
    ----------
    yesterday, today, tomorrow : EquatorialCoordinates
        Apparent places at 0h TD of three consecutive days.
    geo : GeographicalCoordinates — observer, longitude east-positive
    theta0 : float — apparent sidereal time at Greenwich at 0h UT [deg]
    delta_t : float — ΔT [s]
    h0 : float — standard altitude [deg]

    Notes
    -----
    A body whose three places coincide is treated as fixed: the
    place of today is used throughout and the fractions are not corrected.
    """

    def __init__(self, yesterday: EquatorialCoordinates, today: EquatorialCoordinates,
                 tomorrow: EquatorialCoordinates, geo: GeographicalCoordinates,
                 theta0: float, delta_t: float, h0: float):
        self.geo = geo
        self.theta0 = float(theta0)
        self.delta_t = float(delta_t)
        self.h0 = float(h0)
        self.static = all(
            float(place.ra) == float(today.ra)
            and float(place.declination) == float(today.declination)
            for place in (yesterday, tomorrow))

        self._alpha = float(today.ra) * 15.0
        self._delta = float(today.declination)
        if self.static:
            self._a = self._b = self._a_dec = self._b_dec = 0.0
        else:
            self._a = _ra_step(yesterday, today)
            self._b = _ra_step(today, tomorrow)
            self._a_dec = float(today.declination) - float(yesterday.declination)
            self._b_dec = float(tomorrow.declination) - float(today.declination)

    @property
    def cos_h0(self) -> float:
        """cos H0; outside [-1, 1] when the body never crosses h0."""
        phi = float(self.geo.latitude)
        return float((sin_deg(self.h0) - sin_deg(phi) * sin_deg(self._delta))
                     / (cos_deg(phi) * cos_deg(self._delta)))

    @property
    def circumpolar(self) -> bool:
        """Above h0 all day."""
        return self.cos_h0 < -1.0

    @property
    def never_rises(self) -> bool:
        return self.cos_h0 > 1.0

    def position(self, m: float) -> tuple[float, float]:
        """Interpolated (α, δ) [deg] at the fraction *m* of the UT day."""
        if self.static:
            return self._alpha, self._delta
        n = m + self.delta_t / DAILY_SECONDS
        return (_interpolate(self._alpha, n, self._a, self._b),
                _interpolate(self._delta, n, self._a_dec, self._b_dec))

    def altitude(self, m: float) -> tuple[float, float, float]:
        """(altitude, local hour angle, declination) [deg] at the fraction *m*."""
        theta = wrap_degrees(self.theta0 + SIDEREAL_RATE * m)
        alpha, delta = self.position(m)
        H = wrap(theta + float(self.geo.longitude) - alpha, -180.0, 180.0)
        phi = float(self.geo.latitude)
        h = asin_deg(sin_deg(phi) * sin_deg(delta)
                     + cos_deg(phi) * cos_deg(delta) * cos_deg(H))
        return h, H, delta

    def _rise_set_correction(self, m: float) -> float:
        h, H, delta = self.altitude(m)
        return (h - self.h0) / (360.0 * cos_deg(delta)
                                * cos_deg(float(self.geo.latitude)) * sin_deg(H))

    def solve(self) -> DayFractions:
        m0 = _fraction((self._alpha - float(self.geo.longitude) - self.theta0) / 360.0)

        cos_h0 = self.cos_h0
        if abs(cos_h0) > 1.0:
            m1 = m2 = None
        else:
            H0 = float(np.rad2deg(np.arccos(cos_h0)))
            m1 = _fraction(m0 - H0 / 360.0)
            m2 = _fraction(m0 + H0 / 360.0)

        transit_height, H, _ = self.altitude(m0)
        if not self.static:
            m0 -= H / 360.0
            if m1 is not None:
                m1 += self._rise_set_correction(m1)
                m2 += self._rise_set_correction(m2)

        logger.debug("Day fractions: transit=%.6f rising=%s setting=%s",
                     m0, m1, m2)
        return DayFractions(float(m0), m1 if m1 is None else float(m1),
                            m2 if m2 is None else float(m2), float(transit_height))


# ════════════════════════════════════════════════════════════════════════════
#  Days and fractions of days
# ════════════════════════════════════════════════════════════════════════════

def day_start(date: DateLike) -> datetime:
    """0h UT of the date as an aware UTC datetime."""
    if isinstance(date, CalendarDate):
        date = date.to_datetime()
    if date.tzinfo is None:
        date = date.replace(tzinfo=timezone.utc)
    return start_of_day(date)


def fraction_to_datetime(start: datetime, m: float) -> datetime:
    """The instant *m* days after *start*, truncated to the second."""
    return start + timedelta(seconds=float(np.floor(m * DAILY_SECONDS)))


def _day_fraction(start: datetime, instant: datetime) -> float:
    return (instant - start).total_seconds() / DAILY_SECONDS


# ════════════════════════════════════════════════════════════════════════════
#  Target
# ════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Ephemerides:
    """Derived outputs of :meth:`Target.calculate_ephemerides`."""
    transit: datetime
    rising: Optional[datetime]
    setting: Optional[datetime]
    max_height: float
    max_height_at_night: Optional[float]
    best_time: Optional[datetime]


def _darkest_night(window: NightWindow):
    """(kind, begin, end) of the darkest twilight that occurs, else None."""
    for kind in ("astronomical", "nautical"):
        if window.has_darkness(kind):
            return (kind, *window.twilight(kind))
    return None


def _higher_edge(solver: RiseTransitSetSolver, start: datetime,
                 begin: datetime, end: datetime) -> tuple[float, datetime]:
    """Altitude and instant at whichever end of the night the body is higher."""
    height_morning = solver.altitude(_day_fraction(start, begin))[0]
    height_evening = solver.altitude(_day_fraction(start, end))[0]
    if height_evening > height_morning:
        return height_evening, end
    return height_morning, begin


def _night_visibility(solver: RiseTransitSetSolver, transit_height: float,
                      transit: datetime, start: datetime,
                      window: NightWindow) -> tuple[Optional[float], Optional[datetime]]:
    darkness = _darkest_night(window)
    if darkness is None:
        logger.debug("No astronomical or nautical darkness on %s", start.date())
        return None, None

    kind, begin, end = darkness
    if ALWAYS_DOWN in (begin, end) or not begin < transit < end:
        return transit_height, transit

    height, best = _higher_edge(solver, start, begin, end)
    if height < 0.0 and kind == "astronomical":
        nautical = window.twilight("nautical")
        if (all(isinstance(edge, datetime) for edge in nautical)
                and nautical != (begin, end)):
            logger.debug("Below the horizon in astronomical darkness, trying nautical")
            height, best = _higher_edge(solver, start, *nautical)
    return height, best


def _snapshot(slot: str, doc: str) -> property:
    def getter(self):
        return getattr(self, slot)

    def setter(self, coords: EquatorialCoordinates):
        setattr(self, slot, coords)
        self._ephemerides = None

    return property(getter, setter, doc=doc)


class Target:
    """
    One observable body and its ephemerides for a day.

    Either set the equatorial coordinates directly (a fixed object) or
    give an :class:`OrbitalModel` and call
    :meth:`calculate_equatorial_coordinates`.  Changing any of the three
    places or ``h0`` discards previously calculated ephemerides.

    Parameters
    ----------
    name : str
    model : OrbitalModel, optional
    coordinates : EquatorialCoordinates, optional — place of a fixed object
    h0 : float — standard altitude [deg]
    """

    def __init__(self, name: str = "", model: Optional[OrbitalModel] = None,
                 coordinates: Optional[EquatorialCoordinates] = None,
                 h0: float = H0_STAR):
        self.name = name
        self.model = model
        self._h0 = float(h0)
        self._yesterday = self._today = self._tomorrow = coordinates
        self._ephemerides: Optional[Ephemerides] = None
        self.diameter1: Optional[float] = None
        self.diameter2: Optional[float] = None
        self.magnitude: Optional[float] = None

    def __repr__(self):
        return f"Target({self.name!r}, model={self.model!r})"

    # ── Factories ───────────────────────────────────────────────────────────

    @classmethod
    def from_model(cls, model: OrbitalModel, name: Optional[str] = None) -> "Target":
        if name is None:
            name = getattr(model, "name", "") or ""
        return cls(name, model=model, h0=model.h0)

    @classmethod
    def sun(cls, high_accuracy: bool = False) -> "Target":
        return cls.from_model(sun_model(high_accuracy))

    @classmethod
    def moon(cls) -> "Target":
        return cls.from_model(moon_model())

    @classmethod
    def planet(cls, name: str) -> "Target":
        return cls.from_model(planet_model(name))

    @classmethod
    def from_elements(cls, elements: OrbitalElements) -> "Target":
        """A comet or asteroid; the propagator follows the eccentricity."""
        return cls.from_model(orbit_from_elements(elements), elements.name)

    # ── Places and h0 ───────────────────────────────────────────────────────

    equatorial_coordinates_yesterday = _snapshot("_yesterday", "Place at 0h TD of the day before.")
    equatorial_coordinates_today = _snapshot("_today", "Place at 0h TD of the day.")
    equatorial_coordinates_tomorrow = _snapshot("_tomorrow", "Place at 0h TD of the day after.")

    @property
    def equatorial_coordinates(self) -> Optional[EquatorialCoordinates]:
        return self._today

    @equatorial_coordinates.setter
    def equatorial_coordinates(self, coords: EquatorialCoordinates):
        """Fix the target at one place for all three days."""
        self._yesterday = self._today = self._tomorrow = coords
        self._ephemerides = None

    @property
    def h0(self) -> float:
        return self._h0

    @h0.setter
    def h0(self, value: float):
        self._h0 = float(value)
        self._ephemerides = None

    def _places(self):
        if self._today is None:
            raise EphemerisNotCalculatedError(
                f"{self!r} has no equatorial coordinates; set them or call "
                "calculate_equatorial_coordinates first"
            )
        yesterday = self._yesterday if self._yesterday is not None else self._today
        tomorrow = self._tomorrow if self._tomorrow is not None else self._today
        return yesterday, self._today, tomorrow

    def calculate_equatorial_coordinates(self, date: DateLike,
                                         config: Optional[ObserverConfig] = None) -> None:
        """
        Fill the three daily places from the orbital model.

        The places are for 0h TD of the day before, the day of *date* and
        the day after.  ``h0``, the diameter and the magnitude are taken
        from the model where it provides them.
        """
        if self.model is None:
            raise InvalidInputError(f"{self!r} has no orbital model")
        jd = julian_day(day_start(date))
        self._yesterday, self._today, self._tomorrow = (
            self.model.position(jd + k, config) for k in (-1, 0, 1))
        self._h0 = self.model.standard_altitude(jd)

        diameter = self.model.apparent_diameter(jd)
        if diameter is not None:
            self.diameter1, self.diameter2 = diameter, None
        magnitude = self.model.magnitude(jd)
        if magnitude is not None:
            self.magnitude = magnitude
        self._ephemerides = None

    # ── Ephemerides ─────────────────────────────────────────────────────────

    def _solver(self, geo: GeographicalCoordinates, start: datetime,
                delta_t: float) -> RiseTransitSetSolver:
        theta0 = greenwich_apparent_sidereal_time(start) * 15.0
        return RiseTransitSetSolver(*self._places(), geo, theta0, delta_t, self._h0)

    def calculate_ephemerides(self, geo: GeographicalCoordinates, date: DateLike,
                              delta_t: Optional[float] = None,
                              night_provider: Optional[NightWindowProvider] = None,
                              time_system: Optional[TimeSystem] = None) -> Ephemerides:
        """
        Rise, transit and set on the UT day of *date*, and when to observe.

        Parameters
        ----------
        geo : GeographicalCoordinates — observer
        date : datetime or CalendarDate — any instant of the day
        delta_t : float, optional — ΔT [s]; from *time_system* when omitted
        night_provider : NightWindowProvider, optional
            Source of the twilight times; the Sun's own ephemeris by default.
        time_system : TimeSystem, optional

        Returns
        -------
        Ephemerides — also available through the properties of the target
        """
        if time_system is None:
            time_system = TimeSystem()
        start = day_start(date)
        if delta_t is None:
            delta_t = time_system.delta_t(start)

        solver = self._solver(geo, start, delta_t)
        fractions = solver.solve()
        transit = fraction_to_datetime(start, fractions.transit)
        rising = (None if fractions.rising is None
                  else fraction_to_datetime(start, fractions.rising))
        setting = (None if fractions.setting is None
                   else fraction_to_datetime(start, fractions.setting))

        if night_provider is None:
            night_provider = SunNightWindowProvider(time_system)
        window = night_provider.night_window(start, geo)
        height_at_night, best_time = _night_visibility(
            solver, fractions.transit_height, transit, start, window)

        self._ephemerides = Ephemerides(
            transit=transit,
            rising=rising,
            setting=setting,
            max_height=fractions.transit_height,
            max_height_at_night=height_at_night,
            best_time=best_time,
        )
        return self._ephemerides

    @property
    def ephemerides(self) -> Ephemerides:
        if self._ephemerides is None:
            raise EphemerisNotCalculatedError(
                f"Ephemerides of {self!r} are not calculated; call calculate_ephemerides first"
            )
        return self._ephemerides

    @property
    def transit(self) -> datetime:
        return self.ephemerides.transit

    @property
    def rising(self) -> Optional[datetime]:
        """None when the target never crosses h0."""
        return self.ephemerides.rising

    @property
    def setting(self) -> Optional[datetime]:
        return self.ephemerides.setting

    @property
    def max_height(self) -> float:
        return self.ephemerides.max_height

    @property
    def max_height_at_night(self) -> Optional[float]:
        """None when the night gets no darker than civil twilight."""
        return self.ephemerides.max_height_at_night

    @property
    def best_time(self) -> Optional[datetime]:
        return self.ephemerides.best_time

    def altitude_series(self, date: DateLike, geo: GeographicalCoordinates,
                        step_minutes: float = 10.0,
                        delta_t: Optional[float] = None) -> list[tuple[datetime, float]]:
        """(instant, altitude [deg]) samples from noon UT of *date* to the next noon."""
        if step_minutes <= 0:
            raise InvalidInputError(f"Step must be positive, got {step_minutes} min")
        start = day_start(date)
        if delta_t is None:
            delta_t = TimeSystem().delta_t(start)
        solver = self._solver(geo, start, delta_t)

        samples = []
        for k in range(int(1440 // step_minutes) + 1):
            minutes = 720.0 + k * step_minutes
            samples.append((start + timedelta(minutes=minutes),
                            solver.altitude(minutes / 1440.0)[0]))
        return samples

    # ── Photometry ──────────────────────────────────────────────────────────

    def set_diameter(self, diameter1: float, diameter2: Optional[float] = None) -> None:
        """Apparent diameters [arcsec]; one value for a round object."""
        self.diameter1 = float(diameter1)
        self.diameter2 = None if diameter2 is None else float(diameter2)

    def surface_brightness(self) -> Optional[float]:
        """Mean surface brightness [mag/arcsec²], None without magnitude or size."""
        if self.magnitude is None or self.diameter1 is None:
            return None
        return surface_brightness(self.magnitude, self.diameter1, self.diameter2)

    def contrast_reserve(self, sky_sqm: float, aperture_mm: float,
                         magnification: float) -> Optional[float]:
        sb = self.surface_brightness()
        if sb is None:
            return None
        return contrast_reserve(sb, sky_sqm, aperture_mm, magnification,
                                self.diameter1, self.diameter2)

    def best_magnification(self, sky_sqm: float, aperture_mm: float,
                           magnifications: Iterable[float]) -> tuple[Optional[float], Optional[float]]:
        """(magnification, contrast reserve) with the best reserve."""
        sb = self.surface_brightness()
        if sb is None:
            return None, None
        return best_magnification(sb, sky_sqm, aperture_mm, magnifications,
                                  self.diameter1, self.diameter2)
