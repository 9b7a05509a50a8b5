"""
skyephem.orbits — Heliocentric Orbits of Small Bodies
======================================================

Kepler solver, orbital elements and the three propagators for comets and
asteroids: elliptical (Kepler's equation), parabolic (Barker's equation)
and near-parabolic (Landgraf's series).  Each propagator yields a
heliocentric rectangular position in the J2000 equatorial frame; the
shared geocentric chain adds the Sun, retracts for light time and, given
an observer, corrects for parallax.

Angles are in degrees, distances in AU, times in Julian (Ephemeris) Days.

Reference
---------
Meeus, J. *Astronomical Algorithms*, 2nd ed., chapters 30, 33, 34, 35 and 39.
"""

import abc
import dataclasses
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Mapping, Optional

import numpy as np
from numpy.typing import NDArray

from . import config as cfg
from .coordinates import EquatorialCoordinates
from .errors import ConvergenceError, InvalidOrbitError, MissingFieldError
from .photometry import comet_magnitude, hg_magnitude
from .sun import geometric_rectangular_j2000
from .timesys import (
    CalendarDate, apparent_sidereal_time, delta_t, from_julian_day, julian_day,
)
from .utils import (
    COS_EPS_J2000, DAILY_SECONDS, GAUSS_K, H0_STAR, LIGHT_TIME_PER_AU, SIN_EPS_J2000,
    asin_deg, atan2_deg, cos_deg, sin_deg, tan_deg, wrap_degrees,
)

logger = logging.getLogger(__name__)

MEAN_MOTION_1AU = 0.9856076686     # deg/day for a = 1 AU
BARKER_CONSTANT = 0.03649116245    # 3k / sqrt(2) in deg-free units
NODE_PARABOLIC_CONSTANT = 27.403895


# ════════════════════════════════════════════════════════════════════════════
#  Kepler Equation
# ════════════════════════════════════════════════════════════════════════════

def eccentric_anomaly(e: float, M: float, tolerance: Optional[float] = None,
                      max_iter: Optional[int] = None) -> float:
    """Solve Kepler's equation  M = E − e sin(E)  by fixed-point iteration.

    Parameters
    ----------
    e : float — eccentricity, 0 <= e < 1
    M : float — mean anomaly [deg]
    tolerance : float — stop when successive estimates differ by less [deg]
    max_iter : int — iteration cap

    Returns
    -------
    E : float — eccentric anomaly [deg]

    Raises
    ------
    ConvergenceError
        When the cap is reached before the tolerance.
    """
    if tolerance is None:
        tolerance = cfg.get_kepler_tolerance()
    if max_iter is None:
        max_iter = cfg.get_kepler_max_iter()

    k = e * 180.0 / np.pi
    E = M
    for iteration in range(1, max_iter + 1):
        E_next = M + k * np.sin(np.deg2rad(E))
        step = abs(E_next - E)
        E = E_next
        if step <= tolerance:
            logger.debug("Kepler solver converged in %d iterations (e=%.6f)",
                         iteration, e)
            return float(E)
    raise ConvergenceError("Kepler solver", max_iter, step)


def true_anomaly_from_eccentric(e: float, E: float) -> float:
    """True anomaly [deg] for eccentric anomaly E [deg]."""
    return float(2.0 * np.rad2deg(np.arctan(np.sqrt((1 + e) / (1 - e))
                                            * tan_deg(E / 2.0))))


# ════════════════════════════════════════════════════════════════════════════
#  Orbital elements
# ════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class OrbitalElements:
    """
    Osculating elements of a heliocentric orbit (equinox J2000).

    Exactly one of ``q`` (perihelion distance) and ``a`` (semi-major axis)
    needs to be given; the other is derived.  Inclinations outside
    [0, 180] are folded back with a compensating half-turn of the node and
    the argument of perihelion, leaving the orbit itself unchanged.

    Attributes
    ----------
    e : float — eccentricity
    i : float — inclination [deg]
    omega : float — argument of perihelion [deg]
    node : float — longitude of the ascending node [deg]
    perihelion_jd : float — time of perihelion passage [JDE]
    H, G : float — asteroid absolute magnitude and slope
    n, n_pre, n_post, phase_coeff : float — comet activity parameters
    """
    e: float
    i: float
    omega: float
    node: float
    perihelion_jd: float
    q: Optional[float] = None
    a: Optional[float] = None
    H: Optional[float] = None
    G: Optional[float] = None
    n: Optional[float] = None
    n_pre: Optional[float] = None
    n_post: Optional[float] = None
    phase_coeff: Optional[float] = None
    name: Optional[str] = None

    def __post_init__(self):
        if self.e < 0:
            raise InvalidOrbitError(f"Eccentricity must be >= 0, got {self.e}")
        if self.q is None and self.a is None:
            raise InvalidOrbitError("Either q or a must be given")

        q, a = self.q, self.a
        if q is None:
            if self.e >= 1:
                raise InvalidOrbitError(
                    f"Semi-major axis given for a non-elliptic orbit (e={self.e})"
                )
            q = a * (1 - self.e)
        elif a is None and self.e < 1:
            a = q / (1 - self.e)
        if q <= 0:
            raise InvalidOrbitError(f"Perihelion distance must be > 0, got {q}")

        i = self.i % 360.0
        node, omega = self.node, self.omega
        if i > 180.0:
            i = 360.0 - i
            node += 180.0
            omega += 180.0

        object.__setattr__(self, "q", float(q))
        object.__setattr__(self, "a", None if a is None else float(a))
        object.__setattr__(self, "i", float(i))
        object.__setattr__(self, "node", wrap_degrees(node))
        object.__setattr__(self, "omega", wrap_degrees(omega))

    @property
    def mean_motion(self) -> Optional[float]:
        """Mean daily motion [deg/day]; None for unbound orbits."""
        if self.a is None:
            return None
        return MEAN_MOTION_1AU / (self.a * np.sqrt(self.a))

    def replace(self, **changes) -> "OrbitalElements":
        """Copy with changed fields (validated and normalized again)."""
        return dataclasses.replace(self, **changes)


def _epoch_to_jd(value) -> float:
    if isinstance(value, (datetime, CalendarDate)):
        return julian_day(value)
    return float(value)


def _optional_float(record, key):
    value = record.get(key)
    return None if value is None else float(value)


def orbital_elements_from_record(record: Mapping) -> OrbitalElements:
    """
    Build elements from a comet or asteroid catalog row.

    Comet rows carry ``q``; asteroid rows carry ``a`` (and ``M``, ``epoch``).
    Both must carry the perihelion time ``Tp`` as a JD, ``datetime`` or
    :class:`CalendarDate`.

    Raises
    ------
    MissingFieldError
        When ``Tp``, the eccentricity or the angles are absent.
    """
    name = record.get("name")
    for key in ("e", "i", "w", "node", "Tp"):
        if record.get(key) is None:
            raise MissingFieldError(key, name)
    if record.get("q") is None and record.get("a") is None:
        raise MissingFieldError("q", name)

    return OrbitalElements(
        e=float(record["e"]),
        i=float(record["i"]),
        omega=float(record["w"]),
        node=float(record["node"]),
        perihelion_jd=_epoch_to_jd(record["Tp"]),
        q=_optional_float(record, "q"),
        a=_optional_float(record, "a"),
        H=_optional_float(record, "H"),
        G=_optional_float(record, "G"),
        n=_optional_float(record, "n"),
        n_pre=_optional_float(record, "n_pre"),
        n_post=_optional_float(record, "n_post"),
        phase_coeff=_optional_float(record, "phase_coeff"),
        name=name,
    )


# ════════════════════════════════════════════════════════════════════════════
#  Orbital models
# ════════════════════════════════════════════════════════════════════════════

class OrbitalModel(abc.ABC):
    """
    Anything that can place a body on the sky for a given instant.

    ``position`` honours the observer configuration's ephemeris mode: in
    ``EXTERNAL_EPHEMERIS_LOOKUP`` mode the configured callable is asked
    instead of the built-in series.
    """

    h0 = H0_STAR

    def position(self, jd: float, config=None) -> EquatorialCoordinates:
        """Equatorial coordinates for the Julian Ephemeris Day *jd*."""
        if (config is not None
                and config.ephemeris_mode is cfg.EphemerisMode.EXTERNAL_EPHEMERIS_LOOKUP):
            return config.external_lookup(self, jd)
        return self._series_position(jd, config)

    @abc.abstractmethod
    def _series_position(self, jd: float, config) -> EquatorialCoordinates:
        ...

    def standard_altitude(self, jd: float) -> float:
        """Altitude h0 [deg] of the body at rising and setting."""
        return self.h0

    def magnitude(self, jd: float) -> Optional[float]:
        return None

    def apparent_diameter(self, jd: float) -> Optional[float]:
        return None


@dataclass(frozen=True)
class GeocentricState:
    """Geocentric vector and distances after light-time correction."""
    vector: NDArray      # ξ, η, ζ [AU], equatorial J2000
    delta: float         # Earth–body distance [AU]
    r: float             # Sun–body distance [AU]
    sun_distance: float  # Earth–Sun distance [AU]

    @property
    def phase_angle(self) -> float:
        """Sun–body–Earth angle [deg]."""
        cos_i = ((self.r**2 + self.delta**2 - self.sun_distance**2)
                 / (2 * self.r * self.delta))
        return float(np.rad2deg(np.arccos(np.clip(cos_i, -1.0, 1.0))))


class SmallBodyOrbit(OrbitalModel):
    """Common geocentric chain for comets and asteroids."""

    def __init__(self, elements: OrbitalElements):
        self.elements = elements
        el = elements
        F = cos_deg(el.node)
        G = sin_deg(el.node) * COS_EPS_J2000
        H = sin_deg(el.node) * SIN_EPS_J2000
        P = -sin_deg(el.node) * cos_deg(el.i)
        Q = cos_deg(el.node) * cos_deg(el.i) * COS_EPS_J2000 - sin_deg(el.i) * SIN_EPS_J2000
        R = cos_deg(el.node) * cos_deg(el.i) * SIN_EPS_J2000 + sin_deg(el.i) * COS_EPS_J2000
        self._angles = np.array([atan2_deg(F, P), atan2_deg(G, Q), atan2_deg(H, R)])
        self._scales = np.array([np.hypot(F, P), np.hypot(G, Q), np.hypot(H, R)])

    def __repr__(self):
        label = self.elements.name or "unnamed"
        return f"{type(self).__name__}({label!r})"

    @abc.abstractmethod
    def true_anomaly_and_radius(self, jd: float) -> tuple[float, float]:
        """(v [deg], r [AU]) at *jd*."""

    def heliocentric_rectangular(self, jd: float) -> tuple[NDArray, float]:
        """Heliocentric (x, y, z) [AU] in the J2000 equatorial frame, and r."""
        v, r = self.true_anomaly_and_radius(jd)
        xyz = r * self._scales * sin_deg(self._angles + self.elements.omega + v)
        return xyz, r

    def geocentric_state(self, jd: float) -> GeocentricState:
        """Geocentric position retracted for light time."""
        sun = geometric_rectangular_j2000(jd).as_array()
        xyz, r = self.heliocentric_rectangular(jd)
        vector = sun + xyz
        delta = float(np.linalg.norm(vector))

        # the Sun stays at jd; only the body is moved back
        for iteration in range(cfg.get_light_time_iterations()):
            tau = LIGHT_TIME_PER_AU * delta
            xyz, r = self.heliocentric_rectangular(jd - tau)
            vector = sun + xyz
            previous, delta = delta, float(np.linalg.norm(vector))
            logger.debug("Light time pass %d: tau=%.7f d, delta=%.7f AU",
                         iteration + 1, tau, delta)
            if abs(delta - previous) * LIGHT_TIME_PER_AU < 1e-9:
                break

        return GeocentricState(vector, delta, r, float(np.linalg.norm(sun)))

    def _series_position(self, jd: float, config) -> EquatorialCoordinates:
        state = self.geocentric_state(jd)
        xi, eta, zeta = state.vector
        coords = EquatorialCoordinates.from_unwrapped(
            atan2_deg(eta, xi) / 15.0, asin_deg(zeta / state.delta))
        if config is None:
            return coords
        # sidereal time runs on UT
        ut = jd - delta_t(from_julian_day(jd)) / DAILY_SECONDS
        sidereal = apparent_sidereal_time(from_julian_day(ut), config.geo_coords)
        return coords.topocentric(state.delta, config.geo_coords,
                                  config.height_m, sidereal)

    def magnitude(self, jd: float) -> Optional[float]:
        """Apparent magnitude from H-G or H-n parameters, if the elements carry them."""
        el = self.elements
        if el.H is None:
            return None
        state = self.geocentric_state(jd)
        if el.G is not None:
            return hg_magnitude(el.H, el.G, state.r, state.delta, state.phase_angle)
        return comet_magnitude(el.H, el.n, state.r, state.delta,
                               phase_angle=state.phase_angle,
                               phase_coeff=el.phase_coeff,
                               n_pre=el.n_pre, n_post=el.n_post,
                               after_perihelion=jd >= el.perihelion_jd)


class EllipticalOrbit(SmallBodyOrbit):
    """Closed orbit, e < 1, solved through Kepler's equation."""

    def __init__(self, elements: OrbitalElements):
        if elements.e >= 1:
            raise InvalidOrbitError(
                f"Elliptical orbit needs e < 1, got {elements.e}"
            )
        super().__init__(elements)

    def true_anomaly_and_radius(self, jd):
        el = self.elements
        M = el.mean_motion * (jd - el.perihelion_jd)
        E = eccentric_anomaly(el.e, M)
        v = true_anomaly_from_eccentric(el.e, E)
        r = el.a * (1 - el.e * cos_deg(E))
        return v, float(r)

    def _node_passage(self, v: float) -> tuple[float, float]:
        el = self.elements
        E = 2.0 * np.rad2deg(np.arctan(np.sqrt((1 - el.e) / (1 + el.e)) * tan_deg(v / 2.0)))
        M = E - el.e * 180.0 / np.pi * sin_deg(E)
        jd = el.perihelion_jd + M / el.mean_motion
        r = el.a * (1 - el.e * cos_deg(E))
        return float(jd), float(r)

    def ascending_node(self) -> tuple[float, float]:
        """(JDE, r) of the passage through the ascending node."""
        return self._node_passage(-self.elements.omega)

    def descending_node(self) -> tuple[float, float]:
        return self._node_passage(180.0 - self.elements.omega)


class ParabolicOrbit(SmallBodyOrbit):
    """e = 1, solved in closed form through Barker's equation."""

    def __init__(self, elements: OrbitalElements):
        if elements.e != 1.0:
            raise InvalidOrbitError(f"Parabolic orbit needs e = 1, got {elements.e}")
        super().__init__(elements)

    def true_anomaly_and_radius(self, jd):
        q = self.elements.q
        W = BARKER_CONSTANT / (q * np.sqrt(q)) * (jd - self.elements.perihelion_jd)
        G = W / 2.0
        Y = np.cbrt(G + np.sqrt(G * G + 1.0))
        s = Y - 1.0 / Y
        v = 2.0 * np.rad2deg(np.arctan(s))
        return float(v), float(q * (1 + s * s))

    def _node_passage(self, v):
        q = self.elements.q
        s = tan_deg(v / 2.0)
        jd = (self.elements.perihelion_jd
              + NODE_PARABOLIC_CONSTANT * (s**3 + 3 * s) * q * np.sqrt(q))
        return float(jd), float(q * (1 + s * s))

    def ascending_node(self) -> tuple[float, float]:
        return self._node_passage(-self.elements.omega)

    def descending_node(self) -> tuple[float, float]:
        return self._node_passage(180.0 - self.elements.omega)


class NearParabolicOrbit(SmallBodyOrbit):
    """Orbits with e close to 1 on either side, by Landgraf's method."""

    TOLERANCE = 1e-9

    def true_anomaly_and_radius(self, jd):
        el = self.elements
        q, e = el.q, el.e
        days = jd - el.perihelion_jd
        if days == 0:
            return 0.0, q

        max_iter = cfg.get_near_parabolic_max_iter()
        Q = GAUSS_K / (2 * q) * np.sqrt((1 + e) / q)
        gamma = (1 - e) / (1 + e)

        q2 = Q * days
        s = 2.0 / (3.0 * abs(q2))
        s = 2.0 / np.tan(2.0 * np.arctan(np.cbrt(np.tan(np.arctan(s) / 2.0))))
        if days < 0:
            s = -s

        if e != 1.0:
            outer = 0
            while True:
                s0 = s
                z = 1
                y = s * s
                g1 = -y * s
                q3 = q2 + 2.0 * gamma * s * y / 3.0
                while True:
                    z += 1
                    g1 = -g1 * gamma * y
                    f = (z - (z + 1) * gamma) / (2 * z + 1) * g1
                    q3 += f
                    if abs(f) <= self.TOLERANCE:
                        break
                    if z >= max_iter:
                        raise ConvergenceError("Near-parabolic series", z, abs(f))

                inner = 0
                while True:
                    s1 = s
                    s = (2.0 * s**3 / 3.0 + q3) / (s * s + 1.0)
                    inner += 1
                    if abs(s - s1) <= self.TOLERANCE:
                        break
                    if inner >= max_iter:
                        raise ConvergenceError("Near-parabolic s iteration", inner, abs(s - s1))

                outer += 1
                if abs(s - s0) <= self.TOLERANCE:
                    break
                if outer >= max_iter:
                    raise ConvergenceError("Near-parabolic solver", outer, abs(s - s0))
            logger.debug("Near-parabolic solver converged in %d passes", outer)

        v = 2.0 * np.arctan(s)
        r = q * (1 + e) / (1 + e * np.cos(v))
        return float(np.rad2deg(v)), float(r)


def orbit_from_elements(elements: OrbitalElements) -> SmallBodyOrbit:
    """Pick the propagator suited to the eccentricity."""
    if elements.e == 1.0:
        return ParabolicOrbit(elements)
    if elements.e < 0.98:
        return EllipticalOrbit(elements)
    return NearParabolicOrbit(elements)
