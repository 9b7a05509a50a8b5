"""
skyephem.planets — Major Planets
=================================

Heliocentric positions of Mercury … Neptune from their mean orbital
elements solved through Kepler's equation, and the apparent-place
pipeline shared by every planet: subtract the Earth, retract for light
time, apply aberration, the FK5 correction and nutation, then rotate to
the true equator of date.

The Earth's own heliocentric position comes from the VSOP87 series in
:mod:`skyephem.sun`.

Reference
---------
Meeus, J. *Astronomical Algorithms*, 2nd ed., chapters 31, 32, 33, 41 and 55.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
from numpy.polynomial import polynomial as P

from .coordinates import EclipticalCoordinates, EquatorialCoordinates
from .errors import InvalidInputError
from .orbits import GeocentricState, eccentric_anomaly, true_anomaly_from_eccentric
from .sun import earth_heliocentric, geocentric_longitude_latitude
from .timesys import NutationResult, julian_centuries, nutation
from .utils import (
    ABERRATION_CONSTANT, LIGHT_TIME_PER_AU, atan2_deg, asin_deg, cos_deg,
    rectangular_to_spherical, sin_deg, spherical_to_rectangular, tan_deg,
    wrap_degrees,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MeanElements:
    """
    Mean orbital elements of a planet for one instant (Meeus ch. 31).

    Attributes
    ----------
    L : float — mean longitude [deg]
    a : float — semi-major axis [AU]
    e : float — eccentricity
    i : float — inclination [deg]
    node : float — longitude of the ascending node Ω [deg]
    perihelion : float — longitude of the perihelion ϖ [deg]
    """
    L: float
    a: float
    e: float
    i: float
    node: float
    perihelion: float

    @property
    def M(self) -> float:
        """Mean anomaly [deg]."""
        return wrap_degrees(self.L - self.perihelion)

    @property
    def omega(self) -> float:
        """Argument of the perihelion [deg]."""
        return wrap_degrees(self.perihelion - self.node)


# ── Mean elements, polynomial coefficients in T (Meeus Tables 31.A, 31.B) ──
# L, a, e, i, Ω, ϖ ; each (c0, c1, c2, c3)
_OF_DATE = {
    "mercury": (
        (252.250906, 149474.0722491, 0.00030350, 0.000000018),
        (0.387098310, 0.0, 0.0, 0.0),
        (0.20563175, 0.000020407, -0.0000000283, -0.00000000018),
        (7.004986, 0.0018215, -0.00001810, 0.000000056),
        (48.330893, 1.1861883, 0.00017542, 0.000000215),
        (77.456119, 1.5564776, 0.00029544, 0.000000009),
    ),
    "venus": (
        (181.979801, 58519.2130302, 0.00031014, 0.000000015),
        (0.723329820, 0.0, 0.0, 0.0),
        (0.00677192, -0.000047765, 0.0000000981, -0.00000000046),
        (3.394662, 0.0010037, -0.00000088, -0.000000007),
        (76.679920, 0.9011206, 0.00040618, -0.000000093),
        (131.563703, 1.4022288, -0.00107618, -0.000005678),
    ),
    "earth": (
        (100.466457, 36000.7698278, 0.00030322, 0.000000020),
        (1.000001018, 0.0, 0.0, 0.0),
        (0.01670863, -0.000042037, -0.0000001267, 0.00000000014),
        (0.0, 0.0, 0.0, 0.0),
        (0.0, 0.0, 0.0, 0.0),
        (102.937348, 1.7195366, 0.00045688, -0.000000018),
    ),
    "mars": (
        (355.433000, 19141.6964471, 0.00031052, 0.000000016),
        (1.523679342, 0.0, 0.0, 0.0),
        (0.09340065, 0.000090484, -0.0000000806, -0.00000000025),
        (1.849726, -0.0006011, 0.00001276, -0.000000007),
        (49.558093, 0.7720959, 0.00001557, 0.000002267),
        (336.060234, 1.8410449, -0.00013477, 0.000000536),
    ),
    "jupiter": (
        (34.351519, 3036.3027748, 0.00022330, 0.000000037),
        (5.202603209, 0.0000001913, 0.0, 0.0),
        (0.04849793, 0.000163225, -0.0000004714, -0.00000000201),
        (1.303267, -0.0054965, 0.00000466, -0.000000002),
        (100.464407, 1.0209774, 0.00040315, 0.000000404),
        (14.331207, 1.6126352, 0.00103042, -0.000004464),
    ),
    "saturn": (
        (50.077444, 1223.5110686, 0.00051908, -0.000000030),
        (9.554909192, -0.0000021390, 0.000000004, 0.0),
        (0.05554814, -0.000346641, -0.0000006436, 0.00000000340),
        (2.488879, -0.0037362, -0.00001519, 0.000000087),
        (113.665503, 0.8770880, -0.00012176, -0.000002249),
        (93.057237, 1.9637613, 0.00083753, 0.000004928),
    ),
    "uranus": (
        (314.055005, 429.8640561, 0.00030390, 0.000000026),
        (19.218446062, -0.0000000372, 0.00000000098, 0.0),
        (0.04638122, -0.000027293, 0.0000000789, 0.00000000024),
        (0.773197, 0.0007744, 0.00003749, -0.000000092),
        (74.005957, 0.5211278, 0.00133947, 0.000018484),
        (173.005291, 1.4863790, 0.00021406, 0.000000434),
    ),
    "neptune": (
        (304.348665, 219.8833092, 0.00030882, 0.000000018),
        (30.110386869, -0.0000001663, 0.00000000069, 0.0),
        (0.00945575, 0.000006033, 0.0, -0.00000000005),
        (1.769953, -0.0093082, -0.00000708, 0.000000027),
        (131.784057, 1.1022039, 0.00025952, -0.000000637),
        (48.120276, 1.4262957, 0.00038434, 0.000000020),
    ),
}

# Only L, i, Ω and ϖ differ when referred to the fixed equinox J2000
_J2000 = {
    "mercury": (
        (252.250906, 149472.6746358, -0.00000536, 0.000000002),
        (7.004986, -0.0059516, 0.00000080, 0.000000043),
        (48.330893, -0.1254227, -0.00008833, -0.000000200),
        (77.456119, 0.1588643, -0.00001342, -0.000000007),
    ),
    "venus": (
        (181.979801, 58517.8156760, 0.00000165, -0.000000002),
        (3.394662, -0.0008568, -0.00003244, 0.000000009),
        (76.679920, -0.2780134, -0.00014257, -0.000000164),
        (131.563703, 0.0048746, -0.00138467, -0.000005695),
    ),
    "earth": (
        (100.466457, 35999.3728565, -0.00000568, 0.000000001),
        (0.0, 0.0, 0.0, 0.0),
        (174.873176, -0.2410908, 0.00004262, 0.000000001),
        (102.937348, 0.3225654, 0.00014799, -0.000000039),
    ),
    "mars": (
        (355.433000, 19140.2993039, 0.00000262, -0.000000003),
        (1.849726, -0.0081477, -0.00002255, -0.000000029),
        (49.558093, -0.2950250, -0.00064048, -0.000001964),
        (336.060234, 0.4439016, -0.00017313, 0.000000518),
    ),
    "jupiter": (
        (34.351519, 3034.9056606, -0.00008501, 0.000000016),
        (1.303267, -0.0019877, 0.00003320, 0.000000097),
        (100.464407, 0.1767232, 0.00090700, -0.000007272),
        (14.331207, 0.2155209, 0.00072211, -0.000004485),
    ),
    "saturn": (
        (50.077444, 1222.1138488, 0.00021004, -0.000000046),
        (2.488879, 0.0025514, -0.00004906, 0.000000017),
        (113.665503, -0.2566722, -0.00018399, 0.000000480),
        (93.057237, 0.5665415, 0.00052850, 0.000004912),
    ),
    "uranus": (
        (314.055005, 428.4669983, -0.00000486, 0.000000006),
        (0.773197, -0.0016869, 0.00000349, 0.000000016),
        (74.005957, 0.0741431, 0.00040539, 0.000000119),
        (173.005291, 0.0893212, -0.00009470, 0.000000414),
    ),
    "neptune": (
        (304.348665, 218.4862002, 0.00000059, -0.000000002),
        (1.769953, 0.0002256, 0.00000023, 0.0),
        (131.784057, -0.0061651, -0.00000219, -0.000000078),
        (48.120276, 0.0291866, 0.00007610, 0.0),
    ),
}

# Semidiameters at 1 AU [arcsec] (Meeus ch. 55; equatorial for the giants)
_SEMIDIAMETERS = {
    "mercury": 3.36, "venus": 8.41, "mars": 4.68, "jupiter": 98.44,
    "saturn": 82.73, "uranus": 35.02, "neptune": 33.50,
}


def _heliocentric_from_elements(el: MeanElements) -> tuple[float, float, float]:
    E = eccentric_anomaly(el.e, el.M)
    v = true_anomaly_from_eccentric(el.e, E)
    r = el.a * (1 - el.e * cos_deg(E))
    u = el.omega + v
    lon = el.node + atan2_deg(cos_deg(el.i) * sin_deg(u), cos_deg(u))
    lat = asin_deg(sin_deg(el.i) * sin_deg(u))
    return wrap_degrees(lon), lat, float(r)


# ════════════════════════════════════════════════════════════════════════════
#  Planets
# ════════════════════════════════════════════════════════════════════════════

class Planet:
    """
    One of the major planets.

    Parameters
    ----------
    name : str — "mercury" … "neptune" (case-insensitive)
    """

    def __init__(self, name: str):
        key = name.lower()
        if key not in _OF_DATE or key == "earth":
            raise InvalidInputError(f"Unknown planet {name!r}")
        self.name = key

    def __repr__(self):
        return f"Planet({self.name!r})"

    def mean_elements(self, jd: float, j2000: bool = False) -> MeanElements:
        """Mean elements at *jd*, referred to the equinox of date or to J2000."""
        return mean_elements(self.name, jd, j2000)

    def heliocentric_coordinates(self, jd: float) -> tuple[float, float, float]:
        """(l [deg], b [deg], r [AU]) on the ecliptic and equinox of date."""
        return _heliocentric_from_elements(self.mean_elements(jd))

    def geocentric_state(self, jd: float) -> GeocentricState:
        """Geocentric ecliptic vector of date, corrected for light time."""
        L0, B0, R0 = earth_heliocentric(jd)
        earth = spherical_to_rectangular(L0, B0, R0)

        vector = spherical_to_rectangular(*self.heliocentric_coordinates(jd)) - earth
        tau = LIGHT_TIME_PER_AU * float(np.linalg.norm(vector))
        lon, lat, r = self.heliocentric_coordinates(jd - tau)
        vector = spherical_to_rectangular(lon, lat, r) - earth
        delta = float(np.linalg.norm(vector))
        logger.debug("%s light time %.6f d, delta %.6f AU", self.name, tau, delta)
        return GeocentricState(vector, delta, r, R0)

    def apparent_position(self, jd: float,
                          nutation_result: Optional[NutationResult] = None) -> EquatorialCoordinates:
        """
        Apparent right ascension and declination (Meeus ch. 33).

        Parameters
        ----------
        jd : float — Julian Ephemeris Day
        nutation_result : NutationResult, optional — computed when omitted
        """
        if nutation_result is None:
            nutation_result = nutation(jd)
        lam, beta, _ = rectangular_to_spherical(self.geocentric_state(jd).vector)

        T = julian_centuries(jd)
        e = 0.016708634 - 0.000042037 * T - 0.0000001267 * T**2
        pi = 102.93735 + 1.71946 * T + 0.00046 * T**2
        odot = geocentric_longitude_latitude(jd)[0]
        k = ABERRATION_CONSTANT

        d_lam = (-k * cos_deg(odot - lam) + e * k * cos_deg(pi - lam)) / cos_deg(beta)
        d_beta = -k * sin_deg(beta) * (sin_deg(odot - lam) - e * sin_deg(pi - lam))
        lam += d_lam / 3600.0
        beta += d_beta / 3600.0

        # FK5
        lam_prime = lam - 1.397 * T - 0.00031 * T**2
        d_lam = (-0.09033 + 0.03916 * (cos_deg(lam_prime) + sin_deg(lam_prime))
                 * tan_deg(beta))
        d_beta = 0.03916 * (cos_deg(lam_prime) - sin_deg(lam_prime))
        lam += d_lam / 3600.0 + nutation_result.delta_psi
        beta += d_beta / 3600.0

        return EclipticalCoordinates(lam, beta).to_equatorial(nutation_result.true_obliquity)

    def phase_angle(self, jd: float) -> float:
        """Sun–planet–Earth angle [deg]."""
        return self.geocentric_state(jd).phase_angle

    def illuminated_fraction(self, jd: float) -> float:
        state = self.geocentric_state(jd)
        r, delta, R = state.r, state.delta, state.sun_distance
        return float(((r + delta)**2 - R**2) / (4.0 * r * delta))

    def apparent_diameter(self, jd: float) -> float:
        """Apparent (equatorial) diameter [arcsec]."""
        return 2.0 * _SEMIDIAMETERS[self.name] / self.geocentric_state(jd).delta


class Earth:
    """The Earth, for the uniform heliocentric-coordinates contract."""

    name = "earth"

    def mean_elements(self, jd: float, j2000: bool = False) -> MeanElements:
        return mean_elements(self.name, jd, j2000)

    def heliocentric_coordinates(self, jd: float) -> tuple[float, float, float]:
        """VSOP87 (L, B, R) on the ecliptic and equinox of date."""
        return earth_heliocentric(jd)


def mean_elements(name: str, jd: float, j2000: bool = False) -> MeanElements:
    """Mean orbital elements of a planet (or the Earth) at *jd*."""
    key = name.lower()
    if key not in _OF_DATE:
        raise InvalidInputError(f"Unknown planet {name!r}")
    T = julian_centuries(jd)
    L, a, e, i, node, perihelion = (float(P.polyval(T, c)) for c in _OF_DATE[key])
    if j2000:
        L, i, node, perihelion = (float(P.polyval(T, c)) for c in _J2000[key])
    return MeanElements(wrap_degrees(L), a, e, wrap_degrees(i),
                        wrap_degrees(node), wrap_degrees(perihelion))


PLANET_NAMES = ("mercury", "venus", "mars", "jupiter", "saturn", "uranus", "neptune")
