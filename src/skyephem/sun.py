"""
skyephem.sun — Solar Ephemeris
===============================

Position of the Sun as seen from the Earth's centre, built on the
truncated VSOP87 series for the Earth (Meeus Appendix III).

Capabilities
------------
- Heliocentric ecliptical coordinates of the Earth (L, B, R)
- Low-accuracy apparent position (~0.01°)
- High-accuracy apparent position (nutation, aberration, FK5)
- Geometric rectangular coordinates, equinox of date and J2000 (FK5)
- Equation of time
- Ephemeris for physical observations (P, B0, L0) and apparent diameter

Functions take Julian Ephemeris Days; passing a UT Julian Day instead
shifts the result by ΔT, well below the accuracy of the low-precision
formulae.

Reference
---------
Meeus, J. *Astronomical Algorithms*, 2nd ed., chapters 25, 26, 28 and 29.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .coordinates import (
    EclipticalCoordinates, EquatorialCoordinates, RectangularCoordinates,
    precess_ecliptical,
)
from .timesys import NutationResult, julian_centuries, julian_millennia, nutation
from .utils import (
    J2000, asin_deg, atan2_deg, cos_deg, periodic_sum, sin_deg, tan_deg,
    wrap, wrap_degrees,
)

# ── Constants ───────────────────────────────────────────────────────────────
SUN_SEMIDIAMETER_1AU = 959.63         # [arcsec]
ABERRATION_1AU = 20.4898              # constant of aberration over R [arcsec]
FK5_LONGITUDE_CORRECTION = -0.09033   # [arcsec]

# VSOP87 → FK5 rotation (Meeus 26.3)
_VSOP_TO_FK5 = np.array([
    [1.0, 0.000000440360, -0.000000190919],
    [-0.000000479966, 0.917482137087, -0.397776982902],
    [0.0, 0.397776982902, 0.917482137087],
])


# ════════════════════════════════════════════════════════════════════════════
#  VSOP87 series for the Earth (rows of A, B, C; A in 1e-8 rad or AU)
# ════════════════════════════════════════════════════════════════════════════

_EARTH_L0 = np.array([
    (175347046.0, 0.0, 0.0),
    (3341656.0, 4.6692568, 6283.0758500),
    (34894.0, 4.62610, 12566.15170),
    (3497, 2.7441, 5753.3849),
    (3418, 2.8289, 3.5231),
    (3136, 3.6277, 77713.7715),
    (2676, 4.4181, 7860.4194),
    (2343, 6.1352, 3930.2097),
    (1324, 0.7425, 11506.7698),
    (1273, 2.0371, 529.6910),
    (1199, 1.1096, 1577.3435),
    (990, 5.233, 5884.927),
    (902, 2.045, 26.298),
    (857, 3.508, 398.149),
    (780, 1.179, 5223.694),
    (753, 2.533, 5507.553),
    (505, 4.583, 18849.228),
    (492, 4.205, 775.523),
    (357, 2.920, 0.067),
    (317, 5.849, 11790.629),
    (284, 1.899, 796.298),
    (271, 0.315, 10977.079),
    (243, 0.345, 5486.778),
    (206, 4.806, 2544.314),
    (205, 1.869, 5573.143),
    (202, 2.458, 6069.777),
    (156, 0.833, 213.299),
    (132, 3.411, 2942.463),
    (126, 1.083, 20.775),
    (115, 0.645, 0.980),
    (103, 0.636, 4694.003),
    (102, 0.976, 15720.839),
    (102, 4.267, 7.114),
    (99, 6.21, 2146.17),
    (98, 0.68, 155.42),
    (86, 5.98, 161000.69),
    (85, 1.30, 6275.96),
    (85, 3.67, 71430.70),
    (80, 1.81, 17260.15),
    (79, 3.04, 12036.46),
    (75, 1.76, 5088.63),
    (74, 3.50, 3154.69),
    (74, 4.68, 801.82),
    (70, 0.83, 9437.76),
    (62, 3.98, 8827.39),
    (61, 1.82, 7084.90),
    (57, 2.78, 6286.60),
    (56, 4.39, 14143.50),
    (56, 3.47, 6279.55),
    (52, 0.19, 12139.55),
    (52, 1.33, 1748.02),
    (51, 0.28, 5856.48),
    (49, 0.49, 1194.45),
    (41, 5.37, 8429.24),
    (41, 2.40, 19651.05),
    (39, 6.17, 10447.39),
    (37, 6.04, 10213.29),
    (37, 2.57, 1059.38),
    (36, 1.71, 2352.87),
    (36, 1.78, 6812.77),
    (33, 0.59, 17789.85),
    (30, 0.44, 83996.85),
    (30, 2.74, 1349.87),
    (25, 3.16, 4690.48),
])

_EARTH_L1 = np.array([
    (628331966747.0, 0.0, 0.0),
    (206059.0, 2.678235, 6283.075850),
    (4303, 2.6351, 12566.1517),
    (425, 1.590, 3.523),
    (119, 5.796, 26.298),
    (109, 2.966, 1577.344),
    (93, 2.59, 18849.23),
    (72, 1.14, 529.69),
    (68, 1.87, 398.15),
    (67, 4.41, 5507.55),
    (59, 2.89, 5223.69),
    (56, 2.17, 155.42),
    (45, 0.40, 796.30),
    (36, 0.47, 775.52),
    (29, 2.65, 7.11),
    (21, 5.34, 0.98),
    (19, 1.85, 5486.78),
    (19, 4.97, 213.30),
    (17, 2.99, 6275.96),
    (16, 0.03, 2544.31),
    (16, 1.43, 2146.17),
    (15, 1.21, 10977.08),
    (12, 2.83, 1748.02),
    (12, 3.26, 5088.63),
    (12, 5.27, 1194.45),
    (12, 2.08, 4694.00),
    (11, 0.77, 553.57),
    (10, 1.30, 6286.60),
    (10, 4.24, 1349.87),
    (9, 2.70, 242.73),
    (9, 5.64, 951.72),
    (8, 5.30, 2352.87),
    (6, 2.65, 9437.76),
    (6, 4.67, 4690.48),
])

_EARTH_L2 = np.array([
    (52919.0, 0.0, 0.0),
    (8720, 1.0721, 6283.0758),
    (309, 0.867, 12566.152),
    (27, 0.05, 3.52),
    (16, 5.19, 26.30),
    (16, 3.68, 155.42),
    (10, 0.76, 18849.23),
    (9, 2.06, 77713.77),
    (7, 0.83, 775.52),
    (5, 4.66, 1577.34),
    (4, 1.03, 7.11),
    (4, 3.44, 5573.14),
    (3, 5.14, 796.30),
    (3, 6.05, 5507.55),
    (3, 1.19, 242.73),
    (3, 6.12, 529.69),
    (3, 0.31, 398.15),
    (3, 2.28, 553.57),
    (2, 4.38, 5223.69),
    (2, 3.75, 0.98),
])

_EARTH_L3 = np.array([
    (289, 5.844, 6283.076),
    (35, 0.0, 0.0),
    (17, 5.49, 12566.15),
    (3, 5.20, 155.42),
    (1, 4.72, 3.52),
    (1, 5.30, 18849.23),
    (1, 5.97, 242.73),
])

_EARTH_L4 = np.array([
    (114, 3.142, 0.0),
    (8, 4.13, 6283.08),
    (1, 3.84, 12566.15),
])

_EARTH_L5 = np.array([
    (1, 3.14, 0.0),
])

_EARTH_R0 = np.array([
    (100013989.0, 0.0, 0.0),
    (1670700.0, 3.0984635, 6283.0758500),
    (13956, 3.05525, 12566.15170),
    (3084, 5.1985, 77713.7715),
    (1628, 1.1739, 5753.3849),
    (1576, 2.8469, 7860.4194),
    (925, 5.453, 11506.770),
    (542, 4.564, 3930.210),
    (472, 3.661, 5884.927),
    (346, 0.964, 5507.553),
    (329, 5.900, 5223.694),
    (307, 0.299, 5573.143),
    (243, 4.273, 11790.629),
    (212, 5.847, 1577.344),
    (186, 5.022, 10977.079),
    (175, 3.012, 18849.228),
    (110, 5.055, 5486.778),
    (98, 0.89, 6069.78),
    (86, 5.69, 15720.84),
    (86, 1.27, 161000.69),
    (65, 0.27, 17260.15),
    (63, 0.92, 529.69),
    (57, 2.01, 83996.85),
    (56, 5.24, 71430.70),
    (49, 3.25, 2544.31),
    (47, 2.58, 775.52),
    (45, 5.54, 9437.76),
    (43, 6.01, 6275.96),
    (39, 5.36, 4694.00),
    (38, 2.39, 8827.39),
    (37, 0.83, 19651.05),
    (37, 4.90, 12139.55),
    (36, 1.67, 12036.46),
    (35, 1.84, 2942.46),
    (33, 0.24, 7084.90),
    (32, 0.18, 5088.63),
    (32, 1.78, 398.15),
    (28, 1.21, 6286.60),
    (28, 1.90, 6279.55),
    (26, 4.59, 10447.39),
])

_EARTH_R1 = np.array([
    (103019.0, 1.107490, 6283.075850),
    (1721, 1.0644, 12566.1517),
    (702, 3.142, 0.0),
    (32, 1.02, 18849.23),
    (31, 2.84, 5507.55),
    (25, 1.32, 5223.69),
    (18, 1.42, 1577.34),
    (10, 5.91, 10977.08),
    (9, 1.42, 6275.96),
    (9, 0.27, 5486.78),
])

_EARTH_R2 = np.array([
    (4359, 5.7846, 6283.0758),
    (124, 5.579, 12566.152),
    (12, 3.14, 0.0),
    (9, 3.63, 77713.77),
    (6, 1.87, 5573.14),
    (3, 5.47, 18849.23),
])

_EARTH_R3 = np.array([
    (145, 4.273, 6283.076),
    (7, 3.92, 12566.15),
])

_EARTH_R4 = np.array([
    (4, 2.56, 6283.08),
])

_EARTH_B0 = np.array([
    (280, 3.199, 84334.662),
    (102, 5.422, 5507.553),
    (80, 3.88, 5223.69),
    (44, 3.70, 2352.87),
    (32, 4.00, 1577.34),
])

_EARTH_B1 = np.array([
    (9, 3.90, 5507.55),
    (6, 1.73, 5223.69),
])

_EARTH_L = (_EARTH_L0, _EARTH_L1, _EARTH_L2, _EARTH_L3, _EARTH_L4, _EARTH_L5)
_EARTH_B = (_EARTH_B0, _EARTH_B1)
_EARTH_R = (_EARTH_R0, _EARTH_R1, _EARTH_R2, _EARTH_R3, _EARTH_R4)


def _series(groups, tau: float) -> float:
    """Σ_k τ^k Σ A cos(B + C τ), scaled from 1e-8 units."""
    total = sum(periodic_sum(terms, tau) * tau**k for k, terms in enumerate(groups))
    return total / 1e8


def earth_heliocentric(jd: float) -> tuple[float, float, float]:
    """
    Heliocentric coordinates of the Earth, mean ecliptic and equinox of date.

    Parameters
    ----------
    jd : float — Julian Ephemeris Day

    Returns
    -------
    (L [deg, 0..360), B [deg], R [AU])
    """
    tau = julian_millennia(jd)
    L = wrap_degrees(np.rad2deg(_series(_EARTH_L, tau)))
    B = float(np.rad2deg(_series(_EARTH_B, tau)))
    R = float(_series(_EARTH_R, tau))
    return L, B, R


def geocentric_longitude_latitude(jd: float) -> tuple[float, float, float]:
    """
    Geometric geocentric longitude ☉ and latitude β of the Sun in the FK5
    system [deg], with the Earth–Sun distance R [AU].
    """
    L, B, R = earth_heliocentric(jd)
    odot = L + 180.0
    beta = -B * 3600.0

    T10 = 10.0 * julian_millennia(jd)
    lam_prime = odot - 1.397 * T10 - 0.00031 * T10**2
    delta_beta = 0.03916 * (cos_deg(lam_prime) - sin_deg(lam_prime))

    odot = wrap_degrees(odot + FK5_LONGITUDE_CORRECTION / 3600.0)
    beta = (beta + delta_beta) / 3600.0
    return odot, float(beta), R


# ════════════════════════════════════════════════════════════════════════════
#  Apparent position
# ════════════════════════════════════════════════════════════════════════════

def low_accuracy_position(jd: float, obliquity: Optional[float] = None,
                          apparent: bool = False) -> EquatorialCoordinates:
    """Sun position to about 0.01° from the mean elements (Meeus ch. 25).

    Parameters
    ----------
    jd : float — Julian Ephemeris Day
    obliquity : float, optional — obliquity of the ecliptic [deg]; the true
        obliquity of *jd* when omitted
    apparent : bool — correct the true longitude for nutation and
        aberration and the obliquity for the Moon's node (Meeus 25.8)

    Returns
    -------
    EquatorialCoordinates — RA [h], declination [deg]
    """
    T = julian_centuries(jd)

    L0 = wrap_degrees(280.46646 + 36000.76983 * T + 0.0003032 * T**2)
    M = wrap_degrees(357.52911 + 35999.05029 * T - 0.0001537 * T**2)

    # Equation of the centre [deg]
    C = ((1.914602 - 0.004817 * T - 0.000014 * T**2) * sin_deg(M)
         + (0.019993 - 0.000101 * T) * sin_deg(2 * M)
         + 0.000289 * sin_deg(3 * M))
    longitude = L0 + C

    if obliquity is None:
        obliquity = nutation(jd).true_obliquity
    if apparent:
        omega = 125.04 - 1934.136 * T
        longitude = longitude - 0.00569 - 0.00478 * sin_deg(omega)
        obliquity = obliquity + 0.00256 * cos_deg(omega)

    ra = atan2_deg(cos_deg(obliquity) * sin_deg(longitude), cos_deg(longitude))
    dec = asin_deg(sin_deg(obliquity) * sin_deg(longitude))
    return EquatorialCoordinates.from_unwrapped(ra / 15.0, dec)


def low_accuracy_distance(jd: float) -> float:
    """Earth–Sun distance [AU] from the mean elements."""
    T = julian_centuries(jd)
    M = 357.52911 + 35999.05029 * T - 0.0001537 * T**2
    e = 0.016708634 - 0.000042037 * T - 0.0000001267 * T**2
    C = ((1.914602 - 0.004817 * T - 0.000014 * T**2) * sin_deg(M)
         + (0.019993 - 0.000101 * T) * sin_deg(2 * M)
         + 0.000289 * sin_deg(3 * M))
    return float(1.000001018 * (1 - e * e) / (1 + e * cos_deg(M + C)))


def apparent_position(jd: float,
                      nutation_result: Optional[NutationResult] = None) -> EquatorialCoordinates:
    """
    High-accuracy apparent position from the VSOP87 series, corrected for
    FK5, nutation in longitude and aberration, referred to the true
    equator of date.
    """
    if nutation_result is None:
        nutation_result = nutation(jd)
    odot, beta, R = geocentric_longitude_latitude(jd)
    lam = odot + (nutation_result.delta_psi_arcsec - ABERRATION_1AU / R) / 3600.0
    ecliptical = EclipticalCoordinates(lam, beta)
    return ecliptical.to_equatorial(nutation_result.true_obliquity)


# ════════════════════════════════════════════════════════════════════════════
#  Rectangular coordinates (Meeus ch. 26)
# ════════════════════════════════════════════════════════════════════════════

def geometric_rectangular(jd: float) -> RectangularCoordinates:
    """Geocentric rectangular coordinates of the Sun [AU], mean equator and
    equinox of date."""
    odot, beta, R = geocentric_longitude_latitude(jd)
    eps = nutation(jd).mean_obliquity
    X = R * cos_deg(beta) * cos_deg(odot)
    Y = R * (cos_deg(beta) * sin_deg(odot) * cos_deg(eps) - sin_deg(beta) * sin_deg(eps))
    Z = R * (cos_deg(beta) * sin_deg(odot) * sin_deg(eps) + sin_deg(beta) * cos_deg(eps))
    return RectangularCoordinates(X, Y, Z)


def geometric_rectangular_j2000(jd: float) -> RectangularCoordinates:
    """Geocentric rectangular coordinates of the Sun [AU] in the FK5 J2000
    equatorial frame, the frame of the small-body orbit planes."""
    L, B, R = earth_heliocentric(jd)
    L, B = precess_ecliptical(L, B, jd, J2000)
    odot, beta = L + 180.0, -B
    ecliptic = np.array([
        R * cos_deg(beta) * cos_deg(odot),
        R * cos_deg(beta) * sin_deg(odot),
        R * sin_deg(beta),
    ])
    return RectangularCoordinates(*(_VSOP_TO_FK5 @ ecliptic))


# ════════════════════════════════════════════════════════════════════════════
#  Solar time and physical data
# ════════════════════════════════════════════════════════════════════════════

def equation_of_time(jd: float) -> float:
    """Apparent minus mean solar time [minutes] (Meeus ch. 28)."""
    tau = julian_millennia(jd)
    L0 = wrap_degrees(280.4664567 + 360007.6982779 * tau
                      + 0.03032028 * tau**2 + tau**3 / 49931
                      - tau**4 / 15300 - tau**5 / 2_000_000)
    nut = nutation(jd)
    alpha = float(apparent_position(jd, nut).ra) * 15.0
    E = L0 - 0.0057183 - alpha + nut.delta_psi * cos_deg(nut.true_obliquity)
    return wrap(E, -180.0, 180.0) * 4.0


@dataclass(frozen=True)
class SolarDisk:
    """Orientation of the solar disk (Meeus ch. 29), all in degrees.

    P  — position angle of the northern rotation pole, east from north
    B0 — heliographic latitude of the disk centre
    L0 — heliographic longitude of the disk centre
    """
    P: float
    B0: float
    L0: float


def physical_ephemeris(jd: float) -> SolarDisk:
    """Ephemeris for physical observations of the Sun at Julian Ephemeris Day *jd*."""
    theta = wrap_degrees((jd - 2_398_220.0) * 360.0 / 25.38)
    I = 7.25
    K = 73.6667 + 1.3958333 * (jd - 2_396_758.0) / 36525.0

    L, _, R = earth_heliocentric(jd)
    nut = nutation(jd)
    lam = L + 180.0 - ABERRATION_1AU / R / 3600.0
    lam_apparent = lam + nut.delta_psi

    x = np.rad2deg(np.arctan(-cos_deg(lam_apparent) * tan_deg(nut.true_obliquity)))
    y = np.rad2deg(np.arctan(-cos_deg(lam - K) * tan_deg(I)))
    B0 = asin_deg(sin_deg(lam - K) * sin_deg(I))
    eta = np.rad2deg(np.arctan(tan_deg(lam - K) * cos_deg(I)))
    return SolarDisk(float(x + y), B0, wrap_degrees(eta - theta))


def apparent_diameter(jd: float) -> float:
    """Apparent diameter of the Sun [arcsec]."""
    R = earth_heliocentric(jd)[2]
    return round(2 * SUN_SEMIDIAMETER_1AU / R, 1)
