"""
skyephem.moon — Lunar Ephemeris, Phases & Illumination
=======================================================

Geocentric position of the Moon from the principal terms of the ELP-2000/82
theory, the instants of the principal phases, and the quantities derived
from them.

Capabilities
------------
- Geocentric ecliptical coordinates (λ, β, Δ) and apparent place
- Horizontal parallax, standard altitude h0 and apparent diameter
- Phase angle and illuminated fraction of the disk
- New Moon, first quarter, full Moon and last quarter instants
- Age of the Moon and a human-readable phase name

Reference
---------
Meeus, J. *Astronomical Algorithms*, 2nd ed., chapters 47, 48, 49 and 55.
"""

import enum
import logging
from typing import Optional

import numpy as np

from . import sun
from .coordinates import EclipticalCoordinates, EquatorialCoordinates
from .errors import InvalidInputError
from .timesys import NutationResult, julian_centuries, nutation
from .utils import H0_STAR, asin_deg, cos_deg, sin_deg, wrap_degrees

logger = logging.getLogger(__name__)

# ── Constants ───────────────────────────────────────────────────────────────
EARTH_RADIUS_KM = 6378.14
AU_KM = 149_597_870.0
MEAN_DISTANCE_KM = 385_000.56
SEMIDIAMETER_FACTOR = 358_473_400.0   # s = k / Δ [arcsec, Δ in km]
SYNODIC_MONTH = 29.530588861          # [d]
NEW_MOON_EPOCH = 2_451_550.09766      # mean new Moon of 2000 January 6 [JDE]


# ════════════════════════════════════════════════════════════════════════════
#  Periodic terms (Meeus Tables 47.A and 47.B)
# ════════════════════════════════════════════════════════════════════════════

# D, M, M', F, Σl [1e-6 deg], Σr [1e-3 km]
_LON_DIST_TERMS = np.array([
    [0, 0, 1, 0, 6288774, -20905355],
    [2, 0, -1, 0, 1274027, -3699111],
    [2, 0, 0, 0, 658314, -2955968],
    [0, 0, 2, 0, 213618, -569925],
    [0, 1, 0, 0, -185116, 48888],
    [0, 0, 0, 2, -114332, -3149],
    [2, 0, -2, 0, 58793, 246158],
    [2, -1, -1, 0, 57066, -152138],
    [2, 0, 1, 0, 53322, -170733],
    [2, -1, 0, 0, 45758, -204586],
    [0, 1, -1, 0, -40923, -129620],
    [1, 0, 0, 0, -34720, 108743],
    [0, 1, 1, 0, -30383, 104755],
    [2, 0, 0, -2, 15327, 10321],
    [0, 0, 1, 2, -12528, 0],
    [0, 0, 1, -2, 10980, 79661],
    [4, 0, -1, 0, 10675, -34782],
    [0, 0, 3, 0, 10034, -23210],
    [4, 0, -2, 0, 8548, -21636],
    [2, 1, -1, 0, -7888, 24208],
    [2, 1, 0, 0, -6766, 30824],
    [1, 0, -1, 0, -5163, -8379],
    [1, 1, 0, 0, 4987, -16675],
    [2, -1, 1, 0, 4036, -12831],
    [2, 0, 2, 0, 3994, -10445],
    [4, 0, 0, 0, 3861, -11650],
    [2, 0, -3, 0, 3665, 14403],
    [0, 1, -2, 0, -2689, -7003],
    [2, 0, -1, 2, -2602, 0],
    [2, -1, -2, 0, 2390, 10056],
    [1, 0, 1, 0, -2348, 6322],
    [2, -2, 0, 0, 2236, -9884],
    [0, 1, 2, 0, -2120, 5751],
    [0, 2, 0, 0, -2069, 0],
    [2, -2, -1, 0, 2048, -4950],
    [2, 0, 1, -2, -1773, 4130],
    [2, 0, 0, 2, -1595, 0],
    [4, -1, -1, 0, 1215, -3958],
    [0, 0, 2, 2, -1110, 0],
    [3, 0, -1, 0, -892, 3258],
    [2, 1, 1, 0, -810, 2616],
    [4, -1, -2, 0, 759, -1897],
    [0, 2, -1, 0, -713, -2117],
    [2, 2, -1, 0, -700, 2354],
    [2, 1, -2, 0, 691, 0],
    [2, -1, 0, -2, 596, 0],
    [4, 0, 1, 0, 549, -1423],
    [0, 0, 4, 0, 537, -1117],
    [4, -1, 0, 0, 520, -1571],
    [1, 0, -2, 0, -487, -1739],
    [2, 1, 0, -2, -399, 0],
    [0, 0, 2, -2, -381, -4421],
    [1, 1, 1, 0, 351, 0],
    [3, 0, -2, 0, -340, 0],
    [4, 0, -3, 0, 330, 0],
    [2, -1, 2, 0, 327, 0],
    [0, 2, 1, 0, -323, 1165],
    [1, 1, -1, 0, 299, 0],
    [2, 0, 3, 0, 294, 0],
    [2, 0, -1, -2, 0, 8752],
], dtype=np.float64)

# D, M, M', F, Σb [1e-6 deg]
_LAT_TERMS = np.array([
    [0, 0, 0, 1, 5128122],
    [0, 0, 1, 1, 280602],
    [0, 0, 1, -1, 277693],
    [2, 0, 0, -1, 173237],
    [2, 0, -1, 1, 55413],
    [2, 0, -1, -1, 46271],
    [2, 0, 0, 1, 32573],
    [0, 0, 2, 1, 17198],
    [2, 0, 1, -1, 9266],
    [0, 0, 2, -1, 8822],
    [2, -1, 0, -1, 8216],
    [2, 0, -2, -1, 4324],
    [2, 0, 1, 1, 4200],
    [2, 1, 0, -1, -3359],
    [2, -1, -1, 1, 2463],
    [2, -1, 0, 1, 2211],
    [2, -1, -1, -1, 2065],
    [0, 1, -1, -1, -1870],
    [4, 0, -1, -1, 1828],
    [0, 1, 0, 1, -1794],
    [0, 0, 0, 3, -1749],
    [0, 1, -1, 1, -1565],
    [1, 0, 0, 1, -1491],
    [0, 1, 1, 1, -1475],
    [0, 1, 1, -1, -1410],
    [0, 1, 0, -1, -1344],
    [1, 0, 0, -1, -1335],
    [0, 0, 3, 1, 1107],
    [4, 0, 0, -1, 1021],
    [4, 0, -1, 1, 833],
    [0, 0, 1, -3, 777],
    [4, 0, -2, 1, 671],
    [2, 0, 0, -3, 607],
    [2, 0, 2, -1, 596],
    [2, -1, 1, -1, 491],
    [2, 0, -2, 1, -451],
    [0, 0, 3, -1, 439],
    [2, 0, 2, 1, 422],
    [2, 0, -3, -1, 421],
    [2, 1, -1, 1, -366],
    [2, 1, 0, 1, -351],
    [4, 0, 0, 1, 331],
    [2, -1, 1, 1, 315],
    [2, -2, 0, -1, 302],
    [0, 0, 1, 3, -283],
    [2, 1, 1, -1, -229],
    [1, 1, 0, -1, 223],
    [1, 1, 0, 1, 223],
    [0, 1, -2, -1, -220],
    [2, 1, -1, -1, -220],
    [1, 0, 1, 1, -185],
    [2, -1, -2, -1, 181],
    [0, 1, 2, 1, -177],
    [4, 0, -2, -1, 176],
    [4, -1, -1, -1, 166],
    [1, 0, 1, -1, -164],
    [4, 0, 1, -1, 132],
    [1, 0, -1, -1, -119],
    [4, -1, 0, -1, 115],
    [2, -2, 0, 1, 107],
], dtype=np.float64)


def _arguments(T: float):
    """L', D, M, M', F [deg] for Julian centuries T (Meeus 47.1–47.5)."""
    Lp = (218.3164477 + 481267.88123421 * T - 0.0015786 * T**2
          + T**3 / 538841.0 - T**4 / 65194000.0)
    D = (297.8501921 + 445267.1114034 * T - 0.0018819 * T**2
         + T**3 / 545868.0 - T**4 / 113065000.0)
    M = 357.5291092 + 35999.0502909 * T - 0.0001536 * T**2 + T**3 / 24490000.0
    Mp = (134.9633964 + 477198.8675055 * T + 0.0087414 * T**2
          + T**3 / 69699.0 - T**4 / 14712000.0)
    F = (93.2720950 + 483202.0175233 * T - 0.0036539 * T**2
         - T**3 / 3526000.0 + T**4 / 863310000.0)
    return (wrap_degrees(Lp), wrap_degrees(D), wrap_degrees(M),
            wrap_degrees(Mp), wrap_degrees(F))


def _eccentricity_factors(multipliers_of_M: np.ndarray, T: float) -> np.ndarray:
    """E^|m| for each term; E corrects for the decreasing eccentricity of
    the Earth's orbit."""
    E = 1.0 - 0.002516 * T - 0.0000074 * T**2
    return E ** np.abs(multipliers_of_M)


# ════════════════════════════════════════════════════════════════════════════
#  Position
# ════════════════════════════════════════════════════════════════════════════

def geocentric_coordinates(jd: float) -> tuple[float, float, float]:
    """
    Geocentric ecliptical coordinates of the Moon, mean equinox of date.

    Parameters
    ----------
    jd : float — Julian Ephemeris Day

    Returns
    -------
    (λ [deg, 0..360), β [deg], Δ [km])
    """
    T = julian_centuries(jd)
    Lp, D, M, Mp, F = _arguments(T)
    A1 = 119.75 + 131.849 * T
    A2 = 53.09 + 479264.290 * T
    A3 = 313.45 + 481266.484 * T
    fundamentals = np.array([D, M, Mp, F])

    args = np.deg2rad(_LON_DIST_TERMS[:, :4] @ fundamentals)
    E = _eccentricity_factors(_LON_DIST_TERMS[:, 1], T)
    sum_l = float(np.sum(_LON_DIST_TERMS[:, 4] * E * np.sin(args)))
    sum_r = float(np.sum(_LON_DIST_TERMS[:, 5] * E * np.cos(args)))

    args = np.deg2rad(_LAT_TERMS[:, :4] @ fundamentals)
    E = _eccentricity_factors(_LAT_TERMS[:, 1], T)
    sum_b = float(np.sum(_LAT_TERMS[:, 4] * E * np.sin(args)))

    # Venus, Jupiter and the flattening of the Earth
    sum_l += 3958 * sin_deg(A1) + 1962 * sin_deg(Lp - F) + 318 * sin_deg(A2)
    sum_b += (-2235 * sin_deg(Lp) + 382 * sin_deg(A3)
              + 175 * sin_deg(A1 - F) + 175 * sin_deg(A1 + F)
              + 127 * sin_deg(Lp - Mp) - 115 * sin_deg(Lp + Mp))

    lam = wrap_degrees(Lp + sum_l / 1e6)
    beta = sum_b / 1e6
    delta = MEAN_DISTANCE_KM + sum_r / 1000.0
    return lam, float(beta), float(delta)


def apparent_position(jd: float,
                      nutation_result: Optional[NutationResult] = None) -> EquatorialCoordinates:
    """Apparent geocentric right ascension and declination of the Moon."""
    if nutation_result is None:
        nutation_result = nutation(jd)
    lam, beta, _ = geocentric_coordinates(jd)
    ecliptical = EclipticalCoordinates(lam + nutation_result.delta_psi, beta)
    return ecliptical.to_equatorial(nutation_result.true_obliquity)


def horizontal_parallax(jd: float) -> float:
    """Equatorial horizontal parallax π [deg]."""
    return asin_deg(EARTH_RADIUS_KM / geocentric_coordinates(jd)[2])


def standard_altitude(jd: float) -> float:
    """Altitude h0 [deg] of the Moon's centre at rising and setting."""
    return 0.7275 * horizontal_parallax(jd) + H0_STAR


def apparent_diameter(jd: float) -> float:
    """Geocentric apparent diameter [arcsec]."""
    return 2.0 * SEMIDIAMETER_FACTOR / geocentric_coordinates(jd)[2]


# ════════════════════════════════════════════════════════════════════════════
#  Illumination
# ════════════════════════════════════════════════════════════════════════════

def phase_angle(jd: float) -> float:
    """
    Selenocentric elongation of the Earth from the Sun [deg] (Meeus ch. 48).

    0° at full Moon, 180° at new Moon.
    """
    nut = nutation(jd)
    moon = apparent_position(jd, nut)
    sol = sun.apparent_position(jd, nut)
    R = sun.earth_heliocentric(jd)[2] * AU_KM
    delta = geocentric_coordinates(jd)[2]

    a0, d0 = float(sol.ra) * 15.0, float(sol.declination)
    a, d = float(moon.ra) * 15.0, float(moon.declination)
    cos_psi = sin_deg(d0) * sin_deg(d) + cos_deg(d0) * cos_deg(d) * cos_deg(a0 - a)
    psi = np.arccos(np.clip(cos_psi, -1.0, 1.0))
    return float(np.rad2deg(np.arctan2(R * np.sin(psi), delta - R * np.cos(psi))))


def illuminated_fraction(jd: float) -> float:
    """Illuminated fraction of the disk [0..1]."""
    return float((1.0 + cos_deg(phase_angle(jd))) / 2.0)


# ════════════════════════════════════════════════════════════════════════════
#  Phases (Meeus ch. 49)
# ════════════════════════════════════════════════════════════════════════════

class MoonPhase(enum.Enum):
    """Principal phases, valued by their fraction of the lunation."""
    NEW = 0.0
    FIRST_QUARTER = 0.25
    FULL = 0.5
    LAST_QUARTER = 0.75


# coefficient, power of E, multipliers of M, M', F, Ω
_NEW_MOON_TERMS = np.array([
    [-0.40720, 0, 0, 1, 0, 0],
    [0.17241, 1, 1, 0, 0, 0],
    [0.01608, 0, 0, 2, 0, 0],
    [0.01039, 0, 0, 0, 2, 0],
    [0.00739, 1, -1, 1, 0, 0],
    [-0.00514, 1, 1, 1, 0, 0],
    [0.00208, 2, 2, 0, 0, 0],
    [-0.00111, 0, 0, 1, -2, 0],
    [-0.00057, 0, 0, 1, 2, 0],
    [0.00056, 1, 1, 2, 0, 0],
    [-0.00042, 0, 0, 3, 0, 0],
    [0.00042, 1, 1, 0, 2, 0],
    [0.00038, 1, 1, 0, -2, 0],
    [-0.00024, 1, -1, 2, 0, 0],
    [-0.00017, 0, 0, 0, 0, 1],
    [-0.00007, 0, 2, 1, 0, 0],
    [0.00004, 0, 0, 2, -2, 0],
    [0.00004, 0, 3, 0, 0, 0],
    [0.00003, 0, 1, 1, -2, 0],
    [0.00003, 0, 0, 2, 2, 0],
    [-0.00003, 0, 1, 1, 2, 0],
    [0.00003, 0, -1, 1, 2, 0],
    [-0.00002, 0, -1, 1, -2, 0],
    [-0.00002, 0, 1, 3, 0, 0],
    [0.00002, 0, 0, 4, 0, 0],
])

_FULL_MOON_TERMS = np.array([
    [-0.40614, 0, 0, 1, 0, 0],
    [0.17302, 1, 1, 0, 0, 0],
    [0.01614, 0, 0, 2, 0, 0],
    [0.01043, 0, 0, 0, 2, 0],
    [0.00734, 1, -1, 1, 0, 0],
    [-0.00515, 1, 1, 1, 0, 0],
    [0.00209, 2, 2, 0, 0, 0],
    [-0.00111, 0, 0, 1, -2, 0],
    [-0.00057, 0, 0, 1, 2, 0],
    [0.00056, 1, 1, 2, 0, 0],
    [-0.00042, 0, 0, 3, 0, 0],
    [0.00042, 1, 1, 0, 2, 0],
    [0.00038, 1, 1, 0, -2, 0],
    [-0.00024, 1, -1, 2, 0, 0],
    [-0.00017, 0, 0, 0, 0, 1],
    [-0.00007, 0, 2, 1, 0, 0],
    [0.00004, 0, 0, 2, -2, 0],
    [0.00004, 0, 3, 0, 0, 0],
    [0.00003, 0, 1, 1, -2, 0],
    [0.00003, 0, 0, 2, 2, 0],
    [-0.00003, 0, 1, 1, 2, 0],
    [0.00003, 0, -1, 1, 2, 0],
    [-0.00002, 0, -1, 1, -2, 0],
    [-0.00002, 0, 1, 3, 0, 0],
    [0.00002, 0, 0, 4, 0, 0],
])

_QUARTER_TERMS = np.array([
    [-0.62801, 0, 0, 1, 0, 0],
    [0.17172, 1, 1, 0, 0, 0],
    [-0.01183, 1, 1, 1, 0, 0],
    [0.00862, 0, 0, 2, 0, 0],
    [0.00804, 0, 0, 0, 2, 0],
    [0.00454, 1, -1, 1, 0, 0],
    [0.00204, 2, 2, 0, 0, 0],
    [-0.00180, 0, 0, 1, -2, 0],
    [-0.00070, 0, 0, 1, 2, 0],
    [-0.00040, 0, 0, 3, 0, 0],
    [-0.00034, 1, -1, 2, 0, 0],
    [0.00032, 1, 1, 0, 2, 0],
    [0.00032, 1, 1, 0, -2, 0],
    [-0.00028, 2, 2, 1, 0, 0],
    [0.00027, 1, 1, 2, 0, 0],
    [-0.00017, 0, 0, 0, 0, 1],
    [-0.00005, 0, -1, 1, -2, 0],
    [0.00004, 0, 0, 2, 2, 0],
    [-0.00004, 0, 1, 1, 2, 0],
    [0.00004, 0, -2, 1, 0, 0],
    [0.00003, 0, 1, 1, -2, 0],
    [0.00003, 0, 3, 0, 0, 0],
    [0.00002, 0, 0, 2, -2, 0],
    [0.00002, 0, -1, 1, 2, 0],
    [-0.00002, 0, 1, 3, 0, 0],
])

# Planetary arguments A1..A14: constant, rate per lunation, coefficient
_PLANETARY_TERMS = np.array([
    [299.77, 0.107408, 0.000325],
    [251.88, 0.016321, 0.000165],
    [251.83, 26.651886, 0.000164],
    [349.42, 36.412478, 0.000126],
    [84.66, 18.206239, 0.000110],
    [141.74, 53.303771, 0.000062],
    [207.14, 2.453732, 0.000060],
    [154.84, 7.306860, 0.000056],
    [34.52, 27.261239, 0.000047],
    [207.19, 0.121824, 0.000042],
    [291.34, 1.844379, 0.000040],
    [161.72, 24.198154, 0.000037],
    [239.56, 25.513099, 0.000035],
    [331.55, 3.592518, 0.000023],
])


def _periodic_correction(terms, E, M, Mp, F, omega) -> float:
    args = np.deg2rad(terms[:, 2:] @ np.array([M, Mp, F, omega]))
    return float(np.sum(terms[:, 0] * E ** terms[:, 1] * np.sin(args)))


def phase_jde(k: float) -> float:
    """
    Instant [JDE] of the lunar phase with lunation index *k*.

    ``k`` is an integer for a new Moon, and increased by 0.25, 0.50 or
    0.75 for first quarter, full Moon and last quarter; k = 0 is the new
    Moon of 2000 January 6.

    Raises
    ------
    InvalidInputError
        When *k* is not a multiple of 0.25.
    """
    fraction = round(k % 1.0, 6) % 1.0
    if fraction not in (0.0, 0.25, 0.5, 0.75):
        raise InvalidInputError(f"Lunation index must be a multiple of 0.25, got {k}")

    T = k / 1236.85
    jde = (NEW_MOON_EPOCH + SYNODIC_MONTH * k + 0.00015437 * T**2
           - 0.000000150 * T**3 + 0.00000000073 * T**4)

    E = 1.0 - 0.002516 * T - 0.0000074 * T**2
    M = 2.5534 + 29.10535670 * k - 0.0000014 * T**2 - 0.00000011 * T**3
    Mp = (201.5643 + 385.81693528 * k + 0.0107582 * T**2
          + 0.00001238 * T**3 - 0.000000058 * T**4)
    F = (160.7108 + 390.67050284 * k - 0.0016118 * T**2
         - 0.00000227 * T**3 + 0.000000011 * T**4)
    omega = 124.7746 - 1.56375588 * k + 0.0020672 * T**2 + 0.00000215 * T**3

    if fraction == 0.0:
        jde += _periodic_correction(_NEW_MOON_TERMS, E, M, Mp, F, omega)
    elif fraction == 0.5:
        jde += _periodic_correction(_FULL_MOON_TERMS, E, M, Mp, F, omega)
    else:
        jde += _periodic_correction(_QUARTER_TERMS, E, M, Mp, F, omega)
        W = (0.00306 - 0.00038 * E * cos_deg(M) + 0.00026 * cos_deg(Mp)
             - 0.00002 * cos_deg(Mp - M) + 0.00002 * cos_deg(Mp + M)
             + 0.00002 * cos_deg(2 * F))
        jde += W if fraction == 0.25 else -W

    A = _PLANETARY_TERMS[:, 0] + _PLANETARY_TERMS[:, 1] * k
    A[0] -= 0.009173 * T**2
    jde += float(np.sum(_PLANETARY_TERMS[:, 2] * np.sin(np.deg2rad(A))))
    return float(jde)


def next_phase(jd: float, phase: MoonPhase = MoonPhase.NEW) -> float:
    """First instant [JDE] of *phase* at or after *jd*."""
    k = np.floor((jd - NEW_MOON_EPOCH) / SYNODIC_MONTH) - 1 + phase.value
    jde = phase_jde(k)
    while jde < jd:
        k += 1
        jde = phase_jde(k)
    logger.debug("%s after JD %.5f: k=%.2f, JDE %.5f", phase.name, jd, k, jde)
    return jde


def previous_phase(jd: float, phase: MoonPhase = MoonPhase.NEW) -> float:
    """Last instant [JDE] of *phase* at or before *jd*."""
    k = np.floor((jd - NEW_MOON_EPOCH) / SYNODIC_MONTH) + 1 + phase.value
    jde = phase_jde(k)
    while jde > jd:
        k -= 1
        jde = phase_jde(k)
    return jde


def age_days(jd: float) -> float:
    """Days since the last new Moon."""
    return float(jd - previous_phase(jd, MoonPhase.NEW))


def phase_name(jd: float) -> str:
    """Human-readable lunar phase name."""
    age = age_days(jd)
    if age < 1.85:
        return "New Moon"
    elif age < 7.38:
        return "Waxing Crescent"
    elif age < 9.23:
        return "First Quarter"
    elif age < 14.77:
        return "Waxing Gibbous"
    elif age < 16.61:
        return "Full Moon"
    elif age < 22.15:
        return "Waning Gibbous"
    elif age < 23.99:
        return "Last Quarter"
    elif age < 27.68:
        return "Waning Crescent"
    else:
        return "New Moon"
