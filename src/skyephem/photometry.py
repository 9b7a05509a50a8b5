"""
skyephem.photometry — Sky Brightness, Surface Brightness and Magnitudes
========================================================================

Pure formulas that turn geometry into visibility figures.

Capabilities
------------
- Naked-eye limiting magnitude (NELM) ⇄ sky quality meter (SQM) ⇄ Bortle
- Surface brightness of extended objects
- Contrast reserve of an object against the sky in a telescope, and the
  magnification that maximizes it
- H-G magnitudes of asteroids and H-n magnitudes of comets

Reference
---------
Clark, R.N. *Visual Astronomy of the Deep Sky*, 1990, ch. 3 (threshold
contrast table).
Meeus, J. *Astronomical Algorithms*, 2nd ed., chapter 33 (H-G system).
"""

from typing import Iterable, Optional

import numpy as np

from .errors import InvalidInputError

# ── Conversion constants ────────────────────────────────────────────────────
SQM_MAX = 22.0
SQM_MIN = 10.0
NELM_MAX = 8.0
NELM_MIN = 0.0
NELM_FLOOR = 2.5
EYE_PUPIL_MM = 7.5

# Upper NELM bound (exclusive) of Bortle classes 9..2
_NELM_BORTLE_LIMITS = ((3.6, 9), (3.9, 8), (4.4, 7), (4.9, 6),
                       (5.8, 5), (6.3, 4), (6.4, 3), (6.5, 2))
# Upper SQM bound (inclusive) of Bortle classes 9..2
_SQM_BORTLE_LIMITS = ((17.5, 9), (18.0, 8), (18.5, 7), (19.1, 6),
                      (20.4, 5), (21.3, 4), (21.5, 3), (21.7, 2))
_BORTLE_NELM = {1: 6.6, 2: 6.5, 3: 6.4, 4: 6.1, 5: 5.4,
                6: 4.7, 7: 4.2, 8: 3.8, 9: 3.6}
_BORTLE_SQM = {1: 21.85, 2: 21.6, 3: 21.4, 4: 20.85, 5: 19.75,
               6: 18.8, 7: 18.25, 8: 17.75, 9: 17.5}


def _check_nelm(nelm):
    if not NELM_MIN <= nelm <= NELM_MAX:
        raise InvalidInputError(
            f"Naked eye limiting magnitude must be in [{NELM_MIN}, {NELM_MAX}], got {nelm}"
        )


def _check_sqm(sqm):
    if not SQM_MIN <= sqm <= SQM_MAX:
        raise InvalidInputError(f"SQM must be in [{SQM_MIN}, {SQM_MAX}], got {sqm}")


def _check_bortle(bortle):
    if bortle not in _BORTLE_NELM:
        raise InvalidInputError(f"Bortle class must be an integer 1..9, got {bortle}")


# ════════════════════════════════════════════════════════════════════════════
#  Sky brightness scales
# ════════════════════════════════════════════════════════════════════════════

def nelm_to_sqm(nelm: float, fst_offset: float = 0.0) -> float:
    """Sky brightness [mag/arcsec²] for a naked-eye limiting magnitude.

    Parameters
    ----------
    nelm : float — 0..8
    fst_offset : float — observer's field-star-threshold offset [mag]

    Returns
    -------
    sqm : float — capped at 22.0
    """
    _check_nelm(nelm)
    excess = 10.0 ** (1.586 - (nelm + fst_offset) / 5.0) - 1.0
    # past about 7.93 the sky term vanishes
    if excess <= 0.0:
        return SQM_MAX
    sqm = 21.58 - 5.0 * np.log10(excess)
    return float(min(sqm, SQM_MAX))


def nelm_to_bortle(nelm: float) -> int:
    _check_nelm(nelm)
    for limit, bortle in _NELM_BORTLE_LIMITS:
        if nelm < limit:
            return bortle
    return 1


def sqm_to_bortle(sqm: float) -> int:
    _check_sqm(sqm)
    for limit, bortle in _SQM_BORTLE_LIMITS:
        if sqm <= limit:
            return bortle
    return 1


def sqm_to_nelm(sqm: float, fst_offset: float = 0.0) -> float:
    """Naked-eye limiting magnitude for a sky brightness; never below 2.5
    before the field-star-threshold offset is applied."""
    _check_sqm(sqm)
    nelm = 7.97 - 5.0 * np.log10(1.0 + 10.0 ** (4.316 - sqm / 5.0))
    return float(max(nelm, NELM_FLOOR) - fst_offset)


def bortle_to_nelm(bortle: int, fst_offset: float = 0.0) -> float:
    _check_bortle(bortle)
    return _BORTLE_NELM[bortle] - fst_offset


def bortle_to_sqm(bortle: int) -> float:
    _check_bortle(bortle)
    return _BORTLE_SQM[bortle]


# ════════════════════════════════════════════════════════════════════════════
#  Surface brightness and contrast reserve
# ════════════════════════════════════════════════════════════════════════════

def surface_brightness(magnitude: float, diameter1: float,
                       diameter2: Optional[float] = None) -> float:
    """
    Mean surface brightness [mag/arcsec²] of an elliptical object.

    Parameters
    ----------
    magnitude : float — integrated magnitude
    diameter1, diameter2 : float — major and minor diameter [arcsec];
        a round object when *diameter2* is omitted
    """
    if diameter2 is None:
        diameter2 = diameter1
    if diameter1 <= 0 or diameter2 <= 0:
        raise InvalidInputError(
            f"Diameters must be positive, got {diameter1} and {diameter2}"
        )
    d1, d2 = diameter1 / 60.0, diameter2 / 60.0
    return float(magnitude + 2.5 * np.log10(2827.0 * d1 * d2))


# Log threshold contrast against background brightness (rows, 4..27
# mag/arcsec²) and log apparent size (columns) [log10 arcmin]
_LTC_ANGLES = np.array([-0.2255, 0.5563, 0.9859, 1.2601, 1.7419, 2.0828, 2.5563])
_LTC_BRIGHTNESS = np.arange(4.0, 28.0)
_LTC = np.array([
    [-0.3769, -1.8064, -2.3368, -2.4601, -2.5469, -2.5610, -2.5660],
    [-0.3315, -1.7747, -2.3337, -2.4608, -2.5465, -2.5607, -2.5658],
    [-0.2682, -1.7345, -2.3310, -2.4605, -2.5467, -2.5608, -2.5658],
    [-0.1982, -1.6851, -2.3140, -2.4572, -2.5481, -2.5615, -2.5665],
    [-0.1238, -1.6252, -2.2791, -2.4462, -2.5463, -2.5605, -2.5657],
    [-0.0424, -1.5531, -2.2297, -2.4214, -2.5383, -2.5576, -2.5640],
    [0.0498, -1.4688, -2.1637, -2.3821, -2.5217, -2.5470, -2.5578],
    [0.1613, -1.3717, -2.0874, -2.3297, -2.4912, -2.5276, -2.5425],
    [0.3020, -1.2610, -2.0003, -2.2631, -2.4477, -2.4960, -2.5149],
    [0.4763, -1.1409, -1.9035, -2.1867, -2.3918, -2.4535, -2.4752],
    [0.6794, -1.0070, -1.7951, -2.0951, -2.3182, -2.3935, -2.4190],
    [0.9066, -0.8581, -1.6785, -1.9913, -2.2274, -2.3190, -2.3520],
    [1.1470, -0.6953, -1.5478, -1.8667, -2.1136, -2.2194, -2.2617],
    [1.3941, -0.5233, -1.3976, -1.7251, -1.9831, -2.0998, -2.1538],
    [1.6439, -0.3418, -1.2314, -1.5665, -1.8344, -1.9611, -2.0286],
    [1.8965, -0.1489, -1.0525, -1.3943, -1.6719, -1.8079, -1.8869],
    [2.1459, 0.0493, -0.8642, -1.2125, -1.4985, -1.6438, -1.7314],
    [2.3952, 0.2538, -0.6718, -1.0241, -1.3170, -1.4720, -1.5662],
    [2.6455, 0.4627, -0.4756, -0.8317, -1.1290, -1.2934, -1.3936],
    [2.8956, 0.6746, -0.2767, -0.6365, -0.9378, -1.1093, -1.2155],
    [3.1459, 0.8874, -0.0767, -0.4398, -0.7449, -0.9225, -1.0349],
    [3.3962, 1.1007, 0.1241, -0.2428, -0.5506, -0.7341, -0.8511],
    [3.6462, 1.3144, 0.3261, -0.0449, -0.3560, -0.5446, -0.6664],
    [3.8964, 1.5284, 0.5285, 0.1537, -0.1606, -0.3543, -0.4804],
])


def log_threshold_contrast(background: float, log_angle: float) -> float:
    """Bilinear lookup in the threshold contrast table; both arguments are
    clamped to the table edges."""
    background = float(np.clip(background, _LTC_BRIGHTNESS[0], _LTC_BRIGHTNESS[-1]))
    log_angle = float(np.clip(log_angle, _LTC_ANGLES[0], _LTC_ANGLES[-1]))

    row = min(int(background - _LTC_BRIGHTNESS[0]), len(_LTC_BRIGHTNESS) - 2)
    col = min(int(np.searchsorted(_LTC_ANGLES, log_angle, side="right")) - 1,
              len(_LTC_ANGLES) - 2)
    fy = background - _LTC_BRIGHTNESS[row]
    fx = (log_angle - _LTC_ANGLES[col]) / (_LTC_ANGLES[col + 1] - _LTC_ANGLES[col])

    lower = (1 - fx) * _LTC[row, col] + fx * _LTC[row, col + 1]
    upper = (1 - fx) * _LTC[row + 1, col] + fx * _LTC[row + 1, col + 1]
    return float((1 - fy) * lower + fy * upper)


def contrast_reserve(object_sb: float, sky_sqm: float, aperture_mm: float,
                     magnification: float, diameter1: float,
                     diameter2: Optional[float] = None) -> float:
    """
    Contrast reserve [log10] of an extended object in a telescope.

    Positive values mean the object should be visible; the larger the
    value, the easier the detection.

    Parameters
    ----------
    object_sb : float — object surface brightness [mag/arcsec²]
    sky_sqm : float — sky brightness [mag/arcsec²]
    aperture_mm : float — telescope aperture
    magnification : float
    diameter1, diameter2 : float — object diameters [arcsec]
    """
    if aperture_mm <= 0 or magnification <= 0:
        raise InvalidInputError(
            f"Aperture and magnification must be positive, got "
            f"{aperture_mm} and {magnification}"
        )
    if diameter2 is None:
        diameter2 = diameter1

    log_object_contrast = -0.4 * (object_sb - sky_sqm)

    # the magnified sky dims with the exit pupil once it is narrower than the eye's
    exit_pupil = min(aperture_mm / magnification, EYE_PUPIL_MM)
    background = sky_sqm + 5.0 * np.log10(EYE_PUPIL_MM / exit_pupil)

    apparent_arcmin = min(diameter1, diameter2) / 60.0 * magnification
    log_angle = np.log10(apparent_arcmin)

    return float(log_object_contrast - log_threshold_contrast(background, log_angle))


def best_magnification(object_sb: float, sky_sqm: float, aperture_mm: float,
                       magnifications: Iterable[float], diameter1: float,
                       diameter2: Optional[float] = None) -> tuple[Optional[float], Optional[float]]:
    """(magnification, contrast reserve) of the candidate with the highest
    reserve; ``(None, None)`` without candidates."""
    best = (None, None)
    for magnification in magnifications:
        reserve = contrast_reserve(object_sb, sky_sqm, aperture_mm, magnification,
                                   diameter1, diameter2)
        if best[1] is None or reserve > best[1]:
            best = (float(magnification), reserve)
    return best


# ════════════════════════════════════════════════════════════════════════════
#  Small-body magnitudes
# ════════════════════════════════════════════════════════════════════════════

def hg_magnitude(H: float, G: float, r: float, delta: float,
                 phase_angle: float) -> float:
    """Asteroid magnitude in the H-G system (Meeus 33.14).

    Parameters
    ----------
    H, G : float — absolute magnitude and slope parameter
    r, delta : float — heliocentric and geocentric distance [AU]
    phase_angle : float — Sun–asteroid–Earth angle [deg]
    """
    half = np.tan(np.deg2rad(phase_angle) / 2.0)
    phi1 = np.exp(-3.33 * half ** 0.63)
    phi2 = np.exp(-1.87 * half ** 1.22)
    return float(H + 5.0 * np.log10(r * delta)
                 - 2.5 * np.log10((1.0 - G) * phi1 + G * phi2))


def comet_magnitude(H: float, n: Optional[float], r: float, delta: float,
                    phase_angle: Optional[float] = None,
                    phase_coeff: Optional[float] = None,
                    n_pre: Optional[float] = None, n_post: Optional[float] = None,
                    after_perihelion: bool = False) -> float:
    """
    Total magnitude of a comet, ``H + 5 log Δ + 2.5 n log r``.

    A separate slope before or after perihelion replaces *n* on its side
    of the perihelion passage; n = 4 when no slope is known at all.  With
    a phase coefficient [mag/deg] and a
    phase angle, a linear phase term is added.
    """
    slope = n_post if after_perihelion else n_pre
    if slope is None:
        slope = n
    if slope is None:
        slope = 4.0
    m = H + 5.0 * np.log10(delta) + 2.5 * slope * np.log10(r)
    if phase_coeff is not None and phase_angle is not None:
        m += phase_coeff * phase_angle
    return float(m)
