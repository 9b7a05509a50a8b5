"""
test_photometry.py — Sky brightness, surface brightness, contrast, magnitudes
=============================================================================
"""

import pytest

from skyephem import InvalidInputError
from skyephem.photometry import (
    nelm_to_sqm, sqm_to_nelm, nelm_to_bortle, sqm_to_bortle,
    bortle_to_nelm, bortle_to_sqm,
    surface_brightness, log_threshold_contrast, contrast_reserve, best_magnification,
    hg_magnitude, comet_magnitude,
)


# ═══════════════════════════════════════════════════════════════════════════
#  NELM, SQM and Bortle
# ═══════════════════════════════════════════════════════════════════════════

@pytest.mark.parametrize("nelm, sqm", [
    (3.0, 16.88), (4.0, 18.04), (4.5, 18.65), (5.0, 19.30), (5.5, 20.01),
    (5.8, 20.47), (6.0, 20.80), (6.2, 21.15), (6.4, 21.53), (6.5, 21.73),
    (6.6, 21.95),
])
def test_nelm_to_sqm(nelm, sqm):
    assert nelm_to_sqm(nelm) == pytest.approx(sqm, abs=0.01)


def test_nelm_to_sqm_caps_at_dark_sky():
    assert nelm_to_sqm(6.7) == 22.0
    assert nelm_to_sqm(7.95) == 22.0
    assert nelm_to_sqm(8.0) == 22.0


def test_nelm_to_sqm_field_star_offset():
    assert nelm_to_sqm(5.3, fst_offset=0.2) == pytest.approx(nelm_to_sqm(5.5))
    assert nelm_to_sqm(7.5, fst_offset=0.5) == 22.0


@pytest.mark.parametrize("nelm", [9.5, -2.0])
def test_nelm_out_of_range(nelm):
    with pytest.raises(InvalidInputError):
        nelm_to_sqm(nelm)
    with pytest.raises(InvalidInputError):
        nelm_to_bortle(nelm)


def test_sqm_to_nelm():
    assert sqm_to_nelm(22.0) == pytest.approx(6.66, abs=0.01)
    assert sqm_to_nelm(20.80) == pytest.approx(6.04, abs=0.01)
    # the two scales are offset by 0.04 mag against each other
    assert sqm_to_nelm(nelm_to_sqm(5.5)) == pytest.approx(5.54, abs=1e-9)


def test_sqm_to_nelm_floor():
    assert sqm_to_nelm(10.0) == 2.5
    assert sqm_to_nelm(10.0, fst_offset=0.3) == pytest.approx(2.2)


@pytest.mark.parametrize("sqm", [9.0, 22.5])
def test_sqm_out_of_range(sqm):
    with pytest.raises(InvalidInputError):
        sqm_to_nelm(sqm)
    with pytest.raises(InvalidInputError):
        sqm_to_bortle(sqm)


@pytest.mark.parametrize("nelm, bortle", [
    (2.0, 9), (3.7, 8), (4.0, 7), (4.5, 6), (5.0, 5), (6.0, 4), (6.35, 3), (6.45, 2), (6.7, 1),
])
def test_nelm_to_bortle(nelm, bortle):
    assert nelm_to_bortle(nelm) == bortle


@pytest.mark.parametrize("sqm, bortle", [
    (17.0, 9), (17.5, 9), (17.8, 8), (18.3, 7), (19.0, 6), (20.0, 5), (21.0, 4),
    (21.5, 3), (21.6, 2), (21.9, 1),
])
def test_sqm_to_bortle(sqm, bortle):
    assert sqm_to_bortle(sqm) == bortle


def test_bortle_lookups():
    assert bortle_to_nelm(1) == 6.6
    assert bortle_to_nelm(5, fst_offset=0.4) == pytest.approx(5.0)
    assert bortle_to_sqm(1) == 21.85
    assert bortle_to_sqm(9) == 17.5


@pytest.mark.parametrize("bortle", [0, 10, 2.5])
def test_bortle_out_of_range(bortle):
    with pytest.raises(InvalidInputError):
        bortle_to_nelm(bortle)
    with pytest.raises(InvalidInputError):
        bortle_to_sqm(bortle)


# ═══════════════════════════════════════════════════════════════════════════
#  Surface brightness and contrast reserve
# ═══════════════════════════════════════════════════════════════════════════

@pytest.mark.parametrize("magnitude, diameters, expected", [
    (15.0, (8220,), 34.3119),
    (8.0, (10800,), 27.9047),
    (14.82, (55.98, 27.48), 22.5252),
    (12.4, (72, 54), 21.1119),
    (7.4, (3.5,), 9.8579),
    (8.0, (17,), 13.8898),
    (18.3, (46.998,), 26.398),
    (11.0, (600,), 24.6283),
    (9.2, (540, 138), 21.1182),
])
def test_surface_brightness(magnitude, diameters, expected):
    assert surface_brightness(magnitude, *diameters) == pytest.approx(expected, abs=1e-3)


def test_surface_brightness_rejects_zero_size():
    with pytest.raises(InvalidInputError):
        surface_brightness(10.0, 0.0)


def test_threshold_contrast_grid_and_clamping():
    assert log_threshold_contrast(4.0, -0.2255) == pytest.approx(-0.3769)
    assert log_threshold_contrast(27.0, 2.5563) == pytest.approx(-0.4804)
    assert log_threshold_contrast(30.0, 5.0) == pytest.approx(-0.4804)
    assert log_threshold_contrast(2.0, -1.0) == pytest.approx(-0.3769)
    middle = log_threshold_contrast(4.5, -0.2255)
    assert middle == pytest.approx((-0.3769 + -0.3315) / 2.0)


def test_contrast_reserve_darker_sky_helps():
    sb = surface_brightness(9.2, 540, 138)
    dark = contrast_reserve(sb, 21.5, 200.0, 66.0, 540, 138)
    bright = contrast_reserve(sb, 18.0, 200.0, 66.0, 540, 138)
    assert dark > bright


def test_contrast_reserve_invalid_optics():
    with pytest.raises(InvalidInputError):
        contrast_reserve(21.0, 21.0, 0.0, 50.0, 60.0)
    with pytest.raises(InvalidInputError):
        contrast_reserve(21.0, 21.0, 200.0, -1.0, 60.0)


def test_best_magnification():
    sb = surface_brightness(9.2, 540, 138)
    candidates = [25.0, 66.0, 133.0, 250.0]
    magnification, reserve = best_magnification(sb, 21.5, 200.0, candidates, 540, 138)
    assert magnification in candidates
    assert reserve == pytest.approx(max(
        contrast_reserve(sb, 21.5, 200.0, m, 540, 138) for m in candidates))
    assert best_magnification(sb, 21.5, 200.0, [], 540, 138) == (None, None)


# ═══════════════════════════════════════════════════════════════════════════
#  Small-body magnitudes
# ═══════════════════════════════════════════════════════════════════════════

def test_hg_magnitude():
    assert hg_magnitude(7.0, 0.15, 2.0, 1.0, 30.0) == pytest.approx(9.80523, abs=1e-4)


def test_hg_magnitude_at_opposition():
    assert hg_magnitude(7.0, 0.15, 2.0, 1.0, 0.0) == pytest.approx(7.0 + 5 * 0.30103, abs=1e-4)


def test_comet_magnitude():
    assert comet_magnitude(5.0, 4.0, 2.0, 1.0) == pytest.approx(5.0 + 10 * 0.30103, abs=1e-4)
    # no slope at all defaults to n = 4
    assert comet_magnitude(5.0, None, 2.0, 1.0) == pytest.approx(8.0103, abs=1e-4)


def test_comet_magnitude_split_slopes():
    before = comet_magnitude(5.0, 4.0, 2.0, 1.0, n_pre=3.0, n_post=5.0,
                             after_perihelion=False)
    after = comet_magnitude(5.0, 4.0, 2.0, 1.0, n_pre=3.0, n_post=5.0,
                            after_perihelion=True)
    assert before == pytest.approx(5.0 + 7.5 * 0.30103, abs=1e-4)
    assert after == pytest.approx(5.0 + 12.5 * 0.30103, abs=1e-4)


def test_comet_magnitude_phase_term():
    assert comet_magnitude(5.0, 4.0, 2.0, 1.0, phase_angle=10.0, phase_coeff=0.03) == \
        pytest.approx(8.0103 + 0.3, abs=1e-4)
