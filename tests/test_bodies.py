"""
test_bodies.py — Sun, Moon and planets
======================================

Reference values from Meeus, *Astronomical Algorithms*, chapters 25, 26,
28, 29, 31, 33, 41, 47, 48 and 49.
"""

import pytest

from skyephem import MoonPhase, Planet, Earth, PLANET_NAMES, InvalidInputError, mean_obliquity
from skyephem import moon, sun
from skyephem.planets import mean_elements

JDE_1992_10_13 = 2448908.5    # Sun examples
JDE_1992_04_12 = 2448724.5    # Moon example
JDE_1992_12_20 = 2448976.5    # Venus example


# ═══════════════════════════════════════════════════════════════════════════
#  Sun
# ═══════════════════════════════════════════════════════════════════════════

def test_sun_low_accuracy_apparent():
    coords = sun.low_accuracy_position(JDE_1992_10_13,
                                       obliquity=mean_obliquity(JDE_1992_10_13),
                                       apparent=True)
    assert coords.ra == pytest.approx(198.38083 / 15.0, abs=2e-5)
    assert coords.declination == pytest.approx(-7.78507, abs=1e-4)


def test_sun_low_accuracy_default_obliquity():
    coords = sun.low_accuracy_position(JDE_1992_10_13)
    assert coords.ra == pytest.approx(13.225445021, abs=1e-5)
    assert coords.declination == pytest.approx(-7.785469, abs=1e-5)


def test_sun_low_accuracy_distance():
    assert sun.low_accuracy_distance(JDE_1992_10_13) == pytest.approx(0.99766, abs=1e-4)


def test_sun_high_accuracy():
    coords = sun.apparent_position(JDE_1992_10_13)
    assert coords.ra == pytest.approx(13.22521187, abs=1e-5)
    assert coords.declination == pytest.approx(-7.783871, abs=1e-5)


def test_earth_heliocentric():
    L, B, R = sun.earth_heliocentric(JDE_1992_10_13)
    assert L == pytest.approx(19.907372, abs=1e-5)
    assert B == pytest.approx(-0.000179, abs=1e-5)
    assert R == pytest.approx(0.99760775, abs=1e-7)


def test_sun_rectangular_of_date():
    xyz = sun.geometric_rectangular(JDE_1992_10_13)
    assert xyz.x == pytest.approx(-0.9379952, abs=1e-6)
    assert xyz.y == pytest.approx(-0.3116544, abs=1e-6)
    assert xyz.z == pytest.approx(-0.1351215, abs=1e-6)


def test_sun_rectangular_j2000():
    xyz = sun.geometric_rectangular_j2000(JDE_1992_10_13)
    assert xyz.x == pytest.approx(-0.93739590, abs=1e-6)
    assert xyz.y == pytest.approx(-0.31316793, abs=1e-6)
    assert xyz.z == pytest.approx(-0.13577924, abs=1e-6)
    assert xyz.norm() == pytest.approx(0.99760775, abs=1e-6)


def test_equation_of_time():
    assert sun.equation_of_time(JDE_1992_10_13) == pytest.approx(13.709, abs=1e-3)


def test_sun_physical_ephemeris():
    disk = sun.physical_ephemeris(JDE_1992_10_13)
    assert disk.P == pytest.approx(26.27, abs=0.01)
    assert disk.B0 == pytest.approx(5.99, abs=0.01)
    assert disk.L0 == pytest.approx(238.63, abs=0.01)


def test_sun_diameter():
    assert sun.apparent_diameter(JDE_1992_10_13) == pytest.approx(1923.9, abs=0.1)


# ═══════════════════════════════════════════════════════════════════════════
#  Moon
# ═══════════════════════════════════════════════════════════════════════════

def test_moon_geocentric():
    lam, beta, delta = moon.geocentric_coordinates(JDE_1992_04_12)
    assert lam == pytest.approx(133.162655, abs=1e-5)
    assert beta == pytest.approx(-3.229126, abs=1e-5)
    assert delta == pytest.approx(368409.7, abs=0.1)


def test_moon_apparent_position():
    coords = moon.apparent_position(JDE_1992_04_12)
    assert coords.ra == pytest.approx(134.688470 / 15.0, abs=1e-5)
    assert coords.declination == pytest.approx(13.768368, abs=1e-5)


def test_moon_parallax_and_size():
    assert moon.horizontal_parallax(JDE_1992_04_12) == pytest.approx(0.991990, abs=1e-6)
    assert moon.standard_altitude(JDE_1992_04_12) == pytest.approx(
        0.7275 * 0.991990 - 0.5667, abs=1e-5)
    assert moon.apparent_diameter(JDE_1992_04_12) == pytest.approx(
        2 * 358_473_400.0 / 368409.7, abs=0.05)


def test_moon_illuminated_fraction():
    assert moon.illuminated_fraction(JDE_1992_04_12) == pytest.approx(0.6786, abs=1e-3)


def test_new_moon():
    assert moon.phase_jde(-283) == pytest.approx(2443192.65118, abs=1e-5)


def test_last_quarter():
    assert moon.phase_jde(544.75) == pytest.approx(2467636.49186, abs=1e-4)


def test_phase_index_must_be_quarter():
    with pytest.raises(InvalidInputError):
        moon.phase_jde(0.3)


def test_next_and_previous_phase():
    assert moon.next_phase(2443190.0, MoonPhase.NEW) == pytest.approx(2443192.65118, abs=1e-5)
    assert moon.previous_phase(2443195.0, MoonPhase.NEW) == \
        pytest.approx(2443192.65118, abs=1e-5)
    full = moon.next_phase(2443192.65118, MoonPhase.FULL)
    assert 13.0 < full - 2443192.65118 < 16.5


def test_moon_age_and_name():
    assert moon.age_days(2443192.65118 + 3.0) == pytest.approx(3.0, abs=1e-5)
    assert moon.phase_name(2443192.65118 + 3.0) == "Waxing Crescent"
    assert moon.phase_name(2443192.65118 + 0.5) == "New Moon"


# ═══════════════════════════════════════════════════════════════════════════
#  Planets
# ═══════════════════════════════════════════════════════════════════════════

def test_mercury_mean_elements():
    el = mean_elements("mercury", 2475460.5)
    assert el.L == pytest.approx(203.494701, abs=1e-5)
    assert el.a == pytest.approx(0.387098310, abs=1e-9)
    assert el.e == pytest.approx(0.205645097, abs=1e-8)
    assert el.i == pytest.approx(7.006171, abs=1e-5)
    assert el.node == pytest.approx(49.107650, abs=1e-5)
    assert el.perihelion == pytest.approx(78.475382, abs=1e-5)


def test_venus_heliocentric():
    l, b, r = Planet("venus").heliocentric_coordinates(JDE_1992_12_20)
    assert l == pytest.approx(26.11428, abs=0.01)
    assert b == pytest.approx(-2.62070, abs=0.01)
    assert r == pytest.approx(0.724603, abs=1e-4)


def test_venus_apparent_position():
    coords = Planet("Venus").apparent_position(JDE_1992_12_20)
    assert coords.ra == pytest.approx(21.078182, abs=1e-3)
    assert coords.declination == pytest.approx(-18.888011, abs=1e-2)


def test_venus_disk():
    venus = Planet("venus")
    assert venus.illuminated_fraction(JDE_1992_12_20) == pytest.approx(0.647, abs=0.005)
    assert venus.apparent_diameter(JDE_1992_12_20) == pytest.approx(18.46, abs=0.05)


def test_all_planets_have_positions():
    for name in PLANET_NAMES:
        coords = Planet(name).apparent_position(JDE_1992_12_20)
        assert 0.0 <= float(coords.ra) < 24.0
        assert -30.0 < float(coords.declination) < 30.0


def test_unknown_planet():
    with pytest.raises(InvalidInputError):
        Planet("pluto")
    with pytest.raises(InvalidInputError):
        Planet("earth")


def test_earth_contract():
    L, B, R = Earth().heliocentric_coordinates(JDE_1992_10_13)
    assert (L, B, R) == sun.earth_heliocentric(JDE_1992_10_13)
    assert Earth().mean_elements(JDE_1992_10_13).a == pytest.approx(1.000001018, abs=1e-8)
