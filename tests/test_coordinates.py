"""
test_coordinates.py — Coordinate frames, precession and angular relations
==========================================================================
"""

from datetime import datetime, timezone

import pytest

from skyephem import (
    CalendarDate, Coordinate, EquatorialCoordinates, EclipticalCoordinates,
    GalacticCoordinates, GeographicalCoordinates, HorizontalCoordinates,
    apparent_sidereal_time, InvalidInputError,
)
from skyephem.utils import wrap

UTC = timezone.utc

# Meeus example 13.b: US Naval Observatory, 1987 April 10, 19:21 UT
WASHINGTON = GeographicalCoordinates(-77.06555556, 38.92138889)
WASHINGTON_DATE = datetime(1987, 4, 10, 19, 21, tzinfo=UTC)
VENUS_1987 = EquatorialCoordinates(23.1546225, -6.7198917)

ARCTURUS = EquatorialCoordinates(14.2610277778, 19.1825)
SPICA = EquatorialCoordinates(13.4198888, -11.1614)
ALDEBARAN = EquatorialCoordinates(4.598677519444444, 16.509302361111111)
ANTARES = EquatorialCoordinates(16.490127694444444, -26.432002611111111)
CASTOR = EquatorialCoordinates(7.571222, 31.89756)
POLLUX = EquatorialCoordinates(7.750002778, 28.03681)


# ═══════════════════════════════════════════════════════════════════════════
#  Ranges and wrapping
# ═══════════════════════════════════════════════════════════════════════════

def test_coordinate_wraps():
    assert Coordinate(365.748) == pytest.approx(5.748)
    assert Coordinate(-1.748) == pytest.approx(358.252)
    assert Coordinate(95.42, -90.0, 90.0) == pytest.approx(-84.58)
    assert Coordinate(-95.42, -90.0, 90.0) == pytest.approx(84.58)


def test_coordinate_tiny_negative_stays_half_open():
    assert Coordinate(-1e-17) == 0.0
    assert Coordinate(-1e-17, 0.0, 24.0) == 0.0
    assert wrap(-1e-17, 0.0, 360.0) < 360.0


def test_coordinate_closed_keeps_maximum():
    assert Coordinate(90.0, -90.0, 90.0, closed=True) == 90.0
    assert Coordinate(90.0, -90.0, 90.0) == -90.0


def test_coordinate_strings():
    assert Coordinate(-5.5, -90.0, 90.0).to_degrees_string() == "-05°30'00\""
    assert Coordinate(12.5, -90.0, 90.0).to_short_degrees_string() == " 12°30'"
    assert Coordinate(13.75, 0.0, 24.0).to_hours_string() == "13h45m00s"
    assert Coordinate(13.75, 0.0, 24.0).to_short_hours_string() == "13h45m"


def test_ecliptical_wraps():
    coords = EclipticalCoordinates(365.748, 95.42)
    assert coords.longitude == pytest.approx(5.748)
    assert coords.latitude == pytest.approx(-84.58)
    coords = EclipticalCoordinates(-1.748, -95.42)
    assert coords.longitude == pytest.approx(358.252)
    assert coords.latitude == pytest.approx(84.58)


@pytest.mark.parametrize("longitude, latitude", [
    (10.0, 95.42), (10.0, -95.42), (195.748, 10.0), (-195.748, 10.0),
])
def test_geographical_out_of_range(longitude, latitude):
    with pytest.raises(InvalidInputError):
        GeographicalCoordinates(longitude, latitude)


@pytest.mark.parametrize("ra, declination", [
    (25.748, 10.0), (-1.748, 10.0), (10.0, 95.42), (10.0, -95.42),
])
def test_equatorial_out_of_range(ra, declination):
    with pytest.raises(InvalidInputError):
        EquatorialCoordinates(ra, declination)


def test_equatorial_from_unwrapped():
    coords = EquatorialCoordinates.from_unwrapped(25.5, 12.0)
    assert coords.ra == pytest.approx(1.5)
    assert coords.declination == pytest.approx(12.0)


def test_geographical_accepts_limits():
    geo = GeographicalCoordinates(180.0, -90.0)
    assert geo.longitude == 180.0
    assert geo.latitude == -90.0


# ═══════════════════════════════════════════════════════════════════════════
#  Frame conversions
# ═══════════════════════════════════════════════════════════════════════════

def test_equatorial_to_ecliptical():
    ecl = EquatorialCoordinates(7.7552628, 28.026183).to_ecliptical()
    assert ecl.longitude == pytest.approx(113.215630, abs=1e-5)
    assert ecl.latitude == pytest.approx(6.684170, abs=1e-5)


def test_ecliptical_to_equatorial():
    eq = EclipticalCoordinates(113.215630, 6.684170).to_equatorial()
    assert eq.ra == pytest.approx(7.7552628, abs=1e-5)
    assert eq.declination == pytest.approx(28.026183, abs=1e-5)


def test_b1950_obliquity_shortcuts():
    pollux = EquatorialCoordinates(7.7552628, 28.026183)
    ecl = pollux.to_ecliptical_b1950()
    assert float(ecl.latitude) != pytest.approx(6.684170, abs=1e-4)
    back = ecl.to_equatorial_b1950()
    assert back.ra == pytest.approx(7.7552628, abs=1e-9)
    assert back.declination == pytest.approx(28.026183, abs=1e-9)


def test_earths_globe_palomar():
    palomar = GeographicalCoordinates(-116.8625, 33.356111)
    rho_sin_phi, rho_cos_phi = palomar.earths_globe(1706.0)
    assert rho_sin_phi == pytest.approx(0.546861, abs=1e-6)
    assert rho_cos_phi == pytest.approx(0.836339, abs=1e-6)


def test_hour_angle():
    lst = apparent_sidereal_time(WASHINGTON_DATE, WASHINGTON)
    assert VENUS_1987.hour_angle(lst) == pytest.approx(64.351995, abs=1e-5)


def test_equatorial_to_horizontal():
    lst = apparent_sidereal_time(WASHINGTON_DATE, WASHINGTON)
    hor = VENUS_1987.to_horizontal(WASHINGTON, lst)
    assert hor.azimuth == pytest.approx(68.0336, abs=1e-4)
    assert hor.altitude == pytest.approx(15.1249, abs=1e-4)


def test_horizontal_to_equatorial():
    lst = apparent_sidereal_time(WASHINGTON_DATE, WASHINGTON)
    eq = HorizontalCoordinates(68.0336, 15.1249).to_equatorial(WASHINGTON, lst)
    assert eq.ra == pytest.approx(23.1546225, abs=1e-4)
    assert eq.declination == pytest.approx(-6.7198917, abs=1e-4)


def test_equatorial_to_galactic():
    gal = VENUS_1987.to_galactic()
    assert gal.longitude == pytest.approx(68.34653864, abs=1e-4)
    assert gal.latitude == pytest.approx(-58.30545704, abs=1e-4)


def test_galactic_to_equatorial():
    eq = GalacticCoordinates(68.34653864, -58.30545704).to_equatorial()
    assert eq.ra == pytest.approx(23.1546225, abs=1e-4)
    assert eq.declination == pytest.approx(-6.7198917, abs=1e-4)


def test_parallactic_angle_on_meridian():
    geo = GeographicalCoordinates(12.12, 45.12)
    coords = EquatorialCoordinates(5.0, 20.0)
    assert coords.parallactic_angle(geo, 5.0) == pytest.approx(0.0, abs=1e-9)
    assert coords.parallactic_angle(geo, 7.0) > 0.0
    assert coords.parallactic_angle(geo, 3.0) < 0.0


def test_refraction():
    assert HorizontalCoordinates(0.0, 0.0).refraction_from_apparent_altitude() == \
        pytest.approx(34.48, abs=0.1)
    assert HorizontalCoordinates(0.0, 90.0).refraction_from_true_altitude() == \
        pytest.approx(0.0, abs=0.01)


def test_topocentric_moves_south_in_north():
    geo = GeographicalCoordinates(4.86463, 50.83220)
    moon = EquatorialCoordinates(6.0, 20.0)
    topo = moon.topocentric(0.00257, geo, 100.0, 6.0)
    assert float(topo.declination) < 20.0
    assert topo.ra == pytest.approx(6.0, abs=1e-6)


# ═══════════════════════════════════════════════════════════════════════════
#  Angular relations
# ═══════════════════════════════════════════════════════════════════════════

def test_angular_separation():
    assert ARCTURUS.angular_separation(SPICA) == pytest.approx(32.7930, abs=1e-4)
    assert ALDEBARAN.angular_separation(ANTARES) == pytest.approx(169.9627, abs=1e-4)


def test_angular_separation_is_symmetric():
    assert SPICA.angular_separation(ARCTURUS) == \
        pytest.approx(float(ARCTURUS.angular_separation(SPICA)))


def test_angular_separation_close_pair():
    first = EquatorialCoordinates(10.0, 30.0)
    second = EquatorialCoordinates(10.0, 30.01)
    assert first.angular_separation(second) == pytest.approx(0.01, abs=1e-9)


def test_straight_line():
    assert not CASTOR.is_in_straight_line(
        POLLUX, EquatorialCoordinates(7.97293055, 21.58983))
    assert CASTOR.is_in_straight_line(
        POLLUX, EquatorialCoordinates(8.022644129, 21.472188347))


def test_deviation_from_straight_line():
    mintaka = EquatorialCoordinates(5.5334444, -0.29913888)
    alnitak = EquatorialCoordinates(5.679311111, -1.94258333)
    alnilam = EquatorialCoordinates(5.60355833, -1.20194444)
    assert alnilam.deviation_from_straight_line(mintaka, alnitak) == \
        pytest.approx(0.089876, abs=1e-3)

    polaris = EquatorialCoordinates(2.530195556, 89.26408889)
    dubhe = EquatorialCoordinates(11.062129444, 61.750894444)
    merak = EquatorialCoordinates(11.030689444, 56.3824027778)
    assert polaris.deviation_from_straight_line(dubhe, merak) == \
        pytest.approx(1.91853, abs=1e-4)


def test_smallest_circle():
    first = EquatorialCoordinates(12.6857305, -5.631722)
    second = EquatorialCoordinates(12.8681138, -4.373944)
    third = EquatorialCoordinates(12.6578083, -1.834361)
    assert first.smallest_circle(second, third) == pytest.approx(4.26364, abs=1e-4)

    first = EquatorialCoordinates(9.094844, 18.50833)
    second = EquatorialCoordinates(9.1580556, 17.732416)
    third = EquatorialCoordinates(8.9964278, 17.826889)
    assert first.smallest_circle(second, third) == pytest.approx(2.31053754, abs=1e-4)


# ═══════════════════════════════════════════════════════════════════════════
#  Precession and apparent place
# ═══════════════════════════════════════════════════════════════════════════

THETA_PERSEI = EquatorialCoordinates(2.736662778, 49.22846667, 2000.0, 0.03425, -0.0895)
POLARIS = EquatorialCoordinates(2.530195556, 89.26408889, 2000.0, 0.19877, -0.0152)


def test_precession_low_accuracy():
    regulus = EquatorialCoordinates(10.13952778, 11.967222, 2000.0, -0.0169, 0.006)
    precessed = regulus.precession(datetime(1978, 1, 1, tzinfo=UTC))
    assert precessed.ra == pytest.approx(10.12002778, abs=1e-4)
    assert precessed.declination == pytest.approx(12.075416, abs=1e-4)
    assert precessed.epoch == pytest.approx(1978.0)


def test_precession_high_accuracy():
    precessed = THETA_PERSEI.precession_high_accuracy(
        datetime(2028, 11, 13, 4, 33, 36, tzinfo=UTC))
    assert precessed.ra == pytest.approx(2.7698141667, abs=1e-5)
    assert precessed.declination == pytest.approx(49.34848333, abs=1e-5)


@pytest.mark.parametrize("date, ra, declination", [
    (datetime(1900, 1, 1, tzinfo=UTC), 1.376083333, 88.77393889),
    (datetime(2050, 1, 1, 12, tzinfo=UTC), 3.8046089, 89.45427222),
    (datetime(2100, 1, 1, 12, tzinfo=UTC), 5.891436111, 89.539494444),
])
def test_precession_high_accuracy_polaris(date, ra, declination):
    precessed = POLARIS.precession_high_accuracy(date)
    assert precessed.ra == pytest.approx(ra, abs=1e-3)
    assert precessed.declination == pytest.approx(declination, abs=1e-4)


def test_apparent_place():
    apparent = THETA_PERSEI.apparent_place(datetime(2028, 11, 13, 4, 33, 36, tzinfo=UTC))
    assert apparent.ra == pytest.approx(2.7706643, abs=1e-4)
    assert apparent.declination == pytest.approx(49.3520685, abs=1e-3)


def test_ecliptical_precession():
    venus = EclipticalCoordinates(149.48194, 1.76549, 2000.0)
    precessed = venus.precession_high_accuracy(CalendarDate(-214, 6, 30))
    assert precessed.longitude == pytest.approx(118.704, abs=1e-3)
    assert precessed.latitude == pytest.approx(1.615, abs=1e-3)
