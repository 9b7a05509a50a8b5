"""
test_target.py — Rise/transit/set, night windows and observing times
====================================================================

Venus at Boston on 1988 March 20 is Meeus example 15.a; the remaining
cases are fixed objects and Venus seen from Belgium.
"""

from datetime import datetime, timedelta, timezone

import pytest

from skyephem import (
    ALWAYS_DOWN, ALWAYS_UP, CalendarDate, EllipticalOrbit, EquatorialCoordinates,
    EphemerisMode, EphemerisNotCalculatedError, GeographicalCoordinates,
    InvalidInputError, NightWindow, ObserverConfig, OrbitalElements,
    RiseTransitSetSolver, SunNightWindowProvider, Target, TimeSystem, julian_day,
)

UTC = timezone.utc

BOSTON = GeographicalCoordinates(-71.0833, 42.3333)
BOSTON_DATE = datetime(1988, 3, 20, tzinfo=UTC)
BELGIUM = GeographicalCoordinates(4.86463, 50.83220)
SVALBARD = GeographicalCoordinates(15.6, 78.0)


def utc(*args):
    return datetime(*args, tzinfo=UTC)


def assert_close_in_time(actual, expected, seconds=2):
    assert actual is not None
    assert abs((actual - expected).total_seconds()) <= seconds


def night_window(astronomical, nautical=None):
    """A window in which sunrise and civil twilight mirror nautical twilight."""
    if nautical is None:
        nautical = astronomical
    return NightWindow(
        sunrise=nautical[0], sunset=nautical[1],
        civil_twilight_begin=nautical[0], civil_twilight_end=nautical[1],
        nautical_twilight_begin=nautical[0], nautical_twilight_end=nautical[1],
        astronomical_twilight_begin=astronomical[0],
        astronomical_twilight_end=astronomical[1],
    )


class FixedNight:
    """Night window provider returning the same window for every date."""

    def __init__(self, window):
        self.window = window
        self.calls = []

    def night_window(self, when, geo):
        self.calls.append((when, geo))
        return self.window


BOSTON_NIGHT = FixedNight(night_window(
    astronomical=(utc(1988, 3, 20, 9, 14), utc(1988, 3, 21, 0, 31)),
    nautical=(utc(1988, 3, 20, 9, 48), utc(1988, 3, 20, 23, 57, 29)),
))


def venus_boston():
    target = Target("Venus")
    target.equatorial_coordinates_yesterday = EquatorialCoordinates(2.712014, 18.04761)
    target.equatorial_coordinates_today = EquatorialCoordinates(2.782086, 18.44092)
    target.equatorial_coordinates_tomorrow = EquatorialCoordinates(2.852136, 18.82742)
    return target


def fixed_target(ra, declination):
    target = Target("fixed")
    target.equatorial_coordinates = EquatorialCoordinates(ra, declination)
    return target


# ═══════════════════════════════════════════════════════════════════════════
#  Rise, transit and set
# ═══════════════════════════════════════════════════════════════════════════

def test_venus_boston():
    target = venus_boston()
    target.calculate_ephemerides(BOSTON, BOSTON_DATE, 56.0, BOSTON_NIGHT)

    assert_close_in_time(target.transit, utc(1988, 3, 20, 19, 40, 30))
    assert_close_in_time(target.rising, utc(1988, 3, 20, 12, 25, 25))
    assert_close_in_time(target.setting, utc(1988, 3, 20, 2, 54, 39))
    assert target.max_height == pytest.approx(66.42512094, abs=1e-3)


def test_venus_boston_night():
    target = venus_boston()
    target.calculate_ephemerides(BOSTON, BOSTON_DATE, 56.0, BOSTON_NIGHT)

    assert target.max_height_at_night == pytest.approx(25.247614, abs=1e-3)
    assert target.best_time == utc(1988, 3, 21, 0, 31)


def test_times_are_whole_seconds():
    target = venus_boston()
    target.calculate_ephemerides(BOSTON, BOSTON_DATE, 56.0, BOSTON_NIGHT)
    for instant in (target.transit, target.rising, target.setting):
        assert instant.microsecond == 0
        assert instant.tzinfo is not None


def test_circumpolar_fixed_object():
    target = fixed_target(2.852136, 85.82742)
    target.calculate_ephemerides(BOSTON, BOSTON_DATE, 56.0, BOSTON_NIGHT)

    assert_close_in_time(target.transit, utc(1988, 3, 20, 19, 44, 29))
    assert target.rising is None
    assert target.setting is None
    assert target.max_height == pytest.approx(46.505431730, abs=1e-3)
    assert target.max_height_at_night == pytest.approx(43.449256, abs=1e-3)
    assert target.best_time == utc(1988, 3, 21, 0, 31)


def test_never_rising_object_falls_back_to_nautical_night():
    target = fixed_target(2.852136, -78.82742)
    target.calculate_ephemerides(BOSTON, BOSTON_DATE, 56.0, BOSTON_NIGHT)

    assert target.rising is None
    assert target.setting is None
    assert target.max_height == pytest.approx(-31.16168, abs=1e-3)
    assert target.best_time == utc(1988, 3, 20, 23, 57, 29)
    assert target.max_height_at_night == pytest.approx(-36.756, abs=0.05)


def test_fixed_object_belgium():
    target = fixed_target(13.703055555555556, 28.37555556)
    night = FixedNight(night_window((utc(2020, 5, 13, 1, 40), utc(2020, 5, 13, 22, 9))))
    target.calculate_ephemerides(BELGIUM, utc(2020, 5, 13), 69.36, night)

    assert_close_in_time(target.transit, utc(2020, 5, 13, 21, 57, 53))
    assert_close_in_time(target.rising, utc(2020, 5, 13, 13, 6, 15))
    assert_close_in_time(target.setting, utc(2020, 5, 13, 6, 49, 31))
    assert target.max_height == pytest.approx(67.53302741, abs=1e-3)
    assert target.max_height_at_night == pytest.approx(67.37147710, abs=1e-3)
    assert target.best_time == utc(2020, 5, 13, 22, 9)


def test_transit_outside_night_is_best_time():
    target = fixed_target(13.703055555555556, 28.37555556)
    night = FixedNight(night_window((utc(2020, 5, 13, 2), utc(2020, 5, 13, 21))))
    target.calculate_ephemerides(BELGIUM, utc(2020, 5, 13), 69.36, night)

    assert target.best_time == target.transit
    assert target.max_height_at_night == target.max_height


def test_venus_belgium():
    target = Target("Venus")
    target.equatorial_coordinates_yesterday = EquatorialCoordinates(5.3498, 26.9984)
    target.equatorial_coordinates_today = EquatorialCoordinates(5.33815, 26.8638)
    target.equatorial_coordinates_tomorrow = EquatorialCoordinates(5.3236, 26.7175)
    night = FixedNight(night_window((utc(2020, 5, 18, 1, 30), utc(2020, 5, 18, 22, 20))))
    target.calculate_ephemerides(BELGIUM, utc(2020, 5, 18), 56.0, night)

    assert_close_in_time(target.transit, utc(2020, 5, 18, 13, 13, 38))
    assert_close_in_time(target.rising, utc(2020, 5, 18, 4, 36, 37))
    assert_close_in_time(target.setting, utc(2020, 5, 18, 21, 49, 44))
    assert target.max_height == pytest.approx(65.94678370, abs=1e-3)


# ═══════════════════════════════════════════════════════════════════════════
#  Night edge cases
# ═══════════════════════════════════════════════════════════════════════════

def test_permanent_darkness_gives_transit():
    target = fixed_target(13.703055555555556, 28.37555556)
    night = FixedNight(night_window((ALWAYS_DOWN, ALWAYS_DOWN)))
    target.calculate_ephemerides(BELGIUM, utc(2020, 5, 13), 69.36, night)

    assert target.best_time == target.transit
    assert target.max_height_at_night == target.max_height


def test_no_darkness_gives_nothing():
    target = fixed_target(13.703055555555556, 28.37555556)
    night = FixedNight(night_window((ALWAYS_UP, ALWAYS_UP)))
    target.calculate_ephemerides(BELGIUM, utc(2020, 5, 13), 69.36, night)

    assert target.max_height_at_night is None
    assert target.best_time is None


def test_nautical_night_when_astronomical_missing():
    target = fixed_target(13.703055555555556, 28.37555556)
    night = FixedNight(night_window(
        astronomical=(ALWAYS_UP, ALWAYS_UP),
        nautical=(utc(2020, 5, 13, 1, 40), utc(2020, 5, 13, 22, 9)),
    ))
    target.calculate_ephemerides(BELGIUM, utc(2020, 5, 13), 69.36, night)

    assert target.max_height_at_night == pytest.approx(67.37147710, abs=1e-3)
    assert target.best_time == utc(2020, 5, 13, 22, 9)


def test_night_window_twilight_lookup():
    window = BOSTON_NIGHT.window
    assert window.twilight("astronomical") == (utc(1988, 3, 20, 9, 14), utc(1988, 3, 21, 0, 31))
    assert window.has_darkness()
    with pytest.raises(InvalidInputError):
        window.twilight("bogus")


# ═══════════════════════════════════════════════════════════════════════════
#  Sun-derived night windows
# ═══════════════════════════════════════════════════════════════════════════

def test_sun_night_window_boston():
    window = SunNightWindowProvider().night_window(BOSTON_DATE, BOSTON)
    begin, end = window.twilight("astronomical")
    assert_close_in_time(begin, utc(1988, 3, 20, 9, 14), seconds=300)
    assert_close_in_time(end, utc(1988, 3, 21, 0, 31), seconds=300)
    assert window.sunrise < window.sunset
    assert begin < window.nautical_twilight_begin < window.civil_twilight_begin < window.sunrise
    assert window.sunset < window.civil_twilight_end < window.nautical_twilight_end < end


def test_default_night_provider():
    target = venus_boston()
    target.calculate_ephemerides(BOSTON, BOSTON_DATE, 56.0)
    assert_close_in_time(target.best_time, utc(1988, 3, 21, 0, 31), seconds=600)
    assert target.max_height_at_night == pytest.approx(25.25, abs=2.0)


def test_midnight_sun():
    window = SunNightWindowProvider().night_window(utc(2020, 6, 21), SVALBARD)
    assert window.sunrise is ALWAYS_UP
    assert window.astronomical_twilight_begin is ALWAYS_UP
    assert not window.has_darkness()
    assert not window.has_darkness("nautical")

    target = fixed_target(2.5, 80.0)
    target.calculate_ephemerides(SVALBARD, utc(2020, 6, 21), 69.36)
    assert target.max_height_at_night is None
    assert target.best_time is None


def test_polar_night():
    window = SunNightWindowProvider().night_window(utc(2020, 12, 21), SVALBARD)
    assert window.sunrise is ALWAYS_DOWN
    assert window.sunset is ALWAYS_DOWN
    assert window.civil_twilight_begin is ALWAYS_DOWN
    assert isinstance(window.nautical_twilight_begin, datetime)
    assert isinstance(window.astronomical_twilight_begin, datetime)
    assert isinstance(window.astronomical_twilight_end, datetime)


# ═══════════════════════════════════════════════════════════════════════════
#  Target state
# ═══════════════════════════════════════════════════════════════════════════

def test_ephemerides_before_calculation():
    target = venus_boston()
    with pytest.raises(EphemerisNotCalculatedError):
        target.transit
    with pytest.raises(EphemerisNotCalculatedError):
        target.best_time


def test_ephemerides_need_coordinates():
    with pytest.raises(EphemerisNotCalculatedError):
        Target("empty").calculate_ephemerides(BOSTON, BOSTON_DATE, 56.0, BOSTON_NIGHT)


def test_places_need_a_model():
    with pytest.raises(InvalidInputError):
        Target("no model").calculate_equatorial_coordinates(BOSTON_DATE)


def test_changing_places_discards_ephemerides():
    target = venus_boston()
    target.calculate_ephemerides(BOSTON, BOSTON_DATE, 56.0, BOSTON_NIGHT)
    target.equatorial_coordinates_today = EquatorialCoordinates(2.8, 18.5)
    with pytest.raises(EphemerisNotCalculatedError):
        target.transit


def test_changing_h0_discards_ephemerides():
    target = venus_boston()
    target.calculate_ephemerides(BOSTON, BOSTON_DATE, 56.0, BOSTON_NIGHT)
    target.h0 = -0.8333
    with pytest.raises(EphemerisNotCalculatedError):
        target.rising


def test_repeated_calculation_is_identical():
    target = venus_boston()
    first = target.calculate_ephemerides(BOSTON, BOSTON_DATE, 56.0, BOSTON_NIGHT)
    second = target.calculate_ephemerides(BOSTON, BOSTON_DATE, 56.0, BOSTON_NIGHT)
    assert first == second
    assert target.ephemerides == first


def test_any_instant_of_the_ut_day():
    reference = venus_boston().calculate_ephemerides(BOSTON, BOSTON_DATE, 56.0, BOSTON_NIGHT)
    eastern = timezone(timedelta(hours=-5))
    for date in (datetime(1988, 3, 20, 10, 0, tzinfo=eastern),
                 utc(1988, 3, 20, 23, 59),
                 CalendarDate(1988, 3, 20, 6)):
        assert venus_boston().calculate_ephemerides(
            BOSTON, date, 56.0, BOSTON_NIGHT) == reference


def test_delta_t_from_time_system():
    class Table:
        def lookup(self, year):
            return {1988: 56.0}.get(year)

    reference = venus_boston().calculate_ephemerides(BOSTON, BOSTON_DATE, 56.0, BOSTON_NIGHT)
    via_system = venus_boston().calculate_ephemerides(
        BOSTON, BOSTON_DATE, night_provider=BOSTON_NIGHT, time_system=TimeSystem(Table()))
    assert via_system == reference


def test_solver_unwraps_right_ascension_at_0h():
    solver = RiseTransitSetSolver(
        EquatorialCoordinates(23.9, 0.0), EquatorialCoordinates(0.0, 0.0),
        EquatorialCoordinates(0.1, 0.0), BOSTON, 0.0, 0.0, -0.5667)
    assert solver.position(1.0)[0] == pytest.approx(1.5)
    assert solver.position(-1.0)[0] == pytest.approx(-1.5)


def test_fixed_object_is_not_interpolated():
    coords = EquatorialCoordinates(2.852136, 85.82742)
    solver = RiseTransitSetSolver(coords, coords, coords, BOSTON, 0.0, 56.0, -0.5667)
    assert solver.static
    assert solver.circumpolar
    assert solver.position(0.7) == pytest.approx((2.852136 * 15.0, 85.82742))


def test_moving_object_with_matching_ends_is_interpolated():
    ends = EquatorialCoordinates(2.712014, 18.04761)
    today = EquatorialCoordinates(2.782086, 18.44092)
    solver = RiseTransitSetSolver(ends, today, ends, BOSTON, 0.0, 56.0, -0.5667)
    assert not solver.static
    assert solver.position(0.5) != pytest.approx((2.782086 * 15.0, 18.44092))


def test_altitude_series():
    target = venus_boston()
    samples = target.altitude_series(BOSTON_DATE, BOSTON, step_minutes=60, delta_t=56.0)
    assert len(samples) == 25
    assert samples[0][0] == utc(1988, 3, 20, 12)
    assert samples[-1][0] == utc(1988, 3, 21, 12)
    assert max(h for _, h in samples) < 66.43
    assert min(h for _, h in samples) < 0.0


def test_altitude_series_rejects_bad_step():
    with pytest.raises(InvalidInputError):
        venus_boston().altitude_series(BOSTON_DATE, BOSTON, step_minutes=0)


# ═══════════════════════════════════════════════════════════════════════════
#  Bodies as targets
# ═══════════════════════════════════════════════════════════════════════════

def test_sun_target():
    target = Target.sun()
    assert target.name == "Sun"
    assert target.h0 == pytest.approx(-0.8333)
    target.calculate_equatorial_coordinates(BOSTON_DATE)
    assert 1880.0 < target.diameter1 < 1960.0

    target.calculate_ephemerides(BOSTON, BOSTON_DATE, 56.0, BOSTON_NIGHT)
    assert utc(1988, 3, 20, 16, 45) < target.transit < utc(1988, 3, 20, 17, 0)
    assert utc(1988, 3, 20, 10, 30) < target.rising < utc(1988, 3, 20, 11, 0)


def test_moon_target():
    target = Target.moon()
    target.calculate_equatorial_coordinates(BOSTON_DATE)
    assert 0.08 < target.h0 < 0.19
    assert 1760.0 < target.diameter1 < 2010.0
    target.calculate_ephemerides(BOSTON, BOSTON_DATE, 56.0, BOSTON_NIGHT)
    assert BOSTON_DATE - timedelta(hours=1) < target.transit < BOSTON_DATE + timedelta(hours=25)


def test_planet_target():
    target = Target.planet("Venus")
    assert target.name == "Venus"
    target.calculate_equatorial_coordinates(utc(1992, 12, 20))
    assert target.equatorial_coordinates.ra == pytest.approx(21.078182, abs=2e-3)
    assert target.equatorial_coordinates.declination == pytest.approx(-18.888011, abs=0.02)
    assert target.diameter1 is not None


def test_small_body_target():
    encke = OrbitalElements(
        a=2.2091404, e=0.8502196, i=11.94524, omega=186.23352, node=334.75006,
        perihelion_jd=julian_day(CalendarDate(1990, 10, 28, 13, 4, 50)), name="2P/Encke",
    )
    target = Target.from_elements(encke)
    assert target.name == "2P/Encke"
    assert isinstance(target.model, EllipticalOrbit)
    target.calculate_equatorial_coordinates(utc(1990, 10, 6))
    assert target.equatorial_coordinates.ra == pytest.approx(158.558965 / 15.0, abs=0.05)


def test_external_lookup():
    calls = []

    def lookup(model, jd):
        calls.append(jd)
        return EquatorialCoordinates(6.0, 10.0 + jd - julian_day(BOSTON_DATE))

    config = ObserverConfig(BOSTON, 10.0, EphemerisMode.EXTERNAL_EPHEMERIS_LOOKUP, lookup)
    target = Target.planet("mars")
    target.calculate_equatorial_coordinates(BOSTON_DATE, config)

    assert calls == [julian_day(BOSTON_DATE) + k for k in (-1, 0, 1)]
    assert target.equatorial_coordinates_yesterday.declination == pytest.approx(9.0)
    assert target.equatorial_coordinates_today.declination == pytest.approx(10.0)
    assert target.equatorial_coordinates_tomorrow.declination == pytest.approx(11.0)


# ═══════════════════════════════════════════════════════════════════════════
#  Photometry of targets
# ═══════════════════════════════════════════════════════════════════════════

@pytest.mark.parametrize("diameters, magnitude, expected", [
    ((8220,), 15.0, 34.3119),
    ((10800,), 8.0, 27.9047),
    ((55.98, 27.48), 14.82, 22.5252),
    ((72, 54), 12.4, 21.1119),
    ((3.5,), 7.4, 9.8579),
    ((17,), 8.0, 13.8898),
    ((46.998,), 18.3, 26.398),
    ((600,), 11.0, 24.6283),
    ((540, 138), 9.2, 21.1182),
])
def test_target_surface_brightness(diameters, magnitude, expected):
    target = Target("nebula")
    target.set_diameter(*diameters)
    target.magnitude = magnitude
    assert target.surface_brightness() == pytest.approx(expected, abs=1e-3)


def test_target_photometry_needs_size_and_magnitude():
    target = Target("unknown")
    assert target.surface_brightness() is None
    target.magnitude = 9.2
    assert target.surface_brightness() is None
    assert target.contrast_reserve(21.5, 200.0, 66.0) is None
    assert target.best_magnification(21.5, 200.0, [25.0, 66.0]) == (None, None)


def test_target_best_magnification():
    target = Target("M 82")
    target.set_diameter(540, 138)
    target.magnitude = 9.2
    magnification, reserve = target.best_magnification(21.5, 200.0, [25.0, 66.0, 133.0])
    assert reserve == pytest.approx(target.contrast_reserve(21.5, 200.0, magnification))
