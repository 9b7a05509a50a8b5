"""
skyephem.night — Night Windows
===============================

Sunrise, sunset and the three twilights for one observer and one day, as
needed to judge whether a target culminates in the dark.

Capabilities
------------
- :class:`NightWindow` value with sunrise/sunset and the civil, nautical
  and astronomical twilight boundaries
- :class:`NightWindowProvider` protocol for external sources of the same
  data (almanac services, cached tables)
- :class:`SunNightWindowProvider`, which derives the window from the Sun's
  own rising and setting

Each event is an aware UTC datetime, or a sentinel when the Sun stays
above (``ALWAYS_UP``) or below (``ALWAYS_DOWN``) the corresponding altitude
for the whole day.  Morning events (``sunrise``, ``*_twilight_begin``)
precede the Sun's transit and evening events (``sunset``,
``*_twilight_end``) follow it, so for observers west of Greenwich the
evening events usually fall on the next UT day.

Reference
---------
Meeus, J. *Astronomical Algorithms*, 2nd ed., chapters 15 and 25.
"""

import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol, Union

from . import sun
from .coordinates import GeographicalCoordinates
from .errors import InvalidInputError
from .timesys import DateLike, TimeSystem, greenwich_apparent_sidereal_time, julian_day
from .utils import H0_ASTRONOMICAL, H0_CIVIL, H0_NAUTICAL, H0_SUN

logger = logging.getLogger(__name__)


class SunState(enum.Enum):
    """The Sun never crosses the altitude of an event on that day."""
    ALWAYS_UP = "always up"
    ALWAYS_DOWN = "always down"


ALWAYS_UP = SunState.ALWAYS_UP
ALWAYS_DOWN = SunState.ALWAYS_DOWN

Event = Union[datetime, SunState]

# ── Altitude of the Sun's centre at each boundary [deg] ─────────────────────
TWILIGHTS = {
    "civil": H0_CIVIL,
    "nautical": H0_NAUTICAL,
    "astronomical": H0_ASTRONOMICAL,
}


@dataclass(frozen=True)
class NightWindow:
    """Sun events of one day at one place."""
    sunrise: Event
    sunset: Event
    civil_twilight_begin: Event
    civil_twilight_end: Event
    nautical_twilight_begin: Event
    nautical_twilight_end: Event
    astronomical_twilight_begin: Event
    astronomical_twilight_end: Event

    def twilight(self, kind: str) -> tuple[Event, Event]:
        """
        (begin, end) of a twilight.

        ``begin`` is the morning crossing of the twilight altitude (the end
        of the night), ``end`` the evening one (the start of the night).
        """
        if kind not in TWILIGHTS:
            raise InvalidInputError(
                f"Unknown twilight {kind!r}, expected one of {sorted(TWILIGHTS)}"
            )
        return (getattr(self, f"{kind}_twilight_begin"),
                getattr(self, f"{kind}_twilight_end"))

    def has_darkness(self, kind: str = "astronomical") -> bool:
        """True when the Sun gets below the twilight altitude at some moment."""
        return ALWAYS_UP not in self.twilight(kind)


class NightWindowProvider(Protocol):
    """Source of sunrise, sunset and twilight times."""

    def night_window(self, when: DateLike, geo: GeographicalCoordinates) -> NightWindow:
        ...


class SunNightWindowProvider:
    """
    Night window computed from the Sun's apparent position.

    The Sun is placed with the low-accuracy theory at 0h TD of the day
    before, the day itself and the day after, and each event is solved as
    the rising or setting of the Sun for the event's altitude.

    Parameters
    ----------
    time_system : TimeSystem, optional
        Supplies ΔT; a provider-less one is used when omitted.
    """

    def __init__(self, time_system: Optional[TimeSystem] = None):
        self.time_system = time_system if time_system is not None else TimeSystem()

    def night_window(self, when: DateLike, geo: GeographicalCoordinates) -> NightWindow:
        from .target import RiseTransitSetSolver, day_start, fraction_to_datetime

        start = day_start(when)
        jd = julian_day(start)
        yesterday, today, tomorrow = (sun.low_accuracy_position(jd + k) for k in (-1, 0, 1))
        theta0 = greenwich_apparent_sidereal_time(start) * 15.0
        delta_t = self.time_system.delta_t(start)

        events = {}
        for label, h0 in (("sun", H0_SUN), *TWILIGHTS.items()):
            solver = RiseTransitSetSolver(yesterday, today, tomorrow, geo,
                                          theta0, delta_t, h0)
            fractions = solver.solve()
            if fractions.rising is None:
                state = ALWAYS_UP if solver.circumpolar else ALWAYS_DOWN
                events[label] = (state, state)
                continue
            # morning before the Sun's transit, evening after it
            rising, setting = fractions.rising, fractions.setting
            if rising > fractions.transit:
                rising -= 1.0
            if setting < fractions.transit:
                setting += 1.0
            events[label] = (fraction_to_datetime(start, rising),
                             fraction_to_datetime(start, setting))

        logger.debug("Night window at %s for %s: %s", start.date(), geo, events)
        return NightWindow(
            sunrise=events["sun"][0],
            sunset=events["sun"][1],
            civil_twilight_begin=events["civil"][0],
            civil_twilight_end=events["civil"][1],
            nautical_twilight_begin=events["nautical"][0],
            nautical_twilight_end=events["nautical"][1],
            astronomical_twilight_begin=events["astronomical"][0],
            astronomical_twilight_end=events["astronomical"][1],
        )
