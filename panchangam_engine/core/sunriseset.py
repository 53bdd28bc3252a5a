"""
sunriseset.py
=============
Sunrise, sunset and moonrise for a civil day at a location.

Sun: the closed-form "Almanac for Computers" model (USNO, 1990), the same
one the NOAA calculators use, with zenith 90°50' (refraction + solar
semi-diameter). Accurate to about a minute between ±65° latitude.

Moon: scan the civil day for the upward crossing of the rise altitude using
the Meeus Moon from ephemeris.py, then bisect.

When the Sun (or Moon) does not cross the horizon on that day, the functions
return a NoEvent instead of a time. They never return NaN and never raise
for geometry reasons.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import Union

from .. import config
from .ephemeris import DEG, RAD, gmst, gregorian_to_jd, local_midnight_jd, moon_equatorial, _n
from .location import GeoLocation, as_location

logger = logging.getLogger(__name__)

POLAR_DAY   = "polar_day"
POLAR_NIGHT = "polar_night"
NO_MOONRISE = "no_moonrise"
OFF_CIVIL_DAY = "off_civil_day"   # the crossing happens, but before or after this date


@dataclass(frozen=True)
class NoEvent:
    """The body does not cross the horizon on this civil day."""
    reason: str

    def __bool__(self) -> bool:
        return False


Event = Union[float, NoEvent]


def is_event(value) -> bool:
    return not isinstance(value, NoEvent)


# ---------------------------------------------------------------------------
# Sun
# ---------------------------------------------------------------------------

def _solar_event(day: date, location: GeoLocation, rising: bool,
                 zenith: float = config.SUN_ZENITH_DEG) -> Event:
    lat = location.latitude
    lng_hour = location.longitude / 15.0

    N = day.timetuple().tm_yday
    t = N + ((6.0 if rising else 18.0) - lng_hour) / 24.0

    # Sun's mean anomaly and true longitude
    M = 0.9856 * t - 3.289
    L = _n(M + 1.916 * math.sin(M * DEG) + 0.020 * math.sin(2 * M * DEG) + 282.634)

    # Right ascension, moved into the same quadrant as L
    RA = _n(math.atan(0.91764 * math.tan(L * DEG)) * RAD)
    RA += (math.floor(L / 90.0) - math.floor(RA / 90.0)) * 90.0
    RA /= 15.0

    sin_dec = 0.39782 * math.sin(L * DEG)
    cos_dec = math.cos(math.asin(sin_dec))

    cos_H = ((math.cos(zenith * DEG) - sin_dec * math.sin(lat * DEG))
             / (cos_dec * math.cos(lat * DEG)))
    if abs(cos_H) > 1.0:
        reason = POLAR_NIGHT if cos_H > 1.0 else POLAR_DAY
        logger.debug("no %s on %s at lat %.4f: %s",
                     "sunrise" if rising else "sunset", day, lat, reason)
        return NoEvent(reason)

    H = math.acos(cos_H) * RAD
    if rising:
        H = 360.0 - H
    H /= 15.0

    local_mean = H + RA - 0.06571 * t - 6.622

    # Hours from 0h UT of ``day``, taken within half a day of the 06:00 or
    # 18:00 local-mean guess rather than wrapped into 0..24.
    approx_ut = (6.0 if rising else 18.0) - lng_hour
    ut = local_mean - lng_hour
    ut -= 24.0 * round((ut - approx_ut) / 24.0)
    jd = gregorian_to_jd(day.year, day.month, day.day) + ut / 24.0

    midnight = local_midnight_jd(day, location.offset_hours(day))
    if not midnight <= jd < midnight + 1.0:
        logger.debug("%s for %s at lat %.4f falls on another civil day",
                     "sunrise" if rising else "sunset", day, lat)
        return NoEvent(OFF_CIVIL_DAY)
    return jd


def sunrise(day: date, location) -> Event:
    """Sunrise on the local civil ``day`` as a JD (UT), or NoEvent."""
    return _solar_event(day, as_location(location), rising=True)


def sunset(day: date, location) -> Event:
    """Sunset on the local civil ``day`` as a JD (UT), or NoEvent."""
    return _solar_event(day, as_location(location), rising=False)


# ---------------------------------------------------------------------------
# Moon
# ---------------------------------------------------------------------------

def moon_altitude(jd: float, location: GeoLocation) -> float:
    """Geocentric altitude of the Moon's centre in degrees."""
    ra, dec = moon_equatorial(jd)
    H = _n(gmst(jd) + location.longitude - ra)
    phi = location.latitude * DEG
    sin_alt = (math.sin(phi) * math.sin(dec * DEG)
               + math.cos(phi) * math.cos(dec * DEG) * math.cos(H * DEG))
    return math.asin(max(-1.0, min(1.0, sin_alt))) * RAD


def moonrise(day: date, location) -> Event:
    """First moonrise on the local civil ``day``, or NoEvent if the Moon does not rise."""
    location = as_location(location)
    h0 = config.MOONRISE_ALTITUDE_DEG
    step = config.MOONRISE_SCAN_MINUTES / 1440.0
    start = local_midnight_jd(day, location.offset_hours(day))

    lo = start
    alt_lo = moon_altitude(lo, location) - h0
    for i in range(1, int(round(1.0 / step)) + 1):
        hi = start + i * step
        alt_hi = moon_altitude(hi, location) - h0
        if alt_lo < 0.0 <= alt_hi:
            break
        lo, alt_lo = hi, alt_hi
    else:
        return NoEvent(NO_MOONRISE)

    tol = 1.0 / 86400.0
    for _ in range(config.MAX_BISECTION_STEPS):
        if hi - lo <= tol:
            break
        mid = (lo + hi) / 2.0
        if moon_altitude(mid, location) - h0 < 0.0:
            lo = mid
        else:
            hi = mid
    return hi
