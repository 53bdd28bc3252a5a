"""
day.py
======
Civil-day Panchang: which limbs rule the day from sunrise to sunrise.

Every "is this segment active" question is a half-open interval test on
absolute instants: a segment ending exactly at a sunrise belongs to the
following day.

Tithi carries the kshaya/vriddhi policy:

  NORMAL   one tithi spans sunrise
  KSHAYA   a tithi begins after sunrise and ends before the next sunrise,
           so no sunrise ever sees it; it is skipped and the tithi that
           spans sunrise stays primary
  VRIDDHI  the tithi at sunrise is still running at the next sunrise and
           rules two civil days

Nakshatra, Yoga and Karana simply take the segment present at sunrise.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Union

from .angas import AngaSegment, AngaType, next_segment, paksha, segment_at
from .ephemeris import Ayanamsa, jd_to_datetime, local_midnight_jd
from .errors import InvalidInput
from .location import GeoLocation, as_location
from .masa import (
    AYANAS, RITUS, MasaInfo, SamvatsaraInfo,
    ayana, drik_ritu, masa_at, ritu_for_masa, samvatsara_for_day,
)
from .sunriseset import Event, is_event, sunrise, sunset

logger = logging.getLogger(__name__)

VARA = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

# Day anchor when the Sun does not rise (local hours)
POLAR_ANCHOR_HOURS = 6.0


class TithiState(str, Enum):
    NORMAL  = "normal"
    KSHAYA  = "kshaya"
    VRIDDHI = "vriddhi"


@dataclass(frozen=True)
class TithiReading:
    primary:   AngaSegment
    state:     TithiState = TithiState.NORMAL
    skipped:   Tuple[AngaSegment, ...] = ()
    is_repeat: bool = False      # second civil day of a vriddhi tithi


@dataclass(frozen=True)
class DayRecord:
    date:         date
    sunrise:      Event
    sunset:       Event
    next_sunrise: Event
    vara:         int
    tithi:        TithiReading
    nakshatra:    AngaSegment
    yoga:         AngaSegment
    karana:       AngaSegment
    masa:         MasaInfo
    telugu_year:  SamvatsaraInfo
    ayana:        int
    ritu:         int
    drik_ritu:    int

    @property
    def paksha(self) -> str:
        return paksha(self.tithi.primary.index)

    def to_dict(self) -> dict:
        def _t(ev):
            return jd_to_datetime(ev).isoformat() if is_event(ev) else None

        return {
            "date": self.date.isoformat(),
            "vara": VARA[self.vara],
            "sunrise": _t(self.sunrise),
            "sunset": _t(self.sunset),
            "next_sunrise": _t(self.next_sunrise),
            "tithi": {
                **self.tithi.primary.to_dict(),
                "paksha": self.paksha,
                "state": self.tithi.state.value,
                "is_repeat": self.tithi.is_repeat,
                "skipped": [s.to_dict() for s in self.tithi.skipped],
            },
            "nakshatra": self.nakshatra.to_dict(),
            "yoga": self.yoga.to_dict(),
            "karana": self.karana.to_dict(),
            "masa": self.masa.to_dict(),
            "telugu_year": {"index": self.telugu_year.index, "name": self.telugu_year.name},
            "ayana": AYANAS[self.ayana],
            "ritu": RITUS[self.ritu],
            "drik_ritu": RITUS[self.drik_ritu],
        }


# ---------------------------------------------------------------------------
# Selection rules
# ---------------------------------------------------------------------------

def select_at_sunrise(sunrise_jd: float, segments: Sequence[AngaSegment]) -> AngaSegment:
    """The segment whose [start, end) contains sunrise."""
    for seg in segments:
        if seg.contains(sunrise_jd):
            return seg
    raise InvalidInput(f"no segment spans sunrise JD {sunrise_jd:.5f}")


def assemble_tithi(sunrise_jd: float, next_sunrise_jd: float,
                   segments: Sequence[AngaSegment],
                   previous_sunrise_jd: Optional[float] = None) -> TithiReading:
    """
    Apply the kshaya/vriddhi rules to the tithi segments overlapping one civil day.

    Args:
        sunrise_jd:          today's sunrise
        next_sunrise_jd:     tomorrow's sunrise (end of the civil day)
        segments:            tithi segments covering at least [sunrise, next_sunrise]
        previous_sunrise_jd: yesterday's sunrise; lets the second day of a
                             vriddhi tithi be recognised as a repeat

    Returns:
        TithiReading with the sunrise tithi as primary
    """
    if not sunrise_jd < next_sunrise_jd:
        raise InvalidInput("sunrise must precede the next sunrise")

    primary = select_at_sunrise(sunrise_jd, segments)
    skipped = tuple(
        s for s in segments
        if sunrise_jd < s.start and s.end < next_sunrise_jd
    )

    if skipped:
        return TithiReading(primary=primary, state=TithiState.KSHAYA, skipped=skipped)
    if primary.start < sunrise_jd and primary.end > next_sunrise_jd:
        return TithiReading(primary=primary, state=TithiState.VRIDDHI)
    if (previous_sunrise_jd is not None
            and primary.start < previous_sunrise_jd < primary.end):
        return TithiReading(primary=primary, state=TithiState.VRIDDHI, is_repeat=True)
    return TithiReading(primary=primary)


def segments_between(anga: AngaType, start_jd: float, end_jd: float,
                     ayanamsa: Union[Ayanamsa, str] = Ayanamsa.LAHIRI) -> List[AngaSegment]:
    """Contiguous segments from the one containing ``start_jd`` to the one containing ``end_jd``."""
    segs = [segment_at(anga, start_jd, ayanamsa)]
    while segs[-1].end <= end_jd:
        segs.append(next_segment(segs[-1], ayanamsa))
    return segs


# ---------------------------------------------------------------------------
# Day record
# ---------------------------------------------------------------------------

def day_anchor(day: date, location: GeoLocation) -> Tuple[Event, float]:
    """(sunrise event, instant used as the start of the civil day)."""
    sr = sunrise(day, location)
    if is_event(sr):
        return sr, sr
    anchor = local_midnight_jd(day, location.offset_hours(day)) + POLAR_ANCHOR_HOURS / 24.0
    logger.warning("no sunrise on %s at lat %.4f (%s); anchoring day at local %02d:00",
                   day, location.latitude, sr.reason, int(POLAR_ANCHOR_HOURS))
    return sr, anchor


def compute_day(day: date, location,
                ayanamsa: Union[Ayanamsa, str] = Ayanamsa.LAHIRI) -> DayRecord:
    """
    Compute the full Panchang for one civil day at one place.

    Args:
        day:      local civil date
        location: GeoLocation (or (lat, lng[, utc_offset]) tuple)
        ayanamsa: sidereal mode

    Returns:
        DayRecord, limbs taken at sunrise
    """
    location = as_location(location)
    ayanamsa = Ayanamsa.parse(ayanamsa)

    sr, anchor = day_anchor(day, location)
    next_sr, next_anchor = day_anchor(day + timedelta(days=1), location)
    _, prev_anchor = day_anchor(day - timedelta(days=1), location)

    tithis = segments_between(AngaType.TITHI, anchor, next_anchor, ayanamsa)
    reading = assemble_tithi(anchor, next_anchor, tithis, prev_anchor)
    if reading.state != TithiState.NORMAL:
        logger.info("%s tithi on %s: %s", reading.state.value, day, reading.primary.name)

    masa = masa_at(anchor, reading.primary.index, ayanamsa)

    return DayRecord(
        date=day,
        sunrise=sr,
        sunset=sunset(day, location),
        next_sunrise=next_sr,
        vara=(day.weekday() + 1) % 7,
        tithi=reading,
        nakshatra=segment_at(AngaType.NAKSHATRA, anchor, ayanamsa),
        yoga=segment_at(AngaType.YOGA, anchor, ayanamsa),
        karana=segment_at(AngaType.KARANA, anchor, ayanamsa),
        masa=masa,
        telugu_year=samvatsara_for_day(day, masa),
        ayana=ayana(anchor),
        ritu=ritu_for_masa(masa.index),
        drik_ritu=drik_ritu(anchor),
    )
