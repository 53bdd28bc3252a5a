"""
scanner.py
==========
Year Boundary Scanner: every segment of one limb across a civil year, plus
the lunations and sankrantis that tag them.

The scan never asks "what tithi is it on day N" 365 times. It finds the
first boundary, then repeatedly predicts the next one from the current rate
of the limb angle and refines with the bracketed search in angas.py. Cost
is proportional to the number of boundaries, and short (kshaya) tithis
cannot fall between two daily samples.

Algorithm per boundary:
1. Predict: t_next ≈ t + (target − angle(t)) / rate(t)
2. Bracket around the prediction in one-hour steps
3. Bisect to ~1 second
"""

import logging
from bisect import bisect_right
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from typing import List, Optional, Sequence, Tuple, Union

from .. import config
from .angas import AngaSegment, AngaType, next_segment, segment_at, solve_crossing
from .ephemeris import (
    RASHIS, Ayanamsa, jd_to_datetime, local_midnight_jd, sun_sidereal,
)
from .errors import SanityViolation, UnresolvedBoundary
from .location import GeoLocation, as_location
from .masa import MasaInfo, make_masa, masa_for_lunation, new_moon_after, new_moon_before

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400.0
SOLAR_RATE = 360.0 / 365.2422     # mean sidereal solar motion, degrees per day


@dataclass(frozen=True)
class Lunation:
    start:         float    # new moon, JD (UT)
    end:           float    # next new moon
    masa_index:    int
    is_leap_month: bool

    def contains(self, jd: float) -> bool:
        return self.start <= jd < self.end


@dataclass(frozen=True)
class TaggedSegment:
    segment: AngaSegment
    masa:    MasaInfo


@dataclass(frozen=True)
class Sankranti:
    rashi_index: int
    rashi_name:  str
    jd:          float

    @property
    def utc(self) -> datetime:
        return jd_to_datetime(self.jd)

    def local_date(self, location: GeoLocation) -> date:
        local = self.utc + timedelta(hours=location.offset_hours(self.utc.date()))
        return local.date()


# ---------------------------------------------------------------------------
# Segment hygiene
# ---------------------------------------------------------------------------

def check_segment(seg: AngaSegment) -> AngaSegment:
    """Raise SanityViolation for a segment no real Sun/Moon motion can produce."""
    if seg.duration_days > config.MAX_SEGMENT_DAYS:
        raise SanityViolation(
            f"{seg.type.value} {seg.name} lasts {seg.duration_days:.2f} days "
            f"(limit {config.MAX_SEGMENT_DAYS})",
            duration_days=seg.duration_days,
        )
    return seg


def clean_segments(segments: Sequence[AngaSegment]) -> List[AngaSegment]:
    """
    Drop implausible segments and fold near-duplicate boundaries.

    A boundary closer than DUPLICATE_BOUNDARY_SECONDS to the previous one is
    the same crossing found twice; the sliver between them is merged into
    the preceding segment. After a dropped segment there is no adjacent
    predecessor, so a sliver there is kept as it is.
    """
    out: List[AngaSegment] = []
    dup = config.DUPLICATE_BOUNDARY_SECONDS / SECONDS_PER_DAY
    for seg in segments:
        # only fold into a neighbour that actually ends where the sliver starts
        if out and seg.duration_days < dup and abs(seg.start - out[-1].end) < dup:
            out[-1] = replace(out[-1], end=seg.end)
            logger.debug("suppressed duplicate %s boundary at %s",
                         seg.type.value, seg.start_utc.isoformat())
            continue
        try:
            out.append(check_segment(seg))
        except SanityViolation as exc:
            logger.warning("dropping %s segment starting %s: %s",
                           seg.type.value, seg.start_utc.isoformat(), exc)
    return out


# ---------------------------------------------------------------------------
# Boundaries
# ---------------------------------------------------------------------------

def boundaries_between(anga: Union[AngaType, str], start_jd: float, end_jd: float,
                       ayanamsa: Union[Ayanamsa, str] = Ayanamsa.LAHIRI) -> List[AngaSegment]:
    """Ascending, contiguous segments overlapping [start_jd, end_jd)."""
    anga = AngaType(anga)
    ayanamsa = Ayanamsa.parse(ayanamsa)

    seg = segment_at(anga, start_jd, ayanamsa)
    raw = [seg]
    while seg.end < end_jd:
        nxt = next_segment(seg, ayanamsa)
        if nxt.end <= nxt.start:
            raise UnresolvedBoundary(
                f"{anga.value} search did not advance past JD {seg.end:.6f}",
                guess=seg.end,
            )
        raw.append(nxt)
        seg = nxt

    logger.debug("%d %s segments between JD %.2f and %.2f",
                 len(raw), anga.value, start_jd, end_jd)
    return clean_segments(raw)


def civil_year_bounds(year: int, location: GeoLocation) -> Tuple[float, float]:
    jan1 = date(year, 1, 1)
    next_jan1 = date(year + 1, 1, 1)
    return (local_midnight_jd(jan1, location.offset_hours(jan1)),
            local_midnight_jd(next_jan1, location.offset_hours(next_jan1)))


def all_boundaries_in_year(year: int, location, anga: Union[AngaType, str] = AngaType.TITHI,
                           ayanamsa: Union[Ayanamsa, str] = Ayanamsa.LAHIRI) -> List[AngaSegment]:
    """
    Every segment of one limb touching the local civil year.

    Args:
        year:     Gregorian year
        location: GeoLocation or (lat, lng[, utc_offset])
        anga:     which limb
        ayanamsa: sidereal mode

    Returns:
        Ascending list; first and last segments may straddle the year edges.
    """
    location = as_location(location)
    start, end = civil_year_bounds(year, location)
    return boundaries_between(anga, start, end, ayanamsa)


# ---------------------------------------------------------------------------
# Lunations
# ---------------------------------------------------------------------------

def lunations_between(start_jd: float, end_jd: float,
                      ayanamsa: Union[Ayanamsa, str] = Ayanamsa.LAHIRI) -> List[Lunation]:
    """Lunations overlapping [start_jd, end_jd), each tagged with its masa."""
    ayanamsa = Ayanamsa.parse(ayanamsa)
    nm = new_moon_before(start_jd, ayanamsa)
    out = []
    while nm < end_jd:
        nxt = new_moon_after(nm + 1.0, ayanamsa)
        idx, leap = masa_for_lunation(nm, nxt, ayanamsa)
        out.append(Lunation(start=nm, end=nxt, masa_index=idx, is_leap_month=leap))
        nm = nxt
    return out


def new_moons_between(start_jd: float, end_jd: float,
                      ayanamsa: Union[Ayanamsa, str] = Ayanamsa.LAHIRI) -> List[float]:
    return [l.start for l in lunations_between(start_jd, end_jd, ayanamsa)
            if start_jd <= l.start < end_jd]


def lunation_for(jd: float, lunations: Sequence[Lunation]) -> Optional[Lunation]:
    """The lunation containing ``jd`` (lunations ascending)."""
    i = bisect_right([l.start for l in lunations], jd) - 1
    if i < 0 or not lunations[i].contains(jd):
        return None
    return lunations[i]


def tag_masa(segments: Sequence[AngaSegment], lunations: Sequence[Lunation]) -> List[TaggedSegment]:
    """
    Attach the masa of the preceding new moon to each segment.

    A tithi belongs to the lunation in which it starts. A leap month carries
    the index of the month that follows it, with is_leap_month set.
    """
    # Pratipada and the new moon are separate searches that agree only to the
    # bisection tolerance; look a little inside the segment.
    nudge = config.DUPLICATE_BOUNDARY_SECONDS / SECONDS_PER_DAY
    tagged = []
    for seg in segments:
        lun = lunation_for(seg.start + nudge, lunations)
        if lun is None:
            logger.debug("no lunation covers %s %s; left untagged", seg.type.value, seg.start_utc)
            continue
        tithi_for_purnimanta = seg.index if seg.type == AngaType.TITHI else 0
        tagged.append(TaggedSegment(
            segment=seg,
            masa=make_masa(lun.masa_index, lun.is_leap_month, tithi_for_purnimanta),
        ))
    return tagged


def tithis_with_masa(year: int, location,
                     ayanamsa: Union[Ayanamsa, str] = Ayanamsa.LAHIRI) -> List[TaggedSegment]:
    """All tithis of a civil year with their masa."""
    location = as_location(location)
    segs = all_boundaries_in_year(year, location, AngaType.TITHI, ayanamsa)
    lunations = lunations_between(segs[0].start, segs[-1].end, ayanamsa)
    return tag_masa(segs, lunations)


# ---------------------------------------------------------------------------
# Sankrantis
# ---------------------------------------------------------------------------

def sankrantis_between(start_jd: float, end_jd: float,
                       ayanamsa: Union[Ayanamsa, str] = Ayanamsa.LAHIRI) -> List[Sankranti]:
    """Sidereal solar ingresses in [start_jd, end_jd)."""
    ayanamsa = Ayanamsa.parse(ayanamsa)
    sun = lambda t: sun_sidereal(t, ayanamsa)

    out = []
    s0 = sun(start_jd)
    rashi = int(s0 / 30.0) % 12
    t = start_jd
    while True:
        rashi = (rashi + 1) % 12
        target = rashi * 30.0
        guess = t + ((target - sun(t)) % 360.0) / SOLAR_RATE
        jd = solve_crossing(sun, target, guess, window_days=5.0,
                            step_days=0.25, label="sankranti")
        if jd >= end_jd:
            break
        out.append(Sankranti(rashi_index=rashi, rashi_name=RASHIS[rashi], jd=jd))
        t = jd
    return out


def sankrantis_for_year(year: int, location=None,
                        ayanamsa: Union[Ayanamsa, str] = Ayanamsa.LAHIRI) -> List[Sankranti]:
    """The twelve sankrantis of a civil year (UTC year when no location is given)."""
    location = as_location(location) if location is not None else GeoLocation(
        latitude=0.0, longitude=0.0, utc_offset=0.0)
    start, end = civil_year_bounds(year, location)
    return sankrantis_between(start, end, ayanamsa)
