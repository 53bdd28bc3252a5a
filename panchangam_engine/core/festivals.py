"""
festivals.py
============
Festival rule table and matcher.

A rule keys on any of tithi, nakshatra and masa (all zero-based, the same
index spaces the resolver produces) plus an exact leap-month flag:

  nakshatra rule       nakshatra (and masa, if set) must match
  tithi + masa rule    both must match
  tithi-only rule      tithi alone
  masa-only rule       masa alone (every day of the month)

Results are ordered by priority (unset last), nakshatra rules first within
a priority.

The table is read once from JSON and never changes afterwards; it is an
explicit object handed to callers, not module state.

Observance date by calculation basis:

  sunrise       tithi present 150 minutes after sunrise
  sunset        tithi present at sunset
  pradosha      tithi present 90 minutes after sunset
  moonrise      moonrise after the tithi begins, else the following day
  shivaratri    tithi begun before Nishita muhurta, else the following day
  aftersunrise  tithi begun before that day's sunset, else the following day
  daytime       the day whose sunrise-to-sunset span the tithi covers most
                (Ekadashi)

The daily view (`festivals_on_date`) is derived from those observance
dates, so a rule shows up on exactly the days `dates_for_festival` reports.
Masa-only rules are the exception: they mark every day of their month.
"""

import json
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from .. import config
from .angas import AngaType
from .day import day_anchor
from .ephemeris import Ayanamsa, jd_to_datetime, local_midnight_jd
from .errors import InvalidInput
from .location import GeoLocation, as_location
from .scanner import (
    Lunation, TaggedSegment, boundaries_between, lunation_for, lunations_between,
    sankrantis_for_year, tag_masa,
)
from .sunriseset import is_event, moonrise, sunrise, sunset

logger = logging.getLogger(__name__)

RASHIS_TE = ["మేష", "వృషభ", "మిథున", "కర్కాటక", "సింహ", "కన్య",
             "తుల", "వృశ్చిక", "ధనుస్సు", "మకర", "కుంభ", "మీన"]

SUNRISE_OFFSET_MIN  = 150    # three muhurtas
PRADOSHA_OFFSET_MIN = 90
NIGHT_MUHURTAS      = 30


class CalculationBasis(str, Enum):
    SUNRISE      = "sunrise"
    SUNSET       = "sunset"
    PRADOSHA     = "pradosha"
    MOONRISE     = "moonrise"
    SHIVARATRI   = "shivaratri"
    AFTERSUNRISE = "aftersunrise"
    DAYTIME      = "daytime"


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

class FestivalRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    name:                str
    names:               Dict[str, str]   = Field(default_factory=dict)
    match_tithi:         Optional[int]    = Field(None, ge=0, le=29)
    match_nakshatra:     Optional[int]    = Field(None, ge=0, le=26)
    match_masa:          Optional[int]    = Field(None, ge=0, le=11)
    requires_leap_month: bool             = False
    priority:            Optional[int]    = None
    calculation_basis:   CalculationBasis = CalculationBasis.SUNRISE
    festival_type:       str              = "festival"
    vratha_name:         Optional[str]    = None

    @property
    def is_keyed(self) -> bool:
        return any(v is not None for v in (self.match_tithi, self.match_nakshatra, self.match_masa))

    def sort_key(self) -> Tuple:
        return (self.priority is None,
                self.priority if self.priority is not None else 0,
                self.match_nakshatra is None,
                self.name)

    def matches(self, tithi: int, masa: int, nakshatra: int, is_leap_month: bool) -> bool:
        if self.requires_leap_month != is_leap_month:
            return False
        if self.match_nakshatra is not None:
            return (nakshatra == self.match_nakshatra
                    and (self.match_masa is None or masa == self.match_masa))
        if self.match_tithi is not None and self.match_masa is not None:
            return tithi == self.match_tithi and masa == self.match_masa
        if self.match_tithi is not None:
            return tithi == self.match_tithi
        if self.match_masa is not None:
            return masa == self.match_masa
        return False


_RULES = TypeAdapter(List[FestivalRule])


def _check_range(label: str, value: int, upper: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value <= upper:
        raise InvalidInput(f"{label} must be an integer in 0..{upper}, got {value!r}")


class FestivalTable:
    """Immutable, shareable set of festival rules."""

    def __init__(self, rules: Iterable[FestivalRule]):
        self._rules = tuple(rules)

    @classmethod
    def load(cls, path: Union[str, Path, None] = None) -> "FestivalTable":
        path = Path(path) if path is not None else config.FESTIVALS_PATH
        with open(path, encoding="utf-8") as fh:
            raw = json.load(fh)
        try:
            rules = _RULES.validate_python(raw)
        except ValidationError as exc:
            raise InvalidInput(f"invalid festival table {path}: {exc}") from exc
        logger.info("loaded %d festival rules from %s", len(rules), path)
        return cls(rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[FestivalRule]:
        return iter(self._rules)

    def find(self, name: str) -> FestivalRule:
        for rule in self._rules:
            if rule.name.lower() == name.lower():
                return rule
        raise InvalidInput(f"no festival named {name!r}")

    def festivals_for_day(self, tithi: int, masa: int, nakshatra: int,
                          is_leap_month: bool) -> List[FestivalRule]:
        """Rules matching one day's resolved indices, best priority first."""
        _check_range("tithi", tithi, 29)
        _check_range("masa", masa, 11)
        _check_range("nakshatra", nakshatra, 26)
        hits = [r for r in self._rules if r.matches(tithi, masa, nakshatra, is_leap_month)]
        return sorted(hits, key=FestivalRule.sort_key)

    def festivals_on_date(self, day: date, location,
                          ayanamsa: Union[Ayanamsa, str] = Ayanamsa.LAHIRI) -> List["FestivalOccurrence"]:
        """
        Every rule observed on the civil ``day``, each with the segment behind it.

        Looks at all tithi and nakshatra segments that could be observed on
        ``day`` (those starting on the previous day or on ``day``, skipped
        kshaya tithis included) and keeps the ones whose observance date,
        under the rule's calculation basis, is ``day``.

        Returns:
            Occurrences sorted like festivals_for_day.
        """
        location = as_location(location)
        ayanamsa = Ayanamsa.parse(ayanamsa)
        before, after = day - timedelta(days=1), day + timedelta(days=1)
        lo = local_midnight_jd(before, location.offset_hours(before))
        hi = local_midnight_jd(after, location.offset_hours(after))

        tithis = boundaries_between(AngaType.TITHI, lo, hi, ayanamsa)
        stars = boundaries_between(AngaType.NAKSHATRA, lo, hi, ayanamsa)
        lunations = lunations_between(min(tithis[0].start, stars[0].start),
                                      max(tithis[-1].end, stars[-1].end), ayanamsa)
        tagged = {
            AngaType.TITHI: tag_masa(tithis, lunations),
            AngaType.NAKSHATRA: tag_masa(stars, lunations),
        }
        _, anchor = day_anchor(day, location)
        month = lunation_for(anchor, lunations)

        out = []
        for rule in self._rules:
            if not rule.is_keyed:
                continue
            if _rule_anga(rule) is None:
                if (month is not None and month.masa_index == rule.match_masa
                        and month.is_leap_month == rule.requires_leap_month):
                    out.append(FestivalOccurrence(rule=rule, start=month.start, end=month.end,
                                                  observance_date=day))
                continue
            for s, e in _spans(rule, tagged, lunations):
                if observance_date(rule.calculation_basis, s, e, location) == day:
                    out.append(FestivalOccurrence(rule=rule, start=s, end=e, observance_date=day))

        logger.debug("%d festivals observed on %s", len(out), day)
        return sorted(out, key=lambda o: o.rule.sort_key())

    def festivals_for_record(self, record, location,
                             ayanamsa: Union[Ayanamsa, str] = Ayanamsa.LAHIRI) -> List[FestivalRule]:
        """Rules observed on a DayRecord's date at ``location``."""
        return [o.rule for o in self.festivals_on_date(record.date, location, ayanamsa)]


# ---------------------------------------------------------------------------
# Occurrences
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FestivalOccurrence:
    rule:            FestivalRule
    start:           float          # JD (UT); equal to end for instantaneous events
    end:             float
    observance_date: date

    def to_dict(self) -> dict:
        return {
            "name": self.rule.name,
            "names": dict(self.rule.names),
            "priority": self.rule.priority,
            "type": self.rule.festival_type,
            "basis": self.rule.calculation_basis.value,
            "start": jd_to_datetime(self.start).isoformat(),
            "end": jd_to_datetime(self.end).isoformat(),
            "date": self.observance_date.isoformat(),
        }


def _local_date(jd: float, location: GeoLocation) -> date:
    utc = jd_to_datetime(jd)
    return (utc + timedelta(hours=location.offset_hours(utc.date()))).date()


def nishita_start(day: date, location: GeoLocation) -> Optional[float]:
    """Start of the Nishita muhurta (the middle one of thirty) of the night after ``day``."""
    ss = sunset(day, location)
    sr = sunrise(day + timedelta(days=1), location)
    if not (is_event(ss) and is_event(sr)):
        return None
    muhurta = (sr - ss) / NIGHT_MUHURTAS
    return ss + (NIGHT_MUHURTAS // 2) * muhurta


def observance_date(basis: Union[CalculationBasis, str], start: float, end: float,
                    location) -> date:
    """Civil date on which a [start, end) tithi is observed under ``basis``."""
    basis = CalculationBasis(basis)
    location = as_location(location)
    start_day = _local_date(start, location)
    next_day = start_day + timedelta(days=1)

    if basis == CalculationBasis.MOONRISE:
        mr = moonrise(start_day, location)
        return start_day if is_event(mr) and mr >= start else next_day

    if basis == CalculationBasis.SHIVARATRI:
        nishita = nishita_start(start_day, location)
        if nishita is None:
            return start_day
        return start_day if start < nishita else next_day

    if basis == CalculationBasis.AFTERSUNRISE:
        ss = sunset(start_day, location)
        return next_day if is_event(ss) and start > ss else start_day

    if basis == CalculationBasis.DAYTIME:
        def daylight_covered(day: date) -> float:
            sr, ss = sunrise(day, location), sunset(day, location)
            if not (is_event(sr) and is_event(ss)):
                return 0.0
            return max(0.0, min(end, ss) - max(start, sr))

        # ties go to the earlier day
        return max((start_day, next_day), key=daylight_covered)

    def calc_time(day: date) -> Optional[float]:
        if basis == CalculationBasis.SUNRISE:
            ev, offset = sunrise(day, location), SUNRISE_OFFSET_MIN
        elif basis == CalculationBasis.SUNSET:
            ev, offset = sunset(day, location), 0
        else:
            ev, offset = sunset(day, location), PRADOSHA_OFFSET_MIN
        return ev + offset / 1440.0 if is_event(ev) else None

    for day in (start_day, next_day):
        t = calc_time(day)
        if t is not None and start <= t < end:
            return day
    return start_day


def _rule_anga(rule: FestivalRule) -> Optional[AngaType]:
    """The limb a rule is keyed on; None for a masa-only rule."""
    if rule.match_nakshatra is not None:
        return AngaType.NAKSHATRA
    if rule.match_tithi is not None:
        return AngaType.TITHI
    return None


def _spans(rule: FestivalRule, tagged: Dict[AngaType, List[TaggedSegment]],
           lunations: Sequence[Lunation]) -> List[Tuple[float, float]]:
    """[start, end) of every segment (or lunation) in which ``rule`` holds."""
    anga = _rule_anga(rule)
    if anga is None:
        return [
            (l.start, l.end) for l in lunations
            if l.masa_index == rule.match_masa and l.is_leap_month == rule.requires_leap_month
        ]
    key = rule.match_nakshatra if anga == AngaType.NAKSHATRA else rule.match_tithi
    return [
        (t.segment.start, t.segment.end) for t in tagged[anga]
        if t.segment.index == key
        and (rule.match_masa is None or t.masa.index == rule.match_masa)
        and t.masa.is_leap_month == rule.requires_leap_month
    ]


def dates_for_festival(rule: FestivalRule, start: date, end: date, location,
                       ayanamsa: Union[Ayanamsa, str] = Ayanamsa.LAHIRI) -> List[FestivalOccurrence]:
    """
    Every [start, end) in which ``rule`` holds between two civil dates (inclusive).

    One occurrence per qualifying segment, however many civil days it spans.
    """
    if end < start:
        raise InvalidInput("end date precedes start date")
    if not rule.is_keyed:
        raise InvalidInput(f"rule {rule.name!r} has no tithi, nakshatra or masa key")

    location = as_location(location)
    ayanamsa = Ayanamsa.parse(ayanamsa)
    lo = local_midnight_jd(start, location.offset_hours(start))
    nxt = end + timedelta(days=1)
    hi = local_midnight_jd(nxt, location.offset_hours(nxt))

    anga = _rule_anga(rule)
    if anga is None:
        lunations = lunations_between(lo, hi, ayanamsa)
        tagged = {}
    else:
        segments = boundaries_between(anga, lo, hi, ayanamsa)
        lunations = lunations_between(segments[0].start, segments[-1].end, ayanamsa)
        tagged = {anga: tag_masa(segments, lunations)}
    spans = _spans(rule, tagged, lunations)

    out = [
        FestivalOccurrence(
            rule=rule, start=s, end=e,
            observance_date=observance_date(rule.calculation_basis, s, e, location),
        )
        for s, e in spans if s < hi and e > lo
    ]
    logger.debug("%s: %d occurrences between %s and %s", rule.name, len(out), start, end)
    return out


# ---------------------------------------------------------------------------
# Sankrantis
# ---------------------------------------------------------------------------

def _solar_rule(name: str, te: str, priority: int, vratha: str,
                festival_type: str = "festival") -> FestivalRule:
    return FestivalRule(name=name, names={"en": name, "te": te}, priority=priority,
                        festival_type=festival_type, vratha_name=vratha)


def sankranti_festivals(year: int, location,
                        ayanamsa: Union[Ayanamsa, str] = Ayanamsa.LAHIRI) -> List[FestivalOccurrence]:
    """
    The twelve sankrantis of a year, plus Bhogi and Kanuma around Makara Sankranti.

    Makara Sankranti, Bhogi and Kanuma rank 1; the other sankrantis rank 3.
    """
    location = as_location(location)
    out = []
    for s in sankrantis_for_year(year, location, ayanamsa):
        day = s.local_date(location)
        is_makara = s.rashi_name == "Makara"
        rule = _solar_rule(
            f"{s.rashi_name} Sankranti", f"{RASHIS_TE[s.rashi_index]} సంక్రాంతి",
            1 if is_makara else 3, "masa_sankranti", festival_type="vratha",
        )
        out.append(FestivalOccurrence(rule=rule, start=s.jd, end=s.jd, observance_date=day))
        if is_makara:
            out.append(FestivalOccurrence(
                rule=_solar_rule("Bhogi", "భోగి", 1, "bhogi"),
                start=s.jd, end=s.jd, observance_date=day - timedelta(days=1)))
            out.append(FestivalOccurrence(
                rule=_solar_rule("Kanuma", "కనుమ", 1, "kanuma"),
                start=s.jd, end=s.jd, observance_date=day + timedelta(days=1)))
    return sorted(out, key=lambda o: (o.observance_date, o.rule.sort_key()))
