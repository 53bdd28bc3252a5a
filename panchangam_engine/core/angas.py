"""
angas.py
========
The four moving limbs of the Panchang and their boundary search.

  Tithi     (Moon − Sun) / 12°              30 per lunation
  Nakshatra Moon / 13°20'                   27 per sidereal month
  Yoga      (Sun + Moon) / 13°20'           27
  Karana    (Moon − Sun) / 6°               60 positions, 11 names

Each limb is floor(delta / width) of an angle that increases monotonically
with time. A boundary is the instant the angle crosses a multiple of the
width. It is found by walking from a guess in fixed steps until the signed
offset to the target changes sign, then bisecting.

Source: Drik Panchang algorithm; Meeus Ch. 3 (interpolation/bisection)
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, Optional, Union

from .. import config
from .ephemeris import Ayanamsa, SiderealPosition, jd_to_datetime, position, wrap180, _n
from .errors import InvalidInput, UnresolvedBoundary

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Lookup tables
# ---------------------------------------------------------------------------

TITHIS = [
    "Pratipada", "Dvitiya", "Tritiya", "Chaturthi", "Panchami",
    "Shashthi", "Saptami", "Ashtami", "Navami", "Dashami",
    "Ekadashi", "Dvadashi", "Trayodashi", "Chaturdashi", "Purnima",   # Shukla Paksha (0–14)
    "Pratipada", "Dvitiya", "Tritiya", "Chaturthi", "Panchami",
    "Shashthi", "Saptami", "Ashtami", "Navami", "Dashami",
    "Ekadashi", "Dvadashi", "Trayodashi", "Chaturdashi", "Amavasya",  # Krishna Paksha (15–29)
]

PAKSHA = ["Shukla"] * 15 + ["Krishna"] * 15

NAKSHATRAS = [
    "Ashwini", "Bharani", "Krittika", "Rohini", "Mrigashira", "Ardra",
    "Punarvasu", "Pushya", "Ashlesha", "Magha", "Purva Phalguni", "Uttara Phalguni",
    "Hasta", "Chitra", "Swati", "Vishakha", "Anuradha", "Jyeshtha",
    "Mula", "Purva Ashadha", "Uttara Ashadha", "Shravana", "Dhanishtha",
    "Shatabhisha", "Purva Bhadrapada", "Uttara Bhadrapada", "Revati"
]

YOGAS = [
    "Vishkumbha", "Preeti", "Ayushman", "Saubhagya", "Shobhana",
    "Atiganda", "Sukarma", "Dhriti", "Shula", "Ganda",
    "Vriddhi", "Dhruva", "Vyaghata", "Harshana", "Vajra",
    "Siddhi", "Vyatipata", "Variyana", "Parigha", "Shiva",
    "Siddha", "Sadhya", "Shubha", "Shukla", "Brahma",
    "Indra", "Vaidhriti"
]

# 0–6 movable (repeat 8 times), 7–10 fixed
KARANAS = [
    "Bava", "Balava", "Kaulava", "Taitila", "Garaja",
    "Vanija", "Vishti", "Shakuni", "Chatushpada", "Naga", "Kimstughna"
]


class AngaType(str, Enum):
    TITHI     = "tithi"
    NAKSHATRA = "nakshatra"
    YOGA      = "yoga"
    KARANA    = "karana"


# (unit width in degrees, positions per 360°)
UNITS = {
    AngaType.TITHI:     (12.0, 30),
    AngaType.NAKSHATRA: (360.0 / 27.0, 27),
    AngaType.YOGA:      (360.0 / 27.0, 27),
    AngaType.KARANA:    (6.0, 60),
}

NAMES = {
    AngaType.TITHI:     TITHIS,
    AngaType.NAKSHATRA: NAKSHATRAS,
    AngaType.YOGA:      YOGAS,
    AngaType.KARANA:    KARANAS,
}


# ---------------------------------------------------------------------------
# Index formulas
# ---------------------------------------------------------------------------

def delta(anga: AngaType, pos: SiderealPosition) -> float:
    """The angle whose multiples of the unit width define the limb."""
    if anga in (AngaType.TITHI, AngaType.KARANA):
        return _n(pos.moon - pos.sun)
    if anga == AngaType.NAKSHATRA:
        return _n(pos.moon)
    return _n(pos.sun + pos.moon)


def karana_index(karana_position: int) -> int:
    """Karana name index (0–10) for a half-tithi position (0–59)."""
    if karana_position == 0:
        return 10                      # Kimstughna
    if karana_position >= 57:
        return karana_position - 50    # Shakuni, Chatushpada, Naga
    return (karana_position - 1) % 7


def unit_position(anga: AngaType, angle: float) -> int:
    width, count = UNITS[anga]
    return min(int(_n(angle) / width), count - 1)


def index_for_position(anga: AngaType, pos: int) -> int:
    return karana_index(pos) if anga == AngaType.KARANA else pos


def anga_index(anga: Union[AngaType, str], sun: float, moon: float) -> int:
    """Index of a limb from sidereal Sun and Moon longitudes."""
    anga = AngaType(anga)
    p = unit_position(anga, delta(anga, SiderealPosition(jd=0.0, sun=sun, moon=moon)))
    return index_for_position(anga, p)


def anga_name(anga: Union[AngaType, str], index: int) -> str:
    names = NAMES[AngaType(anga)]
    if not 0 <= index < len(names):
        raise InvalidInput(f"{AngaType(anga).value} index {index} out of range 0..{len(names) - 1}")
    return names[index]


def paksha(tithi_index: int) -> str:
    return PAKSHA[tithi_index]


def anga_at(jd: float, ayanamsa: Union[Ayanamsa, str] = Ayanamsa.LAHIRI) -> Dict[str, int]:
    """All four limb indices at one instant."""
    pos = position(jd, ayanamsa)
    return {
        a.value: index_for_position(a, unit_position(a, delta(a, pos)))
        for a in AngaType
    }


# ---------------------------------------------------------------------------
# Segments
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AngaSegment:
    type:     AngaType
    index:    int
    name:     str
    start:    float   # JD (UT), inclusive
    end:      float   # JD (UT), exclusive
    position: int     # raw unit number along the cycle

    def contains(self, jd: float) -> bool:
        return self.start <= jd < self.end

    @property
    def duration_days(self) -> float:
        return self.end - self.start

    @property
    def start_utc(self) -> datetime:
        return jd_to_datetime(self.start)

    @property
    def end_utc(self) -> datetime:
        return jd_to_datetime(self.end)

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "index": self.index,
            "name": self.name,
            "start": self.start_utc.isoformat(),
            "end": self.end_utc.isoformat(),
        }


def make_segment(anga: AngaType, pos: int, start: float, end: float) -> AngaSegment:
    idx = index_for_position(anga, pos)
    return AngaSegment(type=anga, index=idx, name=NAMES[anga][idx],
                       start=start, end=end, position=pos)


# ---------------------------------------------------------------------------
# Boundary search
# ---------------------------------------------------------------------------

def solve_crossing(angle_fn: Callable[[float], float], target: float, guess: float,
                   window_days: Optional[float] = None,
                   step_days: Optional[float] = None,
                   label: str = "angle") -> float:
    """
    Instant at which a monotonically increasing angle reaches ``target`` degrees.

    Walks from ``guess`` in fixed steps (forward while the angle is short of
    the target, backward once it has passed), then bisects to
    BOUNDARY_TOLERANCE_SECONDS or MAX_BISECTION_STEPS, whichever comes first.
    Sign changes where either side is 90° or more from the target are the
    ±180° jump of the wrapped offset, not a root.

    Returns:
        JD (UT) of the first instant at or after the crossing.

    Raises:
        UnresolvedBoundary: no crossing within ``window_days`` of the guess.
    """
    target = _n(target)
    window = config.SEARCH_WINDOW_DAYS if window_days is None else window_days
    step = config.BRACKET_STEP_HOURS / 24.0 if step_days is None else step_days

    def g(t):
        return wrap180(angle_fn(t) - target)

    g0 = g(guess)
    direction = 1.0 if g0 < 0.0 else -1.0

    lo = hi = None
    t_prev, g_prev = guess, g0
    for i in range(1, int(math.ceil(window / step)) + 1):
        t = guess + direction * i * step
        g_t = g(t)
        before, after = ((t_prev, g_prev), (t, g_t)) if direction > 0 else ((t, g_t), (t_prev, g_prev))
        if before[1] < 0.0 <= after[1] and abs(before[1]) < 90.0 and abs(after[1]) < 90.0:
            lo, hi = before[0], after[0]
            break
        t_prev, g_prev = t, g_t

    if lo is None:
        raise UnresolvedBoundary(
            f"no {label} crossing at {target:.4f}° within {window} days of JD {guess:.5f}",
            target=target, guess=guess,
        )

    tol = config.BOUNDARY_TOLERANCE_SECONDS / 86400.0
    steps = 0
    while hi - lo > tol and steps < config.MAX_BISECTION_STEPS:
        mid = (lo + hi) / 2.0
        if g(mid) < 0.0:
            lo = mid
        else:
            hi = mid
        steps += 1

    logger.debug("%s crossing %.4f° at JD %.6f after %d bisections", label, target, hi, steps)
    return hi


def find_boundary(anga: Union[AngaType, str], target: float, guess: float,
                  ayanamsa: Union[Ayanamsa, str] = Ayanamsa.LAHIRI,
                  window_days: Optional[float] = None) -> float:
    """Instant at which the limb angle reaches ``target`` degrees, nearest the guess."""
    anga = AngaType(anga)
    ayanamsa = Ayanamsa.parse(ayanamsa)
    return solve_crossing(
        lambda t: delta(anga, position(t, ayanamsa)),
        target, guess, window_days=window_days, label=anga.value,
    )


def predict_crossing(anga: AngaType, jd: float, target: float, ayanamsa) -> float:
    """Linear guess at when the limb angle reaches ``target``, from its current rate."""
    d0 = delta(anga, position(jd, ayanamsa))
    d1 = delta(anga, position(jd + 1.0 / 24.0, ayanamsa))
    rate = wrap180(d1 - d0) * 24.0        # degrees per day
    if rate <= 0.0:
        return jd
    return jd + wrap180(target - d0) / rate


def segment_end(anga: Union[AngaType, str], jd: float,
                ayanamsa: Union[Ayanamsa, str] = Ayanamsa.LAHIRI) -> float:
    """End of the segment in progress at ``jd``."""
    anga = AngaType(anga)
    ayanamsa = Ayanamsa.parse(ayanamsa)
    width, _ = UNITS[anga]
    pos = unit_position(anga, delta(anga, position(jd, ayanamsa)))
    target = _n((pos + 1) * width)
    return find_boundary(anga, target, predict_crossing(anga, jd, target, ayanamsa), ayanamsa)


def segment_start(anga: Union[AngaType, str], jd: float,
                  ayanamsa: Union[Ayanamsa, str] = Ayanamsa.LAHIRI) -> float:
    """Start of the segment in progress at ``jd``."""
    anga = AngaType(anga)
    ayanamsa = Ayanamsa.parse(ayanamsa)
    width, _ = UNITS[anga]
    pos = unit_position(anga, delta(anga, position(jd, ayanamsa)))
    target = _n(pos * width)
    return find_boundary(anga, target, predict_crossing(anga, jd, target, ayanamsa), ayanamsa)


def segment_at(anga: Union[AngaType, str], jd: float,
               ayanamsa: Union[Ayanamsa, str] = Ayanamsa.LAHIRI) -> AngaSegment:
    """The segment containing ``jd``, both boundaries resolved."""
    anga = AngaType(anga)
    ayanamsa = Ayanamsa.parse(ayanamsa)
    pos = unit_position(anga, delta(anga, position(jd, ayanamsa)))
    start = segment_start(anga, jd, ayanamsa)
    end = segment_end(anga, jd, ayanamsa)
    return make_segment(anga, pos, start, end)


def next_segment(segment: AngaSegment,
                 ayanamsa: Union[Ayanamsa, str] = Ayanamsa.LAHIRI) -> AngaSegment:
    """The segment that follows ``segment``, found from its end."""
    anga = segment.type
    width, count = UNITS[anga]
    pos = (segment.position + 1) % count
    target = _n((pos + 1) * width)
    guess = predict_crossing(anga, segment.end, target, ayanamsa)
    return make_segment(anga, pos, segment.end, find_boundary(anga, target, guess, ayanamsa))
