"""
masa.py
=======
Lunisolar month (amanta and purnimanta), ritu, ayana and the 60-year
samvatsara cycle.

An amanta month runs from one new moon to the next and is named after the
sidereal sign the Sun enters during it: a new moon with the Sun in Meena
opens Chaitra. When both bounding new moons find the Sun in the same sign
there is no sankranti inside the lunation and the month is adhika (leap).
A leap month carries the name of the month that follows it.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Tuple, Union

from .angas import AngaType, delta, find_boundary, predict_crossing
from .ephemeris import Ayanamsa, position, sun_sidereal, sun_tropical, _n

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Lookup tables
# ---------------------------------------------------------------------------

MASAS = [
    "Chaitra", "Vaishakha", "Jyeshtha", "Ashadha", "Shravana", "Bhadrapada",
    "Ashvayuja", "Kartika", "Margashira", "Pushya", "Magha", "Phalguna",
]

RITUS = ["Vasanta", "Grishma", "Varsha", "Sharad", "Hemanta", "Shishira"]

AYANAS = ["Uttarayana", "Dakshinayana"]

SAMVATSARAS = [
    "Prabhava", "Vibhava", "Shukla", "Pramoduta", "Prajotpatti", "Angirasa",
    "Srimukha", "Bhava", "Yuva", "Dhatu", "Ishvara", "Bahudhanya",
    "Pramathi", "Vikrama", "Vrisha", "Chitrabhanu", "Svabhanu", "Tarana",
    "Parthiva", "Vyaya", "Sarvajit", "Sarvadhari", "Virodhi", "Vikriti",
    "Khara", "Nandana", "Vijaya", "Jaya", "Manmatha", "Durmukhi",
    "Hevilambi", "Vilambi", "Vikari", "Sharvari", "Plava", "Shubhakrit",
    "Shobhakrit", "Krodhi", "Vishvavasu", "Parabhava", "Plavanga", "Kilaka",
    "Saumya", "Sadharana", "Virodhikrit", "Paridhavi", "Pramadicha", "Ananda",
    "Rakshasa", "Nala", "Pingala", "Kalayukti", "Siddharthi", "Raudri",
    "Durmati", "Dundubhi", "Rudhirodgari", "Raktakshi", "Krodhana", "Akshaya",
]

SAMVATSARA_EPOCH = 1867          # Prabhava began in 1867 CE

SYNODIC_MONTH = 29.530588853
MEAN_ELONGATION_RATE = 360.0 / SYNODIC_MONTH   # degrees per day


@dataclass(frozen=True)
class MasaInfo:
    index:            int
    is_leap_month:    bool
    name:             str
    purnimanta_index: int
    purnimanta_name:  str

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "name": self.name,
            "is_leap_month": self.is_leap_month,
            "purnimanta_index": self.purnimanta_index,
            "purnimanta_name": self.purnimanta_name,
        }


@dataclass(frozen=True)
class SamvatsaraInfo:
    index: int
    name:  str
    year:  int      # Gregorian year in which this samvatsara began


# ---------------------------------------------------------------------------
# New moons
# ---------------------------------------------------------------------------

def _new_moon_near(guess: float, ayanamsa: Ayanamsa) -> float:
    # Newton-style refinement on the elongation rate before bracketing
    for _ in range(3):
        guess = predict_crossing(AngaType.TITHI, guess, 0.0, ayanamsa)
    return find_boundary(AngaType.TITHI, 0.0, guess, ayanamsa)


def new_moon_before(jd: float, ayanamsa: Union[Ayanamsa, str] = Ayanamsa.LAHIRI) -> float:
    """Last new moon at or before ``jd``."""
    ayanamsa = Ayanamsa.parse(ayanamsa)
    elongation = delta(AngaType.TITHI, position(jd, ayanamsa))
    nm = _new_moon_near(jd - elongation / MEAN_ELONGATION_RATE, ayanamsa)
    # bisection lands up to one tolerance step past the true crossing
    if nm > jd + 1.0 / 1440.0:
        nm = _new_moon_near(nm - SYNODIC_MONTH, ayanamsa)
    return nm


def new_moon_after(jd: float, ayanamsa: Union[Ayanamsa, str] = Ayanamsa.LAHIRI) -> float:
    """First new moon strictly after ``jd``."""
    ayanamsa = Ayanamsa.parse(ayanamsa)
    elongation = delta(AngaType.TITHI, position(jd, ayanamsa))
    nm = _new_moon_near(jd + (360.0 - elongation) / MEAN_ELONGATION_RATE, ayanamsa)
    if nm <= jd:
        nm = _new_moon_near(nm + SYNODIC_MONTH, ayanamsa)
    return nm


# ---------------------------------------------------------------------------
# Masa
# ---------------------------------------------------------------------------

def solar_rashi(jd: float, ayanamsa: Union[Ayanamsa, str] = Ayanamsa.LAHIRI) -> int:
    return int(sun_sidereal(jd, ayanamsa) / 30.0) % 12


def masa_for_lunation(start_new_moon: float, end_new_moon: float,
                      ayanamsa: Union[Ayanamsa, str] = Ayanamsa.LAHIRI) -> Tuple[int, bool]:
    """(amanta index, is_leap) for the lunation between two new moons."""
    r_start = solar_rashi(start_new_moon, ayanamsa)
    r_end = solar_rashi(end_new_moon, ayanamsa)
    return (r_start + 1) % 12, r_start == r_end


def make_masa(index: int, is_leap: bool, tithi_index: int) -> MasaInfo:
    purnimanta = (index + 1) % 12 if tithi_index >= 15 else index
    return MasaInfo(
        index=index,
        is_leap_month=is_leap,
        name=("Adhika " if is_leap else "") + MASAS[index],
        purnimanta_index=purnimanta,
        purnimanta_name=MASAS[purnimanta],
    )


def masa_at(jd: float, tithi_index: int,
            ayanamsa: Union[Ayanamsa, str] = Ayanamsa.LAHIRI) -> MasaInfo:
    """Masa in force at ``jd`` (normally sunrise), tithi used for the purnimanta name."""
    ayanamsa = Ayanamsa.parse(ayanamsa)
    start = new_moon_before(jd, ayanamsa)
    end = new_moon_after(jd, ayanamsa)
    index, leap = masa_for_lunation(start, end, ayanamsa)
    if leap:
        logger.debug("adhika %s between JD %.4f and %.4f", MASAS[index], start, end)
    return make_masa(index, leap, tithi_index)


# ---------------------------------------------------------------------------
# Ritu, ayana, samvatsara
# ---------------------------------------------------------------------------

def ritu_for_masa(masa_index: int) -> int:
    return masa_index // 2


def drik_ritu(jd: float) -> int:
    """Season from the tropical Sun: Vasanta opens at 330°."""
    return int(_n(sun_tropical(jd) - 330.0) / 60.0) % 6


def ayana(jd: float) -> int:
    """0 = Uttarayana (tropical Sun 270°–90°), 1 = Dakshinayana."""
    lon = sun_tropical(jd)
    return 0 if (lon >= 270.0 or lon < 90.0) else 1


def samvatsara_index(year: int) -> int:
    return (year - SAMVATSARA_EPOCH) % 60


def samvatsara_for_day(day: date, masa: MasaInfo) -> SamvatsaraInfo:
    """
    The Telugu year (samvatsara) turns at Ugadi, Chaitra Shukla Pratipada.
    A January-April day still in Pushya, Magha, Phalguna or Adhika Chaitra
    belongs to the previous year.
    """
    year = day.year
    if day.month <= 4 and (masa.index >= 9 or (masa.index == 0 and masa.is_leap_month)):
        year -= 1
    idx = samvatsara_index(year)
    return SamvatsaraInfo(index=idx, name=SAMVATSARAS[idx], year=year)
