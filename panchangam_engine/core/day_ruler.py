"""
day_ruler.py
============
Dina-Adhipati: the planetary ruler of a day, from the inclusive nakshatra
count between a starting nakshatra and the day's nakshatra.

  main        remainder = (count*4 + tithi + weekday) mod 9
  sulabha     remainder = count mod 9
  mathantara  remainder = count mod 9

A remainder of 0 reads as 9. Each method looks the remainder up in its own
table.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Dict, Optional, Tuple, Union

from .errors import InvalidInput

PLANET_TE = {
    "Sun": "రవి", "Moon": "చంద్ర", "Mars": "కుజుడు", "Mercury": "బుధుడు",
    "Jupiter": "గురు", "Venus": "శుక్రుడు", "Saturn": "శని",
    "Rahu": "రాహువు", "Ketu": "కేతువు",
}


class DayRulerMethod(str, Enum):
    MAIN       = "main"
    SULABHA    = "sulabha"
    MATHANTARA = "mathantara"


# remainder -> (planet, outcome)
RULER_TABLES: Dict[DayRulerMethod, Dict[int, Tuple[str, str]]] = {
    DayRulerMethod.MAIN: {
        1: ("Sun",     "విచారము"),
        2: ("Moon",    "శుభము"),
        3: ("Mars",    "మరణము"),
        4: ("Mercury", "ప్రజ్ఞాపాటవములు"),
        5: ("Jupiter", "ధనలాభము"),
        6: ("Venus",   "సౌఖ్యం"),
        7: ("Saturn",  "మహాభయము"),
        8: ("Rahu",    "శత్రుభయము"),
        9: ("Ketu",    "ప్రాణభయము"),
    },
    DayRulerMethod.SULABHA: {
        1: ("Saturn",  "మహాభయము"),
        2: ("Jupiter", "ధనలాభము"),
        3: ("Mars",    "మరణము"),
        4: ("Sun",     "విచారము"),
        5: ("Rahu",    "శత్రుభయము"),
        6: ("Venus",   "సౌఖ్యం"),
        7: ("Mercury", "ప్రజ్ఞాపాటవములు"),
        8: ("Moon",    "శుభము"),
        9: ("Ketu",    "ప్రాణభయము"),
    },
    DayRulerMethod.MATHANTARA: {
        1: ("Sun",     "విచారము"),
        2: ("Mercury", "ప్రజ్ఞాపాటవములు"),
        3: ("Rahu",    "శత్రుభయము"),
        4: ("Jupiter", "ధనలాభము"),
        5: ("Ketu",    "ప్రాణభయము"),
        6: ("Moon",    "శుభము"),
        7: ("Saturn",  "మహాభయము"),
        8: ("Venus",   "సౌఖ్యం"),
        9: ("Mars",    "మరణము"),
    },
}


@dataclass(frozen=True)
class DinaAdhipatiResult:
    remainder:    int
    planet:       str
    outcome_text: str
    method:       DayRulerMethod
    count:        int

    @property
    def planet_te(self) -> str:
        return PLANET_TE[self.planet]

    def to_dict(self) -> dict:
        return {
            "remainder": self.remainder,
            "planet": self.planet,
            "planet_te": self.planet_te,
            "outcome": self.outcome_text,
            "method": self.method.value,
            "count": self.count,
        }


def nakshatra_count(start: int, end: int) -> int:
    """Inclusive count from ``start`` to ``end`` around the 27-star cycle (1..27)."""
    return (end - start + 27) % 27 + 1


def compute_ruler(start_nakshatra: Optional[int], end_nakshatra: int, tithi: int,
                  weekday: Optional[int] = None,
                  method: Union[DayRulerMethod, str] = DayRulerMethod.MAIN) -> DinaAdhipatiResult:
    """
    Args:
        start_nakshatra: 0..26, None for 0 (calendar mode); clamped
        end_nakshatra:   0..26, the day's nakshatra
        tithi:           1..30; clamped
        weekday:         0 = Sunday .. 6 = Saturday; None for today
        method:          main, sulabha or mathantara

    Returns:
        DinaAdhipatiResult
    """
    try:
        method = DayRulerMethod(method)
    except ValueError as exc:
        raise InvalidInput(f"unknown day-ruler method {method!r}") from exc
    if not 0 <= end_nakshatra <= 26:
        raise InvalidInput(f"end_nakshatra must be in 0..26, got {end_nakshatra}")

    tithi = max(1, min(30, int(tithi)))
    start = 0 if start_nakshatra is None else max(0, min(26, int(start_nakshatra)))
    wd = (date.today().weekday() + 1) % 7 if weekday is None else int(weekday)

    count = nakshatra_count(start, end_nakshatra)
    raw = count * 4 + tithi + wd if method == DayRulerMethod.MAIN else count
    remainder = raw % 9 or 9

    planet, outcome = RULER_TABLES[method][remainder]
    return DinaAdhipatiResult(remainder=remainder, planet=planet, outcome_text=outcome,
                              method=method, count=count)
