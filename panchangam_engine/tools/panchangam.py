"""
panchangam.py
=============
Daily Panchangam generator.

Orchestrates the day assembler, festival matcher, rashi chart and day-ruler
modules to produce one structured record for a civil date at a place.

Usage:
    from panchangam_engine import FestivalTable, generate_panchangam

    table = FestivalTable.load()
    page = generate_panchangam(
        year=2025, month=3, day=30,
        latitude=17.385,            # Hyderabad
        longitude=78.4867,
        timezone="Asia/Kolkata",
        festivals=table,
    )
"""

import logging
from datetime import date
from typing import Optional

from .. import config
from ..core.day import VARA, compute_day
from ..core.day_ruler import compute_ruler
from ..core.ephemeris import Ayanamsa
from ..core.errors import InvalidInput
from ..core.festivals import FestivalTable, sankranti_festivals
from ..core.location import GeoLocation
from ..core.rashi_chart import Snapshot, rashi_chart

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Main generator
# ---------------------------------------------------------------------------

def generate_panchangam(
    year: int, month: int, day: int,
    latitude: float, longitude: float,
    utc_offset: Optional[float] = None,
    timezone: Optional[str] = None,
    ayanamsa: str = config.DEFAULT_AYANAMSA,
    festivals: Optional[FestivalTable] = None,
    snapshot: Snapshot = "sunrise",
    ruler_method: str = "main",
) -> dict:
    """
    Generate the Panchangam for one civil day.

    Args:
        year, month, day: local civil date (Gregorian)
        latitude, longitude: degrees, north and east positive
        utc_offset: hours ahead of UTC, used when no timezone is given
        timezone: IANA zone name; its offset at local noon wins over utc_offset
        ayanamsa: 'lahiri', 'raman', 'kp', 'fagan'
        festivals: loaded FestivalTable; festivals are omitted when None
        snapshot: when the rashi chart is taken
        ruler_method: 'main', 'sulabha', 'mathantara'

    Returns:
        dict with the day record, festivals, rashi chart and day ruler
    """
    location = GeoLocation.of(latitude, longitude, utc_offset, timezone)
    ayanamsa = Ayanamsa.parse(ayanamsa)
    try:
        civil = date(year, month, day)
    except ValueError as exc:
        raise InvalidInput(str(exc)) from exc

    record = compute_day(civil, location, ayanamsa)
    out = record.to_dict()
    out["location"] = location.model_dump()
    out["ayanamsa"] = ayanamsa.value

    # ---- Festivals ----
    if festivals is not None:
        lunar = festivals.festivals_on_date(civil, location, ayanamsa)
        solar = [o for o in sankranti_festivals(year, location, ayanamsa)
                 if o.observance_date == civil]
        out["festivals"] = [o.to_dict() for o in solar + lunar]
    else:
        logger.debug("no festival table supplied; festivals omitted for %s", civil)

    # ---- Rashi chart ----
    out["rashi_chart"] = rashi_chart(civil, location, snapshot, ayanamsa)

    # ---- Day ruler ----
    ruler = compute_ruler(
        None, record.nakshatra.index, record.tithi.primary.index + 1,
        weekday=record.vara, method=ruler_method,
    )
    out["day_ruler"] = ruler.to_dict()

    logger.info("panchangam for %s (%s) at %.4f, %.4f", civil, VARA[record.vara],
                location.latitude, location.longitude)
    return out
