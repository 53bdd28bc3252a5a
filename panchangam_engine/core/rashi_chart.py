"""
rashi_chart.py
==============
Sidereal rashi placement of the nine grahas at one instant, and the layout
of those placements on a twelve-cell chart grid.

The grid mapping is data: rashi index -> cell index. The default is the
identity, so cell N holds rashi N. A graha whose rashi has no cell in a
custom mapping lands in FALLBACK_CELL.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .day import day_anchor
from .ephemeris import (
    GRAHAS, RASHIS, Ayanamsa, graha_longitudes, jd_to_datetime, local_midnight_jd,
)
from .errors import InvalidInput
from .location import as_location

logger = logging.getLogger(__name__)

DEFAULT_MAPPING: Dict[int, int] = {r: r for r in range(12)}
FALLBACK_CELL = 5

Snapshot = Union[str, Tuple[int, int]]


@dataclass(frozen=True)
class GrahaPosition:
    planet:             str
    sidereal_longitude: float
    rashi_index:        int
    rashi_name:         str
    degree_in_rashi:    float

    def to_dict(self) -> dict:
        return {
            "planet": self.planet,
            "longitude": round(self.sidereal_longitude, 4),
            "rashi_index": self.rashi_index,
            "rashi": self.rashi_name,
            "degree": round(self.degree_in_rashi, 4),
        }


@dataclass(frozen=True)
class GridCell:
    cell_index:  int
    rashi_index: Optional[int]
    planets:     Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "cell": self.cell_index,
            "rashi_index": self.rashi_index,
            "rashi": RASHIS[self.rashi_index] if self.rashi_index is not None else None,
            "planets": list(self.planets),
        }


def grid_for_instant(jd: float,
                     ayanamsa: Union[Ayanamsa, str] = Ayanamsa.LAHIRI) -> List[GrahaPosition]:
    """Nine graha positions, Sun through Ketu."""
    lons = graha_longitudes(jd, Ayanamsa.parse(ayanamsa))
    out = []
    for planet in GRAHAS:
        lon = lons[planet]
        rashi = int(lon / 30.0) % 12
        out.append(GrahaPosition(
            planet=planet,
            sidereal_longitude=lon,
            rashi_index=rashi,
            rashi_name=RASHIS[rashi],
            degree_in_rashi=lon - rashi * 30.0,
        ))
    return out


def snapshot_instant(day: date, location, snapshot: Snapshot = "sunrise") -> float:
    """
    Instant at which the chart is taken.

    Args:
        day:      local civil date
        location: GeoLocation or (lat, lng[, utc_offset])
        snapshot: "sunrise", "noon", "midnight" or a local (hour, minute)

    Returns:
        JD (UT)
    """
    location = as_location(location)
    midnight = local_midnight_jd(day, location.offset_hours(day))

    if snapshot == "sunrise":
        _, anchor = day_anchor(day, location)
        return anchor
    if snapshot == "noon":
        return midnight + 0.5
    if snapshot == "midnight":
        return midnight
    if isinstance(snapshot, (tuple, list)) and len(snapshot) == 2:
        hour, minute = snapshot
        if not (0 <= hour <= 23 and 0 <= minute <= 59):
            raise InvalidInput(f"snapshot time out of range: {hour:02d}:{minute:02d}")
        return midnight + (hour + minute / 60.0) / 24.0
    raise InvalidInput(f"unknown snapshot {snapshot!r}")


def map_to_grid(positions: Sequence[GrahaPosition],
                mapping: Optional[Mapping[int, int]] = None) -> List[GridCell]:
    """Twelve cells with the grahas that fall in each."""
    mapping = DEFAULT_MAPPING if mapping is None else mapping
    for rashi, cell in mapping.items():
        if not (0 <= rashi <= 11 and 0 <= cell <= 11):
            raise InvalidInput(f"bad grid mapping entry {rashi} -> {cell}")

    rashi_of_cell = {cell: rashi for rashi, cell in mapping.items()}
    planets: Dict[int, List[str]] = {c: [] for c in range(12)}
    for p in positions:
        cell = mapping.get(p.rashi_index)
        if cell is None:
            logger.debug("%s in %s has no cell; placed in cell %d",
                         p.planet, p.rashi_name, FALLBACK_CELL)
            cell = FALLBACK_CELL
        planets[cell].append(p.planet)

    return [GridCell(cell_index=c, rashi_index=rashi_of_cell.get(c), planets=tuple(planets[c]))
            for c in range(12)]


def rashi_chart(day: date, location, snapshot: Snapshot = "sunrise",
                ayanamsa: Union[Ayanamsa, str] = Ayanamsa.LAHIRI,
                mapping: Optional[Mapping[int, int]] = None) -> dict:
    """Positions and grid for one day, ready to serialise."""
    jd = snapshot_instant(day, location, snapshot)
    positions = grid_for_instant(jd, ayanamsa)
    return {
        "instant": jd_to_datetime(jd).isoformat(),
        "positions": [p.to_dict() for p in positions],
        "grid": [c.to_dict() for c in map_to_grid(positions, mapping)],
    }
