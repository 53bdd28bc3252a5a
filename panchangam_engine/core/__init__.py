# Panchangam Engine - Core modules
from .ephemeris import Ayanamsa, graha_longitudes, position, sun_sidereal
from .location import GeoLocation
from .angas import AngaSegment, AngaType, anga_at, find_boundary, segment_at
from .sunriseset import NoEvent, moonrise, sunrise, sunset
from .day import DayRecord, TithiState, assemble_tithi, compute_day
from .scanner import all_boundaries_in_year, sankrantis_for_year, tag_masa
from .festivals import FestivalRule, FestivalTable, dates_for_festival, sankranti_festivals
from .rashi_chart import grid_for_instant, rashi_chart
from .day_ruler import DayRulerMethod, compute_ruler

__all__ = [
    "Ayanamsa", "graha_longitudes", "position", "sun_sidereal",
    "GeoLocation",
    "AngaSegment", "AngaType", "anga_at", "find_boundary", "segment_at",
    "NoEvent", "moonrise", "sunrise", "sunset",
    "DayRecord", "TithiState", "assemble_tithi", "compute_day",
    "all_boundaries_in_year", "sankrantis_for_year", "tag_masa",
    "FestivalRule", "FestivalTable", "dates_for_festival", "sankranti_festivals",
    "grid_for_instant", "rashi_chart",
    "DayRulerMethod", "compute_ruler",
]
