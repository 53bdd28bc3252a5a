"""
location.py
===========
Observer location and civil-time offset.
"""

from datetime import date, datetime, time
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import InvalidInput


class GeoLocation(BaseModel):
    """Latitude/longitude in degrees (north/east positive) plus a civil-time rule."""

    model_config = ConfigDict(frozen=True)

    latitude:   float           = Field(..., ge=-90,  le=90)
    longitude:  float           = Field(..., ge=-180, le=180)
    utc_offset: Optional[float] = Field(None, ge=-12, le=14,
                                        description="Hours ahead of UTC (5.5 for IST)")
    timezone:   Optional[str]   = Field(None, description="IANA zone, e.g. Asia/Kolkata")

    @field_validator("timezone")
    @classmethod
    def _known_zone(cls, value):
        if value is not None:
            try:
                ZoneInfo(value)
            except (ZoneInfoNotFoundError, ValueError) as exc:
                raise ValueError(f"unknown timezone {value!r}") from exc
        return value

    @classmethod
    def of(cls, latitude: float, longitude: float,
           utc_offset: Optional[float] = None,
           timezone: Optional[str] = None) -> "GeoLocation":
        """Build a location, raising InvalidInput instead of a pydantic error."""
        try:
            return cls(latitude=latitude, longitude=longitude,
                       utc_offset=utc_offset, timezone=timezone)
        except ValidationError as exc:
            raise InvalidInput(str(exc)) from exc

    def offset_hours(self, day: date) -> float:
        """UTC offset in force at local noon of ``day``."""
        if self.timezone:
            noon = datetime.combine(day, time(12, 0), tzinfo=ZoneInfo(self.timezone))
            return noon.utcoffset().total_seconds() / 3600.0
        if self.utc_offset is not None:
            return self.utc_offset
        return self.longitude / 15.0


def as_location(value) -> GeoLocation:
    """Accept a GeoLocation, a (lat, lng[, offset]) tuple or a dict."""
    if isinstance(value, GeoLocation):
        return value
    if isinstance(value, dict):
        try:
            return GeoLocation(**value)
        except ValidationError as exc:
            raise InvalidInput(str(exc)) from exc
    if isinstance(value, (tuple, list)) and 2 <= len(value) <= 3:
        return GeoLocation.of(*value)
    raise InvalidInput(f"cannot interpret {value!r} as a location")
