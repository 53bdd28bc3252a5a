"""
Panchangam API - FastAPI Backend v1.0
=====================================
Endpoints:
  POST /api/panchangam          - Daily panchangam (limbs, festivals, chart, ruler)
  POST /api/year/{year}/tithis  - Every tithi of a civil year with its masa
  POST /api/festivals           - Dates of one festival between two dates
  POST /api/rashi-chart         - Graha positions and chart grid
  POST /api/day-ruler           - Dina-Adhipati
  GET  /api/health              - Health check

The festival table is loaded once here and handed to the engine.
"""

import logging
from datetime import date
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from panchangam_engine import FestivalTable, generate_panchangam
from panchangam_engine.core.day_ruler import compute_ruler
from panchangam_engine.core.errors import PanchangamError
from panchangam_engine.core.festivals import dates_for_festival
from panchangam_engine.core.location import GeoLocation
from panchangam_engine.core.rashi_chart import rashi_chart
from panchangam_engine.core.scanner import tithis_with_masa
from panchangam_engine.logging_config import configure_logging

configure_logging()
logger = logging.getLogger(__name__)

FESTIVALS = FestivalTable.load()

app = FastAPI(
    title="Panchangam API",
    version="1.0.0",
    description="Hindu lunisolar calendar: tithi, nakshatra, yoga, karana, masa and festivals",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Request Models ─────────────────────────────────────────────

class LocationData(BaseModel):
    latitude:   float           = Field(..., ge=-90,  le=90)
    longitude:  float           = Field(..., ge=-180, le=180)
    utc_offset: Optional[float] = Field(None, ge=-12, le=14)
    timezone:   Optional[str]   = Field(None, description="IANA zone, e.g. Asia/Kolkata")
    ayanamsa:   str             = Field("lahiri",
                                        pattern="^(lahiri|raman|kp|fagan)$")

    def location(self) -> GeoLocation:
        return GeoLocation.of(self.latitude, self.longitude, self.utc_offset, self.timezone)


class PanchangamRequest(LocationData):
    year:         int = Field(..., ge=1800, le=2100)
    month:        int = Field(..., ge=1,    le=12)
    day:          int = Field(..., ge=1,    le=31)
    snapshot:     str = Field("sunrise", pattern="^(sunrise|noon|midnight)$")
    ruler_method: str = Field("main", pattern="^(main|sulabha|mathantara)$")


class FestivalSearchRequest(LocationData):
    name:       str
    start_date: date
    end_date:   date


class RashiChartRequest(LocationData):
    year:     int           = Field(..., ge=1800, le=2100)
    month:    int           = Field(..., ge=1,    le=12)
    day:      int           = Field(..., ge=1,    le=31)
    snapshot: str           = Field("sunrise", pattern="^(sunrise|noon|midnight|time)$")
    hour:     Optional[int] = Field(None, ge=0, le=23)
    minute:   Optional[int] = Field(None, ge=0, le=59)


class DayRulerRequest(BaseModel):
    start_nakshatra: Optional[int] = None
    end_nakshatra:   int
    tithi:           int
    weekday:         Optional[int] = Field(None, ge=0, le=6)
    method:          str           = Field("main", pattern="^(main|sulabha|mathantara)$")


# ── Utilities ──────────────────────────────────────────────────

def _bad_request(exc: Exception) -> HTTPException:
    logger.warning("rejected request: %s", exc)
    return HTTPException(status_code=400, detail=str(exc))


# ── Endpoints ──────────────────────────────────────────────────

@app.get("/api/health")
def health():
    return {
        "status": "ok",
        "service": "Panchangam API",
        "version": "1.0.0",
        "festival_rules": len(FESTIVALS),
        "endpoints": [
            "POST /api/panchangam",
            "POST /api/year/{year}/tithis",
            "POST /api/festivals",
            "POST /api/rashi-chart",
            "POST /api/day-ruler",
        ],
    }


@app.post("/api/panchangam")
def panchangam_endpoint(data: PanchangamRequest):
    try:
        page = generate_panchangam(
            year=data.year, month=data.month, day=data.day,
            latitude=data.latitude, longitude=data.longitude,
            utc_offset=data.utc_offset, timezone=data.timezone,
            ayanamsa=data.ayanamsa,
            festivals=FESTIVALS,
            snapshot=data.snapshot,
            ruler_method=data.ruler_method,
        )
        return {"success": True, "panchangam": page}
    except PanchangamError as e:
        raise _bad_request(e)


@app.post("/api/year/{year}/tithis")
def year_tithis_endpoint(year: int, data: LocationData):
    if not 1800 <= year <= 2100:
        raise HTTPException(status_code=400, detail="year must be in 1800..2100")
    try:
        tagged = tithis_with_masa(year, data.location(), data.ayanamsa)
        return {
            "success": True,
            "year": year,
            "count": len(tagged),
            "tithis": [{**t.segment.to_dict(), "masa": t.masa.to_dict()} for t in tagged],
        }
    except PanchangamError as e:
        raise _bad_request(e)


@app.post("/api/festivals")
def festivals_endpoint(data: FestivalSearchRequest):
    try:
        rule = FESTIVALS.find(data.name)
        occurrences = dates_for_festival(
            rule, data.start_date, data.end_date, data.location(), data.ayanamsa,
        )
        return {"success": True, "festival": rule.name,
                "occurrences": [o.to_dict() for o in occurrences]}
    except PanchangamError as e:
        raise _bad_request(e)


@app.post("/api/rashi-chart")
def rashi_chart_endpoint(data: RashiChartRequest):
    snapshot = data.snapshot
    if snapshot == "time":
        snapshot = (data.hour or 0, data.minute or 0)
    try:
        chart = rashi_chart(date(data.year, data.month, data.day), data.location(),
                            snapshot, data.ayanamsa)
        return {"success": True, "chart": chart}
    except (PanchangamError, ValueError) as e:
        # date() rejects impossible calendar dates with a plain ValueError
        raise _bad_request(e)


@app.post("/api/day-ruler")
def day_ruler_endpoint(data: DayRulerRequest):
    try:
        result = compute_ruler(data.start_nakshatra, data.end_nakshatra, data.tithi,
                               data.weekday, data.method)
        return {"success": True, "ruler": result.to_dict()}
    except PanchangamError as e:
        raise _bad_request(e)
