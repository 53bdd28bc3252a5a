"""
test_day.py
===========
Day assembly: sunrise selection, kshaya/vriddhi, and full day records.

Synthetic segments use a notional sunrise at JD 2460000.0 (06:00 local on
a UTC+0 day) so the kshaya/vriddhi rules can be checked without the
ephemeris.
"""

import logging
from datetime import date

import pytest

from panchangam_engine.core.angas import AngaType, make_segment
from panchangam_engine.core.day import (
    TithiState, assemble_tithi, compute_day, day_anchor, select_at_sunrise,
)
from panchangam_engine.core.errors import InvalidInput
from panchangam_engine.core.location import GeoLocation
from panchangam_engine.core.sunriseset import NoEvent

SUNRISE = 2460000.0
NEXT_SUNRISE = SUNRISE + 1.0
HOUR = 1.0 / 24.0

HYDERABAD = GeoLocation(latitude=17.385, longitude=78.4867, timezone="Asia/Kolkata")
TROMSO    = GeoLocation(latitude=69.6492, longitude=18.9553, utc_offset=1.0)


def _tithi(pos: int, start: float, end: float):
    return make_segment(AngaType.TITHI, pos, start, end)


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------

def test_segment_ending_at_sunrise_belongs_to_next_day():
    a = _tithi(4, SUNRISE - 0.9, SUNRISE)
    b = _tithi(5, SUNRISE, SUNRISE + 0.9)
    assert select_at_sunrise(SUNRISE, [a, b]) is b


def test_select_without_cover_raises():
    with pytest.raises(InvalidInput):
        select_at_sunrise(SUNRISE, [_tithi(4, SUNRISE + 0.1, SUNRISE + 0.9)])


# ---------------------------------------------------------------------------
# Kshaya / Vriddhi
# ---------------------------------------------------------------------------

def test_normal_day():
    a = _tithi(7, SUNRISE - 0.5, SUNRISE + 0.5)
    b = _tithi(8, SUNRISE + 0.5, SUNRISE + 1.4)
    reading = assemble_tithi(SUNRISE, NEXT_SUNRISE, [a, b])
    assert reading.state == TithiState.NORMAL
    assert reading.primary is a
    assert reading.skipped == ()


def test_kshaya_tithi_between_sunrises():
    # 08:00 -> 20:00, never seen by a sunrise
    a = _tithi(7, SUNRISE - 0.4, SUNRISE + 2 * HOUR)
    b = _tithi(8, SUNRISE + 2 * HOUR, SUNRISE + 14 * HOUR)
    c = _tithi(9, SUNRISE + 14 * HOUR, SUNRISE + 1.3)
    reading = assemble_tithi(SUNRISE, NEXT_SUNRISE, [a, b, c])
    assert reading.state == TithiState.KSHAYA
    assert reading.primary is a
    assert reading.skipped == (b,)
    assert reading.primary.name == "Ashtami"
    assert reading.skipped[0].name == "Navami"


def test_vriddhi_first_day():
    a = _tithi(10, SUNRISE - 0.1, SUNRISE + 1.1)
    reading = assemble_tithi(SUNRISE, NEXT_SUNRISE, [a])
    assert reading.state == TithiState.VRIDDHI
    assert not reading.is_repeat


def test_vriddhi_second_day_is_repeat():
    a = _tithi(10, SUNRISE - 1.1, SUNRISE + 0.5)
    b = _tithi(11, SUNRISE + 0.5, SUNRISE + 1.5)
    reading = assemble_tithi(SUNRISE, NEXT_SUNRISE, [a, b], previous_sunrise_jd=SUNRISE - 1.0)
    assert reading.state == TithiState.VRIDDHI
    assert reading.is_repeat
    assert reading.primary is a
    # without the look-behind the same day reads as normal
    assert assemble_tithi(SUNRISE, NEXT_SUNRISE, [a, b]).state == TithiState.NORMAL


def test_sunrise_order_validated():
    a = _tithi(0, SUNRISE - 0.5, SUNRISE + 0.5)
    with pytest.raises(InvalidInput):
        assemble_tithi(NEXT_SUNRISE, SUNRISE, [a])


# ---------------------------------------------------------------------------
# Full day records
# ---------------------------------------------------------------------------

def test_ugadi_2025_hyderabad():
    rec = compute_day(date(2025, 3, 30), HYDERABAD)
    assert rec.vara == 0                                  # Sunday
    assert rec.tithi.primary.index == 0
    assert rec.tithi.primary.name == "Pratipada"
    assert rec.paksha == "Shukla"
    assert rec.nakshatra.name == "Revati"
    assert rec.masa.index == 0 and not rec.masa.is_leap_month
    assert rec.masa.name == "Chaitra"
    assert rec.telugu_year.name == "Vishvavasu"
    assert rec.ayana == 0                                 # Uttarayana
    assert rec.ritu == 0 and rec.drik_ritu == 0           # Vasanta
    for seg in (rec.tithi.primary, rec.nakshatra, rec.yoga, rec.karana):
        assert seg.contains(rec.sunrise)


def test_previous_samvatsara_before_ugadi():
    rec = compute_day(date(2025, 3, 28), HYDERABAD)
    assert rec.masa.name == "Phalguna"
    assert rec.telugu_year.name == "Krodhi"


def test_purnimanta_month_in_krishna_paksha():
    # 2025-04-20: Chaitra Krishna paksha (amanta), Vaishakha (purnimanta)
    rec = compute_day(date(2025, 4, 20), HYDERABAD)
    assert rec.paksha == "Krishna"
    assert rec.masa.name == "Chaitra"
    assert rec.masa.purnimanta_name == "Vaishakha"


def test_day_record_serialises():
    d = compute_day(date(2025, 3, 30), HYDERABAD).to_dict()
    assert d["vara"] == "Sunday"
    assert d["tithi"]["state"] in {"normal", "kshaya", "vriddhi"}
    assert d["sunrise"].startswith("2025-03-30T00:")
    assert d["ayana"] == "Uttarayana"


def test_polar_day_anchors_at_six(caplog):
    day = date(2025, 6, 21)
    with caplog.at_level(logging.WARNING, logger="panchangam_engine.core.day"):
        event, anchor = day_anchor(day, TROMSO)
        rec = compute_day(day, TROMSO)
    assert isinstance(event, NoEvent)
    assert isinstance(rec.sunrise, NoEvent)
    assert rec.tithi.primary.contains(anchor)
    assert any("no sunrise" in r.getMessage() for r in caplog.records)
