"""
test_festivals.py
=================
Rule matching, the bundled table, observance dates and the inverse search.
"""

import json
from datetime import date, timedelta

import pytest
from pydantic import ValidationError

from panchangam_engine.core.day import compute_day
from panchangam_engine.core.errors import InvalidInput
from panchangam_engine.core.festivals import (
    CalculationBasis, FestivalRule, FestivalTable, dates_for_festival, nishita_start,
    observance_date, sankranti_festivals,
)
from panchangam_engine.core.location import GeoLocation
from panchangam_engine.core.sunriseset import moonrise, sunrise, sunset

HYDERABAD = GeoLocation(latitude=17.385, longitude=78.4867, timezone="Asia/Kolkata")
UGADI = date(2025, 3, 30)


@pytest.fixture(scope="module")
def table():
    return FestivalTable.load()


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------

def test_tithi_rule_ignores_masa_and_outranks_lower_priority():
    high = FestivalRule(name="High", match_tithi=15, priority=1)
    low = FestivalRule(name="Low", match_tithi=15, priority=5)
    t = FestivalTable([low, high])
    for masa in (0, 6, 11):
        assert [r.name for r in t.festivals_for_day(15, masa, 3, False)] == ["High", "Low"]
    assert t.festivals_for_day(16, 0, 3, False) == []


def test_tithi_and_masa_must_both_match():
    rule = FestivalRule(name="Ugadi", match_tithi=0, match_masa=0, priority=1)
    assert rule.matches(0, 0, 26, False)
    assert not rule.matches(0, 1, 26, False)
    assert not rule.matches(1, 0, 26, False)


def test_leap_flag_is_exact():
    plain = FestivalRule(name="Purnima", match_tithi=14, priority=6)
    adhika = FestivalRule(name="Adhika Purnima", match_tithi=14, requires_leap_month=True, priority=4)
    t = FestivalTable([plain, adhika])
    assert [r.name for r in t.festivals_for_day(14, 4, 0, True)] == ["Adhika Purnima"]
    assert [r.name for r in t.festivals_for_day(14, 4, 0, False)] == ["Purnima"]


def test_nakshatra_rules_first_within_priority():
    by_tithi = FestivalRule(name="A tithi rule", match_tithi=5, priority=2)
    by_star = FestivalRule(name="Z star rule", match_nakshatra=5, match_masa=8, priority=2)
    t = FestivalTable([by_tithi, by_star])
    assert [r.name for r in t.festivals_for_day(5, 8, 5, False)] == ["Z star rule", "A tithi rule"]
    # the nakshatra rule honours its masa
    assert [r.name for r in t.festivals_for_day(5, 7, 5, False)] == ["A tithi rule"]


def test_masa_only_and_unkeyed_rules():
    month = FestivalRule(name="Kartika Masam", match_masa=7)
    empty = FestivalRule(name="Nothing", priority=1)
    ranked = FestivalRule(name="Nagula Chavithi", match_tithi=3, match_masa=7, priority=2)
    t = FestivalTable([month, empty, ranked])
    names = [r.name for r in t.festivals_for_day(3, 7, 10, False)]
    assert names == ["Nagula Chavithi", "Kartika Masam"]       # unset priority sorts last
    assert not empty.matches(3, 7, 10, False)


def test_lookup_validates_indices():
    t = FestivalTable([])
    with pytest.raises(InvalidInput):
        t.festivals_for_day(30, 0, 0, False)
    with pytest.raises(InvalidInput):
        t.festivals_for_day(0, 12, 0, False)
    with pytest.raises(InvalidInput):
        t.festivals_for_day(0, 0, 27, False)


def test_rule_model_validation():
    with pytest.raises(ValidationError):
        FestivalRule(name="Bad", match_tithi=30)
    with pytest.raises(ValidationError):
        FestivalRule(name="Bad", match_nakshatra=-1)
    with pytest.raises(ValidationError):
        FestivalRule(name="Bad", calculation_basis="noon")


# ---------------------------------------------------------------------------
# Table
# ---------------------------------------------------------------------------

def test_bundled_table(table):
    assert len(table) >= 30
    for rule in table:
        assert rule.is_keyed, rule.name
        assert rule.names.get("te"), rule.name
    assert table.find("ugadi").match_tithi == 0
    assert table.find("Maha Shivaratri").calculation_basis == CalculationBasis.SHIVARATRI
    with pytest.raises(InvalidInput):
        table.find("Christmas")


def test_load_rejects_bad_schema(tmp_path):
    path = tmp_path / "festivals.json"
    path.write_text(json.dumps([{"name": "Broken", "match_tithi": 30}]), encoding="utf-8")
    with pytest.raises(InvalidInput):
        FestivalTable.load(path)


def test_festivals_for_ugadi_record(table):
    rec = compute_day(UGADI, HYDERABAD)
    assert [r.name for r in table.festivals_for_record(rec, HYDERABAD)] == ["Ugadi"]


# ---------------------------------------------------------------------------
# Observance dates
# ---------------------------------------------------------------------------

def test_sunrise_basis():
    sr = sunrise(UGADI, HYDERABAD)
    assert observance_date("sunrise", sr - 0.1, sr + 0.5, HYDERABAD) == UGADI
    # begins mid-morning, still running 150 minutes after the next sunrise
    assert observance_date("sunrise", sr + 0.2, sr + 1.3, HYDERABAD) == date(2025, 3, 31)
    # never present at either check: falls back to the start day
    assert observance_date("sunrise", sr + 0.2, sr + 0.9, HYDERABAD) == UGADI


def test_sunset_and_pradosha_basis():
    ss = sunset(UGADI, HYDERABAD)
    assert observance_date(CalculationBasis.SUNSET, ss - 0.1, ss + 0.1, HYDERABAD) == UGADI
    assert observance_date(CalculationBasis.PRADOSHA, ss - 0.1, ss + 0.1, HYDERABAD) == UGADI
    # over before pradosha today, running at tomorrow's pradosha
    assert observance_date(CalculationBasis.PRADOSHA, ss + 0.07, ss + 1.2, HYDERABAD) == date(2025, 3, 31)


def test_moonrise_basis():
    mr = moonrise(UGADI, HYDERABAD)
    assert observance_date("moonrise", mr - 0.1, mr + 0.9, HYDERABAD) == UGADI
    assert observance_date("moonrise", mr + 0.05, mr + 1.0, HYDERABAD) == date(2025, 3, 31)


def test_aftersunrise_basis():
    ss = sunset(UGADI, HYDERABAD)
    assert observance_date("aftersunrise", ss - 0.2, ss + 0.8, HYDERABAD) == UGADI
    assert observance_date("aftersunrise", ss + 0.05, ss + 1.0, HYDERABAD) == date(2025, 3, 31)


def test_shivaratri_basis():
    nishita = nishita_start(UGADI, HYDERABAD)
    assert sunset(UGADI, HYDERABAD) < nishita < sunrise(date(2025, 3, 31), HYDERABAD)
    assert observance_date("shivaratri", nishita - 0.3, nishita + 0.5, HYDERABAD) == UGADI
    assert observance_date("shivaratri", nishita + 0.01, nishita + 0.9, HYDERABAD) == date(2025, 3, 31)


def test_daytime_basis_picks_day_with_more_daylight():
    sr = sunrise(UGADI, HYDERABAD)
    # mid-morning to late next morning: most of today's daylight
    assert observance_date("daytime", sr + 0.1, sr + 1.2, HYDERABAD) == UGADI
    # mid-afternoon to past tomorrow's sunset: all of tomorrow's daylight
    assert observance_date("daytime", sr + 0.4, sr + 1.55, HYDERABAD) == date(2025, 3, 31)


# ---------------------------------------------------------------------------
# Inverse search
# ---------------------------------------------------------------------------

def test_ugadi_2025_dates(table):
    occ = dates_for_festival(table.find("Ugadi"), date(2025, 3, 1), date(2025, 4, 30), HYDERABAD)
    assert len(occ) == 1
    assert occ[0].observance_date == UGADI
    assert occ[0].start < sunrise(UGADI, HYDERABAD) < occ[0].end


def test_maha_shivaratri_2025(table):
    occ = dates_for_festival(table.find("Maha Shivaratri"),
                             date(2025, 2, 1), date(2025, 3, 10), HYDERABAD)
    assert [o.observance_date for o in occ] == [date(2025, 2, 26)]


def test_kartika_masam_is_one_lunation(table):
    occ = dates_for_festival(table.find("Kartika Masam"),
                             date(2025, 10, 1), date(2025, 12, 31), HYDERABAD)
    assert len(occ) == 1
    assert 29.0 < occ[0].end - occ[0].start < 30.1


def test_nakshatra_rule_dates(table):
    occ = dates_for_festival(table.find("Arudra Darshanam"),
                             date(2025, 11, 15), date(2025, 12, 25), HYDERABAD)
    assert 1 <= len(occ) <= 2
    for o in occ:
        assert 0.8 < o.end - o.start < 1.2


def test_dates_for_festival_validates(table):
    with pytest.raises(InvalidInput):
        dates_for_festival(table.find("Ugadi"), date(2025, 4, 1), date(2025, 3, 1), HYDERABAD)
    with pytest.raises(InvalidInput):
        dates_for_festival(FestivalRule(name="Nothing"), date(2025, 1, 1), date(2025, 2, 1), HYDERABAD)


def test_sankranti_festivals_2025():
    occ = sankranti_festivals(2025, HYDERABAD)
    by_name = {o.rule.name: o for o in occ}
    assert len(occ) == 14
    assert by_name["Bhogi"].observance_date == date(2025, 1, 13)
    assert by_name["Makara Sankranti"].observance_date == date(2025, 1, 14)
    assert by_name["Kanuma"].observance_date == date(2025, 1, 15)
    assert by_name["Makara Sankranti"].rule.priority == 1
    assert by_name["Mesha Sankranti"].rule.priority == 3
    assert by_name["Makara Sankranti"].rule.names["te"] == "మకర సంక్రాంతి"
    assert [o.observance_date for o in occ] == sorted(o.observance_date for o in occ)


# ---------------------------------------------------------------------------
# Daily view
# ---------------------------------------------------------------------------

WINDOW_START, WINDOW_END = date(2025, 10, 1), date(2025, 11, 30)
BASIS_RULES = ["Shukla Pradosham", "Krishna Pradosham", "Sankashta Chaturthi",
               "Deepavali", "Shukla Ekadashi", "Krishna Ekadashi"]
EVERY_TITHI = [FestivalRule(name=f"Tithi {k:02d}", match_tithi=k, priority=9) for k in range(30)]


@pytest.fixture(scope="module")
def daily(table):
    t = FestivalTable(list(table) + EVERY_TITHI)
    days = {}
    day = WINDOW_START
    while day <= WINDOW_END:
        days[day] = t.festivals_on_date(day, HYDERABAD)
        day += timedelta(days=1)
    return days


def test_deepavali_2025_daily_view(daily):
    assert "Deepavali" in [o.rule.name for o in daily[date(2025, 10, 20)]]
    assert "Deepavali" not in [o.rule.name for o in daily[date(2025, 10, 21)]]


@pytest.mark.parametrize("name", BASIS_RULES)
def test_daily_view_agrees_with_inverse_search(table, daily, name):
    rule = table.find(name)
    inverse = {o.observance_date
               for o in dates_for_festival(rule, WINDOW_START, WINDOW_END, HYDERABAD)
               if WINDOW_START <= o.observance_date <= WINDOW_END}
    shown = {d for d, occ in daily.items() if name in [o.rule.name for o in occ]}
    assert inverse
    assert shown == inverse


def test_daily_view_reports_every_tithi_once(daily):
    # skipped (kshaya) tithis included: the observed tithis form an unbroken chain
    seen = sorted((o for occ in daily.values() for o in occ if o.rule in EVERY_TITHI),
                  key=lambda o: o.start)
    assert len(seen) > 55
    for a, b in zip(seen, seen[1:]):
        assert (b.rule.match_tithi - a.rule.match_tithi) % 30 == 1
        assert b.start == pytest.approx(a.end, abs=2 / 86400.0)


def test_masa_only_rule_marks_every_day_of_its_month(daily):
    kartika = [d for d, occ in daily.items() if "Kartika Masam" in [o.rule.name for o in occ]]
    # 2025-10-22 through 2025-11-20 (amanta Kartika at Hyderabad)
    assert 28 <= len(kartika) <= 31
    assert kartika == sorted(kartika)
    assert (kartika[-1] - kartika[0]).days == len(kartika) - 1
