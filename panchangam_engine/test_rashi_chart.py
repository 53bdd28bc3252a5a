"""
test_rashi_chart.py
===================
Graha placements and the twelve-cell grid.
"""

from datetime import date

import pytest

from panchangam_engine.core.day import day_anchor
from panchangam_engine.core.ephemeris import GRAHAS, gregorian_to_jd, local_midnight_jd
from panchangam_engine.core.errors import InvalidInput
from panchangam_engine.core.location import GeoLocation
from panchangam_engine.core.rashi_chart import (
    FALLBACK_CELL, GrahaPosition, grid_for_instant, map_to_grid, rashi_chart, snapshot_instant,
)

HYDERABAD = GeoLocation(latitude=17.385, longitude=78.4867, timezone="Asia/Kolkata")
DAY = date(2025, 4, 20)


@pytest.mark.parametrize("jd", [
    gregorian_to_jd(2000, 1, 1, 12.0),
    gregorian_to_jd(2025, 4, 20),
    gregorian_to_jd(2031, 9, 9, 18.0),
])
def test_positions_are_consistent(jd):
    positions = grid_for_instant(jd)
    assert [p.planet for p in positions] == list(GRAHAS)
    for p in positions:
        assert 0.0 <= p.degree_in_rashi < 30.0
        assert p.rashi_index * 30.0 + p.degree_in_rashi == pytest.approx(p.sidereal_longitude)
    by_planet = {p.planet: p for p in positions}
    assert (by_planet["Ketu"].rashi_index - by_planet["Rahu"].rashi_index) % 12 == 6


def test_sun_in_mesha_after_mesha_sankranti():
    jd = snapshot_instant(DAY, HYDERABAD, "noon")
    sun = grid_for_instant(jd)[0]
    assert sun.planet == "Sun"
    assert sun.rashi_name == "Mesha"
    assert 5.0 < sun.degree_in_rashi < 8.0


def test_identity_grid():
    positions = grid_for_instant(gregorian_to_jd(2025, 4, 20))
    cells = map_to_grid(positions)
    assert [c.cell_index for c in cells] == list(range(12))
    assert [c.rashi_index for c in cells] == list(range(12))
    placed = [planet for c in cells for planet in c.planets]
    assert sorted(placed) == sorted(GRAHAS)
    for p in positions:
        assert p.planet in cells[p.rashi_index].planets


def test_unmapped_rashi_falls_back():
    positions = [
        GrahaPosition("Sun", 10.0, 0, "Mesha", 10.0),
        GrahaPosition("Moon", 100.0, 3, "Karka", 10.0),
    ]
    cells = map_to_grid(positions, mapping={0: 11})
    assert cells[11].planets == ("Sun",)
    assert cells[11].rashi_index == 0
    assert cells[FALLBACK_CELL].planets == ("Moon",)
    assert cells[FALLBACK_CELL].rashi_index is None


def test_bad_mapping_rejected():
    with pytest.raises(InvalidInput):
        map_to_grid([], mapping={0: 12})


def test_snapshots():
    midnight = local_midnight_jd(DAY, 5.5)
    assert snapshot_instant(DAY, HYDERABAD, "midnight") == pytest.approx(midnight)
    assert snapshot_instant(DAY, HYDERABAD, "noon") == pytest.approx(midnight + 0.5)
    assert snapshot_instant(DAY, HYDERABAD, (21, 30)) == pytest.approx(midnight + 21.5 / 24.0)
    assert snapshot_instant(DAY, HYDERABAD, "sunrise") == pytest.approx(day_anchor(DAY, HYDERABAD)[1])


@pytest.mark.parametrize("snapshot", ["dawn", (24, 0), (12, 60), (1, 2, 3)])
def test_invalid_snapshot(snapshot):
    with pytest.raises(InvalidInput):
        snapshot_instant(DAY, HYDERABAD, snapshot)


def test_rashi_chart_serialises():
    chart = rashi_chart(DAY, HYDERABAD, snapshot="noon")
    assert chart["instant"].startswith("2025-04-20T06:30")
    assert len(chart["positions"]) == 9
    assert len(chart["grid"]) == 12
    assert chart["positions"][0]["rashi"] == "Mesha"
