"""
test_angas.py
=============
Limb index formulas and the bracketed boundary search.

The search is exercised first on synthetic linear angles, where the exact
crossing is known, then on the real Sun/Moon.
"""

import pytest

from panchangam_engine import config
from panchangam_engine.core.angas import (
    KARANAS, UNITS, AngaType, anga_at, anga_index, anga_name, delta, find_boundary,
    karana_index, next_segment, paksha, segment_at, segment_end, segment_start,
    solve_crossing,
)
from panchangam_engine.core.ephemeris import gregorian_to_jd, position, wrap180
from panchangam_engine.core.errors import InvalidInput, UnresolvedBoundary

ONE_SECOND = 1.0 / 86400.0

# Hyderabad sunrise, Ugadi 2025 (00:40 UTC)
UGADI_SUNRISE = gregorian_to_jd(2025, 3, 30, 0.0 + 40 / 60.0)


# ---------------------------------------------------------------------------
# Index formulas
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("position_, expected", [
    (0, 10),      # Kimstughna
    (1, 0),       # Bava
    (7, 6),       # Vishti
    (8, 0),       # Bava again
    (56, 6),
    (57, 7),      # Shakuni
    (58, 8),      # Chatushpada
    (59, 9),      # Naga
])
def test_karana_index(position_, expected):
    assert karana_index(position_) == expected


def test_movable_karanas_cycle_eight_times():
    names = [KARANAS[karana_index(p)] for p in range(1, 57)]
    assert names == KARANAS[:7] * 8


@pytest.mark.parametrize("anga, sun, moon, expected", [
    ("tithi",     0.0,  12.5,  1),
    ("tithi",     1.0,  0.0,   29),        # moon just behind the sun: Amavasya
    ("tithi",     100.0, 280.0, 15),       # opposition opens Krishna Pratipada
    ("nakshatra", 50.0, 13.34, 1),
    ("nakshatra", 0.0,  359.9, 26),
    ("yoga",      10.0, 5.0,   1),
    ("yoga",      200.0, 170.0, 0),        # sum wraps past 360°
    ("karana",    0.0,  3.0,   10),
    ("karana",    0.0,  6.5,   0),
    ("karana",    0.0,  355.0, 9),
])
def test_anga_index(anga, sun, moon, expected):
    assert anga_index(anga, sun, moon) == expected


def test_anga_name_rejects_out_of_range():
    assert anga_name("tithi", 29) == "Amavasya"
    assert anga_name(AngaType.NAKSHATRA, 5) == "Ardra"
    with pytest.raises(InvalidInput):
        anga_name("nakshatra", 27)
    with pytest.raises(InvalidInput):
        anga_name("karana", -1)


def test_paksha_split():
    assert paksha(0) == paksha(14) == "Shukla"
    assert paksha(15) == paksha(29) == "Krishna"


# ---------------------------------------------------------------------------
# Boundary search on synthetic angles
# ---------------------------------------------------------------------------

def test_solve_crossing_linear_angle():
    angle = lambda t: (12.0 * t) % 360.0          # crosses 30° at t = 2.5
    assert solve_crossing(angle, 30.0, 2.0) == pytest.approx(2.5, abs=2 * ONE_SECOND)
    # guess past the crossing walks backward
    assert solve_crossing(angle, 30.0, 3.2) == pytest.approx(2.5, abs=2 * ONE_SECOND)


def test_solve_crossing_through_zero_wrap():
    angle = lambda t: (12.0 * t) % 360.0          # 360° -> 0° at t = 30
    t = solve_crossing(angle, 0.0, 29.4)
    assert t == pytest.approx(30.0, abs=2 * ONE_SECOND)
    assert t >= 30.0 - 1e-9


def test_solve_crossing_ignores_wrap_jump():
    # a decreasing angle never reaches the target walking forward; its only
    # sign change is the -180 -> +180 jump of the wrapped offset, not a root
    angle = lambda t: (-12.0 * t) % 360.0
    with pytest.raises(UnresolvedBoundary):
        solve_crossing(angle, 0.0, 0.5, window_days=20.0)


def test_solve_crossing_unresolved():
    with pytest.raises(UnresolvedBoundary) as excinfo:
        solve_crossing(lambda t: 100.0, 0.0, 10.0)
    assert excinfo.value.target == 0.0
    assert excinfo.value.guess == 10.0


def test_solve_crossing_bisection_bound(monkeypatch):
    monkeypatch.setattr(config, "MAX_BISECTION_STEPS", 3)
    angle = lambda t: (12.0 * t) % 360.0
    t = solve_crossing(angle, 30.0, 2.0)
    # three halvings of a one-hour bracket leave at most 7.5 minutes
    assert 2.5 - 1e-9 <= t <= 2.5 + 7.5 / 1440.0 + ONE_SECOND


# ---------------------------------------------------------------------------
# Boundary search on the real Sun and Moon
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("anga", list(AngaType))
def test_segment_at_contains_and_is_idempotent(anga):
    seg = segment_at(anga, UGADI_SUNRISE)
    again = segment_at(anga, UGADI_SUNRISE)
    assert seg == again
    assert seg.start < seg.end
    assert seg.contains(UGADI_SUNRISE)
    assert seg.index == anga_at(UGADI_SUNRISE)[anga.value]


@pytest.mark.parametrize("anga, lo, hi", [
    (AngaType.TITHI,     0.75, 1.15),
    (AngaType.NAKSHATRA, 0.80, 1.15),
    (AngaType.YOGA,      0.75, 1.10),
    (AngaType.KARANA,    0.35, 0.60),
])
def test_segment_durations_plausible(anga, lo, hi):
    seg = segment_at(anga, UGADI_SUNRISE)
    nxt = next_segment(seg)
    for s in (seg, nxt):
        assert lo < s.duration_days < hi


def test_boundaries_hit_their_targets():
    for anga in AngaType:
        width, _ = UNITS[anga]
        end = segment_end(anga, UGADI_SUNRISE)
        seg = segment_at(anga, UGADI_SUNRISE)
        target = ((seg.position + 1) * width) % 360.0
        offset = wrap180(delta(anga, position(end)) - target)
        assert 0.0 <= offset < 0.01


def test_ugadi_tithi_and_nakshatra():
    tithi = segment_at("tithi", UGADI_SUNRISE)
    assert (tithi.index, tithi.name) == (0, "Pratipada")
    # Amavasya ended 29 Mar 10:57 UTC, Pratipada 30 Mar 07:19 UTC
    assert tithi.start == pytest.approx(gregorian_to_jd(2025, 3, 29, 10.95), abs=10 / 1440.0)
    assert tithi.end == pytest.approx(gregorian_to_jd(2025, 3, 30, 7.32), abs=10 / 1440.0)
    assert segment_at("nakshatra", UGADI_SUNRISE).name == "Revati"


def test_segment_start_and_end_agree_with_neighbours():
    seg = segment_at("tithi", UGADI_SUNRISE)
    nxt = next_segment(seg)
    assert nxt.start == seg.end
    assert nxt.index == 1
    assert segment_start("tithi", nxt.start + 0.01) == pytest.approx(nxt.start, abs=2 * ONE_SECOND)


def test_find_boundary_new_moon():
    nm = find_boundary("tithi", 0.0, gregorian_to_jd(2024, 4, 8, 12.0))
    assert nm == pytest.approx(gregorian_to_jd(2024, 4, 8, 18.35), abs=10 / 1440.0)
