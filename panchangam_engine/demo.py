"""
demo.py
=======
Demonstration of the Panchangam Engine.
Run: python -m panchangam_engine.demo

Prints one day's Panchangam for Hyderabad plus the year's tithi count.
"""

from datetime import date

from . import FestivalTable, generate_panchangam
from .core.location import GeoLocation
from .core.scanner import all_boundaries_in_year
from .logging_config import configure_logging


def print_section(title: str):
    print(f"\n{'─'*60}")
    print(f"  {title}")
    print(f"{'─'*60}")


def run_demo():
    configure_logging()

    print("=" * 60)
    print("   PANCHANGAM ENGINE: SAMPLE DAY")
    print("=" * 60)

    params = {
        "year": 2025, "month": 3, "day": 30,
        "latitude": 17.385,            # Hyderabad
        "longitude": 78.4867,
        "timezone": "Asia/Kolkata",
    }
    page = generate_panchangam(**params, festivals=FestivalTable.load())

    print(f"\n  Date        : {page['date']} ({page['vara']})")
    print(f"  Location    : Hyderabad ({params['latitude']}°N, {params['longitude']}°E)")
    print(f"  Sunrise     : {page['sunrise']}")
    print(f"  Sunset      : {page['sunset']}")

    print_section("PANCHANGAM")
    t = page["tithi"]
    print(f"  Tithi       : {t['name']} ({t['paksha']} Paksha), {t['state']}")
    for s in t["skipped"]:
        print(f"                skipped: {s['name']} {s['start']} → {s['end']}")
    print(f"  Nakshatra   : {page['nakshatra']['name']}")
    print(f"  Yoga        : {page['yoga']['name']}")
    print(f"  Karana      : {page['karana']['name']}")
    m = page["masa"]
    print(f"  Masa        : {m['name']} (purnimanta {m['purnimanta_name']})")
    print(f"  Samvatsara  : {page['telugu_year']['name']}")
    print(f"  Ayana/Ritu  : {page['ayana']} / {page['ritu']}")

    print_section("FESTIVALS")
    if not page["festivals"]:
        print("  (none)")
    for f in page["festivals"]:
        print(f"  [{f['priority'] if f['priority'] is not None else '-'}] "
              f"{f['name']:<28} {f['names'].get('te', '')}")

    print_section("RASHI CHART")
    print(f"  {'Graha':<10} {'Rashi':<12} {'Degree':<8}")
    print(f"  {'─'*10} {'─'*12} {'─'*8}")
    for p in page["rashi_chart"]["positions"]:
        print(f"  {p['planet']:<10} {p['rashi']:<12} {p['degree']:.2f}°")

    print_section("DAY RULER")
    r = page["day_ruler"]
    print(f"  {r['planet']} ({r['planet_te']}): {r['outcome']}  [remainder {r['remainder']}]")

    print_section(f"TITHIS IN {params['year']}")
    loc = GeoLocation.of(params["latitude"], params["longitude"], timezone=params["timezone"])
    tithis = all_boundaries_in_year(params["year"], loc)
    print(f"  {len(tithis)} tithi segments touch {date(params['year'], 1, 1).year}")
    print("\n")


if __name__ == "__main__":
    run_demo()
