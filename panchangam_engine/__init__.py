"""
Panchangam Engine
=================
Hindu lunisolar calendar engine: tithi, nakshatra, yoga, karana, masa and
festivals for any civil day at any place.

Quick start:
    from panchangam_engine import FestivalTable, generate_panchangam

    page = generate_panchangam(
        year=2025, month=3, day=30,
        latitude=17.385,
        longitude=78.4867,
        timezone="Asia/Kolkata",
        festivals=FestivalTable.load(),
    )
"""

from .core.festivals import FestivalTable
from .tools.panchangam import generate_panchangam

__version__ = "1.0.0"
__all__ = ["FestivalTable", "generate_panchangam"]
