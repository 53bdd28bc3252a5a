"""
config.py
=========
Engine configuration.

Every value can be overridden through the environment so that a caller
(or a test run) can tighten tolerances without touching code.
"""

import os
from pathlib import Path

# ---------------------------------------------------------------------------
# Data
# ---------------------------------------------------------------------------

DATA_ROOT = Path(__file__).resolve().parent / "data"
FESTIVALS_PATH = Path(os.getenv("PANCHANGAM_FESTIVALS_PATH", DATA_ROOT / "festivals.json"))

# ---------------------------------------------------------------------------
# Astronomy defaults
# ---------------------------------------------------------------------------

DEFAULT_AYANAMSA = os.getenv("PANCHANGAM_AYANAMSA", "lahiri")

# Standard zenith for sunrise/sunset: 90° + 50' (refraction + solar semi-diameter)
SUN_ZENITH_DEG = 90.8333

# Moon's upper limb at mean parallax and refraction
MOONRISE_ALTITUDE_DEG = 0.125
MOONRISE_SCAN_MINUTES = 10

# ---------------------------------------------------------------------------
# Boundary search
# ---------------------------------------------------------------------------

BOUNDARY_TOLERANCE_SECONDS = float(os.getenv("PANCHANGAM_BOUNDARY_TOLERANCE_SECONDS", "1.0"))
MAX_BISECTION_STEPS = int(os.getenv("PANCHANGAM_MAX_BISECTION_STEPS", "60"))
BRACKET_STEP_HOURS = float(os.getenv("PANCHANGAM_BRACKET_STEP_HOURS", "1.0"))
SEARCH_WINDOW_DAYS = float(os.getenv("PANCHANGAM_SEARCH_WINDOW_DAYS", "3.0"))

# ---------------------------------------------------------------------------
# Year scanner sanity limits
# ---------------------------------------------------------------------------

DUPLICATE_BOUNDARY_SECONDS = 60.0
MAX_SEGMENT_DAYS = 3.0

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

LOG_LEVEL = os.getenv("PANCHANGAM_LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("PANCHANGAM_LOG_FORMAT", "text")  # "text" or "json"
