"""
ephemeris.py - Geocentric Sun, Moon and graha longitudes
==========================================================
Uses Jean Meeus "Astronomical Algorithms" 2nd ed.

  Sun      Ch. 25 (apparent longitude, low accuracy)      ~0.01°
  Moon     Ch. 47 (main periodic terms + A1/A2/A3)         ~10"
  Planets  Ch. 31-33 mean elements + Kepler, heliocentric
           -> geocentric by subtracting Earth's vector      ~0.1°-1°
  Rahu     true lunar node                                   ~0.1°
  ΔT       Espenak & Meeus polynomials (NASA eclipse site)

Instants are Julian Days in UT. Every series is evaluated in dynamical
time, so ΔT is added once in ``_centuries``.

The tithi/nakshatra boundary search only needs the Sun and Moon to be
smooth and monotone; the planets are used for the rashi chart only.
"""

import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Dict, Tuple, Union

from .errors import InvalidInput

# ── Constants ──────────────────────────────────────────────────
J2000          = 2451545.0
JULIAN_CENTURY = 36525.0
SECONDS_PER_DAY = 86400.0
DEG            = math.pi / 180.0
RAD            = 180.0 / math.pi

GRAHAS = ["Sun", "Moon", "Mars", "Mercury", "Jupiter", "Venus", "Saturn", "Rahu", "Ketu"]

RASHIS = ["Mesha", "Vrishabha", "Mithuna", "Karka", "Simha", "Kanya",
          "Tula", "Vrishchika", "Dhanu", "Makara", "Kumbha", "Meena"]

_UNIX_EPOCH_JD = 2440587.5


def _n(x):
    """Normalize angle to [0, 360)."""
    return x % 360.0

def _r(x):
    """Degrees to radians."""
    return x * DEG

def _d(x):
    """Radians to degrees."""
    return x * RAD

def wrap180(x: float) -> float:
    """Normalize angle to (-180, 180]."""
    x = _n(x)
    return x - 360.0 if x > 180.0 else x


# ── Julian Day ─────────────────────────────────────────────────

def gregorian_to_jd(year: int, month: int, day: int, hour: float = 0.0) -> float:
    """Meeus Ch. 7."""
    if month <= 2:
        year -= 1; month += 12
    A = int(year / 100)
    B = 2 - A + int(A / 4)
    return int(365.25*(year+4716)) + int(30.6001*(month+1)) + day + B - 1524.5 + hour/24.0


def jd_to_gregorian(jd: float) -> Tuple[int, int, float]:
    jd += 0.5
    Z = int(jd); F = jd - Z
    if Z < 2299161:
        A = Z
    else:
        alpha = int((Z - 1867216.25) / 36524.25)
        A = Z + 1 + alpha - int(alpha / 4)
    B = A + 1524; C = int((B-122.1)/365.25); D = int(365.25*C); E = int((B-D)/30.6001)
    day   = B - D - int(30.6001*E) + F
    month = E-1 if E < 14 else E-13
    year  = C-4716 if month > 2 else C-4715
    return int(year), int(month), day


def datetime_to_jd(dt: datetime) -> float:
    """Aware datetime -> JD (UT). Naive datetimes are taken as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return _UNIX_EPOCH_JD + dt.timestamp() / SECONDS_PER_DAY


def jd_to_datetime(jd: float) -> datetime:
    """JD (UT) -> aware UTC datetime, rounded to the millisecond."""
    ms = round((jd - _UNIX_EPOCH_JD) * SECONDS_PER_DAY * 1000.0)
    return datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(milliseconds=ms)


def local_midnight_jd(day: date, utc_offset_hours: float) -> float:
    """JD of 00:00 local civil time on ``day``."""
    return gregorian_to_jd(day.year, day.month, day.day, 0.0) - utc_offset_hours / 24.0


# ── ΔT (TT - UT), seconds ──────────────────────────────────────

def delta_t_seconds(year: float) -> float:
    """Espenak & Meeus polynomial fit, valid 1900-2150 and roughly outside."""
    y = year
    if 2005 <= y < 2050:
        t = y - 2000
        return 62.92 + 0.32217*t + 0.005589*t*t
    if 1986 <= y < 2005:
        t = y - 2000
        return (63.86 + 0.3345*t - 0.060374*t**2 + 0.0017275*t**3
                + 0.000651814*t**4 + 0.00002373599*t**5)
    if 1961 <= y < 1986:
        t = y - 1975
        return 45.45 + 1.067*t - t*t/260.0 - t**3/718.0
    if 1941 <= y < 1961:
        t = y - 1950
        return 29.07 + 0.407*t - t*t/233.0 + t**3/2547.0
    if 1920 <= y < 1941:
        t = y - 1920
        return 21.20 + 0.84493*t - 0.076100*t*t + 0.0020936*t**3
    if 1900 <= y < 1920:
        t = y - 1900
        return -2.79 + 1.494119*t - 0.0598939*t*t + 0.0061966*t**3 - 0.000197*t**4
    u = (y - 1820) / 100.0
    if 2050 <= y < 2150:
        return -20 + 32*u*u - 0.5628*(2150 - y)
    return -20 + 32*u*u


def _centuries(jd_ut: float) -> float:
    """Julian centuries of dynamical time since J2000 for a UT instant."""
    year = 2000.0 + (jd_ut - J2000) / 365.25
    jde = jd_ut + delta_t_seconds(year) / SECONDS_PER_DAY
    return (jde - J2000) / JULIAN_CENTURY


# ── Nutation & Obliquity (Meeus Ch. 22) ────────────────────────

def nutation_and_obliquity(T: float) -> Tuple[float, float, float]:
    """Returns (dpsi_arcsec, deps_arcsec, true_obliquity_deg)."""
    omega = _n(125.04452 - 1934.136261*T + 0.0020708*T*T)
    L0    = _n(280.4664567 + 360007.6982779*T)
    Lm    = _n(218.3165085 + 481267.8813398*T)

    dpsi  = (-17.20 - 0.1742*T)*math.sin(_r(omega))
    dpsi += -1.32 * math.sin(_r(2*L0))
    dpsi += -0.23 * math.sin(_r(2*Lm))
    dpsi +=  0.21 * math.sin(_r(2*omega))

    deps  = ( 9.20 + 0.0897*T)*math.cos(_r(omega))
    deps +=  0.57 * math.cos(_r(2*L0))
    deps +=  0.10 * math.cos(_r(2*Lm))
    deps += -0.09 * math.cos(_r(2*omega))

    eps0 = (23.0 + 26.0/60 + 21.448/3600
            - (46.8150*T + 0.00059*T*T - 0.001813*T*T*T)/3600.0)
    true_obl = eps0 + deps/3600.0
    return dpsi, deps, true_obl


# ── Sun (Meeus Ch. 25) ─────────────────────────────────────────

def sun_longitude(T: float, dpsi: float) -> Tuple[float, float]:
    """Returns (apparent_longitude_deg, radius_AU)."""
    L0  = _n(280.46646  + 36000.76983*T + 0.0003032*T*T)
    M   = _n(357.52911  + 35999.05029*T - 0.0001537*T*T)
    M_r = _r(M)
    e   = 0.016708634 - 0.000042037*T - 0.0000001267*T*T

    C = ((1.914602 - 0.004817*T - 0.000014*T*T)*math.sin(M_r)
         + (0.019993 - 0.000101*T)*math.sin(2*M_r)
         + 0.000289*math.sin(3*M_r))

    true_lon = _n(L0 + C)
    v = _n(M + C)
    R = (1.000001018*(1 - e*e)) / (1 + e*math.cos(_r(v)))

    # nutation + aberration
    apparent = _n(true_lon + dpsi/3600.0 - 20.4898/3600.0/R)
    return apparent, R


# ── Moon (Meeus Ch. 47) ────────────────────────────────────────
#
# Rows are (D, M, M', F, coefficient); M terms scale by E^|M|.
# Units of the coefficients: 1e-6 degree.

_MOON_LON_TERMS = [
    (0, 0, 1, 0, 6288774), (2, 0, -1, 0, 1274027), (2, 0, 0, 0, 658314),
    (0, 0, 2, 0, 213618), (0, 1, 0, 0, -185116), (0, 0, 0, 2, -114332),
    (2, 0, -2, 0, 58793), (2, -1, -1, 0, 57066), (2, 0, 1, 0, 53322),
    (2, -1, 0, 0, 45758), (0, 1, -1, 0, -40923), (1, 0, 0, 0, -34720),
    (0, 1, 1, 0, -30383), (2, 0, 0, -2, 15327), (0, 0, 1, 2, -12528),
    (0, 0, 1, -2, 10980), (4, 0, -1, 0, 10675), (0, 0, 3, 0, 10034),
    (4, 0, -2, 0, 8548), (2, 1, -1, 0, -7888), (2, 1, 0, 0, -6766),
    (1, 0, -1, 0, -5163), (1, 1, 0, 0, 4987), (2, -1, 1, 0, 4036),
    (2, 0, 2, 0, 3994), (4, 0, 0, 0, 3861), (2, 0, -3, 0, 3665),
    (0, 1, -2, 0, -2689), (2, 0, -1, 2, -2602), (2, -1, -2, 0, 2390),
    (1, 0, 1, 0, -2348), (2, -2, 0, 0, 2236), (0, 1, 2, 0, -2120),
    (0, 2, 0, 0, -2069), (2, -2, -1, 0, 2048), (2, 0, 1, -2, -1773),
    (2, 0, 0, 2, -1595), (4, -1, -1, 0, 1215), (0, 0, 2, 2, -1110),
    (3, 0, -1, 0, -892), (2, 1, 1, 0, -810), (4, -1, -2, 0, 759),
    (0, 2, -1, 0, -713), (2, 2, -1, 0, -700), (2, 1, -2, 0, 691),
    (2, -1, 0, -2, 596), (4, 0, 1, 0, 549), (0, 0, 4, 0, 537),
    (4, -1, 0, 0, 520), (1, 0, -2, 0, -487), (2, 1, 0, -2, -399),
    (0, 0, 2, -2, -381), (1, 1, 1, 0, 351), (3, 0, -2, 0, -340),
    (4, 0, -3, 0, 330), (2, -1, 2, 0, 327), (0, 2, 1, 0, -323),
    (1, 1, -1, 0, 299), (2, 0, 3, 0, 294),
]

_MOON_LAT_TERMS = [
    (0, 0, 0, 1, 5128122), (0, 0, 1, 1, 280602), (0, 0, 1, -1, 277693),
    (2, 0, 0, -1, 173237), (2, 0, -1, 1, 55413), (2, 0, -1, -1, 46271),
    (2, 0, 0, 1, 32573), (0, 0, 2, 1, 17198), (2, 0, 1, -1, 9266),
    (0, 0, 2, -1, 8822), (2, -1, 0, -1, 8216), (2, 0, -2, -1, 4324),
    (2, 0, 1, 1, 4200), (2, 1, 0, -1, -3359), (2, -1, -1, 1, 2463),
    (2, -1, 0, 1, 2211), (2, -1, -1, -1, 2065), (0, 1, -1, -1, -1870),
    (4, 0, -1, -1, 1828), (0, 1, 0, 1, -1794), (0, 0, 0, 3, -1749),
    (0, 1, -1, 1, -1565), (1, 0, 0, 1, -1491), (0, 1, 1, 1, -1475),
    (0, 1, 1, -1, -1410), (0, 1, 0, -1, -1344), (1, 0, 0, -1, -1335),
    (0, 0, 3, 1, 1107), (4, 0, 0, -1, 1021), (4, 0, -1, 1, 833),
]


def _moon_arguments(T: float) -> Tuple[float, float, float, float, float, float]:
    """Returns (L', D, M, M', F, E) in degrees (E dimensionless)."""
    Lp = _n(218.3164477 + 481267.88123421*T - 0.0015786*T*T + T**3/538841.0 - T**4/65194000.0)
    D  = _n(297.8501921 + 445267.1114034*T  - 0.0018819*T*T + T**3/545868.0 - T**4/113065000.0)
    M  = _n(357.5291092 + 35999.0502909*T   - 0.0001536*T*T + T**3/24490000.0)
    Mp = _n(134.9633964 + 477198.8675055*T  + 0.0087414*T*T + T**3/69699.0 - T**4/14712000.0)
    F  = _n(93.2720950  + 483202.0175233*T  - 0.0036539*T*T - T**3/3526000.0 + T**4/863310000.0)
    E  = 1.0 - 0.002516*T - 0.0000074*T*T
    return Lp, D, M, Mp, F, E


def _periodic_sum(terms, D, M, Mp, F, E, trig) -> float:
    total = 0.0
    for d, m, mp, f, coeff in terms:
        arg = _r(d*D + m*M + mp*Mp + f*F)
        total += coeff * trig(arg) * (E ** abs(m))
    return total


def moon_longitude(T: float) -> Tuple[float, float]:
    """Returns (geometric_longitude_deg, latitude_deg), nutation not applied."""
    Lp, D, M, Mp, F, E = _moon_arguments(T)
    A1 = _n(119.75 + 131.849*T)
    A2 = _n(53.09 + 479264.290*T)
    A3 = _n(313.45 + 481266.484*T)

    sl = _periodic_sum(_MOON_LON_TERMS, D, M, Mp, F, E, math.sin)
    sl += (3958*math.sin(_r(A1))
           + 1962*math.sin(_r(Lp - F))
           + 318*math.sin(_r(A2)))

    sb = _periodic_sum(_MOON_LAT_TERMS, D, M, Mp, F, E, math.sin)
    sb += (-2235*math.sin(_r(Lp))
           + 382*math.sin(_r(A3))
           + 175*math.sin(_r(A1 - F))
           + 175*math.sin(_r(A1 + F))
           + 127*math.sin(_r(Lp - Mp))
           - 115*math.sin(_r(Lp + Mp)))

    return _n(Lp + sl/1_000_000.0), sb/1_000_000.0


# ── Rahu (true node, Meeus Ch. 47) ─────────────────────────────

def rahu_longitude(T: float) -> float:
    """True ascending lunar node."""
    _, D, M, Mp, F, _ = _moon_arguments(T)
    omega = 125.0445479 - 1934.1362891*T + 0.0020754*T*T + T**3/467441.0
    omega += (-1.4979*math.sin(_r(2*(D - F)))
              - 0.1500*math.sin(_r(M))
              - 0.1226*math.sin(_r(2*D))
              + 0.1176*math.sin(_r(2*F))
              - 0.0801*math.sin(_r(2*(Mp - F))))
    return _n(omega)


# ── Planets: mean elements of date (Meeus Table 31.A) ──────────
#
# (L0, L1, a, e0, e1, i0, i1, node0, node1, peri0, peri1)
# L = mean longitude, peri = longitude of perihelion, rates per century.

_ELEMENTS = {
    "Mercury": (252.250906, 149474.0722491, 0.387098310, 0.20563175,  0.000020407,
                7.004986,  0.0018215, 48.330893,  1.1861883, 77.456119,  1.5564776),
    "Venus":   (181.979801,  58519.2130302, 0.723329820, 0.00677192, -0.000047765,
                3.394662,  0.0010037, 76.679920,  0.9011206, 131.563703, 1.4022288),
    "Mars":    (355.433000,  19141.6964471, 1.523679342, 0.09340065,  0.000090484,
                1.849726, -0.0006011, 49.558093,  0.7720959, 336.060234, 1.8410449),
    "Jupiter": ( 34.351519,   3036.3027748, 5.202603209, 0.04849793,  0.000163225,
                1.303267, -0.0054965, 100.464407, 1.0209774, 14.331207,  1.6126352),
    "Saturn":  ( 50.077444,   1223.5110686, 9.554909192, 0.05554814, -0.000346641,
                2.488879, -0.0037362, 113.665503, 0.8770880, 93.057237,  1.9637613),
}


def _mean_anomaly(planet: str, T: float) -> float:
    L0, L1, _a, _e0, _e1, _i0, _i1, _n0, _n1, p0, p1 = _ELEMENTS[planet]
    return _n((L0 + L1*T) - (p0 + p1*T))


def _heliocentric(planet: str, T: float) -> Tuple[float, float, float]:
    """Heliocentric ecliptic (longitude, latitude, radius) from a Kepler solve."""
    L0, L1, a, e0, e1, i0, i1, node0, node1, peri0, peri1 = _ELEMENTS[planet]
    e    = e0 + e1*T
    inc  = _r(i0 + i1*T)
    node = _n(node0 + node1*T)
    peri = _n(peri0 + peri1*T)
    M    = _r(_n(L0 + L1*T - peri))

    E = M + e*math.sin(M)*(1 + e*math.cos(M))
    for _ in range(10):
        dE = (E - e*math.sin(E) - M) / (1 - e*math.cos(E))
        E -= dE
        if abs(dE) < 1e-12:
            break

    v = math.atan2(math.sqrt(1 - e*e)*math.sin(E), math.cos(E) - e)
    r = a*(1 - e*math.cos(E))
    u = v + _r(peri - node)        # argument of latitude
    node_r = _r(node)

    x = r*(math.cos(node_r)*math.cos(u) - math.sin(node_r)*math.sin(u)*math.cos(inc))
    y = r*(math.sin(node_r)*math.cos(u) + math.cos(node_r)*math.sin(u)*math.cos(inc))
    z = r*math.sin(u)*math.sin(inc)

    lon = _n(_d(math.atan2(y, x)))
    lat = _d(math.atan2(z, math.sqrt(x*x + y*y)))

    # Great inequality (Jupiter-Saturn), largest terms only
    if planet in ("Jupiter", "Saturn"):
        Mj = _mean_anomaly("Jupiter", T)
        Ms = _mean_anomaly("Saturn", T)
        s = lambda deg: math.sin(_r(deg))
        c = lambda deg: math.cos(_r(deg))
        if planet == "Jupiter":
            lon += (-0.332*s(2*Mj - 5*Ms - 67.6) - 0.056*s(2*Mj - 2*Ms + 21)
                    + 0.042*s(3*Mj - 5*Ms + 21) - 0.036*s(Mj - 2*Ms)
                    + 0.022*c(Mj - Ms) + 0.023*s(2*Mj - 3*Ms + 52)
                    - 0.016*s(Mj - 5*Ms - 69))
        else:
            lon += (0.812*s(2*Mj - 5*Ms - 67.6) - 0.229*c(2*Mj - 4*Ms - 2)
                    + 0.119*s(Mj - 2*Ms - 3) + 0.046*s(2*Mj - 6*Ms - 69)
                    + 0.014*s(Mj - 3*Ms + 32))
            lat += -0.020*c(2*Mj - 4*Ms - 2) + 0.018*s(2*Mj - 6*Ms - 49)
    return _n(lon), lat, r


def _planet_geocentric(planet: str, T: float, sun_lon: float, sun_R: float) -> float:
    """Geocentric ecliptic longitude: planet vector minus Earth vector."""
    lh, bh, rh = _heliocentric(planet, T)
    le = _r(_n(sun_lon + 180.0))   # Earth is opposite the Sun
    x = rh*math.cos(_r(bh))*math.cos(_r(lh)) - sun_R*math.cos(le)
    y = rh*math.cos(_r(bh))*math.sin(_r(lh)) - sun_R*math.sin(le)
    return _n(_d(math.atan2(y, x)))


# ── Ayanamsa ────────────────────────────────────────────────────

class Ayanamsa(str, Enum):
    LAHIRI = "lahiri"
    RAMAN  = "raman"
    KP     = "kp"
    FAGAN  = "fagan"

    @classmethod
    def parse(cls, value: Union["Ayanamsa", str]) -> "Ayanamsa":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise InvalidInput(
                f"unknown ayanamsa {value!r}; expected one of {[a.value for a in cls]}"
            ) from None


AYANAMSA = {
    # value at J2000 (degrees), precession rate (degrees/year)
    Ayanamsa.LAHIRI: {"j2000": 23.85045, "rate": 50.2882 / 3600.0},
    Ayanamsa.RAMAN:  {"j2000": 22.46000, "rate": 50.2388 / 3600.0},
    Ayanamsa.KP:     {"j2000": 23.86000, "rate": 50.2388 / 3600.0},
    Ayanamsa.FAGAN:  {"j2000": 24.74000, "rate": 50.2388 / 3600.0},
}


def get_ayanamsa(T: float, system: Union[Ayanamsa, str] = Ayanamsa.LAHIRI) -> float:
    p = AYANAMSA[Ayanamsa.parse(system)]
    return p["j2000"] + p["rate"] * T * 100  # T is centuries


def tropical_to_sidereal(lon: float, T: float,
                         ayanamsa: Union[Ayanamsa, str] = Ayanamsa.LAHIRI) -> float:
    return _n(lon - get_ayanamsa(T, ayanamsa))


# ── Sidereal time ──────────────────────────────────────────────

def gmst(jd: float) -> float:
    """Greenwich Mean Sidereal Time in degrees. Meeus Ch. 12."""
    T  = (jd - J2000) / JULIAN_CENTURY
    th = 280.46061837 + 360.98564736629*(jd - J2000) + 0.000387933*T*T - T*T*T/38710000.0
    return _n(th)


# ── Main API ────────────────────────────────────────────────────

@dataclass(frozen=True)
class SiderealPosition:
    """Sidereal Sun and Moon at one instant."""
    jd:   float
    sun:  float
    moon: float


def position(jd: float, ayanamsa: Union[Ayanamsa, str] = Ayanamsa.LAHIRI) -> SiderealPosition:
    """Sidereal apparent longitudes of the Sun and Moon at a UT instant."""
    T = _centuries(jd)
    dpsi, _, _ = nutation_and_obliquity(T)
    sun_trop, _ = sun_longitude(T, dpsi)
    moon_trop, _ = moon_longitude(T)
    moon_trop = _n(moon_trop + dpsi/3600.0)
    return SiderealPosition(
        jd=jd,
        sun=tropical_to_sidereal(sun_trop, T, ayanamsa),
        moon=tropical_to_sidereal(moon_trop, T, ayanamsa),
    )


def sun_tropical(jd: float) -> float:
    T = _centuries(jd)
    dpsi, _, _ = nutation_and_obliquity(T)
    return sun_longitude(T, dpsi)[0]


def sun_sidereal(jd: float, ayanamsa: Union[Ayanamsa, str] = Ayanamsa.LAHIRI) -> float:
    T = _centuries(jd)
    dpsi, _, _ = nutation_and_obliquity(T)
    return tropical_to_sidereal(sun_longitude(T, dpsi)[0], T, ayanamsa)


def moon_equatorial(jd: float) -> Tuple[float, float]:
    """Apparent (right_ascension_deg, declination_deg) of the Moon."""
    T = _centuries(jd)
    dpsi, _, obl = nutation_and_obliquity(T)
    lam, beta = moon_longitude(T)
    lam = _r(_n(lam + dpsi/3600.0))
    beta = _r(beta)
    eps = _r(obl)
    ra = math.atan2(math.sin(lam)*math.cos(eps) - math.tan(beta)*math.sin(eps), math.cos(lam))
    dec = math.asin(math.sin(beta)*math.cos(eps) + math.cos(beta)*math.sin(eps)*math.sin(lam))
    return _n(_d(ra)), _d(dec)


def graha_longitudes(jd: float,
                     ayanamsa: Union[Ayanamsa, str] = Ayanamsa.LAHIRI) -> Dict[str, float]:
    """
    Sidereal longitudes of the nine grahas, keyed in GRAHAS order.
    Ketu is derived from Rahu, never computed on its own.
    """
    T = _centuries(jd)
    dpsi, _, _ = nutation_and_obliquity(T)
    sun_trop, sun_R = sun_longitude(T, dpsi)
    moon_trop, _ = moon_longitude(T)

    tropical = {
        "Sun":  sun_trop,
        "Moon": _n(moon_trop + dpsi/3600.0),
        "Rahu": rahu_longitude(T),
    }
    for planet in ("Mars", "Mercury", "Jupiter", "Venus", "Saturn"):
        tropical[planet] = _planet_geocentric(planet, T, sun_trop, sun_R)

    sidereal = {}
    for graha in GRAHAS:
        if graha == "Ketu":
            sidereal[graha] = _n(sidereal["Rahu"] + 180.0)
        else:
            sidereal[graha] = tropical_to_sidereal(tropical[graha], T, ayanamsa)
    return sidereal
