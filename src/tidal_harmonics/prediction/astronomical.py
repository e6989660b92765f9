"""
Fundamental astronomical arguments for harmonic tide prediction.

Evaluates the six arguments multiplied by the Doodson numbers::

    T   mean lunar time (Doodson tau, from lower transit of the mean moon)
    s   mean longitude of the Moon
    h   mean longitude of the Sun
    p   longitude of lunar perigee
    N'  negative of the longitude of the Moon's ascending node (N' = -N)
    p'  longitude of solar perigee (perihelion)

All values are continuous (never reduced modulo 360) so that differences
over long spans stay well behaved; callers wrap only immediately before a
trigonometric evaluation.  Time enters as a single scalar, Julian centuries
since J2000.0, computed from integer nanoseconds.

References
----------
- Meeus, J. (1998). Astronomical Algorithms, 2nd ed., ch. 47.
- Schureman, P. (1958). Manual of Harmonic Analysis and Prediction of
  Tides.  Special Publication No. 98, U.S. Coast and Geodetic Survey.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

import pandas as pd

J2000 = pd.Timestamp('2000-01-01T12:00:00', tz='UTC')
"""Reference epoch J2000.0 (UT is used for TT; the difference is ignored)."""

DAYS_PER_CENTURY = 36525.0
HOURS_PER_CENTURY = DAYS_PER_CENTURY * 24.0
_NS_PER_DAY = 86_400 * 10**9

# Linear rates of the polynomials below, in degrees per hour.
_S_RATE = 481267.88123421 / HOURS_PER_CENTURY
_H_RATE = 36000.76983 / HOURS_PER_CENTURY
_P_RATE = 4069.0137287 / HOURS_PER_CENTURY
_N_RATE = 1934.136261 / HOURS_PER_CENTURY
_PP_RATE = 1.71946 / HOURS_PER_CENTURY

ARGUMENT_RATES: tuple[float, ...] = (
    15.0 + _H_RATE - _S_RATE,   # T
    _S_RATE,                    # s
    _H_RATE,                    # h
    _P_RATE,                    # p
    _N_RATE,                    # N' (= -N, advancing)
    _PP_RATE,                   # p'
)
"""Rates of ``[T, s, h, p, N', p']`` in degrees per hour at J2000.0."""


@dataclass(frozen=True)
class AstronomicalArguments:
    """Six fundamental arguments in continuous (unwrapped) degrees."""

    T: float
    s: float
    h: float
    p: float
    N_prime: float
    p_prime: float
    centuries: float

    def as_tuple(self) -> tuple[float, float, float, float, float, float]:
        """Arguments in Doodson order ``(T, s, h, p, N', p')``."""
        return (self.T, self.s, self.h, self.p, self.N_prime, self.p_prime)

    @property
    def N(self) -> float:
        """Longitude of the Moon's ascending node (degrees)."""
        return -self.N_prime


def to_utc_timestamp(instant: datetime | pd.Timestamp | str) -> pd.Timestamp:
    """
    Convert an instant to a UTC :class:`pandas.Timestamp`.

    Naive datetimes and strings without an offset are taken to be UTC.
    """
    ts = pd.Timestamp(instant)
    if ts is pd.NaT:
        raise ValueError('instant must not be NaT.')
    if ts.tzinfo is None:
        return ts.tz_localize('UTC')
    return ts.tz_convert('UTC')


def days_since_j2000(instant: datetime | pd.Timestamp | str) -> float:
    """Days (UT) elapsed since J2000.0."""
    ts = to_utc_timestamp(instant)
    return (ts.value - J2000.value) / _NS_PER_DAY


def julian_centuries(instant: datetime | pd.Timestamp | str) -> float:
    """Julian centuries elapsed since J2000.0."""
    return days_since_j2000(instant) / DAYS_PER_CENTURY


def astronomical_arguments(
    instant: datetime | pd.Timestamp | str | None = None,
    centuries: float | None = None,
) -> AstronomicalArguments:
    """
    Evaluate the fundamental arguments at an instant.

    Parameters
    ----------
    instant : datetime, pandas.Timestamp or str, optional
        Instant (UTC if naive).
    centuries : float, optional
        Julian centuries since J2000.0; used instead of *instant*.

    Returns
    -------
    AstronomicalArguments
        Continuous arguments in degrees.

    Raises
    ------
    ValueError
        If neither or both of *instant* and *centuries* are given.
    """
    if (instant is None) == (centuries is None):
        raise ValueError('Exactly one of instant or centuries is required.')
    if centuries is None:
        centuries = julian_centuries(instant)

    t = centuries
    t2 = t * t
    t3 = t2 * t
    t4 = t3 * t

    s = (218.3164477 + 481267.88123421 * t - 0.0015786 * t2
         + t3 / 538841.0 - t4 / 65194000.0)
    h = 280.46646 + 36000.76983 * t + 0.0003032 * t2
    p = (83.3532465 + 4069.0137287 * t - 0.0103200 * t2
         - t3 / 80053.0 + t4 / 18999000.0)
    node = 125.04452 - 1934.136261 * t + 0.0020708 * t2 + t3 / 450000.0
    p_prime = 282.93768 + 1.71946 * t + 0.00045688 * t2

    # Mean solar angle from lower transit is 180 deg at J2000.0 (12:00 UT)
    # and advances 360 deg per mean solar day.
    solar_angle = 180.0 + 360.0 * t * DAYS_PER_CENTURY
    lunar_time = solar_angle + h - s

    return AstronomicalArguments(
        T=lunar_time,
        s=s,
        h=h,
        p=p,
        N_prime=-node,
        p_prime=p_prime,
        centuries=t,
    )


def wrap_degrees(angle: float) -> float:
    """Reduce an angle to [0, 360)."""
    wrapped = angle % 360.0
    # -1e-17 % 360 rounds to 360.0
    return 0.0 if wrapped == 360.0 else wrapped


def wrap_signed_degrees(angle: float) -> float:
    """Reduce an angle to [-180, 180)."""
    return (angle + 180.0) % 360.0 - 180.0
