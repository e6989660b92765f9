"""
Nodal corrections (node factor f and node argument u).

The amplitude and phase of the lunar constituents vary over the 18.61-year
regression of the Moon's node.  Following Schureman (1958), the variation is
expressed through the inclination ``I`` of the lunar orbit to the equator
and the auxiliary angles ``nu``, ``xi``, ``nu'`` and ``2nu''``, all functions
of the node longitude ``N``.

Each constituent maps to one formula variant of a small closed set:

* ``semidiurnal`` / ``diurnal`` / ``long-period`` -- a Schureman closed form
  named by its *basis* (``"M2"``, ``"K1"``, ``"Mf"``, ...), or unity for the
  purely solar constituents;
* ``compound`` -- derived from parent constituents: ``f`` is the product of
  the parents' ``f`` raised to ``|m|`` and ``u`` the sum of ``m * u`` over
  (parent, multiplier ``m``) pairs.

References
----------
- Schureman, P. (1958). Special Publication No. 98, equations 65-78,
  197-235 and Table 2.
- Foreman, M.G.G. (1977). Manual for Tidal Heights Analysis and
  Prediction.  Pacific Marine Science Report 77-10 (compound rules).
"""
from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Iterable, Mapping

import numpy as np
import pandas as pd

from .astronomical import (
    astronomical_arguments,
    wrap_degrees,
    wrap_signed_degrees,
)

logger = logging.getLogger(__name__)

OBLIQUITY = 23.452
"""Obliquity of the ecliptic used by Schureman (degrees)."""

LUNAR_INCLINATION = 5.145
"""Inclination of the lunar orbit to the ecliptic (degrees)."""


@dataclass(frozen=True)
class NodalCorrection:
    """Node factor ``f`` (dimensionless) and node argument ``u`` (degrees)."""

    f: float = 1.0
    u: float = 0.0


@dataclass(frozen=True)
class LunarOrbitTerms:
    """Schureman's auxiliary angles for one node position (degrees)."""

    I: float
    nu: float
    xi: float
    nu_prime: float
    two_nu_double_prime: float
    P: float


def lunar_orbit_terms(node: float, perigee: float = 0.0) -> LunarOrbitTerms:
    """
    Compute ``I``, ``nu``, ``xi``, ``nu'``, ``2nu''`` and ``P``.

    Parameters
    ----------
    node : float
        Longitude of the Moon's ascending node ``N`` (degrees, any range).
    perigee : float, optional
        Longitude of lunar perigee ``p`` (degrees); only ``P`` depends on it.

    Returns
    -------
    LunarOrbitTerms
        Angles in degrees; ``nu``, ``xi``, ``nu'`` and ``2nu''`` in
        [-180, 180).
    """
    n = math.radians(wrap_degrees(node))
    w = math.radians(OBLIQUITY)
    i = math.radians(LUNAR_INCLINATION)

    # Schureman eq. 191
    cos_inc = math.cos(i) * math.cos(w) - math.sin(i) * math.sin(w) * math.cos(n)
    inc = math.acos(cos_inc)

    # Schureman eqs. 192-196, solved through the half-angle tangents
    half_tan = math.tan(0.5 * n)
    e1 = math.atan(
        math.cos(0.5 * (w - i)) / math.cos(0.5 * (w + i)) * half_tan
    ) - 0.5 * n
    e2 = math.atan(
        math.sin(0.5 * (w - i)) / math.sin(0.5 * (w + i)) * half_tan
    ) - 0.5 * n
    xi = wrap_signed_degrees(-math.degrees(e1 + e2))
    nu = wrap_signed_degrees(math.degrees(e1 - e2))

    nu_r = math.radians(nu)
    sin_2i = math.sin(2.0 * inc)
    sin_i2 = math.sin(inc) ** 2

    # Schureman eq. 224
    nu_prime = math.degrees(
        math.atan2(sin_2i * math.sin(nu_r), sin_2i * math.cos(nu_r) + 0.3347)
    )
    # Schureman eq. 232
    two_nu_dp = math.degrees(
        math.atan2(
            sin_i2 * math.sin(2.0 * nu_r),
            sin_i2 * math.cos(2.0 * nu_r) + 0.0727,
        )
    )

    return LunarOrbitTerms(
        I=math.degrees(inc),
        nu=nu,
        xi=xi,
        nu_prime=nu_prime,
        two_nu_double_prime=two_nu_dp,
        P=wrap_degrees(perigee - xi),
    )


# ---------------------------------------------------------------------------
# Schureman closed forms, keyed by basis name.  Each returns (f, u).
# ---------------------------------------------------------------------------

def _m2(t: LunarOrbitTerms) -> tuple[float, float]:
    inc = math.radians(t.I)
    return math.cos(0.5 * inc) ** 4 / 0.9154, 2.0 * t.xi - 2.0 * t.nu


def _k2(t: LunarOrbitTerms) -> tuple[float, float]:
    inc = math.radians(t.I)
    nu = math.radians(t.nu)
    f = math.sqrt(
        19.0444 * math.sin(inc) ** 4
        + 2.7702 * math.sin(inc) ** 2 * math.cos(2.0 * nu)
        + 0.0981
    )
    return f, -t.two_nu_double_prime


def _l2(t: LunarOrbitTerms) -> tuple[float, float]:
    inc = math.radians(t.I)
    big_p = math.radians(t.P)
    tan_half = math.tan(0.5 * inc)
    inv_ra = math.sqrt(
        1.0 - 12.0 * tan_half ** 2 * math.cos(2.0 * big_p) + 36.0 * tan_half ** 4
    )
    f_m2, u_m2 = _m2(t)
    r = math.degrees(
        math.atan2(
            math.sin(2.0 * big_p),
            1.0 / (6.0 * tan_half ** 2) - math.cos(2.0 * big_p),
        )
    )
    return f_m2 * inv_ra, u_m2 - r


def _o1(t: LunarOrbitTerms) -> tuple[float, float]:
    inc = math.radians(t.I)
    f = math.sin(inc) * math.cos(0.5 * inc) ** 2 / 0.3800
    return f, 2.0 * t.xi - t.nu


def _k1(t: LunarOrbitTerms) -> tuple[float, float]:
    inc = math.radians(t.I)
    nu = math.radians(t.nu)
    f = math.sqrt(
        0.8965 * math.sin(2.0 * inc) ** 2
        + 0.6001 * math.sin(2.0 * inc) * math.cos(nu)
        + 0.1006
    )
    return f, -t.nu_prime


def _j1(t: LunarOrbitTerms) -> tuple[float, float]:
    inc = math.radians(t.I)
    return math.sin(2.0 * inc) / 0.7214, -t.nu


def _oo1(t: LunarOrbitTerms) -> tuple[float, float]:
    inc = math.radians(t.I)
    f = math.sin(inc) * math.sin(0.5 * inc) ** 2 / 0.0164
    return f, -2.0 * t.xi - t.nu


def _m1(t: LunarOrbitTerms) -> tuple[float, float]:
    inc = math.radians(t.I)
    big_p = math.radians(t.P)
    cos_i = math.cos(inc)
    cos_half = math.cos(0.5 * inc)
    # Schureman eq. 197 (1/Qa) and 204 (Q), in atan2 form
    inv_qa = math.sqrt(
        0.25
        + 1.5 * cos_i * math.cos(2.0 * big_p) / math.sqrt(cos_half)
        + 2.25 * cos_i ** 2 / cos_half ** 4
    )
    q = math.degrees(
        math.atan2(
            (5.0 * cos_i - 1.0) * math.sin(big_p),
            (7.0 * cos_i + 1.0) * math.cos(big_p),
        )
    )
    f_o1, _ = _o1(t)
    return f_o1 * inv_qa, t.xi - t.nu + q


def _mm(t: LunarOrbitTerms) -> tuple[float, float]:
    inc = math.radians(t.I)
    return (2.0 / 3.0 - math.sin(inc) ** 2) / 0.5021, 0.0


def _mf(t: LunarOrbitTerms) -> tuple[float, float]:
    inc = math.radians(t.I)
    return math.sin(inc) ** 2 / 0.1578, -2.0 * t.xi


SCHUREMAN_FORMULAS: Mapping[str, Callable[[LunarOrbitTerms], tuple[float, float]]]
SCHUREMAN_FORMULAS = MappingProxyType({
    'M2': _m2,
    'K2': _k2,
    'L2': _l2,
    'O1': _o1,
    'K1': _k1,
    'J1': _j1,
    'OO1': _oo1,
    'M1': _m1,
    'Mm': _mm,
    'Mf': _mf,
})
"""Schureman closed-form (f, u) functions keyed by basis name."""


class FormulaKind(str, enum.Enum):
    """Closed set of nodal formula variants."""

    SEMIDIURNAL = 'semidiurnal'
    DIURNAL = 'diurnal'
    LONG_PERIOD = 'long-period'
    COMPOUND = 'compound'


@dataclass(frozen=True)
class NodalFormula:
    """
    Tagged nodal formula variant.

    Attributes
    ----------
    kind : FormulaKind
        Variant tag.
    basis : str or None
        Key into :data:`SCHUREMAN_FORMULAS`; ``None`` means unity
        (``f = 1``, ``u = 0``).  Unused for compound formulas.
    parents : tuple of (str, float)
        ``(parent symbol, multiplier)`` pairs of a compound formula.
    """

    kind: FormulaKind
    basis: str | None = None
    parents: tuple[tuple[str, float], ...] = ()

    def __post_init__(self):
        if self.kind is FormulaKind.COMPOUND and not self.parents:
            raise ValueError('A compound nodal formula needs parents.')
        if self.basis is not None and self.basis not in SCHUREMAN_FORMULAS:
            raise ValueError(f"Unknown Schureman basis {self.basis!r}.")


def _semi(basis=None):
    return NodalFormula(FormulaKind.SEMIDIURNAL, basis)


def _diur(basis=None):
    return NodalFormula(FormulaKind.DIURNAL, basis)


def _long(basis=None):
    return NodalFormula(FormulaKind.LONG_PERIOD, basis)


def _compound(*parents):
    return NodalFormula(FormulaKind.COMPOUND, parents=tuple(parents))


NODAL_FORMULAS: Mapping[str, NodalFormula] = MappingProxyType({
    # -- Semidiurnal --
    'M2': _semi('M2'),
    'S2': _semi(),
    'N2': _semi('M2'),
    'K2': _semi('K2'),
    '2N2': _semi('M2'),
    'MU2': _semi('M2'),
    'NU2': _semi('M2'),
    'L2': _semi('L2'),
    'T2': _semi(),
    'R2': _semi(),
    'LDA2': _semi('M2'),
    # -- Diurnal --
    'K1': _diur('K1'),
    'O1': _diur('O1'),
    'P1': _diur(),
    'Q1': _diur('O1'),
    'J1': _diur('J1'),
    'M1': _diur('M1'),
    'OO1': _diur('OO1'),
    '2Q1': _diur('O1'),
    'RHO1': _diur('O1'),
    'S1': _diur(),
    # -- Long-period --
    'MF': _long('Mf'),
    'MM': _long('Mm'),
    'SSA': _long(),
    'SA': _long(),
    'MSM': _long('Mm'),
    'MSF': _compound(('S2', 1.0), ('M2', -1.0)),
    # -- Shallow-water / overtides --
    'M4': _compound(('M2', 2.0)),
    'M6': _compound(('M2', 3.0)),
    'M8': _compound(('M2', 4.0)),
    'M3': _compound(('M2', 1.5)),
    'MS4': _compound(('M2', 1.0), ('S2', 1.0)),
    'MN4': _compound(('M2', 1.0), ('N2', 1.0)),
    'MK3': _compound(('M2', 1.0), ('K1', 1.0)),
    '2MK3': _compound(('M2', 2.0), ('K1', -1.0)),
    'MO3': _compound(('M2', 1.0), ('O1', 1.0)),
    '2SM2': _compound(('S2', 2.0), ('M2', -1.0)),
    'S4': _compound(('S2', 2.0)),
    'S6': _compound(('S2', 3.0)),
})
"""Nodal formula variant of every built-in constituent."""


def evaluate_formula(
    formula: NodalFormula,
    terms: LunarOrbitTerms,
    formulas: Mapping[str, NodalFormula] = NODAL_FORMULAS,
) -> NodalCorrection:
    """
    Evaluate a nodal formula variant for one set of orbit terms.

    Parameters
    ----------
    formula : NodalFormula
        Variant to evaluate.
    terms : LunarOrbitTerms
        Auxiliary angles from :func:`lunar_orbit_terms`.
    formulas : mapping, optional
        Table used to resolve compound parents.

    Returns
    -------
    NodalCorrection

    Raises
    ------
    KeyError
        If a compound parent has no formula in *formulas*.
    """
    if formula.kind is FormulaKind.COMPOUND:
        f, u = 1.0, 0.0
        for parent, multiplier in formula.parents:
            parent_nc = evaluate_formula(formulas[parent], terms, formulas)
            f *= parent_nc.f ** abs(multiplier)
            u += multiplier * parent_nc.u
        return NodalCorrection(f=f, u=u)
    if formula.basis is None:
        return NodalCorrection()
    f, u = SCHUREMAN_FORMULAS[formula.basis](terms)
    return NodalCorrection(f=f, u=u)


def nodal_cycle_table(
    symbols: Iterable[str] = ('M2', 'K1', 'O1'),
    start_year: int = 2020,
    years: float = 18.61,
    step_days: float = 30.0,
    formulas: Mapping[str, NodalFormula] = NODAL_FORMULAS,
    logger: logging.Logger | None = None,
) -> pd.DataFrame:
    """
    Tabulate f and u over (by default) one full nodal cycle.

    Parameters
    ----------
    symbols : iterable of str, optional
        Constituents to tabulate (must have formulas).
    start_year : int, optional
        First year of the table (starts 1 January, UTC).
    years : float, optional
        Span of the table in years (default one nodal cycle, 18.61).
    step_days : float, optional
        Spacing of the rows in days (default 30).
    formulas : mapping, optional
        Nodal formula table.
    logger : logging.Logger, optional
        Logger instance.

    Returns
    -------
    pd.DataFrame
        Columns ``DateTime``, ``N`` (node longitude, degrees in [0, 360))
        and ``f_<symbol>`` / ``u_<symbol>`` for each symbol.

    Raises
    ------
    ValueError
        If *step_days* is not positive or a symbol has no formula.
    """
    _log = logger or logging.getLogger(__name__)

    if step_days <= 0:
        raise ValueError(f"step_days must be positive, got {step_days}.")
    symbols = [str(s).strip().upper() for s in symbols]
    missing = [s for s in symbols if s not in formulas]
    if missing:
        raise ValueError(f"No nodal formula for: {missing}")

    start = pd.Timestamp(year=start_year, month=1, day=1, tz='UTC')
    n_rows = int(np.floor(years * 365.25 / step_days)) + 1
    times = start + pd.to_timedelta(np.arange(n_rows) * step_days, unit='D')

    rows = []
    for ts in times:
        astro = astronomical_arguments(ts)
        terms = lunar_orbit_terms(astro.N, astro.p)
        row = {'DateTime': ts, 'N': wrap_degrees(astro.N)}
        for symbol in symbols:
            nc = evaluate_formula(formulas[symbol], terms, formulas)
            row[f"f_{symbol}"] = nc.f
            row[f"u_{symbol}"] = wrap_signed_degrees(nc.u)
        rows.append(row)

    _log.info(
        'Nodal cycle table: %d rows for %s from %d.',
        len(rows), ', '.join(symbols), start_year,
    )
    return pd.DataFrame(rows)
