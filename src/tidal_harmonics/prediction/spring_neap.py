"""
Spring/neap index and lunar phase.

When the M2 and S2 equilibrium arguments coincide the two waves add
(spring tides); in quadrature they partly cancel (neap tides).  The index
``cos(V0(S2) - V0(M2))`` therefore runs from +1 (spring) to -1 (neap) over
half a synodic month (about 14.77 days).  It depends only on astronomy,
not on any station.
"""
from __future__ import annotations

import logging
import math
from datetime import datetime

import numpy as np
import pandas as pd
from scipy.signal import argrelextrema

from .astronomical import astronomical_arguments, to_utc_timestamp, wrap_degrees
from .constituents import ConstituentCatalog, default_catalog
from .equilibrium import EquilibriumArgumentResolver

logger = logging.getLogger(__name__)

SYNODIC_MONTH_DAYS = 29.530589


def spring_neap_index(
    instant: datetime | pd.Timestamp | str,
    catalog: ConstituentCatalog | None = None,
) -> float:
    """
    Spring/neap index in [-1, 1] at *instant*.

    Parameters
    ----------
    instant : datetime, pandas.Timestamp or str
        Instant (UTC if naive).
    catalog : ConstituentCatalog, optional
        Source of the M2 and S2 definitions (default: built-in).

    Returns
    -------
    float
        +1 at springs, -1 at neaps.
    """
    catalog = catalog if catalog is not None else default_catalog()
    args = astronomical_arguments(instant)
    v_m2 = EquilibriumArgumentResolver.equilibrium_argument(catalog['M2'], args)
    v_s2 = EquilibriumArgumentResolver.equilibrium_argument(catalog['S2'], args)
    return math.cos(math.radians(wrap_degrees(v_s2 - v_m2)))


def lunar_phase(instant: datetime | pd.Timestamp | str) -> float:
    """
    Lunar phase in [0, 1): 0 new moon, 0.5 full moon.

    Taken from the mean elongation ``s - h`` of the Moon from the Sun.
    """
    args = astronomical_arguments(instant)
    return wrap_degrees(args.s - args.h) / 360.0


def spring_neap_calendar(
    start: datetime | pd.Timestamp | str,
    days: int = 30,
    catalog: ConstituentCatalog | None = None,
    logger: logging.Logger | None = None,
) -> pd.DataFrame:
    """
    Daily spring/neap index with Spring and Neap days marked.

    Parameters
    ----------
    start : datetime, pandas.Timestamp or str
        First day; the calendar is evaluated at 00:00 UTC of each day.
    days : int, optional
        Number of days (default 30).
    catalog : ConstituentCatalog, optional
        Source of the M2 and S2 definitions.
    logger : logging.Logger, optional
        Logger instance.

    Returns
    -------
    pd.DataFrame
        Columns ``Date``, ``Index``, ``Lunar_Phase`` and ``Marker``
        (``"Spring"`` / ``"Neap"`` at local maxima / minima of the index,
        empty otherwise).

    Raises
    ------
    ValueError
        If *days* is not positive.
    """
    _log = logger or logging.getLogger(__name__)

    if days < 1:
        raise ValueError(f"days must be positive, got {days}.")

    first = to_utc_timestamp(start).normalize()
    dates = pd.date_range(first, periods=days, freq='D')
    index = np.array([spring_neap_index(d, catalog) for d in dates])
    phase = np.array([lunar_phase(d) for d in dates])

    markers = np.full(days, '', dtype=object)
    if days >= 3:
        for i in argrelextrema(index, np.greater)[0]:
            markers[i] = 'Spring'
        for i in argrelextrema(index, np.less)[0]:
            markers[i] = 'Neap'

    _log.info(
        'Spring/neap calendar from %s: %d days, %d spring, %d neap.',
        first.date(), days,
        int(np.sum(markers == 'Spring')), int(np.sum(markers == 'Neap')),
    )
    return pd.DataFrame({
        'Date': dates,
        'Index': index,
        'Lunar_Phase': phase,
        'Marker': markers,
    })
