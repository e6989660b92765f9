"""
Harmonic re-analysis of a predicted series with UTide.

Predicts a station over a window, solves the series again with
:func:`utide.solve` and compares the recovered amplitudes and phases with
the station's constants.  Close agreement checks the prediction's
equilibrium arguments and nodal corrections against an independent
implementation.

The vector difference follows NOS convention::

    Vd = sqrt(Ar^2 + Ac^2 - 2*Ar*Ac*cos(dg))

where Ar/Ac are recovered/constant amplitudes and dg the phase difference.

References
----------
- Codiga, D.L. (2011). Unified Tidal Analysis and Prediction Using the
  UTide Matlab Functions.  Technical Report 2011-01, URI-GSO.
"""
from __future__ import annotations

import logging
from datetime import datetime

import numpy as np
import pandas as pd
from utide import solve
from utide._ut_constants import ut_constants

from .astronomical import to_utc_timestamp
from .constituents import normalize_constituent_name
from .series import predict_series
from .stations import StationHarmonicConstants
from .tidal_prediction import TidePredictor

logger = logging.getLogger(__name__)

# Names that differ between this catalog and UTide's constituent table.
_UTIDE_NAMES = {'M1': 'NO1'}
_FROM_UTIDE = {v: k for k, v in _UTIDE_NAMES.items()}

# Constituents sharing a frequency with the value; solving both is singular.
_SAME_FREQUENCY = {'2MK3': 'MO3'}


def utide_constituents(
    symbols: list[str],
    logger: logging.Logger | None = None,
) -> list[str]:
    """
    UTide names for the constituents UTide can solve.

    Symbols missing from UTide's constituent table are skipped, as is
    ``2MK3`` when ``MO3`` is also requested.  Skipped symbols are logged.

    Parameters
    ----------
    symbols : list of str
        Catalog symbols, in the order they should be solved.
    logger : logging.Logger, optional
        Logger instance.

    Returns
    -------
    list of str
        Names accepted by :func:`utide.solve`.
    """
    _log = logger or logging.getLogger(__name__)

    known = {n.strip().upper() for n in ut_constants['const']['name']}
    requested = {normalize_constituent_name(s) for s in symbols}

    constit, skipped = [], []
    for symbol in symbols:
        symbol = normalize_constituent_name(symbol)
        name = _UTIDE_NAMES.get(symbol, symbol)
        if _SAME_FREQUENCY.get(symbol) in requested or name not in known:
            skipped.append(symbol)
        elif name not in constit:
            constit.append(name)

    if skipped:
        _log.info(
            'Re-analysis skips constituents UTide cannot solve: %s.',
            ', '.join(skipped),
        )
    return constit


def compare_harmonic_constants(
    recovered_amp: np.ndarray,
    recovered_phase: np.ndarray,
    station_amp: np.ndarray,
    station_phase: np.ndarray,
    constituents: list[str],
    logger: logging.Logger | None = None,
) -> pd.DataFrame:
    """
    Compare recovered harmonic constants against a station's constants.

    Parameters
    ----------
    recovered_amp, recovered_phase : np.ndarray
        Amplitudes (m) and Greenwich phases (degrees) from re-analysis.
    station_amp, station_phase : np.ndarray
        The station's amplitudes and phases.
    constituents : list of str
        Constituent names, one per element.
    logger : logging.Logger, optional
        Logger instance.

    Returns
    -------
    pd.DataFrame
        Columns ``Constituent``, ``Station_Amp``, ``Recovered_Amp``,
        ``Amp_Diff``, ``Station_Phase``, ``Recovered_Phase``,
        ``Phase_Diff`` (wrapped to [-180, 180)) and ``Vector_Diff``.

    Raises
    ------
    ValueError
        If the inputs have different lengths.
    """
    _log = logger or logging.getLogger(__name__)

    recovered_amp = np.asarray(recovered_amp, dtype=float)
    recovered_phase = np.asarray(recovered_phase, dtype=float)
    station_amp = np.asarray(station_amp, dtype=float)
    station_phase = np.asarray(station_phase, dtype=float)

    lengths = {len(recovered_amp), len(recovered_phase), len(station_amp),
               len(station_phase), len(constituents)}
    if len(lengths) != 1:
        raise ValueError(
            'Recovered constants, station constants and constituent names '
            'must all have the same length.'
        )

    phase_diff = (recovered_phase - station_phase + 180.0) % 360.0 - 180.0
    vector_diff = np.sqrt(
        recovered_amp ** 2
        + station_amp ** 2
        - 2.0 * recovered_amp * station_amp * np.cos(np.radians(phase_diff))
    )

    df = pd.DataFrame({
        'Constituent': list(constituents),
        'Station_Amp': station_amp,
        'Recovered_Amp': recovered_amp,
        'Amp_Diff': recovered_amp - station_amp,
        'Station_Phase': station_phase,
        'Recovered_Phase': recovered_phase,
        'Phase_Diff': phase_diff,
        'Vector_Diff': vector_diff,
    })
    if len(df):
        _log.info(
            'Re-analysis comparison: %d constituents, mean vector diff=%.4f.',
            len(df), float(np.mean(vector_diff)),
        )
    return df


def reanalyze_station(
    station: StationHarmonicConstants,
    start: datetime | pd.Timestamp | str,
    end: datetime | pd.Timestamp | str,
    interval_minutes: float = 60.0,
    constit: list[str] | None = None,
    predictor: TidePredictor | None = None,
    logger: logging.Logger | None = None,
) -> pd.DataFrame:
    """
    Predict a station, re-solve the series with UTide and compare.

    Parameters
    ----------
    station : StationHarmonicConstants
        Station constants.
    start, end : datetime, pandas.Timestamp or str
        Analysis window (UTC if naive).  Resolving all of a station's
        constituents usually needs a year; a month separates the major
        ones.
    interval_minutes : float, optional
        Sampling cadence (default hourly).
    constit : list of str, optional
        UTide constituent names to solve for (default: the station's
        constituents, filtered by :func:`utide_constituents`).
    predictor : TidePredictor, optional
        Predictor to use.
    logger : logging.Logger, optional
        Logger instance.

    Returns
    -------
    pd.DataFrame
        See :func:`compare_harmonic_constants`; one row per constituent
        recovered by UTide that the station carries.

    Raises
    ------
    ValueError
        If the window yields fewer than two samples, or no constituent is
        left to solve.
    """
    _log = logger or logging.getLogger(__name__)

    points = predict_series(
        station, start, end, interval_minutes,
        predictor=predictor, logger=_log,
    )
    if len(points) < 2:
        raise ValueError(
            f"Re-analysis needs at least two samples between {start} and "
            f"{end}."
        )

    # UTide expects naive UTC times.
    time = pd.DatetimeIndex([p.timestamp for p in points]).tz_convert(None)
    heights = np.array([p.height for p in points], dtype=float)

    if constit is None:
        constit = utide_constituents(list(station.symbols), logger=_log)
    if not constit:
        raise ValueError(
            f"Station {station.id} has no constituents UTide can solve."
        )

    _log.info(
        'Re-analysing station %s: %d samples from %s, %d constituents.',
        station.id, len(points), to_utc_timestamp(start).date(), len(constit),
    )
    coef = solve(
        t=time,
        u=heights,
        lat=station.latitude,
        constit=constit,
        method='ols',
        conf_int='linear',
        verbose=False,
    )

    names, rec_amp, rec_phase, st_amp, st_phase = [], [], [], [], []
    for name, amp, phase in zip(coef.name, coef.A, coef.g):
        symbol = normalize_constituent_name(str(name))
        const = station.constant(_FROM_UTIDE.get(symbol, symbol))
        if const is None:
            continue
        names.append(const.symbol)
        rec_amp.append(float(amp))
        rec_phase.append(float(phase))
        st_amp.append(const.amplitude)
        st_phase.append(const.phase)

    return compare_harmonic_constants(
        rec_amp, rec_phase, st_amp, st_phase, names, logger=_log,
    )
