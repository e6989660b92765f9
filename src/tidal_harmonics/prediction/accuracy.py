"""
Accuracy of truncated constituent sets.

Predicts a station with progressively larger subsets of its constituents
and reports each subset's RMS and maximum absolute error against the
prediction from all of them.  Shows how many constituents a usable
prediction needs.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Mapping, Sequence

import numpy as np
import pandas as pd

from .series import sample_times
from .stations import StationHarmonicConstants
from .tidal_prediction import TidePredictor

logger = logging.getLogger(__name__)

DEFAULT_LEVELS: Mapping[str, tuple[str, ...]] = {
    'M2 only': ('M2',),
    'M2 + S2': ('M2', 'S2'),
    '4 major': ('M2', 'S2', 'K1', 'O1'),
    '8 common': ('M2', 'S2', 'N2', 'K2', 'K1', 'O1', 'P1', 'Q1'),
}
"""Named constituent subsets, from coarsest to finest."""


def compare_subset_accuracy(
    station: StationHarmonicConstants,
    start: datetime | pd.Timestamp | str,
    end: datetime | pd.Timestamp | str,
    levels: Mapping[str, Sequence[str]] | None = None,
    interval_minutes: float = 30.0,
    predictor: TidePredictor | None = None,
    logger: logging.Logger | None = None,
) -> pd.DataFrame:
    """
    Compare subset predictions against the full prediction.

    Parameters
    ----------
    station : StationHarmonicConstants
        Station constants.
    start, end : datetime, pandas.Timestamp or str
        Inclusive comparison window (UTC if naive).
    levels : mapping of str to sequence of str, optional
        Level name to constituent subset (default :data:`DEFAULT_LEVELS`).
    interval_minutes : float, optional
        Sampling cadence (default 30 minutes).
    predictor : TidePredictor, optional
        Predictor to use.
    logger : logging.Logger, optional
        Logger instance.

    Returns
    -------
    pd.DataFrame
        Columns ``Level``, ``N_Constituents`` (of the subset the station
        actually carries), ``RMS_Error`` and ``Max_Error`` in metres, plus
        a final ``All constituents`` row with zero error.

    Raises
    ------
    ValueError
        If the window contains no sample instants.
    """
    _log = logger or logging.getLogger(__name__)

    levels = DEFAULT_LEVELS if levels is None else levels
    predictor = predictor or TidePredictor()
    times = sample_times(start, end, interval_minutes)
    if len(times) == 0:
        raise ValueError(
            f"No sample instants between {start} and {end}."
        )

    full = np.array([predictor.evaluate(station, t).height for t in times])

    rows = []
    for name, symbols in levels.items():
        subset = station.subset(symbols)
        partial = np.array([
            predictor.evaluate(station, t, symbols=subset.symbols).height
            for t in times
        ])
        error = np.abs(partial - full)
        rows.append({
            'Level': name,
            'N_Constituents': len(subset.constituents),
            'RMS_Error': float(np.sqrt(np.mean(error ** 2))),
            'Max_Error': float(np.max(error)),
        })
    rows.append({
        'Level': 'All constituents',
        'N_Constituents': len(station.constituents),
        'RMS_Error': 0.0,
        'Max_Error': 0.0,
    })

    df = pd.DataFrame(rows)
    _log.info(
        'Subset accuracy for station %s: %d levels over %d samples.',
        station.id, len(levels), len(times),
    )
    return df
