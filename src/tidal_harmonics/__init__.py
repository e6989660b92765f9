"""
Harmonic tide prediction.

Reconstructs water levels from a station's harmonic constants using
equilibrium arguments and nodal corrections derived from lunar and solar
orbital mechanics, locates high and low waters, and tracks the spring/neap
cycle.

The functions below are the package facade.  The prediction functions
accept a station as a
:class:`~tidal_harmonics.prediction.stations.StationHarmonicConstants` or
as its external dict form, and an optional constituent ``catalog``
(default: the shared built-in catalog).  Every function takes an optional
``logger``.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Mapping, Sequence

import pandas as pd

from tidal_harmonics.prediction import extremes as _extremes
from tidal_harmonics.prediction import series as _series
from tidal_harmonics.prediction import spring_neap as _spring_neap
from tidal_harmonics.prediction.constituents import (
    ConstituentCatalog,
    default_catalog,
)
from tidal_harmonics.prediction.extremes import ExtremeKind, TideExtreme
from tidal_harmonics.prediction.series import TidePoint
from tidal_harmonics.prediction.stations import StationHarmonicConstants
from tidal_harmonics.prediction.tidal_prediction import TidePredictor

__version__ = '0.1.0'

logger = logging.getLogger(__name__)

Instant = datetime | pd.Timestamp | str
StationLike = StationHarmonicConstants | Mapping


def _station(station: StationLike) -> StationHarmonicConstants:
    if isinstance(station, StationHarmonicConstants):
        return station
    return StationHarmonicConstants.from_dict(station)


def _predictor(catalog: ConstituentCatalog | None) -> TidePredictor:
    return TidePredictor(catalog if catalog is not None else default_catalog())


def predict(
    station: StationLike,
    instant: Instant,
    catalog: ConstituentCatalog | None = None,
    logger: logging.Logger | None = None,
) -> float:
    """Predicted height (m) at *instant* from all of the station's constituents."""
    return _predictor(catalog).predict(_station(station), instant, logger=logger)


def predict_series(
    station: StationLike,
    start: Instant,
    end: Instant,
    interval_minutes: float = 6.0,
    catalog: ConstituentCatalog | None = None,
    logger: logging.Logger | None = None,
) -> list[TidePoint]:
    """Predicted heights every *interval_minutes* from *start* to *end* inclusive."""
    return _series.predict_series(
        _station(station), start, end, interval_minutes,
        predictor=_predictor(catalog), logger=logger,
    )


def predict_subset(
    station: StationLike,
    instant: Instant,
    symbols: Iterable[str],
    catalog: ConstituentCatalog | None = None,
    logger: logging.Logger | None = None,
) -> float:
    """Predicted height (m) from the listed constituents only."""
    return _predictor(catalog).predict_subset(
        _station(station), instant, symbols, logger=logger
    )


def find_extremes(
    series: Sequence[TidePoint],
    logger: logging.Logger | None = None,
) -> list[TideExtreme]:
    """Alternating high and low waters of a predicted series."""
    return _extremes.find_extremes(series, logger=logger)


def spring_neap_index(
    instant: Instant,
    catalog: ConstituentCatalog | None = None,
    logger: logging.Logger | None = None,
) -> float:
    """Spring/neap index in [-1, 1]: +1 spring, -1 neap."""
    value = _spring_neap.spring_neap_index(instant, catalog)
    (logger or logging.getLogger(__name__)).debug(
        'Spring/neap index at %s: %.4f', instant, value
    )
    return value


__all__ = [
    'ExtremeKind',
    'StationHarmonicConstants',
    'TideExtreme',
    'TidePoint',
    'TidePredictor',
    'default_catalog',
    'find_extremes',
    'predict',
    'predict_series',
    'predict_subset',
    'spring_neap_index',
]
