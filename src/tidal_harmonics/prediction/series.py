"""
Fixed-cadence tide series.

Samples a station's prediction over an inclusive ``[start, end]`` range.
Points are independent, so the work can fan out over a thread pool; the
results are always returned in ascending time.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime

import numpy as np
import pandas as pd

from .astronomical import to_utc_timestamp
from .exceptions import (
    NonFiniteResultError,
    PredictionCancelledError,
    PredictionWarning,
    log_warnings,
    unique_warnings,
)
from .stations import StationHarmonicConstants
from .tidal_prediction import TidePredictor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TidePoint:
    """Predicted height (m) at a UTC instant."""

    timestamp: pd.Timestamp
    height: float


@dataclass(frozen=True)
class SeriesResult:
    """Sampled points plus de-duplicated warnings and per-point failures."""

    points: list[TidePoint]
    warnings: tuple[PredictionWarning, ...] = ()
    failures: tuple[NonFiniteResultError, ...] = ()


@dataclass(frozen=True)
class TidalRange:
    """Lowest and highest predicted heights over a window."""

    min_height: float
    max_height: float

    @property
    def range(self) -> float:
        return self.max_height - self.min_height


def sample_times(
    start: datetime | pd.Timestamp | str,
    end: datetime | pd.Timestamp | str,
    interval_minutes: float,
) -> pd.DatetimeIndex:
    """
    Sample instants ``start + k * interval`` not later than *end*.

    Raises
    ------
    ValueError
        If *interval_minutes* is not positive.
    """
    if not interval_minutes > 0:
        raise ValueError(
            f"interval_minutes must be positive, got {interval_minutes}."
        )
    start = to_utc_timestamp(start)
    end = to_utc_timestamp(end)
    if start > end:
        return pd.DatetimeIndex([], tz='UTC')
    step = pd.Timedelta(minutes=interval_minutes)
    n_steps = (end.value - start.value) // step.value
    offsets = np.arange(n_steps + 1, dtype='int64') * step.value
    return pd.DatetimeIndex(
        pd.to_datetime(start.value + offsets, unit='ns', utc=True)
    )


def _evaluate_chunk(predictor, station, times, cancel_event):
    points, warnings, failures = [], [], []
    for ts in times:
        if cancel_event is not None and cancel_event.is_set():
            raise PredictionCancelledError('Series sampling cancelled.')
        try:
            result = predictor.evaluate(station, ts)
        except NonFiniteResultError as exc:
            failures.append(exc)
            continue
        points.append(TidePoint(timestamp=ts, height=result.height))
        warnings.extend(result.warnings)
    return points, warnings, failures


def sample_series(
    station: StationHarmonicConstants,
    start: datetime | pd.Timestamp | str,
    end: datetime | pd.Timestamp | str,
    interval_minutes: float = 6.0,
    predictor: TidePredictor | None = None,
    max_workers: int = 1,
    cancel_event: threading.Event | None = None,
    logger: logging.Logger | None = None,
) -> SeriesResult:
    """
    Sample predictions and collect warnings and per-point failures.

    Parameters
    ----------
    station : StationHarmonicConstants
        Station constants.
    start, end : datetime, pandas.Timestamp or str
        Inclusive range (UTC if naive).  ``start > end`` gives no points;
        ``start == end`` gives one.
    interval_minutes : float, optional
        Sampling cadence (default 6 minutes).
    predictor : TidePredictor, optional
        Predictor to use (default: built-in catalog, nodal corrections on).
    max_workers : int, optional
        Threads to spread the points over (default 1, serial).
    cancel_event : threading.Event, optional
        When set, sampling stops and :class:`PredictionCancelledError` is
        raised; no partial result is returned.
    logger : logging.Logger, optional
        Logger instance.

    Returns
    -------
    SeriesResult

    Raises
    ------
    ValueError
        If *interval_minutes* or *max_workers* is not positive.
    PredictionCancelledError
        If *cancel_event* was set before sampling finished.
    """
    _log = logger or logging.getLogger(__name__)

    if max_workers < 1:
        raise ValueError(f"max_workers must be >= 1, got {max_workers}.")
    times = sample_times(start, end, interval_minutes)
    if len(times) == 0:
        _log.info('Empty prediction range: start %s is after end %s.',
                  start, end)
        return SeriesResult(points=[])

    predictor = predictor or TidePredictor()
    _log.debug(
        'Sampling %d points for station %s every %s min with %d worker(s).',
        len(times), station.id, interval_minutes, max_workers,
    )

    if max_workers == 1 or len(times) < 2 * max_workers:
        chunks = [_evaluate_chunk(predictor, station, times, cancel_event)]
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [
                executor.submit(
                    _evaluate_chunk, predictor, station, block, cancel_event
                )
                for block in np.array_split(np.asarray(times), max_workers)
            ]
            chunks = [future.result() for future in futures]

    if cancel_event is not None and cancel_event.is_set():
        raise PredictionCancelledError('Series sampling cancelled.')

    points, warnings, failures = [], [], []
    for chunk_points, chunk_warnings, chunk_failures in chunks:
        points.extend(chunk_points)
        warnings.extend(chunk_warnings)
        failures.extend(chunk_failures)
    points.sort(key=lambda p: p.timestamp)

    warnings = unique_warnings(warnings)
    log_warnings(warnings, _log)
    for failure in failures:
        _log.warning('Point failed: %s', failure)
    _log.info(
        'Sampled %d points for station %s (%d failed).',
        len(points), station.id, len(failures),
    )
    return SeriesResult(
        points=points, warnings=warnings, failures=tuple(failures)
    )


def predict_series(
    station: StationHarmonicConstants,
    start: datetime | pd.Timestamp | str,
    end: datetime | pd.Timestamp | str,
    interval_minutes: float = 6.0,
    predictor: TidePredictor | None = None,
    max_workers: int = 1,
    cancel_event: threading.Event | None = None,
    logger: logging.Logger | None = None,
) -> list[TidePoint]:
    """Predicted heights over an inclusive range; see :func:`sample_series`."""
    return sample_series(
        station, start, end, interval_minutes,
        predictor=predictor,
        max_workers=max_workers,
        cancel_event=cancel_event,
        logger=logger,
    ).points


def series_to_frame(points: list[TidePoint]) -> pd.DataFrame:
    """Points as a DataFrame with ``DateTime`` and ``Height`` columns."""
    return pd.DataFrame({
        'DateTime': pd.DatetimeIndex(
            [p.timestamp for p in points], tz='UTC'
        ),
        'Height': np.array([p.height for p in points], dtype=float),
    })


def tidal_range(
    station: StationHarmonicConstants,
    instant: datetime | pd.Timestamp | str,
    predictor: TidePredictor | None = None,
    logger: logging.Logger | None = None,
) -> TidalRange:
    """
    Lowest and highest heights within 12.5 hours either side of *instant*.

    The 25-hour window (10-minute cadence) spans at least one full tidal
    day.
    """
    ts = to_utc_timestamp(instant)
    half = pd.Timedelta(hours=12.5)
    points = predict_series(
        station, ts - half, ts + half, 10.0,
        predictor=predictor, logger=logger,
    )
    if not points:
        raise ValueError(f"No valid heights around {ts.isoformat()}.")
    heights = [p.height for p in points]
    return TidalRange(min_height=min(heights), max_height=max(heights))
