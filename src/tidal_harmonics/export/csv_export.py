"""
CSV export of predictions, tide tables and harmonic constants.

Every file starts with ``# key: value`` header lines (station, datum,
generation time, extra metadata) followed by a plain CSV table.  Files are
written to a temporary sibling and moved into place with :func:`os.replace`,
so a failed or cancelled export leaves any previous file untouched and
never a partial one.
"""
from __future__ import annotations

import logging
import os
import tempfile
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Sequence

import numpy as np
import pandas as pd

from ..prediction.constituents import ConstituentCatalog, default_catalog
from ..prediction.exceptions import PredictionCancelledError
from ..prediction.extremes import TideExtreme, find_extremes
from ..prediction.series import TidePoint, sample_series, sample_times
from ..prediction.stations import StationHarmonicConstants
from ..prediction.tidal_prediction import TidePredictor

logger = logging.getLogger(__name__)

EXTREME_MATCH_WINDOW = pd.Timedelta(minutes=30)
DEFAULT_DATETIME_FORMAT = '%Y-%m-%d %H:%M:%S'


def _check_decimals(decimals: int) -> int:
    if not isinstance(decimals, (int, np.integer)) or not 0 <= decimals <= 10:
        raise ValueError(
            f"decimals must be an integer between 0 and 10, got {decimals!r}."
        )
    return int(decimals)


def _header_lines(
    station: StationHarmonicConstants | None,
    metadata: dict[str, Any] | None,
) -> list[str]:
    lines = []
    if station is not None:
        lines.append(f"# Station: {station.id} {station.name}".rstrip())
        if station.datum:
            lines.append(f"# Datum: {station.datum}")
    lines.append('# Time Zone: UTC')
    lines.append(
        f"# Generated: {datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')}"
    )
    if metadata:
        for key, value in metadata.items():
            lines.append(f"# {key}: {value}")
    return lines


def _write_atomic(
    path: str | os.PathLike,
    header_lines: list[str],
    table: pd.DataFrame,
) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix='.tmp', dir=path.parent
    )
    try:
        with os.fdopen(fd, 'w', newline='') as f:
            for line in header_lines:
                f.write(line + '\n')
            table.to_csv(f, index=False)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return path


def _format_times(timestamps, datetime_format: str) -> list[str]:
    index = pd.DatetimeIndex(list(timestamps))
    if len(index) and index.tz is None:
        index = index.tz_localize('UTC')
    return [ts.strftime(datetime_format) for ts in index]


def mark_extremes(
    points: Sequence[TidePoint],
    extremes: Sequence[TideExtreme],
) -> list[str]:
    """
    ``"High"``/``"Low"`` on the sample nearest each extreme, else ``""``.

    An extreme more than 30 minutes from every sample marks nothing.
    """
    types = [''] * len(points)
    if not points:
        return types
    t_ns = pd.DatetimeIndex(
        [p.timestamp for p in points]
    ).as_unit('ns').asi8
    window = EXTREME_MATCH_WINDOW.value
    for extreme in extremes:
        target = pd.Timestamp(extreme.timestamp).as_unit('ns').value
        i = int(np.searchsorted(t_ns, target))
        neighbours = [j for j in (i - 1, i) if 0 <= j < len(t_ns)]
        nearest = min(neighbours, key=lambda j: abs(t_ns[j] - target))
        if abs(t_ns[nearest] - target) <= window:
            types[nearest] = extreme.kind.value
    return types


def write_predictions_csv(
    points: Sequence[TidePoint],
    output_path: str | os.PathLike,
    station: StationHarmonicConstants | None = None,
    extremes: Sequence[TideExtreme] | None = None,
    decimals: int = 3,
    datetime_format: str = DEFAULT_DATETIME_FORMAT,
    metadata: dict[str, Any] | None = None,
    logger: logging.Logger | None = None,
) -> Path:
    """
    Write a prediction series to CSV.

    Parameters
    ----------
    points : sequence of TidePoint
        Predicted series.
    output_path : str or path-like
        Destination file.
    station : StationHarmonicConstants, optional
        Station written in the header.
    extremes : sequence of TideExtreme, optional
        High/low waters marked in the ``Type`` column.
    decimals : int, optional
        Decimal places of ``Height_m`` (default 3).
    datetime_format : str, optional
        :meth:`~datetime.datetime.strftime` format of ``DateTime`` (UTC).
    metadata : dict, optional
        Extra key/value pairs to include in the header.
    logger : logging.Logger, optional
        Logger instance.

    Returns
    -------
    pathlib.Path
        The written file.

    Raises
    ------
    ValueError
        If *decimals* is not an integer in [0, 10], or *datetime_format*
        renders two samples with the same text.
    """
    _log = logger or logging.getLogger(__name__)
    decimals = _check_decimals(decimals)

    stamps = _format_times((p.timestamp for p in points), datetime_format)
    if len(set(stamps)) != len(stamps):
        raise ValueError(
            f"datetime_format {datetime_format!r} writes the same DateTime "
            f"for different samples; use a finer format."
        )
    table = pd.DataFrame({
        'DateTime': stamps,
        'Height_m': [f"{p.height:.{decimals}f}" for p in points],
        'Type': mark_extremes(points, extremes or ()),
    })
    path = _write_atomic(output_path, _header_lines(station, metadata), table)
    _log.info('Predictions written to %s (%d rows).', path, len(table))
    return path


def read_predictions_csv(input_path: str | os.PathLike) -> pd.DataFrame:
    """
    Read a file written by :func:`write_predictions_csv`.

    Returns
    -------
    pd.DataFrame
        ``DateTime`` (UTC), ``Height_m`` (float) and ``Type`` (``""`` where
        unmarked).
    """
    df = pd.read_csv(
        input_path, comment='#', dtype={'Type': str}, keep_default_na=False
    )
    df['DateTime'] = pd.to_datetime(df['DateTime'], utc=True)
    df['Height_m'] = df['Height_m'].astype(float)
    return df


def write_extremes_csv(
    extremes: Sequence[TideExtreme],
    output_path: str | os.PathLike,
    station: StationHarmonicConstants | None = None,
    decimals: int = 3,
    datetime_format: str = DEFAULT_DATETIME_FORMAT,
    metadata: dict[str, Any] | None = None,
    logger: logging.Logger | None = None,
) -> Path:
    """Write a tide table (one row per high or low water) to CSV."""
    _log = logger or logging.getLogger(__name__)
    decimals = _check_decimals(decimals)

    table = pd.DataFrame({
        'DateTime': _format_times(
            (e.timestamp for e in extremes), datetime_format
        ),
        'Height_m': [f"{e.height:.{decimals}f}" for e in extremes],
        'Type': [e.kind.value for e in extremes],
    })
    path = _write_atomic(output_path, _header_lines(station, metadata), table)
    _log.info('Tide table written to %s (%d extremes).', path, len(table))
    return path


def write_harmonic_constants_csv(
    station: StationHarmonicConstants,
    output_path: str | os.PathLike,
    catalog: ConstituentCatalog | None = None,
    metadata: dict[str, Any] | None = None,
    logger: logging.Logger | None = None,
) -> Path:
    """
    Write a station's harmonic constants to CSV.

    Columns ``Constituent``, ``Amplitude_m`` (4 places), ``Phase_deg``
    (1 place) and ``Speed_deg_per_hour`` (blank for constituents missing
    from the catalog).
    """
    _log = logger or logging.getLogger(__name__)
    catalog = catalog if catalog is not None else default_catalog()

    table = pd.DataFrame({
        'Constituent': [c.symbol for c in station.constituents],
        'Amplitude_m': [f"{c.amplitude:.4f}" for c in station.constituents],
        'Phase_deg': [f"{c.phase:.1f}" for c in station.constituents],
        'Speed_deg_per_hour': [
            f"{catalog[c.symbol].speed:.7f}" if c.symbol in catalog else ''
            for c in station.constituents
        ],
    })
    header = _header_lines(station, metadata)
    if station.harmonic_epoch:
        header.insert(-1, f"# Harmonic Epoch: {station.harmonic_epoch}")
    path = _write_atomic(output_path, header, table)
    _log.info('Harmonic constants written to %s.', path)
    return path


def export_predictions(
    station: StationHarmonicConstants,
    start: datetime | pd.Timestamp | str,
    end: datetime | pd.Timestamp | str,
    interval_minutes: float,
    output_path: str | os.PathLike,
    predictor: TidePredictor | None = None,
    chunk_size: int = 500,
    mark_high_low: bool = True,
    decimals: int = 3,
    datetime_format: str = DEFAULT_DATETIME_FORMAT,
    max_workers: int = 1,
    cancel_event: threading.Event | None = None,
    extremes_path: str | os.PathLike | None = None,
    logger: logging.Logger | None = None,
) -> Path:
    """
    Predict a range in chunks and write it to CSV.

    Parameters
    ----------
    station : StationHarmonicConstants
        Station constants.
    start, end : datetime, pandas.Timestamp or str
        Inclusive range (UTC if naive).
    interval_minutes : float
        Sampling cadence.
    output_path : str or path-like
        Destination file; replaced only when the export completes.
    predictor : TidePredictor, optional
        Predictor to use.
    chunk_size : int, optional
        Points predicted between cancellation checks (default 500).
    mark_high_low : bool, optional
        Mark high and low waters in the ``Type`` column (default True).
    decimals, datetime_format : optional
        See :func:`write_predictions_csv`.
    max_workers : int, optional
        Threads per chunk.
    cancel_event : threading.Event, optional
        Cancels the export when set.
    extremes_path : str or path-like, optional
        Also write the tide table of the exported series here.
    logger : logging.Logger, optional
        Logger instance.

    Returns
    -------
    pathlib.Path

    Raises
    ------
    PredictionCancelledError
        If *cancel_event* was set; no file is written.
    ValueError
        If *chunk_size* or *interval_minutes* is not positive.
    """
    _log = logger or logging.getLogger(__name__)

    if chunk_size < 1:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}.")
    decimals = _check_decimals(decimals)
    predictor = predictor or TidePredictor()
    times = sample_times(start, end, interval_minutes)

    points: list[TidePoint] = []
    n_failed = 0
    for offset in range(0, len(times), chunk_size):
        if cancel_event is not None and cancel_event.is_set():
            raise PredictionCancelledError(
                f"Export to {output_path} cancelled after {len(points)} points."
            )
        block = times[offset:offset + chunk_size]
        result = sample_series(
            station, block[0], block[-1], interval_minutes,
            predictor=predictor,
            max_workers=max_workers,
            cancel_event=cancel_event,
            logger=_log,
        )
        points.extend(result.points)
        n_failed += len(result.failures)
        _log.debug('Export progress: %d/%d points.', len(points), len(times))

    if cancel_event is not None and cancel_event.is_set():
        raise PredictionCancelledError(f"Export to {output_path} cancelled.")

    extremes = None
    if mark_high_low or extremes_path is not None:
        extremes = find_extremes(points, logger=_log)
    metadata = {
        'Interval (minutes)': interval_minutes,
        'Nodal Corrections': predictor.nodal_corrections,
    }
    if n_failed:
        metadata['Failed Points'] = n_failed
    path = write_predictions_csv(
        points, output_path,
        station=station,
        extremes=extremes if mark_high_low else None,
        decimals=decimals,
        datetime_format=datetime_format,
        metadata=metadata,
        logger=_log,
    )
    if extremes_path is not None:
        write_extremes_csv(
            extremes, extremes_path,
            station=station,
            decimals=decimals,
            datetime_format=datetime_format,
            logger=_log,
        )
    return path
