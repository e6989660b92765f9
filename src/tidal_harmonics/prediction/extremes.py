"""
Extrema extraction: high and low water from a predicted series.

Candidates are interior samples at least as high (or as low) as both
neighbours, found with :func:`scipy.signal.argrelextrema`.  Each candidate
is refined to the vertex of the parabola through its three-sample window,
which may be unevenly spaced.  Windows whose three heights are equal are
never candidates.  A candidate on a run of equal samples counts only when
the first differing samples on both sides of the run lie on the same side
of it, so a step in a rising or falling series is not an event.
Neighbouring events of the same kind collapse to the more extreme one, so
the output alternates High/Low.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np
import pandas as pd
from scipy.signal import argrelextrema

logger = logging.getLogger(__name__)

_NS_PER_HOUR = 3.6e12


class ExtremeKind(str, enum.Enum):
    HIGH = 'High'
    LOW = 'Low'


@dataclass(frozen=True)
class TideExtreme:
    """A refined high or low water."""

    timestamp: pd.Timestamp
    height: float
    kind: ExtremeKind


def refine_vertex(
    t: Sequence[float], y: Sequence[float]
) -> tuple[float, float]:
    """
    Vertex of the parabola through three points.

    Parameters
    ----------
    t : sequence of 3 floats
        Strictly increasing abscissae (any unit, any spacing).
    y : sequence of 3 floats
        Ordinates.

    Returns
    -------
    tuple of (float, float)
        Abscissa (clamped to ``[t[0], t[2]]``) and ordinate of the vertex.
        A degenerate (linear) window returns the middle point.
    """
    x0 = t[0] - t[1]
    x2 = t[2] - t[1]
    d0 = y[0] - y[1]
    d2 = y[2] - y[1]
    denom = x0 * x2 * (x0 - x2)
    a = (d0 * x2 - d2 * x0) / denom
    b = (d2 * x0 * x0 - d0 * x2 * x2) / denom
    if a == 0:
        return t[1], y[1]
    x = min(max(-b / (2.0 * a), x0), x2)
    return t[1] + x, y[1] + x * (a * x + b)


def _is_turning_point(y: np.ndarray, i: int, kind: ExtremeKind) -> bool:
    """Whether the run of samples equal to ``y[i]`` is a true extremum."""
    lo = i
    while lo > 0 and y[lo - 1] == y[i]:
        lo -= 1
    hi = i
    while hi < len(y) - 1 and y[hi + 1] == y[i]:
        hi += 1
    if lo == 0 or hi == len(y) - 1:
        return False
    if kind is ExtremeKind.HIGH:
        return y[lo - 1] < y[i] and y[hi + 1] < y[i]
    return y[lo - 1] > y[i] and y[hi + 1] > y[i]


def find_extremes(
    series: Sequence,
    include_boundaries: bool = False,
    logger: logging.Logger | None = None,
) -> list[TideExtreme]:
    """
    Find alternating high and low waters in a time-ordered series.

    Parameters
    ----------
    series : sequence of TidePoint
        Points with ``timestamp`` and ``height``, ascending in time.
    include_boundaries : bool, optional
        Also report the first and last samples when they exceed (or fall
        below) their single neighbour.  They are not refined.
    logger : logging.Logger, optional
        Logger instance for diagnostic messages.

    Returns
    -------
    list of TideExtreme
        Empty when fewer than three points are given or the series is flat.

    Raises
    ------
    ValueError
        If the timestamps are not strictly increasing.
    """
    _log = logger or logging.getLogger(__name__)

    if len(series) < 3:
        return []

    times = pd.DatetimeIndex([p.timestamp for p in series])
    if times.tz is None:
        times = times.tz_localize('UTC')
    # asi8 is in the index's own unit; pin it to nanoseconds.
    t_ns = times.as_unit('ns').asi8
    if np.any(np.diff(t_ns) <= 0):
        raise ValueError('Series timestamps must be strictly increasing.')
    t = (t_ns - t_ns[0]) / _NS_PER_HOUR
    y = np.array([p.height for p in series], dtype=float)

    # Boundaries compare against themselves under mode='clip'; drop them.
    last = len(y) - 1
    candidates = []
    for kind, comparator in (
        (ExtremeKind.HIGH, np.greater_equal),
        (ExtremeKind.LOW, np.less_equal),
    ):
        idx = argrelextrema(y, comparator)[0]
        for i in idx[(idx > 0) & (idx < last)]:
            window = y[i - 1:i + 2]
            if window[0] == window[1] == window[2]:
                continue
            if (window[1] in (window[0], window[2])
                    and not _is_turning_point(y, i, kind)):
                continue
            tv, yv = refine_vertex(t[i - 1:i + 2], window)
            candidates.append((tv, yv, kind))

    if include_boundaries:
        if y[0] > y[1]:
            candidates.append((t[0], y[0], ExtremeKind.HIGH))
        elif y[0] < y[1]:
            candidates.append((t[0], y[0], ExtremeKind.LOW))
        if y[last] > y[last - 1]:
            candidates.append((t[last], y[last], ExtremeKind.HIGH))
        elif y[last] < y[last - 1]:
            candidates.append((t[last], y[last], ExtremeKind.LOW))

    candidates.sort(key=lambda c: c[0])

    merged: list[tuple[float, float, ExtremeKind]] = []
    for cand in candidates:
        if merged and merged[-1][2] is cand[2]:
            prev = merged[-1]
            more_extreme = (
                cand[1] > prev[1] if cand[2] is ExtremeKind.HIGH
                else cand[1] < prev[1]
            )
            if more_extreme:
                merged[-1] = cand
            continue
        merged.append(cand)

    origin = times[0]
    extremes = [
        TideExtreme(
            timestamp=origin + pd.Timedelta(
                int(round(tv * _NS_PER_HOUR)), unit='ns'
            ),
            height=float(yv),
            kind=kind,
        )
        for tv, yv, kind in merged
    ]

    _log.info(
        'Extrema extraction: %d High, %d Low from %d points.',
        sum(e.kind is ExtremeKind.HIGH for e in extremes),
        sum(e.kind is ExtremeKind.LOW for e in extremes),
        len(y),
    )
    return extremes


def extremes_to_frame(extremes: Sequence[TideExtreme]) -> pd.DataFrame:
    """Extremes as a DataFrame with ``DateTime``, ``Height`` and ``Type``."""
    return pd.DataFrame({
        'DateTime': pd.DatetimeIndex(
            [e.timestamp for e in extremes], tz='UTC'
        ),
        'Height': np.array([e.height for e in extremes], dtype=float),
        'Type': [e.kind.value for e in extremes],
    })
