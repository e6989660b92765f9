"""Warning and error types raised or collected during tide prediction."""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Iterable


class WarningKind(str, enum.Enum):
    """Kinds of non-fatal prediction problems."""

    UNKNOWN_CONSTITUENT = 'unknown-constituent'
    MISSING_NODAL_FORMULA = 'missing-nodal-formula'


@dataclass(frozen=True)
class PredictionWarning:
    """A non-fatal problem attached to a prediction result."""

    kind: WarningKind
    symbol: str
    message: str

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class NonFiniteResultError(ValueError):
    """A predicted height evaluated to NaN or infinity."""

    def __init__(self, message: str, timestamp=None):
        super().__init__(message)
        self.timestamp = timestamp


class PredictionCancelledError(RuntimeError):
    """A long-running prediction or export was cancelled by the caller."""


def unique_warnings(
    warnings: Iterable[PredictionWarning],
) -> tuple[PredictionWarning, ...]:
    """De-duplicate warnings by (kind, symbol), keeping first occurrences."""
    seen = set()
    out = []
    for w in warnings:
        key = (w.kind, w.symbol)
        if key not in seen:
            seen.add(key)
            out.append(w)
    return tuple(out)


def log_warnings(
    warnings: Iterable[PredictionWarning],
    logger: logging.Logger | None = None,
) -> None:
    """Log each distinct warning once at WARNING level."""
    _log = logger or logging.getLogger(__name__)
    for w in unique_warnings(warnings):
        _log.warning('%s', w)
