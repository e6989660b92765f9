"""
Tidal prediction from harmonic constants.

Implements the NOS standard prediction formula::

    h(t) = sum{ f * H * cos[a*(t - t0) + (V0 + u) - kappa] }

where ``t0`` is 00:00 UTC of the prediction day, ``V0`` the equilibrium
argument at ``t0``, ``a`` the tabulated speed, ``f`` and ``u`` the node
factor and argument at ``t`` and ``H``, ``kappa`` the station's amplitude
and Greenwich phase lag.  Heights are relative to the datum of the
constants with no mean level added.

Two entry points are provided:

* :meth:`TidePredictor.evaluate` -- height plus collected warnings for all
  or a subset of a station's constituents.
* :meth:`TidePredictor.constituent_contributions` -- the per-constituent
  terms of the same sum (waveform decomposition).
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

import pandas as pd

from .astronomical import astronomical_arguments, to_utc_timestamp, wrap_degrees
from .constituents import (
    ConstituentCatalog,
    default_catalog,
    normalize_constituent_name,
)
from .equilibrium import EquilibriumArgumentResolver, reference_epoch
from .exceptions import (
    NonFiniteResultError,
    PredictionWarning,
    WarningKind,
    log_warnings,
)
from .nodal_corrections import NodalCorrection, lunar_orbit_terms
from .stations import StationHarmonicConstants

logger = logging.getLogger(__name__)

_NS_PER_HOUR = 3_600 * 10**9


@dataclass(frozen=True)
class Prediction:
    """Predicted height (m) and any warnings raised while computing it."""

    height: float
    warnings: tuple[PredictionWarning, ...] = ()


@dataclass(frozen=True)
class ConstituentContribution:
    """One term of the harmonic sum."""

    symbol: str
    amplitude: float
    argument: float
    height: float


class TidePredictor:
    """
    Harmonic superposition of a station's constituents.

    Parameters
    ----------
    catalog : ConstituentCatalog, optional
        Constituent definitions (default: :func:`default_catalog`).
    resolver : EquilibriumArgumentResolver, optional
        V0/f/u resolver (default: built-in nodal formulas).
    nodal_corrections : bool, optional
        Apply f and u.  ``False`` uses f = 1, u = 0 throughout, like
        UTide's ``nodsatnone`` option.
    """

    def __init__(
        self,
        catalog: ConstituentCatalog | None = None,
        resolver: EquilibriumArgumentResolver | None = None,
        nodal_corrections: bool = True,
    ):
        self.catalog = catalog if catalog is not None else default_catalog()
        self.resolver = resolver or EquilibriumArgumentResolver()
        self.nodal_corrections = nodal_corrections

    def __repr__(self) -> str:
        return (
            f"TidePredictor({self.catalog!r}, "
            f"nodal_corrections={self.nodal_corrections})"
        )

    # ------------------------------------------------------------------
    # Term evaluation
    # ------------------------------------------------------------------

    def _terms(
        self,
        station: StationHarmonicConstants,
        instant: datetime | pd.Timestamp | str,
        symbols: Iterable[str] | None,
    ) -> tuple[list[ConstituentContribution], list[PredictionWarning]]:
        ts = to_utc_timestamp(instant)
        epoch = reference_epoch(ts)
        hours = (ts.value - epoch.value) / _NS_PER_HOUR

        epoch_args = astronomical_arguments(epoch)
        if self.nodal_corrections:
            instant_args = astronomical_arguments(ts)
            orbit = lunar_orbit_terms(instant_args.N, instant_args.p)

        if symbols is None:
            constants = station.constituents
        else:
            wanted = {normalize_constituent_name(s) for s in symbols}
            constants = [c for c in station.constituents if c.symbol in wanted]

        terms = []
        warnings = []
        for const in constants:
            if const.symbol not in self.catalog:
                warnings.append(PredictionWarning(
                    WarningKind.UNKNOWN_CONSTITUENT,
                    const.symbol,
                    f"Constituent {const.symbol} is not in the catalog; "
                    f"skipped.",
                ))
                continue
            definition = self.catalog[const.symbol]
            V0 = self.resolver.equilibrium_argument(definition, epoch_args)
            if self.nodal_corrections:
                nc, warning = self.resolver.nodal_correction(
                    definition, instant_args, orbit
                )
                if warning is not None:
                    warnings.append(warning)
            else:
                nc = NodalCorrection()

            argument = definition.speed * hours + V0 + nc.u - const.phase
            amplitude = nc.f * const.amplitude
            height = amplitude * math.cos(math.radians(wrap_degrees(argument)))
            terms.append(ConstituentContribution(
                symbol=const.symbol,
                amplitude=amplitude,
                argument=wrap_degrees(argument),
                height=height,
            ))
        return terms, warnings

    def evaluate(
        self,
        station: StationHarmonicConstants,
        instant: datetime | pd.Timestamp | str,
        symbols: Iterable[str] | None = None,
    ) -> Prediction:
        """
        Predict the height at one instant.

        Parameters
        ----------
        station : StationHarmonicConstants
            Station constants.
        instant : datetime, pandas.Timestamp or str
            Prediction instant (UTC if naive).
        symbols : iterable of str, optional
            Restrict the sum to these constituents.  Symbols the station
            does not carry contribute nothing; an empty subset gives 0.0.

        Returns
        -------
        Prediction

        Raises
        ------
        NonFiniteResultError
            If the summed height is NaN or infinite.
        """
        terms, warnings = self._terms(station, instant, symbols)
        height = math.fsum(t.height for t in terms)
        if not math.isfinite(height):
            ts = to_utc_timestamp(instant)
            raise NonFiniteResultError(
                f"Non-finite height {height} at {ts.isoformat()} for "
                f"station {station.id}.",
                timestamp=ts,
            )
        return Prediction(height=height, warnings=tuple(warnings))

    def predict(
        self,
        station: StationHarmonicConstants,
        instant: datetime | pd.Timestamp | str,
        logger: logging.Logger | None = None,
    ) -> float:
        """Predicted height (m) from all of the station's constituents."""
        result = self.evaluate(station, instant)
        log_warnings(result.warnings, logger or logging.getLogger(__name__))
        return result.height

    def predict_subset(
        self,
        station: StationHarmonicConstants,
        instant: datetime | pd.Timestamp | str,
        symbols: Iterable[str],
        logger: logging.Logger | None = None,
    ) -> float:
        """Predicted height (m) from the listed constituents only."""
        result = self.evaluate(station, instant, symbols=list(symbols))
        log_warnings(result.warnings, logger or logging.getLogger(__name__))
        return result.height

    def constituent_contributions(
        self,
        station: StationHarmonicConstants,
        instant: datetime | pd.Timestamp | str,
    ) -> list[ConstituentContribution]:
        """
        Per-constituent terms of the prediction at *instant*.

        Each entry holds the effective amplitude ``f * H``, the argument
        ``a*(t - t0) + V0 + u - kappa`` in [0, 360) and the term's height;
        the heights sum to :meth:`predict`.
        """
        terms, _ = self._terms(station, instant, None)
        return terms
