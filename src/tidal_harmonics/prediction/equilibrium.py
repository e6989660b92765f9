"""
Equilibrium arguments (V0) and nodal corrections (f, u) per constituent.

V0 is the dot product of a constituent's Doodson numbers with the
fundamental arguments plus its phase offset.  It is returned unwrapped;
only the caller's final cosine reduces it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Mapping

import pandas as pd

from .astronomical import (
    AstronomicalArguments,
    astronomical_arguments,
    to_utc_timestamp,
)
from .constituents import ConstituentDefinition
from .exceptions import PredictionWarning, WarningKind
from .nodal_corrections import (
    NODAL_FORMULAS,
    LunarOrbitTerms,
    NodalCorrection,
    NodalFormula,
    evaluate_formula,
    lunar_orbit_terms,
)

logger = logging.getLogger(__name__)


def reference_epoch(instant: datetime | pd.Timestamp | str) -> pd.Timestamp:
    """00:00 UTC of the instant's day, the epoch at which V0 is taken."""
    return to_utc_timestamp(instant).normalize()


@dataclass(frozen=True)
class ResolvedConstituent:
    """V0 at the reference epoch plus f and u at the instant."""

    symbol: str
    epoch: pd.Timestamp
    V0: float
    f: float
    u: float
    warning: PredictionWarning | None = None


class EquilibriumArgumentResolver:
    """
    Resolve equilibrium arguments and nodal corrections.

    Parameters
    ----------
    formulas : mapping, optional
        Symbol to :class:`NodalFormula` table (default: built-in).
    """

    def __init__(self, formulas: Mapping[str, NodalFormula] = NODAL_FORMULAS):
        self.formulas = formulas

    @staticmethod
    def equilibrium_argument(
        constituent: ConstituentDefinition,
        arguments: AstronomicalArguments,
    ) -> float:
        """V0 in unwrapped degrees."""
        return sum(
            d * a for d, a in zip(constituent.doodson, arguments.as_tuple())
        ) + constituent.phase_offset

    def nodal_correction(
        self,
        constituent: ConstituentDefinition,
        arguments: AstronomicalArguments,
        terms: LunarOrbitTerms | None = None,
    ) -> tuple[NodalCorrection, PredictionWarning | None]:
        """
        Node factor and argument for one constituent.

        Returns
        -------
        tuple of (NodalCorrection, PredictionWarning or None)
            Unity correction and a ``MISSING_NODAL_FORMULA`` warning when the
            symbol has no formula.
        """
        formula = self.formulas.get(constituent.symbol)
        if formula is None:
            return NodalCorrection(), PredictionWarning(
                WarningKind.MISSING_NODAL_FORMULA,
                constituent.symbol,
                f"No nodal formula for {constituent.symbol}; using f=1, u=0.",
            )
        if terms is None:
            terms = lunar_orbit_terms(arguments.N, arguments.p)
        return evaluate_formula(formula, terms, self.formulas), None

    def resolve(
        self,
        constituent: ConstituentDefinition,
        instant: datetime | pd.Timestamp | str,
    ) -> ResolvedConstituent:
        """Bundle V0 (at the reference epoch), f and u (at the instant)."""
        epoch = reference_epoch(instant)
        V0 = self.equilibrium_argument(
            constituent, astronomical_arguments(epoch)
        )
        nc, warning = self.nodal_correction(
            constituent, astronomical_arguments(instant)
        )
        return ResolvedConstituent(
            symbol=constituent.symbol,
            epoch=epoch,
            V0=V0,
            f=nc.f,
            u=nc.u,
            warning=warning,
        )
