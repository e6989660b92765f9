"""
Tidal Prediction Subpackage

Provides functionality for:
- Tidal constituent definitions (Doodson numbers, speeds, families)
- Fundamental astronomical arguments
- Nodal corrections and equilibrium arguments
- Station harmonic constants and tidal type classification
- Harmonic tide prediction (full, subset, per-constituent)
- Fixed-cadence series sampling and tidal range
- Extrema extraction (high/low water)
- Spring/neap index, lunar phase and calendar
- Subset accuracy comparison
- UTide re-analysis of predicted series
"""

from tidal_harmonics.prediction.accuracy import (
    DEFAULT_LEVELS,
    compare_subset_accuracy,
)
from tidal_harmonics.prediction.astronomical import (
    ARGUMENT_RATES,
    AstronomicalArguments,
    astronomical_arguments,
    julian_centuries,
)
from tidal_harmonics.prediction.constituents import (
    CONSTITUENT_SPEEDS,
    COOPS_API_NAME_MAP,
    NOS_37_CONSTITUENTS,
    ConstituentCatalog,
    ConstituentDefinition,
    ConstituentFamily,
    default_catalog,
    normalize_constituent_name,
)
from tidal_harmonics.prediction.equilibrium import (
    EquilibriumArgumentResolver,
    ResolvedConstituent,
)
from tidal_harmonics.prediction.exceptions import (
    NonFiniteResultError,
    PredictionCancelledError,
    PredictionWarning,
    WarningKind,
)
from tidal_harmonics.prediction.extremes import (
    ExtremeKind,
    TideExtreme,
    extremes_to_frame,
    find_extremes,
)
from tidal_harmonics.prediction.nodal_corrections import (
    NODAL_FORMULAS,
    NodalCorrection,
    NodalFormula,
    lunar_orbit_terms,
    nodal_cycle_table,
)
from tidal_harmonics.prediction.reanalysis import (
    compare_harmonic_constants,
    reanalyze_station,
    utide_constituents,
)
from tidal_harmonics.prediction.series import (
    SeriesResult,
    TidalRange,
    TidePoint,
    predict_series,
    sample_series,
    series_to_frame,
    tidal_range,
)
from tidal_harmonics.prediction.spring_neap import (
    lunar_phase,
    spring_neap_calendar,
    spring_neap_index,
)
from tidal_harmonics.prediction.stations import (
    HarmonicConstant,
    StationHarmonicConstants,
    TidalType,
)
from tidal_harmonics.prediction.tidal_prediction import (
    ConstituentContribution,
    Prediction,
    TidePredictor,
)

__all__ = [
    # Constituent definitions
    'ConstituentCatalog',
    'ConstituentDefinition',
    'ConstituentFamily',
    'default_catalog',
    'NOS_37_CONSTITUENTS',
    'CONSTITUENT_SPEEDS',
    'COOPS_API_NAME_MAP',
    'normalize_constituent_name',
    # Astronomy
    'ARGUMENT_RATES',
    'AstronomicalArguments',
    'astronomical_arguments',
    'julian_centuries',
    # Nodal corrections / equilibrium arguments
    'NODAL_FORMULAS',
    'NodalCorrection',
    'NodalFormula',
    'lunar_orbit_terms',
    'nodal_cycle_table',
    'EquilibriumArgumentResolver',
    'ResolvedConstituent',
    # Stations
    'HarmonicConstant',
    'StationHarmonicConstants',
    'TidalType',
    # Prediction
    'TidePredictor',
    'Prediction',
    'ConstituentContribution',
    # Series
    'TidePoint',
    'SeriesResult',
    'TidalRange',
    'predict_series',
    'sample_series',
    'series_to_frame',
    'tidal_range',
    # Extrema extraction
    'ExtremeKind',
    'TideExtreme',
    'find_extremes',
    'extremes_to_frame',
    # Spring/neap
    'spring_neap_index',
    'lunar_phase',
    'spring_neap_calendar',
    # Educational analyses
    'DEFAULT_LEVELS',
    'compare_subset_accuracy',
    'compare_harmonic_constants',
    'reanalyze_station',
    'utide_constituents',
    # Errors and warnings
    'PredictionWarning',
    'WarningKind',
    'NonFiniteResultError',
    'PredictionCancelledError',
]
