"""
Export Subpackage

CSV export and re-read of predicted series, tide tables and station
harmonic constants.
"""

from tidal_harmonics.export.csv_export import (
    export_predictions,
    mark_extremes,
    read_predictions_csv,
    write_extremes_csv,
    write_harmonic_constants_csv,
    write_predictions_csv,
)

__all__ = [
    'export_predictions',
    'mark_extremes',
    'read_predictions_csv',
    'write_extremes_csv',
    'write_harmonic_constants_csv',
    'write_predictions_csv',
]
