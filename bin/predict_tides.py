"""
Predict tides for a station and write CSV files.

Example::

    python bin/predict_tides.py station.json 2024-03-01 2024-03-08 out/sf \
        --interval 6 --extremes --constants
"""
from pathlib import Path
import argparse
import json
import logging
import sys

from tidal_harmonics.export import (
    export_predictions,
    write_harmonic_constants_csv,
)
from tidal_harmonics.prediction import (
    PredictionCancelledError,
    StationHarmonicConstants,
    TidePredictor,
)
from tidal_harmonics.utils import (
    configure_logging,
    export_settings,
    prediction_settings,
)

logger = logging.getLogger('predict_tides')


def load_station(path):
    with open(path) as f:
        return StationHarmonicConstants.from_dict(json.load(f))


def main(argv=None):
    parser = argparse.ArgumentParser(description=__doc__.split('\n')[1])
    parser.add_argument('station', help='Station harmonic constants (JSON)')
    parser.add_argument('start', help='Start time, UTC (e.g. 2024-03-01 or 2024-03-01T06:00)')
    parser.add_argument('end', help='End time, UTC, inclusive')
    parser.add_argument('output', help='Output path prefix')
    parser.add_argument('--interval', type=float, help='Sampling interval in minutes')
    parser.add_argument('--workers', type=int, help='Worker threads')
    parser.add_argument('--no-nodal', action='store_true', help='Disable nodal corrections')
    parser.add_argument('--extremes', action='store_true', help='Also write a high/low tide table')
    parser.add_argument('--constants', action='store_true', help='Also write the harmonic constants')
    args = parser.parse_args(argv)

    configure_logging()
    settings = prediction_settings(logger)
    export_opts = export_settings(logger)

    interval = args.interval or settings['interval_minutes']
    workers = args.workers or settings['max_workers']
    nodal = settings['nodal_corrections'] and not args.no_nodal

    station = load_station(args.station)
    predictor = TidePredictor(nodal_corrections=nodal)
    prefix = Path(args.output)
    logger.info('Station %s (%s), tidal type %s.',
                station.id, station.name, station.tidal_type().label)

    extremes_path = None
    if args.extremes:
        extremes_path = prefix.with_name(prefix.name + '_extremes.csv')

    try:
        path = export_predictions(
            station, args.start, args.end, interval,
            prefix.with_name(prefix.name + '_predictions.csv'),
            predictor=predictor,
            chunk_size=settings['chunk_size'],
            decimals=export_opts['decimals'],
            datetime_format=export_opts['datetime_format'],
            max_workers=workers,
            extremes_path=extremes_path,
            logger=logger,
        )
    except PredictionCancelledError as exc:
        logger.error('%s', exc)
        return 1
    print(path)

    if extremes_path is not None:
        print(extremes_path)

    if args.constants:
        path = write_harmonic_constants_csv(
            station, prefix.with_name(prefix.name + '_constants.csv'),
            logger=logger,
        )
        print(path)
    return 0


if __name__ == '__main__':
    sys.exit(main())
