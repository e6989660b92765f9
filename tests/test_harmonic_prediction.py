"""
Unit tests for the prediction subpackage.

Tests cover:
- Constituent catalog, astronomical arguments, nodal corrections
- Harmonic superposition (full, subset, per-constituent)
- Series sampling, extrema extraction, spring/neap index
- Stations, subset accuracy and UTide re-analysis
"""
import math

import numpy as np
import pandas as pd
import pytest


def _sf_station():
    from tidal_harmonics.prediction.stations import (
        SAN_FRANCISCO,
        StationHarmonicConstants,
    )
    return StationHarmonicConstants.from_dict(SAN_FRANCISCO)


def _station(constants, station_id='TEST'):
    from tidal_harmonics.prediction.stations import StationHarmonicConstants
    return StationHarmonicConstants.from_dict({
        'id': station_id,
        'name': 'Synthetic',
        'lat': 0.0,
        'lon': 0.0,
        'constituents': [
            {'symbol': s, 'amplitude': a, 'phase': g} for s, a, g in constants
        ],
    })


# -----------------------------------------------------------------------
# Constituent tests
# -----------------------------------------------------------------------

class TestConstituents:
    """Tests for constituents.py definitions."""

    def test_catalog_size(self):
        """The built-in catalog holds the NOS 37 plus S1 and M3."""
        from tidal_harmonics.prediction.constituents import (
            NOS_37_CONSTITUENTS,
            default_catalog,
        )
        catalog = default_catalog()
        assert len(catalog) == 39
        assert len(NOS_37_CONSTITUENTS) == 37
        assert len(set(NOS_37_CONSTITUENTS)) == 37
        assert 'S1' in catalog and 'M3' in catalog

    def test_doodson_speeds_match_tabulated(self):
        """Speeds re-derived from Doodson numbers match the tabulated ones."""
        from tidal_harmonics.prediction.constituents import default_catalog
        for symbol, definition in default_catalog().items():
            assert abs(definition.doodson_speed() - definition.speed) < 1e-5, (
                f"{symbol}: {definition.doodson_speed()} vs {definition.speed}"
            )

    def test_m2_speed_and_period(self):
        """M2 speed is 28.9841042 deg/hr, period about 12.42 hours."""
        from tidal_harmonics.prediction.constituents import default_catalog
        m2 = default_catalog()['M2']
        assert abs(m2.speed - 28.9841042) < 1e-6
        assert abs(m2.period_hours - 12.4206) < 1e-3

    def test_lookup_aliases(self):
        """Lookups are case-insensitive and accept CO-OPS aliases."""
        from tidal_harmonics.prediction.constituents import default_catalog
        catalog = default_catalog()
        assert catalog['Mf'] is catalog['MF']
        assert catalog['LAM2'].symbol == 'LDA2'
        assert catalog['rho'].symbol == 'RHO1'
        assert 'NOPE' not in catalog

    def test_families(self):
        """Families partition the catalog."""
        from tidal_harmonics.prediction.constituents import (
            ConstituentFamily,
            default_catalog,
        )
        catalog = default_catalog()
        total = sum(len(catalog.by_family(f)) for f in ConstituentFamily)
        assert total == len(catalog)
        assert 'K1' in catalog.by_family('diurnal')

    def test_catalog_is_read_only(self):
        """The shared catalog cannot be modified."""
        from tidal_harmonics.prediction.constituents import default_catalog
        catalog = default_catalog()
        with pytest.raises(TypeError):
            catalog['M2'] = catalog['S2']
        with pytest.raises(AttributeError):
            catalog['M2'].speed = 1.0

    def test_from_records(self):
        """External records build a catalog; duplicates are rejected."""
        from tidal_harmonics.prediction.constituents import ConstituentCatalog
        record = {'symbol': 'm2', 'doodson': [2, 0, 0, 0, 0, 0],
                  'speed_deg_per_hour': 28.9841042, 'family': 'semidiurnal'}
        catalog = ConstituentCatalog.from_records([record])
        assert list(catalog) == ['M2']
        with pytest.raises(ValueError):
            ConstituentCatalog.from_records([record, record])

    def test_bad_doodson_length(self):
        """Doodson numbers must have six elements."""
        from tidal_harmonics.prediction.constituents import (
            ConstituentDefinition,
        )
        with pytest.raises(ValueError):
            ConstituentDefinition('X', (2, 0, 0), 28.98, 'semidiurnal')


# -----------------------------------------------------------------------
# Astronomical argument tests
# -----------------------------------------------------------------------

class TestAstronomical:
    """Tests for astronomical.py."""

    def test_j2000_is_zero(self):
        """Julian centuries are zero at J2000.0."""
        from tidal_harmonics.prediction.astronomical import julian_centuries
        assert julian_centuries('2000-01-01T12:00:00Z') == 0.0

    def test_naive_is_utc(self):
        """Naive instants are interpreted as UTC."""
        from tidal_harmonics.prediction.astronomical import julian_centuries
        assert julian_centuries('2024-05-01 03:00') == julian_centuries(
            pd.Timestamp('2024-05-01 03:00', tz='UTC')
        )
        assert julian_centuries('2024-05-01 05:00+02:00') == julian_centuries(
            '2024-05-01 03:00'
        )

    def test_moon_sidereal_period(self):
        """Mean lunar longitude advances 360 degrees per 27.3216 days."""
        from tidal_harmonics.prediction.astronomical import (
            astronomical_arguments,
        )
        t0 = pd.Timestamp('2024-01-01', tz='UTC')
        a0 = astronomical_arguments(t0)
        a1 = astronomical_arguments(t0 + pd.Timedelta(days=27.321582))
        assert abs((a1.s - a0.s) - 360.0) < 1e-2

    def test_arguments_continuous(self):
        """Arguments are not wrapped and change smoothly."""
        from tidal_harmonics.prediction.astronomical import (
            astronomical_arguments,
        )
        t0 = pd.Timestamp('2030-06-15', tz='UTC')
        a0 = astronomical_arguments(t0)
        a1 = astronomical_arguments(t0 + pd.Timedelta(days=1))
        # T advances 360 * (1 - 1/29.53 - ...) deg per day, unwrapped
        assert 345.0 < a1.T - a0.T < 350.0
        assert a0.T > 360.0

    def test_requires_one_input(self):
        """Exactly one of instant or centuries is accepted."""
        from tidal_harmonics.prediction.astronomical import (
            astronomical_arguments,
        )
        with pytest.raises(ValueError):
            astronomical_arguments()
        with pytest.raises(ValueError):
            astronomical_arguments('2024-01-01', centuries=0.2)

    def test_node_sign(self):
        """N' is the negative node longitude."""
        from tidal_harmonics.prediction.astronomical import (
            astronomical_arguments,
        )
        args = astronomical_arguments(centuries=0.0)
        assert args.N == pytest.approx(125.04452)
        assert args.N_prime == pytest.approx(-125.04452)


# -----------------------------------------------------------------------
# Nodal correction tests
# -----------------------------------------------------------------------

class TestNodalCorrections:
    """Tests for nodal_corrections.py and equilibrium.py."""

    def test_values_at_node_zero(self):
        """At N = 0 the lunar inclination is maximal."""
        from tidal_harmonics.prediction.nodal_corrections import (
            NODAL_FORMULAS,
            evaluate_formula,
            lunar_orbit_terms,
        )
        terms = lunar_orbit_terms(0.0)
        assert terms.I == pytest.approx(28.597, abs=1e-3)
        m2 = evaluate_formula(NODAL_FORMULAS['M2'], terms)
        k1 = evaluate_formula(NODAL_FORMULAS['K1'], terms)
        assert m2.f == pytest.approx(0.963, abs=2e-3)
        assert k1.f == pytest.approx(1.113, abs=2e-3)
        assert m2.u == pytest.approx(0.0, abs=1e-9)
        assert k1.u == pytest.approx(0.0, abs=1e-9)

    def test_m2_factor_range(self):
        """f(M2) stays within [0.96, 1.04] over the nodal cycle."""
        from tidal_harmonics.prediction.nodal_corrections import (
            NODAL_FORMULAS,
            evaluate_formula,
            lunar_orbit_terms,
        )
        for node in np.arange(0.0, 360.0, 15.0):
            nc = evaluate_formula(NODAL_FORMULAS['M2'], lunar_orbit_terms(node))
            assert 0.96 < nc.f < 1.04
            assert abs(nc.u) < 3.0

    def test_solar_unity(self):
        """Solar constituents carry f = 1, u = 0."""
        from tidal_harmonics.prediction.nodal_corrections import (
            NODAL_FORMULAS,
            evaluate_formula,
            lunar_orbit_terms,
        )
        terms = lunar_orbit_terms(77.0)
        for symbol in ('S2', 'P1', 'SA', 'SSA', 'T2'):
            nc = evaluate_formula(NODAL_FORMULAS[symbol], terms)
            assert nc.f == 1.0 and nc.u == 0.0

    def test_compound_rules(self):
        """Compound constituents combine their parents' corrections."""
        from tidal_harmonics.prediction.nodal_corrections import (
            NODAL_FORMULAS,
            evaluate_formula,
            lunar_orbit_terms,
        )
        terms = lunar_orbit_terms(123.0, 40.0)
        m2 = evaluate_formula(NODAL_FORMULAS['M2'], terms)
        k1 = evaluate_formula(NODAL_FORMULAS['K1'], terms)
        m4 = evaluate_formula(NODAL_FORMULAS['M4'], terms)
        mk3 = evaluate_formula(NODAL_FORMULAS['MK3'], terms)
        two_mk3 = evaluate_formula(NODAL_FORMULAS['2MK3'], terms)
        assert m4.f == pytest.approx(m2.f ** 2)
        assert m4.u == pytest.approx(2 * m2.u)
        assert mk3.f == pytest.approx(m2.f * k1.f)
        assert mk3.u == pytest.approx(m2.u + k1.u)
        assert two_mk3.f == pytest.approx(m2.f ** 2 * k1.f)
        assert two_mk3.u == pytest.approx(2 * m2.u - k1.u)

    def test_every_catalog_symbol_has_formula(self):
        """Each built-in constituent has a nodal formula."""
        from tidal_harmonics.prediction.constituents import default_catalog
        from tidal_harmonics.prediction.nodal_corrections import NODAL_FORMULAS
        missing = [s for s in default_catalog() if s not in NODAL_FORMULAS]
        assert missing == []

    def test_missing_formula_fallback(self):
        """A symbol without a formula gets unity and a warning."""
        from tidal_harmonics.prediction.astronomical import (
            astronomical_arguments,
        )
        from tidal_harmonics.prediction.constituents import (
            ConstituentDefinition,
        )
        from tidal_harmonics.prediction.equilibrium import (
            EquilibriumArgumentResolver,
        )
        from tidal_harmonics.prediction.exceptions import WarningKind
        odd = ConstituentDefinition(
            'X2', (2, 1, 0, 0, 0, 0), 29.5, 'semidiurnal'
        )
        nc, warning = EquilibriumArgumentResolver().nodal_correction(
            odd, astronomical_arguments('2024-01-01')
        )
        assert (nc.f, nc.u) == (1.0, 0.0)
        assert warning.kind is WarningKind.MISSING_NODAL_FORMULA
        assert warning.symbol == 'X2'

    def test_equilibrium_argument(self):
        """V0 is the Doodson dot product plus the phase offset, unwrapped."""
        from tidal_harmonics.prediction.astronomical import (
            astronomical_arguments,
        )
        from tidal_harmonics.prediction.constituents import default_catalog
        from tidal_harmonics.prediction.equilibrium import (
            EquilibriumArgumentResolver,
        )
        args = astronomical_arguments('2024-01-01')
        catalog = default_catalog()
        resolver = EquilibriumArgumentResolver()
        assert resolver.equilibrium_argument(catalog['M2'], args) == \
            pytest.approx(2 * args.T)
        assert resolver.equilibrium_argument(catalog['K1'], args) == \
            pytest.approx(args.T + args.s + 90.0)

    def test_resolve_uses_midnight_epoch(self):
        """resolve() takes V0 at 00:00 UTC of the instant's day."""
        from tidal_harmonics.prediction.constituents import default_catalog
        from tidal_harmonics.prediction.equilibrium import (
            EquilibriumArgumentResolver,
        )
        resolved = EquilibriumArgumentResolver().resolve(
            default_catalog()['O1'], '2024-07-04T17:30:00Z'
        )
        assert resolved.epoch == pd.Timestamp('2024-07-04', tz='UTC')
        assert resolved.warning is None
        assert 0.7 < resolved.f < 1.3

    def test_nodal_cycle_table(self):
        """The cycle table spans the node and tabulates f and u."""
        from tidal_harmonics.prediction.nodal_corrections import (
            nodal_cycle_table,
        )
        df = nodal_cycle_table(['M2', 'K1'], start_year=2020)
        assert {'DateTime', 'N', 'f_M2', 'u_M2', 'f_K1', 'u_K1'} <= set(df)
        assert len(df) == 227
        assert df['f_M2'].between(0.96, 1.04).all()
        assert df['f_K1'].max() > 1.1 and df['f_K1'].min() < 0.9
        with pytest.raises(ValueError):
            nodal_cycle_table(['ZZ9'])


# -----------------------------------------------------------------------
# Superposition tests
# -----------------------------------------------------------------------

class TestTidePrediction:
    """Tests for tidal_prediction.py."""

    def test_deterministic(self):
        """The same station and instant always give the same height."""
        from tidal_harmonics.prediction.tidal_prediction import TidePredictor
        station = _sf_station()
        t = '2024-03-15T08:12:00Z'
        assert TidePredictor().predict(station, t) == \
            TidePredictor().predict(station, t)

    def test_plausible_range(self):
        """San Francisco heights stay within the sum of amplitudes."""
        from tidal_harmonics.prediction.tidal_prediction import TidePredictor
        station = _sf_station()
        predictor = TidePredictor()
        bound = 1.1 * sum(c.amplitude for c in station.constituents)
        for hour in range(0, 48, 3):
            t = pd.Timestamp('2024-06-01', tz='UTC') + pd.Timedelta(hours=hour)
            assert abs(predictor.predict(station, t)) < bound

    def test_subset_agreement(self):
        """A subset naming every constituent equals the full prediction."""
        from tidal_harmonics.prediction.tidal_prediction import TidePredictor
        station = _sf_station()
        predictor = TidePredictor()
        t = '2025-01-20T13:45:00Z'
        full = predictor.predict(station, t)
        subset = predictor.predict_subset(station, t, station.symbols)
        assert abs(full - subset) < 1e-9

    def test_empty_subset(self):
        """An empty subset predicts exactly zero."""
        from tidal_harmonics.prediction.tidal_prediction import TidePredictor
        assert TidePredictor().predict_subset(
            _sf_station(), '2024-01-01', []
        ) == 0.0

    def test_contributions_sum(self):
        """Per-constituent heights sum to the prediction."""
        from tidal_harmonics.prediction.tidal_prediction import TidePredictor
        station = _sf_station()
        predictor = TidePredictor()
        t = '2024-09-09T09:09:00Z'
        parts = predictor.constituent_contributions(station, t)
        assert [p.symbol for p in parts] == list(station.symbols)
        assert sum(p.height for p in parts) == pytest.approx(
            predictor.predict(station, t), abs=1e-12
        )
        for p in parts:
            assert 0.0 <= p.argument < 360.0
            assert p.amplitude >= 0.0

    def test_unknown_constituent_warning(self):
        """Unknown symbols are skipped with a warning."""
        from tidal_harmonics.prediction.exceptions import WarningKind
        from tidal_harmonics.prediction.tidal_prediction import TidePredictor
        plain = _station([('M2', 1.0, 10.0)])
        extra = _station([('M2', 1.0, 10.0), ('ZZ7', 0.5, 0.0)])
        predictor = TidePredictor()
        result = predictor.evaluate(extra, '2024-02-02T02:00Z')
        assert result.height == predictor.evaluate(
            plain, '2024-02-02T02:00Z'
        ).height
        assert [w.kind for w in result.warnings] == [
            WarningKind.UNKNOWN_CONSTITUENT
        ]
        assert result.warnings[0].symbol == 'ZZ7'

    def test_single_m2_wave(self):
        """A lone unit M2 wave reaches +1 at whole and -1 at half periods."""
        from tidal_harmonics.prediction.constituents import default_catalog
        from tidal_harmonics.prediction.tidal_prediction import TidePredictor
        station = _station([('M2', 1.0, 0.0)])
        predictor = TidePredictor(nodal_corrections=False)
        speed = default_catalog()['M2'].speed
        period = 360.0 / speed

        t = pd.Timestamp('2024-03-01T00:00:00', tz='UTC')
        arg = predictor.constituent_contributions(station, t)[0].argument
        t0 = t + pd.Timedelta(hours=((360.0 - arg) % 360.0) / speed)

        for k in range(4):
            high = t0 + pd.Timedelta(hours=k * period)
            low = high + pd.Timedelta(hours=period / 2)
            assert predictor.predict(station, high) == pytest.approx(1.0, abs=1e-6)
            assert predictor.predict(station, low) == pytest.approx(-1.0, abs=1e-6)

    def test_spring_neap_range_ratio(self):
        """M2 + S2 daily ranges vary by about (1 + r) / (1 - r)."""
        from tidal_harmonics.prediction.series import (
            predict_series,
            series_to_frame,
        )
        from tidal_harmonics.prediction.tidal_prediction import TidePredictor
        station = _station([('M2', 1.0, 0.0), ('S2', 0.46, 0.0)])
        points = predict_series(
            station, '2024-04-01', '2024-04-30 23:50', 10,
            predictor=TidePredictor(nodal_corrections=False),
        )
        df = series_to_frame(points)
        daily = df.groupby(df['DateTime'].dt.floor('D'))['Height']
        ranges = daily.max() - daily.min()
        ratio = ranges.max() / ranges.min()
        assert 2.2 <= ratio <= 3.2

    def test_nodal_corrections_change_result(self):
        """Disabling nodal corrections changes a lunar prediction."""
        from tidal_harmonics.prediction.tidal_prediction import TidePredictor
        station = _station([('K1', 1.0, 30.0)])
        t = '2024-03-01T05:00Z'
        with_nodal = TidePredictor().predict(station, t)
        without = TidePredictor(nodal_corrections=False).predict(station, t)
        assert with_nodal != pytest.approx(without, abs=1e-6)

    def test_non_finite_raises(self):
        """A NaN height raises NonFiniteResultError."""
        from tidal_harmonics.prediction.constituents import (
            ConstituentCatalog,
            ConstituentDefinition,
        )
        from tidal_harmonics.prediction.exceptions import NonFiniteResultError
        from tidal_harmonics.prediction.tidal_prediction import TidePredictor
        catalog = ConstituentCatalog([ConstituentDefinition(
            'M2', (2, 0, 0, 0, 0, 0), float('nan'), 'semidiurnal'
        )])
        with pytest.raises(NonFiniteResultError):
            TidePredictor(catalog).predict(
                _station([('M2', 1.0, 0.0)]), '2024-01-01T01:00Z'
            )


# -----------------------------------------------------------------------
# Series tests
# -----------------------------------------------------------------------

class TestSeries:
    """Tests for series.py."""

    def test_inverted_range_is_empty(self):
        """start > end gives an empty series."""
        from tidal_harmonics.prediction.series import predict_series
        assert predict_series(
            _sf_station(), '2024-01-02', '2024-01-01', 6
        ) == []

    def test_single_point(self):
        """start == end gives exactly one point."""
        from tidal_harmonics.prediction.series import predict_series
        points = predict_series(_sf_station(), '2024-01-01', '2024-01-01', 6)
        assert len(points) == 1
        assert points[0].timestamp == pd.Timestamp('2024-01-01', tz='UTC')

    def test_inclusive_count(self):
        """One day at 6 minutes has 241 points, end included."""
        from tidal_harmonics.prediction.series import predict_series
        points = predict_series(_sf_station(), '2024-01-01', '2024-01-02', 6)
        assert len(points) == 241
        assert points[-1].timestamp == pd.Timestamp('2024-01-02', tz='UTC')

    def test_end_not_on_grid(self):
        """Points never pass the end instant."""
        from tidal_harmonics.prediction.series import sample_times
        times = sample_times('2024-01-01 00:00', '2024-01-01 00:20', 6)
        assert list(times.minute) == [0, 6, 12, 18]

    def test_bad_interval(self):
        """Non-positive intervals raise ValueError."""
        from tidal_harmonics.prediction.series import predict_series
        with pytest.raises(ValueError):
            predict_series(_sf_station(), '2024-01-01', '2024-01-02', 0)
        with pytest.raises(ValueError):
            predict_series(_sf_station(), '2024-01-01', '2024-01-02', -6)

    def test_parallel_matches_serial(self):
        """Thread-pool sampling returns the serial result in time order."""
        from tidal_harmonics.prediction.series import predict_series
        station = _sf_station()
        serial = predict_series(station, '2024-01-01', '2024-01-02', 15)
        parallel = predict_series(
            station, '2024-01-01', '2024-01-02', 15, max_workers=4
        )
        assert [p.timestamp for p in parallel] == [p.timestamp for p in serial]
        np.testing.assert_allclose(
            [p.height for p in parallel], [p.height for p in serial],
            atol=1e-12,
        )

    def test_cancellation(self):
        """A set cancel event aborts sampling without a partial result."""
        import threading

        from tidal_harmonics.prediction.exceptions import (
            PredictionCancelledError,
        )
        from tidal_harmonics.prediction.series import sample_series
        event = threading.Event()
        event.set()
        with pytest.raises(PredictionCancelledError):
            sample_series(
                _sf_station(), '2024-01-01', '2024-01-03', 6,
                cancel_event=event,
            )

    def test_failures_collected(self):
        """Non-finite points are reported as failures, not raised."""
        from tidal_harmonics.prediction.constituents import (
            ConstituentCatalog,
            ConstituentDefinition,
        )
        from tidal_harmonics.prediction.series import sample_series
        from tidal_harmonics.prediction.tidal_prediction import TidePredictor
        catalog = ConstituentCatalog([ConstituentDefinition(
            'M2', (2, 0, 0, 0, 0, 0), float('nan'), 'semidiurnal'
        )])
        result = sample_series(
            _station([('M2', 1.0, 0.0)]), '2024-01-01', '2024-01-01 01:00', 30,
            predictor=TidePredictor(catalog),
        )
        assert result.points == []
        assert len(result.failures) == 3

    def test_warnings_deduplicated(self):
        """A warning repeated at every point is reported once."""
        from tidal_harmonics.prediction.series import sample_series
        result = sample_series(
            _station([('M2', 1.0, 0.0), ('ZZ7', 0.2, 0.0)]),
            '2024-01-01', '2024-01-01 03:00', 30,
        )
        assert len(result.points) == 7
        assert len(result.warnings) == 1

    def test_series_to_frame(self):
        """Frames carry DateTime and Height columns."""
        from tidal_harmonics.prediction.series import (
            predict_series,
            series_to_frame,
        )
        df = series_to_frame(
            predict_series(_sf_station(), '2024-01-01', '2024-01-01 01:00', 6)
        )
        assert list(df.columns) == ['DateTime', 'Height']
        assert len(df) == 11
        assert str(df['DateTime'].dt.tz) == 'UTC'

    def test_tidal_range(self):
        """The 25-hour range spans a large share of the amplitudes."""
        from tidal_harmonics.prediction.series import tidal_range
        station = _sf_station()
        rng = tidal_range(station, '2024-05-10T12:00Z')
        assert rng.min_height < 0 < rng.max_height
        assert 0.8 < rng.range < 2 * sum(c.amplitude for c in station.constituents)


# -----------------------------------------------------------------------
# Extrema extraction tests
# -----------------------------------------------------------------------

class TestExtremes:
    """Tests for extremes.py."""

    def test_alternation(self):
        """Three days of San Francisco tides alternate High/Low."""
        from tidal_harmonics.prediction.extremes import (
            ExtremeKind,
            find_extremes,
        )
        from tidal_harmonics.prediction.series import predict_series
        points = predict_series(_sf_station(), '2024-03-01', '2024-03-04', 6)
        extremes = find_extremes(points)
        assert 8 <= len(extremes) <= 14
        for a, b in zip(extremes, extremes[1:]):
            assert a.kind is not b.kind
            assert a.timestamp < b.timestamp
            if a.kind is ExtremeKind.HIGH:
                assert a.height > b.height
            else:
                assert a.height < b.height

    def test_refined_vertex(self):
        """The vertex of an unevenly sampled parabola is recovered exactly."""
        from tidal_harmonics.prediction.extremes import (
            ExtremeKind,
            find_extremes,
        )
        from tidal_harmonics.prediction.series import TidePoint
        t0 = pd.Timestamp('2024-01-01', tz='UTC')
        hours = [0.0, 1.0, 2.5]
        points = [
            TidePoint(t0 + pd.Timedelta(hours=h), -(h - 1.2) ** 2)
            for h in hours
        ]
        extremes = find_extremes(points)
        assert len(extremes) == 1
        assert extremes[0].kind is ExtremeKind.HIGH
        assert extremes[0].height == pytest.approx(0.0, abs=1e-9)
        expected = t0 + pd.Timedelta(hours=1.2)
        assert abs((extremes[0].timestamp - expected).total_seconds()) < 1e-3

    def test_plateau_collapses(self):
        """A two-sample plateau yields a single High."""
        from tidal_harmonics.prediction.extremes import (
            ExtremeKind,
            find_extremes,
        )
        from tidal_harmonics.prediction.series import TidePoint
        t0 = pd.Timestamp('2024-01-01', tz='UTC')
        heights = [0.0, 1.0, 2.0, 2.0, 1.0, 0.0]
        points = [
            TidePoint(t0 + pd.Timedelta(hours=i), h)
            for i, h in enumerate(heights)
        ]
        extremes = find_extremes(points)
        assert len(extremes) == 1
        assert extremes[0].kind is ExtremeKind.HIGH
        assert extremes[0].height == pytest.approx(2.125)
        assert extremes[0].timestamp == t0 + pd.Timedelta(hours=2.5)

    def test_flat_series(self):
        """A station with all-zero amplitudes predicts no extremes."""
        from tidal_harmonics.prediction.extremes import find_extremes
        from tidal_harmonics.prediction.series import predict_series
        station = _station([('M2', 0.0, 120.0), ('K1', 0.0, 45.0)])
        points = predict_series(station, '2024-03-01', '2024-03-03', 6)
        assert len(points) == 481
        assert {p.height for p in points} == {0.0}
        assert find_extremes(points) == []

    def test_monotonic_step(self):
        """A repeated sample in a rising series is not an extreme."""
        from tidal_harmonics.prediction.extremes import find_extremes
        from tidal_harmonics.prediction.series import TidePoint
        t0 = pd.Timestamp('2024-01-01', tz='UTC')
        rising = [0.0, 1.0, 1.0, 2.0, 3.0]
        points = [
            TidePoint(t0 + pd.Timedelta(hours=i), h)
            for i, h in enumerate(rising)
        ]
        assert find_extremes(points) == []
        falling = [
            TidePoint(p.timestamp, -p.height) for p in points
        ]
        assert find_extremes(falling) == []

    def test_plateau_at_edge_ignored(self):
        """A plateau touching the first sample is not an interior extreme."""
        from tidal_harmonics.prediction.extremes import find_extremes
        from tidal_harmonics.prediction.series import TidePoint
        t0 = pd.Timestamp('2024-01-01', tz='UTC')
        heights = [2.0, 2.0, 1.0, 0.0]
        points = [
            TidePoint(t0 + pd.Timedelta(hours=i), h)
            for i, h in enumerate(heights)
        ]
        assert find_extremes(points) == []

    def test_microsecond_timestamps(self):
        """Timestamps stored at microsecond resolution refine correctly."""
        from tidal_harmonics.prediction.extremes import find_extremes
        from tidal_harmonics.prediction.series import TidePoint, predict_series
        reference = predict_series(
            _sf_station(), '2024-03-01', '2024-03-02', 30
        )
        t0 = pd.Timestamp('2024-03-01 00:00', tz='UTC').as_unit('us')
        points = [
            TidePoint(t0 + k * pd.Timedelta(minutes=30), p.height)
            for k, p in enumerate(reference)
        ]
        expected = find_extremes(reference)
        found = find_extremes(points)
        assert len(found) == len(expected) == 4
        for a, b in zip(found, expected):
            assert a.kind is b.kind
            assert abs(a.timestamp - b.timestamp) < pd.Timedelta(seconds=1)
            assert a.height == pytest.approx(b.height)
        # First event falls near 03:23 UTC, not at the first sample.
        assert found[0].timestamp - t0 > pd.Timedelta(hours=2)

    def test_too_short(self):
        """Fewer than three points give no extremes."""
        from tidal_harmonics.prediction.extremes import find_extremes
        from tidal_harmonics.prediction.series import TidePoint
        t0 = pd.Timestamp('2024-01-01', tz='UTC')
        assert find_extremes([]) == []
        assert find_extremes([TidePoint(t0, 1.0), TidePoint(t0, 2.0)]) == []

    def test_boundaries_excluded_by_default(self):
        """Monotonic series have no extremes unless boundaries are asked for."""
        from tidal_harmonics.prediction.extremes import (
            ExtremeKind,
            find_extremes,
        )
        from tidal_harmonics.prediction.series import TidePoint
        t0 = pd.Timestamp('2024-01-01', tz='UTC')
        points = [TidePoint(t0 + pd.Timedelta(hours=i), float(i)) for i in range(5)]
        assert find_extremes(points) == []
        kinds = [e.kind for e in find_extremes(points, include_boundaries=True)]
        assert kinds == [ExtremeKind.LOW, ExtremeKind.HIGH]

    def test_extremes_to_frame(self):
        """Frames carry DateTime, Height and Type columns."""
        from tidal_harmonics.prediction.extremes import (
            extremes_to_frame,
            find_extremes,
        )
        from tidal_harmonics.prediction.series import predict_series
        points = predict_series(_sf_station(), '2024-03-01', '2024-03-02', 6)
        df = extremes_to_frame(find_extremes(points))
        assert list(df.columns) == ['DateTime', 'Height', 'Type']
        assert set(df['Type']) == {'High', 'Low'}


# -----------------------------------------------------------------------
# Spring/neap tests
# -----------------------------------------------------------------------

class TestSpringNeap:
    """Tests for spring_neap.py."""

    def test_bounds(self):
        """The index stays within [-1, 1]."""
        from tidal_harmonics.prediction.spring_neap import spring_neap_index
        t0 = pd.Timestamp('2024-01-01', tz='UTC')
        values = [
            spring_neap_index(t0 + pd.Timedelta(hours=6 * i)) for i in range(200)
        ]
        assert min(values) >= -1.0 and max(values) <= 1.0
        assert min(values) < -0.99 and max(values) > 0.99

    def test_fortnightly_period(self):
        """Successive spring maxima are about 14.77 days apart."""
        from scipy.signal import argrelextrema

        from tidal_harmonics.prediction.spring_neap import spring_neap_index
        t0 = pd.Timestamp('2024-01-01', tz='UTC')
        hours = np.arange(0, 24 * 75)
        values = np.array([
            spring_neap_index(t0 + pd.Timedelta(hours=int(h))) for h in hours
        ])
        peaks = argrelextrema(values, np.greater)[0]
        spacing_days = np.diff(hours[peaks]).mean() / 24.0
        assert spacing_days == pytest.approx(14.77, abs=0.05)

    def test_new_moon(self):
        """Near the 2024-01-11 new moon the phase is near 0 and it is spring."""
        from tidal_harmonics.prediction.spring_neap import (
            lunar_phase,
            spring_neap_index,
        )
        t = '2024-01-11T11:57:00Z'
        phase = lunar_phase(t)
        assert phase < 0.05 or phase > 0.95
        assert spring_neap_index(t) > 0.9

    def test_lunar_phase_range(self):
        """Lunar phase lies in [0, 1)."""
        from tidal_harmonics.prediction.spring_neap import lunar_phase
        t0 = pd.Timestamp('2024-01-01', tz='UTC')
        for day in range(0, 60, 3):
            assert 0.0 <= lunar_phase(t0 + pd.Timedelta(days=day)) < 1.0

    def test_calendar(self):
        """A 30-day calendar marks at least one spring and one neap."""
        from tidal_harmonics.prediction.spring_neap import spring_neap_calendar
        df = spring_neap_calendar('2024-02-01', days=30)
        assert len(df) == 30
        assert list(df.columns) == ['Date', 'Index', 'Lunar_Phase', 'Marker']
        assert (df['Marker'] == 'Spring').sum() >= 1
        assert (df['Marker'] == 'Neap').sum() >= 1
        with pytest.raises(ValueError):
            spring_neap_calendar('2024-02-01', days=0)


# -----------------------------------------------------------------------
# Station tests
# -----------------------------------------------------------------------

class TestStations:
    """Tests for stations.py."""

    def test_from_dict_aliases(self):
        """Both amplitude/phase key spellings are accepted."""
        from tidal_harmonics.prediction.stations import StationHarmonicConstants
        station = StationHarmonicConstants.from_dict({
            'id': 1, 'name': 'X', 'lat': 10, 'lon': 20,
            'harmonicEpoch': '1983-2001',
            'constituents': [
                {'symbol': 'M2', 'amplitude_m': 1.0, 'phase_deg': 370.0},
                {'symbol': 'lam2', 'amplitude': 0.1, 'phase': -10.0},
            ],
        })
        assert station.id == '1'
        assert station.harmonic_epoch == '1983-2001'
        assert station.symbols == ('M2', 'LDA2')
        assert station.constant('M2').phase == pytest.approx(10.0)
        assert station.constant('LDA2').phase == pytest.approx(350.0)

    def test_invalid_constants(self):
        """Negative or non-finite values are rejected."""
        from tidal_harmonics.prediction.stations import HarmonicConstant
        with pytest.raises(ValueError):
            HarmonicConstant('M2', -0.1, 0.0)
        with pytest.raises(ValueError):
            HarmonicConstant('M2', float('inf'), 0.0)
        with pytest.raises(ValueError):
            HarmonicConstant('M2', 0.1, float('nan'))

    def test_duplicates_rejected(self):
        """A station cannot list a constituent twice."""
        with pytest.raises(ValueError):
            _station([('M2', 1.0, 0.0), ('m2', 0.5, 0.0)])

    def test_tidal_type(self):
        """San Francisco is mixed, mainly semidiurnal."""
        from tidal_harmonics.prediction.stations import TidalType
        station = _sf_station()
        assert station.form_factor() == pytest.approx(0.594 / 0.710, abs=1e-3)
        assert station.tidal_type() is TidalType.MIXED_SEMIDIURNAL
        assert _station([('K1', 1.0, 0), ('M2', 0.1, 0)]).tidal_type() \
            is TidalType.DIURNAL

    def test_round_trip_dict(self):
        """to_dict() output rebuilds an equal station."""
        from tidal_harmonics.prediction.stations import StationHarmonicConstants
        station = _sf_station()
        assert StationHarmonicConstants.from_dict(station.to_dict()) == station

    def test_ranked_symbols(self):
        """Symbols rank by amplitude."""
        assert _sf_station().ranked_symbols()[:3] == ['M2', 'K1', 'O1']


# -----------------------------------------------------------------------
# Accuracy and re-analysis tests
# -----------------------------------------------------------------------

class TestAccuracy:
    """Tests for accuracy.py."""

    def test_more_constituents_less_error(self):
        """Eight constituents beat M2 alone; the full set has zero error."""
        from tidal_harmonics.prediction.accuracy import compare_subset_accuracy
        df = compare_subset_accuracy(
            _sf_station(), '2024-03-01', '2024-03-03', interval_minutes=30
        )
        assert list(df.columns) == [
            'Level', 'N_Constituents', 'RMS_Error', 'Max_Error'
        ]
        by_level = df.set_index('Level')
        assert by_level.loc['M2 only', 'RMS_Error'] > \
            by_level.loc['8 common', 'RMS_Error']
        assert by_level.loc['M2 only', 'N_Constituents'] == 1
        assert by_level.loc['All constituents', 'Max_Error'] == 0.0
        assert (df['Max_Error'] >= df['RMS_Error']).all()

    def test_empty_window(self):
        """An inverted window raises ValueError."""
        from tidal_harmonics.prediction.accuracy import compare_subset_accuracy
        with pytest.raises(ValueError):
            compare_subset_accuracy(_sf_station(), '2024-03-03', '2024-03-01')


class TestReanalysis:
    """Tests for reanalysis.py."""

    def test_vector_difference(self):
        """Identical constants give zero differences."""
        from tidal_harmonics.prediction.reanalysis import (
            compare_harmonic_constants,
        )
        df = compare_harmonic_constants(
            [1.0, 0.5], [10.0, 359.0], [1.0, 0.5], [10.0, 1.0], ['M2', 'K1']
        )
        assert df.loc[0, 'Vector_Diff'] == pytest.approx(0.0, abs=1e-12)
        assert df.loc[1, 'Phase_Diff'] == pytest.approx(-2.0)
        with pytest.raises(ValueError):
            compare_harmonic_constants([1.0], [0.0], [1.0, 2.0], [0.0], ['M2'])

    def test_utide_recovers_m2(self):
        """UTide recovers the M2 constant from a predicted month."""
        from tidal_harmonics.prediction.reanalysis import reanalyze_station
        df = reanalyze_station(
            _sf_station(), '2024-01-01', '2024-01-31', interval_minutes=60,
            constit=['M2', 'S2', 'N2', 'K1', 'O1'],
        )
        m2 = df.set_index('Constituent').loc['M2']
        assert m2['Recovered_Amp'] == pytest.approx(0.577, rel=0.05)
        assert abs(m2['Phase_Diff']) < 5.0

    def test_utide_constituents(self):
        """Names are mapped to UTide; unknown and aliased ones are skipped."""
        from tidal_harmonics.prediction.reanalysis import utide_constituents
        assert utide_constituents(
            ['M2', '2MK3', 'MO3', 'M1', 'XYZ', 'm2']
        ) == ['M2', 'MO3', 'NO1']
        assert utide_constituents(['M2', '2MK3']) == ['M2']

    def test_full_nos_station(self):
        """A station carrying all NOS 37 constituents re-analyses over a year."""
        from tidal_harmonics.prediction.constituents import NOS_37_CONSTITUENTS
        from tidal_harmonics.prediction.reanalysis import (
            reanalyze_station,
            utide_constituents,
        )
        from tidal_harmonics.prediction.stations import (
            StationHarmonicConstants,
        )
        station = StationHarmonicConstants.from_dict({
            'id': 'NOS37',
            'name': 'Synthetic',
            'lat': 37.8,
            'lon': -122.5,
            'constituents': [
                {'symbol': s, 'amplitude': 0.5 if s == 'M2' else 0.02,
                 'phase': 30.0}
                for s in NOS_37_CONSTITUENTS
            ],
        })
        constit = utide_constituents(list(NOS_37_CONSTITUENTS))
        assert '2MK3' not in constit
        assert 'NO1' in constit and 'M1' not in constit

        df = reanalyze_station(
            station, '2023-01-01', '2023-12-31 23:00', interval_minutes=60,
        )
        assert len(df) == len(constit)
        assert '2MK3' not in set(df['Constituent'])
        assert 'M1' in set(df['Constituent'])
        m2 = df.set_index('Constituent').loc['M2']
        assert m2['Recovered_Amp'] == pytest.approx(0.5, rel=0.02)
        assert abs(m2['Phase_Diff']) < 2.0


# -----------------------------------------------------------------------
# Facade tests
# -----------------------------------------------------------------------

class TestFacade:
    """Tests for the package-level functions."""

    def test_predict_accepts_dict(self):
        """Stations may be given in their external dict form."""
        import tidal_harmonics
        from tidal_harmonics.prediction.stations import SAN_FRANCISCO
        t = '2024-03-15T08:00:00Z'
        assert tidal_harmonics.predict(SAN_FRANCISCO, t) == \
            tidal_harmonics.predict(_sf_station(), t)

    def test_facade_operations(self):
        """All facade operations run end to end."""
        import tidal_harmonics
        station = _sf_station()
        series = tidal_harmonics.predict_series(
            station, '2024-03-01', '2024-03-02', 6
        )
        assert len(series) == 241
        assert tidal_harmonics.predict_subset(station, '2024-03-01', []) == 0.0
        extremes = tidal_harmonics.find_extremes(series)
        assert len(extremes) >= 3
        with pytest.raises(TypeError):
            tidal_harmonics.find_extremes(series, catalog=None)
        assert -1.0 <= tidal_harmonics.spring_neap_index('2024-03-01') <= 1.0

    def test_custom_catalog(self):
        """A caller-supplied catalog is used for lookups."""
        import tidal_harmonics
        from tidal_harmonics.prediction.constituents import (
            ConstituentCatalog,
            default_catalog,
        )
        only_m2 = ConstituentCatalog([default_catalog()['M2']])
        station = _sf_station()
        t = '2024-03-01T03:00Z'
        assert tidal_harmonics.predict(station, t, catalog=only_m2) == \
            pytest.approx(tidal_harmonics.predict_subset(station, t, ['M2']))


# -----------------------------------------------------------------------
# Import tests
# -----------------------------------------------------------------------

class TestImports:
    """Verify that the public API can be imported."""

    def test_import_prediction(self):
        """All public names in prediction.__all__ import."""
        import tidal_harmonics.prediction as prediction
        for name in prediction.__all__:
            assert hasattr(prediction, name), name

    def test_import_facade(self):
        """The package facade exposes its operations."""
        import tidal_harmonics
        for name in ('predict', 'predict_series', 'predict_subset',
                     'find_extremes', 'spring_neap_index'):
            assert callable(getattr(tidal_harmonics, name))
        assert math.isfinite(tidal_harmonics.predict(_sf_station(), '2024-01-01'))
