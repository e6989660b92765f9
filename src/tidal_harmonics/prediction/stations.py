"""
Station harmonic constants.

A station is an ordered set of (constituent, amplitude, phase lag) triples
for a tide gauge, as published in the CO-OPS harmonic constants product.
Phase lags are Greenwich epochs (kappa) in degrees, amplitudes in metres.

The tidal type classification uses the form factor::

    F = (K1 + O1) / (M2 + S2)

with the conventional thresholds 0.25, 1.5 and 3.0 (Defant, 1958).
"""
from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field
from typing import Iterable, Mapping

from .constituents import normalize_constituent_name


@dataclass(frozen=True)
class HarmonicConstant:
    """Amplitude (m) and phase lag (degrees) of one constituent."""

    symbol: str
    amplitude: float
    phase: float

    def __post_init__(self):
        amplitude = float(self.amplitude)
        phase = float(self.phase)
        if not math.isfinite(amplitude) or amplitude < 0:
            raise ValueError(
                f"Amplitude of {self.symbol} must be finite and >= 0, "
                f"got {self.amplitude}."
            )
        if not math.isfinite(phase):
            raise ValueError(
                f"Phase of {self.symbol} must be finite, got {self.phase}."
            )
        object.__setattr__(self, 'symbol', normalize_constituent_name(self.symbol))
        object.__setattr__(self, 'amplitude', amplitude)
        object.__setattr__(self, 'phase', phase % 360.0)


class TidalType(str, enum.Enum):
    """Classification of a station's tide by form factor."""

    SEMIDIURNAL = 'semidiurnal'
    MIXED_SEMIDIURNAL = 'mixed-semidiurnal'
    MIXED_DIURNAL = 'mixed-diurnal'
    DIURNAL = 'diurnal'

    @property
    def label(self) -> str:
        return _TIDAL_TYPE_LABELS[self]


_TIDAL_TYPE_LABELS = {
    TidalType.SEMIDIURNAL: 'Semidiurnal (2 equal highs/day)',
    TidalType.MIXED_SEMIDIURNAL: 'Mixed, mainly semidiurnal',
    TidalType.MIXED_DIURNAL: 'Mixed, mainly diurnal',
    TidalType.DIURNAL: 'Diurnal (1 high/day)',
}


@dataclass(frozen=True)
class StationHarmonicConstants:
    """
    Immutable harmonic constants of one station.

    Attributes
    ----------
    id : str
        Station identifier (e.g. CO-OPS ``"9414290"``).
    name : str
        Station name.
    latitude, longitude : float
        Position in decimal degrees.
    datum : str
        Vertical datum of the constants (e.g. ``"MLLW"``).
    harmonic_epoch : str
        Analysis epoch of the constants (e.g. ``"1983-2001"``).
    timezone : str
        IANA zone for display only; computations are in UTC.
    constituents : tuple of HarmonicConstant
        Constants in source order.
    """

    id: str
    name: str
    latitude: float
    longitude: float
    datum: str = ''
    harmonic_epoch: str = ''
    timezone: str = 'UTC'
    constituents: tuple[HarmonicConstant, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, 'constituents', tuple(self.constituents))
        symbols = [c.symbol for c in self.constituents]
        duplicates = sorted({s for s in symbols if symbols.count(s) > 1})
        if duplicates:
            raise ValueError(
                f"Station {self.id} lists constituents more than once: "
                f"{duplicates}"
            )

    @classmethod
    def from_dict(cls, record: Mapping) -> StationHarmonicConstants:
        """
        Build a station from its external dict form.

        Accepts ``lat``/``lon`` or ``latitude``/``longitude``,
        ``harmonicEpoch`` or ``harmonic_epoch``, and per constituent
        ``amplitude_m`` or ``amplitude`` and ``phase_deg`` or ``phase``.
        """
        constants = []
        for entry in record.get('constituents', ()):
            amplitude = entry.get('amplitude_m', entry.get('amplitude'))
            phase = entry.get('phase_deg', entry.get('phase'))
            if amplitude is None or phase is None:
                raise ValueError(
                    f"Constituent entry {entry!r} needs an amplitude and a "
                    f"phase."
                )
            constants.append(
                HarmonicConstant(entry['symbol'], amplitude, phase)
            )
        return cls(
            id=str(record['id']),
            name=record.get('name', ''),
            latitude=float(record.get('lat', record.get('latitude', 0.0))),
            longitude=float(record.get('lon', record.get('longitude', 0.0))),
            datum=record.get('datum', ''),
            harmonic_epoch=record.get(
                'harmonicEpoch', record.get('harmonic_epoch', '')
            ),
            timezone=record.get('timezone', 'UTC'),
            constituents=tuple(constants),
        )

    def to_dict(self) -> dict:
        """External dict form (inverse of :meth:`from_dict`)."""
        return {
            'id': self.id,
            'name': self.name,
            'lat': self.latitude,
            'lon': self.longitude,
            'datum': self.datum,
            'harmonicEpoch': self.harmonic_epoch,
            'timezone': self.timezone,
            'constituents': [
                {'symbol': c.symbol, 'amplitude_m': c.amplitude,
                 'phase_deg': c.phase}
                for c in self.constituents
            ],
        }

    @property
    def symbols(self) -> tuple[str, ...]:
        return tuple(c.symbol for c in self.constituents)

    def constant(self, symbol: str) -> HarmonicConstant | None:
        """Constant for *symbol* or ``None`` if the station lacks it."""
        symbol = normalize_constituent_name(symbol)
        for c in self.constituents:
            if c.symbol == symbol:
                return c
        return None

    def amplitude(self, symbol: str) -> float:
        """Amplitude of *symbol*, 0.0 when absent."""
        c = self.constant(symbol)
        return c.amplitude if c is not None else 0.0

    def subset(self, symbols: Iterable[str]) -> StationHarmonicConstants:
        """Copy of the station restricted to *symbols* (source order kept)."""
        wanted = {normalize_constituent_name(s) for s in symbols}
        return StationHarmonicConstants(
            id=self.id,
            name=self.name,
            latitude=self.latitude,
            longitude=self.longitude,
            datum=self.datum,
            harmonic_epoch=self.harmonic_epoch,
            timezone=self.timezone,
            constituents=tuple(
                c for c in self.constituents if c.symbol in wanted
            ),
        )

    def ranked_symbols(self) -> list[str]:
        """Symbols ordered by decreasing amplitude."""
        ranked = sorted(
            self.constituents, key=lambda c: c.amplitude, reverse=True
        )
        return [c.symbol for c in ranked]

    def form_factor(self) -> float:
        """(K1 + O1) / (M2 + S2); the denominator falls back to 1 when 0."""
        semidiurnal = self.amplitude('M2') + self.amplitude('S2')
        diurnal = self.amplitude('K1') + self.amplitude('O1')
        return diurnal / (semidiurnal or 1.0)

    def tidal_type(self) -> TidalType:
        ratio = self.form_factor()
        if ratio < 0.25:
            return TidalType.SEMIDIURNAL
        if ratio < 1.5:
            return TidalType.MIXED_SEMIDIURNAL
        if ratio < 3.0:
            return TidalType.MIXED_DIURNAL
        return TidalType.DIURNAL


SAN_FRANCISCO = {
    'id': '9414290',
    'name': 'San Francisco',
    'lat': 37.8067,
    'lon': -122.465,
    'timezone': 'America/Los_Angeles',
    'datum': 'MLLW',
    'harmonicEpoch': '1983-2001',
    'constituents': [
        {'symbol': 'M2', 'amplitude': 0.577, 'phase': 187.5},
        {'symbol': 'S2', 'amplitude': 0.133, 'phase': 205.7},
        {'symbol': 'N2', 'amplitude': 0.136, 'phase': 166.9},
        {'symbol': 'K1', 'amplitude': 0.368, 'phase': 213.0},
        {'symbol': 'O1', 'amplitude': 0.226, 'phase': 198.0},
        {'symbol': 'K2', 'amplitude': 0.039, 'phase': 199.5},
        {'symbol': 'P1', 'amplitude': 0.115, 'phase': 210.4},
        {'symbol': 'Q1', 'amplitude': 0.044, 'phase': 186.6},
        {'symbol': 'M4', 'amplitude': 0.023, 'phase': 246.2},
        {'symbol': 'MS4', 'amplitude': 0.008, 'phase': 277.1},
        {'symbol': 'Mf', 'amplitude': 0.015, 'phase': 245.3},
        {'symbol': 'Mm', 'amplitude': 0.008, 'phase': 134.2},
    ],
}
"""Sample station record: NOAA 9414290 San Francisco (Golden Gate)."""
