"""
Tidal constituent definitions: Doodson numbers, speeds and families.

Defines the 37 NOS standard tidal constituents (ordering of Appendix C of
NOAA Technical Report NOS CS 24) plus the solar diurnal ``S1`` and the
lunar terdiurnal ``M3``, each with its extended Doodson numbers.

Doodson numbers multiply the six fundamental astronomical arguments
``[T, s, h, p, N', p']`` where ``T`` is mean lunar time (Doodson's tau,
reckoned from the lower transit of the mean moon).  Constituents whose
classical equilibrium argument carries a quarter- or half-cycle offset
(K1, O1, L2, ...) record it in ``phase_offset``.

Constituent speeds are from Schureman (1958) Special Publication No. 98.
Names use the NOS/UTide conventions; CO-OPS API aliases are accepted on
lookup.
"""
from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping

from .astronomical import ARGUMENT_RATES


class ConstituentFamily(str, enum.Enum):
    """Broad frequency band of a constituent."""

    SEMIDIURNAL = 'semidiurnal'
    DIURNAL = 'diurnal'
    LONG_PERIOD = 'long-period'
    SHALLOW_WATER = 'shallow-water'


@dataclass(frozen=True)
class ConstituentDefinition:
    """
    A single harmonic constituent of the tide.

    Attributes
    ----------
    symbol : str
        Canonical NOS symbol, e.g. ``"M2"``.
    doodson : tuple of int
        Signed multipliers of ``[T, s, h, p, N', p']``.
    speed : float
        Angular speed in degrees per hour (tabulated).
    family : ConstituentFamily
        Frequency band.
    phase_offset : float
        Constant added to the equilibrium argument (degrees).
    name : str
        Short descriptive name.
    """

    symbol: str
    doodson: tuple[int, int, int, int, int, int]
    speed: float
    family: ConstituentFamily
    phase_offset: float = 0.0
    name: str = ''

    def __post_init__(self):
        if len(self.doodson) != 6:
            raise ValueError(
                f"Constituent {self.symbol} needs 6 Doodson numbers, got "
                f"{len(self.doodson)}."
            )
        object.__setattr__(
            self, 'doodson', tuple(int(d) for d in self.doodson)
        )
        object.__setattr__(self, 'family', ConstituentFamily(self.family))

    @property
    def period_hours(self) -> float:
        """Period in hours (infinite for a zero-speed constituent)."""
        if self.speed == 0.0:
            return math.inf
        return 360.0 / self.speed

    def doodson_speed(self) -> float:
        """Speed (deg/hour) re-derived from the Doodson numbers."""
        return sum(d * r for d, r in zip(self.doodson, ARGUMENT_RATES))

    @classmethod
    def from_dict(cls, record: Mapping) -> ConstituentDefinition:
        """
        Build a definition from an external catalog record.

        Accepts ``speed_deg_per_hour`` or ``speed`` and an optional
        ``phase_offset``.
        """
        speed = record.get('speed_deg_per_hour', record.get('speed'))
        if speed is None:
            raise ValueError(
                f"Catalog record for {record.get('symbol')!r} has no speed."
            )
        return cls(
            symbol=normalize_constituent_name(record['symbol']),
            doodson=tuple(record['doodson']),
            speed=float(speed),
            family=ConstituentFamily(record['family']),
            phase_offset=float(record.get('phase_offset', 0.0)),
            name=record.get('name', ''),
        )


class ConstituentCatalog(Mapping[str, ConstituentDefinition]):
    """
    Immutable, read-only mapping of symbol to :class:`ConstituentDefinition`.

    Lookups go through :func:`normalize_constituent_name`, so ``"Mf"``,
    ``"mf"`` and ``"MF"`` resolve to the same entry, and CO-OPS aliases such
    as ``"LAM2"`` resolve to ``"LDA2"``.
    """

    def __init__(self, definitions: Iterable[ConstituentDefinition]):
        entries: dict[str, ConstituentDefinition] = {}
        for definition in definitions:
            if definition.symbol in entries:
                raise ValueError(
                    f"Duplicate constituent symbol {definition.symbol!r}."
                )
            entries[definition.symbol] = definition
        self._entries = MappingProxyType(entries)

    @classmethod
    def from_records(cls, records: Iterable[Mapping]) -> ConstituentCatalog:
        """Build a catalog from external dict records."""
        return cls(ConstituentDefinition.from_dict(r) for r in records)

    def __getitem__(self, symbol: str) -> ConstituentDefinition:
        return self._entries[normalize_constituent_name(symbol)]

    def __contains__(self, symbol: object) -> bool:
        if not isinstance(symbol, str):
            return False
        return normalize_constituent_name(symbol) in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def by_family(self, family: ConstituentFamily | str) -> list[str]:
        """Symbols of one family, in catalog order."""
        family = ConstituentFamily(family)
        return [s for s, c in self._entries.items() if c.family is family]

    def __repr__(self) -> str:
        return f"ConstituentCatalog({len(self)} constituents)"


_SEMI = ConstituentFamily.SEMIDIURNAL
_DIUR = ConstituentFamily.DIURNAL
_LONG = ConstituentFamily.LONG_PERIOD
_SHAL = ConstituentFamily.SHALLOW_WATER

# ---------------------------------------------------------------------------
# (symbol, Doodson [T, s, h, p, N', p'], speed deg/h, family, offset, name)
# Speeds: Schureman (1958) SP98, Table 2.
# ---------------------------------------------------------------------------

_CATALOG_TABLE = (
    # -- Semidiurnal --
    ('M2',   (2,  0,  0,  0, 0,  0),  28.9841042, _SEMI,   0.0,
     'Principal lunar semidiurnal'),
    ('S2',   (2,  2, -2,  0, 0,  0),  30.0000000, _SEMI,   0.0,
     'Principal solar semidiurnal'),
    ('N2',   (2, -1,  0,  1, 0,  0),  28.4397295, _SEMI,   0.0,
     'Larger lunar elliptic semidiurnal'),
    ('K2',   (2,  2,  0,  0, 0,  0),  30.0821373, _SEMI,   0.0,
     'Lunisolar semidiurnal'),
    ('2N2',  (2, -2,  0,  2, 0,  0),  27.8953548, _SEMI,   0.0,
     'Lunar elliptic semidiurnal second-order'),
    ('MU2',  (2, -2,  2,  0, 0,  0),  27.9682084, _SEMI,   0.0,
     'Variational'),
    ('NU2',  (2, -1,  2, -1, 0,  0),  28.5125831, _SEMI,   0.0,
     'Larger lunar evectional'),
    ('L2',   (2,  1,  0, -1, 0,  0),  29.5284789, _SEMI, 180.0,
     'Smaller lunar elliptic semidiurnal'),
    ('T2',   (2,  2, -3,  0, 0,  1),  29.9589333, _SEMI,   0.0,
     'Larger solar elliptic'),
    ('R2',   (2,  2, -1,  0, 0, -1),  30.0410667, _SEMI, 180.0,
     'Smaller solar elliptic'),
    ('LDA2', (2,  1, -2,  1, 0,  0),  29.4556253, _SEMI, 180.0,
     'Smaller lunar evectional'),
    # -- Diurnal --
    ('K1',   (1,  1,  0,  0, 0,  0),  15.0410686, _DIUR,  90.0,
     'Lunisolar diurnal'),
    ('O1',   (1, -1,  0,  0, 0,  0),  13.9430356, _DIUR, -90.0,
     'Lunar diurnal'),
    ('P1',   (1,  1, -2,  0, 0,  0),  14.9589314, _DIUR, -90.0,
     'Solar diurnal'),
    ('Q1',   (1, -2,  0,  1, 0,  0),  13.3986609, _DIUR, -90.0,
     'Larger lunar elliptic diurnal'),
    ('J1',   (1,  2,  0, -1, 0,  0),  15.5854433, _DIUR,  90.0,
     'Smaller lunar elliptic diurnal'),
    ('M1',   (1,  0,  0,  1, 0,  0),  14.4966939, _DIUR,  90.0,
     'Smaller lunar elliptic diurnal (M1)'),
    ('OO1',  (1,  3,  0,  0, 0,  0),  16.1391017, _DIUR,  90.0,
     'Lunar diurnal second-order'),
    ('2Q1',  (1, -3,  0,  2, 0,  0),  12.8542862, _DIUR, -90.0,
     'Lunar elliptic diurnal second-order'),
    ('RHO1', (1, -2,  2, -1, 0,  0),  13.4715145, _DIUR, -90.0,
     'Larger lunar evectional diurnal'),
    ('S1',   (1,  1, -1,  0, 0,  0),  15.0000000, _DIUR, 180.0,
     'Solar diurnal (radiational)'),
    # -- Long-period --
    ('MF',   (0,  2,  0,  0, 0,  0),   1.0980331, _LONG,   0.0,
     'Lunisolar fortnightly'),
    ('MM',   (0,  1,  0, -1, 0,  0),   0.5443747, _LONG,   0.0,
     'Lunar monthly'),
    ('SSA',  (0,  0,  2,  0, 0,  0),   0.0821373, _LONG,   0.0,
     'Solar semiannual'),
    ('SA',   (0,  0,  1,  0, 0,  0),   0.0410686, _LONG,   0.0,
     'Solar annual'),
    ('MSM',  (0,  1, -2,  1, 0,  0),   0.4715211, _LONG,   0.0,
     'Lunisolar monthly'),
    ('MSF',  (0,  2, -2,  0, 0,  0),   1.0158958, _LONG,   0.0,
     'Lunisolar synodic fortnightly'),
    # -- Shallow-water / overtides --
    ('M4',   (4,  0,  0,  0, 0,  0),  57.9682084, _SHAL,   0.0,
     'Shallow water overtide of M2'),
    ('M6',   (6,  0,  0,  0, 0,  0),  86.9523127, _SHAL,   0.0,
     'Shallow water overtide of M2'),
    ('M8',   (8,  0,  0,  0, 0,  0), 115.9364169, _SHAL,   0.0,
     'Shallow water eighth diurnal'),
    ('MS4',  (4,  2, -2,  0, 0,  0),  58.9841042, _SHAL,   0.0,
     'Shallow water quarter diurnal'),
    ('MN4',  (4, -1,  0,  1, 0,  0),  57.4238337, _SHAL,   0.0,
     'Shallow water quarter diurnal'),
    ('MK3',  (3,  1,  0,  0, 0,  0),  44.0251729, _SHAL,  90.0,
     'Shallow water terdiurnal'),
    ('S4',   (4,  4, -4,  0, 0,  0),  60.0000000, _SHAL,   0.0,
     'Shallow water overtide of S2'),
    ('S6',   (6,  6, -6,  0, 0,  0),  90.0000000, _SHAL,   0.0,
     'Shallow water overtide of S2'),
    ('2MK3', (3, -1,  0,  0, 0,  0),  42.9271398, _SHAL, -90.0,
     'Shallow water terdiurnal'),
    ('2SM2', (2,  4, -4,  0, 0,  0),  31.0158958, _SHAL,   0.0,
     'Shallow water semidiurnal'),
    ('MO3',  (3, -1,  0,  0, 0,  0),  42.9271398, _SHAL, -90.0,
     'Lunar terdiurnal'),
    ('M3',   (3,  0,  0,  0, 0,  0),  43.4761563, _SHAL, 180.0,
     'Lunar terdiurnal'),
)

NOS_37_CONSTITUENTS: tuple[str, ...] = tuple(
    row[0] for row in _CATALOG_TABLE if row[0] not in ('S1', 'M3')
)
"""The 37 NOS standard constituents in Appendix C order."""

CONSTITUENT_SPEEDS: Mapping[str, float] = MappingProxyType(
    {row[0]: row[2] for row in _CATALOG_TABLE}
)
"""Angular speeds (degrees/hour) of every catalog constituent."""

# ---------------------------------------------------------------------------
# CO-OPS API <-> NOS/UTide name mapping.
#
# The CO-OPS harmonic constants product and the original station tables use
# a handful of names that differ from the NOS/UTide convention used here.
# Names not listed are only upper-cased.
# ---------------------------------------------------------------------------

COOPS_API_NAME_MAP: Mapping[str, str] = MappingProxyType({
    'LAM2': 'LDA2',   # CO-OPS uses "LAM2"; NOS/UTide uses "LDA2"
    'LAMBDA2': 'LDA2',
    'RHO': 'RHO1',    # Alternate short form occasionally seen
})
"""Mapping of CO-OPS API constituent aliases to NOS/UTide names."""


def normalize_constituent_name(name: str) -> str:
    """
    Normalize a constituent name to the NOS/UTide convention.

    Parameters
    ----------
    name : str
        Constituent name as supplied by a station table or the CO-OPS API.

    Returns
    -------
    str
        Normalized name.  Unrecognized names are returned stripped and
        upper-cased.
    """
    cleaned = name.strip().upper()
    return COOPS_API_NAME_MAP.get(cleaned, cleaned)


@lru_cache(maxsize=None)
def default_catalog() -> ConstituentCatalog:
    """Return the shared, immutable catalog of built-in constituents."""
    return ConstituentCatalog(
        ConstituentDefinition(
            symbol=symbol,
            doodson=doodson,
            speed=speed,
            family=family,
            phase_offset=offset,
            name=name,
        )
        for symbol, doodson, speed, family, offset, name in _CATALOG_TABLE
    )
