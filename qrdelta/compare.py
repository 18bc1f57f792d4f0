# -*- coding: utf-8 -*-
"""
Records (one per decoded image) and the comparison report built from a batch.

build_comparison(records) returns:
    rows   : one ComparisonRow per parameter key (sorted), values aligned on
             the record order, `uniform` False when the values differ
    deltas : gaps between temporally adjacent createTime values
"""
from __future__ import annotations
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import List, Literal, Mapping, Optional, Sequence, Tuple

from .params import CREATE_TIME, ParsedTime, extract_params, interpret_time

MISSING = ""

MS_PER_MINUTE = 60_000
MS_PER_HOUR = 3_600_000


@dataclass(frozen=True)
class Record:
    source: str
    raw_text: Optional[str] = None
    params: Mapping[str, str] = field(default_factory=dict)
    parsed_time: Optional[ParsedTime] = None
    error: Optional[str] = None

    def __post_init__(self) -> None:
        # copie en lecture seule : le record ne change plus après création
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def has_valid_time(self) -> bool:
        return self.parsed_time is not None and self.parsed_time.valid


def parse_record(text: str, source: str) -> Record:
    """Build the record of a successfully decoded payload."""
    params = extract_params(text)
    parsed_time = interpret_time(params[CREATE_TIME]) if CREATE_TIME in params else None
    return Record(source=source, raw_text=text, params=params, parsed_time=parsed_time)


def failed_record(source: str, error: str) -> Record:
    return Record(source=source, error=error or "Erreur inconnue")


@dataclass(frozen=True)
class ComparisonRow:
    key: str
    values: Tuple[str, ...]
    uniform: bool


DeltaUnit = Literal["hours", "minutes"]


def _round_half_up(ms: int, unit_ms: int) -> int:
    # ms >= 0 once the records are sorted
    return (ms + unit_ms // 2) // unit_ms


@dataclass(frozen=True)
class TimeDelta:
    earlier: Record
    later: Record
    delta_ms: int

    @property
    def minutes(self) -> int:
        return _round_half_up(self.delta_ms, MS_PER_MINUTE)

    @property
    def hours(self) -> int:
        return _round_half_up(self.delta_ms, MS_PER_HOUR)

    @property
    def unit(self) -> DeltaUnit:
        return "hours" if self.hours != 0 else "minutes"

    @property
    def amount(self) -> int:
        return self.hours if self.unit == "hours" else self.minutes

    @property
    def label(self) -> str:
        name = self.unit if self.amount != 1 else self.unit[:-1]
        return f"{self.amount} {name}"


@dataclass(frozen=True)
class Comparison:
    records: Tuple[Record, ...] = ()
    rows: Tuple[ComparisonRow, ...] = ()
    deltas: Tuple[TimeDelta, ...] = ()
    insufficient: bool = True
    time_insufficient: bool = True

    @property
    def keys(self) -> List[str]:
        return [r.key for r in self.rows]

    @property
    def differing_keys(self) -> List[str]:
        return [r.key for r in self.rows if not r.uniform]


def comparison_rows(records: Sequence[Record]) -> List[ComparisonRow]:
    keys = set()
    for rec in records:
        keys.update(rec.params.keys())
    rows: List[ComparisonRow] = []
    for key in sorted(keys):
        values = tuple(rec.params.get(key, MISSING) for rec in records)
        uniform = all(v == values[0] for v in values)
        rows.append(ComparisonRow(key=key, values=values, uniform=uniform))
    return rows


def time_deltas(records: Sequence[Record]) -> List[TimeDelta]:
    timed = [rec for rec in records if rec.has_valid_time]
    if len(timed) < 2:
        return []
    # sorted() is stable: ties keep the record order
    timed = sorted(timed, key=lambda rec: rec.parsed_time.instant)
    return [
        TimeDelta(earlier=cur, later=nxt,
                  delta_ms=nxt.parsed_time.instant - cur.parsed_time.instant)
        for cur, nxt in zip(timed, timed[1:])
    ]


def build_comparison(records: Sequence[Record]) -> Comparison:
    """Compare the parameters of a batch; needs at least two decoded records."""
    records = tuple(records or ())
    if sum(1 for rec in records if rec.ok) < 2:
        return Comparison(records=records)
    deltas = time_deltas(records)
    return Comparison(
        records=records,
        rows=tuple(comparison_rows(records)),
        deltas=tuple(deltas),
        insufficient=False,
        time_insufficient=not deltas,
    )
