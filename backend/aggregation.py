"""Arrest Map Backend — Aggregation

Turns raw per-region records into the two views the dashboard reads:

  raw_view  canonical key -> {"arrests", "fir"}; CBI kept separate.
            Used for tooltips and the data table.
  map_view  the same, with CBI folded into Delhi and removed.
            Used for map fill and aggregate totals.

Regions whose counts are both zero are left out of both views; readers treat
a missing key as zero.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable

from config import MAX_COUNT
from errors import ValidationError
from regions import CAPITAL_KEY, FEDERAL_KEY, canonicalize

logger = logging.getLogger("arrestmap.aggregation")

METRICS = ("arrests", "fir")


@dataclass
class Aggregate:
    raw_view: dict[str, dict[str, int]] = field(default_factory=dict)
    map_view: dict[str, dict[str, int]] = field(default_factory=dict)
    total_arrests: int = 0
    total_fir: int = 0
    max_arrests: int = 1
    max_fir: int = 1
    ranking: list[str] = field(default_factory=list)

    @property
    def regions_with_data(self) -> int:
        return len(self.map_view)

    def max_for(self, metric: str) -> int:
        return self.max_fir if metric == "fir" else self.max_arrests

    def map_counts(self, key: str) -> dict[str, int]:
        return dict(self.map_view.get(key, {"arrests": 0, "fir": 0}))

    def raw_counts(self, key: str) -> dict[str, int]:
        return dict(self.raw_view.get(key, {"arrests": 0, "fir": 0}))


def _has_data(counts: dict[str, int]) -> bool:
    return counts["arrests"] > 0 or counts["fir"] > 0


def build_raw_view(records: Iterable[tuple]) -> dict[str, dict[str, int]]:
    """Sum (key, arrests, fir) records per canonical key.

    Duplicate keys are summed, never overwritten.
    """
    raw: dict[str, dict[str, int]] = {}
    for key, arrests, fir in records:
        region = canonicalize(key)
        if region is None:
            logger.warning(f"Skipping record with unrecognised region {key!r}")
            continue
        entry = raw.setdefault(region, {"arrests": 0, "fir": 0})
        entry["arrests"] += int(arrests)
        entry["fir"] += int(fir)
    return {k: v for k, v in raw.items() if _has_data(v)}


def fold_federal(raw_view: dict[str, dict[str, int]]) -> dict[str, dict[str, int]]:
    """Map view: CBI counts added into Delhi, CBI key dropped."""
    map_view = {k: dict(v) for k, v in raw_view.items() if k != FEDERAL_KEY}
    federal = raw_view.get(FEDERAL_KEY)
    if federal:
        capital = map_view.setdefault(CAPITAL_KEY, {"arrests": 0, "fir": 0})
        capital["arrests"] += federal["arrests"]
        capital["fir"] += federal["fir"]
    return {k: v for k, v in map_view.items() if _has_data(v)}


def aggregate(records: Iterable[tuple]) -> Aggregate:
    raw_view = build_raw_view(records)
    map_view = fold_federal(raw_view)

    arrests = [c["arrests"] for c in map_view.values()]
    firs = [c["fir"] for c in map_view.values()]
    ranking = sorted(
        map_view,
        key=lambda k: (-map_view[k]["arrests"], -map_view[k]["fir"], k),
    )

    return Aggregate(
        raw_view=raw_view,
        map_view=map_view,
        total_arrests=sum(arrests),
        total_fir=sum(firs),
        max_arrests=max(arrests + [1]),
        max_fir=max(firs + [1]),
        ranking=ranking,
    )


def apply_additive(current: int, delta: int, field_name: str = "arrests", region: str = "") -> int:
    """New total after adding `delta`; totals above MAX_COUNT are rejected."""
    total = current + delta
    if total > MAX_COUNT:
        label = f" for {region}" if region else ""
        raise ValidationError(f"Total count{label} exceeds maximum", field=field_name)
    return total
