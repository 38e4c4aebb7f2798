"""Confidence scoring from raw source data.

A field counts as present when either registry delivers a value, and as
resolved when both registries agree or someone entered a correction. Each
dimension scores its resolved/present ratio; dimensions without any data are
left out and their weight is spread over the remaining ones, so sparse
records are not punished for data no source has.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

from .context import round_half_up
from .models import SOURCE_FIELDS, Building, ConfidenceScores, SourceField


@dataclass(frozen=True)
class Dimension:
    key: str
    fields: Tuple[str, ...]
    weight: float


DIMENSIONS: Tuple[Dimension, ...] = (
    Dimension("identification", ("egid", "egrid"), 0.30),
    Dimension("address", ("plz", "ort", "strasse", "hausnummer"), 0.30),
    Dimension("location", ("lat", "lng"), 0.20),
    Dimension("classification", ("gkat", "gklas", "gstat", "gbaup", "gbauj"), 0.10),
    Dimension("sizing", ("gastw", "ganzwhg", "garea", "parcel_area"), 0.10),
)


def _ratio(resolved: int, present: int) -> Optional[int]:
    if present == 0:
        return None
    return round_half_up(100 * resolved / present)


def dimension_score(building: Building, fields: Iterable[str]) -> Optional[int]:
    present = 0
    resolved = 0
    for name in fields:
        source = building.source_field(name)
        if not source.has_data:
            continue
        present += 1
        if source.is_resolved:
            resolved += 1
    return _ratio(resolved, present)


def source_score(building: Building, source: str) -> Optional[int]:
    """Share of the fields `source` delivers that are resolved."""
    present = 0
    resolved = 0
    for name in SOURCE_FIELDS:
        field: SourceField = building.source_field(name)
        if not getattr(field, source):
            continue
        present += 1
        if field.is_resolved:
            resolved += 1
    return _ratio(resolved, present)


def weighted_total(scores: Dict[str, Optional[int]]) -> int:
    weighted = 0.0
    weight_sum = 0.0
    for dim in DIMENSIONS:
        value = scores.get(dim.key)
        if value is None:
            continue
        weighted += value * dim.weight
        weight_sum += dim.weight
    if weight_sum == 0:
        return 0
    return max(0, min(100, round_half_up(weighted / weight_sum)))


def score(building: Building) -> ConfidenceScores:
    dims = {dim.key: dimension_score(building, dim.fields) for dim in DIMENSIONS}
    return ConfidenceScores(
        total=weighted_total(dims),
        **dims,
        sap=source_score(building, "sap"),
        gwr=source_score(building, "gwr"),
        georef=dims["location"],
    )
