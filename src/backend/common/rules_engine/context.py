from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import TYPE_CHECKING, Optional, Protocol

from .config import RulesConfig
from .models import Building, SourceField

if TYPE_CHECKING:
    from .dataset import DatasetIndex

EARTH_RADIUS_M = 6_371_000


@dataclass(frozen=True)
class GeocodeResult:
    lat: float
    lng: float
    label: str = ""


class Geocoder(Protocol):
    async def geocode(
        self,
        street: str,
        house_number: str,
        postal_code: str,
        city: str,
    ) -> Optional[GeocodeResult]:
        """Best-effort lookup; returns None when the address cannot be placed."""
        ...


@dataclass(frozen=True)
class RuleContext:
    building: Building
    rules_config: RulesConfig = field(default_factory=RulesConfig)
    geocoder: Optional[Geocoder] = None
    dataset: Optional["DatasetIndex"] = None

    def resolved(self, name: str) -> str:
        return resolve(self.building.source_field(name))


def resolve(source: SourceField) -> str:
    """Korrektur wins over GWR, GWR wins over SAP."""
    return source.korrektur or source.gwr or source.sap or ""


def parse_coordinate(value: str) -> Optional[float]:
    """Strict decimal-degree parse.

    The whole (stripped) value must be a finite number. Comma decimals
    ("46,948"), trailing text ("46.9 N") and infinities return None, so GEO-001
    reports them as invalid instead of reading a numeric prefix.
    """
    if not value:
        return None
    try:
        parsed = float(value.strip())
    except ValueError:
        return None
    if not math.isfinite(parsed):
        return None
    return parsed


def haversine_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in meters between two WGS84 points."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    a = min(1.0, a)
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def round_half_up(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
