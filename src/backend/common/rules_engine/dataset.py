"""Dataset-wide lookups for checks that need every building at once.

Built once per batch invocation and shared read-only by all evaluations in it.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from .context import parse_coordinate, resolve
from .models import Building

# ~1m at Swiss latitudes.
COORDINATE_PRECISION = 5


def coordinate_key(building: Building) -> Optional[Tuple[str, str]]:
    lat = parse_coordinate(resolve(building.lat))
    lng = parse_coordinate(resolve(building.lng))
    if lat is None or lng is None:
        return None
    return (f"{lat:.{COORDINATE_PRECISION}f}", f"{lng:.{COORDINATE_PRECISION}f}")


@dataclass(frozen=True)
class DatasetIndex:
    duplicate_egids: FrozenSet[str] = frozenset()
    duplicate_coordinate_buildings: FrozenSet[str] = frozenset()

    @classmethod
    def build(cls, buildings: Iterable[Building]) -> "DatasetIndex":
        by_egid: Dict[str, List[str]] = defaultdict(list)
        by_coords: Dict[Tuple[str, str], List[str]] = defaultdict(list)
        for building in buildings:
            egid = resolve(building.egid)
            if egid:
                by_egid[egid].append(building.id)
            key = coordinate_key(building)
            if key is not None:
                by_coords[key].append(building.id)

        return cls(
            duplicate_egids=frozenset(egid for egid, ids in by_egid.items() if len(ids) > 1),
            duplicate_coordinate_buildings=frozenset(
                building_id for ids in by_coords.values() if len(ids) > 1 for building_id in ids
            ),
        )

    def has_duplicate_egid(self, egid: str) -> bool:
        return bool(egid) and egid in self.duplicate_egids

    def shares_coordinates(self, building_id: str) -> bool:
        return building_id in self.duplicate_coordinate_buildings
