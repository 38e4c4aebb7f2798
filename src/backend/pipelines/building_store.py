from __future__ import annotations

import json
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol

from common.rules_engine.models import Building, ConfidenceScores, Finding, FindingRow, finding_rows


@dataclass(frozen=True)
class BuildingPage:
    buildings: List[Building]
    total: int


class BuildingStore(Protocol):
    def fetch_by_id(self, building_id: str) -> Optional[Building]:
        """Return the building, or None if it does not exist."""
        ...

    def fetch_all(self) -> List[Building]:
        ...

    def fetch_page(self, offset: int, limit: int) -> BuildingPage:
        """Return one page ordered by building id, plus the total building count."""
        ...

    def replace_findings(self, building_id: str, findings: List[Finding]) -> None:
        """Delete every stored finding of the building, then insert `findings`."""
        ...

    def update_confidence(self, building_id: str, scores: ConfidenceScores) -> None:
        ...


def get_building_store(name: str, **kwargs: Any) -> BuildingStore:
    """Resolve a store implementation by name (memory|fixtures|supabase)."""
    store = (name or "").strip().lower()
    if store == "memory":
        return InMemoryBuildingStore(kwargs.get("buildings") or ())
    if store in ("fixtures", ""):
        path = kwargs.get("path") or os.getenv("BUILDING_FIXTURES_PATH", "").strip()
        if not path:
            raise ValueError("Fixtures store requires a path (BUILDING_FIXTURES_PATH).")
        return FixturesBuildingStore(Path(path))
    if store == "supabase":
        from connectors.supabase import SupabaseBuildingStore, get_supabase_config

        return SupabaseBuildingStore(kwargs.get("config") or get_supabase_config())
    raise ValueError(f"Unknown building store '{name}' (expected 'memory', 'fixtures' or 'supabase').")


class InMemoryBuildingStore:
    def __init__(self, buildings: Iterable[Building] = ()) -> None:
        self._buildings: Dict[str, Building] = {b.id: b for b in buildings}
        self.findings: Dict[str, List[FindingRow]] = {}

    def fetch_by_id(self, building_id: str) -> Optional[Building]:
        return self._buildings.get(building_id)

    def fetch_all(self) -> List[Building]:
        return [self._buildings[key] for key in sorted(self._buildings)]

    def fetch_page(self, offset: int, limit: int) -> BuildingPage:
        ordered = self.fetch_all()
        return BuildingPage(buildings=ordered[offset : offset + limit], total=len(ordered))

    def replace_findings(self, building_id: str, findings: List[Finding]) -> None:
        self.findings.pop(building_id, None)
        if findings:
            self.findings[building_id] = finding_rows(building_id, findings, datetime.now(timezone.utc))

    def update_confidence(self, building_id: str, scores: ConfidenceScores) -> None:
        building = self._buildings.get(building_id)
        if building is None:
            return
        self._buildings[building_id] = building.model_copy(
            update={"confidence": scores.model_dump(by_alias=True)}
        )


class FixturesBuildingStore(InMemoryBuildingStore):
    """In-memory store seeded from a JSON fixtures file."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(load_buildings(path))

    def dump(self, out_path: Path) -> None:
        payload = {
            "buildings": [b.model_dump(mode="json") for b in self.fetch_all()],
            "errors": [
                row.model_dump(mode="json")
                for building_id in sorted(self.findings)
                for row in self.findings[building_id]
            ],
        }
        out_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")


def load_buildings(path: Path) -> List[Building]:
    with path.open(encoding="utf-8") as handle:
        raw = json.load(handle)
    if isinstance(raw, dict):
        raw = raw.get("buildings", [])
    if not isinstance(raw, list):
        raise ValueError(f"Expected a list of buildings in {path}")
    return [Building.model_validate(item) for item in raw]
