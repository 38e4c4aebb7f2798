from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional

from common.rules_engine.models import Building, ConfidenceScores, Finding, finding_rows
from pipelines.building_store import BuildingPage

from .client import parse_content_range_total, supabase_request
from .config import SupabaseConfig

logger = logging.getLogger(__name__)

# PostgREST caps responses at 1000 rows by default.
FETCH_ALL_PAGE_SIZE = 1000
INSERT_BATCH_SIZE = 500


class SupabaseBuildingStore:
    """BuildingStore backed by the Supabase `buildings` and `errors` tables."""

    def __init__(self, config: SupabaseConfig):
        self._config = config

    def fetch_by_id(self, building_id: str) -> Optional[Building]:
        resp = supabase_request(
            self._config,
            "GET",
            f"/{self._config.buildings_table}",
            params={"select": "*", "id": f"eq.{building_id}", "limit": 1},
        )
        rows = resp.data or []
        if not rows:
            return None
        return Building.model_validate(rows[0])

    def fetch_all(self) -> List[Building]:
        buildings: List[Building] = []
        offset = 0
        while True:
            page = self._fetch_rows(offset, FETCH_ALL_PAGE_SIZE, count=False)
            buildings.extend(page.buildings)
            if len(page.buildings) < FETCH_ALL_PAGE_SIZE:
                return buildings
            offset += FETCH_ALL_PAGE_SIZE

    def fetch_page(self, offset: int, limit: int) -> BuildingPage:
        return self._fetch_rows(offset, limit, count=True)

    def replace_findings(self, building_id: str, findings: List[Finding]) -> None:
        supabase_request(
            self._config,
            "DELETE",
            f"/{self._config.errors_table}",
            params={"building_id": f"eq.{building_id}"},
            prefer="return=minimal",
        )
        rows = [
            row.model_dump(mode="json")
            for row in finding_rows(building_id, findings, datetime.now(timezone.utc))
        ]
        for start in range(0, len(rows), INSERT_BATCH_SIZE):
            supabase_request(
                self._config,
                "POST",
                f"/{self._config.errors_table}",
                payload=rows[start : start + INSERT_BATCH_SIZE],
                prefer="return=minimal",
            )
        logger.debug("Replaced findings for %s with %d row(s)", building_id, len(rows))

    def update_confidence(self, building_id: str, scores: ConfidenceScores) -> None:
        supabase_request(
            self._config,
            "PATCH",
            f"/{self._config.buildings_table}",
            params={"id": f"eq.{building_id}"},
            payload={"confidence": scores.model_dump(by_alias=True)},
            prefer="return=minimal",
        )

    def _fetch_rows(self, offset: int, limit: int, *, count: bool) -> BuildingPage:
        resp = supabase_request(
            self._config,
            "GET",
            f"/{self._config.buildings_table}",
            params={"select": "*", "order": "id.asc", "offset": offset, "limit": limit},
            prefer="count=exact" if count else None,
        )
        buildings = [Building.model_validate(row) for row in resp.data or []]
        total = parse_content_range_total(resp.headers.get("content-range"))
        if total is None:
            total = offset + len(buildings)
        return BuildingPage(buildings=buildings, total=total)
