from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional

from . import confidence
from .config import RulesConfig
from .context import Geocoder, RuleContext
from .dataset import DatasetIndex
from .models import Building, CheckResult, ChunkResult, Severity
from .registry import RuleRegistry

if TYPE_CHECKING:
    from pipelines.building_store import BuildingStore

logger = logging.getLogger(__name__)

# One invocation must finish inside the ~150s execution ceiling of the host.
MAX_CHUNK_LIMIT = 100
DEFAULT_CHUNK_LIMIT = 50


class BatchRunner:
    def __init__(
        self,
        registry: RuleRegistry,
        store: "BuildingStore",
        *,
        geocoder: Optional[Geocoder] = None,
        rules_config: Optional[RulesConfig] = None,
        max_chunk_limit: int = MAX_CHUNK_LIMIT,
    ):
        self._registry = registry
        self._store = store
        self._geocoder = geocoder
        self._rules_config = rules_config or RulesConfig()
        self._max_chunk_limit = max_chunk_limit

    @property
    def registry(self) -> RuleRegistry:
        return self._registry

    @property
    def max_chunk_limit(self) -> int:
        return self._max_chunk_limit

    async def check_one(self, building_id: str) -> Optional[CheckResult]:
        building = await asyncio.to_thread(self._store.fetch_by_id, building_id)
        if building is None:
            return None
        dataset = await self._build_dataset()
        return await self._run_check(building, dataset)

    async def check_all(self) -> List[CheckResult]:
        buildings = await asyncio.to_thread(self._store.fetch_all)
        logger.info("Checking all %d buildings", len(buildings))
        dataset = DatasetIndex.build(buildings)
        results = []
        for building in buildings:
            results.append(await self._run_check(building, dataset))
        return results

    async def check_chunk(self, offset: int, limit: int) -> ChunkResult:
        offset = max(0, offset)
        limit = max(1, min(limit, self._max_chunk_limit))
        page = await asyncio.to_thread(self._store.fetch_page, offset, limit)
        logger.info(
            "Checking chunk offset=%d limit=%d (%d of %d buildings)",
            offset,
            limit,
            len(page.buildings),
            page.total,
        )
        dataset = await self._build_dataset()
        results = []
        for building in page.buildings:
            results.append(await self._run_check(building, dataset))
        return ChunkResult(
            results=results,
            total=page.total,
            offset=offset,
            limit=limit,
            has_more=offset + limit < page.total,
        )

    async def evaluate(self, building: Building, dataset: Optional[DatasetIndex] = None) -> CheckResult:
        """Run rules and scoring for one building without persisting anything."""
        ctx = RuleContext(
            building=building,
            rules_config=self._rules_config,
            geocoder=self._geocoder,
            dataset=dataset,
        )
        findings = await self._registry.evaluate(ctx)
        return CheckResult(
            building_id=building.id,
            confidence=confidence.score(building),
            errors=findings,
            checked_at=datetime.now(timezone.utc),
        )

    async def _build_dataset(self) -> DatasetIndex:
        buildings = await asyncio.to_thread(self._store.fetch_all)
        return DatasetIndex.build(buildings)

    async def _run_check(self, building: Building, dataset: DatasetIndex) -> CheckResult:
        result = await self.evaluate(building, dataset)
        await asyncio.to_thread(self._store.replace_findings, building.id, result.errors)
        await asyncio.to_thread(self._store.update_confidence, building.id, result.confidence)
        logger.debug(
            "Persisted %d finding(s) for building %s (confidence %d)",
            len(result.errors),
            building.id,
            result.confidence.total,
        )
        return result


def summarize(results: Iterable[CheckResult]) -> Dict[str, object]:
    by_level = {level.value: 0 for level in Severity}
    total_errors = 0
    for result in results:
        for finding in result.errors:
            by_level[finding.level.value] += 1
            total_errors += 1
    return {"total_errors": total_errors, "by_level": by_level}
