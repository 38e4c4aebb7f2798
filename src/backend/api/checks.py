from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from common.rules_engine.catalog import group_by_rule_set
from common.rules_engine.models import CheckResult
from common.rules_engine.runner import DEFAULT_CHUNK_LIMIT, BatchRunner, summarize


router = APIRouter(tags=["checks"])

SERVICE_NAME = "geo-check-rule-engine"


def _runner(request: Request) -> BatchRunner:
    return request.app.state.runner


def _dump(result: CheckResult) -> dict[str, Any]:
    return result.model_dump(mode="json", by_alias=True)


def _summary(results: list[CheckResult]) -> dict[str, Any]:
    counts = summarize(results)
    return {
        "totalErrors": counts["total_errors"],
        "byLevel": counts["by_level"],
        "checkedAt": datetime.now(timezone.utc).isoformat(),
        "results": [_dump(r) for r in results],
    }


@router.get("/health")
def health():
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/rules")
def list_rules(request: Request):
    return group_by_rule_set(_runner(request).registry.rules())


@router.post("/check/{building_id:path}")
async def check_building(building_id: str, request: Request):
    result = await _runner(request).check_one(building_id)
    if result is None:
        return JSONResponse(status_code=404, content={"error": f"Building '{building_id}' not found"})
    return _dump(result)


@router.post("/check-all")
async def check_all(
    request: Request,
    offset: int | None = Query(None, ge=0),
    limit: int | None = Query(None, ge=1),
):
    runner = _runner(request)
    if offset is None and limit is None:
        results = await runner.check_all()
        return {"totalBuildings": len(results), **_summary(results)}

    chunk = await runner.check_chunk(offset or 0, limit or DEFAULT_CHUNK_LIMIT)
    return {
        "totalBuildings": chunk.total,
        "checked": len(chunk.results),
        "offset": chunk.offset,
        "limit": chunk.limit,
        "hasMore": chunk.has_more,
        "nextOffset": chunk.offset + chunk.limit if chunk.has_more else None,
        **_summary(chunk.results),
    }
