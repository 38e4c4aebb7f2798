from fastapi.testclient import TestClient

from building_factories import building, same
from common.rules_engine.rules import build_registry
from common.rules_engine.runner import BatchRunner
from connectors.supabase import SupabaseHttpError
from pipelines.building_store import InMemoryBuildingStore
from api.app import create_app


def _client(buildings, store_cls=InMemoryBuildingStore):
    store = store_cls(buildings)
    runner = BatchRunner(build_registry(), store)
    return TestClient(create_app(runner)), store


def _dataset():
    return [
        building("1080/2020/AA", complete=True),
        building("1080/2020/AB"),
        building("1080/2020/AC", complete=True, egid=same("7654321"), lat=same("47.1"), lng=same("8.1")),
    ]


def test_health():
    client, _ = _client([])
    body = client.get("/health").json()
    assert body["status"] == "ok"
    assert body["service"] == "geo-check-rule-engine"


def test_rules_listing():
    client, _ = _client([])
    body = client.get("/rules").json()
    assert body["totalRules"] == 18
    assert [group["ruleSet"] for group in body["ruleSets"]] == ["identification", "address", "geometry"]


def test_check_single_building_with_slashes_in_id():
    client, store = _client(_dataset())
    resp = client.post("/check/1080/2020/AB")

    assert resp.status_code == 200
    body = resp.json()
    assert body["buildingId"] == "1080/2020/AB"
    assert [e["checkId"] for e in body["errors"]] == ["ID-001", "ID-004", "GEO-001"]
    assert body["errors"][0] == {
        "checkId": "ID-001",
        "description": "No EGID available",
        "level": "error",
        "field": "egid",
    }
    assert body["confidence"]["total"] == 0
    assert "checkedAt" in body
    assert len(store.findings["1080/2020/AB"]) == 3


def test_check_unknown_building_is_404():
    client, _ = _client(_dataset())
    resp = client.post("/check/does-not-exist")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Building 'does-not-exist' not found"}


def test_check_all_without_params_runs_everything():
    client, _ = _client(_dataset())
    body = client.post("/check-all").json()

    assert body["totalBuildings"] == 3
    assert body["totalErrors"] == 3
    assert body["byLevel"] == {"error": 2, "warning": 1, "info": 0}
    assert [r["buildingId"] for r in body["results"]] == ["1080/2020/AA", "1080/2020/AB", "1080/2020/AC"]


def test_check_all_chunked():
    client, _ = _client(_dataset())

    first = client.post("/check-all", params={"offset": 0, "limit": 2}).json()
    assert first["checked"] == 2
    assert first["hasMore"] is True
    assert first["nextOffset"] == 2

    second = client.post("/check-all", params={"offset": first["nextOffset"], "limit": 2}).json()
    assert second["checked"] == 1
    assert second["hasMore"] is False
    assert second["nextOffset"] is None
    assert second["totalBuildings"] == 3


def test_check_all_caps_limit():
    client, _ = _client(_dataset())
    body = client.post("/check-all", params={"limit": 500}).json()
    assert body["limit"] == 100
    assert body["offset"] == 0


def test_check_all_rejects_non_positive_limit():
    client, _ = _client(_dataset())
    assert client.post("/check-all", params={"limit": 0}).status_code == 422


def test_storage_failure_maps_to_500():
    class _FailingStore(InMemoryBuildingStore):
        def fetch_by_id(self, building_id):
            raise SupabaseHttpError(503, "Service Unavailable")

    client, _ = _client(_dataset(), store_cls=_FailingStore)
    resp = client.post("/check/1080/2020/AA")
    assert resp.status_code == 500
    body = resp.json()
    assert body["error"] is True
    assert "503" in body["message"]
