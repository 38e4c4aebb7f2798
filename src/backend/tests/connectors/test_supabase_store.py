import io
import json
from urllib.error import HTTPError
from urllib.parse import parse_qs, urlparse
from unittest.mock import Mock, patch

import pytest

from common.rules_engine.models import ConfidenceScores, Finding, Severity
from connectors.supabase.client import SupabaseHttpError, parse_content_range_total, supabase_request
from connectors.supabase.config import SupabaseConfig, get_supabase_config
from connectors.supabase.store import SupabaseBuildingStore


def _config() -> SupabaseConfig:
    return SupabaseConfig(url="https://project.supabase.co/", service_role_key="service-key")


def _response(payload=None, headers=None, status=200) -> Mock:
    response = Mock()
    response.read.return_value = b"" if payload is None else json.dumps(payload).encode("utf-8")
    response.status = status
    response.headers = headers or {}
    response.__enter__ = Mock(return_value=response)
    response.__exit__ = Mock(return_value=False)
    return response


class _Recorder:
    def __init__(self, responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, req, timeout=30):
        body = json.loads(req.data.decode("utf-8")) if req.data else None
        self.requests.append(
            {
                "method": req.get_method(),
                "url": req.full_url,
                "body": body,
                "prefer": req.get_header("Prefer"),
                "auth": req.get_header("Authorization"),
                "apikey": req.get_header("Apikey"),
            }
        )
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def _query(url: str) -> dict:
    return {k: v[0] for k, v in parse_qs(urlparse(url).query).items()}


def test_request_sends_service_role_headers():
    recorder = _Recorder([_response([])])
    with patch("connectors.supabase.client.urlopen", recorder):
        supabase_request(_config(), "GET", "buildings", params={"select": "*"})

    req = recorder.requests[0]
    assert urlparse(req["url"]).path == "/rest/v1/buildings"
    assert req["auth"] == "Bearer service-key"
    assert req["apikey"] == "service-key"


def test_request_retries_server_errors():
    error = HTTPError("https://x", 503, "Service Unavailable", hdrs=None, fp=io.BytesIO(b"busy"))
    recorder = _Recorder([error, _response([{"id": "A"}])])
    with patch("connectors.supabase.client.urlopen", recorder), patch("time.sleep") as sleep:
        resp = supabase_request(_config(), "GET", "/buildings")

    assert resp.data == [{"id": "A"}]
    assert len(recorder.requests) == 2
    sleep.assert_called_once_with(0.5)


def test_request_raises_on_client_error():
    error = HTTPError("https://x", 401, "Unauthorized", hdrs=None, fp=io.BytesIO(b'{"message":"bad key"}'))
    with patch("connectors.supabase.client.urlopen", _Recorder([error])):
        with pytest.raises(SupabaseHttpError) as excinfo:
            supabase_request(_config(), "GET", "/buildings")

    assert excinfo.value.status == 401
    assert "bad key" in excinfo.value.body


def test_fetch_by_id_and_missing():
    recorder = _Recorder([_response([{"id": "1080/2020/AA", "egid": {"sap": "1", "gwr": "1", "match": True}}]), _response([])])
    store = SupabaseBuildingStore(_config())
    with patch("connectors.supabase.client.urlopen", recorder):
        found = store.fetch_by_id("1080/2020/AA")
        missing = store.fetch_by_id("nope")

    assert found.egid.match is True
    assert missing is None
    assert _query(recorder.requests[0]["url"])["id"] == "eq.1080/2020/AA"


def test_fetch_page_reads_total_from_content_range():
    recorder = _Recorder([_response([{"id": "A"}, {"id": "B"}], headers={"Content-Range": "50-51/120"})])
    store = SupabaseBuildingStore(_config())
    with patch("connectors.supabase.client.urlopen", recorder):
        page = store.fetch_page(50, 2)

    assert [b.id for b in page.buildings] == ["A", "B"]
    assert page.total == 120
    q = _query(recorder.requests[0]["url"])
    assert q["order"] == "id.asc"
    assert q["offset"] == "50"
    assert q["limit"] == "2"
    assert recorder.requests[0]["prefer"] == "count=exact"


def test_replace_findings_deletes_then_inserts_rows():
    recorder = _Recorder([_response(), _response()])
    store = SupabaseBuildingStore(_config())
    finding = Finding(check_id="ID-001", description="No EGID available", level=Severity.ERROR, field="egid")
    with patch("connectors.supabase.client.urlopen", recorder):
        store.replace_findings("1080/2020/AA", [finding])

    delete, insert = recorder.requests
    assert delete["method"] == "DELETE"
    assert _query(delete["url"]) == {"building_id": "eq.1080/2020/AA"}
    assert insert["method"] == "POST"
    assert insert["body"][0]["id"] == "err-1080-2020-AA-001"
    assert insert["body"][0]["check_id"] == "ID-001"
    assert insert["body"][0]["level"] == "error"


def test_replace_findings_with_no_findings_only_deletes():
    recorder = _Recorder([_response()])
    with patch("connectors.supabase.client.urlopen", recorder):
        SupabaseBuildingStore(_config()).replace_findings("A", [])
    assert [r["method"] for r in recorder.requests] == ["DELETE"]


def test_update_confidence_patches_building():
    recorder = _Recorder([_response()])
    with patch("connectors.supabase.client.urlopen", recorder):
        SupabaseBuildingStore(_config()).update_confidence("A", ConfidenceScores(total=90, sap=80))

    req = recorder.requests[0]
    assert req["method"] == "PATCH"
    assert req["body"]["confidence"]["total"] == 90
    assert req["body"]["confidence"]["sap"] == 80


def test_parse_content_range_total():
    assert parse_content_range_total("0-49/1234") == 1234
    assert parse_content_range_total("*/0") == 0
    assert parse_content_range_total("0-49/*") is None
    assert parse_content_range_total(None) is None


def test_config_requires_env(monkeypatch):
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "k")
    with pytest.raises(ValueError):
        get_supabase_config()
