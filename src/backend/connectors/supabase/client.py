from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from .config import SupabaseConfig

logger = logging.getLogger(__name__)

RETRY_STATUSES = (429, 500, 502, 503, 504)


class SupabaseHttpError(RuntimeError):
    def __init__(self, status: int, message: str, body: str | None = None):
        super().__init__(f"Supabase HTTP {status}: {message}")
        self.status = status
        self.body = body


@dataclass(frozen=True)
class SupabaseResponse:
    status: int
    data: Any
    headers: dict[str, str] = field(default_factory=dict)


def supabase_request(
    config: SupabaseConfig,
    method: str,
    path: str,
    *,
    params: dict[str, Any] | None = None,
    payload: Any = None,
    prefer: str | None = None,
    timeout_seconds: int = 30,
    max_retries: int = 3,
) -> SupabaseResponse:
    """
    Perform an authenticated PostgREST request with the service-role key.

    Retries 429/5xx responses and connection errors with exponential backoff.
    """
    retries = 0
    backoff = 0.5
    url = _build_url(config.rest_url, path, params)
    data = json.dumps(payload).encode("utf-8") if payload is not None else None

    while True:
        req = Request(url, data=data, method=method)
        req.add_header("Accept", "application/json")
        req.add_header("apikey", config.service_role_key)
        req.add_header("Authorization", f"Bearer {config.service_role_key}")
        if data is not None:
            req.add_header("Content-Type", "application/json")
        if prefer:
            req.add_header("Prefer", prefer)

        try:
            with urlopen(req, timeout=timeout_seconds) as resp:
                raw = resp.read().decode("utf-8")
                headers = {k.lower(): v for k, v in resp.headers.items()}
                return SupabaseResponse(
                    status=resp.status,
                    data=json.loads(raw) if raw.strip() else None,
                    headers=headers,
                )
        except HTTPError as exc:
            body = exc.read().decode("utf-8") if exc.fp else None
            status = exc.code

            if status in RETRY_STATUSES and retries < max_retries:
                logger.warning("Supabase %s %s returned %s; retrying", method, path, status)
                time.sleep(backoff)
                retries += 1
                backoff *= 2
                continue

            raise SupabaseHttpError(status, str(exc.reason), body) from exc
        except URLError as exc:
            if retries < max_retries:
                logger.warning("Supabase %s %s failed (%s); retrying", method, path, exc.reason)
                time.sleep(backoff)
                retries += 1
                backoff *= 2
                continue
            raise SupabaseHttpError(0, str(exc)) from exc


def parse_content_range_total(value: str | None) -> int | None:
    """Total row count from a PostgREST `Content-Range` header (`0-49/1234`)."""
    if not value or "/" not in value:
        return None
    total = value.rsplit("/", 1)[1].strip()
    if not total.isdigit():
        return None
    return int(total)


def _build_url(base_url: str, path: str, params: dict[str, Any] | None) -> str:
    normalized_path = path if path.startswith("/") else f"/{path}"
    url = f"{base_url}{normalized_path}"
    if params:
        url = f"{url}?{urlencode(params)}"
    return url
