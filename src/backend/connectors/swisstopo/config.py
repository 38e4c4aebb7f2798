from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


load_dotenv()

DEFAULT_SEARCH_URL = "https://api3.geo.admin.ch/rest/services/api/SearchServer"


@dataclass(frozen=True)
class SwisstopoConfig:
    search_url: str = DEFAULT_SEARCH_URL
    timeout_seconds: float = 10.0


def get_swisstopo_config() -> SwisstopoConfig:
    """
    Load geocoder configuration from environment variables.

    Reads SWISSTOPO_SEARCH_URL and SWISSTOPO_TIMEOUT_SECONDS; both are optional.
    """
    search_url = os.getenv("SWISSTOPO_SEARCH_URL", "").strip() or DEFAULT_SEARCH_URL
    raw_timeout = os.getenv("SWISSTOPO_TIMEOUT_SECONDS", "").strip()
    try:
        timeout = float(raw_timeout) if raw_timeout else SwisstopoConfig.timeout_seconds
    except ValueError as exc:
        raise ValueError("SWISSTOPO_TIMEOUT_SECONDS must be a number.") from exc
    return SwisstopoConfig(search_url=search_url, timeout_seconds=timeout)
