from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


load_dotenv()


@dataclass(frozen=True)
class SupabaseConfig:
    url: str
    service_role_key: str
    buildings_table: str = "buildings"
    errors_table: str = "errors"

    @property
    def rest_url(self) -> str:
        return f"{self.url.rstrip('/')}/rest/v1"


def get_supabase_config() -> SupabaseConfig:
    """
    Load Supabase connection settings from environment variables.

    Reads SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY (both required).
    """
    return SupabaseConfig(
        url=_require_env("SUPABASE_URL"),
        service_role_key=_require_env("SUPABASE_SERVICE_ROLE_KEY"),
    )


def _require_env(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise ValueError(f"Missing required environment variable: {name}")
    return value
