from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


load_dotenv()


@dataclass(frozen=True)
class EngineSettings:
    building_store: str = "fixtures"
    fixtures_path: str = ""
    rules_config_path: str = ""
    geocoder: str = "swisstopo"
    log_level: str = "INFO"

    @property
    def rules_config_file(self) -> Path | None:
        return Path(self.rules_config_path) if self.rules_config_path else None


def get_engine_settings() -> EngineSettings:
    """
    Load engine settings from environment variables.

    Reads BUILDING_STORE (memory|fixtures|supabase), BUILDING_FIXTURES_PATH,
    RULES_CONFIG_PATH, GEOCODER (swisstopo|none) and LOG_LEVEL.
    """
    geocoder = os.getenv("GEOCODER", "swisstopo").strip().lower()
    if geocoder not in ("swisstopo", "none"):
        raise ValueError("GEOCODER must be 'swisstopo' or 'none'.")
    return EngineSettings(
        building_store=os.getenv("BUILDING_STORE", "fixtures").strip().lower(),
        fixtures_path=os.getenv("BUILDING_FIXTURES_PATH", "").strip(),
        rules_config_path=os.getenv("RULES_CONFIG_PATH", "").strip(),
        geocoder=geocoder,
        log_level=os.getenv("LOG_LEVEL", "INFO").strip() or "INFO",
    )
