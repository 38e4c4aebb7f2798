from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from common.logging_config import setup_logging
from common.rules_engine.config import RulesConfig, load_rules_config
from common.rules_engine.rules import build_registry
from common.rules_engine.runner import BatchRunner
from connectors.supabase import SupabaseHttpError
from connectors.swisstopo import SwisstopoGeocoder
from pipelines.building_store import get_building_store

from .checks import router as checks_router
from .settings import EngineSettings, get_engine_settings

logger = logging.getLogger(__name__)


def build_runner(settings: EngineSettings) -> BatchRunner:
    rules_config = RulesConfig()
    if settings.rules_config_file is not None:
        rules_config = load_rules_config(settings.rules_config_file)
    store = get_building_store(settings.building_store, path=settings.fixtures_path or None)
    geocoder = SwisstopoGeocoder() if settings.geocoder == "swisstopo" else None
    return BatchRunner(build_registry(), store, geocoder=geocoder, rules_config=rules_config)


async def _storage_error_handler(request: Request, exc: SupabaseHttpError) -> JSONResponse:
    logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"error": True, "message": str(exc)})


def create_app(runner: BatchRunner | None = None) -> FastAPI:
    if runner is None:
        settings = get_engine_settings()
        setup_logging(settings.log_level)
        runner = build_runner(settings)
    logger.info("Rule engine ready with %d rules", len(runner.registry))

    app = FastAPI(title="Geo-Check Rule Engine API", version="1.0.0")
    app.state.runner = runner
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["authorization", "content-type", "x-client-info", "apikey"],
    )
    app.add_exception_handler(SupabaseHttpError, _storage_error_handler)
    app.include_router(checks_router)
    return app
