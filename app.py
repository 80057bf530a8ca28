"""Mixlingo API application."""
from contextlib import asynccontextmanager
from typing import Dict, Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from cache import RequestDeduplicator, TranslationCache
from config import AppConfig, get_config
from errors import MixlingoError
from log import get_logger
from mixer import ContentMixer
from providers import ProviderPool, TranslationProvider, build_providers
from translation import TranslationService
from translation_routes import router as translation_router
from vocabulary_routes import router as vocabulary_router

logger = get_logger("mixlingo.app")


def create_app(
    config: Optional[AppConfig] = None,
    providers: Optional[Dict[str, TranslationProvider]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    with_readings: bool = True,
) -> FastAPI:
    """Build the app with one cache, deduplicator, service and mixer for its lifetime."""
    config = config or get_config()
    if providers is None:
        providers = build_providers(config, transport=transport)
    cache = TranslationCache(ttl=config.cache_ttl, max_entries=config.cache_max, path=config.cache_file)
    cache.load()
    service = TranslationService(ProviderPool(providers, config), cache, RequestDeduplicator(), config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        cache.save()

    app = FastAPI(title="Mixlingo", lifespan=lifespan)
    app.state.config = config
    app.state.translation_service = service
    app.state.mixer = ContentMixer(service, config, with_readings=with_readings)

    @app.exception_handler(MixlingoError)
    async def mixlingo_error_handler(request: Request, exc: MixlingoError):
        logger.info("Request rejected", extra={"component": "api", "detail": exc.code, "status_code": 400})
        return JSONResponse(status_code=400, content=exc.to_dict())

    @app.get("/api/health")
    async def health():
        return {
            "status": "ok",
            "providers": sorted(providers),
            "pairs": sorted(key for key, pair in config.pairs.items() if pair.enabled),
        }

    app.include_router(translation_router)
    app.include_router(vocabulary_router)
    return app
