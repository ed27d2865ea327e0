from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import redis.asyncio as aioredis
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from overlay_relay.api.middleware.correlation_id import CorrelationIdMiddleware
from overlay_relay.api.routers import health, layout, llm, ws
from overlay_relay.application.exceptions import (
    CapabilityError,
    CapabilityUnavailableError,
    ConflictError,
    ValidationError,
)
from overlay_relay.application.ports.capability import GenerationCapability
from overlay_relay.application.ports.layout_store import LayoutStore
from overlay_relay.config import Settings, settings
from overlay_relay.infrastructure.llm.echo import EchoCapability
from overlay_relay.infrastructure.llm.ollama import OllamaCapability
from overlay_relay.infrastructure.storage.json_file import JsonFileLayoutStore
from overlay_relay.infrastructure.storage.redis_store import RedisLayoutStore
from overlay_relay.infrastructure.ws.manager import ConnectionRegistry
from overlay_relay.services.capability_service import CapabilityService
from overlay_relay.services.layout_service import LayoutService
from overlay_relay.services.relay_service import RelayService
from overlay_relay.workers.capability_bootstrap import bootstrap_capability

logger = logging.getLogger(__name__)


def _build_capability(cfg: Settings) -> GenerationCapability | None:
    if cfg.GENERATION_BACKEND == "ollama":
        return OllamaCapability(
            cfg.OLLAMA_URL,
            catalog=cfg.MODEL_CATALOG,
            keep_alive=cfg.OLLAMA_KEEP_ALIVE,
            timeout=cfg.OLLAMA_TIMEOUT_SECONDS,
        )
    if cfg.GENERATION_BACKEND == "echo":
        return EchoCapability()
    return None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""
    cfg: Settings = app.state.settings

    registry = ConnectionRegistry()
    app.state.registry = registry

    redis: aioredis.Redis | None = None
    store: LayoutStore | None = app.state.layout_store
    if store is None:
        if cfg.LAYOUT_STORE == "redis":
            redis = aioredis.from_url(cfg.REDIS_URL, decode_responses=True)
            store = RedisLayoutStore(redis, cfg.LAYOUT_REDIS_KEY)
            logger.info("Layout preferences stored in Redis key %s", cfg.LAYOUT_REDIS_KEY)
        else:
            store = JsonFileLayoutStore(cfg.LAYOUT_FILE)
            logger.info("Layout preferences stored in %s", cfg.LAYOUT_FILE)

    layout_service = LayoutService(store, registry, cfg.LAYOUT_DEFAULTS)
    await layout_service.load()
    app.state.layout = layout_service

    generation: GenerationCapability | None = app.state.capability
    if generation is None:
        generation = _build_capability(cfg)
    relay = RelayService(registry, generation, cfg)
    app.state.relay = relay
    app.state.capabilities = CapabilityService(generation)

    bootstrap: asyncio.Task[None] | None = None
    if generation is not None:
        generation.on_progress(relay.forward_progress)
        bootstrap = asyncio.create_task(
            bootstrap_capability(generation, cfg), name="capability-bootstrap",
        )
        logger.info("Generation backend %s starting in background", cfg.GENERATION_BACKEND)
    else:
        logger.info("No generation backend configured, relay-only mode")

    yield

    if bootstrap is not None:
        bootstrap.cancel()
        await asyncio.gather(bootstrap, return_exceptions=True)
    await relay.aclose()
    await app.state.capabilities.aclose()
    await registry.close_all()
    if generation is not None:
        await generation.aclose()
    if redis is not None:
        await redis.aclose()
    logger.info("Relay shut down")


def create_app(
    *,
    app_settings: Settings | None = None,
    capability: GenerationCapability | None = None,
    layout_store: LayoutStore | None = None,
) -> FastAPI:
    """Build the relay application.

    ``capability`` and ``layout_store`` override the backends that would
    otherwise be built from settings.
    """
    cfg = app_settings or settings
    app = FastAPI(
        title="Stream Overlay Relay",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = cfg
    app.state.capability = capability
    app.state.layout_store = layout_store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    _register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(llm.router)
    app.include_router(layout.router)
    app.include_router(ws.router)

    return app


def _error(status_code: int, detail: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"ok": False, "error": detail})


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ConflictError)
    async def _conflict(_req: Request, exc: ConflictError) -> JSONResponse:
        return _error(409, exc.detail)

    @app.exception_handler(ValidationError)
    async def _validation(_req: Request, exc: ValidationError) -> JSONResponse:
        return _error(422, exc.detail)

    @app.exception_handler(CapabilityUnavailableError)
    async def _unavailable(_req: Request, exc: CapabilityUnavailableError) -> JSONResponse:
        return _error(503, exc.detail)

    @app.exception_handler(CapabilityError)
    async def _backend(_req: Request, exc: CapabilityError) -> JSONResponse:
        logger.warning("Generation backend error: %s", exc.detail)
        return _error(502, exc.detail)

    @app.exception_handler(RequestValidationError)
    async def _request_validation(_req: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        detail = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        return _error(422, detail)
