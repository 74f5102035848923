"""AIDEN Gateway — local model registry, health probes and generation proxy."""

import asyncio
import logging
import time as _time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import dependencies
from .backend_client import client
from .config import load_registry_seed, settings
from .errors import GatewayError
from .health import HealthProber
from .interaction_log import InteractionLog
from .models import EndpointStatus
from .provider_catalog import ProviderCatalog
from .proxy import GenerationProxy
from .registry_store import RegistryStore
from .router_auth import router as auth_router
from .router_logs import router as logs_router
from .router_models import router as models_router
from .router_registry import router as registry_router

logger = logging.getLogger(__name__)

_start_time: float = 0.0


async def _refresh_loop(store: RegistryStore, interval: float) -> None:
    """Re-probe every registered backend on a fixed interval."""
    while True:
        await asyncio.sleep(interval)
        try:
            entries = await store.refresh_all()
        except Exception:
            logger.exception("Periodic registry refresh failed")
            continue
        online = sum(1 for entry in entries if entry.last_known_status == EndpointStatus.ONLINE)
        logger.debug("Periodic refresh: %d/%d backends online", online, len(entries))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: configure logging, init httpx pool, build and seed the registry."""
    global _start_time

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    await client.start()
    store = RegistryStore(HealthProber(client, default_timeout_ms=settings.probe_timeout_ms))
    seeded = store.seed(load_registry_seed())
    logger.info("Seeded %d registry entries from %s", seeded, settings.registry_seed_path)

    dependencies.configure(
        registry_store=store,
        interaction_log=InteractionLog(capacity=settings.log_capacity),
        generation_proxy=GenerationProxy(store, client, default_timeout_ms=settings.generation_timeout_ms),
        provider_catalog=ProviderCatalog(),
    )

    refresher: asyncio.Task | None = None
    if settings.health_refresh_interval_seconds > 0:
        refresher = asyncio.create_task(_refresh_loop(store, settings.health_refresh_interval_seconds))
        logger.info("Periodic health refresh every %.0fs", settings.health_refresh_interval_seconds)

    _start_time = _time.time()
    logger.info("AIDEN Gateway started")

    yield

    if refresher is not None:
        refresher.cancel()
        try:
            await refresher
        except asyncio.CancelledError:
            pass
    dependencies.reset()
    await client.stop()
    logger.info("AIDEN Gateway stopped")


app = FastAPI(title="AIDEN Gateway", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Error handling ---


@app.exception_handler(GatewayError)
async def gateway_error_handler(request: Request, exc: GatewayError):
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.kind, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={
            "error": "Invalid request",
            "kind": "ValidationError",
            "details": {"errors": jsonable_encoder(exc.errors())},
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error: %s", exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error", "kind": "InternalError"})


# --- Routers ---

app.include_router(auth_router)
app.include_router(registry_router)
app.include_router(logs_router)
app.include_router(models_router)


# --- Health endpoint ---


def _format_uptime(seconds: float) -> str:
    s = int(seconds)
    days, s = divmod(s, 86400)
    hours, s = divmod(s, 3600)
    minutes, s = divmod(s, 60)
    parts = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    parts.append(f"{s}s")
    return " ".join(parts)


@app.get("/health")
async def health():
    """Gateway liveness; does not probe registered backends."""
    uptime = _time.time() - _start_time if _start_time else 0.0
    try:
        registry_size = len(dependencies.get_registry_store())
        log_stats = dependencies.get_interaction_log().stats()
    except RuntimeError:
        return JSONResponse(status_code=503, content={"status": "starting"})
    return {
        "status": "ok",
        "uptime": _format_uptime(uptime),
        "registry": {"entries": registry_size},
        "logs": log_stats,
    }
