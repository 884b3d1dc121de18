from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from inventory.app.api.auth import router as auth_router
from inventory.app.api.inventory import router as inventory_router
from inventory.app.core.cache import get_cache_backend
from inventory.app.core.config import Settings, settings as default_settings
from inventory.app.core.logging import get_logger, setup_logging
from inventory.app.db.async_session import (
    build_async_engine,
    build_session_maker,
    close_async_engine,
)
from inventory.app.db.init_db import create_all_tables, seed_items, verify_connection
from inventory.app.exceptions import InventoryException
from inventory.app.middleware.rate_limit import AdmissionGate, RateLimitMiddleware
from inventory.app.middleware.request_id import RequestIdMiddleware, get_request_id
from inventory.app.services.item_cache import BaseItemCache, ItemCache, build_item_cache


def create_app(
    config: Optional[Settings] = None,
    gate: Optional[AdmissionGate] = None,
    item_cache: Optional[BaseItemCache] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    This is the composition root: the admission gate and the item cache are
    built here once and shared by every request the app serves.

    Args:
        config: Settings to use, defaults to the environment-loaded settings
        gate: Admission gate, built from settings when omitted
        item_cache: Item cache, built from settings when omitted

    Returns:
        Configured FastAPI application instance
    """
    config = config or default_settings

    setup_logging(config)
    logger = get_logger(__name__)

    if gate is None:
        gate = AdmissionGate.from_settings(
            config.rate_limit_capacity, config.rate_limit_refill_seconds
        )
    if item_cache is None:
        backend = None
        if config.cache_enabled:
            backend = get_cache_backend(
                backend="redis" if config.redis_enabled else "memory",
                redis_url=config.redis_url,
            )
        item_cache = build_item_cache(
            config.cache_enabled, backend, key_prefix=config.cache_key_prefix
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Create tables and seed data on startup, release resources on shutdown."""
        engine = build_async_engine(config.database_url, config)
        app.state.engine = engine
        app.state.session_maker = build_session_maker(engine)

        if not await verify_connection(engine):
            logger.error("Database connection failed!")
            await close_async_engine(engine)
            raise RuntimeError("Cannot connect to database")

        await create_all_tables(engine)
        if config.seed_on_startup:
            async with app.state.session_maker() as session:
                await seed_items(session)

        logger.info(
            "Application startup complete",
            extra={
                "cache": type(app.state.item_cache).__name__,
                "rate_limit_capacity": gate.bucket.capacity,
                "rate_limit_refill_seconds": gate.bucket.refill_interval,
            },
        )

        yield

        await app.state.item_cache.close()
        await close_async_engine(engine)
        logger.info("Application shutdown complete")

    app = FastAPI(
        title="Inventory Service",
        description="Item inventory API with admission control and a cache-aside item cache",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = config
    app.state.admission_gate = gate
    app.state.item_cache = item_cache

    # Middleware order: last added = first executed
    app.add_middleware(RateLimitMiddleware, gate=gate)
    app.add_middleware(RequestIdMiddleware)
    # CORS is outermost so preflight requests never consume tokens
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        expose_headers=["X-Request-ID", "X-RateLimit-Limit", "X-RateLimit-Remaining", "Retry-After"],
    )

    app.include_router(auth_router)
    app.include_router(inventory_router)

    @app.get("/health")
    async def health() -> dict[str, Any]:
        """Health check with database and cache status."""
        health_status: dict[str, Any] = {"status": "ok", "components": {}}

        try:
            async with app.state.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            health_status["components"]["database"] = {"status": "ok"}
        except Exception as e:
            health_status["status"] = "degraded"
            health_status["components"]["database"] = {
                "status": "error",
                "error": str(e)[:100],
            }

        cache = app.state.item_cache
        if not isinstance(cache, ItemCache):
            health_status["components"]["cache"] = {"status": "disabled"}
        else:
            backend = cache.backend
            try:
                test_key = "_health_check_test"
                await backend.set(test_key, b"ping", ttl=5)
                value = await backend.get(test_key)
                await backend.delete(test_key)
                health_status["components"]["cache"] = {
                    "status": "ok" if value == b"ping" else "error",
                    "type": type(backend).__name__,
                }
            except Exception as e:
                # The service keeps working without its cache
                health_status["components"]["cache"] = {
                    "status": "unavailable",
                    "error": str(e)[:100],
                }

        return health_status

    @app.exception_handler(InventoryException)
    async def inventory_error_handler(request: Request, exc: InventoryException) -> JSONResponse:
        """Map domain exceptions to their HTTP status."""
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Return 400 with the first validation message."""
        errors = exc.errors()
        if errors:
            first = errors[0]
            field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
            message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
        else:
            message = "Invalid request"
        return JSONResponse(status_code=400, content={"error": message})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Log unhandled exceptions and return a generic 500.

        Tracebacks are never sent to the client, even in debug mode.
        """
        request_id = get_request_id(request)
        logger.exception(
            f"Unhandled exception [request_id={request_id}]",
            extra={
                "request_id": request_id,
                "exception_type": type(exc).__name__,
            },
        )
        content = {"error": "Internal server error", "request_id": request_id}
        if config.debug:
            content["message"] = str(exc)
            content["exception_type"] = type(exc).__name__
        return JSONResponse(status_code=500, content=content)

    return app


# Create the application instance
app = create_app()
