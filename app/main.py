"""
FastAPI application entry point.

Configures the database pool lifecycle, the schema bootstrap readiness
gate, middleware, routes and exception handlers.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Callable

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncEngine

from app.bootstrap import BootstrapError, BootstrapReadiness, SchemaBootstrapper
from app.core.config import Settings, settings as default_settings
from app.core.database import close_pool, create_session_factory, open_pool
from app.core.logging import setup_logging
from app.routers import health, wikis

logger = logging.getLogger(__name__)

BootstrapperFactory = Callable[[AsyncEngine, Settings], SchemaBootstrapper]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings: Settings = app.state.settings
    logger.info(
        "Starting Wiki API in %s mode (startup policy: %s)",
        settings.ENVIRONMENT,
        settings.STARTUP_POLICY,
    )

    engine = open_pool(settings)
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)

    readiness: BootstrapReadiness = app.state.readiness
    readiness.start(app.state.bootstrapper_factory(engine, settings))
    # strict waits as long as the run takes
    timeout = None
    if settings.STARTUP_POLICY == "degraded":
        timeout = settings.BOOTSTRAP_STARTUP_TIMEOUT
    try:
        await asyncio.wait_for(readiness.wait(), timeout)
    except asyncio.TimeoutError:
        logger.warning(
            "Schema bootstrap still running after %.0fs; serving in degraded mode",
            timeout,
        )
    except BootstrapError as exc:
        if settings.STARTUP_POLICY == "strict":
            logger.error("Schema bootstrap failed; refusing to start: %s", exc)
            await close_pool(engine)
            raise
        logger.warning("Schema bootstrap failed; serving in degraded mode: %s", exc)

    try:
        yield
    finally:
        logger.info("Shutting down Wiki API")
        await readiness.stop()
        await close_pool(engine)


def create_app(
    settings: Settings | None = None,
    bootstrapper_factory: BootstrapperFactory = SchemaBootstrapper,
) -> FastAPI:
    settings = settings or default_settings
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title="Wiki API",
        description="Multi-tenant wiki backend",
        version=health.APP_VERSION,
        docs_url="/api/docs" if settings.DEBUG else None,
        redoc_url="/api/redoc" if settings.DEBUG else None,
        openapi_url="/api/openapi.json" if settings.DEBUG else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.bootstrapper_factory = bootstrapper_factory
    app.state.readiness = BootstrapReadiness()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        if settings.DEBUG:
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "detail": {
                        "code": "INTERNAL_SERVER_ERROR",
                        "message": str(exc),
                        "type": type(exc).__name__,
                    }
                },
            )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": {
                    "code": "INTERNAL_SERVER_ERROR",
                    "message": "An unexpected error occurred",
                }
            },
        )

    app.include_router(health.router, tags=["Health"])
    app.include_router(wikis.router, prefix="/api/v1", tags=["Wikis"])

    return app


app = create_app()
