"""
FastAPI Main Application
Entry point for the Catalog Startup Service.
"""

import logging
import signal
import threading
from contextlib import asynccontextmanager, contextmanager
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from .config import APISettings, get_settings
from .errors import setup_error_handlers
from .middleware import ReadinessGateMiddleware, RequestLoggingMiddleware
from .routers import health_router, products_router
from ..db.session import create_db_engine, create_session_factory
from ..db.store import ProductStore
from ..ingestion.catalog_client import CatalogClient
from ..ingestion.sync_engine import SyncEngine
from ..startup.coordinator import HostLifecycleCoordinator
from ..startup.events import EventSink, LoggingEventSink
from ..startup.health_checks import HealthCheckSequence, default_checks
from ..startup.orchestrator import StartupOrchestrator

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@contextmanager
def shutdown_releases_gate(coordinator: HostLifecycleCoordinator):
    """
    While the gate is closed, let SIGINT/SIGTERM fire the shutdown signal.

    The previous handlers still run, so the server keeps its own shutdown
    handling, and they are restored once the gate opens. Only possible from
    the main thread.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    previous = {}

    def _handler(signum, frame):
        logger.warning(f"Signal {signum} received while gated, releasing host")
        coordinator.request_shutdown()
        handler = previous.get(signum)
        if callable(handler):
            handler(signum, frame)

    for signum in (signal.SIGINT, signal.SIGTERM):
        previous[signum] = signal.getsignal(signum)
        signal.signal(signum, _handler)
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Prepares the store, then hands the startup task to the coordinator.
    In gate mode startup does not complete until health checks and sync
    finish; in cooperative mode it completes immediately.
    """
    # Startup
    settings: APISettings = app.state.settings
    store: ProductStore = app.state.store
    coordinator: HostLifecycleCoordinator = app.state.coordinator

    logger.info(f"Starting {settings.app_name} ({coordinator.mode.value} mode)...")

    store.create_schema()
    if settings.reset_store_on_startup:
        store.delete_all()
        logger.info("Database cleaned - all existing products removed")

    with shutdown_releases_gate(coordinator):
        await coordinator.start()

    logger.info(
        f"{settings.app_name} started (readiness={coordinator.readiness.value}, "
        f"accepting_requests={coordinator.is_accepting_requests})"
    )

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.app_name}...")
    await coordinator.stop()
    await app.state.catalog_client.aclose()
    app.state.engine.dispose()


def create_app(
    settings: Optional[APISettings] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    events: Optional[EventSink] = None,
) -> FastAPI:
    """
    Create and configure FastAPI application.

    Builds the store, catalog client, health checks, sync engine,
    orchestrator and coordinator from settings; the lifespan starts them.

    Args:
        settings: Settings to use (defaults to get_settings())
        http_client: httpx client for the catalog source (built if omitted)
        events: Event sink for startup events (logging sink if omitted)

    Returns:
        Configured FastAPI application instance
    """
    settings = settings or get_settings()
    events = events or LoggingEventSink()
    logging.getLogger().setLevel(settings.log_level.upper())

    # Data access
    engine = create_db_engine(settings.database_url, echo=settings.database_echo)
    store = ProductStore(create_session_factory(engine))

    # Startup task
    catalog_client = CatalogClient(
        base_url=settings.catalog_base_url,
        ping_url=settings.catalog_ping_url,
        timeout=settings.catalog_timeout_seconds,
        client=http_client,
    )
    health_checks = HealthCheckSequence(
        client=catalog_client,
        checks=default_checks(
            time_scale=settings.health_check_time_scale,
            extra_processing_seconds=settings.health_check_extra_seconds,
        ),
        events=events,
    )
    sync_engine = SyncEngine(
        client=catalog_client,
        store=store,
        page_size=settings.sync_page_size,
        target_count=settings.sync_target_count,
        batch_delay=settings.sync_batch_delay_seconds,
        events=events,
    )
    orchestrator = StartupOrchestrator(health_checks, sync_engine, events=events)
    coordinator = HostLifecycleCoordinator(
        orchestrator,
        mode=settings.startup_mode,
        shutdown_timeout=settings.shutdown_timeout_seconds,
        events=events,
    )

    # Create FastAPI app
    app = FastAPI(
        title=settings.app_name,
        description=settings.description,
        version=settings.version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.store = store
    app.state.catalog_client = catalog_client
    app.state.coordinator = coordinator
    app.state.events = events

    # Set up CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    # Add GZip compression
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    # Add custom middleware (last added runs first)
    app.add_middleware(ReadinessGateMiddleware)
    app.add_middleware(RequestLoggingMiddleware)

    # Set up error handlers
    setup_error_handlers(app)

    # Include routers
    app.include_router(health_router)
    app.include_router(products_router)

    @app.get("/")
    async def root():
        """
        Root endpoint.

        Returns:
            API information
        """
        return {
            "name": settings.app_name,
            "version": settings.version,
            "description": settings.description,
            "mode": coordinator.mode.value,
            "endpoints": {
                "health": "/health",
                "ready": "/ready",
                "startup": "/startup",
                "products": "/api/v1/products",
                "docs": "/docs",
            },
        }

    return app


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "catalog_service.api.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
    )
