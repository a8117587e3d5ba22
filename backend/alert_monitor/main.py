from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from typing import Optional
import logging
import time

from alert_monitor import __version__
from alert_monitor.core.config import Settings, settings as default_settings
from alert_monitor.api.routes_alerts import router as alerts_router
from alert_monitor.api.routes_control import api_health, router as control_router
from alert_monitor.api.routes_game_data import router as game_data_router
from alert_monitor.api.routes_realtime import router as realtime_router

# Setup logging configuration early
from alert_monitor.core.logging_config import setup_logging
setup_logging()

from alert_monitor.services.event_bus import EventBus
from alert_monitor.services.feed_client import FeedClient
from alert_monitor.services.scheduler import AlertScheduler
from alert_monitor.services.storage import JsonStorage
from alert_monitor.services.websocket_manager import ConnectionManager

logger = logging.getLogger(__name__)


def build_scheduler(settings: Settings, connections: ConnectionManager) -> AlertScheduler:
    """Wire storage, feed client and the real-time sink into one scheduler."""
    storage = JsonStorage(settings.DATA_DIR)
    storage.ensure_documents()

    event_bus = EventBus()
    event_bus.subscribe(connections.handle_event)

    return AlertScheduler(
        settings=settings,
        storage=storage,
        feed_client=FeedClient(settings),
        event_bus=event_bus,
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=__version__,
        description="Alert feed ingestion, statistics and real-time push",
    )

    # CORS middleware - open to any origin; the dashboard may be served from anywhere
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
        max_age=3600,
    )

    connections = ConnectionManager()
    app.state.settings = settings
    app.state.connections = connections
    app.state.scheduler = build_scheduler(settings, connections)

    @app.on_event("startup")
    async def startup_event():
        """Startup event - first poll happens on the first scheduler tick"""
        t0 = time.perf_counter()
        if settings.SCHEDULER_ENABLED:
            try:
                await app.state.scheduler.start()
                logger.info("✅ Alert scheduler started")
            except Exception as e:
                logger.error(f"❌ Failed to start alert scheduler: {e}", exc_info=True)
        else:
            logger.warning("Alert scheduler DISABLED (SCHEDULER_ENABLED=false)")
        elapsed_ms = (time.perf_counter() - t0) * 1000
        logger.info(f"PERF: Startup event completed - server ready for requests - {elapsed_ms:.2f}ms")

    @app.on_event("shutdown")
    async def shutdown_event():
        """Cleanup on application shutdown"""
        try:
            await app.state.scheduler.stop()
        except Exception as e:
            logger.error(f"Error stopping scheduler: {e}")

    @app.get("/")
    def root():
        return {
            "message": settings.PROJECT_NAME,
            "version": __version__,
            "status": "running",
        }

    # Same payload as /api/health, for load balancer probes
    app.add_api_route("/health", api_health, methods=["GET"])

    app.include_router(alerts_router, prefix="/api", tags=["alerts"])
    app.include_router(control_router, prefix="/api", tags=["control"])
    app.include_router(game_data_router, prefix="/api", tags=["game-data"])
    app.include_router(realtime_router, tags=["realtime"])

    logger.info(f"App created: data_dir={settings.DATA_DIR} feed={app.state.scheduler.feed_client.source}")
    return app


app = create_app()
