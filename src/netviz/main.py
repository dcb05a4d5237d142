"""NetViz - GeoJSON network viewer.

Main FastAPI application. Run with ``uvicorn netviz.main:app``.
"""

import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from netviz import __version__
from netviz.api.feeds import router as feeds_router
from netviz.api.ws import EventBridge
from netviz.api.ws import router as ws_router
from netviz.comms.event_bus import EventBus
from netviz.config import settings
from netviz.errors import FeedError
from netviz.feeds.controller import RefreshController
from netviz.feeds.source import LiveSource
from netviz.layers.display import LayerCanvas


def _log_tick_error(source: LiveSource, error: FeedError) -> None:
    logger.warning(f"Live feed {source.url} not refreshed this cycle: {error}")


def build_controller(event_bus: EventBus) -> RefreshController:
    """Create the canvas and controller the service runs on."""
    canvas = LayerCanvas(event_bus=event_bus)
    return RefreshController(
        canvas,
        event_bus=event_bus,
        on_tick_error=_log_tick_error,
    )


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info(f"{settings.app_name} v{__version__} - INITIALIZING")

    event_bus = EventBus()
    controller = build_controller(event_bus)
    bridge = EventBridge(event_bus, asyncio.get_running_loop())
    bridge.start()
    app.state.event_bus = event_bus
    app.state.event_bridge = bridge
    app.state.controller = controller
    logger.info(
        f"Feed controller ready (interval {controller.interval.seconds}s, "
        f"default feed {controller.default_feed_url})"
    )

    yield

    logger.info(f"{settings.app_name} shutting down...")
    try:
        controller.shutdown()
    except Exception as e:
        logger.warning(f"Feed controller shutdown failed: {e}")
    app.state.controller = None
    bridge.stop()
    app.state.event_bridge = None


app = FastAPI(
    title=settings.app_name,
    description="GeoJSON file and live-feed layers",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(feeds_router)
app.include_router(ws_router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "operational",
        "version": __version__,
        "system": settings.app_name,
    }
