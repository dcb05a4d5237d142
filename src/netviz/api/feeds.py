"""Feeds router — the user-input boundary for file, link and interval actions.

Endpoints:
    POST /api/feeds/file          — Load a local GeoJSON file
    POST /api/feeds/link          — Load a live feed and start polling
    POST /api/feeds/interval      — Change the poll period
    POST /api/feeds/stop          — Stop live polling
    GET  /api/feeds/status        — Session state, interval and layers
    GET  /api/feeds/layers/{tag}  — GeoJSON of the layer in a slot

Handlers are plain ``def`` so FastAPI runs the blocking fetch in its
threadpool. Action failures come back with the controller's message in
``detail``.
"""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, HTTPException, Request
from loguru import logger
from pydantic import BaseModel

from netviz.feeds.controller import ActionResult, RefreshController
from netviz.layers.exporters.geojson import export_geojson
from netviz.layers.layer import TAGS

router = APIRouter(prefix="/api/feeds", tags=["feeds"])

# ActionResult.kind -> HTTP status for failures
_STATUS_FOR_KIND = {
    "validation": 422,
    "fetch": 502,
    "parse": 502,
    "display": 500,
    "error": 500,
}


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

class OpenFileRequest(BaseModel):
    """Load a GeoJSON file from the server's filesystem."""
    path: str


class OpenLinkRequest(BaseModel):
    """Load a live GeoJSON feed. Empty means the default feed."""
    url: str = ""


class IntervalRequest(BaseModel):
    """Poll period as typed by the user."""
    value: str
    unit: Literal["seconds", "minutes"] = "seconds"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _controller(request: Request) -> RefreshController:
    controller = getattr(request.app.state, "controller", None)
    if controller is None:
        raise HTTPException(status_code=503, detail="Feed controller not running")
    return controller


def _respond(result: ActionResult) -> dict:
    if not result.ok:
        logger.warning(f"Feed action failed ({result.kind}): {result.message}")
        raise HTTPException(
            status_code=_STATUS_FOR_KIND.get(result.kind, 500),
            detail=result.message,
        )
    return result.to_dict()


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/file")
def open_file(body: OpenFileRequest, request: Request):
    """Load a GeoJSON file into the file layer, replacing any previous one."""
    return _respond(_controller(request).open_file(body.path))


@router.post("/link")
def open_link(body: OpenLinkRequest, request: Request):
    """Load a live feed into the live layer and (re)start polling it."""
    return _respond(_controller(request).open_link(body.url))


@router.post("/interval")
def set_interval(body: IntervalRequest, request: Request):
    """Set the poll period (1 second to 5 minutes)."""
    return _respond(_controller(request).set_interval(body.value, body.unit))


@router.post("/stop")
def stop_polling(request: Request):
    return _respond(_controller(request).stop())


@router.get("/status")
def get_status(request: Request):
    return _controller(request).status()


@router.get("/layers/{tag}")
def get_layer(tag: str, request: Request):
    """Return the layer in ``tag``'s slot as a GeoJSON FeatureCollection."""
    if tag not in TAGS:
        raise HTTPException(status_code=404, detail=f"Unknown layer slot: {tag}")
    layer = _controller(request).current_layer(tag)
    if layer is None:
        raise HTTPException(status_code=404, detail=f"No {tag} layer loaded")
    return export_geojson(layer)
