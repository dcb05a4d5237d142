"""WebSocket endpoint that streams feed and layer events to clients.

The EventBus is threaded; ``EventBridge`` drains one subscription on a
daemon thread and hands each message to the event loop, which
broadcasts it to every connected socket.

Endpoint:
    WS /ws/events  — layer_replaced, redraw, feed_error, session_armed, ...
"""

from __future__ import annotations

import asyncio
import json
import queue
import threading
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Set

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from loguru import logger

if TYPE_CHECKING:
    from netviz.comms.event_bus import EventBus

router = APIRouter(prefix="/ws", tags=["websocket"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ConnectionManager:
    """Tracks open event sockets."""

    def __init__(self):
        self.active_connections: Set[WebSocket] = set()
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        async with self._lock:
            self.active_connections.add(websocket)
        logger.info(f"Event socket connected. Total connections: {len(self.active_connections)}")

    async def disconnect(self, websocket: WebSocket):
        async with self._lock:
            self.active_connections.discard(websocket)
        logger.info(f"Event socket disconnected. Total connections: {len(self.active_connections)}")

    async def broadcast(self, message: dict):
        if not self.active_connections:
            return

        message_str = json.dumps(message)
        disconnected = set()

        async with self._lock:
            for connection in self.active_connections:
                try:
                    await connection.send_text(message_str)
                except Exception as e:
                    logger.warning(f"Failed to send to event socket: {e}")
                    disconnected.add(connection)
            self.active_connections -= disconnected

    async def send_to(self, websocket: WebSocket, message: dict):
        try:
            await websocket.send_text(json.dumps(message))
        except Exception as e:
            logger.warning(f"Failed to send to event socket: {e}")


manager = ConnectionManager()


@router.websocket("/events")
async def websocket_events(websocket: WebSocket):
    """Stream bus events; answers ``{"type": "ping"}`` with a pong."""
    await manager.connect(websocket)
    await manager.send_to(websocket, {"type": "connected", "timestamp": _now()})

    try:
        while True:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                await manager.send_to(websocket, {"type": "error", "message": "Invalid JSON"})
                continue
            if isinstance(message, dict) and message.get("type") == "ping":
                await manager.send_to(websocket, {"type": "pong", "timestamp": _now()})
            else:
                await manager.send_to(websocket, {"type": "error", "message": "Unknown message type"})
    except WebSocketDisconnect:
        await manager.disconnect(websocket)


class EventBridge:
    """Forwards every EventBus message to the event sockets."""

    def __init__(self, event_bus: EventBus, loop: asyncio.AbstractEventLoop, poll_timeout: float = 0.5):
        self._event_bus = event_bus
        self._loop = loop
        self._poll_timeout = poll_timeout
        self._queue: queue.Queue | None = None
        self._thread: threading.Thread | None = None
        self._stop = threading.Event()

    def start(self) -> None:
        if self._thread is not None:
            return
        self._queue = self._event_bus.subscribe()
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, args=(self._queue,), daemon=True, name="netviz-ws-bridge")
        self._thread.start()
        logger.info("Event bridge started")

    def stop(self, timeout: float = 2.0) -> None:
        if self._thread is None:
            return
        self._stop.set()
        self._thread.join(timeout=timeout)
        self._thread = None
        if self._queue is not None:
            self._event_bus.unsubscribe(self._queue)
            self._queue = None
        logger.info("Event bridge stopped")

    def _run(self, sub: queue.Queue) -> None:
        while not self._stop.is_set():
            try:
                msg = sub.get(timeout=self._poll_timeout)
            except queue.Empty:
                continue
            message = {
                "type": msg.get("type", "unknown"),
                "data": msg.get("data", {}),
                "timestamp": _now(),
            }
            try:
                asyncio.run_coroutine_threadsafe(manager.broadcast(message), self._loop)
            except RuntimeError:
                # event loop closed under us
                logger.warning("Event loop gone; event bridge exiting")
                return
