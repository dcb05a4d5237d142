"""Display collaborator — the surface layers are registered with.

The store only ever talks to a display through ``register_layer``,
``deregister_layer`` and ``request_redraw``. ``LayerCanvas`` is the
in-memory implementation used by the service: it keeps the registered
layers in draw order and publishes a ``redraw`` event. Clients get it over
``/ws/events`` and re-fetch ``/api/feeds/layers/{tag}``.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from netviz.comms.event_bus import EventBus
    from netviz.layers.layer import Layer


class Display(Protocol):
    def register_layer(self, layer: Layer) -> None: ...

    def deregister_layer(self, layer: Layer) -> None: ...

    def request_redraw(self) -> None: ...


class LayerCanvas:
    """Ordered set of registered layers plus a redraw counter."""

    def __init__(self, event_bus: EventBus | None = None) -> None:
        self._event_bus = event_bus
        self._lock = threading.Lock()
        self._layers: list[Layer] = []
        self.redraw_count = 0

    def register_layer(self, layer: Layer) -> None:
        with self._lock:
            if any(l is layer for l in self._layers):
                return
            self._layers.append(layer)

    def deregister_layer(self, layer: Layer) -> None:
        with self._lock:
            self._layers = [l for l in self._layers if l is not layer]

    def request_redraw(self) -> None:
        with self._lock:
            self.redraw_count += 1
            layer_ids = [l.layer_id for l in self._layers]
        if self._event_bus is not None:
            self._event_bus.publish("redraw", {"layers": layer_ids})

    @property
    def layers(self) -> list[Layer]:
        with self._lock:
            return list(self._layers)
