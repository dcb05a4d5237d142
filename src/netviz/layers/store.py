"""LayerStore — owns the one-per-tag layers registered with the display.

At most one "file" layer and one "live" layer are registered at any
time. ``replace`` registers the new layer before deregistering the old
one, so a failed registration leaves the old layer on screen and a
successful one never leaves a gap.

The store is not locked: every call must come from the single writer
(see ``netviz.feeds.writer``).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from netviz.layers.layer import TAGS, Layer

if TYPE_CHECKING:
    from netviz.comms.event_bus import EventBus
    from netviz.layers.display import Display

logger = logging.getLogger("netviz.layers")


class LayerStore:
    """Registry of the current layer for each tag."""

    def __init__(self, display: Display, event_bus: EventBus | None = None) -> None:
        self._display = display
        self._event_bus = event_bus
        self._layers: dict[str, Layer] = {}

    def replace(self, tag: str, new_layer: Layer) -> Layer | None:
        """Swap ``new_layer`` in for the current layer of ``tag``.

        Args:
            tag: "file" or "live".
            new_layer: A freshly parsed layer.

        Returns:
            The layer that was displaced, or None.

        Raises:
            ValueError: unknown tag, or the layer belongs to another tag.
            Exception: whatever the display raises on registration; the
                previous layer is left registered in that case.
        """
        self._check_tag(tag)
        if new_layer.tag != tag:
            raise ValueError(f"Layer {new_layer.layer_id} is tagged {new_layer.tag!r}, not {tag!r}")

        old = self._layers.get(tag)
        if old is not new_layer:
            self._display.register_layer(new_layer)
            self._layers[tag] = new_layer
            if old is not None:
                try:
                    self._display.deregister_layer(old)
                except Exception:
                    logger.exception("Display failed to release %s layer %s", tag, old.layer_id)
        self._display.request_redraw()

        logger.info(
            "Replaced %s layer: %s (%d features)",
            tag, new_layer.layer_id, len(new_layer.features),
        )
        if self._event_bus is not None:
            self._event_bus.publish("layer_replaced", {
                "tag": tag,
                "layer_id": new_layer.layer_id,
                "features": len(new_layer.features),
                "previous": old.layer_id if old is not None and old is not new_layer else None,
            })
        return old if old is not new_layer else None

    def clear(self, tag: str) -> bool:
        """Deregister the layer for ``tag``.

        Returns:
            True if a layer was removed, False if the slot was empty.
        """
        self._check_tag(tag)
        old = self._layers.pop(tag, None)
        if old is None:
            return False
        self._display.deregister_layer(old)
        self._display.request_redraw()
        logger.info("Cleared %s layer %s", tag, old.layer_id)
        if self._event_bus is not None:
            self._event_bus.publish("layer_cleared", {"tag": tag, "layer_id": old.layer_id})
        return True

    def clear_all(self) -> None:
        for tag in TAGS:
            self.clear(tag)

    def get(self, tag: str) -> Layer | None:
        self._check_tag(tag)
        return self._layers.get(tag)

    def layers(self) -> list[Layer]:
        """Registered layers in tag order."""
        return [self._layers[t] for t in TAGS if t in self._layers]

    @staticmethod
    def _check_tag(tag: str) -> None:
        if tag not in TAGS:
            raise ValueError(f"Unknown layer tag: {tag}")
