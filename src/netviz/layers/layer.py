"""Layer and LayerFeature dataclasses.

All coordinates are stored in GeoJSON convention: [lng, lat] or [lng, lat, alt].
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

# Layer slots held by the store. One layer per tag at a time.
FILE = "file"
LIVE = "live"
TAGS = (FILE, LIVE)

# Display names, one per tag
LAYER_NAMES = {
    FILE: "GeoJSON File Layer",
    LIVE: "Live GeoJSON Layer",
}


def new_layer_id() -> str:
    return f"layer-{uuid.uuid4().hex[:8]}"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class LayerFeature:
    """A single feature within a layer.

    Attributes:
        feature_id: Unique identifier for this feature.
        geometry_type: "Point", "LineString", "Polygon" or a Multi* variant.
        coordinates: GeoJSON-style coordinate arrays.
        properties: Arbitrary key-value metadata.
    """

    feature_id: str
    geometry_type: str
    coordinates: list
    properties: dict


@dataclass
class Layer:
    """A named, replaceable collection of features on the display.

    Attributes:
        layer_id: Unique identifier for this layer.
        name: Human-readable display name.
        tag: Store slot the layer belongs to ("file" or "live").
        features: List of LayerFeature instances.
        source_format: Original format, always "geojson" for now.
        metadata: Where the layer came from and anything else worth showing.
        created_at: ISO8601 creation timestamp.
    """

    layer_id: str
    name: str
    tag: str
    features: list[LayerFeature]
    source_format: str = "geojson"
    metadata: dict = field(default_factory=dict)
    created_at: str = field(default_factory=_now)

    def __post_init__(self) -> None:
        if self.tag not in TAGS:
            raise ValueError(f"Unknown layer tag: {self.tag}")
