"""Export a Layer back to a GeoJSON FeatureCollection dict.

Coordinates are passed through untouched ([lng, lat] or [lng, lat, alt]).
The collection gets a 2D ``bbox`` (RFC 7946 section 5) so a client can
frame the layer without walking every geometry.
"""

from __future__ import annotations

from typing import Iterator

from netviz.layers.layer import Layer


def export_geojson(layer: Layer) -> dict:
    """Export a Layer to a GeoJSON FeatureCollection dict.

    The layer's identity is carried in a foreign ``layer`` member so
    clients can tell two refreshes of the live slot apart.
    """
    out = {
        "type": "FeatureCollection",
        "layer": {
            "id": layer.layer_id,
            "name": layer.name,
            "tag": layer.tag,
            "created_at": layer.created_at,
            "metadata": dict(layer.metadata),
        },
        "features": [
            {
                "type": "Feature",
                "id": f.feature_id,
                "geometry": {"type": f.geometry_type, "coordinates": f.coordinates},
                "properties": dict(f.properties),
            }
            for f in layer.features
        ],
    }
    bbox = layer_bbox(layer)
    if bbox is not None:
        out["bbox"] = bbox
    return out


def layer_bbox(layer: Layer) -> list[float] | None:
    """[west, south, east, north] over every position, or None if there are none."""
    lngs: list[float] = []
    lats: list[float] = []
    for feature in layer.features:
        for position in _positions(feature.coordinates):
            lngs.append(position[0])
            lats.append(position[1])
    if not lngs:
        return None
    return [min(lngs), min(lats), max(lngs), max(lats)]


def _positions(coords) -> Iterator[list]:
    # a position is a list whose first member is a number
    if not isinstance(coords, list) or not coords:
        return
    if isinstance(coords[0], (int, float)):
        if len(coords) >= 2:
            yield coords
        return
    for child in coords:
        yield from _positions(child)
