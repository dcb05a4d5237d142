"""Parse GeoJSON (RFC 7946) into a Layer using stdlib json.

Handles FeatureCollection, a single Feature, or a bare geometry object.
Individual features with missing or unsupported geometry are skipped;
a document that is not GeoJSON at all raises ParseError.
"""

from __future__ import annotations

import json

from netviz.errors import ParseError
from netviz.layers.layer import LAYER_NAMES, Layer, LayerFeature, new_layer_id

GEOMETRY_TYPES = (
    "Point",
    "LineString",
    "Polygon",
    "MultiPoint",
    "MultiLineString",
    "MultiPolygon",
)


def parse_geojson(content: bytes | str, tag: str, name: str | None = None) -> Layer:
    """Parse GeoJSON content into a Layer.

    Args:
        content: Raw document, bytes or text.
        tag: Store slot for the layer ("file" or "live").
        name: Display name; defaults to the slot's standard name.

    Returns:
        Layer with the parsed features.

    Raises:
        ParseError: content is not decodable JSON or not a GeoJSON object.
    """
    if isinstance(content, bytes):
        try:
            content = content.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ParseError(f"Feed is not valid UTF-8: {e.reason}") from e

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ParseError(f"Malformed JSON at line {e.lineno}, column {e.colno}: {e.msg}") from e
    except RecursionError as e:
        raise ParseError("Feed is nested too deeply to parse") from e
    except ValueError as e:
        raise ParseError(f"Malformed JSON: {e}") from e

    if not isinstance(data, dict):
        raise ParseError("GeoJSON document must be an object")

    doc_type = data.get("type")
    features: list[LayerFeature] = []

    if doc_type == "FeatureCollection":
        raw_features = data.get("features")
        if not isinstance(raw_features, list):
            raise ParseError("FeatureCollection has no 'features' array")
        for idx, raw in enumerate(raw_features):
            feature = _parse_feature(raw, idx)
            if feature is not None:
                features.append(feature)
    elif doc_type == "Feature":
        feature = _parse_feature(data, 0)
        if feature is not None:
            features.append(feature)
    elif doc_type in GEOMETRY_TYPES:
        feature = _parse_feature({"geometry": data}, 0)
        if feature is not None:
            features.append(feature)
    else:
        raise ParseError(f"Unsupported GeoJSON type: {doc_type!r}")

    metadata = {}
    doc_meta = data.get("metadata")
    if isinstance(doc_meta, dict) and doc_meta.get("title"):
        metadata["title"] = doc_meta["title"]

    return Layer(
        layer_id=new_layer_id(),
        name=name or LAYER_NAMES.get(tag, tag),
        tag=tag,
        features=features,
        metadata=metadata,
    )


def _parse_feature(raw: dict, idx: int) -> LayerFeature | None:
    """Parse a single GeoJSON Feature dict into a LayerFeature."""
    if not isinstance(raw, dict):
        return None

    geometry = raw.get("geometry")
    if not isinstance(geometry, dict):
        return None

    geom_type = geometry.get("type", "")
    coordinates = geometry.get("coordinates")

    if geom_type not in GEOMETRY_TYPES or not isinstance(coordinates, list):
        return None

    properties = raw.get("properties") or {}
    if not isinstance(properties, dict):
        properties = {}

    feature_id = raw.get("id", f"geojson-{idx}")
    if not isinstance(feature_id, str):
        feature_id = str(feature_id)

    return LayerFeature(
        feature_id=feature_id,
        geometry_type=geom_type,
        coordinates=coordinates,
        properties=properties,
    )
