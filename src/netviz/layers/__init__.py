"""Map data layers — the model, the per-tag store and the display seam.

GeoJSON is parsed with stdlib json; see ``netviz.layers.parsers.geojson``.
"""

from netviz.layers.display import Display, LayerCanvas
from netviz.layers.layer import FILE, LIVE, Layer, LayerFeature
from netviz.layers.store import LayerStore

__all__ = ["Display", "FILE", "LIVE", "Layer", "LayerCanvas", "LayerFeature", "LayerStore"]
