"""NetViz — GeoJSON file and live-feed layers for a map display."""

__version__ = "0.1.0"
