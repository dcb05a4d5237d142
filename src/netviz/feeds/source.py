"""Feed sources — where a layer's geometry came from."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class FileSource:
    """A GeoJSON document on the local filesystem."""

    path: str

    @property
    def kind(self) -> str:
        return "file"

    def describe(self) -> str:
        return self.path


@dataclass(frozen=True)
class LiveSource:
    """A GeoJSON document served over HTTP(S), polled on a timer."""

    url: str

    @property
    def kind(self) -> str:
        return "live"

    def describe(self) -> str:
        return self.url


Source = Union[FileSource, LiveSource]
