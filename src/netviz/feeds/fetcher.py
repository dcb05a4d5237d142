"""FeedFetcher — retrieve raw feed bytes from a file or URL.

Fetching never touches layers or sessions. Remote fetches are bounded by
a timeout and are not retried here; the poll period is the retry.
"""

from __future__ import annotations

import logging
import os

import httpx

from netviz.config import settings
from netviz.errors import NetworkError, NotFoundError
from netviz.feeds.source import FileSource, LiveSource, Source

logger = logging.getLogger("netviz.fetcher")


class FeedFetcher:
    """Reads feed documents from disk or over HTTP(S)."""

    def __init__(
        self,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._timeout = settings.fetch_timeout if timeout is None else timeout
        self._owns_client = client is None
        self._client = client or httpx.Client(
            timeout=self._timeout,
            follow_redirects=True,
            headers={"User-Agent": settings.user_agent},
        )

    def fetch(self, source: Source) -> bytes:
        """Return the raw document for ``source``.

        Raises:
            NotFoundError: file source is missing or unreadable.
            NetworkError: connection failure, timeout, or non-2xx response.
        """
        if isinstance(source, FileSource):
            return self._read_file(source.path)
        if isinstance(source, LiveSource):
            return self._download(source.url)
        raise TypeError(f"Unsupported source: {source!r}")

    def _read_file(self, path: str) -> bytes:
        if not os.path.isfile(path):
            raise NotFoundError(f"File not found: {path}")
        try:
            with open(path, "rb") as f:
                return f.read()
        except OSError as e:
            raise NotFoundError(f"Cannot read {path}: {e.strerror or e}") from e

    def _download(self, url: str) -> bytes:
        try:
            resp = self._client.get(url, timeout=self._timeout)
            resp.raise_for_status()
        except httpx.TimeoutException as e:
            raise NetworkError(f"Timed out after {self._timeout:g}s fetching {url}") from e
        except httpx.HTTPStatusError as e:
            raise NetworkError(
                f"{url} returned HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Could not fetch {url}: {e}") from e
        logger.debug("Fetched %d bytes from %s", len(resp.content), url)
        return resp.content

    def close(self) -> None:
        if self._owns_client:
            self._client.close()
