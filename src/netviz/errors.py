"""Error kinds raised by the feed pipeline.

Every error carries a user-facing message (``str(exc)``) that the
controller hands back verbatim. Callers that need to branch on the kind
catch the specific subclass; everything else catches ``FeedError``.

    FeedError
    ├── ValidationError
    │   ├── EmptyIntervalError
    │   ├── MalformedIntervalError
    │   ├── IntervalOutOfRangeError
    │   └── InvalidSourceError
    ├── FetchError
    │   ├── NotFoundError
    │   └── NetworkError
    └── ParseError
"""

from __future__ import annotations


class FeedError(Exception):
    """Base class for every recoverable feed failure."""

    kind = "error"


class ValidationError(FeedError):
    """User input was rejected before any I/O happened."""

    kind = "validation"


class EmptyIntervalError(ValidationError):
    def __init__(self) -> None:
        super().__init__("Input field cannot be empty. Please enter a valid time value.")


class MalformedIntervalError(ValidationError):
    pass


class IntervalOutOfRangeError(ValidationError):
    def __init__(self, seconds: int, low: int, high: int) -> None:
        self.seconds = seconds
        super().__init__(
            f"Time value must be between {low} second and {high // 60} minutes "
            f"(got {seconds} seconds)."
        )


class InvalidSourceError(ValidationError):
    """A path or URL does not look like a feed document."""


class FetchError(FeedError):
    """The raw document could not be retrieved."""

    kind = "fetch"


class NotFoundError(FetchError):
    pass


class NetworkError(FetchError):
    pass


class ParseError(FeedError):
    """The document was retrieved but is not usable GeoJSON."""

    kind = "parse"
