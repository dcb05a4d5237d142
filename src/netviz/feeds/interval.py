"""Poll interval validation.

Turns the raw text + unit pair typed by a user into a ``PollInterval``.
The accepted range is 1 second to 5 minutes inclusive. Empty input,
malformed input and out-of-range values raise different errors so the
caller can word its message accordingly.
"""

from __future__ import annotations

from dataclasses import dataclass

from netviz.errors import (
    EmptyIntervalError,
    IntervalOutOfRangeError,
    MalformedIntervalError,
)

MIN_SECONDS = 1
MAX_SECONDS = 300

# unit name -> seconds per unit
UNITS = {
    "seconds": 1,
    "minutes": 60,
}


@dataclass(frozen=True)
class PollInterval:
    """A validated poll period in whole seconds."""

    seconds: int

    def __post_init__(self) -> None:
        if not MIN_SECONDS <= self.seconds <= MAX_SECONDS:
            raise IntervalOutOfRangeError(self.seconds, MIN_SECONDS, MAX_SECONDS)

    def __str__(self) -> str:
        return f"{self.seconds} seconds"


def validate_interval(raw_text: str | None, unit: str) -> PollInterval:
    """Validate a user-supplied interval.

    Args:
        raw_text: The number as typed, e.g. ``"5"``.
        unit: ``"seconds"`` or ``"minutes"``.

    Returns:
        The PollInterval in seconds.

    Raises:
        EmptyIntervalError: ``raw_text`` is empty or blank.
        MalformedIntervalError: not a positive integer, or unknown unit.
        IntervalOutOfRangeError: converted value is outside [1, 300] seconds.
    """
    text = (raw_text or "").strip()
    if not text:
        raise EmptyIntervalError()

    if unit not in UNITS:
        raise MalformedIntervalError(
            f"Unknown time unit '{unit}'. Choose one of: {', '.join(UNITS)}."
        )

    # isdigit() rejects signs, decimals and exponents
    if not text.isascii() or not text.isdigit():
        raise MalformedIntervalError(f"'{text}' is not a whole number.")

    value = int(text)
    if value <= 0:
        raise MalformedIntervalError("Time value must be a positive number.")

    seconds = value * UNITS[unit]
    if not MIN_SECONDS <= seconds <= MAX_SECONDS:
        raise IntervalOutOfRangeError(seconds, MIN_SECONDS, MAX_SECONDS)
    return PollInterval(seconds)
