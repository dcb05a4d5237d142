"""Feed loading and live polling.

RefreshController is the entry point; the rest are its collaborators.
"""

from netviz.feeds.controller import ActionResult, RefreshController
from netviz.feeds.interval import PollInterval, validate_interval
from netviz.feeds.scheduler import PollScheduler, SchedulerState
from netviz.feeds.source import FileSource, LiveSource

__all__ = [
    "ActionResult",
    "FileSource",
    "LiveSource",
    "PollInterval",
    "PollScheduler",
    "RefreshController",
    "SchedulerState",
    "validate_interval",
]
