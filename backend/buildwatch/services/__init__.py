"""Business logic services."""

from buildwatch.services.fetcher import PageFetcher
from buildwatch.services.monitor import BuildMonitor, RunOutcome, RunResult, get_build_monitor
from buildwatch.services.notifier import DiscordNotifier
from buildwatch.services.summarizer import PatchSummarizer

__all__ = [
    "BuildMonitor",
    "DiscordNotifier",
    "PageFetcher",
    "PatchSummarizer",
    "RunOutcome",
    "RunResult",
    "get_build_monitor",
]
