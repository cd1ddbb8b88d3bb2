"""Build change monitor: detect a new deployment, summarize it, notify.

One run walks fetch -> build id gate -> script download -> compare with the
stored snapshot and ends in exactly one outcome:

- BOOTSTRAP: nothing stored yet; persist the snapshot, no notification
- NO_CHANGE: build id matches the stored one; nothing is written
- CHANGED: diff, summarize, notify, then persist the new snapshot
- ABORTED: the page has no build id; nothing is written

The build id is the only change trigger. Script differences under the same
build id never produce a notification.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from buildwatch.config import Settings
from buildwatch.models import Snapshot
from buildwatch.repositories import RedisStateRepository, StateRepository
from buildwatch.services.build_parser import MissingBuildIdentifier, parse_page, require_build_id
from buildwatch.services.differ import generate_diff
from buildwatch.services.fetcher import PageFetcher, origin_of
from buildwatch.services.notifier import DiscordNotifier, NotificationError
from buildwatch.services.summarizer import PatchSummarizer

logger = logging.getLogger(__name__)


class RunOutcome(str, Enum):
    BOOTSTRAP = "bootstrap"
    NO_CHANGE = "no_change"
    CHANGED = "changed"
    ABORTED = "aborted"
    FAILED = "failed"  # run ended by an unexpected error, nothing written


@dataclass
class RunResult:
    """What a single monitoring run did."""
    outcome: RunOutcome
    build_id: str | None = None
    previous_build_id: str | None = None
    diff_text: str | None = None
    summary: str | None = None
    notified: bool = False
    dropped_scripts: list[str] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "outcome": self.outcome.value,
            "build_id": self.build_id,
            "previous_build_id": self.previous_build_id,
            "summary": self.summary,
            "notified": self.notified,
            "dropped_scripts": self.dropped_scripts,
            "error": self.error,
        }


class BuildMonitor:
    """Runs the detection pipeline against injected collaborators."""

    def __init__(
        self,
        target_url: str,
        fetcher: PageFetcher,
        store: StateRepository,
        summarizer: PatchSummarizer,
        notifier: DiscordNotifier,
    ):
        self.target_url = target_url
        self.fetcher = fetcher
        self.store = store
        self.summarizer = summarizer
        self.notifier = notifier

    async def run(self) -> RunResult:
        """Run the pipeline once. FetchError on the page fetch propagates."""
        markup = await self.fetcher.fetch_page(self.target_url)
        page = parse_page(markup)

        try:
            build_id = require_build_id(page)
        except MissingBuildIdentifier as e:
            logger.warning(f"{e} at {self.target_url}; skipping run")
            return RunResult(outcome=RunOutcome.ABORTED)

        scripts = await self.fetcher.fetch_scripts(origin_of(self.target_url), page.script_paths)
        snapshot = Snapshot(build_id=build_id, scripts=scripts.contents)
        dropped = scripts.dropped_paths

        last_build_id = self.store.get_last_build_id()

        if not last_build_id:
            logger.info(f"Monitoring bootstrapped, first BuildID: {build_id}")
            self.store.save_snapshot(snapshot)
            return RunResult(
                outcome=RunOutcome.BOOTSTRAP,
                build_id=build_id,
                dropped_scripts=dropped,
            )

        if build_id == last_build_id:
            logger.info(f"No update, current build: {build_id}")
            return RunResult(
                outcome=RunOutcome.NO_CHANGE,
                build_id=build_id,
                previous_build_id=last_build_id,
                dropped_scripts=dropped,
            )

        logger.info(f"New build detected: {last_build_id} -> {build_id}")
        last_scripts = self.store.get_last_scripts()

        diff_text = generate_diff(last_scripts, snapshot.scripts)
        logger.info(f"Diff text ({len(diff_text)} chars):\n{diff_text}")

        logger.info("Requesting AI patch summary...")
        summary = await asyncio.to_thread(self.summarizer.summarize, diff_text)

        notified = False
        try:
            await asyncio.to_thread(self.notifier.notify, last_build_id, build_id, summary)
            notified = True
        except NotificationError as e:
            # State still advances so the same transition is not reprocessed
            logger.error(f"Notification failed for {last_build_id} -> {build_id}: {e}")
        except Exception:
            logger.exception(f"Unexpected notifier failure for {last_build_id} -> {build_id}")

        self.store.save_snapshot(snapshot)

        return RunResult(
            outcome=RunOutcome.CHANGED,
            build_id=build_id,
            previous_build_id=last_build_id,
            diff_text=diff_text,
            summary=summary,
            notified=notified,
            dropped_scripts=dropped,
        )

    async def check(self) -> RunResult:
        """Run the pipeline, logging and swallowing any failure."""
        try:
            return await self.run()
        except Exception as e:
            logger.exception(f"Build check failed for {self.target_url}: {e}")
            return RunResult(outcome=RunOutcome.FAILED, error=str(e))


def get_build_monitor(settings: Settings, store: StateRepository | None = None) -> BuildMonitor:
    """Factory: wire a BuildMonitor from settings."""
    if store is None:
        store = RedisStateRepository.from_settings(settings)
    return BuildMonitor(
        target_url=settings.target_url,
        fetcher=PageFetcher(settings),
        store=store,
        summarizer=PatchSummarizer(settings),
        notifier=DiscordNotifier(settings),
    )
