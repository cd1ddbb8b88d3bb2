"""Tests for the build monitor pipeline."""

from unittest.mock import AsyncMock, Mock

import httpx
import pytest

from buildwatch.repositories import InMemoryStateRepository
from buildwatch.services.fetcher import FetchError, PageFetcher, ScriptDownloadError, ScriptFetchResult
from buildwatch.services.monitor import BuildMonitor, RunOutcome, get_build_monitor
from buildwatch.services.notifier import NotificationError
from buildwatch.services.summarizer import EMPTY_DIFF_SUMMARY, PatchSummarizer

TARGET_URL = "https://www-test.example.com/"


def seeded_store(build_id="build-1", scripts=None) -> InMemoryStateRepository:
    return InMemoryStateRepository(
        build_id=build_id,
        scripts=scripts if scripts is not None else {"/_next/static/chunks/main.js": "console.log('hi')"},
    )


def make_monitor(fetcher, store, summarizer, notifier) -> BuildMonitor:
    return BuildMonitor(
        target_url=TARGET_URL,
        fetcher=fetcher,
        store=store,
        summarizer=summarizer,
        notifier=notifier,
    )


class TestBootstrap:
    """First run against an empty store."""

    @pytest.mark.asyncio
    async def test_persists_without_notifying(self, monitor, store, mock_notifier, mock_summarizer):
        result = await monitor.run()

        assert result.outcome == RunOutcome.BOOTSTRAP
        assert result.build_id == "build-2"
        assert store.get_last_build_id() == "build-2"
        assert store.get_last_scripts() == {"/_next/static/chunks/main.js": "console.log('hello world')"}
        mock_notifier.notify.assert_not_called()
        mock_summarizer.summarize.assert_not_called()

    @pytest.mark.asyncio
    async def test_second_identical_run_is_no_change(self, monitor, store, mock_notifier):
        await monitor.run()
        writes_after_bootstrap = store.writes

        result = await monitor.run()

        assert result.outcome == RunOutcome.NO_CHANGE
        assert store.writes == writes_after_bootstrap
        mock_notifier.notify.assert_not_called()


class TestNoChange:
    """Stored build id matches the page."""

    @pytest.mark.asyncio
    async def test_differing_scripts_same_build_is_no_change(
        self, mock_fetcher, mock_summarizer, mock_notifier
    ):
        store = seeded_store(build_id="build-2", scripts={"/_next/static/chunks/main.js": "totally different"})
        monitor = make_monitor(mock_fetcher, store, mock_summarizer, mock_notifier)

        result = await monitor.run()

        assert result.outcome == RunOutcome.NO_CHANGE
        assert store.get_last_scripts() == {"/_next/static/chunks/main.js": "totally different"}
        assert store.writes == 0
        mock_summarizer.summarize.assert_not_called()
        mock_notifier.notify.assert_not_called()

    @pytest.mark.asyncio
    async def test_stored_scripts_are_not_read(self, mock_fetcher, mock_summarizer, mock_notifier):
        store = seeded_store(build_id="build-2")
        store.get_last_scripts = Mock(wraps=store.get_last_scripts)
        monitor = make_monitor(mock_fetcher, store, mock_summarizer, mock_notifier)

        await monitor.run()

        store.get_last_scripts.assert_not_called()


class TestChanged:
    """A new build id was deployed."""

    @pytest.mark.asyncio
    async def test_diff_summarize_notify_persist(self, mock_fetcher, mock_summarizer, mock_notifier):
        store = seeded_store()
        monitor = make_monitor(mock_fetcher, store, mock_summarizer, mock_notifier)

        result = await monitor.run()

        assert result.outcome == RunOutcome.CHANGED
        assert result.previous_build_id == "build-1"
        assert result.build_id == "build-2"
        assert result.notified is True
        assert "--- Module changed: /_next/static/chunks/main.js ---" in result.diff_text
        assert "[Added keywords/strings]: 'hello, world'\n" in result.diff_text
        assert "[Removed keywords/strings]: 'hi'\n" in result.diff_text

        mock_summarizer.summarize.assert_called_once_with(result.diff_text)
        mock_notifier.notify.assert_called_once_with("build-1", "build-2", "Added a greeting.")
        assert store.get_last_build_id() == "build-2"
        assert store.get_last_scripts() == {"/_next/static/chunks/main.js": "console.log('hello world')"}

    @pytest.mark.asyncio
    async def test_persist_happens_after_notification(self, mock_fetcher, mock_summarizer):
        store = seeded_store()
        order = []
        notifier = Mock()
        notifier.notify.side_effect = lambda *args: order.append(("notify", store.get_last_build_id()))
        monitor = make_monitor(mock_fetcher, store, mock_summarizer, notifier)

        await monitor.run()

        assert order == [("notify", "build-1")]
        assert store.get_last_build_id() == "build-2"

    @pytest.mark.asyncio
    async def test_notification_failure_still_persists(self, mock_fetcher, mock_summarizer):
        store = seeded_store()
        notifier = Mock()
        notifier.notify.side_effect = NotificationError("webhook down")
        monitor = make_monitor(mock_fetcher, store, mock_summarizer, notifier)

        result = await monitor.run()

        assert result.outcome == RunOutcome.CHANGED
        assert result.notified is False
        assert store.get_last_build_id() == "build-2"
        notifier.notify.assert_called_once()

    @pytest.mark.asyncio
    async def test_unexpected_notifier_error_still_persists(self, mock_fetcher, mock_summarizer):
        store = seeded_store()
        notifier = Mock()
        notifier.notify.side_effect = RuntimeError("unexpected")
        monitor = make_monitor(mock_fetcher, store, mock_summarizer, notifier)

        result = await monitor.run()

        assert result.notified is False
        assert store.get_last_build_id() == "build-2"

    @pytest.mark.asyncio
    async def test_empty_diff_uses_fallback_without_llm_call(self, mock_fetcher, mock_notifier, settings):
        # Same scripts, new build id -> empty diff
        store = seeded_store(scripts={"/_next/static/chunks/main.js": "console.log('hello world')"})
        summarizer = PatchSummarizer(settings)
        summarizer._call_llm = Mock()
        monitor = make_monitor(mock_fetcher, store, summarizer, mock_notifier)

        result = await monitor.run()

        assert result.diff_text == ""
        assert result.summary == EMPTY_DIFF_SUMMARY
        summarizer._call_llm.assert_not_called()
        mock_notifier.notify.assert_called_once_with("build-1", "build-2", EMPTY_DIFF_SUMMARY)

    @pytest.mark.asyncio
    async def test_removed_module_not_in_diff(self, mock_fetcher, mock_summarizer, mock_notifier):
        store = seeded_store(scripts={
            "/_next/static/chunks/main.js": "console.log('hello world')",
            "/_next/static/chunks/legacy.js": "legacyWidget",
        })
        monitor = make_monitor(mock_fetcher, store, mock_summarizer, mock_notifier)

        result = await monitor.run()

        assert "legacy" not in result.diff_text
        assert store.get_last_scripts() == {"/_next/static/chunks/main.js": "console.log('hello world')"}


class TestPartialFailure:
    """Some chunk downloads fail."""

    @pytest.mark.asyncio
    async def test_uses_available_scripts(
        self, settings, store, mock_summarizer, mock_notifier, page_factory
    ):
        paths = [
            "/_next/static/chunks/a-0123456789abcdef.js",
            "/_next/static/chunks/b-0123456789abcdef.js",
            "/_next/static/chunks/c-0123456789abcdef.js",
        ]

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/":
                return httpx.Response(200, text=page_factory("build-9", paths))
            if request.url.path.startswith("/_next/static/chunks/b-"):
                return httpx.Response(500)
            return httpx.Response(200, text=f"body {request.url.path}")

        fetcher = PageFetcher(settings, transport=httpx.MockTransport(handler))
        monitor = make_monitor(fetcher, store, mock_summarizer, mock_notifier)

        result = await monitor.run()

        assert result.outcome == RunOutcome.BOOTSTRAP
        assert sorted(store.get_last_scripts()) == [
            "/_next/static/chunks/a.js",
            "/_next/static/chunks/c.js",
        ]
        assert result.dropped_scripts == ["/_next/static/chunks/b-0123456789abcdef.js"]

    @pytest.mark.asyncio
    async def test_dropped_scripts_reported_on_change(self, mock_fetcher, mock_summarizer, mock_notifier):
        mock_fetcher.fetch_scripts = AsyncMock(return_value=ScriptFetchResult(
            contents={"/_next/static/chunks/main.js": "console.log('hello world')"},
            failures={"/_next/static/chunks/x.js": ScriptDownloadError("/_next/static/chunks/x.js", "timeout")},
        ))
        monitor = make_monitor(mock_fetcher, seeded_store(), mock_summarizer, mock_notifier)

        result = await monitor.run()

        assert result.outcome == RunOutcome.CHANGED
        assert result.dropped_scripts == ["/_next/static/chunks/x.js"]


class TestAbortAndFailure:
    """Early exits leave state untouched."""

    @pytest.mark.asyncio
    async def test_missing_build_id_aborts(self, mock_fetcher, mock_summarizer, mock_notifier, page_factory):
        mock_fetcher.fetch_page = AsyncMock(return_value=page_factory(None, []))
        store = seeded_store()
        monitor = make_monitor(mock_fetcher, store, mock_summarizer, mock_notifier)

        result = await monitor.run()

        assert result.outcome == RunOutcome.ABORTED
        assert store.writes == 0
        assert store.get_last_build_id() == "build-1"
        mock_fetcher.fetch_scripts.assert_not_called()
        mock_notifier.notify.assert_not_called()

    @pytest.mark.asyncio
    async def test_run_propagates_fetch_error(self, mock_fetcher, store, mock_summarizer, mock_notifier):
        mock_fetcher.fetch_page = AsyncMock(side_effect=FetchError(TARGET_URL, status_code=500))
        monitor = make_monitor(mock_fetcher, store, mock_summarizer, mock_notifier)

        with pytest.raises(FetchError):
            await monitor.run()

    @pytest.mark.asyncio
    async def test_check_swallows_fetch_error(self, mock_fetcher, mock_summarizer, mock_notifier):
        mock_fetcher.fetch_page = AsyncMock(side_effect=FetchError(TARGET_URL, status_code=500))
        store = seeded_store()
        monitor = make_monitor(mock_fetcher, store, mock_summarizer, mock_notifier)

        result = await monitor.check()

        assert result.outcome == RunOutcome.FAILED
        assert "500" in result.error
        assert store.writes == 0

    @pytest.mark.asyncio
    async def test_check_swallows_store_error(self, mock_fetcher, mock_summarizer, mock_notifier):
        store = Mock()
        store.get_last_build_id.side_effect = ConnectionError("redis unavailable")
        monitor = make_monitor(mock_fetcher, store, mock_summarizer, mock_notifier)

        result = await monitor.check()

        assert result.outcome == RunOutcome.FAILED
        store.save_snapshot.assert_not_called()

    @pytest.mark.asyncio
    async def test_check_returns_normal_result(self, monitor):
        result = await monitor.check()
        assert result.outcome == RunOutcome.BOOTSTRAP
        assert result.to_dict()["outcome"] == "bootstrap"


class TestFactory:
    """Tests for get_build_monitor."""

    def test_wires_collaborators(self, settings, store):
        monitor = get_build_monitor(settings, store=store)
        assert monitor.target_url == TARGET_URL
        assert monitor.store is store
        assert isinstance(monitor.fetcher, PageFetcher)
        assert isinstance(monitor.summarizer, PatchSummarizer)
