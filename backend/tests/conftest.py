"""Pytest configuration and shared fixtures."""

from unittest.mock import AsyncMock, Mock

import pytest

from buildwatch.config import Settings
from buildwatch.repositories import InMemoryStateRepository
from buildwatch.services.fetcher import ScriptFetchResult
from buildwatch.services.monitor import BuildMonitor

TARGET_URL = "https://www-test.example.com/"


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from any local .env file."""
    return Settings(
        _env_file=None,
        target_url=TARGET_URL,
        discord_webhook_url="https://discord.example.com/api/webhooks/1/abc",
        llm_api_key="test-key",
        llm_base_url="https://llm.example.com/v1",
        redis_url="redis://localhost:6379/15",
    )


# ============================================================================
# Page Fixtures
# ============================================================================


def make_page(build_id: str | None, scripts: list[str]) -> str:
    """Render minimal Next.js-style markup."""
    tags = "".join(f'<script src="{s}" defer=""></script>' for s in scripts)
    data = f'{{"props":{{}},"buildId":"{build_id}","isFallback":false}}' if build_id else '{"props":{}}'
    return (
        f"<html><head>{tags}</head><body>"
        f'<script id="__NEXT_DATA__" type="application/json">{data}</script>'
        f"</body></html>"
    )


@pytest.fixture
def page_factory():
    """Fixture that provides the make_page helper."""
    return make_page


# ============================================================================
# Collaborator Fixtures
# ============================================================================


@pytest.fixture
def store() -> InMemoryStateRepository:
    """Empty state store (bootstrap state)."""
    return InMemoryStateRepository()


@pytest.fixture
def mock_fetcher() -> Mock:
    """Fetcher returning a page with build "build-2" and one chunk."""
    fetcher = Mock()
    fetcher.fetch_page = AsyncMock(
        return_value=make_page("build-2", ["/_next/static/chunks/main-0123456789abcdef.js"])
    )
    fetcher.fetch_scripts = AsyncMock(
        return_value=ScriptFetchResult(contents={"/_next/static/chunks/main.js": "console.log('hello world')"})
    )
    return fetcher


@pytest.fixture
def mock_summarizer() -> Mock:
    summarizer = Mock()
    summarizer.summarize = Mock(return_value="Added a greeting.")
    return summarizer


@pytest.fixture
def mock_notifier() -> Mock:
    notifier = Mock()
    notifier.notify = Mock(return_value=None)
    return notifier


@pytest.fixture
def monitor(mock_fetcher, store, mock_summarizer, mock_notifier) -> BuildMonitor:
    return BuildMonitor(
        target_url=TARGET_URL,
        fetcher=mock_fetcher,
        store=store,
        summarizer=mock_summarizer,
        notifier=mock_notifier,
    )
