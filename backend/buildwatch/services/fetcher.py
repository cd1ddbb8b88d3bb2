"""HTTP fetching for the monitored page and its chunk scripts."""

import asyncio
import logging
from dataclasses import dataclass, field
from urllib.parse import urlparse

import httpx

from buildwatch.config import Settings
from buildwatch.services.normalizer import normalize_scripts

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """The monitored page could not be retrieved."""

    def __init__(self, url: str, status_code: int | None = None, message: str = ""):
        self.url = url
        self.status_code = status_code
        detail = message or (f"HTTP error! status: {status_code}" if status_code else "request failed")
        super().__init__(f"{detail} ({url})")


class ScriptDownloadError(Exception):
    """A single chunk script could not be downloaded."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to download {path}: {reason}")


@dataclass
class ScriptFetchResult:
    """Outcome of one fan-out of script downloads.

    ``contents`` is keyed by canonical module name; ``failures`` by the
    original path that could not be fetched.
    """
    contents: dict[str, str] = field(default_factory=dict)
    failures: dict[str, ScriptDownloadError] = field(default_factory=dict)

    @property
    def dropped_paths(self) -> list[str]:
        return list(self.failures)


def origin_of(url: str) -> str:
    """Return ``scheme://host[:port]`` for a URL."""
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"


class PageFetcher:
    """Retrieves page markup and chunk contents over httpx."""

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.user_agent = settings.user_agent
        self.timeout = settings.request_timeout_seconds
        self.concurrency = max(1, settings.script_concurrency)
        # Injected in tests (httpx.MockTransport)
        self._transport = transport

    def _client(self, **kwargs) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=self._transport,
            timeout=self.timeout,
            follow_redirects=True,
            **kwargs,
        )

    async def fetch_page(self, url: str) -> str:
        """Fetch the page body, raising FetchError on non-2xx or transport errors."""
        headers = {"User-Agent": self.user_agent}
        try:
            async with self._client(headers=headers) as client:
                response = await client.get(url)
        except httpx.RequestError as e:
            logger.error(f"Page request failed for {url}: {e}")
            raise FetchError(url, message=str(e)) from e

        if not response.is_success:
            logger.error(f"Page fetch returned {response.status_code} for {url}")
            raise FetchError(url, status_code=response.status_code)

        return response.text

    async def fetch_scripts(self, origin: str, paths: list[str]) -> ScriptFetchResult:
        """Download every chunk concurrently.

        Each download is independent: a failure is recorded in
        ``result.failures`` and the other downloads carry on. No retries.
        """
        result = ScriptFetchResult()
        if not paths:
            return result

        async with self._client() as client:
            semaphore = asyncio.Semaphore(self.concurrency)

            async def fetch_one(path: str) -> tuple[str, str | None, ScriptDownloadError | None]:
                async with semaphore:
                    try:
                        resp = await client.get(f"{origin}{path}")
                        if not resp.is_success:
                            return path, None, ScriptDownloadError(path, f"status {resp.status_code}")
                        return path, resp.text, None
                    except httpx.HTTPError as e:
                        return path, None, ScriptDownloadError(path, str(e) or type(e).__name__)

            outcomes = await asyncio.gather(*[fetch_one(p) for p in paths])

        downloaded: dict[str, str] = {}
        for path, content, error in outcomes:
            if error is not None:
                logger.warning(str(error))
                result.failures[path] = error
            else:
                downloaded[path] = content

        # Page order is kept, so a later path wins a name collision
        result.contents = normalize_scripts(downloaded)

        if result.failures:
            logger.info(
                f"Downloaded {len(result.contents)}/{len(paths)} chunk scripts "
                f"({len(result.failures)} dropped)"
            )
        return result
