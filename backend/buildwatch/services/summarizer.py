"""LLM summary of a build's keyword diff."""

import logging

import httpx

from buildwatch.config import Settings
from buildwatch.prompts import PATCH_SUMMARY_PROMPT

logger = logging.getLogger(__name__)

EMPTY_DIFF_SUMMARY = "Only minor changes or asset updates; no obvious business logic changes."
UNPARSEABLE_SUMMARY = "Could not parse the update contents."
FAILED_SUMMARY = "AI summary generation failed; please review the changes manually."


class SummarizationError(Exception):
    """The LLM call failed or returned something we cannot use."""


class PatchSummarizer:
    """Summarizes diff text using the configured LLM provider.

    ``summarize`` never raises: every failure maps to one of the fixed
    fallback sentences above.
    """

    def __init__(self, settings: Settings, http_client: httpx.Client | None = None):
        self.settings = settings
        # Injected in tests (httpx.MockTransport)
        self._http_client = http_client
        self._openai_client = None
        self._anthropic_client = None

    def _get_openai_client(self):
        """Lazy load OpenAI client (works with any OpenAI-compatible endpoint)."""
        if self._openai_client is None:
            from openai import OpenAI
            self._openai_client = OpenAI(
                api_key=self.settings.llm_api_key,
                base_url=self.settings.llm_base_url,
                timeout=self.settings.request_timeout_seconds,
                max_retries=0,
                http_client=self._http_client,
            )
        return self._openai_client

    def _get_anthropic_client(self):
        """Lazy load Anthropic client."""
        if self._anthropic_client is None:
            from anthropic import Anthropic
            self._anthropic_client = Anthropic(
                api_key=self.settings.llm_api_key,
                timeout=self.settings.request_timeout_seconds,
                max_retries=0,
                http_client=self._http_client,
            )
        return self._anthropic_client

    def _call_openai(self, prompt: str, model: str) -> str | None:
        """Call a chat-completions endpoint and return the first choice's text."""
        client = self._get_openai_client()

        response = client.chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": prompt}],
            temperature=self.settings.llm_temperature,
        )

        choices = getattr(response, "choices", None) or []
        if not choices:
            return None
        message = getattr(choices[0], "message", None)
        return getattr(message, "content", None)

    def _call_anthropic(self, prompt: str, model: str) -> str | None:
        """Call Anthropic API."""
        client = self._get_anthropic_client()

        response = client.messages.create(
            model=model,
            max_tokens=256,
            messages=[{"role": "user", "content": prompt}],
            temperature=self.settings.llm_temperature,
        )

        content = getattr(response, "content", None) or []
        if not content:
            return None
        return getattr(content[0], "text", None)

    def _call_llm(self, prompt: str) -> str | None:
        """Call configured LLM provider."""
        provider = self.settings.llm_provider
        model = self.settings.llm_model

        logger.info(f"Calling {provider} {model}...")

        try:
            if provider == "openai":
                return self._call_openai(prompt, model)
            elif provider == "anthropic":
                return self._call_anthropic(prompt, model)
        except Exception as e:
            raise SummarizationError(f"{provider} call failed: {e}") from e
        raise SummarizationError(f"Unknown LLM provider: {provider}")

    def summarize(self, diff_text: str) -> str:
        """Return a one-sentence summary of ``diff_text``.

        Empty diffs short-circuit to EMPTY_DIFF_SUMMARY without an API call.
        """
        if not diff_text.strip():
            return EMPTY_DIFF_SUMMARY

        prompt = PATCH_SUMMARY_PROMPT.format(diff_text=diff_text)

        try:
            text = self._call_llm(prompt)
        except SummarizationError as e:
            logger.error(f"AI summary failed: {e}")
            return FAILED_SUMMARY

        if not isinstance(text, str) or not text.strip():
            logger.warning("LLM response had no usable text content")
            return UNPARSEABLE_SUMMARY
        return text.strip()
