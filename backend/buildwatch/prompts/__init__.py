"""LLM prompts for various tasks."""

from buildwatch.prompts.patch_summary import PATCH_SUMMARY_PROMPT

__all__ = [
    "PATCH_SUMMARY_PROMPT",
]
