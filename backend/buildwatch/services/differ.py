"""Lexical token-set diff between two builds' chunk scripts.

This is a heuristic signal for the summarizer, not a real diff: each module
is reduced to the set of identifiers and string literals it contains, and we
report which ones appeared or disappeared. Modules removed from the new
build are not reported.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum

logger = logging.getLogger(__name__)

# Anything outside identifiers, quotes and CJK ideographs separates tokens
TOKEN_SPLIT_PATTERN = re.compile(r"[^a-zA-Z0-9_'\"\u4e00-\u9fa5]+")

MIN_TOKEN_LENGTH = 4
MAX_TOKENS_PER_LIST = 40
MAX_DIFF_CHARS = 3000


class ModuleStatus(str, Enum):
    ADDED = "added"
    UNCHANGED = "unchanged"
    CHANGED = "changed"


@dataclass
class ModuleDiff:
    """Per-module comparison result for one run."""
    name: str
    status: ModuleStatus
    added_tokens: list[str] = field(default_factory=list)
    removed_tokens: list[str] = field(default_factory=list)

    @property
    def has_token_changes(self) -> bool:
        return bool(self.added_tokens or self.removed_tokens)


def tokenize(content: str) -> dict[str, None]:
    """Split content into unique tokens, keeping first-seen order.

    Returned as a dict so membership checks are O(1) and iteration order is
    deterministic.
    """
    return dict.fromkeys(t for t in TOKEN_SPLIT_PATTERN.split(content) if t)


def _token_delta(source: dict[str, None], other: dict[str, None]) -> list[str]:
    """Tokens in ``source`` missing from ``other``, longer than 3 chars."""
    return [t for t in source if t not in other and len(t) >= MIN_TOKEN_LENGTH]


def compare_modules(old_files: dict[str, str], new_files: dict[str, str]) -> list[ModuleDiff]:
    """Classify every module of the new build against the old one."""
    diffs: list[ModuleDiff] = []
    for name, new_content in new_files.items():
        if name not in old_files:
            diffs.append(ModuleDiff(name=name, status=ModuleStatus.ADDED))
            continue

        old_content = old_files[name]
        if old_content == new_content:
            diffs.append(ModuleDiff(name=name, status=ModuleStatus.UNCHANGED))
            continue

        old_tokens = tokenize(old_content)
        new_tokens = tokenize(new_content)
        diffs.append(ModuleDiff(
            name=name,
            status=ModuleStatus.CHANGED,
            added_tokens=_token_delta(new_tokens, old_tokens),
            removed_tokens=_token_delta(old_tokens, new_tokens),
        ))
    return diffs


def render_diff(diffs: list[ModuleDiff]) -> str:
    """Render module diffs as the text block handed to the summarizer."""
    parts: list[str] = []
    for diff in diffs:
        if diff.status == ModuleStatus.ADDED:
            parts.append(f"\n[Added module] {diff.name}\n")
        elif diff.status == ModuleStatus.CHANGED and diff.has_token_changes:
            block = f"\n--- Module changed: {diff.name} ---\n"
            if diff.added_tokens:
                block += f"[Added keywords/strings]: {', '.join(diff.added_tokens[:MAX_TOKENS_PER_LIST])}\n"
            if diff.removed_tokens:
                block += f"[Removed keywords/strings]: {', '.join(diff.removed_tokens[:MAX_TOKENS_PER_LIST])}\n"
            parts.append(block)
    # Hard cutoff, may end mid-token
    return "".join(parts)[:MAX_DIFF_CHARS]


def generate_diff(old_files: dict[str, str], new_files: dict[str, str]) -> str:
    """Compare two builds and return the truncated diff text."""
    diffs = compare_modules(old_files, new_files)
    changed = sum(1 for d in diffs if d.status == ModuleStatus.CHANGED)
    added = sum(1 for d in diffs if d.status == ModuleStatus.ADDED)
    logger.info(f"Compared {len(diffs)} modules: {added} added, {changed} changed")
    return render_diff(diffs)
