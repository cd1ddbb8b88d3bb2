"""Parse the build identifier and chunk references out of a Next.js page."""

import logging
import re
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

BUILD_ID_PATTERN = re.compile(r'"buildId":"([^"]+)"')
SCRIPT_SRC_PATTERN = re.compile(r'src="(/_next/static/chunks/[^"]+\.js)"')


class MissingBuildIdentifier(Exception):
    """The page markup carries no build identifier."""


@dataclass
class PageData:
    """What one page fetch tells us about the deployed build."""
    markup: str
    build_id: str | None
    script_paths: list[str] = field(default_factory=list)


def extract_build_id(markup: str) -> str | None:
    """Return the first ``"buildId":"..."`` token, or None if absent."""
    match = BUILD_ID_PATTERN.search(markup)
    return match.group(1) if match else None


def extract_script_paths(markup: str) -> list[str]:
    """Return chunk script paths in order of appearance."""
    return SCRIPT_SRC_PATTERN.findall(markup)


def parse_page(markup: str) -> PageData:
    """Extract build identifier and script references from page markup."""
    build_id = extract_build_id(markup)
    script_paths = extract_script_paths(markup)
    logger.debug(f"Parsed page: build_id={build_id}, {len(script_paths)} chunk scripts")
    return PageData(markup=markup, build_id=build_id, script_paths=script_paths)


def require_build_id(page: PageData) -> str:
    """Return the page's build identifier or raise MissingBuildIdentifier."""
    if not page.build_id:
        raise MissingBuildIdentifier("No buildId marker found in page markup")
    return page.build_id
