"""Map hashed chunk filenames to stable module names.

Next.js emits chunks like ``page-f771e2c1298902e1.js``; the hash changes on
every build even when the module is the same. Stripping it lets us compare
``page.js`` across deployments.

Precondition: content hashes are at least 16 lowercase hex characters. Two
paths that normalize to the same name overwrite each other (last one wins).
"""

import re

HASH_SUFFIX_PATTERN = re.compile(r"-[a-f0-9]{16,}\.js$")


def canonical_name(path: str) -> str:
    """Strip a trailing content hash: ``a/page-<hex>.js`` -> ``a/page.js``."""
    return HASH_SUFFIX_PATTERN.sub(".js", path)


def normalize_scripts(contents: dict[str, str]) -> dict[str, str]:
    """Re-key a path -> content mapping by canonical module name."""
    normalized: dict[str, str] = {}
    for path, content in contents.items():
        normalized[canonical_name(path)] = content
    return normalized
