"""Domain models."""

from buildwatch.models.snapshot import Snapshot

__all__ = [
    "Snapshot",
]
