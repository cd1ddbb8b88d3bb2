"""Observed state of the monitored site at one point in time."""

from dataclasses import dataclass, field


@dataclass
class Snapshot:
    """A build identifier plus its chunk contents keyed by canonical name.

    A snapshot without a build_id is never persisted or compared.
    """
    build_id: str
    scripts: dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if not self.build_id:
            raise ValueError("Snapshot requires a non-empty build_id")
