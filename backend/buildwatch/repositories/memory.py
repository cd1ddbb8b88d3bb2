"""In-process state repository for local dry runs."""

import threading

from buildwatch.models import Snapshot


class InMemoryStateRepository:
    """Dict-backed implementation of the state repository protocol."""

    def __init__(self, build_id: str | None = None, scripts: dict[str, str] | None = None):
        self.build_id = build_id
        self.scripts = dict(scripts or {})
        self.writes = 0
        self._lock = threading.Lock()

    def get_last_build_id(self) -> str | None:
        return self.build_id

    def get_last_scripts(self) -> dict[str, str]:
        return dict(self.scripts)

    def put_last_build_id(self, build_id: str) -> None:
        self.build_id = build_id
        self.writes += 1

    def put_last_scripts(self, scripts: dict[str, str]) -> None:
        self.scripts = dict(scripts)
        self.writes += 1

    def save_snapshot(self, snapshot: Snapshot) -> None:
        self.put_last_build_id(snapshot.build_id)
        self.put_last_scripts(snapshot.scripts)

    def run_lock(self, timeout: int) -> threading.Lock:
        """Process-local stand-in for the redis lease; timeout is ignored."""
        return self._lock
