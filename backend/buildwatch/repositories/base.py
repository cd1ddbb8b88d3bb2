"""Repository protocol for the persisted monitoring state."""

from typing import Any, Protocol

from buildwatch.models import Snapshot


class StateRepository(Protocol):
    """Key-value access to the last accepted snapshot.

    A store that has never been written returns None / {} from both reads.
    """

    def get_last_build_id(self) -> str | None: ...

    def get_last_scripts(self) -> dict[str, str]: ...

    def put_last_build_id(self, build_id: str) -> None: ...

    def put_last_scripts(self, scripts: dict[str, str]) -> None: ...

    def save_snapshot(self, snapshot: Snapshot) -> None: ...

    def run_lock(self, timeout: int) -> Any:
        """Lease object with ``acquire(blocking=False)`` and ``release()``."""
        ...
