"""Redis implementation of the state repository.

Keys:
- LAST_BUILD_ID - raw build identifier of the last accepted snapshot
- LAST_JS_FILES - JSON object of canonical module name -> script content
"""

import json
import logging

import redis

from buildwatch.config import Settings
from buildwatch.models import Snapshot

logger = logging.getLogger(__name__)

LAST_BUILD_ID_KEY = "LAST_BUILD_ID"
LAST_JS_FILES_KEY = "LAST_JS_FILES"
RUN_LOCK_KEY = "buildwatch:run-lock"


class RedisStateRepository:
    """Stores the last accepted snapshot in two redis string keys."""

    def __init__(self, client: redis.Redis, key_prefix: str = ""):
        self.redis = client
        self.build_id_key = f"{key_prefix}{LAST_BUILD_ID_KEY}"
        self.scripts_key = f"{key_prefix}{LAST_JS_FILES_KEY}"
        self.lock_key = f"{key_prefix}{RUN_LOCK_KEY}"

    @classmethod
    def from_settings(cls, settings: Settings) -> "RedisStateRepository":
        client = redis.from_url(settings.redis_url, decode_responses=True)
        return cls(client, key_prefix=settings.state_key_prefix)

    def get_last_build_id(self) -> str | None:
        """Get the stored build identifier, or None before the first run."""
        return self.redis.get(self.build_id_key) or None

    def get_last_scripts(self) -> dict[str, str]:
        """Get the stored module contents, or {} if absent or unreadable."""
        raw = self.redis.get(self.scripts_key)
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring unreadable {self.scripts_key}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring {self.scripts_key}: expected object, got {type(data).__name__}")
            return {}
        return data

    def put_last_build_id(self, build_id: str) -> None:
        self.redis.set(self.build_id_key, build_id)

    def put_last_scripts(self, scripts: dict[str, str]) -> None:
        self.redis.set(self.scripts_key, json.dumps(scripts, ensure_ascii=False))

    def save_snapshot(self, snapshot: Snapshot) -> None:
        """Write build id and scripts together in one MULTI/EXEC."""
        pipe = self.redis.pipeline(transaction=True)
        pipe.set(self.build_id_key, snapshot.build_id)
        pipe.set(self.scripts_key, json.dumps(snapshot.scripts, ensure_ascii=False))
        pipe.execute()
        logger.info(f"Persisted snapshot {snapshot.build_id} ({len(snapshot.scripts)} modules)")

    def run_lock(self, timeout: int):
        """Lease guarding against overlapping runs; acquire with blocking=False."""
        return self.redis.lock(self.lock_key, timeout=timeout)
