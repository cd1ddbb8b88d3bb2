"""Repository implementations for data access."""

from buildwatch.repositories.base import StateRepository
from buildwatch.repositories.memory import InMemoryStateRepository
from buildwatch.repositories.redis_state import RedisStateRepository

__all__ = [
    "StateRepository",
    "InMemoryStateRepository",
    "RedisStateRepository",
]
