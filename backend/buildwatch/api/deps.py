"""Dependency injection for FastAPI routes."""

from typing import Annotated

from fastapi import Depends

from buildwatch.config import Settings, get_settings
from buildwatch.repositories import RedisStateRepository, StateRepository
from buildwatch.services.monitor import BuildMonitor, get_build_monitor
from buildwatch.services.notifier import DiscordNotifier

AppSettings = Annotated[Settings, Depends(get_settings)]


def get_state_store(settings: AppSettings) -> StateRepository:
    return RedisStateRepository.from_settings(settings)


StateStore = Annotated[StateRepository, Depends(get_state_store)]


def get_monitor(settings: AppSettings, store: StateStore) -> BuildMonitor:
    return get_build_monitor(settings, store=store)


def get_notifier(settings: AppSettings) -> DiscordNotifier:
    return DiscordNotifier(settings)


# Type aliases for dependency injection
Monitor = Annotated[BuildMonitor, Depends(get_monitor)]
Notifier = Annotated[DiscordNotifier, Depends(get_notifier)]
