"""Celery task definitions.

These tasks are thin wrappers that call into the service layer.
The actual business logic lives in the services module.
"""

import asyncio
import logging

from redis.exceptions import LockError

from buildwatch.config import get_settings
from buildwatch.repositories import RedisStateRepository
from buildwatch.services.monitor import get_build_monitor
from buildwatch.services.notifier import DiscordNotifier, NotificationError
from buildwatch.workers.celery_app import celery_app

settings = get_settings()
logger = logging.getLogger(__name__)


@celery_app.task(soft_time_limit=240, time_limit=300)
def check_target_build() -> dict:
    """Periodic task: run one build check under the overlap lock.

    Runs via Celery Beat every ``check_interval_minutes``. If a previous run
    still holds the lock this run is skipped without touching state.
    """
    store = RedisStateRepository.from_settings(settings)
    lock = store.run_lock(settings.run_lock_timeout_seconds)

    if not lock.acquire(blocking=False):
        logger.info("Previous build check still running, skipping")
        return {"skipped": True, "reason": "run_in_progress"}

    try:
        monitor = get_build_monitor(settings, store=store)
        result = asyncio.run(monitor.check())
        return result.to_dict()
    except Exception as e:
        logger.error(f"check_target_build failed: {e}")
        return {"error": str(e)}
    finally:
        try:
            lock.release()
        except LockError as e:
            # Lease expired mid-run; another run may already own it
            logger.warning(f"Could not release run lock: {e}")


@celery_app.task
def send_test_notification() -> dict:
    """Send the fixed diagnostic notification, bypassing detection."""
    try:
        DiscordNotifier(settings).send_test_notification()
    except NotificationError as e:
        logger.error(f"Test notification failed: {e}")
        return {"sent": False, "error": str(e)}
    return {"sent": True}
