"""On-demand build check routes."""

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Query, status
from redis.exceptions import LockError

from buildwatch.api.deps import AppSettings, Monitor, Notifier, StateStore
from buildwatch.services.notifier import NotificationError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/check")
async def run_check(
    monitor: Monitor,
    notifier: Notifier,
    store: StateStore,
    settings: AppSettings,
    test: bool = Query(False, description="Send a fixed test notification instead of checking"),
) -> dict[str, Any]:
    """Run one build check now, or send the diagnostic notification.

    ``?test=true`` skips detection entirely and posts a fixed message to the
    webhook so the wiring can be verified.
    """
    if test:
        try:
            await asyncio.to_thread(notifier.send_test_notification)
        except NotificationError as e:
            logger.error(f"Test notification failed: {e}")
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail=f"Test notification failed: {e}",
            )
        return {"status": "sent", "message": "Test notification sent to Discord"}

    lock = store.run_lock(settings.run_lock_timeout_seconds)
    if not lock.acquire(blocking=False):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A build check is already running",
        )

    try:
        result = await monitor.check()
    finally:
        try:
            lock.release()
        except LockError as e:
            # Lease expired mid-run; the run itself already finished
            logger.warning(f"Could not release run lock: {e}")

    logger.info(f"Manual build check finished: {result.outcome.value}")
    return {"status": "completed", **result.to_dict()}
