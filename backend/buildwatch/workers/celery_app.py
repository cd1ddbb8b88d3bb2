"""Celery application: scheduled build checks and worker logging."""

import json
import logging
import sys
from datetime import datetime, timezone

from celery import Celery
from celery.schedules import crontab
from celery.signals import setup_logging

from buildwatch.config import get_settings

settings = get_settings()


class JsonFormatter(logging.Formatter):
    """One JSON object per log line, so hosted log viewers pick up levels."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False)


@setup_logging.connect
def configure_logging(**kwargs):
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.INFO)

    for name in ("celery", "buildwatch"):
        named = logging.getLogger(name)
        named.handlers.clear()
        named.addHandler(handler)
        named.setLevel(logging.DEBUG if settings.debug else logging.INFO)
        named.propagate = False


celery_app = Celery(
    "buildwatch",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["buildwatch.workers.tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    # A single worker slot: runs are not meant to overlap
    worker_prefetch_multiplier=1,
    worker_concurrency=1,
    worker_hijack_root_logger=False,
    worker_redirect_stdouts=True,
    worker_redirect_stdouts_level="INFO",
    result_expires=3600,  # 1 hour
    beat_schedule={
        "check-target-build": {
            "task": "buildwatch.workers.tasks.check_target_build",
            "schedule": crontab(minute=f"*/{settings.check_interval_minutes}"),
        },
    },
)
