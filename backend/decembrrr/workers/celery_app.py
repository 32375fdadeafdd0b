# backend/decembrrr/workers/celery_app.py
from __future__ import annotations

from celery import Celery
from celery.schedules import crontab

from ..config import settings

celery_app = Celery(
    "decembrrr",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["decembrrr.workers.tasks"],
)

celery_app.conf.update(
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_reject_on_worker_lost=True,
    task_track_started=True,
    # beat fires in the same zone the deduction target date is computed in
    timezone=settings.deduction_timezone,
    enable_utc=True,
)

celery_app.conf.task_routes = {
    "decembrrr.workers.tasks.*": {"queue": "ledger"},
}

celery_app.conf.beat_schedule = {
    "daily-deduction": {
        "task": "decembrrr.workers.tasks.run_daily_deduction",
        "schedule": crontab(hour=settings.deduction_hour, minute=settings.deduction_minute),
    },
}
