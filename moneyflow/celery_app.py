"""Celery application instance and configuration."""
from __future__ import annotations

from celery import Celery
from celery.schedules import crontab

from moneyflow.config import settings


def _resolve_broker_url() -> str:
    if settings.CELERY_BROKER_URL is not None:
        return str(settings.CELERY_BROKER_URL)
    return str(settings.REDIS_URL)


def _resolve_result_backend() -> str:
    if settings.CELERY_RESULT_BACKEND is not None:
        return str(settings.CELERY_RESULT_BACKEND)
    return str(settings.REDIS_URL)


celery_app = Celery(
    "money_flow_notifications",
    broker=_resolve_broker_url(),
    backend=_resolve_result_backend(),
    include=["moneyflow.tasks.notifications"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone=settings.ALERT_TIMEZONE,
    enable_utc=True,
    task_track_started=True,
    task_time_limit=30 * 60,
    task_soft_time_limit=25 * 60,
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=1000,
)

celery_app.conf.beat_schedule = {
    "send-expense-reminders": {
        "task": "moneyflow.tasks.notifications.run_scheduled_alerts",
        "schedule": crontab(hour=9, minute=0),
        "args": (["expense_reminder"],),
    },
    "send-budget-alerts": {
        "task": "moneyflow.tasks.notifications.run_scheduled_alerts",
        "schedule": crontab(hour=20, minute=0),
        "args": (["budget_alert"],),
    },
    "send-weekly-reports": {
        "task": "moneyflow.tasks.notifications.run_scheduled_alerts",
        "schedule": crontab(hour=18, minute=0, day_of_week=6),  # Saturday, last day of a Sunday week
        "args": (["weekly_report"],),
    },
    "send-monthly-reports": {
        "task": "moneyflow.tasks.notifications.run_scheduled_alerts",
        "schedule": crontab(hour=19, minute=0, day_of_month=28),
        "args": (["monthly_report"],),
    },
}

__all__ = ["celery_app"]
