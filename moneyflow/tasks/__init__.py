"""Celery tasks package."""

from moneyflow.tasks import notifications

__all__ = ["notifications"]
