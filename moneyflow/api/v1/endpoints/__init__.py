"""API endpoint modules for v1."""

from moneyflow.api.v1.endpoints import alerts, notifications, preferences, push

__all__ = ["alerts", "notifications", "preferences", "push"]
