"""Database models package."""
from moneyflow.db.models.finance import Expense, Income
from moneyflow.db.models.notification_history import NotificationHistory
from moneyflow.db.models.notification_preference import NotificationPreference
from moneyflow.db.models.notification_watermark import NotificationWatermark
from moneyflow.db.models.push_subscription import PushSubscription

__all__ = [
    "Expense",
    "Income",
    "NotificationHistory",
    "NotificationPreference",
    "NotificationWatermark",
    "PushSubscription",
]
