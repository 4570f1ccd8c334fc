"""Pydantic schemas package."""

from moneyflow.schemas.alerts import AlertRunRequest, AlertRunResponse, CategorySummaryRead
from moneyflow.schemas.notification import DispatchReportRead, NotificationSendRequest
from moneyflow.schemas.preferences import PreferencesRead, PreferencesUpdate
from moneyflow.schemas.push import (
    CleanupResponse,
    PushDebugRead,
    PushKeys,
    PushSubscriptionCreate,
    PushSubscriptionRead,
    SubscriptionSummary,
)

__all__ = [
    "AlertRunRequest",
    "AlertRunResponse",
    "CategorySummaryRead",
    "CleanupResponse",
    "DispatchReportRead",
    "NotificationSendRequest",
    "PreferencesRead",
    "PreferencesUpdate",
    "PushDebugRead",
    "PushKeys",
    "PushSubscriptionCreate",
    "PushSubscriptionRead",
    "SubscriptionSummary",
]
