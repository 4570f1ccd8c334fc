"""Pydantic models for manual sends and dispatch reports."""
from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field

from moneyflow.core.alerts.categories import AlertCategory


class NotificationSendRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    body: str = Field(min_length=1, max_length=2000)
    category: AlertCategory
    data: Dict[str, Any] = Field(default_factory=dict)


class DispatchReportRead(BaseModel):
    sent: int
    failed: int
    removed: int
    total: int
    status: str

    model_config = ConfigDict(from_attributes=True)
