"""Pydantic models for notification preferences."""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, model_validator


class PreferencesRead(BaseModel):
    user_id: uuid.UUID
    expense_reminders: bool
    budget_alerts: bool
    payment_confirmations: bool
    weekly_reports: bool
    monthly_reports: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PreferencesUpdate(BaseModel):
    """Partial update; omitted flags keep their stored value."""

    expense_reminders: Optional[bool] = None
    budget_alerts: Optional[bool] = None
    payment_confirmations: Optional[bool] = None
    weekly_reports: Optional[bool] = None
    monthly_reports: Optional[bool] = None

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def ensure_payload_not_empty(self) -> "PreferencesUpdate":
        if not any(value is not None for value in self.model_dump().values()):
            raise ValueError("At least one field must be provided")
        return self
