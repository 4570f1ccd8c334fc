"""Pydantic models for push subscription endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class PushKeys(BaseModel):
    p256dh: str = Field(min_length=1)
    auth: str = Field(min_length=1)


class PushSubscriptionCreate(BaseModel):
    """Browser ``PushSubscription.toJSON()`` shape; flat ``p256dh``/``auth`` also accepted."""

    endpoint: str = Field(min_length=1, max_length=2048)
    keys: PushKeys

    @model_validator(mode="before")
    @classmethod
    def lift_flat_keys(cls, data: Any) -> Any:
        if isinstance(data, dict) and "keys" not in data and {"p256dh", "auth"} <= data.keys():
            data = dict(data)
            data["keys"] = {"p256dh": data.pop("p256dh"), "auth": data.pop("auth")}
        return data


class PushSubscriptionRead(BaseModel):
    id: int
    endpoint: str
    user_agent: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SubscriptionSummary(BaseModel):
    id: int
    endpoint: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PushDebugRead(BaseModel):
    user_id: str
    subscription_count: int
    subscriptions: list[SubscriptionSummary]
    environment: dict[str, Any]


class CleanupResponse(BaseModel):
    message: str
    removed: int
