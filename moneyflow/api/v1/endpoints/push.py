"""Push subscription registration endpoints."""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from sqlalchemy.orm import Session

from moneyflow.api import deps
from moneyflow.config import settings
from moneyflow.schemas import (
    CleanupResponse,
    PushDebugRead,
    PushSubscriptionCreate,
    PushSubscriptionRead,
    SubscriptionSummary,
)
from moneyflow.services.preferences import PreferenceStore
from moneyflow.services.subscriptions import SubscriptionRegistry

router = APIRouter(prefix="/push", tags=["push"])


@router.get("/vapid-public-key")
def get_vapid_public_key() -> dict:
    """Return the VAPID public key so the frontend can subscribe."""

    return {"publicKey": settings.VAPID_PUBLIC_KEY}


@router.post("/subscribe", response_model=PushSubscriptionRead)
def subscribe(
    payload: PushSubscriptionCreate,
    user_agent: str | None = Header(default=None),
    db: Session = Depends(deps.get_db),
    user_id: uuid.UUID = Depends(deps.get_current_user_id),
) -> PushSubscriptionRead:
    """Register (or refresh) a browser push subscription for the caller."""

    registry = SubscriptionRegistry(db)
    try:
        subscription = registry.upsert(
            user_id,
            payload.endpoint,
            payload.keys.model_dump(),
            user_agent=user_agent[:255] if user_agent else None,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    # Preferences always exist once a user has a device
    PreferenceStore(db).get(user_id)
    return PushSubscriptionRead.model_validate(subscription)


@router.delete("/subscribe")
def unsubscribe(
    endpoint: str = Query(..., min_length=1),
    db: Session = Depends(deps.get_db),
    user_id: uuid.UUID = Depends(deps.get_current_user_id),
) -> dict:
    """Remove one subscription; unknown endpoints are ignored."""

    removed = SubscriptionRegistry(db).remove(user_id, endpoint)
    return {"success": True, "removed": removed}


@router.post("/cleanup", response_model=CleanupResponse)
def cleanup_subscriptions(
    db: Session = Depends(deps.get_db),
    user_id: uuid.UUID = Depends(deps.get_current_user_id),
) -> CleanupResponse:
    """Drop every subscription of the caller, e.g. before re-subscribing."""

    removed = SubscriptionRegistry(db).remove_all(user_id)
    if not removed:
        return CleanupResponse(message="No subscriptions found", removed=0)
    return CleanupResponse(message="All subscriptions cleaned up", removed=removed)


@router.get("/debug", response_model=PushDebugRead)
def debug_subscriptions(
    db: Session = Depends(deps.get_db),
    user_id: uuid.UUID = Depends(deps.get_current_user_id),
) -> PushDebugRead:
    """Show the caller's subscriptions and whether push is configured."""

    subscriptions = SubscriptionRegistry(db).list_by_user(user_id)
    return PushDebugRead(
        user_id=str(user_id),
        subscription_count=len(subscriptions),
        subscriptions=[
            SubscriptionSummary(
                id=subscription.id,
                endpoint=f"{subscription.endpoint[:50]}...",
                created_at=subscription.created_at,
                updated_at=subscription.updated_at,
            )
            for subscription in subscriptions
        ],
        environment={
            "has_vapid_public_key": bool(settings.VAPID_PUBLIC_KEY),
            "has_vapid_private_key": bool(settings.VAPID_PRIVATE_KEY),
            "app_url": settings.APP_URL,
        },
    )
