"""Notification preference endpoints."""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from moneyflow.api import deps
from moneyflow.schemas import PreferencesRead, PreferencesUpdate
from moneyflow.services.preferences import PreferenceStore

router = APIRouter(prefix="/push/preferences", tags=["preferences"])


@router.get("", response_model=PreferencesRead)
def read_preferences(
    db: Session = Depends(deps.get_db),
    user_id: uuid.UUID = Depends(deps.get_current_user_id),
) -> PreferencesRead:
    """Return the caller's preferences, creating defaults on first access."""

    return PreferencesRead.model_validate(PreferenceStore(db).get(user_id))


@router.put("", response_model=PreferencesRead)
def update_preferences(
    payload: PreferencesUpdate,
    db: Session = Depends(deps.get_db),
    user_id: uuid.UUID = Depends(deps.get_current_user_id),
) -> PreferencesRead:
    store = PreferenceStore(db)
    updated = store.update(user_id, payload.model_dump(exclude_none=True))
    return PreferencesRead.model_validate(updated)
