"""Preference store: per-user flags gating each alert category."""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Mapping

from sqlalchemy import select
from sqlalchemy.orm import Session

from moneyflow.core.alerts.categories import AlertCategory
from moneyflow.db.dialects import insert_for
from moneyflow.db.models.notification_preference import NotificationPreference

CATEGORY_FLAGS: dict[AlertCategory, str] = {
    AlertCategory.EXPENSE_REMINDER: "expense_reminders",
    AlertCategory.BUDGET_ALERT: "budget_alerts",
    AlertCategory.WEEKLY_REPORT: "weekly_reports",
    AlertCategory.MONTHLY_REPORT: "monthly_reports",
    AlertCategory.PAYMENT_CONFIRMATION: "payment_confirmations",
}


class PreferenceStore:
    """Encapsulates reads and writes of :class:`NotificationPreference`."""

    def __init__(self, db: Session):
        self.db = db

    def _find(self, user_id: uuid.UUID) -> NotificationPreference | None:
        stmt = (
            select(NotificationPreference)
            .where(NotificationPreference.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        return self.db.scalars(stmt).first()

    def get(self, user_id: uuid.UUID) -> NotificationPreference:
        """Return the user's preferences, creating the default row on first use."""

        preferences = self._find(user_id)
        if preferences is not None:
            return preferences

        stmt = (
            insert_for(self.db, NotificationPreference)
            .values(user_id=user_id)
            .on_conflict_do_nothing(index_elements=[NotificationPreference.user_id])
        )
        self.db.execute(stmt)
        self.db.commit()
        return self._find(user_id)

    def update(self, user_id: uuid.UUID, changes: Mapping[str, Any]) -> NotificationPreference:
        """Merge the supplied flags; omitted flags keep their stored value."""

        preferences = self.get(user_id)
        known = set(CATEGORY_FLAGS.values())
        for field, value in changes.items():
            if field not in known:
                raise ValueError(f"Unknown preference: {field}")
            if value is None:
                continue
            setattr(preferences, field, bool(value))
        preferences.updated_at = datetime.now(timezone.utc)

        self.db.add(preferences)
        self.db.commit()
        self.db.refresh(preferences)
        return preferences

    def is_enabled(self, user_id: uuid.UUID, category: AlertCategory) -> bool:
        return bool(getattr(self.get(user_id), CATEGORY_FLAGS[AlertCategory(category)]))

    def list_eligible_users(self, category: AlertCategory) -> list[uuid.UUID]:
        """Return ids of users whose flag for ``category`` is on."""

        column = getattr(NotificationPreference, CATEGORY_FLAGS[AlertCategory(category)])
        stmt = (
            select(NotificationPreference.user_id)
            .where(column.is_(True))
            .order_by(NotificationPreference.id)
        )
        return list(self.db.scalars(stmt))
