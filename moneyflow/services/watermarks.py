"""Last-sent markers that stop duplicate periodic reports."""
from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from moneyflow.core.alerts.categories import AlertCategory
from moneyflow.db.dialects import insert_for
from moneyflow.db.models.notification_watermark import NotificationWatermark


class WatermarkStore:
    def __init__(self, db: Session):
        self.db = db

    def exists(self, user_id: uuid.UUID, category: AlertCategory, period_key: str) -> bool:
        stmt = select(NotificationWatermark.id).where(
            NotificationWatermark.user_id == user_id,
            NotificationWatermark.category == AlertCategory(category).value,
            NotificationWatermark.period_key == period_key,
        )
        return self.db.scalars(stmt).first() is not None

    def mark(self, user_id: uuid.UUID, category: AlertCategory, period_key: str) -> None:
        stmt = (
            insert_for(self.db, NotificationWatermark)
            .values(user_id=user_id, category=AlertCategory(category).value, period_key=period_key)
            .on_conflict_do_nothing(
                index_elements=[
                    NotificationWatermark.user_id,
                    NotificationWatermark.category,
                    NotificationWatermark.period_key,
                ]
            )
        )
        self.db.execute(stmt)
        self.db.commit()
