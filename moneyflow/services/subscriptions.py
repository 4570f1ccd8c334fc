"""Subscription registry: durable push endpoints per user."""
from __future__ import annotations

import uuid

from loguru import logger
from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from moneyflow.db.dialects import insert_for
from moneyflow.db.models.push_subscription import PushSubscription


class SubscriptionRegistry:
    """Data access for :class:`PushSubscription` rows.

    ``(user_id, endpoint)`` is unique at the store level; :meth:`upsert`
    relies on that constraint instead of a read-then-write.
    """

    def __init__(self, db: Session):
        self.db = db

    def upsert(
        self,
        user_id: uuid.UUID,
        endpoint: str,
        keys: dict,
        user_agent: str | None = None,
    ) -> PushSubscription:
        """Register ``endpoint`` for ``user_id`` or rotate its secrets."""

        if not endpoint:
            raise ValueError("Endpoint required")
        try:
            p256dh, auth = keys["p256dh"], keys["auth"]
        except (KeyError, TypeError) as exc:
            raise ValueError("Subscription keys must include p256dh and auth") from exc

        stmt = insert_for(self.db, PushSubscription).values(
            user_id=user_id,
            endpoint=endpoint,
            p256dh=p256dh,
            auth=auth,
            user_agent=user_agent,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[PushSubscription.user_id, PushSubscription.endpoint],
            set_={
                "p256dh": stmt.excluded.p256dh,
                "auth": stmt.excluded.auth,
                "user_agent": func.coalesce(stmt.excluded.user_agent, PushSubscription.user_agent),
                "updated_at": func.now(),
            },
        )
        self.db.execute(stmt)
        self.db.commit()

        subscription = self.db.scalars(
            select(PushSubscription)
            .where(PushSubscription.user_id == user_id, PushSubscription.endpoint == endpoint)
            .execution_options(populate_existing=True)
        ).one()
        logger.info("Push subscription registered", user_id=str(user_id), subscription_id=subscription.id)
        return subscription

    def list_by_user(self, user_id: uuid.UUID) -> list[PushSubscription]:
        stmt = select(PushSubscription).where(PushSubscription.user_id == user_id)
        return list(self.db.scalars(stmt))

    def remove(self, user_id: uuid.UUID, endpoint: str) -> int:
        """Delete the subscription if present; removing nothing is not an error."""

        result = self.db.execute(
            delete(PushSubscription).where(
                PushSubscription.user_id == user_id,
                PushSubscription.endpoint == endpoint,
            )
        )
        self.db.commit()
        return result.rowcount or 0

    def remove_by_id(self, subscription_id: int) -> bool:
        result = self.db.execute(delete(PushSubscription).where(PushSubscription.id == subscription_id))
        self.db.commit()
        return bool(result.rowcount)

    def remove_all(self, user_id: uuid.UUID) -> int:
        result = self.db.execute(delete(PushSubscription).where(PushSubscription.user_id == user_id))
        self.db.commit()
        removed = result.rowcount or 0
        logger.info("Push subscriptions cleaned up", user_id=str(user_id), removed=removed)
        return removed
