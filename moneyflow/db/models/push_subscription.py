"""Push Notification Subscription model."""
from sqlalchemy import Column, DateTime, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from moneyflow.db.base import Base
from moneyflow.db.types import BigIntPK


class PushSubscription(Base):
    """Stores Web Push API subscription details for one device of a user."""

    __tablename__ = "push_subscriptions"
    __table_args__ = (
        UniqueConstraint("user_id", "endpoint", name="uq_push_subscriptions_user_endpoint"),
    )

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    user_id = Column(UUID(as_uuid=True), nullable=False, index=True)

    endpoint = Column(Text, nullable=False)
    p256dh = Column(Text, nullable=False)  # Client public key
    auth = Column(Text, nullable=False)  # Auth secret

    user_agent = Column(String(255))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def subscription_info(self) -> dict:
        """Return the structure expected by ``pywebpush.webpush``."""

        return {"endpoint": self.endpoint, "keys": {"p256dh": self.p256dh, "auth": self.auth}}
