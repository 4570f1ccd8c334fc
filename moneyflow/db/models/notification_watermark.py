"""Last-sent markers for periodic reports."""
from sqlalchemy import Column, DateTime, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from moneyflow.db.base import Base
from moneyflow.db.types import BigIntPK


class NotificationWatermark(Base):
    """Marks a periodic report as delivered for ``period_key`` (e.g. ``2026-W42``)."""

    __tablename__ = "notification_watermarks"
    __table_args__ = (
        UniqueConstraint("user_id", "category", "period_key", name="uq_notification_watermarks"),
    )

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    user_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    category = Column(String(50), nullable=False)
    period_key = Column(String(32), nullable=False)
    sent_at = Column(DateTime(timezone=True), server_default=func.now())
