"""Delivery history model."""
from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from moneyflow.db.base import Base
from moneyflow.db.types import BigIntPK, JSONVariant


class NotificationHistory(Base):
    """Append-only record of a message delivered to one endpoint."""

    __tablename__ = "notification_history"

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    user_id = Column(UUID(as_uuid=True), nullable=False, index=True)

    title = Column(Text, nullable=False)
    body = Column(Text, nullable=False)
    category = Column(String(50), nullable=False, index=True)
    data = Column(JSONVariant)

    sent_at = Column(DateTime(timezone=True), server_default=func.now())
    read_at = Column(DateTime(timezone=True))
