"""Per-user notification preference flags."""
from sqlalchemy import Boolean, Column, DateTime
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import expression, func

from moneyflow.db.base import Base
from moneyflow.db.types import BigIntPK


class NotificationPreference(Base):
    """One row per user gating each alert category."""

    __tablename__ = "notification_preferences"

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    user_id = Column(UUID(as_uuid=True), nullable=False, unique=True)

    expense_reminders = Column(Boolean, nullable=False, default=True, server_default=expression.true())
    budget_alerts = Column(Boolean, nullable=False, default=True, server_default=expression.true())
    payment_confirmations = Column(
        Boolean, nullable=False, default=True, server_default=expression.true()
    )
    weekly_reports = Column(Boolean, nullable=False, default=False, server_default=expression.false())
    monthly_reports = Column(Boolean, nullable=False, default=True, server_default=expression.true())

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
