"""Read-only mappings of the expense and income tables.

The finance CRUD layer owns these tables; this service only reads them
through :mod:`moneyflow.services.records`.
"""
from sqlalchemy import Boolean, Column, DateTime, Numeric, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from moneyflow.db.base import Base
from moneyflow.db.types import BigIntPK


class Expense(Base):
    __tablename__ = "expenses"

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    user_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    title = Column(Text, nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    description = Column(Text)
    category = Column(Text)
    date = Column(DateTime(timezone=True), server_default=func.now())
    is_recurring = Column(Boolean, default=False)
    paid_at = Column(DateTime(timezone=True))
    due_date = Column(DateTime(timezone=True))


class Income(Base):
    __tablename__ = "incomes"

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    user_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    source = Column(Text, nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    date = Column(DateTime(timezone=True), server_default=func.now())
