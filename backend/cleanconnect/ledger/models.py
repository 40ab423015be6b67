"""
ledger/models.py

Defines the LedgerEntry model and LedgerEntryKind enum.
- Append-only audit trail of every balance adjustment
- The unique event_key names the logical event that caused the adjustment,
  so one event can never be applied twice
"""

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, Enum, ForeignKey, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from cleanconnect.database.base import Base, utcnow


class LedgerEntryKind(str, enum.Enum):
    DEBIT = "debit"
    CREDIT = "credit"
    REFUND = "refund"


class LedgerEntry(Base):
    __tablename__ = "ledger_entries"
    __table_args__ = (CheckConstraint("amount > 0", name="ledger_amount_positive"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="User whose balance was adjusted",
    )
    service_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, nullable=True, index=True, comment="Cleaning service that triggered the adjustment"
    )
    kind: Mapped[LedgerEntryKind] = mapped_column(Enum(LedgerEntryKind), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    event_key: Mapped[str] = mapped_column(
        String(120), unique=True, nullable=False, comment="Logical event identifier"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
