"""
backend/cleanconnect/database/models.py

Core SQLAlchemy ORM Models

Defines:
- User: Authenticated platform account (requesting user or cleaner) holding
  the escrow balance managed by the Ledger.

Importing this module registers every mapped table on the shared metadata.
"""

import uuid
from decimal import Decimal
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    Float,
    Integer,
    Numeric,
    String,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cleanconnect.database.base import Base, utcnow
from cleanconnect.database.enums import UserRole
from cleanconnect.notifications.models import Notification
from cleanconnect.ledger.models import LedgerEntry
from cleanconnect.property.models import Property
from cleanconnect.cleaning.models import CleaningService
from cleanconnect.review.models import Review
from cleanconnect.message.models import Message

__all__ = [
    "User",
    "Notification",
    "LedgerEntry",
    "Property",
    "CleaningService",
    "Review",
    "Message",
]

# ---------------------------------------------------
# User Model: Authenticated Platform User
# ---------------------------------------------------


class User(Base):
    __tablename__ = "users"
    __table_args__ = (CheckConstraint("balance >= 0", name="balance_non_negative"),)

    # -------------------------------------
    # Fields
    # -------------------------------------
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique identifier for the user",
    )
    email: Mapped[str] = mapped_column(
        String(100), unique=True, nullable=False, comment="User's email address"
    )
    first_name: Mapped[str] = mapped_column(String(50), nullable=False, comment="User's first name")
    last_name: Mapped[str] = mapped_column(String(50), nullable=False, comment="User's surname")
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole), nullable=False, default=UserRole.USER, comment="User role"
    )
    balance: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0.00"),
        comment="Escrow balance; only adjusted through the Ledger",
    )
    has_a_streak: Mapped[bool] = mapped_column(
        Boolean, default=False, comment="Whether the cleaner currently holds a weekly streak"
    )
    average_rating: Mapped[float] = mapped_column(
        Float, default=0.0, comment="Average review rating (maintained by review aggregation)"
    )
    number_of_reviews: Mapped[int] = mapped_column(
        Integer, default=0, comment="Number of reviews received"
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, comment="Whether the user account is active"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        comment="Timestamp when the user was created",
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        comment="Timestamp when the user was last updated",
    )

    # -------------------------------------
    # Relationships
    # -------------------------------------

    # One-to-Many: append-only in-app notifications
    notifications: Mapped[list["Notification"]] = relationship(
        "Notification",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="Notification.created_at",
    )

    # One-to-Many: properties owned by the user
    properties: Mapped[list["Property"]] = relationship(
        "Property", back_populates="owner", cascade="all, delete-orphan"
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
