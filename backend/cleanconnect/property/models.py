"""
backend/cleanconnect/property/models.py

Property Database Model
Defines the SQLAlchemy model for properties listed by requesting users.
Cleaning services are always booked against a property.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cleanconnect.database.base import Base, utcnow

if TYPE_CHECKING:
    from cleanconnect.database.models import User


# ---------------------------------------------------
# Property Model
# ---------------------------------------------------


class Property(Base):
    """Represents a property that can be cleaned."""

    __tablename__ = "properties"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique identifier for the property",
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="User who listed the property",
    )

    # Address
    street: Mapped[str] = mapped_column(String(200), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    province: Mapped[str] = mapped_column(String(100), nullable=False)
    postal_code: Mapped[str] = mapped_column(String(20), nullable=False)
    country: Mapped[str] = mapped_column(String(100), nullable=False, default="South Africa")

    # Layout
    number_of_bedrooms: Mapped[int] = mapped_column(Integer, nullable=False)
    number_of_bathrooms: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        comment="Timestamp when the property was created",
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        comment="Timestamp when the property was last updated",
    )

    # ---------------------------------------------------
    # Relationships
    # ---------------------------------------------------
    owner: Mapped["User"] = relationship("User", back_populates="properties")
