"""
review/models.py

Defines the Review model for storing feedback on a completed cleaning service.
- Either party of a service (requester or cleaner) reviews the other once.
- Star rating (1-5) plus a message.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.schema import CheckConstraint

from cleanconnect.database.base import Base, utcnow


class ReviewerRole(str, enum.Enum):
    USER = "user"
    CLEANER = "cleaner"


class Review(Base):
    """
    Review written by one participant of a completed service about the other.
    """

    __tablename__ = "reviews"
    __table_args__ = (
        CheckConstraint("stars >= 1 AND stars <= 5", name="stars_range"),
        UniqueConstraint("service_id", "reviewer_id", name="uq_review_service_reviewer"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique identifier for the review",
    )

    # Review content
    stars: Mapped[int] = mapped_column(Integer, nullable=False, comment="Star rating from 1 to 5")
    message: Mapped[str] = mapped_column(String(1000), nullable=False, comment="Review text")
    reviewer_role: Mapped[ReviewerRole] = mapped_column(Enum(ReviewerRole), nullable=False)

    # Foreign Keys
    service_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("cleaning_services.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Reviewed cleaning service",
    )
    reviewer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False, index=True, comment="Author of the review"
    )
    receiver_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False, index=True, comment="Reviewed user"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        comment="Timestamp when the review was submitted",
    )
