"""
backend/cleanconnect/message/models.py

Messaging Models

Defines SQLAlchemy models for in-service chat:
- Message: a message posted on a cleaning service by one participant.
- MessageRecipient: per-recipient delivery and read state of a message.
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cleanconnect.database.base import Base, utcnow


# ---------------------------------------------------
# Message Model
# ---------------------------------------------------
class Message(Base):
    """
    Represents an individual message sent about a cleaning service.
    """

    __tablename__ = "messages"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique identifier for the message",
    )
    service_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("cleaning_services.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Service the conversation belongs to",
    )
    sender_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=False,
        comment="User who sent this message",
    )
    content: Mapped[str] = mapped_column(
        String(2000),
        nullable=False,
        comment="Content of the message",
    )
    is_system_message: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        comment="Timestamp when the message was sent",
    )

    # Relationships
    recipients: Mapped[list["MessageRecipient"]] = relationship(
        "MessageRecipient",
        back_populates="message",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


# ---------------------------------------------------
# MessageRecipient Model
# ---------------------------------------------------
class MessageRecipient(Base):
    """
    Read state of a message for one recipient.
    """

    __tablename__ = "message_recipients"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    message_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("messages.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False, index=True
    )
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    message: Mapped["Message"] = relationship("Message", back_populates="recipients")
