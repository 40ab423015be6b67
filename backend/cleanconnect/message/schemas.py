"""
backend/cleanconnect/message/schemas.py

Pydantic schemas for in-service chat:
- Sending a message
- Reading messages with their recipients' read state
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------
# Input Schemas
# ---------------------------------------------------
class MessageCreate(BaseModel):
    """
    Schema for posting a message on a service.
    """

    service_id: UUID = Field(..., description="Service the message is about")
    content: str = Field(..., min_length=1, max_length=2000, description="Message content")
    recipient_ids: list[UUID] = Field(..., min_length=1, description="Participants to notify")


# ---------------------------------------------------
# Output Schemas
# ---------------------------------------------------
class RecipientRead(BaseModel):
    user_id: UUID
    read: bool
    read_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class MessageRead(BaseModel):
    """
    Schema for returning a message.
    """

    id: UUID
    service_id: UUID
    sender_id: UUID
    content: str
    is_system_message: bool
    created_at: datetime
    recipients: list[RecipientRead] = []

    model_config = ConfigDict(from_attributes=True)
