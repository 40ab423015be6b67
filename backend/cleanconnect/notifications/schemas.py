"""
backend/cleanconnect/notifications/schemas.py

Notification Schemas
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from cleanconnect.database.enums import NotificationType


class NotificationRead(BaseModel):
    """Schema returned when listing notifications."""

    id: UUID = Field(..., description="Notification unique identifier")
    title: str = Field(..., description="Short title")
    message: str = Field(..., description="Notification body")
    type: NotificationType = Field(..., description="Notification category")
    link: str | None = Field(None, description="In-app link related to the notification")
    is_read: bool = Field(..., description="Whether the user has read it")
    created_at: datetime = Field(..., description="Timestamp when the notification was created")

    model_config = ConfigDict(from_attributes=True)


class MarkReadRequest(BaseModel):
    """Schema used to mark several notifications as read."""

    notification_ids: list[UUID] = Field(..., description="Notifications to mark as read")


class MarkReadResponse(BaseModel):
    updated: int = Field(..., description="Number of notifications marked as read")
