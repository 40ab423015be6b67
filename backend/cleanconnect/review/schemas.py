"""
backend/cleanconnect/review/schemas.py

Review Schemas
- Submitting a review for a completed service
- Reading reviews (written / received)
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from cleanconnect.review.models import ReviewerRole


class ReviewCreate(BaseModel):
    """Schema used when a participant reviews a completed service."""

    service_id: UUID = Field(..., description="Completed service being reviewed")
    stars: int = Field(..., ge=1, le=5, description="Star rating between 1 and 5")
    message: str = Field(..., min_length=4, max_length=1000, description="Review text")


class ReviewRead(BaseModel):
    id: UUID
    service_id: UUID
    reviewer_id: UUID
    receiver_id: UUID
    reviewer_role: ReviewerRole
    stars: int
    message: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
