"""
backend/cleanconnect/users/schemas.py

User profile schemas.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from cleanconnect.database.enums import UserRole


class UserRead(BaseModel):
    """Profile of the authenticated user, including the escrow balance."""

    id: UUID = Field(..., description="User's unique identifier")
    email: EmailStr = Field(..., description="User's email address")
    first_name: str
    last_name: str
    role: UserRole
    balance: Decimal = Field(..., description="Available balance")
    has_a_streak: bool
    average_rating: float
    number_of_reviews: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
