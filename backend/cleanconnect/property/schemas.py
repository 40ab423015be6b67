"""
backend/cleanconnect/property/schemas.py

Property Schemas
Defines Pydantic schemas for:
- Creating a property
- Updating a property (partial)
- Reading a property (response model)
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------
# Base Schema for Property Fields
# ---------------------------------------------------


class PropertyBase(BaseModel):
    """Base schema containing shared property fields."""

    street: str = Field(..., min_length=1, max_length=200, description="Street address")
    city: str = Field(..., min_length=1, max_length=100, description="City")
    province: str = Field(..., min_length=1, max_length=100, description="Province")
    postal_code: str = Field(..., min_length=1, max_length=20, description="Postal code")
    country: str = Field("South Africa", max_length=100, description="Country")
    number_of_bedrooms: int = Field(..., ge=0, le=20, description="Number of bedrooms")
    number_of_bathrooms: int = Field(..., ge=0, le=20, description="Number of bathrooms")


class PropertyCreate(PropertyBase):
    """Schema used to list a new property."""

    pass


class PropertyUpdate(BaseModel):
    """Partial update; only the fields sent are changed."""

    street: str | None = Field(None, min_length=1, max_length=200)
    city: str | None = Field(None, min_length=1, max_length=100)
    province: str | None = Field(None, min_length=1, max_length=100)
    postal_code: str | None = Field(None, min_length=1, max_length=20)
    country: str | None = Field(None, max_length=100)
    number_of_bedrooms: int | None = Field(None, ge=0, le=20)
    number_of_bathrooms: int | None = Field(None, ge=0, le=20)


class PropertyRead(PropertyBase):
    """Schema returned when reading a property."""

    id: UUID = Field(..., description="Unique identifier for the property")
    owner_id: UUID = Field(..., description="UUID of the owner")
    created_at: datetime = Field(..., description="Timestamp when the property was created")
    updated_at: datetime = Field(..., description="Timestamp when the property was last updated")

    model_config = ConfigDict(from_attributes=True)
