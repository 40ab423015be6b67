"""
backend/cleanconnect/cleaning/schemas.py

Cleaning Service Schemas
Pydantic schemas for cleaning-service operations:
- Booking creation (Authenticated requesting user)
- Update command (participants)
- Rebooking and rebooking response
- Reading service details and the weekly streak
"""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from cleanconnect.cleaning.models import (
    BookingFrequency,
    PaymentMethod,
    PaymentStatus,
    RebookingResponse,
    ServiceStatus,
    ServiceType,
)


# ---------------------------------------------------
# Nested Schemas
# ---------------------------------------------------
class ExtraIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Extra task name")
    fee: Decimal = Field(..., description="Fee for the extra task")


class RequestedDateIn(BaseModel):
    visit_date: date = Field(..., description="Requested visit date")
    time_of_arrival: time | None = Field(None, description="Requested arrival time (UTC)")


class TeamMemberIn(BaseModel):
    cleaner_id: UUID = Field(..., description="Cleaner on the team")
    is_team_lead: bool = Field(False, description="Whether this cleaner leads the team")


class CancellationPolicyIn(BaseModel):
    allowed: bool = True
    deadline_hours: int = Field(24, ge=0, le=720)
    refund_percentage: int = Field(80, ge=0, le=100)


class ExtraRead(BaseModel):
    name: str
    fee: Decimal

    model_config = ConfigDict(from_attributes=True)


class ChecklistItemRead(BaseModel):
    id: UUID
    task: str
    completed_cleaner: bool
    completed_requester: bool
    completed_by: UUID | None = None
    completed_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class PaymentRead(BaseModel):
    amount: Decimal
    method: PaymentMethod
    transaction_id: str
    status: PaymentStatus
    payment_date: datetime
    paid_to_cleaner: bool

    model_config = ConfigDict(from_attributes=True)


class TeamMemberRead(BaseModel):
    cleaner_id: UUID
    is_team_lead: bool

    model_config = ConfigDict(from_attributes=True)


class RequestedDateRead(BaseModel):
    visit_date: date
    time_of_arrival: time | None = None

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------
# Create Schema (Authenticated Requesting User)
# ---------------------------------------------------
class ServiceCreate(BaseModel):
    """Schema used when a requesting user books a cleaning service."""

    property_id: UUID = Field(..., description="Property to be cleaned")
    service_type: ServiceType = Field(ServiceType.STANDARD, description="Type of cleaning")
    base_fee: Decimal = Field(..., description="Base fee before extras and discounts")
    extras: list[ExtraIn] = Field(default_factory=list, description="Ordered extra tasks")
    booking_frequency: BookingFrequency = Field(BookingFrequency.ONCE_OFF)
    requested_dates: list[RequestedDateIn] = Field(default_factory=list)
    checklist: list[str] | None = Field(
        None, description="Checklist task names; defaults to the extras' names"
    )
    team: list[TeamMemberIn] = Field(default_factory=list)
    cancellation_policy: CancellationPolicyIn | None = None

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------
# Update Command (Participants)
# ---------------------------------------------------
class ServiceUpdate(BaseModel):
    """
    Whitelisted update command. Fees, payments, review flags and rebooking
    fields can only change through their own workflows.
    """

    status: ServiceStatus | None = Field(None, description="Requested next status")
    cleaner_id: UUID | None = Field(None, description="Cleaner to assign")
    completed_tasks: list[UUID] = Field(
        default_factory=list, description="Checklist items confirmed by the caller"
    )
    requested_dates: list[RequestedDateIn] | None = None
    team: list[TeamMemberIn] | None = None

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------
# Rebooking Schemas
# ---------------------------------------------------
class BookAgainRequest(BaseModel):
    requested_dates: list[RequestedDateIn] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class RebookingDecision(BaseModel):
    accepted: bool = Field(..., description="Whether the cleaner accepts the rebooking")

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------
# Read Schema (Authenticated Output)
# ---------------------------------------------------
class ServiceRead(BaseModel):
    """Schema returned when reading cleaning service details."""

    id: UUID
    property_id: UUID
    requesting_user_id: UUID
    cleaner_id: UUID | None = None
    service_type: ServiceType

    base_fee: Decimal
    extras: list[ExtraRead] = []
    discount_amount: Decimal
    service_fee: Decimal
    booking_frequency: BookingFrequency
    is_recurring: bool

    status: ServiceStatus
    paid_to_cleaner: bool
    checklist: list[ChecklistItemRead] = []
    payments: list[PaymentRead] = []
    team: list[TeamMemberRead] = []
    requested_dates: list[RequestedDateRead] = []

    has_been_rebooked: bool
    cleaner_accepted_rebooking: RebookingResponse
    rebooked_from_id: UUID | None = None

    reviewed_by_cleaner: bool
    reviewed_by_requesting_user: bool
    rating_score: int | None = None
    rating_feedback: str | None = None

    cancellation_allowed: bool
    cancellation_deadline_hours: int
    cancellation_refund_percentage: int

    started_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    version: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StreakResponse(BaseModel):
    streak: Literal["yes", "no"]
    streak_count: int
    message: str | None = None
