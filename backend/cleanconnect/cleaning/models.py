"""
cleaning/models.py

Defines the CleaningService model and its child tables.
- A booked cleaning engagement between a requesting user and a cleaner/team
- Fee fields, checklist, escrow payments, rebooking and review flags
- `version` is the optimistic concurrency counter: every UPDATE of the row is
  issued as `... WHERE id = :id AND version = :seen`
"""

import enum
import uuid
from datetime import date, datetime, time, timezone
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Time,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cleanconnect.database.base import Base, utcnow

# ---------------------------------------------------
# Enums
# ---------------------------------------------------
class ServiceStatus(str, enum.Enum):
    PENDING = "pending"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class BookingFrequency(str, enum.Enum):
    ONCE_OFF = "once-off"
    WEEKLY = "weekly"
    BI_WEEKLY = "bi-weekly"
    MONTHLY = "monthly"


class ServiceType(str, enum.Enum):
    STANDARD = "standard"
    DEEP_CLEANING = "deep-cleaning"
    MOVE_IN_OUT = "move-in/move-out"
    POST_CONSTRUCTION = "post-construction"
    COMMERCIAL = "commercial"
    OFFICE = "office"
    CARPET = "carpet"
    WINDOW = "window"


class PaymentMethod(str, enum.Enum):
    CREDIT_CARD = "credit-card"
    BANK_TRANSFER = "bank-transfer"
    CASH = "cash"
    MOBILE_MONEY = "mobile-money"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class RebookingResponse(str, enum.Enum):
    UNSET = "unset"
    ACCEPTED = "accepted"
    DECLINED = "declined"


# ---------------------------------------------------
# MODEL: CleaningService
# ---------------------------------------------------
class CleaningService(Base):
    __tablename__ = "cleaning_services"
    __table_args__ = (
        CheckConstraint("base_fee >= 0", name="base_fee_non_negative"),
        CheckConstraint("service_fee >= 0", name="service_fee_non_negative"),
    )

    # Identifiers & Foreign Keys
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique identifier for the cleaning service",
    )
    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("properties.id"),
        nullable=False,
        index=True,
        comment="Property being cleaned",
    )
    requesting_user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=False,
        index=True,
        comment="User who requested (and pays for) the service",
    )
    cleaner_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=True,
        index=True,
        comment="Cleaner assigned to the service",
    )
    service_type: Mapped[ServiceType] = mapped_column(
        Enum(ServiceType), nullable=False, default=ServiceType.STANDARD
    )

    # Fees
    base_fee: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    discount_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0.00")
    )
    service_fee: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0.00"), comment="Amount held in escrow"
    )
    booking_frequency: Mapped[BookingFrequency] = mapped_column(
        Enum(BookingFrequency), nullable=False, default=BookingFrequency.ONCE_OFF
    )
    is_recurring: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Lifecycle
    status: Mapped[ServiceStatus] = mapped_column(
        Enum(ServiceStatus),
        nullable=False,
        default=ServiceStatus.PENDING,
        index=True,
        comment="Current lifecycle status",
    )
    paid_to_cleaner: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, comment="Set once the cleaner payout happened"
    )
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Rebooking
    has_been_rebooked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    cleaner_accepted_rebooking: Mapped[RebookingResponse] = mapped_column(
        Enum(RebookingResponse), nullable=False, default=RebookingResponse.UNSET
    )
    rebooked_from_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("cleaning_services.id", ondelete="SET NULL"),
        nullable=True,
        comment="Completed service this booking was created from",
    )

    # Reviews & rating
    reviewed_by_cleaner: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    reviewed_by_requesting_user: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    rating_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    rating_feedback: Mapped[str | None] = mapped_column(String(500), nullable=True)
    rated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Cancellation policy
    cancellation_allowed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    cancellation_deadline_hours: Mapped[int] = mapped_column(Integer, nullable=False, default=24)
    cancellation_refund_percentage: Mapped[int] = mapped_column(
        Integer, nullable=False, default=80
    )

    # Concurrency & audit
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    extras: Mapped[list["ServiceExtra"]] = relationship(
        "ServiceExtra",
        cascade="all, delete-orphan",
        order_by="ServiceExtra.position",
        lazy="selectin",
    )
    checklist: Mapped[list["ChecklistItem"]] = relationship(
        "ChecklistItem",
        cascade="all, delete-orphan",
        order_by="ChecklistItem.position",
        lazy="selectin",
    )
    payments: Mapped[list["ServicePayment"]] = relationship(
        "ServicePayment",
        cascade="all, delete-orphan",
        order_by="ServicePayment.payment_date",
        lazy="selectin",
    )
    team: Mapped[list["TeamMember"]] = relationship(
        "TeamMember", cascade="all, delete-orphan", lazy="selectin"
    )
    requested_dates: Mapped[list["RequestedDate"]] = relationship(
        "RequestedDate",
        cascade="all, delete-orphan",
        order_by="RequestedDate.position",
        lazy="selectin",
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in (
            ServiceStatus.COMPLETED,
            ServiceStatus.CANCELLED,
            ServiceStatus.EXPIRED,
        )

    @property
    def awaiting_rebooking_response(self) -> bool:
        return (
            self.has_been_rebooked
            and self.cleaner_accepted_rebooking == RebookingResponse.UNSET
            and self.status == ServiceStatus.PENDING
        )

    def is_participant(self, user_id: uuid.UUID) -> bool:
        return user_id in (self.requesting_user_id, self.cleaner_id) or any(
            member.cleaner_id == user_id for member in self.team
        )

    def first_requested_at(self) -> datetime | None:
        """Start of the earliest requested visit, in UTC."""
        starts = [d.starts_at() for d in self.requested_dates]
        return min(starts) if starts else None


# ---------------------------------------------------
# Child Tables
# ---------------------------------------------------
class ServiceExtra(Base):
    __tablename__ = "service_extras"
    __table_args__ = (CheckConstraint("fee >= 0", name="extra_fee_non_negative"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    service_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("cleaning_services.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    fee: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)


class ChecklistItem(Base):
    __tablename__ = "service_checklist_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    service_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("cleaning_services.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    task: Mapped[str] = mapped_column(String(200), nullable=False)
    completed_cleaner: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    completed_requester: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    completed_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=True
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class ServicePayment(Base):
    __tablename__ = "service_payments"
    __table_args__ = (CheckConstraint("amount >= 0", name="payment_amount_non_negative"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    service_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("cleaning_services.id", ondelete="CASCADE"), nullable=False, index=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    method: Mapped[PaymentMethod] = mapped_column(
        Enum(PaymentMethod), nullable=False, default=PaymentMethod.CASH
    )
    transaction_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus), nullable=False, default=PaymentStatus.PENDING
    )
    payment_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    paid_to_cleaner: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class TeamMember(Base):
    __tablename__ = "service_team_members"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    service_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("cleaning_services.id", ondelete="CASCADE"), nullable=False, index=True
    )
    cleaner_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False)
    is_team_lead: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class RequestedDate(Base):
    __tablename__ = "service_requested_dates"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    service_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("cleaning_services.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    visit_date: Mapped[date] = mapped_column(Date, nullable=False)
    time_of_arrival: Mapped[time | None] = mapped_column(Time, nullable=True)

    def starts_at(self) -> datetime:
        return datetime.combine(self.visit_date, self.time_of_arrival or time.min, tzinfo=timezone.utc)
