"""
backend/cleanconnect/cleaning/services.py

Cleaning Service Layer
Handles the booking lifecycle:
- Booking creation (fee computation + escrow debit)
- Retrieval and listing for participants
- The update command: assignment, checklist confirmations, status
  transitions, cancellation refunds and the cleaner payout
- Deletion of finished services
- Expiry of overdue services (driven by an external scheduler)

Every write of a service row is version-checked (see CleaningService.version),
so two concurrent updates can never both complete a service or pay it out.
Notifications are published only after the business transaction committed.
"""

import logging
import uuid
from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from cleanconnect.cleaning import schemas
from cleanconnect.cleaning.checklist import ChecklistRole, all_tasks_complete, build_checklist, mark_task
from cleanconnect.cleaning.fees import compute_fee
from cleanconnect.cleaning.models import (
    CleaningService,
    PaymentStatus,
    RequestedDate,
    ServiceExtra,
    ServicePayment,
    ServiceStatus,
    TeamMember,
)
from cleanconnect.cleaning.state_machine import (
    TERMINAL_STATES,
    TransitionPlan,
    plan_transition,
    settle_payout,
    should_pay_cleaner,
)
from cleanconnect.core.config import settings
from cleanconnect.core.exceptions import (
    AuthorizationError,
    ConcurrentUpdateError,
    InsufficientFundsError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from cleanconnect.database.base import utcnow
from cleanconnect.database.enums import UserRole
from cleanconnect.database.models import User
from cleanconnect.ledger.services import Ledger
from cleanconnect.notifications.services import NotificationEvent, NotificationService
from cleanconnect.property.models import Property

logger = logging.getLogger(__name__)


def booking_event_key(service_id: UUID) -> str:
    return f"booking:{service_id}"


def new_transaction_id() -> str:
    return f"auto-{uuid.uuid4().hex}"


def build_requested_dates(dates: Iterable[schemas.RequestedDateIn]) -> list[RequestedDate]:
    return [
        RequestedDate(position=i, visit_date=d.visit_date, time_of_arrival=d.time_of_arrival)
        for i, d in enumerate(dates)
    ]


def build_team(members: Iterable[schemas.TeamMemberIn]) -> list[TeamMember]:
    return [TeamMember(cleaner_id=m.cleaner_id, is_team_lead=m.is_team_lead) for m in members]


def escrow_payment(amount: Decimal) -> ServicePayment:
    """Fresh pending payment entry holding the escrowed fee."""
    return ServicePayment(
        amount=amount,
        transaction_id=new_transaction_id(),
        status=PaymentStatus.PENDING,
        payment_date=utcnow(),
        paid_to_cleaner=False,
    )


class BookingService:
    """Service class for the cleaning-service lifecycle."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.ledger = Ledger(db)
        self.notifications = NotificationService(db)

    # ---------------------------------------------------
    # Helpers
    # ---------------------------------------------------
    async def get_service_or_404(self, service_id: UUID) -> CleaningService:
        service = await self.db.get(CleaningService, service_id)
        if not service:
            logger.warning(f"[SERVICE] Service not found: service_id={service_id}")
            raise NotFoundError("Service not found")
        return service

    async def _ensure_cleaners(self, user_ids: Iterable[UUID]) -> None:
        ids = set(user_ids)
        if not ids:
            return
        found = await self.db.scalar(
            select(func.count(User.id)).where(
                User.id.in_(ids), User.role == UserRole.CLEANER, User.is_active.is_(True)
            )
        )
        if found != len(ids):
            raise ValidationError("Every assigned user must be an active cleaner")

    async def commit(self, action: str) -> None:
        """Commit, translating a lost version check into ConcurrentUpdateError."""
        try:
            await self.db.commit()
        except StaleDataError:
            await self.db.rollback()
            logger.warning(f"[SERVICE] Concurrent modification while trying to {action}")
            raise ConcurrentUpdateError()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"[SERVICE ERROR] Failed to {action}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to {action}.")

    async def flush(self, action: str) -> None:
        try:
            await self.db.flush()
        except StaleDataError:
            await self.db.rollback()
            logger.warning(f"[SERVICE] Concurrent modification while trying to {action}")
            raise ConcurrentUpdateError()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"[SERVICE ERROR] Failed to {action}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to {action}.")

    async def publish(self, events: list[NotificationEvent]) -> None:
        await self.notifications.publish(events)

    # ---------------------------------------------------
    # Escrow debit + insert
    # ---------------------------------------------------
    async def place_booking(self, service: CleaningService) -> CleaningService:
        """
        Debit the requester for `service` and insert it.

        The debit is committed first. If inserting the service then fails,
        a compensating credit is applied; it only runs when the debit was
        actually committed.

        Raises:
            InsufficientFundsError: nothing was written.
            PersistenceError: the insert failed (debit compensated).
        """
        requester_id = service.requesting_user_id
        amount = Decimal(service.service_fee)
        debited = False

        if amount > 0:
            try:
                await self.ledger.debit(
                    requester_id, amount, booking_event_key(service.id), service_id=service.id
                )
            except InsufficientFundsError:
                await self.db.rollback()
                raise
            await self.commit("debit booking fee")
            debited = True

        self.db.add(service)
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"[SERVICE ERROR] Failed to create service {service.id}: {e}", exc_info=True)
            if debited:
                await self.ledger.credit(
                    requester_id,
                    amount,
                    f"compensation:{booking_event_key(service.id)}",
                    service_id=service.id,
                )
                await self.commit("compensate booking debit")
                logger.info(f"[LEDGER] Compensated debit of {amount} for user {requester_id}")
            raise PersistenceError("Failed to create service.")
        return service

    # ---------------------------------------------------
    # Creation
    # ---------------------------------------------------
    async def create_service(self, requester: User, payload: schemas.ServiceCreate) -> CleaningService:
        """Requesting user books a cleaning service for one of their properties."""
        logger.info(f"[SERVICE] User {requester.id} booking service for property {payload.property_id}")

        prop = await self.db.get(Property, payload.property_id)
        if not prop:
            raise NotFoundError("Property not found")
        if prop.owner_id != requester.id:
            raise AuthorizationError("You can only book services for your own properties.")
        await self._ensure_cleaners(m.cleaner_id for m in payload.team)

        fees = compute_fee(payload.base_fee, (e.fee for e in payload.extras), payload.booking_frequency)
        policy = payload.cancellation_policy or schemas.CancellationPolicyIn(
            allowed=True,
            deadline_hours=settings.DEFAULT_CANCELLATION_DEADLINE_HOURS,
            refund_percentage=settings.DEFAULT_REFUND_PERCENTAGE,
        )
        task_names = payload.checklist if payload.checklist is not None else [e.name for e in payload.extras]

        service = CleaningService(
            id=uuid.uuid4(),
            property_id=payload.property_id,
            requesting_user_id=requester.id,
            service_type=payload.service_type,
            base_fee=Decimal(payload.base_fee).quantize(Decimal("0.01")),
            discount_amount=fees.discount_amount,
            service_fee=fees.service_fee,
            booking_frequency=payload.booking_frequency,
            is_recurring=fees.is_recurring,
            status=ServiceStatus.PENDING,
            cancellation_allowed=policy.allowed,
            cancellation_deadline_hours=policy.deadline_hours,
            cancellation_refund_percentage=policy.refund_percentage,
            extras=[
                ServiceExtra(position=i, name=e.name, fee=e.fee) for i, e in enumerate(payload.extras)
            ],
            checklist=build_checklist(task_names),
            requested_dates=build_requested_dates(payload.requested_dates),
            team=build_team(payload.team),
            payments=[escrow_payment(fees.service_fee)],
        )

        await self.place_booking(service)
        logger.info(
            f"[SERVICE] Created service {service.id} for user {requester.id}, fee={service.service_fee}"
        )
        return service

    # ---------------------------------------------------
    # Retrieval
    # ---------------------------------------------------
    async def get_service(self, user: User, service_id: UUID) -> CleaningService:
        """Participants and admins see a service; cleaners may also see open ones."""
        service = await self.get_service_or_404(service_id)
        if service.is_participant(user.id) or user.role == UserRole.ADMIN:
            return service
        if user.role == UserRole.CLEANER and service.status == ServiceStatus.PENDING:
            return service
        raise AuthorizationError("You are not a participant of this service.")

    async def list_services_for_user(self, user_id: UUID) -> list[CleaningService]:
        result = await self.db.execute(
            select(CleaningService)
            .where(
                or_(
                    CleaningService.requesting_user_id == user_id,
                    CleaningService.cleaner_id == user_id,
                )
            )
            .order_by(CleaningService.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_pending_services(self) -> list[CleaningService]:
        """Open bookings cleaners can pick up."""
        result = await self.db.execute(
            select(CleaningService)
            .where(CleaningService.status == ServiceStatus.PENDING)
            .order_by(CleaningService.created_at.asc())
        )
        return list(result.scalars().all())

    async def list_assigned_services(self, user_id: UUID) -> list[CleaningService]:
        result = await self.db.execute(
            select(CleaningService)
            .where(
                CleaningService.status == ServiceStatus.ASSIGNED,
                or_(
                    CleaningService.requesting_user_id == user_id,
                    CleaningService.cleaner_id == user_id,
                ),
            )
            .order_by(CleaningService.created_at.desc())
        )
        return list(result.scalars().all())

    # ---------------------------------------------------
    # Update command
    # ---------------------------------------------------
    def _checklist_role(self, service: CleaningService, user: User) -> ChecklistRole:
        if user.id == service.cleaner_id or any(m.cleaner_id == user.id for m in service.team):
            return ChecklistRole.CLEANER
        if user.id == service.requesting_user_id:
            return ChecklistRole.REQUESTER
        raise AuthorizationError("Only the requester or the cleaner can confirm tasks.")

    async def _assign_cleaner(self, service: CleaningService, user: User, cleaner_id: UUID) -> None:
        if service.status not in (ServiceStatus.PENDING, ServiceStatus.ASSIGNED):
            raise ValidationError("A cleaner can only be assigned before the service starts.")
        if user.role == UserRole.CLEANER and cleaner_id != user.id:
            raise AuthorizationError("Cleaners can only assign themselves.")
        if user.role not in (UserRole.CLEANER, UserRole.ADMIN) and user.id != service.requesting_user_id:
            raise AuthorizationError("Not authorized to assign a cleaner to this service.")
        await self._ensure_cleaners([cleaner_id])
        service.cleaner_id = cleaner_id

    async def update_service(
        self, user: User, service_id: UUID, payload: schemas.ServiceUpdate
    ) -> CleaningService:
        """
        Apply the update command to a service.

        Order: assignment, schedule/team, checklist confirmations, status
        transition (explicit or triggered by a completed checklist), payout.
        The row write is version-checked; the refund or payout credit is part
        of the same transaction.

        Raises:
            ValidationError: illegal transition or field.
            AuthorizationError: caller not allowed.
            ConcurrentUpdateError: another request changed the service first.
        """
        service = await self.get_service_or_404(service_id)
        now = utcnow()
        logger.info(f"[SERVICE] User {user.id} updating service {service_id}")

        self_assigning = (
            user.role == UserRole.CLEANER
            and service.status == ServiceStatus.PENDING
            and service.cleaner_id is None
            and payload.cleaner_id == user.id
        )
        if not (service.is_participant(user.id) or user.role == UserRole.ADMIN or self_assigning):
            raise AuthorizationError("You are not a participant of this service.")

        if payload.status == ServiceStatus.EXPIRED:
            raise ValidationError("A service can only expire through the expiry schedule.")

        if service.awaiting_rebooking_response and (
            payload.status is not None or payload.cleaner_id is not None
        ):
            requester_cancels = (
                user.id == service.requesting_user_id
                and payload.status == ServiceStatus.CANCELLED
                and payload.cleaner_id is None
            )
            if not requester_cancels:
                raise ValidationError(
                    "This rebooking awaits the cleaner's answer. "
                    "Use PUT /cleaningService/{id}/accept-rebooking to respond."
                )

        target = payload.status

        if payload.cleaner_id is not None and payload.cleaner_id != service.cleaner_id:
            await self._assign_cleaner(service, user, payload.cleaner_id)
            if service.status == ServiceStatus.PENDING and target is None:
                target = ServiceStatus.ASSIGNED

        if payload.requested_dates is not None or payload.team is not None:
            if service.status in TERMINAL_STATES:
                raise ValidationError("A finished service cannot be rescheduled.")
            if payload.requested_dates is not None:
                service.requested_dates = build_requested_dates(payload.requested_dates)
            if payload.team is not None:
                await self._ensure_cleaners(m.cleaner_id for m in payload.team)
                service.team = build_team(payload.team)

        if payload.completed_tasks:
            if service.status in TERMINAL_STATES:
                raise ValidationError("Tasks of a finished service cannot be changed.")
            role = self._checklist_role(service, user)
            items = {item.id: item for item in service.checklist}
            unknown = [str(t) for t in payload.completed_tasks if t not in items]
            if unknown:
                raise ValidationError("Unknown checklist item(s)", items=unknown)
            for task_id in payload.completed_tasks:
                mark_task(items[task_id], role, user.id, now)
            if (
                target not in TERMINAL_STATES
                and all_tasks_complete(service.checklist)
                and service.status not in TERMINAL_STATES
                and service.cleaner_id is not None
            ):
                logger.info(f"[SERVICE] Checklist of service {service.id} complete")
                target = ServiceStatus.COMPLETED

        plan: TransitionPlan | None = None
        if target is not None and target != service.status:
            plan = plan_transition(service, target, now)
        events = list(plan.events) if plan else []

        payout = Decimal("0.00")
        if should_pay_cleaner(service, just_completed=bool(plan and plan.just_completed)):
            payout, payout_event = settle_payout(service)
            if payout_event:
                events.append(payout_event)

        # Touch the row so every command goes through the version check
        service.updated_at = now
        await self.flush("update service")

        if plan and plan.refund_amount > 0:
            await self.ledger.refund(
                service.requesting_user_id,
                plan.refund_amount,
                f"refund:cancel:{service.id}",
                service_id=service.id,
            )
        if payout > 0:
            await self.ledger.credit(
                service.cleaner_id, payout, f"payout:{service.id}", service_id=service.id
            )
            logger.info(f"[PAYOUT] Cleaner {service.cleaner_id} credited {payout} for service {service.id}")

        await self.commit("update service")
        await self.publish(events)
        return service

    # ---------------------------------------------------
    # Deletion
    # ---------------------------------------------------
    async def delete_service(self, user: User, service_id: UUID) -> None:
        """Requester or admin may delete a service once it is finished."""
        service = await self.get_service_or_404(service_id)
        if user.id != service.requesting_user_id and user.role != UserRole.ADMIN:
            raise AuthorizationError("Only the requester can delete this service.")
        if service.status not in TERMINAL_STATES:
            raise ValidationError(
                "Only completed, cancelled or expired services can be deleted. Cancel it first."
            )
        await self.db.delete(service)
        await self.commit("delete service")
        logger.info(f"[SERVICE] Deleted service {service_id}")

    # ---------------------------------------------------
    # Expiry
    # ---------------------------------------------------
    async def expire_service(self, service_id: UUID, now: datetime | None = None) -> CleaningService:
        """Expire a non-terminal service and refund the escrow to the requester."""
        now = now or utcnow()
        service = await self.get_service_or_404(service_id)
        plan = plan_transition(service, ServiceStatus.EXPIRED, now)
        service.updated_at = now
        await self.flush("expire service")

        if plan.refund_amount > 0:
            await self.ledger.refund(
                service.requesting_user_id,
                plan.refund_amount,
                f"refund:expire:{service.id}",
                service_id=service.id,
            )
        await self.commit("expire service")
        await self.publish(plan.events)
        return service

    async def expire_overdue_services(self, now: datetime | None = None) -> int:
        """Expire pending services whose first requested visit has passed."""
        now = now or utcnow()
        result = await self.db.execute(
            select(CleaningService.id).where(CleaningService.status == ServiceStatus.PENDING)
        )
        candidates = list(result.scalars().all())
        expired = 0
        for service_id in candidates:
            service = await self.get_service_or_404(service_id)
            first_visit = service.first_requested_at()
            if first_visit is None or first_visit > now:
                continue
            try:
                await self.expire_service(service_id, now)
                expired += 1
            except (ConcurrentUpdateError, ValidationError) as e:
                logger.warning(f"[EXPIRY] Skipped service {service_id}: {e.message}")
        logger.info(f"[EXPIRY] Expired {expired} overdue service(s)")
        return expired
