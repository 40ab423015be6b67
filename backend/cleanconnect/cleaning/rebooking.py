"""
backend/cleanconnect/cleaning/rebooking.py

Rebooking Workflow
- book_again(): spin a new booking off a completed service, reusing its stored
  fees, cleaner, team, extras and checklist (flags reset)
- respond_to_rebooking(): the cleaner accepts (service becomes assigned) or
  declines (service is cancelled and the full fee refunded, atomically)
"""

import logging
import uuid
from collections.abc import Iterable
from decimal import Decimal
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from cleanconnect.cleaning import schemas
from cleanconnect.cleaning.checklist import build_checklist
from cleanconnect.cleaning.models import (
    CleaningService,
    RebookingResponse,
    ServiceExtra,
    ServiceStatus,
    TeamMember,
)
from cleanconnect.cleaning.services import (
    BookingService,
    build_requested_dates,
    escrow_payment,
)
from cleanconnect.cleaning.state_machine import mark_payments_refunded
from cleanconnect.core.exceptions import AuthorizationError, ValidationError
from cleanconnect.database.base import utcnow
from cleanconnect.database.enums import NotificationType
from cleanconnect.notifications.services import NotificationEvent

logger = logging.getLogger(__name__)


class RebookingService:
    """Rebooking of completed services and the cleaner's response."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.bookings = BookingService(db)

    async def book_again(
        self,
        original_id: UUID,
        requester_id: UUID,
        requested_dates: Iterable[schemas.RequestedDateIn],
    ) -> CleaningService:
        """
        Create a new pending booking from a completed one.

        The stored service fee of the original is debited again; it is not
        recomputed from the extras.

        Raises:
            AuthorizationError: caller is not the original requester.
            ValidationError: original is not completed.
            InsufficientFundsError: balance lower than the stored fee.
        """
        original = await self.bookings.get_service_or_404(original_id)
        if original.requesting_user_id != requester_id:
            raise AuthorizationError("Only the original requester can book this service again.")
        if original.status != ServiceStatus.COMPLETED:
            raise ValidationError("Only completed services can be booked again.")

        logger.info(f"[REBOOK] User {requester_id} rebooking service {original_id}")
        fee = Decimal(original.service_fee)
        rebooked = CleaningService(
            id=uuid.uuid4(),
            property_id=original.property_id,
            requesting_user_id=requester_id,
            cleaner_id=original.cleaner_id,
            service_type=original.service_type,
            base_fee=original.base_fee,
            discount_amount=original.discount_amount,
            service_fee=fee,
            booking_frequency=original.booking_frequency,
            is_recurring=original.is_recurring,
            status=ServiceStatus.PENDING,
            has_been_rebooked=True,
            cleaner_accepted_rebooking=RebookingResponse.UNSET,
            rebooked_from_id=original.id,
            cancellation_allowed=original.cancellation_allowed,
            cancellation_deadline_hours=original.cancellation_deadline_hours,
            cancellation_refund_percentage=original.cancellation_refund_percentage,
            extras=[
                ServiceExtra(position=e.position, name=e.name, fee=e.fee) for e in original.extras
            ],
            checklist=build_checklist(item.task for item in original.checklist),
            team=[
                TeamMember(cleaner_id=m.cleaner_id, is_team_lead=m.is_team_lead)
                for m in original.team
            ],
            requested_dates=build_requested_dates(requested_dates),
            payments=[escrow_payment(fee)],
        )

        await self.bookings.place_booking(rebooked)

        if rebooked.cleaner_id:
            await self.bookings.publish(
                [
                    NotificationEvent(
                        user_id=rebooked.cleaner_id,
                        title="Rebooking Request",
                        message="A client you cleaned for has booked you again. Please accept or decline.",
                        type=NotificationType.INFO,
                        link=f"/services/{rebooked.id}",
                    )
                ]
            )
        logger.info(f"[REBOOK] Created rebooked service {rebooked.id} from {original_id}")
        return rebooked

    async def respond_to_rebooking(
        self, service_id: UUID, cleaner_id: UUID, accepted: bool
    ) -> CleaningService:
        """
        Record the cleaner's answer to a rebooking.

        A decline cancels the service and refunds the whole fee in the same
        version-checked transaction.
        """
        service = await self.bookings.get_service_or_404(service_id)
        if service.cleaner_id != cleaner_id:
            raise AuthorizationError("Only the rebooked cleaner can respond to this rebooking.")
        if not service.awaiting_rebooking_response:
            raise ValidationError("This rebooking is not awaiting a response.")

        now = utcnow()
        service.updated_at = now
        refund = Decimal("0.00")

        if accepted:
            service.cleaner_accepted_rebooking = RebookingResponse.ACCEPTED
            service.status = ServiceStatus.ASSIGNED
            event = NotificationEvent(
                user_id=service.requesting_user_id,
                title="Rebooking Accepted",
                message="Your cleaner accepted the rebooking.",
                type=NotificationType.SUCCESS,
                link=f"/services/{service.id}",
            )
        else:
            service.cleaner_accepted_rebooking = RebookingResponse.DECLINED
            service.status = ServiceStatus.CANCELLED
            service.cancelled_at = now
            if not service.paid_to_cleaner:
                refund = Decimal(service.service_fee)
                mark_payments_refunded(service)
            event = NotificationEvent(
                user_id=service.requesting_user_id,
                title="Rebooking Declined",
                message="Your cleaner declined the rebooking. The service fee has been refunded.",
                type=NotificationType.WARNING,
                link=f"/services/{service.id}",
            )

        await self.bookings.flush("respond to rebooking")
        if refund > 0:
            await self.bookings.ledger.refund(
                service.requesting_user_id,
                refund,
                f"refund:decline:{service.id}",
                service_id=service.id,
            )
        await self.bookings.commit("respond to rebooking")
        await self.bookings.publish([event])

        logger.info(
            f"[REBOOK] Cleaner {cleaner_id} {'accepted' if accepted else 'declined'} service {service_id}"
        )
        return service
