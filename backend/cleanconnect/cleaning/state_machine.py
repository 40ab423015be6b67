"""
cleaning/state_machine.py

Service State Machine
- Central transition table for ServiceStatus
- plan_transition(): validates a transition, applies it to the in-memory
  service and collects the notification events and money movements it implies
- Payout selection: which escrow payments are settled to the cleaner

Nothing here touches the database. The service layer persists the result,
applies the ledger movements in the same transaction and publishes the
events once the transaction has committed.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from cleanconnect.cleaning.checklist import all_tasks_complete
from cleanconnect.cleaning.models import (
    CleaningService,
    PaymentStatus,
    ServicePayment,
    ServiceStatus,
)
from cleanconnect.core.exceptions import ValidationError
from cleanconnect.database.enums import NotificationType
from cleanconnect.notifications.services import NotificationEvent

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
SERVICE_NAME = "Cleaning Service"

TERMINAL_STATES = frozenset(
    {ServiceStatus.COMPLETED, ServiceStatus.CANCELLED, ServiceStatus.EXPIRED}
)

ALLOWED_TRANSITIONS: dict[ServiceStatus, frozenset[ServiceStatus]] = {
    ServiceStatus.PENDING: frozenset(
        {
            ServiceStatus.ASSIGNED,
            ServiceStatus.COMPLETED,
            ServiceStatus.CANCELLED,
            ServiceStatus.EXPIRED,
        }
    ),
    ServiceStatus.ASSIGNED: frozenset(
        {
            ServiceStatus.IN_PROGRESS,
            ServiceStatus.COMPLETED,
            ServiceStatus.CANCELLED,
            ServiceStatus.EXPIRED,
        }
    ),
    ServiceStatus.IN_PROGRESS: frozenset(
        {ServiceStatus.COMPLETED, ServiceStatus.CANCELLED, ServiceStatus.EXPIRED}
    ),
    ServiceStatus.COMPLETED: frozenset(),
    ServiceStatus.CANCELLED: frozenset(),
    ServiceStatus.EXPIRED: frozenset(),
}

# Payments in these states hold no escrowed money
SETTLED_OUT_STATES = frozenset({PaymentStatus.FAILED, PaymentStatus.REFUNDED})


@dataclass
class TransitionPlan:
    """Outcome of a planned transition."""

    previous: ServiceStatus
    target: ServiceStatus
    events: list[NotificationEvent] = field(default_factory=list)
    just_completed: bool = False
    refund_amount: Decimal = Decimal("0.00")


def can_transition(current: ServiceStatus, target: ServiceStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def _link(service: CleaningService) -> str:
    return f"/services/{service.id}"


def _event(
    service: CleaningService, user_id, title: str, message: str, type_: NotificationType
) -> NotificationEvent:
    return NotificationEvent(
        user_id=user_id, title=title, message=message, type=type_, link=_link(service)
    )


# ---------------------------------------------------
# Money helpers
# ---------------------------------------------------
def escrowed_payments(service: CleaningService) -> list[ServicePayment]:
    """Payment entries still holding money for this service."""
    return [
        p for p in service.payments if not p.paid_to_cleaner and p.status not in SETTLED_OUT_STATES
    ]


def cancellation_refund(service: CleaningService, now: datetime) -> Decimal:
    """
    Amount refunded to the requester when the service is cancelled at `now`.

    A refund applies when the policy allows cancellation and `now` is at
    least `cancellation_deadline_hours` before the first requested visit.
    A service without requested dates is always inside the window.
    """
    if not service.cancellation_allowed or service.paid_to_cleaner:
        return Decimal("0.00")
    first_visit = service.first_requested_at()
    if first_visit is not None:
        deadline = first_visit - timedelta(hours=service.cancellation_deadline_hours)
        if now > deadline:
            return Decimal("0.00")
    percentage = Decimal(service.cancellation_refund_percentage) / Decimal(100)
    return (Decimal(service.service_fee) * percentage).quantize(CENT, rounding=ROUND_HALF_UP)


def mark_payments_refunded(service: CleaningService) -> None:
    for payment in escrowed_payments(service):
        payment.status = PaymentStatus.REFUNDED


def should_pay_cleaner(service: CleaningService, just_completed: bool) -> bool:
    """Payout is due once per service, when it is (or just became) completed."""
    return (
        (all_tasks_complete(service.checklist) or just_completed)
        and not service.paid_to_cleaner
        and service.status == ServiceStatus.COMPLETED
    )


def settle_payout(service: CleaningService) -> tuple[Decimal, NotificationEvent | None]:
    """
    Mark the escrowed payments as paid to the cleaner.

    Returns the amount to credit and the notification for the cleaner.
    The caller credits the ledger in the same transaction.
    """
    entries = escrowed_payments(service)
    amount = sum((Decimal(p.amount) for p in entries), Decimal("0.00")).quantize(CENT)
    for payment in entries:
        payment.paid_to_cleaner = True
        payment.status = PaymentStatus.COMPLETED
    service.paid_to_cleaner = True

    if amount <= 0:
        return amount, None
    return amount, _event(
        service,
        service.cleaner_id,
        "Payment Received",
        f'You\'ve received ${amount:.2f} for completing "{SERVICE_NAME}".',
        NotificationType.SUCCESS,
    )


# ---------------------------------------------------
# Transition planning
# ---------------------------------------------------
def plan_transition(
    service: CleaningService, target: ServiceStatus, now: datetime
) -> TransitionPlan:
    """
    Validate and apply `target` to the in-memory service.

    Raises:
        ValidationError: the transition is not in the table, or the service
            cannot be completed/assigned without a cleaner.
    """
    current = service.status
    if not can_transition(current, target):
        logger.warning(
            f"[SERVICE] Rejected transition {current.value} -> {target.value} for service {service.id}"
        )
        raise ValidationError(
            f"Cannot change status from {current.value} to {target.value}",
            current=current.value,
            requested=target.value,
        )
    if target in (ServiceStatus.ASSIGNED, ServiceStatus.IN_PROGRESS, ServiceStatus.COMPLETED):
        if service.cleaner_id is None:
            raise ValidationError(f"A cleaner must be assigned before the service is {target.value}")

    plan = TransitionPlan(previous=current, target=target)
    service.status = target
    requester = service.requesting_user_id

    if target == ServiceStatus.ASSIGNED:
        plan.events.append(
            _event(
                service,
                requester,
                "Service Assigned",
                f'Your service "{SERVICE_NAME}" has been assigned to a cleaner.',
                NotificationType.INFO,
            )
        )
    elif target == ServiceStatus.IN_PROGRESS:
        service.started_at = now
        plan.events.append(
            _event(
                service,
                requester,
                "Service Started",
                f'Your service "{SERVICE_NAME}" has started.',
                NotificationType.INFO,
            )
        )
    elif target == ServiceStatus.COMPLETED:
        service.completed_at = now
        plan.just_completed = True
        plan.events.append(
            _event(
                service,
                requester,
                "Service Completed",
                f'Your service "{SERVICE_NAME}" has been completed. Please review the work.',
                NotificationType.SUCCESS,
            )
        )
        plan.events.append(
            _event(
                service,
                service.cleaner_id,
                "Job Completed",
                f'You\'ve completed the service "{SERVICE_NAME}". Payment will be processed.',
                NotificationType.SUCCESS,
            )
        )
    elif target == ServiceStatus.CANCELLED:
        service.cancelled_at = now
        plan.refund_amount = cancellation_refund(service, now)
        if plan.refund_amount > 0:
            mark_payments_refunded(service)
        for user_id in (requester, service.cleaner_id):
            if user_id is None:
                continue
            plan.events.append(
                _event(
                    service,
                    user_id,
                    "Service Cancelled",
                    f'The service "{SERVICE_NAME}" has been cancelled.',
                    NotificationType.WARNING,
                )
            )
    elif target == ServiceStatus.EXPIRED:
        if not service.paid_to_cleaner:
            plan.refund_amount = Decimal(service.service_fee).quantize(CENT)
            mark_payments_refunded(service)
        plan.events.append(
            _event(
                service,
                requester,
                "Service Expired",
                f'Your service "{SERVICE_NAME}" has expired without being completed.',
                NotificationType.WARNING,
            )
        )

    logger.info(f"[SERVICE] Service {service.id}: {current.value} -> {target.value}")
    return plan
