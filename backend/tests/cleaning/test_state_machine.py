# tests/cleaning/test_state_machine.py
from datetime import datetime, time, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from cleanconnect.cleaning.checklist import ChecklistRole, build_checklist, mark_task
from cleanconnect.cleaning.models import (
    CleaningService,
    PaymentStatus,
    RequestedDate,
    ServicePayment,
    ServiceStatus,
)
from cleanconnect.cleaning.state_machine import (
    ALLOWED_TRANSITIONS,
    TERMINAL_STATES,
    can_transition,
    cancellation_refund,
    plan_transition,
    settle_payout,
    should_pay_cleaner,
)
from cleanconnect.core.exceptions import ValidationError

NOW = datetime(2025, 3, 10, 8, 0, tzinfo=timezone.utc)


def build_service(
    status: ServiceStatus = ServiceStatus.ASSIGNED,
    cleaner: bool = True,
    fee: str = "54.00",
    visit_in: timedelta | None = timedelta(days=3),
) -> CleaningService:
    visit = NOW + visit_in if visit_in is not None else None
    return CleaningService(
        id=uuid4(),
        property_id=uuid4(),
        requesting_user_id=uuid4(),
        cleaner_id=uuid4() if cleaner else None,
        base_fee=Decimal("50.00"),
        service_fee=Decimal(fee),
        status=status,
        paid_to_cleaner=False,
        cancellation_allowed=True,
        cancellation_deadline_hours=24,
        cancellation_refund_percentage=80,
        checklist=[],
        team=[],
        requested_dates=(
            [RequestedDate(position=0, visit_date=visit.date(), time_of_arrival=visit.time())]
            if visit
            else []
        ),
        payments=[
            ServicePayment(
                amount=Decimal(fee),
                transaction_id=f"auto-{uuid4().hex}",
                status=PaymentStatus.PENDING,
                paid_to_cleaner=False,
            )
        ],
    )


def test_terminal_states_have_no_exits() -> None:
    for state in TERMINAL_STATES:
        assert ALLOWED_TRANSITIONS[state] == frozenset()


@pytest.mark.parametrize(
    "current,target,allowed",
    [
        (ServiceStatus.PENDING, ServiceStatus.ASSIGNED, True),
        (ServiceStatus.ASSIGNED, ServiceStatus.IN_PROGRESS, True),
        (ServiceStatus.IN_PROGRESS, ServiceStatus.COMPLETED, True),
        (ServiceStatus.PENDING, ServiceStatus.IN_PROGRESS, False),
        (ServiceStatus.IN_PROGRESS, ServiceStatus.ASSIGNED, False),
        (ServiceStatus.COMPLETED, ServiceStatus.CANCELLED, False),
        (ServiceStatus.CANCELLED, ServiceStatus.PENDING, False),
    ],
)
def test_transition_table(current: ServiceStatus, target: ServiceStatus, allowed: bool) -> None:
    assert can_transition(current, target) is allowed


def test_illegal_transition_is_rejected_without_mutation() -> None:
    service = build_service(status=ServiceStatus.COMPLETED)

    with pytest.raises(ValidationError):
        plan_transition(service, ServiceStatus.IN_PROGRESS, NOW)
    assert service.status == ServiceStatus.COMPLETED


def test_completion_requires_a_cleaner() -> None:
    service = build_service(status=ServiceStatus.PENDING, cleaner=False)

    with pytest.raises(ValidationError):
        plan_transition(service, ServiceStatus.COMPLETED, NOW)


def test_completion_notifies_both_parties_and_marks_just_completed() -> None:
    service = build_service(status=ServiceStatus.IN_PROGRESS)

    plan = plan_transition(service, ServiceStatus.COMPLETED, NOW)

    assert plan.just_completed is True
    assert service.completed_at == NOW
    assert {e.title for e in plan.events} == {"Service Completed", "Job Completed"}
    assert {e.user_id for e in plan.events} == {service.requesting_user_id, service.cleaner_id}
    assert all(e.link == f"/services/{service.id}" for e in plan.events)


def test_assignment_and_start_notify_requester() -> None:
    service = build_service(status=ServiceStatus.PENDING)

    assigned = plan_transition(service, ServiceStatus.ASSIGNED, NOW)
    started = plan_transition(service, ServiceStatus.IN_PROGRESS, NOW)

    assert [e.title for e in assigned.events] == ["Service Assigned"]
    assert [e.title for e in started.events] == ["Service Started"]
    assert service.started_at == NOW
    assert started.events[0].user_id == service.requesting_user_id


def test_cancellation_before_deadline_refunds_policy_percentage() -> None:
    service = build_service(visit_in=timedelta(days=3))

    plan = plan_transition(service, ServiceStatus.CANCELLED, NOW)

    assert plan.refund_amount == Decimal("43.20")
    assert service.payments[0].status == PaymentStatus.REFUNDED
    assert {e.title for e in plan.events} == {"Service Cancelled"}
    assert len(plan.events) == 2


def test_cancellation_inside_deadline_refunds_nothing() -> None:
    service = build_service(visit_in=timedelta(hours=5))

    plan = plan_transition(service, ServiceStatus.CANCELLED, NOW)

    assert plan.refund_amount == Decimal("0.00")
    assert service.payments[0].status == PaymentStatus.PENDING


def test_cancellation_not_allowed_by_policy_refunds_nothing() -> None:
    service = build_service()
    service.cancellation_allowed = False

    assert cancellation_refund(service, NOW) == Decimal("0.00")


def test_cancellation_without_dates_is_inside_refund_window() -> None:
    service = build_service(visit_in=None)

    assert cancellation_refund(service, NOW) == Decimal("43.20")


def test_expiry_refunds_full_fee_when_cleaner_unpaid() -> None:
    service = build_service(status=ServiceStatus.PENDING)

    plan = plan_transition(service, ServiceStatus.EXPIRED, NOW)

    assert plan.refund_amount == Decimal("54.00")
    assert [e.title for e in plan.events] == ["Service Expired"]


def test_payout_only_for_completed_unpaid_services() -> None:
    service = build_service(status=ServiceStatus.IN_PROGRESS)
    assert should_pay_cleaner(service, just_completed=True) is False

    service.status = ServiceStatus.COMPLETED
    assert should_pay_cleaner(service, just_completed=True) is True
    assert should_pay_cleaner(service, just_completed=False) is False

    service.paid_to_cleaner = True
    assert should_pay_cleaner(service, just_completed=True) is False


def test_payout_due_when_checklist_complete_on_completed_service() -> None:
    service = build_service(status=ServiceStatus.COMPLETED)
    service.checklist = build_checklist(["Floors"])
    for role in ChecklistRole:
        mark_task(service.checklist[0], role, uuid4(), NOW)

    assert should_pay_cleaner(service, just_completed=False) is True


def test_settle_payout_marks_escrow_paid_and_skips_refunded_entries() -> None:
    service = build_service(status=ServiceStatus.COMPLETED)
    service.payments.append(
        ServicePayment(
            amount=Decimal("10.00"),
            transaction_id="refunded-entry",
            status=PaymentStatus.REFUNDED,
            paid_to_cleaner=False,
        )
    )

    amount, event = settle_payout(service)

    assert amount == Decimal("54.00")
    assert service.paid_to_cleaner is True
    assert service.payments[0].paid_to_cleaner is True
    assert service.payments[0].status == PaymentStatus.COMPLETED
    assert service.payments[1].paid_to_cleaner is False
    assert event is not None and event.title == "Payment Received"
    assert event.user_id == service.cleaner_id


def test_visit_time_defaults_to_midnight() -> None:
    visit = RequestedDate(position=0, visit_date=NOW.date())

    assert visit.starts_at() == datetime.combine(NOW.date(), time.min, tzinfo=timezone.utc)
