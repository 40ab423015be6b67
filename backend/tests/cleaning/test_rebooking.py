# tests/cleaning/test_rebooking.py
from datetime import date, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import select

from cleanconnect.cleaning.models import PaymentStatus, RebookingResponse, ServiceStatus
from cleanconnect.cleaning.rebooking import RebookingService
from cleanconnect.cleaning.schemas import RequestedDateIn, ServiceUpdate
from cleanconnect.cleaning.services import BookingService
from cleanconnect.core.exceptions import AuthorizationError, InsufficientFundsError, ValidationError
from cleanconnect.database.enums import UserRole
from cleanconnect.database.models import Notification
from cleanconnect.ledger.services import Ledger


def next_week() -> list[RequestedDateIn]:
    return [RequestedDateIn(visit_date=date.today() + timedelta(days=7), time_of_arrival="10:00")]


async def balance_of(session_factory, user_id) -> Decimal:
    async with session_factory() as session:
        return await Ledger(session).get_balance(user_id)


async def completed_service(db, requester, cleaner, prop, weekly_booking):
    bookings = BookingService(db)
    service = await bookings.create_service(requester, weekly_booking(prop.id))
    await bookings.update_service(cleaner, service.id, ServiceUpdate(cleaner_id=cleaner.id))
    return await bookings.update_service(
        cleaner, service.id, ServiceUpdate(status=ServiceStatus.COMPLETED)
    )


@pytest.mark.asyncio
async def test_book_again_copies_stored_fee_and_cleaner(
    db, session_factory, make_user, make_property, weekly_booking
):
    requester = await make_user(UserRole.USER, balance="200.00")
    cleaner = await make_user(UserRole.CLEANER)
    prop = await make_property(requester)
    original = await completed_service(db, requester, cleaner, prop, weekly_booking)

    rebooked = await RebookingService(db).book_again(original.id, requester.id, next_week())

    assert rebooked.id != original.id
    assert rebooked.status == ServiceStatus.PENDING
    assert rebooked.cleaner_id == cleaner.id
    assert rebooked.service_fee == Decimal("54.00")
    assert rebooked.has_been_rebooked is True
    assert rebooked.cleaner_accepted_rebooking == RebookingResponse.UNSET
    assert rebooked.rebooked_from_id == original.id
    assert [e.name for e in rebooked.extras] == ["Inside oven"]
    assert not rebooked.checklist[0].completed_cleaner
    assert not rebooked.checklist[0].completed_requester
    assert rebooked.payments[0].status == PaymentStatus.PENDING
    assert rebooked.payments[0].transaction_id != original.payments[0].transaction_id
    assert await balance_of(session_factory, requester.id) == Decimal("92.00")

    async with session_factory() as session:
        titles = (
            await session.scalars(
                select(Notification.title).where(Notification.user_id == cleaner.id)
            )
        ).all()
    assert "Rebooking Request" in titles


@pytest.mark.asyncio
async def test_book_again_without_funds_fails(
    db, session_factory, make_user, make_property, weekly_booking
):
    requester = await make_user(UserRole.USER, balance="100.00")
    cleaner = await make_user(UserRole.CLEANER)
    prop = await make_property(requester)
    original = await completed_service(db, requester, cleaner, prop, weekly_booking)

    with pytest.raises(InsufficientFundsError):
        await RebookingService(db).book_again(original.id, requester.id, next_week())

    assert await balance_of(session_factory, requester.id) == Decimal("46.00")


@pytest.mark.asyncio
async def test_only_original_requester_can_book_again(
    db, make_user, make_property, weekly_booking
):
    requester = await make_user(UserRole.USER, balance="200.00")
    cleaner = await make_user(UserRole.CLEANER)
    stranger = await make_user(UserRole.USER, balance="200.00")
    prop = await make_property(requester)
    original = await completed_service(db, requester, cleaner, prop, weekly_booking)

    with pytest.raises(AuthorizationError):
        await RebookingService(db).book_again(original.id, stranger.id, next_week())


@pytest.mark.asyncio
async def test_book_again_requires_completed_original(
    db, make_user, make_property, weekly_booking
):
    requester = await make_user(UserRole.USER, balance="200.00")
    prop = await make_property(requester)
    pending = await BookingService(db).create_service(requester, weekly_booking(prop.id))

    with pytest.raises(ValidationError):
        await RebookingService(db).book_again(pending.id, requester.id, next_week())


@pytest.mark.asyncio
async def test_accepting_rebooking_assigns_service(
    db, make_user, make_property, weekly_booking
):
    requester = await make_user(UserRole.USER, balance="200.00")
    cleaner = await make_user(UserRole.CLEANER)
    prop = await make_property(requester)
    original = await completed_service(db, requester, cleaner, prop, weekly_booking)
    rebooking = RebookingService(db)
    rebooked = await rebooking.book_again(original.id, requester.id, next_week())

    service = await rebooking.respond_to_rebooking(rebooked.id, cleaner.id, accepted=True)

    assert service.status == ServiceStatus.ASSIGNED
    assert service.cleaner_accepted_rebooking == RebookingResponse.ACCEPTED

    with pytest.raises(ValidationError):
        await rebooking.respond_to_rebooking(rebooked.id, cleaner.id, accepted=False)


@pytest.mark.asyncio
async def test_declining_rebooking_cancels_and_refunds_full_fee(
    db, session_factory, make_user, make_property, weekly_booking
):
    requester = await make_user(UserRole.USER, balance="200.00")
    cleaner = await make_user(UserRole.CLEANER)
    prop = await make_property(requester)
    original = await completed_service(db, requester, cleaner, prop, weekly_booking)
    rebooking = RebookingService(db)
    rebooked = await rebooking.book_again(original.id, requester.id, next_week())

    service = await rebooking.respond_to_rebooking(rebooked.id, cleaner.id, accepted=False)

    assert service.status == ServiceStatus.CANCELLED
    assert service.cancelled_at is not None
    assert service.cleaner_accepted_rebooking == RebookingResponse.DECLINED
    assert service.payments[0].status == PaymentStatus.REFUNDED
    assert await balance_of(session_factory, requester.id) == Decimal("146.00")
    assert await balance_of(session_factory, cleaner.id) == Decimal("54.00")


@pytest.mark.asyncio
async def test_other_cleaner_cannot_respond(db, make_user, make_property, weekly_booking):
    requester = await make_user(UserRole.USER, balance="200.00")
    cleaner = await make_user(UserRole.CLEANER)
    other = await make_user(UserRole.CLEANER)
    prop = await make_property(requester)
    original = await completed_service(db, requester, cleaner, prop, weekly_booking)
    rebooked = await RebookingService(db).book_again(original.id, requester.id, next_week())

    with pytest.raises(AuthorizationError):
        await RebookingService(db).respond_to_rebooking(rebooked.id, other.id, accepted=True)


@pytest.mark.asyncio
async def test_cleaner_cannot_bypass_rebooking_answer_through_update(
    db, session_factory, make_user, make_property, weekly_booking
):
    requester = await make_user(UserRole.USER, balance="200.00")
    cleaner = await make_user(UserRole.CLEANER)
    prop = await make_property(requester)
    original = await completed_service(db, requester, cleaner, prop, weekly_booking)
    rebooked = await RebookingService(db).book_again(original.id, requester.id, next_week())
    bookings = BookingService(db)

    with pytest.raises(ValidationError):
        await bookings.update_service(
            cleaner, rebooked.id, ServiceUpdate(status=ServiceStatus.ASSIGNED)
        )
    with pytest.raises(ValidationError):
        await bookings.update_service(
            cleaner, rebooked.id, ServiceUpdate(status=ServiceStatus.CANCELLED)
        )
    assert await balance_of(session_factory, requester.id) == Decimal("92.00")

    service = await RebookingService(db).respond_to_rebooking(rebooked.id, cleaner.id, accepted=False)

    assert service.status == ServiceStatus.CANCELLED
    assert service.cleaner_accepted_rebooking == RebookingResponse.DECLINED
    assert await balance_of(session_factory, requester.id) == Decimal("146.00")


@pytest.mark.asyncio
async def test_requester_can_still_cancel_unanswered_rebooking(
    db, make_user, make_property, weekly_booking
):
    requester = await make_user(UserRole.USER, balance="200.00")
    cleaner = await make_user(UserRole.CLEANER)
    prop = await make_property(requester)
    original = await completed_service(db, requester, cleaner, prop, weekly_booking)
    rebooked = await RebookingService(db).book_again(original.id, requester.id, next_week())
    bookings = BookingService(db)

    with pytest.raises(ValidationError):
        await bookings.update_service(
            requester, rebooked.id, ServiceUpdate(status=ServiceStatus.ASSIGNED)
        )

    service = await bookings.update_service(
        requester, rebooked.id, ServiceUpdate(status=ServiceStatus.CANCELLED)
    )

    assert service.status == ServiceStatus.CANCELLED
    with pytest.raises(ValidationError):
        await RebookingService(db).respond_to_rebooking(rebooked.id, cleaner.id, accepted=True)
