# tests/message/test_message_services.py
import pytest
import pytest_asyncio
from sqlalchemy import select

from cleanconnect.cleaning.schemas import ServiceUpdate
from cleanconnect.cleaning.services import BookingService
from cleanconnect.core.exceptions import AuthorizationError, ValidationError
from cleanconnect.database.enums import UserRole
from cleanconnect.database.models import Notification
from cleanconnect.message.schemas import MessageCreate
from cleanconnect.message.services import MessageService


@pytest_asyncio.fixture
async def assigned(db, make_user, make_property, weekly_booking):
    requester = await make_user(UserRole.USER, balance="100.00")
    cleaner = await make_user(UserRole.CLEANER)
    prop = await make_property(requester)
    bookings = BookingService(db)
    service = await bookings.create_service(requester, weekly_booking(prop.id))
    await bookings.update_service(cleaner, service.id, ServiceUpdate(cleaner_id=cleaner.id))
    return requester, cleaner, service


@pytest.mark.asyncio
async def test_send_message_notifies_recipients(session_factory, assigned):
    requester, cleaner, service = assigned

    async with session_factory() as session:
        message = await MessageService(session).send_message(
            requester,
            MessageCreate(
                service_id=service.id,
                content="  Please use the side gate.  ",
                recipient_ids=[cleaner.id, requester.id, cleaner.id],
            ),
        )

    assert message.content == "Please use the side gate."
    assert [r.user_id for r in message.recipients] == [cleaner.id]
    async with session_factory() as session:
        titles = (
            await session.scalars(
                select(Notification.title).where(Notification.user_id == cleaner.id)
            )
        ).all()
    assert "New Message" in titles


@pytest.mark.asyncio
async def test_recipients_must_be_participants(session_factory, make_user, assigned):
    requester, _, service = assigned
    outsider = await make_user(UserRole.CLEANER)

    async with session_factory() as session:
        with pytest.raises(ValidationError):
            await MessageService(session).send_message(
                requester,
                MessageCreate(service_id=service.id, content="Hi", recipient_ids=[outsider.id]),
            )


@pytest.mark.asyncio
async def test_outsider_cannot_send_or_read(session_factory, make_user, assigned):
    _, cleaner, service = assigned
    outsider = await make_user(UserRole.USER)

    async with session_factory() as session:
        with pytest.raises(AuthorizationError):
            await MessageService(session).send_message(
                outsider,
                MessageCreate(service_id=service.id, content="Hi", recipient_ids=[cleaner.id]),
            )
        with pytest.raises(AuthorizationError):
            await MessageService(session).list_for_service(outsider, service.id)


@pytest.mark.asyncio
async def test_reading_conversation_marks_my_copy_read(session_factory, assigned):
    requester, cleaner, service = assigned
    async with session_factory() as session:
        await MessageService(session).send_message(
            requester,
            MessageCreate(service_id=service.id, content="On my way?", recipient_ids=[cleaner.id]),
        )

    async with session_factory() as session:
        messages = await MessageService(session).list_for_service(cleaner, service.id)

    assert len(messages) == 1
    assert messages[0].recipients[0].read is True
    assert messages[0].recipients[0].read_at is not None


@pytest.mark.asyncio
async def test_only_sender_can_delete(session_factory, assigned):
    requester, cleaner, service = assigned
    async with session_factory() as session:
        message = await MessageService(session).send_message(
            requester,
            MessageCreate(service_id=service.id, content="Typo", recipient_ids=[cleaner.id]),
        )

    async with session_factory() as session:
        with pytest.raises(AuthorizationError):
            await MessageService(session).delete_message(cleaner, message.id)
        await MessageService(session).delete_message(requester, message.id)
        assert await MessageService(session).list_for_service(requester, service.id) == []
