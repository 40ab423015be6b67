"""
backend/cleanconnect/message/services.py

Business logic for in-service chat:
- Post a message to other participants of a cleaning service
- Read the conversation of a service (marks my copies as read)
- Delete my own message

Recipients are notified through the notification centre; real-time delivery
is not handled here.
"""

import logging
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cleanconnect.cleaning.models import CleaningService
from cleanconnect.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from cleanconnect.database.base import utcnow
from cleanconnect.database.enums import NotificationType, UserRole
from cleanconnect.database.models import User
from cleanconnect.message import schemas
from cleanconnect.message.models import Message, MessageRecipient
from cleanconnect.notifications.services import NotificationEvent, NotificationService

logger = logging.getLogger(__name__)


def service_participants(service: CleaningService) -> set[UUID]:
    participants = {service.requesting_user_id}
    if service.cleaner_id:
        participants.add(service.cleaner_id)
    participants.update(m.cleaner_id for m in service.team)
    return participants


class MessageService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _get_service_or_404(self, service_id: UUID) -> CleaningService:
        service = await self.db.get(CleaningService, service_id)
        if not service:
            raise NotFoundError("Service not found")
        return service

    async def _commit(self, action: str) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"[MSG ERROR] Failed to {action}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to {action}.")

    # ---------------------------------------------------
    # Send
    # ---------------------------------------------------
    async def send_message(self, sender: User, data: schemas.MessageCreate) -> Message:
        service = await self._get_service_or_404(data.service_id)
        participants = service_participants(service)
        if sender.id not in participants:
            raise AuthorizationError("Only participants of the service can send messages.")

        recipient_ids = list(dict.fromkeys(r for r in data.recipient_ids if r != sender.id))
        if not recipient_ids:
            raise ValidationError("A message needs at least one recipient other than the sender.")
        outsiders = [str(r) for r in recipient_ids if r not in participants]
        if outsiders:
            raise ValidationError("Recipients must be participants of the service", recipients=outsiders)

        message = Message(
            service_id=service.id,
            sender_id=sender.id,
            content=data.content.strip(),
            recipients=[MessageRecipient(user_id=r) for r in recipient_ids],
        )
        self.db.add(message)
        await self._commit("send message")
        logger.info(f"[MSG] User {sender.id} sent message {message.id} on service {service.id}")

        await NotificationService(self.db).publish(
            NotificationEvent(
                user_id=r,
                title="New Message",
                message=f"{sender.full_name} sent you a message.",
                type=NotificationType.INFO,
                link=f"/services/{service.id}/messages",
            )
            for r in recipient_ids
        )
        return message

    # ---------------------------------------------------
    # Read
    # ---------------------------------------------------
    async def list_for_service(self, user: User, service_id: UUID) -> list[Message]:
        """Conversation of a service, oldest first. Marks the caller's copies read."""
        service = await self._get_service_or_404(service_id)
        if user.id not in service_participants(service) and user.role != UserRole.ADMIN:
            raise AuthorizationError("You are not a participant of this service.")

        await self.db.execute(
            update(MessageRecipient)
            .where(
                MessageRecipient.user_id == user.id,
                MessageRecipient.read.is_(False),
                MessageRecipient.message_id.in_(
                    select(Message.id).where(Message.service_id == service_id)
                ),
            )
            .values(read=True, read_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        await self._commit("mark messages read")

        result = await self.db.execute(
            select(Message)
            .where(Message.service_id == service_id)
            .order_by(Message.created_at.asc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    # ---------------------------------------------------
    # Delete
    # ---------------------------------------------------
    async def delete_message(self, user: User, message_id: UUID) -> None:
        message = await self.db.get(Message, message_id)
        if not message:
            raise NotFoundError("Message not found")
        if message.sender_id != user.id:
            raise AuthorizationError("Only the sender can delete this message.")

        recipients = [r.user_id for r in message.recipients]
        service_id = message.service_id
        await self.db.delete(message)
        await self._commit("delete message")
        logger.info(f"[MSG] User {user.id} deleted message {message_id}")

        await NotificationService(self.db).publish(
            NotificationEvent(
                user_id=r,
                title="Message Deleted",
                message=f"{user.full_name} deleted a message.",
                type=NotificationType.INFO,
                link=f"/services/{service_id}/messages",
            )
            for r in recipients
        )
