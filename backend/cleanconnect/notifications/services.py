"""
backend/cleanconnect/notifications/services.py

Notification Service Layer
In-app notification sink used by the booking lifecycle:
- NotificationEvent: domain event collected while a transition is planned
- publish(): delivers collected events after the business transaction has
  committed, so a failed delivery never undoes a fund transfer
- listing and read-marking for the notification centre
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cleanconnect.database.base import utcnow
from cleanconnect.database.enums import NotificationType
from cleanconnect.notifications import schemas
from cleanconnect.notifications.models import Notification

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationEvent:
    """A notification to deliver once the triggering change is durable."""

    user_id: UUID
    title: str
    message: str
    type: NotificationType = NotificationType.INFO
    link: str | None = None
    created_at: datetime = field(default_factory=utcnow)


class NotificationService:
    """Persists and reads in-app notifications."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    def push(self, event: NotificationEvent) -> Notification:
        """Stage a single notification in the current transaction."""
        notification = Notification(
            user_id=event.user_id,
            title=event.title[:100],
            message=event.message[:500],
            type=event.type,
            link=event.link,
            created_at=event.created_at,
        )
        self.db.add(notification)
        return notification

    async def publish(self, events: Iterable[NotificationEvent]) -> int:
        """
        Deliver events in their own transaction.

        Delivery failures are logged and dropped: the state change that
        produced the events has already been committed.
        """
        events = list(events)
        if not events:
            return 0
        try:
            for event in events:
                self.push(event)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"[NOTIFY] Failed to deliver {len(events)} notification(s): {e}", exc_info=True)
            return 0
        logger.info(f"[NOTIFY] Delivered {len(events)} notification(s)")
        return len(events)

    # ---------------------------------------------------
    # Notification Centre
    # ---------------------------------------------------
    async def list_for_user(self, user_id: UUID) -> list[Notification]:
        """Newest first."""
        result = await self.db.execute(
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc())
        )
        return list(result.scalars().all())

    async def mark_read(self, user_id: UUID, payload: schemas.MarkReadRequest) -> int:
        """Mark the given notifications of the user as read; returns rows updated."""
        if not payload.notification_ids:
            return 0
        result = await self.db.execute(
            update(Notification)
            .where(
                Notification.user_id == user_id,
                Notification.id.in_(payload.notification_ids),
            )
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        logger.info(f"[NOTIFY] User {user_id} marked {result.rowcount} notification(s) read")
        return result.rowcount
