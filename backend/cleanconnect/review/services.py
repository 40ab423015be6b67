"""
backend/cleanconnect/review/services.py

Review Service Layer
- Submit a review for a completed service (requester or cleaner, once each)
- List reviews written by / received by a user
- Fetch a single review; the author may delete it

A requester's review also becomes the service rating, which feeds the
cleaner's weekly streak. Rating averages are maintained elsewhere.
"""

import logging
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cleanconnect.cleaning.models import CleaningService, ServiceStatus
from cleanconnect.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from cleanconnect.database.base import utcnow
from cleanconnect.database.enums import NotificationType
from cleanconnect.database.models import User
from cleanconnect.notifications.services import NotificationEvent, NotificationService
from cleanconnect.review import schemas
from cleanconnect.review.models import Review, ReviewerRole

logger = logging.getLogger(__name__)


class ReviewService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def submit_review(self, reviewer: User, data: schemas.ReviewCreate) -> Review:
        """
        Record a review and flip the reviewer's flag on the service.

        The flag is set with a conditional UPDATE (`WHERE flag IS false`), so a
        party can review a service exactly once even under concurrent submits.
        """
        logger.info(f"[REVIEW] User {reviewer.id} reviewing service {data.service_id}")

        service = await self.db.get(CleaningService, data.service_id)
        if not service:
            raise NotFoundError("Service not found")
        if service.status != ServiceStatus.COMPLETED:
            raise ValidationError("Only completed services can be reviewed.")

        if reviewer.id == service.requesting_user_id:
            role = ReviewerRole.USER
            receiver_id = service.cleaner_id
            flag = CleaningService.reviewed_by_requesting_user
            values = {
                "reviewed_by_requesting_user": True,
                "rating_score": data.stars,
                "rating_feedback": data.message[:500],
                "rated_at": utcnow(),
            }
        elif reviewer.id == service.cleaner_id or any(
            m.cleaner_id == reviewer.id for m in service.team
        ):
            role = ReviewerRole.CLEANER
            receiver_id = service.requesting_user_id
            flag = CleaningService.reviewed_by_cleaner
            values = {"reviewed_by_cleaner": True}
        else:
            raise AuthorizationError("Only participants of the service can review it.")

        if receiver_id is None:
            raise ValidationError("This service has no cleaner to review.")

        result = await self.db.execute(
            update(CleaningService)
            .where(CleaningService.id == service.id, flag.is_(False))
            .values(**values, version=CleaningService.version + 1, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await self.db.rollback()
            raise ValidationError("You have already reviewed this service.")

        review = Review(
            service_id=service.id,
            reviewer_id=reviewer.id,
            receiver_id=receiver_id,
            reviewer_role=role,
            stars=data.stars,
            message=data.message,
        )
        self.db.add(review)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ValidationError("You have already reviewed this service.")
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"[REVIEW ERROR] Failed to save review: {e}", exc_info=True)
            raise PersistenceError("Failed to submit review.")

        await NotificationService(self.db).publish(
            [
                NotificationEvent(
                    user_id=receiver_id,
                    title="New Review Received",
                    message=f"You've received a {data.stars}-star review from {reviewer.full_name}.",
                    type=NotificationType.INFO,
                    link=f"/reviews/{review.id}",
                )
            ]
        )
        logger.info(f"[REVIEW] Review {review.id} submitted for service {service.id}")
        return review

    async def list_received(self, user_id: UUID) -> list[Review]:
        result = await self.db.execute(
            select(Review).where(Review.receiver_id == user_id).order_by(Review.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_written(self, user_id: UUID) -> list[Review]:
        result = await self.db.execute(
            select(Review).where(Review.reviewer_id == user_id).order_by(Review.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_review(self, review_id: UUID) -> Review:
        review = await self.db.get(Review, review_id)
        if not review:
            logger.warning(f"[REVIEW] Review not found: review_id={review_id}")
            raise NotFoundError("Review not found")
        return review

    async def delete_review(self, user: User, review_id: UUID) -> None:
        """
        Author deletes their review; the receiver is notified.

        The reviewer's flag on the service stays set, so a deleted review
        cannot be submitted again.
        """
        review = await self.get_review(review_id)
        if review.reviewer_id != user.id:
            raise AuthorizationError("Only the author can delete this review.")

        receiver_id = review.receiver_id
        await self.db.delete(review)
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"[REVIEW ERROR] Failed to delete review {review_id}: {e}", exc_info=True)
            raise PersistenceError("Failed to delete review.")

        await NotificationService(self.db).publish(
            [
                NotificationEvent(
                    user_id=receiver_id,
                    title="Review Deleted",
                    message="A review you received has been deleted by the author.",
                    type=NotificationType.WARNING,
                    link="/profile/reviews",
                )
            ]
        )
        logger.info(f"[REVIEW] Review {review_id} deleted by {user.id}")
