"""
backend/cleanconnect/cleaning/streak.py

Weekly streak of a cleaner: five consecutive completed services rated above
three stars within the current week (Sunday to Saturday, UTC).
"""

import logging
from collections.abc import Iterable
from datetime import datetime, time, timedelta, timezone
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from cleanconnect.cleaning import schemas
from cleanconnect.cleaning.models import CleaningService, ServiceStatus
from cleanconnect.database.base import utcnow
from cleanconnect.database.models import User

logger = logging.getLogger(__name__)

STREAK_LENGTH = 5
MIN_STREAK_SCORE = 3


def week_window(now: datetime) -> tuple[datetime, datetime]:
    """Start (Sunday 00:00) and end (Saturday 23:59:59.999999) of the week of `now`."""
    now = now.astimezone(timezone.utc)
    days_since_sunday = (now.weekday() + 1) % 7
    start = datetime.combine(now.date() - timedelta(days=days_since_sunday), time.min, tzinfo=timezone.utc)
    end = start + timedelta(days=7) - timedelta(microseconds=1)
    return start, end


def compute_streak(scores: Iterable[int]) -> tuple[bool, int]:
    """
    Walk the scores in completion order. A score above 3 extends the run,
    anything else resets it; reaching five stops the walk.
    """
    count = 0
    for score in scores:
        if score > MIN_STREAK_SCORE:
            count += 1
            if count >= STREAK_LENGTH:
                return True, count
        else:
            count = 0
    return False, count


class StreakService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def evaluate(self, cleaner_id: UUID, now: datetime | None = None) -> schemas.StreakResponse:
        start, end = week_window(now or utcnow())
        result = await self.db.execute(
            select(CleaningService.rating_score)
            .where(
                CleaningService.cleaner_id == cleaner_id,
                CleaningService.status == ServiceStatus.COMPLETED,
                CleaningService.rating_score.is_not(None),
                CleaningService.completed_at >= start,
                CleaningService.completed_at <= end,
            )
            .order_by(CleaningService.completed_at.asc())
        )
        scores = list(result.scalars().all())
        has_streak, count = compute_streak(scores)

        await self.db.execute(
            update(User).where(User.id == cleaner_id).values(has_a_streak=has_streak)
        )
        await self.db.commit()
        logger.info(f"[STREAK] Cleaner {cleaner_id}: streak={has_streak}, count={count}")

        if not scores:
            message = "No completed services found in this period."
        elif has_streak:
            message = f"{STREAK_LENGTH} highly rated services in a row this week."
        else:
            message = None
        return schemas.StreakResponse(
            streak="yes" if has_streak else "no", streak_count=count, message=message
        )
