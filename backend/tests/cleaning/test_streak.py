# tests/cleaning/test_streak.py
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from cleanconnect.cleaning.models import CleaningService, ServiceStatus
from cleanconnect.cleaning.streak import StreakService, compute_streak, week_window
from cleanconnect.database.enums import UserRole
from cleanconnect.database.models import User

# A Wednesday
NOW = datetime(2025, 3, 12, 15, 30, tzinfo=timezone.utc)


def test_week_window_runs_sunday_to_saturday() -> None:
    start, end = week_window(NOW)

    assert start == datetime(2025, 3, 9, tzinfo=timezone.utc)
    assert start.weekday() == 6
    assert end == datetime(2025, 3, 15, 23, 59, 59, 999999, tzinfo=timezone.utc)


def test_week_window_on_sunday_starts_same_day() -> None:
    sunday = datetime(2025, 3, 9, 0, 0, tzinfo=timezone.utc)

    start, _ = week_window(sunday)

    assert start == sunday


@pytest.mark.parametrize(
    "scores,expected",
    [
        ([], (False, 0)),
        ([5, 4, 5, 4, 5], (True, 5)),
        ([5, 4, 3, 5, 5], (False, 2)),
        ([4, 4, 4, 4, 4, 1], (True, 5)),
        ([4, 4, 4, 4], (False, 4)),
        ([3, 3, 3, 3, 3], (False, 0)),
    ],
)
def test_compute_streak(scores, expected) -> None:
    assert compute_streak(scores) == expected


@pytest.mark.asyncio
async def test_streak_service_flags_cleaner(db, session_factory, make_user, make_property):
    requester = await make_user(UserRole.USER)
    cleaner = await make_user(UserRole.CLEANER)
    prop = await make_property(requester)

    for i, score in enumerate([5, 5, 4, 5, 4]):
        db.add(
            CleaningService(
                property_id=prop.id,
                requesting_user_id=requester.id,
                cleaner_id=cleaner.id,
                base_fee=Decimal("50.00"),
                service_fee=Decimal("50.00"),
                status=ServiceStatus.COMPLETED,
                completed_at=NOW - timedelta(hours=10 - i),
                rating_score=score,
            )
        )
    await db.commit()

    result = await StreakService(db).evaluate(cleaner.id, now=NOW)

    assert result.streak == "yes"
    assert result.streak_count == 5
    async with session_factory() as session:
        assert (await session.get(User, cleaner.id)).has_a_streak is True


@pytest.mark.asyncio
async def test_streak_without_rated_services(db, make_user):
    cleaner = await make_user(UserRole.CLEANER)

    result = await StreakService(db).evaluate(cleaner.id, now=NOW)

    assert result.streak == "no"
    assert result.streak_count == 0
    assert result.message == "No completed services found in this period."
