"""
backend/cleanconnect/users/routes.py

User Routes
- My profile (Authenticated)
- My notifications, newest first (Authenticated)
- Mark notifications as read (Authenticated)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from cleanconnect.core.dependencies import get_current_user
from cleanconnect.database.models import User
from cleanconnect.database.session import get_db
from cleanconnect.notifications import schemas as notification_schemas
from cleanconnect.notifications.services import NotificationService
from cleanconnect.users import schemas

router = APIRouter(prefix="/users", tags=["Users"])

DBDep = Annotated[AsyncSession, Depends(get_db)]
AuthenticatedUserDep = Annotated[User, Depends(get_current_user)]


@router.get(
    "/me",
    response_model=schemas.UserRead,
    status_code=status.HTTP_200_OK,
    summary="My Profile",
)
async def get_me(current_user: AuthenticatedUserDep) -> schemas.UserRead:
    """Profile of the authenticated user."""
    return schemas.UserRead.model_validate(current_user)


@router.get(
    "/notifications",
    response_model=list[notification_schemas.NotificationRead],
    status_code=status.HTTP_200_OK,
    summary="My Notifications",
)
async def list_notifications(
    db: DBDep, current_user: AuthenticatedUserDep
) -> list[notification_schemas.NotificationRead]:
    notifications = await NotificationService(db).list_for_user(current_user.id)
    return [notification_schemas.NotificationRead.model_validate(n) for n in notifications]


@router.patch(
    "/notifications/mark-read",
    response_model=notification_schemas.MarkReadResponse,
    status_code=status.HTTP_200_OK,
    summary="Mark Notifications Read",
)
async def mark_notifications_read(
    payload: notification_schemas.MarkReadRequest,
    db: DBDep,
    current_user: AuthenticatedUserDep,
) -> notification_schemas.MarkReadResponse:
    """Mark some or all notifications as read."""
    updated = await NotificationService(db).mark_read(current_user.id, payload)
    return notification_schemas.MarkReadResponse(updated=updated)
