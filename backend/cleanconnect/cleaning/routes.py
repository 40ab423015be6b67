"""
backend/cleanconnect/cleaning/routes.py

Cleaning Service Routes
- Book a cleaning service (Requesting User)
- List my / pending / assigned services (Authenticated)
- Weekly streak (Cleaner)
- Get, update and delete a service (Participants)
- Book again and respond to a rebooking
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from cleanconnect.cleaning import schemas
from cleanconnect.cleaning.rebooking import RebookingService
from cleanconnect.cleaning.services import BookingService
from cleanconnect.cleaning.streak import StreakService
from cleanconnect.core.config import settings
from cleanconnect.core.dependencies import get_current_user, get_current_user_with_role
from cleanconnect.core.exceptions import parse_reference
from cleanconnect.core.limiter import limiter
from cleanconnect.core.schemas import ERROR_RESPONSES, MessageResponse
from cleanconnect.database.enums import UserRole
from cleanconnect.database.models import User
from cleanconnect.database.session import get_db

router = APIRouter(
    prefix="/cleaningService", tags=["Cleaning Services"], responses=ERROR_RESPONSES
)

DBDep = Annotated[AsyncSession, Depends(get_db)]
AuthenticatedUserDep = Annotated[User, Depends(get_current_user)]
AuthenticatedRequesterDep = Annotated[User, Depends(get_current_user_with_role(UserRole.USER))]
AuthenticatedCleanerDep = Annotated[User, Depends(get_current_user_with_role(UserRole.CLEANER))]


# ---------------------------------------------------
# Booking
# ---------------------------------------------------
@router.post(
    "",
    response_model=schemas.ServiceRead,
    status_code=status.HTTP_201_CREATED,
    summary="Book Cleaning Service",
    description="Compute the fee, debit it from the requester's balance and create the booking.",
)
@limiter.limit(settings.RATE_LIMIT)
async def create_service(
    request: Request,
    payload: schemas.ServiceCreate,
    db: DBDep,
    current_user: AuthenticatedRequesterDep,
) -> schemas.ServiceRead:
    """Requesting user books a cleaning service for one of their properties."""
    service = await BookingService(db).create_service(current_user, payload)
    return schemas.ServiceRead.model_validate(service)


# ---------------------------------------------------
# Listings
# ---------------------------------------------------
@router.get(
    "",
    response_model=list[schemas.ServiceRead],
    status_code=status.HTTP_200_OK,
    summary="List My Services",
)
async def list_services(db: DBDep, current_user: AuthenticatedUserDep) -> list[schemas.ServiceRead]:
    """Services the caller requested or cleans."""
    services = await BookingService(db).list_services_for_user(current_user.id)
    return [schemas.ServiceRead.model_validate(s) for s in services]


@router.get(
    "/pending",
    response_model=list[schemas.ServiceRead],
    status_code=status.HTTP_200_OK,
    summary="List Pending Services",
)
async def list_pending_services(
    db: DBDep, current_user: AuthenticatedUserDep
) -> list[schemas.ServiceRead]:
    """Open bookings waiting for a cleaner."""
    services = await BookingService(db).list_pending_services()
    return [schemas.ServiceRead.model_validate(s) for s in services]


@router.get(
    "/assigned",
    response_model=list[schemas.ServiceRead],
    status_code=status.HTTP_200_OK,
    summary="List Assigned Services",
)
async def list_assigned_services(
    db: DBDep, current_user: AuthenticatedUserDep
) -> list[schemas.ServiceRead]:
    """Assigned services the caller takes part in."""
    services = await BookingService(db).list_assigned_services(current_user.id)
    return [schemas.ServiceRead.model_validate(s) for s in services]


@router.get(
    "/streak",
    response_model=schemas.StreakResponse,
    status_code=status.HTTP_200_OK,
    summary="Weekly Streak",
    description="Five consecutive completed services rated above 3 stars this week.",
)
async def get_streak(db: DBDep, current_user: AuthenticatedCleanerDep) -> schemas.StreakResponse:
    """Authenticated cleaner checks their weekly streak."""
    return await StreakService(db).evaluate(current_user.id)


# ---------------------------------------------------
# Single Service
# ---------------------------------------------------
@router.get(
    "/{service_id}",
    response_model=schemas.ServiceRead,
    status_code=status.HTTP_200_OK,
    summary="Get Service",
)
async def get_service(
    service_id: str, db: DBDep, current_user: AuthenticatedUserDep
) -> schemas.ServiceRead:
    """Participant or admin fetches a service."""
    service = await BookingService(db).get_service(current_user, parse_reference(service_id))
    return schemas.ServiceRead.model_validate(service)


@router.put(
    "/{service_id}",
    response_model=schemas.ServiceRead,
    status_code=status.HTTP_200_OK,
    summary="Update Service",
    description="Assign a cleaner, confirm checklist tasks or move the service to its next status.",
)
@limiter.limit(settings.RATE_LIMIT)
async def update_service(
    request: Request,
    service_id: str,
    payload: schemas.ServiceUpdate,
    db: DBDep,
    current_user: AuthenticatedUserDep,
) -> schemas.ServiceRead:
    """Participant applies an update command to a service."""
    service = await BookingService(db).update_service(
        current_user, parse_reference(service_id), payload
    )
    return schemas.ServiceRead.model_validate(service)


@router.delete(
    "/{service_id}",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete Service",
)
@limiter.limit(settings.RATE_LIMIT)
async def delete_service(
    request: Request, service_id: str, db: DBDep, current_user: AuthenticatedUserDep
) -> MessageResponse:
    """Requester or admin deletes a finished service."""
    await BookingService(db).delete_service(current_user, parse_reference(service_id))
    return MessageResponse(detail="Service deleted successfully")


# ---------------------------------------------------
# Rebooking
# ---------------------------------------------------
@router.post(
    "/{service_id}/book-again",
    response_model=schemas.ServiceRead,
    status_code=status.HTTP_201_CREATED,
    summary="Book Again",
)
@limiter.limit(settings.RATE_LIMIT)
async def book_again(
    request: Request,
    service_id: str,
    payload: schemas.BookAgainRequest,
    db: DBDep,
    current_user: AuthenticatedUserDep,
) -> schemas.ServiceRead:
    """Original requester books a completed service again."""
    service = await RebookingService(db).book_again(
        parse_reference(service_id), current_user.id, payload.requested_dates
    )
    return schemas.ServiceRead.model_validate(service)


@router.put(
    "/{service_id}/accept-rebooking",
    response_model=schemas.ServiceRead,
    status_code=status.HTTP_200_OK,
    summary="Respond To Rebooking",
)
@limiter.limit(settings.RATE_LIMIT)
async def respond_to_rebooking(
    request: Request,
    service_id: str,
    payload: schemas.RebookingDecision,
    db: DBDep,
    current_user: AuthenticatedCleanerDep,
) -> schemas.ServiceRead:
    """Rebooked cleaner accepts or declines the rebooking."""
    service = await RebookingService(db).respond_to_rebooking(
        parse_reference(service_id), current_user.id, payload.accepted
    )
    return schemas.ServiceRead.model_validate(service)
