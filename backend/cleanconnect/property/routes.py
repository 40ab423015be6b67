"""
backend/cleanconnect/property/routes.py

Property Routes
- List a property (Authenticated User)
- List my properties (Authenticated User)
- Retrieve a property (Authenticated)
- Update a property (Owner)
- Delete a property (Owner or Admin)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from cleanconnect.core.config import settings
from cleanconnect.core.dependencies import get_current_user, require_roles
from cleanconnect.core.exceptions import parse_reference
from cleanconnect.core.limiter import limiter
from cleanconnect.core.schemas import ERROR_RESPONSES, MessageResponse
from cleanconnect.database.enums import UserRole
from cleanconnect.database.models import User
from cleanconnect.database.session import get_db
from cleanconnect.property import schemas
from cleanconnect.property.services import PropertyService

router = APIRouter(prefix="/properties", tags=["Properties"], responses=ERROR_RESPONSES)

DBDep = Annotated[AsyncSession, Depends(get_db)]
AuthenticatedUserDep = Annotated[User, Depends(get_current_user)]
AuthenticatedOwnerDep = Annotated[User, Depends(require_roles(UserRole.USER, UserRole.ADMIN))]


@router.post(
    "",
    response_model=schemas.PropertyRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Property",
    description="List a new property that cleaning services can be booked for.",
)
@limiter.limit(settings.RATE_LIMIT)
async def create_property(
    request: Request,
    payload: schemas.PropertyCreate,
    db: DBDep,
    current_user: AuthenticatedOwnerDep,
) -> schemas.PropertyRead:
    """Requesting user lists a new property."""
    prop = await PropertyService(db).create_property(current_user.id, payload)
    return schemas.PropertyRead.model_validate(prop)


@router.get(
    "/mine",
    response_model=list[schemas.PropertyRead],
    status_code=status.HTTP_200_OK,
    summary="List My Properties",
)
async def list_my_properties(
    db: DBDep, current_user: AuthenticatedUserDep
) -> list[schemas.PropertyRead]:
    """Properties owned by the authenticated user."""
    properties = await PropertyService(db).list_for_owner(current_user.id)
    return [schemas.PropertyRead.model_validate(p) for p in properties]


@router.get(
    "/{property_id}",
    response_model=schemas.PropertyRead,
    status_code=status.HTTP_200_OK,
    summary="Get Property",
)
async def get_property(
    property_id: str, db: DBDep, current_user: AuthenticatedUserDep
) -> schemas.PropertyRead:
    """Retrieve a property by ID."""
    prop = await PropertyService(db).get_property_or_404(parse_reference(property_id))
    return schemas.PropertyRead.model_validate(prop)


@router.put(
    "/{property_id}",
    response_model=schemas.PropertyRead,
    status_code=status.HTTP_200_OK,
    summary="Update Property",
)
@limiter.limit(settings.RATE_LIMIT)
async def update_property(
    request: Request,
    property_id: str,
    payload: schemas.PropertyUpdate,
    db: DBDep,
    current_user: AuthenticatedUserDep,
) -> schemas.PropertyRead:
    """Owner updates their property."""
    prop = await PropertyService(db).update_property(
        current_user, parse_reference(property_id), payload
    )
    return schemas.PropertyRead.model_validate(prop)


@router.delete(
    "/{property_id}",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete Property",
)
@limiter.limit(settings.RATE_LIMIT)
async def delete_property(
    request: Request, property_id: str, db: DBDep, current_user: AuthenticatedUserDep
) -> MessageResponse:
    """Owner or admin deletes a property without bookings."""
    await PropertyService(db).delete_property(current_user, parse_reference(property_id))
    return MessageResponse(detail="Property deleted successfully")
