"""
backend/cleanconnect/review/routes.py

Review Routes
- Submit a review for a completed service (Participants)
- List reviews I received / wrote (Authenticated)
- List reviews received / written by any user (Authenticated)
- Get a review, delete my review
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from cleanconnect.core.config import settings
from cleanconnect.core.dependencies import get_current_user
from cleanconnect.core.exceptions import parse_reference
from cleanconnect.core.limiter import limiter
from cleanconnect.core.schemas import ERROR_RESPONSES, MessageResponse
from cleanconnect.database.models import User
from cleanconnect.database.session import get_db
from cleanconnect.review import schemas
from cleanconnect.review.services import ReviewService

router = APIRouter(prefix="/reviews", tags=["Reviews"], responses=ERROR_RESPONSES)

DBDep = Annotated[AsyncSession, Depends(get_db)]
AuthenticatedUserDep = Annotated[User, Depends(get_current_user)]


@router.post(
    "",
    response_model=schemas.ReviewRead,
    status_code=status.HTTP_201_CREATED,
    summary="Submit Review",
)
@limiter.limit(settings.RATE_LIMIT)
async def submit_review(
    request: Request,
    payload: schemas.ReviewCreate,
    db: DBDep,
    current_user: AuthenticatedUserDep,
) -> schemas.ReviewRead:
    """Participant reviews a completed service."""
    review = await ReviewService(db).submit_review(current_user, payload)
    return schemas.ReviewRead.model_validate(review)


@router.get(
    "/my/received",
    response_model=list[schemas.ReviewRead],
    status_code=status.HTTP_200_OK,
    summary="Reviews I Received",
)
async def list_received_reviews(
    db: DBDep, current_user: AuthenticatedUserDep
) -> list[schemas.ReviewRead]:
    """Reviews the authenticated user received."""
    reviews = await ReviewService(db).list_received(current_user.id)
    return [schemas.ReviewRead.model_validate(r) for r in reviews]


@router.get(
    "/my/written",
    response_model=list[schemas.ReviewRead],
    status_code=status.HTTP_200_OK,
    summary="Reviews I Wrote",
)
async def list_written_reviews(
    db: DBDep, current_user: AuthenticatedUserDep
) -> list[schemas.ReviewRead]:
    """Reviews the authenticated user wrote."""
    reviews = await ReviewService(db).list_written(current_user.id)
    return [schemas.ReviewRead.model_validate(r) for r in reviews]


@router.get(
    "/user/received/{user_id}",
    response_model=list[schemas.ReviewRead],
    status_code=status.HTTP_200_OK,
    summary="Reviews A User Received",
)
async def list_user_received_reviews(
    user_id: str, db: DBDep, current_user: AuthenticatedUserDep
) -> list[schemas.ReviewRead]:
    """Public profile view: reviews received by any user."""
    reviews = await ReviewService(db).list_received(parse_reference(user_id))
    return [schemas.ReviewRead.model_validate(r) for r in reviews]


@router.get(
    "/user/reviews/{user_id}",
    response_model=list[schemas.ReviewRead],
    status_code=status.HTTP_200_OK,
    summary="Reviews A User Wrote",
)
async def list_user_written_reviews(
    user_id: str, db: DBDep, current_user: AuthenticatedUserDep
) -> list[schemas.ReviewRead]:
    """Public profile view: reviews written by any user."""
    reviews = await ReviewService(db).list_written(parse_reference(user_id))
    return [schemas.ReviewRead.model_validate(r) for r in reviews]


@router.get(
    "/{review_id}",
    response_model=schemas.ReviewRead,
    status_code=status.HTTP_200_OK,
    summary="Get Review",
)
async def get_review(
    review_id: str, db: DBDep, current_user: AuthenticatedUserDep
) -> schemas.ReviewRead:
    review = await ReviewService(db).get_review(parse_reference(review_id))
    return schemas.ReviewRead.model_validate(review)


@router.delete(
    "/{review_id}",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete Review",
)
@limiter.limit(settings.RATE_LIMIT)
async def delete_review(
    request: Request, review_id: str, db: DBDep, current_user: AuthenticatedUserDep
) -> MessageResponse:
    """Author deletes their own review."""
    await ReviewService(db).delete_review(current_user, parse_reference(review_id))
    return MessageResponse(detail="Review deleted successfully")
