"""
backend/cleanconnect/message/routes.py

Messaging Routes
Endpoints for in-service chat:
- Send a message (Participants)
- Get the conversation of a service (Participants)
- Delete my message (Sender)
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
from cleanconnect.message import schemas
from cleanconnect.message.services import MessageService

router = APIRouter(prefix="/messages", tags=["Messaging"], responses=ERROR_RESPONSES)

DBDep = Annotated[AsyncSession, Depends(get_db)]
AuthenticatedUserDep = Annotated[User, Depends(get_current_user)]


@router.post(
    "",
    response_model=schemas.MessageRead,
    status_code=status.HTTP_201_CREATED,
    summary="Send Message",
)
@limiter.limit(settings.RATE_LIMIT)
async def send_message(
    request: Request,
    payload: schemas.MessageCreate,
    db: DBDep,
    current_user: AuthenticatedUserDep,
) -> schemas.MessageRead:
    """Participant sends a message on a service thread."""
    message = await MessageService(db).send_message(current_user, payload)
    return schemas.MessageRead.model_validate(message)


@router.get(
    "/service/{service_id}",
    response_model=list[schemas.MessageRead],
    status_code=status.HTTP_200_OK,
    summary="Get Service Conversation",
)
async def get_service_messages(
    service_id: str, db: DBDep, current_user: AuthenticatedUserDep
) -> list[schemas.MessageRead]:
    """Messages of a service, oldest first."""
    messages = await MessageService(db).list_for_service(current_user, parse_reference(service_id))
    return [schemas.MessageRead.model_validate(m) for m in messages]


@router.delete(
    "/{message_id}",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete Message",
)
@limiter.limit(settings.RATE_LIMIT)
async def delete_message(
    request: Request, message_id: str, db: DBDep, current_user: AuthenticatedUserDep
) -> MessageResponse:
    """Sender deletes their message."""
    await MessageService(db).delete_message(current_user, parse_reference(message_id))
    return MessageResponse(detail="Message deleted successfully")
