"""
backend/cleanconnect/core/schemas.py

Response bodies shared by every router.
"""

from pydantic import BaseModel, ConfigDict, Field


class MessageResponse(BaseModel):
    detail: str = Field(..., description="What happened")


class ErrorBody(BaseModel):
    """`detail` of a domain error: the message plus error-specific fields."""

    error: str
    model_config = ConfigDict(extra="allow")


class ErrorResponse(BaseModel):
    detail: ErrorBody


ERROR_RESPONSES: dict[int | str, dict] = {
    400: {"model": ErrorResponse, "description": "Validation or funds error"},
    403: {"model": ErrorResponse, "description": "Not allowed"},
    404: {"model": ErrorResponse, "description": "Not found"},
    409: {"model": ErrorResponse, "description": "Concurrent modification"},
}
