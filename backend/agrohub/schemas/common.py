"""
Common Pydantic schemas used across the API.
"""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
    )


class IDSchema(BaseSchema):
    """Schema with UUID ID."""

    id: UUID


class TimestampSchema(BaseSchema):
    """Schema with timestamps."""

    created_at: datetime
    updated_at: datetime


class MessageResponse(BaseSchema):
    """Simple message response."""

    message: str
    success: bool = True


class QuotaDetail(BaseSchema):
    """Detail carried by quota_exceeded errors."""

    message: str
    quota_type: str
    limit: int | None = None
    current: int | None = None


class ErrorResponse(BaseSchema):
    """Body rendered for every AppError: a human detail and a stable code."""

    detail: str | QuotaDetail
    code: str
