"""Shared response envelopes."""

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    """Success acknowledgement with a human-readable message."""

    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    """Error body: stable machine-readable code plus a human message."""

    success: bool = False
    code: str = Field(..., description="Stable error code, e.g. INVALID_CREDENTIALS")
    message: str
