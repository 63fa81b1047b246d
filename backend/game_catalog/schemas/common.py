"""Shared Pydantic schemas."""
from pydantic import BaseModel


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: str
    kind: str = "internal"
