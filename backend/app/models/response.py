"""Uniform JSON response envelope."""
from typing import Any, Literal, Optional

from pydantic import BaseModel


class FieldError(BaseModel):
    """One field-level validation problem."""

    field: str
    message: str


class ApiResponse(BaseModel):
    """Every API response is wrapped in this envelope."""

    status: Literal["success", "error"]
    data: Optional[Any] = None
    message: Optional[str] = None
    errors: Optional[list[FieldError]] = None
    # Development mode only
    error: Optional[str] = None
    stack: Optional[str] = None
