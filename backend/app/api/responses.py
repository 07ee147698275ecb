"""Helpers that wrap results and failures in the ApiResponse envelope."""
import traceback
from typing import Any, Optional

from fastapi.responses import JSONResponse

from app.core.config import get_settings
from app.models.response import ApiResponse, FieldError


def success_response(data: Any, status_code: int = 200) -> JSONResponse:
    body = ApiResponse(status="success", data=data)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def error_response(
    status_code: int,
    message: str,
    exc: Optional[BaseException] = None,
    errors: Optional[list[FieldError]] = None,
    headers: Optional[dict[str, str]] = None,
) -> JSONResponse:
    """Build an error envelope.

    Exception detail (message and stack trace) is only attached in
    development mode.
    """
    body = ApiResponse(status="error", message=message, errors=errors)
    if exc is not None and get_settings().is_development:
        body.error = str(exc)
        body.stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", exclude_none=True),
        headers=headers,
    )
