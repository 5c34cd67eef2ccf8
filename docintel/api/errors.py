"""Map application errors onto HTTP responses."""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

from docintel.core.exceptions import AppError, NotFoundError, ValidationError
from docintel.models.response.response import ErrorResponse

ERROR_RESPONSES: Dict[int, Dict[str, Any]] = {
    400: {"description": "Invalid request", "model": ErrorResponse},
    404: {"description": "Resource not found", "model": ErrorResponse},
    500: {"description": "Internal server error", "model": ErrorResponse},
}


def http_error(error: AppError, detail: Optional[str] = None) -> HTTPException:
    """Build the HTTPException for an application error.

    Args:
        error: Error raised by a service
        detail: Extra context for the response body

    Returns:
        HTTPException: 404 for missing records, 400 for invalid input, 500 otherwise
    """
    if isinstance(error, NotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, ValidationError):
        status_code = status.HTTP_400_BAD_REQUEST
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    return HTTPException(
        status_code=status_code,
        detail={
            "error": type(error).__name__,
            "message": error.message,
            "detail": detail,
        },
    )
