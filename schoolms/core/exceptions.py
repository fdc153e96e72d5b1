# schoolms/core/exceptions.py
"""Custom exceptions for the school management API."""
from fastapi import HTTPException
from typing import Any, Dict, Optional


class SchoolMSException(HTTPException):
    """Base exception for the application."""
    def __init__(
        self,
        status_code: int,
        detail: Any,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)


class NotFoundError(SchoolMSException):
    """Raised when a resource is missing or soft-deleted."""
    def __init__(self, message: str = "Resource not found"):
        super().__init__(status_code=404, detail=message)


class ConflictError(SchoolMSException):
    """Raised when a write would break a uniqueness or referential rule."""
    def __init__(self, message: str = "Resource conflict", **extra: Any):
        detail: Any = message
        if extra:
            detail = {"message": message, **extra}
        super().__init__(status_code=409, detail=detail)


class BadRequestError(SchoolMSException):
    def __init__(self, message: str = "Bad request"):
        super().__init__(status_code=400, detail=message)


class UnauthorizedError(SchoolMSException):
    def __init__(self, message: str = "Authentication required"):
        super().__init__(
            status_code=401,
            detail=message,
            headers={"WWW-Authenticate": "Bearer"}
        )


class ForbiddenError(SchoolMSException):
    def __init__(self, message: str = "Permission denied"):
        super().__init__(status_code=403, detail=message)
