from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException
import logging

logger = logging.getLogger(__name__)


def error_body(status_code: int, message: str, error_type: str, details=None) -> dict:
    error = {"type": error_type, "status_code": status_code}
    if details is not None:
        error["details"] = details
    return {"success": False, "message": message, "error": error}


async def http_exception_handler(request: Request, exc: HTTPException):
    """Render HTTPException (and our subclasses) in the response envelope"""
    detail = exc.detail
    details = None
    if isinstance(detail, dict):
        message = str(detail.get("message", "Request failed"))
        details = {k: v for k, v in detail.items() if k != "message"} or None
    else:
        message = str(detail)

    if exc.status_code >= 500:
        logger.error(f"{exc.status_code} {message} - Path: {request.url.path}")
    else:
        logger.info(f"{exc.status_code} {message} - Path: {request.url.path}")

    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(error_body(exc.status_code, message, exc.__class__.__name__, details)),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg"),
            "type": err.get("type"),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content=jsonable_encoder(error_body(422, "Validation failed", "ValidationError", details)),
    )


async def integrity_error_handler(request: Request, exc: IntegrityError):
    """Unique constraint hit by a concurrent writer after the pre-check passed"""
    logger.warning(f"Integrity error on {request.url.path}: {exc.orig}")
    return JSONResponse(
        status_code=409,
        content=error_body(409, "Duplicate record - this data already exists", "ConflictError"),
    )


async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions"""
    logger.exception(f"Unexpected error: {str(exc)} - Path: {request.url.path}")
    return JSONResponse(
        status_code=500,
        content=error_body(500, "Internal server error", "InternalError"),
    )


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)
