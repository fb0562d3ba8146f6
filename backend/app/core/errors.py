"""Central error responders.

Every failure leaves the API as ``{"success": false, "error": ...}`` so that
clients only ever deal with one envelope.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException

from app.core.config import settings
from app.services.query_filter import QueryFilterError

logger = logging.getLogger(__name__)


class ErrorMessages:
    INVALID_CREDENTIALS = "Invalid credentials"
    MISSING_CREDENTIALS = "Please provide an email and password"
    EMAIL_ALREADY_EXISTS = "Email already registered"
    NOT_AUTHENTICATED = "Not authorized to access this route"
    COMPANY_NOT_FOUND = "Company not found"
    COMPANY_NAME_EXISTS = "Company with this name already exists"
    REVIEW_NOT_FOUND = "No review found with the id of {review_id}"
    NO_COMPANY_WITH_ID = "No company with the id of {company_id}"
    REVIEW_ALREADY_EXISTS = "You have already reviewed this company"
    NOT_AUTHORIZED_UPDATE_REVIEW = "Not authorized to update review"
    NOT_AUTHORIZED_DELETE_REVIEW = "Not authorized to delete review"
    DUPLICATE_VALUE = "Duplicate field value entered"
    RATE_LIMITED = "Too many requests from this IP, please try again later."
    SERVER_ERROR = "Server Error"

    @staticmethod
    def role_forbidden(role: str) -> str:
        return f"User role {role} is not authorized to access this route"


def error_response(status_code: int, error: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error, **extra})


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        msg = err.get("msg", "Invalid value")
        parts.append(f"{'.'.join(loc)}: {msg}" if loc else msg)
    return ", ".join(parts) or "Invalid request"


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("HTTP %s on %s %s: %s", exc.status_code, request.method, request.url.path, exc.detail)
    response = error_response(exc.status_code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(status.HTTP_400_BAD_REQUEST, _validation_message(exc))


async def query_filter_exception_handler(request: Request, exc: QueryFilterError) -> JSONResponse:
    return error_response(status.HTTP_400_BAD_REQUEST, str(exc))


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    return error_response(status.HTTP_400_BAD_REQUEST, ErrorMessages.DUPLICATE_VALUE)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    extra = {} if settings.is_production else {"message": str(exc)}
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, ErrorMessages.SERVER_ERROR, **extra)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(QueryFilterError, query_filter_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
