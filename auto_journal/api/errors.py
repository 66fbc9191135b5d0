"""
Exception handlers.

Every failure leaves the API as {"success": false, "error": msg}
so callers handle one error shape, whatever went wrong.
"""

import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from auto_journal.services.exceptions import PostingError

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
    )


async def posting_exception_handler(request: Request, exc: PostingError) -> JSONResponse:
    return error_response(exc.status_code, exc.message)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies are business errors (400), not 422."""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return error_response(status.HTTP_400_BAD_REQUEST, "; ".join(messages) or "Invalid request")


async def integrity_exception_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    """A concurrent request already posted this record or took this number."""
    logger.warning("Integrity error on %s: %s", request.url.path, exc.orig)
    return error_response(
        status.HTTP_409_CONFLICT,
        "Conflicting posting: this record was posted by a concurrent request",
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s", request.url.path)
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An internal server error occurred",
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PostingError, posting_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
