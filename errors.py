"""
Error types and the FastAPI handlers that turn them into JSON responses.

Every handled error is returned as {"error": {"code", "message", ...}}.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class JournalError(Exception):
    """Base class for errors surfaced to API clients."""

    def __init__(self, message: str, code: str, http_status: int = 500, location: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.http_status = http_status
        self.location = location

    def to_response(self) -> dict:
        body = {"code": self.code, "message": self.message}
        if self.location:
            body["location"] = self.location
        return {"error": body}


class ValidationError(JournalError):
    def __init__(self, message: str, location: Optional[str] = None):
        super().__init__(message, "VALIDATION_ERROR", status.HTTP_400_BAD_REQUEST, location)


class NotFoundError(JournalError):
    def __init__(self, resource: str, document_id: str):
        super().__init__(f"{resource} {document_id} not found", "NOT_FOUND", status.HTTP_404_NOT_FOUND)
        self.resource = resource
        self.document_id = document_id


class StoreError(JournalError):
    """The document store failed. Not retried."""

    def __init__(self, operation: str, collection: str):
        super().__init__(
            f"Database {operation} on '{collection}' failed",
            "STORE_ERROR",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
        self.operation = operation
        self.collection = collection


def register_error_handlers(app: FastAPI) -> None:
    """Install JSON error handlers for domain, validation and unexpected errors."""

    @app.exception_handler(JournalError)
    async def journal_error_handler(request: Request, exc: JournalError):
        level = logging.ERROR if exc.http_status >= 500 else logging.WARNING
        logger.log(
            level,
            f"{exc.code}: {exc.message}",
            extra={"error_code": exc.code, "path": request.url.path},
        )
        return JSONResponse(status_code=exc.http_status, content=exc.to_response())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": {
                    "code": "VALIDATION_ERROR",
                    "message": "Invalid request data",
                    "details": [
                        {
                            "field": ".".join(str(loc) for loc in e["loc"]),
                            "message": e["msg"],
                            "type": e["type"],
                        }
                        for e in exc.errors()
                    ],
                },
            },
        )

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": {"code": "INTERNAL_ERROR", "message": "An unexpected error occurred"}},
        )
