"""Domain errors raised by services and the HTTP handlers that render them."""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class FleetError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_body(self) -> dict:
        return {"error": self.message}


class ValidationError(FleetError):
    """Malformed or disallowed request that the caller can correct."""

    status_code = 400


class ConflictError(FleetError):
    """Requested window overlaps a blocking reservation or maintenance job."""

    status_code = 409

    def __init__(self, kind: str, message: str = None):
        if message is None:
            if kind == "maintenance":
                message = "This vehicle is under maintenance during this period."
            else:
                message = "This vehicle is already reserved for this period."
        super().__init__(message)
        self.kind = kind

    def to_body(self) -> dict:
        return {"error": self.message, "conflict": self.kind}


class NotFoundError(FleetError):
    status_code = 404


class ExpiredError(FleetError):
    status_code = 410


class StoreError(FleetError):
    """Persistence failure surfaced to the caller as a generic error."""

    status_code = 500


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(FleetError)
    async def fleet_error_handler(request: Request, exc: FleetError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    @app.exception_handler(SQLAlchemyError)
    async def store_error_handler(request: Request, exc: SQLAlchemyError):
        logger.error(f"Database error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})
