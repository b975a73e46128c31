"""Error taxonomy shared by the services and the HTTP layer."""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger


class ReservationSystemError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, kind: str, message: str):
        self.kind = kind
        self.message = message
        super().__init__(message)


class ValidationError(ReservationSystemError):
    """Malformed or out-of-policy input. Raised before any store access."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(ReservationSystemError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str):
        super().__init__("NotFound", message)


class ConflictError(ReservationSystemError):
    """The request is incompatible with the current state of a record."""

    status_code = status.HTTP_409_CONFLICT


class StoreError(ReservationSystemError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "Database error"):
        super().__init__("StoreError", message)


async def reservation_error_handler(request: Request, exc: ReservationSystemError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.kind}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.kind}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "kind": exc.kind},
    )


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info(f"Malformed request to {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Request body or parameters are malformed.", "kind": "InvalidPayload"},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error", "kind": "StoreError"},
    )


EXCEPTION_HANDLERS = {
    ReservationSystemError: reservation_error_handler,
    RequestValidationError: request_validation_error_handler,
    Exception: unhandled_error_handler,
}


def register_exception_handlers(app: FastAPI) -> None:
    for exception_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
