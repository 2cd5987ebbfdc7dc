import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from interview_scheduler.application.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    SchedulingError,
    ValidationError,
)


logger = logging.getLogger(__name__)

STATUS_CODES = (
    (NotFoundError, 404),
    (ValidationError, 400),
    (AuthorizationError, 403),
    (ConflictError, 409),
)


def status_for(exc: SchedulingError) -> int:
    for exc_type, status_code in STATUS_CODES:
        if isinstance(exc, exc_type):
            return status_code
    return 400


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(SchedulingError)
    async def scheduling_error_handler(request: Request, exc: SchedulingError):
        status_code = status_for(exc)
        logger.warning(
            "Request rejected",
            extra={"status": status_code, "reason": exc.code, "error": exc.message},
        )
        return JSONResponse(
            status_code=status_code,
            content={"error": exc.message, "code": exc.code},
        )
