import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from ...domain.errors import (
    DecodingError,
    EncodingError,
    GenerationError,
    NotFoundError,
    QuizLoadError,
    SessionError,
    StoreNetworkError,
)

logger = logging.getLogger(__name__)

# Most specific first; the first isinstance match wins
_STATUS_BY_ERROR = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (StoreNetworkError, status.HTTP_503_SERVICE_UNAVAILABLE),
    ((DecodingError, EncodingError), status.HTTP_500_INTERNAL_SERVER_ERROR),
    (GenerationError, status.HTTP_502_BAD_GATEWAY),
    (SessionError, status.HTTP_409_CONFLICT),
)


def status_for(exc: Exception) -> int:
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def load_error_status(exc: QuizLoadError) -> int:
    """A failed load is reported with the status of what made it fail."""
    cause = exc.__cause__
    return status_for(cause) if isinstance(cause, Exception) else status.HTTP_502_BAD_GATEWAY


def setup_error_handlers(app: FastAPI) -> None:
    async def handle(request: Request, exc: Exception) -> JSONResponse:
        code = load_error_status(exc) if isinstance(exc, QuizLoadError) else status_for(exc)
        if code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=code, content={"detail": str(exc)})

    for error_type in (NotFoundError, StoreNetworkError, DecodingError, EncodingError,
                       GenerationError, SessionError):
        app.add_exception_handler(error_type, handle)
