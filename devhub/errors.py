import enum
import logging
from typing import List, Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse

from .utils.log import EVENT_UNHANDLED_ERROR, log_event

logger = logging.getLogger(__name__)

SERVER_ERROR = "Server error"


class ErrorKind(str, enum.Enum):
    NOT_FOUND = "NotFound"
    INVALID_IDENTIFIER = "InvalidIdentifier"
    VALIDATION = "Validation"
    AUTHORIZATION = "Authorization"
    CONFLICT = "Conflict"
    UNEXPECTED = "Unexpected"


STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INVALID_IDENTIFIER: 404,
    ErrorKind.VALIDATION: 400,
    ErrorKind.AUTHORIZATION: 401,
    ErrorKind.CONFLICT: 409,
    ErrorKind.UNEXPECTED: 500,
}


class PostError(Exception):
    """Failure raised by the store or the controller, rendered by :func:`post_error_handler`."""

    def __init__(self, kind: ErrorKind, msg: str = SERVER_ERROR, errors: Optional[List[dict]] = None):
        super().__init__(msg)
        self.kind = kind
        self.msg = msg
        self.errors = errors

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]


def field_error(param: str, msg: str, location: str = "body") -> dict:
    return {"msg": msg, "param": param, "location": location}


# ----------------- HANDLERS -----------------
def post_error_handler(request: Request, exc: PostError):
    if exc.kind is ErrorKind.UNEXPECTED:
        log_event(logger, "error", EVENT_UNHANDLED_ERROR, path=request.url.path, error=exc.msg)
        return PlainTextResponse(SERVER_ERROR, status_code=500)
    if exc.errors:
        return JSONResponse(status_code=exc.status_code, content={"errors": exc.errors})
    return JSONResponse(status_code=exc.status_code, content={"msg": exc.msg})


def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ())]
        location = loc[0] if loc else "body"
        param = ".".join(loc[1:]) if len(loc) > 1 else location
        errors.append(field_error(param, _message_for(param, err), location))
    return JSONResponse(status_code=400, content={"errors": errors})


def unhandled_error_handler(request: Request, exc: Exception):
    log_event(logger, "exception", EVENT_UNHANDLED_ERROR, path=request.url.path, error=type(exc).__name__)
    return PlainTextResponse(SERVER_ERROR, status_code=500)


REQUIRED_ERROR_TYPES = ("missing", "string_too_short")


def _message_for(param: str, err: dict) -> str:
    if param == "text" and err.get("type") in REQUIRED_ERROR_TYPES:
        return "Text is required"
    return err.get("msg", "Invalid value")
