"""Error codes and exceptions for the round service."""
from enum import Enum

from fastapi.responses import JSONResponse
from pydantic import BaseModel

from plinko.config import settings


class ErrorCode(str, Enum):
    """Round service error codes."""

    INVALID_REQUEST = "INVALID_REQUEST"
    ROUND_NOT_FOUND = "ROUND_NOT_FOUND"
    ROUND_NOT_STARTED = "ROUND_NOT_STARTED"
    ROUND_ALREADY_STARTED = "ROUND_ALREADY_STARTED"
    ROUND_IN_PROGRESS = "ROUND_IN_PROGRESS"
    INVALID_ROUND_STATE = "INVALID_ROUND_STATE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


ERROR_HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.INVALID_REQUEST: 400,
    ErrorCode.ROUND_NOT_FOUND: 404,
    ErrorCode.ROUND_NOT_STARTED: 400,
    ErrorCode.ROUND_ALREADY_STARTED: 409,
    ErrorCode.ROUND_IN_PROGRESS: 409,
    ErrorCode.INVALID_ROUND_STATE: 500,
    ErrorCode.INTERNAL_ERROR: 500,
}

ERROR_RECOVERABLE: dict[ErrorCode, bool] = {
    ErrorCode.INVALID_REQUEST: False,
    ErrorCode.ROUND_NOT_FOUND: False,
    ErrorCode.ROUND_NOT_STARTED: True,
    ErrorCode.ROUND_ALREADY_STARTED: False,
    ErrorCode.ROUND_IN_PROGRESS: True,
    ErrorCode.INVALID_ROUND_STATE: False,
    ErrorCode.INTERNAL_ERROR: True,
}


class ErrorBody(BaseModel):
    """Error body shape."""

    code: str
    message: str
    recoverable: bool


class ErrorResponse(BaseModel):
    """Full error response."""

    protocolVersion: str = settings.protocol_version
    error: ErrorBody


class GameError(Exception):
    """Service error that maps to a protocol error response."""

    def __init__(self, code: ErrorCode, message: str | None = None):
        self.code = code
        self.message = message or f"Error: {code.value}"
        self.status_code = ERROR_HTTP_STATUS[code]
        self.recoverable = ERROR_RECOVERABLE[code]
        super().__init__(self.message)

    def to_response(self) -> JSONResponse:
        """Convert to JSONResponse."""
        return JSONResponse(
            status_code=self.status_code,
            content=ErrorResponse(
                error=ErrorBody(
                    code=self.code.value,
                    message=self.message,
                    recoverable=self.recoverable,
                )
            ).model_dump(),
        )
