"""Error codes and exceptions for sampling and the HTTP protocol."""
from enum import Enum

from fastapi.responses import JSONResponse
from pydantic import BaseModel

from fairdice.config import settings


class ErrorCode(str, Enum):
    """Error codes returned in protocol error bodies."""

    INVALID_REQUEST = "INVALID_REQUEST"
    PRECONDITION_VIOLATION = "PRECONDITION_VIOLATION"
    SOURCE_EXHAUSTED = "SOURCE_EXHAUSTED"
    SOURCE_ABORTED = "SOURCE_ABORTED"
    ARITHMETIC_OVERFLOW = "ARITHMETIC_OVERFLOW"
    INTERNAL_ERROR = "INTERNAL_ERROR"


ERROR_HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.INVALID_REQUEST: 400,
    ErrorCode.PRECONDITION_VIOLATION: 400,
    ErrorCode.SOURCE_EXHAUSTED: 503,
    ErrorCode.SOURCE_ABORTED: 503,
    ErrorCode.ARITHMETIC_OVERFLOW: 400,
    ErrorCode.INTERNAL_ERROR: 500,
}

ERROR_RECOVERABLE: dict[ErrorCode, bool] = {
    ErrorCode.INVALID_REQUEST: False,
    ErrorCode.PRECONDITION_VIOLATION: False,
    ErrorCode.SOURCE_EXHAUSTED: True,
    ErrorCode.SOURCE_ABORTED: True,
    ErrorCode.ARITHMETIC_OVERFLOW: False,
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


class FairDiceError(Exception):
    """Base error that maps to a protocol error response."""

    def __init__(self, code: ErrorCode, message: str | None = None):
        self.code = code
        self.message = message or f"Error: {code.value}"
        self.status_code = ERROR_HTTP_STATUS[code]
        self.recoverable = ERROR_RECOVERABLE[code]
        super().__init__(self.message)

    def to_response(self) -> JSONResponse:
        """Convert to a JSONResponse."""
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


class PreconditionViolation(FairDiceError):
    """Invalid modulus, range or die; raised before any draw is taken."""

    def __init__(self, message: str | None = None):
        super().__init__(ErrorCode.PRECONDITION_VIOLATION, message)


class SourceError(FairDiceError):
    """The bounded source could not supply another draw."""


class SourceExhausted(SourceError):
    """The source has no more draws (e.g. a replayed sequence ran out)."""

    def __init__(self, message: str | None = None):
        super().__init__(ErrorCode.SOURCE_EXHAUSTED, message)


class SourceAborted(SourceError):
    """The source was cancelled, e.g. end of interactive input."""

    def __init__(self, message: str | None = None):
        super().__init__(ErrorCode.SOURCE_ABORTED, message)


class ArithmeticOverflow(FairDiceError):
    """An accumulator would exceed the configured native word width."""

    def __init__(self, message: str | None = None):
        super().__init__(ErrorCode.ARITHMETIC_OVERFLOW, message)
