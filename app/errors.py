"""
Error taxonomy for the price gateway.
Validation failures, backing service errors and internal faults all end up
as an ApiError carrying an explicit kind, message and HTTP status.
"""
from __future__ import annotations

import logging
from enum import Enum

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


class ErrorKind(str, Enum):
    INVALID_PATH = "INVALID_PATH"
    INVALID_SYMBOL = "INVALID_SYMBOL"
    UNKNOWN_EXCHANGE = "UNKNOWN_EXCHANGE"
    PERIOD_NOT_APPLICABLE = "PERIOD_NOT_APPLICABLE"
    INVALID_PERIOD_FORMAT = "INVALID_PERIOD_FORMAT"
    INVALID_PERIOD = "INVALID_PERIOD"
    PERIOD_REQUIRES_EXCHANGE = "PERIOD_REQUIRES_EXCHANGE"
    DOMAIN_ERROR = "DOMAIN_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


_STATUS_BY_KIND = {
    ErrorKind.INVALID_PATH: 400,
    ErrorKind.INVALID_SYMBOL: 400,
    ErrorKind.UNKNOWN_EXCHANGE: 400,
    ErrorKind.PERIOD_NOT_APPLICABLE: 400,
    ErrorKind.INVALID_PERIOD_FORMAT: 400,
    ErrorKind.INVALID_PERIOD: 400,
    ErrorKind.PERIOD_REQUIRES_EXCHANGE: 400,
    ErrorKind.INTERNAL_ERROR: 500,
}


class AppError(Exception):
    """Structured error reported by the aggregate data service."""

    def __init__(self, code: int, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


class ApiError(Exception):
    """Classified failure ready to be written to the client."""

    def __init__(self, kind: ErrorKind, message: str, status_code: int | None = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        if status_code is None:
            if kind not in _STATUS_BY_KIND:
                raise ValueError(f"{kind.value} requires an explicit status code")
            status_code = _STATUS_BY_KIND[kind]
        self.status_code = status_code

    def __repr__(self) -> str:
        return f"ApiError({self.kind.value}, {self.message!r}, {self.status_code})"


def classify_backend_error(exc: Exception, context: dict | None = None) -> ApiError:
    if isinstance(exc, ApiError):
        return exc
    if isinstance(exc, AppError):
        return ApiError(ErrorKind.DOMAIN_ERROR, exc.message, status_code=exc.code)
    logger.error(f"Unexpected backing service error: {exc!r}", exc_info=exc, extra=context or {})
    return ApiError(ErrorKind.INTERNAL_ERROR, INTERNAL_ERROR_MESSAGE)
