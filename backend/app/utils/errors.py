from typing import Dict
import enum
import logging

from fastapi import HTTPException, status

logger = logging.getLogger(__name__)


class ErrorKind(str, enum.Enum):
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    INVALID_STATE = "invalid_state"
    LIMIT_EXCEEDED = "limit_exceeded"
    EXTERNAL_SERVICE_FAILURE = "external_service_failure"


class MarketplaceError(Exception):
    """Raised when a marketplace action fails; message is safe to show to users."""

    kind: ErrorKind = ErrorKind.INVALID_STATE

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class Unauthorized(MarketplaceError):
    kind = ErrorKind.UNAUTHORIZED


class NotFound(MarketplaceError):
    kind = ErrorKind.NOT_FOUND


class InvalidState(MarketplaceError):
    kind = ErrorKind.INVALID_STATE


class LimitExceeded(MarketplaceError):
    kind = ErrorKind.LIMIT_EXCEEDED


class ExternalServiceFailure(MarketplaceError):
    kind = ErrorKind.EXTERNAL_SERVICE_FAILURE


_STATUS_BY_KIND = {
    ErrorKind.UNAUTHORIZED: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.INVALID_STATE: status.HTTP_409_CONFLICT,
    ErrorKind.LIMIT_EXCEEDED: status.HTTP_402_PAYMENT_REQUIRED,
    ErrorKind.EXTERNAL_SERVICE_FAILURE: status.HTTP_502_BAD_GATEWAY,
}


def error_response(
    message: str,
    field_errors: Dict[str, str],
    code: int = status.HTTP_422_UNPROCESSABLE_ENTITY,
    kind: ErrorKind | None = None,
) -> HTTPException:
    """Return an HTTPException with a consistent structure and log details."""
    logger.error("%s %s", message, field_errors)
    detail = {"message": message, "field_errors": field_errors}
    if kind is not None:
        detail["kind"] = kind.value
    return HTTPException(status_code=code, detail=detail)


def to_http_error(exc: MarketplaceError) -> HTTPException:
    """Translate a domain failure into the structured API error payload."""
    return error_response(exc.message, {}, http_status_for(exc), kind=exc.kind)


def http_status_for(exc: MarketplaceError) -> int:
    return _STATUS_BY_KIND[exc.kind]
