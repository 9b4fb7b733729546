from .errors import (
    error_response,
    to_http_error,
    ErrorKind,
    MarketplaceError,
    Unauthorized,
    NotFound,
    InvalidState,
    LimitExceeded,
    ExternalServiceFailure,
    http_status_for,
)
